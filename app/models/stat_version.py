"""ORM model for versioned aggregate counters (system-wide or per project)."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer

from app.models.base import Base

# Counter columns, in display order. Shared by the snapshot store and history API.
COUNTER_NAMES: tuple[str, ...] = (
    "services",
    "burns",
    "total_findings",
    "open_findings",
    "hidden_findings",
    "published_findings",
    "filtered_findings",
    "files",
    "lines",
)


class StatVersion(Base):
    """
    One immutable snapshot of counters for a scope.

    project_id is null for the system scope. Rows are append-only: the history of a
    scope is every row for it ordered by (created_at, id).
    """

    __tablename__ = "stat_versions"
    __table_args__ = (
        Index("ix_stat_versions_scope_created_at", "project_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    services = Column(Integer, nullable=False, default=0)
    burns = Column(Integer, nullable=False, default=0)
    total_findings = Column(Integer, nullable=False, default=0)
    open_findings = Column(Integer, nullable=False, default=0)
    hidden_findings = Column(Integer, nullable=False, default=0)
    published_findings = Column(Integer, nullable=False, default=0)
    filtered_findings = Column(Integer, nullable=False, default=0)
    files = Column(Integer, nullable=False, default=0)
    lines = Column(Integer, nullable=False, default=0)

    def counters(self) -> dict[str, int]:
        """Counter values of this version keyed by COUNTER_NAMES."""
        return {name: getattr(self, name) for name in COUNTER_NAMES}
