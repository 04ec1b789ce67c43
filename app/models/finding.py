"""ORM model for persisted scan findings and their suppression state."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)

from app.models.base import Base

STATUS_OPEN = "open"
STATUS_HIDDEN = "hidden"
STATUS_PUBLISHED = "published"
STATUS_FILTERED = "filtered"

FINDING_STATUSES: tuple[str, ...] = (
    STATUS_OPEN,
    STATUS_HIDDEN,
    STATUS_PUBLISHED,
    STATUS_FILTERED,
)


class Finding(Base):
    """
    One issue reported by a scanner against a project.

    status is one of open, hidden, published, filtered. filter_id names the rule
    suppressing the finding and is set exactly when status is filtered.
    """

    __tablename__ = "findings"
    __table_args__ = (
        CheckConstraint(
            "(status = 'filtered' AND filter_id IS NOT NULL)"
            " OR (status <> 'filtered' AND filter_id IS NULL)",
            name="ck_findings_filter_owner",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    severity = Column(Integer, nullable=False, default=0)
    fingerprint = Column(String(255), nullable=False, default="", index=True)
    scanner = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    detail = Column(Text, nullable=False, default="")
    file = Column(String(2048), nullable=False, default="")
    line = Column(String(255), nullable=False, default="")
    code = Column(Text, nullable=False, default="")
    status = Column(String(16), nullable=False, default=STATUS_OPEN, index=True)
    filter_id = Column(Integer, ForeignKey("filters.id"), nullable=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
