"""ORM model for finding suppression rules."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.models.base import Base


class Filter(Base):
    """
    Partial-match template over finding fields. A null column is a wildcard.

    Rows are created and deleted by operators and never updated in between.
    """

    __tablename__ = "filters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    severity = Column(Integer, nullable=True)
    fingerprint = Column(String(255), nullable=True)
    scanner = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    detail = Column(Text, nullable=True)
    file = Column(String(2048), nullable=True)
    line = Column(String(255), nullable=True)
    code = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
