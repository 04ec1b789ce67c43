"""ORM model for scan executions (burns), written by the scan pipeline."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func

from app.models.base import Base


class Burn(Base):
    """One executed scan against a project, with the size of the tree it scanned."""

    __tablename__ = "burns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    num_files = Column(Integer, nullable=False, default=0)
    num_lines = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
