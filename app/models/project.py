"""ORM model mirroring the external project (service) registry."""

from sqlalchemy import Column, Integer, String

from app.models.base import Base


class Project(Base):
    """
    A scanned project. Owned by the service registry; kept here so findings, burns,
    filters and per-project stat history can reference it.
    """

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    pretty_name = Column(String(255), nullable=False, default="")
