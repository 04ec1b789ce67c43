"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.burn import Burn
from app.models.filter import Filter
from app.models.finding import Finding
from app.models.project import Project
from app.models.stat_version import StatVersion

__all__ = ["Base", "Burn", "Filter", "Finding", "Project", "StatVersion"]
