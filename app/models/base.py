"""SQLAlchemy declarative Base shared by the Emberwatch models."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Index names must line up with the ones the Alembic revisions create.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
}


class Base(DeclarativeBase):
    """Declarative base for projects, findings, filters, burns and stat versions."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
