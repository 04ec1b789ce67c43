"""Core app configuration, database, clock and errors."""

from app.core.clock import Clock, FrozenClock, SystemClock, get_clock
from app.core.config import get_settings, settings
from app.core.database import get_db, transaction

__all__ = [
    "Clock",
    "FrozenClock",
    "SystemClock",
    "get_clock",
    "get_db",
    "get_settings",
    "settings",
    "transaction",
]
