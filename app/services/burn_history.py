"""Burn histogram: number of scans per calendar day for a project (or all projects)."""

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from sqlalchemy.orm import Session

from app.core.clock import Clock, as_utc, get_clock
from app.core.config import get_settings
from app.core.errors import HistoryRangeError, NoHistoryError
from app.models import Burn
from app.services.stat_snapshots import require_project

logger = logging.getLogger(__name__)


def _local_day(value: date | datetime, tz: tzinfo) -> date:
    """Calendar day of a date or datetime in ``tz``. Naive datetimes are taken as UTC."""
    if isinstance(value, datetime):
        return as_utc(value).astimezone(tz).date()
    return value


def _day_start_utc(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def burn_history(
    session: Session,
    project_id: int | None,
    start: date | datetime | None = None,
    end: date | datetime | None = None,
    clock: Clock | None = None,
    tz: tzinfo | None = None,
) -> list[tuple[date, int]]:
    """
    One (day, burn count) pair for every calendar day in [start, end], zero days included.

    Days are cut at local midnight in ``tz`` (default HISTORY_TIMEZONE). start defaults to
    the day of the earliest burn; with no burns and no start, NoHistoryError is raised
    rather than guessing. end defaults to today. project_id None counts every project.
    """
    clock = clock or get_clock()
    tz = tz or get_settings().history_tz
    if project_id is not None:
        require_project(session, project_id)

    burns = session.query(Burn.created_at)
    if project_id is not None:
        burns = burns.filter(Burn.project_id == project_id)

    if start is None:
        first = burns.order_by(Burn.created_at.asc(), Burn.id.asc()).first()
        if first is None:
            raise NoHistoryError(
                "No burns recorded; an explicit start date is required for the burn history."
            )
        start_day = _local_day(first[0], tz)
    else:
        start_day = _local_day(start, tz)
    end_day = _local_day(clock.now() if end is None else end, tz)
    if end_day < start_day:
        raise HistoryRangeError(
            f"end ({end_day.isoformat()}) must not be before start ({start_day.isoformat()})"
        )

    window = burns.filter(
        Burn.created_at >= _day_start_utc(start_day, tz),
        Burn.created_at < _day_start_utc(end_day + timedelta(days=1), tz),
    )
    per_day = Counter(_local_day(row[0], tz) for row in window.all())

    results: list[tuple[date, int]] = []
    day = start_day
    while day <= end_day:
        results.append((day, per_day.get(day, 0)))
        day += timedelta(days=1)

    logger.debug(
        "Burn history: project_id=%s, start=%s, end=%s, burns=%s",
        project_id,
        start_day.isoformat(),
        end_day.isoformat(),
        sum(per_day.values()),
    )
    return results
