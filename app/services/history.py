"""History resampler: bucketed time series of versioned counters over a date range.

Each point is the scope's counter value as of the bucket timestamp, read from the
snapshot store. Snapshot history is immutable, so the same inputs always give the
same series.
"""

import logging
from collections.abc import Iterator, Sequence
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from app.core.clock import Clock, as_utc, get_clock
from app.core.errors import HistoryRangeError, InvalidCounterError
from app.models.stat_version import COUNTER_NAMES
from app.services.stat_snapshots import SYSTEM_SCOPE, first_version_time, require_project, value_at

logger = logging.getLogger(__name__)

# A month is 30 days throughout the bucket math.
MONTH = timedelta(days=30)

# (exclusive upper bound of elapsed span, bucket width), checked in order.
RESOLUTION_BANDS: tuple[tuple[timedelta, timedelta], ...] = (
    (timedelta(hours=12), timedelta(hours=1)),
    (timedelta(days=3), timedelta(hours=4)),
    (timedelta(days=14), timedelta(hours=12)),
    (MONTH, timedelta(days=1)),
    (2 * MONTH, timedelta(days=3)),
    (6 * MONTH, timedelta(days=5)),
)
WIDEST_RESOLUTION = timedelta(weeks=1)

# Upper bound on points per series, so a tiny explicit resolution cannot run away.
MAX_HISTORY_POINTS = 10_000

HistorySeries = dict[str, list[tuple[datetime, int]]]


def _elapsed(start: datetime | float, end: datetime | float) -> timedelta:
    """Span between two datetimes or two epoch-second values."""
    if isinstance(start, datetime) and isinstance(end, datetime):
        return as_utc(end) - as_utc(start)
    if isinstance(start, datetime) or isinstance(end, datetime):
        raise TypeError("start and end must both be datetimes or both be epoch seconds")
    return timedelta(seconds=end - start)


def resolution_for(start: datetime | float, end: datetime | float) -> timedelta:
    """
    Bucket width for a range, chosen by its elapsed span.

    Bands are inclusive at the lower bound and exclusive at the upper: under 12 hours
    gives 1 hour, under 3 days 4 hours, under 14 days 12 hours, under 1 month 1 day,
    under 2 months 3 days, under 6 months 5 days, anything longer 1 week.
    """
    span = _elapsed(start, end)
    if span < timedelta(0):
        raise HistoryRangeError("end must not be before start")
    for upper, width in RESOLUTION_BANDS:
        if span < upper:
            return width
    return WIDEST_RESOLUTION


def iter_timesteps(start: datetime, end: datetime, resolution: timedelta) -> Iterator[datetime]:
    """
    Timestamps from start to end inclusive, every ``resolution``.

    The last step is clamped to exactly ``end`` when the stride would overshoot it.
    Each call returns a fresh generator.
    """
    if resolution <= timedelta(0):
        raise HistoryRangeError("resolution must be positive")
    if end < start:
        raise HistoryRangeError("end must not be before start")
    step = start
    while step < end + resolution:
        if step > end:
            step = end
        yield step
        step = step + resolution


def _resolve_counters(counters: Sequence[str] | None) -> list[str]:
    if counters is None:
        return list(COUNTER_NAMES)
    requested = list(dict.fromkeys(counters))
    unknown = [name for name in requested if name not in COUNTER_NAMES]
    if unknown:
        raise InvalidCounterError(
            f"unknown counters {unknown}; expected any of {list(COUNTER_NAMES)}"
        )
    return requested


def _resolve_resolution(
    resolution: timedelta | float | None, start: datetime, end: datetime
) -> timedelta:
    if resolution is None:
        return resolution_for(start, end)
    if not isinstance(resolution, timedelta):
        resolution = timedelta(seconds=resolution)
    if resolution <= timedelta(0):
        raise HistoryRangeError("resolution must be positive")
    return resolution


def history(
    session: Session,
    project_id: int | None = SYSTEM_SCOPE,
    counters: Sequence[str] | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    resolution: timedelta | float | None = None,
    clock: Clock | None = None,
) -> HistorySeries:
    """
    Resample a scope's counters into {counter: [(timestamp, value), ...]}.

    - start defaults to the scope's first version and is clamped to it.
    - end defaults to now and is clamped to it.
    - resolution (timedelta or seconds) defaults to resolution_for(start, end).
    - counters defaults to every counter.
    """
    clock = clock or get_clock()
    if project_id is not None:
        require_project(session, project_id)
    requested = _resolve_counters(counters)

    first = first_version_time(session, project_id)
    now = clock.now()
    start = first if start is None or as_utc(start) < first else as_utc(start)
    end = now if end is None or as_utc(end) > now else as_utc(end)
    if end < start:
        raise HistoryRangeError(
            f"end ({end.isoformat()}) must not be before start ({start.isoformat()})"
        )
    step_width = _resolve_resolution(resolution, start, end)
    if (end - start) / step_width + 1 > MAX_HISTORY_POINTS:
        raise HistoryRangeError(
            f"At most {MAX_HISTORY_POINTS} points per series; use a coarser resolution."
        )

    results: HistorySeries = {name: [] for name in requested}
    for step in iter_timesteps(start, end, step_width):
        values = value_at(session, project_id, step)
        for name in requested:
            results[name].append((step, values[name]))

    logger.debug(
        "History resampled: project_id=%s, start=%s, end=%s, resolution_sec=%s, points=%s",
        project_id,
        start.isoformat(),
        end.isoformat(),
        int(step_width.total_seconds()),
        len(results[requested[0]]) if requested else 0,
    )
    return results


def history_range(
    session: Session,
    project_id: int | None = SYSTEM_SCOPE,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Available history for the scope: first version to now, with its default resolution."""
    clock = clock or get_clock()
    if project_id is not None:
        require_project(session, project_id)
    start_date = first_version_time(session, project_id)
    end_date = max(clock.now(), start_date)
    return {
        "start_date": start_date,
        "end_date": end_date,
        "resolution": resolution_for(start_date, end_date),
    }
