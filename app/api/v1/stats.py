"""Stats endpoints: current counters, resampled history and daily burn counts."""

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.core.database import get_db
from app.core.errors import HistoryRangeError, InvalidCounterError, NotFoundError
from app.schemas.stats import (
    BurnHistoryResponse,
    HistoryRangeResponse,
    HistoryResponse,
    StatCounters,
)
from app.services.burn_history import burn_history
from app.services.history import history, history_range
from app.services.stat_snapshots import SYSTEM_SCOPE, current
from app.services.stats_cache import (
    StatsCache,
    get_stats_cache,
    publish_system_stats,
    read_system_stats,
)

router = APIRouter()


def _current_counters(db: Session, project_id: int | None, clock: Clock) -> StatCounters:
    try:
        counters = current(db, project_id, clock)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    # current() writes the first version of a scope with no history yet.
    db.commit()
    return StatCounters(**counters)


@router.get("", response_model=StatCounters)
def get_stats(
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    cache: Annotated[StatsCache | None, Depends(get_stats_cache)],
) -> StatCounters:
    """Current system-wide counters, served from the stats cache while it is current."""
    cached = read_system_stats(db, cache)
    if cached is not None:
        return StatCounters(**cached)
    counters = _current_counters(db, SYSTEM_SCOPE, clock)
    publish_system_stats(db, cache, clock)
    return counters


@router.get("/projects/{project_id}", response_model=StatCounters)
def get_project_stats(
    project_id: int,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> StatCounters:
    return _current_counters(db, project_id, clock)


@router.get("/history", response_model=HistoryResponse)
def get_history(
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    project_id: int | None = None,
    counters: Annotated[list[str] | None, Query()] = None,
    start: datetime | None = None,
    end: datetime | None = None,
    resolution: Annotated[int | None, Query(gt=0, description="Bucket width in seconds.")] = None,
) -> HistoryResponse:
    """
    Counter values over time for the system (no project_id) or one project.

    start/end default to the whole recorded history; resolution defaults to a width
    chosen from the span (1 hour up to 1 week).
    """
    try:
        series = history(
            db,
            project_id=project_id,
            counters=counters,
            start=start,
            end=end,
            resolution=resolution,
            clock=clock,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except (HistoryRangeError, InvalidCounterError) as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    return HistoryResponse(project_id=project_id, series=series)


@router.get("/history/range", response_model=HistoryRangeResponse)
def get_history_range(
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    project_id: int | None = None,
) -> HistoryRangeResponse:
    try:
        result = history_range(db, project_id, clock)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except HistoryRangeError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    return HistoryRangeResponse(
        start_date=result["start_date"],
        end_date=result["end_date"],
        resolution=int(result["resolution"].total_seconds()),
    )


@router.get("/burns", response_model=BurnHistoryResponse)
def get_burn_history(
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    project_id: int | None = None,
    start: date | None = None,
    end: date | None = None,
) -> BurnHistoryResponse:
    """Scans per calendar day, zero days included."""
    try:
        results = burn_history(db, project_id, start=start, end=end, clock=clock)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except HistoryRangeError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    return BurnHistoryResponse(project_id=project_id, results=results)
