"""Filters endpoint: list, show, create and delete finding suppression rules."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.core.database import get_db
from app.core.errors import NotFoundError, RuleValidationError
from app.models import Filter
from app.schemas.filters import (
    FilterCountResponse,
    FilterCreate,
    FilterCreateResponse,
    FilterDeleteResponse,
    FilterRead,
    FiltersResponse,
    FilterWithCount,
)
from app.services.filter_matching import count_filtered, create_filter, delete_filter, get_filter
from app.services.stats_cache import StatsCache, get_stats_cache
from app.services.suppression_ledger import decorate_with_filtered_count

router = APIRouter()


@router.get("", response_model=FiltersResponse)
def list_filters(
    db: Annotated[Session, Depends(get_db)],
) -> FiltersResponse:
    """Return every rule with finding_count, the number of findings it currently suppresses."""
    rules = db.query(Filter).order_by(Filter.id).all()
    results = [FilterWithCount.model_validate(row) for row in decorate_with_filtered_count(db, rules)]
    return FiltersResponse(count=len(results), results=results)


@router.get("/{filter_id}", response_model=FilterRead)
def show_filter(
    filter_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> FilterRead:
    try:
        rule = get_filter(db, filter_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return FilterRead.model_validate(rule)


@router.get("/{filter_id}/count", response_model=FilterCountResponse)
def get_filter_count(
    filter_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> FilterCountResponse:
    try:
        count = count_filtered(db, filter_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return FilterCountResponse(filter_id=filter_id, finding_count=count)


@router.post("", response_model=FilterCreateResponse)
def post_filter(
    body: FilterCreate,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    cache: Annotated[StatsCache | None, Depends(get_stats_cache)],
) -> FilterCreateResponse:
    """
    Create a rule and suppress the open findings it matches.

    Every field is optional but at least one must be set; a rule with no field would
    match every finding and is refused with 409. An unknown project_id gives 404.
    """
    try:
        rule, claimed = create_filter(db, body, clock=clock, cache=cache)
    except RuleValidationError as e:
        raise HTTPException(status_code=409, detail=e.message) from e
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return FilterCreateResponse(filter=FilterRead.model_validate(rule), filtered=claimed)


@router.delete("/{filter_id}", response_model=FilterDeleteResponse)
def remove_filter(
    filter_id: int,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    cache: Annotated[StatsCache | None, Depends(get_stats_cache)],
) -> FilterDeleteResponse:
    """
    Delete a rule. Its findings are reopened and offered to the remaining rules,
    lowest id first.
    """
    try:
        touched = delete_filter(db, filter_id, clock=clock, cache=cache)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return FilterDeleteResponse(affected_project_ids=sorted(touched))
