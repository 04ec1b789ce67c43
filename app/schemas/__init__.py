"""Pydantic request/response schemas."""

from app.schemas.filters import (
    RULE_FIELDS,
    FilterCountResponse,
    FilterCreate,
    FilterCreateResponse,
    FilterDeleteResponse,
    FilterRead,
    FiltersResponse,
    FilterWithCount,
)
from app.schemas.health import HealthResponse
from app.schemas.stats import (
    BurnHistoryResponse,
    HistoryRangeResponse,
    HistoryResponse,
    StatCounters,
)

__all__ = [
    "RULE_FIELDS",
    "BurnHistoryResponse",
    "FilterCountResponse",
    "FilterCreate",
    "FilterCreateResponse",
    "FilterDeleteResponse",
    "FilterRead",
    "FilterWithCount",
    "FiltersResponse",
    "HealthResponse",
    "HistoryRangeResponse",
    "HistoryResponse",
    "StatCounters",
]
