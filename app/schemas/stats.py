"""Pydantic schemas for current stats, history series and burn histograms."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class StatCounters(BaseModel):
    """Aggregate counters for one scope at one point in time."""

    services: int = 0
    burns: int = 0
    total_findings: int = 0
    open_findings: int = 0
    hidden_findings: int = 0
    published_findings: int = 0
    filtered_findings: int = 0
    files: int = 0
    lines: int = 0


class HistoryResponse(BaseModel):
    """Per-counter time series; each point is [timestamp, value]."""

    project_id: int | None = None
    series: dict[str, list[tuple[datetime, int]]] = Field(default_factory=dict)


class HistoryRangeResponse(BaseModel):
    """Available history for a scope and the default resolution for it."""

    start_date: datetime
    end_date: datetime
    resolution: int = Field(..., gt=0, description="Default bucket width in seconds.")


class BurnHistoryResponse(BaseModel):
    """Daily scan counts; each point is [date, count]."""

    project_id: int | None = None
    results: list[tuple[date, int]] = Field(default_factory=list)
