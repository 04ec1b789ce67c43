"""Pydantic schemas for filter (suppression rule) requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Fields a rule can pin. Same names on Finding and Filter.
RULE_FIELDS: tuple[str, ...] = (
    "project_id",
    "severity",
    "fingerprint",
    "scanner",
    "description",
    "detail",
    "file",
    "line",
    "code",
)


class FilterCreate(BaseModel):
    """
    Fields for a new rule. Every field is optional; an omitted or blank field is a wildcard.

    Shape checks only; the service rejects a rule with no concrete field.
    """

    model_config = {"extra": "ignore"}

    project_id: int | None = Field(default=None, ge=1, description="Project to scope the rule to; omit for all projects.")
    severity: int | None = Field(default=None, ge=0, le=3, description="Severity to match (0 unknown, 1 low, 2 medium, 3 high).")
    fingerprint: str | None = Field(default=None, max_length=255, description="SHA256 fingerprint to match.")
    scanner: str | None = Field(default=None, max_length=255, description="Scanner name to match.")
    description: str | None = Field(default=None, description="Finding description to match.")
    detail: str | None = Field(default=None, description="Finding detail text to match.")
    file: str | None = Field(default=None, max_length=2048, description="File path to match.")
    line: str | None = Field(default=None, max_length=255, description="Line number or range to match.")
    code: str | None = Field(default=None, description="Code snippet to match.")

    @field_validator("project_id", "severity", mode="before")
    @classmethod
    def reject_bool(cls, v: object) -> object:
        # bool is an int subclass; lax mode would turn true into 1.
        if isinstance(v, bool):
            raise ValueError("must be an integer, not a boolean")
        return v

    @field_validator("line", mode="before")
    @classmethod
    def coerce_line_to_text(cls, v: object) -> object:
        # Line locators are stored as text; accept bare numbers.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("fingerprint", "scanner", "description", "detail", "file", "line", "code")
    @classmethod
    def blank_is_wildcard(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        return v

    def concrete_fields(self) -> dict[str, object]:
        """Fields that carry a value (everything but wildcards)."""
        return {name: getattr(self, name) for name in RULE_FIELDS if getattr(self, name) is not None}


class FilterRead(BaseModel):
    """A stored rule."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int | None = None
    severity: int | None = None
    fingerprint: str | None = None
    scanner: str | None = None
    description: str | None = None
    detail: str | None = None
    file: str | None = None
    line: str | None = None
    code: str | None = None
    created_at: datetime | None = None


class FilterWithCount(FilterRead):
    """A stored rule plus the number of findings it currently suppresses."""

    finding_count: int = Field(..., ge=0)


class FiltersResponse(BaseModel):
    """Response for the filter listing."""

    count: int = Field(..., ge=0)
    results: list[FilterWithCount] = Field(default_factory=list)


class FilterCreateResponse(BaseModel):
    """Response after creating a rule and applying it to open findings."""

    filter: FilterRead
    filtered: int = Field(..., ge=0, description="Open findings claimed by the new rule.")


class FilterDeleteResponse(BaseModel):
    """Response after deleting a rule."""

    result: str = "success"
    affected_project_ids: list[int] = Field(default_factory=list)


class FilterCountResponse(BaseModel):
    filter_id: int
    finding_count: int = Field(..., ge=0)
