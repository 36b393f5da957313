"""Pydantic models for Rize MCP.

Tool inputs validate parameters before anything hits the API. Domain models
hold the reshaped Rize data that formatters and JSON responses render.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ResponseFormat(str, Enum):
    """Output format for tool responses."""
    MARKDOWN = "markdown"
    JSON = "json"


class Timeframe(str, Enum):
    """Analytics report window."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class CategoryFilter(str, Enum):
    """Category filter accepted by the metrics and session tools."""
    WORK = "work"
    PERSONAL = "personal"
    ALL = "all"


class InsightPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Shared model config
# ---------------------------------------------------------------------------

_STRICT_CONFIG = ConfigDict(
    str_strip_whitespace=True,
    validate_assignment=True,
    extra="forbid",
)

_FROZEN_CONFIG = ConfigDict(frozen=True)


def _validate_iso_date(v: str) -> str:
    try:
        date.fromisoformat(v)
    except ValueError:
        raise ValueError(
            f"Invalid date format. Use ISO 8601 format (YYYY-MM-DD), got: {v}"
        ) from None
    return v


# ---------------------------------------------------------------------------
# Tool inputs
# ---------------------------------------------------------------------------

class GetCurrentUserInput(BaseModel):
    """Input for fetching the authenticated Rize user."""
    model_config = _STRICT_CONFIG

    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' (human-readable) or 'json' (machine-readable)",
    )


class ListProjectsInput(BaseModel):
    """Input for listing projects one page at a time."""
    model_config = _STRICT_CONFIG

    limit: int = Field(
        default=50,
        description="Maximum number of projects to return (1-100)",
        ge=1,
        le=100,
    )
    cursor: Optional[str] = Field(
        default=None,
        description="Pagination cursor from a previous call's 'next cursor'",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' or 'json'",
    )


class CreateProjectInput(BaseModel):
    """Input for creating a new project."""
    model_config = _STRICT_CONFIG

    name: str = Field(
        ...,
        description="Project name (e.g., 'Client Website', 'Thesis')",
        min_length=1,
        max_length=100,
    )
    description: Optional[str] = Field(
        default=None,
        description="Optional project description",
    )


class _DateRangeInput(BaseModel):
    model_config = _STRICT_CONFIG

    start_date: str = Field(..., description="Start date (YYYY-MM-DD)")
    end_date: str = Field(..., description="End date (YYYY-MM-DD)")

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        return _validate_iso_date(v)

    @model_validator(mode="after")
    def validate_range(self):
        if date.fromisoformat(self.start_date) > date.fromisoformat(self.end_date):
            raise ValueError("End date must be after or equal to start date")
        return self


class GetProductivityMetricsInput(_DateRangeInput):
    """Input for daily productivity metrics over a date range."""

    category: CategoryFilter = Field(
        default=CategoryFilter.ALL,
        description="Category filter: 'work', 'personal', or 'all'",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' or 'json'",
    )


class GetFocusSessionsInput(_DateRangeInput):
    """Input for listing focus sessions over a date range."""

    project_id: Optional[str] = Field(default=None, description="Project ID filter")
    category: CategoryFilter = Field(
        default=CategoryFilter.ALL,
        description="Category filter: 'work', 'personal', or 'all'",
    )
    min_duration: Optional[int] = Field(
        default=None,
        description="Minimum session duration in minutes",
        ge=0,
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' or 'json'",
    )


class GetAnalyticsReportInput(BaseModel):
    """Input for an analytics report over a fixed timeframe."""
    model_config = _STRICT_CONFIG

    timeframe: Timeframe = Field(
        ...,
        description="Time frame for analytics: 'day', 'week', or 'month'",
    )
    include_insights: bool = Field(
        default=True,
        description="Include insights in the report",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' or 'json'",
    )


class GetProductivitySummaryInput(BaseModel):
    """Input for a single-day productivity summary."""
    model_config = _STRICT_CONFIG

    date: str = Field(..., description="Date for summary (YYYY-MM-DD)")
    include_breakdown: bool = Field(
        default=True,
        description="Include per-category session breakdown",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' or 'json'",
    )

    @field_validator("date")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        return _validate_iso_date(v)


class HealthCheckInput(BaseModel):
    """Input for the health check (no parameters)."""
    model_config = _STRICT_CONFIG


# ---------------------------------------------------------------------------
# Domain models
# ---------------------------------------------------------------------------

class RizeUser(BaseModel):
    model_config = _FROZEN_CONFIG

    email: str = ""
    name: Optional[str] = None


class RizeProject(BaseModel):
    model_config = _FROZEN_CONFIG

    id: str
    name: str = "Unnamed"
    description: Optional[str] = None
    color: Optional[str] = None
    is_archived: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProjectPage(BaseModel):
    """One page of the cursor-paginated project list."""
    model_config = _FROZEN_CONFIG

    projects: list[RizeProject] = Field(default_factory=list)
    has_next_page: bool = False
    next_cursor: Optional[str] = None


class TopCategory(BaseModel):
    """The category with the most tracked time in a bucket (minutes)."""
    model_config = _FROZEN_CONFIG

    name: str
    time_spent: int = 0
    focus: bool = False


class ProductivityMetric(BaseModel):
    """One calendar day of productivity data. Durations are minutes."""
    model_config = _FROZEN_CONFIG

    date: str
    total_focus_time: int = 0
    productivity_score: int = Field(default=0, ge=0, le=100)
    focus_sessions_count: int = 0
    top_category: TopCategory
    break_time: int = 0
    # Rize's meetingTime; the name is kept for consumers of this shape.
    distraction_time: int = 0
    context_switches: int = 0


class FocusSession(BaseModel):
    """A tracked session. Fields the API does not expose carry sentinels."""
    model_config = _FROZEN_CONFIG

    id: str
    user_id: str = ""
    project_id: Optional[str] = None
    start_time: str = ""
    end_time: Optional[str] = None
    duration: int = 0
    title: Optional[str] = None
    category: str = "Unknown"
    application: str = "Unknown"
    focus_score: int = 0
    is_active: bool = False


class Insight(BaseModel):
    model_config = _FROZEN_CONFIG

    id: str
    type: str = "observation"
    title: str
    description: str = ""
    priority: InsightPriority = InsightPriority.LOW
    category: str = ""
    timestamp: str = ""


class Trends(BaseModel):
    model_config = _FROZEN_CONFIG

    focus_time: int = 0
    productivity_score: float = 0.0
    consistency: float = 0.0


class AnalyticsReport(BaseModel):
    model_config = _FROZEN_CONFIG

    timeframe: Timeframe
    metrics: list[ProductivityMetric] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
    trends: Trends = Field(default_factory=Trends)
