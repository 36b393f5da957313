"""Response formatting helpers for Rize MCP.

Provides consistent Markdown and JSON formatting across all tools.
Markdown is the default, optimized for LLM readability with minimal tokens.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from rize_mcp.models import (
        AnalyticsReport,
        FocusSession,
        ProductivityMetric,
        ProjectPage,
        RizeProject,
        RizeUser,
    )

CHARACTER_LIMIT = 25_000

NO_METRICS_MESSAGE = "No productivity data available for the specified date range."
NO_SESSIONS_MESSAGE = "No focus sessions found for the specified criteria."
INVALID_DATE = "Invalid Date"
INVALID_DATETIME = "Invalid DateTime"

_OFFSET_RE = re.compile(r"([+-])(\d{2})(\d{2})$")


# ---------------------------------------------------------------------------
# Rize timestamps
# ---------------------------------------------------------------------------

def convert_rize_date_to_iso(value: Any) -> str:
    """Rewrite a Rize timestamp into ISO 8601.

    Rize sends "2025-09-05 04:00:00 +0200"; ISO wants
    "2025-09-05T04:00:00+02:00". Raises ValueError for non-string or
    empty input.
    """
    if not value or not isinstance(value, str):
        raise ValueError(f"Invalid date string: {value!r}")
    iso = value.replace(" ", "T", 1)
    iso = iso.replace(" ", "")
    return _OFFSET_RE.sub(r"\1\2:\3", iso)


def parse_rize_datetime(value: Any) -> datetime:
    """Parse a Rize (or ISO) timestamp. Raises ValueError if malformed."""
    iso = convert_rize_date_to_iso(value)
    if iso.endswith("Z"):
        iso = iso[:-1] + "+00:00"
    return datetime.fromisoformat(iso)


def format_date(value: Any) -> str:
    """Render a Rize timestamp as YYYY-MM-DD, or 'Invalid Date'."""
    try:
        return parse_rize_datetime(value).strftime("%Y-%m-%d")
    except ValueError:
        return INVALID_DATE


def format_datetime(value: Any) -> str:
    """Render a Rize timestamp as YYYY-MM-DD HH:MM:SS, or 'Invalid DateTime'."""
    try:
        return parse_rize_datetime(value).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return INVALID_DATETIME


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def format_duration(minutes: int) -> str:
    """Render minutes as '2h 5m' or '45m'."""
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


# ---------------------------------------------------------------------------
# Markdown formatters
# ---------------------------------------------------------------------------

def format_user_md(user: RizeUser) -> str:
    name = f" ({user.name})" if user.name else ""
    return f"# Current User\n- **Email**: {user.email or '?'}{name}"


def format_project_md(project: RizeProject) -> str:
    """Format a single project as Markdown."""
    lines = [f"## {project.name}"]
    lines.append(f"- **ID**: `{project.id}`")
    if project.description:
        lines.append(f"- **Description**: {project.description[:200]}")
    if project.color:
        lines.append(f"- **Color**: {project.color}")
    if project.created_at:
        lines.append(f"- **Created**: {format_date(project.created_at)}")
    return "\n".join(lines)


def format_projects_md(page: ProjectPage) -> str:
    """Format one page of projects, with the cursor for the next page."""
    if not page.projects:
        return "No projects found."
    lines = [f"# Projects ({len(page.projects)})"]
    for p in page.projects:
        lines.append("")
        lines.append(format_project_md(p))
    if page.has_next_page:
        lines.append("")
        lines.append(f"More projects available. Use cursor: `{page.next_cursor}`")
    return "\n".join(lines)


def format_productivity_metrics_md(metrics: list[ProductivityMetric]) -> str:
    if not metrics:
        return NO_METRICS_MESSAGE
    total_focus = sum(m.total_focus_time for m in metrics)
    avg_score = sum(m.productivity_score for m in metrics) / len(metrics)
    total_sessions = sum(m.focus_sessions_count for m in metrics)

    lines = [f"# Productivity Metrics ({len(metrics)} days)"]
    lines.append(f"- **Total Focus Time**: {format_duration(total_focus)}")
    lines.append(f"- **Average Productivity Score**: {avg_score:.1f}/100")
    lines.append(f"- **Total Focus Sessions**: {total_sessions}")
    lines.append("")
    lines.append("## Daily Breakdown")
    for m in metrics:
        lines.append(
            f"- **{m.date}**: {format_duration(m.total_focus_time)} focus, "
            f"{m.productivity_score}/100 score, {m.focus_sessions_count} focus sessions, "
            f"top: {m.top_category.name} ({format_duration(m.top_category.time_spent)})"
        )
    return "\n".join(lines)


def format_focus_sessions_md(sessions: list[FocusSession]) -> str:
    if not sessions:
        return NO_SESSIONS_MESSAGE
    total = sum(s.duration for s in sessions)
    avg_score = sum(s.focus_score for s in sessions) / len(sessions)

    lines = [f"# Focus Sessions ({len(sessions)})"]
    lines.append(f"- **Total Duration**: {format_duration(total)}")
    lines.append(f"- **Average Focus Score**: {avg_score:.1f}/100")
    for s in sessions:
        end = format_datetime(s.end_time) if s.end_time else "Active"
        lines.append("")
        lines.append(f"## {s.title or 'Untitled session'}")
        lines.append(f"- **When**: {format_datetime(s.start_time)} - {end}")
        lines.append(f"- **Duration**: {format_duration(s.duration)}")
        lines.append(f"- **Score**: {s.focus_score}/100")
        lines.append(f"- **App**: {s.application}")
        lines.append(f"- **Category**: {s.category}")
    return "\n".join(lines)


INSIGHT_ICONS = {
    "high": "🔴",
    "medium": "🟡",
    "low": "🟢",
}


def format_analytics_md(report: AnalyticsReport) -> str:
    lines = [f"# Analytics Report ({report.timeframe.value})"]
    lines.append("")
    lines.append("## Trends")
    lines.append(f"- **Focus Time**: {format_duration(report.trends.focus_time)}")
    lines.append(f"- **Average Productivity Score**: {report.trends.productivity_score:.1f}/100")
    lines.append(f"- **Consistency**: {report.trends.consistency * 100:.1f}% of days with focus time")

    if report.insights:
        lines.append("")
        lines.append("## Key Insights")
        for insight in report.insights:
            icon = INSIGHT_ICONS.get(insight.priority.value, "")
            lines.append(f"- {icon} **{insight.title}**")
            if insight.description:
                lines.append(f"  {insight.description}")

    lines.append("")
    lines.append(format_productivity_metrics_md(report.metrics))
    return "\n".join(lines)


def format_productivity_summary_md(
    day: str,
    metric: ProductivityMetric | None,
    breakdown: dict[str, int] | None = None,
) -> str:
    if metric is None:
        return f"No productivity data available for {day}"
    lines = [f"# Productivity Summary for {day}"]
    lines.append(f"- **Focus Time**: {format_duration(metric.total_focus_time)}")
    lines.append(f"- **Productivity Score**: {metric.productivity_score}/100")
    lines.append(f"- **Focus Sessions**: {metric.focus_sessions_count}")
    lines.append(f"- **Context Switches**: {metric.context_switches}")
    lines.append(f"- **Break Time**: {format_duration(metric.break_time)}")
    lines.append(f"- **Distraction Time**: {format_duration(metric.distraction_time)}")
    lines.append(
        f"- **Top Category**: {metric.top_category.name} "
        f"({format_duration(metric.top_category.time_spent)})"
    )
    if breakdown:
        lines.append("")
        lines.append("## Session Breakdown")
        for category, minutes in breakdown.items():
            lines.append(f"- {category}: {format_duration(minutes)}")
    return "\n".join(lines)


def format_health_md(healthy: bool, timestamp: str, version: str, error: str | None = None) -> str:
    if healthy:
        return (
            "# Rize MCP Health Check\n"
            "- **Status**: Healthy\n"
            f"- **Timestamp**: {timestamp}\n"
            "- **API Connection**: OK\n"
            f"- **Version**: {version}"
        )
    return (
        "# Rize MCP Health Check\n"
        "- **Status**: Unhealthy\n"
        f"- **Timestamp**: {timestamp}\n"
        "- **API Connection**: Failed\n"
        f"- **Error**: {error or 'unknown'}"
    )


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

def format_json(data: Any) -> str:
    """Format data (pydantic models included) as indented JSON string."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list):
        data = [d.model_dump(mode="json") if isinstance(d, BaseModel) else d for d in data]
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


# ---------------------------------------------------------------------------
# Truncation
# ---------------------------------------------------------------------------

def truncate_response(response: str) -> str:
    """Truncate response if it exceeds CHARACTER_LIMIT."""
    if len(response) <= CHARACTER_LIMIT:
        return response
    truncated = response[:CHARACTER_LIMIT]
    return (
        truncated
        + "\n\n---\n"
        + f"**Response truncated** ({len(response):,} chars → {CHARACTER_LIMIT:,} chars). "
        + "Use a narrower date range or pagination to reduce results."
    )
