"""Rize MCP Server: productivity tracking data from Rize.io for Claude.

Provides 8 tools over the Rize GraphQL API: user, projects, daily metrics,
focus sessions, analytics reports, a single-day summary and a health check.

Usage:
    python -m rize_mcp          # stdio transport (default)
    uv run python -m rize_mcp   # via uv
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

import httpx
from fastmcp import FastMCP, Context

from rize_mcp import __version__
from rize_mcp.cache import TTLCache
from rize_mcp.client import RizeClient, RizeAPIError
from rize_mcp.config import load_config
from rize_mcp.formatting import (
    format_analytics_md,
    format_focus_sessions_md,
    format_health_md,
    format_json,
    format_productivity_metrics_md,
    format_productivity_summary_md,
    format_project_md,
    format_projects_md,
    format_user_md,
    truncate_response,
)
from rize_mcp.metrics import filter_sessions_by_duration, session_breakdown
from rize_mcp.models import (
    CreateProjectInput,
    GetAnalyticsReportInput,
    GetCurrentUserInput,
    GetFocusSessionsInput,
    GetProductivityMetricsInput,
    GetProductivitySummaryInput,
    HealthCheckInput,
    ListProjectsInput,
    ResponseFormat,
)
from rize_mcp.service import RizeService

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: one client and one cache per process
# ---------------------------------------------------------------------------

@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Create the Rize client and cache at startup, close on shutdown."""
    config = load_config()
    client = RizeClient(config.api_key, rate_limit=config.rate_limiting)
    cache = TTLCache(max_size=config.cache.max_size, ttl_ms=config.cache.ttl_ms)

    limits = config.rate_limiting
    if limits.enabled:
        logger.info(
            f"Rate limiting configured ({limits.max_requests} requests / "
            f"{limits.window_ms}ms) but not enforced"
        )

    try:
        yield {"rize": RizeService(client, cache)}
    finally:
        await client.close()


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "rize_mcp",
    instructions=(
        "Rize.io productivity tracking MCP. Tools are prefixed with 'rize_' "
        "and support both Markdown and JSON response formats. Dates are "
        "YYYY-MM-DD. Use rize_get_productivity_metrics for daily focus data, "
        "rize_get_analytics_report for day/week/month rollups, and "
        "rize_health_check to verify the API key. Read tools return an empty "
        "result both when there is no data and when Rize could not be reached."
    ),
    lifespan=app_lifespan,
)


# ---------------------------------------------------------------------------
# Error handler
# ---------------------------------------------------------------------------

def _handle_error(e: Exception) -> str:
    """Convert exceptions to LLM-friendly error messages."""
    if isinstance(e, RizeAPIError):
        if e.status_code == 401:
            return (
                "Error: Authentication failed. Your Rize API key may be "
                "expired or invalid. Create a new key in Rize.io settings."
            )
        if e.status_code == 403:
            return "Error: Permission denied by the Rize API."
        if e.status_code == 404:
            return "Error: Resource not found. Check that the IDs are correct."
        if e.status_code == 429:
            return "Error: Rate limit exceeded. Wait a moment before retrying."
        return f"Error: Rize API returned status {e.status_code}: {e.detail}"
    if isinstance(e, httpx.HTTPError):
        return f"Error: Could not reach the Rize API — {e}"
    if isinstance(e, ValueError):
        return f"Error: Invalid input — {e}"
    return f"Error: {type(e).__name__} — {e}"


def _get_service(ctx) -> RizeService:
    """Extract the Rize service from request context."""
    return ctx.request_context.lifespan_context["rize"]


# ===================================================================
# USER & PROJECT TOOLS
# ===================================================================


@mcp.tool(
    name="rize_get_current_user",
    annotations={
        "title": "Get Current Rize User",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def rize_get_current_user(params: GetCurrentUserInput, ctx: Context) -> str:
    """Get the Rize.io account the API key belongs to.

    Args:
        params: Contains response_format ('markdown' or 'json').

    Returns:
        The user's email and name.
    """
    try:
        user = await _get_service(ctx).get_current_user()
        if params.response_format == ResponseFormat.JSON:
            return format_json(user)
        return format_user_md(user)
    except Exception as e:
        logger.error(f"Failed to get current user: {e}")
        return _handle_error(e)


@mcp.tool(
    name="rize_list_projects",
    annotations={
        "title": "List Rize Projects",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def rize_list_projects(params: ListProjectsInput, ctx: Context) -> str:
    """List Rize projects, one page at a time.

    Args:
        params: Contains limit (1-100), optional cursor, and response_format.

    Returns:
        Project names and IDs, plus the cursor for the next page when more exist.

    Examples:
        - "Show my Rize projects" -> call with default params
        - "Next page" -> cursor=<cursor from the previous call>
    """
    try:
        page = await _get_service(ctx).list_projects(params.limit, params.cursor)
        if params.response_format == ResponseFormat.JSON:
            return truncate_response(format_json(page))
        return truncate_response(format_projects_md(page))
    except Exception as e:
        logger.error(f"Failed to list projects (limit={params.limit}, cursor={params.cursor}): {e}")
        return _handle_error(e)


@mcp.tool(
    name="rize_create_project",
    annotations={
        "title": "Create Rize Project",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def rize_create_project(params: CreateProjectInput, ctx: Context) -> str:
    """Create a new Rize project.

    Args:
        params: Contains name (required) and optional description.

    Returns:
        The created project's details including its new ID.

    Examples:
        - "Create a Rize project called Thesis" -> name="Thesis"
    """
    try:
        project = await _get_service(ctx).create_project(params.name, params.description)
        return f"Project created successfully.\n\n{format_project_md(project)}"
    except Exception as e:
        logger.error(f"Failed to create project '{params.name}': {e}")
        return _handle_error(e)


# ===================================================================
# PRODUCTIVITY TOOLS
# ===================================================================


@mcp.tool(
    name="rize_get_productivity_metrics",
    annotations={
        "title": "Productivity Metrics",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def rize_get_productivity_metrics(params: GetProductivityMetricsInput, ctx: Context) -> str:
    """Get daily productivity metrics for a date range.

    Each day has focus time, a 0-100 productivity score (focus share of
    tracked time), break and meeting time, and the top category.

    Args:
        params: Contains start_date, end_date, category and response_format.

    Returns:
        A summary plus a per-day breakdown.

    Examples:
        - "How focused was I last week?" -> start_date/end_date for that week
    """
    try:
        metrics = await _get_service(ctx).get_productivity_metrics(params.start_date, params.end_date)
        if params.response_format == ResponseFormat.JSON:
            return truncate_response(format_json({
                "count": len(metrics),
                "metrics": [m.model_dump(mode="json") for m in metrics],
            }))
        return truncate_response(format_productivity_metrics_md(metrics))
    except Exception as e:
        logger.error(f"Failed to get productivity metrics ({params.start_date}..{params.end_date}): {e}")
        return _handle_error(e)


@mcp.tool(
    name="rize_get_focus_sessions",
    annotations={
        "title": "Focus Sessions",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def rize_get_focus_sessions(params: GetFocusSessionsInput, ctx: Context) -> str:
    """List focus sessions in a date range, optionally only the long ones.

    Rize does not report category, app or score per session; those show
    as 'Unknown' / 0.

    Args:
        params: Contains start_date, end_date, optional min_duration (minutes),
            project_id, category, and response_format.

    Returns:
        Session list with start/end times and durations.
    """
    try:
        sessions = await _get_service(ctx).get_focus_sessions(params.start_date, params.end_date)
        sessions = filter_sessions_by_duration(sessions, params.min_duration)
        if params.response_format == ResponseFormat.JSON:
            return truncate_response(format_json({
                "count": len(sessions),
                "sessions": [s.model_dump(mode="json") for s in sessions],
            }))
        return truncate_response(format_focus_sessions_md(sessions))
    except Exception as e:
        logger.error(f"Failed to get focus sessions ({params.start_date}..{params.end_date}): {e}")
        return _handle_error(e)


@mcp.tool(
    name="rize_get_analytics_report",
    annotations={
        "title": "Analytics Report",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def rize_get_analytics_report(params: GetAnalyticsReportInput, ctx: Context) -> str:
    """Get an analytics report for today, this week (from Sunday), or this month.

    Trends are total focus time, average productivity score, and the
    share of days with any focus time.
    """
    try:
        report = await _get_service(ctx).get_analytics(params.timeframe, params.include_insights)
        if params.response_format == ResponseFormat.JSON:
            return truncate_response(format_json(report))
        return truncate_response(format_analytics_md(report))
    except Exception as e:
        logger.error(f"Failed to get analytics report ({params.timeframe.value}): {e}")
        return _handle_error(e)


@mcp.tool(
    name="rize_get_productivity_summary",
    annotations={
        "title": "Daily Productivity Summary",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def rize_get_productivity_summary(params: GetProductivitySummaryInput, ctx: Context) -> str:
    """Summarize a single day: focus, score, breaks, meetings, top category.

    With include_breakdown, adds minutes per session category.
    """
    try:
        service = _get_service(ctx)
        metrics = await service.get_productivity_metrics(params.date, params.date)
        metric = metrics[0] if metrics else None
        breakdown: dict[str, int] = {}
        sessions = []
        if metric is not None and params.include_breakdown:
            sessions = await service.get_focus_sessions(params.date, params.date)
            breakdown = session_breakdown(sessions)

        if params.response_format == ResponseFormat.JSON:
            return truncate_response(format_json({
                "date": params.date,
                "metric": metric.model_dump(mode="json") if metric else None,
                "session_breakdown": breakdown,
                "sessions": [s.model_dump(mode="json") for s in sessions],
            }))
        return truncate_response(format_productivity_summary_md(params.date, metric, breakdown))
    except Exception as e:
        logger.error(f"Failed to get productivity summary ({params.date}): {e}")
        return _handle_error(e)


# ===================================================================
# HEALTH
# ===================================================================


@mcp.tool(
    name="rize_health_check",
    annotations={
        "title": "Rize MCP Health Check",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def rize_health_check(params: HealthCheckInput, ctx: Context) -> str:
    """Check that the server can reach Rize with the configured API key."""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await _get_service(ctx).get_current_user(use_cache=False)
        return format_health_md(True, timestamp, __version__)
    except Exception as e:
        logger.warning(f"Health check failed: {e}")
        return format_health_md(False, timestamp, __version__, error=str(e))
