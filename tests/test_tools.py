"""Integration-style tests for the MCP tools.

These mock the Rize client behind a real RizeService and TTLCache, and
check that the server tool functions fetch, reshape and format correctly.
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock


def _make_mock_ctx(**client_methods):
    """Build a mock FastMCP context holding a service with a stubbed client."""
    from rize_mcp.cache import TTLCache
    from rize_mcp.service import RizeService
    mock_client = MagicMock()
    for name, mock in client_methods.items():
        setattr(mock_client, name, mock)
    ctx = MagicMock()
    ctx.request_context.lifespan_context = {
        "rize": RizeService(mock_client, TTLCache(max_size=100, ttl_ms=60_000)),
    }
    return ctx


def _bucket(day, focus, tracked, categories=None):
    return {
        "date": day,
        "focusTime": focus,
        "trackedTime": tracked,
        "breakTime": 900,
        "meetingTime": 1800,
        "categories": categories or [],
    }


@pytest.mark.asyncio
async def test_productivity_metrics_empty_range():
    from rize_mcp.server import rize_get_productivity_metrics
    from rize_mcp.models import GetProductivityMetricsInput

    ctx = _make_mock_ctx(get_summaries=AsyncMock(return_value=[]))
    result = await rize_get_productivity_metrics.fn(
        GetProductivityMetricsInput(start_date="2025-09-01", end_date="2025-09-07"), ctx
    )
    assert result == "No productivity data available for the specified date range."


@pytest.mark.asyncio
async def test_productivity_metrics_remote_failure_looks_empty():
    from rize_mcp.server import rize_get_productivity_metrics
    from rize_mcp.models import GetProductivityMetricsInput

    ctx = _make_mock_ctx(get_summaries=AsyncMock(side_effect=RuntimeError("timeout")))
    result = await rize_get_productivity_metrics.fn(
        GetProductivityMetricsInput(start_date="2025-09-01", end_date="2025-09-07"), ctx
    )
    assert result == "No productivity data available for the specified date range."


@pytest.mark.asyncio
async def test_productivity_metrics_markdown():
    from rize_mcp.server import rize_get_productivity_metrics
    from rize_mcp.models import GetProductivityMetricsInput

    ctx = _make_mock_ctx(get_summaries=AsyncMock(return_value=[
        _bucket("2025-09-22", 6337, 7200, [
            {"category": {"name": "Code", "focus": True}, "timeSpent": 5400},
        ]),
    ]))
    result = await rize_get_productivity_metrics.fn(
        GetProductivityMetricsInput(start_date="2025-09-22", end_date="2025-09-22"), ctx
    )
    assert "2025-09-22" in result
    assert "1h 45m" in result
    assert "88/100" in result
    assert "Code" in result


@pytest.mark.asyncio
async def test_productivity_metrics_json():
    from rize_mcp.server import rize_get_productivity_metrics
    from rize_mcp.models import GetProductivityMetricsInput, ResponseFormat

    ctx = _make_mock_ctx(get_summaries=AsyncMock(return_value=[_bucket("2025-09-22", 6337, 7200)]))
    result = await rize_get_productivity_metrics.fn(
        GetProductivityMetricsInput(
            start_date="2025-09-22", end_date="2025-09-22", response_format=ResponseFormat.JSON
        ),
        ctx,
    )
    data = json.loads(result)
    assert data["count"] == 1
    metric = data["metrics"][0]
    assert metric["total_focus_time"] == 105
    assert metric["productivity_score"] == 88
    assert metric["distraction_time"] == 30
    assert metric["context_switches"] == 0
    assert metric["top_category"]["name"] == "Work"


@pytest.mark.asyncio
async def test_focus_sessions_min_duration_filter():
    from rize_mcp.server import rize_get_focus_sessions
    from rize_mcp.models import GetFocusSessionsInput

    ctx = _make_mock_ctx(get_sessions=AsyncMock(return_value=[
        {"id": "s1", "startTime": "2025-09-05 09:00:00 +0200", "endTime": "2025-09-05 09:10:00 +0200", "title": "Quick fix"},
        {"id": "s2", "startTime": "2025-09-05 10:00:00 +0200", "endTime": "2025-09-05 11:00:00 +0200", "title": "Deep work"},
    ]))
    result = await rize_get_focus_sessions.fn(
        GetFocusSessionsInput(start_date="2025-09-05", end_date="2025-09-05", min_duration=30), ctx
    )
    assert "Deep work" in result
    assert "Quick fix" not in result
    assert "2025-09-05 10:00:00" in result


@pytest.mark.asyncio
async def test_focus_sessions_empty():
    from rize_mcp.server import rize_get_focus_sessions
    from rize_mcp.models import GetFocusSessionsInput

    ctx = _make_mock_ctx(get_sessions=AsyncMock(return_value=[]))
    result = await rize_get_focus_sessions.fn(
        GetFocusSessionsInput(start_date="2025-09-05", end_date="2025-09-05"), ctx
    )
    assert result == "No focus sessions found for the specified criteria."


@pytest.mark.asyncio
async def test_analytics_report():
    from rize_mcp.server import rize_get_analytics_report
    from rize_mcp.models import GetAnalyticsReportInput

    ctx = _make_mock_ctx(get_summaries=AsyncMock(return_value=[_bucket("2025-09-22", 3600, 7200)]))
    result = await rize_get_analytics_report.fn(GetAnalyticsReportInput(timeframe="day"), ctx)
    assert "Analytics Report (day)" in result
    assert "1h 0m" in result
    assert "50.0/100" in result


@pytest.mark.asyncio
async def test_productivity_summary_with_breakdown():
    from rize_mcp.server import rize_get_productivity_summary
    from rize_mcp.models import GetProductivitySummaryInput

    ctx = _make_mock_ctx(
        get_summaries=AsyncMock(return_value=[_bucket("2025-09-05", 3600, 7200)]),
        get_sessions=AsyncMock(return_value=[
            {"id": "s1", "startTime": "2025-09-05T09:00:00Z", "endTime": "2025-09-05T09:50:00Z"},
        ]),
    )
    result = await rize_get_productivity_summary.fn(GetProductivitySummaryInput(date="2025-09-05"), ctx)
    assert "Productivity Summary for 2025-09-05" in result
    assert "Top Category**: Work" in result
    assert "Unknown: 50m" in result


@pytest.mark.asyncio
async def test_productivity_summary_no_data():
    from rize_mcp.server import rize_get_productivity_summary
    from rize_mcp.models import GetProductivitySummaryInput

    ctx = _make_mock_ctx(get_summaries=AsyncMock(return_value=[]), get_sessions=AsyncMock(return_value=[]))
    result = await rize_get_productivity_summary.fn(GetProductivitySummaryInput(date="2025-09-05"), ctx)
    assert result == "No productivity data available for 2025-09-05"


@pytest.mark.asyncio
async def test_current_user_error_is_surfaced():
    from rize_mcp.server import rize_get_current_user
    from rize_mcp.models import GetCurrentUserInput
    from rize_mcp.client import RizeAPIError

    ctx = _make_mock_ctx(get_current_user=AsyncMock(side_effect=RizeAPIError(401, "bad token")))
    result = await rize_get_current_user.fn(GetCurrentUserInput(), ctx)
    assert result.startswith("Error: Authentication failed")


@pytest.mark.asyncio
async def test_list_projects_with_cursor():
    from rize_mcp.server import rize_list_projects
    from rize_mcp.models import ListProjectsInput

    get_projects = AsyncMock(return_value={
        "edges": [{"node": {"id": "p1", "name": "Thesis"}}],
        "pageInfo": {"hasNextPage": True, "endCursor": "NEXT"},
    })
    ctx = _make_mock_ctx(get_projects=get_projects)
    result = await rize_list_projects.fn(ListProjectsInput(limit=1, cursor="START"), ctx)
    assert "Thesis" in result
    assert "NEXT" in result
    get_projects.assert_awaited_once_with(1, "START")


@pytest.mark.asyncio
async def test_create_project():
    from rize_mcp.server import rize_create_project
    from rize_mcp.models import CreateProjectInput

    ctx = _make_mock_ctx(create_project=AsyncMock(return_value={"id": "p9", "name": "Thesis"}))
    result = await rize_create_project.fn(CreateProjectInput(name="Thesis", description="Final year"), ctx)
    assert result.startswith("Project created successfully.")
    assert "`p9`" in result


@pytest.mark.asyncio
async def test_create_project_error_is_surfaced():
    from rize_mcp.server import rize_create_project
    from rize_mcp.models import CreateProjectInput
    from rize_mcp.client import RizeAPIError

    ctx = _make_mock_ctx(create_project=AsyncMock(side_effect=RizeAPIError(500, "server exploded")))
    result = await rize_create_project.fn(CreateProjectInput(name="Thesis"), ctx)
    assert "server exploded" in result


@pytest.mark.asyncio
async def test_health_check_healthy_bypasses_cache():
    from rize_mcp.server import rize_health_check
    from rize_mcp.models import HealthCheckInput

    get_current_user = AsyncMock(return_value={"email": "me@example.com"})
    ctx = _make_mock_ctx(get_current_user=get_current_user)
    first = await rize_health_check.fn(HealthCheckInput(), ctx)
    await rize_health_check.fn(HealthCheckInput(), ctx)
    assert "Status**: Healthy" in first
    assert get_current_user.await_count == 2


@pytest.mark.asyncio
async def test_health_check_unhealthy():
    from rize_mcp.server import rize_health_check
    from rize_mcp.models import HealthCheckInput

    ctx = _make_mock_ctx(get_current_user=AsyncMock(side_effect=RuntimeError("connection refused")))
    result = await rize_health_check.fn(HealthCheckInput(), ctx)
    assert "Status**: Unhealthy" in result
    assert "connection refused" in result


@pytest.mark.asyncio
async def test_health_check_null_user_is_unhealthy():
    from rize_mcp.server import rize_health_check
    from rize_mcp.models import HealthCheckInput

    ctx = _make_mock_ctx(get_current_user=AsyncMock(return_value={}))
    result = await rize_health_check.fn(HealthCheckInput(), ctx)
    assert "Status**: Unhealthy" in result
    assert "no current user" in result


@pytest.mark.asyncio
async def test_current_user_null_payload_is_surfaced():
    from rize_mcp.server import rize_get_current_user
    from rize_mcp.models import GetCurrentUserInput

    ctx = _make_mock_ctx(get_current_user=AsyncMock(return_value={}))
    result = await rize_get_current_user.fn(GetCurrentUserInput(), ctx)
    assert result.startswith("Error: Authentication failed")
