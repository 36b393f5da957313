"""Cache-aware data access on top of RizeClient.

Read paths for summaries, sessions and analytics degrade to empty results
when the remote call fails. A caller cannot tell "no data for this range"
from "the fetch failed"; the WARNING log line is the only trace. User and
project calls let errors propagate.
"""

from __future__ import annotations

import logging

from rize_mcp.cache import TTLCache
from rize_mcp.client import RizeAPIError, RizeClient
from rize_mcp.metrics import (
    build_analytics,
    day_bounds,
    empty_analytics,
    normalize_buckets,
    normalize_sessions,
    timeframe_range,
)
from rize_mcp.models import (
    AnalyticsReport,
    FocusSession,
    ProductivityMetric,
    ProjectPage,
    RizeProject,
    RizeUser,
    Timeframe,
)

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "current-user"


def _project_from_node(node: dict) -> RizeProject:
    return RizeProject(
        id=str(node.get("id", "")),
        name=node.get("name") or "Unnamed",
        description=node.get("description"),
        color=node.get("color"),
        is_archived=node.get("isArchived"),
        created_at=node.get("createdAt"),
        updated_at=node.get("updatedAt"),
    )


class RizeService:
    """Fetch, reshape and cache Rize data for the MCP tools."""

    def __init__(self, client: RizeClient, cache: TTLCache) -> None:
        self.client = client
        self.cache = cache

    async def get_current_user(self, use_cache: bool = True) -> RizeUser:
        if use_cache:
            cached = self.cache.get(CURRENT_USER_KEY)
            if cached is not None:
                return cached
        raw = await self.client.get_current_user()
        if not raw.get("email"):
            # A revoked key can come back as currentUser: null with no errors
            raise RizeAPIError(401, "Rize returned no current user for this API key")
        user = RizeUser(email=raw["email"], name=raw.get("name"))
        self.cache.set(CURRENT_USER_KEY, user)
        return user

    async def list_projects(self, limit: int = 50, cursor: str | None = None) -> ProjectPage:
        raw = await self.client.get_projects(limit, cursor)
        edges = raw.get("edges") or []
        page_info = raw.get("pageInfo") or {}
        return ProjectPage(
            projects=[_project_from_node(e.get("node") or {}) for e in edges if e.get("node")],
            has_next_page=bool(page_info.get("hasNextPage")),
            next_cursor=page_info.get("endCursor"),
        )

    async def create_project(self, name: str, description: str | None = None) -> RizeProject:
        raw = await self.client.create_project(name, description)
        if not raw.get("id"):
            raise ValueError(f"Rize did not return the created project '{name}'")
        return _project_from_node(raw)

    async def _fetch_metrics(self, start_date: str, end_date: str) -> list[ProductivityMetric]:
        key = f"summaries:{start_date}:{end_date}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        buckets = await self.client.get_summaries(start_date, end_date)
        metrics = normalize_buckets(buckets)
        self.cache.set(key, metrics)
        return metrics

    async def get_productivity_metrics(self, start_date: str, end_date: str) -> list[ProductivityMetric]:
        """Daily metrics for the range; [] when the fetch fails."""
        try:
            return await self._fetch_metrics(start_date, end_date)
        except Exception as e:
            logger.warning(f"Summaries fetch failed for {start_date}..{end_date}, returning no data: {e}")
            return []

    async def get_focus_sessions(self, start_date: str, end_date: str) -> list[FocusSession]:
        """Sessions between the start of start_date and the end of end_date; [] on failure."""
        key = f"sessions:{start_date}:{end_date}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        try:
            start_time, end_time = day_bounds(start_date, end_date)
            raw = await self.client.get_sessions(start_time, end_time)
            sessions = normalize_sessions(raw)
        except Exception as e:
            logger.warning(f"Sessions fetch failed for {start_date}..{end_date}, returning no data: {e}")
            return []
        self.cache.set(key, sessions)
        return sessions

    async def get_analytics(self, timeframe: Timeframe, include_insights: bool = True) -> AnalyticsReport:
        """Report for the current day/week/month; an empty report on failure."""
        key = f"analytics:{timeframe.value}:{include_insights}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        start_date, end_date = timeframe_range(timeframe)
        try:
            metrics = await self._fetch_metrics(start_date, end_date)
        except Exception as e:
            logger.warning(f"Analytics fetch failed for {timeframe.value}, returning empty report: {e}")
            return empty_analytics(timeframe)
        report = build_analytics(timeframe, metrics)
        self.cache.set(key, report)
        return report
