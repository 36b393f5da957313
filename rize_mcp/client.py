"""Async Rize.io GraphQL client using httpx.

Wraps the Rize API (https://api.rize.io/api/v1/graphql). Designed to be used
as a lifespan-managed singleton: one httpx.AsyncClient is created at server
start and reused for all requests.

Responses are returned as raw dicts; reshaping lives in rize_mcp.metrics.
"""

from __future__ import annotations

import httpx

from rize_mcp import __version__
from rize_mcp.config import RateLimitConfig

API_URL = "https://api.rize.io/api/v1/graphql"
REQUEST_TIMEOUT = 30.0


class RizeAPIError(Exception):
    """Raised when the Rize API returns an HTTP or GraphQL error."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Rize API error {status_code}: {detail}")


# ---------------------------------------------------------------------------
# GraphQL documents
# ---------------------------------------------------------------------------

CURRENT_USER_QUERY = """
query CurrentUser {
  currentUser {
    email
    name
  }
}
"""

PROJECTS_QUERY = """
query GetProjects($first: Int, $after: String) {
  projects(first: $first, after: $after) {
    edges {
      node {
        id
        name
        color
        createdAt
        updatedAt
      }
      cursor
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

CREATE_PROJECT_MUTATION = """
mutation CreateProject($input: CreateProjectInput!) {
  createProject(input: $input) {
    project {
      id
      name
      description
      color
      isArchived
      createdAt
      updatedAt
    }
  }
}
"""

SUMMARIES_QUERY = """
query GetSummaries($startDate: ISO8601Date!, $endDate: ISO8601Date!, $bucketSize: String!) {
  summaries(startDate: $startDate, endDate: $endDate, bucketSize: $bucketSize, includeCategories: true) {
    buckets {
      date
      focusTime
      breakTime
      meetingTime
      trackedTime
      categories {
        category {
          name
          idle
          focus
          work
        }
        timeSpent
      }
    }
    focusTime
    breakTime
    meetingTime
    trackedTime
    workHours
  }
}
"""

SESSIONS_QUERY = """
query GetSessions($startTime: ISO8601DateTime!, $endTime: ISO8601DateTime!) {
  sessions(startTime: $startTime, endTime: $endTime, statuses: ["active"]) {
    id
    startTime
    endTime
    title
  }
}
"""


class RizeClient:
    """Async wrapper around the Rize GraphQL API.

    Usage with lifespan:
        client = RizeClient(api_key)
        user = await client.get_current_user()
        await client.close()
    """

    def __init__(
        self,
        api_key: str,
        rate_limit: RateLimitConfig | None = None,
    ) -> None:
        if not api_key:
            raise ValueError(
                "RIZE_API_KEY is required. "
                "Set it in your .env file or pass it directly."
            )
        self._api_key = api_key
        self.rate_limit = rate_limit or RateLimitConfig()
        self._http = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "User-Agent": f"RizeMCPServer/{__version__}",
            },
            timeout=REQUEST_TIMEOUT,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _throttle(self) -> None:
        """Rate-limit hook, called before every request.

        NOT ENFORCED: the limits in self.rate_limit are configuration only.
        Throttling belongs here when it is implemented.
        """
        return None

    async def _request(self, query: str, variables: dict | None = None) -> dict:
        """POST a GraphQL document and return its `data` object."""
        await self._throttle()
        response = await self._http.post(
            API_URL,
            json={"query": query, "variables": variables or {}},
        )
        if response.status_code >= 400:
            detail = response.text or f"HTTP {response.status_code}"
            raise RizeAPIError(response.status_code, detail)

        try:
            payload = response.json()
        except ValueError:
            raise RizeAPIError(response.status_code, "Invalid JSON response") from None
        if not isinstance(payload, dict):
            raise RizeAPIError(response.status_code, "Unexpected response body")
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise RizeAPIError(response.status_code, messages)
        data = payload.get("data")
        return data if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # User
    # ------------------------------------------------------------------

    async def get_current_user(self) -> dict:
        """currentUser { email name }"""
        data = await self._request(CURRENT_USER_QUERY)
        user = data.get("currentUser")
        return user if isinstance(user, dict) else {}

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def get_projects(self, limit: int = 50, cursor: str | None = None) -> dict:
        """projects(first, after) -- one page of the connection."""
        data = await self._request(PROJECTS_QUERY, {"first": limit, "after": cursor})
        projects = data.get("projects")
        return projects if isinstance(projects, dict) else {}

    async def create_project(self, name: str, description: str | None = None) -> dict:
        """createProject mutation -- returns the created project node."""
        args: dict = {"name": name}
        if description is not None:
            args["description"] = description
        data = await self._request(CREATE_PROJECT_MUTATION, {"input": {"args": args}})
        payload = data.get("createProject") or {}
        project = payload.get("project") if isinstance(payload, dict) else None
        return project if isinstance(project, dict) else {}

    # ------------------------------------------------------------------
    # Summaries & sessions (read-only)
    # ------------------------------------------------------------------

    async def get_summaries(self, start_date: str, end_date: str) -> list[dict]:
        """summaries(bucketSize: "day") -- raw per-day buckets, seconds-valued."""
        data = await self._request(
            SUMMARIES_QUERY,
            {"startDate": start_date, "endDate": end_date, "bucketSize": "day"},
        )
        summaries = data.get("summaries") or {}
        buckets = summaries.get("buckets") if isinstance(summaries, dict) else None
        return buckets if isinstance(buckets, list) else []

    async def get_sessions(self, start_time: str, end_time: str) -> list[dict]:
        """sessions(startTime, endTime) -- raw session records."""
        data = await self._request(
            SESSIONS_QUERY,
            {"startTime": start_time, "endTime": end_time},
        )
        sessions = data.get("sessions")
        return sessions if isinstance(sessions, list) else []
