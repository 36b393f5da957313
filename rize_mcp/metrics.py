"""Reshaping helpers for Rize summary buckets and sessions.

Pure functions (no I/O) that turn raw GraphQL payloads into the domain
models in rize_mcp.models. Rize reports durations in seconds; everything
built here is in whole minutes.
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, timedelta

from rize_mcp.formatting import parse_rize_datetime
from rize_mcp.models import (
    AnalyticsReport,
    FocusSession,
    ProductivityMetric,
    Timeframe,
    TopCategory,
    Trends,
)

PLACEHOLDER_CATEGORY = TopCategory(name="Work", time_spent=0, focus=False)


def seconds_to_minutes(seconds: int | float | None) -> int:
    """Floor-divide a seconds value into whole minutes. None counts as 0."""
    return int((seconds or 0) // 60)


def productivity_score(focus_seconds: int | float | None, tracked_seconds: int | float | None) -> int:
    """Focus share of tracked time as a 0-100 integer, rounded half up."""
    if not focus_seconds or not tracked_seconds or tracked_seconds <= 0:
        return 0
    score = math.floor(focus_seconds / tracked_seconds * 100 + 0.5)
    return max(0, min(100, score))


def pick_top_category(categories: list[dict]) -> dict | None:
    """Return the category entry with the most timeSpent.

    Ties go to the first entry in list order.
    """
    if not categories:
        return None
    return max(categories, key=lambda c: c.get("timeSpent") or 0)


def normalize_bucket(bucket: dict) -> ProductivityMetric:
    """Convert one daily summary bucket into a ProductivityMetric."""
    top_category = PLACEHOLDER_CATEGORY
    focus_sessions_count = 0

    top = pick_top_category(bucket.get("categories") or [])
    if top is not None:
        category = top.get("category") or {}
        time_spent = top.get("timeSpent") or 0
        is_focus = category.get("focus") is True
        top_category = TopCategory(
            name=category.get("name") or "Unknown",
            time_spent=seconds_to_minutes(time_spent),
            focus=is_focus,
        )
        # Not a real session count: the API has no per-day session tally,
        # so a day whose top category is a focus category counts as one.
        focus_sessions_count = 1 if is_focus and time_spent > 0 else 0

    return ProductivityMetric(
        date=str(bucket.get("date", "")),
        total_focus_time=seconds_to_minutes(bucket.get("focusTime")),
        productivity_score=productivity_score(bucket.get("focusTime"), bucket.get("trackedTime")),
        focus_sessions_count=focus_sessions_count,
        top_category=top_category,
        break_time=seconds_to_minutes(bucket.get("breakTime")),
        distraction_time=seconds_to_minutes(bucket.get("meetingTime")),
        context_switches=0,
    )


def normalize_buckets(buckets: list[dict]) -> list[ProductivityMetric]:
    return [normalize_bucket(b) for b in buckets]


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

def session_duration(start_time: str | None, end_time: str | None) -> int:
    """Whole minutes between two Rize timestamps; 0 if either is unusable."""
    if not start_time or not end_time:
        return 0
    try:
        start = parse_rize_datetime(start_time)
        end = parse_rize_datetime(end_time)
        delta = end - start
    except (ValueError, TypeError):
        return 0
    return max(0, int(delta.total_seconds() // 60))


def normalize_session(raw: dict) -> FocusSession:
    start_time = raw.get("startTime") or ""
    end_time = raw.get("endTime")
    return FocusSession(
        id=str(raw.get("id", "")),
        start_time=start_time,
        end_time=end_time,
        duration=session_duration(start_time, end_time),
        title=raw.get("title"),
    )


def normalize_sessions(raw_sessions: list[dict]) -> list[FocusSession]:
    return [normalize_session(s) for s in raw_sessions]


def filter_sessions_by_duration(sessions: list[FocusSession], min_duration: int | None) -> list[FocusSession]:
    """Keep sessions lasting at least min_duration minutes."""
    if not min_duration:
        return sessions
    return [s for s in sessions if s.duration >= min_duration]


def session_breakdown(sessions: list[FocusSession]) -> dict[str, int]:
    """Total minutes per session category, in first-seen order."""
    breakdown: dict[str, int] = {}
    for s in sessions:
        breakdown[s.category] = breakdown.get(s.category, 0) + s.duration
    return breakdown


# ---------------------------------------------------------------------------
# Date ranges
# ---------------------------------------------------------------------------

def timeframe_range(timeframe: Timeframe, today: date | None = None) -> tuple[str, str]:
    """Return (start, end) ISO dates covering the timeframe.

    day: today only. week: the most recent Sunday through today.
    month: the whole calendar month containing today.
    """
    today = today or date.today()
    if timeframe == Timeframe.DAY:
        start, end = today, today
    elif timeframe == Timeframe.WEEK:
        # date.weekday() is Monday=0; shift so Sunday starts the week
        start, end = today - timedelta(days=(today.weekday() + 1) % 7), today
    else:
        last_day = calendar.monthrange(today.year, today.month)[1]
        start, end = today.replace(day=1), today.replace(day=last_day)
    return start.isoformat(), end.isoformat()


def day_bounds(start_date: str, end_date: str) -> tuple[str, str]:
    """ISO datetimes from the start of start_date to the end of end_date (UTC).

    Dates are read as UTC days on purpose; timeframe_range uses the local
    date, so near midnight the two can name different days.
    """
    start = datetime.combine(date.fromisoformat(start_date), datetime.min.time())
    end = datetime.combine(date.fromisoformat(end_date), datetime.max.time())
    return start.isoformat() + "Z", end.isoformat() + "Z"


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

def build_trends(metrics: list[ProductivityMetric]) -> Trends:
    """Sum focus time, average the score, and measure the share of days with focus."""
    if not metrics:
        return Trends()
    focus_time = sum(m.total_focus_time for m in metrics)
    avg_score = sum(m.productivity_score for m in metrics) / len(metrics)
    focused_days = sum(1 for m in metrics if m.total_focus_time > 0)
    return Trends(
        focus_time=focus_time,
        productivity_score=avg_score,
        consistency=focused_days / len(metrics),
    )


def build_analytics(timeframe: Timeframe, metrics: list[ProductivityMetric]) -> AnalyticsReport:
    # Rize exposes no insights endpoint, so the list stays empty.
    return AnalyticsReport(
        timeframe=timeframe,
        metrics=metrics,
        insights=[],
        trends=build_trends(metrics),
    )


def empty_analytics(timeframe: Timeframe) -> AnalyticsReport:
    return AnalyticsReport(timeframe=timeframe)
