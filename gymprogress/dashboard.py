"""
GymProgress Analytics — Dashboard Summary

Single entry point that flattens the history once and runs every
computation for one `now`, so all screens read the same numbers.
"""
import logging

from gymprogress.analytics import (
    activity_calendar,
    current_streak,
    daily_volume_chart,
    detect_prs,
    goal_dashboard,
    goal_settings,
    month_window,
    muscle_distribution,
    prs_in_window,
    recent_prs,
    streak_badge,
    volume_trend,
    week_window,
    weekly_session_target,
)
from gymprogress.history_client import as_frames
from gymprogress.readiness import acwr, current_wellness, readiness, training_suggestion

logger = logging.getLogger("gymprogress.dashboard")


def dashboard_summary(sessions, now, wellness: dict = None, goals: dict = None, week_offset: int = 0) -> dict:
    """
    Full dashboard metrics for the week at `week_offset` from `now`.

    Readiness is only reported when `wellness` was logged today; a stale
    entry yields None.
    """
    frames = as_frames(sessions)
    logger.debug("Dashboard summary over %d sessions", len(frames.sessions))

    settings = goal_settings(goals)
    week_start, week_end = week_window(now, week_offset)
    month_start, month_end = month_window(now)
    sdf = frames.sessions
    in_week = sdf["date"].notna() & (sdf["date"] >= week_start) & (sdf["date"] < week_end)

    prs = detect_prs(frames)
    streak = current_streak(frames, now)
    trend = volume_trend(frames, now, week_offset)
    workload = acwr(frames, now)
    today_wellness = current_wellness(wellness, now)

    return {
        "week_start": week_start,
        "week_end": week_end,
        "total_volume": trend["total_volume"],
        "prev_week_volume": trend["prev_volume"],
        "volume_trend": trend,
        "sessions_count": int(in_week.sum()),
        "weekly_session_target": weekly_session_target(settings),
        "muscle_distribution": muscle_distribution(frames, week_start, week_end),
        "streak": streak,
        "streak_badge": streak_badge(streak),
        "recent_prs": recent_prs(prs),
        "monthly_pr_count": len(prs_in_window(prs, month_start, month_end)),
        "acwr": workload,
        "training_suggestion": training_suggestion(workload["ratio"]),
        "readiness": readiness(today_wellness) if today_wellness is not None else None,
        "goals": goal_dashboard(frames, settings, now, week_offset),
        "week_activity": activity_calendar(frames, week_start, 7, now),
        "daily_volume": daily_volume_chart(frames, now),
    }
