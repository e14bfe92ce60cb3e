"""
GymProgress Analytics — Pandas Analytics Engine

Volume, muscle distribution, streak, PR and goal computations over the
flattened workout history. Every function accepts either the raw session
list or a `HistoryFrames` pair, takes `now` explicitly where a window depends
on it, and returns plain dicts/lists.
"""
import math

import numpy as np
import pandas as pd

from gymprogress.config import (
    WEEK_START_DAY,
    WEEKDAY_SHORT,
    UNLABELED_MUSCLE_GROUP,
    GOAL_TYPES,
    GOAL_LABELS,
    GOAL_TARGET_KEYS,
    DEFAULT_GOAL_SETTINGS,
    DEFAULT_WEEKLY_SESSIONS,
    STREAK_BADGES,
    VOLUME_TREND_BANDS,
    VOLUME_TREND_FLOOR,
    RECENT_PR_COUNT,
)
from gymprogress.history_client import (
    as_frames,
    exercise_fields,
    history_frames,
    to_number,
    to_timestamp,
)

VOLUME_MODES = ("sets", "stored")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero for positives (JS Math.round)."""
    return int(math.floor(value + 0.5))


def _in_window(dates: pd.Series, window_start=None, window_end=None) -> pd.Series:
    """Half-open [start, end) mask. A missing bound is open; NaT dates never match a bound."""
    mask = pd.Series(True, index=dates.index)
    if window_start is not None:
        mask &= dates >= to_timestamp(window_start)
    if window_end is not None:
        mask &= dates < to_timestamp(window_end)
    return mask


def _today(now) -> pd.Timestamp:
    return to_timestamp(now).normalize()


# ═══════════════════════════════════════════════════════════════════════
# 1. VOLUME — totals, buckets, weekly trend
# ═══════════════════════════════════════════════════════════════════════

def _check_mode(mode: str):
    if mode not in VOLUME_MODES:
        raise ValueError(f"Unknown volume mode: {mode!r} (expected one of {VOLUME_MODES})")


def _session_volumes(sessions_df: pd.DataFrame, mode: str = "sets") -> pd.Series:
    """
    Volume per session row.

    "sets" recomputes from completed sets, falling back to the stored total
    when the session carries no set records. "stored" trusts the stored total.
    """
    _check_mode(mode)
    if mode == "stored":
        return sessions_df["stored_volume"]
    return sessions_df["set_volume"].where(sessions_df["has_sets"], sessions_df["stored_volume"])


def total_volume(sessions, window_start=None, window_end=None, mode: str = "sets") -> float:
    """Total volume of the sessions whose date falls in [window_start, window_end)."""
    _check_mode(mode)
    frames = as_frames(sessions)
    sdf = frames.sessions
    if sdf.empty:
        return 0.0
    volumes = _session_volumes(sdf, mode)
    return float(volumes[_in_window(sdf["date"], window_start, window_end)].sum())


def session_volume(session: dict, mode: str = "sets") -> float:
    return total_volume([session], mode=mode)


def bucketed_volume(sessions, window_start, window_end, step_days: int = 1, mode: str = "sets") -> list[dict]:
    """
    Split [window_start, window_end) into contiguous buckets of `step_days`
    and total the volume of each. Empty buckets are kept with volume 0.
    """
    _check_mode(mode)
    if step_days <= 0:
        raise ValueError("step_days must be positive")
    start = to_timestamp(window_start)
    end = to_timestamp(window_end)
    if pd.isna(start) or pd.isna(end) or end <= start:
        return []

    step = pd.Timedelta(days=step_days)
    starts = pd.date_range(start=start, end=end, freq=step, inclusive="left")

    sdf = as_frames(sessions).sessions
    in_window = _in_window(sdf["date"], start, end)
    totals = pd.Series(0.0, index=range(len(starts)))
    if in_window.any():
        volumes = _session_volumes(sdf, mode)[in_window]
        idx = ((sdf.loc[in_window, "date"] - start) // step).astype(int)
        totals = totals.add(volumes.groupby(idx).sum(), fill_value=0.0)

    return [
        {"period_start": period_start, "volume": float(totals.iloc[i])}
        for i, period_start in enumerate(starts)
    ]


def week_window(now, offset: int = 0) -> tuple:
    """[start, end) of the calendar week holding `now`, shifted by `offset` weeks."""
    today = _today(now)
    start = today - pd.Timedelta(days=(today.dayofweek - WEEK_START_DAY) % 7)
    start = start + pd.Timedelta(weeks=offset)
    return start, start + pd.Timedelta(days=7)


def month_window(now) -> tuple:
    """[start, end) of the calendar month holding `now`."""
    start = _today(now).replace(day=1)
    return start, start + pd.offsets.MonthBegin(1)


def daily_volume_chart(sessions, now, days: int = 7, mode: str = "sets") -> list[dict]:
    """Volume per calendar day for the last `days` days, today included, oldest first."""
    today = _today(now)
    start = today - pd.Timedelta(days=days - 1)
    buckets = bucketed_volume(sessions, start, today + pd.Timedelta(days=1), step_days=1, mode=mode)
    return [
        {
            "date": b["period_start"],
            "label": WEEKDAY_SHORT[b["period_start"].dayofweek],
            "volume": b["volume"],
            "is_real": b["volume"] > 0,
        }
        for b in buckets
    ]


def weekly_volume_series(sessions, now, weeks: int = 6, mode: str = "sets") -> list[dict]:
    """Volume of the last `weeks` calendar weeks, current week last."""
    first_start, _ = week_window(now, offset=-(weeks - 1))
    _, last_end = week_window(now)
    buckets = bucketed_volume(sessions, first_start, last_end, step_days=7, mode=mode)
    return [
        {
            "week_start": b["period_start"],
            "label": f"{b['period_start'].day}/{b['period_start'].month}",
            "volume": b["volume"],
        }
        for b in buckets
    ]


def volume_trend(sessions, now, offset: int = 0, mode: str = "sets") -> dict:
    """Week-over-week volume change with the coaching insight band."""
    frames = as_frames(sessions)
    start, end = week_window(now, offset)
    prev_start, prev_end = week_window(now, offset - 1)
    current = total_volume(frames, start, end, mode)
    previous = total_volume(frames, prev_start, prev_end, mode)

    if previous == 0:
        change_pct = 100 if current > 0 else 0
        going_up = True
    else:
        raw_pct = (current - previous) / previous * 100
        change_pct = round_half_up(raw_pct)
        going_up = raw_pct >= 0

    insight, message = VOLUME_TREND_FLOOR
    for band, bound, inclusive, band_message in VOLUME_TREND_BANDS:
        if change_pct > bound or (inclusive and change_pct == bound):
            insight, message = band, band_message
            break

    return {
        "total_volume": current,
        "prev_volume": previous,
        "change_pct": change_pct,
        "direction": "up" if going_up else "down",
        "insight": insight,
        "message": message,
    }


def monthly_stats(sessions, year: int, month: int, mode: str = "sets") -> dict:
    _check_mode(mode)
    sdf = as_frames(sessions).sessions
    start = pd.Timestamp(year=year, month=month, day=1)
    end = start + pd.offsets.MonthBegin(1)
    month_df = sdf[_in_window(sdf["date"], start, end)]
    n = len(month_df)
    volume = float(_session_volumes(month_df, mode).sum()) if n else 0.0
    return {
        "sessions": n,
        "total_volume": volume,
        "total_duration_ms": float(month_df["duration_ms"].sum()) if n else 0.0,
        "avg_volume": round_half_up(volume / n) if n else 0,
    }


def session_summary(session: dict) -> dict:
    """Post-workout card: volume, set counts and the muscle groups touched."""
    if not isinstance(session, dict):
        return {
            "id": None, "date": pd.NaT, "volume": 0.0, "total_sets": 0,
            "completed_sets": 0, "exercise_count": 0, "muscle_groups": [], "duration_ms": 0.0,
        }
    frames = history_frames([session])
    row = frames.sessions.iloc[0]
    exercises = session.get("exercises") if isinstance(session.get("exercises"), list) else []
    muscle_groups = []
    for ex in exercises:
        if isinstance(ex, dict):
            muscle = exercise_fields(ex)[2]
            if muscle and muscle not in muscle_groups:
                muscle_groups.append(muscle)
    return {
        "id": row["session_id"],
        "date": row["date"],
        "volume": float(_session_volumes(frames.sessions).iloc[0]),
        "total_sets": len(frames.sets),
        "completed_sets": int(frames.sets["completed"].sum()),
        "exercise_count": int(row["n_exercises"]),
        "muscle_groups": muscle_groups,
        "duration_ms": float(row["duration_ms"]),
    }


# ═══════════════════════════════════════════════════════════════════════
# 2. MUSCLE GROUP DISTRIBUTION
# ═══════════════════════════════════════════════════════════════════════

def muscle_distribution(sessions, window_start=None, window_end=None) -> list[dict]:
    """
    Completed-set volume per muscle group in window, sorted by volume desc.
    Unlabeled exercises are bucketed under "Otros".
    """
    sets = as_frames(sessions).sets
    done = sets[sets["completed"] & _in_window(sets["date"], window_start, window_end)]
    if done.empty:
        return []

    mg = (
        done.assign(muscle_group=done["muscle_group"].fillna(UNLABELED_MUSCLE_GROUP))
        .groupby("muscle_group")["volume"]
        .sum()
        .reset_index()
        .rename(columns={"muscle_group": "name", "volume": "value"})
        .sort_values(["value", "name"], ascending=[False, True])
    )
    total = mg["value"].sum()
    return [
        {
            "name": name,
            "value": float(value),
            "percent": round_half_up(100 * value / total) if total > 0 else 0,
        }
        for name, value in zip(mg["name"], mg["value"])
    ]


# ═══════════════════════════════════════════════════════════════════════
# 3. STREAK & ACTIVITY CALENDAR
# ═══════════════════════════════════════════════════════════════════════

def _training_days(frames) -> pd.Series:
    """
    Distinct calendar days with a session, most recent first.
    A session whose set records are all uncompleted is a plan and does not count.
    """
    sdf = frames.sessions
    sets = frames.sets
    completed_pos = set(sets.loc[sets["completed"], "session_pos"])
    performed = ~sdf["has_sets"] | sdf["session_pos"].isin(completed_pos)
    days = sdf.loc[performed, "date"].dropna().dt.normalize()
    return days.drop_duplicates().sort_values(ascending=False).reset_index(drop=True)


def current_streak(sessions, now) -> int:
    """
    Consecutive training days ending today or yesterday.

    The streak is alive while the latest training day is at most one day
    before `now`; the chain behind it needs exact one-day adjacency.
    """
    today = _today(now)
    days = _training_days(as_frames(sessions))
    days = days[days <= today].reset_index(drop=True)
    if days.empty or (today - days.iloc[0]).days > 1:
        return 0

    gaps = (days.shift(1) - days).dt.days.iloc[1:].to_numpy()
    breaks = gaps != 1
    return 1 + int(breaks.argmax() if breaks.any() else len(gaps))


def streak_badge(streak: int) -> dict:
    for tier, bound, message in STREAK_BADGES:
        if bound is None or streak <= bound:
            break
    return {"tier": tier, "message": message.format(streak=streak)}


def activity_calendar(sessions, start, days: int, now) -> list[dict]:
    """One entry per day from `start`: did a session happen, is it today."""
    first = to_timestamp(start).normalize()
    today = _today(now)
    trained = {day.date() for day in _training_days(as_frames(sessions))}
    return [
        {"date": day, "has_workout": day.date() in trained, "is_today": day == today}
        for day in pd.date_range(first, periods=days, freq="D")
    ]


def month_calendar(sessions, year: int, month: int, now) -> list[dict]:
    """Month grid, weeks starting on WEEK_START_DAY; leading blanks have day 0."""
    first = pd.Timestamp(year=year, month=month, day=1)
    blanks = (first.dayofweek - WEEK_START_DAY) % 7
    cells = [{"day": 0, "has_workout": False, "is_today": False} for _ in range(blanks)]
    for entry in activity_calendar(sessions, first, first.days_in_month, now):
        cells.append({
            "day": entry["date"].day,
            "has_workout": entry["has_workout"],
            "is_today": entry["is_today"],
        })
    return cells


# ═══════════════════════════════════════════════════════════════════════
# 4. PR TRACKING
# ═══════════════════════════════════════════════════════════════════════

def detect_prs(sessions) -> list[dict]:
    """
    Walk history chronologically and emit a record each time an exercise's
    best completed-set weight beats every earlier session.

    Each record carries the session it was set in, the previous best
    (`prev_weight`, 0 for a first lift) and the `improvement` over it
    (None for a first lift).

    Ties on date keep input order. Undated sessions cannot be ordered and
    are skipped.
    """
    sets = as_frames(sessions).sets
    done = sets[sets["completed"] & sets["date"].notna()]
    if done.empty:
        return []

    best = (
        done.groupby(["session_pos", "exercise_idx"], sort=False)
        .agg(
            session_id=("session_id", "first"),
            date=("date", "first"),
            exercise_id=("exercise_id", "first"),
            name=("exercise", "first"),
            weight=("weight", "max"),
        )
        .reset_index()
        .sort_values(["date", "session_pos", "exercise_idx"], kind="mergesort")
        .reset_index(drop=True)
    )
    prior_max = best.groupby("exercise_id")["weight"].transform(
        lambda w: w.cummax().shift(1, fill_value=0.0)
    )
    best["prev_weight"] = prior_max
    prs = best[(best["weight"] > prior_max) & (best["weight"] > 0)]
    return [
        {
            "exercise_id": row.exercise_id,
            "name": row.name,
            "weight": float(row.weight),
            "date": row.date,
            "session_id": row.session_id,
            "prev_weight": float(row.prev_weight),
            "improvement": float(row.weight - row.prev_weight) if row.prev_weight > 0 else None,
        }
        for row in prs.itertuples(index=False)
    ]


def recent_prs(prs: list[dict], n: int = RECENT_PR_COUNT) -> list[dict]:
    return sorted(prs, key=lambda pr: pr["date"], reverse=True)[:n]


def prs_in_window(prs: list[dict], window_start=None, window_end=None) -> list[dict]:
    start = to_timestamp(window_start) if window_start is not None else None
    end = to_timestamp(window_end) if window_end is not None else None
    return [
        pr for pr in prs
        if (start is None or pr["date"] >= start) and (end is None or pr["date"] < end)
    ]


def session_prs(prs: list[dict], session_id) -> list[dict]:
    """PRs set in one session, for the post-workout summary."""
    session_id = str(session_id)
    return [pr for pr in prs if pr["session_id"] == session_id]


def pr_board(prs: list[dict]) -> list[dict]:
    """Latest PR per exercise with its full PR history, heaviest first."""
    history = {}
    for pr in prs:
        history.setdefault(pr["exercise_id"], []).append(pr)
    board = [
        {
            "exercise_id": ex_id,
            "name": records[-1]["name"],
            "weight": records[-1]["weight"],
            "date": records[-1]["date"],
            "history": list(records),
        }
        for ex_id, records in history.items()
    ]
    return sorted(board, key=lambda row: row["weight"], reverse=True)


# ═══════════════════════════════════════════════════════════════════════
# 5. GOALS
# ═══════════════════════════════════════════════════════════════════════

def goal_settings(raw: dict = None) -> dict:
    """Fill missing goal settings with the app defaults. Explicit zeros are kept."""
    raw = raw if isinstance(raw, dict) else {}
    settings = dict(DEFAULT_GOAL_SETTINGS)
    for key in GOAL_TARGET_KEYS.values():
        if raw.get(key) is not None:
            settings[key] = to_number(raw[key])
    active = raw.get("activeGoals")
    if isinstance(active, (list, tuple, set)):
        settings["activeGoals"] = [g for g in GOAL_TYPES if g in active]
    else:
        settings["activeGoals"] = list(DEFAULT_GOAL_SETTINGS["activeGoals"])
    return settings


def goal_progress(goal: str, current_value, target) -> dict:
    """Normalize `current_value` against `target` as a 0–100 percentage."""
    if goal not in GOAL_TYPES:
        raise ValueError(f"Unknown goal type: {goal!r} (expected one of {GOAL_TYPES})")
    current = max(0.0, to_number(current_value))
    target = to_number(target)
    progress = min(100, round_half_up(100 * current / target)) if target > 0 else 0
    return {
        "goal": goal,
        "label": GOAL_LABELS[goal],
        "current": current,
        "target": target,
        "progress_percent": progress,
    }


def global_progress(goals: list[dict], active_goals) -> int:
    """Mean progress of the active goals only; inactive ones are left out, not zeroed."""
    active = [g["progress_percent"] for g in goals if g["goal"] in set(active_goals or [])]
    if not active:
        return 0
    return round_half_up(float(np.mean(active)))


def weekly_session_target(settings: dict = None) -> int:
    monthly = to_number((settings or {}).get("targetSessionsPerMonth"))
    return math.ceil(monthly / 4) if monthly > 0 else DEFAULT_WEEKLY_SESSIONS


def goal_dashboard(sessions, settings: dict, now, week_offset: int = 0) -> dict:
    """
    Compute the three goal aggregates once and project each against its target:
    sessions this month, PRs this month, volume this week.
    """
    frames = as_frames(sessions)
    settings = goal_settings(settings)
    month_start, month_end = month_window(now)
    week_start, week_end = week_window(now, week_offset)

    sdf = frames.sessions
    current = {
        "sessions": int(_in_window(sdf["date"], month_start, month_end).sum()),
        "prs": len(prs_in_window(detect_prs(frames), month_start, month_end)),
        "volume": total_volume(frames, week_start, week_end),
    }
    goals = [
        goal_progress(goal, current[goal], settings[GOAL_TARGET_KEYS[goal]])
        for goal in GOAL_TYPES
    ]
    active_goals = settings["activeGoals"]
    return {
        "goals": goals,
        "active": [g for g in goals if g["goal"] in active_goals],
        "global_progress": global_progress(goals, active_goals),
    }
