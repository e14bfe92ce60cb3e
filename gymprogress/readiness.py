"""
GymProgress Analytics — Workload & Readiness

ACWR (Acute:Chronic Workload Ratio) from rolling session volume, and the
daily Readiness Score from the self-reported wellness check-in.

Readiness formula (weights from config, must sum to 100):
    - Sleep     (35)  higher is better
    - Energy    (35)  higher is better
    - Stress    (15)  inverted
    - Soreness  (15)  inverted
"""
import logging
import math

import pandas as pd

from gymprogress.analytics import round_half_up, total_volume
from gymprogress.config import (
    ACUTE_DAYS,
    CHRONIC_DAYS,
    CHRONIC_WEEKS,
    NEUTRAL_ACWR,
    ACWR_DANGER,
    ACWR_OVERREACHING,
    ACWR_OPTIMAL_FLOOR,
    ACWR_LABELS,
    TRAINING_SUGGESTIONS,
    WELLNESS_SCALE,
    READINESS_WEIGHTS,
    INVERTED_AXES,
    DEFAULT_WELLNESS,
    READINESS_BANDS,
    READINESS_FLOOR,
)
from gymprogress.history_client import as_frames, to_timestamp

logger = logging.getLogger("gymprogress.readiness")


# ═══════════════════════════════════════════════════════════════════════
# 1. ACWR — Acute:Chronic Workload Ratio
# ═══════════════════════════════════════════════════════════════════════

def acwr_status(ratio: float, has_history: bool = True) -> str:
    """
    Zone for a ratio. Safe zone: 0.8 – 1.3. Warning: 1.3 – 1.5. Risk: >1.5.
    No history at all is its own status, never "optimal".
    """
    if not has_history:
        return "insufficient_data"
    if ratio > ACWR_DANGER:
        return "danger"
    if ratio > ACWR_OVERREACHING:
        return "overreaching"
    if ratio >= ACWR_OPTIMAL_FLOOR:
        return "optimal"
    return "undertrained"


def acwr(sessions, now) -> dict:
    """
    Acute = volume in [now-7d, now). Chronic = volume in [now-28d, now),
    normalized to a weekly average. Ratio defaults to 1.0 without chronic load.

    `ratio` keeps full precision for further computation; `ratio_display`
    is rounded to 2 decimals.
    """
    frames = as_frames(sessions)
    now_ts = to_timestamp(now)
    acute_volume = total_volume(frames, now_ts - pd.Timedelta(days=ACUTE_DAYS), now_ts)
    chronic_volume = total_volume(frames, now_ts - pd.Timedelta(days=CHRONIC_DAYS), now_ts)

    weekly_chronic = chronic_volume / CHRONIC_WEEKS
    ratio = acute_volume / weekly_chronic if weekly_chronic > 0 else NEUTRAL_ACWR

    has_history = bool(frames.sessions["date"].notna().any())
    status = acwr_status(ratio, has_history)
    logger.debug("ACWR %.3f (acute %.0f, chronic %.0f) → %s", ratio, acute_volume, chronic_volume, status)
    return {
        "ratio": ratio,
        "ratio_display": round(ratio, 2),
        "acute_volume": acute_volume,
        "chronic_volume": chronic_volume,
        "status": status,
        "label": ACWR_LABELS[status],
    }


def training_suggestion(ratio: float) -> str:
    """Offline coaching line for a workload ratio."""
    if ratio > ACWR_OVERREACHING:
        return TRAINING_SUGGESTIONS["high"]
    if ratio < ACWR_OPTIMAL_FLOOR:
        return TRAINING_SUGGESTIONS["low"]
    return TRAINING_SUGGESTIONS["sweet_spot"]


# ═══════════════════════════════════════════════════════════════════════
# 2. READINESS SCORE
# ═══════════════════════════════════════════════════════════════════════

def _axis_value(wellness: dict, axis: str) -> float:
    """Wellness axis clamped to the 1–3 scale. Missing or non-numeric → neutral default."""
    raw = wellness.get(axis) if isinstance(wellness, dict) else None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = float(DEFAULT_WELLNESS[axis])
    if not math.isfinite(value):
        value = float(DEFAULT_WELLNESS[axis])
    low, high = WELLNESS_SCALE
    return min(max(value, low), high)


def readiness_score(wellness: dict) -> int:
    """Weighted 0–100 composite of sleep, energy, stress and soreness."""
    high = WELLNESS_SCALE[1]
    score = 0.0
    for axis, weight in READINESS_WEIGHTS.items():
        value = _axis_value(wellness, axis)
        share = (high + 1 - value) / high if axis in INVERTED_AXES else value / high
        score += share * weight
    return round_half_up(score)


def readiness_status(score: int) -> tuple:
    """(status, label) band for a readiness score."""
    for status, bound, label in READINESS_BANDS:
        if score > bound:
            return status, label
    return READINESS_FLOOR


def readiness(wellness: dict) -> dict:
    score = readiness_score(wellness)
    status, label = readiness_status(score)
    return {"score": score, "status": status, "label": label}


def current_wellness(entry: dict, now):
    """
    The wellness entry if it was logged on `now`'s calendar day, else None.
    A cached entry from an earlier day must not be read as today's.
    """
    if not isinstance(entry, dict):
        return None
    logged = to_timestamp(entry.get("date"))
    today = to_timestamp(now)
    if pd.isna(logged) or pd.isna(today):
        return None
    return entry if logged.normalize() == today.normalize() else None
