"""
GymProgress Analytics — History Client

Loads the app's workout history (JSON export or HTTP endpoint) and flattens
it into pandas DataFrames: one row per set, one row per session.
Every analytics function runs on these frames.
"""
import json
import logging
import math
import numbers
import time
from typing import NamedTuple

import pandas as pd
import requests

from gymprogress.config import (
    HISTORY_URL,
    HISTORY_API_KEY,
    HISTORY_STORAGE_KEY,
    RATE_LIMIT_DELAY,
    MAX_RETRIES,
    RETRY_BACKOFF,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger("gymprogress.history")

SET_COLUMNS = [
    "session_pos", "session_id", "date", "exercise_idx", "exercise_id",
    "exercise", "muscle_group", "weight", "reps", "completed", "volume",
]
SESSION_COLUMNS = [
    "session_pos", "session_id", "date", "duration_ms", "stored_volume",
    "set_volume", "has_sets", "n_exercises",
]


class HistoryFrames(NamedTuple):
    """Flattened history: `sets` (one row per set) and `sessions` (one row per session)."""
    sets: pd.DataFrame
    sessions: pd.DataFrame


# ═══════════════════════════════════════════════════════════════════════
# 1. LOADING
# ═══════════════════════════════════════════════════════════════════════

def _get(url: str, headers: dict = None, params: dict = None):
    """GET a JSON document with retry and rate limiting."""
    time.sleep(RATE_LIMIT_DELAY)
    for attempt in range(1, MAX_RETRIES + 1):
        try:
            r = requests.get(url, headers=headers or {}, params=params or {}, timeout=REQUEST_TIMEOUT)
            if r.status_code == 429:
                wait = RETRY_BACKOFF ** attempt
                logger.warning("History rate limit, retrying in %ss (attempt %d/%d)", wait, attempt, MAX_RETRIES)
                time.sleep(wait)
                continue
            r.raise_for_status()
            return r.json()
        except requests.exceptions.Timeout:
            if attempt < MAX_RETRIES:
                logger.warning("History timeout, retrying (attempt %d/%d)", attempt, MAX_RETRIES)
                time.sleep(RETRY_BACKOFF ** attempt)
            else:
                raise
        except requests.exceptions.HTTPError:
            if attempt < MAX_RETRIES and r.status_code >= 500:
                logger.warning("History %s, retrying (attempt %d/%d)", r.status_code, attempt, MAX_RETRIES)
                time.sleep(RETRY_BACKOFF ** attempt)
            else:
                raise
    raise requests.exceptions.RetryError(f"History endpoint failed after {MAX_RETRIES} attempts")


def extract_sessions(payload) -> list:
    """Pull the session list out of a history payload (bare list or storage dump)."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in (HISTORY_STORAGE_KEY, "history", "sessions"):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise ValueError("History payload holds no session list")


def fetch_history(url: str = HISTORY_URL, api_key: str = HISTORY_API_KEY) -> list[dict]:
    """Fetch the raw session list from a JSON endpoint."""
    if not url:
        raise ValueError("HISTORY_URL is not configured")
    headers = {"accept": "application/json"}
    if api_key:
        headers["apikey"] = api_key
        headers["Authorization"] = f"Bearer {api_key}"
    return extract_sessions(_get(url, headers=headers))


def load_history_file(path: str) -> list[dict]:
    """Read the raw session list from a JSON export on disk."""
    with open(path, encoding="utf-8") as fh:
        payload = json.load(fh)
    return extract_sessions(payload)


# ═══════════════════════════════════════════════════════════════════════
# 2. FIELD COERCION
# ═══════════════════════════════════════════════════════════════════════

def to_number(value) -> float:
    """Coerce a raw numeric field to float. Missing, non-numeric or non-finite → 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_timestamp(value) -> pd.Timestamp:
    """
    Parse a session/wellness date into a naive UTC Timestamp.

    Accepts ISO strings, datetime/date objects and epoch milliseconds.
    Anything unparseable becomes NaT.
    """
    if value is None or isinstance(value, bool):
        return pd.NaT
    try:
        if isinstance(value, numbers.Real):
            if not math.isfinite(value):
                return pd.NaT
            ts = pd.Timestamp(int(value), unit="ms")
        else:
            ts = pd.Timestamp(value)
    except (TypeError, ValueError, OverflowError):
        return pd.NaT
    if pd.isna(ts):
        return pd.NaT
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def _first(mapping: dict, *keys):
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def _label(value):
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def exercise_fields(ex: dict) -> tuple:
    """(exercise_id, name, muscle_group) from either the flat or nested exercise shape."""
    nested = ex.get("exercise") if isinstance(ex.get("exercise"), dict) else {}
    name = _label(_first(ex, "name")) or _label(nested.get("name")) or ""
    raw_id = _first(ex, "exerciseId") or nested.get("id")
    exercise_id = str(raw_id) if raw_id not in (None, "") else name
    muscle = (
        _label(ex.get("muscleGroup"))
        or _label(nested.get("muscleGroup"))
        or _label(nested.get("muscle"))
    )
    return exercise_id, name, muscle


# ═══════════════════════════════════════════════════════════════════════
# 3. FLATTENING
# ═══════════════════════════════════════════════════════════════════════

def history_frames(sessions) -> HistoryFrames:
    """
    Flatten raw sessions into set-level and session-level DataFrames.

    Malformed records contribute nothing: a non-mapping session, exercise or
    set is skipped, a missing `exercises` list means no sets.
    The input is only read, never modified.
    """
    set_rows = []
    session_rows = []
    for pos, session in enumerate(sessions or []):
        if not isinstance(session, dict):
            logger.debug("Skipping session #%d: not a mapping", pos)
            continue
        session_id = str(session.get("id", pos))
        date = to_timestamp(_first(session, "date", "startTime"))
        exercises = session.get("exercises")
        if not isinstance(exercises, list):
            exercises = []

        set_volume = 0.0
        has_sets = False
        n_exercises = 0
        for ex_idx, ex in enumerate(exercises):
            if not isinstance(ex, dict):
                logger.debug("Skipping exercise #%d of session %s: not a mapping", ex_idx, session_id)
                continue
            n_exercises += 1
            exercise_id, name, muscle = exercise_fields(ex)
            sets = ex.get("sets") if isinstance(ex.get("sets"), list) else []
            for s in sets:
                if not isinstance(s, dict):
                    continue
                has_sets = True
                weight = to_number(s.get("weight"))
                reps = to_number(s.get("reps"))
                completed = s.get("completed") is True
                volume = weight * reps if completed else 0.0
                set_volume += volume
                set_rows.append({
                    "session_pos": pos,
                    "session_id": session_id,
                    "date": date,
                    "exercise_idx": ex_idx,
                    "exercise_id": exercise_id,
                    "exercise": name,
                    "muscle_group": muscle,
                    "weight": weight,
                    "reps": reps,
                    "completed": completed,
                    "volume": volume,
                })

        session_rows.append({
            "session_pos": pos,
            "session_id": session_id,
            "date": date,
            "duration_ms": to_number(_first(session, "durationMs", "duration")),
            "stored_volume": to_number(_first(session, "volume", "totalVolume")),
            "set_volume": set_volume,
            "has_sets": has_sets,
            "n_exercises": n_exercises,
        })

    sets_df = pd.DataFrame(set_rows, columns=SET_COLUMNS)
    sets_df["date"] = pd.to_datetime(sets_df["date"])
    sets_df = sets_df.astype({"weight": float, "reps": float, "volume": float, "completed": bool})

    sessions_df = pd.DataFrame(session_rows, columns=SESSION_COLUMNS)
    sessions_df["date"] = pd.to_datetime(sessions_df["date"])
    sessions_df = sessions_df.astype({
        "duration_ms": float, "stored_volume": float, "set_volume": float, "has_sets": bool,
    })
    return HistoryFrames(sets=sets_df, sessions=sessions_df)


def sets_to_dataframe(sessions) -> pd.DataFrame:
    """One row per set record."""
    return history_frames(sessions).sets


def sessions_to_dataframe(sessions) -> pd.DataFrame:
    """One row per session record."""
    return history_frames(sessions).sessions


def as_frames(history) -> HistoryFrames:
    """Accept raw sessions or already-flattened frames."""
    if isinstance(history, HistoryFrames):
        return history
    return history_frames(history)
