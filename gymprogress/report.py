"""
GymProgress Analytics — Report
Run manually: python -m gymprogress.report [--file history.json] [--now 2024-01-10T12:00] [--verbose]
"""
import logging
import sys
from datetime import datetime

import pandas as pd

from gymprogress.config import HISTORY_FILE, HISTORY_URL
from gymprogress.dashboard import dashboard_summary
from gymprogress.history_client import fetch_history, history_frames, load_history_file, to_timestamp


def _arg(argv: list, flag: str):
    """Value following `flag` in argv, or None."""
    if flag in argv:
        idx = argv.index(flag)
        if idx + 1 < len(argv):
            return argv[idx + 1]
    return None


def load_history(path: str = None) -> list[dict]:
    """History from an explicit file, then HISTORY_FILE, then HISTORY_URL."""
    path = path or HISTORY_FILE
    if path:
        print(f"\n📥 Loading history from {path}...")
        return load_history_file(path)
    if HISTORY_URL:
        print("\n📥 Fetching history from remote...")
        return fetch_history()
    raise ValueError("No history source: pass --file or set HISTORY_FILE / HISTORY_URL")


def run_report(path: str = None, now=None) -> dict:
    """
    Report pipeline:
    1. Load raw history
    2. Flatten to DataFrames
    3. Compute the dashboard summary
    4. Print it
    """
    now = to_timestamp(now) if now is not None else to_timestamp(datetime.now())
    if pd.isna(now):
        raise ValueError("--now is not a valid date")
    print("📊 GymProgress Report — Starting...")
    print(f"   {now.isoformat()}")

    # 1. Load
    sessions = load_history(path)
    print(f"   Found {len(sessions)} sessions")

    # 2. Flatten
    frames = history_frames(sessions)
    print(f"   {len(frames.sets)} set entries across {len(frames.sessions)} sessions")

    # 3. Compute
    summary = dashboard_summary(frames, now)

    # 4. Print
    trend = summary["volume_trend"]
    workload = summary["acwr"]
    print(f"\n{'='*50}")
    print("📅 Semana:")
    print(f"   {summary['week_start'].date()} → {summary['week_end'].date()}")
    print(f"   Sesiones: {summary['sessions_count']}/{summary['weekly_session_target']}")
    print(f"   Volumen: {summary['total_volume']:,.0f} ({trend['change_pct']:+d}% vs semana anterior)")
    print(f"   {trend['message']}")

    print(f"\n🔥 Racha: {summary['streak']} días — {summary['streak_badge']['message']}")

    print(f"\n⚖️  ACWR: {workload['ratio_display']:.2f} {workload['label']}")
    print(f"   Aguda {workload['acute_volume']:,.0f} | Crónica {workload['chronic_volume']:,.0f}")
    print(f"   {summary['training_suggestion']}")

    if summary["muscle_distribution"]:
        print("\n💪 Distribución muscular:")
        for row in summary["muscle_distribution"][:4]:
            print(f"   {row['name']}: {row['value']:,.0f} ({row['percent']}%)")

    if summary["recent_prs"]:
        print("\n🏆 PRs recientes:")
        for pr in summary["recent_prs"]:
            print(f"   {pr['name']}: {pr['weight']:g} ({pr['date'].date()})")
    print(f"   PRs este mes: {summary['monthly_pr_count']}")

    goals = summary["goals"]
    print(f"\n🎯 Metas ({goals['global_progress']}%):")
    for goal in goals["active"]:
        print(f"   {goal['label']}: {goal['current']:,.0f}/{goal['target']:,.0f} ({goal['progress_percent']}%)")

    return summary


if __name__ == "__main__":
    argv = sys.argv[1:]
    logging.basicConfig(level=logging.DEBUG if "--verbose" in argv else logging.WARNING)
    try:
        run_report(path=_arg(argv, "--file"), now=_arg(argv, "--now"))
    except Exception as e:
        print(f"\n❌ Report FAILED: {e}")
        sys.exit(1)
