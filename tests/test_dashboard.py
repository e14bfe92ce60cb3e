"""
Tests for the dashboard summary and the report CLI.
Run: pytest tests/ -v
"""
import json

import pandas as pd
import pytest


NOW = "2024-01-10T20:00:00"


def _make_history() -> list[dict]:
    def bench(date, weight):
        return {
            "id": f"s-{date}",
            "date": date,
            "durationMs": 3_600_000,
            "exercises": [{
                "exerciseId": "bench", "name": "Press banca", "muscleGroup": "Pecho",
                "sets": [{"weight": weight, "reps": 5, "completed": True}],
            }],
        }
    return [
        bench("2024-01-10T08:00:00", 100),
        bench("2024-01-09T08:00:00", 95),
        bench("2024-01-02T08:00:00", 90),
        bench("2023-12-20T08:00:00", 80),
    ]


class TestDashboardSummary:

    def test_week_numbers(self):
        from gymprogress.dashboard import dashboard_summary
        summary = dashboard_summary(_make_history(), NOW)
        assert summary["week_start"] == pd.Timestamp("2024-01-07")
        assert summary["sessions_count"] == 2
        assert summary["total_volume"] == 975
        assert summary["prev_week_volume"] == 450
        assert summary["weekly_session_target"] == 3
        assert summary["muscle_distribution"][0]["name"] == "Pecho"
        assert summary["streak"] == 2
        assert summary["streak_badge"]["tier"] == "on_track"

    def test_prs(self):
        from gymprogress.dashboard import dashboard_summary
        summary = dashboard_summary(_make_history(), NOW)
        assert [pr["weight"] for pr in summary["recent_prs"]] == [100, 95, 90]
        assert summary["monthly_pr_count"] == 3

    def test_views_sized(self):
        from gymprogress.dashboard import dashboard_summary
        summary = dashboard_summary(_make_history(), NOW)
        assert len(summary["week_activity"]) == 7
        assert len(summary["daily_volume"]) == 7
        assert len(summary["goals"]["goals"]) == 3

    def test_readiness_only_for_today(self):
        from gymprogress.dashboard import dashboard_summary
        today = {"date": "2024-01-10T07:00:00", "sleep": 3, "energy": 3, "stress": 1, "soreness": 1}
        stale = {**today, "date": "2024-01-09T07:00:00"}
        assert dashboard_summary([], NOW, wellness=today)["readiness"]["score"] == 100
        assert dashboard_summary([], NOW, wellness=stale)["readiness"] is None
        assert dashboard_summary([], NOW)["readiness"] is None

    def test_empty_history(self):
        from gymprogress.dashboard import dashboard_summary
        summary = dashboard_summary([], NOW)
        assert summary["total_volume"] == 0
        assert summary["streak"] == 0
        assert summary["recent_prs"] == []
        assert summary["acwr"]["status"] == "insufficient_data"
        assert summary["goals"]["global_progress"] == 0

    def test_previous_week(self):
        from gymprogress.dashboard import dashboard_summary
        summary = dashboard_summary(_make_history(), NOW, week_offset=-1)
        assert summary["week_start"] == pd.Timestamp("2023-12-31")
        assert summary["total_volume"] == 450
        assert summary["sessions_count"] == 1


class TestReport:

    def test_run_report_from_file(self, tmp_path, capsys):
        from gymprogress.report import run_report
        path = tmp_path / "history.json"
        path.write_text(json.dumps(_make_history()), encoding="utf-8")
        summary = run_report(path=str(path), now=NOW)
        out = capsys.readouterr().out
        assert "Racha" in out
        assert "ACWR" in out
        assert summary["streak"] == 2

    def test_invalid_now(self, tmp_path):
        from gymprogress.report import run_report
        with pytest.raises(ValueError):
            run_report(path=str(tmp_path / "missing.json"), now="someday")

    def test_no_history_source(self, monkeypatch):
        from gymprogress import report
        monkeypatch.setattr(report, "HISTORY_FILE", "")
        monkeypatch.setattr(report, "HISTORY_URL", "")
        with pytest.raises(ValueError):
            report.load_history()

    def test_arg_parsing(self):
        from gymprogress.report import _arg
        argv = ["--file", "h.json", "--verbose"]
        assert _arg(argv, "--file") == "h.json"
        assert _arg(argv, "--now") is None
