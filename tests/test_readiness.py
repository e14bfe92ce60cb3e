"""
Tests for workload ratio and readiness score.
Run: pytest tests/ -v
"""
import pandas as pd
import pytest


NOW = pd.Timestamp("2024-01-30T12:00:00")


def _make_session(date, volume) -> dict:
    return {"id": f"s-{date}", "date": date, "volume": volume, "exercises": []}


# ═══════════════════════════════════════════════════════════════════════
# ACWR
# ═══════════════════════════════════════════════════════════════════════

class TestAcwr:

    def test_acute_and_chronic_windows(self):
        from gymprogress.readiness import acwr
        sessions = [
            _make_session((NOW - pd.Timedelta(days=2)).isoformat(), 10000),
            _make_session((NOW - pd.Timedelta(days=10)).isoformat(), 18000),
        ]
        result = acwr(sessions, NOW)
        assert result["acute_volume"] == 10000
        assert result["chronic_volume"] == 28000
        assert result["ratio"] == pytest.approx(10000 / 7000)
        assert result["ratio_display"] == 1.43
        assert result["status"] == "overreaching"

    def test_no_history(self):
        from gymprogress.readiness import acwr
        result = acwr([], NOW)
        assert result["ratio"] == 1.0
        assert result["status"] == "insufficient_data"
        assert result["label"] == "⬜ Sin datos"

    def test_history_older_than_chronic_window(self):
        from gymprogress.readiness import acwr
        sessions = [_make_session((NOW - pd.Timedelta(days=60)).isoformat(), 5000)]
        result = acwr(sessions, NOW)
        assert result["ratio"] == 1.0
        assert result["status"] == "optimal"

    def test_only_acute_load_is_danger(self):
        from gymprogress.readiness import acwr
        sessions = [_make_session((NOW - pd.Timedelta(days=1)).isoformat(), 4000)]
        # chronic = acute → weekly average is a quarter of it
        result = acwr(sessions, NOW)
        assert result["ratio"] == pytest.approx(4.0)
        assert result["status"] == "danger"

    def test_session_at_now_is_outside_window(self):
        from gymprogress.readiness import acwr
        sessions = [_make_session(NOW.isoformat(), 4000)]
        assert acwr(sessions, NOW)["acute_volume"] == 0


class TestAcwrStatus:

    @pytest.mark.parametrize("ratio, status", [
        (1.6, "danger"),
        (1.5, "overreaching"),
        (1.31, "overreaching"),
        (1.3, "optimal"),
        (0.8, "optimal"),
        (0.79, "undertrained"),
        (0.0, "undertrained"),
    ])
    def test_zones(self, ratio, status):
        from gymprogress.readiness import acwr_status
        assert acwr_status(ratio) == status

    def test_no_history_is_never_optimal(self):
        from gymprogress.readiness import acwr_status
        assert acwr_status(1.0, has_history=False) == "insufficient_data"

    @pytest.mark.parametrize("ratio, key", [(1.4, "high"), (0.5, "low"), (1.0, "sweet_spot")])
    def test_training_suggestion(self, ratio, key):
        from gymprogress.config import TRAINING_SUGGESTIONS
        from gymprogress.readiness import training_suggestion
        assert training_suggestion(ratio) == TRAINING_SUGGESTIONS[key]


# ═══════════════════════════════════════════════════════════════════════
# READINESS
# ═══════════════════════════════════════════════════════════════════════

class TestReadinessScore:

    def test_weights_sum_to_100(self):
        from gymprogress.config import READINESS_WEIGHTS
        assert sum(READINESS_WEIGHTS.values()) == 100

    def test_best_case(self):
        from gymprogress.readiness import readiness_score
        assert readiness_score({"sleep": 3, "energy": 3, "stress": 1, "soreness": 1}) == 100

    def test_worst_case(self):
        from gymprogress.readiness import readiness_score
        assert readiness_score({"sleep": 1, "energy": 1, "stress": 3, "soreness": 3}) == 33

    def test_defaults_for_missing_axes(self):
        from gymprogress.readiness import readiness_score
        assert readiness_score({}) == 72
        assert readiness_score(None) == 72

    def test_out_of_range_values_clamped(self):
        from gymprogress.readiness import readiness_score
        assert readiness_score({"sleep": 9, "energy": 3, "stress": -4, "soreness": 0}) == 100

    def test_non_numeric_axis_uses_default(self):
        from gymprogress.readiness import readiness_score
        assert readiness_score({"sleep": "great", "energy": 2, "stress": 2, "soreness": 1}) == 72

    def test_sleep_weighs_more_than_stress(self):
        from gymprogress.readiness import readiness_score
        base = {"sleep": 2, "energy": 2, "stress": 2, "soreness": 2}
        better_sleep = readiness_score({**base, "sleep": 3})
        less_stress = readiness_score({**base, "stress": 1})
        assert better_sleep > less_stress


class TestReadinessStatus:

    @pytest.mark.parametrize("score, status", [
        (100, "elite"), (86, "elite"), (85, "optimal"), (66, "optimal"),
        (65, "moderate"), (41, "moderate"), (40, "at_risk"), (0, "at_risk"),
    ])
    def test_bands(self, score, status):
        from gymprogress.readiness import readiness_status
        assert readiness_status(score)[0] == status

    def test_readiness_bundle(self):
        from gymprogress.readiness import readiness
        result = readiness({"sleep": 3, "energy": 3, "stress": 1, "soreness": 1})
        assert result == {"score": 100, "status": "elite", "label": "ELITE"}


class TestCurrentWellness:

    def test_logged_today(self):
        from gymprogress.readiness import current_wellness
        entry = {"date": "2024-01-30T07:00:00", "sleep": 3}
        assert current_wellness(entry, NOW) is entry

    def test_stale_entry(self):
        from gymprogress.readiness import current_wellness
        entry = {"date": "2024-01-29T23:00:00", "sleep": 3}
        assert current_wellness(entry, NOW) is None

    def test_missing_or_bad_date(self):
        from gymprogress.readiness import current_wellness
        assert current_wellness({"sleep": 3}, NOW) is None
        assert current_wellness({"date": "not a date"}, NOW) is None
        assert current_wellness(None, NOW) is None
