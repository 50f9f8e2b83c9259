"""Tests for the sudden-drop and hidden-gem detectors."""

import pytest

from app.analyzer.anomaly_engine import (
    compute_anomalies,
    detect_hidden_gems,
    detect_sudden_drops,
)
from tests.factories import perf


def _history(latest_value: str, days: int = 7, cid: str = "111", pm: str = "Priya"):
    rows = [
        perf(cid=cid, pm=pm, month=f"3/{d}/2024", cost="$100", conversion_value="$400")
        for d in range(1, days + 1)
    ]
    rows.append(
        perf(cid=cid, pm=pm, month=f"3/{days + 1}/2024", cost="$100", conversion_value=latest_value)
    )
    return rows


class TestSuddenDrop:
    def test_flags_sharp_drop(self):
        drops = detect_sudden_drops(_history("$100"))
        assert len(drops) == 1
        assert drops[0].baseline_roas == pytest.approx(4.0)
        assert drops[0].current_roas == pytest.approx(1.0)
        assert drops[0].drop_pct == pytest.approx(75.0)

    def test_mild_dip_not_flagged(self):
        assert detect_sudden_drops(_history("$300")) == []

    def test_single_row_never_flagged(self):
        assert detect_sudden_drops([perf(month="3/1/2024")]) == []

    def test_low_baseline_not_flagged(self):
        rows = [
            perf(month="3/1/2024", cost="$100", conversion_value="$80"),
            perf(month="3/2/2024", cost="$100", conversion_value="$0"),
        ]
        assert detect_sudden_drops(rows) == []

    def test_baseline_uses_whatever_prior_rows_exist(self):
        drops = detect_sudden_drops(_history("$100", days=2))
        assert len(drops) == 1
        assert drops[0].baseline_roas == pytest.approx(4.0)

    def test_unsorted_input(self):
        rows = list(reversed(_history("$100")))
        assert detect_sudden_drops(rows)[0].current_roas == pytest.approx(1.0)


class TestHiddenGem:
    def test_small_spend_high_roas(self):
        gems = detect_hidden_gems([perf(cost="$100", conversion_value="$1,000", target_roas="4x")])
        assert len(gems) == 1
        assert gems[0].current_roas == pytest.approx(10.0)
        assert gems[0].spend == pytest.approx(100.0)

    def test_floor_of_five_applies(self):
        # target 1x → threshold max(2, 5) = 5
        assert detect_hidden_gems([perf(cost="$100", conversion_value="$450", target_roas="1x")]) == []

    def test_large_spend_excluded(self):
        assert detect_hidden_gems([perf(cost="$300", conversion_value="$9,000")]) == []

    def test_zero_spend_excluded(self):
        assert detect_hidden_gems([perf(cost="$0", conversion_value="$100")]) == []


class TestComputeAnomalies:
    def test_visible_managers_only(self):
        history = _history("$100") + _history("$100", cid="222", pm="Arjun")
        report = compute_anomalies(history, [], visible_pms={"Arjun"})
        assert [d.pm for d in report.sudden_drops] == ["Arjun"]

    def test_sorted_and_capped(self):
        summaries = [
            perf(cid=str(i), cost="$100", conversion_value=f"${1000 + i * 100}")
            for i in range(25)
        ]
        report = compute_anomalies([], summaries)
        assert len(report.hidden_gems) == 20
        roas = [g.current_roas for g in report.hidden_gems]
        assert roas == sorted(roas, reverse=True)

    def test_empty(self):
        report = compute_anomalies([], [])
        assert report.sudden_drops == [] and report.hidden_gems == []
