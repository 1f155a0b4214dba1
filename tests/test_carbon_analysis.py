"""Tests for run comparison, budget checks and suggestions."""

import pytest

from carbonlint.carbon.analysis import (
    ThresholdStatus,
    budget_usage,
    check_thresholds,
    compare_runs,
    generate_suggestions,
)
from carbonlint.models.carbon_models import Settings


class TestCompareRuns:
    """Tests for base/head comparison."""

    def test_improvement(self, make_run):
        """Less carbon on head is an improvement."""
        base = make_run("base", grams=4.0, kwh=0.008, wall_time=120)
        head = make_run("head", grams=3.0, kwh=0.006, wall_time=90)

        result = compare_runs(base, head)

        assert result.base_id == "base"
        assert result.head_id == "head"
        assert result.carbon_grams.diff == pytest.approx(-1.0)
        assert result.carbon_grams.percent == pytest.approx(-25.0)
        assert result.energy_kwh.percent == pytest.approx(-25.0)
        assert result.wall_time_s.diff == pytest.approx(-30.0)
        assert result.improved is True

    def test_regression(self, make_run):
        """More carbon on head is not an improvement."""
        result = compare_runs(make_run("a", grams=1.0), make_run("b", grams=1.5))
        assert result.carbon_grams.percent == pytest.approx(50.0)
        assert result.improved is False

    def test_zero_base_gives_zero_percent(self, make_run):
        """Percent change from a zero base is reported as 0."""
        result = compare_runs(make_run("a", grams=0.0), make_run("b", grams=2.0))
        assert result.carbon_grams.diff == pytest.approx(2.0)
        assert result.carbon_grams.percent == 0.0
        assert result.improved is False


class TestCheckThresholds:
    """Tests for the per-run budget verdict."""

    def test_pass(self, make_run):
        """Well under both limits passes."""
        report = check_thresholds(make_run(grams=10.0, kwh=0.01), Settings())
        assert report.status is ThresholdStatus.PASS
        assert report.should_fail is False
        assert report.reasons == []

    def test_warning_above_eighty_percent(self, make_run):
        """Above 80% of the carbon limit warns."""
        report = check_thresholds(make_run(grams=85.0, kwh=0.01), Settings())
        assert report.status is ThresholdStatus.WARNING
        assert report.should_fail is False
        assert len(report.reasons) == 1

    def test_exactly_eighty_percent_passes(self, make_run):
        """The warning threshold is exclusive."""
        report = check_thresholds(make_run(grams=80.0, kwh=0.01), Settings())
        assert report.status is ThresholdStatus.PASS

    def test_fail_on_carbon(self, make_run):
        """Exceeding the carbon limit fails."""
        report = check_thresholds(make_run(grams=150.0, kwh=0.01), Settings())
        assert report.status is ThresholdStatus.FAIL
        assert report.should_fail is True
        assert "carbon" in report.reasons[0]

    def test_fail_on_energy(self, make_run):
        """Exceeding the energy limit fails even with little carbon."""
        report = check_thresholds(make_run(grams=1.0, kwh=0.75), Settings())
        assert report.status is ThresholdStatus.FAIL
        assert "energy" in report.reasons[0]

    def test_fail_without_enforcement(self, make_run):
        """With failing disabled the verdict stays FAIL but does not fail."""
        settings = Settings(fail_on_threshold=False)
        report = check_thresholds(make_run(grams=150.0), settings)
        assert report.status is ThresholdStatus.FAIL
        assert report.should_fail is False

    def test_custom_limits(self, make_run):
        """Limits come from settings."""
        settings = Settings(max_carbon=5.0, max_energy=1.0)
        report = check_thresholds(make_run(grams=4.5, kwh=0.01), settings)
        assert report.status is ThresholdStatus.WARNING


class TestBudgetUsage:
    """Tests for cumulative budget usage."""

    def test_no_runs(self):
        """Nothing recorded uses nothing."""
        assert budget_usage([], Settings()) == 0.0

    def test_sum_as_percent(self, make_run):
        """Total carbon as a percent of the limit."""
        runs = [make_run("a", grams=10.0), make_run("b", grams=15.0)]
        assert budget_usage(runs, Settings()) == pytest.approx(25.0)

    def test_capped_at_hundred(self, make_run):
        """Usage never exceeds 100%."""
        runs = [make_run("a", grams=80.0), make_run("b", grams=80.0)]
        assert budget_usage(runs, Settings()) == 100.0


class TestSuggestions:
    """Tests for suggestion rules."""

    def test_disabled(self, make_run):
        """Disabled suggestions produce nothing."""
        settings = Settings(suggestions_enabled=False)
        assert generate_suggestions([make_run()], settings) == []

    def test_no_runs(self):
        """Without runs there is nothing to suggest."""
        assert generate_suggestions([], Settings()) == []

    def test_baseline_suggestions(self, make_run):
        """Light runs in a clean region only get the general tips."""
        settings = Settings(region="EU-NORTH")
        ids = [s.id for s in generate_suggestions([make_run(cpu=20, memory=30)], settings)]
        assert ids == ["batch-processing", "caching"]

    def test_high_cpu(self, make_run):
        """Average CPU above 70% is high, above 90% critical."""
        settings = Settings(region="EU-NORTH")
        high = generate_suggestions([make_run(cpu=75)], settings)[0]
        critical = generate_suggestions([make_run(cpu=95)], settings)[0]

        assert high.id == "high-cpu"
        assert high.severity == "high"
        assert high.impact_grams == pytest.approx(0.75)
        assert critical.severity == "critical"

    def test_high_memory(self, make_run):
        """Average memory above 60% is medium, above 80% high."""
        settings = Settings(region="EU-NORTH")
        medium = generate_suggestions([make_run(memory=65)], settings)[0]
        high = generate_suggestions([make_run(memory=85)], settings)[0]

        assert medium.id == "high-memory"
        assert medium.severity == "medium"
        assert medium.impact_grams == pytest.approx(0.325)
        assert high.severity == "high"

    def test_region_suggestion(self, make_run):
        """Dirty grids get a region suggestion worth half the average carbon."""
        runs = [make_run("a", grams=2.0), make_run("b", grams=4.0)]
        suggestions = {s.id: s for s in generate_suggestions(runs, Settings())}

        region = suggestions["region-optimize"]
        assert region.severity == "medium"
        assert region.impact_grams == pytest.approx(1.5)
        assert "EU-NORTH" in region.description
        assert suggestions["batch-processing"].impact_grams == pytest.approx(0.3)
        assert suggestions["caching"].impact_grams == pytest.approx(0.05)

    def test_region_suggestion_for_asia_south(self, make_run):
        """ASIA-SOUTH also counts as a high-intensity region."""
        settings = Settings(region="asia-south")
        ids = {s.id for s in generate_suggestions([make_run()], settings)}
        assert "region-optimize" in ids

    def test_every_suggestion_is_tagged(self, make_run):
        """Each suggestion carries tags."""
        runs = [make_run(cpu=95, memory=85)]
        for suggestion in generate_suggestions(runs, Settings()):
            assert suggestion.tags
