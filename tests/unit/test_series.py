"""Unit tests for Plot/Series

Tests the series value types including:
- Wire serialization of plots
- Summary statistics (min/max/avg/last)
- Rank-based percentiles
- Scaling and downsampling
"""
import math

import pytest

from plotfed.plot import NAN, ConsolidationType, Plot, Series, percentile_key, serialize_value


def make_series(values, start=0, step=10, name="s"):
    return Series(name=name, plots=[Plot(start + i * step, v) for i, v in enumerate(values)])


class TestWireFormat:
    """Test plot serialization for the presentation layer"""

    def test_plot_serializes_as_pair(self):
        """A plot is written as [unix_seconds, value]"""
        assert Plot(1700000000.7, 1.5).to_json() == [1700000000, 1.5]

    def test_nan_serializes_as_null(self):
        """NaN (no data) is written as None"""
        assert Plot(10, NAN).to_json() == [10, None]
        assert serialize_value(float("inf")) is None

    def test_zero_serializes_as_literal_zero(self):
        """Values with exp(value) == 1 are written as a clean 0"""
        assert serialize_value(0.0) == 0
        assert serialize_value(-0.0) == 0
        assert isinstance(serialize_value(0.0), int)

    def test_small_non_zero_values_are_kept(self):
        """Non-zero values are never rounded to zero"""
        assert serialize_value(0.001) == 0.001
        assert serialize_value(-2.5) == -2.5

    def test_series_to_json(self):
        """Series serializes plot by plot"""
        series = make_series([1.0, NAN])
        assert series.to_json() == [[0, 1.0], [10, None]]


class TestPercentileKey:
    """Test summary key naming for percentiles"""

    def test_integral_percentile(self):
        assert percentile_key(95) == "95th"
        assert percentile_key(50.0) == "50th"

    def test_fractional_percentile(self):
        assert percentile_key(99.5) == "99.50th"
        assert percentile_key(99.9) == "99.90th"


class TestSummarize:
    """Test min/max/avg/last summary"""

    def test_basic_summary(self):
        """min/max/avg/last over plain values"""
        series = make_series([3.0, 1.0, 2.0])
        series.summarize()

        assert series.summary == {"min": 1.0, "max": 3.0, "avg": 2.0, "last": 2.0}

    def test_nan_ignored_for_extremes_and_average(self):
        """NaN values are skipped by min/max/avg"""
        series = make_series([NAN, 4.0, NAN, 2.0])
        series.summarize()

        assert series.summary["min"] == 2.0
        assert series.summary["max"] == 4.0
        assert series.summary["avg"] == 3.0

    def test_last_is_final_plot_even_when_nan(self):
        """last reports the final plot whatever its value"""
        series = make_series([1.0, NAN])
        series.summarize()

        assert math.isnan(series.summary["last"])

    def test_all_nan_average_is_nan(self):
        """avg over no valid value is NaN, never zero"""
        series = make_series([NAN, NAN])
        series.summarize()

        assert math.isnan(series.summary["avg"])
        assert math.isnan(series.summary["min"])

    def test_empty_series_has_no_last(self):
        """An empty series has no last value"""
        series = Series(name="empty")
        series.summarize()

        assert "last" not in series.summary
        assert math.isnan(series.summary["avg"])

    def test_summarize_is_deterministic(self):
        """Repeated summaries of the same input are identical"""
        values = [5.0, NAN, 1.0, 7.0, 3.0]
        first, second = make_series(values), make_series(values)
        first.summarize([50, 90])
        second.summarize([50, 90])

        assert first.summary == second.summary


class TestPercentiles:
    """Test linear interpolation between closest ranks"""

    def test_median_interpolates_between_ranks(self):
        """p50 over [10,20,30,40]: rank 2.5 -> 25"""
        series = make_series([40.0, 10.0, 30.0, 20.0])
        series.percentiles([50])

        assert series.summary["50th"] == pytest.approx(25.0)

    def test_zero_percentile_is_minimum(self):
        series = make_series([7.0, 3.0, 9.0])
        series.percentiles([0])

        assert series.summary["0th"] == 3.0

    def test_hundredth_percentile_is_maximum(self):
        series = make_series([7.0, 3.0, 9.0])
        series.percentiles([100])

        assert series.summary["100th"] == 9.0

    def test_small_rank_clamps_to_minimum(self):
        """0 < rank < 1 returns the first order statistic"""
        series = make_series([10.0, 20.0, 30.0])
        series.percentiles([10])  # rank 0.4

        assert series.summary["10th"] == 10.0

    def test_large_rank_clamps_to_maximum(self):
        """rank beyond N returns the last order statistic"""
        series = make_series([10.0, 20.0, 30.0])
        series.percentiles([90])  # rank 3.6

        assert series.summary["90th"] == 30.0

    def test_nan_values_are_excluded(self):
        series = make_series([NAN, 10.0, NAN, 20.0, 30.0, 40.0])
        series.percentiles([50])

        assert series.summary["50th"] == pytest.approx(25.0)

    def test_no_valid_values_writes_no_key(self):
        series = make_series([NAN, NAN])
        series.percentiles([50])

        assert "50th" not in series.summary

    def test_fractional_percentile_key(self):
        series = make_series([1.0, 2.0, 3.0, 4.0])
        series.summarize([99.5])

        assert "99.50th" in series.summary


class TestScale:
    """Test in-place scaling"""

    def test_scale_multiplies_values(self):
        series = make_series([1.0, 2.0])
        series.scale(8)

        assert [p.value for p in series.plots] == [8.0, 16.0]

    def test_scale_leaves_nan_untouched(self):
        series = make_series([NAN, 2.0])
        series.scale(float("inf"))

        assert math.isnan(series.plots[0].value)
        assert series.plots[1].value == float("inf")

    def test_scale_then_inverse_restores_values(self):
        values = [1.5, NAN, -3.25, 1e6]
        series = make_series(values)
        series.scale(3)
        series.scale(1 / 3)

        for plot, original in zip(series.plots, values):
            if math.isnan(original):
                assert plot.is_nan()
            else:
                assert plot.value == pytest.approx(original)


class TestDownsample:
    """Test self-consolidation"""

    def test_downsample_replaces_plots_and_step(self):
        series = make_series([1.0, 2.0, 3.0, 4.0], start=0, step=10)
        series.downsample(0, 40, 2, ConsolidationType.AVERAGE)

        assert [p.value for p in series.plots] == [1.5, 3.5]
        assert series.step == 20
        assert series.name == "s"

    def test_downsample_with_max(self):
        series = make_series([1.0, 5.0, 3.0, 2.0], start=0, step=10)
        series.downsample(0, 40, 2, ConsolidationType.MAX)

        assert [p.value for p in series.plots] == [5.0, 3.0]
