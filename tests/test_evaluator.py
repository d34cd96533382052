"""
Tests for hit counting, ticket entropy and run accumulators.
"""

import math
from fractions import Fraction

import pytest

from astrosena.errors import MergeMismatchError
from astrosena.evaluator import RunAccumulator, count_hits, ticket_entropy


class TestTicketScoring:
    """Test suite for count_hits and ticket_entropy."""

    def test_count_hits(self):
        """Test the intersection size."""
        assert count_hits([1, 2, 3, 4, 5, 6], [4, 5, 6, 7, 8, 9]) == 3
        assert count_hits([1, 2, 3, 4, 5, 6], [10, 20, 30, 40, 50, 60]) == 0

    def test_entropy_six_bins(self):
        """Test that one number per decade gives log2(6)."""
        assert ticket_entropy([1, 11, 21, 31, 41, 51]) == pytest.approx(round(math.log2(6), 3))
        assert ticket_entropy([10, 20, 30, 40, 50, 60]) == 2.585

    def test_entropy_single_bin(self):
        """Test that a ticket in one decade has zero entropy."""
        assert ticket_entropy([1, 2, 3, 4, 5, 6]) == 0.0
        assert ticket_entropy([51, 52, 55, 57, 59, 60]) == 0.0

    def test_entropy_two_bins(self):
        """Test an even split over two decades."""
        assert ticket_entropy([1, 2, 3, 11, 12, 13]) == 1.0

    def test_entropy_is_bounded(self):
        """Test the entropy range."""
        value = ticket_entropy([1, 2, 15, 33, 34, 59])

        assert 0.0 <= value <= 2.585


class TestRunAccumulator:
    """Test suite for RunAccumulator."""

    def test_add_draw_and_rates(self):
        """Test counters and derived rates."""
        acc = RunAccumulator()
        acc.add_draw(3, 1.5)
        acc.add_draw(1, 0.5)
        acc.add_draw(2, 1.0)

        assert acc.counters() == {
            "bestSum": 6, "avgSum": 3.0, "avgSumExact": "3/1", "count": 3, "atLeast2": 2, "atLeast3": 1,
        }
        assert acc.avg_best_hits == pytest.approx(2.0)
        assert acc.avg_avg_hits == pytest.approx(1.0)
        assert acc.pct_at_least_2 == pytest.approx(2 / 3)
        assert acc.pct_at_least_3 == pytest.approx(1 / 3)

    def test_empty_rates_are_zero(self):
        """Test that an accumulator without draws reports zeros."""
        assert RunAccumulator().rates() == {
            "avgBestHits": 0.0,
            "avgAvgHits": 0.0,
            "pctAtLeast2": 0.0,
            "pctAtLeast3": 0.0,
        }

    def test_addition_sums_counters(self):
        """Test that adding accumulators sums every counter."""
        total = RunAccumulator(12, 6.0, 4, 3, 1) + RunAccumulator(4, 2.0, 12, 1, 0)

        assert total == RunAccumulator(16, 8.0, 16, 4, 1)
        assert total.avg_best_hits == 1.0

    def test_from_counters_round_trip(self):
        """Test rebuilding from serialized counters."""
        acc = RunAccumulator(7, 2.5, 5, 3, 1)

        assert RunAccumulator.from_counters(acc.counters()) == acc

    def test_from_counters_ignores_rates(self):
        """Test that stale rates in the payload do not matter."""
        data = {"bestSum": 4, "avgSum": 2.0, "count": 2, "atLeast2": 1, "atLeast3": 0, "avgBestHits": 99.0}

        assert RunAccumulator.from_counters(data).avg_best_hits == 2.0

    def test_from_counters_missing_field(self):
        """Test that rates without counters cannot be rebuilt."""
        with pytest.raises(MergeMismatchError):
            RunAccumulator.from_counters({"avgBestHits": 1.2, "count": 10})

    def test_from_counters_non_numeric(self):
        """Test that garbage counters are rejected."""
        data = {"bestSum": "x", "avgSum": 1.0, "count": 1, "atLeast2": 0, "atLeast3": 0}
        with pytest.raises(MergeMismatchError):
            RunAccumulator.from_counters(data)

    def test_from_counters_negative(self):
        """Test that negative counts are rejected."""
        data = {"bestSum": 1, "avgSum": 1.0, "count": -1, "atLeast2": 0, "atLeast3": 0}
        with pytest.raises(MergeMismatchError):
            RunAccumulator.from_counters(data)

    def test_average_sum_is_exact(self):
        """Test that per-draw averages in tenths accumulate without rounding."""
        acc = RunAccumulator()
        for hits in (1, 2, 3):
            acc.add_draw(1, Fraction(hits, 10))

        assert acc.avg_sum == Fraction(3, 5)
        assert acc.counters()["avgSum"] == 0.6
        assert acc.counters()["avgSumExact"] == "3/5"

    def test_from_counters_prefers_exact_sum(self):
        """Test that the exact sum wins over the rounded float."""
        data = {"bestSum": 3, "avgSum": 0.3333, "avgSumExact": "1/3", "count": 1, "atLeast2": 1, "atLeast3": 1}

        assert RunAccumulator.from_counters(data).avg_sum == Fraction(1, 3)

    def test_from_counters_reads_float_sum_as_decimal(self):
        """Test that a float avgSum of 0.1 is read as one tenth."""
        data = {"bestSum": 1, "avgSum": 0.1, "count": 1, "atLeast2": 0, "atLeast3": 0}

        assert RunAccumulator.from_counters(data).avg_sum == Fraction(1, 10)

    @pytest.mark.parametrize("field", ["bestSum", "count", "atLeast2", "atLeast3"])
    def test_from_counters_non_integral(self, field):
        """Test that fractional whole-number counters are rejected, not truncated."""
        data = {"bestSum": 4, "avgSum": 2.0, "count": 3, "atLeast2": 2, "atLeast3": 1}
        data[field] = data[field] + 0.5
        with pytest.raises(MergeMismatchError):
            RunAccumulator.from_counters(data)

    def test_from_counters_integral_floats_accepted(self):
        """Test that whole-valued floats are accepted."""
        data = {"bestSum": 4.0, "avgSum": 2.0, "count": 3.0, "atLeast2": 2.0, "atLeast3": 1.0}
        acc = RunAccumulator.from_counters(data)

        assert acc == RunAccumulator(4, 2.0, 3, 2, 1)
        assert isinstance(acc.count, int)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"atLeast3": 3},
            {"atLeast2": 4},
            {"bestSum": 2.0, "avgSum": 2.5},
            {"avgSum": -0.5},
            {"bestSum": 19},
        ],
    )
    def test_from_counters_inconsistent(self, overrides):
        """Test that counters contradicting each other are rejected."""
        data = {"bestSum": 4, "avgSum": 2.0, "count": 3, "atLeast2": 2, "atLeast3": 1}
        data.update(overrides)
        with pytest.raises(MergeMismatchError):
            RunAccumulator.from_counters(data)

    def test_from_counters_rejects_rates_above_one(self):
        """Test the case of atLeast counts larger than the draw count."""
        data = {"bestSum": 2.9, "avgSum": 1.0, "count": 1, "atLeast2": 5, "atLeast3": 9}
        with pytest.raises(MergeMismatchError):
            RunAccumulator.from_counters(data)
