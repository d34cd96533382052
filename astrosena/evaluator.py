"""
Ticket scoring and run-level accumulators.

Rates (average best hits, share of draws with at least 2 or 3 hits) are
always derived from raw counters. Counters are what gets summed when runs
over different partitions are combined; rates are never averaged.
"""
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict, Iterable, Mapping, Sequence, Union

import numpy as np
from scipy.stats import entropy

from astrosena.config import ENTROPY_BIN_COUNT, ENTROPY_BIN_WIDTH, TICKET_SIZE
from astrosena.errors import MergeMismatchError

COUNTER_FIELDS = ("bestSum", "avgSum", "count", "atLeast2", "atLeast3")
_INTEGER_COUNTERS = ("bestSum", "count", "atLeast2", "atLeast3")


def count_hits(ticket: Iterable[int], actual: Iterable[int]) -> int:
    return len(set(ticket).intersection(actual))


def ticket_entropy(ticket: Sequence[int]) -> float:
    """
    Shannon entropy (bits) of the ticket over six bins of width 10,
    rounded to 3 decimals. Six numbers in six bins give log2(6).
    """
    bins = np.zeros(ENTROPY_BIN_COUNT, dtype=float)
    for n in ticket:
        bins[min(ENTROPY_BIN_COUNT - 1, (n - 1) // ENTROPY_BIN_WIDTH)] += 1
    if not bins.any():
        return 0.0
    return round(float(entropy(bins, base=2)), 3)


def _exact(value: Any) -> Fraction:
    """Exact rational for a counter; floats are read through their shortest repr so 0.1 is 1/10."""
    if isinstance(value, bool):
        raise TypeError(f"{value!r} is not a number")
    if isinstance(value, float):
        return Fraction(repr(value))
    return Fraction(value)


@dataclass
class RunAccumulator:
    """
    Summable counters of a backtest run.

    `avg_sum` is held as a Fraction: per-draw averages are multiples of
    1/tickets_per_draw, so float sums would depend on the order partitions
    are merged in.
    """

    best_sum: int = 0
    avg_sum: Fraction = Fraction(0)
    count: int = 0
    at_least_2: int = 0
    at_least_3: int = 0

    def __post_init__(self):
        self.avg_sum = _exact(self.avg_sum)

    def add_draw(self, best_hits: int, avg_hits: Union[Fraction, int, float]) -> None:
        self.best_sum += best_hits
        self.avg_sum += _exact(avg_hits)
        self.count += 1
        if best_hits >= 2:
            self.at_least_2 += 1
        if best_hits >= 3:
            self.at_least_3 += 1

    def __add__(self, other: "RunAccumulator") -> "RunAccumulator":
        if not isinstance(other, RunAccumulator):
            return NotImplemented
        return RunAccumulator(
            best_sum=self.best_sum + other.best_sum,
            avg_sum=self.avg_sum + other.avg_sum,
            count=self.count + other.count,
            at_least_2=self.at_least_2 + other.at_least_2,
            at_least_3=self.at_least_3 + other.at_least_3,
        )

    def _rate(self, numerator) -> float:
        return float(numerator / self.count) if self.count else 0.0

    @property
    def avg_best_hits(self) -> float:
        return self._rate(self.best_sum)

    @property
    def avg_avg_hits(self) -> float:
        return self._rate(self.avg_sum)

    @property
    def pct_at_least_2(self) -> float:
        return self._rate(self.at_least_2)

    @property
    def pct_at_least_3(self) -> float:
        return self._rate(self.at_least_3)

    def rates(self) -> Dict[str, float]:
        return {
            "avgBestHits": self.avg_best_hits,
            "avgAvgHits": self.avg_avg_hits,
            "pctAtLeast2": self.pct_at_least_2,
            "pctAtLeast3": self.pct_at_least_3,
        }

    def counters(self) -> Dict[str, Any]:
        return {
            "bestSum": self.best_sum,
            "avgSum": float(self.avg_sum),
            "avgSumExact": f"{self.avg_sum.numerator}/{self.avg_sum.denominator}",
            "count": self.count,
            "atLeast2": self.at_least_2,
            "atLeast3": self.at_least_3,
        }

    @classmethod
    def from_counters(cls, data: Mapping[str, Any]) -> "RunAccumulator":
        """
        Rebuilds an accumulator from serialized counters; derived rates are
        ignored. `avgSumExact` wins over the float `avgSum` when present.
        Counters that are not whole numbers or contradict each other raise
        MergeMismatchError.
        """
        missing = [name for name in COUNTER_FIELDS if data.get(name) is None]
        if missing:
            raise MergeMismatchError(f"Result is missing raw counters {missing}; rates alone cannot be merged")
        try:
            whole = {name: _exact(data[name]) for name in _INTEGER_COUNTERS}
            avg_sum = _exact(data.get("avgSumExact") or data["avgSum"])
        except (TypeError, ValueError, ZeroDivisionError) as exc:
            raise MergeMismatchError(f"Counters are not numeric: {exc}") from exc

        fractional = [name for name, value in whole.items() if value.denominator != 1]
        if fractional:
            raise MergeMismatchError(f"Counters {fractional} must be whole numbers: {dict(data)}")
        best_sum, count = whole["bestSum"], whole["count"]
        at_least_2, at_least_3 = whole["atLeast2"], whole["atLeast3"]
        if not 0 <= at_least_3 <= at_least_2 <= count:
            raise MergeMismatchError(f"Counters need 0 <= atLeast3 <= atLeast2 <= count: {dict(data)}")
        if not 0 <= avg_sum <= best_sum <= TICKET_SIZE * count:
            raise MergeMismatchError(f"Counters need 0 <= avgSum <= bestSum <= {TICKET_SIZE} * count: {dict(data)}")
        return cls(
            best_sum=int(best_sum),
            avg_sum=avg_sum,
            count=int(count),
            at_least_2=int(at_least_2),
            at_least_3=int(at_least_3),
        )
