"""
Sequential backtest of the adaptive weighting pipeline.

For every eligible target index the runner builds the trailing window,
computes the weight components, lets the blender absorb the target's hits,
samples tickets from the adjusted distribution and scores them against the
real numbers. One LCG stream, seeded once per run, feeds every ticket of
every draw, so a run is fully determined by its parameters and seed.
"""
import datetime as dt
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from astrosena.adaptive_blender import AdaptiveBlender, classify_hot_cold
from astrosena.evaluator import RunAccumulator, count_hits, ticket_entropy
from astrosena.models import Draw, PredictorParams, RunSettings
from astrosena.prng import LCG
from astrosena.sampler import weighted_sample
from astrosena.weight_components import build_window, compute_components


@dataclass(frozen=True)
class DrawRecord:
    """What the runner saw and produced for one target draw."""

    draw_id: int
    date: Optional[dt.date]
    actual: Tuple[int, ...]
    hot_numbers: Tuple[int, ...]
    cold_numbers: Tuple[int, ...]
    tickets: Tuple[Tuple[int, ...], ...]
    hits: Tuple[int, ...]
    entropies: Tuple[float, ...]
    best_hits: int
    avg_hits: float
    coefficients: Dict[str, float]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.draw_id,
            "date": self.date.isoformat() if self.date else None,
            "actual": list(self.actual),
            "hotNumbers": list(self.hot_numbers),
            "coldNumbers": list(self.cold_numbers),
            "tickets": [list(t) for t in self.tickets],
            "hits": list(self.hits),
            "entropies": list(self.entropies),
            "bestHits": self.best_hits,
            "avgHits": round(self.avg_hits, 3),
            "coeff": dict(self.coefficients),
        }


@dataclass
class BacktestReport:
    params: PredictorParams
    settings: RunSettings
    stats: RunAccumulator
    records: List[DrawRecord] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        summary = dict(self.params.as_dict())
        summary.update(
            {
                "ticketsPerDraw": self.settings.tickets_per_draw,
                "minHistory": self.settings.min_history,
                "stride": self.settings.stride,
                "seed": self.settings.seed,
                "totalDraws": self.stats.count,
            }
        )
        summary.update(self.stats.rates())
        return summary

    def as_dict(self) -> Dict[str, Any]:
        return {"summary": self.summary(), "results": [r.as_dict() for r in self.records]}


class BacktestRunner:
    """
    Runs one parameter configuration over a historical sequence.

    Each call to `run` starts from a fresh score state and a fresh LCG, so
    the runner can be reused, but one run must not be shared across threads.
    """

    def __init__(self, params: PredictorParams, settings: Optional[RunSettings] = None):
        self.params = params
        self.settings = settings or RunSettings()

    def run(self, draws: Sequence[Draw], keep_records: bool = True) -> BacktestReport:
        params, settings = self.params, self.settings
        rng = LCG(settings.seed)
        blender = AdaptiveBlender(params.explore, params.hot_boost, params.cold_boost)
        stats = RunAccumulator()
        records: List[DrawRecord] = []

        indices = settings.target_indices(len(draws))
        if len(indices) == 0:
            logger.warning(
                f"Not enough history for a backtest: {len(draws)} draws, min_history={settings.min_history}"
            )
            return BacktestReport(params=params, settings=settings, stats=stats, records=records)

        logger.info(
            f"Backtesting {params.as_dict()} over indices {indices.start}..{indices.stop - 1} "
            f"(stride {indices.step}, {settings.tickets_per_draw} tickets/draw, seed {settings.seed})"
        )

        for i in indices:
            target = draws[i]
            window = build_window(draws, i, params.window_size)
            components = compute_components(window, target.features, params.half_life, settings.astro_weights)
            sets = classify_hot_cold(window, params.cold_window)
            outcome = blender.step(components, target.numbers, sets)

            tickets = [
                tuple(weighted_sample(outcome.weights, rng)) for _ in range(settings.tickets_per_draw)
            ]
            hits = [count_hits(ticket, target.numbers) for ticket in tickets]
            best_hits = max(hits)
            avg_hits = Fraction(sum(hits), len(hits))
            stats.add_draw(best_hits, avg_hits)

            if keep_records:
                records.append(
                    DrawRecord(
                        draw_id=target.id,
                        date=target.date,
                        actual=target.numbers,
                        hot_numbers=sets.hot,
                        cold_numbers=sets.cold,
                        tickets=tuple(tickets),
                        hits=tuple(hits),
                        entropies=tuple(ticket_entropy(t) for t in tickets),
                        best_hits=best_hits,
                        avg_hits=float(avg_hits),
                        coefficients=outcome.coefficients,
                    )
                )
            logger.debug(f"Draw {target.id}: best={best_hits} avg={float(avg_hits):.3f} coeff={outcome.coefficients}")

        logger.info(
            f"Backtest complete: {stats.count} draws | avgBestHits={stats.avg_best_hits:.4f} "
            f"| avgAvgHits={stats.avg_avg_hits:.4f} | pctAtLeast2={stats.pct_at_least_2:.4f}"
        )
        return BacktestReport(params=params, settings=settings, stats=stats, records=records)


def run_backtest(
    draws: Sequence[Draw], params: PredictorParams, settings: Optional[RunSettings] = None
) -> BacktestReport:
    """Convenience wrapper for a single run with per-draw records."""
    return BacktestRunner(params, settings).run(draws)
