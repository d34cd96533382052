"""
astrosena Tuning Harness
========================

Evaluates the backtest under many parameter configurations using three
search modes:
- grid: Cartesian product of discrete value lists
- candidates: a short list of named, hand-picked configurations
- random: uniformly drawn configurations from fixed ranges

Every configuration gets its own seed offset (grid 0.., candidates 1000..,
random 2000..), so no two configurations of one tuning run share a ticket
stream and configurations can be evaluated in any order or in parallel.
"""
import itertools
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from astrosena.backtest import BacktestRunner
from astrosena.config import (
    CANDIDATE_SEED_BASE,
    DEFAULT_ASTRO_WEIGHTS,
    DEFAULT_MIN_HISTORY,
    DEFAULT_RANDOM_TRIALS,
    DEFAULT_TICKETS_PER_DRAW,
    DEFAULT_TUNING_SEED,
    GRID_SEED_BASE,
    RANDOM_SEED_BASE,
)
from astrosena.errors import InvalidInputError
from astrosena.evaluator import RunAccumulator
from astrosena.models import Draw, PredictorParams, RunSettings

SEARCH_GROUPS: Tuple[str, ...] = ("grid", "candidates", "random")


@dataclass(frozen=True)
class TuningResult:
    """A named configuration with the raw counters of its backtest."""

    name: str
    params: PredictorParams
    stats: RunAccumulator
    seed_offset: Optional[int] = None

    def key(self) -> Tuple[Any, ...]:
        """Identity used when merging partitions: name plus the six parameters."""
        return (self.name,) + self.params.identity()

    @property
    def avg_best_hits(self) -> float:
        return self.stats.avg_best_hits

    @property
    def avg_avg_hits(self) -> float:
        return self.stats.avg_avg_hits

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "params": self.params.as_dict()}
        if self.seed_offset is not None:
            data["seedOffset"] = self.seed_offset
        data.update(self.stats.rates())
        data.update(self.stats.counters())
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TuningResult":
        params_data = data.get("params") or data
        return cls(
            name=data.get("name") or "",
            params=PredictorParams.from_dict(params_data),
            stats=RunAccumulator.from_counters(data),
            seed_offset=data.get("seedOffset"),
        )


def sort_results(results: Sequence[TuningResult]) -> List[TuningResult]:
    """Descending by avgBestHits, ties broken descending by avgAvgHits."""
    return sorted(results, key=lambda r: (-r.avg_best_hits, -r.avg_avg_hits))


@dataclass
class TuningReport:
    summary: Dict[str, Any]
    grid: List[TuningResult] = field(default_factory=list)
    candidates: List[TuningResult] = field(default_factory=list)
    random: List[TuningResult] = field(default_factory=list)

    def groups(self) -> Dict[str, List[TuningResult]]:
        return {"grid": self.grid, "candidates": self.candidates, "random": self.random}

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"summary": dict(self.summary)}
        for group, results in self.groups().items():
            data[group] = [r.as_dict() for r in results]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TuningReport":
        return cls(
            summary=dict(data.get("summary") or {}),
            **{group: [TuningResult.from_dict(r) for r in data.get(group) or []] for group in SEARCH_GROUPS},
        )


@dataclass(frozen=True)
class GridSpace:
    window_sizes: Tuple[int, ...] = (80, 120, 200)
    half_lives: Tuple[float, ...] = (10, 20, 30)
    explores: Tuple[float, ...] = (0.1, 0.2)
    hot_boosts: Tuple[float, ...] = (0.05, 0.1)
    cold_boosts: Tuple[float, ...] = (0.1, 0.2)
    cold_windows: Tuple[int, ...] = (15, 25)

    def configurations(self) -> List[PredictorParams]:
        product = itertools.product(
            self.window_sizes,
            self.half_lives,
            self.explores,
            self.hot_boosts,
            self.cold_boosts,
            self.cold_windows,
        )
        return [PredictorParams(*values) for values in product]


@dataclass(frozen=True)
class RandomSpace:
    """Half-open ranges [low, high) for each parameter."""

    window_size: Tuple[int, int] = (60, 260)
    half_life: Tuple[int, int] = (8, 38)
    explore: Tuple[float, float] = (0.05, 0.30)
    hot_boost: Tuple[float, float] = (0.03, 0.18)
    cold_boost: Tuple[float, float] = (0.05, 0.35)
    cold_window: Tuple[int, int] = (10, 40)

    def sample(self, rng: np.random.Generator) -> PredictorParams:
        def uniform(bounds: Tuple[float, float]) -> float:
            low, high = bounds
            return round(float(low + rng.random() * (high - low)), 3)

        return PredictorParams(
            window_size=int(rng.integers(*self.window_size)),
            half_life=int(rng.integers(*self.half_life)),
            explore=uniform(self.explore),
            hot_boost=uniform(self.hot_boost),
            cold_boost=uniform(self.cold_boost),
            cold_window=int(rng.integers(*self.cold_window)),
        )


DEFAULT_CANDIDATES: Tuple[Tuple[str, PredictorParams], ...] = (
    ("default", PredictorParams(100, 20, 0.15, 0.1, 0.2, 20)),
    ("low_explore", PredictorParams(120, 20, 0.08, 0.1, 0.18, 20)),
    ("large_window", PredictorParams(220, 25, 0.12, 0.08, 0.18, 25)),
    ("fast_decay", PredictorParams(100, 12, 0.18, 0.12, 0.2, 15)),
    ("cold_bias", PredictorParams(120, 20, 0.12, 0.05, 0.3, 25)),
)


@dataclass(frozen=True)
class TuningSettings:
    tickets_per_draw: int = DEFAULT_TICKETS_PER_DRAW
    min_history: int = DEFAULT_MIN_HISTORY
    stride: int = 1
    seed: int = DEFAULT_TUNING_SEED
    start_idx: Optional[int] = None
    end_idx: Optional[int] = None
    random_trials: int = DEFAULT_RANDOM_TRIALS
    random_seed: int = DEFAULT_TUNING_SEED
    workers: int = 1
    astro_weights: Tuple[float, ...] = DEFAULT_ASTRO_WEIGHTS

    def __post_init__(self):
        if self.random_trials < 0:
            raise InvalidInputError(f"random_trials must be >= 0, got {self.random_trials}")
        if self.workers < 1:
            raise InvalidInputError(f"workers must be >= 1, got {self.workers}")
        # Validates the shared run fields up front.
        self.run_settings(0)

    def run_settings(self, seed_offset: int) -> RunSettings:
        return RunSettings(
            tickets_per_draw=self.tickets_per_draw,
            min_history=self.min_history,
            stride=self.stride,
            seed=self.seed + seed_offset,
            start_idx=self.start_idx,
            end_idx=self.end_idx,
            astro_weights=self.astro_weights,
        )

    def resolved(self, total_draws: int) -> "TuningSettings":
        """Fills start/end defaults once the sequence length is known."""
        return replace(
            self,
            start_idx=self.min_history if self.start_idx is None else self.start_idx,
            end_idx=total_draws if self.end_idx is None else self.end_idx,
        )


Job = Tuple[str, PredictorParams, int, RunSettings]

# History shared by every job of a worker process, set once by _init_worker.
_worker_draws: List[Draw] = []


def _init_worker(draws: List[Draw]) -> None:
    global _worker_draws
    _worker_draws = draws


def _evaluate(job: Job, draws: Sequence[Draw]) -> TuningResult:
    name, params, seed_offset, settings = job
    report = BacktestRunner(params, settings).run(draws, keep_records=False)
    return TuningResult(name=name, params=params, stats=report.stats, seed_offset=seed_offset)


def _evaluate_in_worker(job: Job) -> TuningResult:
    return _evaluate(job, _worker_draws)


class TuningHarness:
    """
    Drives BacktestRunner over grid, candidate and random configurations.
    """

    def __init__(
        self,
        draws: Sequence[Draw],
        settings: Optional[TuningSettings] = None,
        grid: Optional[GridSpace] = None,
        candidates: Sequence[Tuple[str, PredictorParams]] = DEFAULT_CANDIDATES,
        random_space: Optional[RandomSpace] = None,
    ):
        self.draws = list(draws)
        self.settings = (settings or TuningSettings()).resolved(len(self.draws))
        self.grid = grid or GridSpace()
        self.candidates = list(candidates)
        self.random_space = random_space or RandomSpace()
        logger.info(
            f"TuningHarness initialized with {len(self.draws)} draws, "
            f"indices {self.settings.start_idx}..{self.settings.end_idx}"
        )

    def _evaluate_many(self, configs: Sequence[Tuple[str, PredictorParams, int]]) -> List[TuningResult]:
        jobs = [
            (name, params, offset, self.settings.run_settings(offset))
            for name, params, offset in configs
        ]
        if self.settings.workers > 1 and len(jobs) > 1:
            with ProcessPoolExecutor(
                max_workers=self.settings.workers, initializer=_init_worker, initargs=(self.draws,)
            ) as ex:
                return list(ex.map(_evaluate_in_worker, jobs))
        return [_evaluate(job, self.draws) for job in jobs]

    def grid_search(self) -> List[TuningResult]:
        configs = self.grid.configurations()
        if len(configs) > CANDIDATE_SEED_BASE - GRID_SEED_BASE:
            raise InvalidInputError(
                f"Grid has {len(configs)} configurations; at most {CANDIDATE_SEED_BASE - GRID_SEED_BASE} "
                "fit before the candidate seed offsets"
            )
        logger.info(f"Grid search over {len(configs)} configurations...")
        results = self._evaluate_many([("", p, GRID_SEED_BASE + i) for i, p in enumerate(configs)])
        return sort_results(results)

    def candidate_runs(self) -> List[TuningResult]:
        if len(self.candidates) > RANDOM_SEED_BASE - CANDIDATE_SEED_BASE:
            raise InvalidInputError(f"Too many candidates: {len(self.candidates)}")
        logger.info(f"Evaluating {len(self.candidates)} candidate configurations...")
        results = self._evaluate_many(
            [(name, p, CANDIDATE_SEED_BASE + i) for i, (name, p) in enumerate(self.candidates)]
        )
        return sort_results(results)

    def random_search(self) -> List[TuningResult]:
        rng = np.random.default_rng(self.settings.random_seed)
        configs = [
            ("", self.random_space.sample(rng), RANDOM_SEED_BASE + i) for i in range(self.settings.random_trials)
        ]
        logger.info(f"Random search with {len(configs)} trials (random_seed={self.settings.random_seed})...")
        return sort_results(self._evaluate_many(configs))

    def run_all(self) -> TuningReport:
        report = TuningReport(
            summary=self.summary(),
            grid=self.grid_search(),
            candidates=self.candidate_runs(),
            random=self.random_search(),
        )
        for group, results in report.groups().items():
            if results:
                best = results[0]
                logger.info(
                    f"Best {group}: {best.name or '-'} {best.params.as_dict()} "
                    f"avgBestHits={best.avg_best_hits:.4f} avgAvgHits={best.avg_avg_hits:.4f}"
                )
        return report

    def summary(self) -> Dict[str, Any]:
        s = self.settings
        return {
            "draws": len(self.draws),
            "minHistory": s.min_history,
            "ticketsPerDraw": s.tickets_per_draw,
            "stride": s.stride,
            "seed": s.seed,
            "randomTrials": s.random_trials,
            "randomSeed": s.random_seed,
            "startIdx": s.start_idx,
            "endIdx": s.end_idx,
        }
