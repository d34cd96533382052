"""
Adaptive Blending for astrosena
===============================

Learns, draw after draw, how well each predictive component (frequency,
recency, astro similarity) would have done on its own and blends the
components proportionally to that decayed accuracy.

Key Components:
- ScoreState: decayed per-component accuracy, owned by a single run
- AdaptiveBlender: turns component vectors into one sampling distribution
- classify_hot_cold / apply_hot_cold: multiplicative hot/cold adjustment
"""
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np
from loguru import logger

from astrosena.config import DOMAIN_SIZE, INITIAL_SCORE, NUMBERS, SCORE_DECAY
from astrosena.models import Draw
from astrosena.weight_components import ComponentWeights, top_six_hits

COMPONENT_NAMES: Tuple[str, ...] = ("freq", "recency", "astro")


def normalize(weights: np.ndarray) -> np.ndarray:
    """
    Divides by the vector sum. An all-zero vector becomes the uniform
    distribution, so the result always sums to 1.
    """
    weights = np.asarray(weights, dtype=float)
    total = weights.sum()
    if total <= 0:
        return np.full(weights.shape, 1.0 / weights.size)
    return weights / total


@dataclass(frozen=True)
class HotColdSets:
    hot: Tuple[int, ...]
    cold: Tuple[int, ...]


def classify_hot_cold(window: Sequence[Draw], lookback: int) -> HotColdSets:
    """Numbers seen in the last `lookback` draws of the window are hot, the rest cold."""
    recent = window[-lookback:] if lookback > 0 else window
    seen = set()
    for draw in recent:
        seen.update(draw.numbers)
    hot = tuple(sorted(seen))
    cold = tuple(n for n in NUMBERS if n not in seen)
    return HotColdSets(hot=hot, cold=cold)


def apply_hot_cold(weights: np.ndarray, sets: HotColdSets, hot_boost: float, cold_boost: float) -> np.ndarray:
    adjusted = np.array(weights, dtype=float)
    if sets.hot:
        adjusted[np.asarray(sets.hot) - 1] *= 1.0 + hot_boost
    if sets.cold:
        adjusted[np.asarray(sets.cold) - 1] *= 1.0 + cold_boost
    return normalize(adjusted)


@dataclass
class ScoreState:
    """Decayed standalone accuracy of each predictive component."""

    freq: float = INITIAL_SCORE
    recency: float = INITIAL_SCORE
    astro: float = INITIAL_SCORE

    def update(self, hits: Dict[str, int], decay: float = SCORE_DECAY) -> None:
        self.freq = self.freq * decay + hits["freq"]
        self.recency = self.recency * decay + hits["recency"]
        self.astro = self.astro * decay + hits["astro"]

    def coefficients(self) -> Dict[str, float]:
        total = self.freq + self.recency + self.astro
        return {
            "freq": self.freq / total,
            "recency": self.recency / total,
            "astro": self.astro / total,
        }

    def reset(self) -> None:
        self.freq = self.recency = self.astro = INITIAL_SCORE


@dataclass(frozen=True)
class BlendOutcome:
    weights: np.ndarray
    coefficients: Dict[str, float]
    hits: Dict[str, int]


class AdaptiveBlender:
    """
    Owns one ScoreState for the lifetime of a run. Not meant to be shared
    between runs; create one blender per backtest or prediction.
    """

    def __init__(self, explore: float, hot_boost: float, cold_boost: float, decay: float = SCORE_DECAY):
        self.explore = explore
        self.hot_boost = hot_boost
        self.cold_boost = cold_boost
        self.decay = decay
        self.state = ScoreState()

    def observe(self, components: ComponentWeights, actual: Sequence[int]) -> Dict[str, int]:
        """Scores each component's top six against the true numbers and updates the state."""
        hits = {
            name: top_six_hits(vector, actual)
            for name, vector in zip(COMPONENT_NAMES, components.predictive())
        }
        self.state.update(hits, self.decay)
        logger.debug(f"Component hits {hits} -> state {self.state}")
        return hits

    def coefficients(self) -> Dict[str, float]:
        return self.state.coefficients()

    def blend(self, components: ComponentWeights, sets: HotColdSets) -> np.ndarray:
        """Mixes the components with the current coefficients, explores, then adjusts hot/cold."""
        coeff = self.coefficients()
        mixed = np.zeros(DOMAIN_SIZE, dtype=float)
        for name, vector in zip(COMPONENT_NAMES, components.predictive()):
            mixed += coeff[name] * vector

        blended = normalize(mixed) * (1.0 - self.explore) + normalize(components.base) * self.explore
        return apply_hot_cold(blended, sets, self.hot_boost, self.cold_boost)

    def step(self, components: ComponentWeights, actual: Sequence[int], sets: HotColdSets) -> BlendOutcome:
        """
        One backtest step: the state absorbs this draw's hits before the
        coefficients used for this draw are derived.
        """
        hits = self.observe(components, actual)
        weights = self.blend(components, sets)
        return BlendOutcome(weights=weights, coefficients=self.coefficients(), hits=hits)
