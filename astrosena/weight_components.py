"""
Per-number weight components computed over a historical window.

Vectors are numpy arrays of length 60 where position ``n - 1`` holds the
score of number ``n``.
"""
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from loguru import logger

from astrosena.config import DEFAULT_ASTRO_WEIGHTS, DOMAIN_SIZE, TICKET_SIZE
from astrosena.models import Draw, DrawFeatures


@dataclass(frozen=True)
class ComponentWeights:
    base: np.ndarray
    freq: np.ndarray
    recency: np.ndarray
    astro: np.ndarray

    def predictive(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """The three components that compete for blending weight."""
        return self.freq, self.recency, self.astro


def build_window(draws: Sequence[Draw], end_idx: int, size: int) -> Sequence[Draw]:
    """Trailing slice of at most `size` draws ending just before `end_idx`."""
    start = max(0, end_idx - size)
    return draws[start:end_idx]


def astro_similarity(
    target: DrawFeatures, other: DrawFeatures, weights: Sequence[float] = DEFAULT_ASTRO_WEIGHTS
) -> float:
    """Weighted count of features `other` shares with `target`."""
    return float(sum(w for w, hit in zip(weights, target.matches(other)) if hit))


def compute_components(
    window: Sequence[Draw],
    target: DrawFeatures,
    half_life: float,
    astro_weights: Sequence[float] = DEFAULT_ASTRO_WEIGHTS,
) -> ComponentWeights:
    """
    Computes the base, frequency, recency and astro-similarity vectors.

    Args:
        window: Draws ordered oldest first.
        target: Features of the draw being predicted.
        half_life: Decay constant; a draw of age ``a`` contributes
            ``exp(-a / half_life)`` to each of its numbers, the newest
            draw having age 1.
        astro_weights: Weight of each of the seven feature matches.

    Returns:
        ComponentWeights. An empty window yields all-zero predictive vectors.
    """
    base = np.ones(DOMAIN_SIZE, dtype=float)
    freq = np.zeros(DOMAIN_SIZE, dtype=float)
    recency = np.zeros(DOMAIN_SIZE, dtype=float)
    astro = np.zeros(DOMAIN_SIZE, dtype=float)

    length = len(window)
    for position, draw in enumerate(window):
        idx = np.fromiter((n - 1 for n in draw.numbers), dtype=int, count=TICKET_SIZE)
        age = length - position
        freq[idx] += 1.0
        recency[idx] += math.exp(-age / half_life)

        similarity = astro_similarity(target, draw.features, astro_weights)
        if similarity > 0:
            astro[idx] += similarity

    logger.debug(f"Computed weight components over a window of {length} draws")
    return ComponentWeights(base=base, freq=freq, recency=recency, astro=astro)


def top_six(weights: np.ndarray) -> np.ndarray:
    """
    Numbers of the six highest weights. Equal weights are ordered by
    ascending number.
    """
    order = np.argsort(-np.asarray(weights, dtype=float), kind="stable")
    return order[:TICKET_SIZE] + 1


def top_six_hits(weights: np.ndarray, actual: Sequence[int]) -> int:
    top = set(int(n) for n in top_six(weights))
    return sum(1 for n in actual if n in top)
