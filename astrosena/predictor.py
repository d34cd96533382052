"""
Forward prediction for a draw that has not happened yet.

The adaptive coefficients are learned by replaying the whole history; the
components are then computed over the most recent window against the
synthetic target's features, and tickets are sampled from the blended,
hot/cold-adjusted distribution.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from astrosena.adaptive_blender import AdaptiveBlender, HotColdSets, classify_hot_cold
from astrosena.config import DEFAULT_PREDICTION_TICKETS
from astrosena.errors import InvalidInputError
from astrosena.evaluator import ticket_entropy
from astrosena.models import Draw, DrawFeatures, PredictorParams, RunSettings
from astrosena.prng import LCG
from astrosena.sampler import weighted_sample
from astrosena.weight_components import build_window, compute_components


@dataclass(frozen=True)
class Prediction:
    params: PredictorParams
    target: DrawFeatures
    coefficients: Dict[str, float]
    hot_cold: HotColdSets
    weights: np.ndarray
    tickets: Tuple[Tuple[int, ...], ...]
    entropies: Tuple[float, ...]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "config": self.params.as_dict(),
            "target": self.target.as_dict(),
            "coeff": dict(self.coefficients),
            "hotNumbers": list(self.hot_cold.hot),
            "coldNumbers": list(self.hot_cold.cold),
            "weights": [round(float(w), 6) for w in self.weights],
            "tickets": [list(t) for t in self.tickets],
            "entropies": list(self.entropies),
        }


def learn_blender(draws: Sequence[Draw], params: PredictorParams, settings: RunSettings) -> AdaptiveBlender:
    """Replays the score state over indices min_history..len(draws)-1."""
    blender = AdaptiveBlender(params.explore, params.hot_boost, params.cold_boost)
    for i in range(settings.min_history, len(draws)):
        target = draws[i]
        window = build_window(draws, i, params.window_size)
        components = compute_components(window, target.features, params.half_life, settings.astro_weights)
        blender.observe(components, target.numbers)
    return blender


def predict_next(
    draws: Sequence[Draw],
    target: DrawFeatures,
    params: PredictorParams,
    settings: Optional[RunSettings] = None,
    tickets_count: int = DEFAULT_PREDICTION_TICKETS,
) -> Prediction:
    """
    Generates tickets for the draw following `draws`.

    Args:
        draws: Full history, oldest first.
        target: Features of the future draw (its id digital root is unknown).
        params: Predictor parameters.
        settings: Seed, min_history and astro weights; tickets_per_draw is unused.
        tickets_count: Number of tickets to sample.
    """
    settings = settings or RunSettings()
    if tickets_count < 1:
        raise InvalidInputError(f"tickets_count must be >= 1, got {tickets_count}")
    if not draws:
        raise InvalidInputError("History is empty. Cannot generate a prediction.")

    logger.info(f"Predicting {tickets_count} tickets from {len(draws)} historical draws with {params.as_dict()}")
    blender = learn_blender(draws, params, settings)
    coeff = blender.coefficients()

    window = build_window(draws, len(draws), params.window_size)
    components = compute_components(window, target, params.half_life, settings.astro_weights)
    sets = classify_hot_cold(window, params.cold_window)
    weights = blender.blend(components, sets)

    rng = LCG(settings.seed)
    tickets: List[Tuple[int, ...]] = [tuple(weighted_sample(weights, rng)) for _ in range(tickets_count)]
    logger.info(f"Prediction coefficients: {coeff}")
    return Prediction(
        params=params,
        target=target,
        coefficients=coeff,
        hot_cold=sets,
        weights=weights,
        tickets=tuple(tickets),
        entropies=tuple(ticket_entropy(t) for t in tickets),
    )
