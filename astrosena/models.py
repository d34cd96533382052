"""
Record types shared by the astrosena engine.

Draws and their feature bags are immutable once loaded. Predictor parameters
and run settings validate themselves on construction, so a bad value fails
before any computation starts.
"""
import datetime as dt
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from astrosena.config import (
    DEFAULT_ASTRO_WEIGHTS,
    DEFAULT_MIN_HISTORY,
    DEFAULT_SEED,
    DEFAULT_TICKETS_PER_DRAW,
    DOMAIN_SIZE,
    TICKET_SIZE,
)
from astrosena.errors import InvalidInputError

FEATURE_NAMES: Tuple[str, ...] = (
    "lunar_phase",
    "moon_sign",
    "sun_sign",
    "dominant_element",
    "weekday_index",
    "date_digital_root",
    "id_digital_root",
)

_FEATURE_ALIASES: Dict[str, str] = {
    "lunarPhase": "lunar_phase",
    "moonSign": "moon_sign",
    "sunSign": "sun_sign",
    "dominantElement": "dominant_element",
    "weekdayIndex": "weekday_index",
    "dateDigitalRoot": "date_digital_root",
    "idDigitalRoot": "id_digital_root",
}

_TEXT_FEATURES = {"lunar_phase", "moon_sign", "sun_sign", "dominant_element"}


def validate_numbers(values: Iterable[Any], label: str = "draw") -> Tuple[int, ...]:
    """Returns the numbers as a tuple of ints or raises InvalidInputError."""
    numbers = []
    for value in values:
        if isinstance(value, bool):
            raise InvalidInputError(f"{label}: {value!r} is not a lottery number")
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"{label}: {value!r} is not a lottery number") from exc
        if number != value and not isinstance(value, str):
            raise InvalidInputError(f"{label}: {value!r} is not an integer")
        numbers.append(number)

    if len(numbers) != TICKET_SIZE:
        raise InvalidInputError(f"{label}: expected {TICKET_SIZE} numbers, got {len(numbers)}")
    if len(set(numbers)) != TICKET_SIZE:
        raise InvalidInputError(f"{label}: numbers must be distinct, got {numbers}")
    if not all(1 <= n <= DOMAIN_SIZE for n in numbers):
        raise InvalidInputError(f"{label}: numbers must be between 1 and {DOMAIN_SIZE}, got {numbers}")
    return tuple(numbers)


@dataclass(frozen=True)
class DrawFeatures:
    """Categorical annotation attached to a draw by the enrichment step."""

    lunar_phase: Optional[str] = None
    moon_sign: Optional[str] = None
    sun_sign: Optional[str] = None
    dominant_element: Optional[str] = None
    weekday_index: Optional[int] = None
    date_digital_root: Optional[int] = None
    id_digital_root: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "DrawFeatures":
        """Builds a feature bag from flat snake_case or camelCase keys."""
        if not data:
            return cls()
        values = {}
        for key, value in data.items():
            name = _FEATURE_ALIASES.get(key, key)
            if name in FEATURE_NAMES:
                values[name] = value
        return cls(**values)

    def matches(self, other: "DrawFeatures") -> Tuple[bool, ...]:
        """
        Compares the seven features one by one. A missing value on this side
        never matches; empty labels count as missing.
        """
        result = []
        for name in FEATURE_NAMES:
            mine = getattr(self, name)
            theirs = getattr(other, name)
            if name in _TEXT_FEATURES:
                result.append(bool(mine) and mine == theirs)
            else:
                result.append(mine is not None and mine == theirs)
        return tuple(result)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "lunarPhase": self.lunar_phase,
            "moonSign": self.moon_sign,
            "sunSign": self.sun_sign,
            "dominantElement": self.dominant_element,
            "weekdayIndex": self.weekday_index,
            "dateDigitalRoot": self.date_digital_root,
            "idDigitalRoot": self.id_digital_root,
        }


@dataclass(frozen=True)
class Draw:
    """One historical outcome: 6 distinct numbers in [1, 60] plus features."""

    id: int
    date: Optional[dt.date]
    numbers: Tuple[int, ...]
    features: DrawFeatures = field(default_factory=DrawFeatures)

    def __post_init__(self):
        object.__setattr__(self, "numbers", validate_numbers(self.numbers, label=f"draw {self.id}"))
        if self.features is None:
            object.__setattr__(self, "features", DrawFeatures())


@dataclass(frozen=True)
class PredictorParams:
    """The six tunable parameters of the weighting pipeline."""

    window_size: int
    half_life: float
    explore: float
    hot_boost: float
    cold_boost: float
    cold_window: int

    def __post_init__(self):
        if isinstance(self.window_size, bool) or int(self.window_size) != self.window_size or self.window_size < 1:
            raise InvalidInputError(f"window_size must be a positive integer, got {self.window_size!r}")
        if not math.isfinite(self.half_life) or self.half_life <= 0:
            raise InvalidInputError(f"half_life must be > 0, got {self.half_life!r}")
        if not 0.0 <= self.explore <= 1.0:
            raise InvalidInputError(f"explore must be within [0, 1], got {self.explore!r}")
        if not self.hot_boost > -1.0:
            raise InvalidInputError(f"hot_boost must be > -1, got {self.hot_boost!r}")
        if not self.cold_boost > -1.0:
            raise InvalidInputError(f"cold_boost must be > -1, got {self.cold_boost!r}")
        if isinstance(self.cold_window, bool) or int(self.cold_window) != self.cold_window or self.cold_window < 1:
            raise InvalidInputError(f"cold_window must be a positive integer, got {self.cold_window!r}")

    def identity(self) -> Tuple[Any, ...]:
        return (
            self.window_size,
            self.half_life,
            self.explore,
            self.hot_boost,
            self.cold_boost,
            self.cold_window,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "windowSize": self.window_size,
            "halfLife": self.half_life,
            "explore": self.explore,
            "hotBoost": self.hot_boost,
            "coldBoost": self.cold_boost,
            "coldWindow": self.cold_window,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PredictorParams":
        try:
            return cls(
                window_size=int(data["windowSize"]),
                half_life=data["halfLife"],
                explore=data["explore"],
                hot_boost=data["hotBoost"],
                cold_boost=data["coldBoost"],
                cold_window=int(data["coldWindow"]),
            )
        except KeyError as exc:
            raise InvalidInputError(f"Missing predictor parameter: {exc.args[0]}") from exc


@dataclass(frozen=True)
class RunSettings:
    """
    Settings of one backtest invocation that are not tuned.

    `start_idx` / `end_idx` restrict the evaluated target indices so a run
    can be split into partitions; `None` means "from min_history" and
    "to the end of the loaded sequence".
    """

    tickets_per_draw: int = DEFAULT_TICKETS_PER_DRAW
    min_history: int = DEFAULT_MIN_HISTORY
    stride: int = 1
    seed: int = DEFAULT_SEED
    start_idx: Optional[int] = None
    end_idx: Optional[int] = None
    astro_weights: Tuple[float, ...] = DEFAULT_ASTRO_WEIGHTS

    def __post_init__(self):
        if self.tickets_per_draw < 1:
            raise InvalidInputError(f"tickets_per_draw must be >= 1, got {self.tickets_per_draw}")
        if self.min_history < 0:
            raise InvalidInputError(f"min_history must be >= 0, got {self.min_history}")
        if self.stride < 1:
            raise InvalidInputError(f"stride must be >= 1, got {self.stride}")
        if self.start_idx is not None and self.start_idx < 0:
            raise InvalidInputError(f"start_idx must be >= 0, got {self.start_idx}")
        if self.end_idx is not None and self.end_idx < 0:
            raise InvalidInputError(f"end_idx must be >= 0, got {self.end_idx}")
        weights = tuple(float(w) for w in self.astro_weights)
        if len(weights) != len(FEATURE_NAMES) or any(w < 0 for w in weights):
            raise InvalidInputError(
                f"astro_weights needs {len(FEATURE_NAMES)} non-negative values, got {self.astro_weights}"
            )
        object.__setattr__(self, "astro_weights", weights)

    def target_indices(self, total_draws: int) -> range:
        """Resolves the index range against the loaded sequence length."""
        start = self.min_history if self.start_idx is None else self.start_idx
        end = total_draws if self.end_idx is None else self.end_idx
        return range(max(self.min_history, start), min(total_draws, end), self.stride)
