"""
Deterministic linear-congruential generator.

Backtests and tuning runs must be reproducible bit for bit from an integer
seed, so the engine does not use numpy's or Python's global generators for
ticket sampling.
"""

LCG_MULTIPLIER: int = 1664525
LCG_INCREMENT: int = 1013904223
LCG_MODULUS: int = 2 ** 32


class LCG:
    """state = (A * state + C) mod 2**32, emitted as state / 2**32 in [0, 1)."""

    def __init__(self, seed: int):
        self.seed = int(seed) % LCG_MODULUS
        self._state = self.seed

    def next(self) -> float:
        self._state = (LCG_MULTIPLIER * self._state + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS

    def reset(self) -> None:
        self._state = self.seed

    def __iter__(self):
        return self

    def __next__(self) -> float:
        return self.next()

    def __repr__(self) -> str:
        return f"LCG(seed={self.seed})"
