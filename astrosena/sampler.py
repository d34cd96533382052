"""
Weighted sampling without replacement.

Runs in plain Python on purpose: the cumulative scan and the summation order
must stay identical across platforms for a seeded backtest to be
reproducible.
"""
from typing import List, Optional, Sequence

from astrosena.config import NUMBERS, TICKET_SIZE
from astrosena.prng import LCG


def weighted_sample(
    weights: Sequence[float],
    rng: LCG,
    k: int = TICKET_SIZE,
    numbers: Optional[Sequence[int]] = None,
) -> List[int]:
    """
    Draws `k` distinct numbers, each pick proportional to its weight among
    the numbers still in the pool.

    Args:
        weights: Non-negative weights aligned with `numbers`; need not sum to 1.
        rng: Generator advanced once per pick.
        k: Picks to make. Fewer are returned only if the pool runs out.
        numbers: Candidate numbers, 1..60 by default.

    Returns:
        The picked numbers sorted ascending.
    """
    pool_numbers = list(NUMBERS if numbers is None else numbers)
    pool_weights = [float(w) for w in weights]
    if len(pool_weights) != len(pool_numbers):
        raise ValueError(f"Got {len(pool_weights)} weights for {len(pool_numbers)} numbers")

    picked = []
    while len(picked) < k and pool_numbers:
        total = sum(pool_weights)
        r = rng.next() * total
        idx = 0
        while idx < len(pool_weights):
            r -= pool_weights[idx]
            if r <= 0:
                break
            idx += 1
        # Rounding can leave r > 0 after the last item.
        chosen = min(idx, len(pool_numbers) - 1)
        picked.append(pool_numbers.pop(chosen))
        pool_weights.pop(chosen)
    return sorted(picked)
