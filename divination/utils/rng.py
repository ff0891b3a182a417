"""Random helpers for shuffling and orientation.

Presentation-grade randomness only. A seed is accepted so tests can reproduce a
draw; production draws use an unseeded random.Random.
"""

import hashlib
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def seeded_random(seed: str, salt: str = "") -> random.Random:
    """Create a deterministic random.Random instance from seed and optional salt.

    Args:
        seed: Base seed string
        salt: Optional salt to modify the seed (e.g., reading_id)

    Returns:
        random.Random instance that will produce deterministic sequences
    """
    combined = f"{seed}{salt}"
    hash_obj = hashlib.sha256(combined.encode("utf-8"))
    int_seed = int(hash_obj.hexdigest(), 16)

    # Mask to fit within Python's random seed range
    int_seed = int_seed & ((1 << 31) - 1)

    return random.Random(int_seed)


def get_rng(rng: Optional[random.Random] = None) -> random.Random:
    return rng if rng is not None else random.Random()


def fisher_yates(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a uniformly shuffled copy of items."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def bernoulli(rng: random.Random, p: float) -> bool:
    return rng.random() < p


def weighted_choice(rng: random.Random, values: Sequence[T], weights: Sequence[int]) -> T:
    """Pick one value with integer weights, e.g. yarrow-stalk line odds."""
    total = sum(weights)
    roll = rng.randrange(total)
    for value, weight in zip(values, weights):
        if roll < weight:
            return value
        roll -= weight
    raise ValueError("weights must be positive")
