"""
Fisher-Yates shuffling with an injectable randomness source.

Question and option randomization both need to know where every element went,
so ``shuffle`` returns the permutation alongside the shuffled items.
"""

from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass
from typing import Generic, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """Anything that can draw a uniform integer in ``[a, b]`` (``random.Random`` does)."""

    def randint(self, a: int, b: int) -> int:
        ...


@dataclass(frozen=True)
class ShuffleResult(Generic[T]):
    """Shuffled items and ``permutation[new_index] = old_index``."""

    items: tuple[T, ...]
    permutation: tuple[int, ...]

    def inverse(self) -> dict[int, int]:
        """Map each original index to its new position."""
        return {old: new for new, old in enumerate(self.permutation)}


def shuffle(sequence: Sequence[T], rng: RandomSource) -> ShuffleResult[T]:
    """
    Shuffle a sequence without touching it.

    Backward Fisher-Yates: for i from n-1 down to 1 draw j uniformly from
    [0, i] and swap. The input is copied first so callers holding the
    template list never see it reordered.
    """
    items = list(sequence)
    permutation = list(range(len(items)))

    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
        permutation[i], permutation[j] = permutation[j], permutation[i]

    return ShuffleResult(items=tuple(items), permutation=tuple(permutation))


def create_seed(seed: str | int) -> int:
    """Create a reproducible integer seed from string or int."""
    if isinstance(seed, int):
        return seed

    hash_bytes = hashlib.sha256(str(seed).encode()).digest()
    return int.from_bytes(hash_bytes[:8], byteorder="big")


def seeded_rng(seed: str | int | None = None) -> random.Random:
    """Build a private ``random.Random``; module-level random state is untouched."""
    if seed is None:
        return random.Random()
    return random.Random(create_seed(seed))
