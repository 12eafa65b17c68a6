"""Seeded pseudo-random source shared by pattern generation and RANSAC."""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")

_MULTIPLIER = 0x6C078965
_MASK_64 = (1 << 64) - 1


class RandomSource:
    """64-bit multiplicative linear-congruential generator.

    Output depends only on the seed and the sequence of calls, so two
    sources built from the same seed and driven identically produce the
    same values. Nothing is read from global entropy.
    """

    def __init__(self, seed: int) -> None:
        """Initialize the generator.

        Args:
            seed: Initial 64-bit state (reduced modulo 2**64)
        """
        self._state = int(seed) & _MASK_64

    def next(self) -> int:
        """Advance the state and return it."""
        self._state = (self._state * _MULTIPLIER + 1) & _MASK_64
        return self._state

    def range(self, minimum: float, maximum: float) -> float:
        """Return a uniform float in [minimum, maximum]."""
        unit = self.next() / _MASK_64
        return minimum + unit * (maximum - minimum)

    def choose_indices(self, length: int, n: int) -> list[int]:
        """Draw n distinct indices from [0, length)."""
        return choose_without_replacement(self, range(length), n)

    @property
    def state(self) -> int:
        """Return the current internal state."""
        return self._state


def choose_without_replacement(
    rng: RandomSource, sequence: Sequence[T], n: int
) -> list[T]:
    """Draw n distinct elements of a sequence.

    Each draw picks a uniformly random position in the remaining pool and
    removes it, so no element is returned twice. The order of the result
    is the draw order.

    Args:
        rng: Random source to consume
        sequence: Any indexable sequence
        n: Number of elements to draw

    Returns:
        List of n elements

    Raises:
        ValueError: If n is negative or larger than the sequence
    """
    if n < 0 or n > len(sequence):
        raise ValueError(f"Cannot choose {n} elements from a sequence of {len(sequence)}")

    pool = list(range(len(sequence)))
    chosen = []
    for _ in range(n):
        position = min(int(rng.range(0.0, 1.0) * len(pool)), len(pool) - 1)
        chosen.append(sequence[pool.pop(position)])
    return chosen
