"""
Mulberry32 RNG - deterministic randomness for dungeon generation and combat.

Every random decision in a run (room layout, loot, enemy picks, dice rolls,
trap checks, puzzle shuffles) draws from a single Random instance created at
game start. Two instances built from the same seed produce identical
sequences forever, so a seed fully reproduces a playthrough.

The instance is passed explicitly to every function that needs randomness.
Call sites that may run before a session exists accept ``rng=None`` and use
resolve_rng(), which substitutes an unseeded instance.

Usage:
    rng = Random("my-dungeon-seed")
    roll = rng.next_int(1, 20)
    item = rng.choice(["sword", "shield", "potion"])
"""

from __future__ import annotations

import math
import os
from typing import List, MutableSequence, Optional, Sequence, TypeVar, Union

T = TypeVar("T")

MASK_32 = 0xFFFFFFFF
MULBERRY_INCREMENT = 0x6D2B79F5

RANDOM_STRING_CHARS = "abcdefghijklmnopqrstuvwxyz0123456789_-"


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, result as unsigned 32-bit."""
    return (a * b) & MASK_32


def seed_to_int(seed: Union[str, int]) -> int:
    """
    Convert a seed string or number to the 32-bit initial state.

    Strings are hashed with the classic ``h * 31 + c`` recurrence in signed
    32-bit arithmetic, then made positive.
    """
    if isinstance(seed, int):
        return seed & MASK_32

    h = 0
    for char in seed:
        h = ((h << 5) - h + ord(char)) & MASK_32
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


class Random:
    """
    Seeded random number generator (Mulberry32).

    Tracks a counter of raw draws so a save can restore the stream position.
    """

    def __init__(self, seed: Union[str, int], counter: int = 0):
        """
        Initialize with a seed.

        Args:
            seed: String (hashed) or integer seed
            counter: Number of draws to skip ahead (used when restoring saves)
        """
        self.seed = seed
        self._state = seed_to_int(seed)
        self.counter = 0
        for _ in range(counter):
            self.next()

    def next(self) -> int:
        """Advance the state and return an unsigned 32-bit integer."""
        self._state = (self._state + MULBERRY_INCREMENT) & MASK_32
        self.counter += 1
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK_32
        return (t ^ (t >> 14)) & MASK_32

    def next_float(self) -> float:
        """Float in [0, 1)."""
        return self.next() / 4294967296.0

    def next_int(self, min_val: int, max_val: int) -> int:
        """Integer in [min_val, max_val], both ends inclusive."""
        return math.floor(self.next_float() * (max_val - min_val + 1)) + min_val

    def choice(self, items: Sequence[T]) -> T:
        """Pick a uniformly random element."""
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return items[self.next_int(0, len(items) - 1)]

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates shuffle in place. Returns the same list."""
        for i in range(len(items) - 1, 0, -1):
            j = self.next_int(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def chance(self, probability: float) -> bool:
        """True with the given probability (0 to 1)."""
        return self.next_float() < probability

    def percent_chance(self, percent: float) -> bool:
        """True with the given percentage chance (0 to 100)."""
        return self.next_float() * 100 < percent

    def copy(self) -> "Random":
        """Independent copy at the same stream position. For tests and previews only."""
        return Random(self.seed, self.counter)

    def __repr__(self) -> str:
        return f"Random(seed={self.seed!r}, counter={self.counter})"


def resolve_rng(rng: Optional[Random] = None) -> Random:
    """Return rng, or an unseeded instance when no session RNG was supplied."""
    if rng is not None:
        return rng
    return Random(int.from_bytes(os.urandom(4), "little"))


def generate_random_string(length: int, rng: Optional[Random] = None) -> str:
    """Random string over lowercase letters, digits, '_' and '-'."""
    rng = resolve_rng(rng)
    chars: List[str] = list(RANDOM_STRING_CHARS)
    return "".join(rng.choice(chars) for _ in range(length))
