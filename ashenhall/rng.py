"""v1.0: Seeded random streams.

Every random decision draws from a ``random.Random`` seeded with a string
built from the game seed, the turn number and a tag naming the phase or the
card that asked for it. String seeds are hashed with SHA-512 by the standard
library, so streams are stable across processes regardless of PYTHONHASHSEED.
"""

from __future__ import annotations

import random
from typing import Sequence, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from ashenhall.models import GameState

T = TypeVar("T")


def make_rng(seed: str) -> random.Random:
    return random.Random(seed)


def phase_rng(state: "GameState", tag: str) -> random.Random:
    """RNG for one phase or effect execution within the current turn."""
    return random.Random(f"{state.random_seed}{state.turn_number}{tag}")


def choice_or_none(rng: random.Random, items: Sequence[T]) -> T | None:
    if not items:
        return None
    return items[rng.randrange(len(items))]


def shuffled(rng: random.Random, items: Sequence[T]) -> list[T]:
    """Fisher-Yates shuffle of a copy; the input is left untouched."""
    out = list(items)
    rng.shuffle(out)
    return out
