"""Procedural spirit generation.

Every cell has a default spirit value that is a pure function of its indices.
Nothing is stored for cells the player never touched: the value is simply
recomputed whenever it is needed.
"""

from __future__ import annotations

from random import Random
from typing import Callable

SPIRIT_TOPIC = "spirit"

# Draw thresholds on a uniform [0, 1) value
FOUR_THRESHOLD = 0.07
TWO_THRESHOLD = 0.14
ONE_THRESHOLD = 0.2

SpiritGenerator = Callable[[int, int], int]


def luck(seed: str) -> float:
    """Return a deterministic uniform draw in [0, 1) for ``seed``.

    String seeds are hashed by ``random.Random`` itself, so the draw does not
    depend on PYTHONHASHSEED, the process, or the order of calls.
    """
    return Random(seed).random()


def spirit_value(i: int, j: int, *, topic: str = SPIRIT_TOPIC) -> int:
    """Return the procedural spirit value of cell ``(i, j)`` (0 when empty).

    ``topic`` salts the draw so other features can hash the same coordinates
    without correlating with spirit placement.
    """
    roll = luck(f"{i},{j},{topic}")
    if roll < FOUR_THRESHOLD:
        return 4
    if roll < TWO_THRESHOLD:
        return 2
    if roll < ONE_THRESHOLD:
        return 1
    return 0
