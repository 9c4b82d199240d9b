"""
Featured selection.

The home carousel shows a random handful of restaurants so repeat visits see some
variety. The seed is not persisted; pass your own `random.Random` for repeatable picks.
"""

from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


def select_featured(items: Sequence[T], count: int = 10, *, rng: random.Random | None = None) -> list[T]:
    """Pick `min(count, len(items))` distinct items at random without touching `items`."""
    k = min(max(0, int(count)), len(items))
    if k == 0:
        return []
    return (rng or random).sample(list(items), k)
