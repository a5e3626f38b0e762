"""Shuffle policy engine.

Pure functions deciding which playlist index plays next or previously.
They read the session's traversal state but never mutate it, so the same
call serves both real transitions and read-only preload previews.
"""

from __future__ import annotations

import random
from collections.abc import Sequence, Set

from tunestream.core.models import ShuffleMode

_default_rng = random.Random()


def generate_shuffle_order(
    length: int, start_index: int, rng: random.Random | None = None
) -> list[int]:
    """Build a shuffle order with ``start_index`` at position 0.

    The remaining ``length - 1`` indices are shuffled uniformly
    (Fisher-Yates via ``random.shuffle``).

    Args:
        length: Playlist length
        start_index: Index placed first (the track currently playing)
        rng: Random source (module-level random if None)

    Returns:
        A permutation of ``range(length)``, or an empty list if length is 0
    """
    if length <= 0:
        return []
    rng = rng or _default_rng
    others = [i for i in range(length) if i != start_index]
    rng.shuffle(others)
    if 0 <= start_index < length:
        return [start_index, *others]
    return others


def next_index(
    length: int,
    current_index: int,
    mode: ShuffleMode,
    played: Set[int] = frozenset(),
    order: Sequence[int] = (),
    rng: random.Random | None = None,
) -> int | None:
    """Compute the index that should play after ``current_index``.

    Returns:
        The target index, or None when nothing is available: an empty
        playlist, or an exhausted NoRepeat cycle (the caller restarts it).
    """
    if length <= 0:
        return None
    rng = rng or _default_rng

    if mode is ShuffleMode.NO_REPEAT:
        available = [i for i in range(length) if i not in played and i != current_index]
        if not available:
            return None
        if order:
            candidates = set(available)
            for i in order:
                if i in candidates:
                    return i
        return rng.choice(available)

    if mode is ShuffleMode.REPEAT_SHUFFLE:
        if order:
            try:
                position = order.index(current_index)
            except ValueError:
                return order[0]
            return order[(position + 1) % len(order)]
        if length == 1:
            # Immediate repeat is unavoidable with a single track
            return 0
        return rng.choice([i for i in range(length) if i != current_index])

    return (current_index + 1) % length


def prev_index(length: int, current_index: int, order: Sequence[int] = ()) -> int | None:
    """Compute the index of the track played immediately before.

    Shuffle modes walk their stored order backwards; without an order this
    is plain backward traversal. Randomness never applies to "previous".
    """
    if length <= 0:
        return None
    if order and current_index in order:
        position = order.index(current_index)
        return order[(position - 1) % len(order)]
    return (current_index - 1) % length
