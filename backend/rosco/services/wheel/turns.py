"""Turn advancement around the wheel.

Both helpers only read the state; RoundController decides what to do with
the answer.
"""
from typing import Optional

from .state import RoundState


def advance(state: RoundState, from_index: int) -> Optional[int]:
    """Return the first in-play index at or after ``from_index``, wrapping.

    Scans at most two laps so a letter passed earlier in the lap, sitting
    behind the scan start, is still found when it is the only one left.
    Returns None when no letter is pending or passed.
    """
    total = len(state)
    index = from_index % total
    for _ in range(total * 2):
        if state.status_at(index).in_play:
            return index
        index = (index + 1) % total
    return None


def has_letters_in_play(state: RoundState) -> bool:
    return any(status.in_play for status in state.status_of.values())
