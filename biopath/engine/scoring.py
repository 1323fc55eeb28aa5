from __future__ import annotations

import math

from biopath.api.models import GameState
from biopath.assets.rules import MIN_MULTIPLIER, MULTIPLIER_LADDER, STALL_DECAY, STALL_LIMIT


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; scores and deck counts round .5 up.
    return math.floor(value + 0.5)


def multiplier_for_combo(combo: int) -> float:
    mult = MULTIPLIER_LADDER[0][1]
    for min_combo, value in MULTIPLIER_LADDER:
        if combo >= min_combo:
            mult = value
    return mult


def update_multiplier(state: GameState) -> None:
    state.multiplier = multiplier_for_combo(state.combo)


def apply_stall_decay(state: GameState) -> bool:
    """Decay the multiplier once the stall counter reaches the limit.

    The counter resets whether or not a combo shield blocked the decay.
    Returns True if the multiplier was lowered.
    """

    if state.stalled_turns < STALL_LIMIT:
        return False
    state.stalled_turns = 0
    if state.shielded:
        return False
    before = state.multiplier
    state.multiplier = max(MIN_MULTIPLIER, state.multiplier - STALL_DECAY)
    return state.multiplier != before


def register_stall(state: GameState) -> bool:
    state.stalled_turns += 1
    return apply_stall_decay(state)
