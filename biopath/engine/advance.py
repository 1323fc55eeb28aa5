from __future__ import annotations

import logging
import random

from biopath.api.models import GameState
from biopath.assets.registry import CardKind, ReferenceData
from biopath.assets.rules import MAX_TURNS
from biopath.engine.deck import CardMaker, build_deck, difficulty_for_rotation, held_inventory
from biopath.engine.outcomes import (
    ADVANCING,
    STALLING,
    AdvanceReport,
    ChainStep,
    PlacementOutcome,
    PlayResult,
    RotationReport,
    Wrong,
    YieldGain,
)
from biopath.engine.placement import ready_to_advance
from biopath.engine.scoring import apply_stall_decay, round_half_up, update_multiplier

logger = logging.getLogger(__name__)


class AdvanceEngine:
    """Stage transitions, scoring, chained transitions and rotation completion.

    Holds no state of its own beyond the collaborators it needs; every method
    mutates the `GameState` it is given.
    """

    def __init__(self, *, ref: ReferenceData, rng: random.Random, make_card: CardMaker) -> None:
        self.ref = ref
        self.rng = rng
        self.make_card = make_card

    def advance(self, state: GameState, stage_index: int) -> AdvanceReport:
        stage = self.ref.stage(stage_index)

        gain: YieldGain | None = None
        if stage.energy_yield is not None:
            boost = 2 if state.enzyme_boost_active else 1
            points = round_half_up(stage.energy_yield.base_value * state.multiplier * boost)
            state.enzyme_boost_active = False
            state.score += points
            state.energy_tally[stage.energy_yield.kind] = state.energy_tally.get(stage.energy_yield.kind, 0) + 1
            gain = YieldGain(kind=stage.energy_yield.kind, points=points)

        state.combo += 1
        state.stalled_turns = 0
        update_multiplier(state)

        state.completed_stages.add(stage_index)
        # Staged cards are consumed by the transition.
        state.staged[stage_index] = []

        state.current_stage = stage.next_index
        rotation = self.complete_rotation(state) if state.current_stage == 0 else None

        self.check_chain(state)
        return AdvanceReport(
            stage_index=stage_index,
            yield_gain=gain,
            rotation=rotation,
            chain_pending=state.pending_chain_advance,
        )

    def check_chain(self, state: GameState) -> None:
        idx = state.current_stage
        staged = state.staged.get(idx, [])
        if not staged:
            return

        if ready_to_advance(state, idx, ref=self.ref):
            # Executed one step at a time by the driver.
            state.pending_chain_advance = True
            return

        product = self.ref.stage(idx).product_card
        wrong = [c for c in staged if c.kind == CardKind.product and c.card_id != product]
        if wrong:
            state.discard.extend(wrong)
            state.staged[idx] = [c for c in staged if c not in wrong]

    def execute_chain_step(self, state: GameState) -> ChainStep | None:
        if not state.pending_chain_advance:
            return None

        state.pending_chain_advance = False
        idx = state.current_stage
        report = self.advance(state, idx)
        logger.debug("chain advance from stage %d (more=%s)", idx, state.pending_chain_advance)
        return ChainStep(
            stage_index=idx,
            yield_gain=report.yield_gain,
            rotation=report.rotation,
            combo=state.combo,
            multiplier=state.multiplier,
            has_more=state.pending_chain_advance,
        )

    def complete_rotation(self, state: GameState) -> RotationReport:
        state.rotations += 1
        state.completed_stages = set()

        tier = difficulty_for_rotation(state.rotations)
        old_limit = state.hand_limit
        state.hand_limit = tier.hand_limit

        fresh = build_deck(
            ref=self.ref,
            current_stage=state.current_stage,
            inventory=held_inventory(state),
            tier=tier,
            rng=self.rng,
            make_card=self.make_card,
        )
        state.deck = [*fresh, *state.discard]
        state.discard = []
        self.rng.shuffle(state.deck)

        while len(state.hand) > state.hand_limit:
            state.discard.append(state.hand.pop())

        logger.info(
            "rotation %d complete: junk=%.2f hand_limit=%d deck=%d",
            state.rotations,
            tier.junk_rate,
            state.hand_limit,
            len(state.deck),
        )
        return RotationReport(
            rotation=state.rotations,
            hand_limit_changed=state.hand_limit if state.hand_limit != old_limit else None,
        )

    def resolve(self, state: GameState, outcome: PlacementOutcome) -> PlayResult:
        """Apply a consumed placement outcome (anything but `Rejected`)."""

        report: AdvanceReport | None = None
        if isinstance(outcome, ADVANCING):
            report = self.advance(state, outcome.stage_index)
        elif isinstance(outcome, Wrong):
            state.discard.append(outcome.card)
            if not state.shielded:
                state.combo = 0
        elif isinstance(outcome, STALLING):
            state.stalled_turns += 1

        decayed = apply_stall_decay(state)
        return PlayResult(outcome=outcome, advance=report, multiplier_decayed=decayed)


def check_terminal(state: GameState) -> bool:
    if not state.hand and not state.deck and not state.discard:
        state.game_over = True
    if state.total_turns >= MAX_TURNS and not state.endless:
        state.game_over = True
    return state.game_over
