from __future__ import annotations

import logging
import random
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from biopath.api.models import CardInstance, GameSnapshot, GameState, StageView
from biopath.assets.registry import RING_SIZE, ReferenceData
from biopath.assets.rules import REFRESH_DRAW_COUNT, TurnEventId
from biopath.assets.singleton import get_reference_data
from biopath.engine.advance import AdvanceEngine, check_terminal
from biopath.engine.deck import build_deck, difficulty_for_rotation, held_inventory
from biopath.engine.draft import pick_draft, start_draft
from biopath.engine.draw import draw_cards
from biopath.engine.events import PROMPT_EVENTS, apply_event, extend_schedule, maybe_extend_schedule, schedule_turn_events
from biopath.engine.outcomes import (
    ChainStep,
    Discarded,
    DraftPicked,
    EndlessEntered,
    HandRefreshed,
    PlayResult,
    PromptResolved,
    Rejected,
    TurnStarted,
)
from biopath.engine.placement import resolve_placement
from biopath.engine.scoring import register_stall
from biopath.fsm import TurnFSM
from biopath.high_score import BestScoreStore, InMemoryBestScoreStore
from biopath.turn_processing.validators import CommandNotAllowed, ValidationContext, pipeline_for_command

logger = logging.getLogger(__name__)


Listener = Callable[[GameSnapshot], None]


def _now() -> datetime:
    return datetime.now(tz=UTC)


class BiopathGame:
    """One run of the game and the commands a driver (UI, API, test) can issue.

    Every command either applies fully or is a no-op returning None; after each
    applied command the registered listener receives a fresh snapshot.
    """

    def __init__(
        self,
        *,
        seed: int | None = None,
        rng: random.Random | None = None,
        ref: ReferenceData | None = None,
        store: BestScoreStore | None = None,
        listener: Listener | None = None,
    ) -> None:
        self.ref = ref or get_reference_data()
        self.store: BestScoreStore = store or InMemoryBestScoreStore()
        self._injected_rng = rng
        self._listener = listener
        self.state = self._new_run(seed)
        self._notify()

    # --- wiring ---

    def set_listener(self, listener: Listener | None) -> None:
        """Register the single state observer (replacing any previous one)."""

        self._listener = listener

    def _make_card(self, card_id: str) -> CardInstance:
        uid = f"c{self.state.next_card_uid}"
        self.state.next_card_uid += 1
        return CardInstance(uid=uid, definition=self.ref.card(card_id))

    def _new_run(self, seed: int | None) -> GameState:
        if seed is None:
            seed = random.SystemRandom().randint(1, 2**31 - 1)
        self.rng = self._injected_rng or random.Random(seed)

        self.state = GameState(run_id=uuid4(), created_at=_now(), seed=seed)
        self.engine = AdvanceEngine(ref=self.ref, rng=self.rng, make_card=self._make_card)

        s = self.state
        s.staged = {i: [] for i in range(RING_SIZE)}
        tier = difficulty_for_rotation(s.rotations)
        s.hand_limit = tier.hand_limit
        s.deck = build_deck(
            ref=self.ref,
            current_stage=s.current_stage,
            inventory=held_inventory(s),
            tier=tier,
            rng=self.rng,
            make_card=self._make_card,
        )
        s.turn_events = schedule_turn_events(self.rng)
        draw_cards(s, s.hand_limit, ref=self.ref, rng=self.rng)
        self._transition("open_action")

        logger.info("run %s started (seed=%s, deck=%d)", s.run_id, seed, len(s.deck))
        return s

    def _allowed(self, command: str) -> bool:
        ctx = ValidationContext(run_id=str(self.state.run_id), command=command)
        try:
            pipeline_for_command(command).validate(ctx=ctx, state=self.state)
        except CommandNotAllowed as e:
            logger.debug("ignored %s: %s", command, e)
            return False
        return True

    def _transition(self, event: str) -> None:
        fsm = TurnFSM(self.state)
        fsm.send(event)
        fsm.sync_phase_to_model()

    def _offer_draft(self) -> bool:
        offered = start_draft(self.state, ref=self.ref, rng=self.rng, make_card=self._make_card)
        if not offered:
            self._transition("open_action")
        return offered

    def _finish_resolution(self) -> None:
        check_terminal(self.state)
        if not self.state.pending_chain_advance:
            self._transition("settle")
        self._record_if_over()

    # --- best score ---

    def _read_best(self) -> int:
        try:
            return int(self.store.read())
        except Exception as e:
            logger.warning("best score store unavailable: %s", e)
            return 0

    def _write_best(self, candidate: int) -> bool:
        try:
            return bool(self.store.write_if_higher(candidate))
        except Exception as e:
            logger.warning("best score store rejected write: %s", e)
            return False

    def _record_if_over(self) -> None:
        s = self.state
        # A chain still pending on the final turn pays out before the score is final.
        if not s.game_over or s.score_recorded or s.pending_chain_advance:
            return
        s.score_recorded = True
        s.new_high_score = self._write_best(s.score)
        logger.info(
            "run %s over: score=%d turns=%d rotations=%d new_high=%s",
            s.run_id,
            s.score,
            s.total_turns,
            s.rotations,
            s.new_high_score,
        )

    # --- observation ---

    def snapshot(self) -> GameSnapshot:
        data = self.state.model_dump()
        data["best_score"] = self._read_best()
        return GameSnapshot.model_validate(data)

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self.snapshot())

    # --- commands ---

    def restart(self, *, seed: int | None = None) -> GameSnapshot:
        if not self._allowed("restart"):
            return self.snapshot()
        self.state = self._new_run(seed)
        self._notify()
        return self.snapshot()

    def begin_turn(self) -> TurnStarted | None:
        if not self._allowed("begin_turn"):
            return None

        s = self.state
        s.total_turns += 1
        s.selected_card_index = None
        s.active_event = None
        if s.combo_shield_turns > 0:
            s.combo_shield_turns -= 1

        maybe_extend_schedule(s, self.rng)

        event = s.turn_events.get(s.total_turns)
        if event is not None:
            apply_event(s, event)
            if event in PROMPT_EVENTS:
                self._notify()
                return TurnStarted(turn=s.total_turns, event=event, suspended=True, draft_offered=False)

        offered = self._offer_draft()
        self._notify()
        return TurnStarted(turn=s.total_turns, event=event, suspended=False, draft_offered=offered)

    def select_card(self, index: int) -> CardInstance | None:
        if not self._allowed("select"):
            return None
        if not (0 <= index < len(self.state.hand)):
            return None
        self.state.selected_card_index = index
        self._notify()
        return self.state.hand[index]

    def deselect_card(self) -> None:
        if not self._allowed("deselect"):
            return None
        self.state.selected_card_index = None
        self._notify()
        return None

    def place_selected(self, stage_index: int) -> PlayResult | None:
        if not self._allowed("place"):
            return None
        if not (0 <= stage_index < RING_SIZE):
            return None

        s = self.state
        idx = s.selected_card_index
        if idx is None:
            return None
        card = s.hand[idx]

        outcome = resolve_placement(s, card, stage_index, ref=self.ref)
        s.selected_card_index = None

        if isinstance(outcome, Rejected):
            logger.debug("placement rejected: %s", outcome.reason)
            self._notify()
            return PlayResult(outcome=outcome)

        del s.hand[idx]
        self._transition("commit")
        result = self.engine.resolve(s, outcome)
        self._finish_resolution()
        self._notify()
        return result

    def discard_selected(self) -> Discarded | None:
        if not self._allowed("discard"):
            return None

        s = self.state
        idx = s.selected_card_index
        if idx is None:
            return None
        card = s.hand.pop(idx)
        s.discard.append(card)
        s.selected_card_index = None

        self._transition("commit")
        decayed = register_stall(s)
        self._finish_resolution()
        self._notify()
        return Discarded(card=card, multiplier_decayed=decayed)

    def accept_refresh(self) -> HandRefreshed | None:
        if not self._allowed("accept_refresh"):
            return None

        s = self.state
        s.discard.extend(s.hand)
        s.hand = []
        s.pending_refresh = False
        drawn = draw_cards(s, min(REFRESH_DRAW_COUNT, s.hand_limit), ref=self.ref, rng=self.rng)
        s.draft_choices = []
        s.draft_pending = False
        self._transition("open_action")
        self._notify()
        return HandRefreshed(drawn=len(drawn))

    def decline_refresh(self) -> PromptResolved | None:
        if not self._allowed("decline_refresh"):
            return None

        self.state.pending_refresh = False
        offered = self._offer_draft()
        self._notify()
        return PromptResolved(prompt=TurnEventId.hand_refresh, draft_offered=offered)

    def dismiss_peek(self) -> PromptResolved | None:
        if not self._allowed("dismiss_peek"):
            return None

        self.state.deck_peek = []
        self.state.peek_pending = False
        offered = self._offer_draft()
        self._notify()
        return PromptResolved(prompt=TurnEventId.insight, draft_offered=offered)

    def pick_draft(self, index: int) -> DraftPicked | None:
        if not self._allowed("pick_draft"):
            return None

        picked = pick_draft(self.state, index)
        if picked is None:
            return None
        self._transition("open_action")
        self._notify()
        return DraftPicked(card=picked)

    def execute_chain_step(self) -> ChainStep | None:
        if not self._allowed("chain_step"):
            return None

        step = self.engine.execute_chain_step(self.state)
        self._finish_resolution()
        self._notify()
        return step

    def enter_endless(self) -> EndlessEntered | None:
        if not self._allowed("enter_endless"):
            return None

        s = self.state
        s.endless = True
        s.game_over = False
        s.score_recorded = False
        s.new_high_score = False
        scheduled = extend_schedule(s, self.rng)
        logger.info("run %s continues in endless mode at turn %d", s.run_id, s.total_turns)
        self._notify()
        return EndlessEntered(scheduled_turns=scheduled)

    # --- display ---

    def stage_display_data(self) -> list[StageView]:
        return stage_display_data(self.state, ref=self.ref)


def stage_display_data(state: GameState, *, ref: ReferenceData) -> list[StageView]:
    views: list[StageView] = []
    for stage in ref.stages:
        views.append(
            StageView(
                index=stage.index,
                id=stage.id,
                label=stage.label,
                abbreviation=stage.abbreviation,
                product_card=stage.product_card,
                cofactors=list(stage.cofactors),
                energy_yield=stage.energy_yield,
                releases_co2=stage.releases_co2,
                is_current=stage.index == state.current_stage,
                is_completed=stage.index in state.completed_stages,
                staged=list(state.staged.get(stage.index, [])),
                transition=f"→ {stage.energy_yield.kind.value}" if stage.energy_yield else None,
            )
        )
    return views
