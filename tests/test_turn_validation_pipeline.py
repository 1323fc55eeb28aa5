from __future__ import annotations

import pytest

from biopath.api.models import GameState, TurnPhase
from biopath.turn_processing.validators import CommandNotAllowed, ValidationContext, pipeline_for_command


def _ctx(state: GameState, command: str) -> ValidationContext:
    return ValidationContext(run_id=str(state.run_id), command=command)


def test_phase_validator_denies_wrong_phase(blank_state: GameState) -> None:
    with pytest.raises(ValueError) as e:
        pipeline_for_command("begin_turn").validate(ctx=_ctx(blank_state, "begin_turn"), state=blank_state)

    assert "not allowed" in str(e.value)
    assert "action" in str(e.value)


def test_game_over_blocks_play(blank_state: GameState) -> None:
    blank_state.game_over = True

    with pytest.raises(CommandNotAllowed) as e:
        pipeline_for_command("select").validate(ctx=_ctx(blank_state, "select"), state=blank_state)

    assert str(e.value) == "Run is over"


def test_place_needs_a_selection(blank_state: GameState, make_card) -> None:
    blank_state.hand = [make_card("fad")]

    with pytest.raises(CommandNotAllowed) as e:
        pipeline_for_command("place").validate(ctx=_ctx(blank_state, "place"), state=blank_state)
    assert "selected hand card" in str(e.value)

    blank_state.selected_card_index = 0
    pipeline_for_command("place").validate(ctx=_ctx(blank_state, "place"), state=blank_state)


def test_pending_prompt_blocks_begin_turn(blank_state: GameState) -> None:
    blank_state.phase = TurnPhase.draw
    blank_state.draft_pending = True

    with pytest.raises(CommandNotAllowed) as e:
        pipeline_for_command("begin_turn").validate(ctx=_ctx(blank_state, "begin_turn"), state=blank_state)
    assert "draft_pending" in str(e.value)


def test_chain_step_requires_pending_flag(blank_state: GameState) -> None:
    blank_state.phase = TurnPhase.resolution

    with pytest.raises(CommandNotAllowed) as e:
        pipeline_for_command("chain_step").validate(ctx=_ctx(blank_state, "chain_step"), state=blank_state)
    assert "pending_chain_advance" in str(e.value)


def test_chain_step_allowed_after_game_over(blank_state: GameState) -> None:
    blank_state.phase = TurnPhase.resolution
    blank_state.pending_chain_advance = True
    blank_state.game_over = True

    pipeline_for_command("chain_step").validate(ctx=_ctx(blank_state, "chain_step"), state=blank_state)


def _ended_at_turn_limit(state: GameState, make_card) -> GameState:
    state.phase = TurnPhase.draw
    state.total_turns = 80
    state.game_over = True
    state.deck = [make_card("fad")]
    return state


def test_enter_endless_only_once(blank_state: GameState, make_card) -> None:
    _ended_at_turn_limit(blank_state, make_card)
    pipeline_for_command("enter_endless").validate(ctx=_ctx(blank_state, "enter_endless"), state=blank_state)

    blank_state.endless = True
    with pytest.raises(CommandNotAllowed):
        pipeline_for_command("enter_endless").validate(ctx=_ctx(blank_state, "enter_endless"), state=blank_state)


def test_unknown_command_pipeline_raises() -> None:
    with pytest.raises(ValueError) as e:
        pipeline_for_command("nope")
    assert "Unknown command" in str(e.value)


def test_enter_endless_needs_a_finished_run(blank_state: GameState, make_card) -> None:
    _ended_at_turn_limit(blank_state, make_card)
    blank_state.game_over = False

    with pytest.raises(CommandNotAllowed) as e:
        pipeline_for_command("enter_endless").validate(ctx=_ctx(blank_state, "enter_endless"), state=blank_state)
    assert "game_over" in str(e.value)


def test_enter_endless_needs_the_turn_limit(blank_state: GameState, make_card) -> None:
    _ended_at_turn_limit(blank_state, make_card)
    blank_state.total_turns = 42

    with pytest.raises(CommandNotAllowed) as e:
        pipeline_for_command("enter_endless").validate(ctx=_ctx(blank_state, "enter_endless"), state=blank_state)
    assert "80 turns played (at 42)" in str(e.value)


def test_enter_endless_needs_cards_left(blank_state: GameState, make_card) -> None:
    _ended_at_turn_limit(blank_state, make_card)
    blank_state.deck = []

    with pytest.raises(CommandNotAllowed) as e:
        pipeline_for_command("enter_endless").validate(ctx=_ctx(blank_state, "enter_endless"), state=blank_state)
    assert "cards left" in str(e.value)
