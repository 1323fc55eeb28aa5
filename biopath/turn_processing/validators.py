from __future__ import annotations

from dataclasses import dataclass
from abc import ABC, abstractmethod

from biopath.api.models import GameState, TurnPhase
from biopath.assets.rules import MAX_TURNS


class CommandNotAllowed(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    run_id: str
    command: str


class CommandValidator(ABC):
    """A small, composable precondition check for an incoming command."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class PhaseValidator(CommandValidator):
    allowed_phases: frozenset[TurnPhase]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.phase not in self.allowed_phases:
            allowed = ",".join(sorted(p.value for p in self.allowed_phases))
            raise CommandNotAllowed(
                f"Command '{ctx.command}' not allowed in phase '{state.phase.value}' (allowed: {allowed})"
            )


@dataclass(frozen=True, slots=True)
class GameOverValidator(CommandValidator):
    """Deny play once the run has reached a terminal state."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.game_over:
            raise CommandNotAllowed("Run is over")


@dataclass(frozen=True, slots=True)
class FlagValidator(CommandValidator):
    """Require some boolean state flags to be set and others to be clear.

    Pending prompts (draft, refresh, peek, chain step) are plain flags on the
    state, so this is how commands wait on each other.
    """

    required: frozenset[str] = frozenset()
    forbidden: frozenset[str] = frozenset()

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        missing = sorted(f for f in self.required if not getattr(state, f))
        if missing:
            raise CommandNotAllowed(f"Command '{ctx.command}' requires: {','.join(missing)}")
        blocking = sorted(f for f in self.forbidden if getattr(state, f))
        if blocking:
            raise CommandNotAllowed(f"Command '{ctx.command}' blocked by: {','.join(blocking)}")


@dataclass(frozen=True, slots=True)
class SelectionValidator(CommandValidator):
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        idx = state.selected_card_index
        if idx is None or not (0 <= idx < len(state.hand)):
            raise CommandNotAllowed(f"Command '{ctx.command}' needs a selected hand card")


@dataclass(frozen=True, slots=True)
class TurnLimitReachedValidator(CommandValidator):
    """Endless play only opens once the regular turn budget is used up."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.total_turns < MAX_TURNS:
            raise CommandNotAllowed(
                f"Command '{ctx.command}' needs {MAX_TURNS} turns played (at {state.total_turns})"
            )


@dataclass(frozen=True, slots=True)
class CardsRemainValidator(CommandValidator):
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if not (state.hand or state.deck or state.discard):
            raise CommandNotAllowed(f"Command '{ctx.command}' needs cards left to play")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[CommandValidator, ...]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


PENDING_PROMPTS = frozenset({"draft_pending", "pending_refresh", "peek_pending", "pending_chain_advance"})

_IN_DRAW = PhaseValidator(allowed_phases=frozenset({TurnPhase.draw}))
_IN_ACTION = PhaseValidator(allowed_phases=frozenset({TurnPhase.action}))


DEFAULT_COMMAND_PIPELINES: dict[str, ValidatorPipeline] = {
    "begin_turn": ValidatorPipeline(validators=(GameOverValidator(), _IN_DRAW, FlagValidator(forbidden=PENDING_PROMPTS))),
    "select": ValidatorPipeline(validators=(GameOverValidator(), _IN_ACTION)),
    "deselect": ValidatorPipeline(validators=(_IN_ACTION,)),
    "place": ValidatorPipeline(validators=(GameOverValidator(), _IN_ACTION, SelectionValidator())),
    "discard": ValidatorPipeline(validators=(GameOverValidator(), _IN_ACTION, SelectionValidator())),
    "accept_refresh": ValidatorPipeline(
        validators=(GameOverValidator(), _IN_DRAW, FlagValidator(required=frozenset({"pending_refresh"})))
    ),
    "decline_refresh": ValidatorPipeline(
        validators=(GameOverValidator(), _IN_DRAW, FlagValidator(required=frozenset({"pending_refresh"})))
    ),
    "dismiss_peek": ValidatorPipeline(
        validators=(GameOverValidator(), _IN_DRAW, FlagValidator(required=frozenset({"peek_pending"})))
    ),
    "pick_draft": ValidatorPipeline(
        validators=(GameOverValidator(), _IN_DRAW, FlagValidator(required=frozenset({"draft_pending"})))
    ),
    "chain_step": ValidatorPipeline(
        validators=(
            PhaseValidator(allowed_phases=frozenset({TurnPhase.resolution})),
            FlagValidator(required=frozenset({"pending_chain_advance"})),
        )
    ),
    "enter_endless": ValidatorPipeline(
        validators=(
            FlagValidator(required=frozenset({"game_over"}), forbidden=frozenset({"endless", "pending_chain_advance"})),
            TurnLimitReachedValidator(),
            CardsRemainValidator(),
        )
    ),
    "restart": ValidatorPipeline(validators=()),
}


def pipeline_for_command(command: str) -> ValidatorPipeline:
    pipe = DEFAULT_COMMAND_PIPELINES.get(command)
    if pipe is None:
        raise CommandNotAllowed(f"Unknown command: {command}")
    return pipe
