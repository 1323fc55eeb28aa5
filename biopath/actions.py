from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, get_args

from biopath.api.models import CommandRequest, GameSnapshot
from biopath.engine.outcomes import result_payload
from biopath.game import BiopathGame


CommandName = Literal[
    "begin_turn",
    "select",
    "deselect",
    "place",
    "discard",
    "accept_refresh",
    "decline_refresh",
    "dismiss_peek",
    "pick_draft",
    "chain_step",
    "enter_endless",
    "restart",
]

COMMAND_NAMES: frozenset[str] = frozenset(get_args(CommandName))


@dataclass(frozen=True, slots=True)
class CommandResult:
    snapshot: GameSnapshot
    result: Any


def _require(value: int | None, name: str, command: str) -> int:
    if value is None:
        raise ValueError(f"Command '{command}' requires '{name}'")
    return value


def dispatch_command(*, game: BiopathGame, command: str, payload: CommandRequest | None = None) -> CommandResult:
    """Entry point for HTTP (and any other) drivers.

    Maps a command name plus its small payload onto the game's command surface.
    Commands that are not legal right now come back with `result=None`; unknown
    commands and missing payload fields raise `ValueError`.
    """

    payload = payload or CommandRequest()

    if command == "begin_turn":
        result: Any = game.begin_turn()
    elif command == "select":
        result = game.select_card(_require(payload.index, "index", command))
    elif command == "deselect":
        game.deselect_card()
        result = None
    elif command == "place":
        result = game.place_selected(_require(payload.stage_index, "stage_index", command))
    elif command == "discard":
        result = game.discard_selected()
    elif command == "accept_refresh":
        result = game.accept_refresh()
    elif command == "decline_refresh":
        result = game.decline_refresh()
    elif command == "dismiss_peek":
        result = game.dismiss_peek()
    elif command == "pick_draft":
        result = game.pick_draft(_require(payload.index, "index", command))
    elif command == "chain_step":
        result = game.execute_chain_step()
    elif command == "enter_endless":
        result = game.enter_endless()
    elif command == "restart":
        game.restart(seed=payload.seed)
        result = {"type": "restarted", "run_id": str(game.state.run_id)}
    else:
        raise ValueError(f"Unknown command: {command}")

    return CommandResult(snapshot=game.snapshot(), result=result_payload(result))
