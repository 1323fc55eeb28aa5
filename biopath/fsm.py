from __future__ import annotations

from statemachine import State, StateMachine

from biopath.api.models import GameState, TurnPhase


class TurnFSM(StateMachine):
    """FSM wrapper around GameState.phase.

    - phases: draw -> action -> resolution -> draw
    - the draw phase covers the draft and any event prompts; resolution is held
      while chained advances are pending.
    - the engine mutates state; the FSM only guards phase transitions.
    """

    drawing = State(TurnPhase.draw.value, value=TurnPhase.draw.value, initial=True)
    acting = State(TurnPhase.action.value, value=TurnPhase.action.value)
    resolving = State(TurnPhase.resolution.value, value=TurnPhase.resolution.value)

    open_action = drawing.to(acting)
    commit = acting.to(resolving)
    settle = resolving.to(drawing)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value=game.phase.value)

    def sync_phase_to_model(self) -> None:
        self.game.phase = TurnPhase(str(self.current_state.value))
