from __future__ import annotations

import logging
import threading

from biopath.game import BiopathGame
from biopath.high_score import BestScoreStore

logger = logging.getLogger(__name__)


class RunNotFound(KeyError):
    pass


class RunStore:
    """In-process registry of live runs, keyed by run id.

    Runs are not persisted; restarting the process drops them. A `restart`
    command gives a run a new id, so callers re-key via `rekey`.
    """

    def __init__(self) -> None:
        self._runs: dict[str, BiopathGame] = {}
        self._lock = threading.Lock()

    def create(self, *, store: BestScoreStore, seed: int | None = None) -> BiopathGame:
        game = BiopathGame(seed=seed, store=store)
        with self._lock:
            self._runs[str(game.state.run_id)] = game
        return game

    def get(self, run_id: str) -> BiopathGame:
        with self._lock:
            game = self._runs.get(run_id)
        if game is None:
            raise RunNotFound(run_id)
        return game

    def list_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._runs)

    def rekey(self, old_id: str, game: BiopathGame) -> str:
        new_id = str(game.state.run_id)
        if new_id == old_id:
            return new_id
        with self._lock:
            self._runs.pop(old_id, None)
            self._runs[new_id] = game
        logger.debug("run %s restarted as %s", old_id, new_id)
        return new_id

    def clear(self) -> None:
        with self._lock:
            self._runs.clear()


runs = RunStore()
