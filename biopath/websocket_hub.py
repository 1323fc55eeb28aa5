from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class RunWebSocketHub:
    """Run-update notices for WebSocket subscribers.

    A socket follows one run. The notice only says *that* the run changed
    (`{"type": "run_updated", "run_id": ...}`); clients re-fetch the snapshot.
    A `restart` gives the run a new id, and `follow_restart` moves the
    subscribers along so they keep receiving notices.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, set[WebSocket]] = defaultdict(set)
        self._run_of: dict[WebSocket, str] = {}
        self._lock = asyncio.Lock()

    async def connect(self, run_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscribers[run_id].add(websocket)
            self._run_of[websocket] = run_id

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._forget(websocket)

    def _forget(self, websocket: WebSocket) -> None:
        run_id = self._run_of.pop(websocket, None)
        if run_id is None:
            return
        conns = self._subscribers.get(run_id)
        if conns is None:
            return
        conns.discard(websocket)
        if not conns:
            self._subscribers.pop(run_id, None)

    async def follow_restart(self, old_id: str, new_id: str) -> None:
        async with self._lock:
            moved = self._subscribers.pop(old_id, set())
            for ws in moved:
                self._run_of[ws] = new_id
            if moved:
                self._subscribers[new_id] |= moved
        logger.debug("moved %d subscriber(s) from run %s to %s", len(moved), old_id, new_id)

    async def notify_run_updated(self, run_id: str) -> None:
        async with self._lock:
            conns = list(self._subscribers.get(run_id, ()))

        payload = {"type": "run_updated", "run_id": run_id}
        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.debug("dropping websocket for run %s: %s", run_id, e)
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._forget(ws)


hub = RunWebSocketHub()
