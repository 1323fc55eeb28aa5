from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from biopath.actions import COMMAND_NAMES, dispatch_command
from biopath.api.deps import get_best_score_store, get_run_store
from biopath.api.models import (
    CommandRequest,
    CommandResponse,
    GameSnapshot,
    HighScoreResponse,
    RunCreateRequest,
    RunListResponse,
    StageView,
)
from biopath.game import BiopathGame
from biopath.high_score import BestScoreStore
from biopath.run_store import RunNotFound, RunStore
from biopath.websocket_hub import hub

router = APIRouter()


def _run_or_404(run_store: RunStore, run_id: UUID) -> BiopathGame:
    try:
        return run_store.get(str(run_id))
    except RunNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Run not found") from e


@router.websocket("/ws/runs/{run_id}")
async def run_updates_ws(websocket: WebSocket, run_id: UUID) -> None:
    rid = str(run_id)
    await hub.connect(rid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception:
        await hub.disconnect(websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/runs", response_model=GameSnapshot, status_code=status.HTTP_201_CREATED)
async def create_run_route(
    payload: RunCreateRequest,
    store: BestScoreStore = Depends(get_best_score_store),
    run_store: RunStore = Depends(get_run_store),
) -> GameSnapshot:
    game = run_store.create(store=store, seed=payload.seed)
    rid = str(game.state.run_id)
    await hub.notify_run_updated(rid)
    return game.snapshot()


@router.get("/runs", response_model=RunListResponse)
async def list_runs_route(run_store: RunStore = Depends(get_run_store)) -> RunListResponse:
    return RunListResponse(run_ids=run_store.list_ids())


@router.get("/runs/{run_id}", response_model=GameSnapshot)
async def get_run_route(
    run_id: UUID,
    store: BestScoreStore = Depends(get_best_score_store),
    run_store: RunStore = Depends(get_run_store),
) -> GameSnapshot:
    game = _run_or_404(run_store, run_id)
    game.store = store
    return game.snapshot()


@router.get("/runs/{run_id}/stages", response_model=list[StageView])
async def get_run_stages_route(run_id: UUID, run_store: RunStore = Depends(get_run_store)) -> list[StageView]:
    game = _run_or_404(run_store, run_id)
    return game.stage_display_data()


@router.post("/runs/{run_id}/commands/{command}", response_model=CommandResponse)
async def run_command_route(
    run_id: UUID,
    command: str,
    payload: CommandRequest | None = None,
    store: BestScoreStore = Depends(get_best_score_store),
    run_store: RunStore = Depends(get_run_store),
) -> CommandResponse:
    """Generic command endpoint.

    The body carries whichever of `index` / `stage_index` the command needs.
    An illegal-right-now command answers 200 with `result: null`.
    """

    game = _run_or_404(run_store, run_id)
    if command not in COMMAND_NAMES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown command: {command}")

    game.store = store
    old_id = str(run_id)
    try:
        out = dispatch_command(game=game, command=command, payload=payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    new_id = run_store.rekey(old_id, game)
    if new_id != old_id:
        await hub.follow_restart(old_id, new_id)
    await hub.notify_run_updated(new_id)
    return CommandResponse(snapshot=out.snapshot, result=out.result)


@router.get("/high-score", response_model=HighScoreResponse)
async def high_score_route(store: BestScoreStore = Depends(get_best_score_store)) -> HighScoreResponse:
    return HighScoreResponse(best_score=store.read())
