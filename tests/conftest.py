from __future__ import annotations

import random
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from biopath.api.models import CardInstance, GameState
from biopath.assets.registry import RING_SIZE, ReferenceData


@pytest.fixture(scope="session", autouse=True)
def _init_reference_data_for_tests() -> None:
    """Load the built-in TCA catalog once, from a clean singleton."""

    from biopath.assets.singleton import init_reference_data, reset_reference_data_for_tests

    reset_reference_data_for_tests()
    init_reference_data()


@pytest.fixture()
def ref() -> ReferenceData:
    from biopath.assets.singleton import get_reference_data

    return get_reference_data()


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def make_card(ref: ReferenceData) -> Callable[[str], CardInstance]:
    counter = iter(range(1, 1_000_000))

    def _make(card_id: str) -> CardInstance:
        return CardInstance(uid=f"t{next(counter)}", definition=ref.card(card_id))

    return _make


@pytest.fixture()
def blank_state() -> GameState:
    """An empty state in the action phase; tests arrange piles directly."""

    return GameState(
        run_id=uuid4(),
        created_at=datetime.now(tz=UTC),
        seed=0,
        phase="action",
        staged={i: [] for i in range(RING_SIZE)},
    )


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient with the Redis dependency swapped for fakeredis."""

    from collections.abc import Generator

    import fakeredis
    from fastapi.testclient import TestClient

    from biopath.api.deps import get_redis
    from biopath.main import app
    from biopath.run_store import runs

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    runs.clear()
    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
    runs.clear()
