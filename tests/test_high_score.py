from __future__ import annotations

import fakeredis
import pytest

from biopath.game import BiopathGame
from biopath.high_score import InMemoryBestScoreStore, RedisBestScoreStore, get_high_score_key


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


def test_redis_store_only_keeps_higher_scores(r: fakeredis.FakeRedis) -> None:
    store = RedisBestScoreStore(r=r)

    assert store.read() == 0
    assert store.write_if_higher(40)
    assert not store.write_if_higher(40)
    assert not store.write_if_higher(12)
    assert store.read() == 40
    assert r.get("biopath:highscore") == "40"


def test_key_comes_from_env(monkeypatch: pytest.MonkeyPatch, r: fakeredis.FakeRedis) -> None:
    monkeypatch.setenv("BIOPATH_HIGH_SCORE_KEY", "test:best")
    assert get_high_score_key() == "test:best"

    RedisBestScoreStore(r=r).write_if_higher(7)
    assert r.get("test:best") == "7"


def test_garbage_value_reads_as_zero(r: fakeredis.FakeRedis) -> None:
    r.set("biopath:highscore", "lots")
    store = RedisBestScoreStore(r=r)

    assert store.read() == 0
    assert store.write_if_higher(3)
    assert store.read() == 3


def test_unreachable_redis_is_treated_as_empty() -> None:
    server = fakeredis.FakeServer()
    server.connected = False
    store = RedisBestScoreStore(r=fakeredis.FakeRedis(server=server, decode_responses=True))

    assert store.read() == 0
    assert not store.write_if_higher(99)


def test_game_records_into_redis(r: fakeredis.FakeRedis) -> None:
    game = BiopathGame(seed=21, store=RedisBestScoreStore(r=r))
    game.state.total_turns = 80
    game.state.score = 64

    game.select_card(0)
    game.discard_selected()

    assert game.state.new_high_score
    assert game.snapshot().best_score == 64


def test_in_memory_store() -> None:
    store = InMemoryBestScoreStore(initial=10)

    assert not store.write_if_higher(5)
    assert store.write_if_higher(11)
    assert store.read() == 11
