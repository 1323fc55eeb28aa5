from __future__ import annotations

from collections.abc import Generator

import redis
from fastapi import Depends

from biopath.high_score import BestScoreStore, RedisBestScoreStore, create_redis
from biopath.run_store import RunStore, runs


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except redis.RedisError:
            pass


def get_best_score_store(r: redis.Redis = Depends(get_redis)) -> BestScoreStore:
    return RedisBestScoreStore(r=r)


def get_run_store() -> RunStore:
    return runs
