from __future__ import annotations

import logging
import os
from typing import Protocol

import redis

logger = logging.getLogger(__name__)


def get_high_score_key() -> str:
    return os.environ.get("BIOPATH_HIGH_SCORE_KEY", "biopath:highscore")


class BestScoreStore(Protocol):
    def read(self) -> int: ...

    def write_if_higher(self, candidate: int) -> bool: ...


class InMemoryBestScoreStore:
    """Process-local best score; the default when no Redis is wired up."""

    def __init__(self, initial: int = 0) -> None:
        self._best = initial

    def read(self) -> int:
        return self._best

    def write_if_higher(self, candidate: int) -> bool:
        if candidate > self._best:
            self._best = candidate
            return True
        return False


class RedisBestScoreStore:
    """Best score kept under a single Redis key.

    Never raises into gameplay: a failed read counts as 0 and a failed write
    as "not a new high".
    """

    def __init__(self, *, r: redis.Redis, key: str | None = None) -> None:
        self.r = r
        self.key = key or get_high_score_key()

    def read(self) -> int:
        try:
            raw = self.r.get(self.key)
        except redis.RedisError as e:
            logger.warning("best score read failed: %s", e)
            return 0
        if not raw:
            return 0
        try:
            return int(raw)
        except ValueError:
            logger.warning("best score key %s holds a non-integer: %r", self.key, raw)
            return 0

    def write_if_higher(self, candidate: int) -> bool:
        try:
            current = self.read()
            if candidate <= current:
                return False
            self.r.set(self.key, str(candidate))
        except redis.RedisError as e:
            logger.warning("best score write failed: %s", e)
            return False
        return True


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def create_redis() -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(get_redis_url(), decode_responses=True)
