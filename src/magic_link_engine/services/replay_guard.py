"""
Replay Guard
============
One-time-use ledger for magic link credentials.

``check_and_consume`` is a single atomic read-modify-write: of any number of
concurrent calls with the same credential id, exactly one gets ``FRESH``.

Backends:
  - RedisReplayGuard     ``SET magic:used:<id> used NX EX <ttl>`` (shared
                         across nodes)
  - InMemoryReplayGuard  lock-guarded dict (single process)
"""

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum

import redis.asyncio as aioredis

from magic_link_engine.auth_strategies.constants import MAGIC_LINK_USED_PREFIX
from magic_link_engine.core.config import settings
from magic_link_engine.tokens.codec import Clock, system_clock

logger = logging.getLogger(__name__)


class ReplayOutcome(str, Enum):
    FRESH = "fresh"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"


class ReplayGuard(ABC):
    def __init__(self, clock: Clock | None = None, grace_seconds: int | None = None) -> None:
        self.clock = clock or system_clock
        self.grace_seconds = (
            grace_seconds if grace_seconds is not None else settings.MAGIC_LINK_REPLAY_GRACE_SECONDS
        )

    async def check_and_consume(self, credential_id: str, absolute_expiry: int) -> ReplayOutcome:
        now = self.clock()
        if now >= absolute_expiry:
            return ReplayOutcome.EXPIRED

        # Keep the record at least as long as the credential could still verify
        retain_seconds = absolute_expiry - now + max(self.grace_seconds, 0)
        if await self._mark_used(credential_id, retain_seconds):
            return ReplayOutcome.FRESH

        logger.warning(f"[MagicLink] Replay detected for credential {credential_id}")
        return ReplayOutcome.ALREADY_USED

    @abstractmethod
    async def _mark_used(self, credential_id: str, retain_seconds: int) -> bool:
        """Record the credential as used. Return False if it already was."""
        pass


class RedisReplayGuard(ReplayGuard):
    def __init__(
        self,
        redis_client: aioredis.Redis,
        clock: Clock | None = None,
        grace_seconds: int | None = None,
    ) -> None:
        super().__init__(clock=clock, grace_seconds=grace_seconds)
        self.redis = redis_client

    async def _mark_used(self, credential_id: str, retain_seconds: int) -> bool:
        key = f"{MAGIC_LINK_USED_PREFIX}{credential_id}"
        created = await self.redis.set(key, "used", nx=True, ex=retain_seconds)
        return bool(created)


class InMemoryReplayGuard(ReplayGuard):
    def __init__(self, clock: Clock | None = None, grace_seconds: int | None = None) -> None:
        super().__init__(clock=clock, grace_seconds=grace_seconds)
        self._lock = threading.Lock()
        # credential id -> epoch second after which the record may be dropped
        self._ledger: dict[str, int] = {}

    async def _mark_used(self, credential_id: str, retain_seconds: int) -> bool:
        now = self.clock()
        with self._lock:
            self._purge(now)
            if credential_id in self._ledger:
                return False
            self._ledger[credential_id] = now + retain_seconds
            return True

    def _purge(self, now: int) -> None:
        elapsed = [key for key, retain_until in self._ledger.items() if retain_until <= now]
        for key in elapsed:
            del self._ledger[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._ledger)


_memory_guard = InMemoryReplayGuard()


def build_replay_guard(redis_client: aioredis.Redis | None) -> ReplayGuard:
    """Return the configured guard; the in-memory ledger is process-wide."""
    if settings.REPLAY_BACKEND == "memory":
        return _memory_guard
    if redis_client is None:
        raise RuntimeError("Redis replay backend selected but Redis is not initialized")
    return RedisReplayGuard(redis_client)
