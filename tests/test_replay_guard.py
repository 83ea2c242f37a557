"""One-time-use ledger for redeemed credentials."""

import asyncio

import pytest

from magic_link_engine.core.config import settings
from magic_link_engine.services import replay_guard as replay_guard_module
from magic_link_engine.services.replay_guard import (
    InMemoryReplayGuard,
    RedisReplayGuard,
    ReplayOutcome,
    build_replay_guard,
)
from tests.conftest import FIXED_NOW, FakeRedis


@pytest.fixture(params=["memory", "redis"])
def guard(request, clock):
    if request.param == "memory":
        return InMemoryReplayGuard(clock=clock, grace_seconds=60)
    return RedisReplayGuard(FakeRedis(), clock=clock, grace_seconds=60)


@pytest.mark.asyncio
async def test_first_use_is_fresh_and_second_is_rejected(guard):
    expiry = FIXED_NOW + 900

    assert await guard.check_and_consume("jti-1", expiry) is ReplayOutcome.FRESH
    assert await guard.check_and_consume("jti-1", expiry) is ReplayOutcome.ALREADY_USED
    assert await guard.check_and_consume("jti-2", expiry) is ReplayOutcome.FRESH


@pytest.mark.asyncio
async def test_expired_credential_is_not_recorded(guard, clock):
    assert await guard.check_and_consume("jti-1", FIXED_NOW) is ReplayOutcome.EXPIRED

    clock.now = FIXED_NOW - 10
    assert await guard.check_and_consume("jti-1", FIXED_NOW) is ReplayOutcome.FRESH


@pytest.mark.asyncio
async def test_concurrent_consumers_get_exactly_one_fresh(guard):
    outcomes = await asyncio.gather(
        *(guard.check_and_consume("jti-race", FIXED_NOW + 900) for _ in range(25))
    )

    assert outcomes.count(ReplayOutcome.FRESH) == 1
    assert outcomes.count(ReplayOutcome.ALREADY_USED) == 24


@pytest.mark.asyncio
async def test_redis_record_outlives_the_credential(clock):
    redis = FakeRedis()
    guard = RedisReplayGuard(redis, clock=clock, grace_seconds=60)

    await guard.check_and_consume("jti-1", FIXED_NOW + 900)

    assert redis.store["magic:used:jti-1"] == "used"
    assert redis.ttls["magic:used:jti-1"] == 900 + 60


@pytest.mark.asyncio
async def test_memory_ledger_drops_records_after_retention(clock):
    guard = InMemoryReplayGuard(clock=clock, grace_seconds=0)
    await guard.check_and_consume("jti-1", FIXED_NOW + 10)
    assert len(guard) == 1

    clock.advance(5)
    await guard.check_and_consume("jti-2", FIXED_NOW + 100)
    assert len(guard) == 2

    clock.advance(10)
    await guard.check_and_consume("jti-3", FIXED_NOW + 100)
    assert len(guard) == 2
    # The purged credential has expired, so it still cannot be redeemed
    assert await guard.check_and_consume("jti-1", FIXED_NOW + 10) is ReplayOutcome.EXPIRED


def test_memory_backend_is_shared_across_requests(monkeypatch):
    monkeypatch.setattr(settings, "REPLAY_BACKEND", "memory")

    assert build_replay_guard(None) is build_replay_guard(FakeRedis())
    assert build_replay_guard(None) is replay_guard_module._memory_guard


def test_redis_backend_requires_a_connection(monkeypatch):
    monkeypatch.setattr(settings, "REPLAY_BACKEND", "redis")

    assert isinstance(build_replay_guard(FakeRedis()), RedisReplayGuard)
    with pytest.raises(RuntimeError):
        build_replay_guard(None)
