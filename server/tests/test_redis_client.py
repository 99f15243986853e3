"""Tests for the customer lookup cache."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from workshop.services import redis_client


@pytest.fixture
def fake_redis():
    client = AsyncMock()
    with patch.object(redis_client, "redis_client", client):
        yield client


@pytest.mark.asyncio
async def test_cache_disabled_without_client():
    with patch.object(redis_client, "redis_client", None):
        assert await redis_client.get_cached_customer("+62811") is None
        assert await redis_client.cache_customer("+62811", {"id": 1}) is False
        assert await redis_client.check_redis_health() is False


@pytest.mark.asyncio
async def test_cache_round_trip(fake_redis):
    assert await redis_client.cache_customer("+62811", {"id": 1, "name": "Andi"}, ttl=60) is True

    key, ttl, payload = fake_redis.setex.await_args.args
    assert key == "customer:+62811"
    assert ttl == 60
    assert json.loads(payload)["name"] == "Andi"

    fake_redis.get.return_value = payload
    assert (await redis_client.get_cached_customer("+62811"))["id"] == 1


@pytest.mark.asyncio
async def test_errors_degrade_to_miss(fake_redis):
    fake_redis.get.side_effect = ConnectionError("connection reset")
    assert await redis_client.get_cached_customer("+62811") is None

    fake_redis.delete.side_effect = asyncio.TimeoutError()
    assert await redis_client.invalidate_customer_cache("+62811") is False


@pytest.mark.asyncio
async def test_invalidate(fake_redis):
    fake_redis.delete.return_value = 1
    assert await redis_client.invalidate_customer_cache("+62811") is True
    fake_redis.delete.assert_awaited_once_with("customer:+62811")
