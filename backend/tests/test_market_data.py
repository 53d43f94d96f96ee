from decimal import Decimal
from unittest.mock import patch, AsyncMock, MagicMock

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from bitrader.services import market_data


def _fake_redis(cached=None):
    cache = MagicMock()
    cache.get = AsyncMock(return_value=cached)
    cache.set = AsyncMock()
    return cache


@pytest.mark.asyncio
async def test_stablecoins_are_pegged():
    assert await market_data.get_usd_price("usdt") == Decimal("1")


@pytest.mark.asyncio
async def test_cached_price_is_used():
    cache = _fake_redis("64000.5")
    with patch.object(market_data, "get_redis", new=AsyncMock(return_value=cache)), \
         patch.object(market_data, "fetch_usd_price", new=AsyncMock()) as fetch:
        price = await market_data.get_usd_price("BTC")
    assert price == Decimal("64000.5")
    cache.get.assert_awaited_once_with("market:BTC:usd")
    fetch.assert_not_called()


@pytest.mark.asyncio
async def test_cache_miss_fetches_and_stores():
    cache = _fake_redis(None)
    with patch.object(market_data, "get_redis", new=AsyncMock(return_value=cache)), \
         patch.object(market_data, "fetch_usd_price", new=AsyncMock(return_value=Decimal("3100"))):
        price = await market_data.get_usd_price("ETH")
    assert price == Decimal("3100")
    cache.set.assert_awaited_once_with("market:ETH:usd", "3100", ex=market_data.settings.PRICE_CACHE_SECONDS)


@pytest.mark.asyncio
async def test_redis_outage_falls_through_to_fetch():
    cache = MagicMock()
    cache.get = AsyncMock(side_effect=RedisConnectionError("down"))
    with patch.object(market_data, "get_redis", new=AsyncMock(return_value=cache)), \
         patch.object(market_data, "fetch_usd_price", new=AsyncMock(return_value=Decimal("150"))):
        price = await market_data.get_usd_price("SOL")
    assert price == Decimal("150")


@pytest.mark.asyncio
async def test_fetch_failure_returns_none():
    cache = _fake_redis(None)
    failing = AsyncMock(side_effect=httpx.ConnectError("no route"))
    with patch.object(market_data, "get_redis", new=AsyncMock(return_value=cache)), \
         patch.object(market_data, "fetch_usd_price", new=failing):
        assert await market_data.get_usd_price("BTC") is None
        assert await market_data.usd_value("BTC", Decimal("2")) is None
    cache.set.assert_not_called()


@pytest.mark.asyncio
async def test_usd_value_rounds_to_cents():
    with patch.object(market_data, "get_usd_price", new=AsyncMock(return_value=Decimal("3.333"))):
        assert await market_data.usd_value("XRP", Decimal("1.5")) == Decimal("5.00")


@pytest.mark.asyncio
async def test_unknown_symbol_has_no_price():
    assert await market_data.fetch_usd_price("UNKNOWN") is None
