"""
market_data.py - USD spot prices for wallet and deposit valuation

CoinGecko simple-price lookups, cached in Redis under ``market:{SYMBOL}:usd``.
Valuation is best-effort: when neither the cache nor CoinGecko answers, the
caller gets ``None`` and keeps whatever USD figure it already has.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx
from redis.exceptions import RedisError

from bitrader.config import settings
from bitrader.core.redis import get_redis

logger = logging.getLogger(__name__)

# Map asset symbols to CoinGecko IDs
COINGECKO_MAP = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "BNB": "binancecoin",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
}

STABLECOINS = {"USDT", "USDC", "DAI", "BUSD"}


def _cache_key(symbol: str) -> str:
    return f"market:{symbol}:usd"


async def fetch_usd_price(symbol: str) -> Optional[Decimal]:
    """Fetch the current USD price of ``symbol`` from CoinGecko."""
    coin_id = COINGECKO_MAP.get(symbol)
    if not coin_id:
        return None

    async with httpx.AsyncClient(timeout=10.0) as client:
        r = await client.get(
            f"{settings.COINGECKO_BASE_URL}/simple/price",
            params={"ids": coin_id, "vs_currencies": "usd"},
        )
        r.raise_for_status()
        data = r.json()

    usd = data.get(coin_id, {}).get("usd")
    if usd is None:
        return None
    return Decimal(str(usd))


async def get_usd_price(symbol: str) -> Optional[Decimal]:
    symbol = symbol.upper()
    if symbol in STABLECOINS:
        return Decimal("1")

    cache = None
    try:
        cache = await get_redis()
        cached = await cache.get(_cache_key(symbol))
        if cached:
            return Decimal(cached)
    except (RedisError, InvalidOperation) as e:
        logger.warning("Price cache read failed for %s: %s", symbol, e)
        cache = None

    try:
        price = await fetch_usd_price(symbol)
    except httpx.HTTPError as e:
        logger.warning("CoinGecko price fetch failed for %s: %s", symbol, e)
        return None

    if price is not None and cache is not None:
        try:
            await cache.set(_cache_key(symbol), str(price), ex=settings.PRICE_CACHE_SECONDS)
        except RedisError as e:
            logger.warning("Price cache write failed for %s: %s", symbol, e)
    return price


async def usd_value(symbol: str, amount: Decimal) -> Optional[Decimal]:
    """Value ``amount`` units of ``symbol`` in USD, rounded to cents."""
    price = await get_usd_price(symbol)
    if price is None:
        return None
    return (Decimal(amount) * price).quantize(Decimal("0.01"))
