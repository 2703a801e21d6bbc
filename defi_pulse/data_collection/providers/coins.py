"""DeFiLlama coins service client (current prices and price charts)."""
from __future__ import annotations

import time
from functools import partial
from typing import Dict, Optional, Sequence, Tuple

from defi_pulse.data_collection.models import (
    PriceHistory,
    PricePair,
    PricePoint,
    TokenPriceSnapshot,
    decode_price_chart,
    decode_prices,
)
from defi_pulse.data_collection.providers.base import BaseSource
from defi_pulse.utils.errors import DecodeError, UpstreamError, ValidationError
from defi_pulse.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_PERIOD = "7d"

# period -> (seconds back, span, interval); sized to keep the chart request small
PERIODS: Dict[str, Tuple[int, int, str]] = {
    "24h": (24 * 3600, 24, "1h"),
    "7d": (7 * 24 * 3600, 168, "2h"),
    "30d": (30 * 24 * 3600, 720, "6h"),
    "90d": (90 * 24 * 3600, 90, "1d"),
    "1y": (365 * 24 * 3600, 365, "1d"),
}


def validate_coin_id(coin: str) -> str:
    """Coins are addressed as ``chain:address`` (or ``coingecko:id``)."""
    coin = (coin or "").strip()
    chain, sep, address = coin.partition(":")
    if not sep or not chain or not address or "," in coin:
        raise ValidationError(f"Invalid coin identifier: {coin!r}. Expect 'chain:address'.")
    return coin


class LlamaCoinsSource(BaseSource):
    NAME = "llama_coins"
    BASE_URL_KEY = "upstream.coins_base_url"
    DEFAULT_BASE_URL = "https://coins.llama.fi"

    async def get_current_prices(self, coins: Sequence[str]) -> Dict[str, TokenPriceSnapshot]:
        if not coins:
            raise ValidationError("At least one coin identifier is required")
        joined = ",".join(validate_coin_id(c) for c in coins)
        return await self._cached(f"/prices/current/{joined}", decode_prices)

    async def get_price_pair(self, base_coin: str, derivative_coin: str) -> PricePair:
        """Price of the base token and (when listed) its derivative.

        Raises:
            DecodeError: when the base token is missing from the response
        """
        prices = await self.get_current_prices([base_coin, derivative_coin])
        base = prices.get(base_coin)
        if base is None:
            raise DecodeError(f"No price returned for base token {base_coin}", source=self.NAME)
        derivative = prices.get(derivative_coin)
        return PricePair(base=base.price, derivative=derivative.price if derivative else None)

    async def get_price_chart(self, coin: str, period: str, now: Optional[float] = None) -> Tuple[PricePoint, ...]:
        seconds_back, span, interval = PERIODS[period]
        start = int(now if now is not None else time.time()) - seconds_back
        params = {"start": start, "span": span, "period": interval, "searchWidth": 600}
        return await self._cached(
            f"/chart/{validate_coin_id(coin)}",
            partial(decode_price_chart, coin=coin),
            params,
            key_params={"window": period},
        )

    async def get_price_history(self, coin: str, period: str = DEFAULT_PERIOD, now: Optional[float] = None) -> PriceHistory:
        """Price series for ``period``; falls back to the current price as one point.

        Unknown periods are treated as the default period.
        """
        if period not in PERIODS:
            period = DEFAULT_PERIOD

        fallback = False
        try:
            points = await self.get_price_chart(coin, period, now=now)
        except UpstreamError as e:
            logger.warning(f"Price chart unavailable, falling back to current price: {e}", extra={"source": self.NAME})
            points = ()

        if not points:
            fallback = True
            current = (await self.get_current_prices([coin])).get(coin)
            if current is None:
                raise DecodeError(f"No price available for {coin}", source=self.NAME)
            ts = int(now if now is not None else time.time())
            points = (PricePoint(timestamp=ts, price=current.price),)

        first, last = points[0].price, points[-1].price
        change = last - first if len(points) > 1 else 0.0
        change_pct = change / first * 100 if len(points) > 1 and first else 0.0
        return PriceHistory(
            coin=coin,
            period=period,
            current_price=last,
            price_change=change,
            price_change_percent=change_pct,
            points=points,
            fallback=fallback,
        )

    async def health_check(self) -> bool:
        try:
            await self._get_json(f"{self.base_url}/prices/current/coingecko:ethereum")
            return True
        except UpstreamError:
            return False
