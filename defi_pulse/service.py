"""Boundary operations exposed to the HTTP layer.

Each method returns a typed value or raises a typed ``DefiPulseError``; the
HTTP layer turns both into response envelopes.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from defi_pulse.data_collection.fetcher import CachedFetcher, get_fetcher
from defi_pulse.data_collection.models import (
    ChainTVL,
    FeesOverview,
    PriceHistory,
    PricePair,
    ProtocolDetail,
    TokenPriceSnapshot,
    TvlPoint,
    YieldPoolSnapshot,
)
from defi_pulse.data_collection.providers import LlamaCoinsSource, LlamaTvlSource, LlamaYieldsSource
from defi_pulse.data_collection.summary import DeFiSummary, SummaryAggregator, TrackedProtocol
from defi_pulse.insights import (
    UNAVAILABLE_CONTEXT,
    InsightsResult,
    UserPosition,
    compute_insights,
    render_live_context,
)
from defi_pulse.utils.errors import DefiPulseError
from defi_pulse.utils.logging import get_logger
from defi_pulse.utils.validation import validate_slug


logger = get_logger(__name__)


def _compact(name: str) -> str:
    return name.lower().replace(".", "").replace("-", "").replace(" ", "")


class DefiService:
    def __init__(
        self,
        fetcher: Optional[CachedFetcher] = None,
        tracked: Optional[TrackedProtocol] = None,
    ):
        self.fetcher = fetcher or get_fetcher()
        self.tvl = LlamaTvlSource(fetcher=self.fetcher)
        self.coins = LlamaCoinsSource(fetcher=self.fetcher)
        self.yields = LlamaYieldsSource(fetcher=self.fetcher)
        self.aggregator = SummaryAggregator(
            tvl_source=self.tvl,
            coins_source=self.coins,
            yields_source=self.yields,
            tracked=tracked,
        )
        self.tracked = self.aggregator.tracked

    async def get_chains(self) -> Tuple[ChainTVL, ...]:
        return await self.tvl.get_chains()

    async def get_prices(
        self, coins: Optional[Sequence[str]] = None
    ) -> Union[Dict[str, TokenPriceSnapshot], PricePair]:
        """Prices for ``coins``; without coins, the tracked base/derivative pair."""
        if coins:
            return await self.coins.get_current_prices(coins)
        return await self.coins.get_price_pair(self.tracked.base_coin, self.tracked.derivative_coin)

    async def get_protocol(self, slug: str) -> ProtocolDetail:
        return await self.tvl.get_protocol(validate_slug(slug))

    async def get_summary(self) -> DeFiSummary:
        return await self.aggregator.get_defi_summary()

    async def get_yields(self, protocol_filter: Optional[str] = None) -> Tuple[YieldPoolSnapshot, ...]:
        match = protocol_filter
        if protocol_filter and _compact(protocol_filter) == _compact(self.tracked.slug):
            match = self.tracked.yield_match or self.tracked.slug
        return await self.yields.get_project_pools(match)

    async def compute_user_insights(self, position: UserPosition) -> InsightsResult:
        # Reject bad input before touching any upstream
        position.validate()
        summary = await self.get_summary()
        return compute_insights(position, summary, base_symbol=self.tracked.base_symbol)

    async def get_price_history(self, period: str = "7d") -> PriceHistory:
        return await self.coins.get_price_history(self.tracked.base_coin, period)

    async def get_chain_tvl_history(self, chain: str) -> Tuple[TvlPoint, ...]:
        return await self.tvl.get_chain_history(validate_slug(chain))

    async def get_protocol_fees(self, protocol: Optional[str] = None) -> FeesOverview:
        return await self.tvl.get_fees(validate_slug(protocol) if protocol else None)

    async def get_live_context(self, now: Optional[datetime] = None) -> str:
        """Text blob for the assistant; degrades to a fixed line when data is unavailable."""
        try:
            summary = await self.get_summary()
        except DefiPulseError as e:
            logger.error(f"Live context unavailable: {e}")
            return UNAVAILABLE_CONTEXT
        return render_live_context(
            summary,
            now or datetime.now(timezone.utc),
            base_symbol=self.tracked.base_symbol,
            derivative_symbol=self.tracked.derivative_symbol,
        )

    def clear_cache(self) -> None:
        self.fetcher.store.clear()
        logger.info("Cache cleared")

    def cache_stats(self) -> Dict[str, Any]:
        return self.fetcher.store.stats()
