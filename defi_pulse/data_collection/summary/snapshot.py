"""Build the composite DeFi summary from four concurrent upstream fetches."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Optional, Tuple, TypeVar

from defi_pulse.config import Config, get_config, load_config
from defi_pulse.data_collection.models import (
    PricePair,
    ProtocolDetail,
    ProtocolSnapshot,
    YieldPoolSnapshot,
)
from defi_pulse.data_collection.providers import (
    LlamaCoinsSource,
    LlamaTvlSource,
    LlamaYieldsSource,
    filter_pools_by_project,
)
from defi_pulse.data_collection.summary.aggregator import TOP_N, rank_protocols, total_tvl
from defi_pulse.utils.errors import AggregationError, ConfigurationError, UpstreamError
from defi_pulse.utils.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

WETH = "ethereum:0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
EETH = "ethereum:0x35fA164735182de50811E8e2E824cFb9B6118ac2"


@dataclass(frozen=True)
class TrackedProtocol:
    """The protocol a user's position lives in, and its token pair."""

    slug: str = "ether.fi"
    base_coin: str = WETH
    derivative_coin: str = EETH
    base_symbol: str = "ETH"
    derivative_symbol: str = "eETH"
    yield_match: Optional[str] = None  # defaults to the upstream protocol name

    @classmethod
    def from_config(cls, cfg: Config) -> "TrackedProtocol":
        defaults = cls()
        return cls(
            slug=cfg.get("tracked_protocol.slug", defaults.slug),
            base_coin=cfg.get("tracked_protocol.base_coin", defaults.base_coin),
            derivative_coin=cfg.get("tracked_protocol.derivative_coin", defaults.derivative_coin),
            base_symbol=cfg.get("tracked_protocol.base_symbol", defaults.base_symbol),
            derivative_symbol=cfg.get("tracked_protocol.derivative_symbol", defaults.derivative_symbol),
            yield_match=cfg.get("tracked_protocol.yield_match"),
        )


@dataclass(frozen=True)
class DeFiSummary:
    protocol: ProtocolDetail
    prices: PricePair
    yield_pools: Tuple[YieldPoolSnapshot, ...]
    top_protocols: Tuple[ProtocolSnapshot, ...]
    total_tvl: float


async def _required(source: str, fetch: Awaitable[T]) -> T:
    try:
        return await fetch
    except UpstreamError as e:
        logger.error(f"Required source '{source}' has no fresh or stale data: {e}", extra={"source": source})
        raise AggregationError(f"Required source '{source}' failed: {e}", source=source) from e


class SummaryAggregator:
    """Fan out to the protocol, price, yield and protocol-list sources and merge."""

    def __init__(
        self,
        tvl_source: Optional[LlamaTvlSource] = None,
        coins_source: Optional[LlamaCoinsSource] = None,
        yields_source: Optional[LlamaYieldsSource] = None,
        tracked: Optional[TrackedProtocol] = None,
        top_n: Optional[int] = None,
    ):
        try:
            cfg = get_config()
        except ConfigurationError:
            cfg = load_config()
        self.tvl = tvl_source or LlamaTvlSource()
        self.coins = coins_source or LlamaCoinsSource()
        self.yields = yields_source or LlamaYieldsSource()
        self.tracked = tracked or TrackedProtocol.from_config(cfg)
        self.top_n = int(top_n if top_n is not None else cfg.get("summary.top_n", TOP_N))

    async def get_defi_summary(self) -> DeFiSummary:
        """All four fetches start together; the first failure raises ``AggregationError``.

        Fetches still outstanding when one fails keep running and populate the
        cache for the next call.
        """
        t = self.tracked
        protocol, prices, pools, protocols = await asyncio.gather(
            _required("protocol", self.tvl.get_protocol(t.slug)),
            _required("prices", self.coins.get_price_pair(t.base_coin, t.derivative_coin)),
            _required("yields", self.yields.get_yield_pools()),
            _required("protocols", self.tvl.get_all_protocols()),
        )

        summary = DeFiSummary(
            protocol=protocol,
            prices=prices,
            yield_pools=filter_pools_by_project(pools, t.yield_match or protocol.name),
            top_protocols=rank_protocols(protocols, self.top_n),
            total_tvl=total_tvl(protocols),
        )
        logger.info(
            "Built DeFi summary",
            extra={"source": t.slug},
        )
        return summary
