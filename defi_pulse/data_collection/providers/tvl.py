"""DeFiLlama TVL service client (protocols, chains, fees)."""
from __future__ import annotations

from typing import Optional, Tuple
from urllib.parse import quote

from defi_pulse.data_collection.models import (
    ChainTVL,
    FeesOverview,
    ProtocolDetail,
    ProtocolSnapshot,
    TvlPoint,
    decode_chains,
    decode_fees,
    decode_protocol_detail,
    decode_protocols,
    decode_tvl_history,
)
from defi_pulse.data_collection.providers.base import BaseSource
from defi_pulse.utils.errors import UpstreamError
from defi_pulse.utils.logging import get_logger


logger = get_logger(__name__)

FEES_PARAMS = {
    "excludeTotalDataChart": "true",
    "excludeTotalDataChartBreakdown": "true",
}


class LlamaTvlSource(BaseSource):
    NAME = "llama_tvl"
    BASE_URL_KEY = "upstream.tvl_base_url"
    DEFAULT_BASE_URL = "https://api.llama.fi"

    async def get_all_protocols(self) -> Tuple[ProtocolSnapshot, ...]:
        return await self._cached("/protocols", decode_protocols)

    async def get_protocol(self, slug: str) -> ProtocolDetail:
        return await self._cached(f"/protocol/{quote(slug, safe='.-_')}", decode_protocol_detail)

    async def get_chains(self) -> Tuple[ChainTVL, ...]:
        return await self._cached("/v2/chains", decode_chains)

    async def get_chain_history(self, chain: str) -> Tuple[TvlPoint, ...]:
        return await self._cached(f"/v2/historicalChainTvl/{quote(chain, safe='')}", decode_tvl_history)

    async def get_fees(self, protocol: Optional[str] = None) -> FeesOverview:
        if protocol:
            params = dict(FEES_PARAMS, dataType="dailyFees")
            return await self._cached(f"/overview/fees/{quote(protocol, safe='.-_')}", decode_fees, params)
        return await self._cached("/overview/fees", decode_fees, FEES_PARAMS)

    async def health_check(self) -> bool:
        try:
            await self._get_json(f"{self.base_url}/v2/chains")
            return True
        except UpstreamError:
            return False
