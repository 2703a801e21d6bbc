"""DeFiLlama yields service client."""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from defi_pulse.data_collection.models import YieldPoolSnapshot, decode_yield_pools
from defi_pulse.data_collection.providers.base import BaseSource
from defi_pulse.utils.errors import UpstreamError


def filter_pools_by_project(pools: Iterable[YieldPoolSnapshot], match: str) -> Tuple[YieldPoolSnapshot, ...]:
    """Pools whose project contains ``match`` (case-insensitive), upstream order kept."""
    needle = match.strip().lower()
    return tuple(p for p in pools if needle in p.project.lower())


class LlamaYieldsSource(BaseSource):
    NAME = "llama_yields"
    BASE_URL_KEY = "upstream.yields_base_url"
    DEFAULT_BASE_URL = "https://yields.llama.fi"

    async def get_yield_pools(self) -> Tuple[YieldPoolSnapshot, ...]:
        return await self._cached("/pools", decode_yield_pools)

    async def get_project_pools(self, match: Optional[str]) -> Tuple[YieldPoolSnapshot, ...]:
        pools = await self.get_yield_pools()
        if not match or not match.strip():
            return pools
        return filter_pools_by_project(pools, match)

    async def health_check(self) -> bool:
        try:
            await self._get_json(f"{self.base_url}/pools")
            return True
        except UpstreamError:
            return False
