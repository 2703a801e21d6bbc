"""Upstream source factory and exports."""

from .base import BaseSource, cache_key
from .coins import LlamaCoinsSource
from .tvl import LlamaTvlSource
from .yields import LlamaYieldsSource, filter_pools_by_project


def get_source(source_name: str, **kwargs) -> BaseSource:
    """Get source by canonical name.

    Canonical names:
    - "llama_tvl"
    - "llama_coins"
    - "llama_yields"
    """
    for cls in (LlamaTvlSource, LlamaCoinsSource, LlamaYieldsSource):
        if cls.NAME == source_name:
            return cls(**kwargs)
    raise ValueError(f"Unknown source: {source_name}")


__all__ = [
    "BaseSource",
    "LlamaCoinsSource",
    "LlamaTvlSource",
    "LlamaYieldsSource",
    "cache_key",
    "filter_pools_by_project",
    "get_source",
]
