"""Upstream data collection: cached fetching, typed sources and the summary aggregator."""

from .fetcher import CachedFetcher, get_fetcher

__all__ = ["CachedFetcher", "get_fetcher"]
