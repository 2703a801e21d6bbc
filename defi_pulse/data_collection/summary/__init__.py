"""Public API for the DeFi summary aggregator."""

from .aggregator import market_share, rank_protocols, total_tvl, tvl_or_zero
from .snapshot import DeFiSummary, SummaryAggregator, TrackedProtocol

__all__ = [
    "DeFiSummary",
    "SummaryAggregator",
    "TrackedProtocol",
    "market_share",
    "rank_protocols",
    "total_tvl",
    "tvl_or_zero",
]
