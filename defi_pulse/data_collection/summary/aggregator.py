"""Summary-level computation over upstream protocol and pool records."""
from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from defi_pulse.data_collection.models import ProtocolSnapshot

TOP_N = 10


def tvl_or_zero(protocol: ProtocolSnapshot) -> float:
    """Missing TVL counts as 0 for ordering and totals only."""
    return protocol.tvl if protocol.tvl is not None else 0.0


def rank_protocols(protocols: Sequence[ProtocolSnapshot], top_n: int = TOP_N) -> Tuple[ProtocolSnapshot, ...]:
    """Top ``top_n`` protocols by TVL, descending; ties keep upstream order."""
    ranked = sorted(protocols, key=tvl_or_zero, reverse=True)
    return tuple(ranked[:top_n])


def total_tvl(protocols: Iterable[ProtocolSnapshot]) -> float:
    """Sum of TVL over the whole, unfiltered protocol list."""
    return float(sum(tvl_or_zero(p) for p in protocols))


def market_share(protocol_tvl: Optional[float], market_tvl: float) -> Optional[float]:
    """Percent of the market held by one protocol; None when not computable."""
    if protocol_tvl is None or not market_tvl:
        return None
    return protocol_tvl / market_tvl * 100.0
