"""Render the live-data text blob handed to the conversational assistant."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from defi_pulse.data_collection.summary import DeFiSummary, market_share

UNAVAILABLE_CONTEXT = "Live DeFi data temporarily unavailable. Use general knowledge for estimates."
TOP_CONTEXT_PROTOCOLS = 5


def _usd(value: Optional[float]) -> str:
    return f"${value:.2f}" if value is not None else "N/A"


def _billions(value: Optional[float]) -> str:
    return f"${value / 1e9:.2f}B" if value is not None else "N/A"


def _pct(value: Optional[float]) -> str:
    return f"{value:.2f}%" if value is not None else "N/A"


def render_live_context(
    summary: DeFiSummary,
    now: datetime,
    base_symbol: str = "ETH",
    derivative_symbol: str = "eETH",
) -> str:
    protocol = summary.protocol
    apy = summary.yield_pools[0].apy if summary.yield_pools else None

    lines = [
        f"LIVE DEFI DATA (Current as of {now.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}):",
        "",
        f"{base_symbol} Price: {_usd(summary.prices.base)}",
        f"{derivative_symbol} Price: {_usd(summary.prices.derivative)}",
        "",
        f"{protocol.name} Protocol:",
        f"- Total Value Locked (TVL): {_billions(protocol.tvl)}",
        f"- 24h Change: {_pct(protocol.change_1d)}",
        f"- 7d Change: {_pct(protocol.change_7d)}",
        f"- Current APY: {_pct(apy)}",
        f"- Market Cap: {_billions(protocol.mcap)}",
        f"- Category: {protocol.category or 'N/A'}",
        "",
        "Top DeFi Protocols:",
    ]
    for rank, p in enumerate(summary.top_protocols[:TOP_CONTEXT_PROTOCOLS], start=1):
        lines.append(f"{rank}. {p.name} - TVL: {_billions(p.tvl)} ({_pct(p.change_7d)} 7d)")

    lines += [
        "",
        f"Total DeFi Market TVL: {_billions(summary.total_tvl)}",
        f"{protocol.name} Market Share: {_pct(market_share(protocol.tvl, summary.total_tvl))}",
    ]
    return "\n".join(lines)
