"""
Typed records for upstream DeFi data and their decode step.

Every ``decode_*`` function accepts the parsed JSON body of one upstream
response. A payload whose top-level shape is wrong raises ``DecodeError``
(so the fetcher can fall back to a stale value); individual records that are
malformed are dropped and counted in a warning. Numeric fields that may be
absent upstream stay ``None`` here and are never replaced by zero.
"""
from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from defi_pulse.utils.errors import DecodeError
from defi_pulse.utils.logging import get_logger


logger = get_logger(__name__)


def _opt_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value)
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def _opt_int(value: Any) -> Optional[int]:
    number = _opt_float(value)
    return int(number) if number is not None else None


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _require_str(record: Dict[str, Any], key: str, what: str) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value:
        raise DecodeError(f"{what} record missing '{key}'")
    return value


def _require_dict(payload: Any, what: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise DecodeError(f"Expected an object for {what}, got {type(payload).__name__}")
    return payload


def _require_list(payload: Any, what: str) -> List[Any]:
    if not isinstance(payload, list):
        raise DecodeError(f"Expected a list for {what}, got {type(payload).__name__}")
    return payload


def _decode_records(items: List[Any], decode, what: str) -> tuple:
    records = []
    dropped = 0
    for item in items:
        try:
            records.append(decode(_require_dict(item, what)))
        except DecodeError:
            dropped += 1
    if dropped:
        logger.warning(f"Dropped {dropped} malformed {what} record(s)", extra={"source": what})
    return tuple(records)


def as_payload(record: Any) -> Any:
    """Convert a record (or sequence/mapping of records) into JSON-ready data."""
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    if isinstance(record, dict):
        return {k: as_payload(v) for k, v in record.items()}
    if isinstance(record, (list, tuple)):
        return [as_payload(v) for v in record]
    return record


@dataclass(frozen=True)
class TvlPoint:
    date: int  # epoch seconds
    tvl: float


def _decode_tvl_point(record: Dict[str, Any]) -> TvlPoint:
    date = _opt_int(record.get("date"))
    tvl = _opt_float(record.get("tvl", record.get("totalLiquidityUSD")))
    if date is None or tvl is None:
        raise DecodeError("TVL point missing date or value")
    return TvlPoint(date=date, tvl=tvl)


@dataclass(frozen=True)
class ProtocolSnapshot:
    """One protocol record of the TVL service."""

    name: str
    slug: str
    category: Optional[str] = None
    symbol: Optional[str] = None
    chains: Tuple[str, ...] = ()
    tvl: Optional[float] = None
    change_1h: Optional[float] = None
    change_1d: Optional[float] = None
    change_7d: Optional[float] = None
    mcap: Optional[float] = None

    @staticmethod
    def _common(record: Dict[str, Any]) -> Dict[str, Any]:
        name = _require_str(record, "name", "protocol")
        chains = record.get("chains") or ()
        return {
            "name": name,
            "slug": _opt_str(record.get("slug")) or name.lower().replace(" ", "-"),
            "category": _opt_str(record.get("category")),
            "symbol": _opt_str(record.get("symbol")),
            "chains": tuple(c for c in chains if isinstance(c, str)) if isinstance(chains, list) else (),
            "change_1h": _opt_float(record.get("change_1h")),
            "change_1d": _opt_float(record.get("change_1d")),
            "change_7d": _opt_float(record.get("change_7d")),
            "mcap": _opt_float(record.get("mcap")),
        }

    @classmethod
    def from_payload(cls, record: Dict[str, Any]) -> "ProtocolSnapshot":
        return cls(tvl=_opt_float(record.get("tvl")), **cls._common(record))


@dataclass(frozen=True)
class ProtocolDetail(ProtocolSnapshot):
    """Protocol detail record, including its TVL history when provided."""

    description: Optional[str] = None
    url: Optional[str] = None
    tvl_history: Tuple[TvlPoint, ...] = ()
    current_chain_tvls: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, record: Dict[str, Any]) -> "ProtocolDetail":
        record = _require_dict(record, "protocol detail")
        raw_tvl = record.get("tvl")
        history: Tuple[TvlPoint, ...] = ()
        if isinstance(raw_tvl, list):
            # The detail endpoint reports tvl as a daily series
            history = _decode_records(raw_tvl, _decode_tvl_point, "protocol tvl point")
            tvl = history[-1].tvl if history else None
        else:
            tvl = _opt_float(raw_tvl)

        chain_tvls: Dict[str, float] = {}
        raw_chain_tvls = record.get("currentChainTvls")
        if isinstance(raw_chain_tvls, dict):
            for chain, value in raw_chain_tvls.items():
                number = _opt_float(value)
                if number is not None:
                    chain_tvls[str(chain)] = number

        return cls(
            tvl=tvl,
            description=_opt_str(record.get("description")),
            url=_opt_str(record.get("url")),
            tvl_history=history,
            current_chain_tvls=chain_tvls,
            **cls._common(record),
        )


@dataclass(frozen=True)
class ChainTVL:
    name: str
    tvl: Optional[float] = None
    token_symbol: Optional[str] = None
    gecko_id: Optional[str] = None
    chain_id: Optional[int] = None

    @classmethod
    def from_payload(cls, record: Dict[str, Any]) -> "ChainTVL":
        return cls(
            name=_require_str(record, "name", "chain"),
            tvl=_opt_float(record.get("tvl")),
            token_symbol=_opt_str(record.get("tokenSymbol")),
            gecko_id=_opt_str(record.get("gecko_id")),
            chain_id=_opt_int(record.get("chainId")),
        )


@dataclass(frozen=True)
class TokenPriceSnapshot:
    coin: str  # "chain:address"
    symbol: str
    price: float
    timestamp: Optional[int] = None
    decimals: Optional[int] = None
    confidence: Optional[float] = None


@dataclass(frozen=True)
class PricePair:
    """Tracked base token price and its liquid-staking derivative."""

    base: float
    derivative: Optional[float] = None


@dataclass(frozen=True)
class PricePoint:
    timestamp: int  # epoch seconds
    price: float


@dataclass(frozen=True)
class PriceHistory:
    coin: str
    period: str
    current_price: Optional[float]
    price_change: float
    price_change_percent: float
    points: Tuple[PricePoint, ...] = ()
    fallback: bool = False


@dataclass(frozen=True)
class YieldPoolSnapshot:
    pool: str
    chain: Optional[str]
    project: str
    symbol: str
    apy: Optional[float] = None
    apy_base: Optional[float] = None
    apy_reward: Optional[float] = None
    tvl_usd: Optional[float] = None
    stablecoin: bool = False
    il_risk: Optional[str] = None
    exposure: Optional[str] = None

    @classmethod
    def from_payload(cls, record: Dict[str, Any]) -> "YieldPoolSnapshot":
        return cls(
            pool=_opt_str(record.get("pool")) or "",
            chain=_opt_str(record.get("chain")),
            project=_require_str(record, "project", "yield pool"),
            symbol=_require_str(record, "symbol", "yield pool"),
            apy=_opt_float(record.get("apy")),
            apy_base=_opt_float(record.get("apyBase")),
            apy_reward=_opt_float(record.get("apyReward")),
            tvl_usd=_opt_float(record.get("tvlUsd")),
            stablecoin=bool(record.get("stablecoin", False)),
            il_risk=_opt_str(record.get("ilRisk")),
            exposure=_opt_str(record.get("exposure")),
        )


@dataclass(frozen=True)
class FeesOverview:
    name: Optional[str] = None
    total_24h: Optional[float] = None
    total_7d: Optional[float] = None
    total_30d: Optional[float] = None
    total_all_time: Optional[float] = None
    change_1d: Optional[float] = None


def decode_protocols(payload: Any) -> Tuple[ProtocolSnapshot, ...]:
    items = _require_list(payload, "protocol list")
    return _decode_records(items, ProtocolSnapshot.from_payload, "protocol")


def decode_protocol_detail(payload: Any) -> ProtocolDetail:
    return ProtocolDetail.from_payload(payload)


def decode_chains(payload: Any) -> Tuple[ChainTVL, ...]:
    items = _require_list(payload, "chain list")
    return _decode_records(items, ChainTVL.from_payload, "chain")


def decode_tvl_history(payload: Any) -> Tuple[TvlPoint, ...]:
    items = _require_list(payload, "tvl history")
    return _decode_records(items, _decode_tvl_point, "tvl point")


def decode_prices(payload: Any) -> Dict[str, TokenPriceSnapshot]:
    """Decode ``/prices/current`` into a mapping keyed by coin id.

    Coins the service does not know are simply absent from the mapping.
    """
    coins = _require_dict(_require_dict(payload, "price response").get("coins"), "price coins")
    prices: Dict[str, TokenPriceSnapshot] = {}
    for coin, record in coins.items():
        if not isinstance(record, dict):
            continue
        price = _opt_float(record.get("price"))
        if price is None:
            continue
        prices[coin] = TokenPriceSnapshot(
            coin=coin,
            symbol=_opt_str(record.get("symbol")) or coin,
            price=price,
            timestamp=_opt_int(record.get("timestamp")),
            decimals=_opt_int(record.get("decimals")),
            confidence=_opt_float(record.get("confidence")),
        )
    return prices


def decode_price_chart(payload: Any, coin: str) -> Tuple[PricePoint, ...]:
    coins = _require_dict(_require_dict(payload, "chart response").get("coins"), "chart coins")
    record = coins.get(coin)
    if not isinstance(record, dict):
        return ()
    raw_points = record.get("prices")
    if not isinstance(raw_points, list):
        return ()
    points = []
    for point in raw_points:
        if not isinstance(point, dict):
            continue
        ts = _opt_int(point.get("timestamp"))
        price = _opt_float(point.get("price"))
        if ts is not None and price is not None:
            points.append(PricePoint(timestamp=ts, price=price))
    return tuple(points)


def decode_yield_pools(payload: Any) -> Tuple[YieldPoolSnapshot, ...]:
    items = _require_list(_require_dict(payload, "yield response").get("data"), "yield pool list")
    return _decode_records(items, YieldPoolSnapshot.from_payload, "yield pool")


def decode_fees(payload: Any) -> FeesOverview:
    record = _require_dict(payload, "fees overview")
    return FeesOverview(
        name=_opt_str(record.get("name")),
        total_24h=_opt_float(record.get("total24h")),
        total_7d=_opt_float(record.get("total7d")),
        total_30d=_opt_float(record.get("total30d")),
        total_all_time=_opt_float(record.get("totalAllTime")),
        change_1d=_opt_float(record.get("change_1d")),
    )
