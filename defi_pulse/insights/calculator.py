"""Personalized valuation and reward projections for a liquid-staking position."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from defi_pulse.data_collection.summary import DeFiSummary
from defi_pulse.insights.models import (
    Comparisons,
    CurrentMetrics,
    InsightsResult,
    PortfolioValuation,
    ProjectedRewards,
    TvlGrowthProjection,
    UserPosition,
)
from defi_pulse.insights.narrative import build_narrative

DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30
TVL_GROWTH_FACTOR = 1.1
# Labeled simplification: a 10% TVL increase is modeled as a flat 5% boost to
# yearly rewards. It is not derived from protocol economics.
TVL_GROWTH_REWARD_BOOST = 0.05


@dataclass(frozen=True)
class ResolvedInputs:
    """Summary numbers with absent values resolved for the formulas.

    Defaults, applied here and nowhere else:
      quote_price   derivative price, else the base price
      apy           first tracked pool's apy, else 0
      average_apy   mean over tracked pools (absent apy counts as 0), 0 with no pools
      protocol_tvl  passed through; an absent tvl only zeroes the share
      change_7d     protocol 7-day change, else 0
    """

    base_price: float
    quote_price: float
    apy: float
    average_apy: float
    protocol_tvl: Optional[float]
    change_7d: float


def resolve_inputs(summary: DeFiSummary) -> ResolvedInputs:
    prices = summary.prices
    pool_apys = [p.apy if p.apy is not None else 0.0 for p in summary.yield_pools]
    return ResolvedInputs(
        base_price=prices.base,
        quote_price=prices.derivative if prices.derivative is not None else prices.base,
        apy=pool_apys[0] if pool_apys else 0.0,
        average_apy=sum(pool_apys) / len(pool_apys) if pool_apys else 0.0,
        protocol_tvl=summary.protocol.tvl,
        change_7d=summary.protocol.change_7d if summary.protocol.change_7d is not None else 0.0,
    )


def compute_insights(position: UserPosition, summary: DeFiSummary, base_symbol: str = "ETH") -> InsightsResult:
    """Combine a position with a summary. Pure: no I/O, no caching.

    Raises:
        ValidationError: when ``position.staked <= 0`` or an amount is negative
    """
    position.validate()
    inputs = resolve_inputs(summary)

    staked_value = position.staked * inputs.quote_price
    wrapped_value = position.wrapped * inputs.quote_price
    rewards_value = position.rewards * inputs.base_price
    total_value = staked_value + wrapped_value + rewards_value

    daily = position.staked * inputs.apy / 100 / DAYS_PER_YEAR
    monthly = daily * DAYS_PER_MONTH
    yearly = position.staked * inputs.apy / 100

    share = total_value / inputs.protocol_tvl * 100 if inputs.protocol_tvl else 0.0
    apy_vs_average = inputs.apy - inputs.average_apy
    seven_day_impact = total_value * inputs.change_7d / 100

    potential_gain = yearly * TVL_GROWTH_REWARD_BOOST
    growth = TvlGrowthProjection(
        new_tvl=inputs.protocol_tvl * TVL_GROWTH_FACTOR if inputs.protocol_tvl is not None else None,
        estimated_new_yearly_reward=yearly + potential_gain,
        potential_gain=potential_gain,
        potential_gain_value=potential_gain * inputs.base_price,
    )
    comparisons = Comparisons(
        protocol_share_percent=share,
        apy_vs_average=apy_vs_average,
        is_above_average=apy_vs_average > 0,
        protocol_change_7d=inputs.change_7d,
        seven_day_impact=seven_day_impact,
    )

    return InsightsResult(
        portfolio=PortfolioValuation(
            staked_amount=position.staked,
            wrapped_amount=position.wrapped,
            rewards=position.rewards,
            staked_value=staked_value,
            wrapped_value=wrapped_value,
            rewards_value=rewards_value,
            total_value=total_value,
        ),
        current_metrics=CurrentMetrics(
            apy=inputs.apy,
            base_price=inputs.base_price,
            quote_price=inputs.quote_price,
            protocol_tvl=inputs.protocol_tvl,
        ),
        projected_rewards=ProjectedRewards(
            daily=daily,
            daily_value=daily * inputs.base_price,
            monthly=monthly,
            monthly_value=monthly * inputs.base_price,
            yearly=yearly,
            yearly_value=yearly * inputs.base_price,
        ),
        comparisons=comparisons,
        tvl_growth_10_percent=growth,
        narrative=build_narrative(
            protocol_name=summary.protocol.name,
            apy=inputs.apy,
            comparisons=comparisons,
            growth=growth,
            base_symbol=base_symbol,
        ),
    )
