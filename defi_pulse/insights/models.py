from dataclasses import dataclass
from typing import Optional, Tuple

from defi_pulse.utils.validation import validate_amount


@dataclass(frozen=True)
class UserPosition:
    """A user's holdings in the tracked protocol, in native token units.

    ``staked`` is held as the derivative token, ``wrapped`` as its wrapped form,
    ``rewards`` are unclaimed and paid in the base token.
    """

    staked: float
    wrapped: float = 0.0
    rewards: float = 0.0

    def validate(self) -> None:
        validate_amount(self.staked, "staked", allow_zero=False)
        validate_amount(self.wrapped, "wrapped")
        validate_amount(self.rewards, "rewards")


@dataclass(frozen=True)
class PortfolioValuation:
    staked_amount: float
    wrapped_amount: float
    rewards: float
    staked_value: float
    wrapped_value: float
    rewards_value: float
    total_value: float


@dataclass(frozen=True)
class CurrentMetrics:
    apy: float
    base_price: float
    quote_price: float
    protocol_tvl: Optional[float]


@dataclass(frozen=True)
class ProjectedRewards:
    """Native-unit rewards and their quote-currency value at the base price."""

    daily: float
    daily_value: float
    monthly: float
    monthly_value: float
    yearly: float
    yearly_value: float


@dataclass(frozen=True)
class Comparisons:
    protocol_share_percent: float
    apy_vs_average: float
    is_above_average: bool
    protocol_change_7d: float
    seven_day_impact: float


@dataclass(frozen=True)
class TvlGrowthProjection:
    new_tvl: Optional[float]
    estimated_new_yearly_reward: float
    potential_gain: float
    potential_gain_value: float


@dataclass(frozen=True)
class InsightsResult:
    portfolio: PortfolioValuation
    current_metrics: CurrentMetrics
    projected_rewards: ProjectedRewards
    comparisons: Comparisons
    tvl_growth_10_percent: TvlGrowthProjection
    narrative: Tuple[str, ...]
