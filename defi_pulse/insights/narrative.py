"""Human-readable insight lines."""
from typing import Tuple

from defi_pulse.insights.models import Comparisons, TvlGrowthProjection

MIN_DISPLAY_SHARE = 0.01


def format_share(share_percent: float) -> str:
    """Shares below 0.01% render as ``<0.01`` instead of a spuriously precise decimal."""
    if share_percent < MIN_DISPLAY_SHARE:
        return "<0.01"
    return f"{share_percent:.4f}"


def build_narrative(
    protocol_name: str,
    apy: float,
    comparisons: Comparisons,
    growth: TvlGrowthProjection,
    base_symbol: str = "ETH",
) -> Tuple[str, ...]:
    gap = abs(comparisons.apy_vs_average)
    if comparisons.is_above_average:
        apy_line = f"Your current APY ({apy:.2f}%) is {gap:.2f}% above the protocol average!"
    else:
        apy_line = f"Your current APY ({apy:.2f}%) is {gap:.2f}% below the protocol average."

    change = comparisons.protocol_change_7d
    if change > 0:
        change_line = (
            f"{protocol_name}'s TVL grew {change:.2f}% in the last 7 days, "
            f"potentially increasing your rewards by ~${abs(comparisons.seven_day_impact):.2f}."
        )
    else:
        change_line = f"{protocol_name}'s TVL changed {change:.2f}% in the last 7 days."

    share_line = (
        f"You own {format_share(comparisons.protocol_share_percent)}% "
        f"of the total {protocol_name} protocol TVL."
    )

    growth_line = (
        f"If {protocol_name}'s TVL grows by 10%, your estimated yearly reward could increase by "
        f"{growth.potential_gain:.4f} {base_symbol} (${growth.potential_gain_value:.2f})."
    )

    return (apy_line, change_line, share_line, growth_line)
