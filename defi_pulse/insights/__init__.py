"""Insights public API."""

from .calculator import ResolvedInputs, compute_insights, resolve_inputs
from .context import UNAVAILABLE_CONTEXT, render_live_context
from .models import (
    Comparisons,
    CurrentMetrics,
    InsightsResult,
    PortfolioValuation,
    ProjectedRewards,
    TvlGrowthProjection,
    UserPosition,
)
from .narrative import build_narrative, format_share

__all__ = [
    "Comparisons",
    "CurrentMetrics",
    "InsightsResult",
    "PortfolioValuation",
    "ProjectedRewards",
    "ResolvedInputs",
    "TvlGrowthProjection",
    "UNAVAILABLE_CONTEXT",
    "UserPosition",
    "build_narrative",
    "compute_insights",
    "format_share",
    "render_live_context",
    "resolve_inputs",
]
