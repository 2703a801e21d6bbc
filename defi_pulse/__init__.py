"""DeFi Pulse: cached DeFi data aggregation and liquid-staking insights."""

__version__ = "0.1.0"
