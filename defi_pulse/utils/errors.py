"""Custom exception classes for DeFi Pulse."""
from typing import Optional


class DefiPulseError(Exception):
    """Base exception for all DeFi Pulse errors."""
    pass


class ConfigurationError(DefiPulseError):
    """Raised when there's a configuration error."""
    pass


class ValidationError(DefiPulseError):
    """Raised when caller-supplied input is invalid."""
    pass


class UpstreamError(DefiPulseError):
    """Raised when an upstream source fails (network error or non-2xx response)."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class DecodeError(UpstreamError):
    """Raised when an upstream payload is structurally invalid."""
    pass


class AggregationError(DefiPulseError):
    """Raised when a required concurrent fetch failed with no stale fallback."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source
