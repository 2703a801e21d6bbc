"""Input validation utilities."""
import math
from typing import List, Optional

from defi_pulse.utils.errors import ValidationError


def validate_amount(amount: float, name: str = "amount", allow_zero: bool = True) -> float:
    """
    Validate a token amount.

    Args:
        amount: Amount to validate
        name: Field name used in the error message
        allow_zero: Whether 0 is acceptable

    Returns:
        The amount as a float

    Raises:
        ValidationError: If amount is not a finite number in range
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError(f"{name} must be a number, got: {amount!r}")

    amount = float(amount)
    if not math.isfinite(amount):
        raise ValidationError(f"{name} must be finite, got: {amount}")

    if amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ValidationError(f"{name} must be {qualifier}, got: {amount}")

    if amount > 1e12:
        raise ValidationError(f"{name} too large: {amount}")

    return amount


def parse_coin_list(coins: Optional[str]) -> List[str]:
    """Split a comma-separated ``coins`` query value, dropping blanks."""
    if coins is None:
        return []
    return [c.strip() for c in coins.split(",") if c.strip()]


def validate_slug(slug: str) -> str:
    """Validate a protocol or chain slug."""
    slug = (slug or "").strip()
    if not slug or "/" in slug or len(slug) > 100:
        raise ValidationError(f"Invalid slug: {slug!r}")
    return slug
