"""
Numeric helpers shared by every leave calculation.

All figures shown to users go through round2() so that repeated calls on the
same inputs always produce the same value.
"""
import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping, Optional

_TWO_PLACES = Decimal("0.01")


def to_number(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Coerce an API value into a finite float.

    Booleans, NaN, infinities and anything unparsable fall back to `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float, Decimal)):
        # Ints beyond float range overflow instead of becoming inf
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return default
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    else:
        return default

    if not math.isfinite(number):
        return default
    return number


def round2(value: float) -> float:
    """Round half-up to two decimal places."""
    try:
        quantized = Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return value
    # "+ 0.0" folds -0.0 into 0.0
    return float(quantized) + 0.0


def field_value(source: Any, key: str) -> Any:
    """Read `key` from a mapping or an object such as a pydantic model."""
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def non_negative_field(source: Any, key: str) -> float:
    return max(0.0, to_number(field_value(source, key), 0.0))
