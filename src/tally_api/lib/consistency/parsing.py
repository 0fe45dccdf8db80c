"""Numeric coercion for untyped submission input.

Operators submit figures from web forms and spreadsheets, so counts arrive
as ints, floats, numeric strings, empty strings, or not at all. Missing or
malformed values become 0; these helpers never raise.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any


def coerce_float(value: Any) -> float:
    """Convert an untyped value to a finite float.

    Args:
        value: Raw input (None, bool, int, float, Decimal, or str).

    Returns:
        The parsed float, or 0.0 when the value is missing, malformed, or
        not finite.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return 0.0
    elif not isinstance(value, int | float | Decimal):
        return 0.0
    try:
        result = float(Decimal(value))
    except (InvalidOperation, ValueError, OverflowError):
        return 0.0
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def coerce_int(value: Any) -> int:
    """Convert an untyped value to an int, truncating any fractional part.

    Args:
        value: Raw input (None, bool, int, float, Decimal, or str).

    Returns:
        The parsed integer, or 0 when the value is missing or malformed.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return int(coerce_float(value))


def coerce_optional_int(value: Any) -> int | None:
    """Like ``coerce_int`` but keeps absent values absent.

    Used for the optional anomaly counters, where "not reported" and "zero"
    are different answers.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return coerce_int(value)


def coerce_optional_float(value: Any) -> float | None:
    """Like ``coerce_float`` but keeps absent values absent."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return coerce_float(value)
