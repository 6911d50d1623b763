# inverapp/utils/math_utils.py
"""
Numeric helpers shared by the pricing engine and the commission calculator.

Every function here is total: bad input (None, blank strings, garbage text,
NaN, Infinity) is coerced to 0 instead of raising. The quotation form has no
validation error channel, so a field the user is still typing in must never
break a recalculation.
"""

import math


def to_number(value, default=0.0):
    """
    Coerces a free-text or numeric value into a finite float.

    Accepts Chilean formatting, where '.' groups thousands and ',' marks
    decimals ("1.234,56" -> 1234.56). A lone ',' is treated as the decimal
    separator ("12,5" -> 12.5).

    Args:
        value: int, float, str or None
        default (float): Returned when the value cannot be read as a finite number

    Returns:
        float

    Example:
        >>> to_number("1.234,56")
        1234.56
        >>> to_number("abc")
        0.0
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else default

    text = str(value).strip().replace(' ', '').replace('$', '')
    if not text:
        return default

    if ',' in text and text.rfind(',') > text.rfind('.'):
        # "1.234,56" or "12,5"
        text = text.replace('.', '').replace(',', '.')
    else:
        # "1,234.56"
        text = text.replace(',', '')

    try:
        number = float(text)
    except (TypeError, ValueError):
        return default

    return number if math.isfinite(number) else default


def safe_div(numerator, denominator):
    """Divides, returning 0.0 for a zero or non-finite denominator or result."""
    numerator = to_number(numerator)
    denominator = to_number(denominator)
    if denominator == 0:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def round2(value):
    """Rounds to 2 decimals (half away from zero, like the browser form did)."""
    number = to_number(value)
    # Scaling through a string avoids 1.005 -> 1.00 style float artifacts.
    scaled = float(f"{abs(number) * 100:.6f}")
    rounded = math.floor(scaled + 0.5) / 100
    return math.copysign(rounded, number) if rounded else 0.0


def floor_decimals(value, decimals):
    """Truncates toward negative infinity at the given number of decimals (spreadsheet ROUNDDOWN for positives)."""
    factor = 10 ** decimals
    return math.floor(to_number(value) * factor) / factor


def clamp(value, lower, upper):
    return max(lower, min(upper, to_number(value)))
