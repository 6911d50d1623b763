# inverapp/utils/formatting.py
"""
Display formatting for UF and peso amounts (es-CL conventions).

All formatters defensively replace non-finite input with zero, so a
half-typed field renders as "0,00" or "$ 0" instead of "NaN".
"""

import math


def _group_thousands(integer_part):
    # 1234567 -> "1.234.567"
    return f"{integer_part:,}".replace(',', '.')


def _finite_or_zero(amount):
    if amount is None or isinstance(amount, bool):
        return 0.0
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def format_uf(amount):
    """Formats a UF amount with 2 decimals: 1234.5 -> '1.234,50'."""
    amount = _finite_or_zero(amount)
    sign = '-' if amount < 0 else ''
    text = f"{abs(amount):.2f}"
    integer_part, decimals = text.split('.')
    return f"{sign}{_group_thousands(int(integer_part))},{decimals}"


def format_pct(amount):
    """Formats a percentage with 2 decimals: 5.5 -> '5,50%'."""
    return f"{format_uf(amount)}%"


def format_clp(amount):
    """Formats pesos with no decimals: 1234567.8 -> '$ 1.234.568'."""
    amount = _finite_or_zero(amount)
    rounded = int(math.floor(abs(amount) + 0.5))
    if rounded == 0:
        return '$ 0'
    sign = '-' if amount < 0 else ''
    return f"{sign}$ {_group_thousands(rounded)}"


def uf_to_pesos(uf_amount, uf_value):
    """Converts a UF amount to a formatted peso string; '$ 0' when either side is missing."""
    uf_amount = _finite_or_zero(uf_amount)
    uf_value = _finite_or_zero(uf_value)
    return format_clp(uf_amount * uf_value)
