"""
Money helpers. Amounts are integer cents internally and two-decimal
strings on the wire ("20.00").
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def format_cents(cents: int) -> str:
    """2000 -> "20.00", -150 -> "-1.50"."""
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}{cents // 100}.{cents % 100:02d}"


def to_cents(value: int | float | str | Decimal) -> int:
    """
    Convert a decimal amount to cents, rounding half up.

    Raises:
        ValueError: if value is not a number.
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
