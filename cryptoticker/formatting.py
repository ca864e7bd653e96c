"""
Display formatting for prices and percent changes.

Pure functions. Inputs are the raw decimal strings from the wire; anything
that does not parse as a finite number is returned unchanged.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN, localcontext
from typing import Optional

# (lower bound of |value|, max fraction digits), checked top to bottom
PRICE_PRECISION = (
    (Decimal("100"), 0),
    (Decimal("1"), 1),
    (Decimal("0.1"), 3),
    (Decimal("0"), 8),
)

PERCENT_DIGITS = 2


def _parse(raw) -> Optional[Decimal]:
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not value.is_finite():
        return None
    return value


def _quantize(value: Decimal, digits: int) -> Optional[Decimal]:
    """Round to `digits` fraction digits with enough precision for any magnitude."""
    with localcontext() as ctx:
        ctx.prec = max(28, value.adjusted() + digits + 2)
        try:
            return value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_EVEN)
        except InvalidOperation:
            # Exponent outside the context range
            return None


def price_digits(value: Decimal) -> int:
    """Maximum fraction digits for a price of this magnitude."""
    magnitude = abs(value)
    for lower, digits in PRICE_PRECISION:
        if magnitude >= lower:
            return digits
    return PRICE_PRECISION[-1][1]


def format_price(raw: str) -> str:
    """
    Format a raw price string for display.

    Examples:
        "67250.5"    -> "67,250"
        "3500.12"    -> "3,500"
        "2.456"      -> "2.5"
        "0.24567"    -> "0.246"
        "0.00001234" -> "0.00001234"
    """
    value = _parse(raw)
    if value is None:
        return raw

    digits = price_digits(value)
    quantized = _quantize(value, digits)
    if quantized is None:
        return raw
    text = f"{quantized:,.{digits}f}"

    # Max fraction digits, not fixed
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def format_percent(raw: str) -> str:
    """
    Format a raw percent-change string with explicit sign.

    "-1.23" -> "-1.23%", "0" -> "+0.00%", "4.5" -> "+4.50%"
    """
    value = _parse(raw)
    if value is None:
        return raw

    quantized = _quantize(value, PERCENT_DIGITS)
    if quantized is None:
        return raw
    if quantized == 0:
        quantized = abs(quantized)
    return f"{quantized:+,.{PERCENT_DIGITS}f}%"


def format_change_column(raw: str) -> str:
    """Compact fixed-width change column for tables: "-1.23" -> " -1.2%"."""
    value = _parse(raw)
    if value is None:
        return raw
    return "%+5.1f%%" % float(value)
