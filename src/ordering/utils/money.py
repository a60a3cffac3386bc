"""Parsing of display prices into fixed-point amounts.

Menu prices arrive from the catalog as free-form display strings such as
``"S/ 12.50"`` or ``"$1,200"``. They are normalized once, when an order line is
captured, and all arithmetic afterwards uses ``Decimal`` rounded half-up to
cents.
"""

import re
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

CENTS = Decimal("0.01")

_NUMBER = re.compile(r"^\d+(\.\d+)?$")
_NOISE = (",", "S/", "$", " ")


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_price(label: str | None, item_name: str | None = None) -> Decimal:
    """Turn a display price into a positive amount rounded to cents.

    Raises ``ValidationError`` when the label is missing, not numeric after
    stripping currency symbols and separators, or not greater than zero.
    """
    subject = item_name or "menu item"
    if label is None or not str(label).strip():
        raise ValidationError({"price": [f"Price is missing for {subject}"]})

    cleaned = str(label).strip()
    for token in _NOISE:
        cleaned = cleaned.replace(token, "")

    if not _NUMBER.match(cleaned):
        raise ValidationError({"price": [f"Invalid price format for {subject}: {label}"]})

    amount = to_cents(Decimal(cleaned))
    if amount <= 0:
        raise ValidationError({"price": [f"Price must be greater than zero for {subject}: {label}"]})
    return amount


def try_parse_price(label: str | None) -> Decimal | None:
    """Parse a display price, returning None when it cannot be used for arithmetic."""
    try:
        return parse_price(label)
    except ValidationError:
        return None
