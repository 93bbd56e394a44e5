"""Utilities for working with monetary values in centerledger."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

AmountLike = Union[Decimal, int, float, str]

# Leading decimal number, the way a browser's parseFloat reads form input.
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def to_decimal(value: AmountLike) -> Decimal:
    """Convert ``value`` to a :class:`~decimal.Decimal` with two decimal places."""

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = Decimal(value)
    else:
        raise TypeError(f"Unsupported amount type: {type(value)!r}")

    return result.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_number(value: object) -> Optional[Decimal]:
    """Return the numeric value of ``value`` or ``None`` when it has none.

    Strings are read up to the first character that cannot continue a number,
    so ``"12.5 EGP"`` parses as ``12.5`` and ``"abc"`` has no value.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return None
        return result if result.is_finite() else None
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value.replace(",", ""))
        if not match:
            return None
        return Decimal(match.group(1))
    return None


def coerce_amount(value: object) -> Decimal:
    """Coerce raw form input to an amount.

    Empty input, the literal ``"0"`` and anything non-numeric all count as
    zero.
    """

    number = parse_number(value)
    if number is None:
        return ZERO
    return to_decimal(number)


def form_value(raw: object) -> Optional[Decimal | str]:
    """Return the payload representation of a numeric form field.

    The literal ``"0"`` is kept as the string ``"0"`` so an explicit zero
    survives a round trip and is not confused with an unset field. Unset
    input stays ``None``.
    """

    if raw is None:
        return None
    if isinstance(raw, str):
        text = raw.strip()
        if text == "":
            return None
        if text == "0":
            return "0"
    return coerce_amount(raw)


def format_currency(amount: AmountLike, currency: str = "EGP") -> str:
    """Return ``amount`` as a currency formatted string (e.g. ``1,234.50 EGP``)."""

    value = to_decimal(amount)
    return f"{value:,.2f} {currency}"


def format_number(value: AmountLike) -> str:
    """Format a statistic, dropping a trailing ``.00`` for whole numbers."""

    amount = to_decimal(value)
    if amount == amount.to_integral_value():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"
