"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re
from typing import Union

CENT = Decimal("0.01")

AmountLike = Union[str, int, float, Decimal]


def parse_amount(value: AmountLike) -> Decimal:
    """Parse a money value into a Decimal.

    Strings may carry a currency symbol, thousands separators or the
    accounting "(123.45)" negative notation. Floats go through ``str`` so
    that 0.1 parses as Decimal("0.1").

    Args:
        value: Amount as string or number

    Returns:
        Decimal amount

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Could not parse amount {value!r}")
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    text = (value or "").strip()
    if not text:
        raise ValueError("Empty amount string")

    is_negative = text.startswith("(") and text.endswith(")")
    if is_negative:
        text = text[1:-1]

    text = re.sub(r"[$€£¥฿\s]", "", text).replace(",", "")

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{value}'") from e
    return -amount if is_negative else amount


def to_money(amount: Decimal) -> Decimal:
    """Round an amount to cents, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
