from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Optional


def parse_currency(value: Optional[str]) -> Decimal:
    """
    Parse portal cost cells like:
    - "$1,000.00"
    - "1000"
    - "$ 12,345.6"
    - "-$12.34"
    - "$1,500.00 MXN"

    No rounding is applied; the value is compared as-is.
    """
    if value is None:
        raise ValueError("parse_currency: value is None")

    s = value.strip()
    if not s:
        raise ValueError("parse_currency: empty string")

    s = s.upper().replace("MXN", "").replace("$", "").replace(",", "").replace(" ", "").strip()

    # Handle parentheses as negative
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1].strip()

    try:
        dec = Decimal(s)
    except InvalidOperation as e:
        raise ValueError(f"parse_currency: not a number: {value!r}") from e
    if not dec.is_finite():
        raise ValueError(f"parse_currency: not a finite number: {value!r}")
    return dec


def is_zero_or_blank(value: Optional[str]) -> bool:
    """
    True for cost cells the portal uses to mean "no cost captured yet": blank, "$0" or "$0.00".

    Text that is not a number (e.g. "Por definir") is still a captured value, so it is not blank.
    """
    if value is None or not value.strip():
        return True
    try:
        return parse_currency(value) == 0
    except ValueError:
        return False


def format_mxn(amount: Decimal) -> str:
    # es-MX peso formatting: "$1,234.50", "-$12.00"
    if not amount.is_finite():
        return str(amount)
    with localcontext() as ctx:
        # Room for every integer digit plus cents; the default 28 digits overflow on huge amounts.
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        dec = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        sign = "-" if dec < 0 else ""
        return f"{sign}${abs(dec):,.2f}"
