"""Conversion between whole tokens and integer base units."""
from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

DEFAULT_DECIMALS = 18


def to_base_units(amount: Union[str, int, Decimal], decimals: int = DEFAULT_DECIMALS) -> int:
    """Convert a whole-token amount (e.g. ``"1.5"``) to base units.

    Raises:
        ValueError: If the amount is not a number or has more fractional
            digits than the token supports.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Not a number: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Not a number: {amount!r}")
    with localcontext() as ctx:
        ctx.prec = 78
        raw = value.scaleb(decimals)
    if raw != raw.to_integral_value():
        raise ValueError(f"{amount} has more than {decimals} decimal places")
    return int(raw)


def from_base_units(raw: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """Convert base units back to a whole-token ``Decimal``."""
    with localcontext() as ctx:
        ctx.prec = 78
        return Decimal(int(raw)).scaleb(-decimals)
