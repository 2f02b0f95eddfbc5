"""
Decimal money helpers (``payroll_kernel.domain.rounding``).

All payroll arithmetic is ``Decimal``.  Two rounding directions exist:

* ``round_half_up`` -- nearest whole unit, halves away from zero.  Used
  everywhere except state insurance.  Python's builtin ``round`` is
  banker's rounding and must not be used on money.
* ``round_up`` -- ceiling to the next whole unit.  State insurance only.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from payroll_kernel.exceptions import InputValidationError

MoneyLike = Union[Decimal, int, str]

ZERO = Decimal("0")
_UNIT = Decimal("1")


def _exponent(places: int) -> Decimal:
    return _UNIT if places == 0 else Decimal(1).scaleb(-places)


def round_half_up(value: Decimal, places: int = 0) -> Decimal:
    """Round to ``places`` decimals, halves away from zero."""
    return value.quantize(_exponent(places), rounding=ROUND_HALF_UP)


def round_up(value: Decimal) -> Decimal:
    """Round up to the next whole currency unit (74.1 -> 75)."""
    return value.quantize(_UNIT, rounding=ROUND_CEILING)


def to_minor_units(value: Decimal) -> int:
    """Amount x 100 as an integer, e.g. ``Decimal("12.345")`` -> 1235."""
    return int((value * 100).quantize(_UNIT, rounding=ROUND_HALF_UP))


def as_money(value: MoneyLike, field: str = "amount") -> Decimal:
    """Coerce an int/str/Decimal input to ``Decimal`` without float noise.

    Raises:
        InputValidationError: if the value is a float, a bool, or is not
            a finite number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or isinstance(value, float):
        raise InputValidationError(field, value, "money must be Decimal, int or str")
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise InputValidationError(field, value, "not a number") from None
    if not result.is_finite():
        raise InputValidationError(field, value, "not a finite number")
    return result


def non_negative(value: MoneyLike, field: str) -> Decimal:
    """``as_money`` that also rejects negative values (never clamps)."""
    result = as_money(value, field)
    if result < ZERO:
        raise InputValidationError(field, value, "must not be negative")
    return result
