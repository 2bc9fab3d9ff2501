"""Big-number helpers for currency values.

Currency outgrows a double in late game (past 1e308), so every currency-like
value is a ``decimal.Decimal``. Saves store the canonical ``str()`` form,
which parses back to an equal value. Functions that do currency arithmetic
are wrapped in ``big_math`` so they run at 50 digits in any thread.
"""
from __future__ import annotations

import functools
import math
from decimal import ROUND_FLOOR, Context, Decimal, InvalidOperation, localcontext

# All currency arithmetic runs in this context; the thread default is left alone.
BIG_CONTEXT = Context(prec=50)

ZERO = Decimal(0)
ONE = Decimal(1)

_UNITS = ["", "K", "M", "B", "T", "Qa", "Qi", "Sx", "Sp", "Oc"]


def big_math(func):
    """Run ``func`` under BIG_CONTEXT."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with localcontext(BIG_CONTEXT):
            return func(*args, **kwargs)

    return wrapper


def to_big(value) -> Decimal:
    """Coerce a save field, float or int into a Decimal.

    Floats go through ``str`` so 1.07 stays 1.07 instead of its binary
    expansion. ``None`` and empty strings read as zero.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return ZERO
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidOperation(f"non-finite value {value!r}")
        return Decimal(repr(value))
    return Decimal(str(value).strip())


def big_to_str(value: Decimal) -> str:
    return str(value)


def big_floor(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_FLOOR)


@big_math
def format_number(value) -> str:
    """Short display form: 1234567 -> '1.23M', beyond 'Oc' -> '1.23e+45'."""
    num = to_big(value)
    if num == 0:
        return "0"
    if abs(num) < 1000:
        return f"{num:.0f}"
    tier = int(num.copy_abs().log10()) // 3
    if tier <= 0:
        return f"{num:.0f}"
    if tier >= len(_UNITS):
        return f"{num:.2e}"
    scaled = num.scaleb(-3 * tier)
    return f"{scaled:.2f}{_UNITS[tier]}"
