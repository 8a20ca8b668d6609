"""Rounding helpers for amounts in minor currency units.

Every calculator picks its own rounding and totals are compared exactly
downstream, so these helpers must stay bit-for-bit stable.
"""

import math
from decimal import ROUND_FLOOR, Decimal
from typing import Any

_HALF = Decimal("0.5")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def ceil_units(value: Any) -> Decimal:
    return Decimal(math.ceil(to_decimal(value)))


def round_half_ceiling(value: Any) -> Decimal:
    """Round to an integer with halves going toward positive infinity."""
    return (to_decimal(value) + _HALF).to_integral_value(rounding=ROUND_FLOOR)


def rate_or_default(custom_rate: Any, default_rate: Any) -> Decimal:
    """A plan's custom rate when one is set, otherwise the catalog rate."""
    return to_decimal(custom_rate if custom_rate is not None else default_rate)
