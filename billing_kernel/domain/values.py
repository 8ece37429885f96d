"""
Values -- Decimal helpers for monetary arithmetic.

Responsibility:
    Converts inputs to ``Decimal`` and applies the single rounding rule used
    for invoice amounts (two places, ROUND_HALF_UP) and for percentages.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Monetary amounts are ``Decimal``, never ``float``.
    - Rounding is explicit; nothing here rounds implicitly.

Failure modes:
    - ValueError when a value cannot be converted, or is a float.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
HUNDRED = Decimal("100")

_MONEY_QUANTUM = Decimal("0.01")
_PERCENT_QUANTUM = Decimal("0.01")


def to_decimal(value: Decimal | str | int) -> Decimal:
    """
    Convert ``value`` to ``Decimal``.

    Floats are rejected: binary floating point cannot represent most
    currency amounts exactly.

    Raises:
        ValueError: If ``value`` is a float or not a valid number.
    """
    if isinstance(value, float):
        raise ValueError(f"Float amounts are not accepted: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return result


def quantize_money(amount: Decimal) -> Decimal:
    """Round to two decimal places, half-up."""
    return amount.quantize(_MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_percent(value: Decimal) -> Decimal:
    """Round a percentage to two decimal places, half-up."""
    return value.quantize(_PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """``part / whole * 100`` rounded to two places; ``0`` when ``whole`` is zero."""
    if whole == ZERO:
        return quantize_percent(ZERO)
    return quantize_percent(part * HUNDRED / whole)


def strip_scale(value: Decimal) -> Decimal:
    """Drop trailing zeros left by fixed-scale storage, without exponents."""
    if value == value.to_integral_value():
        return value.quantize(Decimal(1))
    return value.normalize()
