"""Decimal arithmetic helpers for balances, prices and quantities.

All monetary and quantity values are ``Decimal``; floats never reach the
ledger. Derived values are quantized to 18 places so that what the engine
computes is exactly what a NUMERIC(38, 18) column stores. Amounts credited
to a user round down and amounts charged round up.
"""

from decimal import ROUND_DOWN, ROUND_HALF_EVEN, ROUND_UP, Decimal, InvalidOperation

QUANTUM = Decimal("1e-18")
ZERO = Decimal(0)

AmountLike = Decimal | int | str


def to_decimal(value: AmountLike | float) -> Decimal:
    """Coerce ``value`` to a finite Decimal. Floats go through ``str`` first."""
    if isinstance(value, bool):
        raise ValueError("Boolean is not an amount")
    if isinstance(value, float):
        value = str(value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a decimal amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result


def quantize(value: Decimal) -> Decimal:
    """Round to 18 decimal places, banker's rounding."""
    return value.quantize(QUANTUM, rounding=ROUND_HALF_EVEN)


def quantize_down(value: Decimal) -> Decimal:
    """Round toward zero. Used for amounts credited to a user."""
    return value.quantize(QUANTUM, rounding=ROUND_DOWN)


def quantize_up(value: Decimal) -> Decimal:
    """Round away from zero. Used for amounts charged to a user."""
    return value.quantize(QUANTUM, rounding=ROUND_UP)


def normalize(value: Decimal) -> Decimal:
    """Strip trailing zeros for display/serialization: 550.000 -> 550."""
    if value == ZERO:
        return ZERO
    normalized = value.normalize()
    # normalize() turns 1000 into 1E+3; keep plain notation.
    if normalized.as_tuple().exponent > 0:
        return normalized.quantize(Decimal(1))
    return normalized


def fiat_to_display(amount: Decimal, symbol: str = "$") -> str:
    """1234.5 -> '$1,234.50', -12 -> '-$12.00'."""
    cents = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)
    if cents < 0:
        return f"-{symbol}{-cents:,.2f}"
    return f"{symbol}{cents:,.2f}"
