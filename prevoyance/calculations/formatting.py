"""
Currency Helpers

Amounts are whole CHF once they leave the engine. Rounding is half-up,
matching how the figures are printed on AVS and pension-fund statements.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from prevoyance.config import get_settings
from prevoyance.errors import ValidationError

Number = Union[Decimal, int, float, str]

WHOLE_CHF = Decimal("1")
CENTIMES = Decimal("0.01")

# fr-CH groups thousands with a narrow no-break space
THOUSANDS_SEPARATOR = "\u202f"


def to_decimal(value: Number, field: str) -> Decimal:
    """Convert user input to Decimal, rejecting anything non-numeric."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field, value=value)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() first so floats keep their printed value
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number", field=field, value=value)
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite", field=field, value=value)
    return result


def round_chf(value: Decimal) -> Decimal:
    """Round half-up to the nearest whole franc."""
    return value.quantize(WHOLE_CHF, rounding=ROUND_HALF_UP)


def round_centimes(value: Decimal) -> Decimal:
    return value.quantize(CENTIMES, rounding=ROUND_HALF_UP)


def monthly_from_annual(annual: Decimal) -> Decimal:
    """Monthly amount derived from an annual total."""
    return round_chf(annual / Decimal("12"))


def format_chf(value: Number, currency: Optional[str] = None) -> str:
    """
    Format an amount for display, e.g. ``format_chf(21420)`` -> ``'21 420 CHF'``.

    The amount is rounded to whole francs first. The currency label defaults
    to PENSION_CURRENCY.
    """
    if currency is None:
        currency = get_settings().pension.currency
    amount = round_chf(to_decimal(value, "value"))
    grouped = f"{int(amount):,}".replace(",", THOUSANDS_SEPARATOR)
    return f"{grouped} {currency}"
