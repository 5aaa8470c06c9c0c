# rental_store/core/currency.py
from decimal import Decimal, ROUND_HALF_UP

CURRENCY_SYMBOL = "€"
CURRENCY_CODE = "EUR"


def round_half_up(value: Decimal, places: int = 0) -> Decimal:
    """
    Round to `places` decimals using commercial (half-up) rounding.

    Every price figure that is rounded anywhere in the backend goes through
    this helper, so quotes, bookings and emails always agree.
    """
    quantum = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def format_price(amount: Decimal | float | int) -> str:
    """
    Format an amount as euros with 0-2 fraction digits.

        format_price(465)       -> '€465'
        format_price(93.5)      -> '€93.5'
        format_price(1234.567)  -> '€1,234.57'
    """
    value = round_half_up(Decimal(str(amount)), 2)
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"{CURRENCY_SYMBOL}{text}"
