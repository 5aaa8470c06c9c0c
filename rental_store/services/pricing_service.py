# rental_store/services/pricing_service.py
"""
Rental pricing engine.

Pure functions only: no sessions, no network, no storage. Safe to call on
every date-picker change.

Fee order is fixed:
  subtotal -> service fee (on subtotal only) -> driver fee -> delivery fee
  -> add-ons -> total
"""

from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from rental_store.core.currency import round_half_up
from rental_store.schemas.pricing import (
    PaymentOption,
    PaymentSplit,
    PriceBreakdown,
    RateCard,
    RentalQuoteRequest,
)

ZERO = Decimal("0")

# Share of the total paid up front when the shopper picks "deposit"
DEFAULT_DEPOSIT_RATE = Decimal("0.20")


def rental_days(start_date: date, end_date: date) -> int:
    """
    Whole days between pickup and drop-off, never less than 1.

    Same-day and inverted ranges bill as a single day.
    """
    return max(1, (end_date - start_date).days)


def compute_rental_price(
    request: RentalQuoteRequest,
    rates: RateCard | None = None,
    delivery_fees: Mapping[str, Decimal] | None = None,
) -> PriceBreakdown:
    """
    Compute the price breakdown of a car rental.

    Args:
        request: dates, daily rate, driver flag, location and add-ons.
        rates: rate card to apply (defaults to the standard rates).
        delivery_fees: location id -> delivery fee. Unknown ids cost 0.

    Never raises for date ordering or unknown locations.
    """
    rates = rates or RateCard()
    delivery_fees = delivery_fees or {}

    days = rental_days(request.start_date, request.end_date)

    subtotal = request.price_per_day * days
    service_fee = round_half_up(subtotal * rates.service_fee_rate)
    driver_fee = rates.driver_rate_per_day * days if request.with_driver else ZERO

    delivery_fee = ZERO
    if request.pickup_location_id:
        delivery_fee = Decimal(delivery_fees.get(request.pickup_location_id, ZERO))

    seats = min(request.child_seats, rates.child_seat_max_quantity)
    child_seats_total = seats * rates.child_seat_rate_per_day * days
    camping_equipment_total = (
        rates.camping_rate_per_day * days if request.camping_equipment else ZERO
    )
    addons_total = child_seats_total + camping_equipment_total

    total = subtotal + service_fee + driver_fee + delivery_fee + addons_total

    return PriceBreakdown(
        days=days,
        subtotal=subtotal,
        service_fee=service_fee,
        driver_fee=driver_fee,
        delivery_fee=delivery_fee,
        child_seats_total=child_seats_total,
        camping_equipment_total=camping_equipment_total,
        addons_total=addons_total,
        total=total,
    )


def fixed_price_breakdown(price: Decimal, days: int = 1) -> PriceBreakdown:
    """
    Breakdown for a package sold at a flat price (tours).

    No service, driver, delivery or add-on fees apply.
    """
    price = Decimal(price)
    return PriceBreakdown(days=max(1, days), subtotal=price, total=price)


def compute_payment_split(
    total: Decimal,
    payment_option: PaymentOption,
    deposit_rate: Decimal = DEFAULT_DEPOSIT_RATE,
) -> PaymentSplit:
    """
    Split a booking total into deposit and remaining balance.

    - 'full'    : nothing deferred, deposit and remaining are 0.
    - 'deposit' : deposit = total * rate rounded half-up to cents,
                  remaining = total - deposit.
    """
    total = Decimal(total)
    if payment_option == "deposit":
        deposit = round_half_up(total * deposit_rate, 2)
        remaining = total - deposit
    else:
        deposit = ZERO
        remaining = ZERO

    return PaymentSplit(
        payment_option=payment_option,
        total_price=total,
        deposit_amount=deposit,
        remaining_balance=remaining,
    )
