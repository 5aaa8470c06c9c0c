# rental_store/schemas/pricing.py
from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

PaymentOption = Literal["full", "deposit"]


class RentalQuoteRequest(SQLModel):
    """
    Input for a live car rental quote.

    Built by the storefront on every date/option change. Date ordering is
    not validated here: the pricing engine floors the rental at one day.
    """

    price_per_day: Decimal = Field(ge=0)
    start_date: date
    end_date: date
    with_driver: bool = False
    pickup_location_id: str | None = None
    child_seats: int = Field(default=0, ge=0)
    camping_equipment: bool = False


class RateCard(SQLModel):
    """
    Per-day rates and percentage fees applied by the pricing engine.
    """

    service_fee_rate: Decimal = Decimal("0.05")
    driver_rate_per_day: Decimal = Decimal("50")
    child_seat_rate_per_day: Decimal = Decimal("3")
    child_seat_max_quantity: int = 4
    camping_rate_per_day: Decimal = Decimal("10")


class PriceBreakdown(SQLModel):
    """
    Itemized price of one rental. Immutable once computed.

    total = subtotal + service_fee + driver_fee + delivery_fee + addons_total
    """

    model_config = ConfigDict(frozen=True)

    days: int = Field(ge=1)
    subtotal: Decimal
    service_fee: Decimal = Decimal("0")
    driver_fee: Decimal = Decimal("0")
    delivery_fee: Decimal = Decimal("0")
    child_seats_total: Decimal = Decimal("0")
    camping_equipment_total: Decimal = Decimal("0")
    addons_total: Decimal = Decimal("0")
    total: Decimal


class PaymentSplit(SQLModel):
    """
    How a booking total is paid: everything now, or a deposit now and the
    remaining balance at pickup.
    """

    payment_option: PaymentOption
    total_price: Decimal
    deposit_amount: Decimal
    remaining_balance: Decimal
