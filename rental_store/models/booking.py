# rental_store/models/booking.py
import uuid
from typing import Any
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


def _money(**kwargs: Any) -> Any:
    return Field(default=Decimal("0"), max_digits=10, decimal_places=2, **kwargs)


class Booking(SQLModel, table=True):
    """
    One reserved car or tour, written at checkout.

    One row per cart line item. Prices are copied from the cart snapshot;
    nothing is repriced here.
    """

    __tablename__ = "bookings"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    # Supabase auth user; None for guest checkout
    user_id: uuid.UUID | None = Field(default=None, index=True)

    # car | tour
    booking_type: str = Field(index=True)
    car_id: str | None = Field(default=None, index=True)
    tour_id: str | None = Field(default=None, index=True)

    customer_name: str
    customer_email: str
    customer_phone: str | None = None

    start_date: date
    end_date: date
    pickup_time: str | None = None
    dropoff_time: str | None = None
    pickup_location_id: str | None = None
    with_driver: bool = False
    passengers: int | None = None

    child_seats: int = 0
    child_seats_total: Decimal = _money()
    camping_equipment: bool = False
    camping_equipment_total: Decimal = _money()
    addons_total: Decimal = _money()

    total_price: Decimal = _money(description="Snapshot total of the line item")

    # full | deposit
    payment_option: str = Field(default="full")
    deposit_amount: Decimal = _money()
    remaining_balance: Decimal = _money()

    # pending | confirmed | completed | cancelled
    status: str = Field(default="pending", index=True)

    notes: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
