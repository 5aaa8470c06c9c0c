# rental_store/schemas/booking.py
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

from rental_store.schemas.pricing import PaymentOption

BookingType = Literal["car", "tour"]
BookingStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class CheckoutCreate(SQLModel):
    """
    Payload for turning the current cart into bookings.

    User provides contact details and the payment option; every price
    figure comes from the cart snapshot.
    """

    model_config = ConfigDict(extra="forbid")

    customer_name: str
    customer_email: EmailStr
    customer_phone: str | None = None
    payment_option: PaymentOption = "full"
    passengers: int | None = Field(default=None, ge=1)
    notes: str | None = None

    @field_validator("customer_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("customer_phone", "notes")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class BookingRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID | None
    booking_type: BookingType
    car_id: str | None
    tour_id: str | None
    customer_name: str
    customer_email: str
    customer_phone: str | None
    start_date: date
    end_date: date
    pickup_time: str | None
    dropoff_time: str | None
    pickup_location_id: str | None
    with_driver: bool
    child_seats: int
    camping_equipment: bool
    addons_total: Decimal
    total_price: Decimal
    payment_option: PaymentOption
    deposit_amount: Decimal
    remaining_balance: Decimal
    status: BookingStatus
    created_at: datetime


class CheckoutResult(SQLModel):
    """
    Bookings written for one checkout, plus the aggregated figures.
    """

    bookings: list[BookingRead]
    total_price: Decimal
    deposit_amount: Decimal
    remaining_balance: Decimal
    emails_sent: int = 0


class BookingNotification(SQLModel):
    """
    Data rendered into booking confirmation emails.

    deposit_amount / remaining_balance are derived from total_price and
    payment_option when not supplied.
    """

    booking_id: str = Field(min_length=1)
    customer_name: str = Field(min_length=1)
    customer_email: str | None = None
    customer_phone: str | None = None
    booking_type: BookingType = "car"
    car_name: str | None = None
    tour_name: str | None = None
    start_date: date
    end_date: date
    pickup_time: str | None = None
    dropoff_time: str | None = None
    pickup_location: str | None = None
    total_price: Decimal = Field(gt=0)
    with_driver: bool = False
    payment_option: PaymentOption = "full"
    deposit_amount: Decimal | None = None
    remaining_balance: Decimal | None = None
    child_seats: int = 0
    camping_equipment: bool = False
    passengers: int | None = None

    @property
    def vehicle_name(self) -> str:
        return self.car_name or self.tour_name or "Vehicle"
