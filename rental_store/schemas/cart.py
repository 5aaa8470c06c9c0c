# rental_store/schemas/cart.py
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, model_validator
from sqlmodel import SQLModel, Field

from rental_store.core.errors import PersistenceError
from rental_store.schemas.pricing import PriceBreakdown, RentalQuoteRequest

ItemKind = Literal["car", "tour"]


class CartItemDraft(SQLModel):
    """
    A reservation about to enter the cart.

    Carries everything a stored line item has except the id, which the
    cart store assigns. Exactly one of car_id / tour_id is set, matching
    `kind`.
    """

    kind: ItemKind
    car_id: str | None = None
    tour_id: str | None = None
    car_name: str | None = None
    tour_name: str | None = None

    start_date: date
    end_date: date
    pickup_time: str | None = None
    dropoff_time: str | None = None
    with_driver: bool = False
    location_id: str | None = None

    price_per_day: Decimal = Decimal("0")
    # Snapshot taken at add-time; never repriced afterwards
    breakdown: PriceBreakdown

    child_seats: int = 0
    child_seats_total: Decimal = Decimal("0")
    camping_equipment: bool = False
    camping_equipment_total: Decimal = Decimal("0")
    addons_total: Decimal = Decimal("0")

    category: str | None = None
    image: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def check_reference(self):
        if self.kind == "car":
            if not self.car_id or self.tour_id:
                raise ValueError("car items need car_id and no tour_id")
        else:
            if not self.tour_id or self.car_id:
                raise ValueError("tour items need tour_id and no car_id")
        return self

    @property
    def total_price(self) -> Decimal:
        return self.breakdown.total

    @property
    def reference_id(self) -> str:
        return self.car_id if self.kind == "car" else self.tour_id  # type: ignore[return-value]


class CartLineItem(CartItemDraft):
    """
    A reservation stored in the cart.
    """

    id: str


@dataclass
class CartWriteResult:
    """
    Outcome of a cart mutation as far as durable storage is concerned.

    The in-memory cart is always updated; `persisted` is False when the
    durable slot could not be written.
    """

    persisted: bool = True
    error: PersistenceError | None = None


@dataclass
class AddItemResult(CartWriteResult):
    outcome: Literal["inserted", "duplicate_rejected"] = "inserted"
    item: CartLineItem | None = None


# ---- HTTP payloads ----


class CarReservationCreate(RentalQuoteRequest):
    """
    Payload for putting a car rental into the cart.

    The server prices it with the current rate card; the client never
    sends a total.
    """

    car_id: str
    car_name: str | None = None
    pickup_time: str | None = None
    dropoff_time: str | None = None
    category: str | None = None
    image: str | None = None
    notes: str | None = None


class TourReservationCreate(SQLModel):
    """
    Payload for putting a tour into the cart at its package price.
    """

    tour_id: str
    tour_name: str | None = None
    start_date: date
    end_date: date
    price: Decimal = Field(ge=0)
    days: int = Field(default=1, ge=1)
    pickup_time: str | None = None
    location_id: str | None = None
    image: str | None = None
    notes: str | None = None


class CartItemUpdate(SQLModel):
    """
    Fields a shopper may change on a line item without repricing it.
    """

    model_config = ConfigDict(extra="forbid")

    pickup_time: str | None = None
    dropoff_time: str | None = None
    notes: str | None = None


class CartSummary(SQLModel):
    """
    Full cart response with totals.
    """

    items: list[CartLineItem]
    item_count: int
    total_price: Decimal
    persisted: bool = True
    warning: str | None = None
