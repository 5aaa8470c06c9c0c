# rental_store/models/location.py
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Location(SQLModel, table=True):
    """
    Pickup / delivery point.

    Tbilisi hubs are free (delivery_fee = 0); other cities carry a flat
    delivery fee added once to a rental quote.
    """

    __tablename__ = "locations"

    id: str = Field(primary_key=True, description="Slug, e.g. 'tbs'")
    name: str
    city: str
    lat: float | None = None
    lng: float | None = None

    delivery_fee: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        max_digits=10,
        decimal_places=2,
    )

    is_active: bool = Field(default=True, index=True)
    display_order: int = Field(default=0)
