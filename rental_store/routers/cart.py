# rental_store/routers/cart.py
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from rental_store.core.currency import round_half_up
from rental_store.database import get_session
from rental_store.dependencies import get_cart_store
from rental_store.routers.quotes import service as quote_service
from rental_store.schemas.cart import (
    AddItemResult,
    CarReservationCreate,
    CartItemDraft,
    CartItemUpdate,
    CartSummary,
    CartWriteResult,
    TourReservationCreate,
)
from rental_store.services.cart_store import CartStore
from rental_store.services.pricing_service import fixed_price_breakdown

router = APIRouter(prefix="/cart", tags=["Cart"])

PERSIST_WARNING = "Your cart could not be saved and may be lost on reload."


def _summary(cart: CartStore, write: CartWriteResult | None = None) -> CartSummary:
    persisted = write.persisted if write else True
    return CartSummary(
        items=cart.items,
        item_count=cart.item_count,
        total_price=cart.total_price,
        persisted=persisted,
        warning=None if persisted else PERSIST_WARNING,
    )


def _added(cart: CartStore, result: AddItemResult) -> CartSummary:
    if result.outcome == "duplicate_rejected":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This item is already in your cart for the selected dates",
        )
    return _summary(cart, result)


@router.get("", response_model=CartSummary)
def get_cart(cart: CartStore = Depends(get_cart_store)):
    """
    Current cart with item count and total.
    """
    return _summary(cart)


@router.get("/contains")
def cart_contains(
    car_id: str | None = None,
    tour_id: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    cart: CartStore = Depends(get_cart_store),
):
    """
    Whether the car/tour is already reserved in the cart for these dates.
    """
    return {"in_cart": cart.is_in_cart(car_id, tour_id, start_date, end_date)}


@router.post("/cars", response_model=CartSummary, status_code=status.HTTP_201_CREATED)
def add_car(
    payload: CarReservationCreate,
    session: Session = Depends(get_session),
    cart: CartStore = Depends(get_cart_store),
):
    """
    Price a car rental and add it to the cart.

    409 if the same car is already in the cart for the same dates.
    """
    breakdown = quote_service.quote(session, payload)
    draft = CartItemDraft(
        kind="car",
        car_id=payload.car_id,
        car_name=payload.car_name,
        start_date=payload.start_date,
        end_date=payload.end_date,
        pickup_time=payload.pickup_time,
        dropoff_time=payload.dropoff_time,
        with_driver=payload.with_driver,
        location_id=payload.pickup_location_id,
        price_per_day=payload.price_per_day,
        breakdown=breakdown,
        child_seats=payload.child_seats,
        child_seats_total=breakdown.child_seats_total,
        camping_equipment=payload.camping_equipment,
        camping_equipment_total=breakdown.camping_equipment_total,
        addons_total=breakdown.addons_total,
        category=payload.category,
        image=payload.image,
        notes=payload.notes,
    )
    return _added(cart, cart.add_item(draft))


@router.post("/tours", response_model=CartSummary, status_code=status.HTTP_201_CREATED)
def add_tour(
    payload: TourReservationCreate,
    cart: CartStore = Depends(get_cart_store),
):
    """
    Add a tour to the cart at its package price.
    """
    breakdown = fixed_price_breakdown(payload.price, payload.days)
    draft = CartItemDraft(
        kind="tour",
        tour_id=payload.tour_id,
        tour_name=payload.tour_name,
        start_date=payload.start_date,
        end_date=payload.end_date,
        pickup_time=payload.pickup_time,
        location_id=payload.location_id,
        price_per_day=round_half_up(payload.price / payload.days, 2),
        breakdown=breakdown,
        image=payload.image,
        notes=payload.notes,
    )
    return _added(cart, cart.add_item(draft))


@router.patch("/{item_id}", response_model=CartSummary)
def update_cart_item(
    item_id: str,
    payload: CartItemUpdate,
    cart: CartStore = Depends(get_cart_store),
):
    """
    Change times or notes on a line item. Prices are not recomputed.
    """
    if cart.get_item(item_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Cart item not found",
        )
    write = cart.update_item(item_id, **payload.model_dump(exclude_unset=True))
    return _summary(cart, write)


@router.delete("/{item_id}", response_model=CartSummary)
def remove_cart_item(item_id: str, cart: CartStore = Depends(get_cart_store)):
    """
    Remove a line item. Unknown ids leave the cart unchanged.
    """
    return _summary(cart, cart.remove_item(item_id))


@router.delete("", response_model=CartSummary)
def clear_cart(cart: CartStore = Depends(get_cart_store)):
    """
    Empty the cart.
    """
    return _summary(cart, cart.clear_cart())
