# rental_store/routers/bookings.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from rental_store.core.auth import get_optional_user_id, require_user_id
from rental_store.core.config import get_settings
from rental_store.database import get_session
from rental_store.dependencies import get_cart_store
from rental_store.repositories.booking_repo import BookingRepository
from rental_store.repositories.location_repo import LocationRepository
from rental_store.schemas.booking import BookingRead, CheckoutCreate, CheckoutResult
from rental_store.services.cart_store import CartStore
from rental_store.services.checkout_service import CheckoutService
from rental_store.services.notification_service import NotificationService

router = APIRouter(prefix="/bookings", tags=["Bookings"])

settings = get_settings()
booking_repo = BookingRepository()
location_repo = LocationRepository()
service = CheckoutService(
    booking_repo,
    location_repo,
    NotificationService(settings),
    settings,
)


@router.post(
    "/checkout",
    response_model=CheckoutResult,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: CheckoutCreate,
    session: Session = Depends(get_session),
    cart: CartStore = Depends(get_cart_store),
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
):
    """
    Turn the cart into bookings and clear it.

    Auth:
      - Optional. A valid Supabase token links the bookings to the user;
        without one the checkout is a guest checkout.
    """
    return service.checkout(session, cart, payload, user_id)


@router.get("/me", response_model=list[BookingRead])
def list_my_bookings(
    session: Session = Depends(get_session),
    user_id: uuid.UUID = Depends(require_user_id),
    skip: int = 0,
    limit: int = 50,
):
    """
    Bookings of the authenticated user, newest first.
    """
    return service.list_user_bookings(session, user_id, skip, limit)
