# rental_store/services/checkout_service.py
import logging
import uuid
from decimal import Decimal

from fastapi import HTTPException, status
from sqlmodel import Session

from rental_store.core.config import Settings
from rental_store.models.booking import Booking
from rental_store.repositories.booking_repo import BookingRepository
from rental_store.repositories.location_repo import LocationRepository
from rental_store.schemas.booking import (
    BookingNotification,
    BookingRead,
    CheckoutCreate,
    CheckoutResult,
)
from rental_store.schemas.cart import CartLineItem
from rental_store.services.cart_store import CartStore
from rental_store.services.notification_service import NotificationService
from rental_store.services.pricing_service import compute_payment_split

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Business logic for checkout.

    Responsibilities:
      - turn every cart line item into a booking row (one transaction)
      - copy price snapshots; deposit / remaining via compute_payment_split
      - send confirmation emails (best effort)
      - remove the booked items from the cart once committed
    """

    def __init__(
        self,
        booking_repo: BookingRepository,
        location_repo: LocationRepository,
        notifications: NotificationService,
        settings: Settings,
    ):
        self.booking_repo = booking_repo
        self.location_repo = location_repo
        self.notifications = notifications
        self.settings = settings

    # ---- internal helpers ----

    def _build_booking(
        self,
        item: CartLineItem,
        payload: CheckoutCreate,
        user_id: uuid.UUID | None,
    ) -> Booking:
        split = compute_payment_split(
            item.total_price,
            payload.payment_option,
            deposit_rate=self.settings.DEPOSIT_RATE,
        )
        notes = "\n".join(n for n in (item.notes, payload.notes) if n) or None
        return Booking(
            user_id=user_id,
            booking_type=item.kind,
            car_id=item.car_id,
            tour_id=item.tour_id,
            customer_name=payload.customer_name,
            customer_email=str(payload.customer_email),
            customer_phone=payload.customer_phone,
            start_date=item.start_date,
            end_date=item.end_date,
            pickup_time=item.pickup_time,
            dropoff_time=item.dropoff_time,
            pickup_location_id=item.location_id,
            with_driver=item.with_driver,
            passengers=payload.passengers,
            child_seats=item.child_seats,
            child_seats_total=item.child_seats_total,
            camping_equipment=item.camping_equipment,
            camping_equipment_total=item.camping_equipment_total,
            addons_total=item.addons_total,
            total_price=split.total_price,
            payment_option=split.payment_option,
            deposit_amount=split.deposit_amount,
            remaining_balance=split.remaining_balance,
            status="pending",
            notes=notes,
        )

    def _notify(self, session: Session, booking: Booking, item: CartLineItem) -> int:
        location = None
        if booking.pickup_location_id:
            location = self.location_repo.get_by_id(session, booking.pickup_location_id)

        notification = BookingNotification(
            booking_id=str(booking.id),
            customer_name=booking.customer_name,
            customer_email=booking.customer_email,
            customer_phone=booking.customer_phone,
            booking_type=item.kind,
            car_name=item.car_name,
            tour_name=item.tour_name,
            start_date=booking.start_date,
            end_date=booking.end_date,
            pickup_time=booking.pickup_time,
            dropoff_time=booking.dropoff_time,
            pickup_location=location.name if location else booking.pickup_location_id,
            total_price=booking.total_price,
            with_driver=booking.with_driver,
            payment_option=booking.payment_option,
            deposit_amount=booking.deposit_amount,
            remaining_balance=booking.remaining_balance,
            child_seats=booking.child_seats,
            camping_equipment=booking.camping_equipment,
            passengers=booking.passengers,
        )
        try:
            return self.notifications.send_booking_confirmation(notification)
        except HTTPException as e:
            # The booking is already stored; a missing email must not undo it
            logger.warning("Booking %s saved but confirmation not sent: %s", booking.id, e.detail)
            return 0

    # ---- public operations ----

    def checkout(
        self,
        session: Session,
        cart: CartStore,
        payload: CheckoutCreate,
        user_id: uuid.UUID | None = None,
    ) -> CheckoutResult:
        """
        Convert the cart into bookings.

        Steps:
          1. Load cart items; error if empty.
          2. Reject items with a non-positive total.
          3. Build and insert one Booking per item.
          4. Commit.
          5. Send confirmation emails (failures are logged only).
          6. Remove the booked items from the cart.
        """
        # 1) Load cart
        items = cart.items
        if not items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        # 2) Validate snapshots
        errors = [
            {"item_id": it.id, "reason": "Invalid price in cart"}
            for it in items
            if it.total_price <= 0
        ]
        if errors:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Cart validation failed", "items": errors},
            )

        # 3) Insert bookings
        bookings = [self._build_booking(it, payload, user_id) for it in items]
        bookings = self.booking_repo.create_many(session, bookings)

        # 4) Commit transaction
        session.commit()
        for booking in bookings:
            session.refresh(booking)
        logger.info("Checkout stored %d booking(s)", len(bookings))

        # 5) Notify
        emails_sent = sum(self._notify(session, b, it) for b, it in zip(bookings, items))

        # 6) Remove the checked-out items; anything added meanwhile stays
        write = cart.remove_items([it.id for it in items])
        if not write.persisted:
            logger.warning("Cart updated in memory only after checkout: %s", write.error)

        return CheckoutResult(
            bookings=[BookingRead.model_validate(b) for b in bookings],
            total_price=sum((b.total_price for b in bookings), Decimal("0")),
            deposit_amount=sum((b.deposit_amount for b in bookings), Decimal("0")),
            remaining_balance=sum((b.remaining_balance for b in bookings), Decimal("0")),
            emails_sent=emails_sent,
        )

    def list_user_bookings(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[BookingRead]:
        bookings = self.booking_repo.list_for_user(session, user_id, skip, limit)
        return [BookingRead.model_validate(b) for b in bookings]
