# rental_store/repositories/booking_repo.py
import uuid

from sqlmodel import Session, select

from rental_store.models.booking import Booking


class BookingRepository:
    """
    Data access layer for bookings.

    NOTE:
      - No commits here; checkout writes several rows in one transaction.
        The service is responsible for calling session.commit().
    """

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def create_many(self, session: Session, bookings: list[Booking]) -> list[Booking]:
        """
        Insert bookings without committing, but ensure ids are populated.
        """
        session.add_all(bookings)
        session.flush()
        for booking in bookings:
            session.refresh(booking)
        return bookings
