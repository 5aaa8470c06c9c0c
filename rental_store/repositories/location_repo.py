# rental_store/repositories/location_repo.py
from sqlmodel import Session, select

from rental_store.models.location import Location


class LocationRepository:
    """
    Data access layer for pickup locations.

    - Pure DB operations (queries only, locations are managed elsewhere).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, location_id: str) -> Location | None:
        return session.get(Location, location_id)

    def list_active(self, session: Session) -> list[Location]:
        stmt = (
            select(Location)
            .where(Location.is_active == True)  # noqa: E712
            .order_by(Location.display_order)
        )
        return session.exec(stmt).all()
