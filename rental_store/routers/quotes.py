# rental_store/routers/quotes.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from rental_store.core.config import get_settings
from rental_store.database import get_session
from rental_store.models.location import Location
from rental_store.repositories.location_repo import LocationRepository
from rental_store.schemas.pricing import PriceBreakdown, RateCard, RentalQuoteRequest
from rental_store.services.quote_service import QuoteService

router = APIRouter(tags=["Quotes"])

location_repo = LocationRepository()
service = QuoteService(location_repo, get_settings())


@router.post("/quotes", response_model=PriceBreakdown)
def quote_rental(
    payload: RentalQuoteRequest,
    session: Session = Depends(get_session),
):
    """
    Live price of a car rental for the given dates and options.

    Same-day or inverted date ranges are billed as one day.
    """
    return service.quote(session, payload)


@router.get("/quotes/rates", response_model=RateCard)
def current_rates():
    """
    Rate card currently applied to quotes.
    """
    return service.get_rates()


@router.get("/locations", response_model=list[Location])
def list_locations(session: Session = Depends(get_session)):
    """
    Active pickup locations in display order.
    """
    return service.list_locations(session)
