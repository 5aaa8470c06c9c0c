# rental_store/services/quote_service.py
import logging
import time
from decimal import Decimal, InvalidOperation

from sqlmodel import Session

from rental_store.core.config import Settings
from rental_store.core.supabase_client import fetch_setting
from rental_store.models.location import Location
from rental_store.repositories.location_repo import LocationRepository
from rental_store.schemas.pricing import PriceBreakdown, RateCard, RentalQuoteRequest
from rental_store.services.pricing_service import compute_rental_price

logger = logging.getLogger(__name__)

# Served when the locations table has no active rows
DEFAULT_LOCATIONS: list[Location] = [
    Location(id="tbs", name="Tbilisi Airport (TBS)", city="Tbilisi",
             lat=41.6692, lng=44.9547, delivery_fee=Decimal("0"), display_order=1),
    Location(id="tbilisi-center", name="Tbilisi City Center", city="Tbilisi",
             lat=41.7151, lng=44.8271, delivery_fee=Decimal("0"), display_order=2),
]

# Add-on prices change rarely; re-read them at most every 5 minutes
RATES_TTL_SECONDS = 300


class QuoteService:
    """
    Glue between the pricing engine and its data sources.

    Responsibilities:
      - build the rate card from settings, overridden by the
        'addon_pricing' row in Supabase when available
      - resolve delivery fees from the locations table
      - produce quotes with compute_rental_price
    """

    def __init__(self, location_repo: LocationRepository, settings: Settings):
        self.location_repo = location_repo
        self.settings = settings
        self._rates: RateCard | None = None
        self._rates_loaded_at = 0.0

    # ---- internal helpers ----

    def _default_rates(self) -> RateCard:
        s = self.settings
        return RateCard(
            service_fee_rate=s.SERVICE_FEE_RATE,
            driver_rate_per_day=s.DRIVER_RATE_PER_DAY,
            child_seat_rate_per_day=s.CHILD_SEAT_RATE_PER_DAY,
            child_seat_max_quantity=s.CHILD_SEAT_MAX_QUANTITY,
            camping_rate_per_day=s.CAMPING_RATE_PER_DAY,
        )

    def _apply_addon_pricing(self, rates: RateCard, value: dict) -> RateCard:
        """
        Merge the Supabase 'addon_pricing' JSON into a rate card.

        Expected shape:
            {"childSeat": {"pricePerDay": 3, "maxQuantity": 4},
             "campingEquipment": {"pricePerDay": 10}}
        """
        seat = value.get("childSeat") or {}
        camping = value.get("campingEquipment") or {}
        update: dict = {}
        if "pricePerDay" in seat:
            update["child_seat_rate_per_day"] = Decimal(str(seat["pricePerDay"]))
        if "maxQuantity" in seat:
            update["child_seat_max_quantity"] = int(seat["maxQuantity"])
        if "pricePerDay" in camping:
            update["camping_rate_per_day"] = Decimal(str(camping["pricePerDay"]))
        return rates.model_copy(update=update)

    # ---- public operations ----

    def get_rates(self) -> RateCard:
        """
        Current rate card. Falls back to configured defaults when Supabase
        is not configured or the lookup fails.
        """
        now = time.monotonic()
        if self._rates is not None and now - self._rates_loaded_at < RATES_TTL_SECONDS:
            return self._rates

        rates = self._default_rates()
        if self.settings.SUPABASE_URL and self.settings.SUPABASE_KEY:
            try:
                value = fetch_setting("addon_pricing")
                if value:
                    rates = self._apply_addon_pricing(rates, value)
            except (InvalidOperation, ValueError, TypeError, AttributeError) as e:
                logger.warning("Invalid addon_pricing setting, using defaults: %s", e)
            except Exception as e:
                logger.warning("Could not load addon pricing from Supabase: %s", e)

        self._rates = rates
        self._rates_loaded_at = now
        return rates

    def list_locations(self, session: Session) -> list[Location]:
        locations = self.location_repo.list_active(session)
        return locations or list(DEFAULT_LOCATIONS)

    def delivery_fees(self, session: Session) -> dict[str, Decimal]:
        return {loc.id: Decimal(loc.delivery_fee) for loc in self.list_locations(session)}

    def quote(self, session: Session, request: RentalQuoteRequest) -> PriceBreakdown:
        return compute_rental_price(
            request,
            rates=self.get_rates(),
            delivery_fees=self.delivery_fees(session),
        )
