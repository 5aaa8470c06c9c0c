import os

# Settings are cached on first import; pin a test environment before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_KEY"] = ""
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["BOOKING_NOTIFICATION_EMAILS"] = "ops@example.com, not-an-email"
os.environ["CONTACT_TO_EMAIL"] = "support@example.com"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from rental_store.main import app
from rental_store.database import get_session
from rental_store.dependencies import get_cart_store
from rental_store.core.kv_storage import MemoryStorage
from rental_store.schemas.cart import CartItemDraft
from rental_store.schemas.pricing import RateCard, RentalQuoteRequest
from rental_store.services import notification_service
from rental_store.services.cart_store import CartStore
from rental_store.services.pricing_service import compute_rental_price, fixed_price_breakdown


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cart_store(storage):
    store = CartStore(storage, key="cart")
    store.load()
    return store


@pytest.fixture
def client(engine, cart_store):
    def _session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_cart_store] = lambda: cart_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing emails instead of talking to SMTP."""
    outbox = []

    def _fake_send(to_email, subject, text_body, html_body=None, reply_to=None):
        outbox.append(
            {
                "to": to_email,
                "subject": subject,
                "text": text_body,
                "html": html_body,
                "reply_to": reply_to,
            }
        )

    monkeypatch.setattr(notification_service, "send_email", _fake_send)
    monkeypatch.setattr(notification_service, "is_email_configured", lambda: True)
    return outbox


@pytest.fixture
def car_draft_factory():
    def _car_draft(
        car_id="c1",
        start_date="2025-01-01",
        end_date="2025-01-04",
        price_per_day="100",
        with_driver=False,
        location_id=None,
        child_seats=0,
        camping_equipment=False,
        **kwargs,
    ):
        request = RentalQuoteRequest(
            price_per_day=Decimal(price_per_day),
            start_date=date.fromisoformat(start_date),
            end_date=date.fromisoformat(end_date),
            with_driver=with_driver,
            pickup_location_id=location_id,
            child_seats=child_seats,
            camping_equipment=camping_equipment,
        )
        breakdown = compute_rental_price(request, RateCard())
        data = {
            "kind": "car",
            "car_id": car_id,
            "car_name": f"Car {car_id}",
            "start_date": request.start_date,
            "end_date": request.end_date,
            "with_driver": with_driver,
            "location_id": location_id,
            "price_per_day": request.price_per_day,
            "breakdown": breakdown,
            "child_seats": child_seats,
            "child_seats_total": breakdown.child_seats_total,
            "camping_equipment": camping_equipment,
            "camping_equipment_total": breakdown.camping_equipment_total,
            "addons_total": breakdown.addons_total,
        }
        data.update(kwargs)
        return CartItemDraft(**data)

    return _car_draft


@pytest.fixture
def tour_draft_factory():
    def _tour_draft(tour_id="t1", start_date="2025-02-01", end_date="2025-02-03", price="200", days=2):
        return CartItemDraft(
            kind="tour",
            tour_id=tour_id,
            tour_name=f"Tour {tour_id}",
            start_date=date.fromisoformat(start_date),
            end_date=date.fromisoformat(end_date),
            breakdown=fixed_price_breakdown(Decimal(price), days),
        )

    return _tour_draft
