import uuid
from decimal import Decimal

import pytest
from jose import jwt

from rental_store.models.booking import Booking
from rental_store.models.location import Location


def car_payload(**overrides):
    data = {
        "car_id": "c1",
        "car_name": "Toyota RAV4",
        "price_per_day": "100",
        "start_date": "2025-01-01",
        "end_date": "2025-01-04",
        "with_driver": True,
    }
    data.update(overrides)
    return data


def tour_payload(**overrides):
    data = {
        "tour_id": "t1",
        "tour_name": "Kazbegi Day Trip",
        "start_date": "2025-02-01",
        "end_date": "2025-02-03",
        "price": "200",
        "days": 2,
    }
    data.update(overrides)
    return data


def checkout_payload(**overrides):
    data = {
        "customer_name": "Nino Beridze",
        "customer_email": "nino@example.com",
        "customer_phone": "+995 555 123 456",
        "payment_option": "full",
    }
    data.update(overrides)
    return data


def auth_header(user_id: uuid.UUID) -> dict:
    token = jwt.encode({"sub": str(user_id), "aud": "authenticated"}, "test-jwt-secret", algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def batumi(session):
    loc = Location(id="batumi", name="Batumi Airport", city="Batumi",
                   delivery_fee=Decimal("30"), display_order=3)
    session.add(loc)
    session.commit()
    return loc


class TestHealth:

    def test_root(self, client):
        res = client.get("/")

        assert res.status_code == 200
        assert res.json() == {"status": "ok", "service": "rental-store-backend"}


class TestQuotes:

    def test_quote_with_driver(self, client):
        res = client.post("/quotes", json={
            "price_per_day": "100",
            "start_date": "2025-01-01",
            "end_date": "2025-01-04",
            "with_driver": True,
        })

        assert res.status_code == 200
        body = res.json()
        assert body["days"] == 3
        assert Decimal(body["subtotal"]) == 300
        assert Decimal(body["service_fee"]) == 15
        assert Decimal(body["driver_fee"]) == 150
        assert Decimal(body["total"]) == 465

    def test_quote_uses_location_delivery_fee(self, client, batumi):
        res = client.post("/quotes", json={
            "price_per_day": "100",
            "start_date": "2025-01-01",
            "end_date": "2025-01-04",
            "pickup_location_id": "batumi",
        })

        body = res.json()
        assert Decimal(body["delivery_fee"]) == 30
        assert Decimal(body["total"]) == 345

    def test_quote_rejects_negative_price(self, client):
        res = client.post("/quotes", json={
            "price_per_day": "-5",
            "start_date": "2025-01-01",
            "end_date": "2025-01-04",
        })

        assert res.status_code == 422

    def test_rates_defaults(self, client):
        res = client.get("/quotes/rates")

        assert res.status_code == 200
        body = res.json()
        assert Decimal(body["service_fee_rate"]) == Decimal("0.05")
        assert Decimal(body["driver_rate_per_day"]) == 50
        assert Decimal(body["child_seat_rate_per_day"]) == 3
        assert body["child_seat_max_quantity"] == 4
        assert Decimal(body["camping_rate_per_day"]) == 10

    def test_locations_fall_back_to_defaults(self, client):
        res = client.get("/locations")

        assert res.status_code == 200
        assert [loc["id"] for loc in res.json()] == ["tbs", "tbilisi-center"]

    def test_locations_from_table(self, client, batumi):
        res = client.get("/locations")

        assert [loc["id"] for loc in res.json()] == ["batumi"]


class TestCartApi:

    def test_empty_cart(self, client):
        res = client.get("/cart")

        assert res.status_code == 200
        body = res.json()
        assert body["items"] == []
        assert body["item_count"] == 0
        assert Decimal(body["total_price"]) == 0
        assert body["persisted"] is True

    def test_add_car_and_tour(self, client):
        res = client.post("/cart/cars", json=car_payload())
        assert res.status_code == 201
        item = res.json()["items"][0]
        assert item["id"].startswith("car-")
        assert Decimal(item["breakdown"]["total"]) == 465

        res = client.post("/cart/tours", json=tour_payload())
        assert res.status_code == 201
        body = res.json()
        assert body["item_count"] == 2
        assert Decimal(body["total_price"]) == 665

    def test_tour_daily_price_is_rounded_to_cents(self, client):
        res = client.post("/cart/tours", json=tour_payload(price="200", days=3))

        item = res.json()["items"][0]
        assert Decimal(item["price_per_day"]) == Decimal("66.67")
        assert Decimal(item["breakdown"]["total"]) == 200

    def test_duplicate_car_conflicts(self, client):
        client.post("/cart/cars", json=car_payload())

        res = client.post("/cart/cars", json=car_payload(with_driver=False))

        assert res.status_code == 409
        assert client.get("/cart").json()["item_count"] == 1

    def test_contains(self, client):
        client.post("/cart/cars", json=car_payload())

        hit = client.get("/cart/contains", params={
            "car_id": "c1", "start_date": "2025-01-01", "end_date": "2025-01-04",
        })
        miss = client.get("/cart/contains", params={
            "car_id": "c1", "start_date": "2025-01-02", "end_date": "2025-01-04",
        })

        assert hit.json() == {"in_cart": True}
        assert miss.json() == {"in_cart": False}

    def test_patch_item_keeps_price(self, client):
        item = client.post("/cart/cars", json=car_payload()).json()["items"][0]

        res = client.patch(f"/cart/{item['id']}", json={"pickup_time": "09:30", "notes": "Terminal 2"})

        assert res.status_code == 200
        updated = res.json()["items"][0]
        assert updated["pickup_time"] == "09:30"
        assert updated["notes"] == "Terminal 2"
        assert updated["breakdown"] == item["breakdown"]

    def test_patch_rejects_price_fields(self, client):
        item = client.post("/cart/cars", json=car_payload()).json()["items"][0]

        res = client.patch(f"/cart/{item['id']}", json={"price_per_day": "1"})

        assert res.status_code == 422

    def test_patch_missing_item(self, client):
        res = client.patch("/cart/car-missing", json={"notes": "x"})

        assert res.status_code == 404

    def test_delete_item_and_unknown(self, client):
        item = client.post("/cart/cars", json=car_payload()).json()["items"][0]
        client.post("/cart/tours", json=tour_payload())

        res = client.delete("/cart/car-missing")
        assert res.json()["item_count"] == 2

        res = client.delete(f"/cart/{item['id']}")
        body = res.json()
        assert body["item_count"] == 1
        assert Decimal(body["total_price"]) == 200

    def test_clear_cart(self, client):
        client.post("/cart/cars", json=car_payload())

        res = client.delete("/cart")

        assert res.json()["item_count"] == 0

    def test_unsaved_cart_carries_warning(self, client, storage, monkeypatch):
        def _fail(key, value):
            raise OSError("disk full")

        monkeypatch.setattr(storage, "set", _fail)

        res = client.post("/cart/cars", json=car_payload())

        assert res.status_code == 201
        body = res.json()
        assert body["persisted"] is False
        assert body["warning"]
        assert body["item_count"] == 1


class TestCheckout:

    def test_checkout_creates_bookings_and_clears_cart(self, client, session, sent_emails):
        client.post("/cart/cars", json=car_payload())
        client.post("/cart/tours", json=tour_payload())

        res = client.post("/bookings/checkout", json=checkout_payload(payment_option="deposit"))

        assert res.status_code == 201
        body = res.json()
        assert len(body["bookings"]) == 2
        assert Decimal(body["total_price"]) == 665
        assert Decimal(body["deposit_amount"]) == Decimal("133.00")
        assert Decimal(body["remaining_balance"]) == Decimal("532.00")

        car = body["bookings"][0]
        assert car["booking_type"] == "car"
        assert car["status"] == "pending"
        assert car["user_id"] is None
        assert Decimal(car["deposit_amount"]) == Decimal("93.00")

        assert session.get(Booking, uuid.UUID(car["id"])) is not None
        assert client.get("/cart").json()["item_count"] == 0

    def test_checkout_emails_customer_and_admins(self, client, sent_emails):
        client.post("/cart/cars", json=car_payload())

        res = client.post("/bookings/checkout", json=checkout_payload())

        assert res.json()["emails_sent"] == 2
        customer, admin = sent_emails
        assert customer["to"] == "nino@example.com"
        assert "Toyota RAV4" in customer["subject"]
        assert "Paid in full" in customer["text"]
        assert admin["to"] == ["ops@example.com"]
        assert admin["reply_to"] == "nino@example.com"
        assert "€465" in admin["subject"]

    def test_item_added_during_checkout_stays_in_cart(
        self, client, cart_store, car_draft_factory, monkeypatch,
    ):
        from rental_store.services import notification_service

        def _send_while_shopping(to_email, subject, text_body, html_body=None, reply_to=None):
            # Another request adds a car while confirmation emails go out
            cart_store.add_item(car_draft_factory("c9", "2025-06-01", "2025-06-03"))

        monkeypatch.setattr(notification_service, "send_email", _send_while_shopping)
        monkeypatch.setattr(notification_service, "is_email_configured", lambda: True)
        client.post("/cart/cars", json=car_payload())

        res = client.post("/bookings/checkout", json=checkout_payload())

        assert res.status_code == 201
        assert [b["car_id"] for b in res.json()["bookings"]] == ["c1"]
        remaining = client.get("/cart").json()["items"]
        assert [it["car_id"] for it in remaining] == ["c9"]

    def test_checkout_survives_missing_smtp(self, client, monkeypatch):
        from rental_store.services import notification_service

        monkeypatch.setattr(notification_service, "is_email_configured", lambda: False)
        client.post("/cart/cars", json=car_payload())

        res = client.post("/bookings/checkout", json=checkout_payload())

        assert res.status_code == 201
        assert res.json()["emails_sent"] == 0

    def test_empty_cart_rejected(self, client, sent_emails):
        res = client.post("/bookings/checkout", json=checkout_payload())

        assert res.status_code == 400
        assert res.json()["detail"] == "Cart is empty"
        assert sent_emails == []

    def test_zero_priced_item_rejected(self, client, cart_store, tour_draft_factory):
        cart_store.add_item(tour_draft_factory(price="0"))

        res = client.post("/bookings/checkout", json=checkout_payload())

        assert res.status_code == 400
        assert cart_store.item_count == 1

    @pytest.mark.parametrize("field,value", [
        ("customer_email", "not-an-email"),
        ("customer_name", "   "),
        ("payment_option", "installments"),
    ])
    def test_invalid_checkout_payload(self, client, field, value):
        client.post("/cart/cars", json=car_payload())

        res = client.post("/bookings/checkout", json=checkout_payload(**{field: value}))

        assert res.status_code == 422

    def test_signed_in_checkout_is_listed(self, client, sent_emails):
        user_id = uuid.uuid4()
        client.post("/cart/cars", json=car_payload())
        client.post("/bookings/checkout", json=checkout_payload(), headers=auth_header(user_id))

        res = client.get("/bookings/me", headers=auth_header(user_id))

        assert res.status_code == 200
        bookings = res.json()
        assert len(bookings) == 1
        assert bookings[0]["user_id"] == str(user_id)

        other = client.get("/bookings/me", headers=auth_header(uuid.uuid4()))
        assert other.json() == []

    def test_my_bookings_requires_token(self, client):
        assert client.get("/bookings/me").status_code == 401

    def test_invalid_token_rejected(self, client):
        res = client.get("/bookings/me", headers={"Authorization": "Bearer nope"})

        assert res.status_code == 401


class TestNotifications:

    def notification(self, **overrides):
        data = {
            "booking_id": "3f2c9a7e-0000-4000-8000-000000000000",
            "customer_name": "Giorgi",
            "customer_email": "giorgi@example.com",
            "car_name": "Jeep Wrangler",
            "start_date": "2025-05-01",
            "end_date": "2025-05-04",
            "total_price": "465",
            "payment_option": "deposit",
            "child_seats": 2,
        }
        data.update(overrides)
        return data

    def test_booking_confirmation(self, client, sent_emails):
        res = client.post("/notifications/booking-confirmation", json=self.notification())

        assert res.status_code == 200
        assert res.json() == {"ok": True, "emails_sent": 2}
        text = sent_emails[0]["text"]
        assert "Booking ID: 3F2C9A7E" in text
        assert "Deposit: €93" in text
        assert "Remaining (due at pickup): €372" in text
        assert "Child Seat x2" in text

    def test_without_customer_email_only_admins(self, client, sent_emails):
        res = client.post(
            "/notifications/booking-confirmation",
            json=self.notification(customer_email=None),
        )

        assert res.json()["emails_sent"] == 1
        assert sent_emails[0]["to"] == ["ops@example.com"]
        assert sent_emails[0]["reply_to"] is None

    @pytest.mark.parametrize("missing", ["booking_id", "customer_name", "total_price"])
    def test_missing_fields(self, client, sent_emails, missing):
        data = self.notification()
        del data[missing]

        res = client.post("/notifications/booking-confirmation", json=data)

        assert res.status_code == 422
        assert sent_emails == []

    def test_unconfigured_smtp_is_500(self, client, monkeypatch):
        from rental_store.services import notification_service

        monkeypatch.setattr(notification_service, "is_email_configured", lambda: False)

        res = client.post("/notifications/booking-confirmation", json=self.notification())

        assert res.status_code == 500
        assert res.json()["detail"] == "Missing email configuration"

    def test_contact_message(self, client, sent_emails):
        res = client.post("/contact", json={
            "name": "Ana",
            "email": "ana@example.com",
            "subject": "Airport pickup",
            "message": "Can you meet us at 3am?",
        })

        assert res.status_code == 200
        assert res.json() == {"ok": True}
        mail = sent_emails[0]
        assert mail["to"] == "support@example.com"
        assert mail["subject"] == "[Contact] Airport pickup"
        assert mail["reply_to"] == "ana@example.com"
        assert "Phone: N/A" in mail["text"]

    def test_contact_rejects_blank_message(self, client, sent_emails):
        res = client.post("/contact", json={
            "name": "Ana",
            "email": "ana@example.com",
            "subject": "Hi",
            "message": "  ",
        })

        assert res.status_code == 422
        assert sent_emails == []
