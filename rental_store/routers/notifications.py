# rental_store/routers/notifications.py
from fastapi import APIRouter

from rental_store.core.config import get_settings
from rental_store.schemas.booking import BookingNotification
from rental_store.schemas.contact import ContactMessage
from rental_store.services.notification_service import NotificationService

router = APIRouter(tags=["Notifications"])

service = NotificationService(get_settings())


@router.post("/notifications/booking-confirmation")
def send_booking_confirmation(payload: BookingNotification):
    """
    Send the customer and admin confirmation emails for a booking.
    """
    sent = service.send_booking_confirmation(payload)
    if sent == 0:
        return {"ok": True, "warning": "No emails sent - check configuration"}
    return {"ok": True, "emails_sent": sent}


@router.post("/contact")
def send_contact(payload: ContactMessage):
    """
    Relay a contact form message to the support inbox.
    """
    service.send_contact_message(payload)
    return {"ok": True}
