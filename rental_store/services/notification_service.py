# rental_store/services/notification_service.py
import html
import logging
import smtplib

from fastapi import HTTPException, status

from rental_store.core.config import Settings
from rental_store.core.currency import format_price
from rental_store.core.email_client import is_email_configured, send_email
from rental_store.schemas.booking import BookingNotification
from rental_store.schemas.contact import ContactMessage
from rental_store.services.pricing_service import compute_payment_split

logger = logging.getLogger(__name__)


def is_valid_email(value: object) -> bool:
    return isinstance(value, str) and "@" in value


def _addon_labels(booking: BookingNotification) -> list[str]:
    addons = []
    if booking.child_seats > 0:
        addons.append(f"Child Seat x{booking.child_seats}")
    if booking.camping_equipment:
        addons.append("Camping Equipment")
    return addons


def _summary_lines(booking: BookingNotification) -> list[str]:
    """
    Booking facts shared by the customer and admin emails.

    Deposit and remaining balance always come from compute_payment_split
    when the caller did not supply them, so the email matches checkout.
    """
    split = compute_payment_split(booking.total_price, booking.payment_option)
    deposit = booking.deposit_amount if booking.deposit_amount is not None else split.deposit_amount
    remaining = (
        booking.remaining_balance
        if booking.remaining_balance is not None
        else split.remaining_balance
    )

    lines = [
        f"Booking ID: {booking.booking_id[:8].upper()}",
        f"{'Tour' if booking.booking_type == 'tour' else 'Vehicle'}: {booking.vehicle_name}",
        f"Dates: {booking.start_date:%a, %b %d, %Y} - {booking.end_date:%a, %b %d, %Y}",
    ]
    if booking.pickup_time or booking.dropoff_time:
        lines.append(f"Times: {booking.pickup_time or '-'} / {booking.dropoff_time or '-'}")
    if booking.pickup_location:
        lines.append(f"Pickup location: {booking.pickup_location}")
    if booking.booking_type == "car":
        lines.append(f"Driver: {'Yes' if booking.with_driver else 'Self-drive'}")
    if booking.passengers:
        lines.append(f"Passengers: {booking.passengers}")

    addons = _addon_labels(booking)
    if addons:
        lines.append(f"Add-ons: {', '.join(addons)}")

    lines.append(f"Total: {format_price(booking.total_price)}")
    if deposit > 0:
        lines.append(f"Deposit: {format_price(deposit)}")
        lines.append(f"Remaining (due at pickup): {format_price(remaining)}")
    else:
        lines.append("Paid in full")
    return lines


def _as_html(title: str, lines: list[str]) -> str:
    items = "".join(f"<li>{html.escape(line)}</li>" for line in lines)
    return f"<h2>{html.escape(title)}</h2><ul>{items}</ul>"


class NotificationService:
    """
    Outgoing emails: booking confirmations and contact form relay.

    Responsibilities:
      - render customer / admin confirmation emails from booking figures
      - skip recipients without a usable address
      - relay contact messages with Reply-To set to the sender
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _require_email(self) -> None:
        if not is_email_configured():
            logger.error("Missing email configuration")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Missing email configuration",
            )

    def send_booking_confirmation(self, booking: BookingNotification) -> int:
        """
        Email the customer and the admin recipients.

        Returns:
            Number of emails sent (0 if no valid recipient exists).

        Raises:
            HTTPException(500): SMTP missing or sending failed.
        """
        self._require_email()

        lines = _summary_lines(booking)
        sent = 0
        try:
            if is_valid_email(booking.customer_email):
                title = f"Booking Confirmed - {booking.vehicle_name}"
                send_email(
                    to_email=booking.customer_email,  # type: ignore[arg-type]
                    subject=f"{title} (#{booking.booking_id[:8].upper()})",
                    text_body="\n".join([f"Hi {booking.customer_name},", "", *lines]),
                    html_body=_as_html(title, lines),
                )
                sent += 1

            admins = [e for e in self.settings.notification_emails if is_valid_email(e)]
            if admins:
                title = (
                    f"[New Booking] {booking.vehicle_name} - "
                    f"{booking.customer_name} - {format_price(booking.total_price)}"
                )
                contact = [
                    f"Customer: {booking.customer_name}",
                    f"Email: {booking.customer_email or 'N/A'}",
                    f"Phone: {booking.customer_phone or 'N/A'}",
                ]
                send_email(
                    to_email=admins,
                    subject=title,
                    text_body="\n".join([*contact, "", *lines]),
                    html_body=_as_html(title, contact + lines),
                    reply_to=booking.customer_email if is_valid_email(booking.customer_email) else None,
                )
                sent += 1
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send booking confirmation email: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to send confirmation email",
            )

        if sent == 0:
            logger.warning("No emails sent for booking %s - check configuration", booking.booking_id)
        return sent

    def send_contact_message(self, message: ContactMessage) -> None:
        """
        Relay a contact form message to CONTACT_TO_EMAIL.

        Raises:
            HTTPException(500): destination or SMTP missing, or send failed.
        """
        self._require_email()
        to_address = self.settings.CONTACT_TO_EMAIL
        if not to_address:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Missing email configuration",
            )

        phone = message.phone.strip() if message.phone and message.phone.strip() else "N/A"
        lines = [
            f"Name: {message.name}",
            f"Email: {message.email}",
            f"Phone: {phone}",
        ]
        try:
            send_email(
                to_email=to_address,
                subject=f"[Contact] {message.subject}",
                text_body="\n".join([*lines, "", message.message]),
                html_body=_as_html(message.subject, lines) + f"<p>{html.escape(message.message)}</p>",
                reply_to=str(message.email),
            )
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to relay contact message: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to send email",
            )
