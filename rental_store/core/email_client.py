# rental_store/core/email_client.py
from __future__ import annotations

"""
Email client utilities for the rental store backend.

Responsibilities:
  - Read SMTP configuration from environment variables.
  - Provide a single send_email(...) function for services to use.
  - Support both TLS (STARTTLS) and SSL connections.

Typical .env configuration:

    SMTP_HOST=smtp.example.com
    SMTP_PORT=465
    SMTP_USERNAME=bookings@example.com
    SMTP_PASSWORD=app-password
    SMTP_FROM_EMAIL=bookings@example.com
    SMTP_FROM_NAME=Georgia Road Trips
    SMTP_USE_TLS=false
    SMTP_USE_SSL=true
"""

import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage


def _get_bool_env(name: str, default: bool = False) -> bool:
    """
    Read a boolean env var. "1", "true", "yes", "y" are truthy.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class SmtpConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    from_email: str
    from_name: str
    use_tls: bool
    use_ssl: bool

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.username and self.password)


def load_smtp_config() -> SmtpConfig:
    """
    Read SMTP settings from the environment at call time.
    """
    username = os.getenv("SMTP_USERNAME")
    return SmtpConfig(
        host=os.getenv("SMTP_HOST"),
        port=int(os.getenv("SMTP_PORT", "587")),
        username=username,
        password=os.getenv("SMTP_PASSWORD"),
        # Fallback: if FROM_EMAIL is not set, default to username
        from_email=os.getenv("SMTP_FROM_EMAIL", username or ""),
        from_name=os.getenv("SMTP_FROM_NAME", "Rental Store"),
        use_tls=_get_bool_env("SMTP_USE_TLS", default=True),
        use_ssl=_get_bool_env("SMTP_USE_SSL", default=False),
    )


def is_email_configured() -> bool:
    return load_smtp_config().is_complete


def _create_smtp_client(config: SmtpConfig) -> smtplib.SMTP:
    """
    Create and return an SMTP client configured for TLS or SSL.

    NOTE:
      - Do not enable both TLS and SSL.
      - SSL: port 465, SMTP_USE_SSL=true.  TLS: port 587, SMTP_USE_TLS=true.
    """
    if config.use_ssl:
        server: smtplib.SMTP = smtplib.SMTP_SSL(config.host, config.port, timeout=30)
    else:
        server = smtplib.SMTP(config.host, config.port, timeout=30)
        if config.use_tls:
            server.starttls()
    return server


def send_email(
    to_email: str | list[str],
    subject: str,
    text_body: str,
    html_body: str | None = None,
    reply_to: str | None = None,
) -> None:
    """
    Send an email to one or more recipients.

    Parameters
    ----------
    to_email:
        Recipient address, or a list of addresses.
    subject:
        Email subject line.
    text_body:
        Plain-text body, always included.
    html_body:
        Optional HTML alternative.
    reply_to:
        Optional Reply-To header (e.g. the customer on admin notifications).

    Raises
    ------
    RuntimeError:
        If required SMTP configuration is missing.
    smtplib.SMTPException:
        If the underlying SMTP connection or send fails.
    """
    config = load_smtp_config()
    if not config.is_complete:
        raise RuntimeError(
            "SMTP is not configured correctly. "
            "Please set SMTP_HOST, SMTP_USERNAME, and SMTP_PASSWORD in .env."
        )

    recipients = [to_email] if isinstance(to_email, str) else list(to_email)

    msg = EmailMessage()
    msg["From"] = (
        f"{config.from_name} <{config.from_email}>"
        if config.from_email
        else config.username
    )
    msg["To"] = ", ".join(recipients)
    msg["Subject"] = subject
    if reply_to:
        msg["Reply-To"] = reply_to

    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    server = _create_smtp_client(config)
    try:
        server.login(config.username, config.password)  # type: ignore[arg-type]
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            # Connection is being torn down anyway
            pass
