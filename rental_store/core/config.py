# rental_store/core/config.py
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Env vars (.env):
      - DATABASE_URL (Supabase Postgres connection string; defaults to a
        local SQLite file for development)
      - SUPABASE_URL / SUPABASE_KEY (anon key, used to read the
        'settings' table for add-on pricing)
      - SUPABASE_JWT_SECRET (verifies optional customer tokens at checkout)

    Pricing defaults below are used whenever Supabase has no override.
    """

    PROJECT_NAME: str = "Rental Store Backend"

    DATABASE_URL: str = "sqlite:///./rental_store.db"

    # Supabase
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    SUPABASE_JWT_SECRET: str | None = None
    SUPABASE_JWT_ALG: str = "HS256"

    # Durable cart slot
    CART_STORAGE_PATH: str = "./data/cart_storage.json"
    CART_STORAGE_KEY: str = "cart"

    # Pricing (EUR)
    SERVICE_FEE_RATE: Decimal = Decimal("0.05")
    DRIVER_RATE_PER_DAY: Decimal = Decimal("50")
    CHILD_SEAT_RATE_PER_DAY: Decimal = Decimal("3")
    CHILD_SEAT_MAX_QUANTITY: int = 4
    CAMPING_RATE_PER_DAY: Decimal = Decimal("10")
    DEPOSIT_RATE: Decimal = Decimal("0.20")

    # Notifications
    BOOKING_NOTIFICATION_EMAILS: str = ""
    CONTACT_TO_EMAIL: str | None = None

    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8080"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def notification_emails(self) -> list[str]:
        """Admin recipients, comma separated in the environment."""
        return [e.strip() for e in self.BOOKING_NOTIFICATION_EMAILS.split(",") if e.strip()]

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
