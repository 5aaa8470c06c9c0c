# rental_store/core/supabase_client.py
from functools import lru_cache
from supabase import create_client, Client

from rental_store.core.config import get_settings


@lru_cache
def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - reading the public 'settings' table (add-on pricing)

    Note: This client still respects RLS.

    Raises:
        RuntimeError: if SUPABASE_URL or SUPABASE_KEY is not set.
    """
    settings = get_settings()
    if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
        raise RuntimeError("Missing SUPABASE_URL / SUPABASE_KEY in .env")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


def fetch_setting(key: str) -> dict | None:
    """
    Read one JSON value from the Supabase 'settings' table.

    Returns None if the row does not exist.
    """
    resp = (
        supabase_public()
        .table("settings")
        .select("value")
        .eq("key", key)
        .limit(1)
        .execute()
    )
    if not resp.data:
        return None
    return resp.data[0]["value"]
