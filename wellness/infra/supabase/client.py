"""Process-wide Supabase client, authenticated with the service role key"""
from functools import lru_cache

from supabase import Client, create_client  # type: ignore

from wellness import config


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE_KEY)
