# hr_session/database.py — Supabase client factories

from functools import lru_cache

from supabase import AsyncClient, Client, acreate_client, create_client

from hr_session.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Service-role client used by the privileged functions."""
    settings = get_settings()
    if not settings.supabase_service_key:
        raise RuntimeError("SUPABASE_SERVICE_KEY must be configured")
    return create_client(settings.supabase_url, settings.supabase_service_key)


async def create_session_client() -> AsyncClient:
    """Anon-key client that carries the end user's session."""
    settings = get_settings()
    return await acreate_client(settings.supabase_url, settings.supabase_anon_key)
