# app/core/supabase_client.py
import asyncio

from supabase import AsyncClient, acreate_client

from app.core.config import get_settings

_public_client: AsyncClient | None = None
_admin_client: AsyncClient | None = None

# Serializes first-time creation so concurrent first requests share one client.
_client_lock = asyncio.Lock()


async def supabase_public() -> AsyncClient:
    """
    Return the shared async Supabase client built with the anon/public key.

    Use cases:
      - profile lookups
      - cart and cart item reads/writes

    Note: This client still respects RLS.
    """
    global _public_client
    async with _client_lock:
        if _public_client is None:
            settings = get_settings()
            _public_client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _public_client


async def supabase_admin() -> AsyncClient:
    """
    Return the shared async Supabase client built with the service role key.

    Use cases:
      - any operation that needs to bypass RLS

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    global _admin_client
    settings = get_settings()
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    async with _client_lock:
        if _admin_client is None:
            _admin_client = await acreate_client(
                settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
            )
    return _admin_client


async def get_gateway_client() -> AsyncClient:
    """
    FastAPI dependency returning the client the cart repositories talk to.

    The service role client is preferred when configured, since the backend
    performs ownership checks itself.
    """
    if get_settings().SUPABASE_SERVICE_ROLE_KEY:
        return await supabase_admin()
    return await supabase_public()
