# app/repositories/user_repo.py
import uuid

from supabase import AsyncClient

from app.core.exceptions import GatewayError
from app.repositories.gateway import run_query


class ProfileRepository:
    """
    Data access layer for user profiles.

    Responsibilities:
      - resolve a Supabase auth id to the application profile id
      - no FastAPI, no HTTP, no business logic
    """

    TABLE = "users"

    def __init__(self, client: AsyncClient):
        self.client = client

    async def get_profile_id(self, auth_id: uuid.UUID) -> uuid.UUID | None:
        """Return the profile id bound to an auth id, or None if not provisioned."""
        rows = await run_query(
            self.client.table(self.TABLE).select("id").eq("auth_id", str(auth_id)).limit(1),
            "fetch user profile",
        )
        if not rows:
            return None
        try:
            return uuid.UUID(rows[0]["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError("Failed to fetch user profile: malformed row") from e
