# app/schemas/user.py
import uuid

from sqlmodel import SQLModel


class SessionIdentity(SQLModel):
    """
    The signed-in principal as issued by Supabase Auth.

    Only the stable auth id matters to the cart; it is resolved to a
    profile id (users.id) before any cart lookup.
    """

    auth_id: uuid.UUID
    email: str | None = None
