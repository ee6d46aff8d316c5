# app/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Application profile for a storefront customer.

    Identity:
      - id: the profile id that owns carts (NOT the Supabase auth id)
      - auth_id: matches Supabase auth.users.id (UUID from JWT "sub")

    Supabase Auth stores credentials in its own schema; this table only
    mirrors identity and display fields.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    auth_id: uuid.UUID = Field(
        unique=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
    )

    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
