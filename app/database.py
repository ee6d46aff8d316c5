# app/database.py
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from app.core.config import get_settings

# ---------------------------------------------------------
# Supabase Postgres connection (via pooler), used only to provision the
# cart schema. Row traffic goes through the Supabase REST client.
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=1       : keep only 1 connection to the Supabase pooler
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
# ---------------------------------------------------------


def _with_sslmode(db_url: str) -> str:
    """Append sslmode=require if it is not already present."""
    if "sslmode=" in db_url:
        return db_url
    if "?" in db_url:
        return db_url + "&sslmode=require"
    return db_url + "?sslmode=require"


def get_engine() -> Engine | None:
    """Build the provisioning engine, or None when DATABASE_URL is unset."""
    db_url = get_settings().DATABASE_URL
    if not db_url:
        return None
    return create_engine(
        _with_sslmode(db_url),
        echo=False,
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


def create_db_and_tables() -> bool:
    """
    Create users / carts / cart_items with their unique constraints if they
    do not exist.

    Returns:
        False when no DATABASE_URL is configured and nothing was done.
    """
    engine = get_engine()
    if engine is None:
        return False
    try:
        SQLModel.metadata.create_all(engine)
    finally:
        engine.dispose()
    return True
