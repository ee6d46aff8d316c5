# app/repositories/gateway.py
import logging
from typing import Any, TypeVar

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, ValidationError

from app.core.exceptions import GatewayError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


async def run_query(query, action: str) -> list[dict[str, Any]]:
    """
    Execute a Supabase query builder and return its rows.

    Every failure of the row store (PostgREST error, network error) is
    re-raised as GatewayError, keeping the Postgres error code so callers
    can tell a unique violation apart from anything else.

    Args:
        query: an un-executed postgrest request builder
        action: short description used in the error message, e.g. "insert cart item"
    """
    try:
        response = await query.execute()
    except APIError as e:
        logger.warning("Gateway rejected %s: %s (code=%s)", action, e.message, e.code)
        raise GatewayError(f"Failed to {action}: {e.message}", code=e.code) from e
    except httpx.HTTPError as e:
        logger.warning("Gateway unreachable during %s: %s", action, e)
        raise GatewayError(f"Failed to {action}: {e}") from e
    return response.data or []


def parse_row(model: type[T], row: dict[str, Any], action: str) -> T:
    """
    Decode one gateway row into its read model.

    A row that does not fit the model is reported like any other gateway
    failure, so the read path can retry and then swallow it.
    """
    try:
        return model.model_validate(row)
    except (ValidationError, TypeError) as e:
        logger.warning("Malformed row during %s: %s", action, e)
        raise GatewayError(f"Failed to {action}: malformed row") from e
