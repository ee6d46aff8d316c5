# app/core/retry.py
from typing import Any

from tenacity import retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.config import Settings
from app.core.exceptions import GatewayError


def read_retry(settings: Settings) -> dict[str, Any]:
    """
    Retry policy for idempotent gateway reads, as keyword arguments for
    tenacity's Retrying / AsyncRetrying.

    Writes are never retried: a timed-out insert may have landed.
    """
    return dict(
        reraise=True,
        stop=stop_after_attempt(settings.READ_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.2, max=settings.READ_RETRY_MAX_WAIT),
        retry=retry_if_exception_type(GatewayError),
    )
