"""Rate limiting for credential-checking endpoints."""

from typing import Any

from fastapi import Depends, HTTPException, Request
from starlette import status

from ..config import Settings
from ..exceptions import StorageError
from ..logging_config import get_logger
from ..metrics import RATE_LIMIT_HITS
from .providers import get_rate_limit_cache, get_settings

logger = get_logger(__name__)


def require_rate_limit(group: str):
    """Dependency factory limiting requests per client IP.

    Every route using the same ``group`` shares one counter, so
    ``send-verification`` and ``verify-login`` draw from a single budget of
    ``rate_limit_calls`` per ``rate_limit_period_seconds``.
    """

    async def dependency(
        request: Request,
        cache: Any = Depends(get_rate_limit_cache),
        settings: Settings = Depends(get_settings),
    ) -> None:
        ip = request.client.host if request.client else "unknown"
        key = f"rl:{group}:{ip}"

        # incr creates the key; the first hit of a window sets its TTL
        try:
            count = await cache.incr(key)
            if count == 1:
                await cache.expire(key, settings.rate_limit_period_seconds)
        except StorageError as e:
            # fail open: an unavailable counter must not lock everyone out
            logger.warning("rate_limit_unavailable", group=group, error=str(e))
            return

        if count > settings.rate_limit_calls:
            if RATE_LIMIT_HITS is not None:
                RATE_LIMIT_HITS.labels(group=group).inc()
            logger.info("rate_limit_exceeded", group=group, count=count)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many authentication attempts, please try again later.",
            )

    return dependency
