"""
Rate limiting middleware.

Limits mutating requests per authenticated user (RATE_LIMIT_PER_MINUTE).
"""

from fastapi import Depends, Request, HTTPException, status
from datetime import datetime, timedelta
from collections import defaultdict
from typing import Dict, Tuple
from config import settings
from middleware.auth import require_identity
from schemas.identity import Identity
import logging

logger = logging.getLogger(__name__)

# In-memory rate limit tracking: {user_id: (request_count, window_start)}
rate_limit_store: Dict[str, Tuple[int, datetime]] = defaultdict(lambda: (0, datetime.now()))

RATE_LIMIT_WINDOW = timedelta(minutes=1)


def reset_rate_limits() -> None:
    rate_limit_store.clear()


async def rate_limit_middleware(request: Request):
    """
    Rate limiting dependency for authenticated requests.

    Must run after require_identity, which sets request.state.user_id.

    Args:
        request: FastAPI request object

    Raises:
        HTTPException: 429 Too Many Requests if rate limit exceeded
    """
    user_id = getattr(request.state, "user_id", None)

    if not user_id:
        logger.warning("Rate limit middleware called without user_id in request state")
        return

    limit = settings.rate_limit_per_minute
    now = datetime.now()
    request_count, window_start = rate_limit_store[user_id]

    # Check if current window has expired
    if now - window_start >= RATE_LIMIT_WINDOW:
        rate_limit_store[user_id] = (1, now)
        logger.debug(f"Rate limit window reset for user {user_id}")
        return

    request_count += 1
    rate_limit_store[user_id] = (request_count, window_start)

    if request_count > limit:
        window_end = window_start + RATE_LIMIT_WINDOW
        retry_after = max(int((window_end - now).total_seconds()), 1)

        logger.warning(
            f"Rate limit exceeded for user {user_id}: {request_count}/{limit} requests"
        )

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Maximum {limit} requests per minute.",
            headers={"Retry-After": str(retry_after)},
        )

    logger.debug(f"Rate limit check passed for user {user_id}: {request_count}/{limit} requests")


async def rate_limited_identity(request: Request, identity: Identity = Depends(require_identity)) -> Identity:
    """Authenticated caller whose request counts against the rate limit."""
    await rate_limit_middleware(request)
    return identity
