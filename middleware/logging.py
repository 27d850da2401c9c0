"""
Request/Response logging middleware.

Logs all incoming requests with timing and user context.
"""

from fastapi import Request
import logging
import time
import uuid

logger = logging.getLogger(__name__)


async def logging_middleware(request: Request, call_next):
    """
    Log all requests with timing and context.

    Args:
        request: FastAPI request
        call_next: Next middleware in chain

    Returns:
        Response with timing and request id headers
    """
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    request.state.request_id = request_id

    logger.info(f"Request [{request_id}]: {request.method} {request.url.path}")

    response = await call_next(request)

    duration_ms = int((time.time() - start_time) * 1000)

    response.headers["X-Process-Time"] = str(duration_ms)
    response.headers["X-Request-ID"] = request_id

    # user_id is set by the auth dependencies while the request is handled
    user_id = getattr(request.state, "user_id", "anonymous")
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"Response [{request_id}]: {request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration_ms}ms - "
        f"User: {user_id}",
    )

    return response
