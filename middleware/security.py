"""
Security headers middleware.

The API only serves JSON, so responses get a deny-everything CSP and are
never framed or cached. The interactive docs pages are the exception and
load Swagger UI from its CDN.
"""

from fastapi import Request
import logging

logger = logging.getLogger(__name__)

API_CSP = "default-src 'none'; frame-ancestors 'none'"

DOCS_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https://fastapi.tiangolo.com; "
    "frame-ancestors 'none'"
)

DOCS_PATHS = ("/docs", "/redoc")


async def security_headers_middleware(request: Request, call_next):
    """
    Add security headers to all responses.

    Headers added:
    - Content-Security-Policy (strict for the API, relaxed for /docs)
    - X-Content-Type-Options
    - X-Frame-Options
    - Referrer-Policy
    - Cache-Control: no-store on /api responses (drafts are per-user)
    - Strict-Transport-Security (if HTTPS)

    Args:
        request: FastAPI request
        call_next: Next middleware in chain

    Returns:
        Response with security headers
    """
    response = await call_next(request)
    path = request.url.path

    response.headers["Content-Security-Policy"] = DOCS_CSP if path.startswith(DOCS_PATHS) else API_CSP
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer"

    if path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store"

    if request.url.scheme == "https":
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )

    return response
