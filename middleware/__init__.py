"""
Middleware for authentication, CORS, and rate limiting.
"""

from middleware.auth import validate_session, require_identity, optional_identity
from middleware.cors import setup_cors
from middleware.rate_limit import rate_limit_middleware, rate_limited_identity

__all__ = [
    "validate_session",
    "require_identity",
    "optional_identity",
    "setup_cors",
    "rate_limit_middleware",
    "rate_limited_identity",
]
