"""
Caller identity as supplied by the external identity provider.
"""

from pydantic import BaseModel


class Identity(BaseModel):
    """Authenticated caller. Anonymous callers are represented by None."""

    id: str
    display_name: str = "Anonymous"
