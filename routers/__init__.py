"""
API routers.
"""

from routers import channels, messages, tags

__all__ = ["channels", "messages", "tags"]
