"""
Business logic services.

Services handle the message lifecycle, thread reconstruction and persistence.
"""

from services.deletion import DeletionPolicy, DeletionResult
from services.lifecycle import MessageLifecycle
from services.message_store import ChannelStore, MessageStore
from services.threads import ThreadView, reconstruct

__all__ = [
    "DeletionPolicy",
    "DeletionResult",
    "MessageLifecycle",
    "ChannelStore",
    "MessageStore",
    "ThreadView",
    "reconstruct",
]
