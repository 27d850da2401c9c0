"""
Thread reconstruction.

Turns the flat list of messages a viewer is allowed to see into the
two-level conversation view: one primary root thread, the other root
threads, and their replies. Replies whose parent is gone (deleted, or a
draft the viewer cannot see) are anchored under a synthetic placeholder
root.

The function is pure: it never queries the store and never decides
visibility. It works on anything exposing ``id``, ``parent_id`` and
``created_at`` (ORM rows or response schemas).
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

PLACEHOLDER_AUTHOR = "Deleted message"
PLACEHOLDER_CONTENT = "Message has been deleted"
PLACEHOLDER_OFFSET = timedelta(seconds=1)


@dataclass
class PlaceholderMessage:
    """Stand-in root for replies whose parent is no longer visible."""

    id: str
    missing_parent_id: str
    created_at: datetime
    channel_id: Any = None
    parent_id: Any = None
    author_id: Optional[str] = None
    author_name: str = PLACEHOLDER_AUTHOR
    content: str = PLACEHOLDER_CONTENT
    is_draft: bool = False
    is_orphaned: bool = True
    is_placeholder: bool = True
    version: int = 0

    @property
    def updated_at(self) -> datetime:
        return self.created_at


@dataclass
class ThreadBlock:
    root: Any
    children: List[Any] = field(default_factory=list)


@dataclass
class ThreadView:
    """
    Reconstructed conversation.

    Attributes:
        primary: Earliest root thread, None when nothing is visible
        others: Remaining root threads in creation order
        replies: Every parent id (placeholder ids included) mapped to its
            ordered replies, so replies to replies stay reachable
    """

    primary: Optional[ThreadBlock] = None
    others: List[ThreadBlock] = field(default_factory=list)
    replies: Dict[str, List[Any]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.primary is None

    @property
    def threads(self) -> List[ThreadBlock]:
        return ([self.primary] if self.primary else []) + self.others

    @property
    def placeholders(self) -> List[PlaceholderMessage]:
        return [block.root for block in self.threads if getattr(block.root, "is_placeholder", False)]


def _key(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def placeholder_id(missing_parent_id: str) -> str:
    return f"placeholder-{missing_parent_id}"


def reconstruct(messages: Sequence[Any]) -> ThreadView:
    """
    Build the threaded view of a channel.

    Args:
        messages: Messages visible to the viewer, in any order

    Returns:
        ThreadView: primary/other root threads with ordered replies
    """
    # sorted() is stable, so equal timestamps keep their input order
    ordered = sorted(messages, key=lambda m: m.created_at)
    if not ordered:
        return ThreadView()

    visible_ids = {_key(m.id) for m in ordered}

    roots: List[Any] = []
    replies: Dict[str, List[Any]] = {}
    for message in ordered:
        parent = _key(message.parent_id)
        if parent is None:
            roots.append(message)
        else:
            replies.setdefault(parent, []).append(message)

    for missing_parent in [p for p in replies if p not in visible_ids]:
        orphans = replies.pop(missing_parent)
        first = orphans[0]
        placeholder = PlaceholderMessage(
            id=placeholder_id(missing_parent),
            missing_parent_id=missing_parent,
            created_at=first.created_at - PLACEHOLDER_OFFSET,
            channel_id=getattr(first, "channel_id", None),
        )
        replies[placeholder.id] = orphans
        roots.append(placeholder)

    roots.sort(key=lambda m: m.created_at)

    blocks = [ThreadBlock(root=root, children=replies.get(_key(root.id), [])) for root in roots]
    return ThreadView(primary=blocks[0], others=blocks[1:], replies=replies)
