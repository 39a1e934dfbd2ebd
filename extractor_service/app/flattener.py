"""
flattener.py: turns Reddit's nested reply tree into a flat, pre-ordered list.

Each kept comment records its parent id and depth, so the tree can be rebuilt
from the flat list alone. "more" stubs and any other non-t1 kinds are dropped.
"""
import logging
from typing import Any, Optional

from .config import settings
from .models import RedditComment

logger = logging.getLogger(__name__)

COMMENT_KIND = "t1"
REMOVED_BODIES = ("[deleted]", "[removed]")


def _replies_of(data: dict) -> list:
    # Reddit sends "" instead of a listing when a comment has no replies
    replies = data.get("replies")
    if not isinstance(replies, dict):
        return []
    children = (replies.get("data") or {}).get("children")
    return children if isinstance(children, list) else []


def _is_visible(data: dict) -> bool:
    body = data.get("body")
    return bool(body) and body not in REMOVED_BODIES


def flatten_comments(
    children: list[Any],
    parent_id: Optional[str] = None,
    depth: int = 0,
    max_depth: Optional[int] = None,
) -> list[RedditComment]:
    """
    Pre-order walk over a listing's children.

    A deleted/removed comment is not emitted, but its replies still are,
    pointing at the deleted comment's id and keeping their real depth.
    """
    if max_depth is None:
        max_depth = settings.MAX_COMMENT_DEPTH
    if depth > max_depth:
        logger.debug(f"[Flatten] Depth {depth} exceeds ceiling {max_depth}, skipping {len(children)} nodes")
        return []

    comments: list[RedditComment] = []
    for node in children:
        if not isinstance(node, dict) or node.get("kind") != COMMENT_KIND:
            continue

        data = node.get("data") or {}
        if not isinstance(data, dict):
            continue
        comment_id = data.get("id", "")

        if _is_visible(data):
            comments.append(RedditComment(
                id=comment_id,
                parent_id=parent_id,
                author=data.get("author") or "[deleted]",
                body=data["body"],
                score=data.get("score") or 0,
                created_utc=data.get("created_utc"),
                depth=depth,
            ))

        replies = _replies_of(data)
        if replies:
            comments.extend(flatten_comments(replies, comment_id, depth + 1, max_depth))

    return comments
