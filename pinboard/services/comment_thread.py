"""
Pinboard API: Comment Thread Builder
======================================

What:  Turns the flat comment set of one pin into a reply tree.
Why:   Comments are stored flat (parent_comment_id); clients render nested
       threads. Building the tree once, in memory, keeps the read to two
       queries (comments + the viewer's comment likes) whatever the depth.
How:   Two passes over the input:
           1. one CommentNode per comment, indexed by id
           2. attach each node to its parent's `replies`, or to the roots

Ordering:
    Input is expected in ascending created_at order. Replies keep that
    order (oldest first, reading down a conversation) at every depth; the
    root list is reversed so the newest conversation is on top.

Edge cases:
    - parent missing from the set (orphan): dropped from the tree, logged
    - author missing or deleted: rendered as the "deleted user" placeholder
    - nesting depth: unbounded; cycles cannot occur because a reply can
      only reference a comment that already existed when it was written
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set

from pinboard.schemas.comment import CommentNode
from pinboard.schemas.common import UserSummary

logger = logging.getLogger(__name__)

DELETED_USERNAME = "deleted user"


def deleted_user_summary() -> UserSummary:
    return UserSummary(id=None, username=DELETED_USERNAME, profile_picture="")


def author_summary(user: Optional[Any]) -> UserSummary:
    """UserSummary for a comment author, or the placeholder if there is none."""
    if user is None or getattr(user, "is_deleted", False):
        return deleted_user_summary()
    return UserSummary(
        id=user.id,
        username=user.username,
        profile_picture=getattr(user, "profile_picture", "") or "",
    )


def to_node(comment: Any, liked_ids: Set[uuid.UUID]) -> CommentNode:
    """Single comment → node with no replies attached."""
    reply_to = getattr(comment, "reply_to_user", None)
    reply_to_username = None
    if comment.parent_comment_id is not None and reply_to is not None:
        reply_to_username = author_summary(reply_to).username

    return CommentNode(
        id=comment.id,
        text=comment.text,
        user=author_summary(getattr(comment, "user", None)),
        likes_count=comment.likes_count or 0,
        is_liked=comment.id in liked_ids,
        created_at=comment.created_at,
        parent_comment_id=comment.parent_comment_id,
        reply_to_username=reply_to_username,
    )


def build_comment_tree(
    comments: Iterable[Any],
    liked_ids: Optional[Set[uuid.UUID]] = None,
) -> List[CommentNode]:
    """
    Build the reply tree for one pin.

    Args:
        comments:  every comment of the pin, ascending by created_at
        liked_ids: ids of comments the viewer has liked (empty for anonymous)

    Returns:
        Root nodes, newest first. Each reply appears exactly once, under its
        direct parent, never among the roots.
    """
    liked = liked_ids or set()
    ordered = sorted(comments, key=lambda c: c.created_at)

    nodes: Dict[uuid.UUID, CommentNode] = {}
    for comment in ordered:
        nodes[comment.id] = to_node(comment, liked)

    roots: List[CommentNode] = []
    for comment in ordered:
        node = nodes[comment.id]
        parent_id = comment.parent_comment_id
        if parent_id is None:
            roots.append(node)
            continue

        parent = nodes.get(parent_id)
        if parent is None:
            logger.debug("Dropping orphan comment %s (parent %s not found)", comment.id, parent_id)
            continue
        if node.reply_to_username is None:
            node.reply_to_username = parent.user.username
        parent.replies.append(node)

    roots.reverse()
    return roots
