"""
Approval state of a post.

    PRIVATE --owner publishes--> PENDING --admin approves--> APPROVED
                                    |
                                    +--admin denies--> (deleted)

Approve and deny each run as one conditional store operation, so of two
concurrent calls on the same pending post exactly one succeeds and the
other sees NotFound.
"""
from datetime import datetime, timezone
from enum import Enum
import logging

from pymongo import ReturnDocument
from pymongo.collection import Collection

from .errors import NotFound, store_errors
from .query.filters import Role, scope_filter

logger = logging.getLogger(__name__)


class ModerationState(str, Enum):
    PRIVATE = "private"
    PENDING = "pending"
    APPROVED = "approved"


def state_of(post: dict) -> ModerationState:
    if not post.get("isPublic"):
        return ModerationState.PRIVATE
    if post.get("isApproved"):
        return ModerationState.APPROVED
    return ModerationState.PENDING


def initial_flags(is_public: bool) -> dict:
    return {"isPublic": bool(is_public), "isApproved": False}


def apply_edit(post: dict, is_public=None) -> dict:
    """Flags after an owner edit that may toggle ``isPublic``.

    Publishing a private post always puts it back in the queue. Any other
    edit keeps the current flags, so an approved post stays approved.
    """
    current = {"isPublic": bool(post.get("isPublic")), "isApproved": bool(post.get("isApproved"))}
    if is_public is None or bool(is_public) == current["isPublic"]:
        return current
    if is_public:
        return {"isPublic": True, "isApproved": False}
    return {"isPublic": False, "isApproved": current["isApproved"]}


def approve(collection: Collection, post_id) -> dict:
    pending = {"_id": post_id, **scope_filter(Role.ADMIN)}
    with store_errors("Failed to approve post"):
        post = collection.find_one_and_update(
            pending,
            {"$set": {"isApproved": True, "updatedAt": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
    if post is None:
        raise NotFound("Pending public post not found")
    logger.info("Approved post %s", post_id)
    return post


def deny(collection: Collection, post_id) -> dict:
    pending = {"_id": post_id, **scope_filter(Role.ADMIN)}
    with store_errors("Failed to deny post"):
        post = collection.find_one_and_delete(pending)
    if post is None:
        raise NotFound("Pending public post not found")
    logger.info("Denied and deleted post %s", post_id)
    return post
