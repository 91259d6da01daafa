"""
Post store operations.

Listings are built from a role scope plus optional keyword or date
predicates and are cut into pages by the query engine. Single-post lookups
use the same scopes, so a post that is not visible to a role is NotFound
for that role.
"""
from datetime import datetime, timezone
import logging
import random
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .. import moderation
from ..errors import NotFound, ValidationFailure, store_errors
from ..models.post import Owner, PageOut, PostCreate, PostOut, PostUpdate
from ..query.filters import (
    Role,
    combine,
    day_month_filter,
    keyword_filter,
    scope_filter,
    year_range_filter,
)
from ..query.ordering import SortMode
from ..query.pagination import Page, paginate

logger = logging.getLogger(__name__)

EDIT_ATTEMPTS = 3


def to_object_id(value, message: str = "Post not found") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFound(message)


# ----------------- SERIALIZATION -----------------
def populate_owner(db: Database, posts: List[dict]) -> List[dict]:
    owner_ids = list({post["user"] for post in posts if post.get("user") is not None})
    if not owner_ids:
        return posts
    with store_errors("Failed to fetch post owners"):
        owners = {
            user["_id"]: user
            for user in db.users.find({"_id": {"$in": owner_ids}}, {"email": 1, "photo": 1})
        }
    for post in posts:
        post["owner"] = owners.get(post.get("user"))
    return posts


def post_out(post: dict) -> PostOut:
    owner = post.get("owner")
    return PostOut(
        id=str(post["_id"]),
        user=Owner(id=str(owner["_id"]), email=owner["email"], photo=owner.get("photo", "")) if owner else None,
        description=post["description"],
        location=post.get("location"),
        mood=post["mood"],
        temperature=post["temperature"],
        photo=post.get("photo", ""),
        isPublic=post.get("isPublic", False),
        isApproved=post.get("isApproved", False),
        createdAt=post["createdAt"],
        updatedAt=post["updatedAt"],
    )


def page_out(page: Page) -> PageOut:
    return PageOut(
        items=[post_out(post) for post in page.items],
        currentPage=page.currentPage,
        totalPages=page.totalPages,
        itemsPerPage=page.itemsPerPage,
        totalItems=page.totalItems,
    )


# ----------------- OWNER LIFECYCLE -----------------
def create_post(
    db: Database,
    owner_id: ObjectId,
    data: PostCreate,
    photo_url: str = "",
    now: Optional[datetime] = None,
) -> dict:
    """Insert a post for ``owner_id``.

    ``now`` is the server-local creation time; its calendar day is what the
    one-post-per-day index is keyed on.
    """
    local_now = now or datetime.now().astimezone()
    post = {
        "user": owner_id,
        "description": data.description,
        "location": data.location,
        "mood": data.mood,
        "temperature": data.temperature,
        "photo": photo_url or "",
        **moderation.initial_flags(data.isPublic),
        "createdDay": local_now.date().isoformat(),
        "createdAt": local_now.astimezone(timezone.utc),
        "updatedAt": local_now.astimezone(timezone.utc),
    }
    with store_errors("Failed to add post"):
        try:
            result = db.posts.insert_one(post)
        except DuplicateKeyError:
            raise ValidationFailure("You have already created a post today.")
    post["_id"] = result.inserted_id
    logger.info("User %s added post %s (%s)", owner_id, post["_id"], moderation.state_of(post).value)
    return post


def update_post(
    db: Database,
    owner_id: ObjectId,
    post_id,
    changes: PostUpdate,
    photo_url: Optional[str] = None,
) -> dict:
    """Apply an owner edit.

    Flags are only written when the edit changes them, and then only if
    they still hold the values the edit was computed from. A moderation
    action landing in between makes the write miss, and the edit is
    recomputed against the new state.
    """
    for _ in range(EDIT_ATTEMPTS):
        current = get_owner_post(db, owner_id, post_id)
        read_flags = {"isPublic": current.get("isPublic", False), "isApproved": current.get("isApproved", False)}
        flags = moderation.apply_edit(current, changes.isPublic)

        predicate = {"_id": current["_id"], "user": owner_id}
        update_data = changes.model_dump(exclude_unset=True, exclude={"isPublic"})
        if flags != read_flags:
            predicate.update(read_flags)
            update_data.update(flags)
        if photo_url:
            update_data["photo"] = photo_url
        update_data["updatedAt"] = datetime.now(timezone.utc)

        with store_errors("Failed to update post"):
            post = db.posts.find_one_and_update(
                predicate,
                {"$set": update_data},
                return_document=ReturnDocument.AFTER,
            )
        if post is not None:
            return post
        logger.info("Post %s changed during edit, retrying", current["_id"])
    raise NotFound("Post not found")


def delete_post(db: Database, owner_id: ObjectId, post_id) -> None:
    with store_errors("Failed to delete post"):
        result = db.posts.delete_one({"_id": to_object_id(post_id), "user": owner_id})
    if result.deleted_count == 0:
        raise NotFound("Post not found")
    logger.info("User %s deleted post %s", owner_id, post_id)


# ----------------- SINGLE POSTS -----------------
def _find_one(db: Database, predicate: dict, message: str) -> dict:
    with store_errors("Failed to fetch post"):
        post = db.posts.find_one(predicate)
    if post is None:
        raise NotFound(message)
    return populate_owner(db, [post])[0]


def get_owner_post(db: Database, owner_id: ObjectId, post_id) -> dict:
    return _find_one(
        db, {"_id": to_object_id(post_id), **scope_filter(Role.USER, owner_id)}, "Post not found"
    )


def get_public_post(db: Database, post_id) -> dict:
    message = "Approved public post not found"
    return _find_one(db, {"_id": to_object_id(post_id, message), **scope_filter(Role.GUEST)}, message)


def get_pending_post(db: Database, post_id) -> dict:
    message = "Pending public post not found"
    return _find_one(db, {"_id": to_object_id(post_id, message), **scope_filter(Role.ADMIN)}, message)


# ----------------- LISTINGS -----------------
def list_posts(
    db: Database,
    role: Role,
    owner_id: Optional[ObjectId] = None,
    page=None,
    ordering: Optional[SortMode] = None,
    extra: Optional[dict] = None,
    rng: Optional[random.Random] = None,
) -> Page:
    predicate = combine(scope_filter(role, owner_id), extra or {})
    result = paginate(db.posts, predicate, page, ordering, rng=rng)
    populate_owner(db, result.items)
    return result


def list_public_approved(db: Database, sort: SortMode = SortMode.NEWEST, page=None, rng=None) -> Page:
    return list_posts(db, Role.GUEST, None, page, SortMode(sort), rng=rng)


def search_public_approved(db: Database, keyword: Optional[str], page=None) -> Page:
    # natural store order
    return list_posts(db, Role.GUEST, None, page, None, extra=keyword_filter(keyword))


def list_pending(db: Database, page=None) -> Page:
    return list_posts(db, Role.ADMIN, None, page, SortMode.NEWEST)


def approve(db: Database, post_id) -> dict:
    return moderation.approve(db.posts, to_object_id(post_id, "Pending public post not found"))


def deny(db: Database, post_id) -> dict:
    return moderation.deny(db.posts, to_object_id(post_id, "Pending public post not found"))


def list_owner_posts(db: Database, owner_id: ObjectId, page=None) -> Page:
    return list_posts(db, Role.USER, owner_id, page, SortMode.NEWEST)


def search_owner_posts(db: Database, owner_id: ObjectId, keyword: Optional[str], page=None) -> Page:
    return list_posts(db, Role.USER, owner_id, page, SortMode.NEWEST, extra=keyword_filter(keyword))


def list_owner_posts_by_day_month(db: Database, owner_id: ObjectId, day: int, month: int) -> List[dict]:
    predicate = combine(scope_filter(Role.USER, owner_id), day_month_filter(day, month))
    with store_errors("Failed to fetch posts"):
        posts = list(db.posts.find(predicate).sort([("createdAt", DESCENDING)]))
    return populate_owner(db, posts)


def list_owner_posts_in_range(
    db: Database,
    owner_id: ObjectId,
    start_year: Optional[int] = None,
    end_year: Optional[int] = None,
    page=None,
) -> Page:
    return list_posts(
        db, Role.USER, owner_id, page, SortMode.NEWEST, extra=year_range_filter(start_year, end_year)
    )
