from datetime import datetime, timezone
import logging
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ..errors import NotFound, ValidationFailure, store_errors
from ..models.user import UserOut

logger = logging.getLogger(__name__)


def user_out(user: dict) -> UserOut:
    return UserOut(
        id=str(user["_id"]),
        email=user["email"],
        photo=user.get("photo", ""),
        isAdmin=user.get("isAdmin", False),
        createdAt=user.get("createdAt"),
        updatedAt=user.get("updatedAt"),
    )


def create_user(db: Database, email: str, password_hash: str, is_admin: bool = False) -> dict:
    now = datetime.now(timezone.utc)
    user = {
        "email": email,
        "password": password_hash,
        "photo": "",
        "isAdmin": is_admin,
        "createdAt": now,
        "updatedAt": now,
    }
    with store_errors("Exception thrown in database when creating a new user."):
        try:
            result = db.users.insert_one(user)
        except DuplicateKeyError:
            raise ValidationFailure("Email already registered")
    user["_id"] = result.inserted_id
    logger.info("Created new user %s", user["_id"])
    return user


def get_user(db: Database, user_id) -> Optional[dict]:
    try:
        oid = user_id if isinstance(user_id, ObjectId) else ObjectId(str(user_id))
    except (InvalidId, TypeError):
        return None
    with store_errors("Failed to get user"):
        return db.users.find_one({"_id": oid})


def get_user_by_email(db: Database, email: str) -> Optional[dict]:
    with store_errors("Failed to get user"):
        return db.users.find_one({"email": email})


def update_user(db: Database, user_id: ObjectId, update_data: dict) -> dict:
    update_data = dict(update_data, updatedAt=datetime.now(timezone.utc))
    with store_errors("Failed to update user profile"):
        try:
            user = db.users.find_one_and_update(
                {"_id": user_id},
                {"$set": update_data},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ValidationFailure("Email already registered")
    if user is None:
        raise NotFound("User not found")
    return user
