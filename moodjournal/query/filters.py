"""
Predicates over the posts collection.

Every builder returns a plain MongoDB filter document. An empty document
means "no additional constraint" and is dropped by ``combine``.
"""
from enum import Enum
import re
from typing import Optional

from ..errors import ValidationFailure


class Role(str, Enum):
    GUEST = "guest"
    USER = "user"
    ADMIN = "admin"


def scope_filter(role: Role, owner_id=None) -> dict:
    if role == Role.GUEST:
        return {"isPublic": True, "isApproved": True}
    if role == Role.ADMIN:
        return {"isPublic": True, "isApproved": False}
    if owner_id is None:
        raise ValueError("owner_id is required for the user scope")
    return {"user": owner_id}


def keyword_filter(keyword: Optional[str]) -> dict:
    if not keyword:
        return {}
    pattern = re.escape(keyword)
    return {
        "$or": [
            {"description": {"$regex": pattern, "$options": "i"}},
            {"location": {"$regex": pattern, "$options": "i"}},
        ]
    }


def day_month_filter(day: int, month: int) -> dict:
    """Match posts created on ``day``/``month`` of any year."""
    if not 1 <= month <= 12:
        raise ValidationFailure("Month must be between 1 and 12")
    if not 1 <= day <= 31:
        raise ValidationFailure("Day must be between 1 and 31")
    return {"createdDay": {"$regex": rf"^\d{{4}}-{month:02d}-{day:02d}$"}}


def year_range_filter(start_year: Optional[int] = None, end_year: Optional[int] = None) -> dict:
    for year in (start_year, end_year):
        if year is not None and not 1 <= year <= 9999:
            raise ValidationFailure("Year must be between 1 and 9999")
    if start_year is not None and end_year is not None and start_year > end_year:
        raise ValidationFailure("Start year must not be after end year")
    bounds = {}
    if start_year is not None:
        bounds["$gte"] = f"{start_year:04d}-01-01"
    if end_year is not None:
        bounds["$lte"] = f"{end_year:04d}-12-31"
    return {"createdDay": bounds} if bounds else {}


def combine(*predicates: dict) -> dict:
    parts = [p for p in predicates if p]
    if not parts:
        return {}
    if len(parts) == 1:
        return parts[0]
    return {"$and": parts}
