"""
Page windows over a filtered collection.

Only ``random`` ordering is applied after the fetch: it shuffles the page
that was already cut from natural store order, so randomness never crosses
page boundaries.
"""
from dataclasses import dataclass, field
import math
import random
from typing import Any, List, Optional

from pymongo.collection import Collection

from ..errors import store_errors
from .ordering import SortMode, shuffle, sort_spec

PAGE_SIZE = 3
# Keeps the skip offset inside a BSON int64
MAX_PAGE = 2 ** 31 - 1


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    currentPage: int = 1
    totalPages: int = 0
    itemsPerPage: int = PAGE_SIZE
    totalItems: int = 0


def parse_page(value) -> int:
    """Positive page number from request input, falling back to 1."""
    if isinstance(value, bool):
        return 1
    try:
        page = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    if page < 1:
        return 1
    return min(page, MAX_PAGE)


def total_pages(total_items: int, page_size: int = PAGE_SIZE) -> int:
    if total_items <= 0:
        return 0
    return math.ceil(total_items / page_size)


def offset(page: int, page_size: int = PAGE_SIZE) -> int:
    return (page - 1) * page_size


def paginate(
    collection: Collection,
    predicate: dict,
    page=None,
    ordering: Optional[SortMode] = None,
    page_size: int = PAGE_SIZE,
    rng: Optional[random.Random] = None,
) -> Page:
    current = parse_page(page)
    with store_errors("Failed to fetch posts"):
        total = collection.count_documents(predicate)
        skip = offset(current, page_size)
        items = []
        if skip < total:
            cursor = collection.find(predicate)
            keys = sort_spec(ordering)
            if keys:
                cursor = cursor.sort(keys)
            items = list(cursor.skip(skip).limit(page_size))

    if ordering == SortMode.RANDOM:
        shuffle(items, rng)

    return Page(
        items=items,
        currentPage=current,
        totalPages=total_pages(total, page_size),
        itemsPerPage=page_size,
        totalItems=total,
    )
