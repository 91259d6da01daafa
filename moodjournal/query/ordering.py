from enum import Enum
import random
from typing import List, Optional

from pymongo import ASCENDING, DESCENDING


class SortMode(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    RANDOM = "random"


def sort_spec(mode: Optional[SortMode]):
    """Sort keys for the store, or None to keep natural order."""
    if mode == SortMode.NEWEST:
        return [("createdAt", DESCENDING)]
    if mode == SortMode.OLDEST:
        return [("createdAt", ASCENDING)]
    return None


def shuffle(items: List, rng: Optional[random.Random] = None) -> List:
    """Fisher-Yates shuffle in place."""
    rng = rng or random
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items
