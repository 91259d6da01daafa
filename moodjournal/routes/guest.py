from fastapi import APIRouter, Depends
from pymongo.database import Database
from typing import Optional

from ..crud import posts as crud_posts
from ..database import get_db
from ..errors import NotFound
from ..models.post import PageOut, PostOut
from ..query.ordering import SortMode

router = APIRouter(prefix="/guest/public-posts", tags=["guest"])


def _approved_page(db: Database, sort: SortMode, page: Optional[str]) -> PageOut:
    result = crud_posts.list_public_approved(db, sort, page)
    if not result.items:
        raise NotFound("No approved public posts found")
    return crud_posts.page_out(result)


@router.get("", response_model=PageOut)
def list_public_posts(sort: SortMode = SortMode.NEWEST, page: Optional[str] = None, db: Database = Depends(get_db)):
    return _approved_page(db, sort, page)


@router.get("/random", response_model=PageOut)
def random_public_posts(page: Optional[str] = None, db: Database = Depends(get_db)):
    return _approved_page(db, SortMode.RANDOM, page)


@router.get("/sorted/newest", response_model=PageOut)
def newest_public_posts(page: Optional[str] = None, db: Database = Depends(get_db)):
    return _approved_page(db, SortMode.NEWEST, page)


@router.get("/sorted/oldest", response_model=PageOut)
def oldest_public_posts(page: Optional[str] = None, db: Database = Depends(get_db)):
    return _approved_page(db, SortMode.OLDEST, page)


@router.get("/search", response_model=PageOut)
def search_public_posts(query: str = "", page: Optional[str] = None, db: Database = Depends(get_db)):
    result = crud_posts.search_public_approved(db, query, page)
    if not result.items:
        raise NotFound("No matching public posts found")
    return crud_posts.page_out(result)


@router.get("/{post_id}", response_model=PostOut)
def get_public_post(post_id: str, db: Database = Depends(get_db)):
    return crud_posts.post_out(crud_posts.get_public_post(db, post_id))
