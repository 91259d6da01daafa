from fastapi import APIRouter, Depends
from pymongo.database import Database
from typing import Optional

from ..crud import posts as crud_posts
from ..database import get_db
from ..errors import NotFound
from ..models.post import PageOut, PostOut
from .auth import require_admin

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/posts/pending", response_model=PageOut)
def get_pending_posts(page: Optional[str] = None, db: Database = Depends(get_db)):
    result = crud_posts.list_pending(db, page)
    if not result.items:
        raise NotFound("No pending public posts found")
    return crud_posts.page_out(result)


@router.get("/posts/pending/{post_id}", response_model=PostOut)
def get_pending_post(post_id: str, db: Database = Depends(get_db)):
    return crud_posts.post_out(crud_posts.get_pending_post(db, post_id))


@router.put("/posts/pending/{post_id}/approve")
def approve_pending_post(post_id: str, db: Database = Depends(get_db)):
    crud_posts.approve(db, post_id)
    return {"message": "Successfully approved post"}


@router.delete("/posts/pending/{post_id}/deny")
def deny_pending_post(post_id: str, db: Database = Depends(get_db)):
    crud_posts.deny(db, post_id)
    return {"message": "Successfully denied and deleted post from database"}
