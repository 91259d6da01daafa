import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError
from pymongo.database import Database

from ..crud import posts as crud_posts
from ..crud import users as crud_users
from ..database import get_db
from ..errors import NotFound, ValidationFailure
from ..models.post import PageOut, PostCreate, PostOut, PostUpdate
from ..models.user import ProfileUpdate, UserOut
from ..utils.security import hash_password
from ..utils.upload import upload_photo
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


def validated(model, **fields) -> BaseModel:
    """Build ``model`` from the form fields that were sent."""
    try:
        return model(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        logger.debug("Rejected %s: %s", model.__name__, e)
        raise ValidationFailure()


def _page_or_404(result, message: str) -> PageOut:
    if not result.items:
        raise NotFound(message)
    return crud_posts.page_out(result)


def _populated_out(db: Database, post: dict) -> PostOut:
    return crud_posts.post_out(crud_posts.populate_owner(db, [post])[0])


# ----------------- POSTS -----------------
@router.post("/posts", response_model=PostOut, status_code=201)
async def add_post(
    description: str = Form(...),
    mood: int = Form(...),
    temperature: float = Form(...),
    location: Optional[str] = Form(None),
    isPublic: bool = Form(False),
    photo: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    data = validated(
        PostCreate,
        description=description,
        location=location,
        mood=mood,
        temperature=temperature,
        isPublic=isPublic,
    )
    photo_url = await upload_photo(photo) if photo else ""
    post = await run_in_threadpool(crud_posts.create_post, db, current_user["_id"], data, photo_url)
    return await run_in_threadpool(_populated_out, db, post)


@router.get("/posts", response_model=PageOut)
def get_user_posts(page: Optional[str] = None, current_user: dict = Depends(get_current_user),
                   db: Database = Depends(get_db)):
    return _page_or_404(crud_posts.list_owner_posts(db, current_user["_id"], page), "No user posts found")


@router.get("/posts/search", response_model=PageOut)
def search_posts(query: str = "", page: Optional[str] = None, current_user: dict = Depends(get_current_user),
                 db: Database = Depends(get_db)):
    result = crud_posts.search_owner_posts(db, current_user["_id"], query, page)
    return _page_or_404(result, "No matching user posts found")


@router.get("/posts/day-month", response_model=List[PostOut])
def get_posts_by_day_month(day: int, month: int, current_user: dict = Depends(get_current_user),
                           db: Database = Depends(get_db)):
    posts = crud_posts.list_owner_posts_by_day_month(db, current_user["_id"], day, month)
    if not posts:
        raise NotFound("No user posts found for this date")
    return [crud_posts.post_out(post) for post in posts]


@router.get("/posts/range", response_model=PageOut)
def get_posts_in_range(
    start_year: Optional[int] = None,
    end_year: Optional[int] = None,
    page: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    result = crud_posts.list_owner_posts_in_range(db, current_user["_id"], start_year, end_year, page)
    return _page_or_404(result, "No user posts found in this range")


@router.get("/posts/{post_id}", response_model=PostOut)
def get_user_post(post_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    return crud_posts.post_out(crud_posts.get_owner_post(db, current_user["_id"], post_id))


@router.put("/posts/{post_id}", response_model=PostOut)
async def update_post(
    post_id: str,
    description: Optional[str] = Form(None),
    mood: Optional[int] = Form(None),
    temperature: Optional[float] = Form(None),
    location: Optional[str] = Form(None),
    isPublic: Optional[bool] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    changes = validated(
        PostUpdate,
        description=description,
        location=location,
        mood=mood,
        temperature=temperature,
        isPublic=isPublic,
    )
    photo_url = await upload_photo(photo) if photo else None
    post = await run_in_threadpool(crud_posts.update_post, db, current_user["_id"], post_id, changes, photo_url)
    return await run_in_threadpool(_populated_out, db, post)


@router.delete("/posts/{post_id}")
def delete_post(post_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    crud_posts.delete_post(db, current_user["_id"], post_id)
    return {"message": "Post deleted successfully"}


# ----------------- PROFILE -----------------
@router.get("/profile", response_model=UserOut)
def get_profile(current_user: dict = Depends(get_current_user)):
    return crud_users.user_out(current_user)


@router.put("/profile", response_model=UserOut)
async def update_profile(
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    changes = validated(ProfileUpdate, email=email or None, password=password or None)
    update_data = {}
    if changes.email:
        update_data["email"] = changes.email
    if changes.password:
        update_data["password"] = await run_in_threadpool(hash_password, changes.password)
    if photo:
        update_data["photo"] = await upload_photo(photo)

    user_doc = await run_in_threadpool(crud_users.update_user, db, current_user["_id"], update_data)
    logger.info("User %s updated profile", user_doc["_id"])
    return crud_users.user_out(user_doc)
