import logging

from fastapi import APIRouter, Depends, BackgroundTasks
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database

from ..crud import users as crud_users
from ..database import get_db
from ..errors import Forbidden, NotFound, Unauthorized
from ..models.user import ForgotPassword, ResetPassword, TokenOut, UserCreate, UserLogin
from ..query.filters import Role
from ..utils.mail import send_reset_email
from ..utils.security import (
    create_access_token,
    create_reset_token,
    decode_access_token,
    decode_reset_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

security = HTTPBearer(auto_error=False)


# ----------------- UTILITY -----------------
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Database = Depends(get_db),
):
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized()
    payload = decode_access_token(credentials.credentials)
    user_doc = crud_users.get_user(db, payload.get("id"))
    if not user_doc:
        raise Unauthorized("User not found")
    return user_doc


def current_role(user_doc: dict) -> Role:
    return Role.ADMIN if user_doc.get("isAdmin") else Role.USER


def require_admin(current_user: dict = Depends(get_current_user)):
    if current_role(current_user) != Role.ADMIN:
        raise Forbidden()
    return current_user


# ----------------- SIGNUP & LOGIN -----------------
@router.post("/signup", response_model=TokenOut, status_code=201)
def signup(user: UserCreate, db: Database = Depends(get_db)):
    user_doc = crud_users.create_user(db, user.email, hash_password(user.password))
    return TokenOut(access_token=create_access_token(user_doc), user=crud_users.user_out(user_doc))


@router.post("/login", response_model=TokenOut)
def login(user: UserLogin, db: Database = Depends(get_db)):
    user_doc = crud_users.get_user_by_email(db, user.email)
    if not user_doc or not verify_password(user.password, user_doc["password"]):
        logger.info("Failed login for %s", user.email)
        raise Unauthorized("Authentication failed.")
    return TokenOut(access_token=create_access_token(user_doc), user=crud_users.user_out(user_doc))


# ----------------- PASSWORD RESET -----------------
@router.post("/forgot-password")
def forgot_password(data: ForgotPassword, background_tasks: BackgroundTasks, db: Database = Depends(get_db)):
    user_doc = crud_users.get_user_by_email(db, data.email)
    if not user_doc:
        raise NotFound("There is no account with the email you provided.")

    background_tasks.add_task(send_reset_email, user_doc["email"], create_reset_token(user_doc))

    return {
        "message": "You'll receive a link to reset your password. If you don't see the email, "
                   "check your spam or junk folder before submitting a new request."
    }


@router.post("/reset-password/{reset_token}")
def reset_password(reset_token: str, data: ResetPassword, db: Database = Depends(get_db)):
    payload = decode_reset_token(reset_token)
    user_doc = crud_users.get_user(db, payload.get("id"))
    if not user_doc:
        raise NotFound("User not found for the given reset token.")
    crud_users.update_user(db, user_doc["_id"], {"password": hash_password(data.newPassword)})
    return {"message": "Password reset successful. You can now log in with your new password."}
