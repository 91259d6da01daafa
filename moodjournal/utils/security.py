from datetime import datetime, timedelta, timezone
import bcrypt
import jwt

from ..config import (
    JWT_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_LIFETIME_MINUTES,
    RESET_TOKEN_SECRET,
    RESET_TOKEN_LIFETIME_MINUTES,
)
from ..errors import Unauthorized


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode(), password_hash.encode())


def create_access_token(user: dict) -> str:
    payload = {
        "id": str(user["_id"]),
        "email": user["email"],
        "exp": datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_LIFETIME_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise Unauthorized("Invalid or expired token")


def create_reset_token(user: dict) -> str:
    payload = {
        "id": str(user["_id"]),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=RESET_TOKEN_LIFETIME_MINUTES),
    }
    return jwt.encode(payload, RESET_TOKEN_SECRET, algorithm=JWT_ALGORITHM)


def decode_reset_token(token: str) -> dict:
    try:
        return jwt.decode(token, RESET_TOKEN_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise Unauthorized("Please request a new password reset link.")
