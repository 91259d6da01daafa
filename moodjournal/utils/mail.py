import logging

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig

from ..config import (
    FRONTEND_URL,
    MAIL_USERNAME,
    MAIL_PASSWORD,
    MAIL_FROM,
    MAIL_PORT,
    MAIL_SERVER,
)

logger = logging.getLogger(__name__)

conf = ConnectionConfig(
    MAIL_USERNAME=MAIL_USERNAME,
    MAIL_PASSWORD=MAIL_PASSWORD,
    MAIL_FROM=MAIL_FROM,
    MAIL_PORT=MAIL_PORT,
    MAIL_SERVER=MAIL_SERVER,
    MAIL_STARTTLS=True,
    MAIL_SSL_TLS=False,
    USE_CREDENTIALS=True
)


def reset_link(reset_token: str) -> str:
    return f"{FRONTEND_URL}/reset-password/{reset_token}"


def reset_message(email: str, reset_token: str) -> MessageSchema:
    return MessageSchema(
        subject="Password Reset",
        recipients=[email],
        body=f"Click the following link to reset your password: {reset_link(reset_token)}",
        subtype="plain"
    )


async def send_reset_email(email: str, reset_token: str):
    fm = FastMail(conf)
    await fm.send_message(reset_message(email, reset_token))
    logger.info("Sent password reset link to %s", email)
