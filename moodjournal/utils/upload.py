import logging

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
import requests

from ..config import CLOUDINARY_UPLOAD_PRESET, CLOUDINARY_UPLOAD_URL
from ..errors import InternalFailure, ValidationFailure

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ["image/jpeg", "image/png"]


async def upload_photo(file: UploadFile) -> str:
    """Send a photo to Cloudinary and return its secure URL."""
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationFailure("Only JPEG or PNG images allowed")
    files = {"file": (file.filename, await file.read(), file.content_type)}
    data = {"upload_preset": CLOUDINARY_UPLOAD_PRESET}
    try:
        resp = await run_in_threadpool(requests.post, CLOUDINARY_UPLOAD_URL, files=files, data=data)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error("Photo upload failed: %s", e)
        raise InternalFailure("Photo upload failed") from e
    return resp.json().get("secure_url", "")
