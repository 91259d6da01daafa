"""Error taxonomy shared by the query engine, the CRUD layer and the routes."""
from contextlib import contextmanager
import logging

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class ValidationFailure(AppError):
    status_code = 400
    default_message = "Make sure all fields are filled out correctly."


class Unauthorized(AppError):
    status_code = 401
    default_message = "Authorization failed"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied. Only admin users are allowed."


class InternalFailure(AppError):
    status_code = 500
    default_message = "Internal failure"


@contextmanager
def store_errors(message: str):
    """Re-raise any pymongo fault inside the block as InternalFailure."""
    try:
        yield
    except PyMongoError as exc:
        logger.error("%s: %s", message, exc)
        raise InternalFailure(message) from exc
