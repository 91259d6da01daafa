import logging

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from .config import MONGO_URI, DB_NAME

logger = logging.getLogger(__name__)


def connect(uri: str = MONGO_URI, name: str = DB_NAME):
    """Open a client and return it together with the selected database."""
    client = MongoClient(uri)
    db = client[name]
    logger.info("Connected to MongoDB database %s", name)
    return client, db


def ensure_indexes(db: Database):
    db.users.create_index("email", unique=True)
    # One post per owner per local calendar day
    db.posts.create_index([("user", ASCENDING), ("createdDay", ASCENDING)], unique=True)
    db.posts.create_index(
        [("isPublic", ASCENDING), ("isApproved", ASCENDING), ("createdAt", DESCENDING)]
    )


def close(client: MongoClient):
    client.close()
    logger.info("MongoDB connection closed")


def get_db(request: Request) -> Database:
    return request.app.state.db
