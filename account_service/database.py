"""MongoDB connection management."""

import logging

from fastapi import Depends
from pymongo import MongoClient
from pymongo.database import Database

from account_service.config import Settings, get_settings

logger = logging.getLogger("account_service")

# Driver-level chatter is noise next to the request log
logging.getLogger("pymongo").setLevel(logging.WARNING)

USERS_COLLECTION_NAME = "users"

_client: MongoClient | None = None
_database: Database | None = None


def get_client(settings: Settings) -> MongoClient:
    """Get the process-wide MongoDB client, creating it on first use."""
    global _client
    if _client is None:
        _client = MongoClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            maxPoolSize=10,
            retryWrites=True,
            retryReads=True,
        )
        logger.info("MongoDB client created for database %s", settings.MONGODB_DATABASE)
    return _client


def get_database(settings: Settings | None = None) -> Database:
    """Get the configured database handle."""
    global _database
    if _database is None:
        settings = settings or get_settings()
        _database = get_client(settings)[settings.MONGODB_DATABASE]
    return _database


def get_db(settings: Settings = Depends(get_settings)) -> Database:
    """Return the database handle for a request."""
    return get_database(settings)
