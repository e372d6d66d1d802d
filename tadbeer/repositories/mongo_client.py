"""MongoDB Client - Connection and Collection Management"""
from typing import Any, Dict, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
        )
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    """Get a collection from the database"""
    db = get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


def create_indexes() -> None:
    """Create all required indexes"""
    db = get_database()
    logger.info("Creating MongoDB indexes...")

    # Users collection
    users = db["users"]
    users.create_index("user_id", unique=True)
    users.create_index("email", unique=True)
    users.create_index("role")
    users.create_index("status")
    users.create_index([("department_id", ASCENDING), ("role", ASCENDING)])

    # Departments collection
    departments = db["departments"]
    departments.create_index("department_id", unique=True)
    departments.create_index("name", unique=True)
    departments.create_index("manager_id")

    # Tickets collection
    tickets = db["tickets"]
    tickets.create_index("ticket_id", unique=True)
    tickets.create_index([("status", ASCENDING), ("priority", ASCENDING), ("created_at", DESCENDING)])
    tickets.create_index([("assignee", ASCENDING), ("status", ASCENDING)])
    tickets.create_index([("created_by", ASCENDING), ("status", ASCENDING)])
    tickets.create_index([("category", ASCENDING), ("created_at", DESCENDING)])
    tickets.create_index([("department_id", ASCENDING), ("created_at", DESCENDING)])

    # Comments collection
    comments = db["comments"]
    comments.create_index("comment_id", unique=True)
    comments.create_index([("ticket_id", ASCENDING), ("created_at", ASCENDING)])
    comments.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

    # Notifications collection
    notifications = db["notifications"]
    notifications.create_index("notification_id", unique=True)
    notifications.create_index([("user_id", ASCENDING), ("is_read", ASCENDING), ("created_at", DESCENDING)])

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except Exception as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
