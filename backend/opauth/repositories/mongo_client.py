"""MongoDB Client - Connection and Collection Management"""
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, ExecutionTimeout, WTimeoutError

from ..config.settings import settings
from ..domain.errors import StorageUnavailableError
from ..utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_TOKENS = "access_tokens"
AUDIT_EVENTS = "authorization_audit_events"

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None

F = TypeVar("F", bound=Callable[..., Any])


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            tz_aware=True,
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
    return get_database()[name]


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

    access_tokens = db[ACCESS_TOKENS]
    access_tokens.create_index("token_id", unique=True)
    access_tokens.create_index("expires_at")
    access_tokens.create_index([("target_id", ASCENDING), ("status", ASCENDING)])
    if settings.single_active_token_per_target:
        # At most one live token per target, enforced by the store itself
        access_tokens.create_index(
            "target_id",
            name="one_issued_token_per_target",
            unique=True,
            partialFilterExpression={"status": "issued"},
        )

    audit_events = db[AUDIT_EVENTS]
    audit_events.create_index("audit_event_id", unique=True)
    audit_events.create_index([("target_id", ASCENDING), ("timestamp", DESCENDING)])
    audit_events.create_index("token_id")
    audit_events.create_index("correlation_id")

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


def translate_storage_errors(func: F) -> F:
    """Surface transient MongoDB failures as StorageUnavailableError"""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (ConnectionFailure, ExecutionTimeout, WTimeoutError) as e:
            logger.error(f"Storage unavailable in {func.__qualname__}: {e}")
            raise StorageUnavailableError(
                "Token store is temporarily unavailable. Please retry.",
                details={"operation": func.__name__}
            )

    return wrapper  # type: ignore[return-value]
