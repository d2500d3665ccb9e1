"""
MongoDB Connection Utility

MongoDB stores:
- users: accounts, KPI settings and the cached stats counters
- job_applications: one document per tracked application, owned by a user
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from hirepath.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        settings = get_settings()
        _client = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        )
    return _client


def get_mongo_db() -> Database:
    """Get the hirepath database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def set_mongo_client(client: MongoClient) -> None:
    """Swap the global client (tests point this at mongomock)."""
    global _client, _db
    _client = client
    _db = None


def get_collection(name: str) -> Collection:
    """
    Get a specific collection.
    Collections we use:
    - users
    - job_applications
    """
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except PyMongoError as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "applications": "job_applications",
}


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()

    # Email uniqueness is enforced by the database, not just by the register check
    db[COLLECTIONS["users"]].create_index("email", unique=True)
    db[COLLECTIONS["users"]].create_index("googleId", sparse=True)

    applications = db[COLLECTIONS["applications"]]
    applications.create_index("user")
    applications.create_index("submissionDeadline")

    # Compound indexes for the list filters and the stats counts
    applications.create_index([("user", ASCENDING), ("status", ASCENDING)])
    applications.create_index([("user", ASCENDING), ("applicationDate", DESCENDING)])
    applications.create_index([("user", ASCENDING), ("isDreamCompany", ASCENDING)])

    logger.info("MongoDB indexes created successfully")
