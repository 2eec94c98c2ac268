"""
MongoDB Connection Utility

MongoDB stores every collection of the placement portal:
- users, students, companies, jobs, placement drives
- job applications, resumes, notifications and their deliveries

WHY MongoDB?
- Student records arrive from bulk imports with inconsistent fields
- Job postings carry legacy field names (minCgpa, formData.minimumCGPA, ...)
- Documents are self-contained; analytics run in memory over snapshots
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from campus_placement.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the placement database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_database() -> Database:
    """
    FastAPI dependency for route injection.
    Tests override this with an in-memory database.
    """
    return get_mongo_db()


def test_mongo_connection(db: Database = None) -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        db = db if db is not None else get_mongo_db()
        db.command("ping")
        return True
    except PyMongoError as e:
        logger.error("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "students": "students",
    "companies": "companies",
    "jobs": "jobs",
    "drives": "placement_drives",
    "applications": "job_applications",
    "resumes": "resumes",
    "notifications": "notifications",
    "deliveries": "notification_deliveries"
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for uniqueness and query performance.
    Call this once during app startup.
    """
    db = db if db is not None else get_mongo_db()

    db[COLLECTIONS["users"]].create_index("email", unique=True)
    db[COLLECTIONS["students"]].create_index("email", unique=True)
    db[COLLECTIONS["students"]].create_index("user_id", sparse=True)
    db[COLLECTIONS["students"]].create_index([("branch", ASCENDING), ("year", ASCENDING)])
    db[COLLECTIONS["companies"]].create_index("email", unique=True)
    db[COLLECTIONS["jobs"]].create_index([("status", ASCENDING), ("created_at", DESCENDING)])

    # One application per student per job
    db[COLLECTIONS["applications"]].create_index([
        ("student_id", ASCENDING),
        ("job_id", ASCENDING)
    ], unique=True)

    db[COLLECTIONS["resumes"]].create_index("student_id")
    db[COLLECTIONS["deliveries"]].create_index([
        ("notification_id", ASCENDING),
        ("student_id", ASCENDING)
    ], unique=True)

    logger.info("MongoDB indexes created successfully")
