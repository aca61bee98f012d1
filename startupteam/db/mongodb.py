"""
MongoDB Connection Utility

MongoDB stores every entity of the marketplace:
- users, founder_profiles, member_profiles
- startups, roles
- applications, saved_startups

Uniqueness rules (one account per email, one startup per founder, one
application per member and role, ...) are unique indexes created here.
They are the only thing that decides races between concurrent requests,
so init_mongo_indexes() must run before the app serves traffic.
"""
import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from startupteam.core.config import get_settings
from startupteam.core.exceptions import NotFound

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
    """Get the application database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str, db: Database = None) -> Collection:
    """Get a collection by its key in COLLECTIONS."""
    db = db if db is not None else get_mongo_db()
    return db[COLLECTIONS[name]]


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
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "founder_profiles": "founder_profiles",
    "member_profiles": "member_profiles",
    "startups": "startups",
    "roles": "roles",
    "applications": "applications",
    "saved_startups": "saved_startups"
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes (unique constraints included).
    Call this once during app startup. Safe to call repeatedly.
    """
    db = db if db is not None else get_mongo_db()

    users = db[COLLECTIONS["users"]]
    users.create_index("email", unique=True)
    # provider_id is omitted (never null) on local accounts, so they stay out of this index
    users.create_index(
        [("auth_provider", ASCENDING), ("provider_id", ASCENDING)],
        unique=True,
        partialFilterExpression={"provider_id": {"$exists": True}}
    )
    users.create_index("reset_password_token", sparse=True)

    # Exactly one profile per user
    db[COLLECTIONS["founder_profiles"]].create_index("user_id", unique=True)
    db[COLLECTIONS["member_profiles"]].create_index("user_id", unique=True)
    db[COLLECTIONS["member_profiles"]].create_index("skills")

    # One startup per founder
    startups = db[COLLECTIONS["startups"]]
    startups.create_index("founder_id", unique=True)
    startups.create_index("industry")
    startups.create_index("stage")

    roles = db[COLLECTIONS["roles"]]
    roles.create_index("startup_id")
    roles.create_index("status")
    roles.create_index([("posted_date", DESCENDING)])

    # One application per (member, role)
    applications = db[COLLECTIONS["applications"]]
    applications.create_index([("member_id", ASCENDING), ("role_id", ASCENDING)], unique=True)
    applications.create_index([("startup_id", ASCENDING), ("status", ASCENDING)])
    applications.create_index([("member_id", ASCENDING), ("status", ASCENDING)])
    applications.create_index([("applied_date", DESCENDING)])

    # One bookmark per (user, startup)
    saved = db[COLLECTIONS["saved_startups"]]
    saved.create_index([("user_id", ASCENDING), ("startup_id", ASCENDING)], unique=True)
    saved.create_index([("saved_date", DESCENDING)])

    logger.info("MongoDB indexes created successfully")


# ============================================================
# HELPERS: ObjectId <-> str at the service boundary
# ============================================================

def to_object_id(value, what: str = "Resource") -> ObjectId:
    """Parse an id coming from a URL or token; malformed ids are simply 'not found'."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFound(f"{what} not found")


def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict (_id -> id, ObjectIds -> str)."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "_id":
            out["id"] = str(value)
        elif isinstance(value, ObjectId):
            out[key] = str(value)
        else:
            out[key] = value
    return out


def serialize_docs(docs) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def get_db() -> Database:
    """
    Dependency for FastAPI route injection.
    Usage:
        @router.get("/users")
        def get_users(db: Database = Depends(get_db)):
            ...
    """
    return get_mongo_db()
