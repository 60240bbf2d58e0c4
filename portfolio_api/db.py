from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, AsyncMongoClient

log = logging.getLogger("portfolio.db")

DEFAULT_DB_NAME = "portfolio"

# Collection names (one per resource).
USERS = "users"
SKILLS = "skills"
PROJECTS = "projects"
COURSES = "courses"
CERTIFICATIONS = "certifications"
CONTACTS = "contacts"


def connect(uri: str) -> AsyncMongoClient:
    """Create the (lazily connecting) client. Datetimes come back timezone-aware (UTC)."""
    return AsyncMongoClient(uri, tz_aware=True)


def get_database(client: AsyncMongoClient) -> Any:
    """Database named in the URI path, else DEFAULT_DB_NAME."""
    return client.get_default_database(default=DEFAULT_DB_NAME)


async def init_db(db: Any) -> None:
    """Create indexes. Safe to run on every startup."""
    await db[USERS].create_index([("username", ASCENDING)], unique=True)
    log.info("Indexes ensured")


async def ping(db: Any, *, timeout: float) -> None:
    """Round-trip to the server; raises on failure or when `timeout` seconds elapse."""
    await asyncio.wait_for(db.command("ping"), timeout=timeout)


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for a 24-hex string (or ObjectId), else None.

    Ids come from URL paths, so anything malformed is treated as "no such document"
    rather than an error.
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def public_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a stored document with `_id` rendered as a string."""
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])
    return d
