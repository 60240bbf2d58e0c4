from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pymongo.errors import DuplicateKeyError

from portfolio_api import db
from portfolio_api.config import Config
from portfolio_api.db import parse_object_id
from portfolio_api.errors import AlreadyExists, Unauthenticated, ValidationFailed
from portfolio_api.util.time import utcnow

from .security import InvalidToken, TokenService, hash_password, verify_password

log = logging.getLogger("portfolio.auth")

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"

# Role given by register() when the caller names none (see DESIGN.md, open questions).
DEFAULT_REGISTER_ROLE = "admin"


def public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    """The only user projection that leaves the service: never the password hash."""
    return {"id": str(doc["_id"]), "username": doc.get("username"), "role": doc.get("role")}


class CredentialService:
    def __init__(self, database: Any, tokens: TokenService) -> None:
        self._db = database
        self._users = database[db.USERS]
        self._tokens = tokens

    async def get_active_user(self, subject_id: str) -> Optional[Dict[str, Any]]:
        oid = parse_object_id(subject_id)
        if oid is None:
            return None
        doc = await self._users.find_one({"_id": oid})
        if doc is None or not doc.get("active", True):
            return None
        return public_user(doc)

    async def login(self, username: Any, password: Any) -> Dict[str, Any]:
        # Non-string input (e.g. {"$ne": null}) never reaches the query.
        if not isinstance(username, str) or not isinstance(password, str):
            raise Unauthenticated("Invalid credentials")

        doc = await self._users.find_one({"username": {"$eq": username}, "active": True})
        if doc is None:
            raise Unauthenticated("Invalid credentials")
        if not verify_password(password, str(doc.get("password") or "")):
            raise Unauthenticated("Invalid credentials")

        user = public_user(doc)
        token = self._tokens.issue(user["id"], user["username"], user["role"])
        return {"access_token": token, "user": user}

    async def register(self, username: Any, password: Any, role: Optional[str] = None) -> Dict[str, Any]:
        if not isinstance(username, str):
            raise Unauthenticated("Invalid credentials")
        username = username.strip()
        if not username:
            raise ValidationFailed(["username: must not be blank"])
        if not isinstance(password, str) or not password:
            raise ValidationFailed(["password: must not be blank"])

        existing = await self._users.find_one({"username": {"$eq": username}})
        if existing is not None:
            raise AlreadyExists("User already exists")

        return await create_user(
            self._db,
            username=username,
            password=password,
            role=role or DEFAULT_REGISTER_ROLE,
        )

    async def validate_token(self, token: str) -> Dict[str, Any]:
        try:
            claims = self._tokens.verify(token)
        except InvalidToken:
            raise Unauthenticated("Invalid token")
        user = await self.get_active_user(claims["subject_id"])
        if user is None:
            raise Unauthenticated("Invalid token")
        return user


async def create_user(
    database: Any,
    *,
    username: str,
    password: str,
    role: str,
    active: bool = True,
) -> Dict[str, Any]:
    """Insert a credential with a hashed password. Raises AlreadyExists on a taken username."""
    now = utcnow()
    doc = {
        "username": username,
        "password": hash_password(password),
        "role": role,
        "active": active,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        result = await database[db.USERS].insert_one(doc)
    except DuplicateKeyError:
        # Unique index on username; a concurrent insert won.
        raise AlreadyExists("User already exists")
    doc["_id"] = result.inserted_id
    return public_user(doc)


async def bootstrap_admin_if_needed(database: Any, cfg: Config) -> Optional[Dict[str, Any]]:
    """Create the first admin credential when no admin exists.

    Controlled via environment variables so a fresh deployment has a deterministic way
    to log in:

    - ADMIN_USERNAME (default: admin)
    - ADMIN_PASSWORD (default: admin123)

    Idempotent. Returns the created user, or None when nothing was created. Never
    raises: a failure here is logged and the API starts anyway.
    """

    users = database[db.USERS]
    try:
        if await users.find_one({"role": "admin"}) is not None:
            log.info("Admin user already exists")
            return None

        username = cfg.ADMIN_USERNAME or DEFAULT_ADMIN_USERNAME
        password = cfg.ADMIN_PASSWORD or DEFAULT_ADMIN_PASSWORD
        if not cfg.ADMIN_USERNAME or not cfg.ADMIN_PASSWORD:
            log.warning(
                "Using default admin credentials. Set ADMIN_USERNAME and ADMIN_PASSWORD for production!"
            )

        existing = await users.find_one({"username": {"$eq": username}})
        if existing is not None:
            log.warning(
                "User '%s' already exists with role '%s'. No admin was created.",
                username,
                existing.get("role"),
            )
            return None

        user = await create_user(database, username=username, password=password, role="admin")
        log.info("Admin user created: %s", username)
        log.warning("Change the admin password after the first login in production!")
        return user
    except Exception:
        log.exception("Error seeding admin user")
        return None
