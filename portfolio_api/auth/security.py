from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext


_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
_JWT_ALG = "HS256"


class InvalidToken(Exception):
    """Token is malformed, expired, or signed with another key."""


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Stored value is not a hash this context understands.
        return False


def create_access_token(
    *,
    secret: str,
    subject_id: str,
    username: str,
    role: str,
    expires_minutes: int,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=max(1, int(expires_minutes)))

    payload: Dict[str, Any] = {
        "sub": str(subject_id),
        "username": username,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    """Verify a token and return `{subject_id, username, role}`.

    Raises InvalidToken for a blank/malformed token, a bad signature, an expired token
    or a payload without `sub`.
    """
    if not secret:
        raise ValueError("jwt_secret_blank")
    if not token:
        raise InvalidToken("token_blank")
    try:
        payload = jwt.decode(token, secret, algorithms=[_JWT_ALG], options={"require": ["exp", "sub"]})
    except jwt.ExpiredSignatureError:
        raise InvalidToken("token_expired")
    except jwt.InvalidTokenError:
        raise InvalidToken("token_invalid")

    sub = payload.get("sub")
    if not sub:
        raise InvalidToken("token_missing_sub")
    return {
        "subject_id": str(sub),
        "username": payload.get("username"),
        "role": payload.get("role"),
    }


class TokenService:
    """Issues and verifies bearer tokens with one configured secret."""

    def __init__(self, *, secret: str, expires_minutes: int) -> None:
        if not secret:
            raise ValueError("jwt_secret_blank")
        self._secret = secret
        self._expires_minutes = expires_minutes

    def issue(self, subject_id: str, username: str, role: str) -> str:
        return create_access_token(
            secret=self._secret,
            subject_id=subject_id,
            username=username,
            role=role,
            expires_minutes=self._expires_minutes,
        )

    def verify(self, token: str) -> Dict[str, Any]:
        return decode_access_token(token=token, secret=self._secret)
