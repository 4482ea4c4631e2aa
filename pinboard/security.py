"""
Pinboard API: Password Hashing and Bearer Tokens
==================================================

What:  bcrypt password hashing (passlib) and HS256 access tokens (PyJWT).
Why:   Both are delegated to libraries; this module only fixes the
       parameters so every caller hashes and signs the same way.

Token payload:
    {"sub": "<user uuid>", "iat": <issued>, "exp": <issued + jwt_expire_days>}
"""

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from pinboard.config import settings
from pinboard.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        # Malformed hash in the row; treat as a failed login
        logger.warning("Stored password hash could not be parsed")
        return False


def random_password_hash() -> str:
    """Hash of an unguessable secret; used to lock deleted accounts."""
    return hash_password(secrets.token_urlsafe(32))


def create_access_token(user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.jwt_expire_days))
    payload = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> uuid.UUID:
    """
    Validate signature and expiry, return the user id.

    Raises:
        AuthenticationError: expired, tampered, or malformed token
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token has expired, please log in again")
    except jwt.InvalidTokenError:
        raise AuthenticationError(message="Invalid or expired token")

    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError(message="Invalid or expired token")
