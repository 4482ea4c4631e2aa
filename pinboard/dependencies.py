"""
Pinboard API: Request Dependencies
====================================

What:  FastAPI dependencies that resolve the caller from the bearer token.
Who:   Injected into every route that needs an identity.

Rules enforced by get_current_user:
    no / malformed token          → 401
    token for an unknown user     → 401
    deleted account               → 403
    deactivated account           → 403, except on the configured allow-list
                                    (profile, settings, reactivate, logout)

get_optional_user applies the same checks when a token is sent and returns
None when it is not, for public endpoints that personalise their output
(e.g. `is_liked` in the comment thread).
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.config import settings
from pinboard.database import get_db_session
from pinboard.exceptions import AuthenticationError, PermissionDeniedError
from pinboard.models import User
from pinboard.security import decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False: we raise our own AuthenticationError so the response
# body matches the rest of the API
bearer_scheme = HTTPBearer(auto_error=False)


def _path_allowed_while_deactivated(path: str) -> bool:
    return any(path.startswith(p) for p in settings.deactivated_allowed_paths_list)


async def _resolve_user(request: Request, token: str, db: AsyncSession) -> User:
    user_id = decode_access_token(token)
    user = await db.get(User, user_id)

    if user is None:
        raise AuthenticationError(message="User no longer exists")
    if user.is_deleted:
        raise PermissionDeniedError(message="Account no longer exists")
    if user.is_deactivated and not _path_allowed_while_deactivated(request.url.path):
        raise PermissionDeniedError(message="Account is deactivated. Reactivate to continue.")
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="No token, authorization denied")
    return await _resolve_user(request, credentials.credentials, db)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    return await _resolve_user(request, credentials.credentials, db)
