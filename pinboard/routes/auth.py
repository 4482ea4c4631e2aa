"""
Pinboard API: Authentication and Account Routes
=================================================

What:  Registration, login, account settings and the account lifecycle.
How:   Tokens are stateless bearer JWTs; logout only tells the client to
       drop its token.

Two prefixes share the lifecycle handlers:
    /api/auth/deactivate      ≡ /api/account/deactivate
    /api/auth/reactivate      ≡ /api/account/reactivate
    /api/auth/delete-account  ≡ /api/account/delete
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user
from pinboard.models import User
from pinboard.schemas.auth import (
    AuthResponse,
    AuthUser,
    ChangePasswordRequest,
    ChangeUsernameRequest,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
)
from pinboard.schemas.common import ErrorResponse, MessageResponse, UserPublic
from pinboard.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
account_router = APIRouter(prefix="/api/account", tags=["Account"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={400: {"description": "Email or username already in use", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user, token = await user_service.register(db, body)
    return AuthResponse(
        message="User registered successfully",
        token=token,
        user=AuthUser.model_validate(user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid credentials", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Log in with email or username",
    description="Logging in to a deactivated account reactivates it.",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user, token = await user_service.login(db, body.email, body.password)
    return AuthResponse(
        message="Login successful",
        token=token,
        user=AuthUser.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse, summary="Log out")
async def logout(user: User = Depends(get_current_user)) -> MessageResponse:
    logger.info("User %s logged out", user.id)
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=ProfileResponse, summary="Current account")
async def profile(user: User = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse(
        message="Protected route accessed successfully",
        user=UserPublic.model_validate(user),
    )


@router.put("/change-username", response_model=ProfileResponse)
async def change_username(
    body: ChangeUsernameRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    user = await user_service.change_username(db, user, body.new_username)
    return ProfileResponse(message="Username updated", user=UserPublic.model_validate(user))


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.change_password(db, user, body.current_password, body.new_password)
    return MessageResponse(message="Password updated successfully")


# ══════════════════════════════════════════════════════════════════════════
# Account lifecycle (registered under both prefixes)
# ══════════════════════════════════════════════════════════════════════════

async def deactivate_account(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.deactivate(db, user)
    return MessageResponse(message="Account deactivated successfully")


async def reactivate_account(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.reactivate(db, user)
    return MessageResponse(message="Account reactivated successfully")


async def delete_account(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.delete_account(db, user)
    return MessageResponse(
        message="Account deleted successfully. Email & username are now available for reuse."
    )


router.add_api_route(
    "/deactivate", deactivate_account, methods=["PUT"], response_model=MessageResponse
)
router.add_api_route(
    "/reactivate", reactivate_account, methods=["PUT"], response_model=MessageResponse
)
router.add_api_route(
    "/delete-account", delete_account, methods=["DELETE"], response_model=MessageResponse
)

account_router.add_api_route(
    "/deactivate", deactivate_account, methods=["PUT"], response_model=MessageResponse
)
account_router.add_api_route(
    "/reactivate", reactivate_account, methods=["PUT"], response_model=MessageResponse
)
account_router.add_api_route(
    "/delete", delete_account, methods=["DELETE"], response_model=MessageResponse
)
