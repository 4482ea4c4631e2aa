"""
Pinboard API: Account Service Tests
=====================================

What:  Registration, login, settings and the account lifecycle
       (deactivate, reactivate, delete).
"""

import uuid

import pytest
from sqlalchemy import func, select

from pinboard.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from pinboard.models import Follow, Like, Pin, User
from pinboard.schemas.auth import RegisterRequest, UserUpdateRequest
from pinboard.security import decode_access_token
from pinboard.services.comment_service import comment_service
from pinboard.services.comment_thread import DELETED_USERNAME
from pinboard.services.follow_service import follow_service
from pinboard.services.like_service import like_service
from pinboard.services.user_service import user_service


def _register(username="alice", email="Alice@Example.com", password="secret123"):
    return RegisterRequest(username=username, email=email, password=password)


class TestRegisterAndLogin:

    @pytest.mark.asyncio
    async def test_register_lowercases_email_and_issues_token(self, db):
        user, token = await user_service.register(db, _register())

        assert user.email == "alice@example.com"
        assert decode_access_token(token) == user.id

    @pytest.mark.asyncio
    async def test_duplicate_email(self, db):
        await user_service.register(db, _register())
        with pytest.raises(ValidationError, match="Email already registered"):
            await user_service.register(db, _register(username="other", email="ALICE@example.com"))

    @pytest.mark.asyncio
    async def test_duplicate_username(self, db):
        await user_service.register(db, _register())
        with pytest.raises(ValidationError, match="Username already taken"):
            await user_service.register(db, _register(email="new@example.com"))

    @pytest.mark.asyncio
    async def test_login_by_email_or_username(self, db):
        registered, _ = await user_service.register(db, _register())

        by_email, _ = await user_service.login(db, "ALICE@example.com", "secret123")
        by_username, _ = await user_service.login(db, "alice", "secret123")

        assert by_email.id == registered.id
        assert by_username.id == registered.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, db):
        await user_service.register(db, _register())
        with pytest.raises(ValidationError, match="Invalid credentials"):
            await user_service.login(db, "alice", "wrong-password")

    @pytest.mark.asyncio
    async def test_unknown_account(self, db):
        with pytest.raises(NotFoundError, match="User not found"):
            await user_service.login(db, "nobody", "secret123")

    @pytest.mark.asyncio
    async def test_login_reactivates(self, db, make_user):
        alice = await make_user("alice", is_deactivated=True)

        user, _ = await user_service.login(db, "alice", "secret123")

        assert user.id == alice.id
        assert user.is_deactivated is False


class TestSettings:

    @pytest.mark.asyncio
    async def test_change_username_taken(self, db, make_user):
        alice = await make_user("alice")
        await make_user("bob")
        with pytest.raises(ValidationError, match="Username already taken"):
            await user_service.change_username(db, alice, "bob")

    @pytest.mark.asyncio
    async def test_change_password(self, db, make_user):
        alice = await make_user("alice")

        with pytest.raises(ValidationError, match="must be different"):
            await user_service.change_password(db, alice, "secret123", "secret123")
        with pytest.raises(ValidationError, match="Incorrect current password"):
            await user_service.change_password(db, alice, "nope", "another1")

        await user_service.change_password(db, alice, "secret123", "another1")
        user, _ = await user_service.login(db, "alice", "another1")
        assert user.id == alice.id

    @pytest.mark.asyncio
    async def test_update_profile_only_own(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        with pytest.raises(PermissionDeniedError, match="only update your own profile"):
            await user_service.update_profile(
                db, alice, bob.id, UserUpdateRequest(profile_picture="x.png")
            )

        updated = await user_service.update_profile(
            db, alice, alice.id, UserUpdateRequest(profile_picture=" me.png ")
        )
        assert updated.profile_picture == "me.png"


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_deactivate_and_reactivate(self, db, make_user):
        alice = await make_user("alice")

        await user_service.deactivate(db, alice)
        assert alice.is_deactivated is True
        with pytest.raises(ValidationError, match="already deactivated"):
            await user_service.deactivate(db, alice)

        await user_service.reactivate(db, alice)
        assert alice.is_deactivated is False
        with pytest.raises(ValidationError, match="not deactivated"):
            await user_service.reactivate(db, alice)

    @pytest.mark.asyncio
    async def test_deactivated_profile_hidden(self, db, make_user):
        await make_user("alice", is_deactivated=True)
        with pytest.raises(NotFoundError):
            await user_service.get_active_by_username(db, "alice")

    @pytest.mark.asyncio
    async def test_delete_account(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        alice_pin = await make_pin(alice, title="Alice's")
        bob_pin = await make_pin(bob, title="Bob's")
        alice_pin_id = alice_pin.id

        await like_service.like_pin(db, alice, bob_pin.id)
        await comment_service.add_comment(db, alice, bob_pin.id, "great shot")
        await follow_service.follow(db, alice, bob.id)
        await follow_service.follow(db, bob, alice.id)

        await user_service.delete_account(db, alice)

        assert alice.is_deleted is True
        assert alice.username.startswith(f"deleted_user_{alice.id}_")
        assert alice.email.endswith("@deleted.local")

        assert await db.scalar(select(func.count()).select_from(Pin).where(Pin.id == alice_pin_id)) == 0
        assert await db.scalar(select(func.count()).select_from(Like)) == 0
        assert await db.scalar(select(func.count()).select_from(Follow)) == 0

        await db.refresh(bob_pin)
        assert bob_pin.likes_count == 0

        thread = await comment_service.list_thread(db, bob_pin.id)
        assert [c.user.username for c in thread.comments] == [DELETED_USERNAME]

    @pytest.mark.asyncio
    async def test_deleted_identity_can_be_reused(self, db, make_user):
        alice = await make_user("alice")
        await user_service.delete_account(db, alice)

        user, _ = await user_service.register(db, _register(email="alice@example.com"))

        assert user.id != alice.id
        assert await db.scalar(select(func.count()).select_from(User)) == 2

    @pytest.mark.asyncio
    async def test_deleted_account_cannot_log_in(self, db, make_user):
        alice = await make_user("alice")
        await user_service.delete_account(db, alice)
        with pytest.raises(NotFoundError):
            await user_service.login(db, "alice", "secret123")


class TestLookups:

    @pytest.mark.asyncio
    async def test_search_profiles_skips_inactive(self, db, make_user):
        await make_user("nikefan")
        await make_user("nikehater", is_deactivated=True)

        found = await user_service.search_profiles(db, ["nike"])

        assert [u.username for u in found] == ["nikefan"]

    @pytest.mark.asyncio
    async def test_search_profiles_underscore_is_literal(self, db, make_user):
        await make_user("nike_fan")
        await make_user("nikefan")

        found = await user_service.search_profiles(db, ["e_f"])

        assert [u.username for u in found] == ["nike_fan"]

    @pytest.mark.asyncio
    async def test_unknown_username(self, db):
        with pytest.raises(NotFoundError):
            await user_service.get_active_by_username(db, str(uuid.uuid4()))
