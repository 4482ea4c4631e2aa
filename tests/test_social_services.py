"""
Pinboard API: Like, Follow, Notification and Saved-Pin Service Tests
======================================================================

What:  Service-level tests against a real (SQLite) database session.
How:   Fixtures from conftest.py: `db`, `make_user`, `make_pin`.
"""

import pytest
from sqlalchemy import func, select

from pinboard.exceptions import NotFoundError, ValidationError
from pinboard.models import Comment, Notification, Pin
from pinboard.services.comment_service import comment_service
from pinboard.services.follow_service import follow_service
from pinboard.services.like_service import like_service
from pinboard.services.notification_service import notification_service
from pinboard.services.saved_service import saved_service


async def _notifications_for(db, user):
    return await notification_service.list_for_user(db, user)


class TestLikeService:

    @pytest.mark.asyncio
    async def test_like_updates_count_and_notifies_owner(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        pin = await make_pin(alice, title="Sunset")

        count, likers = await like_service.like_pin(db, bob, pin.id)

        assert count == 1
        assert pin.likes_count == 1
        assert [u.username for u in likers] == ["bob"]

        notifications = await _notifications_for(db, alice)
        assert len(notifications) == 1
        assert notifications[0].type == "like"
        assert notifications[0].sender_id == bob.id
        assert notifications[0].pin_id == pin.id
        assert "bob" in notifications[0].message

    @pytest.mark.asyncio
    async def test_duplicate_like_rejected(self, db, make_user, make_pin):
        alice = await make_user("alice")
        pin = await make_pin(alice)
        await like_service.like_pin(db, alice, pin.id)

        with pytest.raises(ValidationError, match="Already liked"):
            await like_service.like_pin(db, alice, pin.id)

        count, _ = await like_service.list_likes(db, pin.id)
        assert count == 1

    @pytest.mark.asyncio
    async def test_self_like_sends_no_notification(self, db, make_user, make_pin):
        alice = await make_user("alice")
        pin = await make_pin(alice)

        await like_service.like_pin(db, alice, pin.id)

        assert await _notifications_for(db, alice) == []

    @pytest.mark.asyncio
    async def test_unlike(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        pin = await make_pin(alice)
        await like_service.like_pin(db, bob, pin.id)

        count, likers = await like_service.unlike_pin(db, bob, pin.id)

        assert count == 0
        assert likers == []
        assert await like_service.is_liked(db, bob.id, pin.id) is False

    @pytest.mark.asyncio
    async def test_unlike_without_like_is_not_found(self, db, make_user, make_pin):
        alice = await make_user("alice")
        pin = await make_pin(alice)

        with pytest.raises(NotFoundError, match="Like not found"):
            await like_service.unlike_pin(db, alice, pin.id)

    @pytest.mark.asyncio
    async def test_like_hidden_pin_is_not_found(self, db, make_user, make_pin):
        alice = await make_user("alice", is_deactivated=True)
        bob = await make_user("bob")
        pin = await make_pin(alice)

        with pytest.raises(NotFoundError):
            await like_service.like_pin(db, bob, pin.id)


class TestFollowService:

    @pytest.mark.asyncio
    async def test_follow_is_symmetric_in_listings(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        await follow_service.follow(db, alice, bob.id)

        followers = await follow_service.list_followers(db, bob.id)
        following = await follow_service.list_following(db, alice.id)
        assert [u.id for u in followers] == [alice.id]
        assert [u.id for u in following] == [bob.id]
        assert await follow_service.check_status(db, alice, bob.id) == {
            "is_following": True,
            "is_followed_by": False,
        }

    @pytest.mark.asyncio
    async def test_follow_notifies_target(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        await follow_service.follow(db, alice, bob.id)

        notifications = await _notifications_for(db, bob)
        assert [n.type for n in notifications] == ["follow"]
        assert notifications[0].message == "alice started following you."

    @pytest.mark.asyncio
    async def test_self_follow_rejected(self, db, make_user):
        alice = await make_user("alice")
        with pytest.raises(ValidationError, match="cannot follow yourself"):
            await follow_service.follow(db, alice, alice.id)

    @pytest.mark.asyncio
    async def test_duplicate_follow_rejected(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await follow_service.follow(db, alice, bob.id)

        with pytest.raises(ValidationError, match="Already following"):
            await follow_service.follow(db, alice, bob.id)
        assert await follow_service.count_followers(db, bob.id) == 1

    @pytest.mark.asyncio
    async def test_follow_inactive_target_not_found(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob", is_deactivated=True)
        with pytest.raises(NotFoundError):
            await follow_service.follow(db, alice, bob.id)

    @pytest.mark.asyncio
    async def test_unfollow(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await follow_service.follow(db, alice, bob.id)

        assert await follow_service.unfollow(db, alice, bob.id) is True
        assert await follow_service.unfollow(db, alice, bob.id) is False
        assert await follow_service.list_following(db, alice.id) == []

    @pytest.mark.asyncio
    async def test_listings_hide_inactive_users(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await follow_service.follow(db, alice, bob.id)

        alice.is_deactivated = True
        await db.flush()

        assert await follow_service.list_followers(db, bob.id) == []


class TestNotificationService:

    @pytest.mark.asyncio
    async def test_mark_read_only_for_recipient(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await follow_service.follow(db, alice, bob.id)
        notification = (await _notifications_for(db, bob))[0]

        with pytest.raises(NotFoundError):
            await notification_service.mark_read(db, alice, notification.id)

        marked = await notification_service.mark_read(db, bob, notification.id)
        assert marked.is_read is True

    @pytest.mark.asyncio
    async def test_clear_all(self, db, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        await follow_service.follow(db, alice, bob.id)
        await follow_service.follow(db, carol, bob.id)
        await follow_service.follow(db, bob, alice.id)

        assert await notification_service.clear_all(db, bob) == 2

        remaining = await db.scalar(select(func.count()).select_from(Notification))
        assert remaining == 1


class TestSavedService:

    @pytest.mark.asyncio
    async def test_save_list_unsave(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        first = await make_pin(alice, title="First")
        second = await make_pin(alice, title="Second")

        await saved_service.save_pin(db, bob, first.id)
        await saved_service.save_pin(db, bob, second.id)

        saved = await saved_service.list_saved(db, bob.id)
        assert [p.title for p in saved] == ["Second", "First"]

        await saved_service.unsave_pin(db, bob, first.id)
        assert [p.title for p in await saved_service.list_saved(db, bob.id)] == ["Second"]

    @pytest.mark.asyncio
    async def test_double_save_rejected(self, db, make_user, make_pin):
        alice = await make_user("alice")
        pin = await make_pin(alice)
        await saved_service.save_pin(db, alice, pin.id)

        with pytest.raises(ValidationError, match="Pin already saved"):
            await saved_service.save_pin(db, alice, pin.id)

    @pytest.mark.asyncio
    async def test_unsave_missing_is_not_found(self, db, make_user, make_pin):
        alice = await make_user("alice")
        pin = await make_pin(alice)
        with pytest.raises(NotFoundError):
            await saved_service.unsave_pin(db, alice, pin.id)


class TestNotificationFailureIsolation:
    """A notification row that fails to insert must not undo the action."""

    @pytest.mark.asyncio
    async def test_like_survives_failed_notification(self, db, make_user, make_pin, monkeypatch):
        monkeypatch.setattr("pinboard.services.like_service.like_message", lambda *args: None)
        alice = await make_user("alice")
        bob = await make_user("bob")
        pin = await make_pin(alice, title="Sunset")

        count, likers = await like_service.like_pin(db, bob, pin.id)

        assert count == 1
        assert [u.username for u in likers] == ["bob"]
        assert await like_service.is_liked(db, bob.id, pin.id) is True
        assert await db.scalar(select(Pin.likes_count).where(Pin.id == pin.id)) == 1
        assert await db.scalar(select(func.count()).select_from(Notification)) == 0

    @pytest.mark.asyncio
    async def test_follow_survives_failed_notification(self, db, make_user, monkeypatch):
        monkeypatch.setattr("pinboard.services.follow_service.follow_message", lambda *args: None)
        alice = await make_user("alice")
        bob = await make_user("bob")

        await follow_service.follow(db, alice, bob.id)

        assert await follow_service.count_followers(db, bob.id) == 1
        assert (await follow_service.check_status(db, alice, bob.id))["is_following"] is True
        assert await db.scalar(select(func.count()).select_from(Notification)) == 0

    @pytest.mark.asyncio
    async def test_comment_survives_failed_notification(self, db, make_user, make_pin, monkeypatch):
        monkeypatch.setattr("pinboard.services.comment_service.comment_message", lambda *args: None)
        alice = await make_user("alice")
        bob = await make_user("bob")
        pin = await make_pin(alice, title="Sunset")

        comment, count = await comment_service.add_comment(db, bob, pin.id, "Lovely")

        assert count == 1
        stored = await db.scalar(select(Comment.text).where(Comment.id == comment.id))
        assert stored == "Lovely"
        await db.refresh(pin)
        assert pin.comments_count == 1
        assert await db.scalar(select(func.count()).select_from(Notification)) == 0
