"""
Pinboard API: Pin Service Tests
=================================

What:  Pin creation (storage + tagging), visibility, feed, update and
       deletion.
How:   Real SQLite session; media goes to the temporary STORAGE_ROOT set in
       conftest.py; the tagging service is an AsyncMock.
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from pinboard.config import settings
from pinboard.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    TaggingServiceError,
    ValidationError,
)
from pinboard.models import BoardPin, Comment, Like, Pin
from pinboard.schemas.board import BoardCreateRequest
from pinboard.schemas.pin import PinUpdateRequest
from pinboard.services.board_service import board_service
from pinboard.services.comment_service import comment_service
from pinboard.services.follow_service import follow_service
from pinboard.services.like_service import like_service
from pinboard.services.media_service import media_service
from pinboard.services.pin_service import PinService, parse_tag_field, pin_service
from pinboard.services.saved_service import saved_service
from pinboard.services.tagging_base import TaggingService


@pytest.fixture
def tagger():
    mock = AsyncMock(spec=TaggingService)
    mock.generate_tags.return_value = ["wood", "diy", "workshop"]
    return mock


@pytest.fixture
def auto_tagging(monkeypatch):
    monkeypatch.setattr(settings, "auto_tag_enabled", True)


class TestCreatePin:

    @pytest.mark.asyncio
    async def test_create_stores_media_and_merges_tags(
        self, db, make_user, tagger, auto_tagging, sample_png_bytes
    ):
        alice = await make_user("alice")
        service = PinService(tagging_service=tagger)

        pin = await service.create_pin(
            db,
            alice,
            title="  Shelf  ",
            filename="shelf.png",
            content=sample_png_bytes,
            manual_tags=["DIY", "oak"],
        )

        assert pin.title == "Shelf"
        assert pin.media_type == "image"
        assert pin.media_url.startswith("/media/")
        assert pin.tags == ["diy", "oak", "wood", "workshop"]
        assert media_service.resolve(pin.media_path).exists()
        tagger.generate_tags.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_tagging_failure_keeps_manual_tags(
        self, db, make_user, tagger, auto_tagging, sample_png_bytes
    ):
        alice = await make_user("alice")
        tagger.generate_tags.side_effect = TaggingServiceError("quota exceeded")
        service = PinService(tagging_service=tagger)

        pin = await service.create_pin(
            db, alice, title="Shelf", filename="shelf.png",
            content=sample_png_bytes, manual_tags=["oak"],
        )

        assert pin.tags == ["oak"]

    @pytest.mark.asyncio
    async def test_tagging_disabled_skips_service(self, db, make_user, tagger, sample_png_bytes):
        alice = await make_user("alice")
        service = PinService(tagging_service=tagger)

        pin = await service.create_pin(
            db, alice, title="Shelf", filename="shelf.png", content=sample_png_bytes
        )

        assert pin.tags == []
        tagger.generate_tags.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_media_rejected(self, db, make_user):
        alice = await make_user("alice")
        with pytest.raises(ValidationError, match="Media file is required"):
            await pin_service.create_pin(db, alice, title="x", filename=None, content=b"")

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, db, make_user, sample_png_bytes):
        alice = await make_user("alice")
        with pytest.raises(ValidationError, match="Title is required"):
            await pin_service.create_pin(
                db, alice, title="   ", filename="a.png", content=sample_png_bytes
            )

    @pytest.mark.asyncio
    async def test_unsupported_extension_rejected(self, db, make_user):
        alice = await make_user("alice")
        with pytest.raises(ValidationError, match="not supported"):
            await pin_service.create_pin(
                db, alice, title="Doc", filename="notes.pdf", content=b"%PDF-1.4"
            )

    @pytest.mark.asyncio
    async def test_create_on_own_board(self, db, make_user, sample_png_bytes):
        alice = await make_user("alice")
        board = await board_service.create_board(db, alice, BoardCreateRequest(name="Home"))

        pin = await pin_service.create_pin(
            db, alice, title="Lamp", filename="lamp.png",
            content=sample_png_bytes, board_id=board.id,
        )

        assert pin.board_id == board.id
        membership = await db.scalar(
            select(func.count()).select_from(BoardPin).where(BoardPin.pin_id == pin.id)
        )
        assert membership == 1

    @pytest.mark.asyncio
    async def test_create_on_foreign_board_not_found(self, db, make_user, sample_png_bytes):
        alice = await make_user("alice")
        bob = await make_user("bob")
        board = await board_service.create_board(db, bob, BoardCreateRequest(name="Bob's"))

        with pytest.raises(NotFoundError, match="Board not found"):
            await pin_service.create_pin(
                db, alice, title="Lamp", filename="lamp.png",
                content=sample_png_bytes, board_id=board.id,
            )


class TestParseTagField:

    def test_comma_separated(self):
        assert parse_tag_field("Nike, air max ,,nike") == ["nike", "air max"]

    def test_empty(self):
        assert parse_tag_field(None) == []
        assert parse_tag_field("") == []


class TestVisibilityAndFeed:

    @pytest.mark.asyncio
    async def test_pins_of_inactive_owners_are_hidden(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob", is_deactivated=True)
        visible = await make_pin(alice, title="Visible")
        hidden = await make_pin(bob, title="Hidden")

        assert [p.id for p in await pin_service.list_pins(db)] == [visible.id]
        with pytest.raises(NotFoundError):
            await pin_service.get_visible_pin(db, hidden.id)

    @pytest.mark.asyncio
    async def test_list_pins_newest_first_with_cursor(self, db, make_user, make_pin):
        alice = await make_user("alice")
        first = await make_pin(alice, title="first")
        second = await make_pin(alice, title="second")
        third = await make_pin(alice, title="third")

        page = await pin_service.list_pins(db, limit=2)
        assert [p.id for p in page] == [third.id, second.id]

        rest = await pin_service.list_pins(db, limit=2, cursor=page[-1].created_at)
        assert [p.id for p in rest] == [first.id]

    @pytest.mark.asyncio
    async def test_feed_contains_followed_and_own_pins(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        own = await make_pin(alice, title="own")
        followed = await make_pin(bob, title="followed")
        await make_pin(carol, title="stranger")
        await follow_service.follow(db, alice, bob.id)

        feed = await pin_service.get_feed(db, alice)

        assert {p.id for p in feed} == {own.id, followed.id}

    @pytest.mark.asyncio
    async def test_feed_without_follows_is_global(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await make_pin(bob, title="somebody else's")

        feed = await pin_service.get_feed(db, alice)

        assert [p.title for p in feed] == ["somebody else's"]

    @pytest.mark.asyncio
    async def test_full_pin_reports_viewer_state(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        pin = await make_pin(alice)
        await like_service.like_pin(db, bob, pin.id)
        await saved_service.save_pin(db, bob, pin.id)

        full = await pin_service.get_full_pin(db, pin.id, bob)
        assert full.is_liked is True
        assert full.is_saved is True
        assert full.likes_count == 1
        assert [u.username for u in full.likes_users] == ["bob"]

        anonymous = await pin_service.get_full_pin(db, pin.id, None)
        assert anonymous.is_liked is False
        assert anonymous.is_saved is False


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_owner_updates(self, db, make_user, make_pin):
        alice = await make_user("alice")
        pin = await make_pin(alice, title="Old")

        updated = await pin_service.update_pin(
            db, alice, pin.id, PinUpdateRequest(title="New", tags=["Red", "red", "x"])
        )

        assert updated.title == "New"
        assert updated.tags == ["red"]

    @pytest.mark.asyncio
    async def test_non_owner_cannot_update(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        pin = await make_pin(alice)
        with pytest.raises(PermissionDeniedError):
            await pin_service.update_pin(db, bob, pin.id, PinUpdateRequest(title="Mine"))

    @pytest.mark.asyncio
    async def test_delete_removes_dependents(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        pin = await make_pin(alice)
        await like_service.like_pin(db, bob, pin.id)
        await comment_service.add_comment(db, bob, pin.id, "nice")
        pin_id = pin.id

        await pin_service.delete_pin(db, alice, pin_id)

        for model in (Pin, Like, Comment):
            column = model.id if model is Pin else model.pin_id
            count = await db.scalar(select(func.count()).select_from(model).where(column == pin_id))
            assert count == 0

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, db, make_user, make_pin):
        alice = await make_user("alice")
        bob = await make_user("bob")
        pin = await make_pin(alice)
        with pytest.raises(PermissionDeniedError, match="Not authorized"):
            await pin_service.delete_pin(db, bob, pin.id)

    @pytest.mark.asyncio
    async def test_delete_unknown_pin(self, db, make_user):
        alice = await make_user("alice")
        with pytest.raises(NotFoundError):
            await pin_service.delete_pin(db, alice, uuid.uuid4())
