"""
Pinboard API: Batch Retagging Tests
=====================================
"""

from unittest.mock import AsyncMock

import pytest

from pinboard.exceptions import TaggingServiceError
from pinboard.models import Pin
from pinboard.retag import build_parser, retag_pins
from pinboard.services.media_service import media_service
from pinboard.services.tagging_base import TaggingService


@pytest.fixture
def tagger():
    service = AsyncMock(spec=TaggingService)
    service.generate_tags.return_value = ["lamp", "brass"]
    return service


async def _stored_pin(db, make_user, make_pin, png, **fields):
    owner = await make_user("alice")
    stored = await media_service.validate_and_store("lamp.png", png)
    pin = await make_pin(owner, title="Lamp", **fields)
    pin.media_path = stored.relative_path
    pin.media_url = stored.url
    await db.commit()
    return pin


class TestRetag:

    @pytest.mark.asyncio
    async def test_merges_generated_tags(self, db, session_factory, make_user, make_pin, tagger, sample_png_bytes):
        pin = await _stored_pin(db, make_user, make_pin, sample_png_bytes, tags=["desk", "lamp"])

        updated = await retag_pins(tagging_service=tagger, session_factory=session_factory)

        assert updated == 1
        tagger.generate_tags.assert_awaited_once()
        async with session_factory() as session:
            assert (await session.get(Pin, pin.id)).tags == ["desk", "lamp", "brass"]

    @pytest.mark.asyncio
    async def test_missing_media_is_skipped(self, db, session_factory, make_user, make_pin, tagger):
        owner = await make_user("alice")
        await make_pin(owner)
        await db.commit()

        assert await retag_pins(tagging_service=tagger, session_factory=session_factory) == 0
        tagger.generate_tags.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tagging_failure_is_skipped(self, db, session_factory, make_user, make_pin, tagger, sample_png_bytes):
        await _stored_pin(db, make_user, make_pin, sample_png_bytes)
        tagger.generate_tags.side_effect = TaggingServiceError()

        assert await retag_pins(tagging_service=tagger, session_factory=session_factory) == 0

    @pytest.mark.asyncio
    async def test_only_selected_pins(self, db, session_factory, make_user, make_pin, tagger, sample_png_bytes):
        pin = await _stored_pin(db, make_user, make_pin, sample_png_bytes)
        other = await make_pin(pin.user, title="Other")
        other.media_path = pin.media_path
        await db.commit()

        updated = await retag_pins([other.id], tagging_service=tagger, session_factory=session_factory)

        assert updated == 1
        assert tagger.generate_tags.await_count == 1

    @pytest.mark.asyncio
    async def test_untagged_only_skips_tagged_pins(self, db, session_factory, make_user, make_pin, tagger, sample_png_bytes):
        tagged = await _stored_pin(db, make_user, make_pin, sample_png_bytes, tags=["desk"])
        bare = await make_pin(tagged.user, title="Bare")
        bare.media_path = tagged.media_path
        await db.commit()

        updated = await retag_pins(
            tagging_service=tagger, session_factory=session_factory, untagged_only=True
        )

        assert updated == 1
        assert tagger.generate_tags.await_count == 1
        async with session_factory() as session:
            assert (await session.get(Pin, tagged.id)).tags == ["desk"]
            assert (await session.get(Pin, bare.id)).tags == ["lamp", "brass"]


def test_parser_collects_pin_ids():
    args = build_parser().parse_args(
        ["--pin-id", "6f1c1f5e-0f4a-4c7e-9a51-3b0e6c1d2a11", "--delay", "0"]
    )
    assert [str(p) for p in args.pin_ids] == ["6f1c1f5e-0f4a-4c7e-9a51-3b0e6c1d2a11"]
    assert args.delay == 0.0


def test_parser_untagged_only_flag():
    assert build_parser().parse_args([]).untagged_only is False
    assert build_parser().parse_args(["--untagged-only"]).untagged_only is True
