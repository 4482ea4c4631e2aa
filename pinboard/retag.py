"""
Pinboard API: Batch Retagging Tool
====================================

What:  Regenerates AI tags for existing pins.
Why:   Pins created while Gemini was unavailable (or before auto-tagging
       was enabled) carry manual tags only.
How:   One pin at a time: resolve the stored file, ask the tagging service,
       merge with the pin's current tags, commit. Pauses between calls to
       stay under the provider's rate limits. A failing pin is logged and
       skipped.

Usage:
    python -m pinboard.retag                     # every pin
    python -m pinboard.retag --pin-id <uuid> ... # selected pins
    python -m pinboard.retag --untagged-only     # pins with no tags yet
    python -m pinboard.retag --delay 3
"""

import argparse
import asyncio
import logging
import sys
import uuid
from typing import List, Optional, Sequence

from sqlalchemy import select

from pinboard.config import settings
from pinboard.database import async_session_factory, dispose_engine
from pinboard.exceptions import PinboardError
from pinboard.main import setup_logging
from pinboard.models import Pin
from pinboard.services.gemini_service import gemini_service
from pinboard.services.media_service import media_service
from pinboard.services.tagging_base import TaggingService, merge_tags

logger = logging.getLogger("pinboard.retag")


async def retag_pins(
    pin_ids: Optional[Sequence[uuid.UUID]] = None,
    delay: float = 0.0,
    tagging_service: Optional[TaggingService] = None,
    session_factory=async_session_factory,
    untagged_only: bool = False,
) -> int:
    """
    Returns the number of pins whose tags were updated.

    With untagged_only, pins that already carry any tag are left alone.
    """
    tagger = tagging_service or gemini_service

    async with session_factory() as session:
        query = select(Pin.id).order_by(Pin.created_at)
        if pin_ids:
            query = query.where(Pin.id.in_(list(pin_ids)))
        ids: List[uuid.UUID] = list((await session.execute(query)).scalars().all())

    logger.info("Retagging %d pins", len(ids))
    updated = 0

    for index, pin_id in enumerate(ids):
        if index and delay:
            await asyncio.sleep(delay)

        async with session_factory() as session:
            pin = await session.get(Pin, pin_id)
            if pin is None:
                continue
            if untagged_only and pin.tags:
                logger.debug("Pin %s already tagged, skipping", pin_id)
                continue
            try:
                path = media_service.resolve(pin.media_path)
                generated = await tagger.generate_tags(str(path), pin.media_type)
            except PinboardError as e:
                logger.warning("Skipping pin %s: %s", pin_id, e.message)
                continue

            if not generated:
                logger.info("No tags generated for pin %s", pin_id)
                continue

            pin.tags = merge_tags(list(pin.tags or []), generated, settings.max_tags)
            await session.commit()
            updated += 1
            logger.info("Pin %s tagged: %s", pin_id, ", ".join(pin.tags))

    logger.info("Retagging finished: %d of %d pins updated", updated, len(ids))
    return updated


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m pinboard.retag",
        description="Regenerate AI tags for existing pins.",
    )
    parser.add_argument(
        "--pin-id",
        dest="pin_ids",
        action="append",
        type=uuid.UUID,
        default=[],
        help="Only retag this pin (repeatable). Default: all pins.",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=settings.retag_delay_seconds,
        help="Seconds to wait between tagging calls (default: %(default)s).",
    )
    parser.add_argument(
        "--untagged-only",
        action="store_true",
        help="Skip pins that already have tags.",
    )
    return parser


async def _run(pin_ids: Sequence[uuid.UUID], delay: float, untagged_only: bool = False) -> int:
    try:
        return await retag_pins(pin_ids, delay, untagged_only=untagged_only)
    finally:
        await dispose_engine()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    if not gemini_service.is_configured:
        logger.error("GEMINI_API_KEY is not set; nothing to do")
        return 1

    asyncio.run(_run(args.pin_ids, args.delay, args.untagged_only))
    return 0


if __name__ == "__main__":
    sys.exit(main())
