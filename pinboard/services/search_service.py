"""
Pinboard API: Search Service
==============================

What:  GET /api/search (pins, profiles, boards) and
       GET /api/search/autocomplete.
How:   The database narrows candidates with case-insensitive substring
       matches over every query term; services/ranking.py orders them.

Autocomplete index:
    Built per request from the pins that match the query. Nothing is
    cached between requests, so new and deleted pins show up immediately
    and no process-global state needs invalidating.
"""

import logging
from typing import List

from sqlalchemy import String, cast, desc, or_
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.exceptions import ValidationError
from pinboard.models import Pin
from pinboard.schemas.social import AutocompleteResponse, SearchResponse
from pinboard.services.board_service import board_service
from pinboard.services.comment_thread import author_summary
from pinboard.services.pin_service import pin_response, visible_pins
from pinboard.services.ranking import (
    LIKE_ESCAPE,
    build_suggestions,
    clean_word,
    like_pattern,
    rank_pins,
    search_terms,
)
from pinboard.services.user_service import user_service

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("all", "pins", "videos", "profiles", "boards")

# Upper bound on candidate rows pulled into memory for ranking
CANDIDATE_LIMIT = 200


def _pin_match_conditions(terms: List[str]):
    conditions = []
    for term in terms:
        pattern = like_pattern(term)
        conditions.extend(
            [
                Pin.title.ilike(pattern, escape=LIKE_ESCAPE),
                Pin.description.ilike(pattern, escape=LIKE_ESCAPE),
                Pin.category.ilike(pattern, escape=LIKE_ESCAPE),
                cast(Pin.tags, String).ilike(pattern, escape=LIKE_ESCAPE),
            ]
        )
    return or_(*conditions)


class SearchService:

    async def candidate_pins(
        self, db: AsyncSession, terms: List[str], videos_only: bool = False
    ) -> List[Pin]:
        if not terms:
            return []
        query = visible_pins().where(_pin_match_conditions(terms))
        if videos_only:
            query = query.where(Pin.media_type == "video")
        result = await db.execute(query.order_by(desc(Pin.created_at)).limit(CANDIDATE_LIMIT))
        return list(result.scalars().all())

    async def search(self, db: AsyncSession, q: str, type: str = "all") -> SearchResponse:
        """
        Raises:
            ValidationError: empty query or unknown type
        """
        query = (q or "").strip()
        if not query:
            raise ValidationError(message="Search query is required", field="q")
        if type not in SEARCH_TYPES:
            raise ValidationError(
                message=f"Invalid search type '{type}'. Must be one of: {', '.join(SEARCH_TYPES)}",
                field="type",
            )

        terms = search_terms(query)
        response = SearchResponse(query=query, type=type)

        if type in ("all", "pins", "videos"):
            pins = await self.candidate_pins(db, terms, videos_only=(type == "videos"))
            response.pins = [pin_response(p) for p in rank_pins(pins, query)]

        if type in ("all", "profiles"):
            users = await user_service.search_profiles(db, terms)
            response.profiles = [author_summary(u) for u in users]

        if type in ("all", "boards"):
            boards = await board_service.search_boards(db, terms)
            response.boards = [await board_service.to_summary(db, b) for b in boards]

        logger.info(
            "Search q=%r type=%s → %d pins, %d profiles, %d boards",
            query,
            type,
            len(response.pins),
            len(response.profiles),
            len(response.boards),
        )
        return response

    async def autocomplete(self, db: AsyncSession, q: str) -> AutocompleteResponse:
        """Empty or punctuation-only queries yield no suggestions."""
        cleaned = clean_word(q or "")
        if not cleaned:
            return AutocompleteResponse(query=q or "", suggestions=[])

        # Pins are matched on the first word so that "nike aes" still finds
        # pins tagged "nike"
        first_word = cleaned.split()[0]
        pins = await self.candidate_pins(db, search_terms(first_word))
        return AutocompleteResponse(query=q, suggestions=build_suggestions(pins, cleaned))


search_service = SearchService()
