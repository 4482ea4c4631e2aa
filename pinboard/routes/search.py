"""
Pinboard API: Search Routes
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.schemas.common import ErrorResponse
from pinboard.schemas.social import AutocompleteResponse, SearchResponse
from pinboard.services.search_service import search_service

router = APIRouter(prefix="/api/search", tags=["Search"])


@router.get(
    "/autocomplete",
    response_model=AutocompleteResponse,
    summary="Query suggestions (at most 7)",
)
async def autocomplete(
    q: str = Query(default=""),
    db: AsyncSession = Depends(get_db_session),
) -> AutocompleteResponse:
    return await search_service.autocomplete(db, q)


@router.get(
    "",
    response_model=SearchResponse,
    responses={400: {"description": "Empty query or unknown type", "model": ErrorResponse}},
    summary="Search pins, videos, profiles and boards",
    description="`type` is one of all, pins, videos, profiles, boards.",
)
async def search(
    q: str = Query(default=""),
    type: str = Query(default="all"),
    db: AsyncSession = Depends(get_db_session),
) -> SearchResponse:
    return await search_service.search(db, q, type)
