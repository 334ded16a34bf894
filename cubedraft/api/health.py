"""
Health check endpoints.

Liveness and readiness probes. Readiness also checks that the database
answers and the card index is loaded.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cubedraft.db.database import get_session
from cubedraft.services.card_index import CardIndex, get_card_index

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    cards: int | None = None


def optional_card_index() -> CardIndex | None:
    """The card index, or None if the card data has not been downloaded."""
    try:
        return get_card_index()
    except FileNotFoundError as e:
        logger.warning("Card index unavailable: %s", e)
        return None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    card_index: Annotated[CardIndex | None, Depends(optional_card_index)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the database is unavailable or the card data is missing.
    """
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")

    if card_index is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="connected")
    return HealthResponse(status="ready", database="connected", cards=len(card_index))
