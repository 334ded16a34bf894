"""Shared request dependencies."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from cubedraft.db import get_cube
from cubedraft.db.database import get_session
from cubedraft.db.operations import cube_to_model
from cubedraft.models.cube import Cube, is_cube_viewable
from cubedraft.models.draft import Viewer
from cubedraft.models.failure import NotFoundError, PermissionDeniedError
from cubedraft.services.card_index import CardIndex, get_card_index
from cubedraft.services.recommender import RecommenderClient

SessionDep = Annotated[AsyncSession, Depends(get_session)]
CardIndexDep = Annotated[CardIndex, Depends(get_card_index)]


def get_viewer(
    x_viewer_id: Annotated[str | None, Header()] = None,
    x_viewer_name: Annotated[str | None, Header()] = None,
) -> Viewer | None:
    """
    The acting user, if any.

    Identity is established upstream; this service only reads the headers
    the authentication layer forwards.
    """
    if not x_viewer_id:
        return None
    return Viewer(user_id=x_viewer_id, name=x_viewer_name or x_viewer_id)


ViewerDep = Annotated[Viewer | None, Depends(get_viewer)]


def require_viewer(viewer: ViewerDep) -> Viewer:
    if viewer is None:
        raise PermissionDeniedError("Sign in to do that")
    return viewer


def get_recommender(card_index: CardIndexDep) -> RecommenderClient:
    return RecommenderClient(card_index)


async def load_viewable_cube(session: AsyncSession, cube_id: str, viewer: Viewer | None) -> Cube:
    """
    Load a cube the viewer is allowed to see.

    Private cubes look exactly like missing ones to everyone but the owner.
    """
    db_cube = await get_cube(session, cube_id)
    cube = cube_to_model(db_cube) if db_cube is not None else None
    if cube is None or not is_cube_viewable(cube, viewer.user_id if viewer else None):
        raise NotFoundError("Cube not found", detail=cube_id)
    return cube
