"""
Featured cube queue endpoints.

Reordering, removal, the rotation period and manual rotation are admin
operations; the admin check itself lives in the authentication layer in
front of this service.
"""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from cubedraft.api.deps import SessionDep, load_viewable_cube, require_viewer
from cubedraft.config import FEATURED_PROTECTED_SLOTS
from cubedraft.models.draft import Viewer
from cubedraft.models.failure import PermissionDeniedError
from cubedraft.models.featured import FeaturedEntry, FeaturedQueue
from cubedraft.services.featured_queue import (
    SqlFeaturedQueueStore,
    add_cube,
    move_cube,
    remove_cube,
    rotate_featured,
    set_rotation_period,
)

router = APIRouter(prefix="/featured", tags=["featured"])


class FeaturedEntryResponse(BaseModel):
    cube_id: str
    owner_id: str


class FeaturedQueueResponse(BaseModel):
    """`queue` is the full rotation order, featured cubes first."""

    featured: list[FeaturedEntryResponse]
    queue: list[FeaturedEntryResponse]
    days_between_rotations: int
    last_rotation: datetime | None = None


class QueueCubeRequest(BaseModel):
    cube_id: str


class MoveCubeRequest(BaseModel):
    cube_id: str
    from_index: int
    to_index: int


class RotationResponse(BaseModel):
    removed: list[FeaturedEntryResponse]
    added: list[FeaturedEntryResponse]


def _entries(entries: Iterable[FeaturedEntry]) -> list[FeaturedEntryResponse]:
    return [FeaturedEntryResponse(cube_id=e.cube_id, owner_id=e.owner_id) for e in entries]


def queue_response(queue: FeaturedQueue) -> FeaturedQueueResponse:
    return FeaturedQueueResponse(
        featured=_entries(queue.entries[:FEATURED_PROTECTED_SLOTS]),
        queue=_entries(queue.entries),
        days_between_rotations=queue.days_between_rotations,
        last_rotation=queue.last_rotation,
    )


def _unchanged(
    transform: Callable[[FeaturedQueue], FeaturedQueue],
) -> Callable[[FeaturedQueue], tuple[FeaturedQueue, FeaturedQueue]]:
    """Adapt a queue -> queue transform to the store's (queue, result) shape."""

    def wrapped(queue: FeaturedQueue) -> tuple[FeaturedQueue, FeaturedQueue]:
        updated = transform(queue)
        return updated, updated

    return wrapped


@router.get("", response_model=FeaturedQueueResponse)
async def get_featured(session: SessionDep) -> FeaturedQueueResponse:
    store = SqlFeaturedQueueStore(session)
    return queue_response(await store.load())


@router.post("/queue", response_model=FeaturedQueueResponse)
async def queue_cube(
    request: QueueCubeRequest,
    session: SessionDep,
    viewer: Annotated[Viewer, Depends(require_viewer)],
) -> FeaturedQueueResponse:
    """Queue one of the viewer's own cubes for featuring."""
    cube = await load_viewable_cube(session, request.cube_id, viewer)
    if cube.owner_id != viewer.user_id:
        raise PermissionDeniedError("Only the owner can queue a cube", detail=cube.id)
    if cube.is_private:
        raise PermissionDeniedError("Private cubes cannot be featured", detail=cube.id)

    store = SqlFeaturedQueueStore(session)
    queue = await store.update_with_retry(
        _unchanged(lambda q: add_cube(q, cube.id, cube.owner_id))
    )
    return queue_response(queue)


@router.post("/unqueue", response_model=FeaturedQueueResponse)
async def unqueue_cube(request: QueueCubeRequest, session: SessionDep) -> FeaturedQueueResponse:
    store = SqlFeaturedQueueStore(session)
    queue = await store.update_with_retry(_unchanged(lambda q: remove_cube(q, request.cube_id)))
    return queue_response(queue)


@router.post("/move", response_model=FeaturedQueueResponse)
async def move_queued_cube(request: MoveCubeRequest, session: SessionDep) -> FeaturedQueueResponse:
    """Move a waiting cube. Positions are 0-based and include the featured pair."""
    store = SqlFeaturedQueueStore(session)
    queue = await store.update_with_retry(
        _unchanged(lambda q: move_cube(q, request.cube_id, request.from_index, request.to_index))
    )
    return queue_response(queue)


@router.post("/period/{days}", response_model=FeaturedQueueResponse)
async def set_period(
    days: Annotated[int, Path()],
    session: SessionDep,
) -> FeaturedQueueResponse:
    store = SqlFeaturedQueueStore(session)
    queue = await store.update_with_retry(_unchanged(lambda q: set_rotation_period(q, days)))
    return queue_response(queue)


@router.post("/rotate", response_model=RotationResponse)
async def rotate_now(session: SessionDep) -> RotationResponse:
    """Rotate immediately, regardless of the rotation period."""
    store = SqlFeaturedQueueStore(session)
    result = await rotate_featured(store, datetime.now(UTC))
    return RotationResponse(removed=_entries(result.removed), added=_entries(result.added))
