"""
Featured Cube Queue.

The queue is a rotation schedule: the first FEATURED_PROTECTED_SLOTS
entries are the currently featured cubes, everything behind them waits
its turn. Each rotation moves the featured pair to the back.

The transforms here are pure and validate before building a new queue,
so a rejected operation never changes anything. Persistence goes through
a FeaturedQueueStore, which applies a transform as one versioned write.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from cubedraft.config import FEATURED_PROTECTED_SLOTS
from cubedraft.db.operations import (
    featured_to_model,
    get_or_create_featured_queue,
    update_with_retry,
    write_featured,
)
from cubedraft.models.db import FeaturedQueueDB
from cubedraft.models.failure import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from cubedraft.models.featured import FeaturedEntry, FeaturedQueue

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")

# Rotation needs a full featured pair plus a pair to replace it
MIN_ROTATION_SIZE = FEATURED_PROTECTED_SLOTS * 2


@dataclass(frozen=True, slots=True)
class RotationResult:
    """Outcome of one rotation."""

    removed: tuple[FeaturedEntry, ...]
    added: tuple[FeaturedEntry, ...]


def is_in_queue(queue: FeaturedQueue, cube_id: str) -> bool:
    return queue.index_of(cube_id) is not None


def add_cube(queue: FeaturedQueue, cube_id: str, owner_id: str) -> FeaturedQueue:
    """
    Append a cube to the back of the queue.

    Raises:
        ConflictError: If the cube is already queued
    """
    if is_in_queue(queue, cube_id):
        raise ConflictError("Cube is already in queue", detail=cube_id)
    return replace(queue, entries=(*queue.entries, FeaturedEntry(cube_id, owner_id)))


def remove_cube(queue: FeaturedQueue, cube_id: str) -> FeaturedQueue:
    """
    Remove a waiting cube.

    Raises:
        NotFoundError: If the cube is not queued
        ConflictError: If the cube is currently featured
    """
    index = queue.index_of(cube_id)
    if index is None:
        raise NotFoundError("Cube not found in queue", detail=cube_id)
    if index < FEATURED_PROTECTED_SLOTS:
        raise ConflictError(
            "Cannot remove currently featured cube from queue",
            detail=f"{cube_id} is at position {index}",
        )
    return replace(queue, entries=queue.entries[:index] + queue.entries[index + 1 :])


def move_cube(
    queue: FeaturedQueue,
    cube_id: str,
    from_index: int,
    to_index: int,
) -> FeaturedQueue:
    """
    Move a waiting cube from one position to another.

    Both positions are 0-based and must lie behind the featured slots.
    The caller states where it believes the cube is; a stale belief is
    rejected rather than moving whatever now sits there.

    Raises:
        ValidationError: If either position is a featured slot or out of range
        ConflictError: If the cube is not at from_index
    """
    if from_index < FEATURED_PROTECTED_SLOTS or to_index < FEATURED_PROTECTED_SLOTS:
        raise ValidationError(
            "Cannot move cubes into or out of the featured slots",
            detail=f"Positions must be at least {FEATURED_PROTECTED_SLOTS}",
        )
    if from_index >= len(queue.entries) or queue.entries[from_index].cube_id != cube_id:
        raise ConflictError(
            "Cube is not at expected position in queue",
            detail=f"Expected {cube_id} at position {from_index}",
        )
    if to_index >= len(queue.entries):
        raise ValidationError(
            "Target position is higher than cube length",
            detail=f"Queue holds {len(queue.entries)} cubes",
        )

    entries = list(queue.entries)
    entry = entries.pop(from_index)
    entries.insert(to_index, entry)
    return replace(queue, entries=tuple(entries))


def set_rotation_period(queue: FeaturedQueue, days: int) -> FeaturedQueue:
    """
    Raises:
        ValidationError: If days is not a positive integer
    """
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValidationError(
            "Rotation period must be a positive number of days",
            detail=repr(days),
        )
    return replace(queue, days_between_rotations=days)


def rotate(queue: FeaturedQueue, now: datetime) -> tuple[FeaturedQueue, RotationResult]:
    """
    Feature the next pair of cubes.

    The current featured pair moves to the back of the queue in order.

    Raises:
        InvalidStateError: If fewer than MIN_ROTATION_SIZE cubes are queued
    """
    if len(queue.entries) < MIN_ROTATION_SIZE:
        raise InvalidStateError(
            "Not enough cubes in queue to rotate",
            detail=f"Need at least {MIN_ROTATION_SIZE}, have {len(queue.entries)}",
        )

    removed = queue.entries[:FEATURED_PROTECTED_SLOTS]
    rest = queue.entries[FEATURED_PROTECTED_SLOTS:]
    rotated = replace(queue, entries=(*rest, *removed), last_rotation=now)
    return rotated, RotationResult(removed=removed, added=rest[:FEATURED_PROTECTED_SLOTS])


def is_rotation_due(queue: FeaturedQueue, now: datetime) -> bool:
    """True if the rotation period has elapsed since the last rotation."""
    if queue.last_rotation is None:
        return True
    elapsed = now - queue.last_rotation
    return elapsed.days >= queue.days_between_rotations


class FeaturedQueueStore(Protocol):
    """Persistence for the singleton featured queue."""

    async def load(self) -> FeaturedQueue: ...

    async def update_with_retry(
        self,
        transform: Callable[[FeaturedQueue], tuple[FeaturedQueue, ResultT]],
    ) -> ResultT: ...


class SqlFeaturedQueueStore:
    """FeaturedQueueStore over the single featured_queue row."""

    def __init__(self, session: AsyncSession, max_attempts: int | None = None) -> None:
        self.session = session
        self.max_attempts = max_attempts

    async def load(self) -> FeaturedQueue:
        return featured_to_model(await get_or_create_featured_queue(self.session))

    async def update_with_retry(
        self,
        transform: Callable[[FeaturedQueue], tuple[FeaturedQueue, ResultT]],
    ) -> ResultT:
        """
        Apply `transform` to the current queue and write the new queue.

        `transform` returns (new_queue, result); the result is passed back
        to the caller once the write has succeeded.
        A transform that hands back the queue it was given writes nothing.
        """

        def apply(db_queue: FeaturedQueueDB) -> ResultT:
            current = featured_to_model(db_queue)
            updated, result = transform(current)
            if updated is not current:
                write_featured(db_queue, updated)
            return result

        return await update_with_retry(
            self.session,
            get_or_create_featured_queue,
            apply,
            max_attempts=self.max_attempts,
        )


async def rotate_featured(
    store: FeaturedQueueStore,
    now: datetime,
    only_if_due: bool = False,
) -> RotationResult | None:
    """
    Rotate the stored queue and log what changed.

    With `only_if_due`, the period is checked against the snapshot being
    rotated, inside the same atomic update; a queue that is not due is
    left alone and None is returned.
    """

    def transform(queue: FeaturedQueue) -> tuple[FeaturedQueue, RotationResult | None]:
        if only_if_due and not is_rotation_due(queue, now):
            logger.info(
                "Featured rotation not due (last rotation %s, every %d days)",
                queue.last_rotation,
                queue.days_between_rotations,
            )
            return queue, None
        return rotate(queue, now)

    result = await store.update_with_retry(transform)
    if result is not None:
        logger.info(
            "Rotated featured cubes: removed %s, added %s",
            [entry.cube_id for entry in result.removed],
            [entry.cube_id for entry in result.added],
        )
    return result
