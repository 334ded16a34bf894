"""
Database CRUD operations.

Provides async functions for reading and writing cubes, drafts, cube
analytics and the featured queue, plus the versioned read-modify-write
used for every multi-field update.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from cubedraft.analytics.aggregator import fold
from cubedraft.config import DEFAULT_DAYS_BETWEEN_ROTATIONS, settings
from cubedraft.models.analytics import CardRating, CubeAnalytics
from cubedraft.models.card import CubeOverride
from cubedraft.models.cube import Cube, CubeCardEntry, DraftFormat, PackTemplate, SlotRule
from cubedraft.models.db import CubeAnalyticDB, CubeDB, DraftDB, FeaturedQueueDB
from cubedraft.models.draft import (
    BotDescriptor,
    DraftCard,
    DraftSession,
    DraftStatus,
    PackRecord,
    Seat,
)
from cubedraft.models.failure import ConflictError, NotFoundError
from cubedraft.models.featured import FeaturedEntry, FeaturedQueue

if TYPE_CHECKING:
    from cubedraft.services.card_index import CardIndex

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT")
ResultT = TypeVar("ResultT")

FEATURED_QUEUE_ROW_ID = 1


# --- Versioned updates ---


async def update_with_retry(
    session: AsyncSession,
    load: Callable[[AsyncSession], Awaitable[RowT]],
    apply: Callable[[RowT], ResultT],
    max_attempts: int | None = None,
) -> ResultT:
    """
    Compare-and-set update of one versioned row.

    Loads the row, applies `apply` to it and flushes. The flush only
    succeeds if the row's version is unchanged since it was loaded;
    otherwise the attempt's savepoint is rolled back and the whole cycle
    is retried. Earlier writes in the same session are kept.

    `apply` must validate before writing to the row: a KnownError raised
    from it propagates immediately, without a retry, and leaves the row
    untouched.

    Raises:
        ConflictError: (transient) if every attempt hit a version conflict
    """
    attempts = max_attempts or settings.cas_max_attempts

    for attempt in range(1, attempts + 1):
        try:
            async with session.begin_nested():
                row = await load(session)
                result = apply(row)
                await session.flush()
        except StaleDataError:
            logger.warning(
                "Version conflict on attempt %d of %d",
                attempt,
                attempts,
            )
            continue
        return result

    raise ConflictError(
        "The record was modified by another request",
        detail=f"Gave up after {attempts} attempts",
        transient=True,
    )


# --- Cube Operations ---


def _override_to_dict(override: CubeOverride) -> dict[str, Any]:
    data: dict[str, Any] = {
        "status": override.status,
        "finish": override.finish,
        "tags": list(override.tags) if override.tags is not None else None,
        "cmc": override.cmc,
        "type_line": override.type_line,
        "colors": list(override.colors) if override.colors is not None else None,
        "notes": override.notes,
    }
    return {key: value for key, value in data.items() if value is not None}


def _override_from_dict(data: dict[str, Any]) -> CubeOverride:
    tags = data.get("tags")
    colors = data.get("colors")
    return CubeOverride(
        status=data.get("status"),
        finish=data.get("finish"),
        tags=tuple(tags) if tags is not None else None,
        cmc=data.get("cmc"),
        type_line=data.get("type_line"),
        colors=tuple(colors) if colors is not None else None,
        notes=data.get("notes"),
    )


def entry_to_dict(entry: CubeCardEntry) -> dict[str, Any]:
    return {
        "entry_id": entry.entry_id,
        "card_id": entry.card_id,
        **_override_to_dict(entry.override),
    }


def entry_from_dict(data: dict[str, Any]) -> CubeCardEntry:
    return CubeCardEntry(
        entry_id=data["entry_id"],
        card_id=data["card_id"],
        override=_override_from_dict(data),
    )


def draft_format_to_json(draft_format: DraftFormat | None) -> list[list[dict[str, str]]] | None:
    if draft_format is None:
        return None
    return [
        [{"primary": slot.primary, "fallback": slot.fallback} for slot in pack.slots]
        for pack in draft_format.packs
    ]


def draft_format_from_json(data: list[list[dict[str, str]]] | None) -> DraftFormat | None:
    if data is None:
        return None
    return DraftFormat(
        packs=tuple(
            PackTemplate(
                slots=tuple(
                    SlotRule(primary=slot.get("primary", "*"), fallback=slot.get("fallback", "*"))
                    for slot in pack
                )
            )
            for pack in data
        )
    )


def cube_to_model(db_cube: CubeDB) -> Cube:
    """Convert a database cube to a domain model."""
    return Cube(
        id=db_cube.id,
        name=db_cube.name,
        owner_id=db_cube.owner_id,
        cards=[entry_from_dict(entry) for entry in db_cube.cards],
        basics=list(db_cube.basics),
        draft_format=draft_format_from_json(db_cube.draft_format),
        is_private=db_cube.is_private,
        default_status=db_cube.default_status,
        use_cube_elo=db_cube.use_cube_elo,
    )


def write_cube(db_cube: CubeDB, cube: Cube) -> None:
    """Copy a domain cube onto its row. Assigns whole new JSON values."""
    db_cube.name = cube.name
    db_cube.owner_id = cube.owner_id
    db_cube.cards = [entry_to_dict(entry) for entry in cube.cards]
    db_cube.basics = list(cube.basics)
    db_cube.draft_format = draft_format_to_json(cube.draft_format)
    db_cube.is_private = cube.is_private
    db_cube.default_status = cube.default_status
    db_cube.use_cube_elo = cube.use_cube_elo


async def get_cube(session: AsyncSession, cube_id: str) -> CubeDB | None:
    """
    Get a cube by id.

    Returns None if no cube exists.
    """
    result = await session.execute(
        select(CubeDB).where(CubeDB.id == cube_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_cube(session: AsyncSession, cube: Cube) -> CubeDB:
    """
    Create a new cube.

    Raises IntegrityError if a cube with this id already exists.
    """
    db_cube = CubeDB(id=cube.id)
    write_cube(db_cube, cube)
    session.add(db_cube)
    await session.flush()
    return db_cube


async def update_cube(
    session: AsyncSession,
    cube_id: str,
    transform: Callable[[Cube], Cube],
) -> Cube:
    """
    Apply `transform` to a cube as one versioned write.

    Raises:
        NotFoundError: If the cube does not exist
        ConflictError: If concurrent writers exhaust the retry budget
    """

    async def load(s: AsyncSession) -> CubeDB:
        db_cube = await get_cube(s, cube_id)
        if db_cube is None:
            raise NotFoundError(f"Cube '{cube_id}' not found")
        return db_cube

    def apply(db_cube: CubeDB) -> Cube:
        updated = transform(cube_to_model(db_cube))
        write_cube(db_cube, updated)
        return updated

    return await update_with_retry(session, load, apply)


async def delete_cube(session: AsyncSession, cube_id: str) -> bool:
    """
    Delete a cube. Its drafts are kept with a stale cube reference.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(delete(CubeDB).where(CubeDB.id == cube_id))
    # rowcount is available on DELETE results; type stubs incomplete for async
    return bool(result.rowcount)  # type: ignore[attr-defined]


# --- Draft Operations ---


def _seat_to_dict(seat: Seat) -> dict[str, Any]:
    return {
        "name": seat.name,
        "user_id": seat.user_id,
        "bot": seat.bot.to_dict() if seat.bot is not None else None,
        "drafted": list(seat.drafted),
        "sideboard": list(seat.sideboard),
        "pick_order": list(seat.pick_order),
        "trash_order": list(seat.trash_order),
    }


def _seat_from_dict(data: dict[str, Any]) -> Seat:
    bot = data.get("bot")
    return Seat(
        name=data["name"],
        user_id=data.get("user_id"),
        bot=BotDescriptor.from_dict(bot) if bot is not None else None,
        drafted=list(data.get("drafted", [])),
        sideboard=list(data.get("sideboard", [])),
        pick_order=list(data.get("pick_order", [])),
        trash_order=list(data.get("trash_order", [])),
    )


def draft_to_model(db_draft: DraftDB) -> DraftSession:
    """Convert a database draft to a domain model."""
    return DraftSession(
        id=db_draft.id,
        cube_id=db_draft.cube_id,
        seats=[_seat_from_dict(seat) for seat in db_draft.seats],
        cards=[
            DraftCard(index=card["index"], card_id=card["card_id"], name=card["name"])
            for card in db_draft.cards
        ],
        basics=list(db_draft.basics),
        initial_state=[
            [
                PackRecord(seed=pack["seed"], card_indices=tuple(pack["card_indices"]))
                for pack in seat_packs
            ]
            for seat_packs in db_draft.initial_state
        ],
        status=DraftStatus(db_draft.status),
    )


def write_draft(db_draft: DraftDB, draft: DraftSession) -> None:
    """Copy a domain draft onto its row as a single set of assignments."""
    db_draft.cube_id = draft.cube_id
    db_draft.status = draft.status.value
    db_draft.seats = [_seat_to_dict(seat) for seat in draft.seats]
    db_draft.cards = [
        {"index": card.index, "card_id": card.card_id, "name": card.name} for card in draft.cards
    ]
    db_draft.basics = list(draft.basics)
    db_draft.initial_state = [
        [{"seed": pack.seed, "card_indices": list(pack.card_indices)} for pack in seat_packs]
        for seat_packs in draft.initial_state
    ]


async def get_draft(session: AsyncSession, draft_id: str) -> DraftDB | None:
    """Get a draft by id. Returns None if not found."""
    result = await session.execute(
        select(DraftDB).where(DraftDB.id == draft_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_draft(session: AsyncSession, draft: DraftSession) -> DraftDB:
    """Insert a new draft in one write."""
    db_draft = DraftDB(id=draft.id)
    write_draft(db_draft, draft)
    session.add(db_draft)
    await session.flush()
    return db_draft


async def update_draft(
    session: AsyncSession,
    draft_id: str,
    transform: Callable[[DraftSession], DraftSession],
) -> tuple[DraftSession, DraftSession]:
    """
    Apply `transform` to a draft as one versioned write.

    Returns:
        Tuple of (before, after) domain models

    Raises:
        NotFoundError: If the draft does not exist
        ConflictError: If concurrent writers exhaust the retry budget
    """

    async def load(s: AsyncSession) -> DraftDB:
        db_draft = await get_draft(s, draft_id)
        if db_draft is None:
            raise NotFoundError(f"Draft '{draft_id}' not found")
        return db_draft

    def apply(db_draft: DraftDB) -> tuple[DraftSession, DraftSession]:
        before = draft_to_model(db_draft)
        after = transform(before)
        write_draft(db_draft, after)
        return before, after

    return await update_with_retry(session, load, apply)


# --- Analytics Operations ---


def analytics_to_model(db_analytic: CubeAnalyticDB) -> CubeAnalytics:
    """Convert a database analytics row to a domain model."""
    return CubeAnalytics(
        cube_id=db_analytic.cube_id,
        cards={
            name: CardRating(
                pick_count=int(data.get("pick_count", 0)),
                pass_count=int(data.get("pass_count", 0)),
                elo=float(data.get("elo", settings.elo_base)),
            )
            for name, data in db_analytic.cards.items()
        },
    )


def write_analytics(db_analytic: CubeAnalyticDB, analytics: CubeAnalytics) -> None:
    db_analytic.cards = {
        name: {"pick_count": r.pick_count, "pass_count": r.pass_count, "elo": r.elo}
        for name, r in analytics.cards.items()
    }


async def get_cube_analytics(session: AsyncSession, cube_id: str) -> CubeAnalyticDB | None:
    """Get a cube's analytics row. Returns None if the cube has none yet."""
    result = await session.execute(
        select(CubeAnalyticDB)
        .where(CubeAnalyticDB.cube_id == cube_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_cube_analytics(session: AsyncSession, cube_id: str) -> CubeAnalyticDB:
    """
    A cube's analytics row, created empty on first use.

    If a concurrent request creates the row first, the insert is rolled
    back to its savepoint and the winner's row is returned.
    """
    db_analytic = await get_cube_analytics(session, cube_id)
    if db_analytic is not None:
        return db_analytic

    try:
        async with session.begin_nested():
            db_analytic = CubeAnalyticDB(cube_id=cube_id, cards={})
            session.add(db_analytic)
    except IntegrityError:
        logger.info("Analytics row for cube %s created concurrently", cube_id)
        db_analytic = await get_cube_analytics(session, cube_id)
        if db_analytic is None:
            raise
    return db_analytic


async def fold_draft_analytics(
    session: AsyncSession,
    draft: DraftSession,
    card_index: "CardIndex",
) -> CubeAnalytics:
    """
    Fold a draft into its cube's persisted analytics.

    The read-fold-write runs as one versioned update, so concurrent folds
    for different drafts of the same cube never lose each other's counts.
    Callers are responsible for folding each draft only once.
    """

    async def load(s: AsyncSession) -> CubeAnalyticDB:
        return await get_or_create_cube_analytics(s, draft.cube_id)

    def apply(db_analytic: CubeAnalyticDB) -> CubeAnalytics:
        updated = fold(draft, card_index, analytics_to_model(db_analytic))
        write_analytics(db_analytic, updated)
        return updated

    analytics = await update_with_retry(session, load, apply)
    logger.info(
        "Folded draft %s into analytics for cube %s (%d cards rated)",
        draft.id,
        draft.cube_id,
        len(analytics.cards),
    )
    return analytics


# --- Featured Queue Operations ---


def _as_utc(value: datetime | None) -> datetime | None:
    # Some backends hand timezone-aware columns back as naive UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def featured_to_model(db_queue: FeaturedQueueDB) -> FeaturedQueue:
    """Convert the featured queue row to a domain snapshot."""
    return FeaturedQueue(
        entries=tuple(
            FeaturedEntry(cube_id=entry["cube_id"], owner_id=entry["owner_id"])
            for entry in db_queue.entries
        ),
        days_between_rotations=db_queue.days_between_rotations,
        last_rotation=_as_utc(db_queue.last_rotation),
    )


def write_featured(db_queue: FeaturedQueueDB, queue: FeaturedQueue) -> None:
    db_queue.entries = [
        {"cube_id": entry.cube_id, "owner_id": entry.owner_id} for entry in queue.entries
    ]
    db_queue.days_between_rotations = queue.days_between_rotations
    db_queue.last_rotation = queue.last_rotation


async def get_featured_queue(session: AsyncSession) -> FeaturedQueueDB | None:
    """The singleton featured queue row. Returns None before first use."""
    result = await session.execute(
        select(FeaturedQueueDB)
        .where(FeaturedQueueDB.id == FEATURED_QUEUE_ROW_ID)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_featured_queue(session: AsyncSession) -> FeaturedQueueDB:
    """The singleton featured queue row, created empty on first use."""
    db_queue = await get_featured_queue(session)
    if db_queue is not None:
        return db_queue

    try:
        async with session.begin_nested():
            db_queue = FeaturedQueueDB(
                id=FEATURED_QUEUE_ROW_ID,
                entries=[],
                days_between_rotations=DEFAULT_DAYS_BETWEEN_ROTATIONS,
                last_rotation=None,
            )
            session.add(db_queue)
    except IntegrityError:
        logger.info("Featured queue row created concurrently")
        db_queue = await get_featured_queue(session)
        if db_queue is None:
            raise
    return db_queue
