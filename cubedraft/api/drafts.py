"""
Draft API endpoints.

View drafts, submit a seat's picks and redraft completed drafts.
"""

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cubedraft.api.deps import CardIndexDep, SessionDep, ViewerDep
from cubedraft.db import (
    create_draft,
    fold_draft_analytics,
    get_cube,
    get_cube_analytics,
    get_draft,
    update_draft,
)
from cubedraft.db.operations import analytics_to_model, cube_to_model, draft_to_model
from cubedraft.draft.picks import SeatSubmission, submit_seat
from cubedraft.draft.redraft import redraft
from cubedraft.models.cube import is_cube_viewable
from cubedraft.models.draft import DraftSession, Viewer
from cubedraft.models.failure import NotFoundError
from cubedraft.services.card_index import CardIndex

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["drafts"])


class SeatResponse(BaseModel):
    name: str
    user_id: str | None = None
    bot: dict | None = None
    drafted: list[str]
    sideboard: list[str]
    pick_order: list[str]
    trash_order: list[str]


class DraftCardResponse(BaseModel):
    index: int
    card_id: str
    name: str
    elo: float


class PackRecordResponse(BaseModel):
    seed: str
    card_indices: list[int]


class DraftResponse(BaseModel):
    id: str
    cube_id: str
    status: str
    seats: list[SeatResponse]
    cards: list[DraftCardResponse]
    basics: list[str]
    initial_state: list[list[PackRecordResponse]]


class SeatSubmissionRequest(BaseModel):
    pick_order: list[str] = Field(default_factory=list)
    trash_order: list[str] = Field(default_factory=list)
    drafted: list[str] = Field(default_factory=list)
    sideboard: list[str] = Field(default_factory=list)


async def _cube_elo_overrides(session: AsyncSession, cube_id: str) -> dict[str, float]:
    """Cube ratings by lower-cased name, if the cube opts in to them."""
    db_cube = await get_cube(session, cube_id)
    if db_cube is None or not db_cube.use_cube_elo:
        return {}
    db_analytic = await get_cube_analytics(session, cube_id)
    if db_analytic is None:
        return {}
    return analytics_to_model(db_analytic).elo_overrides()


async def draft_response(
    session: AsyncSession,
    draft: DraftSession,
    card_index: CardIndex,
) -> DraftResponse:
    """
    Serialize a draft for clients.

    Card ratings come from the cube's own analytics when the cube has
    use_cube_elo set, otherwise from the card index.
    """
    overrides = await _cube_elo_overrides(session, draft.cube_id)

    cards: list[DraftCardResponse] = []
    for card in draft.cards:
        metadata = card_index.card_from_id(card.card_id)
        cards.append(
            DraftCardResponse(
                index=card.index,
                card_id=card.card_id,
                name=card.name,
                elo=overrides.get(metadata.name_lower, metadata.elo),
            )
        )

    return DraftResponse(
        id=draft.id,
        cube_id=draft.cube_id,
        status=draft.status.value,
        seats=[
            SeatResponse(
                name=seat.name,
                user_id=seat.user_id,
                bot=seat.bot.to_dict() if seat.bot is not None else None,
                drafted=seat.drafted,
                sideboard=seat.sideboard,
                pick_order=seat.pick_order,
                trash_order=seat.trash_order,
            )
            for seat in draft.seats
        ],
        cards=cards,
        basics=draft.basics,
        initial_state=[
            [
                PackRecordResponse(seed=pack.seed, card_indices=list(pack.card_indices))
                for pack in seat_packs
            ]
            for seat_packs in draft.initial_state
        ],
    )


async def _load_draft(
    session: AsyncSession,
    draft_id: str,
    viewer: Viewer | None,
    require_cube: bool = False,
) -> DraftSession:
    """
    Load a draft the viewer is allowed to see.

    Drafts of a private cube look missing to everyone but the cube's
    owner. A draft whose cube has been deleted stays readable unless
    `require_cube` is set.
    """
    db_draft = await get_draft(session, draft_id)
    if db_draft is None:
        raise NotFoundError("Draft not found", detail=draft_id)
    draft = draft_to_model(db_draft)

    db_cube = await get_cube(session, draft.cube_id)
    if db_cube is None:
        if require_cube:
            raise NotFoundError("Cube not found", detail=draft.cube_id)
    elif not is_cube_viewable(cube_to_model(db_cube), viewer.user_id if viewer else None):
        raise NotFoundError("Draft not found", detail=draft_id)
    return draft


@router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft_endpoint(
    draft_id: str,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: ViewerDep,
) -> DraftResponse:
    draft = await _load_draft(session, draft_id, viewer)
    return await draft_response(session, draft, card_index)


@router.post("/{draft_id}/seats/{seat_index}", response_model=DraftResponse)
async def submit_seat_endpoint(
    draft_id: str,
    seat_index: int,
    request: SeatSubmissionRequest,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: ViewerDep,
) -> DraftResponse:
    """
    Record a seat's picks.

    The submission that completes the draft also folds it into the cube's
    analytics. Only one submission can make that transition, so each
    draft is folded exactly once.
    """
    await _load_draft(session, draft_id, viewer)

    submission = SeatSubmission(
        pick_order=request.pick_order,
        trash_order=request.trash_order,
        drafted=request.drafted,
        sideboard=request.sideboard,
    )
    before, after = await update_draft(
        session,
        draft_id,
        lambda draft: submit_seat(draft, seat_index, submission),
    )

    if after.is_complete and not before.is_complete:
        await fold_draft_analytics(session, after, card_index)

    return await draft_response(session, after, card_index)


@router.post(
    "/{draft_id}/redraft/{seat_index}",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
)
async def redraft_endpoint(
    draft_id: str,
    seat_index: int,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: ViewerDep,
) -> DraftResponse:
    """
    Start a new draft with the same packs as a completed one.

    The chosen seat becomes the viewer's seat; everyone else is a bot.
    The source cube must still exist and be visible to the viewer.
    """
    source = await _load_draft(session, draft_id, viewer, require_cube=True)
    draft = redraft(source, seat_index, viewer)
    await create_draft(session, draft)
    return await draft_response(session, draft, card_index)
