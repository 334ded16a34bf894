"""
Cube API endpoints.

Create and view cubes, edit cube cards, preview a first pack, fetch
recommendations and analytics, and start drafts.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from cubedraft.api.deps import (
    CardIndexDep,
    SessionDep,
    ViewerDep,
    get_recommender,
    load_viewable_cube,
    require_viewer,
)
from cubedraft.api.drafts import DraftResponse, draft_response
from cubedraft.config import settings
from cubedraft.db import create_cube, create_draft, get_cube_analytics, update_cube
from cubedraft.db.operations import analytics_to_model
from cubedraft.draft.pack_generator import build_pool, generate_pack
from cubedraft.draft.pack_template import resolve_template
from cubedraft.draft.session_builder import build_draft
from cubedraft.models.card import CubeOverride
from cubedraft.models.cube import Cube, CubeCardEntry, DraftFormat, PackTemplate, SlotRule
from cubedraft.models.draft import Viewer
from cubedraft.models.failure import PermissionDeniedError
from cubedraft.services.card_index import CardIndex
from cubedraft.services.cube_cards import (
    CardRef,
    CardSnapshot,
    CardUpdate,
    update_cube_card,
    validate_update,
)
from cubedraft.services.recommender import RecommenderClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cubes", tags=["cubes"])


# --- Request / response models ---


class SlotRuleModel(BaseModel):
    primary: str = "*"
    fallback: str = "*"


class CubeCardInput(BaseModel):
    """A card to add to a new cube, with optional overrides."""

    card_id: str
    status: str | None = None
    finish: str | None = None
    tags: list[str] | None = None
    cmc: float | None = None
    type_line: str | None = None
    colors: list[str] | None = None
    notes: str | None = None


class CreateCubeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    cards: list[CubeCardInput] = Field(default_factory=list)
    basics: list[str] = Field(default_factory=list)
    draft_format: list[list[SlotRuleModel]] | None = None
    is_private: bool = False
    default_status: str = "Not Owned"
    use_cube_elo: bool = False


class CubeCardResponse(BaseModel):
    """A cube card with overrides applied."""

    entry_id: str
    card_id: str
    name: str
    rarity: str
    type_line: str
    colors: list[str]
    cmc: float
    tags: list[str]
    status: str
    finish: str
    notes: str


class CubeResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    is_private: bool
    default_status: str
    use_cube_elo: bool
    card_count: int
    cards: list[CubeCardResponse]
    basics: list[str]
    draft_format: list[list[SlotRuleModel]] | None = None


class CardSnapshotModel(BaseModel):
    card_id: str
    status: str
    cmc: float
    type_line: str
    tags: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    finish: str


class CardUpdateModel(BaseModel):
    card_id: str | None = None
    status: str | None = None
    finish: str | None = None
    tags: list[str] | None = None
    cmc: float | None = None
    type_line: str | None = None
    colors: list[str] | None = None
    notes: str | None = None


class UpdateCardRequest(BaseModel):
    """
    Address a card by entry_id, or by index together with a snapshot of
    the card the client expects to find there.
    """

    entry_id: str | None = None
    index: int | None = None
    snapshot: CardSnapshotModel | None = None
    updated: CardUpdateModel


class PackResponse(BaseModel):
    seed: str
    pack: list[str]


class CardSummary(BaseModel):
    id: str
    name: str
    set_code: str


class RecommendationsResponse(BaseModel):
    to_add: list[CardSummary]
    to_cut: list[CardSummary]


class CardRatingResponse(BaseModel):
    name: str
    pick_count: int
    pass_count: int
    elo: float


class AnalyticsResponse(BaseModel):
    cube_id: str
    cards: list[CardRatingResponse]


class StartDraftRequest(BaseModel):
    seat_count: int = Field(default_factory=lambda: settings.default_seat_count)
    human_seat: int = 0
    seed: str | int | None = None


# --- Helpers ---


def _format_from_request(packs: list[list[SlotRuleModel]] | None) -> DraftFormat | None:
    if packs is None:
        return None
    return DraftFormat(
        packs=tuple(
            PackTemplate(slots=tuple(SlotRule(s.primary, s.fallback) for s in pack))
            for pack in packs
        )
    )


def _format_to_response(draft_format: DraftFormat | None) -> list[list[SlotRuleModel]] | None:
    if draft_format is None:
        return None
    return [
        [SlotRuleModel(primary=s.primary, fallback=s.fallback) for s in pack.slots]
        for pack in draft_format.packs
    ]


def cube_response(cube: Cube, card_index: CardIndex) -> CubeResponse:
    pool = build_pool(cube, card_index)
    cards = [
        CubeCardResponse(
            entry_id=entry.entry_id,
            card_id=card.card_id,
            name=card.name,
            rarity=card.rarity,
            type_line=card.type_line,
            colors=list(card.colors),
            cmc=card.cmc,
            tags=list(card.tags),
            status=card.status,
            finish=card.finish,
            notes=card.notes,
        )
        for entry, card in zip(cube.cards, pool, strict=True)
    ]
    return CubeResponse(
        id=cube.id,
        name=cube.name,
        owner_id=cube.owner_id,
        is_private=cube.is_private,
        default_status=cube.default_status,
        use_cube_elo=cube.use_cube_elo,
        card_count=cube.card_count(),
        cards=cards,
        basics=list(cube.basics),
        draft_format=_format_to_response(cube.draft_format),
    )


def _summaries(cards: list) -> list[CardSummary]:
    return [CardSummary(id=c.id, name=c.name, set_code=c.set_code) for c in cards]


# --- Endpoints ---


@router.post("", response_model=CubeResponse, status_code=status.HTTP_201_CREATED)
async def create_cube_endpoint(
    request: CreateCubeRequest,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: Annotated[Viewer, Depends(require_viewer)],
) -> CubeResponse:
    """
    Create a cube owned by the viewer.

    Every card id must exist in the card index and every slot filter must
    parse.
    """
    entries: list[CubeCardEntry] = []
    for card in request.cards:
        override = CardUpdate(
            status=card.status,
            finish=card.finish,
            tags=tuple(card.tags) if card.tags is not None else None,
            cmc=card.cmc,
            type_line=card.type_line,
            colors=tuple(card.colors) if card.colors is not None else None,
            notes=card.notes,
        )
        validate_update(override)
        card_index.card_from_id(card.card_id)
        entries.append(
            CubeCardEntry(
                entry_id=uuid.uuid4().hex,
                card_id=card.card_id,
                override=CubeOverride(
                    status=override.status,
                    finish=override.finish,
                    tags=override.tags,
                    cmc=override.cmc,
                    type_line=override.type_line,
                    colors=override.colors,
                    notes=override.notes,
                ),
            )
        )
    for basic in request.basics:
        card_index.card_from_id(basic)

    cube = Cube(
        id=uuid.uuid4().hex,
        name=request.name,
        owner_id=viewer.user_id,
        cards=entries,
        basics=list(request.basics),
        draft_format=_format_from_request(request.draft_format),
        is_private=request.is_private,
        default_status=request.default_status,
        use_cube_elo=request.use_cube_elo,
    )
    if cube.draft_format is not None:
        resolve_template(cube)

    await create_cube(session, cube)
    logger.info("Created cube %s with %d cards", cube.id, cube.card_count())
    return cube_response(cube, card_index)


@router.get("/{cube_id}", response_model=CubeResponse)
async def get_cube_endpoint(
    cube_id: str,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: ViewerDep,
) -> CubeResponse:
    """Get a cube. Private cubes are only visible to their owner."""
    cube = await load_viewable_cube(session, cube_id, viewer)
    return cube_response(cube, card_index)


@router.post("/{cube_id}/cards/update", response_model=CubeResponse)
async def update_card_endpoint(
    cube_id: str,
    request: UpdateCardRequest,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: Annotated[Viewer, Depends(require_viewer)],
) -> CubeResponse:
    """
    Edit one card of a cube. Owner only.

    Returns 409 if a positional edit's snapshot no longer matches the card.
    """
    await load_viewable_cube(session, cube_id, viewer)

    snapshot = None
    if request.snapshot is not None:
        s = request.snapshot
        snapshot = CardSnapshot(
            card_id=s.card_id,
            status=s.status,
            cmc=s.cmc,
            type_line=s.type_line,
            tags=tuple(s.tags),
            colors=tuple(s.colors),
            finish=s.finish,
        )
    ref = CardRef(entry_id=request.entry_id, index=request.index, snapshot=snapshot)

    u = request.updated
    update = CardUpdate(
        card_id=u.card_id,
        status=u.status,
        finish=u.finish,
        tags=tuple(u.tags) if u.tags is not None else None,
        cmc=u.cmc,
        type_line=u.type_line,
        colors=tuple(u.colors) if u.colors is not None else None,
        notes=u.notes,
    )

    def transform(cube: Cube) -> Cube:
        if cube.owner_id != viewer.user_id:
            raise PermissionDeniedError("Insufficient permissions", detail=cube_id)
        return update_cube_card(cube, card_index, ref, update)

    updated = await update_cube(session, cube_id, transform)
    return cube_response(updated, card_index)


@router.get("/{cube_id}/p1p1", response_model=PackResponse)
async def p1p1_endpoint(
    cube_id: str,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: ViewerDep,
) -> PackResponse:
    """Preview a first pack from a fresh seed."""
    cube = await load_viewable_cube(session, cube_id, viewer)
    generated = generate_pack(cube, card_index)
    return PackResponse(seed=generated.seed, pack=generated.card_names())


@router.get("/{cube_id}/p1p1/{seed}", response_model=PackResponse)
async def p1p1_seeded_endpoint(
    cube_id: str,
    seed: str,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: ViewerDep,
) -> PackResponse:
    """Regenerate the first pack for a seed. Same seed, same cube, same pack."""
    cube = await load_viewable_cube(session, cube_id, viewer)
    generated = generate_pack(cube, card_index, seed=seed)
    return PackResponse(seed=generated.seed, pack=generated.card_names())


@router.get("/{cube_id}/recommendations", response_model=RecommendationsResponse)
async def recommendations_endpoint(
    cube_id: str,
    session: SessionDep,
    viewer: ViewerDep,
    recommender: Annotated[RecommenderClient, Depends(get_recommender)],
) -> RecommendationsResponse:
    """Cards to add and cut. Empty lists if the recommendation service is down."""
    cube = await load_viewable_cube(session, cube_id, viewer)
    recommendations = await recommender.get_recommendations(cube.id)
    return RecommendationsResponse(
        to_add=_summaries(recommendations.to_add),
        to_cut=_summaries(recommendations.to_cut),
    )


@router.get("/{cube_id}/analytics", response_model=AnalyticsResponse)
async def analytics_endpoint(
    cube_id: str,
    session: SessionDep,
    viewer: ViewerDep,
) -> AnalyticsResponse:
    """Per-card pick statistics, highest rated first."""
    cube = await load_viewable_cube(session, cube_id, viewer)
    db_analytic = await get_cube_analytics(session, cube.id)
    if db_analytic is None:
        return AnalyticsResponse(cube_id=cube.id, cards=[])

    analytics = analytics_to_model(db_analytic)
    ratings = sorted(analytics.cards.items(), key=lambda item: item[1].elo, reverse=True)
    return AnalyticsResponse(
        cube_id=cube.id,
        cards=[
            CardRatingResponse(
                name=name,
                pick_count=rating.pick_count,
                pass_count=rating.pass_count,
                elo=rating.elo,
            )
            for name, rating in ratings
        ],
    )


@router.post(
    "/{cube_id}/drafts",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_draft_endpoint(
    cube_id: str,
    request: StartDraftRequest,
    session: SessionDep,
    card_index: CardIndexDep,
    viewer: ViewerDep,
) -> DraftResponse:
    """Build every pack of a new draft and seat the viewer."""
    cube = await load_viewable_cube(session, cube_id, viewer)
    draft = build_draft(
        cube,
        card_index,
        seat_count=request.seat_count,
        human_seat_index=request.human_seat,
        viewer=viewer,
        seed=request.seed,
    )
    await create_draft(session, draft)
    return await draft_response(session, draft, card_index)
