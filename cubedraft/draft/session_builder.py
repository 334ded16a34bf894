"""
Draft Session Builder.

Builds a pick-not-yet-started draft: every pack for every seat and round,
recorded with its seed in initial_state so the draft can be replayed
pack by pack.
"""

import logging
import uuid

from cubedraft.config import settings
from cubedraft.draft.bots import bot_seat_name, new_bot_descriptor
from cubedraft.draft.pack_generator import build_pool, generate_pack_from_pool
from cubedraft.draft.pack_template import resolve_template
from cubedraft.draft.rng import mint_seed, normalize_seed
from cubedraft.models.cube import Cube
from cubedraft.models.draft import (
    ANONYMOUS_SEAT_NAME,
    DraftCard,
    DraftSession,
    DraftStatus,
    PackRecord,
    Seat,
    Viewer,
)
from cubedraft.models.failure import ValidationError
from cubedraft.services.card_index import CardIndex

logger = logging.getLogger(__name__)

MIN_SEAT_COUNT = 2


def pack_seed(draft_seed: str, seat_index: int, round_index: int) -> str:
    """Seed of one pack, derived from the draft seed."""
    return f"{draft_seed}:{seat_index}:{round_index}"


def new_draft_id() -> str:
    return uuid.uuid4().hex


def human_seat(viewer: Viewer | None) -> Seat:
    """An empty, bot-free seat for the acting viewer (or an anonymous one)."""
    if viewer is None:
        return Seat(name=ANONYMOUS_SEAT_NAME, user_id=None, bot=None)
    return Seat(name=viewer.name, user_id=viewer.user_id, bot=None)


def validate_seat_index(seat_index: object, seat_count: int) -> int:
    """
    Check a zero-based seat index against a seat count.

    Raises:
        ValidationError: If the index is not an int in [0, seat_count)
    """
    if isinstance(seat_index, bool) or not isinstance(seat_index, int):
        raise ValidationError("Seat index must be an integer", detail=repr(seat_index))
    if seat_index < 0 or seat_index >= seat_count:
        raise ValidationError(
            f"Seat index {seat_index} is out of range",
            detail=f"Draft has {seat_count} seats",
        )
    return seat_index


def build_draft(
    cube: Cube,
    card_index: CardIndex,
    seat_count: int,
    human_seat_index: int,
    viewer: Viewer | None = None,
    seed: object = None,
) -> DraftSession:
    """
    Build a new draft session for a cube.

    Args:
        cube: Cube to draft
        card_index: Card metadata lookup
        seat_count: Number of seats at the table
        human_seat_index: The one seat without a bot
        viewer: Occupant of the human seat (anonymous if None)
        seed: Draft seed; pack seeds derive from it. Minted if None or empty.

    Returns:
        A DraftSession in the in_progress state with empty seats

    Raises:
        ValidationError: For a bad seat count, seat index, seed or template
        InsufficientCardsError: If any pack cannot be filled
        CardNotFoundError: If the cube references an unknown card
    """
    if isinstance(seat_count, bool) or not isinstance(seat_count, int):
        raise ValidationError("Seat count must be an integer", detail=repr(seat_count))
    if not MIN_SEAT_COUNT <= seat_count <= settings.max_seat_count:
        raise ValidationError(
            f"Seat count must be between {MIN_SEAT_COUNT} and {settings.max_seat_count}",
            detail=str(seat_count),
        )
    validate_seat_index(human_seat_index, seat_count)

    draft_seed = mint_seed() if seed is None or seed == "" else normalize_seed(seed)
    draft_format = resolve_template(cube)
    pool = build_pool(cube, card_index)

    cards: list[DraftCard] = []
    initial_state: list[list[PackRecord]] = []

    for seat_index in range(seat_count):
        seat_packs: list[PackRecord] = []
        for round_index, template in enumerate(draft_format.packs):
            seed_value = pack_seed(draft_seed, seat_index, round_index)
            pack = generate_pack_from_pool(pool, template, seed_value)

            indices: list[int] = []
            for card in pack:
                indices.append(len(cards))
                cards.append(DraftCard(index=len(cards), card_id=card.card_id, name=card.name))
            seat_packs.append(PackRecord(seed=seed_value, card_indices=tuple(indices)))
        initial_state.append(seat_packs)

    seats: list[Seat] = []
    for seat_index in range(seat_count):
        if seat_index == human_seat_index:
            seats.append(human_seat(viewer))
        else:
            seats.append(
                Seat(name=bot_seat_name(seat_index), bot=new_bot_descriptor(seat_index))
            )

    draft = DraftSession(
        id=new_draft_id(),
        cube_id=cube.id,
        seats=seats,
        cards=cards,
        basics=list(cube.basics),
        initial_state=initial_state,
        status=DraftStatus.IN_PROGRESS,
    )

    logger.info(
        "Built draft %s for cube %s: %d seats, %d packs, seed %s",
        draft.id,
        cube.id,
        seat_count,
        seat_count * draft_format.num_packs,
        draft_seed,
    )
    return draft
