"""
Redraft Transform.

Derives a fresh draft from a completed one, as if the acting viewer had
sat in a chosen seat. The packs (cards, basics and initial_state with its
seeds) are reused verbatim; only the seating changes and every seat starts
empty. The source draft is never mutated.
"""

import copy
import logging

from cubedraft.draft.bots import new_bot_descriptor
from cubedraft.draft.session_builder import human_seat, new_draft_id, validate_seat_index
from cubedraft.models.draft import DraftSession, DraftStatus, Seat, Viewer
from cubedraft.models.failure import InvalidStateError

logger = logging.getLogger(__name__)


def rotate_left(items: list, positions: int) -> list:
    """New list rotated left: the item at `positions` moves to index 0."""
    if not items:
        return []
    positions %= len(items)
    return items[positions:] + items[:positions]


def redraft(
    source: DraftSession,
    seat_index: int,
    viewer: Viewer | None = None,
) -> DraftSession:
    """
    Create a new draft replaying a completed draft's packs.

    Args:
        source: A completed draft
        seat_index: Seat to redraft as; it becomes seat 0
        viewer: Occupant of the new human seat (anonymous if None)

    Returns:
        A new in_progress DraftSession with a new id

    Raises:
        InvalidStateError: If the source draft is not complete
        ValidationError: If seat_index is not in [0, seat_count)
    """
    if not source.is_complete:
        raise InvalidStateError(
            "Only completed drafts can be redrafted",
            detail=f"Draft {source.id} is {source.status.value}",
        )
    validate_seat_index(seat_index, source.seat_count)

    rotated = rotate_left(list(source.seats), seat_index)

    seats: list[Seat] = []
    for position, old_seat in enumerate(rotated):
        if position == 0:
            seats.append(human_seat(viewer))
        else:
            seats.append(Seat(name=old_seat.name, bot=new_bot_descriptor(position)))

    draft = DraftSession(
        id=new_draft_id(),
        cube_id=source.cube_id,
        seats=seats,
        cards=list(source.cards),
        basics=list(source.basics),
        initial_state=copy.deepcopy(source.initial_state),
        status=DraftStatus.IN_PROGRESS,
    )

    logger.info(
        "Redraft %s created from draft %s as seat %d",
        draft.id,
        source.id,
        seat_index,
    )
    return draft
