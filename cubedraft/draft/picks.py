"""
Pick submission.

Seats are filled in one at a time as their picks are submitted. A draft
becomes complete (and read-only) once every seat has made all its picks.
"""

import logging
from dataclasses import dataclass, field, replace

from cubedraft.draft.session_builder import validate_seat_index
from cubedraft.models.draft import DraftSession, DraftStatus
from cubedraft.models.failure import InvalidStateError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class SeatSubmission:
    """The lists a seat reports after drafting."""

    pick_order: list[str] = field(default_factory=list)
    trash_order: list[str] = field(default_factory=list)
    drafted: list[str] = field(default_factory=list)
    sideboard: list[str] = field(default_factory=list)


def _check_card_ids(draft: DraftSession, label: str, card_ids: list[str]) -> None:
    known = draft.card_ids()
    unknown = [card_id for card_id in card_ids if card_id not in known]
    if unknown:
        raise ValidationError(
            f"{label} references cards that are not in this draft",
            detail=", ".join(unknown[:5]),
        )


def is_draft_finished(draft: DraftSession) -> bool:
    """True when every seat has made all of its picks."""
    expected = draft.picks_per_seat()
    return expected > 0 and all(len(seat.pick_order) >= expected for seat in draft.seats)


def submit_seat(
    draft: DraftSession,
    seat_index: int,
    submission: SeatSubmission,
) -> DraftSession:
    """
    Record one seat's picks.

    Returns:
        A new DraftSession; status is complete if this submission finished
        the last seat

    Raises:
        InvalidStateError: If the draft is already complete
        ValidationError: For a bad seat index, unknown card ids or more
            picks than the seat can make
    """
    if draft.is_complete:
        raise InvalidStateError(
            "Draft is complete and can no longer be changed",
            detail=f"Draft {draft.id}",
        )
    validate_seat_index(seat_index, draft.seat_count)

    if len(submission.pick_order) > draft.picks_per_seat():
        raise ValidationError(
            f"Seat {seat_index} submitted {len(submission.pick_order)} picks",
            detail=f"At most {draft.picks_per_seat()} picks per seat",
        )

    _check_card_ids(draft, "Pick order", submission.pick_order)
    _check_card_ids(draft, "Trash order", submission.trash_order)
    _check_card_ids(draft, "Drafted pool", submission.drafted)
    # Sideboards may hold basics, which are not part of the packs
    _check_card_ids(
        draft,
        "Sideboard",
        [card_id for card_id in submission.sideboard if card_id not in draft.basics],
    )

    seats = list(draft.seats)
    seats[seat_index] = replace(
        seats[seat_index],
        pick_order=list(submission.pick_order),
        trash_order=list(submission.trash_order),
        drafted=list(submission.drafted),
        sideboard=list(submission.sideboard),
    )

    updated = replace(draft, seats=seats)
    if is_draft_finished(updated):
        updated = replace(updated, status=DraftStatus.COMPLETE)
        logger.info("Draft %s complete", draft.id)

    return updated
