"""Tests for seat pick submission."""

import pytest

from cubedraft.draft.picks import SeatSubmission, is_draft_finished, submit_seat
from cubedraft.draft.session_builder import build_draft
from cubedraft.models.draft import DraftStatus
from cubedraft.models.failure import InvalidStateError, ValidationError


@pytest.fixture
def draft(sample_cube, card_index):
    return build_draft(sample_cube, card_index, seat_count=2, human_seat_index=0, seed="picks")


def _picks(draft, seat_index: int) -> list[str]:
    per_seat = draft.picks_per_seat()
    return [card.card_id for card in draft.cards[seat_index * per_seat : (seat_index + 1) * per_seat]]


class TestSubmitSeat:
    def test_records_seat(self, draft) -> None:
        """Submitted lists land on the seat; the input draft is unchanged."""
        picks = _picks(draft, 0)
        updated = submit_seat(draft, 0, SeatSubmission(pick_order=picks, drafted=picks[:40], sideboard=picks[40:]))

        assert updated.seats[0].pick_order == picks
        assert updated.seats[0].sideboard == picks[40:]
        assert draft.seats[0].pick_order == []

    def test_last_seat_completes_draft(self, draft) -> None:
        """The draft completes once every seat has made all its picks."""
        first = submit_seat(draft, 0, SeatSubmission(pick_order=_picks(draft, 0)))
        assert first.status == DraftStatus.IN_PROGRESS
        assert not is_draft_finished(first)

        second = submit_seat(first, 1, SeatSubmission(pick_order=_picks(draft, 1)))
        assert second.status == DraftStatus.COMPLETE

    def test_partial_picks_do_not_complete(self, draft) -> None:
        """Seats short of their picks keep the draft open."""
        updated = submit_seat(draft, 0, SeatSubmission(pick_order=_picks(draft, 0)))
        updated = submit_seat(updated, 1, SeatSubmission(pick_order=_picks(draft, 1)[:10]))
        assert updated.status == DraftStatus.IN_PROGRESS

    def test_complete_draft_rejects_submissions(self, draft, complete_draft) -> None:
        """A complete draft is read-only."""
        done = complete_draft(draft)
        with pytest.raises(InvalidStateError):
            submit_seat(done, 0, SeatSubmission())

    def test_unknown_card_rejected(self, draft) -> None:
        """Picks must come from the draft's packs."""
        with pytest.raises(ValidationError):
            submit_seat(draft, 0, SeatSubmission(pick_order=["not-in-draft"]))

    def test_too_many_picks_rejected(self, draft) -> None:
        """A seat cannot pick more cards than it is dealt."""
        too_many = _picks(draft, 0) + _picks(draft, 1)[:1]
        with pytest.raises(ValidationError):
            submit_seat(draft, 0, SeatSubmission(pick_order=too_many))

    def test_basics_allowed_in_sideboard(self, draft) -> None:
        """Basic lands may be added to the sideboard."""
        updated = submit_seat(draft, 0, SeatSubmission(sideboard=["plains-basic"]))
        assert updated.seats[0].sideboard == ["plains-basic"]

    def test_bad_seat_index(self, draft) -> None:
        """Seat index must be in range."""
        with pytest.raises(ValidationError):
            submit_seat(draft, 2, SeatSubmission())
