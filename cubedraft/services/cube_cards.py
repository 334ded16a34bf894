"""
Cube card editing.

An entry is addressed by its stable entry_id. Older clients address it
by list position and send a snapshot of the card they think is there;
the edit is only applied if the entry at that position still matches.
"""

from dataclasses import dataclass, replace

from cubedraft.models.card import CubeCard, CubeOverride, merge_card
from cubedraft.models.cube import Cube, CubeCardEntry
from cubedraft.models.failure import ConflictError, NotFoundError, ValidationError
from cubedraft.services.card_index import CardIndex

VALID_COLORS = frozenset("WUBRG")


@dataclass(frozen=True, slots=True)
class CardSnapshot:
    """The fields a client compares when addressing an entry by position."""

    card_id: str
    status: str
    cmc: float
    type_line: str
    tags: tuple[str, ...]
    colors: tuple[str, ...]
    finish: str

    @classmethod
    def from_card(cls, card: CubeCard) -> "CardSnapshot":
        return cls(
            card_id=card.card_id,
            status=card.status,
            cmc=card.cmc,
            type_line=card.type_line,
            tags=card.tags,
            colors=card.colors,
            finish=card.finish,
        )


@dataclass(frozen=True, slots=True)
class CardRef:
    """
    Where an edit applies.

    Either entry_id is set, or index and snapshot both are.
    """

    entry_id: str | None = None
    index: int | None = None
    snapshot: CardSnapshot | None = None


@dataclass(frozen=True, slots=True)
class CardUpdate:
    """Fields to change. None leaves the current value in place."""

    card_id: str | None = None
    status: str | None = None
    finish: str | None = None
    tags: tuple[str, ...] | None = None
    cmc: float | None = None
    type_line: str | None = None
    colors: tuple[str, ...] | None = None
    notes: str | None = None


def cards_are_equivalent(a: CardSnapshot, b: CardSnapshot) -> bool:
    """Two cards are equivalent when every compared field matches."""
    return (
        a.card_id == b.card_id
        and a.status == b.status
        and a.cmc == b.cmc
        and a.type_line == b.type_line
        and list(a.tags) == list(b.tags)
        and list(a.colors) == list(b.colors)
        and a.finish == b.finish
    )


def validate_update(update: CardUpdate) -> None:
    """
    Raises:
        ValidationError: For a negative or fractional cmc (other than
            halves) or colors outside WUBRG
    """
    if update.cmc is not None and (update.cmc < 0 or (update.cmc * 2) % 1 != 0):
        raise ValidationError(
            "Failed input validation",
            detail=f"cmc must be a non-negative multiple of 0.5, got {update.cmc}",
        )
    if update.colors is not None:
        invalid = [color for color in update.colors if color not in VALID_COLORS]
        if invalid:
            raise ValidationError(
                "Failed input validation",
                detail=f"Unknown colors: {', '.join(invalid)}",
            )


def _locate(cube: Cube, card_index: CardIndex, ref: CardRef) -> int:
    if ref.entry_id is not None:
        position = cube.find_entry(ref.entry_id)
        if position is None:
            raise NotFoundError("No such card", detail=f"Entry '{ref.entry_id}'")
        return position

    if ref.index is None or ref.snapshot is None:
        raise ValidationError(
            "Failed input validation",
            detail="Address a card by entry_id, or by index with a snapshot",
        )
    if ref.index < 0 or ref.index >= len(cube.cards):
        raise ValidationError("No such card", detail=f"Index {ref.index}")

    entry = cube.cards[ref.index]
    current = merge_card(
        card_index.card_from_id(entry.card_id),
        entry.override,
        default_status=cube.default_status,
    )
    if not cards_are_equivalent(ref.snapshot, CardSnapshot.from_card(current)):
        raise ConflictError(
            "Cards not equivalent",
            detail=f"The card at index {ref.index} has changed",
        )
    return ref.index


def _apply(entry: CubeCardEntry, update: CardUpdate) -> CubeCardEntry:
    override = entry.override
    merged = CubeOverride(
        status=update.status if update.status is not None else override.status,
        finish=update.finish if update.finish is not None else override.finish,
        tags=update.tags if update.tags is not None else override.tags,
        cmc=update.cmc if update.cmc is not None else override.cmc,
        type_line=update.type_line if update.type_line is not None else override.type_line,
        colors=update.colors if update.colors is not None else override.colors,
        notes=update.notes if update.notes is not None else override.notes,
    )
    return replace(
        entry,
        card_id=update.card_id if update.card_id is not None else entry.card_id,
        override=merged,
    )


def update_cube_card(
    cube: Cube,
    card_index: CardIndex,
    ref: CardRef,
    update: CardUpdate,
) -> Cube:
    """
    Apply an edit to one card of a cube.

    Returns:
        A new Cube; the input cube is not modified

    Raises:
        ValidationError: For invalid fields or a bad position
        NotFoundError: For an unknown entry_id
        CardNotFoundError: If the replacement card_id is unknown
        ConflictError: If the positional snapshot no longer matches
    """
    validate_update(update)
    if update.card_id is not None:
        card_index.card_from_id(update.card_id)

    position = _locate(cube, card_index, ref)

    cards = list(cube.cards)
    cards[position] = _apply(cards[position], update)
    return replace(cube, cards=cards)
