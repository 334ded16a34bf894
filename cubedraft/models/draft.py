"""
Draft Session Models.

A DraftSession belongs to one cube by reference only: deleting the cube
leaves the draft with a stale cube_id. Sessions are treated as values by
the draft core; every transform returns a new session.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ANONYMOUS_SEAT_NAME = "Anonymous"


@dataclass(frozen=True, slots=True)
class Viewer:
    """The acting user, as supplied by the authentication layer."""

    user_id: str
    name: str


class BotKind(str, Enum):
    """Bot strategies. Pick logic lives outside the draft core."""

    RATING = "rating"
    COLOR_FOCUSED = "color_focused"
    RANDOM = "random"


@dataclass(frozen=True, slots=True)
class BotDescriptor:
    """Opaque tagged strategy value handed to the bot simulator."""

    kind: BotKind
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BotDescriptor":
        return cls(kind=BotKind(data["kind"]), params=dict(data.get("params", {})))


@dataclass
class Seat:
    """
    One seat at the draft table.

    Attributes:
        name: Display name
        user_id: Human occupant, None for bots and anonymous humans
        bot: Bot strategy, None for the human seat
        drafted: Card ids in the drafted pool
        sideboard: Card ids moved to the sideboard
        pick_order: Card ids in the order they were picked
        trash_order: Card ids seen but not picked, in order
    """

    name: str
    user_id: str | None = None
    bot: BotDescriptor | None = None
    drafted: list[str] = field(default_factory=list)
    sideboard: list[str] = field(default_factory=list)
    pick_order: list[str] = field(default_factory=list)
    trash_order: list[str] = field(default_factory=list)

    @property
    def is_bot(self) -> bool:
        return self.bot is not None


@dataclass(frozen=True, slots=True)
class PackRecord:
    """A generated pack: the seed that produced it and its cards."""

    seed: str
    card_indices: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class DraftCard:
    """An entry of the draft's flattened card pool."""

    index: int
    card_id: str
    name: str


class DraftStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass
class DraftSession:
    """
    A multi-seat draft.

    Attributes:
        id: Draft identifier
        cube_id: Source cube (may no longer exist)
        seats: Ordered seats; position determines pack rotation
        cards: Flattened pool of every card in every pack
        basics: Basic land card ids
        initial_state: Packs per seat per round, with their seeds
        status: Lifecycle state
    """

    id: str
    cube_id: str
    seats: list[Seat]
    cards: list[DraftCard]
    basics: list[str] = field(default_factory=list)
    initial_state: list[list[PackRecord]] = field(default_factory=list)
    status: DraftStatus = DraftStatus.IN_PROGRESS

    @property
    def seat_count(self) -> int:
        return len(self.seats)

    @property
    def is_complete(self) -> bool:
        return self.status == DraftStatus.COMPLETE

    def seed_sequence(self) -> list[str]:
        """Every pack seed, seat-major then round order."""
        return [pack.seed for seat_packs in self.initial_state for pack in seat_packs]

    def picks_per_seat(self) -> int:
        """Picks each seat makes over the whole draft."""
        if not self.seats:
            return 0
        return len(self.cards) // len(self.seats)

    def card_ids(self) -> set[str]:
        return {card.card_id for card in self.cards}
