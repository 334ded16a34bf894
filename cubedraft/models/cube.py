from dataclasses import dataclass, field

from cubedraft.models.card import CubeOverride

MATCH_ALL = "*"


@dataclass(frozen=True, slots=True)
class SlotRule:
    """
    One slot of a pack template.

    Attributes:
        primary: Filter expression for the slot (e.g., "rarity:rare")
        fallback: Filter used when the primary filter has no candidates left
    """

    primary: str = MATCH_ALL
    fallback: str = MATCH_ALL


@dataclass(frozen=True, slots=True)
class PackTemplate:
    """Ordered slot rules for one pack. Slots are resolved left to right."""

    slots: tuple[SlotRule, ...]

    @property
    def size(self) -> int:
        return len(self.slots)

    @classmethod
    def uniform(cls, size: int) -> "PackTemplate":
        """A template of `size` slots that accept any card."""
        return cls(slots=tuple(SlotRule() for _ in range(size)))


@dataclass(frozen=True, slots=True)
class DraftFormat:
    """One pack template per draft round."""

    packs: tuple[PackTemplate, ...]

    @property
    def num_packs(self) -> int:
        return len(self.packs)

    def cards_per_seat(self) -> int:
        return sum(pack.size for pack in self.packs)


@dataclass(frozen=True, slots=True)
class CubeCardEntry:
    """
    A card in a cube's list.

    The entry_id is the stable address of an entry. Positional indexes are
    only valid within the read-modify-write that produced them.
    """

    entry_id: str
    card_id: str
    override: CubeOverride = field(default_factory=CubeOverride)


@dataclass
class Cube:
    """
    A custom card pool.

    Attributes:
        id: Cube identifier
        name: Display name
        owner_id: Owning user
        cards: Ordered card list
        basics: Card ids offered as basic lands during deckbuilding
        draft_format: Configured pack structure (None = default format)
        is_private: Private cubes are only visible to their owner
        default_status: Status applied to cards without a status override
        use_cube_elo: Prefer cube analytics ratings over global ratings
    """

    id: str
    name: str
    owner_id: str
    cards: list[CubeCardEntry] = field(default_factory=list)
    basics: list[str] = field(default_factory=list)
    draft_format: DraftFormat | None = None
    is_private: bool = False
    default_status: str = "Not Owned"
    use_cube_elo: bool = False

    def card_count(self) -> int:
        return len(self.cards)

    def find_entry(self, entry_id: str) -> int | None:
        """Position of an entry by its stable id, or None."""
        for index, entry in enumerate(self.cards):
            if entry.entry_id == entry_id:
                return index
        return None


def is_cube_viewable(cube: Cube | None, viewer_id: str | None) -> bool:
    """Private cubes are visible to their owner only."""
    if cube is None:
        return False
    if cube.is_private:
        return viewer_id is not None and viewer_id == cube.owner_id
    return True
