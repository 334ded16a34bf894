"""
Card Models.

Card data reaches the draft core from two sources:
- CardMetadata: immutable printing data owned by the Card Index
- CubeOverride: cube-local overrides stored on a cube card entry

CubeCard is the merged view the pack filters evaluate. It is only ever
built by merge_card(), where a present, non-None override always wins.
"""

from dataclasses import dataclass, field
from typing import Any

DEFAULT_CARD_ELO = 1200.0


@dataclass(frozen=True, slots=True)
class CardMetadata:
    """
    A single printing from the Card Index.

    Attributes:
        id: Scryfall printing id (the only unique key)
        name: Card name, shared by every printing
        set_code: Lower-case set code (e.g., "eld")
        collector_number: Collector number within set
        rarity: common, uncommon, rare, mythic (or special)
        type_line: Full type line
        color_identity: Tuple of color letters (W, U, B, R, G)
        cmc: Mana value
        legalities: Format -> legality status
        prices: Price name -> USD value (usd, usd_foil, usd_etched)
        elo: Global pick rating
        released_at: ISO release date, used to order printings
    """

    id: str
    name: str
    set_code: str = ""
    collector_number: str = ""
    rarity: str = "common"
    type_line: str = ""
    color_identity: tuple[str, ...] = ()
    cmc: float = 0.0
    legalities: dict[str, str] = field(default_factory=dict)
    prices: dict[str, float | None] = field(default_factory=dict)
    elo: float = DEFAULT_CARD_ELO
    released_at: str = ""

    @property
    def name_lower(self) -> str:
        return self.name.lower()

    @classmethod
    def from_scryfall(cls, data: dict[str, Any]) -> "CardMetadata":
        """Build metadata from a Scryfall-style card record."""
        prices: dict[str, float | None] = {}
        for key, value in (data.get("prices") or {}).items():
            prices[key] = float(value) if value is not None else None

        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            set_code=str(data.get("set", "")).lower(),
            collector_number=str(data.get("collector_number", "")),
            rarity=str(data.get("rarity", "common")),
            type_line=str(data.get("type_line", "")),
            color_identity=tuple(data.get("color_identity", [])),
            cmc=float(data.get("cmc", 0.0)),
            legalities=dict(data.get("legalities", {})),
            prices=prices,
            elo=float(data.get("elo", DEFAULT_CARD_ELO)),
            released_at=str(data.get("released_at", "")),
        )


@dataclass(frozen=True, slots=True)
class CubeOverride:
    """Cube-local overrides. None means "use the card's own value"."""

    status: str | None = None
    finish: str | None = None
    tags: tuple[str, ...] | None = None
    cmc: float | None = None
    type_line: str | None = None
    colors: tuple[str, ...] | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class CubeCard:
    """Card metadata with cube overrides applied."""

    card_id: str
    name: str
    set_code: str
    rarity: str
    type_line: str
    colors: tuple[str, ...]
    cmc: float
    tags: tuple[str, ...]
    status: str
    finish: str
    elo: float
    notes: str = ""

    @property
    def name_lower(self) -> str:
        return self.name.lower()


def _pick(override_value: Any, base_value: Any) -> Any:
    return override_value if override_value is not None else base_value


def merge_card(
    metadata: CardMetadata,
    override: CubeOverride | None = None,
    default_status: str = "Not Owned",
    default_finish: str = "Non-foil",
) -> CubeCard:
    """
    Combine Card Index metadata with a cube override.

    Field precedence: override value when present and not None, then the
    metadata value, then the cube default (status/finish only).
    """
    override = override or CubeOverride()
    return CubeCard(
        card_id=metadata.id,
        name=metadata.name,
        set_code=metadata.set_code,
        rarity=metadata.rarity,
        type_line=_pick(override.type_line, metadata.type_line),
        colors=_pick(override.colors, metadata.color_identity),
        cmc=_pick(override.cmc, metadata.cmc),
        tags=_pick(override.tags, ()),
        status=_pick(override.status, default_status),
        finish=_pick(override.finish, default_finish),
        elo=metadata.elo,
        notes=_pick(override.notes, ""),
    )
