"""
Pack Template Resolver.

Turns a cube's configured pack structure into concrete slot selections.

INVARIANTS:
1. Each slot consumes RNG draws only for its own selection, in slot order
2. A card id is chosen at most once per pack
3. A slot that cannot be filled fails the whole pack (InsufficientCardsError)
"""

from cubedraft.config import settings
from cubedraft.draft.filters import parse_filter
from cubedraft.draft.rng import SeededRNG
from cubedraft.models.card import CubeCard
from cubedraft.models.cube import Cube, DraftFormat, PackTemplate, SlotRule
from cubedraft.models.failure import InsufficientCardsError, ValidationError


def default_draft_format(
    num_packs: int | None = None,
    pack_size: int | None = None,
) -> DraftFormat:
    """Rounds of unrestricted slots, sized from settings by default."""
    num_packs = num_packs or settings.default_num_packs
    pack_size = pack_size or settings.default_pack_size
    return DraftFormat(packs=tuple(PackTemplate.uniform(pack_size) for _ in range(num_packs)))


def resolve_template(cube: Cube) -> DraftFormat:
    """
    The cube's draft format, or the default one.

    Every filter expression is compiled up front so a malformed template
    fails before any RNG draw.

    Raises:
        ValidationError: If the format is empty or a filter does not parse
    """
    draft_format = cube.draft_format or default_draft_format()

    if not draft_format.packs:
        raise ValidationError(f"Cube '{cube.id}' has a draft format with no packs")

    for round_index, pack in enumerate(draft_format.packs):
        if not pack.slots:
            raise ValidationError(f"Pack {round_index} of cube '{cube.id}' has no slots")
        for slot in pack.slots:
            parse_filter(slot.primary)
            parse_filter(slot.fallback)

    return draft_format


def resolve_slot(
    pool: list[CubeCard],
    slot_rule: SlotRule,
    already_chosen: set[str],
    rng: SeededRNG,
    slot_index: int = 0,
) -> CubeCard:
    """
    Choose one card for a slot.

    Filters the pool by the slot's primary filter, excluding card ids already
    in the pack, and picks uniformly with one RNG draw. Falls back to the
    fallback filter when the primary filter has no candidates.

    Raises:
        InsufficientCardsError: If neither filter has a candidate left
    """
    for expression in (slot_rule.primary, slot_rule.fallback):
        predicate = parse_filter(expression)
        candidates = [
            card for card in pool if card.card_id not in already_chosen and predicate(card)
        ]
        if candidates:
            return rng.choice(candidates)

    raise InsufficientCardsError(
        slot_index=slot_index,
        pool_size=len(pool),
        detail=f"primary={slot_rule.primary!r} fallback={slot_rule.fallback!r}",
    )
