"""
Pack generation service.

Generates one pack from a cube's card pool. The same pool, template and
seed always reproduce the identical pack, which is what lets a recorded
seed show "this exact pack" again.
"""

import logging
from dataclasses import dataclass

from cubedraft.draft.pack_template import resolve_slot, resolve_template
from cubedraft.draft.rng import SeededRNG, mint_seed, normalize_seed
from cubedraft.models.card import CubeCard, merge_card
from cubedraft.models.cube import Cube, PackTemplate
from cubedraft.services.card_index import CardIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedPack:
    """A pack and the seed that produced it."""

    seed: str
    pack: list[CubeCard]

    def card_names(self) -> list[str]:
        return [card.name for card in self.pack]


def build_pool(cube: Cube, card_index: CardIndex) -> list[CubeCard]:
    """
    Merged card views for every entry of the cube, in list order.

    Raises:
        CardNotFoundError: If an entry references an unknown card id
    """
    return [
        merge_card(
            card_index.card_from_id(entry.card_id),
            entry.override,
            default_status=cube.default_status,
        )
        for entry in cube.cards
    ]


def generate_pack_from_pool(
    pool: list[CubeCard],
    template: PackTemplate,
    seed: str,
) -> list[CubeCard]:
    """
    Fill a template from a pool with a fresh RNG keyed by `seed`.

    Raises:
        InsufficientCardsError: If any slot cannot be filled. No partial
            pack is returned.
    """
    rng = SeededRNG(seed)
    chosen_ids: set[str] = set()
    pack: list[CubeCard] = []

    for slot_index, slot_rule in enumerate(template.slots):
        card = resolve_slot(pool, slot_rule, chosen_ids, rng, slot_index=slot_index)
        chosen_ids.add(card.card_id)
        pack.append(card)

    return pack


def generate_pack(
    cube: Cube,
    card_index: CardIndex,
    seed: object = None,
    template: PackTemplate | None = None,
) -> GeneratedPack:
    """
    Generate one pack from a cube.

    Args:
        cube: Cube whose card list is the pool
        card_index: Card metadata lookup
        seed: Replay seed. None or an empty string mints a fresh seed.
        template: Pack template; defaults to the first round of the
            cube's draft format

    Returns:
        GeneratedPack with the seed used (persist it for exact replay)

    Raises:
        ValidationError: If the seed or template is malformed
        InsufficientCardsError: If the pool cannot fill the template
        CardNotFoundError: If the cube references an unknown card
    """
    seed_value = mint_seed() if seed is None or seed == "" else normalize_seed(seed)

    if template is None:
        template = resolve_template(cube).packs[0]

    pool = build_pool(cube, card_index)
    pack = generate_pack_from_pool(pool, template, seed_value)

    logger.info(
        "Generated %d-card pack for cube %s with seed %s",
        len(pack),
        cube.id,
        seed_value,
    )
    return GeneratedPack(seed=seed_value, pack=pack)
