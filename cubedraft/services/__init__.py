"""
CubeDraft services.

Card lookups, cube editing, the featured rotation and recommendations.
"""

from cubedraft.services.card_index import (
    CardIndex,
    get_card_index,
    load_card_index,
)
from cubedraft.services.cube_cards import (
    CardRef,
    CardSnapshot,
    CardUpdate,
    cards_are_equivalent,
    update_cube_card,
)
from cubedraft.services.featured_queue import (
    FeaturedQueueStore,
    RotationResult,
    SqlFeaturedQueueStore,
    add_cube,
    is_in_queue,
    move_cube,
    remove_cube,
    rotate,
    set_rotation_period,
)
from cubedraft.services.recommender import Recommendations, RecommenderClient

__all__ = [
    "CardIndex",
    "CardRef",
    "CardSnapshot",
    "CardUpdate",
    "FeaturedQueueStore",
    "Recommendations",
    "RecommenderClient",
    "RotationResult",
    "SqlFeaturedQueueStore",
    "add_cube",
    "cards_are_equivalent",
    "get_card_index",
    "is_in_queue",
    "load_card_index",
    "move_cube",
    "remove_cube",
    "rotate",
    "set_rotation_period",
    "update_cube_card",
]
