"""
Draft Analytics Aggregator.

Folds a completed draft's picks into a cube's running card ratings.

For each seat:
- every picked card gains one pick
- every trashed (seen, not picked) card gains one pass
- every picked card wins a pairwise Elo match against every trashed card

Ratings are bucketed by lower-cased card name. The fold does NOT
deduplicate: callers fold each draft once. Folding the same draft twice
counts its picks twice.
"""

from dataclasses import replace
from typing import TYPE_CHECKING

from cubedraft.config import settings
from cubedraft.models.analytics import CardRating, CubeAnalytics
from cubedraft.models.draft import DraftSession

if TYPE_CHECKING:
    from cubedraft.services.card_index import CardIndex


def expected_score(rating: float, opponent: float, scale: float | None = None) -> float:
    """Elo win expectation of `rating` against `opponent`."""
    scale = scale or settings.elo_scale
    return 1.0 / (1.0 + 10 ** ((opponent - rating) / scale))


def adjust_elo(
    winner: float,
    loser: float,
    k_factor: float | None = None,
) -> tuple[float, float]:
    """New (winner, loser) ratings after one pick-over-pass match."""
    k_factor = k_factor if k_factor is not None else settings.elo_k_factor
    winner_expected = expected_score(winner, loser)
    delta = k_factor * (1.0 - winner_expected)
    return winner + delta, loser - delta


def fold(
    draft: DraftSession,
    card_index: "CardIndex",
    analytics: CubeAnalytics,
) -> CubeAnalytics:
    """
    Fold one draft into a cube's analytics.

    Args:
        draft: Draft whose seats' pick and trash orders are counted
        card_index: Resolves card ids to names and starting ratings
        analytics: Current aggregate (not mutated)

    Returns:
        The updated aggregate

    Raises:
        CardNotFoundError: If a pick references an unknown card id
    """
    ratings = dict(analytics.cards)

    def bucket(card_id: str) -> str:
        card = card_index.card_from_id(card_id)
        key = card.name_lower
        if key not in ratings:
            ratings[key] = CardRating(elo=card.elo or settings.elo_base)
        return key

    for seat in draft.seats:
        picked = [bucket(card_id) for card_id in seat.pick_order]
        passed = [bucket(card_id) for card_id in seat.trash_order]

        for key in picked:
            ratings[key] = replace(ratings[key], pick_count=ratings[key].pick_count + 1)
        for key in passed:
            ratings[key] = replace(ratings[key], pass_count=ratings[key].pass_count + 1)

        for winner_key in picked:
            for loser_key in passed:
                if winner_key == loser_key:
                    continue
                winner_elo, loser_elo = adjust_elo(
                    ratings[winner_key].elo,
                    ratings[loser_key].elo,
                )
                ratings[winner_key] = replace(ratings[winner_key], elo=winner_elo)
                ratings[loser_key] = replace(ratings[loser_key], elo=loser_elo)

    return CubeAnalytics(cube_id=analytics.cube_id, cards=ratings)
