"""
Cube recommendation client.

Asks the external recommendation service which cards to add to and cut
from a cube. The service is optional: when it is down or misbehaves the
cube page still renders, just without suggestions.
"""

import logging
from dataclasses import dataclass, field

import httpx

from cubedraft.config import settings
from cubedraft.models.card import CardMetadata
from cubedraft.services.card_index import CardIndex

logger = logging.getLogger(__name__)

# The service ranks its whole vocabulary; ask for plenty
NUM_RECOMMENDATIONS = 1000


@dataclass
class Recommendations:
    """Resolved suggestions, best first."""

    to_add: list[CardMetadata] = field(default_factory=list)
    to_cut: list[CardMetadata] = field(default_factory=list)


def _resolve(scores: dict[str, float], card_index: CardIndex, descending: bool) -> list[CardMetadata]:
    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=descending)
    cards: list[CardMetadata] = []
    for name, _score in ranked:
        card = card_index.get_most_reasonable(name)
        if card is None:
            logger.debug("Recommended card %r not in card index", name)
            continue
        cards.append(card)
    return cards


class RecommenderClient:
    """Thin async client for the recommendation service."""

    def __init__(
        self,
        card_index: CardIndex,
        base_url: str | None = None,
        timeout: float | None = None,
        public_host: str | None = None,
    ) -> None:
        self.card_index = card_index
        self.base_url = (base_url or settings.recommender_url).rstrip("/")
        self.timeout = timeout or settings.recommender_timeout
        self.public_host = public_host or settings.public_host

    async def get_recommendations(self, cube_id: str) -> Recommendations:
        """
        Fetch add/cut suggestions for a cube.

        Never raises for service failures: a timeout, transport error,
        non-200 status or malformed body is logged and yields empty lists.
        """
        params = {
            "cube_name": cube_id,
            "num_recs": str(NUM_RECOMMENDATIONS),
            "root": self.public_host,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{self.base_url}/", params=params)
        except httpx.HTTPError as e:
            logger.warning("Recommendation service unreachable for cube %s: %s", cube_id, e)
            return Recommendations()

        if response.status_code != 200:
            logger.warning(
                "Recommendation service returned %d for cube %s",
                response.status_code,
                cube_id,
            )
            return Recommendations()

        try:
            payload = response.json()
            additions = {str(k): float(v) for k, v in payload.get("additions", {}).items()}
            cuts = {str(k): float(v) for k, v in payload.get("cuts", {}).items()}
        except (ValueError, AttributeError, TypeError) as e:
            logger.warning("Malformed recommendation response for cube %s: %s", cube_id, e)
            return Recommendations()

        return Recommendations(
            to_add=_resolve(additions, self.card_index, descending=True),
            # Lower scores are stronger cut candidates
            to_cut=_resolve(cuts, self.card_index, descending=False),
        )
