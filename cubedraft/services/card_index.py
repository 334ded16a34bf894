"""
Card Index service.

Loads Scryfall bulk card data and answers the lookups the draft core
needs: by printing id, by name, and across printings.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx

from cubedraft.config import settings
from cubedraft.models.card import CardMetadata
from cubedraft.models.failure import CardNotFoundError

SCRYFALL_BULK_API = "https://api.scryfall.com/bulk-data"

# Printing preference for name lookups
PREFER_RECENT = "recent"
PREFER_FIRST = "first"


class CardIndex:
    """
    Immutable lookup over card printings.

    Multiple printings share a name; the printing id is the only unique key.
    Name lookups are case-insensitive.
    """

    def __init__(self, cards: list[CardMetadata]) -> None:
        self._by_id: dict[str, CardMetadata] = {}
        self._ids_by_name: dict[str, list[str]] = {}

        for card in cards:
            self._by_id[card.id] = card
            self._ids_by_name.setdefault(card.name_lower, []).append(card.id)

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> "CardIndex":
        """Build an index from Scryfall-style card records."""
        return cls([CardMetadata.from_scryfall(record) for record in records])

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._by_id

    def card_from_id(self, card_id: str) -> CardMetadata:
        """
        Look up a printing by id.

        Raises:
            CardNotFoundError: If the id is unknown. A missing id is a data
                defect and is never masked with a placeholder card.
        """
        card = self._by_id.get(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    def get_ids_from_name(self, name: str) -> list[str]:
        """All printing ids for a card name. Empty if the name is unknown."""
        return list(self._ids_by_name.get(name.lower(), []))

    def all_versions(self, card: CardMetadata) -> list[str]:
        """Ids of every printing sharing this card's name."""
        return self.get_ids_from_name(card.name)

    def get_most_reasonable(
        self,
        name: str,
        preferred_printing: str = PREFER_RECENT,
    ) -> CardMetadata | None:
        """
        Pick the most sensible printing for a card name.

        Printings with a price are preferred over unpriced ones (promos and
        digital-only printings usually have none). Among those, the most
        recent release wins, or the earliest when preferred_printing is
        "first". Ties keep index order.

        Returns:
            The chosen printing, or None if the name is unknown.
        """
        ids = self._ids_by_name.get(name.lower())
        if not ids:
            return None

        printings = [self._by_id[card_id] for card_id in ids]
        priced = [card for card in printings if _has_price(card)]
        candidates = priced or printings

        if preferred_printing == PREFER_FIRST:
            return min(candidates, key=lambda card: card.released_at)
        return max(candidates, key=lambda card: card.released_at)


def _has_price(card: CardMetadata) -> bool:
    return any(value is not None for value in card.prices.values())


async def download_card_database(output_path: Path | None = None) -> Path:
    """
    Download latest Scryfall default-cards bulk data.

    Args:
        output_path: Where to save the file. Defaults to settings.card_data_path

    Returns:
        Path to downloaded file.

    Raises:
        ValueError: If bulk data URL not found
        httpx.HTTPError: If download fails
    """
    if output_path is None:
        output_path = Path(settings.card_data_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.get(SCRYFALL_BULK_API)
        response.raise_for_status()
        data = response.json()

        download_url = None
        for item in data["data"]:
            if item["type"] == "default_cards":
                download_url = item["download_uri"]
                break

        if not download_url:
            raise ValueError("Could not find default_cards bulk data URL")

        # Stream download (file is ~70MB)
        async with client.stream("GET", download_url, timeout=300.0) as response:
            response.raise_for_status()
            with open(output_path, "wb") as f:
                async for chunk in response.aiter_bytes(8192):
                    f.write(chunk)

    return output_path


def load_card_index(path: Path | None = None) -> CardIndex:
    """
    Load the card index from a bulk data file.

    Raises:
        FileNotFoundError: If database file doesn't exist
    """
    if path is None:
        path = Path(settings.card_data_path)

    if not path.exists():
        raise FileNotFoundError(
            f"Card database not found at {path}. "
            "Run `python -m cubedraft.jobs.download_cards` first."
        )

    with open(path, encoding="utf-8") as f:
        records = json.load(f)

    return CardIndex.from_records(records)


@lru_cache(maxsize=1)
def get_card_index() -> CardIndex:
    """
    Get cached card index.

    Cached after first load. Used as a FastAPI dependency.

    Raises:
        FileNotFoundError: If database file doesn't exist
    """
    return load_card_index()
