from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cubedraft.draft.picks import SeatSubmission, submit_seat
from cubedraft.models.card import CubeOverride
from cubedraft.models.cube import Cube, CubeCardEntry
from cubedraft.models.db import Base
from cubedraft.services.card_index import CardIndex

RARITIES = ["common", "common", "common", "uncommon", "uncommon", "rare", "mythic", "common"]
COLORS = [["W"], ["U"], ["B"], ["R"], ["G"], [], ["W", "U"], ["B", "R"]]


def make_card_record(index: int, **overrides: Any) -> dict[str, Any]:
    """A Scryfall-style card record for a generic test card."""
    record: dict[str, Any] = {
        "id": f"card-{index:03d}",
        "name": f"Test Card {index:03d}",
        "set": "tst",
        "collector_number": str(index),
        "rarity": RARITIES[index % len(RARITIES)],
        "type_line": "Creature - Test" if index % 3 else "Instant",
        "color_identity": COLORS[index % len(COLORS)],
        "cmc": float(index % 7),
        "legalities": {"vintage": "legal"},
        "prices": {"usd": "0.25"},
        "released_at": "2020-01-01",
    }
    record.update(overrides)
    return record


@pytest.fixture
def card_records() -> list[dict[str, Any]]:
    """Sixty generic cards plus a few named cards with several printings."""
    records = [make_card_record(i) for i in range(60)]
    records += [
        {
            "id": "bolt-lea",
            "name": "Lightning Bolt",
            "set": "lea",
            "rarity": "common",
            "type_line": "Instant",
            "color_identity": ["R"],
            "cmc": 1.0,
            "prices": {"usd": "400.00"},
            "released_at": "1993-08-05",
            "elo": 1500,
        },
        {
            "id": "bolt-m10",
            "name": "Lightning Bolt",
            "set": "m10",
            "rarity": "common",
            "type_line": "Instant",
            "color_identity": ["R"],
            "cmc": 1.0,
            "prices": {"usd": "1.50"},
            "released_at": "2009-07-17",
            "elo": 1500,
        },
        {
            "id": "bolt-promo",
            "name": "Lightning Bolt",
            "set": "pbolt",
            "rarity": "special",
            "type_line": "Instant",
            "color_identity": ["R"],
            "cmc": 1.0,
            "prices": {"usd": None},
            "released_at": "2023-01-01",
            "elo": 1500,
        },
        {
            "id": "counterspell-ice",
            "name": "Counterspell",
            "set": "ice",
            "rarity": "common",
            "type_line": "Instant",
            "color_identity": ["U"],
            "cmc": 2.0,
            "prices": {"usd": "2.00"},
            "released_at": "1995-06-03",
        },
        {
            "id": "plains-basic",
            "name": "Plains",
            "set": "tst",
            "rarity": "common",
            "type_line": "Basic Land - Plains",
            "color_identity": [],
            "cmc": 0.0,
            "prices": {"usd": "0.05"},
            "released_at": "2020-01-01",
        },
        {
            "id": "island-basic",
            "name": "Island",
            "set": "tst",
            "rarity": "common",
            "type_line": "Basic Land - Island",
            "color_identity": [],
            "cmc": 0.0,
            "prices": {"usd": "0.05"},
            "released_at": "2020-01-01",
        },
    ]
    return records


@pytest.fixture
def card_index(card_records) -> CardIndex:
    return CardIndex.from_records(card_records)


def make_cube(card_ids: list[str], **kwargs: Any) -> Cube:
    """A cube listing `card_ids` in order, with entry ids e0, e1, ..."""
    entries = [
        CubeCardEntry(entry_id=f"e{i}", card_id=card_id, override=CubeOverride())
        for i, card_id in enumerate(card_ids)
    ]
    defaults: dict[str, Any] = {
        "id": "cube-1",
        "name": "Test Cube",
        "owner_id": "owner-1",
        "cards": entries,
        "basics": ["plains-basic", "island-basic"],
    }
    defaults.update(kwargs)
    return Cube(**defaults)


@pytest.fixture
def sample_cube() -> Cube:
    """Fifty distinct cards; enough for full default packs."""
    return make_cube([f"card-{i:03d}" for i in range(50)])


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def cube_factory():
    """Build cubes from a list of card ids."""
    return make_cube


def complete_all_seats(draft):
    """Submit every seat with its slice of the pool; returns the completed draft."""
    per_seat = draft.picks_per_seat()
    for seat_index in range(draft.seat_count):
        picks = [card.card_id for card in draft.cards[seat_index * per_seat : (seat_index + 1) * per_seat]]
        draft = submit_seat(
            draft,
            seat_index,
            SeatSubmission(pick_order=picks, drafted=picks),
        )
    return draft


@pytest.fixture
def complete_draft():
    return complete_all_seats
