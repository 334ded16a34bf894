"""Tests for the HTTP API."""

import httpx
import pytest
import respx
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cubedraft.api.deps import get_recommender
from cubedraft.api.health import optional_card_index
from cubedraft.config import settings
from cubedraft.db.database import get_session
from cubedraft.main import app
from cubedraft.services.card_index import get_card_index
from cubedraft.services.recommender import RecommenderClient

OWNER = {"X-Viewer-Id": "owner-1", "X-Viewer-Name": "Olive"}
OTHER = {"X-Viewer-Id": "other-1", "X-Viewer-Name": "Otto"}
RECOMMENDER_URL = "http://recommender.test"


@pytest.fixture
async def client(async_engine, card_index):
    """Provide an async test client with overridden database session and card index."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_card_index] = lambda: card_index
    app.dependency_overrides[optional_card_index] = lambda: card_index
    app.dependency_overrides[get_recommender] = lambda: RecommenderClient(
        card_index, base_url=RECOMMENDER_URL, timeout=1.0
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _create_cube(client: AsyncClient, count: int = 50, **extra) -> dict:
    body = {
        "name": "API Cube",
        "cards": [{"card_id": f"card-{i:03d}"} for i in range(count)],
        "basics": ["plains-basic"],
        **extra,
    }
    response = await client.post("/cubes", json=body, headers=OWNER)
    assert response.status_code == 201, response.text
    return response.json()


async def _finish_draft(client: AsyncClient, draft: dict, headers: dict | None = None) -> dict:
    per_seat = len(draft["cards"]) // len(draft["seats"])
    for seat_index in range(len(draft["seats"])):
        cards = draft["cards"][seat_index * per_seat : (seat_index + 1) * per_seat]
        picks = [card["card_id"] for card in cards]
        # Each seat passed over the first card of the previous seat's packs
        passed = [draft["cards"][(seat_index - 1) * per_seat]["card_id"]] if seat_index else []
        response = await client.post(
            f"/drafts/{draft['id']}/seats/{seat_index}",
            json={"pick_order": picks, "trash_order": passed, "drafted": picks},
            headers=headers,
        )
        assert response.status_code == 200, response.text
    return response.json()


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_ready(self, client: AsyncClient) -> None:
        """Ready reports the database and the card index size."""
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        assert response.json()["cards"] == 66

    async def test_ready_without_card_data(self, client: AsyncClient, tmp_path, monkeypatch) -> None:
        """Missing card data makes the service not ready rather than erroring."""
        app.dependency_overrides.pop(optional_card_index)
        monkeypatch.setattr(settings, "card_data_path", str(tmp_path / "missing.json"))
        get_card_index.cache_clear()

        try:
            response = await client.get("/ready")
        finally:
            get_card_index.cache_clear()

        assert response.status_code == 503
        assert response.json()["status"] == "not ready"
        assert response.json()["database"] == "connected"


class TestCubes:
    async def test_create_and_get(self, client: AsyncClient) -> None:
        """A created cube is returned with merged card views."""
        created = await _create_cube(client)

        response = await client.get(f"/cubes/{created['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["owner_id"] == "owner-1"
        assert data["card_count"] == 50
        assert data["cards"][0]["name"] == "Test Card 000"
        assert data["cards"][0]["status"] == "Not Owned"

    async def test_create_requires_viewer(self, client: AsyncClient) -> None:
        response = await client.post("/cubes", json={"name": "X"})
        assert response.status_code == 403

    async def test_create_rejects_unknown_card(self, client: AsyncClient) -> None:
        response = await client.post(
            "/cubes", json={"name": "X", "cards": [{"card_id": "nope"}]}, headers=OWNER
        )
        assert response.status_code == 404
        assert response.json()["failure"]["kind"] == "not_found"

    async def test_create_rejects_bad_filter(self, client: AsyncClient) -> None:
        """Slot filters are validated when the cube is created."""
        response = await client.post(
            "/cubes",
            json={"name": "X", "draft_format": [[{"primary": "power:5"}]]},
            headers=OWNER,
        )
        assert response.status_code == 400
        assert response.json()["outcome"] == "known_failure"

    async def test_private_cube_hidden(self, client: AsyncClient) -> None:
        """Private cubes look missing to everyone but the owner."""
        created = await _create_cube(client, is_private=True)

        assert (await client.get(f"/cubes/{created['id']}")).status_code == 404
        assert (await client.get(f"/cubes/{created['id']}", headers=OTHER)).status_code == 404
        assert (await client.get(f"/cubes/{created['id']}", headers=OWNER)).status_code == 200

    async def test_update_card(self, client: AsyncClient) -> None:
        """The owner can edit a card by entry id."""
        created = await _create_cube(client)
        entry_id = created["cards"][0]["entry_id"]

        response = await client.post(
            f"/cubes/{created['id']}/cards/update",
            json={"entry_id": entry_id, "updated": {"status": "Owned", "cmc": 4.5}},
            headers=OWNER,
        )

        assert response.status_code == 200, response.text
        card = response.json()["cards"][0]
        assert card["status"] == "Owned"
        assert card["cmc"] == 4.5

    async def test_update_card_by_index_snapshot(self, client: AsyncClient) -> None:
        """Positional edits need a matching snapshot."""
        created = await _create_cube(client)
        card = created["cards"][1]
        snapshot = {k: card[k] for k in ("card_id", "status", "cmc", "type_line", "tags", "colors", "finish")}

        ok = await client.post(
            f"/cubes/{created['id']}/cards/update",
            json={"index": 1, "snapshot": snapshot, "updated": {"tags": ["Fixing"]}},
            headers=OWNER,
        )
        stale = await client.post(
            f"/cubes/{created['id']}/cards/update",
            json={"index": 1, "snapshot": snapshot, "updated": {"tags": ["Other"]}},
            headers=OWNER,
        )

        assert ok.status_code == 200
        assert stale.status_code == 409

    async def test_update_card_owner_only(self, client: AsyncClient) -> None:
        created = await _create_cube(client)
        response = await client.post(
            f"/cubes/{created['id']}/cards/update",
            json={"entry_id": created["cards"][0]["entry_id"], "updated": {"status": "Owned"}},
            headers=OTHER,
        )
        assert response.status_code == 403

    async def test_update_card_bad_cmc(self, client: AsyncClient) -> None:
        created = await _create_cube(client)
        response = await client.post(
            f"/cubes/{created['id']}/cards/update",
            json={"entry_id": created["cards"][0]["entry_id"], "updated": {"cmc": 1.3}},
            headers=OWNER,
        )
        assert response.status_code == 400


class TestP1P1:
    async def test_seeded_pack_replays(self, client: AsyncClient) -> None:
        """The same seed shows the same pack."""
        created = await _create_cube(client)

        first = await client.get(f"/cubes/{created['id']}/p1p1/abc")
        second = await client.get(f"/cubes/{created['id']}/p1p1/abc")

        assert first.status_code == 200
        assert first.json() == second.json()
        assert first.json()["seed"] == "abc"
        assert len(first.json()["pack"]) == 15

    async def test_unseeded_pack_returns_seed(self, client: AsyncClient) -> None:
        """A fresh pack reports the seed that replays it."""
        created = await _create_cube(client)

        fresh = (await client.get(f"/cubes/{created['id']}/p1p1")).json()
        replay = (await client.get(f"/cubes/{created['id']}/p1p1/{fresh['seed']}")).json()

        assert replay["pack"] == fresh["pack"]

    async def test_small_cube(self, client: AsyncClient) -> None:
        """A cube too small for a pack reports insufficient cards."""
        created = await _create_cube(client, count=5)

        response = await client.get(f"/cubes/{created['id']}/p1p1/abc")

        assert response.status_code == 400
        assert response.json()["failure"]["kind"] == "insufficient_cards"


class TestRecommendations:
    @respx.mock
    async def test_recommendations(self, client: AsyncClient) -> None:
        created = await _create_cube(client)
        respx.get(f"{RECOMMENDER_URL}/").mock(
            return_value=httpx.Response(
                200, json={"additions": {"lightning bolt": 1.0}, "cuts": {"test card 000": 0.1}}
            )
        )

        response = await client.get(f"/cubes/{created['id']}/recommendations")

        assert response.status_code == 200
        assert response.json()["to_add"][0]["name"] == "Lightning Bolt"
        assert response.json()["to_cut"][0]["id"] == "card-000"

    @respx.mock
    async def test_service_down(self, client: AsyncClient) -> None:
        """Recommendation failures degrade to empty lists."""
        created = await _create_cube(client)
        respx.get(f"{RECOMMENDER_URL}/").mock(return_value=httpx.Response(503))

        response = await client.get(f"/cubes/{created['id']}/recommendations")

        assert response.status_code == 200
        assert response.json() == {"to_add": [], "to_cut": []}


class TestDrafts:
    async def test_start_draft(self, client: AsyncClient) -> None:
        """Starting a draft deals every pack and seats the viewer."""
        created = await _create_cube(client)

        response = await client.post(
            f"/cubes/{created['id']}/drafts",
            json={"seat_count": 4, "human_seat": 1, "seed": "api"},
            headers=OWNER,
        )

        assert response.status_code == 201, response.text
        draft = response.json()
        assert draft["status"] == "in_progress"
        assert len(draft["cards"]) == 4 * 3 * 15
        assert draft["seats"][1]["name"] == "Olive"
        assert draft["seats"][0]["bot"]["kind"] == "rating"
        assert draft["initial_state"][0][0]["seed"] == "api:0:0"

        fetched = await client.get(f"/drafts/{draft['id']}")
        assert fetched.json() == draft

    async def test_bad_seat_count(self, client: AsyncClient) -> None:
        created = await _create_cube(client)
        response = await client.post(f"/cubes/{created['id']}/drafts", json={"seat_count": 1})
        assert response.status_code == 400

    async def test_missing_draft(self, client: AsyncClient) -> None:
        assert (await client.get("/drafts/nope")).status_code == 404

    async def test_completion_folds_analytics_once(self, client: AsyncClient) -> None:
        """The submission that completes a draft folds it into analytics; later ones are rejected."""
        created = await _create_cube(client)
        draft = (
            await client.post(
                f"/cubes/{created['id']}/drafts", json={"seat_count": 2, "seed": "fold"}
            )
        ).json()

        empty = (await client.get(f"/cubes/{created['id']}/analytics")).json()
        assert empty["cards"] == []

        # Seat 0 picks all of its cards; seat 1 is short, so the draft stays open
        picks_0 = [c["card_id"] for c in draft["cards"][:45]]
        await client.post(f"/drafts/{draft['id']}/seats/0", json={"pick_order": picks_0})
        partial = await client.get(f"/cubes/{created['id']}/analytics")
        assert partial.json()["cards"] == []

        finished = await _finish_draft(client, draft)
        assert finished["status"] == "complete"

        analytics = (await client.get(f"/cubes/{created['id']}/analytics")).json()
        total_picks = sum(card["pick_count"] for card in analytics["cards"])
        assert total_picks == 2 * 45

        again = await client.post(f"/drafts/{draft['id']}/seats/0", json={"pick_order": []})
        assert again.status_code == 409
        analytics_after = (await client.get(f"/cubes/{created['id']}/analytics")).json()
        assert analytics_after == analytics

    async def test_redraft(self, client: AsyncClient) -> None:
        """A completed draft can be redrafted from any seat."""
        created = await _create_cube(client)
        draft = (
            await client.post(
                f"/cubes/{created['id']}/drafts", json={"seat_count": 3, "seed": "re"}
            )
        ).json()
        finished = await _finish_draft(client, draft)

        response = await client.post(f"/drafts/{draft['id']}/redraft/2", headers=OTHER)

        assert response.status_code == 201, response.text
        redrafted = response.json()
        assert redrafted["id"] != draft["id"]
        assert redrafted["status"] == "in_progress"
        assert redrafted["seats"][0]["name"] == "Otto"
        assert redrafted["initial_state"] == finished["initial_state"]
        assert [c["card_id"] for c in redrafted["cards"]] == [c["card_id"] for c in draft["cards"]]

    async def test_redraft_incomplete(self, client: AsyncClient) -> None:
        created = await _create_cube(client)
        draft = (
            await client.post(f"/cubes/{created['id']}/drafts", json={"seat_count": 2})
        ).json()

        response = await client.post(f"/drafts/{draft['id']}/redraft/0")

        assert response.status_code == 409
        assert response.json()["failure"]["kind"] == "invalid_state"

    async def test_private_cube_draft_hidden(self, client: AsyncClient) -> None:
        """Drafts of a private cube are visible to the cube's owner only."""
        created = await _create_cube(client, is_private=True)
        draft = (
            await client.post(
                f"/cubes/{created['id']}/drafts",
                json={"seat_count": 2, "seed": "private"},
                headers=OWNER,
            )
        ).json()

        assert (await client.get(f"/drafts/{draft['id']}", headers=OWNER)).status_code == 200
        assert (await client.get(f"/drafts/{draft['id']}", headers=OTHER)).status_code == 404
        assert (await client.get(f"/drafts/{draft['id']}")).status_code == 404

        submit = await client.post(
            f"/drafts/{draft['id']}/seats/0", json={"pick_order": []}, headers=OTHER
        )
        assert submit.status_code == 404

    async def test_redraft_private_cube(self, client: AsyncClient) -> None:
        """Only the owner can redraft a private cube's draft."""
        created = await _create_cube(client, is_private=True)
        draft = (
            await client.post(
                f"/cubes/{created['id']}/drafts",
                json={"seat_count": 2, "seed": "private"},
                headers=OWNER,
            )
        ).json()
        await _finish_draft(client, draft, headers=OWNER)

        denied = await client.post(f"/drafts/{draft['id']}/redraft/1", headers=OTHER)
        assert denied.status_code == 404
        assert denied.json()["failure"]["kind"] == "not_found"

        allowed = await client.post(f"/drafts/{draft['id']}/redraft/1", headers=OWNER)
        assert allowed.status_code == 201, allowed.text

    async def test_cube_elo_applied(self, client: AsyncClient) -> None:
        """Cubes using their own ratings show cube ratings on draft cards."""
        created = await _create_cube(client, use_cube_elo=True)
        draft = (
            await client.post(
                f"/cubes/{created['id']}/drafts", json={"seat_count": 2, "seed": "elo"}
            )
        ).json()
        await _finish_draft(client, draft)

        analytics = (await client.get(f"/cubes/{created['id']}/analytics")).json()
        rated = {card["name"]: card["elo"] for card in analytics["cards"]}

        fetched = (await client.get(f"/drafts/{draft['id']}")).json()
        for card in fetched["cards"]:
            key = card["name"].lower()
            if key in rated:
                assert card["elo"] == pytest.approx(rated[key])


class TestFeatured:
    async def test_queue_and_rotate(self, client: AsyncClient) -> None:
        """Owners queue cubes; rotation moves the featured pair to the back."""
        cube_ids = [(await _create_cube(client))["id"] for _ in range(4)]
        for cube_id in cube_ids:
            response = await client.post("/featured/queue", json={"cube_id": cube_id}, headers=OWNER)
            assert response.status_code == 200, response.text

        duplicate = await client.post("/featured/queue", json={"cube_id": cube_ids[0]}, headers=OWNER)
        assert duplicate.status_code == 409

        rotated = await client.post("/featured/rotate")
        assert rotated.status_code == 200
        assert [e["cube_id"] for e in rotated.json()["removed"]] == cube_ids[:2]

        queue = (await client.get("/featured")).json()
        assert [e["cube_id"] for e in queue["featured"]] == cube_ids[2:]
        assert queue["last_rotation"] is not None

    async def test_queue_requires_owner(self, client: AsyncClient) -> None:
        cube_id = (await _create_cube(client))["id"]
        response = await client.post("/featured/queue", json={"cube_id": cube_id}, headers=OTHER)
        assert response.status_code == 403

    async def test_unqueue_and_move(self, client: AsyncClient) -> None:
        cube_ids = [(await _create_cube(client))["id"] for _ in range(5)]
        for cube_id in cube_ids:
            await client.post("/featured/queue", json={"cube_id": cube_id}, headers=OWNER)

        protected = await client.post("/featured/unqueue", json={"cube_id": cube_ids[0]})
        assert protected.status_code == 409

        moved = await client.post(
            "/featured/move", json={"cube_id": cube_ids[4], "from_index": 4, "to_index": 2}
        )
        assert moved.status_code == 200
        assert [e["cube_id"] for e in moved.json()["queue"]][2] == cube_ids[4]

        removed = await client.post("/featured/unqueue", json={"cube_id": cube_ids[3]})
        assert cube_ids[3] not in [e["cube_id"] for e in removed.json()["queue"]]

    async def test_rotation_period(self, client: AsyncClient) -> None:
        assert (await client.post("/featured/period/3")).json()["days_between_rotations"] == 3
        assert (await client.post("/featured/period/0")).status_code == 400

    async def test_rotate_too_few(self, client: AsyncClient) -> None:
        response = await client.post("/featured/rotate")
        assert response.status_code == 409
