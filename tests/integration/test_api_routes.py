"""
Integration tests for the HTTP API.

Requests go through the real FastAPI app (auth, validation, error mapping)
via httpx.ASGITransport; the session factory dependency is overridden so
every test talks to its own SQLite database.
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from api.dependencies import get_session_factory
from api.main import app
from database.connection import create_engine_from_url, create_session_factory
from database.models import User

pytestmark = pytest.mark.integration

START = datetime(2030, 1, 7, 9, 0, tzinfo=UTC)


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def event_body(title: str, offset_hours: int = 0, status: str | None = "SWAPPABLE") -> dict:
    start = START + timedelta(hours=offset_hours)
    body = {
        "title": title,
        "startTime": start.isoformat(),
        "endTime": (start + timedelta(hours=1)).isoformat(),
    }
    if status is not None:
        body["status"] = status
    return body


async def create_event(client, headers, title, offset_hours=0, status="SWAPPABLE") -> dict:
    response = await client.post(
        "/api/events", json=event_body(title, offset_hours, status), headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestAuthentication:

    async def test_missing_token(self, client):
        response = await client.get("/api/events")
        assert response.status_code == 401

    async def test_bad_signature(self, client, alice):
        token = jwt.encode({"sub": str(alice)}, "some-other-secret-of-sufficient-length", "HS256")
        response = await client.get("/api/events", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_expired_token(self, client, alice):
        token = jwt.encode(
            {"sub": str(alice), "exp": datetime.now(UTC) - timedelta(minutes=1)},
            "test-secret-for-slotswap-unit-tests-0123456789",
            "HS256",
        )
        response = await client.get("/api/events", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_token_without_user_id(self, client):
        token = jwt.encode({"role": "user"}, "test-secret-for-slotswap-unit-tests-0123456789", "HS256")
        response = await client.get("/api/events", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestUserProvisioning:

    async def test_first_request_from_new_identity_creates_event(
        self, client, auth_headers, session_factory
    ):
        newcomer = uuid4()

        response = await client.post(
            "/api/events", json=event_body("First shift"), headers=auth_headers(newcomer)
        )

        assert response.status_code == 201, response.text
        assert response.json()["ownerId"] == str(newcomer)
        async with session_factory() as session:
            user = await session.get(User, newcomer)
        assert user is not None
        assert user.email == f"{newcomer}@users.invalid"

    async def test_profile_taken_from_token_claims(self, client, auth_headers, alice):
        dana = uuid4()
        dana_headers = auth_headers(dana, name="Dana", email="dana@example.com")
        slot = await create_event(client, dana_headers, "Dana shift")

        response = await client.get("/api/swappable-slots", headers=auth_headers(alice))

        assert [s["id"] for s in response.json()] == [slot["id"]]
        assert response.json()[0]["owner"] == {
            "id": str(dana),
            "name": "Dana",
            "email": "dana@example.com",
        }

    async def test_email_of_another_user_is_403(self, client, auth_headers, alice):
        response = await client.get(
            "/api/events", headers=auth_headers(uuid4(), email="alice@example.com")
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Email is already registered to another account"}


class TestEventRoutes:

    async def test_create_and_list(self, client, auth_headers, alice):
        headers = auth_headers(alice)

        created = await create_event(client, headers, "Standup", status=None)

        assert created["status"] == "BUSY"
        assert created["ownerId"] == str(alice)
        assert created["startTime"].startswith("2030-01-07T09:00:00")
        assert {"id", "title", "startTime", "endTime", "createdAt", "updatedAt"} <= created.keys()

        response = await client.get("/api/events", headers=headers)
        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [created["id"]]

    async def test_invalid_time_range(self, client, auth_headers, alice):
        body = event_body("Backwards")
        body["endTime"] = body["startTime"]

        response = await client.post("/api/events", json=body, headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json()["error"] == "End time must be after start time"

    async def test_malformed_body(self, client, auth_headers, alice):
        response = await client.post(
            "/api/events", json={"title": "No times"}, headers=auth_headers(alice)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    async def test_swap_pending_not_settable(self, client, auth_headers, alice):
        response = await client.post(
            "/api/events", json=event_body("Sneaky", status="SWAP_PENDING"), headers=auth_headers(alice)
        )
        assert response.status_code == 400

    async def test_other_users_event_is_404(self, client, auth_headers, alice, bob):
        created = await create_event(client, auth_headers(alice), "Private")

        for method in ("get", "delete"):
            response = await getattr(client, method)(
                f"/api/events/{created['id']}", headers=auth_headers(bob)
            )
            assert response.status_code == 404

        response = await client.put(
            f"/api/events/{created['id']}", json={"title": "Mine"}, headers=auth_headers(bob)
        )
        assert response.status_code == 404

    async def test_update_and_delete(self, client, auth_headers, alice):
        headers = auth_headers(alice)
        created = await create_event(client, headers, "Draft", status="BUSY")

        response = await client.put(
            f"/api/events/{created['id']}",
            json={"title": "Final", "status": "SWAPPABLE"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Final"
        assert response.json()["status"] == "SWAPPABLE"
        assert response.json()["startTime"] == created["startTime"]

        response = await client.delete(f"/api/events/{created['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Event deleted successfully"}

        response = await client.get(f"/api/events/{created['id']}", headers=headers)
        assert response.status_code == 404


class TestSwapRoutes:

    async def test_full_accept_flow(self, client, auth_headers, alice, bob, carol):
        alice_headers, bob_headers = auth_headers(alice), auth_headers(bob)
        alice_slot = await create_event(client, alice_headers, "Alice shift", offset_hours=0)
        bob_slot = await create_event(client, bob_headers, "Bob shift", offset_hours=24)

        # Alice sees Bob's slot, with Bob's public identity
        response = await client.get("/api/swappable-slots", headers=alice_headers)
        assert response.status_code == 200
        listing = response.json()
        assert [s["id"] for s in listing] == [bob_slot["id"]]
        assert listing[0]["owner"] == {"id": str(bob), "name": "Bob", "email": "bob@example.com"}

        response = await client.post(
            "/api/swap-request",
            json={"mySlotId": alice_slot["id"], "theirSlotId": bob_slot["id"]},
            headers=alice_headers,
        )
        assert response.status_code == 201
        payload = response.json()
        assert payload["message"] == "Swap request created successfully"
        swap_request = payload["swapRequest"]
        assert swap_request["status"] == "PENDING"
        assert swap_request["mySlot"]["status"] == "SWAP_PENDING"
        assert swap_request["theirSlot"]["status"] == "SWAP_PENDING"
        assert swap_request["recipient"]["id"] == str(bob)

        # Pending slots leave the marketplace
        response = await client.get("/api/swappable-slots", headers=auth_headers(carol))
        assert response.json() == []

        response = await client.get("/api/swap-requests", headers=bob_headers)
        assert [r["id"] for r in response.json()["incoming"]] == [swap_request["id"]]
        assert response.json()["outgoing"] == []

        # Only Bob may answer
        response = await client.post(
            f"/api/swap-response/{swap_request['id']}", json={"accepted": True}, headers=alice_headers
        )
        assert response.status_code == 403

        response = await client.post(
            f"/api/swap-response/{swap_request['id']}", json={"accepted": True}, headers=bob_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "ACCEPTED"
        assert response.json()["swapRequest"]["mySlot"]["ownerId"] == str(bob)
        assert response.json()["swapRequest"]["theirSlot"]["ownerId"] == str(alice)

        response = await client.get("/api/events", headers=alice_headers)
        assert [(e["id"], e["status"]) for e in response.json()] == [(bob_slot["id"], "BUSY")]

        # Exactly once
        response = await client.post(
            f"/api/swap-response/{swap_request['id']}", json={"accepted": False}, headers=bob_headers
        )
        assert response.status_code == 409
        assert response.json()["swapRequestId"] == swap_request["id"]

    async def test_pending_event_conflicts(self, client, auth_headers, alice, bob):
        alice_headers = auth_headers(alice)
        alice_slot = await create_event(client, alice_headers, "Alice shift", offset_hours=0)
        bob_slot = await create_event(client, auth_headers(bob), "Bob shift", offset_hours=1)
        response = await client.post(
            "/api/swap-request",
            json={"mySlotId": alice_slot["id"], "theirSlotId": bob_slot["id"]},
            headers=alice_headers,
        )
        request_id = response.json()["swapRequest"]["id"]

        response = await client.put(
            f"/api/events/{alice_slot['id']}", json={"status": "BUSY"}, headers=alice_headers
        )
        assert response.status_code == 409
        assert response.json()["swapRequestId"] == request_id
        assert request_id in response.json()["error"]

        response = await client.delete(f"/api/events/{alice_slot['id']}", headers=alice_headers)
        assert response.status_code == 409

    async def test_offering_someone_elses_slot_is_403(self, client, auth_headers, alice, bob, carol):
        bob_slot = await create_event(client, auth_headers(bob), "Bob", offset_hours=0)
        carol_slot = await create_event(client, auth_headers(carol), "Carol", offset_hours=1)

        response = await client.post(
            "/api/swap-request",
            json={"mySlotId": bob_slot["id"], "theirSlotId": carol_slot["id"]},
            headers=auth_headers(alice),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "You do not own this slot"

    async def test_self_swap_is_400(self, client, auth_headers, alice):
        slot = await create_event(client, auth_headers(alice), "Alice")

        response = await client.post(
            "/api/swap-request",
            json={"mySlotId": slot["id"], "theirSlotId": slot["id"]},
            headers=auth_headers(alice),
        )
        assert response.status_code == 400

    async def test_unknown_swap_request_is_404(self, client, auth_headers, bob):
        response = await client.post(
            f"/api/swap-response/{uuid4()}", json={"accepted": True}, headers=auth_headers(bob)
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Swap request not found"


class TestInfrastructure:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    async def test_storage_failure_is_503(self, client, auth_headers, alice, tmp_path):
        broken_engine = create_engine_from_url(
            f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'slotswap.db'}"
        )
        app.dependency_overrides[get_session_factory] = lambda: create_session_factory(broken_engine)

        response = await client.get("/api/events", headers=auth_headers(alice))

        assert response.status_code == 503
        assert response.json()["retryable"] is True
        await broken_engine.dispose()
