import uuid

from sqlalchemy import select

from app.models.interest import UserInterest
from app.services.search_results import search_result_store


async def test_create_interest_persists_for_caller(client, make_user, locations, session_factory):
    user, headers = await make_user()
    resp = await client.post("/api/interests", headers=headers, json={
        "user_id": str(user.id),
        "location_id": "loc-1",
        "budget": 1000,
        "duration": 5,
        "activities": "hiking",
    })

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["interest"]["locations_id"] == ["loc-1"]
    assert body["interest"]["locations_text"] == "Hanoi, Vietnam"

    async with session_factory() as session:
        rows = (await session.execute(select(UserInterest))).scalars().all()
    assert len(rows) == 1
    assert rows[0].user_id == user.id
    assert rows[0].activities == "hiking"


async def test_list_returns_submitted_interest_with_locations(client, make_user, locations):
    user, headers = await make_user()
    await client.post("/api/interests", headers=headers, json={
        "user_id": str(user.id),
        "locations_id": ["loc-1", "loc-2"],
        "locations_free_text": "Sapa",
        "budget": 800,
        "duration": 4,
        "activities": "trekking",
        "notes": "no night buses",
    })

    resp = await client.get(f"/api/interests?userId={user.id}", headers=headers)

    assert resp.status_code == 200
    interests = resp.json()["interests"]
    assert len(interests) == 1
    interest = interests[0]
    assert interest["locations_text"] == "Hanoi, Vietnam, Ha Long Bay, Vietnam, Sapa"
    assert [loc["id"] for loc in interest["locations"]] == ["loc-1", "loc-2"]
    assert interest["notes"] == "no night buses"


async def test_free_text_only_interest_resolves_to_empty_locations(client, make_user):
    user, headers = await make_user()
    resp = await client.post("/api/interests", headers=headers, json={
        "user_id": str(user.id),
        "locations_free_text": "Hanoi, Vietnam",
        "budget": 0,
        "duration": 0,
        "activities": "food",
    })
    assert resp.status_code == 201

    interests = (await client.get("/api/interests", headers=headers)).json()["interests"]
    assert interests[0]["locations_id"] == []
    assert interests[0]["locations"] == []


async def test_create_requires_authentication(client):
    resp = await client.post("/api/interests", json={
        "user_id": str(uuid.uuid4()),
        "location_id": "loc-1",
        "budget": 100,
        "duration": 2,
        "activities": "x",
    })
    assert resp.status_code == 401
    assert resp.json() == {"error": "User not authenticated"}


async def test_create_rejects_claimed_identity_of_someone_else(client, make_user, locations):
    _, headers = await make_user()
    other, _ = await make_user()
    resp = await client.post("/api/interests", headers=headers, json={
        "user_id": str(other.id),
        "location_id": "loc-1",
        "budget": 100,
        "duration": 2,
        "activities": "x",
    })
    assert resp.status_code == 403
    assert resp.json() == {"error": "Unauthorized: User ID mismatch"}


async def test_create_validates_before_writing(client, make_user, locations):
    user, headers = await make_user()
    base = {"user_id": str(user.id), "location_id": "loc-1", "budget": 100, "duration": 2, "activities": "x"}

    assert (await client.post("/api/interests", headers=headers, json={**base, "budget": -1})).status_code == 422
    assert (await client.post("/api/interests", headers=headers, json={**base, "duration": -3})).status_code == 422
    assert (await client.post("/api/interests", headers=headers, json={**base, "activities": "  "})).status_code == 422
    no_location = {k: v for k, v in base.items() if k != "location_id"}
    resp = await client.post("/api/interests", headers=headers, json=no_location)
    assert resp.status_code == 422
    assert resp.json()["error"] == "Invalid request"

    unknown = await client.post("/api/interests", headers=headers, json={**base, "location_id": "nowhere"})
    assert unknown.status_code == 400
    assert unknown.json() == {"error": "Unknown location: nowhere"}


async def test_missing_profile_is_provisioned_and_insert_retried(client, make_user, locations, session_factory):
    user, headers = await make_user(with_profile=False)
    resp = await client.post("/api/interests", headers=headers, json={
        "user_id": str(user.id),
        "location_id": "loc-2",
        "budget": 300,
        "duration": 2,
        "activities": "kayaking",
    })

    assert resp.status_code == 201
    async with session_factory() as session:
        rows = (await session.execute(select(UserInterest))).scalars().all()
    assert [r.user_id for r in rows] == [user.id]


async def test_list_for_another_user_is_forbidden(client, make_user):
    _, headers = await make_user()
    other, _ = await make_user()
    resp = await client.get(f"/api/interests?userId={other.id}", headers=headers)
    assert resp.status_code == 403
    assert resp.json() == {"error": "Unauthorized: User ID mismatch"}


async def _create(client, user, headers, **overrides):
    payload = {
        "user_id": str(user.id),
        "location_id": "loc-1",
        "budget": 1000,
        "duration": 5,
        "activities": "hiking",
        **overrides,
    }
    resp = await client.post("/api/interests", headers=headers, json=payload)
    return resp.json()["interest"]["id"]


async def test_delete_by_non_owner_is_forbidden_and_keeps_record(client, make_user, locations, session_factory):
    owner, owner_headers = await make_user()
    _, intruder_headers = await make_user()
    interest_id = await _create(client, owner, owner_headers)

    resp = await client.delete(f"/api/interests/{interest_id}", headers=intruder_headers)

    assert resp.status_code == 403
    assert resp.json() == {"error": "Unauthorized: Not your interest"}
    async with session_factory() as session:
        assert await session.get(UserInterest, uuid.UUID(interest_id)) is not None


async def test_delete_unknown_interest_is_not_found(client, make_user):
    _, headers = await make_user()
    resp = await client.delete(f"/api/interests/{uuid.uuid4()}", headers=headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Interest not found"}


async def test_delete_removes_record_and_cached_results(client, make_user, locations):
    user, headers = await make_user()
    interest_id = await _create(client, user, headers)
    search_result_store.replace(user.id, uuid.UUID(interest_id), [], "Hanoi, Vietnam")

    resp = await client.delete(f"/api/interests/{interest_id}", headers=headers)

    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert search_result_store.get(user.id, uuid.UUID(interest_id)) is None
    assert (await client.get("/api/interests", headers=headers)).json()["interests"] == []


async def test_get_single_interest(client, make_user, locations):
    user, headers = await make_user()
    interest_id = await _create(client, user, headers, locations_id=["loc-2"], location_id=None)

    resp = await client.get(f"/api/interests/{interest_id}", headers=headers)

    assert resp.status_code == 200
    assert [loc["name"] for loc in resp.json()["locations"]] == ["Ha Long Bay"]
