import random
import uuid

import httpx
import pytest

from app.models.package import TravelPackage
from app.services.package_service import extract_highlights, package_service


def _package_body(**overrides):
    body = {
        "title": "Hanoi Street Food",
        "location_id": "loc-1",
        "price": 349,
        "duration_days": 3,
        "description": "Eat your way through the Old Quarter.\n\n◯ Evening food tour\n\n◯ Water puppet show",
        "image_url": "https://img.test/hanoi.jpg",
    }
    body.update(overrides)
    return body


def test_extract_highlights_reads_marked_paragraphs():
    description = "Intro line\n\n◯ Kayaking\n\nNot a highlight ◯\n\n  ◯  Cave visit  \n\n◯"
    assert extract_highlights(description) == ["Kayaking", "Cave visit"]
    assert extract_highlights("") == []


async def test_provider_creates_package_with_highlights(client, make_user, locations):
    provider, headers = await make_user("provider")

    resp = await client.post("/api/packages", headers=headers, json=_package_body())

    assert resp.status_code == 201
    body = resp.json()
    assert body["provider_id"] == str(provider.id)
    assert body["highlights"] == ["Evening food tour", "Water puppet show"]
    assert body["isAIGenerated"] is False
    assert body["is_proposed"] is False


async def test_explicit_highlights_win(client, make_user, locations):
    _, headers = await make_user("provider")
    resp = await client.post("/api/packages", headers=headers, json=_package_body(highlights=["Custom"]))
    assert resp.json()["highlights"] == ["Custom"]


async def test_traveler_cannot_create_package(client, make_user, locations):
    _, headers = await make_user()
    resp = await client.post("/api/packages", headers=headers, json=_package_body())
    assert resp.status_code == 403
    assert resp.json() == {"error": "Provider access required"}


async def test_create_validates_fields(client, make_user, locations):
    _, headers = await make_user("provider")
    assert (await client.post("/api/packages", headers=headers, json=_package_body(price=-5))).status_code == 422
    assert (await client.post("/api/packages", headers=headers, json=_package_body(duration_days=0))).status_code == 422
    unknown = await client.post("/api/packages", headers=headers, json=_package_body(location_id="atlantis"))
    assert unknown.status_code == 400


async def test_only_owner_or_admin_updates(client, make_user, locations):
    _, owner_headers = await make_user("provider")
    _, rival_headers = await make_user("provider")
    _, admin_headers = await make_user("admin")
    package_id = (await client.post("/api/packages", headers=owner_headers, json=_package_body())).json()["id"]

    rival = await client.put(f"/api/packages/{package_id}", headers=rival_headers, json=_package_body(title="Mine now"))
    assert rival.status_code == 403
    assert rival.json() == {"error": "Unauthorized: Not your package"}

    admin = await client.put(
        f"/api/packages/{package_id}",
        headers=admin_headers,
        json=_package_body(title="Renamed", description="Plain text only"),
    )
    assert admin.status_code == 200
    assert admin.json()["title"] == "Renamed"
    assert admin.json()["highlights"] == []


async def test_delete_package(client, make_user, locations):
    _, headers = await make_user("provider")
    _, rival_headers = await make_user("provider")
    package_id = (await client.post("/api/packages", headers=headers, json=_package_body())).json()["id"]

    assert (await client.delete(f"/api/packages/{package_id}", headers=rival_headers)).status_code == 403
    assert (await client.delete(f"/api/packages/{package_id}", headers=headers)).json() == {"success": True}
    missing = await client.get(f"/api/packages/{package_id}", headers=headers)
    assert missing.status_code == 404
    assert missing.json() == {"error": "Package not found"}


async def test_list_mine_filters_by_provider(client, make_user, locations):
    _, headers = await make_user("provider")
    _, other_headers = await make_user("provider")
    await client.post("/api/packages", headers=headers, json=_package_body(title="Mine"))
    await client.post("/api/packages", headers=other_headers, json=_package_body(title="Theirs"))

    everything = (await client.get("/api/packages", headers=headers)).json()["packages"]
    mine = (await client.get("/api/packages?mine=true", headers=headers)).json()["packages"]

    assert {p["title"] for p in everything} == {"Mine", "Theirs"}
    assert [p["title"] for p in mine] == ["Mine"]


async def test_interested_bumps_trending_order(client, make_user, locations):
    _, headers = await make_user("provider")
    quiet = (await client.post("/api/packages", headers=headers, json=_package_body(title="Quiet"))).json()["id"]
    popular = (await client.post("/api/packages", headers=headers, json=_package_body(title="Popular"))).json()["id"]

    for _ in range(2):
        resp = await client.post(f"/api/packages/{popular}/interested", headers=headers)
    assert resp.json()["interested_count"] == 2
    await client.post(f"/api/packages/{quiet}/interested", headers=headers)

    trending = (await client.get("/api/packages/trending", headers=headers)).json()["packages"]
    assert [p["title"] for p in trending] == ["Popular", "Quiet"]


async def test_publish_package_uses_location_name(client, make_user, locations):
    _, headers = await make_user("provider")
    package_id = (await client.post("/api/packages", headers=headers, json=_package_body())).json()["id"]

    resp = await client.post(
        f"/api/packages/{package_id}/publish",
        headers=headers,
        json={"channel": "facebook_marketplace"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Hanoi Street Food - $349"
    assert "• Evening food tour" in body["body"]
    assert "in Hanoi, Vietnam" in body["share_text"]


async def test_proposed_returns_latest_three(db, make_user, locations):
    provider, _ = await make_user("provider")
    for i in range(4):
        db.add(TravelPackage(
            title=f"Proposal {i}",
            provider_id=provider.id,
            location_id="loc-1",
            price=100,
            duration_days=2,
            highlights=[],
            is_proposed=True,
        ))
        await db.commit()
    db.add(TravelPackage(title="Regular", provider_id=provider.id, price=100, duration_days=2, highlights=[]))
    await db.commit()

    proposed = await package_service.proposed_packages(db)

    assert len(proposed) == 3
    assert all(p.is_proposed for p in proposed)


@pytest.mark.parametrize("pool_size, expected", [(0, 0), (3, 3), (8, 5)])
async def test_random_samples_at_most_five(db, make_user, pool_size, expected):
    provider, _ = await make_user("provider")
    db.add_all([
        TravelPackage(title=f"P{i}", provider_id=provider.id, price=10, duration_days=1, highlights=[])
        for i in range(pool_size)
    ])
    await db.commit()

    sample = await package_service.random_packages(db, rng=random.Random(7))

    assert len(sample) == expected
    assert len({p.id for p in sample}) == expected


async def test_unknown_package_id(client, make_user):
    _, headers = await make_user()
    resp = await client.post(f"/api/packages/{uuid.uuid4()}/interested", headers=headers)
    assert resp.status_code == 404


@pytest.fixture
def dict_cache(monkeypatch):
    from app.services.cache_service import cache_service

    store = {}

    async def _get(key):
        return store.get(key)

    async def _set(key, value, ttl=None):
        store[key] = value
        return True

    async def _delete(key):
        return store.pop(key, None) is not None

    monkeypatch.setattr(cache_service, "get", _get)
    monkeypatch.setattr(cache_service, "set", _set)
    monkeypatch.setattr(cache_service, "delete", _delete)
    return store


async def _trending_titles(client, headers):
    return [p["title"] for p in (await client.get("/api/packages/trending", headers=headers)).json()["packages"]]


async def test_package_writes_refresh_cached_trending(client, make_user, locations, dict_cache):
    _, headers = await make_user("provider")
    package_id = (await client.post("/api/packages", headers=headers, json=_package_body(title="Old"))).json()["id"]
    assert await _trending_titles(client, headers) == ["Old"]
    assert dict_cache

    await client.put(f"/api/packages/{package_id}", headers=headers, json=_package_body(title="New"))
    assert await _trending_titles(client, headers) == ["New"]

    await client.post("/api/packages", headers=headers, json=_package_body(title="Another"))
    assert set(await _trending_titles(client, headers)) == {"New", "Another"}


async def test_saved_proposal_refreshes_cached_trending(client, make_user, locations, dict_cache, use_recommendations, sample_packages):
    provider, headers = await make_user("provider")
    interest = await client.post("/api/interests", headers=headers, json={
        "user_id": str(provider.id),
        "location_id": "loc-1",
        "budget": 1000,
        "duration": 5,
        "activities": "hiking",
    })
    interest_id = interest.json()["interest"]["id"]
    use_recommendations(lambda req: httpx.Response(200, json={"packages": sample_packages(1)}))
    await client.post(f"/api/search/interests/{interest_id}", headers=headers)
    assert await _trending_titles(client, headers) == []

    saved = await client.post(f"/api/search/results/{interest_id}/packages/pkg-0/save", headers=headers)
    assert saved.status_code == 201

    assert await _trending_titles(client, headers) == ["Package pkg 0"]
