from fastapi.testclient import TestClient


def _social(**overrides):
    body = {
        "platform": "FACEBOOK",
        "business_unit": "ASM",
        "country": "US",
        "date": "2024-01-01",
        "followers": 100,
        "impressions": 2000,
        "number_of_posts": 4,
    }
    body.update(overrides)
    return body


def test_upsert_returns_stored_record(client: TestClient):
    r = client.post("/metrics/social", json=_social())
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["id"] > 0
    assert data["platform"] == "FACEBOOK"
    assert data["date"] == "2024-01-01"
    assert data["followers"] == 100
    assert "created_at" in data and "updated_at" in data


def test_upsert_same_key_updates_in_place(client: TestClient):
    first = client.post("/metrics/social", json=_social()).json()
    second = client.post("/metrics/social", json=_social(followers=150)).json()
    assert second["id"] == first["id"]
    assert second["followers"] == 150

    listing = client.get("/metrics/social").json()
    assert listing["count"] == 1


def test_upsert_validation(client: TestClient):
    r = client.post("/metrics/social", json=_social(followers=-1))
    assert r.status_code == 422
    r = client.post("/metrics/social", json=_social(platform="MYSPACE"))
    assert r.status_code == 422


def test_open_rate_must_be_a_fraction(client: TestClient):
    body = {"business_unit": "IACL", "date": "2024-01-01", "recipients": 10}
    assert client.post("/metrics/newsletter", json={**body, "open_rate": 25}).status_code == 422
    r = client.post("/metrics/newsletter", json={**body, "open_rate": 0.25})
    assert r.status_code == 201
    assert r.json()["open_rate"] == 0.25


def test_engagement_only_for_social_platforms(client: TestClient):
    body = {"business_unit": "EM", "date": "2024-01-01", "likes": 3}
    assert client.post("/metrics/engagement", json={**body, "platform": "WEBSITE"}).status_code == 422
    created = client.post("/metrics/engagement", json={**body, "platform": "TIKTOK"})
    assert created.status_code == 201

    record_url = f"/metrics/engagement/{created.json()['id']}"
    assert client.put(record_url, json={"platform": "WEBSITE"}).status_code == 422
    r = client.put(record_url, json={"platform": "INSTAGRAM", "likes": 5})
    assert r.status_code == 200
    assert r.json()["platform"] == "INSTAGRAM"
    assert client.get(record_url).json()["likes"] == 5


def test_list_filters(client: TestClient):
    client.post("/metrics/social", json=_social(country="US", date="2024-01-01"))
    client.post("/metrics/social", json=_social(country="UK", date="2024-01-08"))
    client.post("/metrics/social", json=_social(platform="LINKEDIN", date="2024-02-01"))

    r = client.get("/metrics/social", params={"country": "UK"})
    assert [m["country"] for m in r.json()["results"]] == ["UK"]

    r = client.get(
        "/metrics/social",
        params={"platform": "FACEBOOK", "start_date": "2024-01-01", "end_date": "2024-01-31"},
    )
    assert r.json()["count"] == 2

    # website metrics have no platform dimension
    r = client.get("/metrics/website", params={"platform": "FACEBOOK"})
    assert r.status_code == 400


def test_unknown_kind(client: TestClient):
    assert client.get("/metrics/podcast").status_code == 404
    assert client.delete("/metrics/podcast/1").status_code == 404
    assert client.put("/metrics/podcast/1", json={"likes": 1}).status_code == 404
    assert client.post("/metrics/podcast", json={"likes": 1}).status_code == 404


def test_update_returns_canonical_record(client: TestClient):
    created = client.post(
        "/metrics/website",
        json={"business_unit": "ASM", "date": "2024-01-01", "users": 5, "clicks": 9},
    ).json()
    r = client.put(f"/metrics/website/{created['id']}", json={"users": 50})
    assert r.status_code == 200
    data = r.json()
    assert data["users"] == 50
    assert data["clicks"] == 9

    assert client.put("/metrics/website/999", json={"users": 1}).status_code == 404


def test_update_into_taken_key_is_conflict(client: TestClient):
    client.post("/metrics/social", json=_social(country="US"))
    uk = client.post("/metrics/social", json=_social(country="UK")).json()
    r = client.put(f"/metrics/social/{uk['id']}", json={"country": "US"})
    assert r.status_code == 409


def test_delete(client: TestClient):
    created = client.post("/metrics/social", json=_social()).json()
    assert client.delete(f"/metrics/social/{created['id']}").status_code == 204
    assert client.get(f"/metrics/social/{created['id']}").status_code == 404
    assert client.delete(f"/metrics/social/{created['id']}").status_code == 404


def test_seed_endpoint(client: TestClient, monkeypatch):
    r = client.post("/admin/seed")
    assert r.status_code == 200
    assert r.json()["count"] == 16
    assert client.post("/admin/seed").json()["count"] == 0

    from comms.config import settings

    monkeypatch.setattr(settings, "allow_seed", False)
    assert client.post("/admin/seed").status_code == 403
