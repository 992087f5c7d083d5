from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from vowvenues.app import create_app
from vowvenues.config import Settings
from vowvenues.infra.db import CacheState, ConnectionCache

from conftest import TEST_SECRET


def test_list_venues_returns_all_with_string_ids(client, venue_ids):
    r = client.get("/api/venues")
    assert r.status_code == 200
    venues = r.json()
    assert {v["name"] for v in venues} == set(venue_ids)
    for v in venues:
        assert isinstance(v["_id"], str)
        assert v["_id"] == venue_ids[v["name"]]

    grand = next(v for v in venues if v["name"] == "Grand Palace Hall")
    assert isinstance(grand["ownerId"], str) and ObjectId.is_valid(grand["ownerId"])
    assert grand["additionalMetric"] == 300
    assert grand["createdAt"].startswith("2024-05-01")


def test_list_venues_empty_collection(client):
    r = client.get("/api/venues")
    assert r.status_code == 200
    assert r.json() == []


def _names(r):
    return sorted(v["name"] for v in r.json())


def test_list_venues_filters(client, venue_ids):
    r = client.get("/api/venues", params={"minCapacity": 300, "maxCapacity": 1000})
    assert _names(r) == ["Lakeview Lawn"]

    r = client.get("/api/venues", params={"maxPrice": 90000})
    assert _names(r) == ["Lakeview Lawn", "Rooftop Terrace"]

    r = client.get("/api/venues", params={"q": "bengaluru"})
    assert _names(r) == ["Grand Palace Hall", "Rooftop Terrace"]

    r = client.get("/api/venues", params={"q": "ROOFTOP", "minPrice": 50000})
    assert r.json() == []


def test_list_venues_rejects_bad_filters(client, venue_ids):
    r = client.get("/api/venues", params={"minCapacity": 500, "maxCapacity": 100})
    assert r.status_code == 400

    r = client.get("/api/venues", params={"minCapacity": "lots"})
    assert r.status_code == 400


def test_get_venue_by_id(client, venue_ids):
    vid = venue_ids["Lakeview Lawn"]
    r = client.get(f"/api/venues/{vid}")
    assert r.status_code == 200
    body = r.json()
    assert body["_id"] == vid
    assert body["name"] == "Lakeview Lawn"
    assert "email" not in body


def test_get_venue_malformed_id_is_400(client, venue_ids):
    r = client.get("/api/venues/not-an-id")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid venue ID format"


def test_get_venue_unknown_id_is_404(client, venue_ids):
    r = client.get(f"/api/venues/{ObjectId()}")
    assert r.status_code == 404
    assert r.json()["message"] == "Venue not found"


def test_venue_endpoints_are_read_only(client, venue_ids):
    assert client.post("/api/venues", json={}).status_code == 405
    assert client.delete(f"/api/venues/{venue_ids['Rooftop Terrace']}").status_code == 405


def test_connection_is_reused_across_requests(client, venue_ids, connect_calls):
    for _ in range(3):
        assert client.get("/api/venues").status_code == 200
    assert len(connect_calls) == 1


def test_database_outage_is_500_and_next_request_retries(settings, mongo_db):
    attempts = []

    async def flaky_connect(uri, db_name):
        attempts.append(uri)
        if len(attempts) == 1:
            raise ServerSelectionTimeoutError("no servers available")
        return mongo_db

    cache = ConnectionCache(settings, connect=flaky_connect, dispose=None)
    with TestClient(create_app(settings, cache)) as c:
        r = c.get("/api/venues")
        assert r.status_code == 500
        assert r.json()["message"] == "Internal server error"
        assert cache.state is CacheState.EMPTY

        r = c.get("/api/venues")
        assert r.status_code == 200
    assert len(attempts) == 2


def test_missing_database_uri_is_reported_as_configuration_error(mongo_db):
    settings = Settings(mongodb_uri=None, secret_key=TEST_SECRET)
    cache = ConnectionCache(settings, connect=lambda uri, db: mongo_db, dispose=None)
    with TestClient(create_app(settings, cache)) as c:
        r = c.get("/api/venues")
    assert r.status_code == 500
    assert r.json()["message"] == "Server configuration error"
    assert r.json()["error"] == "MONGODB_URI is not set"


def test_unexpected_error_becomes_json_500(client, monkeypatch):
    async def broken(db, filters=None):
        raise RuntimeError("venue index corrupted")

    monkeypatch.setattr("vowvenues.app.list_venues", broken)
    r = client.get("/api/venues")
    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error", "error": "venue index corrupted"}

    # the app keeps serving afterwards
    assert client.get("/api/health").json() == {"status": "ok"}
