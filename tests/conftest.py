import asyncio
from datetime import datetime, timezone

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from vowvenues.app import create_app
from vowvenues.config import Settings
from vowvenues.infra.db import ConnectionCache

TEST_SECRET = "test-secret-not-for-production"
ALLOWED_ORIGIN = "http://localhost:5173"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        mongodb_uri="mongodb://unused.invalid:27017",
        db_name="vowvenues_test",
        secret_key=TEST_SECRET,
        cors_origins=(ALLOWED_ORIGIN,),
        log_level="WARNING",
    )


@pytest.fixture()
def mongo_db():
    """In-memory database standing in for MongoDB (users.username is unique)."""
    db = AsyncMongoMockClient()["vowvenues_test"]
    asyncio.run(db["users"].create_index([("username", 1)], unique=True))
    return db


@pytest.fixture()
def connect_calls():
    return []


@pytest.fixture()
def cache(settings, mongo_db, connect_calls) -> ConnectionCache:
    async def connect(uri, db_name):
        connect_calls.append((uri, db_name))
        return mongo_db

    return ConnectionCache(settings, connect=connect, dispose=None)


@pytest.fixture()
def client(settings, cache):
    app = create_app(settings, cache)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def venue_ids(mongo_db):
    """Seed three venues and return their ids as strings, keyed by name."""
    owner = ObjectId()
    docs = [
        {
            "name": "Grand Palace Hall",
            "capacity": 1500,
            "additionalMetric": 300,
            "phone": "080-1111",
            "address": "MG Road, Bengaluru",
            "price": 250000,
            "email": "events@grandpalace.example",
            "ownerId": owner,
            "createdAt": datetime(2024, 5, 1, tzinfo=timezone.utc),
        },
        {
            "name": "Lakeview Lawn",
            "capacity": 400,
            "phone": "080-2222",
            "address": "Hebbal Lake Road",
            "price": 90000,
            "createdAt": datetime(2024, 5, 2, tzinfo=timezone.utc),
        },
        {
            "name": "Rooftop Terrace",
            "capacity": 120,
            "additionalMetric": 20,
            "phone": "080-3333",
            "address": "Indiranagar, Bengaluru",
            "price": 40000,
            "createdAt": datetime(2024, 5, 3, tzinfo=timezone.utc),
        },
    ]
    result = asyncio.run(mongo_db["venues"].insert_many(docs))
    return {d["name"]: str(i) for d, i in zip(docs, result.inserted_ids)}


@pytest.fixture()
def registered(client):
    """Register alice and return the response body."""
    r = client.post(
        "/api/register",
        json={"username": "alice", "password": "pw123", "name": "Alice", "email": "a@x.com"},
    )
    assert r.status_code == 201, r.text
    return r.json()
