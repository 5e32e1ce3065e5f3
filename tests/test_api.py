"""
HTTP tests for the FastAPI application.

Each test builds its own app (see conftest.build_client_app), so rate limit
counters never leak between tests.
"""

import uuid
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text

from conftest import build_client_app


def _create(client, **body):
    body.setdefault("long_url", "https://example.com/some/long/path")
    return client.post("/api/urls", json=body)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    root = client.get("/").json()
    assert root["message"] == "URL Shortener Service"


def test_create_short_url(client):
    response = _create(client)
    assert response.status_code == 201

    data = response.json()
    assert len(data["short_code"]) == 7
    assert data["short_code"].isalnum()
    assert data["short_url"].endswith(f"/r/{data['short_code']}")
    assert data["hit_count"] == 0
    assert data["expires_at"] is None
    uuid.UUID(data["id"])


def test_create_rejects_invalid_url(client):
    response = _create(client, long_url="not-a-url")
    assert response.status_code == 400


def test_owner_ip_ignores_forwarded_header(client, database_url):
    response = client.post(
        "/api/urls",
        json={"long_url": "https://example.com/owned"},
        headers={"X-Forwarded-For": "1.2.3.4"},
    )
    assert response.status_code == 201

    engine = create_engine(database_url.replace("sqlite+aiosqlite://", "sqlite://", 1))
    with engine.connect() as connection:
        owner_ip = connection.execute(
            text("SELECT owner_ip FROM url_mappings WHERE short_code = :code"),
            {"code": response.json()["short_code"]},
        ).scalar_one()
    engine.dispose()
    # TestClient connects as "testclient"; the header must not be trusted
    assert owner_ip == "testclient"


def test_custom_code_conflict(client):
    assert _create(client, custom_short_code="promo").status_code == 201

    response = _create(client, custom_short_code="promo")
    assert response.status_code == 409
    assert "already exists" in response.json()["detail"]


def test_custom_code_must_be_alphanumeric(client):
    response = _create(client, custom_short_code="bad code!")
    assert response.status_code == 400


def test_blank_custom_code_generates_one(client):
    response = _create(client, custom_short_code="   ")
    assert response.status_code == 201
    assert len(response.json()["short_code"]) == 7


def test_redirect_and_hit_count(client):
    code = _create(client, long_url="https://example.org/target").json()["short_code"]

    for _ in range(2):
        response = client.get(f"/r/{code}", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://example.org/target"

    stats = client.get(f"/stats/{code}").json()
    assert stats["hit_count"] == 2
    assert stats["long_url"] == "https://example.org/target"


def test_redirect_errors(client):
    assert client.get("/r/nothing1", follow_redirects=False).status_code == 404
    assert client.get("/r/bad-code", follow_redirects=False).status_code == 400

    past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    code = _create(client, expiration_utc=past).json()["short_code"]
    response = client.get(f"/r/{code}", follow_redirects=False)
    assert response.status_code == 410


def test_crud(client):
    ids = [_create(client, long_url=f"https://example.com/{i}").json()["id"] for i in range(3)]

    listing = client.get("/api/urls", params={"take": 2})
    assert listing.status_code == 200
    assert len(listing.json()) == 2
    assert client.get("/api/urls", params={"take": 101}).status_code == 422

    fetched = client.get(f"/api/urls/{ids[0]}")
    assert fetched.status_code == 200
    assert fetched.json()["long_url"] == "https://example.com/0"

    future = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
    updated = client.put(
        f"/api/urls/{ids[0]}",
        json={"long_url": "https://example.net", "expiration_utc": future},
    )
    assert updated.status_code == 200
    assert updated.json()["long_url"] == "https://example.net"
    assert updated.json()["expires_at"] is not None
    assert updated.json()["short_code"] == fetched.json()["short_code"]

    # omitted expiration is kept, explicit null clears it
    kept = client.put(f"/api/urls/{ids[0]}", json={"long_url": "https://example.org"})
    assert kept.json()["expires_at"] is not None
    cleared = client.put(f"/api/urls/{ids[0]}", json={"expiration_utc": None})
    assert cleared.json()["expires_at"] is None

    assert client.put(f"/api/urls/{ids[0]}", json={"long_url": "nope"}).status_code == 400
    assert client.put(f"/api/urls/{uuid.uuid4()}", json={}).status_code == 404

    assert client.delete(f"/api/urls/{ids[1]}").status_code == 204
    assert client.delete(f"/api/urls/{ids[1]}").status_code == 404
    assert client.get(f"/api/urls/{ids[1]}").status_code == 404


def test_rate_limit_per_client(session_maker):
    app = build_client_app(session_maker, RATE_LIMIT="3/minute")
    with TestClient(app) as client:
        for remaining in (2, 1, 0):
            response = client.get("/health")
            assert response.status_code == 200
            assert response.headers["X-RateLimit-Limit"] == "3"
            assert response.headers["X-RateLimit-Remaining"] == str(remaining)

        denied = client.get("/health")
        assert denied.status_code == 429
        assert denied.json() == {"error": "Too many requests per minute"}
        assert 0 < int(denied.headers["Retry-After"]) <= 60


def test_rate_limit_fails_closed_without_limiter(session_maker):
    app = build_client_app(session_maker)
    # no context manager: startup never runs, so no limiter is attached
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 500
    assert response.json() == {"error": "Rate limiting internal error"}


def test_rate_limit_can_be_disabled(session_maker):
    app = build_client_app(session_maker, RATE_LIMIT="1/minute", RATE_LIMIT_ENABLED=False)
    with TestClient(app) as client:
        for _ in range(3):
            assert client.get("/health").status_code == 200


def test_limiter_closed_on_shutdown(session_maker):
    app = build_client_app(session_maker)
    with TestClient(app) as client:
        cache = app.state.rate_limit_cache
        assert client.get("/health").status_code == 200
    assert app.state.rate_limiter is None
    assert cache._closed
