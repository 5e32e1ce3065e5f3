"""
Tests for the URL shortening, redirect and stats services.

Service tests run against a temporary SQLite database (see conftest.py).
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from shortener.core.exceptions import (
    CodeAlreadyExists,
    GenerationExhausted,
    InvalidURLError,
    ShortCodeExpiredError,
    ShortCodeNotFoundError,
)
from shortener.core.validators import sanitize_short_code, validate_url_length
from shortener.services import code_generator
from shortener.services.redirect_service import RedirectService
from shortener.services.stats_service import StatsService
from shortener.services.url_service import URLShorteningService, as_utc, is_valid_url


class TestURLValidation:
    """Test URL validation function."""

    def test_valid_urls(self):
        valid_urls = [
            "http://example.com",
            "https://example.com",
            "https://www.example.com/path/to/page",
            "http://subdomain.example.com:8080/path?query=value",
            "http://localhost:8000/x",
        ]
        for url in valid_urls:
            assert is_valid_url(url), f"Should be valid: {url}"

    def test_invalid_urls(self):
        invalid_urls = [
            "not-a-url",
            "ftp://example.com",  # FTP not supported
            "example.com",  # Missing scheme
            "",
            "http://",  # Missing domain
            "javascript:alert(1)",
            "https://example.com/" + "a" * 2100,
        ]
        for url in invalid_urls:
            assert not is_valid_url(url), f"Should be invalid: {url}"


class TestValidators:

    def test_sanitize_short_code(self):
        assert sanitize_short_code("abc123") == "abc123"
        assert sanitize_short_code("  abc  ") == "abc"
        assert sanitize_short_code("my-link") is None
        assert sanitize_short_code("a" * 21) is None
        assert sanitize_short_code("") is None

    def test_validate_url_length(self):
        assert validate_url_length("https://example.com")
        assert not validate_url_length("")
        assert not validate_url_length("x" * 2049)


@pytest.mark.asyncio
async def test_create_short_url_generates_code(session):
    service = URLShorteningService(session)
    mapping = await service.create_short_url("https://example.com/page", owner_ip="10.0.0.1")

    assert len(mapping.short_code) == 7
    assert mapping.short_code.isalnum()
    assert mapping.long_url == "https://example.com/page"
    assert mapping.hit_count == 0
    assert mapping.owner_ip == "10.0.0.1"
    assert await service.code_exists(mapping.short_code)


@pytest.mark.asyncio
async def test_create_short_url_rejects_invalid_url(session):
    with pytest.raises(InvalidURLError):
        await URLShorteningService(session).create_short_url("ftp://example.com")


@pytest.mark.asyncio
async def test_same_url_gets_distinct_codes(session):
    service = URLShorteningService(session)
    first = await service.create_short_url("https://example.com")
    second = await service.create_short_url("https://example.com")
    assert first.short_code != second.short_code


@pytest.mark.asyncio
async def test_custom_code(session):
    service = URLShorteningService(session)
    mapping = await service.create_short_url("https://example.com", custom_code="promo2026")
    assert mapping.short_code == "promo2026"

    with pytest.raises(CodeAlreadyExists):
        await service.create_short_url("https://other.example.com", custom_code="promo2026")


@pytest.mark.asyncio
async def test_custom_code_insert_race_reports_conflict(session, monkeypatch):
    service = URLShorteningService(session)
    await service.create_short_url("https://example.com", custom_code="taken")

    # The existence check misses the concurrent insert; the unique index catches it
    async def never_exists(code):
        return False

    monkeypatch.setattr(service, "code_exists", never_exists)
    with pytest.raises(CodeAlreadyExists):
        await service.create_short_url("https://example.com", custom_code="taken")


@pytest.mark.asyncio
async def test_generated_code_conflict_is_retried(session, monkeypatch):
    service = URLShorteningService(session)
    await service.create_short_url("https://example.com", custom_code="dupe001")

    candidates = iter(["dupe001", "fresh01"])

    async def fake_generate(exists, length=7, primary_attempts=10, fallback_attempts=None):
        return next(candidates)

    monkeypatch.setattr(code_generator, "generate_unique_code", fake_generate)

    mapping = await service.create_short_url("https://example.org")
    assert mapping.short_code == "fresh01"


@pytest.mark.asyncio
async def test_repeated_insert_conflict_exhausts(session, monkeypatch):
    service = URLShorteningService(session, insert_attempts=2)
    await service.create_short_url("https://example.com", custom_code="dupe001")

    calls = []

    async def always_dupe(exists, length=7, primary_attempts=10, fallback_attempts=None):
        calls.append(length)
        return "dupe001"

    monkeypatch.setattr(code_generator, "generate_unique_code", always_dupe)

    with pytest.raises(GenerationExhausted):
        await service.create_short_url("https://example.org")
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_configured_code_length(session):
    mapping = await URLShorteningService(session, code_length=10).create_short_url("https://example.com")
    assert len(mapping.short_code) == 10


@pytest.mark.asyncio
async def test_list_update_delete(session):
    service = URLShorteningService(session)
    created = [
        await service.create_short_url(f"https://example.com/{i}")
        for i in range(3)
    ]

    listed = await service.list_urls(skip=0, take=2)
    assert len(listed) == 2

    expires = datetime.now(timezone.utc) + timedelta(days=1)
    updated = await service.update_url(created[0].id, long_url="https://example.net", expires_at=expires)
    assert updated.long_url == "https://example.net"
    assert updated.short_code == created[0].short_code
    assert as_utc(updated.expires_at) == expires

    cleared = await service.update_url(created[0].id, expires_at=None)
    assert cleared.expires_at is None

    kept = await service.update_url(created[0].id, long_url="https://example.org")
    assert kept.expires_at is None
    assert kept.long_url == "https://example.org"

    with pytest.raises(InvalidURLError):
        await service.update_url(created[0].id, long_url="nope")

    assert await service.delete_url(created[1].id)
    assert not await service.delete_url(created[1].id)
    assert await service.get_by_id(created[1].id) is None

    assert await service.update_url(uuid.uuid4(), long_url="https://example.com") is None


@pytest.mark.asyncio
async def test_redirect_counts_hits(session):
    mapping = await URLShorteningService(session).create_short_url("https://example.com")
    redirects = RedirectService(session)

    for _ in range(3):
        assert await redirects.resolve(mapping.short_code) == "https://example.com"

    stats = await StatsService(session).get_stats(mapping.short_code)
    assert stats["hit_count"] == 3
    assert stats["expired"] is False


@pytest.mark.asyncio
async def test_redirect_unknown_and_expired(session):
    redirects = RedirectService(session)
    with pytest.raises(ShortCodeNotFoundError):
        await redirects.resolve("missing")

    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    mapping = await URLShorteningService(session).create_short_url(
        "https://example.com", custom_code="old", expires_at=past
    )
    with pytest.raises(ShortCodeExpiredError):
        await redirects.resolve(mapping.short_code)

    stats = await StatsService(session).get_stats("old")
    assert stats["hit_count"] == 0
    assert stats["expired"] is True


@pytest.mark.asyncio
async def test_stats_missing_code(session):
    assert await StatsService(session).get_stats("nothing") is None
