"""
API tests for the HTTP surface, driven through httpx against the ASGI app.
"""

import logging
from datetime import timedelta

import pytest

from shortlinks.core.clock import utcnow

from conftest import auth

ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"


async def shorten(client, token=ALICE_TOKEN, **body):
    body.setdefault("originalUrl", "https://example.com")
    return await client.post("/api/urls/shorten", json=body, headers=auth(token))


async def clicks(client, code):
    response = await client.get(f"/api/analytics/clicks/{code}")
    assert response.status_code == 200
    return response.json()["clicks"]


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestShortenEndpoint:

    @pytest.mark.asyncio
    async def test_shorten(self, client):
        response = await shorten(client)

        assert response.status_code == 201
        data = response.json()
        assert data["originalUrl"] == "https://example.com"
        assert len(data["shortCode"]) == 8
        assert data["shortUrl"].endswith(f"/api/urls/{data['shortCode']}")
        assert data["expiresAt"] is None

    @pytest.mark.asyncio
    async def test_shorten_requires_token(self, client):
        response = await client.post("/api/urls/shorten", json={"originalUrl": "https://example.com"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_shorten_rejects_unknown_token(self, client):
        response = await shorten(client, token="forged")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_url_is_400_without_mutation(self, client):
        response = await shorten(client, originalUrl="not-a-url")

        assert response.status_code == 400
        listing = await client.get("/api/urls/", headers=auth(ALICE_TOKEN))
        assert listing.json() == []

    @pytest.mark.asyncio
    async def test_past_expiry_is_400(self, client):
        past = (utcnow() - timedelta(minutes=5)).isoformat() + "Z"
        response = await shorten(client, expiresAt=past)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_garbage_expiry_is_400(self, client):
        response = await shorten(client, expiresAt="soon")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_out_of_range_expiry_is_400(self, client):
        response = await shorten(client, expiresAt="9999-12-31T23:59:59-14:00")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_scheme_words_in_path_are_allowed(self, client):
        response = await shorten(client, originalUrl="https://en.wikipedia.org/wiki/Data:_URI_scheme")
        assert response.status_code == 201
        assert response.json()["originalUrl"] == "https://en.wikipedia.org/wiki/Data:_URI_scheme"

    @pytest.mark.asyncio
    async def test_future_expiry(self, client):
        future = (utcnow() + timedelta(hours=1)).isoformat() + "Z"
        response = await shorten(client, expiresAt=future)
        assert response.status_code == 201
        assert response.json()["expiresAt"] is not None

    @pytest.mark.asyncio
    async def test_custom_code_taken_is_400(self, client):
        first = await shorten(client, customCode="launch")
        second = await shorten(client, token=BOB_TOKEN, customCode="launch")

        assert first.status_code == 201
        assert first.json()["shortCode"] == "launch"
        assert second.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_custom_code_is_400(self, client):
        response = await shorten(client, customCode="no spaces")
        assert response.status_code == 400


class TestRedirectEndpoint:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, client):
        created = await shorten(client, originalUrl="https://example.com")
        assert created.status_code == 201
        code = created.json()["shortCode"]
        assert len(code) == 8

        first = await client.get(f"/api/urls/{code}")
        assert first.status_code == 302
        assert first.headers["location"] == "https://example.com"
        assert await clicks(client, code) == 1

        second = await client.get(f"/api/urls/{code}")
        assert second.status_code == 302
        assert await clicks(client, code) == 2

        deleted = await client.delete(f"/api/urls/delete/{code}", headers=auth(ALICE_TOKEN))
        assert deleted.status_code == 200
        body = deleted.json()
        assert body["message"]
        assert body["deletedUrl"]["originalUrl"] == "https://example.com"

        gone = await client.get(f"/api/urls/{code}")
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_code_is_404(self, client):
        response = await client.get("/api/urls/nothere1")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_expired_code_is_410(self, client, make_link):
        await make_link("expired1", expires_in=timedelta(seconds=-1))

        response = await client.get("/api/urls/expired1")

        assert response.status_code == 410
        assert await clicks(client, "expired1") == 0


class TestOwnerEndpoints:

    @pytest.mark.asyncio
    async def test_delete_by_other_user_is_403(self, client):
        code = (await shorten(client)).json()["shortCode"]

        response = await client.delete(f"/api/urls/delete/{code}", headers=auth(BOB_TOKEN))

        assert response.status_code == 403
        assert (await client.get(f"/api/urls/{code}")).status_code == 302

    @pytest.mark.asyncio
    async def test_delete_unknown_is_404(self, client):
        response = await client.delete("/api/urls/delete/nothere1", headers=auth(ALICE_TOKEN))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_token(self, client):
        code = (await shorten(client)).json()["shortCode"]
        response = await client.delete(f"/api/urls/delete/{code}")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_is_owner_scoped(self, client):
        await shorten(client, originalUrl="https://alice.example.com/1")
        await shorten(client, originalUrl="https://alice.example.com/2")
        await shorten(client, token=BOB_TOKEN, originalUrl="https://bob.example.com")

        alice = await client.get("/api/urls/", headers=auth(ALICE_TOKEN))
        bob = await client.get("/api/urls/", headers=auth(BOB_TOKEN))

        assert alice.status_code == 200
        assert {item["originalUrl"] for item in alice.json()} == {
            "https://alice.example.com/1",
            "https://alice.example.com/2",
        }
        assert [item["originalUrl"] for item in bob.json()] == ["https://bob.example.com"]
        assert set(alice.json()[0]) == {"originalUrl", "shortUrl", "expiresAt"}

    @pytest.mark.asyncio
    async def test_list_requires_token(self, client):
        response = await client.get("/api/urls/")
        assert response.status_code == 401


class TestAnalyticsEndpoints:

    @pytest.mark.asyncio
    async def test_clicks_unknown_is_404(self, client):
        response = await client.get("/api/analytics/clicks/nothere1")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_stats(self, client):
        code = (await shorten(client, originalUrl="https://example.com/stats")).json()["shortCode"]
        await client.get(f"/api/urls/{code}")

        response = await client.get(f"/api/analytics/stats/{code}")

        assert response.status_code == 200
        data = response.json()
        assert data["shortCode"] == code
        assert data["originalUrl"] == "https://example.com/stats"
        assert data["clicks"] == 1
        assert data["expired"] is False


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_list_is_500_when_store_fails(self, client, dropped_tables):
        response = await client.get("/api/urls/", headers=auth(ALICE_TOKEN))
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_shorten_is_500_when_store_fails(self, client, dropped_tables):
        response = await shorten(client)
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_clicks_is_500_when_store_fails(self, client, dropped_tables):
        response = await client.get("/api/analytics/clicks/abcd1234")
        assert response.status_code == 500


class TestRequestLogging:

    @pytest.mark.asyncio
    async def test_access_log_names_the_short_code(self, client, caplog):
        code = (await shorten(client)).json()["shortCode"]
        caplog.set_level(logging.INFO, logger="shortlinks.access")

        await client.get(f"/api/urls/{code}")

        lines = [r.getMessage() for r in caplog.records if r.name == "shortlinks.access"]
        assert any(
            line.startswith(f"GET /api/urls/{{short_code}} code={code} 302") for line in lines
        ), lines

    @pytest.mark.asyncio
    async def test_access_log_without_short_code(self, client, caplog):
        caplog.set_level(logging.INFO, logger="shortlinks.access")

        response = await client.get("/health")

        assert "X-Process-Time" in response.headers
        lines = [r.getMessage() for r in caplog.records if r.name == "shortlinks.access"]
        assert any(line.startswith("GET /health 200") for line in lines), lines
