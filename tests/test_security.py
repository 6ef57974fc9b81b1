"""
Tests for the Auth Service client used to turn bearer tokens into identities.
"""

import httpx
import pytest

from shortlinks.core.exceptions import InvalidTokenError, ServiceUnavailableError
from shortlinks.core.identity import Identity
from shortlinks.core.security import AuthServiceClient


def auth_service(handler):
    return AuthServiceClient("http://auth.local/", transport=httpx.MockTransport(handler))


def fake_auth_handler(request: httpx.Request) -> httpx.Response:
    assert request.url.path == "/api/auth/verify"
    token = request.headers.get("Authorization")
    if token == "Bearer good-token":
        return httpx.Response(200, json={"userId": "user-42"})
    if token == "Bearer jwt-style":
        return httpx.Response(200, json={"sub": "user-7"})
    if token == "Bearer anonymous":
        return httpx.Response(200, json={})
    return httpx.Response(401, json={"message": "invalid token"})


class TestAuthServiceClient:

    @pytest.mark.asyncio
    async def test_valid_token(self):
        identity = await auth_service(fake_auth_handler).verify("good-token")
        assert identity == Identity("user-42")

    @pytest.mark.asyncio
    async def test_sub_claim_fallback(self):
        identity = await auth_service(fake_auth_handler).verify("jwt-style")
        assert identity.user_id == "user-7"

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        with pytest.raises(InvalidTokenError):
            await auth_service(fake_auth_handler).verify("forged")

    @pytest.mark.asyncio
    async def test_response_without_identity(self):
        with pytest.raises(InvalidTokenError):
            await auth_service(fake_auth_handler).verify("anonymous")

    @pytest.mark.asyncio
    async def test_auth_service_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServiceUnavailableError):
            await auth_service(handler).verify("good-token")

    @pytest.mark.asyncio
    async def test_auth_service_error(self):
        with pytest.raises(ServiceUnavailableError):
            await auth_service(lambda request: httpx.Response(502)).verify("good-token")
