"""
Authentication Boundary

Protected routes take an `Authorization: Bearer <token>` header. The token is
never parsed here: it is forwarded as-is to the Auth Service, which answers
with the identity it belongs to. Endpoints receive the resulting Identity
through the `get_current_identity` dependency and pass it on explicitly.

Auth Service contract:
    GET {AUTH_SERVICE_URL}/api/auth/verify
    Authorization: Bearer <token>
    200 {"userId": "..."}  (or {"sub": "..."})
    401/403 when the token is invalid or expired
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shortlinks.core.exceptions import InvalidTokenError, ServiceUnavailableError
from shortlinks.core.identity import Identity
from shortlinks.core.setting import settings

logger = logging.getLogger(__name__)

VERIFY_PATH = "/api/auth/verify"

bearer_scheme = HTTPBearer(auto_error=False)


class TokenVerifier(ABC):
    """Turns a bearer token into the Identity it was issued to."""

    @abstractmethod
    async def verify(self, token: str) -> Identity:
        """
        Raises:
            InvalidTokenError: If the token is rejected
            ServiceUnavailableError: If verification could not be performed
        """
        pass


class AuthServiceClient(TokenVerifier):
    """Verifies tokens by asking the external Auth Service over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def verify(self, token: str) -> Identity:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.get(
                    VERIFY_PATH,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Auth Service unreachable at {self.base_url}: {e}")
            raise ServiceUnavailableError("auth") from e

        if response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            raise InvalidTokenError("Token rejected by Auth Service")
        if response.status_code != status.HTTP_200_OK:
            logger.error(f"Auth Service answered {response.status_code} for token verification")
            raise ServiceUnavailableError("auth")

        try:
            payload = response.json()
        except ValueError as e:
            raise ServiceUnavailableError("auth") from e

        user_id = None
        if isinstance(payload, dict):
            user_id = payload.get("userId") or payload.get("sub")
        if not user_id:
            raise InvalidTokenError("Auth Service response carried no identity")
        return Identity(user_id=str(user_id))


def get_token_verifier() -> TokenVerifier:
    """Dependency returning the configured verifier (overridden in tests)."""
    return AuthServiceClient(settings.AUTH_SERVICE_URL, timeout=settings.AUTH_SERVICE_TIMEOUT)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    """
    FastAPI dependency resolving the caller's Identity.

    Raises:
        HTTPException 401: If no bearer token was sent or it was rejected
        HTTPException 503: If the Auth Service could not be reached
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await verifier.verify(credentials.credentials)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ServiceUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )
