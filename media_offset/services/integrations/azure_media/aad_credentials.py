"""AAD client-credentials token provider for the management API."""

from __future__ import annotations

import asyncio
import time

import httpx
from loguru import logger

from media_offset.utils.media_errors import MediaError, MediaErrorCode, MediaStatusCode

TOKEN_TYPE = "Bearer"

# Refresh this many seconds before the token actually expires
_EXPIRY_MARGIN_SECONDS = 120


class AadTokenProvider:
    """Acquires and caches a bearer token for a service principal."""

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        audience: str,
        authority_host: str = "https://login.microsoftonline.com",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30,
    ) -> None:
        self.tenant_id = tenant_id
        self.client_id = client_id
        self._client_secret = client_secret
        self.scope = f"{audience.rstrip('/')}/.default"
        self.token_url = f"{authority_host.rstrip('/')}/{tenant_id}/oauth2/v2.0/token"
        self._http_client = http_client
        self._timeout = timeout
        self._access_token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        """Return a valid access token, requesting a new one when needed."""
        async with self._lock:
            if self._access_token and time.monotonic() < self._expires_at:
                return self._access_token
            await self._acquire()
            assert self._access_token is not None
            return self._access_token

    async def authorization_header(self) -> dict[str, str]:
        token = await self.get_token()
        return {"Authorization": f"{TOKEN_TYPE} {token}"}

    async def _acquire(self) -> None:
        form = {
            "client_id": self.client_id,
            "client_secret": self._client_secret,
            "scope": self.scope,
            "grant_type": "client_credentials",
        }
        logger.debug("Requesting AAD token: url={} client_id={}", self.token_url, self.client_id)

        if self._http_client is not None:
            response = await self._http_client.post(self.token_url, data=form, timeout=self._timeout)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(self.token_url, data=form, timeout=self._timeout)

        if response.status_code != 200:
            try:
                detail = response.json().get("error_description") or response.text
            except ValueError:
                detail = response.text
            logger.error("AAD token request failed: status={} tenant={}", response.status_code, self.tenant_id)
            raise MediaError(
                errcode=MediaErrorCode.E_AUTHENTICATION_FAILED,
                errmesg=f"Token request failed: {detail[:300]}",
                status_code=MediaStatusCode.UNAUTHORIZED,
            )

        try:
            data = response.json()
            access_token = str(data["access_token"])
            expires_in = int(data.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("AAD token response malformed: tenant={} err={}", self.tenant_id, type(e).__name__)
            raise MediaError(
                errcode=MediaErrorCode.E_AUTHENTICATION_FAILED,
                errmesg="Token response did not contain a usable access_token",
                status_code=MediaStatusCode.BAD_GATEWAY,
            ) from e
        self._access_token = access_token
        self._expires_at = time.monotonic() + max(expires_in - _EXPIRY_MARGIN_SECONDS, 0)
        logger.info("AAD token acquired: tenant={} expires_in={}s", self.tenant_id, expires_in)
