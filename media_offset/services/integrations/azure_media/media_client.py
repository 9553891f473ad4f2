"""Media Services management API client.

This module provides a thin httpx wrapper around the ARM REST operations the
offset reconciler needs: assets, streaming locators, streaming endpoints and
asset filters.

Usage:
    from media_offset.services.integrations.azure_media.media_client import create_media_client

    client = create_media_client()
    asset = await client.get_asset(scope, "inputAsset-123")
    locator = await client.try_get_streaming_locator(scope, "streamingLocator-123")
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

import httpx
from loguru import logger

from media_offset.app_config import AppEnvironConfig, MediaScope, get_app_environ_config
from media_offset.services.integrations.azure_media.aad_credentials import AadTokenProvider
from media_offset.services.integrations.azure_media.media_schemas import (
    Asset,
    AssetFilter,
    ListPathsResponse,
    PresentationTimeRange,
    StreamingEndpoint,
    StreamingLocator,
)
from media_offset.utils.media_errors import (
    MediaError,
    MediaErrorCode,
    MediaStatusCode,
    media_error_from_response,
)


class MediaManagementClient(Protocol):
    """Operations the reconciler performs against the management API."""

    async def get_asset(self, scope: MediaScope, asset_name: str) -> Asset: ...

    async def try_get_streaming_locator(
        self, scope: MediaScope, locator_name: str
    ) -> StreamingLocator | None: ...

    async def create_streaming_locator(
        self, scope: MediaScope, locator: StreamingLocator
    ) -> StreamingLocator: ...

    async def delete_streaming_locator(self, scope: MediaScope, locator_name: str) -> bool: ...

    async def replace_streaming_locator(
        self, scope: MediaScope, existing: StreamingLocator, filters: list[str]
    ) -> StreamingLocator: ...

    async def list_paths(self, scope: MediaScope, locator_name: str) -> ListPathsResponse: ...

    async def get_streaming_endpoint(
        self, scope: MediaScope, endpoint_name: str
    ) -> StreamingEndpoint: ...

    async def try_get_asset_filter(
        self, scope: MediaScope, asset_name: str, filter_name: str
    ) -> AssetFilter | None: ...

    async def create_or_update_asset_filter(
        self,
        scope: MediaScope,
        asset_name: str,
        filter_name: str,
        presentation_time_range: PresentationTimeRange,
    ) -> AssetFilter: ...

    async def delete_asset_filter(
        self, scope: MediaScope, asset_name: str, filter_name: str
    ) -> bool: ...


class LocatorReplaceMixin:
    """Delete-then-create replacement of a streaming locator.

    The locator id, asset, policy and name are carried over so that consumers
    holding the id keep working. The two calls are not atomic: if the create
    fails or the task is cancelled after the delete, no locator exists.
    """

    async def replace_streaming_locator(
        self, scope: MediaScope, existing: StreamingLocator, filters: list[str]
    ) -> StreamingLocator:
        replacement = StreamingLocator(
            name=existing.name,
            asset_name=existing.asset_name,
            streaming_policy_name=existing.streaming_policy_name,
            streaming_locator_id=existing.streaming_locator_id,
            filters=list(filters),
        )
        logger.info(
            f"Replacing streaming locator {existing.name}: "
            f"id={existing.streaming_locator_id} filters {existing.filters} -> {replacement.filters}"
        )
        await self.delete_streaming_locator(scope, existing.name)  # type: ignore[attr-defined]
        try:
            return await self.create_streaming_locator(scope, replacement)  # type: ignore[attr-defined]
        except (asyncio.CancelledError, Exception):
            logger.exception(
                f"Streaming locator {existing.name} was deleted but not recreated "
                f"(id={existing.streaming_locator_id}); it must be recreated manually"
            )
            raise


class AzureMediaClient(LocatorReplaceMixin):
    """Async client for the Media Services ARM REST API."""

    def __init__(
        self,
        arm_endpoint: str,
        subscription_id: str,
        token_provider: AadTokenProvider,
        api_version: str = "2023-01-01",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30,
    ) -> None:
        self.arm_endpoint = arm_endpoint.rstrip("/")
        self.subscription_id = subscription_id
        self.api_version = api_version
        self._token_provider = token_provider
        self._http_client = http_client
        self._timeout = timeout

    def _account_url(self, scope: MediaScope) -> str:
        return (
            f"{self.arm_endpoint}/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{scope.resource_group}"
            f"/providers/Microsoft.Media/mediaServices/{scope.account_name}"
        )

    async def _send(
        self, method: str, url: str, json: dict[str, Any] | None = None
    ) -> httpx.Response:
        headers = await self._token_provider.authorization_header()
        params = {"api-version": self.api_version}
        logger.debug(f"Media API {method} {url}")
        if self._http_client is not None:
            return await self._http_client.request(
                method, url, params=params, headers=headers, json=json, timeout=self._timeout
            )
        async with httpx.AsyncClient() as client:
            return await client.request(
                method, url, params=params, headers=headers, json=json, timeout=self._timeout
            )

    async def _get_or_none(self, url: str, kind: str) -> dict[str, Any] | None:
        response = await self._send("GET", url)
        if response.status_code == MediaStatusCode.NOT_FOUND:
            return None
        if response.is_error:
            raise media_error_from_response(response, kind)
        return response.json()

    async def _get_required(self, url: str, kind: str) -> dict[str, Any]:
        response = await self._send("GET", url)
        if response.is_error:
            raise media_error_from_response(response, kind)
        return response.json()

    async def _delete(self, url: str, kind: str) -> bool:
        """Delete a resource; returns False when it did not exist."""
        response = await self._send("DELETE", url)
        if response.status_code in (204, MediaStatusCode.NOT_FOUND):
            return False
        if response.is_error:
            raise media_error_from_response(response, kind)
        return True

    # Assets

    async def get_asset(self, scope: MediaScope, asset_name: str) -> Asset:
        url = f"{self._account_url(scope)}/assets/{asset_name}"
        return Asset.model_validate(await self._get_required(url, "assets"))

    # Streaming locators

    async def try_get_streaming_locator(
        self, scope: MediaScope, locator_name: str
    ) -> StreamingLocator | None:
        url = f"{self._account_url(scope)}/streamingLocators/{locator_name}"
        data = await self._get_or_none(url, "streamingLocators")
        return StreamingLocator.model_validate(data) if data is not None else None

    async def create_streaming_locator(
        self, scope: MediaScope, locator: StreamingLocator
    ) -> StreamingLocator:
        url = f"{self._account_url(scope)}/streamingLocators/{locator.name}"
        response = await self._send("PUT", url, json=locator.to_request_body())
        if response.is_error:
            raise media_error_from_response(response, "streamingLocators")
        created = StreamingLocator.model_validate(response.json())
        logger.info(
            f"Created streaming locator {created.name}: id={created.streaming_locator_id} "
            f"filters={created.filters}"
        )
        return created

    async def delete_streaming_locator(self, scope: MediaScope, locator_name: str) -> bool:
        url = f"{self._account_url(scope)}/streamingLocators/{locator_name}"
        deleted = await self._delete(url, "streamingLocators")
        logger.info(f"Deleted streaming locator {locator_name}: existed={deleted}")
        return deleted

    async def list_paths(self, scope: MediaScope, locator_name: str) -> ListPathsResponse:
        url = f"{self._account_url(scope)}/streamingLocators/{locator_name}/listPaths"
        response = await self._send("POST", url)
        if response.is_error:
            raise media_error_from_response(response, "streamingLocators")
        return ListPathsResponse.model_validate(response.json())

    # Streaming endpoints

    async def get_streaming_endpoint(
        self, scope: MediaScope, endpoint_name: str
    ) -> StreamingEndpoint:
        url = f"{self._account_url(scope)}/streamingEndpoints/{endpoint_name}"
        return StreamingEndpoint.model_validate(await self._get_required(url, "streamingEndpoints"))

    # Asset filters

    async def try_get_asset_filter(
        self, scope: MediaScope, asset_name: str, filter_name: str
    ) -> AssetFilter | None:
        url = f"{self._account_url(scope)}/assets/{asset_name}/assetFilters/{filter_name}"
        data = await self._get_or_none(url, "assetFilters")
        return AssetFilter.model_validate(data) if data is not None else None

    async def create_or_update_asset_filter(
        self,
        scope: MediaScope,
        asset_name: str,
        filter_name: str,
        presentation_time_range: PresentationTimeRange,
    ) -> AssetFilter:
        url = f"{self._account_url(scope)}/assets/{asset_name}/assetFilters/{filter_name}"
        body = AssetFilter(
            name=filter_name, presentation_time_range=presentation_time_range
        ).to_request_body()
        response = await self._send("PUT", url, json=body)
        if response.is_error:
            raise media_error_from_response(response, "assetFilters")
        return AssetFilter.model_validate(response.json())

    async def delete_asset_filter(
        self, scope: MediaScope, asset_name: str, filter_name: str
    ) -> bool:
        url = f"{self._account_url(scope)}/assets/{asset_name}/assetFilters/{filter_name}"
        return await self._delete(url, "assetFilters")


def create_media_client(
    cfg: AppEnvironConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AzureMediaClient:
    """Build an authenticated client from configuration.

    Raises:
        MediaError: If the subscription or service principal is not configured
    """
    cfg = cfg or get_app_environ_config()
    missing = [
        key
        for key in (
            "AZURE_SUBSCRIPTION_ID",
            "AZURE_RESOURCE_GROUP",
            "AZURE_MEDIA_ACCOUNT_NAME",
            "AZURE_AAD_TENANT_ID",
            "AZURE_AAD_CLIENT_ID",
            "AZURE_AAD_SECRET",
        )
        if not getattr(cfg, key)
    ]
    if missing:
        logger.error(f"Media Services client not configured, missing: {missing}")
        raise MediaError(
            errcode=MediaErrorCode.E_NOT_CONFIGURED,
            errmesg=f"Missing configuration: {', '.join(missing)}. Set them in env.local or environment variables.",
            status_code=MediaStatusCode.BAD_REQUEST,
        )

    token_provider = AadTokenProvider(
        tenant_id=cfg.AZURE_AAD_TENANT_ID,  # type: ignore[arg-type]
        client_id=cfg.AZURE_AAD_CLIENT_ID,  # type: ignore[arg-type]
        client_secret=cfg.AZURE_AAD_SECRET,  # type: ignore[arg-type]
        audience=cfg.AZURE_ARM_AAD_AUDIENCE,
        authority_host=cfg.AZURE_AAD_AUTHORITY_HOST,
        http_client=http_client,
        timeout=cfg.MEDIA_API_TIMEOUT_SECONDS,
    )
    return AzureMediaClient(
        arm_endpoint=cfg.AZURE_ARM_ENDPOINT,
        subscription_id=cfg.AZURE_SUBSCRIPTION_ID,  # type: ignore[arg-type]
        token_provider=token_provider,
        api_version=cfg.AZURE_MEDIA_API_VERSION,
        http_client=http_client,
        timeout=cfg.MEDIA_API_TIMEOUT_SECONDS,
    )
