"""Asset filter / streaming locator reconciliation for a playback start offset.

Given an offset in seconds, the reconciler:
1. Converts it to an absolute manifest timestamp (offset * timescale + first segment start)
2. Creates, updates or deletes the named asset filter accordingly
3. Replaces the streaming locator when its filter list no longer matches,
   keeping the locator id stable

Running it twice with the same offset is a no-op the second time.
"""

from __future__ import annotations

import httpx
from loguru import logger

from media_offset.app_config import MediaScope
from media_offset.domain.offset.manifest_inspector import build_manifest_url, resolve_timing
from media_offset.domain.offset.offset_models import (
    DEFAULT_FILTER_NAME,
    DEFAULT_STREAMING_ENDPOINT_NAME,
    FilterAction,
    ManifestTimingInfo,
    OffsetReconcileResult,
    ReconcileStatus,
)
from media_offset.services.integrations.azure_media.media_client import MediaManagementClient
from media_offset.services.integrations.azure_media.media_schemas import (
    PresentationTimeRange,
    StreamingLocator,
)
from media_offset.shared.lock import KeyedLock

MANIFEST_SCHEME = "https"


class OffsetReconciler:
    """Drives the asset filter and streaming locator to match an offset.

    Reconciliations for the same (scope, locator) run one at a time within
    this instance; share one instance to get that guarantee.
    """

    def __init__(
        self,
        client: MediaManagementClient,
        locks: KeyedLock | None = None,
        manifest_http_client: httpx.AsyncClient | None = None,
        manifest_timeout: float = 15,
    ) -> None:
        self.client = client
        self._locks = locks or KeyedLock("streaming-locator")
        self._manifest_http_client = manifest_http_client
        self._manifest_timeout = manifest_timeout

    async def reconcile(
        self,
        scope: MediaScope,
        asset_name: str,
        offset_seconds: int,
        locator_name: str,
        policy_name: str,
        filter_name: str = DEFAULT_FILTER_NAME,
        endpoint_name: str = DEFAULT_STREAMING_ENDPOINT_NAME,
    ) -> OffsetReconcileResult:
        """Reconcile the filter and locator for `asset_name` with `offset_seconds`.

        Args:
            scope: Resource group and account
            asset_name: Asset the filter belongs to
            offset_seconds: Desired playback start offset; negative means no offset
            locator_name: Streaming locator to keep in sync
            policy_name: Streaming policy used if the locator is recreated
            filter_name: Asset filter name (default: "offsetFilter")
            endpoint_name: Streaming endpoint used to reach the manifest (default: "default")

        Returns:
            OffsetReconcileResult. `status` is LOCATOR_NOT_FOUND when the locator
            does not exist, in which case nothing was changed.

        Raises:
            MediaError: If the asset or streaming endpoint cannot be fetched, or
                the locator cannot be replaced
        """
        async with self._locks.hold((scope.resource_group, scope.account_name, locator_name)):
            return await self._reconcile(
                scope,
                asset_name,
                max(offset_seconds, 0),
                locator_name,
                policy_name,
                filter_name,
                endpoint_name,
            )

    async def _reconcile(
        self,
        scope: MediaScope,
        asset_name: str,
        offset_seconds: int,
        locator_name: str,
        policy_name: str,
        filter_name: str,
        endpoint_name: str,
    ) -> OffsetReconcileResult:
        logger.info(
            f"Reconciling offset: asset={asset_name} locator={locator_name} "
            f"offset={offset_seconds}s filter={filter_name}"
        )

        await self.client.get_asset(scope, asset_name)

        locator = await self.client.try_get_streaming_locator(scope, locator_name)
        if locator is None:
            logger.warning(f"Streaming locator {locator_name} not found, nothing to reconcile")
            return OffsetReconcileResult(status=ReconcileStatus.LOCATOR_NOT_FOUND)

        endpoint = await self.client.get_streaming_endpoint(scope, endpoint_name)

        applied_timestamp = 0
        timescale: int | None = None
        if offset_seconds <= 0:
            filter_action = await self._remove_filter(scope, asset_name, filter_name)
            if filter_action == FilterAction.DELETED:
                recreate = bool(locator.filters)
            else:
                recreate = locator.references_filter(filter_name)
            desired_filters: list[str] = []
        else:
            timing = await self._resolve_timing(scope, locator_name, endpoint.host_name)
            applied_timestamp = timing.timestamp_for(offset_seconds)
            timescale = timing.timescale
            filter_action = await self._apply_filter(
                scope, asset_name, filter_name, applied_timestamp, timing.timescale
            )
            recreate = not locator.references_filter(filter_name)
            desired_filters = [filter_name]

        locator_id = locator.streaming_locator_id
        if recreate:
            template = locator.model_copy(
                update={"asset_name": asset_name, "streaming_policy_name": policy_name}
            )
            replaced = await self.client.replace_streaming_locator(scope, template, desired_filters)
            locator_id = replaced.streaming_locator_id
        else:
            logger.debug(f"Streaming locator {locator_name} already has filters {locator.filters}")

        result = OffsetReconcileResult(
            status=ReconcileStatus.APPLIED,
            applied_timestamp=applied_timestamp,
            timescale=timescale,
            filter_action=filter_action,
            locator_recreated=recreate,
            streaming_locator_id=locator_id,
        )
        logger.info(
            f"Offset reconciled: locator={locator_name} timestamp={applied_timestamp} "
            f"filter={filter_action.value} recreated={recreate}"
        )
        return result

    async def _remove_filter(
        self, scope: MediaScope, asset_name: str, filter_name: str
    ) -> FilterAction:
        existing = await self.client.try_get_asset_filter(scope, asset_name, filter_name)
        if existing is None:
            return FilterAction.ABSENT

        if await self.client.delete_asset_filter(scope, asset_name, filter_name):
            logger.info(f"Deleted asset filter {filter_name} on {asset_name}")
            return FilterAction.DELETED

        logger.info(f"Asset filter {filter_name} on {asset_name} was already gone")
        return FilterAction.ABSENT

    async def _apply_filter(
        self,
        scope: MediaScope,
        asset_name: str,
        filter_name: str,
        start_timestamp: int,
        timescale: int,
    ) -> FilterAction:
        existing = await self.client.try_get_asset_filter(scope, asset_name, filter_name)
        if existing is not None and existing.has_time_range(start_timestamp, timescale):
            logger.debug(f"Asset filter {filter_name} already starts at {start_timestamp}")
            return FilterAction.UNCHANGED

        await self.client.create_or_update_asset_filter(
            scope,
            asset_name,
            filter_name,
            PresentationTimeRange(start_timestamp=start_timestamp, timescale=timescale),
        )
        action = FilterAction.UPDATED if existing is not None else FilterAction.CREATED
        logger.info(
            f"Asset filter {filter_name} {action.value}: start={start_timestamp} timescale={timescale}"
        )
        return action

    async def _resolve_timing(
        self, scope: MediaScope, locator_name: str, host_name: str
    ) -> ManifestTimingInfo:
        paths = await self.client.list_paths(scope, locator_name)
        streaming_path = paths.first_path()
        if streaming_path is None:
            logger.warning(f"Streaming locator {locator_name} has no streaming paths, using default timing")
            return ManifestTimingInfo()

        manifest_url = build_manifest_url(MANIFEST_SCHEME, host_name, streaming_path)
        return await resolve_timing(
            manifest_url,
            http_client=self._manifest_http_client,
            timeout=self._manifest_timeout,
        )


async def reconcile_offset(
    client: MediaManagementClient,
    scope: MediaScope,
    asset_name: str,
    offset_seconds: int,
    locator_name: str,
    policy_name: str,
    filter_name: str = DEFAULT_FILTER_NAME,
    endpoint_name: str = DEFAULT_STREAMING_ENDPOINT_NAME,
) -> OffsetReconcileResult:
    """One-shot reconciliation with a throwaway reconciler."""
    return await OffsetReconciler(client).reconcile(
        scope,
        asset_name,
        offset_seconds,
        locator_name,
        policy_name,
        filter_name=filter_name,
        endpoint_name=endpoint_name,
    )
