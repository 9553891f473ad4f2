"""Integration tests for offset reconciliation against a real Media Services account.

These tests are excluded from normal unit tests.
Run with: pytest integration_tests/services/test_media_services_integration.py -v

Requires the AZURE_* variables from env.example plus MEDIA_OFFSET_IT_ASSET and
MEDIA_OFFSET_IT_LOCATOR naming an existing asset and streaming locator. The
locator is left without the offset filter when the tests finish.
"""

import os

import pytest

from media_offset.app_config import AppEnvironConfig
from media_offset.domain.offset import FilterAction, OffsetReconciler, ReconcileStatus
from media_offset.services.integrations.azure_media.media_client import create_media_client
from media_offset.services.integrations.azure_media.media_schemas import PredefinedStreamingPolicy

REQUIRED_ENV = (
    "AZURE_SUBSCRIPTION_ID",
    "AZURE_RESOURCE_GROUP",
    "AZURE_MEDIA_ACCOUNT_NAME",
    "AZURE_AAD_TENANT_ID",
    "AZURE_AAD_CLIENT_ID",
    "AZURE_AAD_SECRET",
    "MEDIA_OFFSET_IT_ASSET",
    "MEDIA_OFFSET_IT_LOCATOR",
)


@pytest.mark.integration
class TestOffsetReconcileIntegration:
    """Runs the reconciler end to end with real credentials."""

    @pytest.fixture
    def cfg(self) -> AppEnvironConfig:
        """Return config from environment variables.

        Raises:
            pytest.skip: If any required variable is missing.
        """
        missing = [key for key in REQUIRED_ENV if not os.environ.get(key)]
        if missing:
            pytest.skip(f"Environment variables required: {', '.join(missing)}")
        return AppEnvironConfig.from_environ()

    @pytest.fixture
    async def reconciler(self, cfg: AppEnvironConfig):
        reconciler = OffsetReconciler(create_media_client(cfg))
        yield reconciler
        # Leave the locator without the offset filter
        await reconciler.reconcile(
            cfg.scope,
            os.environ["MEDIA_OFFSET_IT_ASSET"],
            0,
            os.environ["MEDIA_OFFSET_IT_LOCATOR"],
            PredefinedStreamingPolicy.CLEAR_STREAMING_ONLY,
        )

    async def test_offset_is_idempotent(self, cfg: AppEnvironConfig, reconciler: OffsetReconciler) -> None:
        """Two runs with the same offset agree and the second changes nothing."""
        asset = os.environ["MEDIA_OFFSET_IT_ASSET"]
        locator = os.environ["MEDIA_OFFSET_IT_LOCATOR"]
        policy = PredefinedStreamingPolicy.CLEAR_STREAMING_ONLY

        first = await reconciler.reconcile(cfg.scope, asset, 100, locator, policy)
        second = await reconciler.reconcile(cfg.scope, asset, 100, locator, policy)

        assert first.status == ReconcileStatus.APPLIED
        assert first.applied_timestamp > 0
        assert second.applied_timestamp == first.applied_timestamp
        assert second.filter_action == FilterAction.UNCHANGED
        assert second.locator_recreated is False
        assert second.streaming_locator_id == first.streaming_locator_id

        located = await reconciler.client.try_get_streaming_locator(cfg.scope, locator)
        assert located is not None
        assert located.references_filter("offsetFilter")

    async def test_zero_offset_clears_filter(self, cfg: AppEnvironConfig, reconciler: OffsetReconciler) -> None:
        asset = os.environ["MEDIA_OFFSET_IT_ASSET"]
        locator = os.environ["MEDIA_OFFSET_IT_LOCATOR"]
        policy = PredefinedStreamingPolicy.CLEAR_STREAMING_ONLY

        await reconciler.reconcile(cfg.scope, asset, 30, locator, policy)
        result = await reconciler.reconcile(cfg.scope, asset, 0, locator, policy)

        assert result.applied_timestamp == 0
        assert await reconciler.client.try_get_asset_filter(cfg.scope, asset, "offsetFilter") is None
