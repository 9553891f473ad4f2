"""Example usage of the offset reconciler.

This example demonstrates how to:
1. Build a management client from env.local / environment variables
2. Apply a 100 second start offset to a streaming locator
3. Run it again and confirm nothing changes
4. Remove the offset again
"""

import asyncio
import sys

from media_offset.app_config import get_app_environ_config
from media_offset.domain.offset import OffsetReconciler
from media_offset.services.integrations.azure_media.media_client import create_media_client
from media_offset.services.integrations.azure_media.media_schemas import PredefinedStreamingPolicy


async def main(asset_name: str, locator_name: str) -> None:
    """Run offset reconciler examples."""
    print("=== Offset Reconciler Example ===\n")

    cfg = get_app_environ_config()
    reconciler = OffsetReconciler(create_media_client(cfg))
    policy = PredefinedStreamingPolicy.CLEAR_STREAMING_ONLY

    # Example 1: Apply an offset
    print("1. Applying a 100s offset...")
    result = await reconciler.reconcile(cfg.scope, asset_name, 100, locator_name, policy)
    print(f"   status={result.status.value} timestamp={result.applied_timestamp}")
    print(f"   filter={result.filter_action} recreated={result.locator_recreated}\n")

    # Example 2: Same offset again is a no-op
    print("2. Applying the same offset again...")
    again = await reconciler.reconcile(cfg.scope, asset_name, 100, locator_name, policy)
    print(f"   timestamp={again.applied_timestamp} filter={again.filter_action}")
    print(f"   recreated={again.locator_recreated}\n")

    # Example 3: Remove the offset
    print("3. Removing the offset...")
    cleared = await reconciler.reconcile(cfg.scope, asset_name, 0, locator_name, policy)
    print(f"   filter={cleared.filter_action} recreated={cleared.locator_recreated}\n")

    print("=== Example completed ===")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("usage: python examples/offset_reconcile_example.py <asset> <locator>")
        sys.exit(2)
    asyncio.run(main(sys.argv[1], sys.argv[2]))
