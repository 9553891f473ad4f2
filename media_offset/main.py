"""Command-line driver: reconcile an offset repeatedly and check the results agree.

Usage:
    media-offset --asset inputAsset-123 --locator streamingLocator-123 --offset 100
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import httpx
from loguru import logger

from media_offset.app_config import get_app_environ_config
from media_offset.domain.offset import OffsetReconciler, ReconcileStatus
from media_offset.domain.offset.offset_models import (
    DEFAULT_FILTER_NAME,
    DEFAULT_STREAMING_ENDPOINT_NAME,
)
from media_offset.services.integrations.azure_media.media_client import create_media_client
from media_offset.services.integrations.azure_media.media_schemas import PredefinedStreamingPolicy
from media_offset.shared.log import init_logger
from media_offset.utils.media_errors import MediaError

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_LOCATOR_NOT_FOUND = 2
EXIT_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-offset",
        description="Apply a playback start offset to a streaming locator via an asset filter.",
    )
    parser.add_argument("--asset", required=True, help="Asset name")
    parser.add_argument("--locator", required=True, help="Streaming locator name")
    parser.add_argument("--offset", type=int, default=100, help="Offset in seconds (default: 100)")
    parser.add_argument(
        "--policy",
        default=PredefinedStreamingPolicy.CLEAR_STREAMING_ONLY,
        help="Streaming policy used when the locator is recreated",
    )
    parser.add_argument("--filter", default=DEFAULT_FILTER_NAME, help="Asset filter name")
    parser.add_argument(
        "--endpoint", default=DEFAULT_STREAMING_ENDPOINT_NAME, help="Streaming endpoint name"
    )
    parser.add_argument("--runs", type=int, default=2, help="Number of reconciliations (default: 2)")
    parser.add_argument(
        "--pause", type=float, default=1.0, help="Seconds to wait between runs (default: 1.0)"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


async def run(args: argparse.Namespace) -> int:
    cfg = get_app_environ_config()
    reconciler = OffsetReconciler(
        create_media_client(cfg), manifest_timeout=cfg.MANIFEST_TIMEOUT_SECONDS
    )

    timestamps: list[int] = []
    for run_index in range(max(args.runs, 1)):
        if run_index:
            await asyncio.sleep(args.pause)
        result = await reconciler.reconcile(
            cfg.scope,
            args.asset,
            args.offset,
            args.locator,
            args.policy,
            filter_name=args.filter,
            endpoint_name=args.endpoint,
        )
        if result.status == ReconcileStatus.LOCATOR_NOT_FOUND:
            print(f"Streaming locator {args.locator} not found; nothing applied")
            return EXIT_LOCATOR_NOT_FOUND
        print(f"Run {run_index + 1} Offset Result: {result.applied_timestamp}")
        timestamps.append(result.applied_timestamp)

    if len(set(timestamps)) > 1:
        print("VALUES ARE NOT THE SAME")
        return EXIT_MISMATCH
    print("Match")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    init_logger(debug=True if args.debug else None)
    try:
        return asyncio.run(run(args))
    except MediaError as e:
        logger.error(f"{e.errcode} {e.erresid} msg={e.errmesg} caller={e.caller_info}")
        print(f"Reconciliation failed: {e}", file=sys.stderr)
        return EXIT_ERROR
    except httpx.HTTPError as e:
        logger.error(f"Media API unreachable: {type(e).__name__} {e}")
        print(f"Reconciliation failed: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
