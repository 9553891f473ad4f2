"""Reads video timing (timescale, first segment start) from a Smooth Streaming manifest.

Lookup is best effort: an unreachable or malformed manifest yields the default
timing rather than an error, so a bad manifest never blocks reconciliation.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

import httpx
from loguru import logger

from media_offset.domain.offset.offset_models import (
    DEFAULT_FIRST_OFFSET_MARKER,
    DEFAULT_TIMESCALE,
    ManifestTimingInfo,
)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT_PATTERN = re.compile(r"^\s*[+-]?\d+\s*$")


def parse_int64(value: str | None) -> int | None:
    """Parse a signed 64-bit integer; None when absent, malformed or out of range."""
    if value is None or not _INT_PATTERN.match(value):
        return None
    number = int(value)
    if number < _INT64_MIN or number > _INT64_MAX:
        return None
    return number


def build_manifest_url(scheme: str, host_name: str, streaming_path: str) -> str:
    """Build the manifest URL from a streaming path returned by list-paths.

    The last segment of the path (e.g. `manifest(format=m3u8-aapl)`) is replaced
    with `manifest`.
    """
    if not streaming_path.startswith("/"):
        streaming_path = "/" + streaming_path
    manifest_base = f"{scheme}://{host_name}{streaming_path}"
    return f"{manifest_base[: manifest_base.rfind('/')]}/manifest"


def parse_manifest_timing(
    document: bytes | str,
    timescale: int = DEFAULT_TIMESCALE,
    first_offset_marker: int = DEFAULT_FIRST_OFFSET_MARKER,
) -> ManifestTimingInfo:
    """Extract timing from a manifest document.

    Raises:
        ET.ParseError: If the document is not well-formed XML
    """
    root = ET.fromstring(document)

    video_index = next(
        (
            element
            for element in root.findall("StreamIndex")
            if (element.get("Type") or "").lower() == "video"
        ),
        None,
    )
    if video_index is None:
        return ManifestTimingInfo(timescale=timescale, first_offset_marker=first_offset_marker)

    actual_timescale = parse_int64(video_index.get("TimeScale"))
    # A non-positive timescale would make the offset meaningless
    if actual_timescale is not None and actual_timescale > 0:
        timescale = actual_timescale

    first_chunk = video_index.find("c")
    if first_chunk is not None:
        actual_offset = parse_int64(first_chunk.get("t"))
        if actual_offset is not None and actual_offset >= 0:
            first_offset_marker = actual_offset

    return ManifestTimingInfo(timescale=timescale, first_offset_marker=first_offset_marker)


async def _fetch_manifest(
    manifest_url: str, http_client: httpx.AsyncClient | None, timeout: float
) -> bytes:
    if http_client is not None:
        response = await http_client.get(manifest_url, timeout=timeout)
    else:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            response = await client.get(manifest_url, timeout=timeout)
    response.raise_for_status()
    return response.content


async def resolve_timing(
    manifest_url: str,
    http_client: httpx.AsyncClient | None = None,
    timeout: float = 15,
) -> ManifestTimingInfo:
    """Fetch a manifest and return its video timing, falling back to defaults.

    Args:
        manifest_url: Absolute URL of the Smooth Streaming manifest
        http_client: Optional shared client (tests inject a mock transport)
        timeout: Request timeout in seconds

    Returns:
        ManifestTimingInfo; defaults are timescale 10,000,000 and marker 0
    """
    try:
        document = await _fetch_manifest(manifest_url, http_client, timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Manifest fetch failed, using default timing: url={manifest_url} err={e}")
        return ManifestTimingInfo()

    try:
        timing = parse_manifest_timing(document)
    except (ET.ParseError, LookupError, ValueError) as e:
        logger.warning(f"Manifest could not be parsed, using default timing: url={manifest_url} err={e}")
        return ManifestTimingInfo()

    logger.debug(
        f"Manifest timing: url={manifest_url} timescale={timing.timescale} "
        f"first_offset_marker={timing.first_offset_marker}"
    )
    return timing
