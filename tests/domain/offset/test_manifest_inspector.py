"""Tests for manifest timing extraction."""

import xml.etree.ElementTree as ET

import httpx
import pytest

from media_offset.domain.offset.manifest_inspector import (
    build_manifest_url,
    parse_int64,
    parse_manifest_timing,
    resolve_timing,
)
from media_offset.domain.offset.offset_models import ManifestTimingInfo

MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<SmoothStreamingMedia MajorVersion="2" MinorVersion="2" Duration="600000000" TimeScale="10000000">
  <StreamIndex Chunks="1" Type="audio" TimeScale="48000" Name="audio">
    <c t="1111" d="96000" />
  </StreamIndex>
  <StreamIndex Chunks="3" Type="VIDEO" TimeScale="90000" Name="video">
    <QualityLevel Index="0" Bitrate="2000000" FourCC="H264" MaxWidth="1280" MaxHeight="720" />
    <c t="270000" d="180000" />
    <c t="450000" d="180000" />
    <c d="180000" />
  </StreamIndex>
</SmoothStreamingMedia>"""


class TestParseManifestTiming:
    def test_reads_video_timescale_and_first_chunk(self):
        timing = parse_manifest_timing(MANIFEST)
        assert timing == ManifestTimingInfo(timescale=90_000, first_offset_marker=270_000)

    def test_no_video_index_keeps_defaults(self):
        doc = '<SmoothStreamingMedia><StreamIndex Type="audio" TimeScale="48000"><c t="5"/></StreamIndex></SmoothStreamingMedia>'
        assert parse_manifest_timing(doc) == ManifestTimingInfo()

    def test_missing_attributes_keep_defaults(self):
        doc = '<SmoothStreamingMedia><StreamIndex Type="video"><c d="20000000"/></StreamIndex></SmoothStreamingMedia>'
        timing = parse_manifest_timing(doc)
        assert timing.timescale == 10_000_000
        assert timing.first_offset_marker == 0

    def test_video_index_without_chunks_keeps_default_marker(self):
        doc = '<SmoothStreamingMedia><StreamIndex Type="video" TimeScale="1000"/></SmoothStreamingMedia>'
        assert parse_manifest_timing(doc) == ManifestTimingInfo(timescale=1000, first_offset_marker=0)

    def test_unparseable_values_keep_defaults(self):
        doc = (
            '<SmoothStreamingMedia><StreamIndex Type="video" TimeScale="ten million">'
            '<c t="1e6"/></StreamIndex></SmoothStreamingMedia>'
        )
        assert parse_manifest_timing(doc) == ManifestTimingInfo()

    def test_non_positive_timescale_and_negative_marker_are_ignored(self):
        doc = (
            '<SmoothStreamingMedia><StreamIndex Type="video" TimeScale="0">'
            '<c t="-40"/></StreamIndex></SmoothStreamingMedia>'
        )
        assert parse_manifest_timing(doc) == ManifestTimingInfo()

    def test_first_video_index_wins(self):
        doc = (
            "<SmoothStreamingMedia>"
            '<StreamIndex Type="video" TimeScale="1000"><c t="7"/></StreamIndex>'
            '<StreamIndex Type="video" TimeScale="2000"><c t="9"/></StreamIndex>'
            "</SmoothStreamingMedia>"
        )
        assert parse_manifest_timing(doc) == ManifestTimingInfo(timescale=1000, first_offset_marker=7)

    def test_nested_stream_index_is_not_searched(self):
        doc = (
            '<SmoothStreamingMedia><Wrapper><StreamIndex Type="video" TimeScale="1000"/></Wrapper>'
            "</SmoothStreamingMedia>"
        )
        assert parse_manifest_timing(doc) == ManifestTimingInfo()

    def test_malformed_document_raises_parse_error(self):
        with pytest.raises(ET.ParseError):
            parse_manifest_timing("<SmoothStreamingMedia>")


class TestParseInt64:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("42", 42),
            (" 42 ", 42),
            ("+7", 7),
            ("-7", -7),
            ("9223372036854775807", 9223372036854775807),
            ("9223372036854775808", None),
            ("1_000", None),
            ("4.5", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_int64(value) == expected


class TestBuildManifestUrl:
    def test_replaces_last_segment_with_manifest(self):
        url = build_manifest_url(
            "https", "acct-usea.streaming.media.azure.net", "/abc-123/video.ism/manifest(format=m3u8-aapl)"
        )
        assert url == "https://acct-usea.streaming.media.azure.net/abc-123/video.ism/manifest"

    def test_relative_path_gets_leading_slash(self):
        url = build_manifest_url("https", "host", "abc-123/video.ism/manifest(format=mpd-time-csf)")
        assert url == "https://host/abc-123/video.ism/manifest"


class TestResolveTiming:
    async def test_fetches_and_parses(self):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, text=MANIFEST)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            timing = await resolve_timing("https://host/abc/video.ism/manifest", http_client=client)

        assert timing == ManifestTimingInfo(timescale=90_000, first_offset_marker=270_000)
        assert seen == ["https://host/abc/video.ism/manifest"]

    @pytest.mark.parametrize("status_code", [401, 404, 500, 503])
    async def test_http_error_returns_defaults(self, status_code):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, text="nope")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            timing = await resolve_timing("https://host/abc/video.ism/manifest", http_client=client)

        assert timing == ManifestTimingInfo()

    async def test_timeout_returns_defaults(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            timing = await resolve_timing("https://host/abc/video.ism/manifest", http_client=client)

        assert timing.timescale == 10_000_000
        assert timing.first_offset_marker == 0

    async def test_invalid_xml_returns_defaults(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="{'not': 'xml'}")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            timing = await resolve_timing("https://host/abc/video.ism/manifest", http_client=client)

        assert timing == ManifestTimingInfo()

    async def test_unknown_encoding_returns_defaults(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, content=b'<?xml version="1.0" encoding="x-bogus"?><SmoothStreamingMedia/>'
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            timing = await resolve_timing("https://host/abc/video.ism/manifest", http_client=client)

        assert timing == ManifestTimingInfo()


def test_timestamp_formula_is_exact_integer_arithmetic():
    timing = ManifestTimingInfo(timescale=10_000_000, first_offset_marker=987_654_321_012)
    assert timing.timestamp_for(86_400 * 365) == 86_400 * 365 * 10_000_000 + 987_654_321_012
