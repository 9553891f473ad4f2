"""
In-memory mock of the Media Services management API.

This FastAPI app exposes pared-down versions of the routes the offset reconciler
uses so the driver can run locally without a real account:

* POST /{tenant}/oauth2/v2.0/token
* GET  .../assets/{asset}
* GET/PUT/DELETE .../streamingLocators/{locator}
* POST .../streamingLocators/{locator}/listPaths
* GET  .../streamingEndpoints/{endpoint}
* GET/PUT/DELETE .../assets/{asset}/assetFilters/{filter}
* GET  /{locator_id}/{asset}.ism/manifest (Smooth Streaming manifest)

Run with granian:
    granian --interface ASGI --host 127.0.0.1 --port 18082 tools.mock_media_api:app

Then point AZURE_ARM_ENDPOINT and AZURE_AAD_AUTHORITY_HOST to http://127.0.0.1:18082.
The streaming endpoint host is MOCK_STREAMING_HOST; manifests are served over https
there, so local runs of the manifest step fall back to the default timing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

MOCK_SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"
MOCK_RESOURCE_GROUP = "mock-rg"
MOCK_ACCOUNT_NAME = "mockmedia"
MOCK_ASSET_NAME = "inputAsset-mock"
MOCK_LOCATOR_NAME = "streamingLocator-mock"
MOCK_STREAMING_HOST = "mockmedia-usea.streaming.media.azure.net"

ACCOUNT_PREFIX = (
    "/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
    "/providers/Microsoft.Media/mediaServices/{account_name}"
)
_ACCOUNT_ID = ACCOUNT_PREFIX.format(
    subscription_id=MOCK_SUBSCRIPTION_ID,
    resource_group=MOCK_RESOURCE_GROUP,
    account_name=MOCK_ACCOUNT_NAME,
)

_MANIFEST_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<SmoothStreamingMedia MajorVersion="2" MinorVersion="2" Duration="{duration}" TimeScale="{timescale}">
  <StreamIndex Chunks="2" Type="audio" Url="QualityLevels({{bitrate}})/Fragments(aac_und_2_128={{start time}})" QualityLevels="1" TimeScale="{timescale}" Name="aac_und_2_128">
    <QualityLevel AudioTag="255" Index="0" BitsPerSample="16" Bitrate="128000" FourCC="AACL" CodecPrivateData="1190" Channels="2" PacketSize="4" SamplingRate="48000" />
    <c t="{first_offset}" d="20053333" />
    <c d="20053334" />
  </StreamIndex>
  <StreamIndex Chunks="2" Type="video" Url="QualityLevels({{bitrate}})/Fragments(video={{start time}})" QualityLevels="1" TimeScale="{timescale}" Name="video" MaxWidth="1280" MaxHeight="720">
    <QualityLevel Index="0" Bitrate="2000000" FourCC="H264" MaxWidth="1280" MaxHeight="720" CodecPrivateData="000000016764001FACD9405005BB011000000300100000030320F18319600000000168EBECB22C" />
    <c t="{first_offset}" d="20000000" />
    <c d="20000000" />
  </StreamIndex>
</SmoothStreamingMedia>
"""


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


@dataclass
class MockMediaState:
    """Everything the mock knows; reset between tests."""

    assets: set[str] = field(default_factory=set)
    endpoints: dict[str, str] = field(default_factory=dict)
    locators: dict[str, dict[str, Any]] = field(default_factory=dict)
    filters: dict[tuple[str, str], dict[str, Any]] = field(default_factory=dict)
    timescale: int = 10_000_000
    first_offset: int = 0
    mutations: list[str] = field(default_factory=list)

    def seed(self) -> None:
        self.assets = {MOCK_ASSET_NAME}
        self.endpoints = {"default": MOCK_STREAMING_HOST}
        self.locators = {
            MOCK_LOCATOR_NAME: {
                "assetName": MOCK_ASSET_NAME,
                "streamingPolicyName": "Predefined_ClearStreamingOnly",
                "streamingLocatorId": str(uuid.uuid4()),
                "filters": [],
            }
        }
        self.filters = {}
        self.timescale = 10_000_000
        self.first_offset = 0
        self.mutations = []


state = MockMediaState()
state.seed()

app = FastAPI(title="media-services mock", version="0.1.0")


def _resource(kind: str, name: str, properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": name,
        "id": f"{_ACCOUNT_ID}/{kind}/{name}",
        "type": f"Microsoft.Media/mediaservices/{kind}",
        "properties": properties,
    }


@app.get("/health")
async def health():
    """Health check endpoint for container orchestration."""
    return {"status": "ok", "service": "mock-media-services"}


@app.post("/{tenant_id}/oauth2/v2.0/token")
async def issue_token(tenant_id: str, request: Request):
    """Mock client-credentials token endpoint."""
    form = {k: v[0] for k, v in parse_qs((await request.body()).decode()).items()}
    if form.get("grant_type") != "client_credentials" or not form.get("client_secret"):
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_request", "error_description": "client credentials required"},
        )
    return {
        "token_type": "Bearer",
        "expires_in": 3599,
        "access_token": f"mock-token-{tenant_id}-{uuid.uuid4().hex[:8]}",
    }


@app.get(ACCOUNT_PREFIX + "/assets/{asset_name}")
async def get_asset(subscription_id: str, resource_group: str, account_name: str, asset_name: str):
    if asset_name not in state.assets:
        return _error(404, "ResourceNotFound", f"Asset {asset_name} not found")
    return _resource("assets", asset_name, {"assetId": str(uuid.uuid5(uuid.NAMESPACE_URL, asset_name))})


@app.get(ACCOUNT_PREFIX + "/streamingEndpoints/{endpoint_name}")
async def get_streaming_endpoint(
    subscription_id: str, resource_group: str, account_name: str, endpoint_name: str
):
    host = state.endpoints.get(endpoint_name)
    if host is None:
        return _error(404, "ResourceNotFound", f"Streaming endpoint {endpoint_name} not found")
    return _resource("streamingEndpoints", endpoint_name, {"hostName": host, "resourceState": "Running"})


@app.get(ACCOUNT_PREFIX + "/streamingLocators/{locator_name}")
async def get_streaming_locator(
    subscription_id: str, resource_group: str, account_name: str, locator_name: str
):
    locator = state.locators.get(locator_name)
    if locator is None:
        return _error(404, "ResourceNotFound", f"Streaming locator {locator_name} not found")
    return _resource("streamingLocators", locator_name, locator)


@app.put(ACCOUNT_PREFIX + "/streamingLocators/{locator_name}")
async def create_streaming_locator(
    subscription_id: str, resource_group: str, account_name: str, locator_name: str, request: Request
):
    if locator_name in state.locators:
        return _error(409, "Conflict", f"Streaming locator {locator_name} already exists")
    properties = (await request.json()).get("properties", {})
    if properties.get("assetName") not in state.assets:
        return _error(400, "BadRequest", "Asset does not exist")
    locator = {
        "assetName": properties["assetName"],
        "streamingPolicyName": properties.get("streamingPolicyName"),
        "streamingLocatorId": properties.get("streamingLocatorId") or str(uuid.uuid4()),
        "filters": list(properties.get("filters") or []),
    }
    state.locators[locator_name] = locator
    state.mutations.append(f"PUT streamingLocators/{locator_name}")
    return JSONResponse(status_code=201, content=_resource("streamingLocators", locator_name, locator))


@app.delete(ACCOUNT_PREFIX + "/streamingLocators/{locator_name}")
async def delete_streaming_locator(
    subscription_id: str, resource_group: str, account_name: str, locator_name: str
):
    if state.locators.pop(locator_name, None) is None:
        return Response(status_code=204)
    state.mutations.append(f"DELETE streamingLocators/{locator_name}")
    return Response(status_code=200)


@app.post(ACCOUNT_PREFIX + "/streamingLocators/{locator_name}/listPaths")
async def list_paths(subscription_id: str, resource_group: str, account_name: str, locator_name: str):
    locator = state.locators.get(locator_name)
    if locator is None:
        return _error(404, "ResourceNotFound", f"Streaming locator {locator_name} not found")
    base = f"/{locator['streamingLocatorId']}/{locator['assetName']}.ism"
    return {
        "streamingPaths": [
            {"streamingProtocol": "Hls", "encryptionScheme": "NoEncryption",
             "paths": [f"{base}/manifest(format=m3u8-aapl)"]},
            {"streamingProtocol": "Dash", "encryptionScheme": "NoEncryption",
             "paths": [f"{base}/manifest(format=mpd-time-csf)"]},
            {"streamingProtocol": "SmoothStreaming", "encryptionScheme": "NoEncryption",
             "paths": [f"{base}/manifest"]},
        ],
        "downloadPaths": [],
    }


@app.get(ACCOUNT_PREFIX + "/assets/{asset_name}/assetFilters/{filter_name}")
async def get_asset_filter(
    subscription_id: str, resource_group: str, account_name: str, asset_name: str, filter_name: str
):
    asset_filter = state.filters.get((asset_name, filter_name))
    if asset_filter is None:
        return _error(404, "ResourceNotFound", f"Asset filter {filter_name} not found")
    return _resource("assetFilters", filter_name, asset_filter)


@app.put(ACCOUNT_PREFIX + "/assets/{asset_name}/assetFilters/{filter_name}")
async def put_asset_filter(
    subscription_id: str,
    resource_group: str,
    account_name: str,
    asset_name: str,
    filter_name: str,
    request: Request,
):
    if asset_name not in state.assets:
        return _error(404, "ResourceNotFound", f"Asset {asset_name} not found")
    properties = (await request.json()).get("properties", {})
    existed = (asset_name, filter_name) in state.filters
    state.filters[(asset_name, filter_name)] = properties
    state.mutations.append(f"PUT assetFilters/{filter_name}")
    return JSONResponse(
        status_code=200 if existed else 201,
        content=_resource("assetFilters", filter_name, properties),
    )


@app.delete(ACCOUNT_PREFIX + "/assets/{asset_name}/assetFilters/{filter_name}")
async def delete_asset_filter(
    subscription_id: str, resource_group: str, account_name: str, asset_name: str, filter_name: str
):
    if state.filters.pop((asset_name, filter_name), None) is None:
        return Response(status_code=204)
    state.mutations.append(f"DELETE assetFilters/{filter_name}")
    return Response(status_code=200)


@app.get("/{locator_id}/{ism_name}/manifest")
async def get_manifest(locator_id: str, ism_name: str):
    if not any(loc["streamingLocatorId"] == locator_id for loc in state.locators.values()):
        return Response(status_code=404)
    body = _MANIFEST_TEMPLATE.format(
        timescale=state.timescale,
        first_offset=state.first_offset,
        duration=40 * state.timescale,
    )
    return Response(content=body, media_type="text/xml")


__all__ = ["app", "state"]
