"""Media Services management API resource models.

Resources arrive in the ARM envelope (`{"name": ..., "id": ..., "properties": {...}}`)
with camelCase property names; the models accept that shape as well as plain
snake_case keyword arguments.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, AliasPath, BaseModel, ConfigDict, Field


class PredefinedStreamingPolicy:
    """Names of the streaming policies every account ships with."""

    DOWNLOAD_ONLY = "Predefined_DownloadOnly"
    CLEAR_STREAMING_ONLY = "Predefined_ClearStreamingOnly"
    DOWNLOAD_AND_CLEAR_STREAMING = "Predefined_DownloadAndClearStreaming"
    CLEAR_KEY = "Predefined_ClearKey"
    MULTI_DRM_CENC_STREAMING = "Predefined_MultiDrmCencStreaming"
    MULTI_DRM_STREAMING = "Predefined_MultiDrmStreaming"


def _prop(camel: str, snake: str) -> AliasChoices:
    return AliasChoices(AliasPath("properties", camel), camel, snake)


class Asset(BaseModel):
    """Asset resource. Only fetched, never mutated here."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    id: str | None = None
    asset_id: str | None = Field(default=None, validation_alias=_prop("assetId", "asset_id"))
    alternate_id: str | None = Field(
        default=None, validation_alias=_prop("alternateId", "alternate_id")
    )
    description: str | None = Field(
        default=None, validation_alias=_prop("description", "description")
    )
    container: str | None = Field(default=None, validation_alias=_prop("container", "container"))
    storage_account_name: str | None = Field(
        default=None, validation_alias=_prop("storageAccountName", "storage_account_name")
    )


class StreamingLocator(BaseModel):
    """Streaming locator resource binding an asset to a policy and filters."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    id: str | None = None
    asset_name: str = Field(validation_alias=_prop("assetName", "asset_name"))
    streaming_policy_name: str = Field(
        validation_alias=_prop("streamingPolicyName", "streaming_policy_name")
    )
    streaming_locator_id: str | None = Field(
        default=None, validation_alias=_prop("streamingLocatorId", "streaming_locator_id")
    )
    default_content_key_policy_name: str | None = Field(
        default=None,
        validation_alias=_prop("defaultContentKeyPolicyName", "default_content_key_policy_name"),
    )
    alternative_media_id: str | None = Field(
        default=None, validation_alias=_prop("alternativeMediaId", "alternative_media_id")
    )
    start_time: str | None = Field(default=None, validation_alias=_prop("startTime", "start_time"))
    end_time: str | None = Field(default=None, validation_alias=_prop("endTime", "end_time"))
    filters: list[str] = Field(default_factory=list, validation_alias=_prop("filters", "filters"))

    def references_filter(self, filter_name: str) -> bool:
        """True if `filters` names `filter_name`, compared case-insensitively."""
        wanted = filter_name.casefold()
        return any(f is not None and f.casefold() == wanted for f in self.filters)

    def to_request_body(self) -> dict[str, Any]:
        properties: dict[str, Any] = {
            "assetName": self.asset_name,
            "streamingPolicyName": self.streaming_policy_name,
            "filters": list(self.filters),
        }
        if self.streaming_locator_id:
            properties["streamingLocatorId"] = self.streaming_locator_id
        if self.default_content_key_policy_name:
            properties["defaultContentKeyPolicyName"] = self.default_content_key_policy_name
        if self.alternative_media_id:
            properties["alternativeMediaId"] = self.alternative_media_id
        if self.start_time:
            properties["startTime"] = self.start_time
        if self.end_time:
            properties["endTime"] = self.end_time
        return {"properties": properties}


class StreamingEndpoint(BaseModel):
    """Streaming endpoint resource; only its host name is used."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    id: str | None = None
    host_name: str = Field(validation_alias=_prop("hostName", "host_name"))
    resource_state: str | None = Field(
        default=None, validation_alias=_prop("resourceState", "resource_state")
    )


class StreamingPath(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    streaming_protocol: str | None = Field(
        default=None, validation_alias=AliasChoices("streamingProtocol", "streaming_protocol")
    )
    encryption_scheme: str | None = Field(
        default=None, validation_alias=AliasChoices("encryptionScheme", "encryption_scheme")
    )
    paths: list[str] = Field(default_factory=list)


class ListPathsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    streaming_paths: list[StreamingPath] = Field(
        default_factory=list, validation_alias=AliasChoices("streamingPaths", "streaming_paths")
    )
    download_paths: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("downloadPaths", "download_paths")
    )

    def first_path(self) -> str | None:
        """First path of the first streaming path entry that has any."""
        for streaming_path in self.streaming_paths:
            if streaming_path.paths:
                return streaming_path.paths[0]
        return None


class PresentationTimeRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_timestamp: int | None = Field(
        default=None, validation_alias=AliasChoices("startTimestamp", "start_timestamp")
    )
    end_timestamp: int | None = Field(
        default=None, validation_alias=AliasChoices("endTimestamp", "end_timestamp")
    )
    presentation_window_duration: int | None = Field(
        default=None,
        validation_alias=AliasChoices("presentationWindowDuration", "presentation_window_duration"),
    )
    live_backoff_duration: int | None = Field(
        default=None, validation_alias=AliasChoices("liveBackoffDuration", "live_backoff_duration")
    )
    timescale: int | None = None
    force_end_timestamp: bool | None = Field(
        default=None, validation_alias=AliasChoices("forceEndTimestamp", "force_end_timestamp")
    )

    def to_request_body(self) -> dict[str, Any]:
        body = {
            "startTimestamp": self.start_timestamp,
            "endTimestamp": self.end_timestamp,
            "presentationWindowDuration": self.presentation_window_duration,
            "liveBackoffDuration": self.live_backoff_duration,
            "timescale": self.timescale,
            "forceEndTimestamp": self.force_end_timestamp,
        }
        return {k: v for k, v in body.items() if v is not None}


class AssetFilter(BaseModel):
    """Asset filter resource carrying a presentation time range."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    id: str | None = None
    presentation_time_range: PresentationTimeRange | None = Field(
        default=None, validation_alias=_prop("presentationTimeRange", "presentation_time_range")
    )

    def has_time_range(self, start_timestamp: int, timescale: int) -> bool:
        ptr = self.presentation_time_range
        return (
            ptr is not None
            and ptr.start_timestamp == start_timestamp
            and ptr.timescale == timescale
        )

    def to_request_body(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        if self.presentation_time_range is not None:
            properties["presentationTimeRange"] = self.presentation_time_range.to_request_body()
        return {"properties": properties}
