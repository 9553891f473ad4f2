"""Offset reconciliation domain models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

DEFAULT_TIMESCALE = 10_000_000
DEFAULT_FIRST_OFFSET_MARKER = 0

DEFAULT_FILTER_NAME = "offsetFilter"
DEFAULT_STREAMING_ENDPOINT_NAME = "default"


class ManifestTimingInfo(BaseModel):
    """Timing values read from a Smooth Streaming manifest."""

    model_config = ConfigDict(frozen=True)

    timescale: int = DEFAULT_TIMESCALE
    first_offset_marker: int = DEFAULT_FIRST_OFFSET_MARKER

    def timestamp_for(self, offset_seconds: int) -> int:
        return offset_seconds * self.timescale + self.first_offset_marker


class ReconcileStatus(str, Enum):
    APPLIED = "applied"
    LOCATOR_NOT_FOUND = "locator_not_found"


class FilterAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    ABSENT = "absent"


class OffsetReconcileResult(BaseModel):
    """Outcome of one reconciliation."""

    status: ReconcileStatus
    applied_timestamp: int = 0
    timescale: int | None = None
    filter_action: FilterAction | None = None
    locator_recreated: bool = False
    streaming_locator_id: str | None = None

    @property
    def applied(self) -> bool:
        return self.status == ReconcileStatus.APPLIED
