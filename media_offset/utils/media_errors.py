"""Error types raised by the media management client and the reconciler."""

from __future__ import annotations

import inspect
from enum import Enum, IntEnum
from typing import Any
from uuid import uuid4

import httpx
from loguru import logger


class MediaErrorCode(str, Enum):
    E_NOT_CONFIGURED = "E_NOT_CONFIGURED"
    E_AUTHENTICATION_FAILED = "E_AUTHENTICATION_FAILED"
    E_ASSET_NOT_FOUND = "E_ASSET_NOT_FOUND"
    E_STREAMING_ENDPOINT_NOT_FOUND = "E_STREAMING_ENDPOINT_NOT_FOUND"
    E_STREAMING_LOCATOR_NOT_FOUND = "E_STREAMING_LOCATOR_NOT_FOUND"
    E_STREAMING_LOCATOR_CONFLICT = "E_STREAMING_LOCATOR_CONFLICT"
    E_ASSET_FILTER_NOT_FOUND = "E_ASSET_FILTER_NOT_FOUND"
    E_MEDIA_API_ERROR = "E_MEDIA_API_ERROR"


class MediaStatusCode(IntEnum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502


class MediaError(Exception):
    """Application error carrying an error code, message and remote status.

    The caller location is captured at construction so log lines point at the
    raise site rather than at whoever eventually handles the error.
    """

    def __init__(
        self,
        errcode: MediaErrorCode,
        errmesg: str,
        status_code: int = MediaStatusCode.INTERNAL_SERVER_ERROR,
        *,
        detail: Any = None,
    ) -> None:
        super().__init__(errmesg)
        self.errcode = errcode.value if isinstance(errcode, MediaErrorCode) else str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]
        self.detail = detail

        caller_frame = inspect.stack()[1]
        module = inspect.getmodule(caller_frame.frame)
        module_name = (
            module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
        )
        self.caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    def __str__(self) -> str:
        return f"{self.errcode} ({self.status_code}): {self.errmesg}"


# Management API resource kind -> error code used when the resource is missing
_NOT_FOUND_CODES = {
    "assets": MediaErrorCode.E_ASSET_NOT_FOUND,
    "streamingEndpoints": MediaErrorCode.E_STREAMING_ENDPOINT_NOT_FOUND,
    "streamingLocators": MediaErrorCode.E_STREAMING_LOCATOR_NOT_FOUND,
    "assetFilters": MediaErrorCode.E_ASSET_FILTER_NOT_FOUND,
}


def _extract_remote_error(response: httpx.Response) -> tuple[str | None, str]:
    try:
        data = response.json()
    except ValueError:
        return None, response.text[:500]
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return error.get("code"), str(error.get("message") or "")
    return None, str(data)[:500]


def media_error_from_response(response: httpx.Response, resource_kind: str) -> MediaError:
    """Map a non-success management API response to a MediaError."""
    remote_code, remote_message = _extract_remote_error(response)
    status = response.status_code

    if status == MediaStatusCode.NOT_FOUND:
        errcode = _NOT_FOUND_CODES.get(resource_kind, MediaErrorCode.E_MEDIA_API_ERROR)
    elif status == MediaStatusCode.CONFLICT and resource_kind == "streamingLocators":
        errcode = MediaErrorCode.E_STREAMING_LOCATOR_CONFLICT
    elif status in (MediaStatusCode.UNAUTHORIZED, MediaStatusCode.FORBIDDEN):
        errcode = MediaErrorCode.E_AUTHENTICATION_FAILED
    else:
        errcode = MediaErrorCode.E_MEDIA_API_ERROR

    log_msg = (
        f"Media API error: kind={resource_kind} status={status} "
        f"remote_code={remote_code} msg={remote_message}"
    )
    if status >= 500:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    return MediaError(
        errcode=errcode,
        errmesg=remote_message or f"Media API request failed with status {status}",
        status_code=status,
        detail={"remote_code": remote_code, "url": str(response.request.url)},
    )
