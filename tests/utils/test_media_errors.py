import httpx
import pytest

from media_offset.utils.media_errors import MediaError, MediaErrorCode, media_error_from_response

REQUEST = httpx.Request("GET", "https://management.azure.com/subscriptions/s/resource")


def response(status_code: int, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, request=REQUEST, **kwargs)


@pytest.mark.parametrize(
    "status_code,kind,expected",
    [
        (404, "assets", MediaErrorCode.E_ASSET_NOT_FOUND),
        (404, "streamingEndpoints", MediaErrorCode.E_STREAMING_ENDPOINT_NOT_FOUND),
        (404, "assetFilters", MediaErrorCode.E_ASSET_FILTER_NOT_FOUND),
        (409, "streamingLocators", MediaErrorCode.E_STREAMING_LOCATOR_CONFLICT),
        (409, "assetFilters", MediaErrorCode.E_MEDIA_API_ERROR),
        (401, "assets", MediaErrorCode.E_AUTHENTICATION_FAILED),
        (500, "streamingLocators", MediaErrorCode.E_MEDIA_API_ERROR),
    ],
)
def test_status_mapping(status_code, kind, expected):
    error = media_error_from_response(response(status_code, json={"error": {"code": "X", "message": "m"}}), kind)

    assert error.errcode == expected
    assert error.status_code == status_code
    assert error.detail["remote_code"] == "X"


def test_non_json_body_is_used_as_message():
    error = media_error_from_response(response(502, text="Bad gateway"), "assets")

    assert error.errmesg == "Bad gateway"
    assert error.detail["remote_code"] is None


def test_empty_body_gets_generic_message():
    error = media_error_from_response(response(503), "assets")

    assert error.errmesg == "Media API request failed with status 503"


def test_error_string_and_caller_info():
    error = MediaError(MediaErrorCode.E_MEDIA_API_ERROR, "boom")

    assert str(error) == "E_MEDIA_API_ERROR (500): boom"
    assert len(error.erresid) == 10
    assert error.caller_info
