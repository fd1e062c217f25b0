"""Tests for error normalization and user-facing messages."""

from __future__ import annotations

import asyncio

import httpx
import openai
import pytest

from replypilot.errors import (
    CapacityError,
    ConfigMissingError,
    ErrorHelper,
    ErrorKind,
    InternalError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    ProviderError,
    StorageError,
    UnknownStyleError,
    ValidationError,
    format_for_user,
    normalize_exception,
    redact_secret,
    scrub_secrets,
)
from replypilot.services.validation import ValidationResult

_REQUEST = httpx.Request("POST", "https://api.deepseek.com/v1/chat/completions")


def _status_error(cls: type[openai.APIStatusError], status: int, body: dict) -> openai.APIStatusError:
    response = httpx.Response(status, request=_REQUEST, json=body)
    return cls(f"Error code: {status}", response=response, body=body)


def test_validation_result_is_rendered_with_all_errors() -> None:
    result = ValidationResult()
    result.add("api_url", "API URL is required")
    result.add("model", "Model is required")

    message = format_for_user(result)

    assert message == "Invalid input: API URL is required; Model is required"


@pytest.mark.parametrize(
    "error, fragment",
    [
        (CapacityError(10), "at most 10 custom styles"),
        (UnknownStyleError("custom_x"), "Unknown reply style 'custom_x'"),
        (NotFoundError("custom_x", what="custom style"), "custom style you are editing no longer exists"),
        (StorageError("disk full"), "Could not access local storage"),
        (NetworkError("refused"), "Could not reach the AI provider"),
        (NetworkError(timed_out=True, timeout=30.0), "timed out after 30s"),
        (MalformedResponseError("no choices"), "unexpected response"),
        (ConfigMissingError(), "Configure and save an AI provider"),
        (ProviderError(404), "not found (HTTP 404)"),
        (ProviderError(429), "rate limiting"),
        (ProviderError(502), "temporarily unavailable (HTTP 502)"),
        (ProviderError(400, "bad model"), "rejected the request (HTTP 400).\nDetails: bad model"),
    ],
)
def test_format_for_user_templates(error: Exception, fragment: str) -> None:
    assert fragment in format_for_user(error)


def test_unexpected_fault_never_leaks_internals() -> None:
    message = format_for_user(RuntimeError("Traceback: secret internals at 0xdeadbeef"))

    assert message == "Something went wrong. Please try again."


def test_non_exception_causes_are_internal() -> None:
    assert format_for_user({"weird": True}) == "Something went wrong. Please try again."


def test_sdk_authentication_error_is_a_provider_error() -> None:
    exc = _status_error(openai.AuthenticationError, 401, {"message": "Invalid API key", "type": "auth"})

    error = normalize_exception(exc)

    assert isinstance(error, ProviderError)
    assert error.kind is ErrorKind.PROVIDER
    assert error.status_code == 401
    assert error.detail == "Invalid API key"
    assert format_for_user(exc).startswith("Authentication failed (HTTP 401)")


def test_nested_error_body_detail_is_extracted() -> None:
    exc = _status_error(openai.BadRequestError, 400, {"error": {"message": "model not supported"}})

    assert normalize_exception(exc).detail == "model not supported"


def test_sdk_timeout_and_connection_errors_are_network_errors() -> None:
    timeout = normalize_exception(openai.APITimeoutError(request=_REQUEST))
    connection = normalize_exception(openai.APIConnectionError(request=_REQUEST))

    assert isinstance(timeout, NetworkError) and timeout.timed_out is True
    assert isinstance(connection, NetworkError) and connection.timed_out is False


def test_transport_and_asyncio_errors_are_normalized() -> None:
    assert normalize_exception(asyncio.TimeoutError()).timed_out is True
    assert normalize_exception(httpx.ConnectError("down", request=_REQUEST)).kind is ErrorKind.NETWORK
    assert normalize_exception(PermissionError("denied")).kind is ErrorKind.STORAGE
    assert isinstance(normalize_exception(KeyError("x")), InternalError)


def test_package_errors_pass_through_normalization() -> None:
    error = CapacityError(10)

    assert normalize_exception(error) is error


def test_provider_detail_is_scrubbed_and_clipped() -> None:
    token = "sk-live-abcdefghijklmnop"
    error = ProviderError(401, f"Incorrect API key provided: {token}. " + "x" * 400)

    message = format_for_user(error, secrets=[token])

    assert token not in message
    details = message.split("Details: ", 1)[1]
    assert len(details) <= 200


def test_scrub_secrets_masks_bearer_headers_and_keys() -> None:
    text = "Authorization: Bearer abc.def.ghi rejected; key sk-abcdefghijkl1234 also bad"

    scrubbed = scrub_secrets(text)

    assert "abc.def.ghi" not in scrubbed
    assert "Bearer ***" in scrubbed
    assert "sk-abcdefghijkl1234" not in scrubbed


def test_redact_secret() -> None:
    assert redact_secret("sk-123456") == "sk*****56"
    assert redact_secret("abc") == "***"
    assert redact_secret("") == ""


def test_validation_error_keeps_fields() -> None:
    error = ValidationError(["Name is required"], fields=["name"])

    assert error.kind is ErrorKind.VALIDATION
    assert error.fields == ["name"]
    assert str(error) == "Name is required"


@pytest.mark.asyncio
async def test_capture_wraps_success() -> None:
    async def _ok() -> int:
        return 42

    outcome = await ErrorHelper.capture(_ok())

    assert outcome.ok is True
    assert outcome.value == 42
    assert outcome.kind is None


@pytest.mark.asyncio
async def test_capture_wraps_failure_with_kind_and_message() -> None:
    async def _fails() -> None:
        raise CapacityError(10)

    outcome = await ErrorHelper.capture(_fails())

    assert outcome.ok is False
    assert outcome.kind is ErrorKind.CAPACITY
    assert "at most 10" in outcome.message
