"""Error taxonomy and user-facing message normalization.

Every failure surfaced by the package is a :class:`ReplyPilotError` carrying
an :class:`ErrorKind` tag. :func:`format_for_user` turns any cause (library
errors, SDK/transport exceptions, validation results, unexpected faults) into
a short message that is safe to display: secrets are scrubbed and tracebacks
never leak.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Generic, Iterable, Mapping, TypeVar

import httpx
import openai

__all__ = [
    "ErrorKind",
    "ReplyPilotError",
    "ValidationError",
    "CapacityError",
    "NotFoundError",
    "UnknownStyleError",
    "StorageError",
    "NetworkError",
    "ProviderError",
    "MalformedResponseError",
    "ConfigMissingError",
    "InternalError",
    "Outcome",
    "ErrorHelper",
    "normalize_exception",
    "format_for_user",
    "redact_secret",
    "scrub_secrets",
    "redact_error",
]

LOGGER = logging.getLogger(__name__)
T = TypeVar("T")

_DETAIL_LIMIT = 200
_BEARER_PATTERN = re.compile(r"(?i)\bbearer\s+[^\s\"',]+")
_KEY_PATTERN = re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CAPACITY = "capacity"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    NETWORK = "network"
    PROVIDER = "provider"
    CONFIG_MISSING = "config_missing"
    INTERNAL = "internal"


class ReplyPilotError(Exception):
    """Base class for all errors raised by the package."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message


class ValidationError(ReplyPilotError):
    """Raised when input fails validation before any storage or network call."""

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: Iterable[str], *, fields: Iterable[str] = ()) -> None:
        self.errors = list(errors)
        self.fields = list(fields)
        super().__init__("; ".join(self.errors) or "Invalid input")


class CapacityError(ReplyPilotError):
    kind = ErrorKind.CAPACITY

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Custom style limit of {limit} reached")


class NotFoundError(ReplyPilotError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, identifier: str, *, what: str = "item") -> None:
        self.identifier = identifier
        self.what = what
        super().__init__(f"{what} {identifier!r} not found")


class UnknownStyleError(NotFoundError):
    def __init__(self, style_id: str) -> None:
        super().__init__(style_id, what="style")


class StorageError(ReplyPilotError):
    kind = ErrorKind.STORAGE


class NetworkError(ReplyPilotError):
    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "", *, timed_out: bool = False, timeout: float | None = None) -> None:
        self.timed_out = timed_out
        self.timeout = timeout
        super().__init__(message or ("Request timed out" if timed_out else "Request failed"))


class ProviderError(ReplyPilotError):
    """Non-2xx response from the provider."""

    kind = ErrorKind.PROVIDER

    def __init__(self, status_code: int | None, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Provider returned HTTP {status_code}: {detail}".rstrip(": "))


class MalformedResponseError(ProviderError):
    """The provider answered but the payload cannot be used."""

    def __init__(self, detail: str = "", *, status_code: int | None = None) -> None:
        super().__init__(status_code, detail)


class ConfigMissingError(ReplyPilotError):
    kind = ErrorKind.CONFIG_MISSING

    def __init__(self) -> None:
        super().__init__("No AI configuration has been saved")


class InternalError(ReplyPilotError):
    kind = ErrorKind.INTERNAL


@dataclass(slots=True)
class Outcome(Generic[T]):
    """Result value for callers that prefer values over exceptions."""

    ok: bool
    value: T | None = None
    message: str = ""
    kind: ErrorKind | None = None


def normalize_exception(exc: BaseException) -> ReplyPilotError:
    """Map SDK, transport, and asyncio exceptions into the package taxonomy."""

    if isinstance(exc, ReplyPilotError):
        return exc
    if isinstance(exc, openai.APITimeoutError):
        return NetworkError(str(exc), timed_out=True)
    if isinstance(exc, openai.APIConnectionError):
        return NetworkError(str(exc))
    if isinstance(exc, openai.APIStatusError):
        return ProviderError(exc.status_code, _extract_detail(exc.body, fallback=exc.message))
    if isinstance(exc, openai.APIResponseValidationError):
        return MalformedResponseError(str(exc), status_code=exc.status_code)
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return NetworkError(str(exc), timed_out=True)
    if isinstance(exc, httpx.HTTPStatusError):
        return ProviderError(exc.response.status_code, exc.response.text)
    if isinstance(exc, httpx.TransportError):
        return NetworkError(str(exc))
    if isinstance(exc, OSError):
        return StorageError(str(exc))
    return InternalError(f"{exc.__class__.__name__}: {exc}")


def format_for_user(cause: Any, *, secrets: Iterable[str] = ()) -> str:
    """Return a short, display-safe message describing ``cause``."""

    from .services.validation import ValidationResult

    if isinstance(cause, ValidationResult):
        cause = ValidationError(cause.errors, fields=cause.fields)
    if isinstance(cause, BaseException):
        error = normalize_exception(cause)
    else:
        error = InternalError(str(cause))
    if isinstance(error, InternalError):
        LOGGER.debug("Normalizing unexpected fault: %s", error.message)
    return scrub_secrets(_render(error), secrets)


def _render(error: ReplyPilotError) -> str:
    if isinstance(error, ValidationError):
        return "Invalid input: " + ("; ".join(error.errors) or "please check the form")
    if isinstance(error, CapacityError):
        return f"You can keep at most {error.limit} custom styles. Delete one before adding another."
    if isinstance(error, UnknownStyleError):
        return f"Unknown reply style '{error.identifier}'. Pick another style and try again."
    if isinstance(error, NotFoundError):
        return f"The {error.what} you are editing no longer exists. Reload and try again."
    if isinstance(error, StorageError):
        return "Could not access local storage. Please try again."
    if isinstance(error, NetworkError):
        if error.timed_out:
            suffix = f" after {error.timeout:g}s" if error.timeout else ""
            return f"The request timed out{suffix}. Check your network connection or try again."
        return "Could not reach the AI provider. Check the API URL and your network connection."
    if isinstance(error, MalformedResponseError):
        return "The AI provider returned an unexpected response. Check the model name or try again."
    if isinstance(error, ProviderError):
        return _render_provider(error)
    if isinstance(error, ConfigMissingError):
        return "Configure and save an AI provider before generating replies."
    return "Something went wrong. Please try again."


def _render_provider(error: ProviderError) -> str:
    status = error.status_code
    detail = _clip(error.detail)
    if status in (401, 403):
        message = f"Authentication failed (HTTP {status}). Check that your API token is correct and active."
    elif status == 404:
        message = "The provider endpoint or model was not found (HTTP 404). Check the API URL and model name."
    elif status == 429:
        message = "The provider is rate limiting requests (HTTP 429). Wait a moment and try again."
    elif status is not None and status >= 500:
        message = f"The AI provider is temporarily unavailable (HTTP {status}). Try again later."
    else:
        message = f"The AI provider rejected the request (HTTP {status})."
    if detail:
        message = f"{message}\nDetails: {detail}"
    return message


def _extract_detail(body: Any, *, fallback: str = "") -> str:
    if isinstance(body, Mapping):
        nested = body.get("error")
        if isinstance(nested, Mapping):
            body = nested
        elif isinstance(nested, str) and nested:
            return nested
        for key in ("message", "msg", "detail"):
            value = body.get(key)
            if value:
                return str(value)
        return fallback
    if isinstance(body, str) and body.strip():
        return body.strip()
    return fallback


def _clip(text: str | None) -> str:
    cleaned = " ".join((text or "").split())
    if len(cleaned) <= _DETAIL_LIMIT:
        return cleaned
    return cleaned[: _DETAIL_LIMIT - 3] + "..."


def redact_secret(value: str) -> str:
    stripped = (value or "").strip()
    if not stripped:
        return ""
    if len(stripped) <= 4:
        return "*" * len(stripped)
    return f"{stripped[:2]}{'*' * (len(stripped) - 4)}{stripped[-2:]}"


def scrub_secrets(text: str, secrets: Iterable[str] = ()) -> str:
    """Remove known secrets and bearer-looking tokens from ``text``."""

    scrubbed = text
    for secret in secrets:
        secret = (secret or "").strip()
        if len(secret) >= 4 and secret in scrubbed:
            scrubbed = scrubbed.replace(secret, redact_secret(secret))
    scrubbed = _BEARER_PATTERN.sub("Bearer ***", scrubbed)
    return _KEY_PATTERN.sub(lambda match: redact_secret(match.group(0)), scrubbed)


def redact_error(error: ReplyPilotError, secrets: Iterable[str]) -> ReplyPilotError:
    """Scrub ``secrets`` from the message, args, and provider detail of ``error`` in place."""

    known = [secret for secret in secrets if secret]
    if not known:
        return error
    error.message = scrub_secrets(error.message, known)
    if isinstance(error, ProviderError):
        error.detail = scrub_secrets(error.detail, known)
    error.args = tuple(scrub_secrets(str(arg), known) for arg in error.args)
    return error


class ErrorHelper:
    """Facade used by front ends."""

    format_for_user = staticmethod(format_for_user)
    normalize = staticmethod(normalize_exception)

    @staticmethod
    async def capture(awaitable: Awaitable[T], *, secrets: Iterable[str] = ()) -> Outcome[T]:
        """Await ``awaitable`` and fold any failure into an :class:`Outcome`."""

        try:
            value = await awaitable
        except Exception as exc:
            error = normalize_exception(exc)
            if isinstance(error, InternalError):
                LOGGER.exception("Unexpected failure")
            return Outcome(ok=False, message=format_for_user(error, secrets=secrets), kind=error.kind)
        return Outcome(ok=True, value=value)
