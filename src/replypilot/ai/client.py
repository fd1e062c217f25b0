"""Async AI client dispatching chat requests to OpenAI-compatible providers."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Iterable, List, Mapping

import httpx
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletionMessageParam

from ..errors import (
    ConfigMissingError,
    ErrorKind,
    MalformedResponseError,
    NetworkError,
    ReplyPilotError,
    UnknownStyleError,
    ValidationError,
    format_for_user,
    normalize_exception,
    redact_error,
)
from ..models import AIConfig, ChatResponse, ConfigTestResult, REPLY_MAX_CHARS
from ..services.storage import StorageService
from ..services.styles import StyleCatalog
from ..services.validation import validate_config
from .providers import sdk_base_url

__all__ = ["AIService", "ClientFactory", "build_openai_client", "DEFAULT_REQUEST_TIMEOUT", "clean_reply"]

LOGGER = logging.getLogger(__name__)
DEFAULT_REQUEST_TIMEOUT = 30.0
_TEST_PROMPT = "Hi"
_TEST_MAX_TOKENS = 5
_QUOTE_PAIRS = (('"', '"'), ("'", "'"), ("“", "”"), ("「", "」"))
_ELLIPSIS = "…"

ClientFactory = Callable[[AIConfig, float], AsyncOpenAI]


def build_openai_client(
    config: AIConfig,
    timeout: float,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncOpenAI:
    """Create an SDK client for ``config``; retries are disabled."""

    return AsyncOpenAI(
        api_key=config.api_token,
        base_url=sdk_base_url(config.api_url),
        timeout=timeout,
        max_retries=0,
        http_client=http_client,
    )


def clean_reply(text: str, *, limit: int = REPLY_MAX_CHARS) -> str:
    """Trim whitespace and wrapping quotes, then cap the reply at ``limit`` characters."""

    if limit < 2:
        raise ValueError("limit must leave room for at least one character and the ellipsis")
    reply = text.strip()
    for opening, closing in _QUOTE_PAIRS:
        if len(reply) >= 2 and reply.startswith(opening) and reply.endswith(closing):
            reply = reply[len(opening) : -len(closing)].strip()
            break
    if len(reply) > limit:
        reply = reply[: limit - len(_ELLIPSIS)].rstrip() + _ELLIPSIS
    return reply


class AIService:
    """Generates replies and checks provider connectivity.

    Every request goes through :meth:`complete`, which enforces its own
    timeout and maps failures into the package error taxonomy. Nothing is
    retried; callers decide whether to try again.
    """

    def __init__(
        self,
        store: StorageService,
        *,
        catalog: StyleCatalog | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        reply_max_chars: int = REPLY_MAX_CHARS,
        client_factory: ClientFactory | None = None,
    ) -> None:
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if not 2 <= reply_max_chars <= REPLY_MAX_CHARS:
            raise ValueError(f"reply_max_chars must be between 2 and {REPLY_MAX_CHARS}")
        self._store = store
        self._catalog = catalog or store.catalog
        self._timeout = float(request_timeout)
        self._reply_max_chars = reply_max_chars
        self._client_factory = client_factory or build_openai_client

    @property
    def request_timeout(self) -> float:
        return self._timeout

    async def test_config(self, config: AIConfig | Mapping[str, Any]) -> ConfigTestResult:
        """Send a minimal request with ``config``; never raises."""

        validation = validate_config(config)
        if not validation.valid:
            return ConfigTestResult(
                success=False,
                error=format_for_user(validation),
                error_kind=ErrorKind.VALIDATION.value,
            )
        if isinstance(config, Mapping):
            config = AIConfig.from_dict(config)

        started = time.perf_counter()
        try:
            response = await self.complete(
                config,
                [{"role": "user", "content": _TEST_PROMPT}],
                max_tokens=_TEST_MAX_TOKENS,
            )
        except Exception as exc:
            error = normalize_exception(exc)
            latency = None if error.kind is ErrorKind.INTERNAL else _elapsed_ms(started)
            LOGGER.info("Config test against %s failed (%s)", config.provider.value, error.kind.value)
            return ConfigTestResult(
                success=False,
                latency_ms=latency,
                error=format_for_user(error, secrets=[config.api_token]),
                error_kind=error.kind.value,
            )
        LOGGER.info("Config test against %s succeeded in %sms", config.provider.value, response.latency_ms)
        return ConfigTestResult(success=True, latency_ms=response.latency_ms)

    async def generate_reply(self, source_text: str, style_id: str) -> str:
        """Generate a reply to ``source_text`` in the style ``style_id``."""

        if not (source_text or "").strip():
            raise ValidationError(["Post text is required"], fields=["source_text"])
        config = await self._store.get_ai_config()
        if config is None:
            raise ConfigMissingError()
        style = await self._catalog.lookup(style_id)
        if style is None:
            raise UnknownStyleError(style_id)

        messages: List[ChatCompletionMessageParam] = [
            {"role": "system", "content": style.system_prompt},
            {"role": "user", "content": source_text.strip()},
        ]
        try:
            response = await self.complete(config, messages)
        except ReplyPilotError as exc:
            redact_error(exc, [config.api_token])
            raise
        if not response.text.strip():
            raise MalformedResponseError("Provider returned an empty reply", status_code=response.raw_status)
        reply = clean_reply(response.text, limit=self._reply_max_chars)
        if len(response.text.strip()) > self._reply_max_chars:
            LOGGER.debug("Truncated reply from %d characters", len(response.text.strip()))
        return reply

    async def complete(
        self,
        config: AIConfig,
        messages: Iterable[ChatCompletionMessageParam],
        *,
        max_tokens: int | None = None,
    ) -> ChatResponse:
        """Send one chat-completions request and normalize the response."""

        payload: dict[str, Any] = {"model": config.model, "messages": list(messages)}
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        LOGGER.debug(
            "Sending chat completion to %s via %s (%d message(s))",
            config.provider.value,
            config.model,
            len(payload["messages"]),
        )

        started = time.perf_counter()
        client = self._client_factory(config, self._timeout)
        try:
            raw = await self._send(client, payload)
            latency = _elapsed_ms(started)
            try:
                completion = raw.parse()
            except Exception as exc:
                raise MalformedResponseError(str(exc), status_code=raw.status_code) from exc
        finally:
            await _close_client(client)
        return ChatResponse(text=_extract_text(completion), raw_status=raw.status_code, latency_ms=latency)

    async def _send(self, client: AsyncOpenAI, payload: dict[str, Any]) -> Any:
        try:
            return await asyncio.wait_for(
                client.chat.completions.with_raw_response.create(**payload),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise NetworkError("Request timed out", timed_out=True, timeout=self._timeout) from exc
        except ReplyPilotError:
            raise
        except Exception as exc:
            error = normalize_exception(exc)
            if isinstance(error, NetworkError) and error.timed_out:
                error.timeout = self._timeout
            raise error from exc


def _extract_text(completion: Any) -> str:
    choices = getattr(completion, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content if isinstance(content, str) else ""


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


async def _close_client(client: Any) -> None:
    close = getattr(client, "close", None)
    if close is None:
        return
    try:
        result = close()
        if inspect.isawaitable(result):
            await result
    except Exception as exc:  # pragma: no cover - best effort cleanup
        LOGGER.debug("AI client close failed: %s", exc)
