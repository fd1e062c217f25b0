"""Stub HTTP plumbing for AI client tests.

The real ``AsyncOpenAI`` client is used; only its transport is replaced with
an ``httpx.MockTransport`` so requests can be inspected and answered.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable

import httpx
from openai import AsyncOpenAI

from replypilot.ai.client import build_openai_client
from replypilot.models import AIConfig

Handler = Callable[[httpx.Request], "httpx.Response | Awaitable[httpx.Response]"]


def completion_payload(content: str | None, *, model: str = "deepseek-chat") -> dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1_700_000_000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
    }


def reply_with(content: str | None, *, status: int = 200) -> Handler:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=completion_payload(content))

    return _handler


class RecordingProvider:
    """Client factory that records every outgoing request."""

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self.requests: list[httpx.Request] = []
        self.clients_built = 0

    def __call__(self, config: AIConfig, timeout: float) -> AsyncOpenAI:
        self.clients_built += 1

        async def _dispatch(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            response = self._handler(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(_dispatch))
        return build_openai_client(config, timeout, http_client=http_client)

    def body(self, index: int = 0) -> dict[str, Any]:
        return json.loads(self.requests[index].content)
