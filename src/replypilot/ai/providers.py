"""Provider table: endpoints and model suggestions per AI backend."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from ..models import AIConfig, AIProvider

__all__ = [
    "ProviderSpec",
    "PROVIDERS",
    "CHAT_COMPLETIONS_PATH",
    "get_provider",
    "default_config",
    "switch_provider",
    "sdk_base_url",
]

CHAT_COMPLETIONS_PATH = "/chat/completions"


@dataclass(slots=True, frozen=True)
class ProviderSpec:
    provider: AIProvider
    display_name: str
    base_url: str | None
    models: tuple[str, ...] = ()

    @property
    def endpoint(self) -> str:
        """Chat-completions URL, empty for providers whose URL the user supplies."""

        if not self.base_url:
            return ""
        return self.base_url.rstrip("/") + CHAT_COMPLETIONS_PATH

    @property
    def default_model(self) -> str:
        return self.models[0] if self.models else ""


PROVIDERS: Mapping[AIProvider, ProviderSpec] = MappingProxyType(
    {
        AIProvider.SILICONFLOW: ProviderSpec(
            provider=AIProvider.SILICONFLOW,
            display_name="SiliconFlow",
            base_url="https://api.siliconflow.cn/v1",
            models=("Qwen/Qwen2.5-7B-Instruct", "Qwen/Qwen2.5-72B-Instruct", "deepseek-ai/DeepSeek-V3"),
        ),
        AIProvider.DEEPSEEK: ProviderSpec(
            provider=AIProvider.DEEPSEEK,
            display_name="DeepSeek",
            base_url="https://api.deepseek.com/v1",
            models=("deepseek-chat", "deepseek-reasoner"),
        ),
        AIProvider.GLM: ProviderSpec(
            provider=AIProvider.GLM,
            display_name="Zhipu GLM",
            base_url="https://open.bigmodel.cn/api/paas/v4",
            models=("glm-4-flash", "glm-4-air", "glm-4-plus"),
        ),
        AIProvider.CUSTOM: ProviderSpec(
            provider=AIProvider.CUSTOM,
            display_name="Custom (OpenAI-compatible)",
            base_url=None,
        ),
    }
)


def get_provider(provider: AIProvider | str) -> ProviderSpec:
    parsed = AIProvider.parse(provider)
    if parsed is None:
        raise KeyError(f"Unknown provider: {provider!r}")
    return PROVIDERS[parsed]


def default_config(provider: AIProvider | str, *, api_token: str = "", model: str | None = None) -> AIConfig:
    """Return a config pre-filled with the provider's endpoint and first suggested model."""

    spec = get_provider(provider)
    return AIConfig(
        provider=spec.provider,
        api_url=spec.endpoint,
        api_token=api_token,
        model=model if model is not None else spec.default_model,
    )


def switch_provider(current: AIConfig, provider: AIProvider | str) -> AIConfig:
    """Change provider while keeping the token.

    Presets reset the URL and model to their defaults; switching to the custom
    provider clears the URL and keeps the current model.
    """

    spec = get_provider(provider)
    if spec.base_url is None:
        return AIConfig(provider=spec.provider, api_url="", api_token=current.api_token, model=current.model)
    return default_config(spec.provider, api_token=current.api_token)


def sdk_base_url(api_url: str) -> str:
    """Derive the OpenAI SDK base URL from a chat-completions endpoint."""

    url = api_url.strip().rstrip("/")
    if url.endswith(CHAT_COMPLETIONS_PATH):
        url = url[: -len(CHAT_COMPLETIONS_PATH)]
    return url
