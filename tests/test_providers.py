from __future__ import annotations

import pytest

from replypilot.ai.providers import (
    PROVIDERS,
    default_config,
    get_provider,
    sdk_base_url,
    switch_provider,
)
from replypilot.models import AIConfig, AIProvider
from replypilot.services.validation import validate_config


def test_every_provider_has_an_entry() -> None:
    assert set(PROVIDERS) == set(AIProvider)


@pytest.mark.parametrize("provider", [AIProvider.SILICONFLOW, AIProvider.DEEPSEEK, AIProvider.GLM])
def test_preset_defaults_only_need_a_token(provider: AIProvider) -> None:
    config = default_config(provider, api_token="token")

    assert config.api_url.endswith("/chat/completions")
    assert config.model == PROVIDERS[provider].models[0]
    assert validate_config(config).valid is True


def test_custom_provider_has_no_default_url() -> None:
    spec = get_provider("custom")

    assert spec.endpoint == ""
    assert spec.default_model == ""
    assert default_config(AIProvider.CUSTOM).api_url == ""


def test_get_provider_rejects_unknown_names() -> None:
    with pytest.raises(KeyError):
        get_provider("openrouter")


def test_switch_to_preset_resets_url_and_model_but_keeps_token() -> None:
    current = AIConfig(AIProvider.CUSTOM, "https://llm.local/v1/chat/completions", "secret", "my-model")

    switched = switch_provider(current, AIProvider.GLM)

    assert switched.provider is AIProvider.GLM
    assert switched.api_url == "https://open.bigmodel.cn/api/paas/v4/chat/completions"
    assert switched.model == "glm-4-flash"
    assert switched.api_token == "secret"


def test_switch_to_custom_clears_url_and_keeps_model() -> None:
    current = default_config(AIProvider.DEEPSEEK, api_token="secret")

    switched = switch_provider(current, "custom")

    assert switched.api_url == ""
    assert switched.model == "deepseek-chat"
    assert switched.api_token == "secret"


@pytest.mark.parametrize(
    "api_url, expected",
    [
        ("https://api.deepseek.com/v1/chat/completions", "https://api.deepseek.com/v1"),
        ("https://api.deepseek.com/v1/chat/completions/", "https://api.deepseek.com/v1"),
        (" http://localhost:8000/v1 ", "http://localhost:8000/v1"),
    ],
)
def test_sdk_base_url(api_url: str, expected: str) -> None:
    assert sdk_base_url(api_url) == expected
