"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from replypilot.models import AIConfig, AIProvider, StyleFields
from replypilot.services.storage import StorageService
from replypilot.services.storage_area import MemoryStorageArea


@pytest.fixture
def area() -> MemoryStorageArea:
    return MemoryStorageArea()


@pytest.fixture
def store(area: MemoryStorageArea) -> StorageService:
    return StorageService(area)


@pytest.fixture
def valid_config() -> AIConfig:
    return AIConfig(
        provider=AIProvider.DEEPSEEK,
        api_url="https://api.deepseek.com/v1/chat/completions",
        api_token="sk-test-token-123456",
        model="deepseek-chat",
    )


@pytest.fixture
def style_fields() -> StyleFields:
    return StyleFields(
        name="Poetic",
        icon="🎨",
        description="Romantic replies for art and feelings",
        system_prompt="You are a poetic commentator. Reply with graceful, romantic language.",
    )
