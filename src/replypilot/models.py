"""Value types shared by the storage, catalog, and AI layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Mapping

__all__ = [
    "AIProvider",
    "AIConfig",
    "StyleFields",
    "ReplyStyle",
    "CustomReplyStyle",
    "StorageInfo",
    "ChatResponse",
    "ConfigTestResult",
    "MAX_CUSTOM_STYLES",
    "NAME_MAX_LENGTH",
    "DESCRIPTION_MAX_LENGTH",
    "ICON_MAX_LENGTH",
    "PROMPT_MIN_LENGTH",
    "PROMPT_MAX_LENGTH",
    "REPLY_MAX_CHARS",
]

MAX_CUSTOM_STYLES = 10
NAME_MAX_LENGTH = 20
DESCRIPTION_MAX_LENGTH = 100
ICON_MAX_LENGTH = 8
PROMPT_MIN_LENGTH = 10
PROMPT_MAX_LENGTH = 2_000
REPLY_MAX_CHARS = 280


class AIProvider(str, Enum):
    """Supported AI backends."""

    SILICONFLOW = "siliconflow"
    DEEPSEEK = "deepseek"
    GLM = "glm"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Any) -> "AIProvider | None":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return None


@dataclass(slots=True, frozen=True)
class AIConfig:
    """The single active provider configuration."""

    provider: AIProvider
    api_url: str
    api_token: str
    model: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider.value,
            "api_url": self.api_url,
            "api_token": self.api_token,
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AIConfig":
        provider = AIProvider.parse(payload.get("provider"))
        if provider is None:
            raise ValueError(f"Unknown provider {payload.get('provider')!r}")
        return cls(
            provider=provider,
            api_url=str(payload.get("api_url") or ""),
            api_token=str(payload.get("api_token") or ""),
            model=str(payload.get("model") or ""),
        )


@dataclass(slots=True, frozen=True)
class StyleFields:
    """User-editable fields of a custom style, in form order."""

    name: str
    icon: str
    description: str
    system_prompt: str

    @classmethod
    def coerce(cls, value: "StyleFields | Mapping[str, Any]") -> "StyleFields":
        if isinstance(value, StyleFields):
            return value
        return cls(
            name=str(value.get("name") or ""),
            icon=str(value.get("icon") or ""),
            description=str(value.get("description") or ""),
            system_prompt=str(value.get("system_prompt") or ""),
        )


@dataclass(slots=True, frozen=True)
class ReplyStyle:
    """Built-in reply style shipped with the package."""

    id: str
    name: str
    icon: str
    description: str
    system_prompt: str


@dataclass(slots=True, frozen=True)
class CustomReplyStyle:
    """A persisted, user-created reply style."""

    id: str
    name: str
    icon: str
    description: str
    system_prompt: str
    created_at: int

    @property
    def fields(self) -> StyleFields:
        return StyleFields(self.name, self.icon, self.description, self.system_prompt)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CustomReplyStyle":
        style_id = str(payload.get("id") or "").strip()
        if not style_id:
            raise ValueError("Custom style record is missing an id")
        return cls(
            id=style_id,
            name=str(payload.get("name") or ""),
            icon=str(payload.get("icon") or ""),
            description=str(payload.get("description") or ""),
            system_prompt=str(payload.get("system_prompt") or ""),
            created_at=int(payload.get("created_at") or 0),
        )


@dataclass(slots=True, frozen=True)
class StorageInfo:
    """Snapshot of storage usage reported by the storage area."""

    bytes_in_use: int
    quota: int
    percent_used: float


@dataclass(slots=True, frozen=True)
class ChatResponse:
    """Normalized provider response."""

    text: str
    raw_status: int
    latency_ms: int


@dataclass(slots=True)
class ConfigTestResult:
    """Outcome of a connectivity check against a provider."""

    success: bool
    latency_ms: int | None = None
    error: str | None = None
    error_kind: str | None = None
