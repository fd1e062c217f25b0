"""Pure validation helpers for provider configs and custom styles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlsplit

from ..models import (
    AIConfig,
    AIProvider,
    CustomReplyStyle,
    DESCRIPTION_MAX_LENGTH,
    ICON_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PROMPT_MAX_LENGTH,
    PROMPT_MIN_LENGTH,
    StyleFields,
)

__all__ = ["ValidationResult", "ConfigValidator", "validate_config", "validate_custom_style", "is_http_url"]


@dataclass(slots=True)
class ValidationResult:
    """Ordered list of problems; ``fields[i]`` names the field behind ``errors[i]``."""

    errors: list[str] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str) -> None:
        self.errors.append(message)
        self.fields.append(field_name)


def is_http_url(value: str) -> bool:
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


def validate_config(candidate: AIConfig | Mapping[str, Any]) -> ValidationResult:
    """Check every config field and report all violations at once."""

    provider = _read(candidate, "provider")
    api_url = _text(candidate, "api_url")
    api_token = _text(candidate, "api_token")
    model = _text(candidate, "model")
    result = ValidationResult()

    if AIProvider.parse(provider) is None:
        result.add("provider", f"Unknown provider: {provider!r}")
    if not api_url.strip():
        result.add("api_url", "API URL is required")
    elif not is_http_url(api_url):
        result.add("api_url", "API URL must be a valid http(s) URL")
    if not api_token.strip():
        result.add("api_token", "API token is required")
    if not model.strip():
        result.add("model", "Model is required")
    return result


def validate_custom_style(candidate: StyleFields | CustomReplyStyle | Mapping[str, Any]) -> ValidationResult:
    """Check custom style fields in the order the editing form shows them."""

    result = ValidationResult()
    _check_length(result, "name", "Name", _text(candidate, "name"), maximum=NAME_MAX_LENGTH)
    _check_length(result, "icon", "Icon", _text(candidate, "icon"), maximum=ICON_MAX_LENGTH)
    _check_length(
        result, "description", "Description", _text(candidate, "description"), maximum=DESCRIPTION_MAX_LENGTH
    )
    _check_length(
        result,
        "system_prompt",
        "System prompt",
        _text(candidate, "system_prompt"),
        minimum=PROMPT_MIN_LENGTH,
        maximum=PROMPT_MAX_LENGTH,
    )
    return result


class ConfigValidator:
    """Namespace mirroring the validator contract used by front ends."""

    validate_config = staticmethod(validate_config)
    validate_custom_style = staticmethod(validate_custom_style)


def _check_length(
    result: ValidationResult,
    field_name: str,
    label: str,
    value: str,
    *,
    maximum: int,
    minimum: int = 0,
) -> None:
    stripped = value.strip()
    if not stripped:
        result.add(field_name, f"{label} is required")
    elif len(stripped) < minimum:
        result.add(field_name, f"{label} must be at least {minimum} characters")
    elif len(stripped) > maximum:
        result.add(field_name, f"{label} must be at most {maximum} characters")


def _read(candidate: Any, name: str) -> Any:
    if isinstance(candidate, Mapping):
        return candidate.get(name)
    return getattr(candidate, name, None)


def _text(candidate: Any, name: str) -> str:
    value = _read(candidate, name)
    return "" if value is None else str(value)
