"""Built-in reply styles and the catalog merging them with custom styles."""

from __future__ import annotations

from typing import Iterable, Protocol, Union

from ..models import CustomReplyStyle, ReplyStyle

__all__ = [
    "REPLY_STYLES",
    "PRESET_STYLE_IDS",
    "CatalogEntry",
    "CustomStyleSource",
    "StyleCatalog",
    "is_preset",
]

CatalogEntry = Union[ReplyStyle, CustomReplyStyle]

_REPLY_RULES = (
    " Reply in the same language as the post. Keep the reply under 280 characters."
    " Output only the reply text without quotes or explanations."
)

REPLY_STYLES: tuple[ReplyStyle, ...] = (
    ReplyStyle(
        id="humorous",
        name="Humorous",
        icon="😄",
        description="Light-hearted and playful",
        system_prompt="You are a witty social media user. Reply to the post with light, friendly humor." + _REPLY_RULES,
    ),
    ReplyStyle(
        id="professional",
        name="Professional",
        icon="💼",
        description="Polished and businesslike",
        system_prompt="You are a thoughtful professional. Reply to the post in a courteous, well-reasoned tone."
        + _REPLY_RULES,
    ),
    ReplyStyle(
        id="supportive",
        name="Supportive",
        icon="🤗",
        description="Warm and encouraging",
        system_prompt="You are an empathetic friend. Reply to the post with warmth and genuine encouragement."
        + _REPLY_RULES,
    ),
    ReplyStyle(
        id="insightful",
        name="Insightful",
        icon="💡",
        description="Adds a perspective or fact",
        system_prompt="You are a knowledgeable commentator. Reply by adding a useful perspective, fact, or question."
        + _REPLY_RULES,
    ),
    ReplyStyle(
        id="witty",
        name="Witty",
        icon="😏",
        description="Clever one-liners",
        system_prompt="You are known for sharp one-liners. Reply with a single clever, good-natured quip."
        + _REPLY_RULES,
    ),
    ReplyStyle(
        id="concise",
        name="Concise",
        icon="✂️",
        description="Short and to the point",
        system_prompt="You value brevity. Reply to the post in one short sentence that stays on topic."
        + _REPLY_RULES,
    ),
)

PRESET_STYLE_IDS: frozenset[str] = frozenset(style.id for style in REPLY_STYLES)
_PRESETS_BY_ID = {style.id: style for style in REPLY_STYLES}


def is_preset(style_id: str) -> bool:
    return style_id in PRESET_STYLE_IDS


class CustomStyleSource(Protocol):
    async def get_custom_styles(self) -> list[CustomReplyStyle]:  # pragma: no cover - protocol
        ...


class StyleCatalog:
    """Read-only view over presets followed by custom styles."""

    def __init__(self, source: CustomStyleSource) -> None:
        self._source = source

    @staticmethod
    def presets() -> list[ReplyStyle]:
        return list(REPLY_STYLES)

    @staticmethod
    def is_preset(style_id: str) -> bool:
        return is_preset(style_id)

    async def resolve_all(self) -> list[CatalogEntry]:
        entries: list[CatalogEntry] = list(REPLY_STYLES)
        entries.extend(style for style in await self._source.get_custom_styles() if not is_preset(style.id))
        return entries

    async def lookup(self, style_id: str) -> CatalogEntry | None:
        preset = _PRESETS_BY_ID.get(style_id)
        if preset is not None:
            return preset
        for style in await self._source.get_custom_styles():
            if style.id == style_id:
                return style
        return None

    @staticmethod
    def split(entries: Iterable[CatalogEntry]) -> tuple[list[ReplyStyle], list[CustomReplyStyle]]:
        """Partition resolved entries into (presets, custom) by id membership."""

        presets: list[ReplyStyle] = []
        custom: list[CustomReplyStyle] = []
        for entry in entries:
            if is_preset(entry.id):
                presets.append(entry)  # type: ignore[arg-type]
            else:
                custom.append(entry)  # type: ignore[arg-type]
        return presets, custom