"""Tests for the built-in styles and the catalog view."""

from __future__ import annotations

import pytest

from replypilot.models import CustomReplyStyle, PROMPT_MAX_LENGTH, ReplyStyle
from replypilot.services.styles import PRESET_STYLE_IDS, REPLY_STYLES, StyleCatalog, is_preset


class _StaticSource:
    def __init__(self, styles: list[CustomReplyStyle]) -> None:
        self.styles = styles
        self.calls = 0

    async def get_custom_styles(self) -> list[CustomReplyStyle]:
        self.calls += 1
        return list(self.styles)


def _custom(style_id: str) -> CustomReplyStyle:
    return CustomReplyStyle(style_id, "Mine", "⭐", "Custom", "Reply like a pirate, briefly.", 1)


def test_presets_have_unique_ids_and_prompts() -> None:
    ids = [style.id for style in REPLY_STYLES]

    assert len(ids) == len(set(ids)) == 6
    assert PRESET_STYLE_IDS == set(ids)
    for style in REPLY_STYLES:
        assert style.name and style.icon and style.description
        assert 10 <= len(style.system_prompt) <= PROMPT_MAX_LENGTH


def test_is_preset() -> None:
    assert is_preset("humorous") is True
    assert StyleCatalog.is_preset("custom_123") is False


def test_presets_returns_a_fresh_list() -> None:
    presets = StyleCatalog.presets()
    presets.clear()

    assert len(StyleCatalog.presets()) == len(REPLY_STYLES)


@pytest.mark.asyncio
async def test_resolve_all_orders_presets_first() -> None:
    mine = _custom("custom_1")
    catalog = StyleCatalog(_StaticSource([mine]))

    entries = await catalog.resolve_all()

    assert entries[: len(REPLY_STYLES)] == list(REPLY_STYLES)
    assert entries[len(REPLY_STYLES):] == [mine]


@pytest.mark.asyncio
async def test_resolve_all_drops_custom_entries_shadowing_presets() -> None:
    catalog = StyleCatalog(_StaticSource([_custom("witty"), _custom("custom_2")]))

    entries = await catalog.resolve_all()

    assert [entry.id for entry in entries].count("witty") == 1
    assert isinstance(next(entry for entry in entries if entry.id == "witty"), ReplyStyle)


@pytest.mark.asyncio
async def test_lookup_prefers_presets_without_touching_source() -> None:
    source = _StaticSource([_custom("custom_1")])
    catalog = StyleCatalog(source)

    preset = await catalog.lookup("supportive")

    assert preset is not None and preset.id == "supportive"
    assert source.calls == 0


@pytest.mark.asyncio
async def test_lookup_finds_custom_and_reports_missing() -> None:
    mine = _custom("custom_1")
    catalog = StyleCatalog(_StaticSource([mine]))

    assert await catalog.lookup("custom_1") == mine
    assert await catalog.lookup("custom_404") is None


@pytest.mark.asyncio
async def test_split_partitions_entries() -> None:
    mine = _custom("custom_1")
    entries = await StyleCatalog(_StaticSource([mine])).resolve_all()

    presets, custom = StyleCatalog.split(entries)

    assert presets == list(REPLY_STYLES)
    assert custom == [mine]
