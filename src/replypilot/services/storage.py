"""Persistence of the active AI config and the custom style collection."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import replace
from typing import Any, Callable, Mapping

from ..errors import CapacityError, NotFoundError, ValidationError
from ..models import AIConfig, AIProvider, CustomReplyStyle, MAX_CUSTOM_STYLES, StorageInfo, StyleFields
from .storage_area import StorageArea
from .styles import CatalogEntry, StyleCatalog, is_preset
from .validation import validate_config, validate_custom_style

__all__ = ["StorageService", "AI_CONFIG_KEY", "CUSTOM_STYLES_KEY"]

LOGGER = logging.getLogger(__name__)
AI_CONFIG_KEY = "ai_config"
CUSTOM_STYLES_KEY = "custom_styles"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_style_id() -> str:
    return f"custom_{uuid.uuid4().hex[:12]}"


class StorageService:
    """Sole reader and writer of persisted state.

    Values handed out are immutable dataclasses, so callers never hold a
    reference into the stored data. Every write replaces a whole value
    (the config record or the full style list).
    """

    def __init__(
        self,
        area: StorageArea,
        *,
        max_custom_styles: int = MAX_CUSTOM_STYLES,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = _new_style_id,
    ) -> None:
        self._area = area
        self._max_custom_styles = max_custom_styles
        self._clock = clock
        self._id_factory = id_factory
        self._lock = asyncio.Lock()
        self._catalog = StyleCatalog(self)

    @property
    def area(self) -> StorageArea:
        return self._area

    @property
    def catalog(self) -> StyleCatalog:
        return self._catalog

    @property
    def max_custom_styles(self) -> int:
        return self._max_custom_styles

    # ------------------------------------------------------------------
    # AI config
    # ------------------------------------------------------------------
    async def get_ai_config(self) -> AIConfig | None:
        payload = await self._area.get(AI_CONFIG_KEY)
        if not payload:
            return None
        if not isinstance(payload, Mapping):
            LOGGER.warning("Ignoring stored AI config of type %s", type(payload).__name__)
            return None
        try:
            return AIConfig.from_dict(payload)
        except ValueError as exc:
            LOGGER.warning("Stored AI config is unreadable: %s", exc)
            return None

    async def set_ai_config(self, config: AIConfig | Mapping[str, Any]) -> AIConfig:
        result = validate_config(config)
        if not result.valid:
            raise ValidationError(result.errors, fields=result.fields)
        if isinstance(config, Mapping):
            config = AIConfig.from_dict(config)
        normalized = replace(
            config,
            provider=AIProvider.parse(config.provider),
            api_url=config.api_url.strip(),
            api_token=config.api_token.strip(),
            model=config.model.strip(),
        )
        async with self._lock:
            await self._area.set(AI_CONFIG_KEY, normalized.to_dict())
        LOGGER.info("Saved AI config for provider %s (model %s)", normalized.provider.value, normalized.model)
        return normalized

    async def clear_ai_config(self) -> None:
        async with self._lock:
            await self._area.remove(AI_CONFIG_KEY)
        LOGGER.info("Cleared AI config")

    # ------------------------------------------------------------------
    # Custom styles
    # ------------------------------------------------------------------
    async def get_custom_styles(self) -> list[CustomReplyStyle]:
        return await self._read_styles()

    async def save_custom_style(self, fields: StyleFields | Mapping[str, Any]) -> CustomReplyStyle:
        values = _validated_fields(fields)
        async with self._lock:
            styles = await self._read_styles()
            if len(styles) >= self._max_custom_styles:
                raise CapacityError(self._max_custom_styles)
            taken = {style.id for style in styles}
            style_id = self._id_factory()
            while style_id in taken or is_preset(style_id):
                style_id = self._id_factory()
            created = CustomReplyStyle(
                id=style_id,
                name=values.name,
                icon=values.icon,
                description=values.description,
                system_prompt=values.system_prompt,
                created_at=self._clock(),
            )
            styles.append(created)
            await self._write_styles(styles)
        LOGGER.info("Created custom style %s (%d/%d)", created.id, len(styles), self._max_custom_styles)
        return created

    async def update_custom_style(self, style_id: str, fields: StyleFields | Mapping[str, Any]) -> CustomReplyStyle:
        values = _validated_fields(fields)
        async with self._lock:
            styles = await self._read_styles()
            for index, style in enumerate(styles):
                if style.id == style_id:
                    break
            else:
                raise NotFoundError(style_id, what="custom style")
            updated = replace(
                style,
                name=values.name,
                icon=values.icon,
                description=values.description,
                system_prompt=values.system_prompt,
            )
            styles[index] = updated
            await self._write_styles(styles)
        LOGGER.info("Updated custom style %s", style_id)
        return updated

    async def delete_custom_style(self, style_id: str) -> bool:
        """Remove ``style_id``; returns ``False`` without writing when it is already gone."""

        async with self._lock:
            styles = await self._read_styles()
            remaining = [style for style in styles if style.id != style_id]
            if len(remaining) == len(styles):
                LOGGER.debug("Custom style %s already absent; nothing to delete", style_id)
                return False
            await self._write_styles(remaining)
        LOGGER.info("Deleted custom style %s", style_id)
        return True

    async def get_all_styles(self) -> list[CatalogEntry]:
        return await self._catalog.resolve_all()

    # ------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------
    async def get_storage_info(self) -> StorageInfo:
        used = await self._area.bytes_in_use()
        quota = self._area.quota
        percent = round(used / quota * 100, 2) if quota else 0.0
        return StorageInfo(bytes_in_use=used, quota=quota, percent_used=percent)

    async def _read_styles(self) -> list[CustomReplyStyle]:
        payload = await self._area.get(CUSTOM_STYLES_KEY)
        if payload is None:
            return []
        if not isinstance(payload, list):
            LOGGER.warning("Ignoring stored %s of type %s", CUSTOM_STYLES_KEY, type(payload).__name__)
            return []
        styles: list[CustomReplyStyle] = []
        seen: set[str] = set()
        for record in payload:
            if not isinstance(record, Mapping):
                LOGGER.warning("Skipping malformed custom style record: %r", record)
                continue
            try:
                style = CustomReplyStyle.from_dict(record)
            except (TypeError, ValueError) as exc:
                LOGGER.warning("Skipping unreadable custom style record: %s", exc)
                continue
            if style.id in seen or is_preset(style.id):
                LOGGER.warning("Skipping custom style with conflicting id %s", style.id)
                continue
            seen.add(style.id)
            styles.append(style)
        return styles

    async def _write_styles(self, styles: list[CustomReplyStyle]) -> None:
        await self._area.set(CUSTOM_STYLES_KEY, [style.to_dict() for style in styles])


def _validated_fields(fields: StyleFields | Mapping[str, Any]) -> StyleFields:
    values = StyleFields.coerce(fields)
    result = validate_custom_style(values)
    if not result.valid:
        raise ValidationError(result.errors, fields=result.fields)
    return values
