"""Atomic JSON file helpers used by the file-backed storage area."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

__all__ = ["read_json", "write_json", "write_text"]

LOGGER = logging.getLogger(__name__)


def write_text(path: Path | str, content: str, *, encoding: str = "utf-8") -> Path:
    """Replace ``path`` with ``content`` through a sibling temp file and ``os.replace``."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    descriptor, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
    replaced = False
    try:
        with os.fdopen(descriptor, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
        replaced = True
    finally:
        if not replaced:
            _discard(tmp_name)
    return target


def _discard(tmp_name: str) -> None:
    try:
        os.unlink(tmp_name)
    except FileNotFoundError:
        return
    except OSError as exc:  # pragma: no cover - cleanup path
        LOGGER.warning("Could not remove temporary file %s: %s", tmp_name, exc)


def read_json(path: Path | str) -> dict[str, Any]:
    """Return the JSON object stored at ``path``; missing or corrupt files read as empty."""

    target = Path(path)
    try:
        text = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    try:
        payload = json.loads(text) if text.strip() else {}
    except json.JSONDecodeError as exc:
        LOGGER.warning("Storage file %s is not valid JSON: %s", target, exc)
        return {}
    if not isinstance(payload, dict):
        LOGGER.warning("Storage file %s does not contain a JSON object; ignoring it", target)
        return {}
    return payload


def write_json(path: Path | str, payload: dict[str, Any]) -> Path:
    body = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
    return write_text(path, body)
