"""Service layer: validation, persistence, and the style catalog."""

from .settings import RuntimeSettings, load_runtime_settings
from .storage import StorageService
from .storage_area import JsonFileStorageArea, MemoryStorageArea, StorageArea
from .styles import PRESET_STYLE_IDS, REPLY_STYLES, StyleCatalog
from .validation import ConfigValidator, ValidationResult, validate_config, validate_custom_style

__all__ = [
    "ConfigValidator",
    "JsonFileStorageArea",
    "MemoryStorageArea",
    "PRESET_STYLE_IDS",
    "REPLY_STYLES",
    "RuntimeSettings",
    "StorageArea",
    "StorageService",
    "StyleCatalog",
    "ValidationResult",
    "load_runtime_settings",
    "validate_config",
    "validate_custom_style",
]
