"""ReplyPilot: provider configuration, reply styles, and AI reply generation."""

from .ai import AIService
from .errors import ErrorHelper, ErrorKind, ReplyPilotError, format_for_user
from .models import AIConfig, AIProvider, CustomReplyStyle, ReplyStyle, StorageInfo, StyleFields
from .services import ConfigValidator, JsonFileStorageArea, MemoryStorageArea, StorageService, StyleCatalog

__all__ = [
    "AIConfig",
    "AIProvider",
    "AIService",
    "ConfigValidator",
    "CustomReplyStyle",
    "ErrorHelper",
    "ErrorKind",
    "JsonFileStorageArea",
    "MemoryStorageArea",
    "ReplyPilotError",
    "ReplyStyle",
    "StorageInfo",
    "StorageService",
    "StyleCatalog",
    "StyleFields",
    "format_for_user",
]

__version__ = "0.1.0"
