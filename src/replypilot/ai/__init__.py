"""AI client and provider table."""

from .client import AIService, build_openai_client, clean_reply
from .providers import PROVIDERS, ProviderSpec, default_config, get_provider, switch_provider

__all__ = [
    "AIService",
    "PROVIDERS",
    "ProviderSpec",
    "build_openai_client",
    "clean_reply",
    "default_config",
    "get_provider",
    "switch_provider",
]
