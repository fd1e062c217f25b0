"""Command-line front end for the `replypilot` console script."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Sequence, TextIO, get_type_hints

from .ai.client import AIService
from .ai.providers import PROVIDERS, default_config, get_provider, switch_provider
from .errors import NotFoundError, ReplyPilotError, ValidationError, format_for_user, normalize_exception, redact_secret
from .models import AIConfig, AIProvider, StyleFields
from .services.settings import RuntimeSettings, load_runtime_settings
from .services.storage import StorageService
from .services.storage_area import JsonFileStorageArea
from .services.styles import StyleCatalog
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2


def configure_logging(debug: bool = False, *, log_dir: Path | None = None) -> Path:
    log_path = logging_utils.setup_logging(debug=debug, log_dir=log_dir)
    _LOGGER.debug("Logging to %s (debug=%s)", log_path, debug)
    return log_path


def build_services(settings: RuntimeSettings) -> tuple[StorageService, AIService]:
    area = JsonFileStorageArea(settings.storage_path, quota=settings.storage_quota_bytes)
    store = StorageService(area)
    ai_service = AIService(
        store,
        request_timeout=settings.request_timeout,
        reply_max_chars=settings.reply_max_chars,
    )
    return store, ai_service


def main(argv: Sequence[str] | None = None, *, stdout: TextIO | None = None, stderr: TextIO | None = None) -> int:
    """Entry point invoked by the `replypilot` console script."""

    out = stdout or sys.stdout
    err = stderr or sys.stderr
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help(out)
        return EXIT_INVALID

    try:
        overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=err)
        return EXIT_INVALID
    if args.storage_path:
        overrides["storage_path"] = args.storage_path
    settings = load_runtime_settings(overrides or None)

    if not args.no_log_file:
        configure_logging(args.debug or settings.debug_logging, log_dir=settings.log_dir)

    store, ai_service = build_services(settings)
    try:
        return asyncio.run(_dispatch(args, store, ai_service, out, err))
    except Exception as exc:  # pragma: no cover - last-resort guard
        _LOGGER.exception("Command failed unexpectedly")
        print(format_for_user(normalize_exception(exc), secrets=_secrets_from(args)), file=err)
        return EXIT_FAILURE


async def _dispatch(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO, err: TextIO) -> int:
    try:
        return await args.handler(args, store, ai, out)
    except ReplyPilotError as exc:
        secrets = _secrets_from(args) + await _stored_secrets(store)
        print(format_for_user(exc, secrets=secrets), file=err)
        return EXIT_INVALID if isinstance(exc, ValidationError) else EXIT_FAILURE


# ----------------------------------------------------------------------
# Command handlers
# ----------------------------------------------------------------------
async def _cmd_providers(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    for spec in PROVIDERS.values():
        endpoint = spec.endpoint or "(user supplied)"
        print(f"{spec.provider.value:<12} {spec.display_name}", file=out)
        print(f"{'':<12} endpoint: {endpoint}", file=out)
        if spec.models:
            print(f"{'':<12} models:   {', '.join(spec.models)}", file=out)
    return EXIT_OK


async def _cmd_config_show(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    config = await store.get_ai_config()
    if config is None:
        print("No AI configuration saved.", file=out)
        return EXIT_OK
    _print_config(config, out)
    return EXIT_OK


async def _cmd_config_set(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    candidate = _candidate_config(args, await store.get_ai_config())
    saved = await store.set_ai_config(candidate)
    print("Configuration saved.", file=out)
    _print_config(saved, out)
    return EXIT_OK


async def _cmd_config_clear(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    await store.clear_ai_config()
    print("Configuration cleared.", file=out)
    return EXIT_OK


async def _cmd_config_test(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    stored = await store.get_ai_config()
    if stored is None and not args.provider:
        print("No AI configuration saved; pass --provider and --token to test one.", file=out)
        return EXIT_INVALID
    candidate = _candidate_config(args, stored)
    result = await ai.test_config(candidate)
    if result.success:
        print(f"Connection OK ({result.latency_ms}ms, model {candidate.model}).", file=out)
        return EXIT_OK
    latency = f" after {result.latency_ms}ms" if result.latency_ms is not None else ""
    print(f"Connection failed{latency}:\n{result.error}", file=out)
    return EXIT_INVALID if result.error_kind == "validation" else EXIT_FAILURE


async def _cmd_styles_list(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    presets, custom = StyleCatalog.split(await store.get_all_styles())
    print("Preset styles:", file=out)
    for style in presets:
        print(f"  {style.icon} {style.id:<18} {style.name} - {style.description}", file=out)
    print(f"Custom styles ({len(custom)}/{store.max_custom_styles}):", file=out)
    if not custom:
        print("  (none)", file=out)
    for style in custom:
        print(f"  {style.icon} {style.id:<18} {style.name} - {style.description}", file=out)
    return EXIT_OK


async def _cmd_styles_add(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    created = await store.save_custom_style(
        StyleFields(
            name=args.name or "",
            icon=args.icon or "",
            description=args.description or "",
            system_prompt=args.prompt or "",
        )
    )
    print(f"Added style {created.id}.", file=out)
    return EXIT_OK


async def _cmd_styles_edit(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    current = next((style for style in await store.get_custom_styles() if style.id == args.style_id), None)
    if current is None:
        raise NotFoundError(args.style_id, what="custom style")
    base = current.fields
    updated = await store.update_custom_style(
        args.style_id,
        StyleFields(
            name=base.name if args.name is None else args.name,
            icon=base.icon if args.icon is None else args.icon,
            description=base.description if args.description is None else args.description,
            system_prompt=base.system_prompt if args.prompt is None else args.prompt,
        ),
    )
    print(f"Updated style {updated.id}.", file=out)
    return EXIT_OK


async def _cmd_styles_delete(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    removed = await store.delete_custom_style(args.style_id)
    print(f"Deleted style {args.style_id}." if removed else f"Style {args.style_id} was already gone.", file=out)
    return EXIT_OK


async def _cmd_reply(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    reply = await ai.generate_reply(args.text, args.style)
    print(reply, file=out)
    return EXIT_OK


async def _cmd_storage(args: argparse.Namespace, store: StorageService, ai: AIService, out: TextIO) -> int:
    info = await store.get_storage_info()
    print(f"Used: {info.bytes_in_use} / {info.quota} bytes ({info.percent_used}%)", file=out)
    return EXIT_OK


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _print_config(config: AIConfig, out: TextIO) -> None:
    spec = get_provider(config.provider)
    print(f"Provider: {spec.display_name} ({config.provider.value})", file=out)
    print(f"API URL:  {config.api_url}", file=out)
    print(f"Model:    {config.model}", file=out)
    print(f"Token:    {redact_secret(config.api_token)}", file=out)


def _candidate_config(args: argparse.Namespace, stored: AIConfig | None) -> AIConfig:
    """Merge CLI flags over the stored config (or the chosen provider's defaults)."""

    if args.provider:
        provider = AIProvider.parse(args.provider)
        if provider is None:
            raise ValidationError([f"Unknown provider: {args.provider!r}"], fields=["provider"])
        if stored is None:
            base = default_config(provider)
        elif stored.provider is provider:
            base = stored
        else:
            base = switch_provider(stored, provider)
    elif stored is not None:
        base = stored
    else:
        base = default_config(AIProvider.SILICONFLOW)

    updates: Dict[str, Any] = {}
    if args.url is not None:
        updates["api_url"] = args.url
    if args.token is not None:
        updates["api_token"] = args.token
    if args.model is not None:
        updates["model"] = args.model
    return replace(base, **updates) if updates else base


def _secrets_from(args: argparse.Namespace) -> list[str]:
    token = getattr(args, "token", None)
    return [token] if token else []


async def _stored_secrets(store: StorageService) -> list[str]:
    try:
        config = await store.get_ai_config()
    except ReplyPilotError as exc:
        _LOGGER.debug("Stored config unavailable while formatting an error: %s", exc)
        return []
    return [config.api_token] if config is not None and config.api_token else []


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="replypilot",
        description="Configure an AI provider, manage reply styles, and generate replies to posts.",
    )
    parser.add_argument("--storage-path", metavar="PATH", help="Override the default ~/.replypilot/storage.json path.")
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override runtime settings for this invocation (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--no-log-file", action="store_true", help="Skip log file setup for this invocation.")
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("providers", help="List supported providers and suggested models.").set_defaults(
        handler=_cmd_providers
    )
    commands.add_parser("storage", help="Show storage usage.").set_defaults(handler=_cmd_storage)

    config = commands.add_parser("config", help="Show, save, clear, or test the AI configuration.")
    config_commands = config.add_subparsers(dest="config_command")
    config_commands.add_parser("show").set_defaults(handler=_cmd_config_show)
    config_commands.add_parser("clear").set_defaults(handler=_cmd_config_clear)
    for name, handler in (("set", _cmd_config_set), ("test", _cmd_config_test)):
        sub = config_commands.add_parser(name)
        sub.add_argument("--provider", choices=[provider.value for provider in AIProvider])
        sub.add_argument("--url", help="Chat-completions endpoint (required for the custom provider).")
        sub.add_argument("--token", help="API token.")
        sub.add_argument("--model", help="Model name.")
        sub.set_defaults(handler=handler)

    styles = commands.add_parser("styles", help="Manage custom reply styles.")
    style_commands = styles.add_subparsers(dest="styles_command")
    style_commands.add_parser("list").set_defaults(handler=_cmd_styles_list)
    add = style_commands.add_parser("add")
    edit = style_commands.add_parser("edit")
    edit.add_argument("style_id")
    for sub in (add, edit):
        sub.add_argument("--name")
        sub.add_argument("--icon", default="🎨" if sub is add else None)
        sub.add_argument("--description")
        sub.add_argument("--prompt", help="System prompt used when generating replies.")
    add.set_defaults(handler=_cmd_styles_add)
    edit.set_defaults(handler=_cmd_styles_edit)
    delete = style_commands.add_parser("delete")
    delete.add_argument("style_id")
    delete.set_defaults(handler=_cmd_styles_delete)

    reply = commands.add_parser("reply", help="Generate a reply to a post.")
    reply.add_argument("text")
    reply.add_argument("--style", required=True, help="Preset or custom style id.")
    reply.set_defaults(handler=_cmd_reply)
    return parser


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    known = {field.name for field in fields(RuntimeSettings)}
    type_hints = get_type_hints(RuntimeSettings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in known:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = _coerce_value(type_hints.get(key), raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    if annotation is bool:
        return _parse_bool(raw_value)
    if annotation is int:
        return int(raw_value, 10)
    if annotation is float:
        return float(raw_value)
    if raw_value.lower() in {"none", "null"}:
        return None
    return raw_value


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot interpret '{value}' as a boolean.")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
