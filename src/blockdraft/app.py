"""Command line entry point: render, inspect and create blockdraft documents."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .editor.document_model import DocumentState
from .editor.html_renderer import render_document_html
from .editor.segmenter import Segment, segment_block
from .editor.serialization import DocumentFormatError, load_document, save_document
from .editor.session import default_state
from .editor.stats import document_stats
from .services.settings import Settings, SettingsStore
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_LOGGER = logging.getLogger(__name__)
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_NONE_VALUES = {"none", "null"}
RENDER_FORMATS: tuple[str, ...] = ("html", "segments", "text")


def configure_logging(debug: bool = False, *, log_dir: str | None = None, force: bool = False) -> None:
    """Configure structured logging for the application."""

    level = logging.DEBUG if debug else logging.INFO
    logging_utils.setup_logging(level, log_dir=log_dir, console=debug, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))
    _install_qt_message_handler()


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except (OSError, TypeError, ValueError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def main(argv: Sequence[str] | None = None, *, stdout: TextIO | None = None) -> int:
    """Entry point invoked by the ``blockdraft`` console script."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    out = stdout or sys.stdout

    debug = bool(args.debug) or _env_flag("BLOCKDRAFT_DEBUG", default=False)
    settings_path = args.settings_path or os.environ.get("BLOCKDRAFT_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    configure_logging(debug or settings.debug_logging, log_dir=settings.log_dir)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides, stream=out)
        return 0

    if args.command is None:
        parser.print_help(out)
        return 0

    try:
        if args.command == "new":
            return _command_new(Path(args.path), settings, text=args.text, stream=out)
        state = load_document(Path(args.path))
    except (DocumentFormatError, OSError) as exc:
        _LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"blockdraft: {exc}", file=sys.stderr)
        return 1

    if args.command == "render":
        out.write(render(state, args.format))
        out.write("\n")
        return 0
    stats = document_stats(state)
    json.dump(asdict(stats), out, indent=2)
    out.write("\n")
    return 0


def render(state: DocumentState, output_format: str = "html") -> str:
    """Return ``state`` rendered as HTML, a JSON segment dump or plain text."""

    if output_format == "html":
        return render_document_html(state)
    if output_format == "text":
        return "\n".join(block.text for block in state.blocks)
    if output_format == "segments":
        payload = [
            {
                "key": block.key,
                "type": block.block_type.value,
                "segments": [
                    _segment_payload(segment)
                    for segment in segment_block(block, components=state.components, mentions=state.mentions)
                ],
            }
            for block in state.blocks
        ]
        return json.dumps(payload, indent=2, ensure_ascii=False)
    raise ValueError(f"Unsupported render format: {output_format!r}")


def _command_new(path: Path, settings: Settings, *, text: str | None, stream: TextIO) -> int:
    if path.exists():
        print(f"blockdraft: {path} already exists", file=sys.stderr)
        return 1
    target = save_document(path, default_state(text if text is not None else settings.default_block_text))
    stream.write(f"{target}\n")
    return 0


def _segment_payload(segment: Segment) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "text": segment.text,
        "offset": segment.offset,
        "styles": [style.value for style in segment.styles],
    }
    if segment.entity is not None:
        payload["entity"] = {"key": segment.entity.key, "type": segment.entity.type.value}
    return payload


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _install_qt_message_handler() -> None:
    """Redirect Qt warnings to the Python logging stack."""

    from PySide6.QtCore import QtMsgType, qInstallMessageHandler

    level_map = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def _handler(mode, context, message):  # type: ignore[no-untyped-def]
        del context
        level = level_map.get(mode, logging.INFO)
        logging.getLogger("PySide6").log(level, message)

    qInstallMessageHandler(_handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blockdraft",
        description="Render, inspect and create blockdraft documents.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings",
        "--settings-path",
        dest="settings_path",
        metavar="PATH",
        help="Override the default ~/.blockdraft/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on the console.")

    commands = parser.add_subparsers(dest="command")
    render_parser = commands.add_parser("render", help="Render a document to stdout.")
    render_parser.add_argument("path", metavar="PATH")
    render_parser.add_argument("--format", choices=RENDER_FORMATS, default="html")
    stats_parser = commands.add_parser("stats", help="Print word, character and block counts.")
    stats_parser.add_argument("path", metavar="PATH")
    new_parser = commands.add_parser("new", help="Create a new single-paragraph document.")
    new_parser.add_argument("path", metavar="PATH")
    new_parser.add_argument("--text", default=None, help="Initial paragraph text.")
    return parser


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if normalized.lower() in _NONE_VALUES and type(None) in get_args(annotation):
        return None
    if target is str or target is Any:
        return normalized
    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is float:
        return float(normalized)
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if not args:
        return origin
    return args[0]


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "log_path": str(logging_utils.get_log_path() or ""),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    output = {"settings": asdict(settings), "meta": metadata}
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("BLOCKDRAFT_"))
