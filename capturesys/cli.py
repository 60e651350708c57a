"""Command line interface for the capturesys toolkit."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
from loguru import logger

from .config import AppConfig, load_config
from .config.inspector import check_config, explain_config
from .config.pipeline import PipelineConfig
from .config.queue import QueueConfig
from .items import JsonItemStore, ProcessingStatus
from .links import LinkError, LinkWrapper, parse
from .pipeline import PipelineError, build_pipeline, resolve_data_root
from .queue import ItemDescriptor, ItemType, QueueDecodeError, QueueStore

# Loguru installs handler 0 on stderr at import time.
_log_handler_id: int | None = 0


@dataclass(slots=True)
class CLIState:
    """Holds shared state between Typer commands."""

    config_path: Path
    _config: AppConfig | None = None

    def ensure_config(self) -> AppConfig:
        if self._config is None:
            logger.info("Loading configuration from {}", self.config_path)
            self._config = load_config(AppConfig, self.config_path)
            _configure_logging(self._config.logging_level)
        return self._config

    @property
    def base_path(self) -> Path:
        return self.config_path.parent


app = typer.Typer(help="Capture queue and enrichment helpers")
config_app = typer.Typer(help="Validate and document configuration files")
app.add_typer(config_app, name="config")


def _default_config_path() -> Path:
    repo_root = Path(__file__).resolve().parents[1]
    return repo_root / "config" / "example.toml"


def _normalize_format(value: str) -> str:
    return value.lower()


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):  # pragma: no cover - defensive guard
        raise RuntimeError("CLI context is not initialised")
    return state


def _exit(code: int) -> None:
    raise typer.Exit(code)


def _configure_logging(level: str) -> None:
    global _log_handler_id
    if _log_handler_id is not None:
        try:
            logger.remove(_log_handler_id)
        except ValueError:
            pass
    _log_handler_id = logger.add(sys.stderr, level=level.upper())


def _queue_store(config: AppConfig, base_path: Path) -> QueueStore:
    root = resolve_data_root(config, base_path)
    directory = Path((config.queue or QueueConfig()).directory)
    return QueueStore(directory if directory.is_absolute() else root / directory)


def _item_store(config: AppConfig, base_path: Path) -> JsonItemStore:
    root = resolve_data_root(config, base_path)
    directory = Path((config.pipeline or PipelineConfig()).items_dir)
    return JsonItemStore(directory if directory.is_absolute() else root / directory)


def _link_wrapper(config: AppConfig) -> LinkWrapper:
    if config.links is None:
        logger.error("No [links] block configured; cannot sign links")
        _exit(1)
    assert config.links is not None
    return LinkWrapper.from_config(config.links)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config: Path = typer.Option(
        _default_config_path(),
        help="Path to the TOML configuration file",
    ),
) -> None:
    """Initialise CLI state."""

    state = CLIState(config_path=config.resolve())
    ctx.obj = state

    if ctx.invoked_subcommand is None:
        logger.warning("No command provided. Try 'status' or 'drain'.")
        _exit(0)


@app.command(help="Show configuration, queue depth and item counts")
def status(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = state.ensure_config()
    _report_system_status(config, state.base_path)


@app.command(help="Queue a URL for enrichment")
def enqueue(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL (or text) to capture"),
    title: str | None = typer.Option(None, help="Title to store with the capture"),
    source: str | None = typer.Option(None, help="Where the capture came from"),
    type: str = typer.Option(  # noqa: A002 - match CLI option name
        ItemType.WEB.value,
        "--type",
        help="Item type (web, place, text, document, image, ...)",
    ),
) -> None:
    state = _get_state(ctx)
    config = state.ensure_config()

    try:
        item_type = ItemType(type)
    except ValueError:
        logger.error("Unknown item type '{}'; expected one of: {}", type, ", ".join(t.value for t in ItemType))
        _exit(2)
        return

    salt = config.links.salt if config.links is not None else None
    descriptor = ItemDescriptor.from_url(url, title=title or "Untitled", salt=salt, type=item_type)
    record = _queue_store(config, state.base_path).enqueue_descriptor(descriptor, source=source)
    logger.info("Queued {} as {}", descriptor.id, record.path.name)
    typer.echo(descriptor.id)


@app.command(help="Process every pending capture")
def drain(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = state.ensure_config()
    pipeline = build_pipeline(config, base_path=state.base_path)

    if (config.pipeline or PipelineConfig()).resume_stalled:
        pipeline.resume_stalled()

    try:
        report = pipeline.drain()
    except QueueDecodeError as exc:
        logger.error("Queue contains an unreadable entry: {}", exc)
        _exit(1)
        return

    typer.echo(
        json.dumps(
            {
                "processed": report.processed,
                "failed": report.failed,
                "skipped": report.skipped,
                "total": report.total,
                "failed_ids": report.failed_ids,
            },
            indent=2,
        )
    )
    if report.failed:
        _exit(1)


@app.command(help="Produce a signed /w/<id> link for a URL")
def wrap(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Destination URL"),
    title: str | None = typer.Option(None, help="Title embedded in the payload"),
    payload: bool = typer.Option(True, "--payload/--no-payload", help="Embed the signed destination payload"),
) -> None:
    state = _get_state(ctx)
    wrapper = _link_wrapper(state.ensure_config())
    typer.echo(wrapper.wrap(url, title=title, include_payload=payload))


@app.command(help="Verify a wrapped link and print its payload")
def resolve(
    ctx: typer.Context,
    wrapped_url: str = typer.Argument(..., help="Wrapped link to verify"),
) -> None:
    state = _get_state(ctx)
    wrapper = _link_wrapper(state.ensure_config())

    try:
        payload = wrapper.resolve(wrapped_url)
    except LinkError as exc:
        logger.error("Cannot resolve link ({}): {}", exc.code, exc)
        _exit(1)
        return

    if payload is None:
        logger.info("Link is valid but carries no payload")
        typer.echo(json.dumps({"id": parse(wrapped_url).id}))
        return
    typer.echo(json.dumps(payload.to_dict(), ensure_ascii=False))


@app.command(help="List processed items")
def items(
    ctx: typer.Context,
    status_filter: str | None = typer.Option(None, "--status", help="Only list items with this status"),
    format: str = typer.Option(  # noqa: A002 - match CLI option name
        "text",
        "--format",
        case_sensitive=False,
        help="Output format for the listing",
        callback=_normalize_format,
    ),
) -> None:
    state = _get_state(ctx)
    config = state.ensure_config()

    selected: ProcessingStatus | None = None
    if status_filter is not None:
        try:
            selected = ProcessingStatus(status_filter)
        except ValueError:
            logger.error(
                "Unknown status '{}'; expected one of: {}",
                status_filter,
                ", ".join(s.value for s in ProcessingStatus),
            )
            _exit(2)
            return

    records = _item_store(config, state.base_path).query(selected, sort_by="created_at", descending=True)
    if format == "json":
        print(json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False))
        return
    for record in records:
        typer.echo(f"{record.id}\t{record.status.value}\t{record.title or ''}\t{record.url or ''}")


@app.command(help="Archive a ready item")
def archive(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Identifier of the item to archive"),
) -> None:
    state = _get_state(ctx)
    config = state.ensure_config()
    pipeline = build_pipeline(config, base_path=state.base_path)

    try:
        pipeline.archive(item_id)
    except KeyError:
        logger.error("No item with id {}", item_id)
        _exit(1)
    except PipelineError as exc:
        logger.error("Cannot archive {}", exc)
        _exit(1)


@config_app.command(help="Validate the configuration file")
def check(
    ctx: typer.Context,
    format: str = typer.Option(  # noqa: A002 - match CLI option name
        "text",
        "--format",
        case_sensitive=False,
        help="Output format for validation results",
        callback=_normalize_format,
    ),
) -> None:
    state = _get_state(ctx)
    result, exit_code, _ = check_config(state.config_path)

    if format == "json":
        print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
        _exit(exit_code)

    if result["status"] == "ok":
        logger.info("Configuration OK: {}", result["config_path"])
        for warning in result["warnings"]:
            logger.warning(warning)
    else:
        error: dict[str, Any] = result["error"]
        logger.error(
            "Configuration error ({}) for {}: {}",
            error["type"],
            result["config_path"],
            error["message"],
        )
        for detail in error.get("details", []):
            location = detail["loc"] or "<root>"
            logger.error("  - {}: {} ({})", location, detail["message"], detail["type"])

    _exit(exit_code)


@config_app.command(help="Describe available configuration fields")
def explain(
    format: str = typer.Option(  # noqa: A002 - match CLI option name
        "text",
        "--format",
        case_sensitive=False,
        help="Output format for configuration schema",
        callback=_normalize_format,
    ),
) -> None:
    fields = explain_config()

    if format == "json":
        print(json.dumps({"fields": fields}, indent=2, ensure_ascii=False, default=str))
        return

    logger.info("Configuration schema ({} fields):", len(fields))
    for field in fields:
        default_value = field["default"]
        if isinstance(default_value, (dict, list)):
            default_repr = json.dumps(default_value, ensure_ascii=False, default=str)
        elif default_value is None:
            default_repr = "None"
        else:
            default_repr = str(default_value)
        description = field["description"] or "(no description)"
        logger.info(
            "  - {name}: type={type}, required={required}, default={default}, description={description}",
            name=field["name"],
            type=field["type"],
            required="yes" if field["required"] else "no",
            default=default_repr,
            description=description,
        )


def _report_system_status(config: AppConfig, base_path: Path) -> None:
    """Print configuration, queue and item store status."""
    logger.info("=== General Configuration ===")
    logger.info("Data root: {}", resolve_data_root(config, base_path))
    logger.info("Logging level: {}", config.logging_level)

    logger.info("\n=== Links ===")
    if config.links:
        logger.info("Base URL: {}", config.links.base_url)
        logger.info("Include payload: {}", config.links.include_payload)
        logger.info("Previous secrets: {}", len(config.links.previous_secrets))
    else:
        logger.info("Not configured")

    logger.info("\n=== Queue ===")
    queue = _queue_store(config, base_path)
    logger.info("Directory: {}", queue.directory)
    logger.info("Pending captures: {}", len(queue))

    logger.info("\n=== Items ===")
    store = _item_store(config, base_path)
    logger.info("Directory: {}", store.directory)
    counts: dict[str, int] = {}
    for item in store.all():
        counts[item.status.value] = counts.get(item.status.value, 0) + 1
    if counts:
        for name, count in sorted(counts.items()):
            logger.info("  - {}: {}", name, count)
    else:
        logger.info("No processed items")

    logger.info("\n=== Enrichment ===")
    enrichment = config.enrichment
    if enrichment is None:
        logger.info("Not configured")
        return
    for name in ("web_metadata", "duckduckgo", "foursquare"):
        service = getattr(enrichment, name)
        logger.info("{}: {}", name, "enabled" if service is not None and service.enabled else "disabled")


def main(argv: list[str] | None = None) -> int:
    """Entry point compatible with setuptools console scripts."""

    try:
        result = app(args=argv, standalone_mode=False)
    except typer.Exit as exc:  # pragma: no cover - Typer translates exit codes
        return exc.exit_code
    if isinstance(result, int):
        return result
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
