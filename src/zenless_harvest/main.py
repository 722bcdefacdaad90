# ABOUTME: Main CLI application entry point using asyncclick for native async support
# ABOUTME: Commands for character, weapon and bangboo datasets, icon downloads and logging status

import asyncio
import signal
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import asyncclick as click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from zenless_harvest.clients.downloader import AssetDownloader
from zenless_harvest.clients.wiki import HoyoWikiClient
from zenless_harvest.config import HarvestConfig, load_config
from zenless_harvest.core.models import EntityKind, RunResult
from zenless_harvest.core.orchestrator import BatchOrchestrator
from zenless_harvest.core.pipeline import (
    AssetPipeline,
    BangbooPipeline,
    CharacterPipeline,
    ItemPipeline,
    WeaponPipeline,
)
from zenless_harvest.core.report import check_success_rate, merge_retry_result
from zenless_harvest.errors import FileSystemError, SetupError, SuccessRateError
from zenless_harvest.persistence.writer import write_assets, write_failures, write_records
from zenless_harvest.sources.enumerator import parse_source_file
from zenless_harvest.utils.logging import (
    LoggingMode,
    WindowProgressPrinter,
    configure_logging,
    get_logging_status,
    with_pipeline_context,
)
from zenless_harvest.utils.rich_tables import (
    create_assets_table,
    create_bangboo_table,
    create_failures_table,
    create_logging_status_table,
    create_records_table,
    create_run_summary_table,
    create_weapons_table,
    print_rich_table,
)
from zenless_harvest.validation.security import SecurityValidator

console = Console()


@contextmanager
def _stop_on_interrupt(orchestrator: BatchOrchestrator):
    """Route SIGINT/SIGTERM to a graceful stop for the duration of a run."""
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.request_stop)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform/loop; Ctrl-C then aborts immediately
            pass
    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def _load_config(**overrides) -> HarvestConfig:
    try:
        return load_config(**overrides)
    except SetupError as e:
        raise click.ClickException(str(e)) from e


async def _execute(orchestrator: BatchOrchestrator, entries, retry_failed: bool) -> RunResult:
    with _stop_on_interrupt(orchestrator):
        result = await orchestrator.execute(entries)
        if retry_failed and result.failures and not orchestrator.stop_requested:
            retried = await orchestrator.retry_failed(result)
            result = merge_retry_result(result, retried)
    return result


def _finish(result: RunResult, config: HarvestConfig, json_output: bool, label: str) -> None:
    """Print the outcome and enforce the minimum success rate."""
    if json_output:
        click.echo(result.summary.model_dump_json())
    else:
        print_rich_table(console, create_run_summary_table(result.summary, label=label))
        if result.failures:
            print_rich_table(console, create_failures_table(result.failures))

    if config.failures_path and result.failures:
        try:
            write_failures(config.failures_path, result.failures, result.summary)
        except FileSystemError as e:
            raise click.ClickException(str(e)) from e

    try:
        check_success_rate(result, config.min_success_rate)
    except SuccessRateError as e:
        if not json_output:
            console.print(f"[red]❌ {e}[/red]")
        raise click.ClickException(str(e)) from e


def _record_options(func):
    """Options shared by every record-generating command."""
    options = [
        click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path)),
        click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Output JSON file"),
        click.option("--failures", type=click.Path(dir_okay=False, path_type=Path), help="Write failed entries here"),
        click.option("--concurrency", type=int, help="Entries processed per window"),
        click.option("--retries", type=int, help="Retries per entry after the first attempt"),
        click.option("--min-success-rate", type=float, help="Fail the run below this success ratio"),
        click.option("--retry-failed/--no-retry-failed", default=True, help="Re-run failed entries once at the end"),
        click.pass_context,
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command()
@_record_options
async def characters(
    ctx,
    source: Path,
    output: Path | None,
    failures: Path | None,
    concurrency: int | None,
    retries: int | None,
    min_success_rate: float | None,
    retry_failed: bool,
):
    """
    🎭 Generate the character dataset from a source list.

    Fetches every character in Japanese and English, extracts and merges the
    records, validates them and writes the valid ones as JSON.
    """
    config = _load_config(
        output_path=output,
        failures_path=failures,
        concurrency_limit=concurrency,
        retry_attempts=retries,
        min_success_rate=min_success_rate,
    )
    await _records_async(
        source,
        config,
        retry_failed,
        ctx.obj["json_output"],
        command=_CHARACTERS,
        output_path=config.output_path,
    )


@click.command()
@_record_options
async def weapons(
    ctx,
    source: Path,
    output: Path | None,
    failures: Path | None,
    concurrency: int | None,
    retries: int | None,
    min_success_rate: float | None,
    retry_failed: bool,
):
    """
    🗡️ Generate the W-Engine dataset from the JSON weapon list.

    Rarity B weapons in the list are skipped. Each weapon page is fetched in
    Japanese and English and written with its stats at levels 0 to 60.
    """
    config = _load_config(
        weapon_output_path=output,
        failures_path=failures,
        concurrency_limit=concurrency,
        retry_attempts=retries,
        min_success_rate=min_success_rate,
    )
    await _records_async(
        source,
        config,
        retry_failed,
        ctx.obj["json_output"],
        command=_WEAPONS,
        output_path=config.weapon_output_path,
    )


@click.command()
@_record_options
async def bangboo(
    ctx,
    source: Path,
    output: Path | None,
    failures: Path | None,
    concurrency: int | None,
    retries: int | None,
    min_success_rate: float | None,
    retry_failed: bool,
):
    """
    🐰 Generate the bangboo dataset from the bangboo section of a source list.
    """
    config = _load_config(
        bangboo_output_path=output,
        failures_path=failures,
        concurrency_limit=concurrency,
        retry_attempts=retries,
        min_success_rate=min_success_rate,
    )
    await _records_async(
        source,
        config,
        retry_failed,
        ctx.obj["json_output"],
        command=_BANGBOO,
        output_path=config.bangboo_output_path,
    )


@dataclass(frozen=True)
class _RecordCommand:
    name: str
    kind: EntityKind
    emoji: str
    pipeline: Callable[[HarvestConfig, HoyoWikiClient], ItemPipeline]
    table: Callable[[list], Table]


_CHARACTERS = _RecordCommand("characters", EntityKind.CHARACTER, "🎭", CharacterPipeline, create_records_table)
_WEAPONS = _RecordCommand("weapons", EntityKind.WEAPON, "🗡️", WeaponPipeline, create_weapons_table)
_BANGBOO = _RecordCommand("bangboo", EntityKind.BANGBOO, "🐰", BangbooPipeline, create_bangboo_table)


async def _records_async(
    source: Path,
    config: HarvestConfig,
    retry_failed: bool,
    json_output: bool,
    command: _RecordCommand,
    output_path: Path,
):
    with with_pipeline_context(command.name, source=str(source)) as logger:
        try:
            entries = parse_source_file(source, command.kind)
        except SetupError as e:
            raise click.ClickException(str(e)) from e

        if not json_output:
            console.print(
                Panel.fit(
                    f"{command.emoji} [bold cyan]Zenless Harvest[/bold cyan] {command.emoji}\n"
                    f"{len(entries)} {command.name} from {source}",
                    border_style="magenta",
                )
            )

        progress = None if json_output else WindowProgressPrinter(console, command.name)
        async with HoyoWikiClient(config) as client:
            pipeline = command.pipeline(config, client)
            orchestrator = BatchOrchestrator(pipeline, config, progress_callback=progress)
            result = await _execute(orchestrator, entries, retry_failed)

        try:
            write_records(output_path, result.records)
        except FileSystemError as e:
            raise click.ClickException(str(e)) from e
        logger.info("Records written", path=str(output_path), count=len(result.records))

        if not json_output:
            print_rich_table(console, command.table(result.records))
            console.print(f"💾 Wrote [bold green]{len(result.records)}[/bold green] records to {output_path}")

        _finish(result, config, json_output, label=command.name.title())


def _icon_options(func):
    """Options shared by the icon download commands."""
    options = [
        click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path)),
        click.option("--asset-root", type=click.Path(file_okay=False, path_type=Path), help="Directory for icons"),
        click.option("--manifest", type=click.Path(dir_okay=False, path_type=Path), help="Write an icon manifest here"),
        click.option("--failures", type=click.Path(dir_okay=False, path_type=Path), help="Write failed entries here"),
        click.option("--force", is_flag=True, help="Download icons even if they already exist"),
        click.option("--concurrency", type=int, help="Entries processed per window"),
        click.option("--retry-failed/--no-retry-failed", default=True, help="Re-run failed entries once at the end"),
        click.pass_context,
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command()
@_icon_options
async def icons(
    ctx,
    source: Path,
    asset_root: Path | None,
    manifest: Path | None,
    failures: Path | None,
    force: bool,
    concurrency: int | None,
    retry_failed: bool,
):
    """
    🖼️ Download bangboo icons listed in a source document.

    Every icon URL is checked against the host allow-list and every
    destination must stay inside the asset directory.
    """
    config = _load_config(
        asset_root=asset_root,
        failures_path=failures,
        concurrency_limit=concurrency,
        skip_existing=False if force else None,
    )
    await _icons_async(source, config, manifest, retry_failed, ctx.obj["json_output"])


@click.command(name="weapon-icons")
@_icon_options
async def weapon_icons(
    ctx,
    source: Path,
    asset_root: Path | None,
    manifest: Path | None,
    failures: Path | None,
    force: bool,
    concurrency: int | None,
    retry_failed: bool,
):
    """
    🗡️ Download W-Engine icons listed in the JSON weapon list.

    Icon URLs come straight from the list, so no entry page is fetched.
    """
    config = _load_config(
        asset_root=asset_root,
        failures_path=failures,
        concurrency_limit=concurrency,
        skip_existing=False if force else None,
    )
    if asset_root is None:
        config = config.model_copy(update={"asset_root": config.weapon_asset_root})
    await _icons_async(source, config, manifest, retry_failed, ctx.obj["json_output"], kind=EntityKind.WEAPON)


async def _icons_async(
    source: Path,
    config: HarvestConfig,
    manifest: Path | None,
    retry_failed: bool,
    json_output: bool,
    kind: EntityKind = EntityKind.BANGBOO,
):
    with with_pipeline_context("icons", source=str(source), kind=kind.value) as logger:
        try:
            entries = parse_source_file(source, kind)
        except SetupError as e:
            raise click.ClickException(str(e)) from e

        if not json_output:
            console.print(
                Panel.fit(
                    f"🖼️ [bold cyan]Zenless Harvest[/bold cyan]\n{len(entries)} icons into {config.asset_root}",
                    border_style="magenta",
                )
            )

        security = SecurityValidator(config.allowed_hosts, config.max_asset_size_bytes)
        progress = None if json_output else WindowProgressPrinter(console, "icons")
        async with HoyoWikiClient(config) as client:
            downloader = AssetDownloader(security, timeout=config.request_timeout_s, verify=config.validate_downloads)
            try:
                pipeline = AssetPipeline(config, client, downloader, security=security)
                orchestrator = BatchOrchestrator(pipeline, config, progress_callback=progress)
                result = await _execute(orchestrator, entries, retry_failed)
            finally:
                await downloader.close()

        logger.info("Icons processed", downloaded=len(result.assets), bytes=result.summary.total_bytes)
        if manifest:
            try:
                write_assets(manifest, result.assets)
            except FileSystemError as e:
                raise click.ClickException(str(e)) from e

        if not json_output:
            print_rich_table(console, create_assets_table(result.assets))

        _finish(result, config, json_output, label="Icons")


def _initialize_logging(json_output: bool, log_level: str | None = None, log_file: str | None = None) -> None:
    """Initialize logging configuration."""
    mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE
    try:
        config = load_config()
        final_log_level = log_level or config.log_level
        final_log_file = log_file or (str(config.log_file) if config.log_file else None)
    except SetupError:
        # Bad environment configuration is reported by the command itself
        final_log_level = log_level or "INFO"
        final_log_file = log_file

    configure_logging(mode=mode, log_level=final_log_level, log_file=final_log_file)


@click.command(name="logging-status")
def logging_status():
    """
    📊 Show current logging configuration and status.
    """
    status = get_logging_status()
    logging_table = create_logging_status_table(status)
    print_rich_table(console, logging_table)


@click.group(invoke_without_command=True)
@click.option("--json", is_flag=True, help="Output structured JSON logs instead of rich interface")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--log-file", help="Custom log file path")
@click.pass_context
def app(ctx, json: bool, log_level: str | None, log_file: str | None):
    """
    🎭 Zenless Harvest - Zenless Zone Zero wiki data generator

    Harvest character, W-Engine and bangboo records plus their icons from the
    HoYoLAB wiki into a validated dataset.
    """
    # Store global options in context for commands to access
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json

    # Initialize logging once here instead of in each command
    _initialize_logging(json, log_level, log_file)

    # Show help if no command provided
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Add commands to the main group
app.add_command(characters)
app.add_command(weapons)
app.add_command(bangboo)
app.add_command(icons)
app.add_command(weapon_icons)
app.add_command(logging_status)


if __name__ == "__main__":
    app()
