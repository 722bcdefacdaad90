# ABOUTME: Rich table helpers for run summaries, failures, records and logging status
# ABOUTME: Pre-configured tables so CLI commands share one look

from typing import Any

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.table import Table

from zenless_harvest.core.models import (
    AssetRecord,
    BangbooRecord,
    DomainRecord,
    FailureEntry,
    RunSummary,
    WeaponRecord,
)


def create_key_value_table(
    title: str,
    data: dict[str, str],
    title_style: str = "bold cyan",
    key_style: str = "bold blue",
    value_style: str = "green",
    box_style=ROUNDED,
) -> Table:
    """Create a two-column key/value table.

    Args:
        title: Table title with emoji/styling
        data: Dictionary of key-value pairs to display
        title_style: Style for the table title
        key_style: Style for the key column
        value_style: Style for the value column
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style="bold magenta",
        border_style="cyan",
        title_justify="left",
        expand=False,
    )

    table.add_column("Field", style=key_style, no_wrap=False)
    table.add_column("Value", style=value_style, no_wrap=False)

    for key, value in data.items():
        table.add_row(key, str(value))

    return table


def create_multi_column_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
    title_style: str = "bold cyan",
    header_style: str = "bold magenta",
    alternate_row_styles: list[str] | None = None,
    box_style=ROUNDED,
) -> Table:
    """Create a multi-column table with zebra striping.

    Args:
        title: Table title with emoji/styling
        columns: List of (column_name, column_style) tuples
        rows: List of row data
        title_style: Style for the table title
        header_style: Style for column headers
        alternate_row_styles: Alternating row styles for zebra striping
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style=header_style,
        border_style="cyan",
        title_justify="left",
        row_styles=alternate_row_styles or ["", "dim"],
        expand=True,
    )

    for name, style in columns:
        table.add_column(name, style=style)

    for row in rows:
        table.add_row(*row)

    return table


def create_run_summary_table(summary: RunSummary, label: str = "Entries") -> Table:
    """Summary counters of a run, colored by outcome."""
    rate_style = "green" if summary.failed == 0 else ("yellow" if summary.success_rate >= 0.8 else "red")
    data = {
        f"📦 {label}": str(summary.total),
        "✅ Succeeded": str(summary.succeeded),
        "❌ Failed": str(summary.failed),
        "🎯 Success Rate": f"[{rate_style}]{summary.success_rate:.1%}[/{rate_style}]",
        "⏱️ Elapsed": f"{summary.elapsed_ms / 1000:.1f}s",
    }
    if summary.total_bytes:
        data["💾 Downloaded"] = f"{summary.total_bytes / 1024:,.1f} KB"
    if summary.interrupted:
        data["⏸️ Interrupted"] = f"Yes ({summary.not_started} not started)"

    return create_key_value_table(
        title="📊 Run Summary",
        data=data,
        title_style="bold green",
        key_style="cyan",
        value_style="white",
    )


def create_failures_table(failures: list[FailureEntry], max_error_length: int = 120) -> Table:
    """One row per failed entry with its error type and message."""

    def _truncate(text: str) -> str:
        return text[:max_error_length] + "..." if len(text) > max_error_length else text

    rows = [[failure.id, failure.error_type or "-", _truncate(failure.error)] for failure in failures]
    return create_multi_column_table(
        title=f"🚨 Failed Entries ({len(failures)})",
        columns=[("ID", "bold yellow"), ("Type", "magenta"), ("Error", "red")],
        rows=rows,
        title_style="bold red",
    )


def create_records_table(records: list[DomainRecord]) -> Table:
    rows = [
        [
            record.id,
            f"{record.name.ja} / {record.name.en}",
            record.rarity.value,
            record.specialty.value,
            record.stats.value,
            str(record.attr.hp[-1]),
        ]
        for record in sorted(records, key=lambda record: record.id)
    ]
    return create_multi_column_table(
        title=f"🎭 Characters ({len(records)})",
        columns=[
            ("ID", "bold cyan"),
            ("Name", "white"),
            ("Rarity", "yellow"),
            ("Specialty", "green"),
            ("Attribute", "magenta"),
            ("HP@60", "blue"),
        ],
        rows=rows,
    )


def create_weapons_table(records: list[WeaponRecord]) -> Table:
    rows = [
        [
            str(record.id),
            f"{record.name.ja} / {record.name.en}",
            record.rarity.value,
            record.specialty.value if record.specialty else "-",
            record.advanced_attr.value,
            str(record.attr.atk[-1]),
        ]
        for record in sorted(records, key=lambda record: record.id)
    ]
    return create_multi_column_table(
        title=f"🗡️ W-Engines ({len(records)})",
        columns=[
            ("ID", "bold cyan"),
            ("Name", "white"),
            ("Rarity", "yellow"),
            ("Specialty", "green"),
            ("Advanced Stat", "magenta"),
            ("ATK@60", "blue"),
        ],
        rows=rows,
    )


def create_bangboo_table(records: list[BangbooRecord]) -> Table:
    rows = [
        [
            record.id,
            f"{record.name.ja} / {record.name.en}",
            record.rarity.value if record.rarity else "-",
            record.stats.value,
            ", ".join(str(faction) for faction in record.faction) or "-",
            str(record.attr.hp[-1]),
        ]
        for record in sorted(records, key=lambda record: record.id)
    ]
    return create_multi_column_table(
        title=f"🐰 Bangboo ({len(records)})",
        columns=[
            ("ID", "bold cyan"),
            ("Name", "white"),
            ("Rarity", "yellow"),
            ("Attribute", "magenta"),
            ("Factions", "green"),
            ("HP@60", "blue"),
        ],
        rows=rows,
    )


def create_assets_table(assets: list[AssetRecord]) -> Table:
    rows = [
        [asset.id, str(asset.local_path), f"{asset.file_size / 1024:,.1f} KB", "skipped" if asset.skipped else "new"]
        for asset in sorted(assets, key=lambda asset: asset.id)
    ]
    return create_multi_column_table(
        title=f"🖼️ Icons ({len(assets)})",
        columns=[("ID", "bold cyan"), ("Path", "white"), ("Size", "blue"), ("Status", "green")],
        rows=rows,
        box_style=SIMPLE,
    )


def create_logging_status_table(status: dict[str, Any]) -> Table:
    """Create a logging configuration status table.

    Args:
        status: Logging status dictionary

    Returns:
        Styled logging configuration table
    """
    logging_data = {
        "🔧 Mode": status["mode"].title(),
        "📁 Log Directory": status["log_directory"] or "N/A (production mode)",
        "🔇 Suppressed Libraries": ", ".join(status["third_party_suppressed"]),
    }

    if status["log_files"]["main"]:
        logging_data["📝 Main Log"] = status["log_files"]["main"]
    if status["log_files"]["json"]:
        logging_data["📊 JSON Log"] = status["log_files"]["json"]
    if status["log_files"]["errors"]:
        logging_data["🚨 Error Log"] = status["log_files"]["errors"]

    return create_key_value_table(
        title="🔍 Logging Configuration",
        data=logging_data,
        title_style="bold green",
        key_style="blue",
        value_style="white",
    )


def print_rich_table(console: Console, table: Table) -> None:
    """Print a rich table with consistent spacing and style.

    Args:
        console: Rich console instance
        table: Configured table to print
    """
    console.print()
    console.print(table)
    console.print()
