"""Command Line Interface for NeoLink Insight.

Ask questions about a patient export, print outcome statistics and
admission trends, and inspect the active configuration.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from neolink_insight.adapters.loaders import load_patient_records
from neolink_insight.domain.enums import RelativeDateRange
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.ports import RecordLoadError
from neolink_insight.domain.services.analytics import GROUP_BY_FIELDS, get_outcome_stats, get_trends_data
from neolink_insight.infrastructure.settings import APP_VERSION, settings

app = typer.Typer(
    name="neolink",
    help="NeoLink Insight: natural-language queries over patient records",
    add_completion=False
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    if verbose:
        console.print("[dim]Verbose logging enabled[/dim]")


def _load(records_file: Path) -> list[PatientRecord]:
    try:
        with console.status("[bold green]Loading patient records..."):
            records, rejected = load_patient_records(str(records_file))
    except RecordLoadError as e:
        console.print(f"[red]✗[/red] Failed to load records: {str(e)}")
        raise typer.Exit(code=1)

    console.print(f"[dim]Loaded {len(records):,} records from {records_file}[/dim]")
    if rejected:
        console.print(f"[yellow]⚠[/yellow] {rejected:,} records were rejected during validation")
    return records


@app.command()
def query(
    records_file: Path = typer.Argument(..., help="Patient export (JSON, JSON lines or CSV)", exists=True),
    question: str = typer.Argument(..., help="Question, e.g. \"ELBW mortality rate last month\""),
    heuristic: bool = typer.Option(False, "--heuristic", help="Use offline keyword matching only"),
    show_spec: bool = typer.Option(False, "--show-spec", help="Print the derived query specification"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Override the number of returned records"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Answer a free-text question over a patient export.

    Examples:
        neolink query patients.json "show VLBW babies in NICU"
        neolink query patients.csv "mortality rate last 30 days" --show-spec
    """
    from neolink_insight.main import create_intent_analyzer, process_query

    _configure_logging(verbose)
    records = _load(records_file)

    analyzer = create_intent_analyzer(force_heuristic=heuristic)
    with console.status("[bold green]Analyzing question..."):
        spec, result = process_query(question, records, analyzer=analyzer, limit=limit)

    if show_spec:
        console.print_json(spec.model_dump_json(by_alias=True, exclude_none=True))

    console.print(Panel(result.summary_text, title=f"[bold]{spec.aggregation_type.value.title()}[/bold]"))

    summary_table = Table(show_header=False, box=None, padding=(0, 2))
    summary_table.add_row("Analyzer:", analyzer.name)
    summary_table.add_row("Matched:", f"[bold]{result.matched_count:,}[/bold]")
    summary_table.add_row("Returned:", f"{len(result.returned_records):,}")
    console.print(summary_table)


@app.command()
def stats(
    records_file: Path = typer.Argument(..., help="Patient export (JSON, JSON lines or CSV)", exists=True),
    group_by: str = typer.Option("unit", "--group-by", "-g", help=f"One of: {', '.join(GROUP_BY_FIELDS)}"),
) -> None:
    """Print outcome statistics grouped by unit, diagnosis, birth weight band or gender."""
    if group_by not in GROUP_BY_FIELDS:
        console.print(f"[red]✗[/red] --group-by must be one of: {', '.join(GROUP_BY_FIELDS)}")
        raise typer.Exit(code=2)

    _configure_logging(False)
    records = _load(records_file)
    console.print(get_outcome_stats(records, group_by))


@app.command()
def trends(
    records_file: Path = typer.Argument(..., help="Patient export (JSON, JSON lines or CSV)", exists=True),
    period: RelativeDateRange = typer.Option(RelativeDateRange.LAST_30_DAYS, "--period", "-p", help="Time window"),
) -> None:
    """Print admissions, discharges, deaths and referrals for a time window."""
    _configure_logging(False)
    records = _load(records_file)
    console.print(get_trends_data(records, period))


@app.command()
def info() -> None:
    """Display configuration information."""
    llm_config = settings.llm_config
    console.print("[bold blue]NeoLink Insight Configuration[/bold blue]\n")

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", f"{settings.app_name} v{settings.app_version}")
    info_table.add_row("Intent Analyzer:", "Gemini" if llm_config.uses_gemini else "Heuristic")
    info_table.add_row("Model:", llm_config.model)
    info_table.add_row("API Key:", "Configured" if llm_config.api_key else "Not configured")
    info_table.add_row("Timeout:", f"{llm_config.timeout_seconds:g} s")
    info_table.add_row("Fallback:", settings.intent_fallback)
    info_table.add_row("Default Limit:", str(settings.default_limit))
    info_table.add_row("Query Cache TTL:", f"{settings.query_cache_ttl:g} s")
    info_table.add_row("Records Path:", settings.records_path or "Not configured")

    console.print(info_table)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"NeoLink Insight v{APP_VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version information"
    )
) -> None:
    """NeoLink Insight: natural-language queries over patient records."""


if __name__ == "__main__":
    app()
