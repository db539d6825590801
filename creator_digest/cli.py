"""
Command-line interface for the Creator Digest pipeline.

Uses Typer to provide a CLI with options for the main configuration
settings. Supports loading .env files for environment configuration.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console

from .config import load_config, validate_config
from .errors import ContractViolation
from .input.json_parser import parse_timestamp
from .runner import run_pipeline

try:
    from dotenv import load_dotenv
except Exception:  # noqa: BLE001
    load_dotenv = None

app = typer.Typer(add_completion=False)
console = Console()


@app.callback()
def main() -> None:
    """Cluster duplicate creator posts and select digest content."""


@app.command()
def run(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True),
    output: Path = typer.Option(Path("out"), "--output", "-o"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    bullets: Path | None = typer.Option(
        None,
        "--bullets",
        "-b",
        exists=True,
        readable=True,
        help="JSON object mapping section name to generated headline text.",
    ),
    now: str | None = typer.Option(
        None, "--now", help="Reference time (ISO 8601) for the recency window."
    ),
    run_folder_mode: str | None = typer.Option(
        None,
        "--run-folder-mode",
        help="Output subfolder mode: input, timestamp, or input_timestamp.",
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_format: str | None = typer.Option(
        None, "--log-format", help="Log file format: jsonl or plain."
    ),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
    relevance_threshold: float | None = typer.Option(
        None, "--relevance-threshold", help="Minimum relevance score (0-100)."
    ),
    recency_hours: float | None = typer.Option(
        None, "--recency-hours", help="Maximum record age in hours."
    ),
    word_budget: int | None = typer.Option(
        None, "--word-budget", help="Total word budget for headline bullets."
    ),
):
    """Run the digest pipeline.

    Clusters duplicate records, selects digest items per section and
    trims generated bullets to the word budget.

    Args:
        input: Path to the JSON record export
        output: Directory for output files
        config: Optional path to YAML config file
        bullets: Optional generated bullets per section
        now: Reference time for the recency window
        run_folder_mode: Output folder naming strategy
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log file format (jsonl, plain)
        log_file: Enable/disable file logging
        relevance_threshold: Override the eligibility relevance threshold
        recency_hours: Override the eligibility recency window
        word_budget: Override the bullet word budget
    """
    if load_dotenv is not None:
        load_dotenv()

    try:
        cfg = load_config(str(config) if config else None)
    except ContractViolation as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    if run_folder_mode:
        cfg.output.run_folder_mode = run_folder_mode
    if log_level:
        cfg.logging.level = log_level
    if log_format:
        cfg.logging.format = log_format
    if log_file is not None:
        cfg.logging.file = log_file
    if relevance_threshold is not None:
        cfg.eligibility.relevance_threshold = relevance_threshold
    if recency_hours is not None:
        cfg.eligibility.recency_hours = recency_hours
    if word_budget is not None:
        cfg.assembly.word_budget = word_budget

    try:
        validate_config(cfg)
        reference_time = _parse_now(now)
    except ContractViolation as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    output_path = run_pipeline(
        input, output, cfg, bullets_path=bullets, now=reference_time, console=console
    )
    console.print(f"Digest generated: {output_path}")


def _parse_now(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise ContractViolation(f"--now must be an ISO 8601 timestamp, got {value!r}") from exc


if __name__ == "__main__":
    app()
