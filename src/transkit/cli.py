"""Command-line interface for Transkit."""

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from transkit.core.config import TranslatorConfig, load_config
from transkit.core.cost import format_cost, get_cost_level
from transkit.core.errors import (
    ConfigurationError,
    TranslatorError,
    UnsupportedLanguageError,
    UnsupportedLanguagePairError,
)
from transkit.core.progress import CurrentCostColumn, RichProgressReporter, StatusColumn
from transkit.core.report import ReportFormat, format_duration
from transkit.core.translator import BatchOutcome, Translator
from transkit.core.types import TokenUsage, WorkUnit
from transkit.utils.language import EXAMPLE_PAIRS, LANGUAGE_NAMES, language_name, parse_language_pair
from transkit.utils.logging import configure_logging, get_logger

app = typer.Typer(
    name="transkit",
    help="A CLI tool for translating files and directories using LLMs",
    add_completion=False,
)
console = Console()
logger = get_logger()

# Files listed before the rest is summarized
MAX_LISTED_FILES = 5


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        from transkit import __version__

        console.print(f"Transkit version: {__version__}")
        raise typer.Exit(0)


def list_languages_callback(value: bool) -> None:
    """Print the supported languages and exit."""
    if value:
        languages()
        raise typer.Exit(0)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version information and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    list_languages: Optional[bool] = typer.Option(
        None,
        "--list-languages",
        help="List supported languages and exit.",
        callback=list_languages_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Set the logging level.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output logs in JSON format.",
    ),
) -> None:
    """Transkit - translate files and directories using LLMs."""
    configure_logging(level=log_level, json=json_logs)


@app.command()
def languages() -> None:
    """List supported languages and example language pairs."""
    table = Table(title="Supported Languages")
    table.add_column("Code", style="yellow")
    table.add_column("Language", style="green")
    for code, name in LANGUAGE_NAMES.items():
        table.add_row(code, name)
    console.print(table)

    console.print("\n[bold]Example pairs:[/bold]")
    for pair, description in EXAMPLE_PAIRS:
        console.print(f"  [yellow]{pair:<8}[/yellow] | {description}")


def display_task_info(
    input_path: Path,
    output_path: Path,
    units: List[WorkUnit],
    source_lang: Optional[str],
    target_lang: str,
) -> None:
    """Show what is about to be translated."""
    console.print("\n[bold]Task[/bold]")
    console.print(f"Input:  [yellow]{input_path}[/yellow]")
    console.print(f"Output: [yellow]{output_path}[/yellow]")
    if source_lang:
        console.print(
            f"Direction: [cyan]{language_name(source_lang)}[/cyan] -> "
            f"[green]{language_name(target_lang)}[/green]"
        )
    else:
        console.print("Source language: [cyan]auto-detect[/cyan]")
        console.print(f"Target language: [green]{language_name(target_lang)}[/green]")
    console.print(f"Files: [green]{len(units)}[/green]")

    root = input_path if input_path.is_dir() else input_path.parent
    for index, unit in enumerate(units[:MAX_LISTED_FILES], 1):
        console.print(f"  [dim]{index}.[/dim] [yellow]{unit.source_path.relative_to(root)}[/yellow]")
    if len(units) > MAX_LISTED_FILES:
        console.print(f"  [dim]...[/dim] {len(units)} files in total")


def display_settings(config: TranslatorConfig) -> None:
    """Show the effective settings."""
    table = Table(title="Settings", show_header=False)
    table.add_column("Setting", style="bold blue")
    table.add_column("Value")

    bilingual = config.bilingual
    rows = [
        ("Model", config.model_name),
        ("Concurrency", str(config.max_concurrent_translations)),
        ("Proper nouns", "keep" if config.skip_proper_nouns else "translate"),
        ("Code blocks", "keep" if config.skip_code_blocks else "translate"),
        ("Keep original", "yes" if config.keep_original_content else "no"),
        ("Auto rename", "yes" if config.auto_rename else "no"),
        ("Empty files", "skip" if config.ignore_empty_files else "translate"),
        ("Report", config.report_format if config.generate_report else "no"),
        (
            "Recursive",
            ("unlimited" if config.max_recursive_depth == 0 else f"max depth {config.max_recursive_depth}")
            if config.recursive
            else "no",
        ),
        (
            "Bilingual",
            f"{bilingual.layout} | "
            f"{'source first' if bilingual.show_source_first else 'translation first'} | "
            f"{'aligned' if bilingual.align_paragraphs else 'not aligned'}"
            if bilingual.enabled
            else "no",
        ),
    ]
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)


def display_cost_estimate(usage: TokenUsage) -> None:
    """Display the cost estimate in a rich format."""
    table = Table(title="Cost Estimate", show_header=False)
    table.add_column("Metric", style="bold blue")
    table.add_column("Value")

    table.add_row("Input Tokens", f"{usage.input_tokens:,}")
    table.add_row("Estimated Output Tokens", f"{usage.estimated_output_tokens:,}")
    table.add_row("Estimated Cost", format_cost(usage.estimated_cost))
    table.add_row("Cost Level", get_cost_level(usage.estimated_cost).value.replace("_", " ").title())

    console.print(table)


def display_outcome(outcome: BatchOutcome) -> None:
    """Show per-file failures and the final statistics."""
    for failure in outcome.failures:
        console.print(f"[red]Failed:[/red] {failure.unit.source_path}")
        console.print(f"  [red]Error:[/red] {failure.error.message}")
        console.print(f"  [yellow]Suggestion:[/yellow] {failure.error.suggestion}")

    report = outcome.report
    table = Table(title="Translation Statistics", show_header=False)
    table.add_column("Metric", style="bold blue")
    table.add_column("Value")
    table.add_row("Files Translated", str(report.total_files))
    table.add_row("Files Failed", str(len(outcome.failures)))
    table.add_row("Total Tokens", f"{report.total_input_tokens:,}")
    table.add_row("Total Cost", f"${report.total_cost:.6f}")
    table.add_row("Time Taken", format_duration(report.total_duration_ms))
    console.print("\n", table)

    if outcome.report_path:
        console.print(f"\nReport written to [cyan]{outcome.report_path}[/cyan]")


def print_error(error: TranslatorError) -> None:
    console.print(f"\n[red]Error:[/red] {error.message}")
    console.print(f"[yellow]Suggestion:[/yellow] {error.suggestion}")
    if error.code is not None:
        console.print(f"[dim]Error code: {error.code}[/dim]")


@app.command()
def translate(
    input_path: Path = typer.Argument(
        ...,
        help="The file or directory to translate.",
        exists=True,
        resolve_path=True,
    ),
    output_path: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="The output directory.",
        resolve_path=True,
    ),
    language_pair: Optional[str] = typer.Option(
        None,
        "--languages",
        "-l",
        help="Language pair as source-target, e.g. 'zh-en' or 'en-ja'.",
    ),
    target_lang: Optional[str] = typer.Option(
        None,
        "--to",
        "-t",
        help="Target language when auto-detecting the source. Defaults to 'zh'.",
    ),
    auto_detect: Optional[bool] = typer.Option(
        None, "--auto-detect", help="Detect the source language of every file."
    ),
    env_file: Optional[Path] = typer.Option(
        None, "--env-file", help="Read settings from this dotenv file instead of .env."
    ),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help="Model name passed to LiteLLM, e.g. 'gpt-4o-mini'."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-n", help="Number of files translated at once.", min=1
    ),
    skip_proper_nouns: Optional[bool] = typer.Option(
        None, "--skip-proper-nouns", "-s", help="Keep proper nouns unchanged."
    ),
    skip_code_blocks: Optional[bool] = typer.Option(
        None, "--skip-code-blocks", "-c", help="Keep code blocks unchanged."
    ),
    input_price: Optional[float] = typer.Option(
        None, "--input-price", help="USD per million input tokens."
    ),
    output_price: Optional[float] = typer.Option(
        None, "--output-price", help="USD per million output tokens."
    ),
    keep_original: Optional[bool] = typer.Option(
        None, "--keep-original", help="Keep the original text above the translation."
    ),
    auto_rename: Optional[bool] = typer.Option(
        None, "--auto-rename/--no-auto-rename", help="Add the target language to output file names."
    ),
    ignore_empty: Optional[bool] = typer.Option(
        None, "--ignore-empty/--no-ignore-empty", help="Skip empty files."
    ),
    open_output: Optional[bool] = typer.Option(
        None, "--open-output", help="Open the output directory when done."
    ),
    recursive: Optional[bool] = typer.Option(
        None, "--recursive", "-r", help="Translate subdirectories too."
    ),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", help="Maximum recursion depth (0 for unlimited).", min=0
    ),
    max_file_size: Optional[float] = typer.Option(
        None, "--max-file-size", help="Maximum file size in MB."
    ),
    temperature: Optional[float] = typer.Option(
        None, "--temperature", help="Sampling temperature."
    ),
    retry_count: Optional[int] = typer.Option(
        None, "--retry-count", help="Attempts per remote call.", min=1
    ),
    retry_delay: Optional[float] = typer.Option(
        None, "--retry-delay", help="Initial retry delay in seconds."
    ),
    max_retry_delay: Optional[float] = typer.Option(
        None, "--max-retry-delay", help="Maximum retry delay in seconds."
    ),
    progress_bar: Optional[bool] = typer.Option(
        None, "--progress/--no-progress", help="Show progress bars."
    ),
    report: Optional[ReportFormat] = typer.Option(
        None, "--report", help="Write a report in this format (json, markdown or text)."
    ),
    bilingual: Optional[bool] = typer.Option(
        None, "--bilingual", help="Write source and translation side by side."
    ),
    bilingual_layout: Optional[str] = typer.Option(
        None, "--bilingual-layout", help="Bilingual layout: 'parallel' or 'sequential'."
    ),
    bilingual_separator: Optional[str] = typer.Option(
        None, "--bilingual-separator", help="Separator for the sequential layout."
    ),
    source_first: Optional[bool] = typer.Option(
        None, "--source-first/--translation-first", help="Which text comes first in bilingual output."
    ),
    align_paragraphs: Optional[bool] = typer.Option(
        None, "--align-paragraphs/--no-align-paragraphs", help="Collapse blank line pairs in parallel layout."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Estimate cost and tokens without translating."
    ),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Do not ask for confirmation."
    ),
) -> None:
    """Translate a file or a directory of files."""
    try:
        # Options left unset (None) keep the value from .env or the environment;
        # flags without a negative form can only switch a setting on.
        overrides: Dict[str, Any] = {
            "model_name": model,
            "max_concurrent_translations": concurrency,
            "skip_proper_nouns": skip_proper_nouns or None,
            "skip_code_blocks": skip_code_blocks or None,
            "input_price_per_million": input_price,
            "output_price_per_million": output_price,
            "keep_original_content": keep_original or None,
            "auto_rename": auto_rename,
            "ignore_empty_files": ignore_empty,
            "open_output_dir": open_output or None,
            "recursive": recursive or None,
            "max_recursive_depth": max_depth,
            "max_file_size_mb": max_file_size,
            "temperature": temperature,
            "retry_count": retry_count,
            "retry_delay": retry_delay,
            "max_retry_delay": max_retry_delay,
            "show_progress_bar": progress_bar,
            "auto_detect_language": auto_detect or None,
        }
        if report is not None:
            overrides["generate_report"] = True
            overrides["report_format"] = report.value
        bilingual_overrides = {
            "enabled": bilingual or None,
            "layout": bilingual_layout,
            "separator": bilingual_separator,
            "show_source_first": source_first,
            "align_paragraphs": align_paragraphs,
        }
        bilingual_overrides = {k: v for k, v in bilingual_overrides.items() if v is not None}
        if bilingual_overrides:
            overrides["bilingual"] = bilingual_overrides

        config = load_config(env_file, **overrides)

        if not language_pair and not config.auto_detect_language:
            raise UnsupportedLanguagePairError(
                "No language pair given",
                "Use -l or --languages to specify a language pair, or use --auto-detect to "
                "enable automatic detection. Use --list-languages to view the supported languages.",
            )

        source_lang: Optional[str] = None
        target = (target_lang or "zh").lower()
        if language_pair:
            pair = parse_language_pair(language_pair)
            if pair is None:
                raise UnsupportedLanguagePairError(
                    "Invalid language pair format",
                    "Use the correct format, for example: zh-en, en-ja. "
                    "Use --list-languages to view the supported languages.",
                )
            source_lang, target = pair
        if config.auto_detect_language:
            source_lang = None
        if target not in LANGUAGE_NAMES:
            raise UnsupportedLanguageError(f"Unsupported target language: {target}")

        translator = Translator(config)

        units = translator.enumerate_units(input_path, output_path, target, source_lang)
        display_task_info(input_path, output_path, units, source_lang, target)
        display_settings(config)

        with console.status("Estimating cost..."):
            usage = translator.estimate_usage(units)
        display_cost_estimate(usage)

        if dry_run:
            return

        if not yes and not typer.confirm("\nDo you want to proceed?"):
            console.print("\nTranslation cancelled.")
            raise typer.Exit(0)

        outcome = asyncio.run(run_with_progress(translator, units, output_path, config))
        display_outcome(outcome)

        if config.open_output_dir:
            typer.launch(str(output_path))

        if not outcome.results:
            sys.exit(1)

    except typer.Exit:
        raise
    except ConfigurationError as e:
        print_error(e)
        sys.exit(2)
    except TranslatorError as e:
        print_error(e)
        sys.exit(1)
    except Exception as e:
        logger.exception("Translation failed")
        console.print(f"[red]Unexpected error: {str(e)}[/red]")
        sys.exit(1)


async def run_with_progress(
    translator: Translator,
    units: List[WorkUnit],
    output_path: Path,
    config: TranslatorConfig,
) -> BatchOutcome:
    """Run the batch, with progress bars when enabled."""
    if not config.show_progress_bar:
        return await translator.run_batch(units, output_dir=output_path)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        StatusColumn(),
        CurrentCostColumn(),
        console=console,
    ) as progress:
        reporter = RichProgressReporter(progress, total_units=len(units))
        return await translator.run_batch(units, output_dir=output_path, reporter=reporter)


if __name__ == "__main__":
    app()
