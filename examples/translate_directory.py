"""Example script translating a directory through the library API."""

import asyncio
from pathlib import Path

from rich.console import Console

from transkit.core.config import load_config
from transkit.core.cost import format_cost
from transkit.core.errors import TranslatorError
from transkit.core.translator import Translator

console = Console()


async def translate_directory(input_dir: Path, output_dir: Path) -> None:
    """Translate every supported file in a directory from English to Chinese.

    Args:
        input_dir: Directory with the source files
        output_dir: Directory for the translated files
    """
    config = load_config(recursive=True, report_format="text")
    translator = Translator(config)

    try:
        units = translator.enumerate_units(input_dir, output_dir, "zh", "en")
        usage = translator.estimate_usage(units)
        console.print(f"[bold]{len(units)} files, about {format_cost(usage.estimated_cost)}[/bold]")

        outcome = await translator.run_batch(units, output_dir=output_dir)
    except TranslatorError as e:
        console.print(f"[red]{e.message}[/red] ({e.suggestion})")
        return

    for result in outcome.results:
        console.print(f"[green]{result.source_path}[/green] -> {result.target_path}")
    for failure in outcome.failures:
        console.print(f"[red]{failure.unit.source_path}[/red]: {failure.error.describe()}")

    console.print("\n[bold blue]Report:[/bold blue]")
    console.print(outcome.report_text, markup=False)


async def main() -> None:
    """Main entry point."""
    sample_dir = Path("docs")
    if not sample_dir.exists():
        console.print("[red]Sample directory not found![/red]")
        return

    console.print(f"[bold]Translating {sample_dir}...[/bold]")
    await translate_directory(sample_dir, Path("docs-zh"))


if __name__ == "__main__":
    asyncio.run(main())
