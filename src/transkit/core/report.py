"""Batch report generation in different formats."""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Protocol

from pydantic import BaseModel, Field

from transkit.core.scheduler import UnitFailure
from transkit.core.types import TranslationResult
from transkit.utils.logging import get_logger

logger = get_logger(__name__)

REPORT_BASENAME = "translation-report"


class ReportFormat(str, Enum):
    """Supported report formats."""

    JSON = "json"
    MARKDOWN = "markdown"
    TEXT = "text"


REPORT_EXTENSIONS = {
    ReportFormat.JSON: ".json",
    ReportFormat.MARKDOWN: ".md",
    ReportFormat.TEXT: ".txt",
}


class FailureDetail(BaseModel):
    """A failed file as listed in the report."""

    source_path: Path
    message: str
    suggestion: str
    code: int | None = None


class BatchReport(BaseModel):
    """Aggregated statistics of a batch."""

    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_duration_ms: float = Field(ge=0.0)
    total_files: int = Field(ge=0)
    total_input_tokens: int = Field(ge=0)
    total_estimated_output_tokens: int = Field(ge=0)
    total_cost: float = Field(ge=0.0)
    average_speed: float = Field(ge=0.0, description="Input tokens per second")
    results: List[TranslationResult] = Field(default_factory=list)
    failures: List[FailureDetail] = Field(default_factory=list)


def tokens_per_second(tokens: int, duration_ms: float) -> float:
    if duration_ms <= 0:
        return 0.0
    return tokens / (duration_ms / 1000)


def format_duration(duration_ms: float) -> str:
    """Format a duration as ``1h2m3s``, ``2m3s`` or ``3s``."""
    seconds = int(duration_ms // 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


def generate_report(
    results: Iterable[TranslationResult],
    total_duration_ms: float,
    failures: Iterable[UnitFailure] = (),
) -> BatchReport:
    """Aggregate per-file results into a batch report.

    Args:
        results: Successful translations
        total_duration_ms: Wall-clock duration of the whole batch
        failures: Files that failed for good

    Returns:
        The batch report
    """
    results = list(results)
    total_tokens = sum(r.token_usage.input_tokens for r in results)
    return BatchReport(
        total_duration_ms=total_duration_ms,
        total_files=len(results),
        total_input_tokens=total_tokens,
        total_estimated_output_tokens=sum(r.token_usage.estimated_output_tokens for r in results),
        total_cost=sum(r.token_usage.estimated_cost for r in results),
        average_speed=tokens_per_second(total_tokens, total_duration_ms),
        results=results,
        failures=[
            FailureDetail(
                source_path=f.unit.source_path,
                message=f.error.message,
                suggestion=f.error.suggestion,
                code=f.error.code,
            )
            for f in failures
        ],
    )


class ReportRenderer(Protocol):
    """Protocol for report renderers."""

    def render(self, report: BatchReport) -> str:
        """Render the report as text.

        Args:
            report: The report to render
        """
        ...


class JSONReportRenderer:
    """Renderer for JSON reports."""

    def render(self, report: BatchReport) -> str:
        return json.dumps(report.model_dump(mode="json"), indent=2, ensure_ascii=False)


class MarkdownReportRenderer:
    """Renderer for Markdown reports."""

    def render(self, report: BatchReport) -> str:
        md_lines = [
            "# Translation Report",
            "",
            "## Summary",
            f"- Completed: {report.generated_at.isoformat()}",
            f"- Total Time: {format_duration(report.total_duration_ms)}",
            f"- Total Files: {report.total_files}",
            f"- Total Tokens: {report.total_input_tokens:,}",
            f"- Average Speed: {round(report.average_speed)} tokens/s",
            f"- Total Cost: ${report.total_cost:.6f}",
            "",
            "## Files",
        ]

        for result in report.results:
            speed = tokens_per_second(result.token_usage.input_tokens, result.duration_ms)
            md_lines.extend(
                [
                    "",
                    f"### {result.source_path}",
                    f"- Target File: {result.target_path}",
                    f"- Time: {format_duration(result.duration_ms)}",
                    f"- Speed: {round(speed)} tokens/s",
                    f"- Input Tokens: {result.token_usage.input_tokens:,}",
                    f"- Output Tokens: {result.token_usage.estimated_output_tokens:,}",
                    f"- Cost: ${result.token_usage.estimated_cost:.6f}",
                ]
            )

        if report.failures:
            md_lines.extend(["", "## Failures"])
            for failure in report.failures:
                md_lines.append(
                    f"- {failure.source_path}: {failure.message} (suggestion: {failure.suggestion})"
                )

        return "\n".join(md_lines)


class TextReportRenderer:
    """Renderer for plain text reports."""

    def render(self, report: BatchReport) -> str:
        lines = [
            "Translation Report",
            "==================",
            f"Completed:     {report.generated_at.isoformat()}",
            f"Total time:    {format_duration(report.total_duration_ms)}",
            f"Total files:   {report.total_files}",
            f"Total tokens:  {report.total_input_tokens:,}",
            f"Average speed: {round(report.average_speed)} tokens/s",
            f"Total cost:    ${report.total_cost:.6f}",
            "",
        ]
        for result in report.results:
            lines.append(
                f"{result.source_path} -> {result.target_path} | "
                f"{result.token_usage.input_tokens:,} tokens | "
                f"{format_duration(result.duration_ms)} | "
                f"${result.token_usage.estimated_cost:.6f}"
            )
        for failure in report.failures:
            lines.append(f"FAILED {failure.source_path}: {failure.message} ({failure.suggestion})")
        return "\n".join(lines)


def create_renderer(format: ReportFormat) -> ReportRenderer:
    """Create a report renderer for the specified format.

    Args:
        format: The desired report format

    Returns:
        An appropriate renderer

    Raises:
        ValueError: If the format is not supported
    """
    renderers = {
        ReportFormat.JSON: JSONReportRenderer(),
        ReportFormat.MARKDOWN: MarkdownReportRenderer(),
        ReportFormat.TEXT: TextReportRenderer(),
    }

    renderer = renderers.get(ReportFormat(format))
    if not renderer:
        raise ValueError(f"Unsupported report format: {format}")

    return renderer


def render_report(report: BatchReport, format: ReportFormat) -> str:
    return create_renderer(format).render(report)


def write_report(report: BatchReport, directory: Path, format: ReportFormat) -> Path:
    """Write the rendered report into ``directory``.

    Returns:
        Path of the written report
    """
    format = ReportFormat(format)
    path = directory / f"{REPORT_BASENAME}{REPORT_EXTENSIONS[format]}"
    directory.mkdir(parents=True, exist_ok=True)
    path.write_text(render_report(report, format), encoding="utf-8")
    logger.info(f"Report written to {path}")
    return path
