"""Batch translation entry point."""

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from transkit.core.config import TranslatorConfig
from transkit.core.cost import estimate_tokens, estimate_usage
from transkit.core.errors import InputNotFoundError, classify_error
from transkit.core.files import enumerate_units, is_supported_file
from transkit.core.metadata import MetadataFormatter
from transkit.core.processor import UnitProcessor, read_text
from transkit.core.progress import NullProgressReporter, ProgressReporter
from transkit.core.report import BatchReport, ReportFormat, generate_report, render_report, write_report
from transkit.core.retry import RetryPolicy
from transkit.core.scheduler import Scheduler, UnitFailure
from transkit.core.translation import create_client
from transkit.core.translation.detection import LanguageDetectionCache, LanguageDetector
from transkit.core.translation.interface import ModelInterface
from transkit.core.types import TokenUsage, TranslationResult, WorkUnit
from transkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BatchOutcome:
    """Everything a batch produced."""

    results: List[TranslationResult]
    failures: List[UnitFailure]
    report: BatchReport
    report_text: str
    report_path: Optional[Path] = None


class Translator:
    """Translates batches of files."""

    def __init__(
        self,
        config: TranslatorConfig,
        client: Optional[ModelInterface] = None,
        metadata: Optional[MetadataFormatter] = None,
    ) -> None:
        """Initialize the translator.

        Args:
            config: Translator configuration
            client: Completion client. Defaults to a LiteLLM client.
            metadata: Metadata formatter. Defaults to one built from config.
        """
        self.config = config
        self.client = client or create_client(config)
        self.metadata = metadata
        self.retry_policy = RetryPolicy.from_config(config)

    def enumerate_units(
        self,
        input_path: Path,
        output_path: Path,
        target_lang: str,
        source_lang: Optional[str] = None,
    ) -> List[WorkUnit]:
        """Create the work units for a file or directory."""
        return enumerate_units(input_path, output_path, target_lang, self.config, source_lang)

    def estimate_usage(self, units: Sequence[WorkUnit]) -> TokenUsage:
        """Estimate tokens and cost of translating ``units``.

        Unsupported files are left out of the estimate.
        """
        total_tokens = 0
        for unit in units:
            if not is_supported_file(unit.source_path, self.config.supported_extensions):
                continue
            try:
                total_tokens += estimate_tokens(read_text(unit.source_path))
            except OSError as e:
                raise classify_error(e) from e
        return estimate_usage(
            total_tokens,
            self.config.input_price_per_million,
            self.config.output_price_per_million,
        )

    async def run_batch(
        self,
        units: Sequence[WorkUnit],
        output_dir: Optional[Path] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> BatchOutcome:
        """Translate ``units`` and build the batch report.

        Args:
            units: Units to translate
            output_dir: Directory for the report file; no file is written
                when None or when report generation is disabled
            reporter: Progress reporter

        Returns:
            Results, failures and the report

        Raises:
            InputNotFoundError: If ``units`` is empty
        """
        if not units:
            raise InputNotFoundError(
                "No files to translate",
                "Check the input path and the list of supported extensions",
            )

        reporter = reporter or NullProgressReporter()
        # One cache per batch, shared by all concurrently running units
        detector = LanguageDetector(
            self.client,
            self.config.model_name,
            self.retry_policy,
            LanguageDetectionCache(),
        )
        processor = UnitProcessor(
            self.config,
            self.client,
            detector,
            metadata=self.metadata,
            reporter=reporter,
            retry_policy=self.retry_policy,
        )
        scheduler = Scheduler(
            processor.process,
            concurrency=self.config.max_concurrent_translations,
            max_requeues=self.config.max_requeues,
            on_complete=reporter.unit_finished,
            on_failure=lambda failure: reporter.unit_failed(failure.unit, failure.error),
        )

        logger.info("Starting batch", files=len(units), concurrency=scheduler.concurrency)
        start_time = time.monotonic()
        run = await scheduler.run_batch(units)
        duration_ms = (time.monotonic() - start_time) * 1000

        report = generate_report(run.results, duration_ms, run.failures)
        report_format = ReportFormat(self.config.report_format)
        report_text = render_report(report, report_format)

        report_path = None
        if self.config.generate_report and output_dir is not None:
            report_path = await asyncio.to_thread(write_report, report, output_dir, report_format)

        logger.info(
            "Batch finished",
            succeeded=len(run.results),
            failed=len(run.failures),
            duration_ms=round(duration_ms),
        )
        return BatchOutcome(
            results=run.results,
            failures=run.failures,
            report=report,
            report_text=report_text,
            report_path=report_path,
        )

    async def translate(
        self,
        input_path: Path,
        output_path: Path,
        target_lang: str,
        source_lang: Optional[str] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> BatchOutcome:
        """Enumerate and translate a file or directory."""
        units = self.enumerate_units(input_path, output_path, target_lang, source_lang)
        return await self.run_batch(units, output_dir=output_path, reporter=reporter)
