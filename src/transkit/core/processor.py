"""Translation of a single work unit."""

import asyncio
import os
import time
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from transkit.core.assembler import AssemblyOptions, assemble
from transkit.core.config import TranslatorConfig
from transkit.core.cost import estimate_tokens, estimate_usage, format_cost
from transkit.core.errors import (
    EmptyFileError,
    FileTooLargeError,
    UnsupportedLanguagePairError,
    UnsupportedTypeError,
    WriteFailureError,
    classify_error,
)
from transkit.core.files import is_supported_file, language_suffixed_path, unique_path
from transkit.core.metadata import MetadataFormatter
from transkit.core.progress import NullProgressReporter, ProgressReporter
from transkit.core.retry import RetryPolicy
from transkit.core.translation.detection import LanguageDetector
from transkit.core.translation.interface import CompletionRequest, ModelInterface
from transkit.core.translation.prompts import build_system_prompt
from transkit.core.types import TranslationResult, WorkUnit
from transkit.utils.logging import get_logger

logger = get_logger(__name__)

# Minimum seconds between two progress reports while streaming
PROGRESS_INTERVAL = 0.1
# Progress stays below 100% until the stream has ended
MAX_STREAM_PROGRESS = 0.99


class StreamAccumulator:
    """Concatenates streamed fragments and samples progress at a bounded rate."""

    def __init__(
        self,
        expected_length: int,
        on_progress: Optional[Callable[[float], None]] = None,
        interval: float = PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the accumulator.

        Args:
            expected_length: Expected length of the full text in characters
            on_progress: Called with a fraction in [0, 0.99]
            interval: Minimum seconds between two progress calls
            clock: Monotonic clock in seconds
        """
        self.expected_length = max(expected_length, 1)
        self._on_progress = on_progress
        self._interval = interval
        self._clock = clock
        self._parts: list[str] = []
        self._received = 0
        self._last_report = clock()

    @property
    def fraction(self) -> float:
        return min(self._received / self.expected_length, MAX_STREAM_PROGRESS)

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def feed(self, fragment: str) -> None:
        self._parts.append(fragment)
        self._received += len(fragment)

        if self._on_progress is None:
            return
        now = self._clock()
        if now - self._last_report >= self._interval:
            self._last_report = now
            self._on_progress(self.fraction)

    async def consume(self, fragments: AsyncIterator[str]) -> str:
        """Read the whole stream and return the concatenated text."""
        async for fragment in fragments:
            self.feed(fragment)
        return self.text


def read_text(path: Path) -> str:
    """Read a file as UTF-8, replacing undecodable bytes."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return path.read_bytes().decode("utf-8", errors="replace")


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` so that ``path`` never holds a partial file.

    The content goes to ``<path>.tmp`` first; any existing ``path`` is
    removed and the temporary file is renamed onto it. On failure the
    temporary file is removed, leaving ``path`` either absent or with its
    previous content.

    Raises:
        WriteFailureError: If writing or renaming fails
    """
    temp_path = path.with_name(path.name + ".tmp")
    try:
        temp_path.write_text(content, encoding="utf-8")
        if path.exists():
            path.unlink()
        os.replace(temp_path, path)
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        logger.error("Atomic write failed", path=str(path), error=str(e))
        raise WriteFailureError() from e


class UnitProcessor:
    """Translates one work unit from source file to output file."""

    def __init__(
        self,
        config: TranslatorConfig,
        client: ModelInterface,
        detector: LanguageDetector,
        metadata: Optional[MetadataFormatter] = None,
        reporter: Optional[ProgressReporter] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        """Initialize the processor.

        Args:
            config: Translator configuration
            client: Completion client
            detector: Language detector, shared by all units of a batch
            metadata: Metadata formatter. Defaults to one built from config.
            reporter: Progress reporter. Defaults to a reporter that ignores events.
            retry_policy: Retry policy for remote calls. Defaults to config.
        """
        self.config = config
        self.client = client
        self.detector = detector
        self.metadata = metadata or MetadataFormatter(
            config.metadata_template, config.model_name, config.temperature
        )
        self.reporter = reporter or NullProgressReporter()
        self.retry_policy = retry_policy or RetryPolicy.from_config(config)
        self.assembly_options = AssemblyOptions.from_config(config)
        self._logger = logger

    def check_file(self, unit: WorkUnit) -> None:
        """Reject unsupported or oversized files.

        Raises:
            UnsupportedTypeError: If the extension is not supported
            FileTooLargeError: If the file exceeds the size limit
        """
        if not is_supported_file(unit.source_path, self.config.supported_extensions):
            self._logger.debug(
                "Unsupported extension",
                file=str(unit.source_path),
                supported=self.config.supported_extensions,
            )
            raise UnsupportedTypeError()

        size_mb = unit.source_path.stat().st_size / (1024 * 1024)
        if size_mb > self.config.max_file_size_mb:
            raise FileTooLargeError(
                suggestion=(
                    f"File size ({size_mb:.2f}MB) exceeds the limit "
                    f"({self.config.max_file_size_mb:g}MB)"
                )
            )

    async def resolve_language(self, unit: WorkUnit, content: str) -> WorkUnit:
        """Fill in the source language, detecting it when unknown."""
        if unit.needs_detection:
            self.reporter.unit_status(unit, "Detecting language...")
            language = await self.detector.detect(content)
            self._logger.info(
                f"Detected source language: {language}",
                file=str(unit.source_path),
            )
            unit = unit.with_source_lang(language)

        if unit.source_lang == unit.target_lang:
            self._logger.error(
                "Source and target language are the same",
                file=str(unit.source_path),
                language=unit.target_lang,
            )
            raise UnsupportedLanguagePairError()
        return unit

    def prepare_destination(self, unit: WorkUnit) -> Path:
        """Create the output directory and pick the file to write."""
        target = unit.target_path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteFailureError() from e

        if self.config.auto_rename and target.exists():
            target = unique_path(target)
        return target

    async def stream_translation(self, unit: WorkUnit, content: str) -> str:
        """Stream the translation of ``content`` from the completion service."""
        request = CompletionRequest(
            model=self.config.model_name,
            system_prompt=build_system_prompt(
                unit,
                template=self.config.system_prompt_template,
                proper_nouns=self.config.proper_nouns,
                bilingual=self.config.bilingual.enabled,
            ),
            user_content=content,
            temperature=self.config.temperature,
            stream=True,
        )

        # Only opening the stream is retried; a broken stream fails the unit.
        fragments = await self.retry_policy.call(
            lambda: self.client.stream_completion(request)
        )
        accumulator = StreamAccumulator(
            expected_length=len(content),
            on_progress=lambda fraction: self.reporter.unit_progress(unit, fraction),
        )
        try:
            return await accumulator.consume(fragments)
        except Exception as e:
            error = classify_error(e)
            if error is e:
                raise
            raise error from e

    async def process(self, unit: WorkUnit) -> TranslationResult:
        """Translate a work unit.

        Args:
            unit: The unit to translate

        Returns:
            Paths, estimated usage and duration of the translation

        Raises:
            TranslatorError: If any step fails
        """
        start_time = time.monotonic()

        self.check_file(unit)

        self.reporter.unit_status(unit, "Reading file...")
        content = await asyncio.to_thread(read_text, unit.source_path)
        if not content.strip() and self.config.ignore_empty_files:
            raise EmptyFileError()

        unit = await self.resolve_language(unit, content)

        token_count = estimate_tokens(content)
        usage = estimate_usage(
            token_count,
            self.config.input_price_per_million,
            self.config.output_price_per_million,
        )
        self._logger.info(
            f"Estimated cost for {unit.source_path.name}: {format_cost(usage.estimated_cost)}",
            tokens=token_count,
        )

        target = self.prepare_destination(unit)

        self.reporter.unit_status(unit, "Translating...")
        translated = await self.stream_translation(unit, content)

        self.reporter.unit_status(unit, "Saving file...")
        final_content = assemble(
            content,
            translated,
            self.assembly_options,
            metadata=self.metadata.generate(unit) if self.config.add_metadata else "",
        )
        await asyncio.to_thread(write_atomic, target, final_content)

        if self.config.auto_rename:
            renamed = language_suffixed_path(target, unit.target_lang)
            try:
                os.replace(target, renamed)
            except OSError as e:
                raise WriteFailureError() from e
            target = renamed

        duration_ms = (time.monotonic() - start_time) * 1000
        self._logger.debug(
            "Translated file",
            source=str(unit.source_path),
            target=str(target),
            duration_ms=round(duration_ms),
        )

        return TranslationResult(
            source_path=unit.source_path,
            target_path=target,
            token_usage=usage,
            duration_ms=duration_ms,
        )
