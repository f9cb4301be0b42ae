"""Shared fixtures for Transkit tests."""

import asyncio
from pathlib import Path
from typing import AsyncIterator, List, Optional

import pytest
import structlog

from transkit.core.config import MetadataTemplate, TranslatorConfig
from transkit.core.translation.interface import CompletionRequest
from transkit.core.types import TranslationResult, WorkUnit


class FakeClient:
    """In-memory completion client.

    ``stream_errors`` and ``complete_errors`` are raised, in order, by the
    next calls before any successful answer is given. When ``complete_gate``
    is set, detection answers wait for it.
    """

    def __init__(
        self,
        fragments: Optional[List[str]] = None,
        detect_answer: str = "en",
    ) -> None:
        self.fragments = fragments if fragments is not None else ["Translated"]
        self.detect_answer = detect_answer
        self.stream_errors: List[BaseException] = []
        self.complete_errors: List[BaseException] = []
        self.mid_stream_error: Optional[BaseException] = None
        self.complete_gate: Optional[asyncio.Event] = None
        self.stream_requests: List[CompletionRequest] = []
        self.complete_requests: List[CompletionRequest] = []

    async def stream_completion(self, request: CompletionRequest) -> AsyncIterator[str]:
        self.stream_requests.append(request)
        if self.stream_errors:
            raise self.stream_errors.pop(0)
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        for fragment in self.fragments:
            yield fragment
        if self.mid_stream_error is not None:
            raise self.mid_stream_error

    async def complete(self, request: CompletionRequest) -> str:
        self.complete_requests.append(request)
        if self.complete_errors:
            raise self.complete_errors.pop(0)
        if self.complete_gate is not None:
            await self.complete_gate.wait()
        return self.detect_answer


class RecordingReporter:
    """Progress reporter that keeps every event."""

    def __init__(self) -> None:
        self.statuses: List[str] = []
        self.fractions: List[float] = []
        self.finished: List[TranslationResult] = []
        self.failed: List[str] = []

    def unit_status(self, unit: WorkUnit, status: str) -> None:
        self.statuses.append(status)

    def unit_progress(self, unit: WorkUnit, fraction: float) -> None:
        self.fractions.append(fraction)

    def unit_finished(self, unit: WorkUnit, result: TranslationResult) -> None:
        self.finished.append(result)

    def unit_failed(self, unit: WorkUnit, error) -> None:
        self.failed.append(error.message)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop logging configuration made by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_client() -> FakeClient:
    """Create a fake completion client."""
    return FakeClient()


@pytest.fixture
def reporter() -> RecordingReporter:
    """Create a reporter that records events."""
    return RecordingReporter()


@pytest.fixture
def config() -> TranslatorConfig:
    """Create a configuration that never waits between retries."""
    return TranslatorConfig(
        retry_delay=0.0,
        max_retry_delay=0.0,
        add_metadata=False,
        generate_report=False,
        show_progress_bar=False,
        metadata_template=MetadataTemplate(),
    )


@pytest.fixture
def make_unit(tmp_path: Path):
    """Create a work unit for a file written under ``tmp_path/in``."""

    def _make_unit(
        name: str = "doc.md",
        content: str = "Hello world",
        source_lang: Optional[str] = "en",
        target_lang: str = "zh",
        index: int = 0,
        **kwargs,
    ) -> WorkUnit:
        source = tmp_path / "in" / name
        source.parent.mkdir(parents=True, exist_ok=True)
        source.write_text(content, encoding="utf-8")
        return WorkUnit(
            source_path=source,
            target_path=tmp_path / "out" / name,
            source_lang=source_lang,
            target_lang=target_lang,
            size=source.stat().st_size,
            index=index,
            **kwargs,
        )

    return _make_unit
