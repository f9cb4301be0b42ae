"""Tests for single-unit translation."""

from unittest.mock import patch

import pytest

from transkit.core.cost import estimate_tokens
from transkit.core.errors import (
    APIError,
    EmptyFileError,
    FileTooLargeError,
    TransportError,
    UnsupportedLanguagePairError,
    UnsupportedTypeError,
    WriteFailureError,
)
from transkit.core.processor import (
    MAX_STREAM_PROGRESS,
    StreamAccumulator,
    UnitProcessor,
    write_atomic,
)
from transkit.core.retry import RetryPolicy
from transkit.core.translation.detection import LanguageDetector


@pytest.fixture
def make_processor(fake_client, reporter):
    """Create a processor for a configuration."""

    def _make_processor(config):
        retry_policy = RetryPolicy.from_config(config)
        detector = LanguageDetector(fake_client, config.model_name, retry_policy)
        return UnitProcessor(
            config,
            fake_client,
            detector,
            reporter=reporter,
            retry_policy=retry_policy,
        )

    return _make_processor


class TestStreamAccumulator:
    """Tests for stream accumulation and progress sampling."""

    def test_progress_is_rate_limited(self):
        """Test that progress is reported at most once per interval."""
        now = [0.0]
        reported = []
        accumulator = StreamAccumulator(
            expected_length=100,
            on_progress=reported.append,
            interval=0.1,
            clock=lambda: now[0],
        )

        for t in (0.01, 0.05, 0.09):
            now[0] = t
            accumulator.feed("x")
        assert reported == []

        now[0] = 0.15
        accumulator.feed("x")
        now[0] = 0.2
        accumulator.feed("x")
        assert reported == [0.04]

    def test_progress_is_capped(self):
        """Test progress stays below completion while streaming."""
        now = [0.0]
        reported = []
        accumulator = StreamAccumulator(
            expected_length=2, on_progress=reported.append, clock=lambda: now[0]
        )
        now[0] = 1.0
        accumulator.feed("a much longer translation")
        assert reported == [MAX_STREAM_PROGRESS]
        assert accumulator.fraction == MAX_STREAM_PROGRESS

    @pytest.mark.asyncio
    async def test_consume_concatenates(self):
        """Test fragments are joined in arrival order."""

        async def fragments():
            for part in ("Hel", "lo", " world"):
                yield part

        assert await StreamAccumulator(11).consume(fragments()) == "Hello world"


class TestWriteAtomic:
    """Tests for atomic file writes."""

    def test_write_new_file(self, tmp_path):
        """Test writing a file that does not exist yet."""
        path = tmp_path / "out.md"
        write_atomic(path, "content")
        assert path.read_text(encoding="utf-8") == "content"
        assert not (tmp_path / "out.md.tmp").exists()

    def test_overwrite_existing_file(self, tmp_path):
        """Test replacing an existing file."""
        path = tmp_path / "out.md"
        path.write_text("old", encoding="utf-8")
        write_atomic(path, "new")
        assert path.read_text(encoding="utf-8") == "new"

    def test_interrupted_rename_leaves_no_partial_file(self, tmp_path):
        """Test that a failed rename never leaves partial content behind."""
        path = tmp_path / "out.md"
        path.write_text("previous complete content", encoding="utf-8")

        with patch("transkit.core.processor.os.replace", side_effect=OSError("disk gone")):
            with pytest.raises(WriteFailureError) as exc_info:
                write_atomic(path, "new content")

        assert exc_info.value.suggestion == WriteFailureError.suggestion
        assert isinstance(exc_info.value.__cause__, OSError)
        assert not path.exists() or path.read_text(encoding="utf-8") == "previous complete content"
        assert not (tmp_path / "out.md.tmp").exists()

    def test_interrupted_temp_write_keeps_previous_content(self, tmp_path):
        """Test a failure while writing the temporary file."""
        path = tmp_path / "out.md"
        path.write_text("previous", encoding="utf-8")

        with patch("pathlib.Path.write_text", side_effect=OSError("no space")):
            with pytest.raises(WriteFailureError):
                write_atomic(path, "new")

        assert path.read_text(encoding="utf-8") == "previous"


class TestUnitProcessor:
    """Tests for the unit processor."""

    @pytest.mark.asyncio
    async def test_translate_file(self, config, make_processor, make_unit, fake_client, tmp_path):
        """Test the full happy path with auto-rename."""
        fake_client.fragments = ["你好", "世界"]
        unit = make_unit("doc.md", "Hello world", source_lang="en", target_lang="zh")

        result = await make_processor(config).process(unit)

        assert result.target_path == tmp_path / "out" / "doc.zh.md"
        assert result.target_path.read_text(encoding="utf-8") == "你好世界"
        assert result.source_path == unit.source_path
        assert result.token_usage.input_tokens == estimate_tokens("Hello world")
        assert result.duration_ms >= 0
        assert not (tmp_path / "out" / "doc.md").exists()

        request = fake_client.stream_requests[0]
        assert request.user_content == "Hello world"
        assert request.stream
        assert "English into Chinese" in request.system_prompt

    @pytest.mark.asyncio
    async def test_without_auto_rename(self, config, make_processor, make_unit, tmp_path):
        """Test output keeps the source name when auto-rename is off."""
        config = config.model_copy(update={"auto_rename": False})
        target = tmp_path / "out" / "doc.md"
        target.parent.mkdir(parents=True)
        target.write_text("old translation", encoding="utf-8")

        result = await make_processor(config).process(make_unit())

        assert result.target_path == target
        assert target.read_text(encoding="utf-8") == "Translated"

    @pytest.mark.asyncio
    async def test_existing_destination_gets_alternate_name(self, config, make_processor, make_unit, tmp_path):
        """Test auto-rename never overwrites an existing destination."""
        existing = tmp_path / "out" / "doc.md"
        existing.parent.mkdir(parents=True)
        existing.write_text("keep me", encoding="utf-8")

        result = await make_processor(config).process(make_unit())

        assert existing.read_text(encoding="utf-8") == "keep me"
        assert result.target_path == tmp_path / "out" / "doc_1.zh.md"

    @pytest.mark.asyncio
    async def test_metadata_and_original(self, config, make_processor, make_unit):
        """Test metadata and original content in the output."""
        config = config.model_copy(update={"add_metadata": True, "keep_original_content": True})
        result = await make_processor(config).process(make_unit(content="Source"))

        text = result.target_path.read_text(encoding="utf-8")
        assert text.startswith("<!--\n")
        assert "Target language: zh" in text
        assert text.endswith("Source" + config.content_separator + "Translated")

    @pytest.mark.asyncio
    async def test_empty_file(self, config, make_processor, make_unit, fake_client, tmp_path):
        """Test empty files fail before anything is written."""
        unit = make_unit(content="  \n\t\n")

        with pytest.raises(EmptyFileError):
            await make_processor(config).process(unit)

        assert not (tmp_path / "out").exists()
        assert fake_client.stream_requests == []

    @pytest.mark.asyncio
    async def test_empty_file_translated_when_not_ignored(self, config, make_processor, make_unit):
        """Test empty files are processed when they are not ignored."""
        config = config.model_copy(update={"ignore_empty_files": False})
        result = await make_processor(config).process(make_unit(content=""))
        assert result.token_usage.input_tokens == 0

    @pytest.mark.asyncio
    async def test_unsupported_type(self, config, make_processor, make_unit):
        """Test unsupported extensions."""
        with pytest.raises(UnsupportedTypeError):
            await make_processor(config).process(make_unit("image.png"))

    @pytest.mark.asyncio
    async def test_file_too_large(self, config, make_processor, make_unit):
        """Test the file size limit."""
        config = config.model_copy(update={"max_file_size_mb": 0.00001})
        with pytest.raises(FileTooLargeError):
            await make_processor(config).process(make_unit(content="x" * 100))

    @pytest.mark.asyncio
    async def test_detects_source_language(self, config, make_processor, make_unit, fake_client, reporter):
        """Test source language detection for units without one."""
        fake_client.detect_answer = "ja"
        result = await make_processor(config).process(make_unit(source_lang=None, target_lang="en"))

        assert result.target_path.name == "doc.en.md"
        assert "Japanese into English" in fake_client.stream_requests[0].system_prompt
        assert "Detecting language..." in reporter.statuses

    @pytest.mark.asyncio
    async def test_same_source_and_target(self, config, make_processor, make_unit, fake_client):
        """Test a detected language equal to the target language."""
        fake_client.detect_answer = "zh"
        with pytest.raises(UnsupportedLanguagePairError):
            await make_processor(config).process(make_unit(source_lang=None, target_lang="zh"))
        assert fake_client.stream_requests == []

    @pytest.mark.asyncio
    async def test_stream_start_is_retried(self, config, make_processor, make_unit, fake_client):
        """Test that opening the stream is retried on transient errors."""
        fake_client.stream_errors = [APIError.from_status(429), TransportError(TransportError.RESET)]
        result = await make_processor(config).process(make_unit())
        assert result.target_path.read_text(encoding="utf-8") == "Translated"
        assert len(fake_client.stream_requests) == 3

    @pytest.mark.asyncio
    async def test_permanent_stream_error(self, config, make_processor, make_unit, fake_client, tmp_path):
        """Test that permanent errors fail the unit without output."""
        fake_client.stream_errors = [APIError.from_status(401)]
        with pytest.raises(APIError):
            await make_processor(config).process(make_unit())
        assert len(fake_client.stream_requests) == 1
        assert list((tmp_path / "out").iterdir()) == []

    @pytest.mark.asyncio
    async def test_mid_stream_failure(self, config, make_processor, make_unit, fake_client, tmp_path):
        """Test a broken stream fails the unit without writing."""
        fake_client.mid_stream_error = ConnectionResetError()
        with pytest.raises(TransportError):
            await make_processor(config).process(make_unit())
        assert list((tmp_path / "out").iterdir()) == []

    @pytest.mark.asyncio
    async def test_reports_status(self, config, make_processor, make_unit, reporter):
        """Test status updates while processing."""
        await make_processor(config).process(make_unit())
        assert reporter.statuses == ["Reading file...", "Translating...", "Saving file..."]
        assert all(0 <= fraction <= MAX_STREAM_PROGRESS for fraction in reporter.fractions)
