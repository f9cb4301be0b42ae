"""Tests for output document assembly."""

from transkit.core.assembler import (
    AssemblyOptions,
    assemble,
    format_parallel,
    format_sequential,
)
from transkit.core.config import BilingualConfig, TranslatorConfig


def test_plain_translation():
    """Test that by default only the translation is written."""
    assert assemble("A\nB", "X\nY", AssemblyOptions()) == "X\nY"


def test_keep_original_content():
    """Test original text kept above the translation."""
    options = AssemblyOptions(keep_original_content=True, content_separator="\n===\n")
    assert assemble("A", "X", options) == "A\n===\nX"


def test_metadata_prefix():
    """Test that metadata is prepended only when enabled."""
    metadata = "<!--\nmeta\n-->\n"
    assert assemble("A", "X", AssemblyOptions(add_metadata=True), metadata) == metadata + "X"
    assert assemble("A", "X", AssemblyOptions(add_metadata=False), metadata) == "X"


def test_parallel_layout():
    """Test line-by-line interleaving, source first."""
    bilingual = BilingualConfig(enabled=True, layout="parallel")
    options = AssemblyOptions(bilingual=bilingual)
    assert assemble("A\nB", "X\nY", options) == "A\nX\nB\nY"


def test_parallel_layout_translation_first():
    """Test interleaving with the translation first."""
    bilingual = BilingualConfig(enabled=True, show_source_first=False)
    assert format_parallel("A\nB", "X\nY", bilingual) == "X\nA\nY\nB"


def test_parallel_layout_pads_shorter_side():
    """Test unequal line counts are padded with empty lines."""
    bilingual = BilingualConfig(enabled=True, align_paragraphs=False)
    assert format_parallel("A\nB\nC", "X", bilingual) == "A\nX\nB\n\nC\n"


def test_parallel_layout_aligns_blank_lines():
    """Test that a pair of blank lines collapses into one."""
    aligned = BilingualConfig(enabled=True, align_paragraphs=True)
    unaligned = BilingualConfig(enabled=True, align_paragraphs=False)
    assert format_parallel("A\n\nB", "X\n\nY", aligned) == "A\nX\n\nB\nY"
    assert format_parallel("A\n\nB", "X\n\nY", unaligned) == "A\nX\n\n\nB\nY"


def test_sequential_layout():
    """Test whole texts placed one after the other."""
    bilingual = BilingualConfig(
        enabled=True, layout="sequential", separator="\n---\n", show_source_first=False
    )
    options = AssemblyOptions(bilingual=bilingual)
    assert assemble("A\nB", "X\nY", options) == "X\nY\n---\nA\nB"


def test_sequential_layout_source_first():
    """Test sequential layout with the source first."""
    bilingual = BilingualConfig(enabled=True, layout="sequential", separator="|")
    assert format_sequential("A", "X", bilingual) == "A|X"


def test_bilingual_ignores_keep_original():
    """Test that bilingual output does not repeat the source."""
    options = AssemblyOptions(
        keep_original_content=True,
        bilingual=BilingualConfig(enabled=True, layout="sequential", separator="|"),
    )
    assert assemble("A", "X", options) == "A|X"


def test_options_from_config():
    """Test options built from the translator configuration."""
    config = TranslatorConfig(keep_original_content=True, content_separator="--")
    options = AssemblyOptions.from_config(config)
    assert options.keep_original_content
    assert options.content_separator == "--"
    assert options.bilingual == config.bilingual
