"""Tests for the metadata block."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from transkit.core.config import MetadataTemplate
from transkit.core.metadata import MetadataFormatter
from transkit.core.types import WorkUnit

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def unit() -> WorkUnit:
    """Create a work unit."""
    return WorkUnit(
        source_path=Path("in/doc.md"),
        target_path=Path("out/doc.md"),
        source_lang="en",
        target_lang="zh",
        skip_code_blocks=True,
    )


def make_formatter(**template_args) -> MetadataFormatter:
    return MetadataFormatter(
        MetadataTemplate(**template_args),
        model_name="gpt-4o-mini",
        temperature=0.3,
        clock=lambda: FIXED_TIME,
    )


def test_default_template(unit):
    """Test the default template with marks."""
    block = make_formatter().generate(unit)
    assert block == "\n".join(
        [
            "<!--",
            "Translation metadata:",
            "Source language: en",
            "Target language: zh",
            f"Translated at: {FIXED_TIME.isoformat()}",
            "Model: gpt-4o-mini",
            "-->",
            "",
        ]
    )


def test_custom_template_and_fields(unit):
    """Test custom templates with custom fields."""
    formatter = make_formatter(
        start_mark="---",
        end_mark="---",
        template="{SOURCE_LANG}>{TARGET_LANG} by {AUTHOR}",
        custom_fields={"AUTHOR": "docs team"},
    )
    assert formatter.generate(unit) == "---\nen>zh by docs team\n---\n"


def test_custom_fields_do_not_override_builtins(unit):
    """Test that custom fields cannot replace built-in values."""
    formatter = make_formatter(template="{TARGET_LANG}", custom_fields={"TARGET_LANG": "xx"})
    assert "zh" in formatter.generate(unit)
    assert "xx" not in formatter.generate(unit)


def test_excluded_values_stay_as_placeholders(unit):
    """Test disabled values are not substituted."""
    formatter = make_formatter(template="{MODEL}|{TIMESTAMP}", include_model=False, include_timestamp=False)
    assert "{MODEL}|{TIMESTAMP}" in formatter.generate(unit)


def test_config_value_is_json(unit):
    """Test the CONFIG placeholder renders the unit options as JSON."""
    formatter = make_formatter(template="{CONFIG}", start_mark="", end_mark="")
    content = formatter.generate(unit).strip()
    assert json.loads(content) == {
        "skip_proper_nouns": False,
        "skip_code_blocks": True,
        "temperature": 0.3,
    }


def test_builtin_lines_without_template(unit):
    """Test the line-based block used when no template is set."""
    formatter = make_formatter(template=None, include_config=False, custom_fields={"Project": "X"})
    block = formatter.generate(unit)
    assert "Source language: en" in block
    assert "Model: gpt-4o-mini" in block
    assert "Translation config" not in block
    assert "Project: X" in block


def test_unknown_source_language():
    """Test the block for units whose language is not yet known."""
    unit = WorkUnit(source_path=Path("a.md"), target_path=Path("b.md"), target_lang="en")
    assert "Source language: auto" in make_formatter().generate(unit)
