"""Prompts sent to the completion service."""

from transkit.core.config import ProperNounsConfig
from transkit.core.types import WorkUnit
from transkit.utils.language import language_name
from transkit.utils.templates import render_template

DEFAULT_SYSTEM_PROMPT_TEMPLATE = "\n".join(
    [
        "You are a professional translator who translates {SOURCE_LANG} into {TARGET_LANG}.",
        "Make sure the translation follows the idioms of the target language.",
        "You may adjust tone and style, and take the cultural connotations and regional differences of words into account.",
        "Aim for a translation that is faithful to the content and intent of the original,",
        "reads fluently and clearly, and is pleasant to read in the target language.",
        "Output the complete content and do not omit any part of the original.",
        "{SKIP_PROPER_NOUNS}",
        "{SKIP_CODE_BLOCKS}",
        "Keep the formatting and punctuation of the original.",
        "{BILINGUAL_MODE}",
    ]
)

DETECTION_SYSTEM_PROMPT = (
    "You are a language detection expert. Identify the language of the given text "
    "and reply with the ISO 639-1 language code only (for example: en, zh, ja)."
)

SKIP_CODE_BLOCKS_INSTRUCTION = (
    "Do not translate or modify code blocks, command lines, configuration entries or other "
    "technical content such as HTML or CSS definitions; keep them exactly as they are."
)

BILINGUAL_INSTRUCTION = "Provide the translation for a bilingual edition and keep the original formatting."


def format_proper_nouns(proper_nouns: ProperNounsConfig) -> str:
    """Describe the proper-noun glossary and protected patterns."""
    items: list[str] = []

    if proper_nouns.translations:
        items.append("Use the following translations for these proper nouns:")
        for source, target in proper_nouns.translations.items():
            items.append(f"{source} => {target}")

    if proper_nouns.patterns:
        items.append("Text matching these patterns must stay unchanged:")
        items.extend(proper_nouns.patterns)

    if items and proper_nouns.case_sensitive:
        items.append("Matching is case sensitive.")

    return "\n".join(items)


def build_system_prompt(
    unit: WorkUnit,
    *,
    template: str | None = None,
    proper_nouns: ProperNounsConfig | None = None,
    bilingual: bool = False,
) -> str:
    """Render the translation system prompt for a unit.

    Args:
        unit: Unit being translated; its source language must be resolved
        template: Custom template, the default template when None
        proper_nouns: Glossary used when the unit skips proper nouns
        bilingual: Whether the output will be laid out bilingually

    Returns:
        The system prompt, with lines left empty by unused options removed
    """
    skip_proper_nouns = ""
    if unit.skip_proper_nouns:
        skip_proper_nouns = "Translate only the text content and handle proper nouns as follows:"
        glossary = format_proper_nouns(proper_nouns or ProperNounsConfig())
        if glossary:
            skip_proper_nouns += "\n" + glossary
        else:
            skip_proper_nouns += "\nKeep proper nouns in their original form."

    rendered = render_template(
        template or DEFAULT_SYSTEM_PROMPT_TEMPLATE,
        {
            "SOURCE_LANG": language_name(unit.source_lang or "auto"),
            "TARGET_LANG": language_name(unit.target_lang),
            "SKIP_PROPER_NOUNS": skip_proper_nouns,
            "SKIP_CODE_BLOCKS": SKIP_CODE_BLOCKS_INSTRUCTION if unit.skip_code_blocks else "",
            "BILINGUAL_MODE": BILINGUAL_INSTRUCTION if bilingual else "",
        },
    )
    return "\n".join(line for line in rendered.split("\n") if line.strip())
