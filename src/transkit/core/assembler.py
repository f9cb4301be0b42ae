"""Assembly of the final output document from source and translation."""

from pydantic import BaseModel, ConfigDict, Field

from transkit.core.config import BilingualConfig, TranslatorConfig


class AssemblyOptions(BaseModel):
    """Formatting options for the final document."""

    add_metadata: bool = False
    keep_original_content: bool = False
    content_separator: str = "\n\n---\n\n"
    bilingual: BilingualConfig = Field(default_factory=BilingualConfig)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_config(cls, config: TranslatorConfig) -> "AssemblyOptions":
        return cls(
            add_metadata=config.add_metadata,
            keep_original_content=config.keep_original_content,
            content_separator=config.content_separator,
            bilingual=config.bilingual,
        )


def format_parallel(source: str, translated: str, bilingual: BilingualConfig) -> str:
    """Interleave source and translation line by line.

    The shorter side is padded with blank lines, so lines are paired by
    position only.
    """
    source_lines = source.split("\n")
    translated_lines = translated.split("\n")
    output: list[str] = []

    for i in range(max(len(source_lines), len(translated_lines))):
        source_line = source_lines[i] if i < len(source_lines) else ""
        translated_line = translated_lines[i] if i < len(translated_lines) else ""

        if bilingual.align_paragraphs and not source_line.strip() and not translated_line.strip():
            output.append("")
            continue

        if bilingual.show_source_first:
            output.append(f"{source_line}\n{translated_line}")
        else:
            output.append(f"{translated_line}\n{source_line}")

    return "\n".join(output)


def format_sequential(source: str, translated: str, bilingual: BilingualConfig) -> str:
    """Place the whole source and the whole translation one after the other."""
    if bilingual.show_source_first:
        return f"{source}{bilingual.separator}{translated}"
    return f"{translated}{bilingual.separator}{source}"


def format_bilingual(source: str, translated: str, bilingual: BilingualConfig) -> str:
    """Apply the configured bilingual layout."""
    if bilingual.layout == "parallel":
        return format_parallel(source, translated, bilingual)
    return format_sequential(source, translated, bilingual)


def assemble(
    source: str,
    translated: str,
    options: AssemblyOptions,
    metadata: str = "",
) -> str:
    """Build the final document text.

    Args:
        source: Original file content
        translated: Complete translated text
        options: Formatting options
        metadata: Pre-rendered metadata block, used when ``add_metadata`` is set

    Returns:
        The document to write
    """
    parts: list[str] = []

    if options.add_metadata and metadata:
        parts.append(metadata)

    if options.bilingual.enabled:
        body = format_bilingual(source, translated, options.bilingual)
    else:
        body = translated
        if options.keep_original_content:
            parts.append(source + options.content_separator)

    parts.append(body)
    return "".join(parts)
