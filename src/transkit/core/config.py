"""Configuration for Transkit.

Settings are read from a ``.env`` file, overridden by the process environment,
overridden in turn by explicit keyword overrides (the CLI passes its options
this way).
"""

import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from transkit.core.errors import ConfigurationError

DEFAULT_SUPPORTED_EXTENSIONS = [
    ".txt", ".md", ".mdx", ".json", ".yaml", ".yml", ".html", ".htm", ".xml", ".csv",
]

DEFAULT_METADATA_TEMPLATE = (
    "Translation metadata:\n"
    "Source language: {SOURCE_LANG}\n"
    "Target language: {TARGET_LANG}\n"
    "Translated at: {TIMESTAMP}\n"
    "Model: {MODEL}"
)


class BilingualConfig(BaseModel):
    """Side-by-side output settings."""

    enabled: bool = False
    layout: Literal["parallel", "sequential"] = "parallel"
    separator: str = "\n---\n"
    show_source_first: bool = True
    align_paragraphs: bool = True

    model_config = ConfigDict(frozen=True)


class MetadataTemplate(BaseModel):
    """Layout of the metadata block written at the top of each output."""

    start_mark: str = "<!--"
    end_mark: str = "-->"
    template: Optional[str] = DEFAULT_METADATA_TEMPLATE
    include_timestamp: bool = True
    include_model: bool = True
    include_config: bool = True
    custom_fields: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class ProperNounsConfig(BaseModel):
    """Glossary and patterns for text that must not be translated freely."""

    translations: Dict[str, str] = Field(default_factory=dict)
    patterns: List[str] = Field(default_factory=list)
    case_sensitive: bool = True

    model_config = ConfigDict(frozen=True)


class TranslatorConfig(BaseModel):
    """Configuration for translation batches."""

    # API settings
    api_endpoint: Optional[str] = Field(
        default=None,
        description="Base URL of the completion API; provider default when unset",
    )
    api_key: Optional[str] = Field(default=None, repr=False)
    model_name: str = "gpt-3.5-turbo"
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)

    # Scheduling and retry settings
    max_concurrent_translations: int = Field(default=3, gt=0)
    retry_count: int = Field(
        default=3,
        gt=0,
        description="Total attempts per remote call",
    )
    retry_delay: float = Field(default=1.0, ge=0.0, le=300.0, description="Base backoff in seconds")
    max_retry_delay: float = Field(default=30.0, ge=0.0, le=300.0, description="Backoff cap in seconds")
    max_requeues: int = Field(
        default=1,
        ge=0,
        description="How often the scheduler re-queues a file after a retryable failure",
    )

    # Pricing (USD per million tokens)
    input_price_per_million: float = Field(default=0.2, ge=0.0)
    output_price_per_million: float = Field(default=0.2, ge=0.0)

    # File settings
    supported_extensions: Optional[List[str]] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_EXTENSIONS),
        description="Extensions to translate; None accepts every file",
    )
    recursive: bool = False
    max_recursive_depth: int = Field(default=0, ge=0, description="0 means unlimited")
    auto_rename: bool = True
    ignore_empty_files: bool = True
    open_output_dir: bool = False
    max_file_size_mb: float = Field(default=10.0, gt=0.0)

    # Content settings
    keep_original_content: bool = False
    content_separator: str = "\n\n---\n\n"
    add_metadata: bool = True
    auto_detect_language: bool = False
    skip_proper_nouns: bool = False
    skip_code_blocks: bool = False
    proper_nouns: ProperNounsConfig = Field(default_factory=ProperNounsConfig)
    bilingual: BilingualConfig = Field(default_factory=BilingualConfig)
    metadata_template: MetadataTemplate = Field(default_factory=MetadataTemplate)
    system_prompt_template: Optional[str] = None

    # Progress and report settings
    show_progress_bar: bool = True
    generate_report: bool = True
    report_format: Literal["json", "markdown", "text"] = "markdown"

    model_config = ConfigDict(frozen=True, protected_namespaces=())


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_key_values(value: str) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for pair in value.split(";"):
        key, _, item = pair.partition("=")
        if key.strip() and item.strip():
            pairs[key.strip()] = item.strip()
    return pairs


def _milliseconds(value: str) -> float:
    # RETRY_DELAY and MAX_RETRY_DELAY are given in milliseconds
    return float(value) / 1000


def _unescape(value: str) -> str:
    # Separators are usually written with literal "\n" sequences in .env files
    return value.replace("\\n", "\n")


# environment variable -> (section, field, parser); section None is top level
ENV_FIELDS: Dict[str, tuple[Optional[str], str, Callable[[str], Any]]] = {
    "API_ENDPOINT": (None, "api_endpoint", str),
    "API_KEY": (None, "api_key", str),
    "MODEL_NAME": (None, "model_name", str),
    "TEMPERATURE": (None, "temperature", str),
    "MAX_CONCURRENT_TRANSLATIONS": (None, "max_concurrent_translations", str),
    "RETRY_COUNT": (None, "retry_count", str),
    "RETRY_DELAY": (None, "retry_delay", _milliseconds),
    "MAX_RETRY_DELAY": (None, "max_retry_delay", _milliseconds),
    "MAX_REQUEUES": (None, "max_requeues", str),
    "DEFAULT_INPUT_PRICE": (None, "input_price_per_million", str),
    "DEFAULT_OUTPUT_PRICE": (None, "output_price_per_million", str),
    "SUPPORTED_EXTENSIONS": (None, "supported_extensions", _parse_list),
    "RECURSIVE_TRANSLATION": (None, "recursive", str),
    "MAX_RECURSIVE_DEPTH": (None, "max_recursive_depth", str),
    "AUTO_RENAME": (None, "auto_rename", str),
    "IGNORE_EMPTY_FILES": (None, "ignore_empty_files", str),
    "OPEN_OUTPUT_DIR": (None, "open_output_dir", str),
    "MAX_FILE_SIZE": (None, "max_file_size_mb", str),
    "KEEP_ORIGINAL_CONTENT": (None, "keep_original_content", str),
    "CONTENT_SEPARATOR": (None, "content_separator", _unescape),
    "ADD_METADATA": (None, "add_metadata", str),
    "AUTO_DETECT_LANGUAGE": (None, "auto_detect_language", str),
    "SKIP_PROPER_NOUNS": (None, "skip_proper_nouns", str),
    "SKIP_CODE_BLOCKS": (None, "skip_code_blocks", str),
    "SYSTEM_PROMPT_TEMPLATE": (None, "system_prompt_template", _unescape),
    "SHOW_PROGRESS_BAR": (None, "show_progress_bar", str),
    "GENERATE_REPORT": (None, "generate_report", str),
    "REPORT_FORMAT": (None, "report_format", str),
    "PROPER_NOUNS_TRANSLATIONS": ("proper_nouns", "translations", _parse_key_values),
    "PROPER_NOUNS_PATTERNS": ("proper_nouns", "patterns", _parse_list),
    "PROPER_NOUNS_CASE_SENSITIVE": ("proper_nouns", "case_sensitive", str),
    "BILINGUAL_MODE": ("bilingual", "enabled", str),
    "BILINGUAL_LAYOUT": ("bilingual", "layout", str),
    "BILINGUAL_SEPARATOR": ("bilingual", "separator", _unescape),
    "SHOW_SOURCE_FIRST": ("bilingual", "show_source_first", str),
    "ALIGN_PARAGRAPHS": ("bilingual", "align_paragraphs", str),
    "METADATA_START_MARK": ("metadata_template", "start_mark", str),
    "METADATA_END_MARK": ("metadata_template", "end_mark", str),
    "METADATA_TEMPLATE": ("metadata_template", "template", _unescape),
    "METADATA_INCLUDE_TIMESTAMP": ("metadata_template", "include_timestamp", str),
    "METADATA_INCLUDE_MODEL": ("metadata_template", "include_model", str),
    "METADATA_INCLUDE_CONFIG": ("metadata_template", "include_config", str),
    "METADATA_CUSTOM_FIELDS": ("metadata_template", "custom_fields", _parse_key_values),
}


def config_from_mapping(values: Mapping[str, Optional[str]], **overrides: Any) -> TranslatorConfig:
    """Build a configuration from environment-style variables.

    Empty variables are treated as unset. Keyword overrides use field names of
    ``TranslatorConfig`` and win over the variables; nested sections may be
    overridden with dicts of their own field names.

    Args:
        values: Mapping of variable name to raw string value
        **overrides: Field overrides, e.g. from command-line options

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If a value fails validation
    """
    data: Dict[str, Any] = {}
    for name, (section, field, parse) in ENV_FIELDS.items():
        raw = values.get(name)
        if raw is None or not raw.strip():
            continue
        target = data.setdefault(section, {}) if section else data
        try:
            target[field] = parse(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {name}: {raw!r} is not a number") from e

    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value

    try:
        return TranslatorConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(
            f"Invalid configuration: {problems}",
        ) from e


def load_config(env_file: Optional[Path] = None, **overrides: Any) -> TranslatorConfig:
    """Load configuration from ``.env``, the environment and overrides.

    Args:
        env_file: Path of the dotenv file; ``.env`` in the working directory
            when omitted. A missing file is ignored.
        **overrides: Field overrides applied last

    Returns:
        Validated configuration
    """
    path = env_file or Path(".env")
    values: Dict[str, Optional[str]] = {}
    if path.is_file():
        values.update(dotenv_values(path))
    values.update(os.environ)
    return config_from_mapping(values, **overrides)
