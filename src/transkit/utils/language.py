"""Language code handling and validation for Transkit."""

import re
from enum import Enum
from typing import Dict, Optional


class LanguageCode(str, Enum):
    """ISO 639-1 codes of the languages Transkit translates between."""

    CHINESE = "zh"
    ENGLISH = "en"
    JAPANESE = "ja"
    KOREAN = "ko"
    FRENCH = "fr"
    GERMAN = "de"
    SPANISH = "es"
    RUSSIAN = "ru"
    ARABIC = "ar"
    HINDI = "hi"
    PORTUGUESE = "pt"
    ITALIAN = "it"


LANGUAGE_NAMES: Dict[str, str] = {code.value: code.name.title() for code in LanguageCode}

# Common aliases mapping to ISO 639-1 codes
LANGUAGE_ALIASES: Dict[str, str] = {
    # Chinese aliases
    "chi": "zh",
    "zho": "zh",
    "chinese": "zh",
    "mandarin": "zh",
    "zh-cn": "zh",
    "中文": "zh",
    # English aliases
    "eng": "en",
    "english": "en",
    # Japanese aliases
    "jpn": "ja",
    "japanese": "ja",
    "日本語": "ja",
    # Korean aliases
    "kor": "ko",
    "korean": "ko",
    "한국어": "ko",
    # French aliases
    "fra": "fr",
    "french": "fr",
    "français": "fr",
    # German aliases
    "deu": "de",
    "ger": "de",
    "german": "de",
    "deutsch": "de",
    # Spanish aliases
    "spa": "es",
    "spanish": "es",
    "español": "es",
    # Russian aliases
    "rus": "ru",
    "russian": "ru",
    "русский": "ru",
    # Others
    "ara": "ar",
    "arabic": "ar",
    "hin": "hi",
    "hindi": "hi",
    "por": "pt",
    "portuguese": "pt",
    "ita": "it",
    "italian": "it",
}

EXAMPLE_PAIRS = [
    ("zh-en", "Chinese -> English"),
    ("en-zh", "English -> Chinese"),
    ("ja-zh", "Japanese -> Chinese"),
    ("zh-ja", "Chinese -> Japanese"),
]

_PAIR_PATTERN = re.compile(r"^([a-z]{2})-([a-z]{2})$")


def language_name(code: str) -> str:
    """Return the display name for a language code, or the code itself."""
    return LANGUAGE_NAMES.get(code, code)


def is_supported_language(code: Optional[str]) -> bool:
    """Check whether ``code`` is one of the supported ISO 639-1 codes."""
    return bool(code) and code in LANGUAGE_NAMES


def normalize_language_code(code: str) -> Optional[str]:
    """Normalize a language code or alias to its ISO 639-1 form.

    Model answers are often decorated (``"EN."``, ``"zh-CN"``, ``"`ja`"``), so
    surrounding punctuation and whitespace are ignored.

    Args:
        code: A language code or alias (e.g., 'en', 'eng', 'english')

    Returns:
        The normalized code, or None if it is not recognized
    """
    normalized = code.strip().strip("`'\".,;:!").strip().lower()

    if normalized in LANGUAGE_NAMES:
        return normalized

    if normalized in LANGUAGE_ALIASES:
        return LANGUAGE_ALIASES[normalized]

    return None


def parse_language_pair(pair: Optional[str]) -> Optional[tuple[str, str]]:
    """Parse a ``source-target`` pair such as ``zh-en``.

    Args:
        pair: Pair string from the command line

    Returns:
        Tuple of (source, target) codes, or None when the pair is malformed or
        names an unsupported language
    """
    if not pair:
        return None

    match = _PAIR_PATTERN.match(pair.strip().lower())
    if not match:
        return None

    source, target = match.groups()
    if not is_supported_language(source) or not is_supported_language(target):
        return None

    return source, target
