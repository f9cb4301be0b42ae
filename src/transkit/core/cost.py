"""Cost estimation utilities."""

import math
import re
from enum import Enum

from transkit.core.types import TokenUsage


class CostLevel(str, Enum):
    """Cost level classification."""

    LOW = "low"  # < $1
    MEDIUM = "medium"  # $1-$5
    HIGH = "high"  # $5-$20
    VERY_HIGH = "very_high"  # > $20


# Translations run roughly 1.3x the length of their source.
OUTPUT_TOKEN_RATIO = 1.3

_CJK_RANGES = "\u4e00-\u9fff\u3000-\u303f\uff00-\uff60"
_CJK_PATTERN = re.compile(f"[{_CJK_RANGES}]")
_ALNUM_RUN_PATTERN = re.compile(r"[a-zA-Z0-9]+")
_OTHER_PATTERN = re.compile(f"[^a-zA-Z0-9{_CJK_RANGES}\\s]")


def estimate_tokens(text: str) -> int:
    """Estimate the number of tokens in a text.

    Args:
        text: Text to measure

    Returns:
        Estimated number of tokens

    Note:
        These are rough estimates:
        - CJK characters and punctuation: 2 tokens each
        - Runs of ASCII letters and digits: 1 token per run
        - Any other non-whitespace character: 1 token each
    """
    cjk_tokens = len(_CJK_PATTERN.findall(text)) * 2
    word_tokens = len(_ALNUM_RUN_PATTERN.findall(text))
    other_tokens = len(_OTHER_PATTERN.findall(text))
    return cjk_tokens + word_tokens + other_tokens


def estimate_output_tokens(input_tokens: int) -> int:
    """Estimate the output tokens produced for ``input_tokens`` of source."""
    return math.ceil(input_tokens * OUTPUT_TOKEN_RATIO)


def estimate_cost(token_count: int, input_rate: float, output_rate: float) -> float:
    """Estimate the cost of translating ``token_count`` input tokens.

    Args:
        token_count: Estimated input tokens
        input_rate: USD per million input tokens
        output_rate: USD per million output tokens

    Returns:
        Estimated cost in USD
    """
    input_cost = token_count * input_rate / 1_000_000
    output_cost = estimate_output_tokens(token_count) * output_rate / 1_000_000
    return input_cost + output_cost


def estimate_usage(token_count: int, input_rate: float, output_rate: float) -> TokenUsage:
    """Build the token usage record for ``token_count`` input tokens."""
    return TokenUsage(
        input_tokens=token_count,
        estimated_output_tokens=estimate_output_tokens(token_count),
        estimated_cost=estimate_cost(token_count, input_rate, output_rate),
    )


def get_cost_level(cost: float) -> CostLevel:
    """Get the cost level classification.

    Args:
        cost: Estimated cost in USD

    Returns:
        Cost level classification
    """
    if cost < 1.0:
        return CostLevel.LOW
    elif cost < 5.0:
        return CostLevel.MEDIUM
    elif cost < 20.0:
        return CostLevel.HIGH
    else:
        return CostLevel.VERY_HIGH


def format_cost(cost: float) -> str:
    """Format cost for display.

    Args:
        cost: Cost value to format

    Returns:
        Formatted cost string
    """
    if cost >= 1.0:
        return f"${cost:.2f}"
    elif cost >= 0.001:
        return f"${cost:.3f}"
    else:
        return f"${cost:.6f}"
