"""Core data types for the Transkit translation tool."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkUnit(BaseModel):
    """One file scheduled for translation."""

    source_path: Path
    target_path: Path
    source_lang: Optional[str] = Field(
        default=None,
        description="Source language code, None until detected",
    )
    target_lang: str
    skip_proper_nouns: bool = False
    skip_code_blocks: bool = False
    size: int = Field(default=0, ge=0, description="Source size in bytes")
    index: int = Field(default=0, ge=0, description="Enumeration order")

    model_config = ConfigDict(frozen=True)

    @property
    def needs_detection(self) -> bool:
        """Whether the source language still has to be detected."""
        return self.source_lang is None

    def with_source_lang(self, source_lang: str) -> "WorkUnit":
        """Return a copy with the detected source language filled in."""
        return self.model_copy(update={"source_lang": source_lang})


class TokenUsage(BaseModel):
    """Estimated token usage and cost of a translation."""

    input_tokens: int = Field(ge=0)
    estimated_output_tokens: int = Field(ge=0)
    estimated_cost: float = Field(ge=0.0)

    model_config = ConfigDict(frozen=True)


class TranslationResult(BaseModel):
    """Result of translating a single work unit."""

    source_path: Path
    target_path: Path
    token_usage: TokenUsage
    duration_ms: float = Field(ge=0.0)

    model_config = ConfigDict(frozen=True)
