"""Core functionality for Transkit."""

from transkit.core.types import TokenUsage, TranslationResult, WorkUnit
from transkit.core.config import TranslatorConfig, load_config
from transkit.core.cost import CostLevel, estimate_cost, estimate_tokens, estimate_usage
from transkit.core.errors import TranslatorError, classify_error
from transkit.core.assembler import AssemblyOptions, assemble
from transkit.core.retry import RetryPolicy, with_retry
from transkit.core.processor import UnitProcessor
from transkit.core.scheduler import Scheduler, UnitFailure
from transkit.core.report import BatchReport, ReportFormat, generate_report
from transkit.core.translator import BatchOutcome, Translator

__all__ = [
    "AssemblyOptions",
    "assemble",
    "BatchOutcome",
    "BatchReport",
    "classify_error",
    "CostLevel",
    "estimate_cost",
    "estimate_tokens",
    "estimate_usage",
    "generate_report",
    "load_config",
    "ReportFormat",
    "RetryPolicy",
    "Scheduler",
    "TokenUsage",
    "TranslationResult",
    "Translator",
    "TranslatorConfig",
    "TranslatorError",
    "UnitFailure",
    "UnitProcessor",
    "WorkUnit",
    "with_retry",
]
