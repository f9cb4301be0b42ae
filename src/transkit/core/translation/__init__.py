"""Completion service access for Transkit."""

from transkit.core.config import TranslatorConfig
from transkit.core.translation.detection import LanguageDetectionCache, LanguageDetector
from transkit.core.translation.interface import CompletionRequest, ModelInterface
from transkit.core.translation.litellm import LiteLLMClient


def create_client(config: TranslatorConfig) -> ModelInterface:
    """Create a completion client based on configuration.

    Args:
        config: Translator configuration

    Returns:
        Configured client instance
    """
    return LiteLLMClient(api_base=config.api_endpoint, api_key=config.api_key)


__all__ = [
    "CompletionRequest",
    "ModelInterface",
    "LiteLLMClient",
    "LanguageDetectionCache",
    "LanguageDetector",
    "create_client",
]
