"""Source language detection with a batch-scoped cache."""

import hashlib
import threading
from typing import Dict, Optional

from transkit.core.errors import LanguageDetectionFailedError, TranslatorError
from transkit.core.retry import RetryPolicy
from transkit.core.translation.interface import CompletionRequest, ModelInterface
from transkit.core.translation.prompts import DETECTION_SYSTEM_PROMPT
from transkit.utils.language import normalize_language_code
from transkit.utils.logging import get_logger

logger = get_logger(__name__)

# Characters sent to the model for detection
DETECTION_SAMPLE_SIZE = 1000
# Characters hashed for the cache key
CACHE_SAMPLE_SIZE = 500


def sample_hash(text: str) -> str:
    """Cache key for a text: hash of its leading characters."""
    return hashlib.sha256(text[:CACHE_SAMPLE_SIZE].encode("utf-8")).hexdigest()


class LanguageDetectionCache:
    """Thread-safe mapping from text sample hash to detected language.

    Concurrent units may detect the same sample and both store the result;
    the value for a key is the same either way.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, language: str) -> None:
        with self._lock:
            self._entries[key] = language

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class LanguageDetector:
    """Detects the language of a text using the completion service."""

    def __init__(
        self,
        client: ModelInterface,
        model_name: str,
        retry_policy: RetryPolicy,
        cache: Optional[LanguageDetectionCache] = None,
    ) -> None:
        self.client = client
        self.model_name = model_name
        self.retry_policy = retry_policy
        self.cache = cache if cache is not None else LanguageDetectionCache()

    async def detect(self, text: str) -> str:
        """Detect the language of ``text``.

        Args:
            text: Full text content; only a bounded prefix is used

        Returns:
            A supported ISO 639-1 language code

        Raises:
            LanguageDetectionFailedError: If the model answer is not a
                supported language code, or transient errors outlast the
                retries
            TranslatorError: If the remote call fails with a permanent error
        """
        key = sample_hash(text)
        cached = self.cache.get(key)
        if cached:
            logger.debug("Language detection cache hit", language=cached)
            return cached

        request = CompletionRequest(
            model=self.model_name,
            system_prompt=DETECTION_SYSTEM_PROMPT,
            user_content=text[:DETECTION_SAMPLE_SIZE],
            temperature=0,
        )
        try:
            answer = await self.retry_policy.call(lambda: self.client.complete(request))
        except TranslatorError as e:
            if not e.retryable:
                raise
            logger.warning("Language detection gave up after retries", error=e.message)
            raise LanguageDetectionFailedError() from e

        language = normalize_language_code(answer) if answer else None
        if not language:
            logger.warning("Unusable language detection answer", answer=answer)
            raise LanguageDetectionFailedError()

        self.cache.set(key, language)
        return language
