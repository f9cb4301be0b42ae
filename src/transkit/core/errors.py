"""Error taxonomy for Transkit.

Every error carries a human-readable ``message`` and an actionable
``suggestion``. Both are plain data: they are logged, shown to the user and
copied into batch reports unchanged. ``retryable`` tells the retry policy and
the scheduler whether another attempt may succeed.
"""

import asyncio
from typing import Optional

from litellm import exceptions as litellm_exceptions

GENERIC_SUGGESTION = "Check the logs and contact support"


class TranslatorError(Exception):
    """Base class for all classified Transkit errors."""

    message: str = "Unknown error"
    suggestion: str = GENERIC_SUGGESTION
    retryable: bool = False

    def __init__(
        self,
        message: Optional[str] = None,
        suggestion: Optional[str] = None,
        code: Optional[int] = None,
        *,
        retryable: Optional[bool] = None,
    ) -> None:
        self.message = message or self.message
        self.suggestion = suggestion or self.suggestion
        self.code = code
        if retryable is not None:
            self.retryable = retryable
        super().__init__(self.message)

    def describe(self) -> str:
        """Return the message and suggestion on one line."""
        return f"{self.message} (suggestion: {self.suggestion})"


# ----------------------
# File errors
# ----------------------


class UnsupportedTypeError(TranslatorError):
    message = "Unsupported file type"
    suggestion = "Check that the file extension is in the supported list"


class FileTooLargeError(TranslatorError):
    message = "File is too large"
    suggestion = "Split the file or raise the maximum file size limit"


class EmptyFileError(TranslatorError):
    message = "File is empty"
    suggestion = "Check the file content or use the --ignore-empty option to ignore empty files"


class WriteFailureError(TranslatorError):
    message = "Failed to write file"
    suggestion = "Check the output directory permissions and disk space"


class InputNotFoundError(TranslatorError):
    message = "File does not exist"
    suggestion = "Check that the file path is correct"


class FileAccessError(TranslatorError):
    message = "No permission to access the file"
    suggestion = "Check the file permission settings"


# ----------------------
# Language errors
# ----------------------


class LanguageDetectionFailedError(TranslatorError):
    message = "Language detection failed"
    suggestion = "Specify the source language manually or check the file content"


class UnsupportedLanguageError(TranslatorError):
    message = "Unsupported language"
    suggestion = "Use a supported language code; use --list-languages to view the supported languages"


class UnsupportedLanguagePairError(TranslatorError):
    message = "Invalid language pair"
    suggestion = "Use the correct language pair format, for example: zh-en, en-ja"


# ----------------------
# Remote service errors
# ----------------------

# status code -> (message, suggestion)
API_ERRORS: dict[int, tuple[str, str]] = {
    400: (
        "Malformed request body",
        "Check that the request parameter format is correct",
    ),
    401: (
        "API key is wrong, authentication failed",
        "Check that your API key is correct; if you have no API key, create one first",
    ),
    402: (
        "Insufficient account balance",
        "Confirm your account balance and top it up",
    ),
    422: (
        "Invalid request body parameters",
        "Check that the request parameters meet the requirements",
    ),
    429: (
        "Request rate (TPM or RPM) reached the limit",
        "Lower the request frequency or increase the interval between concurrent requests",
    ),
    500: (
        "Internal server failure",
        "Retry later; contact support if the problem persists",
    ),
    503: (
        "Server load is too high",
        "Retry your request later",
    ),
}

RETRYABLE_STATUS_CODES = frozenset({429, 500, 503})


class APIError(TranslatorError):
    """Failure response from the remote completion service."""

    message = "Remote service error"

    @classmethod
    def from_status(cls, status_code: int, detail: Optional[str] = None) -> "APIError":
        """Build an error for an HTTP status code.

        Args:
            status_code: Status code of the failed response
            detail: Message to use for status codes outside the known table

        Returns:
            The classified API error
        """
        if status_code in API_ERRORS:
            message, suggestion = API_ERRORS[status_code]
        else:
            message, suggestion = detail or f"Remote service returned status {status_code}", GENERIC_SUGGESTION
        return cls(
            message,
            suggestion,
            code=status_code,
            retryable=status_code in RETRYABLE_STATUS_CODES,
        )


class TransportError(TranslatorError):
    """Network-level failure talking to the remote service."""

    retryable = True

    RESET = "reset"
    TIMEOUT = "timeout"
    REFUSED = "refused"

    _KINDS = {
        RESET: ("Connection was reset", "Check the network connection and retry"),
        TIMEOUT: ("Request timed out", "Check the network connection and retry"),
        REFUSED: ("Connection was refused", "Check that the API address is correct"),
    }

    def __init__(self, kind: str) -> None:
        message, suggestion = self._KINDS[kind]
        self.kind = kind
        super().__init__(message, suggestion)


# ----------------------
# Other errors
# ----------------------


class ConfigurationError(TranslatorError):
    message = "Invalid configuration"
    suggestion = "Check your .env file, environment variables and command-line options"


class UnexpectedError(TranslatorError):
    """Fallback for failures outside the taxonomy."""


def classify_error(error: BaseException) -> TranslatorError:
    """Map an arbitrary exception onto the error taxonomy.

    Args:
        error: The exception raised by an operation

    Returns:
        ``error`` itself if it is already classified, otherwise a new
        ``TranslatorError`` describing it
    """
    if isinstance(error, TranslatorError):
        return error

    # litellm.Timeout and APIConnectionError carry status codes too, so they
    # must be matched before the generic status code lookup.
    if isinstance(error, litellm_exceptions.Timeout):
        return TransportError(TransportError.TIMEOUT)
    if isinstance(error, litellm_exceptions.APIConnectionError):
        if _caused_by(error, ConnectionRefusedError):
            return TransportError(TransportError.REFUSED)
        return TransportError(TransportError.RESET)

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return APIError.from_status(status_code, str(error) or None)

    if isinstance(error, ConnectionResetError):
        return TransportError(TransportError.RESET)
    if isinstance(error, ConnectionRefusedError):
        return TransportError(TransportError.REFUSED)
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return TransportError(TransportError.TIMEOUT)
    if isinstance(error, FileNotFoundError):
        return InputNotFoundError()
    if isinstance(error, PermissionError):
        return FileAccessError()

    return UnexpectedError(str(error) or error.__class__.__name__)


def _caused_by(error: BaseException, error_type: type) -> bool:
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        if isinstance(current, error_type):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False
