"""Tests for error classification."""

import pytest
from litellm import exceptions as litellm_exceptions

from transkit.core.errors import (
    API_ERRORS,
    APIError,
    EmptyFileError,
    FileAccessError,
    InputNotFoundError,
    TransportError,
    TranslatorError,
    UnexpectedError,
    UnsupportedLanguageError,
    WriteFailureError,
    classify_error,
)


def test_error_defaults():
    """Test that every error has a message and a suggestion."""
    error = EmptyFileError()
    assert error.message == "File is empty"
    assert error.suggestion
    assert not error.retryable
    assert str(error) == error.message


def test_error_overrides():
    """Test message, suggestion and retryable overrides."""
    error = EmptyFileError("custom", "do this", retryable=True)
    assert error.describe() == "custom (suggestion: do this)"
    assert error.retryable


def test_classified_errors_pass_through():
    """Test that taxonomy errors are returned unchanged."""
    error = InputNotFoundError()
    assert classify_error(error) is error


@pytest.mark.parametrize("status_code", sorted(API_ERRORS))
def test_api_status_codes(status_code):
    """Test the status code table."""
    error = APIError.from_status(status_code)
    assert error.message == API_ERRORS[status_code][0]
    assert error.suggestion == API_ERRORS[status_code][1]
    assert error.code == status_code
    assert error.retryable == (status_code in {429, 500, 503})


def test_rate_limit_strings():
    """Test the rate limit message and suggestion text."""
    error = APIError.from_status(429)
    assert error.message == "Request rate (TPM or RPM) reached the limit"
    assert error.suggestion == "Lower the request frequency or increase the interval between concurrent requests"


@pytest.mark.parametrize(
    "error,message,suggestion",
    [
        (EmptyFileError(), "File is empty", "Check the file content or use the --ignore-empty option to ignore empty files"),
        (WriteFailureError(), "Failed to write file", "Check the output directory permissions and disk space"),
        (
            UnsupportedLanguageError(),
            "Unsupported language",
            "Use a supported language code; use --list-languages to view the supported languages",
        ),
        (TransportError(TransportError.REFUSED), "Connection was refused", "Check that the API address is correct"),
    ],
)
def test_fixed_error_strings(error, message, suggestion):
    """Test message and suggestion text of fixed error kinds."""
    assert error.message == message
    assert error.suggestion == suggestion


def test_unknown_status_code():
    """Test status codes outside the table."""
    error = APIError.from_status(418, "teapot")
    assert error.message == "teapot"
    assert error.code == 418
    assert not error.retryable


def test_classify_status_code_attribute():
    """Test exceptions carrying a status code."""

    class FakeHTTPError(Exception):
        status_code = 429

    error = classify_error(FakeHTTPError("slow down"))
    assert isinstance(error, APIError)
    assert error.code == 429
    assert error.retryable


@pytest.mark.parametrize(
    "exception,kind",
    [
        (ConnectionResetError(), TransportError.RESET),
        (ConnectionRefusedError(), TransportError.REFUSED),
        (TimeoutError(), TransportError.TIMEOUT),
    ],
)
def test_classify_transport_errors(exception, kind):
    """Test network errors map to retryable transport errors."""
    error = classify_error(exception)
    assert isinstance(error, TransportError)
    assert error.kind == kind
    assert error.retryable


def test_classify_litellm_timeout():
    """Test LiteLLM timeouts."""
    exception = litellm_exceptions.Timeout(message="timed out", model="gpt", llm_provider="openai")
    error = classify_error(exception)
    assert isinstance(error, TransportError)
    assert error.kind == TransportError.TIMEOUT


def test_classify_litellm_connection_refused():
    """Test LiteLLM connection errors caused by a refused connection."""
    exception = litellm_exceptions.APIConnectionError(
        message="connection failed",
        llm_provider="openai",
        model="gpt",
    )
    exception.__cause__ = ConnectionRefusedError()
    error = classify_error(exception)
    assert error.kind == TransportError.REFUSED


def test_classify_litellm_status_error():
    """Test LiteLLM errors with HTTP status codes."""
    exception = litellm_exceptions.RateLimitError(
        message="rate limited", llm_provider="openai", model="gpt"
    )
    error = classify_error(exception)
    assert isinstance(error, APIError)
    assert error.code == 429
    assert error.retryable


def test_classify_file_errors():
    """Test filesystem errors."""
    assert isinstance(classify_error(FileNotFoundError()), InputNotFoundError)
    assert isinstance(classify_error(PermissionError()), FileAccessError)


def test_classify_unknown_error():
    """Test the fallback for anything else."""
    error = classify_error(ValueError("boom"))
    assert isinstance(error, UnexpectedError)
    assert isinstance(error, TranslatorError)
    assert error.message == "boom"
    assert not error.retryable
