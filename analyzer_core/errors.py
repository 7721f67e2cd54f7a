"""
Error types for the analyzer Cloud Functions.

Classification:
- ConfigurationError: missing credential or bad setting (fatal, never retried)
- InputError: caller sent something unusable (HTTP 400)
- UpstreamError: scraping or Gemini returned a non-success status
  (retryable for 429/503 only)
- ParseError / MalformedResponseError: model output is not a JSON object
- RetryExhaustedError: every attempt failed, last error kept as the cause
"""

from typing import Optional

RETRYABLE_STATUS_CODES = (429, 503)


class AnalyzerError(Exception):
    """Base class for all analyzer errors."""

    status = 500

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class ConfigurationError(AnalyzerError):
    """Raised when a required environment setting is missing or invalid."""


class InputError(AnalyzerError):
    """Raised when request input cannot be processed."""

    status = 400


class EmptyInputError(InputError):
    """Raised when the text to analyze is empty after trimming."""


class MissingParameterError(InputError):
    """Raised when a required request parameter is absent."""


class UrlInputError(InputError):
    """Raised when a link is submitted to a handler that only accepts text."""


class InvalidResultError(InputError):
    """Raised when an analysis object handed to the history store is unusable."""


class UpstreamError(AnalyzerError):
    """Raised when an external API answers with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 body: Optional[str] = None, retryable: Optional[bool] = None):
        if retryable is None:
            retryable = status_code in RETRYABLE_STATUS_CODES
        super().__init__(message, retryable=retryable)
        self.status_code = status_code
        self.body = body


class ScrapeError(UpstreamError):
    """Raised when the scraping service fails."""


class LanguageModelError(UpstreamError):
    """Raised when the Gemini API fails."""


class ParseError(AnalyzerError):
    """Raised when no JSON payload can be located in the model output."""


class MalformedResponseError(AnalyzerError):
    """Raised when the located payload is not a valid JSON object."""


class RetryExhaustedError(AnalyzerError):
    """Raised when an operation failed on every attempt."""

    def __init__(self, message: str, attempts: int, last_error: Exception):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error
