"""Shared components for the social narrative analyzer Cloud Functions."""

from .config import (
    URL_MODE_REJECT,
    URL_MODE_SCRAPE,
    Settings,
    load_settings,
    configure_logging,
)

from .errors import (
    AnalyzerError,
    ConfigurationError,
    InputError,
    EmptyInputError,
    MissingParameterError,
    UrlInputError,
    InvalidResultError,
    UpstreamError,
    ScrapeError,
    LanguageModelError,
    ParseError,
    MalformedResponseError,
    RetryExhaustedError,
)

from .normalizer import NormalizedInput, normalize_text, looks_like_url
from .retry import retry_call
from .pipeline import AnalysisPipeline, build_pipeline

__all__ = [
    # Configuration
    'URL_MODE_REJECT',
    'URL_MODE_SCRAPE',
    'Settings',
    'load_settings',
    'configure_logging',
    # Errors
    'AnalyzerError',
    'ConfigurationError',
    'InputError',
    'EmptyInputError',
    'MissingParameterError',
    'UrlInputError',
    'InvalidResultError',
    'UpstreamError',
    'ScrapeError',
    'LanguageModelError',
    'ParseError',
    'MalformedResponseError',
    'RetryExhaustedError',
    # Pipeline
    'NormalizedInput',
    'normalize_text',
    'looks_like_url',
    'retry_call',
    'AnalysisPipeline',
    'build_pipeline',
]
