"""
Configuration for the analyzer Cloud Functions.

Settings are read from the environment once per process and passed into each
component at construction time. Credentials are only checked by the component
that needs them, so a function that never calls Gemini does not need a key.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

URL_MODE_REJECT = 'reject'
URL_MODE_SCRAPE = 'scrape'
URL_MODES = (URL_MODE_REJECT, URL_MODE_SCRAPE)

PROVIDER_SCRAPINGBEE = 'scrapingbee'
PROVIDER_BROWSERLESS = 'browserless'
SCRAPER_PROVIDERS = (PROVIDER_SCRAPINGBEE, PROVIDER_BROWSERLESS)

GEMINI_TRANSPORTS = ('grpc', 'rest')

DEFAULT_GEMINI_MODEL = 'gemini-2.0-flash'
DEFAULT_BROWSERLESS_URL = 'https://chrome.browserless.io/content'
DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60

_TRUE_VALUES = ('1', 'true', 'yes', 'on')

_logging_configured = False


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(key)
    if value is None or value.strip() == '':
        return default
    return value.strip()


def _get_int_env(key: str, default: Optional[int] = None) -> Optional[int]:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f'Environment variable {key} must be an integer') from exc


def _get_float_env(key: str, default: float) -> float:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f'Environment variable {key} must be numeric') from exc


def _get_bool_env(key: str, default: bool = False) -> bool:
    value = _get_env(key)
    if value is None:
        return default
    return value.lower() in _TRUE_VALUES


def _get_choice_env(key: str, choices: tuple, default: str) -> str:
    value = (_get_env(key) or default).lower()
    if value not in choices:
        raise ConfigurationError(
            f"Environment variable {key} must be one of {', '.join(choices)} (got '{value}')"
        )
    return value


def _get_optional_choice_env(key: str, choices: tuple) -> Optional[str]:
    if _get_env(key) is None:
        return None
    return _get_choice_env(key, choices, choices[0])


@dataclass(frozen=True)
class Settings:
    """Process-wide settings loaded from environment variables."""

    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_transport: Optional[str] = None
    scraper_provider: str = PROVIDER_SCRAPINGBEE
    scrapingbee_api_key: Optional[str] = None
    scrapingbee_premium_proxy: bool = False
    browserless_token: Optional[str] = None
    browserless_url: str = DEFAULT_BROWSERLESS_URL
    redis_url: Optional[str] = None
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    history_ttl_days: Optional[int] = None
    max_retries: int = 3
    retry_base_delay: float = 1.0
    request_timeout: float = 30.0
    analyze_url_mode: str = URL_MODE_REJECT
    strict_url_detection: bool = False

    def require(self, name: str) -> str:
        """Return a setting, raising ConfigurationError if it is not set."""
        value = getattr(self, name)
        if not value:
            raise ConfigurationError(f'SERVER CONFIG ERROR: {name.upper()} is not set.')
        return value

    @property
    def history_ttl_seconds(self) -> Optional[int]:
        if not self.history_ttl_days:
            return None
        return self.history_ttl_days * 24 * 60 * 60


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    max_retries = _get_int_env('MAX_RETRIES', 3)
    if max_retries < 0:
        raise ConfigurationError('Environment variable MAX_RETRIES must not be negative')

    history_ttl_days = _get_int_env('HISTORY_TTL_DAYS')
    if history_ttl_days is not None and history_ttl_days <= 0:
        raise ConfigurationError('Environment variable HISTORY_TTL_DAYS must be positive')

    return Settings(
        gemini_api_key=_get_env('GEMINI_API_KEY'),
        gemini_model=_get_env('GEMINI_MODEL', DEFAULT_GEMINI_MODEL),
        gemini_transport=_get_optional_choice_env('GEMINI_TRANSPORT', GEMINI_TRANSPORTS),
        scraper_provider=_get_choice_env('SCRAPER_PROVIDER', SCRAPER_PROVIDERS, PROVIDER_SCRAPINGBEE),
        scrapingbee_api_key=_get_env('SCRAPINGBEE_API_KEY'),
        scrapingbee_premium_proxy=_get_bool_env('SCRAPINGBEE_PREMIUM_PROXY'),
        browserless_token=_get_env('BROWSERLESS_TOKEN'),
        browserless_url=_get_env('BROWSERLESS_URL', DEFAULT_BROWSERLESS_URL),
        # Vercel KV exposes KV_URL, plain Redis / Upstash use REDIS_URL
        redis_url=_get_env('KV_URL') or _get_env('REDIS_URL'),
        cache_ttl_seconds=_get_int_env('CACHE_TTL_SECONDS', DEFAULT_CACHE_TTL_SECONDS),
        history_ttl_days=history_ttl_days,
        max_retries=max_retries,
        retry_base_delay=_get_float_env('RETRY_BASE_DELAY_SECONDS', 1.0),
        request_timeout=_get_float_env('REQUEST_TIMEOUT_SECONDS', 30.0),
        analyze_url_mode=_get_choice_env('ANALYZE_URL_MODE', URL_MODES, URL_MODE_REJECT),
        strict_url_detection=_get_bool_env('STRICT_URL_DETECTION'),
    )


def stack_traces_enabled() -> bool:
    """Whether error responses may include a traceback.

    Read straight from the environment so it still works when load_settings()
    itself is what failed.
    """
    return _get_bool_env('EXPOSE_STACK_TRACES')


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once per process."""
    global _logging_configured
    if _logging_configured:
        return

    level_name = (level or _get_env('LOG_LEVEL', 'INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    # Keep connection chatter out of function logs
    for noisy in ('urllib3', 'google.auth', 'grpc'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    _logging_configured = True
