"""
Analysis pipeline shared by the HTTP handlers.

normalize -> (cache lookup) -> fetch if the input is a link -> analyze
-> (cache store), with fetch + analyze wrapped in retry_call.

Behavior flags:
- url_mode: 'reject' turns link input into a 400, 'scrape' fetches it
- cache: when set, results are looked up and stored by subject name
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from .analysis_client import build_analysis_client
from .cache import ResultCache, build_redis_client
from .config import URL_MODE_REJECT, URL_MODE_SCRAPE, URL_MODES, Settings
from .errors import ConfigurationError, MissingParameterError, UrlInputError
from .fetcher import build_fetcher
from .normalizer import normalize_text
from .retry import retry_call

logger = logging.getLogger(__name__)

URL_REJECTED_MESSAGE = (
    'For a proper analysis, please paste the actual text content from your posts, not just a link.'
)


class AnalysisPipeline:

    def __init__(self, client=None, fetcher=None, cache: Optional[ResultCache] = None,
                 url_mode: str = URL_MODE_REJECT, strict_urls: bool = False,
                 retries: int = 3, retry_delay: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep,
                 client_factory: Optional[Callable[[], Any]] = None,
                 fetcher_factory: Optional[Callable[[], Any]] = None):
        if url_mode not in URL_MODES:
            raise ConfigurationError(f'Unknown URL mode: {url_mode}')
        self.client = client
        self.fetcher = fetcher
        self.cache = cache
        self.url_mode = url_mode
        self.strict_urls = strict_urls
        self.retries = retries
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.client_factory = client_factory
        self.fetcher_factory = fetcher_factory

    def _get_client(self):
        # Built on first miss so cache hits need no model credentials
        if self.client is None:
            if self.client_factory is None:
                raise ConfigurationError('SERVER CONFIG ERROR: no analysis client is configured.')
            self.client = self.client_factory()
        return self.client

    def _get_fetcher(self):
        if self.fetcher is None:
            if self.fetcher_factory is None:
                raise ConfigurationError('SERVER CONFIG ERROR: no content fetcher is configured.')
            self.fetcher = self.fetcher_factory()
        return self.fetcher

    def _resolve_input(self, text, url):
        """Return (content, url) with exactly one of them set."""
        if url is not None:
            url = url.strip() if isinstance(url, str) else ''
            if not url:
                raise MissingParameterError('URL and name parameters are required.')
            return None, url

        normalized = normalize_text(text, strict=self.strict_urls)
        if not normalized.is_url:
            return normalized.text, None

        if self.url_mode == URL_MODE_REJECT:
            raise UrlInputError(URL_REJECTED_MESSAGE)
        return None, normalized.text

    def _fetch_and_analyze(self, content: Optional[str], url: Optional[str]) -> Dict[str, Any]:
        if url is not None:
            content = self._get_fetcher().fetch(url)
        return self._get_client().analyze(content)

    def run(self, text: Optional[str] = None, url: Optional[str] = None,
            subject: Optional[str] = None) -> Dict[str, Any]:
        """
        Analyze text, or the content behind a link.

        Args:
            text: Raw user text; links inside it follow url_mode
            url: Link to scrape directly (takes precedence over text)
            subject: Display name used as the cache key

        Returns:
            The analysis object produced by the model. It may carry an
            'error' key when the model declined the input.
        """
        content, url = self._resolve_input(text, url)

        use_cache = self.cache is not None and bool(subject and subject.strip())
        if use_cache:
            cached = self.cache.get(subject)
            if cached is not None:
                return cached

        result = retry_call(
            lambda: self._fetch_and_analyze(content, url),
            retries=self.retries,
            delay=self.retry_delay,
            sleep=self.sleep
        )

        if use_cache:
            self.cache.set(subject, result)
        return result


def build_pipeline(settings: Settings, url_mode: str, use_cache: bool = False) -> AnalysisPipeline:
    """
    Wire a pipeline from settings.

    The Gemini client and the fetcher are built on first use, so a cached
    result is served even when their credentials are missing. A missing
    credential surfaces as ConfigurationError on the first cache miss.
    """
    fetcher_factory = None
    if url_mode == URL_MODE_SCRAPE:
        fetcher_factory = lambda: build_fetcher(settings)  # noqa: E731

    cache = None
    if use_cache:
        redis_client = build_redis_client(settings)
        if redis_client is None:
            logger.warning('No KV_URL or REDIS_URL configured, result caching disabled')
        else:
            cache = ResultCache(redis_client, ttl_seconds=settings.cache_ttl_seconds)

    return AnalysisPipeline(
        client_factory=lambda: build_analysis_client(settings),
        fetcher_factory=fetcher_factory,
        cache=cache,
        url_mode=url_mode,
        strict_urls=settings.strict_url_detection,
        retries=settings.max_retries,
        retry_delay=settings.retry_base_delay
    )
