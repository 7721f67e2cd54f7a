"""
Content fetchers for link input.

Two providers are supported:
- ScrapingBee, which extracts the page body text server-side
- Browserless, which returns rendered HTML that we reduce to text here
"""

import json
import logging
import re
from typing import Optional

import requests
from bs4 import BeautifulSoup

from .config import PROVIDER_BROWSERLESS, Settings
from .errors import ConfigurationError, ScrapeError
from .normalizer import ensure_scheme

logger = logging.getLogger(__name__)

SCRAPINGBEE_URL = 'https://app.scrapingbee.com/api/v1/'
MAX_CONTENT_CHARS = 15000  # Limit to ~15k chars for AI processing
EXTRACT_RULES = json.dumps({'text': 'body'})


def _error_body(response: requests.Response) -> str:
    return response.text[:500] if response.text else ''


class ScrapingBeeFetcher:
    """Fetch page body text through the ScrapingBee API."""

    def __init__(self, api_key: str, premium_proxy: bool = False, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        if not api_key:
            raise ConfigurationError('SERVER CONFIG ERROR: SCRAPINGBEE_API_KEY is not set.')
        self.api_key = api_key
        self.premium_proxy = premium_proxy
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> str:
        params = {
            'api_key': self.api_key,
            'url': ensure_scheme(url),
            'extract_rules': EXTRACT_RULES,
        }
        if self.premium_proxy:
            params['premium_proxy'] = 'true'

        try:
            response = self.session.get(SCRAPINGBEE_URL, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise ScrapeError('Scraping request timed out', retryable=True) from e
        except requests.exceptions.RequestException as e:
            raise ScrapeError(f'Scraping request failed: {e}', retryable=True) from e

        if not response.ok:
            body = _error_body(response)
            if response.status_code in (429, 503):
                message = f'Temporary Scraping Error: {response.status_code}'
            else:
                message = f'Scraping service failed (Status: {response.status_code}). Response: {body}'
            raise ScrapeError(message, status_code=response.status_code, body=body)

        try:
            data = response.json()
        except ValueError as e:
            raise ScrapeError('Scraping service returned invalid JSON',
                              status_code=response.status_code, body=_error_body(response),
                              retryable=False) from e

        text = data.get('text') if isinstance(data, dict) else None
        if not text or not str(text).strip():
            raise ScrapeError('Scraping service returned no body text',
                              status_code=response.status_code, retryable=False)

        return str(text)[:MAX_CONTENT_CHARS]


def extract_main_content(html: str) -> str:
    """Extract the main text content from rendered HTML."""
    if not html:
        return ''

    soup = BeautifulSoup(html, 'html.parser')

    # Remove script, style, nav, footer, header elements
    for element in soup.find_all(['script', 'style', 'nav', 'footer', 'header', 'aside', 'noscript']):
        element.decompose()

    main_content = (
        soup.find('article') or
        soup.find('main') or
        soup.find('body') or
        soup
    )

    text = main_content.get_text(separator=' ', strip=True)
    text = re.sub(r'\s+', ' ', text).strip()
    return text[:MAX_CONTENT_CHARS]


class BrowserlessFetcher:
    """Fetch a page with a hosted headless browser and reduce it to text."""

    def __init__(self, token: str, endpoint: str, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        if not token:
            raise ConfigurationError('SERVER CONFIG ERROR: BROWSERLESS_TOKEN is not set.')
        self.token = token
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> str:
        try:
            response = self.session.post(
                self.endpoint,
                params={'token': self.token},
                json={'url': ensure_scheme(url)},
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise ScrapeError('Headless browser request timed out', retryable=True) from e
        except requests.exceptions.RequestException as e:
            raise ScrapeError(f'Headless browser request failed: {e}', retryable=True) from e

        if not response.ok:
            body = _error_body(response)
            raise ScrapeError(
                f'Headless browser failed (Status: {response.status_code}). Response: {body}',
                status_code=response.status_code, body=body
            )

        text = extract_main_content(response.text)
        if not text:
            raise ScrapeError('Headless browser returned no body text',
                              status_code=response.status_code, retryable=False)
        return text


def build_fetcher(settings: Settings):
    """Create the fetcher selected by SCRAPER_PROVIDER."""
    if settings.scraper_provider == PROVIDER_BROWSERLESS:
        logger.info('Using Browserless for content fetching')
        return BrowserlessFetcher(
            settings.require('browserless_token'),
            settings.browserless_url,
            timeout=settings.request_timeout
        )

    return ScrapingBeeFetcher(
        settings.require('scrapingbee_api_key'),
        premium_proxy=settings.scrapingbee_premium_proxy,
        timeout=settings.request_timeout
    )
