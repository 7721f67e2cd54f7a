"""
Shared pytest fixtures for the social narrative analyzer tests.
"""

import pytest
import sys
import importlib.util
from pathlib import Path

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load Cloud Function modules with unique names at module load time
_analyze_module = _load_module_from_path(
    'analyze_main',
    PROJECT_ROOT / 'analyze' / 'main.py'
)

_get_famous_module = _load_module_from_path(
    'get_famous_main',
    PROJECT_ROOT / 'get-famous' / 'main.py'
)

_save_history_module = _load_module_from_path(
    'save_history_main',
    PROJECT_ROOT / 'save-history' / 'main.py'
)

from analyzer_core.errors import LanguageModelError  # noqa: E402
from analyzer_core.pipeline import AnalysisPipeline  # noqa: E402


# ============================================================================
# Test doubles
# ============================================================================

class FakeRedis:
    """In-memory stand-in for the parts of redis.Redis we use."""

    def __init__(self):
        self.store = {}
        self.expirations = {}
        self.get_calls = 0
        self.set_calls = 0

    def get(self, key):
        self.get_calls += 1
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.set_calls += 1
        self.store[key] = value
        self.expirations[key] = ex
        return True


class FakeFetcher:
    """Content fetcher that returns canned text and records URLs."""

    def __init__(self, text="I share wins from my team every Friday and cheer on other founders."):
        self.text = text
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        return self.text


class FakeAnalysisClient:
    """Analysis client that plays back a sequence of results or errors."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [dict(SAMPLE_ANALYSIS)]
        self.calls = []

    def analyze(self, text):
        self.calls.append(text)
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


SAMPLE_ANALYSIS = {
    "current_style": "You're a Community Weaver who lights up when others succeed.",
    "what_this_looks_like": "Congratulating a colleague on a promotion; tagging two people who should meet.",
    "predicted_narrative": "Over six months you start hosting conversations of your own.",
    "why_this_shift_happens": "This shift often comes from a growing confidence in your own voice.",
    "actionable_tip": "Share one lesson you learned from someone you celebrated this week.",
}


@pytest.fixture
def sample_analysis():
    return dict(SAMPLE_ANALYSIS)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def fake_client_factory():
    """Factory for FakeAnalysisClient instances."""
    return FakeAnalysisClient


@pytest.fixture
def retryable_model_error():
    return LanguageModelError('Temporary Server Error: 503', status_code=503)


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays."""
    class RecordingSleep:
        def __init__(self):
            self.delays = []

        def __call__(self, seconds):
            self.delays.append(seconds)

    return RecordingSleep()


@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, json_data=None, method='POST', args=None):
            self._json = json_data
            self.method = method
            self.args = args or {}
            self.data = b''

        def get_json(self, force=False, silent=False):
            return self._json

    return MockRequest


# ============================================================================
# Cloud Function fixtures
# ============================================================================

@pytest.fixture
def analyze_module(monkeypatch):
    """analyze/main.py with its pipeline cache cleared after the test."""
    monkeypatch.setattr(_analyze_module, '_pipeline', None)
    return _analyze_module


@pytest.fixture
def get_famous_module(monkeypatch):
    monkeypatch.setattr(_get_famous_module, '_pipeline', None)
    return _get_famous_module


@pytest.fixture
def save_history_module(monkeypatch):
    monkeypatch.setattr(_save_history_module, '_store', None)
    return _save_history_module


@pytest.fixture
def install_pipeline(monkeypatch, no_sleep):
    """Install an AnalysisPipeline built from fakes into a handler module."""
    def _install(module, client, **kwargs):
        kwargs.setdefault('sleep', no_sleep)
        kwargs.setdefault('retry_delay', 0.01)
        pipeline = AnalysisPipeline(client, **kwargs)
        monkeypatch.setattr(module, '_pipeline', pipeline)
        return pipeline

    return _install


@pytest.fixture
def clean_env(monkeypatch):
    """Remove analyzer environment variables for config tests."""
    for key in (
        'GEMINI_API_KEY', 'GEMINI_MODEL', 'SCRAPER_PROVIDER', 'SCRAPINGBEE_API_KEY',
        'SCRAPINGBEE_PREMIUM_PROXY', 'BROWSERLESS_TOKEN', 'BROWSERLESS_URL',
        'KV_URL', 'REDIS_URL', 'CACHE_TTL_SECONDS', 'HISTORY_TTL_DAYS', 'MAX_RETRIES',
        'RETRY_BASE_DELAY_SECONDS', 'REQUEST_TIMEOUT_SECONDS', 'ANALYZE_URL_MODE',
        'STRICT_URL_DETECTION', 'EXPOSE_STACK_TRACES', 'LOG_LEVEL', 'GEMINI_TRANSPORT',
    ):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch
