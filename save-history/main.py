"""
Save History Cloud Function

Persists a finished analysis in the key-value store and returns its id.
Entries never expire unless HISTORY_TTL_DAYS is set.
"""

import functions_framework
import logging
import os
import sys

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from analyzer_core.cache import build_redis_client
from analyzer_core.config import configure_logging, load_settings
from analyzer_core.errors import ConfigurationError, InputError
from analyzer_core.history import HistoryStore, validate_analysis
from analyzer_core.http_utils import json_response, preflight_response

configure_logging()
logger = logging.getLogger(__name__)

_store = None


def get_store() -> HistoryStore:
    global _store
    if _store is None:
        settings = load_settings()
        client = build_redis_client(settings)
        if client is None:
            raise ConfigurationError('SERVER CONFIG ERROR: KV_URL or REDIS_URL is not set.')
        _store = HistoryStore(client, ttl_seconds=settings.history_ttl_seconds)
    return _store


@functions_framework.http
def save_history(request):
    """
    Main Cloud Function entry point.

    Expected JSON input:
    {
        "analysis": {"current_style": "...", "predicted_narrative": "..."}
    }
    """
    if request.method == 'OPTIONS':
        return preflight_response('POST')

    if request.method != 'POST':
        return json_response({'message': 'Method Not Allowed'}, 405)

    try:
        request_json = request.get_json(silent=True) or {}
        analysis = request_json.get('analysis') if isinstance(request_json, dict) else None

        validate_analysis(analysis)
        entry_id = get_store().save(analysis)
        return json_response({'message': 'Analysis saved successfully', 'id': entry_id})

    except InputError as e:
        return json_response({'message': e.message}, 400)

    except Exception:
        logger.exception('KV Store Error')
        return json_response({'message': 'Failed to save analysis.'}, 500)
