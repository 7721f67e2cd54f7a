"""Response helpers shared by the HTTP entry points."""

import json
import traceback
from typing import Any, Dict, Tuple

from .config import stack_traces_enabled

CORS_HEADERS = {'Access-Control-Allow-Origin': '*'}


def preflight_response(methods: str) -> Tuple[str, int, Dict[str, str]]:
    """Answer a CORS preflight request."""
    headers = {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Methods': methods,
        'Access-Control-Allow-Headers': 'Content-Type',
        'Access-Control-Max-Age': '3600'
    }
    return ('', 204, headers)


def json_response(body: Any, status: int = 200) -> Tuple[str, int, Dict[str, str]]:
    headers = dict(CORS_HEADERS)
    headers['Content-Type'] = 'application/json'
    return (json.dumps(body), status, headers)


def debug_info(error: Exception) -> Dict[str, str]:
    """Describe an error for the debug_info field of a 500 response."""
    info = {'message': getattr(error, 'message', None) or str(error)}
    if stack_traces_enabled():
        info['stack'] = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
    return info
