"""
Analyze Cloud Function

Classifies a user's social media writing into a behavioral archetype and
predicts where their narrative is heading.

Responsibilities:
- Validate the submitted text
- Reject or scrape link input (ANALYZE_URL_MODE)
- Run the Gemini analysis with retries
- Return the analysis object unchanged

Does NOT:
- Cache results (no stable subject name to key on)
- Save history (save-history's job)
"""

import functions_framework
import logging
import os
import sys

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from analyzer_core.config import configure_logging, load_settings
from analyzer_core.errors import InputError
from analyzer_core.http_utils import debug_info, json_response, preflight_response
from analyzer_core.pipeline import build_pipeline

configure_logging()
logger = logging.getLogger(__name__)

# Built on first request so a missing key surfaces as a 500, not a failed deploy
_pipeline = None


def get_pipeline():
    global _pipeline
    if _pipeline is None:
        settings = load_settings()
        _pipeline = build_pipeline(settings, url_mode=settings.analyze_url_mode)
    return _pipeline


@functions_framework.http
def analyze(request):
    """
    Main Cloud Function entry point.

    Expected JSON input:
    {
        "text": "I love connecting with people and celebrating their wins!"
    }
    """
    if request.method == 'OPTIONS':
        return preflight_response('POST')

    if request.method != 'POST':
        return json_response({'message': 'Method Not Allowed'}, 405)

    try:
        request_json = request.get_json(silent=True) or {}
        text = request_json.get('text') if isinstance(request_json, dict) else None

        if not isinstance(text, str) or not text.strip():
            return json_response({'message': 'Text input cannot be empty.'}, 400)

        analysis_result = get_pipeline().run(text=text)

        # The model answers {"error": ...} when it was handed a bare link
        if analysis_result.get('error'):
            return json_response({'message': analysis_result['error']}, 400)

        return json_response(analysis_result)

    except InputError as e:
        return json_response({'message': e.message}, 400)

    except Exception as e:
        logger.exception('[FATAL] User analysis failed')
        return json_response({
            'message': 'An internal server error occurred during analysis.',
            'debug_info': debug_info(e)
        }, 500)
