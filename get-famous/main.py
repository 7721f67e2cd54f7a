"""
Get Famous Cloud Function

Scrapes a public figure's page and runs the archetype analysis on it.

Responsibilities:
- Validate the url and name query parameters
- Serve a cached analysis for the same name when one exists (24h TTL)
- Scrape the page, analyze it with retries, cache the fresh result

Does NOT:
- Invalidate the cache when the source page changes
"""

import functions_framework
import logging
import os
import sys

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from analyzer_core.config import URL_MODE_SCRAPE, configure_logging, load_settings
from analyzer_core.errors import InputError
from analyzer_core.http_utils import debug_info, json_response, preflight_response
from analyzer_core.pipeline import build_pipeline

configure_logging()
logger = logging.getLogger(__name__)

_pipeline = None


def get_pipeline():
    global _pipeline
    if _pipeline is None:
        settings = load_settings()
        _pipeline = build_pipeline(settings, url_mode=URL_MODE_SCRAPE, use_cache=True)
    return _pipeline


@functions_framework.http
def get_famous(request):
    """
    Main Cloud Function entry point.

    Expected query string:
        ?url=https://example.com/about&name=Jane Doe
    """
    if request.method == 'OPTIONS':
        return preflight_response('GET')

    if request.method != 'GET':
        return json_response({'error': 'Method Not Allowed'}, 405)

    url = (request.args.get('url') or '').strip()
    name = (request.args.get('name') or '').strip()

    if not url or not name:
        return json_response({'error': 'URL and name parameters are required.'}, 400)

    try:
        analysis = get_pipeline().run(url=url, subject=name)

        # Scraped page had no usable prose; the model asks for pasted text instead
        if analysis.get('error'):
            return json_response({'error': analysis['error']}, 400)

        return json_response({'name': name, 'analysis': analysis})

    except InputError as e:
        return json_response({'error': e.message}, 400)

    except Exception as e:
        logger.exception('[FATAL] Processing %s failed after retries', name)
        return json_response({
            'name': name,
            'error': 'An internal server error occurred after multiple attempts.',
            'debug_info': debug_info(e)
        }, 500)
