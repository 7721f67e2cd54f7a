"""History store for finished analyses."""

import json
import logging
import random
import string
import time
from typing import Any, Dict, Optional

from .errors import InvalidResultError

logger = logging.getLogger(__name__)

# Gemini names the summary field current_style; older clients send current_archetype
IDENTIFYING_FIELDS = ('current_style', 'current_archetype')

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_entry_id() -> str:
    """Build an id like analysis_1718000000000_k3x9a0b."""
    suffix = ''.join(random.choices(_ID_ALPHABET, k=7))
    return f'analysis_{int(time.time() * 1000)}_{suffix}'


def validate_analysis(analysis: Any) -> Dict[str, Any]:
    if not isinstance(analysis, dict):
        raise InvalidResultError('Invalid analysis object provided.')
    if not any(analysis.get(field) for field in IDENTIFYING_FIELDS):
        raise InvalidResultError('Invalid analysis object provided.')
    return analysis


class HistoryStore:
    """
    Persist analyses under freshly generated ids.

    Retention is controlled by ttl_seconds: None keeps entries forever,
    otherwise each entry expires after that many seconds. There is no
    deduplication and no listing.
    """

    def __init__(self, client, ttl_seconds: Optional[int] = None):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def save(self, analysis: Dict[str, Any]) -> str:
        analysis = validate_analysis(analysis)
        entry_id = generate_entry_id()

        if self.ttl_seconds:
            self.client.set(entry_id, json.dumps(analysis), ex=self.ttl_seconds)
        else:
            self.client.set(entry_id, json.dumps(analysis))

        logger.info('Saved analysis %s', entry_id)
        return entry_id
