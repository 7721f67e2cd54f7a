"""Input normalization and link detection."""

import re
from typing import NamedTuple

from .errors import EmptyInputError

STRICT_URL_PATTERN = re.compile(
    r'^(https?://)?([a-z0-9-]+\.)+[a-z]{2,}(:\d+)?(/\S*)?$',
    re.IGNORECASE
)


class NormalizedInput(NamedTuple):
    text: str
    is_url: bool


def looks_like_url(text: str, strict: bool = False) -> bool:
    """Check whether trimmed text is a link rather than prose.

    Lenient mode treats any single token containing a dot as a link
    ("tanivashraf.com", "example.org/about"). Strict mode requires a
    hostname with a real TLD.
    """
    if not text:
        return False
    if strict:
        return bool(STRICT_URL_PATTERN.match(text))
    return not re.search(r'\s', text) and '.' in text


def normalize_text(raw, strict: bool = False) -> NormalizedInput:
    """Trim request text and classify it as plain text or URL-like."""
    if not isinstance(raw, str):
        raise EmptyInputError('Text input cannot be empty.')

    text = raw.strip()
    if not text:
        raise EmptyInputError('Text input cannot be empty.')

    return NormalizedInput(text=text, is_url=looks_like_url(text, strict=strict))


def ensure_scheme(url: str) -> str:
    """Prefix https:// onto scheme-less links before scraping."""
    url = url.strip()
    if re.match(r'^[a-z][a-z0-9+.-]*://', url, re.IGNORECASE):
        return url
    return f'https://{url}'
