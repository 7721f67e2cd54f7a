"""
Gemini analysis client.

Builds the archetype-coaching prompt around user text, calls Gemini and
pulls the JSON object out of the reply. Gemini frequently wraps JSON in a
```json fence or surrounds it with prose, so extraction tries the fence
first and falls back to the outermost brace-delimited span.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from .config import Settings
from .errors import ConfigurationError, LanguageModelError, MalformedResponseError, ParseError

logger = logging.getLogger(__name__)

JSON_PATTERN = re.compile(r'```json\s*([\s\S]*?)\s*```|(\{[\s\S]*\})')

ANALYSIS_KEYS = [
    'current_style',
    'what_this_looks_like',
    'predicted_narrative',
    'why_this_shift_happens',
    'actionable_tip',
]

ARCHETYPES = {
    'The Digital Observer': 'Mostly shares links or consumes content without much personal commentary.',
    'The Community Weaver': 'Focuses on replies, congratulating others, and connecting people.',
    'The Focused Advocate': 'Posts with strong opinions about specific topics to persuade or inform.',
    'The Content Creator': 'Produces original content (stories, ideas, visuals) to build a personal brand or share expertise.',
}

LINK_ONLY_MESSAGE = 'For a proper analysis, please paste the actual text content from your posts, not just a link.'

PROMPT_TEMPLATE = """You are an expert, empathetic social media analyst and coach. Your goal is to analyze a user's text and provide a friendly, insightful, and actionable analysis. Do not be robotic or overly academic.

**Step 1: Analyze the Text.**
Based on the provided text, classify the user into one of these archetypes:
{archetypes}

**Step 2: Handle Edge Cases.**
If the text is just a URL (like "tanivashraf.com"), your entire analysis should be a user-friendly instruction. Your response should be a JSON object like this:
{{ "error": "{link_only_message}" }}

**Step 3: Structure the Output.**
For a valid analysis, you MUST return ONLY a valid JSON object. Do not include any other text or markdown. The JSON object must follow this exact structure:
{{
  "current_style": "A one-sentence, friendly summary of the user's archetype.",
  "what_this_looks_like": "Provide 1-2 concrete, relatable examples of posts this person might make.",
  "predicted_narrative": "In a story-like tone, describe the user's 6-month trajectory and what new archetype they are moving towards.",
  "why_this_shift_happens": "In an empathetic tone, explain the typical motivations or feelings behind this kind of change (e.g., 'This shift often comes from a growing confidence...').",
  "actionable_tip": "Provide one small, encouraging, and actionable piece of advice for the user related to their trajectory."
}}
---
USER TEXT TO ANALYZE:
{text}
---
"""


def build_prompt(text: str) -> str:
    """Embed user text in the fixed analysis prompt."""
    archetypes = '\n'.join(f'- {name}: {description}' for name, description in ARCHETYPES.items())
    return PROMPT_TEMPLATE.format(
        archetypes=archetypes,
        link_only_message=LINK_ONLY_MESSAGE,
        text=text
    )


def extract_json(response_text: str) -> Dict[str, Any]:
    """
    Extract the JSON object from raw model output.

    Args:
        response_text: Raw text returned by Gemini

    Returns:
        The parsed JSON object

    Raises:
        ParseError: no fenced block or brace-delimited span was found
        MalformedResponseError: the match is not a valid JSON object
    """
    json_match = JSON_PATTERN.search(response_text or '')
    if not json_match:
        raise ParseError('Could not parse JSON from Gemini response.')

    payload = json_match.group(1) if json_match.group(1) is not None else json_match.group(2)
    try:
        parsed = json.loads(payload)
    except ValueError as e:
        raise MalformedResponseError(f'Gemini returned malformed JSON: {e}') from e

    if not isinstance(parsed, dict):
        raise MalformedResponseError(
            f'Gemini returned {type(parsed).__name__} instead of a JSON object'
        )
    return parsed


def _status_code(error: google_exceptions.GoogleAPICallError) -> Optional[int]:
    code = getattr(error, 'code', None)
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


class AnalysisClient:
    """Send text to Gemini and return the parsed analysis object."""

    def __init__(self, api_key: str, model_name: str = 'gemini-2.0-flash',
                 model=None, timeout: Optional[float] = None, transport: Optional[str] = None):
        if not api_key:
            raise ConfigurationError('SERVER CONFIG ERROR: GEMINI_API_KEY is not set.')
        self.model_name = model_name
        self.timeout = timeout
        if model is None:
            genai.configure(api_key=api_key, transport=transport)
            model = genai.GenerativeModel(model_name)
        self.model = model

    def generate(self, prompt: str) -> str:
        """Call Gemini and return the raw response text."""
        # retry_call owns retries; the SDK would otherwise resend 503s for up to 600s
        request_options = {'retry': None}
        if self.timeout:
            request_options['timeout'] = self.timeout
        try:
            response = self.model.generate_content(prompt, request_options=request_options)
        except google_exceptions.DeadlineExceeded as e:
            raise LanguageModelError(
                f'Gemini request timed out: {e.message}',
                status_code=_status_code(e), body=str(e.message), retryable=True
            ) from e
        except google_exceptions.GoogleAPICallError as e:
            status_code = _status_code(e)
            if status_code in (429, 503):
                message = f'Temporary Server Error: {status_code}'
            else:
                message = f'Gemini API Error (Status: {status_code}): {e.message}'
            raise LanguageModelError(message, status_code=status_code, body=str(e.message)) from e

        try:
            return response.text.strip()
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or has no parts
            raise MalformedResponseError(f'Gemini returned no text: {e}') from e

    def analyze(self, text: str) -> Dict[str, Any]:
        """Run the archetype analysis on already length-bounded text."""
        response_text = self.generate(build_prompt(text))
        logger.debug('Gemini response length: %d chars', len(response_text))
        return extract_json(response_text)


def build_analysis_client(settings: Settings) -> AnalysisClient:
    return AnalysisClient(
        settings.require('gemini_api_key'),
        model_name=settings.gemini_model,
        timeout=settings.request_timeout,
        transport=settings.gemini_transport
    )
