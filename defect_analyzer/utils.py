"""
Common utility functions used across the codebase.
Consolidates small text helpers shared by the parsers, agent and reporters.
"""

import re
import json
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


def node_text(element) -> str:
    """
    Get the trimmed text content of a BeautifulSoup element.

    Mirrors a DOM textContent: text of all descendants concatenated without
    separators, then stripped.
    """
    if element is None:
        return ''
    return element.get_text().strip()


def class_string(element) -> str:
    """
    Get the class attribute of an element as a single lowercase string.

    BeautifulSoup exposes multi-valued class attributes as lists, so tokens
    are joined back with spaces.
    """
    if element is None:
        return ''
    classes = element.get('class') or []
    if isinstance(classes, str):
        return classes.lower()
    return ' '.join(classes).lower()


def first_line(text: str) -> str:
    """Return the first line of text (the whole text if it has no newline)"""
    if not text:
        return ''
    return text.split('\n')[0]


def truncate(text: Optional[str], limit: int, suffix: str = '') -> str:
    """Truncate text to limit characters, appending suffix when something was cut"""
    if not text:
        return ''
    if len(text) <= limit:
        return text
    return text[:limit] + suffix


def parse_leading_float(text: str) -> float:
    """
    Parse a duration-like string into float seconds.

    All characters except digits and dots are stripped, then the leading
    numeric portion is converted.

    Examples:
    - "12.5s" -> 12.5
    - "1.2.3" -> 1.2
    - "abc" -> 0.0
    """
    cleaned = re.sub(r'[^0-9.]', '', text or '')
    match = re.match(r'\d*\.?\d+', cleaned)
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def format_duration(total_seconds: float) -> str:
    """Format total seconds as '1.5m' above one minute, otherwise '12.0s'"""
    if total_seconds > 60:
        return f"{total_seconds / 60:.1f}m"
    return f"{total_seconds:.1f}s"


def extract_json_text(response: str) -> str:
    """
    Extract the JSON payload from an LLM response.

    LLMs sometimes wrap JSON in markdown code fences or surround it with
    prose. Tries, in order:
    1. Contents of the first ```json ... ``` (or bare ```) block
    2. The outermost {...} span of the text
    3. The stripped response as-is
    """
    if not response:
        return ''
    response = response.strip()

    fence_match = re.search(r'```(?:json)?\s*([\s\S]*?)```', response)
    if fence_match:
        return fence_match.group(1).strip()

    start = response.find('{')
    end = response.rfind('}')
    if start != -1 and end > start:
        return response[start:end + 1]

    return response


def load_json_object(response: str) -> Optional[dict]:
    """Parse an LLM response into a dict, or None if it isn't a JSON object"""
    json_text = extract_json_text(response)
    try:
        data = json.loads(json_text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Failed to parse JSON response: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Expected a JSON object but got {type(data).__name__}")
        return None
    return data


def string_list(value) -> List[str]:
    """Coerce a loosely-typed JSON value into a list of non-empty strings"""
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]
