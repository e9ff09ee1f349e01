"""
Per-field extractors for a single test case node.

Each extractor walks an ordered list of candidate selectors and takes the
first one yielding non-empty trimmed text (first-match-wins, not best-match).
Extraction misses are never errors: every field has a documented default.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .models import Screenshot
from ..utils import node_text, first_line, truncate, parse_leading_float

logger = logging.getLogger(__name__)

NAME_SELECTORS = ['.test-name', '.name', 'td:first-child', 'h5', '.card-title', '.test-title', 'a']
CLASS_NAME_SELECTORS = ['.class-name', '.category', '.test-class', '.package']
DURATION_SELECTOR = '.duration, .time, [class*="time"], .test-time'
DETAIL_SELECTORS = ['.exception', '.error', '.stacktrace', '.stack-trace', 'pre', 'code', '.log', '.step-details']
STEP_SELECTORS = ['.step', '.test-step', '.log-step', '.step-name', '.step-details', '.node-step', 'li.step']
STEP_LOG_SELECTORS = ['.log', '.test-log', '[class*="step"]']
IMAGE_SELECTORS = ['img[src^="data:image"]', 'img.screenshot', '.screenshot img', '.test-img img', '.media img']
SCREENSHOT_LINK_SELECTOR = 'a[href*="screenshot"], a[href*="image"], .screenshot-link'

DEFAULT_CLASS_NAME = 'Test Suite'
NAME_FALLBACK_LIMIT = 100

STACK_TRACE_TOKENS = ('Exception', 'Error', 'at ')
ERROR_MESSAGE_TOKENS = ('Assert', 'Expected', 'Error:')
IMAGE_LINK_EXTENSIONS = ('.png', '.jpg', '.jpeg')

# (min exclusive, max exclusive) text length accepted as a reproduction step
STEP_LENGTH_BAND = (5, 500)
STEP_LOG_LENGTH_BAND = (5, 300)

DATA_URI_PATTERN = re.compile(r'data:([^;]+);base64,(.+)', re.DOTALL)


@dataclass
class FailureDetails:
    """Error message, stack trace and log lines collected from a node"""
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None
    logs: List[str] = field(default_factory=list)


def first_match_text(node, selectors: Sequence[str]) -> Optional[str]:
    """
    Return the trimmed text of the first selector that yields non-empty text.

    Args:
        node: BeautifulSoup element to search within
        selectors: CSS selectors in priority order

    Returns:
        Trimmed text, or None if no selector matched
    """
    for selector in selectors:
        text = node_text(node.select_one(selector))
        if text:
            return text
    return None


def extract_name(node, position: int) -> str:
    """
    Extract a human label for the test case.

    Falls back to the first line of the node's text (max 100 chars), then to
    a positional placeholder.
    """
    name = first_match_text(node, NAME_SELECTORS)
    if name:
        return name

    fallback = truncate(first_line(node_text(node)), NAME_FALLBACK_LIMIT)
    return fallback or f"Test Case {position}"


def extract_class_name(node) -> str:
    """Extract the owning suite/class label, or a fixed placeholder"""
    return first_match_text(node, CLASS_NAME_SELECTORS) or DEFAULT_CLASS_NAME


def extract_duration(node) -> float:
    """Extract duration in seconds from the first time-like element (0 when unparseable)"""
    duration_el = node.select_one(DURATION_SELECTOR)
    duration_text = duration_el.get_text() if duration_el is not None else '0'
    return parse_leading_float(duration_text)


def extract_failure_details(node) -> FailureDetails:
    """
    Collect log blocks, stack trace and error message from detail-like elements.

    Every hit of every detail selector goes into the logs (document order per
    selector). The first text with an exception/error/"at " token becomes the
    stack trace; the first with an assertion/expectation token becomes the
    error message, cut to its first line.
    """
    details = FailureDetails()

    for selector in DETAIL_SELECTORS:
        for element in node.select(selector):
            text = node_text(element)
            if not text:
                continue

            details.logs.append(text)

            if details.stack_trace is None and any(token in text for token in STACK_TRACE_TOKENS):
                details.stack_trace = text

            if details.error_message is None and any(token in text for token in ERROR_MESSAGE_TOKENS):
                details.error_message = first_line(text)

    return details


def _collect_steps(node, selectors: Sequence[str], length_band: Tuple[int, int],
                   accept: Callable[[str], bool] = lambda text: True) -> List[str]:
    low, high = length_band
    steps = []
    seen = set()
    for selector in selectors:
        for element in node.select(selector):
            # '.step' and 'li.step' overlap
            if id(element) in seen:
                continue
            seen.add(id(element))
            text = node_text(element)
            if text and low < len(text) < high and accept(text):
                steps.append(text)
    return steps


def extract_steps(node) -> List[str]:
    """
    Extract short human-readable reproduction steps.

    Step-like selectors are scanned first. Only when they yield nothing are
    generic log-like selectors scanned, with a tighter length band and
    excluding exception text so the stack trace is not duplicated.
    """
    steps = _collect_steps(node, STEP_SELECTORS, STEP_LENGTH_BAND)
    if steps:
        return steps

    return _collect_steps(
        node,
        STEP_LOG_SELECTORS,
        STEP_LOG_LENGTH_BAND,
        accept=lambda text: 'Exception' not in text
    )


def parse_data_uri(src: str) -> Optional[Tuple[str, str]]:
    """
    Split a base64 data URI into (mime_type, payload).

    The payload is returned exactly as written, never re-encoded.
    """
    if not src or not src.startswith('data:image'):
        return None
    match = DATA_URI_PATTERN.match(src)
    if not match:
        return None
    return match.group(1), match.group(2)


def extract_screenshots(node, record_number: int) -> List[Screenshot]:
    """
    Decode inline base64 screenshots from image elements.

    An image matched by several selectors is only decoded once.

    Args:
        node: BeautifulSoup element
        record_number: 1-based number of the record being built (used in file names)
    """
    screenshots = []
    seen = set()

    for selector in IMAGE_SELECTORS:
        for img_idx, img in enumerate(node.select(selector), 1):
            if id(img) in seen:
                continue
            parsed = parse_data_uri(img.get('src', ''))
            if not parsed:
                continue
            seen.add(id(img))
            mime_type, payload = parsed
            screenshots.append(Screenshot(
                name=f"screenshot-{record_number}-{img_idx}.png",
                mime_type=mime_type,
                base64_data=payload
            ))

    return screenshots


def extract_screenshot_links(node) -> List[str]:
    """
    Record links to external screenshot files as textual log references.

    External images are never fetched.
    """
    references = []
    for link in node.select(SCREENSHOT_LINK_SELECTOR):
        href = link.get('href', '')
        if href and any(ext in href for ext in IMAGE_LINK_EXTENSIONS):
            logger.debug(f"External screenshot reference (not fetched): {href}")
            references.append(f"Screenshot available: {href}")
    return references
