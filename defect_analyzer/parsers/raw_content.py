"""
Raw content summarizer.
Builds a bounded plain-text + HTML digest of the whole report, handed to the
AI analysis as supplementary context independent of structured extraction.
"""

import logging
from typing import List

from bs4 import BeautifulSoup

from ..utils import node_text

logger = logging.getLogger(__name__)

MAIN_CONTENT_SELECTORS = ['.test-content', '.report-content', '.container', '.card', 'table', 'main', 'body']
STRIPPED_TAGS = ['script', 'style', 'link']

MIN_CONTENT_LENGTH = 50
MAX_CONTENT_AREAS = 10
HTML_SNIPPET_LIMIT = 15000


def collect_content_areas(soup: BeautifulSoup) -> List[str]:
    """
    Collect text of the main content containers.

    Uses the first selector that yields at least one container with more
    than 50 characters of text.
    """
    for selector in MAIN_CONTENT_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        areas = [text for text in (node_text(el) for el in elements) if len(text) > MIN_CONTENT_LENGTH]
        if areas:
            logger.debug(f"Raw content taken from {len(areas)} '{selector}' containers")
            return areas
    return []


def extract_raw_content(html_content: str) -> str:
    """
    Produce the digest of a report.

    Args:
        html_content: Raw report markup

    Returns:
        Digest with an extracted-text section (up to 10 containers) and the
        first 15,000 characters of body markup without script/style/link
    """
    soup = BeautifulSoup(html_content, 'lxml')
    for element in soup.select(', '.join(STRIPPED_TAGS)):
        element.decompose()

    content_areas = collect_content_areas(soup)
    html_snippet = soup.body.decode_contents()[:HTML_SNIPPET_LIMIT] if soup.body is not None else ''

    extracted_text = '\n\n---\n\n'.join(content_areas[:MAX_CONTENT_AREAS])

    return (
        "\n=== EXTRACTED TEXT CONTENT ===\n"
        f"{extracted_text}\n"
        "\n=== HTML STRUCTURE (for reference) ===\n"
        f"{html_snippet}\n"
    )
