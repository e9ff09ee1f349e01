"""
Regex-based fallback extraction.
Used when no test case nodes are found: aggregate pass/fail/skip counts are
read from the document text and synthetic placeholder test cases are built
to match them.
"""

import re
import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from .models import TestCase, TestStatus

logger = logging.getLogger(__name__)

PASS_COUNT_PATTERN = re.compile(r'pass(?:ed)?\s*[:\s]*(\d+)', re.IGNORECASE)
FAIL_COUNT_PATTERN = re.compile(r'fail(?:ed|ure)?\s*[:\s]*(\d+)', re.IGNORECASE)
SKIP_COUNT_PATTERN = re.compile(r'skip(?:ped)?\s*[:\s]*(\d+)', re.IGNORECASE)
TEST_NAME_PATTERN = re.compile(r'test[_\s-]?name["\']?\s*[>:]\s*([^<\n]+)', re.IGNORECASE)

FALLBACK_CLASS_NAME = 'Extracted from report'
FALLBACK_ERROR_MESSAGE = 'Failure reported in summary counts; no details available in report structure'


def _first_count(pattern: re.Pattern, text: str) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


def extract_counts(text: str) -> dict:
    """
    Find aggregate counts in report text (first match per category).

    Returns:
        Dictionary with 'passed', 'failed' and 'skipped' counts
    """
    return {
        'passed': _first_count(PASS_COUNT_PATTERN, text),
        'failed': _first_count(FAIL_COUNT_PATTERN, text),
        'skipped': _first_count(SKIP_COUNT_PATTERN, text),
    }


def extract_test_names(html_content: str) -> List[str]:
    """Find loose 'test name: X' tokens in raw markup, in document order"""
    return [match.strip() for match in TEST_NAME_PATTERN.findall(html_content)]


def build_fallback_test_cases(html_content: str, soup: Optional[BeautifulSoup] = None) -> List[TestCase]:
    """
    Build synthetic test cases from aggregate counts.

    The first failCount records are failures, the next skipCount are skipped
    and the rest pass. At least one record is always produced.

    Args:
        html_content: Raw report markup
        soup: Already-parsed document (parsed here when omitted)

    Returns:
        List of synthetic TestCase objects
    """
    if soup is None:
        soup = BeautifulSoup(html_content, 'lxml')

    body_text = (soup.body.get_text() if soup.body is not None else '') or html_content
    counts = extract_counts(body_text)
    names = extract_test_names(html_content)

    fail_count = counts['failed']
    skip_count = counts['skipped']
    total = max(counts['passed'] + fail_count + skip_count, len(names), 1)

    logger.info(
        f"Regex fallback: passed={counts['passed']}, failed={fail_count}, "
        f"skipped={skip_count}, names={len(names)} -> {total} records"
    )

    test_cases = []
    for i in range(total):
        if i < fail_count:
            status = TestStatus.FAIL
        elif i < fail_count + skip_count:
            status = TestStatus.SKIP
        else:
            status = TestStatus.PASS

        name = names[i] if i < len(names) and names[i] else f"Test Case {i + 1}"

        test_cases.append(TestCase(
            id=f"extracted-{i + 1}",
            name=name,
            class_name=FALLBACK_CLASS_NAME,
            status=status,
            duration=0.0,
            error_message=FALLBACK_ERROR_MESSAGE if status == TestStatus.FAIL else None
        ))

    return test_cases
