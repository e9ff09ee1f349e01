"""
HTML Report Parser for Spark Extent Reports (TestNG/JUnit/Cucumber).
Extracts test cases with status, errors, stack traces, steps and inline
screenshots from report markup whose structure varies between tool versions.
"""

import logging
import warnings
from pathlib import Path
from typing import List, Optional, Union
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

from .models import ParsedReport, TestCase, TestStatus, TestSummary
from .status_classifier import StatusClassifier
from . import field_extractors as fields
from .regex_fallback import build_fallback_test_cases
from .raw_content import extract_raw_content
from ..settings import Config

# Suppress XMLParsedAsHTMLWarning - reports are sometimes saved as XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

logger = logging.getLogger(__name__)

# Ordered by specificity: the first selector with at least one match wins,
# even if a later one would match more nodes.
TEST_NODE_SELECTORS = [
    # Standard Extent Report
    '.test',
    '.test-content',
    '.card.test-card',
    'li.test',
    'div[class*="test"]',
    # Table-based reports
    'table tbody tr',
    '.table-responsive tbody tr',
    # Node/category based
    '.node',
    '.category-content .test-detail',
    # Test items
    '.test-item',
    '.test-row',
]

STATUS_CLASS_SELECTOR = '[class*="pass"], [class*="fail"], [class*="skip"], [class*="error"]'

# Records whose name is this short carry no meaningful label
MIN_NAME_LENGTH = 3


class ReportValidationError(ValueError):
    """Raised when a report file is rejected before parsing"""


class SparkReportParser:
    """Heuristic parser for Spark Extent HTML reports"""

    def __init__(self, status_classifier: Optional[StatusClassifier] = None):
        self.status_classifier = status_classifier or StatusClassifier()

    def load_report(self, html_path: Union[str, Path]) -> str:
        """
        Read a report file after checking its extension and size.

        Args:
            html_path: Path to the .html/.htm report

        Returns:
            Report markup as text
        """
        path = Path(html_path)
        if not path.exists():
            raise FileNotFoundError(f"HTML file not found: {html_path}")

        if path.suffix.lower() not in Config.ALLOWED_REPORT_EXTENSIONS:
            raise ReportValidationError('Please upload an HTML file (.html or .htm)')

        max_bytes = Config.MAX_REPORT_SIZE_MB * 1024 * 1024
        if path.stat().st_size > max_bytes:
            raise ReportValidationError(f'File size exceeds {Config.MAX_REPORT_SIZE_MB}MB limit')

        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    def parse_file(self, html_path: Union[str, Path]) -> ParsedReport:
        """Load and parse a report file"""
        html_content = self.load_report(html_path)
        logger.info(f"📄 Parsing report: {Path(html_path).name} ({len(html_content)} chars)")
        return self.parse_report(html_content)

    def parse_report(self, html_content: str) -> ParsedReport:
        """
        Parse report markup into test cases plus a raw text digest.

        Args:
            html_content: Raw report markup

        Returns:
            ParsedReport; used_fallback is True when no test case nodes were found
        """
        soup = BeautifulSoup(html_content, 'lxml')

        test_cases = self._extract_from_nodes(soup)
        used_fallback = False
        if not test_cases:
            logger.warning("No test case nodes recognized, falling back to regex count extraction")
            test_cases = build_fallback_test_cases(html_content, soup)
            used_fallback = True

        raw_content = extract_raw_content(html_content)

        logger.info(f"✅ Extracted {len(test_cases)} test cases")
        return ParsedReport(test_cases=test_cases, raw_content=raw_content, used_fallback=used_fallback)

    def find_test_nodes(self, soup: BeautifulSoup) -> list:
        """
        Find the repeating one-element-per-test-case node set.

        Returns the matches of the first selector that matches anything, else
        every element with a status-like class token. Empty means the regex
        fallback should be used.
        """
        for selector in TEST_NODE_SELECTORS:
            nodes = soup.select(selector)
            if nodes:
                logger.debug(f"Selector '{selector}' matched {len(nodes)} nodes")
                return nodes

        nodes = soup.select(STATUS_CLASS_SELECTOR)
        if nodes:
            logger.debug(f"Status class fallback matched {len(nodes)} nodes")
        return nodes

    def _extract_from_nodes(self, soup: BeautifulSoup) -> List[TestCase]:
        test_cases = []

        for index, node in enumerate(self.find_test_nodes(soup)):
            test_case = self._build_test_case(node, index, record_number=len(test_cases) + 1)
            if len(test_case.name) < MIN_NAME_LENGTH:
                logger.debug(f"Skipping node {index + 1}: name too short ({test_case.name!r})")
                continue
            test_cases.append(test_case)

        return test_cases

    def _build_test_case(self, node, index: int, record_number: int) -> TestCase:
        """Populate one TestCase from a candidate node"""
        name = fields.extract_name(node, index + 1)
        status = self.status_classifier.classify(node)

        details = fields.extract_failure_details(node)
        logs = details.logs + fields.extract_screenshot_links(node)
        steps = fields.extract_steps(node)
        screenshots = fields.extract_screenshots(node, record_number)

        error_message = None
        stack_trace = None
        if status == TestStatus.FAIL:
            error_message = details.error_message
            stack_trace = details.stack_trace

        return TestCase(
            id=f"test-{index + 1}",
            name=name,
            class_name=fields.extract_class_name(node),
            status=status,
            duration=fields.extract_duration(node),
            error_message=error_message or None,
            stack_trace=stack_trace or None,
            logs=logs or None,
            steps_to_reproduce=steps or None,
            screenshots=screenshots or None
        )

    def get_summary_stats(self, test_cases: List[TestCase]) -> TestSummary:
        """Calculate summary statistics from test cases"""
        return TestSummary.from_test_cases(test_cases)
