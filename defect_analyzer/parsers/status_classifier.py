"""
Status classification for test case nodes.

Status is inferred from evidence in layered stages. Stages run in order and
each may overwrite the verdict of the stages before it, so a later, more
specific signal (a dedicated status badge) wins over an earlier, coarser
one (a substring match on the whole node).
"""

import logging
from typing import List, Optional

from .models import TestStatus
from ..utils import class_string

logger = logging.getLogger(__name__)

FAIL_KEYWORDS = ('fail', 'error', 'failed', 'exception')
SKIP_KEYWORDS = ('skip', 'skipped')
PASS_KEYWORDS = ('pass', 'success', '✓')

# Badge widgets also signal status through bootstrap-style colour classes
BADGE_FAIL_CLASSES = ('danger',)
BADGE_SKIP_CLASSES = ('warning',)

STATUS_BADGE_SELECTOR = '.status, .badge, [class*="status"], .test-status'


def _contains_any(haystack: str, keywords) -> bool:
    return any(keyword in haystack for keyword in keywords)


class StatusStage:
    """Base class for status classification stages"""

    name: str = "stage"

    def evaluate(self, node, current: TestStatus) -> Optional[TestStatus]:
        """
        Inspect the node and return a verdict, or None to keep the current one.

        Args:
            node: BeautifulSoup element believed to be one test case
            current: Verdict produced by the previous stages

        Returns:
            TestStatus overriding the current verdict, or None
        """
        raise NotImplementedError("Subclasses must implement evaluate()")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"


class NodeTextStage(StatusStage):
    """Keyword match over the node's class attribute, inner markup and text"""

    name = "node-text"

    def evaluate(self, node, current: TestStatus) -> Optional[TestStatus]:
        haystack = ' '.join((
            class_string(node),
            node.decode_contents().lower(),
            node.get_text().lower()
        ))

        if _contains_any(haystack, FAIL_KEYWORDS):
            return TestStatus.FAIL
        if _contains_any(haystack, SKIP_KEYWORDS):
            return TestStatus.SKIP
        if _contains_any(haystack, PASS_KEYWORDS):
            return TestStatus.PASS
        return None


class StatusBadgeStage(StatusStage):
    """Re-evaluate a dedicated status/badge sub-element, if the node has one"""

    name = "status-badge"

    def evaluate(self, node, current: TestStatus) -> Optional[TestStatus]:
        badge = node.select_one(STATUS_BADGE_SELECTOR)
        if badge is None:
            return None

        badge_text = badge.get_text().lower()
        badge_class = class_string(badge)

        if (_contains_any(badge_text, FAIL_KEYWORDS) or _contains_any(badge_class, FAIL_KEYWORDS)
                or _contains_any(badge_class, BADGE_FAIL_CLASSES)):
            return TestStatus.FAIL
        if (_contains_any(badge_text, SKIP_KEYWORDS) or _contains_any(badge_class, SKIP_KEYWORDS)
                or _contains_any(badge_class, BADGE_SKIP_CLASSES)):
            return TestStatus.SKIP
        return None


class StatusClassifier:
    """Runs the status stages in order; the last stage with a verdict wins"""

    def __init__(self, stages: Optional[List[StatusStage]] = None):
        """Initialize with the default stage order unless stages are given"""
        self.stages = stages if stages is not None else [
            NodeTextStage(),
            StatusBadgeStage(),
        ]

    def classify(self, node) -> TestStatus:
        """
        Classify a candidate node as pass, fail or skip.

        Args:
            node: BeautifulSoup element

        Returns:
            TestStatus (PASS unless fail/skip evidence is found)
        """
        status = TestStatus.PASS
        for stage in self.stages:
            verdict = stage.evaluate(node, status)
            if verdict is not None:
                if verdict != status:
                    logger.debug(f"Stage {stage.name} changed status {status.value} -> {verdict.value}")
                status = verdict
        return status
