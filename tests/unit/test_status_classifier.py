"""
Tests for layered status classification.
"""

import sys
from pathlib import Path

from bs4 import BeautifulSoup

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from defect_analyzer.parsers.models import TestStatus
from defect_analyzer.parsers.status_classifier import (
    NodeTextStage,
    StatusBadgeStage,
    StatusClassifier,
)


def _node(markup: str):
    return BeautifulSoup(markup, 'lxml').body.contents[0]


def test_default_is_pass():
    assert StatusClassifier().classify(_node('<div class="test">Open dashboard</div>')) == TestStatus.PASS


def test_fail_keywords_in_class_markup_or_text():
    classifier = StatusClassifier()
    assert classifier.classify(_node('<div class="test failed">Open dashboard</div>')) == TestStatus.FAIL
    assert classifier.classify(_node('<div class="test"><i class="icon-error"></i>Open</div>')) == TestStatus.FAIL
    assert classifier.classify(_node('<div class="test">NullPointerException thrown</div>')) == TestStatus.FAIL


def test_fail_takes_precedence_over_skip_and_pass():
    node = _node('<div class="test skip pass">Step failed</div>')
    assert StatusClassifier().classify(node) == TestStatus.FAIL


def test_skip_keywords():
    assert StatusClassifier().classify(_node('<div class="test">Skipped by config</div>')) == TestStatus.SKIP


def test_explicit_pass_signals():
    assert NodeTextStage().evaluate(_node('<div>✓ Checkout</div>'), TestStatus.PASS) == TestStatus.PASS
    assert NodeTextStage().evaluate(_node('<div>Checkout</div>'), TestStatus.PASS) is None


def test_badge_overrides_whole_node_text():
    """Whole text suggests pass, the dedicated badge says fail: the badge wins"""
    node = _node('<div class="test pass">Payment succeeded <span class="badge badge-danger">KO</span></div>')
    assert StatusClassifier().classify(node) == TestStatus.FAIL


def test_badge_skip_from_warning_class():
    node = _node('<div class="test">Upload avatar <span class="status warning">pending</span></div>')
    assert StatusClassifier().classify(node) == TestStatus.SKIP


def test_neutral_badge_keeps_previous_verdict():
    node = _node('<div class="test">Upload avatar skipped <span class="status">done</span></div>')
    assert StatusBadgeStage().evaluate(node, TestStatus.SKIP) is None
    assert StatusClassifier().classify(node) == TestStatus.SKIP


def test_custom_stage_order_last_verdict_wins():
    node = _node('<div class="test">Skipped <span class="badge badge-danger">x</span></div>')
    assert StatusClassifier().classify(node) == TestStatus.FAIL
    assert StatusClassifier(stages=[StatusBadgeStage(), NodeTextStage()]).classify(node) == TestStatus.SKIP
    assert StatusClassifier(stages=[]).classify(node) == TestStatus.PASS
