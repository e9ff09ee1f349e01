"""
Tests for the Spark Extent report parser.
Covers node selection, record assembly, the regex fallback and file loading.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from defect_analyzer.parsers.html_parser import SparkReportParser, ReportValidationError
from defect_analyzer.parsers.models import TestStatus


EXTENT_REPORT = """
<html><head><style>.test { color: red; }</style><script>var x = 1;</script></head>
<body>
  <ul class="test-list">
    <li class="test fail">
      <h5 class="test-name">Login with invalid password</h5>
      <span class="category">AuthTests</span>
      <span class="duration">12.5s</span>
      <div class="step">Open the login page</div>
      <div class="step">Submit invalid credentials</div>
      <pre>java.lang.AssertionError: Expected error banner
    at com.example.LoginTest.invalid(LoginTest.java:42)</pre>
      <img class="screenshot" src="data:image/png;base64,QUJD">
      <a href="shots/login-failure.png" class="screenshot-link">screenshot</a>
    </li>
    <li class="test pass">
      <h5 class="test-name">Login with valid password</h5>
      <span class="category">AuthTests</span>
      <span class="duration">3s</span>
    </li>
    <li class="test skip">
      <h5 class="test-name">Login with SSO</h5>
      <span class="duration">0s</span>
    </li>
  </ul>
</body></html>
"""


def test_scenario_two_test_nodes():
    """One failing node with an assertion in <pre>, one passing node"""
    html = """
    <html><body>
      <div class="test fail"><pre>AssertionError: expected true</pre></div>
      <div class="test pass"><span class="test-name">Checkout works</span></div>
    </body></html>
    """
    test_cases = SparkReportParser().parse_report(html).test_cases

    assert len(test_cases) == 2
    failed = [t for t in test_cases if t.status == TestStatus.FAIL]
    passed = [t for t in test_cases if t.status == TestStatus.PASS]
    assert len(failed) == 1
    assert len(passed) == 1
    assert failed[0].error_message == "AssertionError: expected true"
    assert passed[0].error_message is None


def test_extent_report_fields():
    parsed = SparkReportParser().parse_report(EXTENT_REPORT)
    assert not parsed.used_fallback

    failed, passed, skipped = parsed.test_cases
    assert failed.id == "test-1"
    assert failed.name == "Login with invalid password"
    assert failed.class_name == "AuthTests"
    assert failed.status == TestStatus.FAIL
    assert failed.duration == 12.5
    assert failed.error_message == "java.lang.AssertionError: Expected error banner"
    assert failed.stack_trace.startswith("java.lang.AssertionError")
    assert "LoginTest.java:42" in failed.stack_trace
    assert failed.steps_to_reproduce == ["Open the login page", "Submit invalid credentials"]
    assert "Screenshot available: shots/login-failure.png" in failed.logs

    assert len(failed.screenshots) == 1
    screenshot = failed.screenshots[0]
    assert screenshot.mime_type == "image/png"
    assert screenshot.base64_data == "QUJD"
    assert screenshot.name == "screenshot-1-1.png"

    assert passed.status == TestStatus.PASS
    assert passed.duration == 3.0
    assert passed.error_message is None
    assert passed.stack_trace is None

    assert skipped.status == TestStatus.SKIP
    assert skipped.class_name == "Test Suite"


def test_every_record_has_name_and_status():
    html = '<table><tbody><tr><td>Search returns results</td><td>PASS</td></tr>' \
           '<tr><td>Search handles empty query</td><td>FAIL</td></tr></tbody></table>'
    test_cases = SparkReportParser().parse_report(html).test_cases

    assert len(test_cases) >= 1
    for test_case in test_cases:
        assert test_case.name
        assert test_case.status in (TestStatus.PASS, TestStatus.FAIL, TestStatus.SKIP)
    assert [t.name for t in test_cases] == ["Search returns results", "Search handles empty query"]
    assert [t.status for t in test_cases] == [TestStatus.PASS, TestStatus.FAIL]


def test_first_matching_selector_wins():
    """'.test' is tried before '.test-item', even though '.test-item' matches more nodes"""
    html = """
    <html><body>
      <div class="test"><span class="name">Only structured test</span></div>
      <div class="test-item"><span class="name">Item one</span></div>
      <div class="test-item"><span class="name">Item two</span></div>
    </body></html>
    """
    test_cases = SparkReportParser().parse_report(html).test_cases
    assert [t.name for t in test_cases] == ["Only structured test"]


def test_status_class_fallback_selector():
    html = '<html><body><section class="passed-block">Payment is captured</section>' \
           '<section class="failed-block">Refund is issued</section></body></html>'
    parser = SparkReportParser()
    parsed = parser.parse_report(html)

    assert not parsed.used_fallback
    assert [t.status for t in parsed.test_cases] == [TestStatus.PASS, TestStatus.FAIL]


def test_regex_fallback_counts():
    html = "<html><body><p>Failed: 3, Passed: 7, Skipped: 2</p></body></html>"
    parsed = SparkReportParser().parse_report(html)

    assert parsed.used_fallback
    statuses = [t.status for t in parsed.test_cases]
    assert len(statuses) == 12
    assert statuses == [TestStatus.FAIL] * 3 + [TestStatus.SKIP] * 2 + [TestStatus.PASS] * 7
    assert parsed.test_cases[0].id == "extracted-1"
    assert parsed.test_cases[0].duration == 0
    assert parsed.test_cases[0].error_message
    assert parsed.test_cases[-1].error_message is None


def test_regex_fallback_never_empty():
    parsed = SparkReportParser().parse_report("<html><body><p>Nothing to see here</p></body></html>")

    assert parsed.used_fallback
    assert len(parsed.test_cases) == 1
    assert parsed.test_cases[0].status == TestStatus.PASS
    assert parsed.test_cases[0].name == "Test Case 1"


def test_parsing_is_idempotent():
    parser = SparkReportParser()
    first = parser.parse_report(EXTENT_REPORT)
    second = parser.parse_report(EXTENT_REPORT)

    def without_timestamp(test_case):
        data = test_case.to_dict()
        data.pop('timestamp')
        return data

    assert [without_timestamp(t) for t in first.test_cases] == [without_timestamp(t) for t in second.test_cases]
    assert first.raw_content == second.raw_content


def test_raw_content_is_part_of_parse():
    parsed = SparkReportParser().parse_report(EXTENT_REPORT)
    assert "=== EXTRACTED TEXT CONTENT ===" in parsed.raw_content
    assert "var x = 1" not in parsed.raw_content

    payload = parsed.to_request_payload()
    assert payload['rawContent'] == parsed.raw_content
    assert payload['testCases'][0]['className'] == "AuthTests"
    assert payload['testCases'][0]['screenshots'][0]['base64Data'] == "QUJD"


def test_summary_stats():
    parser = SparkReportParser()
    summary = parser.get_summary_stats(parser.parse_report(EXTENT_REPORT).test_cases)

    assert summary.total == 3
    assert summary.passed == 1
    assert summary.failed == 1
    assert summary.skipped == 1
    assert summary.duration == "15.5s"
    assert summary.pass_rate == pytest.approx(100 / 3)


def test_load_report_validation(tmp_path):
    parser = SparkReportParser()

    with pytest.raises(FileNotFoundError):
        parser.load_report(tmp_path / "missing.html")

    text_file = tmp_path / "report.txt"
    text_file.write_text("<html></html>")
    with pytest.raises(ReportValidationError, match=r"\.html or \.htm"):
        parser.load_report(text_file)

    report = tmp_path / "report.HTM"
    report.write_text(EXTENT_REPORT, encoding="utf-8")
    parsed = parser.parse_file(report)
    assert len(parsed.test_cases) == 3


def test_load_report_size_limit(tmp_path, monkeypatch):
    from defect_analyzer.settings import Config
    monkeypatch.setattr(Config, "MAX_REPORT_SIZE_MB", 0)

    report = tmp_path / "big.html"
    report.write_text("<html><body>x</body></html>")
    with pytest.raises(ReportValidationError, match="File size exceeds"):
        SparkReportParser().load_report(report)
