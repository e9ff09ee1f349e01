"""
Tests for the AI defect analyzer and response validation.
The LLM is replaced by a fake object exposing invoke().
"""

import sys
import json
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from defect_analyzer.agent.analyzer import (
    AnalysisServiceError,
    DefectAnalyzer,
    RATE_LIMIT_MESSAGE,
    CREDITS_EXHAUSTED_MESSAGE,
)
from defect_analyzer.agent.response_parser import parse_analysis_response
from defect_analyzer.parsers.models import DefectCategory, TestCase, TestStatus


class FakeMessage:
    def __init__(self, content):
        self.content = content


class FakeLLM:
    """Records the messages it receives and returns a canned reply"""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return FakeMessage(self.reply)


class ProviderError(Exception):
    def __init__(self, message, status_code=None, code=None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


def _test_cases():
    return [
        TestCase(id="test-1", name="Checkout total", class_name="CartTests", status=TestStatus.FAIL,
                 duration=40.0, error_message="AssertionError: expected 10 but was 12",
                 stack_trace="AssertionError: expected 10 but was 12\n at Cart.java:5", logs=["cart opened"]),
        TestCase(id="test-2", name="Login", class_name="AuthTests", status=TestStatus.FAIL, duration=32.0,
                 error_message=None),
        TestCase(id="test-3", name="Search", class_name="SearchTests", status=TestStatus.PASS, duration=5.0),
        TestCase(id="test-4", name="Export", class_name="SearchTests", status=TestStatus.SKIP),
    ]


VALID_RESPONSE = {
    "failures": [
        {
            "testId": "test-2",
            "rootCause": "Login service returned 503",
            "category": "environment_issue",
            "confidence": "high",
            "evidence": ["HTTP 503 in logs"],
            "suggestedFix": "Check the auth service deployment"
        },
        {
            "testId": "test-1",
            "rootCause": "Cart total includes shipping twice",
            "category": "application_defect",
            "confidence": "medium",
            "evidence": ["expected 10 but was 12"],
            "suggestedFix": "Fix total calculation"
        }
    ],
    "patterns": [{"description": "Backend errors", "occurrences": 2, "affectedTests": ["Login", "Checkout total"]}],
    "recommendations": [{"priority": "high", "title": "Stabilize auth", "description": "Auth flaps",
                         "actionItems": ["Add health check"]}]
}


def test_analyze_valid_response_in_code_fence():
    llm = FakeLLM(f"Here you go:\n```json\n{json.dumps(VALID_RESPONSE)}\n```")
    result = DefectAnalyzer(llm=llm).analyze(_test_cases(), raw_content="raw digest")

    assert not result.used_fallback
    assert [f.test_case.id for f in result.failures] == ["test-2", "test-1"]
    assert result.failures[0].category == DefectCategory.ENVIRONMENT_ISSUE
    assert result.failures[1].is_application_defect()
    assert result.failures[1].confidence == "medium"
    assert result.patterns[0].affected_tests == ["Login", "Checkout total"]
    assert result.recommendations[0].action_items == ["Add health check"]
    assert [f.test_case.name for f in result.application_defects] == ["Checkout total"]

    summary = result.summary.to_dict()
    assert summary == {'total': 4, 'passed': 1, 'failed': 2, 'skipped': 1, 'duration': '1.3m', 'passRate': 25.0}


def test_request_contains_failed_tests_and_digest():
    llm = FakeLLM(json.dumps(VALID_RESPONSE))
    DefectAnalyzer(llm=llm).analyze(_test_cases(), raw_content="R" * 6000)

    (system, system_prompt), (human, user_prompt) = llm.calls[0]
    assert system == "system"
    assert "application_defect" in system_prompt
    assert human == "human"
    assert "Analyze these 2 test failures" in user_prompt
    assert "Test ID: test-1" in user_prompt
    assert "Error: No error message" in user_prompt
    assert "Logs: cart opened" in user_prompt
    assert "Search" not in user_prompt
    assert "R" * 5000 in user_prompt
    assert "R" * 5001 not in user_prompt


def test_request_without_failures_asks_about_skipped():
    passing = [t for t in _test_cases() if t.status != TestStatus.FAIL]
    prompt = DefectAnalyzer(llm=FakeLLM("{}")).build_user_prompt(passing, "C" * 3000)

    assert "1 passed tests and 1 skipped tests" in prompt
    assert "C" * 2000 in prompt
    assert "C" * 2001 not in prompt


def test_malformed_response_uses_fallback():
    result = DefectAnalyzer(llm=FakeLLM("I could not analyze this report.")).analyze(_test_cases())

    assert result.used_fallback
    assert [f.test_case.id for f in result.failures] == ["test-1", "test-2"]
    assert all(f.category == DefectCategory.AUTOMATION_SCRIPT_DEFECT for f in result.failures)
    assert all(f.confidence == "low" for f in result.failures)
    assert result.failures[0].root_cause == "AssertionError: expected 10 but was 12"
    assert result.failures[1].root_cause == "Unable to determine root cause automatically"
    assert result.failures[1].evidence == ["No error message available"]
    assert result.patterns == []
    assert result.recommendations[0].title == "Manual Review Required"
    assert result.recommendations[0].priority == "high"


def test_response_validation_defaults():
    failed = [t for t in _test_cases() if t.status == TestStatus.FAIL]
    response = json.dumps({
        "failures": [
            {"testId": "unknown", "category": "cosmic_rays", "confidence": "certain", "evidence": "not a list"},
            "garbage"
        ],
        "patterns": [{"occurrences": 3}, {"description": "Timeouts", "occurrences": "many"}],
        "recommendations": [{"title": "Retry less", "priority": "urgent"}]
    })
    failures, patterns, recommendations, used_fallback = parse_analysis_response(response, failed)

    assert not used_fallback
    assert len(failures) == 1
    assert failures[0].test_case.id == "test-1"
    assert failures[0].category == DefectCategory.AUTOMATION_SCRIPT_DEFECT
    assert failures[0].confidence == "low"
    assert failures[0].evidence == []
    assert failures[0].root_cause == "AssertionError: expected 10 but was 12"
    assert [(p.description, p.occurrences) for p in patterns] == [("Timeouts", 0)]
    assert recommendations[0].priority == "medium"


def test_response_for_report_without_failures():
    response = json.dumps({"failures": [{"testId": "x"}], "recommendations": []})
    failures, patterns, recommendations, used_fallback = parse_analysis_response(response, [])

    assert failures == []
    assert not used_fallback


def test_non_object_json_uses_fallback():
    failed = [t for t in _test_cases() if t.status == TestStatus.FAIL]
    failures, _, _, used_fallback = parse_analysis_response('[1, 2, 3]', failed)
    assert used_fallback
    assert len(failures) == 2


@pytest.mark.parametrize("error,status,message", [
    (ProviderError("Too many requests", status_code=429), 429, RATE_LIMIT_MESSAGE),
    (ProviderError("quota", status_code=429, code="insufficient_quota"), 402, CREDITS_EXHAUSTED_MESSAGE),
    (ProviderError("payment required", status_code=402), 402, CREDITS_EXHAUSTED_MESSAGE),
])
def test_service_errors_are_surfaced(error, status, message):
    analyzer = DefectAnalyzer(llm=FakeLLM(error=error))
    with pytest.raises(AnalysisServiceError) as exc_info:
        analyzer.analyze(_test_cases())

    assert exc_info.value.status_code == status
    assert exc_info.value.message == message


def test_unexpected_service_error():
    analyzer = DefectAnalyzer(llm=FakeLLM(error=ConnectionError("connection refused")))
    with pytest.raises(AnalysisServiceError) as exc_info:
        analyzer.analyze(_test_cases())

    assert exc_info.value.status_code == 500
    assert "connection refused" in exc_info.value.message


def test_missing_openai_key(monkeypatch):
    from defect_analyzer.settings import Config
    monkeypatch.setattr(Config, "LLM_PROVIDER", "openai")
    monkeypatch.setattr(Config, "OPENAI_API_KEY", "")

    with pytest.raises(AnalysisServiceError, match="AI service not configured"):
        DefectAnalyzer()
