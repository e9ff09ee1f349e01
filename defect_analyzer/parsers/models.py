"""
Data models for extracted test cases, summaries and AI analysis results.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
from enum import Enum

from ..utils import format_duration


class TestStatus(Enum):
    """Test execution status"""
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"


class DefectCategory(Enum):
    """Root cause category assigned to a failure"""
    APPLICATION_DEFECT = "application_defect"
    AUTOMATION_SCRIPT_DEFECT = "automation_script_defect"
    TEST_DATA_ISSUE = "test_data_issue"
    ENVIRONMENT_ISSUE = "environment_issue"
    CONFIGURATION_ISSUE = "configuration_issue"
    FLAKY_TEST = "flaky_test"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @property
    def jira_priority(self) -> str:
        return CATEGORY_JIRA_PRIORITY[self]


CATEGORY_LABELS: Dict[DefectCategory, str] = {
    DefectCategory.APPLICATION_DEFECT: 'Application Defect',
    DefectCategory.AUTOMATION_SCRIPT_DEFECT: 'Automation Script Defect',
    DefectCategory.TEST_DATA_ISSUE: 'Test Data Issue',
    DefectCategory.ENVIRONMENT_ISSUE: 'Environment Issue',
    DefectCategory.CONFIGURATION_ISSUE: 'Configuration Issue',
    DefectCategory.FLAKY_TEST: 'Flaky Test',
}

CATEGORY_JIRA_PRIORITY: Dict[DefectCategory, str] = {
    DefectCategory.APPLICATION_DEFECT: 'High',
    DefectCategory.AUTOMATION_SCRIPT_DEFECT: 'Low',
    DefectCategory.TEST_DATA_ISSUE: 'Medium',
    DefectCategory.ENVIRONMENT_ISSUE: 'High',
    DefectCategory.CONFIGURATION_ISSUE: 'Medium',
    DefectCategory.FLAKY_TEST: 'Low',
}

CONFIDENCE_LEVELS = ('high', 'medium', 'low')
PRIORITY_LEVELS = ('high', 'medium', 'low')


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Screenshot:
    """Inline screenshot decoded from a data URI (payload kept base64-encoded)"""
    name: str
    mime_type: str
    base64_data: str

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'mimeType': self.mime_type,
            'base64Data': self.base64_data
        }


@dataclass(frozen=True)
class TestCase:
    """Represents a single test case extracted from a report"""
    id: str
    name: str
    class_name: str
    status: TestStatus
    duration: float = 0.0
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None
    logs: Optional[List[str]] = None
    steps_to_reproduce: Optional[List[str]] = None
    screenshots: Optional[List[Screenshot]] = None
    timestamp: str = field(default_factory=_utc_now)

    @property
    def is_failure(self) -> bool:
        """Check if test failed"""
        return self.status == TestStatus.FAIL

    def to_dict(self) -> Dict:
        """Serialize with the camelCase keys used in the analysis request payload"""
        data = {
            'id': self.id,
            'name': self.name,
            'className': self.class_name,
            'status': self.status.value,
            'duration': self.duration,
            'timestamp': self.timestamp
        }
        if self.error_message:
            data['errorMessage'] = self.error_message
        if self.stack_trace:
            data['stackTrace'] = self.stack_trace
        if self.logs:
            data['logs'] = list(self.logs)
        if self.steps_to_reproduce:
            data['stepsToReproduce'] = list(self.steps_to_reproduce)
        if self.screenshots:
            data['screenshots'] = [s.to_dict() for s in self.screenshots]
        return data

    def __repr__(self) -> str:
        status_icon = {"pass": "✅", "fail": "❌", "skip": "⏭️"}[self.status.value]
        return f"{status_icon} {self.class_name} :: {self.name} ({self.status.value})"


@dataclass
class TestSummary:
    """Summary statistics for a test run"""
    total: int
    passed: int
    failed: int
    skipped: int
    duration_seconds: float

    @property
    def pass_rate(self) -> float:
        """Calculate pass rate percentage"""
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    @property
    def duration(self) -> str:
        return format_duration(self.duration_seconds)

    @classmethod
    def from_test_cases(cls, test_cases: List[TestCase]) -> 'TestSummary':
        return cls(
            total=len(test_cases),
            passed=sum(1 for t in test_cases if t.status == TestStatus.PASS),
            failed=sum(1 for t in test_cases if t.status == TestStatus.FAIL),
            skipped=sum(1 for t in test_cases if t.status == TestStatus.SKIP),
            duration_seconds=sum(t.duration or 0 for t in test_cases)
        )

    def to_dict(self) -> Dict:
        return {
            'total': self.total,
            'passed': self.passed,
            'failed': self.failed,
            'skipped': self.skipped,
            'duration': self.duration,
            'passRate': self.pass_rate
        }

    def __repr__(self) -> str:
        return (
            f"TestSummary(total={self.total}, passed={self.passed}, "
            f"failed={self.failed}, pass_rate={self.pass_rate:.1f}%)"
        )


@dataclass
class ParsedReport:
    """Output of one parse: structured records plus the raw text digest"""
    test_cases: List[TestCase]
    raw_content: str
    used_fallback: bool = False

    def to_request_payload(self) -> Dict:
        """Payload handed to the analysis boundary"""
        return {
            'testCases': [t.to_dict() for t in self.test_cases],
            'rawContent': self.raw_content
        }


@dataclass
class FailureAnalysis:
    """AI classification of one failed test case"""
    test_case: TestCase
    root_cause: str
    category: DefectCategory
    confidence: str  # high, medium, low
    evidence: List[str] = field(default_factory=list)
    suggested_fix: str = ''

    def is_application_defect(self) -> bool:
        """Check if classified as an application defect"""
        return self.category == DefectCategory.APPLICATION_DEFECT

    def to_dict(self) -> Dict:
        return {
            'testCase': self.test_case.to_dict(),
            'rootCause': self.root_cause,
            'category': self.category.value,
            'confidence': self.confidence,
            'evidence': list(self.evidence),
            'suggestedFix': self.suggested_fix
        }

    def __repr__(self) -> str:
        icon = "🐛" if self.is_application_defect() else "🔧"
        return f"{icon} {self.test_case.name}: {self.category.value} ({self.confidence})"


@dataclass
class Pattern:
    """A pattern detected across multiple failures"""
    description: str
    occurrences: int
    affected_tests: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'description': self.description,
            'occurrences': self.occurrences,
            'affectedTests': list(self.affected_tests)
        }


@dataclass
class Recommendation:
    """A prioritized recommendation from the analysis"""
    priority: str  # high, medium, low
    title: str
    description: str
    action_items: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'priority': self.priority,
            'title': self.title,
            'description': self.description,
            'actionItems': list(self.action_items)
        }


@dataclass
class AnalysisResult:
    """Complete analysis of one report"""
    summary: TestSummary
    failures: List[FailureAnalysis]
    patterns: List[Pattern]
    recommendations: List[Recommendation]
    used_fallback: bool = False  # True when the LLM output could not be parsed

    @property
    def application_defects(self) -> List[FailureAnalysis]:
        return [f for f in self.failures if f.is_application_defect()]

    def category_counts(self) -> Dict[DefectCategory, int]:
        counts: Dict[DefectCategory, int] = {}
        for failure in self.failures:
            counts[failure.category] = counts.get(failure.category, 0) + 1
        return counts

    def to_dict(self) -> Dict:
        return {
            'summary': self.summary.to_dict(),
            'failures': [f.to_dict() for f in self.failures],
            'patterns': [p.to_dict() for p in self.patterns],
            'recommendations': [r.to_dict() for r in self.recommendations]
        }
