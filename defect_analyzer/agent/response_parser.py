"""
Parse-then-validate step for AI analysis responses.

LLM output is loosely typed (sometimes wrapped in prose or code fences, with
optional fields missing). Everything that crosses this boundary goes through
parse_analysis_response(), which either returns validated models or the
deterministic fallback analysis.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..parsers.models import (
    CONFIDENCE_LEVELS,
    PRIORITY_LEVELS,
    DefectCategory,
    FailureAnalysis,
    Pattern,
    Recommendation,
    TestCase,
)
from ..utils import load_json_object, string_list

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = DefectCategory.AUTOMATION_SCRIPT_DEFECT
DEFAULT_CONFIDENCE = 'low'
DEFAULT_PRIORITY = 'medium'
DEFAULT_ROOT_CAUSE = 'Unable to determine root cause automatically'
DEFAULT_SUGGESTED_FIX = 'Review the test implementation and logs manually'


def _parse_category(value) -> DefectCategory:
    try:
        return DefectCategory(str(value).strip().lower())
    except ValueError:
        logger.debug(f"Unknown defect category {value!r}, using {DEFAULT_CATEGORY.value}")
        return DEFAULT_CATEGORY


def _parse_level(value, allowed, default: str) -> str:
    level = str(value).strip().lower() if value is not None else ''
    return level if level in allowed else default


def _parse_int(value) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _text(value, default: str = '') -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def build_fallback_analysis(failed_tests: List[TestCase]) -> Tuple[List[FailureAnalysis], List[Pattern], List[Recommendation]]:
    """
    Deterministic analysis built only from locally available data.

    Used whenever the AI response cannot be parsed.
    """
    failures = [
        FailureAnalysis(
            test_case=test,
            root_cause=test.error_message or DEFAULT_ROOT_CAUSE,
            category=DEFAULT_CATEGORY,
            confidence=DEFAULT_CONFIDENCE,
            evidence=[test.error_message or 'No error message available'],
            suggested_fix=DEFAULT_SUGGESTED_FIX
        )
        for test in failed_tests
    ]
    recommendations = [
        Recommendation(
            priority='high',
            title='Manual Review Required',
            description='AI analysis was unable to parse the failures completely. Manual review is recommended.',
            action_items=['Review each failure manually', 'Check test logs for more context']
        )
    ]
    return failures, [], recommendations


def _validate_failures(raw_failures, failed_tests: List[TestCase]) -> List[FailureAnalysis]:
    by_id: Dict[str, TestCase] = {t.id: t for t in failed_tests}
    failures = []

    for entry in raw_failures if isinstance(raw_failures, list) else []:
        if not isinstance(entry, dict):
            continue

        test_case: Optional[TestCase] = by_id.get(_text(entry.get('testId')))
        if test_case is None:
            if not failed_tests:
                logger.debug(f"Dropping failure entry with unknown testId {entry.get('testId')!r}")
                continue
            test_case = failed_tests[0]

        failures.append(FailureAnalysis(
            test_case=test_case,
            root_cause=_text(entry.get('rootCause'), test_case.error_message or DEFAULT_ROOT_CAUSE),
            category=_parse_category(entry.get('category')),
            confidence=_parse_level(entry.get('confidence'), CONFIDENCE_LEVELS, DEFAULT_CONFIDENCE),
            evidence=string_list(entry.get('evidence')),
            suggested_fix=_text(entry.get('suggestedFix'), DEFAULT_SUGGESTED_FIX)
        ))

    return failures


def _validate_patterns(raw_patterns) -> List[Pattern]:
    patterns = []
    for entry in raw_patterns if isinstance(raw_patterns, list) else []:
        if not isinstance(entry, dict) or not _text(entry.get('description')):
            continue
        patterns.append(Pattern(
            description=_text(entry.get('description')),
            occurrences=_parse_int(entry.get('occurrences')),
            affected_tests=string_list(entry.get('affectedTests'))
        ))
    return patterns


def _validate_recommendations(raw_recommendations) -> List[Recommendation]:
    recommendations = []
    for entry in raw_recommendations if isinstance(raw_recommendations, list) else []:
        if not isinstance(entry, dict) or not _text(entry.get('title')):
            continue
        recommendations.append(Recommendation(
            priority=_parse_level(entry.get('priority'), PRIORITY_LEVELS, DEFAULT_PRIORITY),
            title=_text(entry.get('title')),
            description=_text(entry.get('description')),
            action_items=string_list(entry.get('actionItems'))
        ))
    return recommendations


def parse_analysis_response(
    response: str,
    failed_tests: List[TestCase]
) -> Tuple[List[FailureAnalysis], List[Pattern], List[Recommendation], bool]:
    """
    Parse and validate an AI analysis response.

    Args:
        response: Raw LLM text
        failed_tests: Failed test cases sent in the request (for testId mapping)

    Returns:
        Tuple of (failures, patterns, recommendations, used_fallback)
    """
    data = load_json_object(response)
    if data is None:
        logger.warning("⚠️ AI response could not be parsed, using fallback analysis")
        logger.debug(f"Response was: {response}")
        failures, patterns, recommendations = build_fallback_analysis(failed_tests)
        return failures, patterns, recommendations, True

    failures = _validate_failures(data.get('failures'), failed_tests)
    patterns = _validate_patterns(data.get('patterns'))
    recommendations = _validate_recommendations(data.get('recommendations'))

    return failures, patterns, recommendations, False
