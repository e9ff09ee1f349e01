"""
HTML Dashboard Generator for analyzed test reports.
Renders summary cards, category breakdown, failure cards, patterns,
recommendations and the full test case list into a single static HTML file.
"""

import json
import logging
import html as html_escape
from typing import Dict, List, Optional
from datetime import datetime
from pathlib import Path

from ..parsers.models import AnalysisResult, DefectCategory, FailureAnalysis, TestCase
from .html_styles import get_html_styles
from .html_scripts import get_html_scripts

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {'high': 0, 'medium': 1, 'low': 2}
CODE_BLOCK_LIMIT = 4000


def _e(value) -> str:
    return html_escape.escape(str(value if value is not None else ''))


class ReportGenerator:
    """Generates the HTML analysis dashboard"""

    # Colors
    C_SUCCESS = "#28a745"
    C_WARNING = "#ffc107"
    C_DANGER = "#dc3545"
    C_INFO = "#17a2b8"
    C_TEXT = "#333333"
    C_LIGHT = "#f8f9fa"

    def generate_html_report(
        self,
        result: AnalysisResult,
        report_name: str,
        test_cases: Optional[List[TestCase]] = None,
        used_parse_fallback: bool = False,
        jira_issues: Optional[Dict[str, Dict]] = None
    ) -> str:
        """
        Generate HTML dashboard content.

        Args:
            result: AnalysisResult to render
            report_name: Name of the analyzed report file
            test_cases: All extracted test cases (for the results tab)
            used_parse_fallback: Whether test cases came from regex count extraction
            jira_issues: Export outcomes keyed by test case id

        Returns:
            HTML content as string
        """
        jira_issues = jira_issues or {}
        sections = [
            self._render_header(report_name),
            self._render_notices(result, used_parse_fallback),
            self._render_summary_cards(result),
            '<div class="tabs">'
            '<button class="tab-button" data-tab="tab-failures">Failures</button>'
            '<button class="tab-button" data-tab="tab-patterns">Patterns</button>'
            '<button class="tab-button" data-tab="tab-recommendations">Recommendations</button>'
            '<button class="tab-button" data-tab="tab-tests">All Tests</button>'
            '</div>',
            f'<div class="tab-panel" id="tab-failures">{self._render_failures(result, jira_issues)}</div>',
            f'<div class="tab-panel" id="tab-patterns">{self._render_patterns(result)}</div>',
            f'<div class="tab-panel" id="tab-recommendations">{self._render_recommendations(result)}</div>',
            f'<div class="tab-panel" id="tab-tests">{self._render_test_table(test_cases or [])}</div>',
            f'<div class="footer">Generated by Defect Analyzer | {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}</div>',
        ]

        styles = get_html_styles(self.C_SUCCESS, self.C_WARNING, self.C_DANGER, self.C_INFO, self.C_TEXT, self.C_LIGHT)
        scripts = get_html_scripts('tab-failures' if result.failures else 'tab-tests')

        return (
            '<!DOCTYPE html>\n<html lang="en">\n<head>\n<meta charset="utf-8">\n'
            f'<title>Defect Analysis - {_e(report_name)}</title>\n'
            f'<style>{styles}</style>\n</head>\n<body>\n<div class="container">\n'
            + '\n'.join(s for s in sections if s)
            + f'\n</div>\n<script>{scripts}</script>\n</body>\n</html>\n'
        )

    def _render_header(self, report_name: str) -> str:
        return (
            '<div class="header">'
            '<h1 class="report-title">🔍 Test Failure Defect Analysis</h1>'
            f'<div class="report-meta">{_e(report_name)}</div>'
            '</div>'
        )

    def _render_notices(self, result: AnalysisResult, used_parse_fallback: bool) -> str:
        notices = []
        if used_parse_fallback:
            notices.append("The report structure wasn't recognized. Test cases were reconstructed from summary counts "
                           "and the raw content was sent for AI analysis.")
        if result.used_fallback:
            notices.append("The AI response could not be parsed. A fallback analysis is shown; manual review is recommended.")
        return ''.join(f'<div class="notice">ℹ️ {_e(n)}</div>' for n in notices)

    def _render_summary_cards(self, result: AnalysisResult) -> str:
        summary = result.summary
        app_defects = len(result.application_defects)
        cards = [
            ('info', summary.total, 'Total Tests'),
            ('success', summary.passed, 'Passed'),
            ('danger', summary.failed, 'Failed'),
            ('warning', summary.skipped, 'Skipped'),
            ('info', f"{summary.pass_rate:.1f}%", 'Pass Rate'),
            ('info', summary.duration, 'Duration'),
            ('danger', app_defects, 'Application Defects'),
        ]
        html = ['<div class="dashboard">']
        for css_class, value, label in cards:
            html.append(
                f'<div class="card {css_class}"><div class="metric-value">{_e(value)}</div>'
                f'<div class="metric-label">{_e(label)}</div></div>'
            )
        html.append('</div>')

        counts = result.category_counts()
        if counts:
            html.append('<div class="dashboard">')
            for category in DefectCategory:
                if counts.get(category):
                    html.append(
                        f'<div class="card"><div class="metric-value">{counts[category]}</div>'
                        f'<div class="metric-label"><span class="badge {category.value}">{_e(category.label)}</span></div></div>'
                    )
            html.append('</div>')
        return ''.join(html)

    def _render_failures(self, result: AnalysisResult, jira_issues: Dict[str, Dict]) -> str:
        if not result.failures:
            return '<p>🎉 No failures to analyze!</p>'

        # Application defects first, then by category order
        category_order = {category: i for i, category in enumerate(DefectCategory)}
        failures = sorted(result.failures, key=lambda f: category_order[f.category])
        return ''.join(self._render_failure_card(f, jira_issues.get(f.test_case.id)) for f in failures)

    def _render_failure_card(self, failure: FailureAnalysis, jira_outcome: Optional[Dict]) -> str:
        test_case = failure.test_case
        html = [
            '<div class="failure-card">',
            f'<h4>{_e(test_case.name)}</h4>',
            f'<div class="failure-meta">{_e(test_case.class_name)} · {test_case.duration:.1f}s</div>',
            f'<span class="badge {failure.category.value}">{_e(failure.category.label)}</span>',
            f'<span class="badge {_e(failure.confidence)}">{_e(failure.confidence)} confidence</span>',
            f'<p><strong>Root cause:</strong> {_e(failure.root_cause)}</p>',
        ]

        if failure.evidence:
            html.append('<p><strong>Evidence:</strong></p><ul>')
            html.extend(f'<li>{_e(item)}</li>' for item in failure.evidence)
            html.append('</ul>')

        if failure.suggested_fix:
            html.append(f'<p><strong>Suggested fix:</strong> {_e(failure.suggested_fix)}</p>')

        if test_case.error_message:
            html.append(f'<pre class="code">{_e(test_case.error_message)}</pre>')
        if test_case.stack_trace:
            html.append(f'<details><summary>Stack trace</summary><pre class="code">'
                        f'{_e(test_case.stack_trace[:CODE_BLOCK_LIMIT])}</pre></details>')
        if test_case.steps_to_reproduce:
            html.append('<details><summary>Steps to reproduce</summary><ol>')
            html.extend(f'<li>{_e(step)}</li>' for step in test_case.steps_to_reproduce)
            html.append('</ol></details>')
        if test_case.screenshots:
            html.append(f'<p>📎 {len(test_case.screenshots)} screenshot(s)</p>')

        if jira_outcome:
            issue = jira_outcome.get('issue')
            if issue:
                html.append(f'<p>✅ JIRA: <a href="{_e(issue.url)}" target="_blank" rel="noopener noreferrer">{_e(issue.key)}</a></p>')
            elif jira_outcome.get('error'):
                html.append(f'<p>❌ JIRA export failed: {_e(jira_outcome["error"])}</p>')

        html.append('</div>')
        return ''.join(html)

    def _render_patterns(self, result: AnalysisResult) -> str:
        if not result.patterns:
            return '<p>No cross-failure patterns detected.</p>'
        html = ['<table class="results"><tr><th>Pattern</th><th>Occurrences</th><th>Affected Tests</th></tr>']
        for pattern in result.patterns:
            html.append(
                f'<tr><td>{_e(pattern.description)}</td><td>{pattern.occurrences}</td>'
                f'<td>{_e(", ".join(pattern.affected_tests))}</td></tr>'
            )
        html.append('</table>')
        return ''.join(html)

    def _render_recommendations(self, result: AnalysisResult) -> str:
        if not result.recommendations:
            return '<p>No recommendations.</p>'
        recommendations = sorted(result.recommendations, key=lambda r: PRIORITY_ORDER.get(r.priority, 1))
        html = []
        for rec in recommendations:
            html.append(
                f'<div class="failure-card"><h4><span class="badge {_e(rec.priority)}">{_e(rec.priority)}</span>'
                f'{_e(rec.title)}</h4><p>{_e(rec.description)}</p>'
            )
            if rec.action_items:
                html.append('<ul>' + ''.join(f'<li>{_e(item)}</li>' for item in rec.action_items) + '</ul>')
            html.append('</div>')
        return ''.join(html)

    def _render_test_table(self, test_cases: List[TestCase]) -> str:
        if not test_cases:
            return '<p>No test cases.</p>'
        html = ['<table class="results"><tr><th>#</th><th>Test</th><th>Class</th><th>Status</th><th>Duration</th></tr>']
        for i, test_case in enumerate(test_cases, 1):
            status = test_case.status.value
            html.append(
                f'<tr><td>{i}</td><td>{_e(test_case.name)}</td><td>{_e(test_case.class_name)}</td>'
                f'<td class="status-{status}">{status.upper()}</td><td>{test_case.duration:.1f}s</td></tr>'
            )
        html.append('</table>')
        return ''.join(html)

    def save_report(self, html_content: str, output_path: str) -> str:
        """
        Save HTML report to file.

        Args:
            html_content: HTML content to save
            output_path: Path to save the report

        Returns:
            Absolute path to saved file
        """
        try:
            output_file = Path(output_path)
            output_file.parent.mkdir(parents=True, exist_ok=True)

            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(html_content)

            logger.debug(f"✅ Report saved to {output_file.absolute()}")
            return str(output_file.absolute())
        except OSError as e:
            logger.error(f"Failed to save report: {e}")
            raise

    def save_json(self, result: AnalysisResult, output_path: str) -> str:
        """Save the analysis result as JSON; returns the absolute path"""
        return self.save_report(json.dumps(result.to_dict(), indent=2), output_path)
