"""
Main Orchestrator for the Defect Analyzer.
Ties together Parser, Analyzer, Dashboard and JIRA export.
"""

import sys
import logging
import argparse
import getpass
import warnings
from pathlib import Path

# Suppress urllib3 OpenSSL warnings BEFORE importing requests
import urllib3
urllib3.disable_warnings(urllib3.exceptions.NotOpenSSLWarning)
warnings.filterwarnings("ignore", message=".*OpenSSL.*")

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Import config to ensure environment variables are loaded
from defect_analyzer.settings import Config

from defect_analyzer.parsers.html_parser import SparkReportParser, ReportValidationError
from defect_analyzer.agent.analyzer import DefectAnalyzer, AnalysisServiceError
from defect_analyzer.reporters.report_generator import ReportGenerator
from defect_analyzer.reporters.jira_reporter import (
    CredentialStore,
    JiraCredentials,
    JiraError,
    JiraReporter,
    get_stored_credentials
)

logger = logging.getLogger("Orchestrator")


def setup_logging(verbose: bool = False):
    """Configure file + console logging"""
    level = logging.DEBUG if verbose else getattr(logging, Config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format=Config.LOG_FORMAT,
        handlers=[
            logging.FileHandler(Config.LOG_FILE_NAME),
            logging.StreamHandler()
        ]
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Analyze a Spark Extent HTML test report and classify failure root causes"
    )
    parser.add_argument("report", nargs="?", help="Path to the .html/.htm report")
    parser.add_argument("--output-dir", default=Config.OUTPUT_DIR, help="Directory for the generated dashboard")
    parser.add_argument("--json", action="store_true", help="Also write the analysis result as JSON")
    parser.add_argument("--parse-only", action="store_true", help="Only parse the report and log extracted test cases")
    parser.add_argument("--create-jira", action="store_true", help="Create JIRA issues for application defects")
    parser.add_argument("--test-jira", action="store_true", help="Test the JIRA connection and exit")
    parser.add_argument("--save-jira-credentials", action="store_true",
                        help="Save JIRA credentials given by --jira-* options (token is prompted)")
    parser.add_argument("--jira-base-url", help="JIRA base URL, e.g. https://your-domain.atlassian.net")
    parser.add_argument("--jira-email", help="JIRA account email")
    parser.add_argument("--jira-project", help="JIRA project key")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def handle_jira_settings(args) -> int:
    """Save and/or test JIRA credentials"""
    store = CredentialStore()

    if args.save_jira_credentials:
        credentials = JiraCredentials(
            base_url=args.jira_base_url or '',
            email=args.jira_email or '',
            api_token=Config.JIRA_API_TOKEN or getpass.getpass("JIRA API token: "),
            project_key=args.jira_project or ''
        )
        try:
            store.save(credentials)
        except ValueError as e:
            logger.error(f"❌ {e}")
            return 1

    if args.test_jira:
        reporter = JiraReporter(get_stored_credentials(store))
        try:
            if not reporter.test_connection():
                logger.error("❌ Could not connect to JIRA. Please check your credentials.")
                return 1
        except JiraError as e:
            logger.error(f"❌ {e.message}")
            return 1
        logger.info("✅ Connection successful")

    return 0


def log_test_cases(test_cases):
    """Log every extracted record (parse-only mode)"""
    for test_case in test_cases:
        logger.info(repr(test_case))
        if test_case.error_message:
            logger.info(f"      {test_case.error_message}")


def main(argv=None) -> int:
    """Run the Defect Analyzer workflow"""
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.save_jira_credentials or args.test_jira:
        status = handle_jira_settings(args)
        if status or not args.report:
            return status

    if not args.report:
        logger.error("❌ No report given! Exiting.")
        return 1

    logger.info("🚀 Starting Defect Analyzer...")

    # 1. Parse Report
    parser = SparkReportParser()
    try:
        parsed = parser.parse_file(args.report)
    except (FileNotFoundError, ReportValidationError) as e:
        logger.error(f"❌ {e}")
        return 1

    if parsed.used_fallback:
        logger.info("ℹ️ The report structure wasn't recognized. Sending raw content for AI analysis.")

    summary = parser.get_summary_stats(parsed.test_cases)
    logger.info(f"📊 Total tests: {summary.total}. Pass Rate: {summary.pass_rate:.1f}%")

    if args.parse_only:
        log_test_cases(parsed.test_cases)
        return 0

    # 2. AI Analysis
    try:
        analyzer = DefectAnalyzer()
        result = analyzer.analyze_report(parsed)
    except AnalysisServiceError as e:
        logger.error(f"❌ Analysis failed ({e.status_code}): {e.message}")
        return 1

    app_defects = result.application_defects
    logger.info(f"✅ Analysis Complete: {len(result.failures)} failures analyzed, {len(app_defects)} application defects")

    # 3. JIRA Export
    jira_issues = {}
    if args.create_jira:
        reporter = JiraReporter()
        if not reporter.is_configured:
            logger.error("❌ JIRA Not Configured. Please configure JIRA credentials first.")
        else:
            try:
                jira_issues = reporter.export_application_defects(result)
            except JiraError as e:
                logger.error(f"❌ JIRA export failed: {e.message}")

    # 4. Generate Dashboard
    report_name = Path(args.report).name
    safe_report_name = "".join(c for c in Path(args.report).stem if c.isalnum() or c in ('-', '_', ' ')).strip().replace(' ', '-')
    report_gen = ReportGenerator()
    html_content = report_gen.generate_html_report(
        result,
        report_name,
        test_cases=parsed.test_cases,
        used_parse_fallback=parsed.used_fallback,
        jira_issues=jira_issues
    )
    html_path = Path(args.output_dir) / f"Defect-Analysis_{safe_report_name}.html"
    saved_path = report_gen.save_report(html_content, str(html_path))
    logger.info(f"📄 Dashboard saved to: {saved_path}")

    if args.json:
        json_path = report_gen.save_json(result, str(Path(args.output_dir) / f"Defect-Analysis_{safe_report_name}.json"))
        logger.info(f"📄 JSON saved to: {json_path}")

    logger.info("🎉 Defect Analyzer finished successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
