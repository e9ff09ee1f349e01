"""
JIRA reporter for exporting application defects as Bug issues.
Uses the JIRA Cloud REST API v3 with Basic auth (account email + API token).
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Optional

import requests
from requests.auth import HTTPBasicAuth

from ..parsers.models import AnalysisResult, FailureAnalysis
from ..settings import Config

logger = logging.getLogger(__name__)

ISSUE_LABELS = ['automated-test-failure', 'defect-analyzer']
JIRA_PRIORITIES = ('Highest', 'High', 'Medium', 'Low', 'Lowest')


class JiraError(Exception):
    """Raised when JIRA rejects a request or cannot be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class JiraCredentials:
    """Credentials for one JIRA site and project"""
    base_url: str
    email: str
    api_token: str
    project_key: str

    @property
    def clean_base_url(self) -> str:
        """Base URL without trailing slash"""
        return self.base_url.rstrip('/')

    def is_complete(self) -> bool:
        return all([self.base_url, self.email, self.api_token, self.project_key])

    @classmethod
    def from_env(cls) -> Optional['JiraCredentials']:
        """Build credentials from environment configuration, if all fields are set"""
        credentials = cls(**Config.get_jira_config())
        return credentials if credentials.is_complete() else None


class CredentialStore:
    """Persists JIRA credentials as a JSON file"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or Config.JIRA_CREDENTIALS_FILE)

    def load(self) -> Optional[JiraCredentials]:
        """Load saved credentials, or None if missing or unreadable"""
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            credentials = JiraCredentials(
                base_url=data.get('base_url', ''),
                email=data.get('email', ''),
                api_token=data.get('api_token', ''),
                project_key=data.get('project_key', '')
            )
        except (OSError, json.JSONDecodeError, AttributeError) as e:
            logger.warning(f"Could not read JIRA credentials from {self.path}: {e}")
            return None
        return credentials if credentials.is_complete() else None

    def save(self, credentials: JiraCredentials) -> str:
        """Save credentials; all fields including project key are required"""
        if not credentials.is_complete():
            raise ValueError("Please fill in all required fields including Project Key.")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(asdict(credentials), f, indent=2)
        self.path.chmod(0o600)
        logger.info(f"✅ JIRA credentials saved to {self.path}")
        return str(self.path)

    def clear(self) -> bool:
        """Remove saved credentials; returns True if a file was removed"""
        if self.path.exists():
            self.path.unlink()
            logger.info("JIRA credentials removed")
            return True
        return False


def get_stored_credentials(store: Optional[CredentialStore] = None) -> Optional[JiraCredentials]:
    """Environment credentials take precedence over the credentials file"""
    return JiraCredentials.from_env() or (store or CredentialStore()).load()


@dataclass
class CreatedIssue:
    """A JIRA issue created for a failure"""
    key: str
    id: str
    url: str
    attachments: List[str] = field(default_factory=list)


def generate_description(failure: FailureAnalysis) -> str:
    """Render a failure as a JIRA wiki-markup issue description"""
    test_case = failure.test_case
    lines = [
        "h2. Summary",
        failure.root_cause,
        "",
        "h2. Test Details",
        f"* *Test Name:* {test_case.name}",
        f"* *Class:* {test_case.class_name}",
        "* *Status:* Failed",
        "",
    ]

    if test_case.steps_to_reproduce:
        lines.append("h2. Steps to Reproduce")
        lines.extend(f"{i}. {step}" for i, step in enumerate(test_case.steps_to_reproduce, 1))
        lines.append("")

    if test_case.error_message:
        lines.extend(["h2. Error Message", "{code}", test_case.error_message, "{code}", ""])

    if test_case.stack_trace:
        lines.extend(["h2. Stack Trace", "{code}", test_case.stack_trace, "{code}", ""])

    if failure.evidence:
        lines.append("h2. Evidence")
        lines.extend(f"* {item}" for item in failure.evidence)
        lines.append("")

    lines.extend([
        "h2. Suggested Fix",
        failure.suggested_fix,
        "",
        "h2. Analysis Metadata",
        f"* *Category:* {failure.category.label}",
        f"* *Confidence:* {failure.confidence}",
        "* *Generated by:* Defect Analyzer Agent",
    ])
    return '\n'.join(lines) + '\n'


def default_summary(failure: FailureAnalysis) -> str:
    return f"Test Failure: {failure.test_case.name}"


def _error_message_from_response(response: requests.Response) -> str:
    """Prefer JIRA's own error text, else the raw body, else a generic message"""
    error_text = response.text or ''
    try:
        error_json = json.loads(error_text)
    except ValueError:
        return error_text or 'Failed to create JIRA issue'

    if isinstance(error_json, dict):
        errors = error_json.get('errors')
        if errors and isinstance(errors, dict):
            return ', '.join(str(v) for v in errors.values())
        error_messages = error_json.get('errorMessages')
        if error_messages and isinstance(error_messages, list):
            return ', '.join(str(m) for m in error_messages)
    return 'Failed to create JIRA issue'


class JiraReporter:
    """Creates JIRA Bug issues for application defects"""

    def __init__(self, credentials: Optional[JiraCredentials] = None, timeout: Optional[int] = None):
        """
        Initialize with explicit credentials, falling back to env/stored ones.

        Args:
            credentials: JIRA credentials
            timeout: Request timeout in seconds
        """
        self.credentials = credentials or get_stored_credentials()
        self.timeout = timeout or Config.JIRA_TIMEOUT

        if not self.credentials:
            logger.warning("JIRA credentials not configured (set JIRA_* in .env or save them)")
        else:
            logger.info(f"✅ JiraReporter initialized for project {self.credentials.project_key}")

    @property
    def is_configured(self) -> bool:
        return self.credentials is not None and self.credentials.is_complete()

    def _require_credentials(self) -> JiraCredentials:
        if not self.is_configured:
            raise JiraError('JIRA credentials are required', 400)
        return self.credentials

    def _auth(self) -> HTTPBasicAuth:
        credentials = self._require_credentials()
        return HTTPBasicAuth(credentials.email, credentials.api_token)

    def test_connection(self) -> bool:
        """
        Verify credentials by fetching the current user.

        Returns:
            True if JIRA accepted the credentials, False otherwise
        """
        credentials = self._require_credentials()
        try:
            response = requests.get(
                f"{credentials.clean_base_url}/rest/api/3/myself",
                auth=self._auth(),
                headers={'Accept': 'application/json'},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Could not connect to JIRA: {e}")
            return False

        if response.ok:
            logger.info("✅ JIRA credentials are valid")
            return True

        logger.error(f"JIRA connection failed: {response.status_code}")
        return False

    def create_issue(
        self,
        failure: FailureAnalysis,
        summary: Optional[str] = None,
        description: Optional[str] = None,
        priority: Optional[str] = None
    ) -> CreatedIssue:
        """
        Create a Bug issue for a failure and attach its screenshots.

        Args:
            failure: Analyzed failure
            summary: Issue summary (defaults to "Test Failure: <name>")
            description: Issue description (defaults to generated wiki markup)
            priority: JIRA priority name (defaults from the failure category)

        Returns:
            CreatedIssue with key, id, browse URL and attached file names

        Raises:
            JiraError: If credentials are missing or JIRA rejects the issue
        """
        credentials = self._require_credentials()
        if failure is None:
            raise JiraError('Failure details and summary are required', 400)

        summary = summary or default_summary(failure)
        description = description or generate_description(failure)
        priority = priority or failure.category.jira_priority
        if priority not in JIRA_PRIORITIES:
            raise JiraError(f"Invalid priority '{priority}'. Use one of: {', '.join(JIRA_PRIORITIES)}", 400)

        issue_payload = {
            'fields': {
                'project': {'key': credentials.project_key},
                'summary': summary,
                'description': {
                    'type': 'doc',
                    'version': 1,
                    'content': [
                        {
                            'type': 'paragraph',
                            'content': [{'type': 'text', 'text': description or 'No description provided'}]
                        }
                    ]
                },
                'issuetype': {'name': 'Bug'},
                'priority': {'name': priority},
                'labels': list(ISSUE_LABELS)
            }
        }

        logger.info(f"Creating JIRA issue in project {credentials.project_key}...")

        try:
            response = requests.post(
                f"{credentials.clean_base_url}/rest/api/3/issue",
                json=issue_payload,
                auth=self._auth(),
                headers={'Accept': 'application/json', 'Content-Type': 'application/json'},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Error creating JIRA issue: {e}")
            raise JiraError(f'Failed to create JIRA issue: {e}') from e

        if not response.ok:
            error_message = _error_message_from_response(response)
            logger.error(f"JIRA issue creation failed: {response.status_code} {response.text}")
            raise JiraError(error_message, response.status_code)

        try:
            issue_data = response.json()
        except ValueError as e:
            logger.error(f"JIRA returned a non-JSON response: {response.status_code} {response.text[:200]}")
            raise JiraError('Failed to create JIRA issue', response.status_code) from e
        if not isinstance(issue_data, dict):
            raise JiraError('Failed to create JIRA issue', response.status_code)
        issue_key = issue_data.get('key', '')
        logger.info(f"✅ JIRA issue created: {issue_key}")

        attachments = self.attach_screenshots(issue_key, failure)

        return CreatedIssue(
            key=issue_key,
            id=str(issue_data.get('id', '')),
            url=f"{credentials.clean_base_url}/browse/{issue_key}",
            attachments=attachments
        )

    def attach_screenshots(self, issue_key: str, failure: FailureAnalysis) -> List[str]:
        """
        Attach the failure's screenshots one by one.

        A failed attachment is logged and skipped; it never fails the issue.

        Returns:
            Names of the screenshots that were attached
        """
        credentials = self._require_credentials()
        attached = []

        for screenshot in failure.test_case.screenshots or []:
            try:
                binary_data = base64.b64decode(screenshot.base64_data)
                response = requests.post(
                    f"{credentials.clean_base_url}/rest/api/3/issue/{issue_key}/attachments",
                    files={'file': (screenshot.name or 'screenshot.png', binary_data,
                                    screenshot.mime_type or 'image/png')},
                    auth=self._auth(),
                    headers={'X-Atlassian-Token': 'no-check'},
                    timeout=self.timeout
                )
            except (binascii.Error, ValueError, requests.RequestException) as e:
                logger.error(f"Error attaching screenshot {screenshot.name}: {e}")
                continue

            if response.ok:
                logger.info(f"Attached screenshot: {screenshot.name}")
                attached.append(screenshot.name)
            else:
                logger.error(f"Failed to attach screenshot: {screenshot.name} ({response.status_code}) {response.text}")

        return attached

    def export_application_defects(self, result: AnalysisResult) -> Dict[str, Dict]:
        """
        Create one issue per application defect in an analysis result.

        Returns:
            Mapping of test case id to {'issue': CreatedIssue} or {'error': message}
        """
        self._require_credentials()
        defects = result.application_defects
        if not defects:
            logger.info("No application defects to export")
            return {}

        logger.info(f"🐛 Exporting {len(defects)} application defects to JIRA...")
        outcomes: Dict[str, Dict] = {}
        for failure in defects:
            try:
                issue = self.create_issue(failure)
                outcomes[failure.test_case.id] = {'issue': issue}
            except JiraError as e:
                logger.error(f"Failed to create issue for {failure.test_case.name}: {e.message}")
                outcomes[failure.test_case.id] = {'error': e.message}

        created = sum(1 for o in outcomes.values() if 'issue' in o)
        logger.info(f"✅ Created {created}/{len(defects)} JIRA issues")
        return outcomes
