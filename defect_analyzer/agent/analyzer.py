"""
AI-powered defect analyzer.
Assembles the analysis request from extracted test cases and the raw report
digest, sends it to the configured LLM (OpenAI or Ollama) and validates the
response into an AnalysisResult.
"""

import logging
from typing import List, Optional

from ..parsers.models import AnalysisResult, ParsedReport, TestCase, TestStatus, TestSummary
from ..settings import Config
from ..utils import truncate
from .response_parser import parse_analysis_response

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
CREDITS_EXHAUSTED_MESSAGE = "AI credits exhausted. Please add credits to continue."
NOT_CONFIGURED_MESSAGE = "AI service not configured"

SYSTEM_PROMPT = """You are an expert test automation engineer and defect analyzer. Your task is to analyze test failures from Spark Extent Reports and identify root causes.

For each failure, you must:
1. Identify the most likely root cause
2. Classify the defect into one of these categories:
   - application_defect: Bug in the application under test
   - automation_script_defect: Issue with the test script itself
   - test_data_issue: Problem with test data or data dependencies
   - environment_issue: Environment instability, network issues, infrastructure problems
   - configuration_issue: Misconfiguration in test setup or environment
   - flaky_test: Intermittent failures due to timing, race conditions, etc.
3. Provide confidence level (high, medium, low)
4. List supporting evidence from the error messages and stack traces
5. Suggest a specific fix

You should also identify patterns across multiple failures and provide prioritized recommendations.

Respond ONLY with valid JSON matching this exact structure:
{
  "failures": [
    {
      "testId": "string",
      "rootCause": "string describing the root cause",
      "category": "one of the category values",
      "confidence": "high|medium|low",
      "evidence": ["array of evidence points"],
      "suggestedFix": "specific fix recommendation"
    }
  ],
  "patterns": [
    {
      "description": "pattern description",
      "occurrences": number,
      "affectedTests": ["test names"]
    }
  ],
  "recommendations": [
    {
      "priority": "high|medium|low",
      "title": "short title",
      "description": "detailed description",
      "actionItems": ["specific action items"]
    }
  ]
}"""


class AnalysisServiceError(Exception):
    """Raised when the AI service is unavailable, rate-limited or out of quota"""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DefectAnalyzer:
    """AI-powered defect analyzer supporting OpenAI and Ollama"""

    def __init__(self, llm=None):
        """
        Initialize the analyzer with the configured LLM provider.

        Args:
            llm: Pre-built LangChain model; when given, provider setup is skipped
        """
        self.llm_provider = Config.LLM_PROVIDER

        if llm is not None:
            self.llm = llm
            self.model = getattr(llm, 'model_name', None) or getattr(llm, 'model', 'custom')
            return

        logger.info(f"Initializing DefectAnalyzer with provider: {self.llm_provider}")

        if self.llm_provider == 'ollama':
            self._init_ollama()
        else:
            self._init_openai()

    def _init_ollama(self):
        """Initialize Ollama LLM"""
        try:
            from langchain_ollama import OllamaLLM

            self.model = Config.OLLAMA_MODEL
            self.base_url = Config.OLLAMA_BASE_URL

            self.llm = OllamaLLM(
                model=self.model,
                base_url=self.base_url,
                temperature=Config.LLM_TEMPERATURE
            )
            logger.info(f"✅ Ollama LLM initialized: {self.model}")
        except Exception as e:
            logger.error(f"Failed to initialize Ollama: {e}")
            raise AnalysisServiceError(NOT_CONFIGURED_MESSAGE) from e

    def _init_openai(self):
        """Initialize OpenAI LLM"""
        api_key = Config.OPENAI_API_KEY
        if not api_key:
            logger.error("OPENAI_API_KEY not found in environment variables")
            raise AnalysisServiceError(NOT_CONFIGURED_MESSAGE)

        try:
            from langchain_openai import ChatOpenAI

            self.model = Config.OPENAI_MODEL

            kwargs = {}
            if Config.OPENAI_BASE_URL:
                kwargs['base_url'] = Config.OPENAI_BASE_URL

            # No automatic retries: rate limits are surfaced to the user as-is
            self.llm = ChatOpenAI(
                model=self.model,
                api_key=api_key,
                temperature=Config.LLM_TEMPERATURE,
                max_retries=0,
                **kwargs
            )
            logger.info(f"✅ OpenAI LLM initialized: {self.model}")
        except Exception as e:
            logger.error(f"Failed to initialize OpenAI: {e}")
            raise AnalysisServiceError(NOT_CONFIGURED_MESSAGE) from e

    def analyze_report(self, report: ParsedReport) -> AnalysisResult:
        """Analyze a parsed report"""
        return self.analyze(report.test_cases, report.raw_content)

    def analyze(self, test_cases: List[TestCase], raw_content: Optional[str] = None) -> AnalysisResult:
        """
        Classify the failures of a test run.

        Args:
            test_cases: Extracted test cases
            raw_content: Raw report digest used as supplementary context

        Returns:
            AnalysisResult (fallback analysis when the response is malformed)

        Raises:
            AnalysisServiceError: If the AI service call fails
        """
        if test_cases is None:
            raise ValueError("Test cases list is required")

        failed_tests = [t for t in test_cases if t.is_failure]
        logger.info(f"🤖 Analyzing {len(failed_tests)} failed tests out of {len(test_cases)} total")

        messages = [
            ("system", SYSTEM_PROMPT),
            ("human", self.build_user_prompt(test_cases, raw_content)),
        ]

        logger.info("Calling AI service for analysis...")
        response = self._invoke(messages)
        logger.info("AI response received, parsing...")

        failures, patterns, recommendations, used_fallback = parse_analysis_response(response, failed_tests)

        result = AnalysisResult(
            summary=TestSummary.from_test_cases(test_cases),
            failures=failures,
            patterns=patterns,
            recommendations=recommendations,
            used_fallback=used_fallback
        )

        logger.info(
            f"✅ Analysis complete: {len(result.failures)} failures, "
            f"{len(result.patterns)} patterns, {len(result.recommendations)} recommendations"
        )
        return result

    def _invoke(self, messages) -> str:
        """Send the request and return the response text"""
        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            raise self._to_service_error(e) from e

        # Convert AIMessage to string if needed (chat models return AIMessage objects)
        if hasattr(response, 'content'):
            response = response.content
        return response if isinstance(response, str) else str(response or '')

    @staticmethod
    def _to_service_error(error: Exception) -> AnalysisServiceError:
        """Map a provider exception to a user-facing AnalysisServiceError"""
        status_code = getattr(error, 'status_code', None)
        error_code = getattr(error, 'code', None)

        logger.error(f"AI service error (status={status_code}): {error}")

        if status_code == 402 or error_code == 'insufficient_quota':
            return AnalysisServiceError(CREDITS_EXHAUSTED_MESSAGE, 402)
        if status_code == 429:
            return AnalysisServiceError(RATE_LIMIT_MESSAGE, 429)
        return AnalysisServiceError(f"AI analysis failed: {error}", 500)

    def build_user_prompt(self, test_cases: List[TestCase], raw_content: Optional[str] = None) -> str:
        """Build the user prompt from the failed tests and the raw digest"""
        failed_tests = [t for t in test_cases if t.is_failure]

        if not failed_tests:
            passed = sum(1 for t in test_cases if t.status == TestStatus.PASS)
            skipped = sum(1 for t in test_cases if t.status == TestStatus.SKIP)
            context = ''
            if raw_content:
                context = f"Context from the report:\n{truncate(raw_content, Config.RAW_CONTENT_NO_FAILURE_LIMIT)}"
            return (
                f"The test report shows {passed} passed tests and {skipped} skipped tests, with no failures. "
                f"Provide recommendations for the skipped tests if any.\n\n{context}"
            )

        failure_details = '\n---\n'.join(self._format_failure(t) for t in failed_tests)
        context = ''
        if raw_content:
            context = f"Additional context from the report:\n{truncate(raw_content, Config.RAW_CONTENT_PROMPT_LIMIT)}"

        return (
            f"Analyze these {len(failed_tests)} test failures:\n\n"
            f"{failure_details}\n\n"
            f"{context}\n\n"
            "Provide a comprehensive root cause analysis for each failure."
        )

    @staticmethod
    def _format_failure(test: TestCase) -> str:
        logs = '\n'.join(test.logs) if test.logs else 'No logs'
        return (
            f"\nTest ID: {test.id}\n"
            f"Test: {test.name}\n"
            f"Class: {test.class_name}\n"
            f"Error: {test.error_message or 'No error message'}\n"
            f"Stack Trace: {test.stack_trace or 'No stack trace'}\n"
            f"Logs: {logs}\n"
        )
