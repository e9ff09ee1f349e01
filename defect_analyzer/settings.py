"""
Configuration management for the Defect Analyzer.
Centralizes environment variable loading, configuration, and constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables once at module level
_config_path = Path(__file__).parent.parent / 'config' / '.env'
if _config_path.exists():
    load_dotenv(_config_path)
else:
    # Fallback to root .env if config/.env doesn't exist
    load_dotenv(Path(__file__).parent.parent / '.env')


class Config:
    """Centralized configuration class"""

    # LLM Configuration
    LLM_PROVIDER = os.getenv('LLM_PROVIDER', 'openai').lower()
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
    OPENAI_BASE_URL = os.getenv('OPENAI_BASE_URL', '')  # Optional OpenAI-compatible gateway
    OLLAMA_MODEL = os.getenv('OLLAMA_MODEL', 'llama3.2:3b')
    OLLAMA_BASE_URL = os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434')
    LLM_TEMPERATURE = float(os.getenv('LLM_TEMPERATURE', '0.3'))

    # Report Input Limits
    MAX_REPORT_SIZE_MB = int(os.getenv('MAX_REPORT_SIZE_MB', '50'))
    ALLOWED_REPORT_EXTENSIONS = ('.html', '.htm')

    # Prompt Bounds (characters of raw report digest sent to the LLM)
    RAW_CONTENT_PROMPT_LIMIT = int(os.getenv('RAW_CONTENT_PROMPT_LIMIT', '5000'))
    RAW_CONTENT_NO_FAILURE_LIMIT = int(os.getenv('RAW_CONTENT_NO_FAILURE_LIMIT', '2000'))

    # JIRA Configuration
    JIRA_BASE_URL = os.getenv('JIRA_BASE_URL', '')
    JIRA_EMAIL = os.getenv('JIRA_EMAIL', '')
    JIRA_API_TOKEN = os.getenv('JIRA_API_TOKEN', '')
    JIRA_PROJECT_KEY = os.getenv('JIRA_PROJECT_KEY', '')
    JIRA_CREDENTIALS_FILE = os.getenv(
        'JIRA_CREDENTIALS_FILE',
        str(Path.home() / '.defect_analyzer' / 'jira.json')
    )
    JIRA_TIMEOUT = int(os.getenv('JIRA_TIMEOUT', '30'))

    # Output Configuration
    OUTPUT_DIR = os.getenv('OUTPUT_DIR', 'reports')

    # Logging Configuration
    LOG_FILE_NAME = 'defect_analyzer.log'
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    @classmethod
    def get_jira_config(cls) -> dict:
        """Get JIRA credential dictionary from environment"""
        return {
            'base_url': cls.JIRA_BASE_URL,
            'email': cls.JIRA_EMAIL,
            'api_token': cls.JIRA_API_TOKEN,
            'project_key': cls.JIRA_PROJECT_KEY
        }
