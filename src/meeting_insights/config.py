"""
Configuration management for the meeting insights extraction service.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


class Config:
    """Configuration settings loaded from environment."""

    # OpenAI
    OPENAI_API_KEY: str = os.getenv('OPENAI_API_KEY', '')
    OPENAI_CHAT_MODEL: str = os.getenv('OPENAI_CHAT_MODEL', 'gpt-4.1-mini')
    OPENAI_TEMPERATURE: float = float(os.getenv('OPENAI_TEMPERATURE', '0.2'))

    # Postgres
    DATABASE_URL: str = os.getenv('DATABASE_URL', '')

    # Extraction batch
    EXTRACTION_MAX_CONCURRENCY: int = int(os.getenv('EXTRACTION_MAX_CONCURRENCY', '10'))
    EXTRACTION_MAX_RETRIES: int = int(os.getenv('EXTRACTION_MAX_RETRIES', '1'))
    LLM_TIMEOUT_SECONDS: float = float(os.getenv('LLM_TIMEOUT_SECONDS', '60'))

    # Deterministic reconciliation
    DETERMINISTIC_MIN_CONFIDENCE: float = float(
        os.getenv('DETERMINISTIC_MIN_CONFIDENCE', '0.7')
    )
    RECONCILE_POLICY: str = os.getenv('RECONCILE_POLICY', 'fill_nulls')

    # Versioning stamped on every persisted extraction
    PROMPT_VERSION: str = os.getenv('PROMPT_VERSION', '1.0.0')
    SCHEMA_VERSION: str = os.getenv('SCHEMA_VERSION', '1.0.0')

    # Logging: console output unless LOG_JSON is set
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_JSON: bool = os.getenv('LOG_JSON', '').lower() in ('1', 'true', 'yes')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that required configuration is present.

        Returns:
            List of missing required configuration keys
        """
        missing = []
        if not cls.OPENAI_API_KEY:
            missing.append('OPENAI_API_KEY')
        if not cls.DATABASE_URL:
            missing.append('DATABASE_URL')
        return missing


# Singleton config instance
config = Config()
