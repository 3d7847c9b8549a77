"""
Configuration loader for the career story wizard.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Centralized configuration for all wizard components.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== MongoDB =====
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "career_stories")

    # ===== LLM APIs =====
    # The generation provider is optional: without a key the wizard runs
    # entirely on the static question bank and the local narrative fallback.
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")

    # ===== LLM Model Configuration =====
    STORY_MODEL: str = os.getenv("STORY_MODEL", "gpt-4o")
    QUESTION_MODEL: str = os.getenv("QUESTION_MODEL", "gpt-4o-mini")

    # Temperature settings
    STORY_TEMPERATURE: float = float(os.getenv("STORY_TEMPERATURE", "0.7"))
    QUESTION_TEMPERATURE: float = float(os.getenv("QUESTION_TEMPERATURE", "0.5"))
    STORY_MAX_TOKENS: int = int(os.getenv("STORY_MAX_TOKENS", "2000"))

    # Provider call budgets (seconds). A call that exceeds its budget is
    # treated as a failure and falls through to the local fallback.
    NARRATIVE_TIMEOUT_SECONDS: float = float(os.getenv("NARRATIVE_TIMEOUT_SECONDS", "30"))
    QUESTION_TIMEOUT_SECONDS: float = float(os.getenv("QUESTION_TIMEOUT_SECONDS", "15"))

    # ===== Wizard Behaviour =====
    MIN_CONTENT_LENGTH: int = int(os.getenv("MIN_CONTENT_LENGTH", "50"))
    MAX_RANKED_ACTIVITIES: int = int(os.getenv("MAX_RANKED_ACTIVITIES", "30"))
    # Dynamic (LLM) questions are only attempted when a provider is configured
    ENABLE_DYNAMIC_QUESTIONS: bool = os.getenv("ENABLE_DYNAMIC_QUESTIONS", "true").lower() == "true"

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.
        """
        required_settings = {
            "MONGODB_URI": cls.MONGODB_URI,
        }

        missing = [name for name, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )

        if cls.MIN_CONTENT_LENGTH < 1:
            raise ValueError("MIN_CONTENT_LENGTH must be a positive integer")

        if cls.MAX_RANKED_ACTIVITIES < 1:
            raise ValueError("MAX_RANKED_ACTIVITIES must be a positive integer")

        if cls.NARRATIVE_TIMEOUT_SECONDS <= 0 or cls.QUESTION_TIMEOUT_SECONDS <= 0:
            raise ValueError("Provider timeouts must be greater than zero")

    @classmethod
    def is_llm_configured(cls) -> bool:
        """True when a generation provider can be created."""
        return bool(cls.OPENAI_API_KEY)

    @classmethod
    def get_llm_api_key(cls) -> str:
        """Get the API key for generation calls."""
        return cls.OPENAI_API_KEY

    @classmethod
    def get_llm_base_url(cls) -> Optional[str]:
        """Generation base URL (None to use OpenAI directly)."""
        return cls.OPENAI_BASE_URL or None

    @classmethod
    def summary(cls) -> dict:
        """
        Get configuration summary (for debugging, excludes secrets).

        Returns:
            Dict with non-secret configuration values
        """
        return {
            "mongodb_configured": bool(cls.MONGODB_URI),
            "mongodb_database": cls.MONGODB_DATABASE,
            "llm_configured": cls.is_llm_configured(),
            "story_model": cls.STORY_MODEL,
            "question_model": cls.QUESTION_MODEL,
            "narrative_timeout_seconds": cls.NARRATIVE_TIMEOUT_SECONDS,
            "question_timeout_seconds": cls.QUESTION_TIMEOUT_SECONDS,
            "min_content_length": cls.MIN_CONTENT_LENGTH,
            "max_ranked_activities": cls.MAX_RANKED_ACTIVITIES,
            "dynamic_questions": cls.ENABLE_DYNAMIC_QUESTIONS,
        }
