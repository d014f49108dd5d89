#!/usr/bin/env python3
"""
Configuration management for the Troves & Coves storefront backend.
"""

import os
from dotenv import load_dotenv

from ..utils.logger import get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger()

_DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    """Configuration class for the application."""

    # Database Configuration
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{os.path.abspath(os.path.join(_DATA_DIR, 'storefront.db'))}",
    )
    SEED_CATALOG = _flag("SEED_CATALOG", "true")

    # Redis Configuration (cart sessions, request counter, analytics)
    USE_REDIS = _flag("USE_REDIS", "true")
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB = int(os.getenv("REDIS_DB", 0))
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", 86400))
    ANALYTICS_TTL_SECONDS = int(os.getenv("ANALYTICS_TTL_SECONDS", 30 * 24 * 60 * 60))

    # Daily request limit (free tier protection)
    REQUEST_LIMIT_ENABLED = _flag("REQUEST_LIMIT_ENABLED")
    MAX_REQUESTS_PER_DAY = int(os.getenv("MAX_REQUESTS_PER_DAY", 90000))
    DEGRADE_RATIO = float(os.getenv("DEGRADE_RATIO", 0.8))
    FALLBACK_URL = os.getenv("FALLBACK_URL", "https://trovesandcoves.github.io/troves-coves")

    # HTTP
    ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
    CURRENCY = os.getenv("CURRENCY", "CAD")

    # AI provider configuration
    AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", 30))
    AI_RETRY_ATTEMPTS = int(os.getenv("AI_RETRY_ATTEMPTS", 3))
    AI_HEALTH_CHECK_INTERVAL = int(os.getenv("AI_HEALTH_CHECK_INTERVAL", 300))
    AI_HEALTH_CHECKS_ENABLED = _flag("AI_HEALTH_CHECKS_ENABLED")
    CIRCUIT_FAILURE_THRESHOLD = int(os.getenv("CIRCUIT_FAILURE_THRESHOLD", 3))
    CIRCUIT_RESET_SECONDS = int(os.getenv("CIRCUIT_RESET_SECONDS", 60))

    POLLINATIONS_TEXT_URL = os.getenv("POLLINATIONS_TEXT_URL", "https://text.pollinations.ai/openai")
    POLLINATIONS_IMAGE_URL = os.getenv("POLLINATIONS_IMAGE_URL", "https://image.pollinations.ai/prompt")
    POLLINATIONS_AUDIO_URL = os.getenv("POLLINATIONS_AUDIO_URL", "https://audio.pollinations.ai")

    HF_API_KEY = os.getenv("HF_API_KEY", "").strip()
    HF_INFERENCE_URL = os.getenv(
        "HF_INFERENCE_URL",
        "https://api-inference.huggingface.co/models/microsoft/DialoGPT-medium",
    )

    LOCAL_LLM_URL = os.getenv("LOCAL_LLM_URL", "").strip()
    LOCAL_LLM_MODEL = os.getenv("LOCAL_LLM_MODEL", "local-llama")

    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "").strip()
    ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
    ANTHROPIC_URL = os.getenv("ANTHROPIC_URL", "https://api.anthropic.com/v1/messages")

    @classmethod
    def debug_print(cls):
        logger.info(f"[CONFIG] DATABASE_URL={cls.DATABASE_URL.split('@')[-1]}")
        logger.info(f"[CONFIG] REDIS={cls.REDIS_HOST}:{cls.REDIS_PORT}/{cls.REDIS_DB} enabled={cls.USE_REDIS}")
        logger.info(f"[CONFIG] REQUEST_LIMIT enabled={cls.REQUEST_LIMIT_ENABLED} max={cls.MAX_REQUESTS_PER_DAY}")
        logger.info(f"[CONFIG] LOCAL_LLM set={bool(cls.LOCAL_LLM_URL)} HF set={bool(cls.HF_API_KEY)} ANTHROPIC set={bool(cls.ANTHROPIC_API_KEY)}")

    @classmethod
    def validate(cls):
        """Validate that the configured limits are usable."""
        problems = []

        if cls.MAX_REQUESTS_PER_DAY <= 0:
            problems.append("MAX_REQUESTS_PER_DAY must be positive")
        if not 0 < cls.DEGRADE_RATIO <= 1:
            problems.append("DEGRADE_RATIO must be in (0, 1]")
        if cls.AI_RETRY_ATTEMPTS < 1:
            problems.append("AI_RETRY_ATTEMPTS must be at least 1")
        if cls.CIRCUIT_FAILURE_THRESHOLD < 1:
            problems.append("CIRCUIT_FAILURE_THRESHOLD must be at least 1")

        if problems:
            raise ValueError(f"Invalid configuration: {'; '.join(problems)}")

        return True


# Validate configuration on import
Config.validate()
