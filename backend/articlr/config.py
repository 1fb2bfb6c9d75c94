"""
Configuration for Articlr
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (ValueError, TypeError):
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# API Keys - Must be set via environment variables
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

# LLM Provider preference: "gemini", "claude" or "openai" (falls back to whichever key is set)
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini")

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LLM_MAX_TOKENS = _int_env("LLM_MAX_TOKENS", 8192)
LLM_TIMEOUT = _int_env("LLM_TIMEOUT", 120)  # seconds

# Scraping
BROWSER_ENABLED = _bool_env("BROWSER_ENABLED", True)
BROWSER_NAV_TIMEOUT_MS = _int_env("BROWSER_NAV_TIMEOUT_MS", 30000)
BROWSER_BODY_TIMEOUT_MS = _int_env("BROWSER_BODY_TIMEOUT_MS", 10000)
HTTP_FETCH_TIMEOUT = _int_env("HTTP_FETCH_TIMEOUT", 10)  # seconds, per try
HTTP_FETCH_RETRIES = _int_env("HTTP_FETCH_RETRIES", 2)  # additional attempts
MAX_SOURCE_CHARS = 8000  # keeps the outline prompt bounded

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
NOISY_LOG_LEVEL = os.getenv("NOISY_LOG_LEVEL", "WARNING")

# CORS
cors_origins_str = os.getenv("ALLOWED_ORIGINS", "*")
if cors_origins_str.strip() == "*":
    ALLOWED_ORIGINS = ["*"]
else:
    ALLOWED_ORIGINS = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]
    if not ALLOWED_ORIGINS:
        ALLOWED_ORIGINS = ["*"]
