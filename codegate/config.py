from __future__ import annotations
import os
from typing import List

PORT_DEFAULT = 3000

try:
    PORT = int(os.getenv("PORT", str(PORT_DEFAULT)) or PORT_DEFAULT)
except Exception:
    PORT = PORT_DEFAULT
HOST = os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0"

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash").strip() or "gemini-2.5-flash"
GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
).strip().rstrip("/")

try:
    LLM_TIMEOUT_SECS = int(os.getenv("LLM_TIMEOUT_SECS", "75"))
except Exception:
    LLM_TIMEOUT_SECS = 75

# Flat delay before retrying after a 503/overloaded answer
try:
    OVERLOAD_BACKOFF_SECONDS = float(os.getenv("OVERLOAD_BACKOFF_SECONDS", "1.0") or 1.0)
except Exception:
    OVERLOAD_BACKOFF_SECONDS = 1.0

# Attempts per request = ATTEMPTS_PER_KEY * number of keys
ATTEMPTS_PER_KEY = 2

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "1").lower() in {"1", "true", "yes", "on"}

ALLOW_ORIGINS = [o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()]


def parse_keys(raw: str | None) -> List[str]:
    """Split a comma-separated key list, dropping blanks. Order is preserved."""
    return [k.strip() for k in (raw or "").split(",") if k.strip()]


def load_credentials() -> List[str]:
    """
    Read backend keys from GEMINI_API_KEYS, falling back to the older
    singular GEMINI_API_KEY. Either variable may hold a comma-separated list.
    """
    raw = os.getenv("GEMINI_API_KEYS") or os.getenv("GEMINI_API_KEY") or ""
    return parse_keys(raw)
