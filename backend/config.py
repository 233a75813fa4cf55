"""
ERP Lens Backend - Configuration
All environment-derived settings are defined here and imported by modules.
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_int(key: str, default: Optional[int]) -> Optional[int]:
    val = os.getenv(key)
    if val is None or val.strip() == "":
        return default
    try:
        return int(val)
    except ValueError:
        print(f"Ignoring non-integer {key}={val!r}, using {default}")
        return default


def _env_float(key: str, default: float) -> float:
    val = os.getenv(key)
    if val is None or val.strip() == "":
        return default
    try:
        return float(val)
    except ValueError:
        print(f"Ignoring non-numeric {key}={val!r}, using {default}")
        return default


# ---------------------------------------------------------------------------
# LLM
# ---------------------------------------------------------------------------
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT_SECONDS: float = _env_float("OPENAI_TIMEOUT_SECONDS", 60.0)
OPENAI_TEMPERATURE: float = _env_float("OPENAI_TEMPERATURE", 0.3)


def openai_api_key() -> Optional[str]:
    # Read on demand so tests and restarts can change it.
    return os.getenv("OPENAI_API_KEY") or None


# ---------------------------------------------------------------------------
# Cleaning and context
# ---------------------------------------------------------------------------
# Fallback year for implausible dates; unset means the wall-clock year.
ERP_CURRENT_YEAR: Optional[int] = _env_int("ERP_CURRENT_YEAR", None)
SAMPLE_ROW_LIMIT: int = _env_int("SAMPLE_ROW_LIMIT", 150)
CONTEXT_ROW_CAP: int = _env_int("CONTEXT_ROW_CAP", 200)
RELEVANT_ROW_LIMIT: int = _env_int("RELEVANT_ROW_LIMIT", 20)

# ---------------------------------------------------------------------------
# Session store and HTTP
# ---------------------------------------------------------------------------
DATASET_TTL_HOURS: int = _env_int("DATASET_TTL_HOURS", 1)
MAX_DATASETS: int = _env_int("MAX_DATASETS", 10)
CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:3001,http://127.0.0.1:3001",
    ).split(",")
    if o.strip()
]
