import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# Anything shorter is treated as an image-only or corrupt upload.
MIN_RESUME_TEXT_LENGTH = _env_int("FAIRHIRE_MIN_TEXT_LENGTH", 20)
# Below this many characters the PDF extractor tries its next backend.
PDF_FALLBACK_LENGTH = _env_int("FAIRHIRE_PDF_FALLBACK_LENGTH", 80)
MAX_CANDIDATES_PER_JOB = _env_int("FAIRHIRE_MAX_CANDIDATES_PER_JOB", 6)

STATE_PATH: Optional[str] = os.getenv("FAIRHIRE_STATE_PATH") or None
LOG_LEVEL = os.getenv("FAIRHIRE_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = _env_list(
    "FAIRHIRE_CORS_ORIGINS",
    ["http://localhost:3000", "http://localhost:5173"],
)
