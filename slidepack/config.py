"""
Service configuration read from environment variables.
"""

import os
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool = False) -> bool:
    v = str(os.getenv(name, str(default))).strip().lower()
    return v in ("1", "true", "t", "yes", "y", "on")


# Output page canvas (US Letter in PDF points)
PAGE_WIDTH = _env_float("SLIDEPACK_PAGE_WIDTH", 612.0)
PAGE_HEIGHT = _env_float("SLIDEPACK_PAGE_HEIGHT", 792.0)
PADDING = _env_float("SLIDEPACK_PADDING", 10.0)

# Storage
UPLOAD_DIR = Path(os.getenv("SLIDEPACK_UPLOAD_DIR", "./uploads")).resolve()
OUTPUT_DIR = Path(os.getenv("SLIDEPACK_OUTPUT_DIR", "./converted")).resolve()
MAX_UPLOAD_MB = _env_int("SLIDEPACK_MAX_UPLOAD_MB", 100)

# External tools
LIBREOFFICE_PATH = os.getenv("SLIDEPACK_LIBREOFFICE", "")
GHOSTSCRIPT_PATH = os.getenv("SLIDEPACK_GHOSTSCRIPT", "gs")
COMPRESSION_PRESET = os.getenv("SLIDEPACK_COMPRESSION_PRESET", "ebook")
CONVERT_TIMEOUT_SEC = _env_float("SLIDEPACK_CONVERT_TIMEOUT", 120.0)
COMPRESS_TIMEOUT_SEC = _env_float("SLIDEPACK_COMPRESS_TIMEOUT", 120.0)

# Scheduling
MAX_CONCURRENT_JOBS = _env_int("SLIDEPACK_MAX_CONCURRENT_JOBS", 4)

# Logging and dev server
LOG_LEVEL = os.getenv("SLIDEPACK_LOG_LEVEL", "INFO").upper()
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 8000)
RELOAD = _env_bool("RELOAD", False)
