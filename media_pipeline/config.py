"""
Client-side configuration for the media upload pipeline.
Loads from .env and provides defaults matching the upload-photo function limits.
"""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # ── Functions endpoint ──────────────────────────────────
    FUNCTIONS_URL: str = os.getenv("FUNCTIONS_URL", "http://localhost:8000").rstrip("/")
    FUNCTIONS_API_KEY: str = os.getenv("FUNCTIONS_API_KEY", "")

    # ── Admission ceilings (bytes) ──────────────────────────
    MAX_IMAGE_BYTES: int = 50 * 1024 * 1024
    MAX_VIDEO_BYTES: int = 500 * 1024 * 1024

    # ── Compression ─────────────────────────────────────────
    COMPRESSION_MIN_BYTES: int = 50 * 1024  # at or below this, images go out untouched
    COMPRESSION_ACCEPT_RATIO: float = 0.9  # keep result only if < 90% of original
    COMPRESSION_QUALITY_STEP: float = 0.1
    COMPRESSION_QUALITY_FLOOR: float = 0.5
    COMPRESSION_WORKERS: int = int(os.getenv("COMPRESSION_WORKERS", str(min(4, os.cpu_count() or 2))))

    # ── Scheduling ──────────────────────────────────────────
    UPLOAD_CONCURRENCY: int = int(os.getenv("UPLOAD_CONCURRENCY", "3"))
    UPLOAD_TIMEOUT_SECONDS: float = float(os.getenv("UPLOAD_TIMEOUT_SECONDS", "300"))
    CONFIG_TIMEOUT_SECONDS: float = float(os.getenv("CONFIG_TIMEOUT_SECONDS", "15"))

    @classmethod
    def validate(cls):
        if not cls.FUNCTIONS_API_KEY:
            raise ValueError(
                "FUNCTIONS_API_KEY not set. Copy .env.example to .env and add the project key."
            )
