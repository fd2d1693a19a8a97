"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No behavioral constants (see spec.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from spec import (
    DEFAULT_RECOGNITION_LANG,
    PROCESSING_ACK_DELAY_MS,
    RESTART_BACKOFF_MS,
)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the gateway, which hands the relevant fields to
    each SessionOrchestrator it builds.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool

    # ------------------------------------------------------------------
    # Recognition
    # ------------------------------------------------------------------

    recognition_lang: str
    restart_backoff_ms: int
    processing_delay_ms: int

    # ------------------------------------------------------------------
    # Speech output
    # ------------------------------------------------------------------

    speech_voice: str | None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    cors_allow_origins: tuple[str, ...]

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable is not an integer.
        """
        origins = os.environ.get("CORS_ALLOW_ORIGINS", "*")
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",

            recognition_lang=os.environ.get("RECOGNITION_LANG", DEFAULT_RECOGNITION_LANG),
            restart_backoff_ms=int(
                os.environ.get("RESTART_BACKOFF_MS", str(RESTART_BACKOFF_MS))
            ),
            processing_delay_ms=int(
                os.environ.get("PROCESSING_DELAY_MS", str(PROCESSING_ACK_DELAY_MS))
            ),

            speech_voice=os.environ.get("SPEECH_VOICE") or None,

            cors_allow_origins=tuple(
                o.strip() for o in origins.split(",") if o.strip()
            ),
        )
