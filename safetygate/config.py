"""
SafetyGate Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> tuple[str, ...]:
    return tuple(v.strip().lower() for v in value.split(",") if v.strip())


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    GATE_VERSION: str = "1.0.0"
    API_VERSION: str = "1"

    # --- Detection ---
    # Entity categories that raise a signal one level when targeted
    PROTECTED_ENTITY_CATEGORIES: tuple[str, ...] = _csv(
        os.getenv(
            "SAFETYGATE_PROTECTED_CATEGORIES",
            "minor,child,juvenile,judge,judiciary,victim,witness",
        )
    )
    # Characters either side of a match searched for entity names
    CONTEXT_WINDOW: int = int(os.getenv("SAFETYGATE_CONTEXT_WINDOW", "120"))

    # --- Server ---
    HOST: str = os.getenv("SAFETYGATE_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("SAFETYGATE_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("SAFETYGATE_CORS_ORIGINS", "*")


settings = Settings()
