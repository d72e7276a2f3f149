"""Application configuration.

Environment variables override all defaults.
API_TOKEN must be set in production - startup fails fast if it is missing.
"""

import os
from pathlib import Path
from typing import List


# Load .env for local development (safe no-op if not installed)
try:
    from dotenv import load_dotenv  # type: ignore

    _BACKEND_DIR = Path(__file__).resolve().parents[2]
    load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)
except Exception:
    pass


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Relational store behind the HTTP handlers
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pharmacy.db")
    INIT_DB_ON_STARTUP: bool = _env_bool("INIT_DB_ON_STARTUP", "true")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Static bearer token shared by every client (no per-user auth)
    API_TOKEN: str = os.getenv("API_TOKEN", "")
    if not API_TOKEN:
        if ENVIRONMENT == "production":
            raise ValueError(
                "API_TOKEN must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "API_TOKEN not set in environment. Using development default.",
            RuntimeWarning,
        )
        API_TOKEN = "development-only-pharmacy-token"

    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]

    # Data-access client
    DATA_BACKEND: str = os.getenv("DATA_BACKEND", "auto").lower()  # remote | local | auto
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://127.0.0.1:8000").rstrip("/")
    LOCAL_STORE_PATH: str = os.getenv("LOCAL_STORE_PATH", "./pharmacy_data.json")
    REMOTE_TIMEOUT_SECONDS: float = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "5"))

    # Inventory thresholds
    DEFAULT_MIN_STOCK: int = 10
    DEFAULT_MAX_STOCK: int = 100


settings = Settings()
