"""
Runtime configuration loaded from the environment (and an optional .env file).
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_API_URL = "http://localhost:8000"


def _as_int(env_name: str, default: int) -> int:
    try:
        return int(os.getenv(env_name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """
    Settings for the moderation proxy and the dashboard.

    Attributes:
        gemini_api_key: Credential for the Gemini API (proxy only)
        gemini_model: Model used for moderation
        cors_origins: Origins allowed to call the proxy from a browser
        host: Bind address for the proxy server
        port: Bind port for the proxy server
        api_url: Base URL the dashboard uses to reach the proxy
        log_level: Root logging level
    """
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 8000
    api_url: str = DEFAULT_API_URL
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment after loading .env."""
    load_dotenv()

    origins = os.getenv("SAFEGUARD_CORS_ORIGINS", "*")
    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        host=os.getenv("SAFEGUARD_HOST", "0.0.0.0"),
        port=_as_int("SAFEGUARD_PORT", 8000),
        api_url=os.getenv("SAFEGUARD_API_URL", DEFAULT_API_URL).rstrip("/"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
