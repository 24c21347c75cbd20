"""
Configuration settings for BranchDesk
"""
import os
from pathlib import Path
from typing import List

import dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Resolve .env paths relative to this file so settings load regardless of cwd.
_CONFIG_DIR = Path(__file__).resolve().parent.parent  # backend/
_BRANCHDESK_ROOT = _CONFIG_DIR.parent                # branchdesk/
_ENV_CANDIDATES = [
    _CONFIG_DIR / ".env",       # backend/.env
    _BRANCHDESK_ROOT / ".env",  # branchdesk/.env
]
_ENV_FILE = [str(p) for p in _ENV_CANDIDATES if p.is_file()]

# Load .env into os.environ so the os.getenv defaults below see it too.
for _p in _ENV_CANDIDATES:
    if _p.is_file():
        dotenv.load_dotenv(_p, override=False)
        break

PROFILE_ROLES = ("admin", "branch_manager")


class Settings(BaseSettings):
    """Application settings"""

    # App
    APP_NAME: str = "BranchDesk"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    # Supabase (anon key: every browser session signs in as its own user so RLS applies)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")

    # CORS - comma-separated
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list (deduped, order preserved)."""
        origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        return list(dict.fromkeys(origins))

    # Browser sessions
    SESSION_COOKIE_NAME: str = "branchdesk_session"
    SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", str(12 * 3600)))
    # Set true behind HTTPS
    SESSION_COOKIE_SECURE: bool = os.getenv("SESSION_COOKIE_SECURE", "false").lower() in ("true", "1", "yes")

    # Session & profile reconciliation
    # Upper bound before loading is forced off when the backend never answers.
    AUTH_RESOLUTION_TIMEOUT_SECONDS: float = float(os.getenv("AUTH_RESOLUTION_TIMEOUT_SECONDS", "5"))
    # How long a protected route waits for an in-flight resolution before answering "loading".
    GUARD_SETTLE_SECONDS: float = float(os.getenv("GUARD_SETTLE_SECONDS", "2"))
    PROFILE_RESOLVE_MAX_ATTEMPTS: int = int(os.getenv("PROFILE_RESOLVE_MAX_ATTEMPTS", "3"))
    PROFILE_RESOLVE_BACKOFF_SECONDS: float = float(os.getenv("PROFILE_RESOLVE_BACKOFF_SECONDS", "0.25"))
    # Role given to a profile created on first sign-in. Needs product sign-off before changing.
    DEFAULT_PROFILE_ROLE: str = os.getenv("DEFAULT_PROFILE_ROLE", "admin")
    # When false a missing profile is a resolution failure instead of being created.
    AUTO_CREATE_PROFILES: bool = os.getenv("AUTO_CREATE_PROFILES", "true").lower() in ("true", "1", "yes")

    # Inventory
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))

    @field_validator("DEFAULT_PROFILE_ROLE")
    @classmethod
    def _known_role(cls, value: str) -> str:
        value = (value or "").strip().lower()
        if value not in PROFILE_ROLES:
            raise ValueError(f"DEFAULT_PROFILE_ROLE must be one of {', '.join(PROFILE_ROLES)}")
        return value

    @field_validator("PROFILE_RESOLVE_MAX_ATTEMPTS")
    @classmethod
    def _bounded_attempts(cls, value: int) -> int:
        if value < 1 or value > 3:
            raise ValueError("PROFILE_RESOLVE_MAX_ATTEMPTS must be between 1 and 3")
        return value

    @property
    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_KEY)

    class Config:
        env_file = _ENV_FILE if _ENV_FILE else [".env", "../.env"]
        case_sensitive = True
        extra = "ignore"


settings = Settings()
