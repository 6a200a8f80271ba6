"""
core/config.py -- Environment-driven settings for the portal auth service.

All environment variable reads for the portal auth service happen here. No
module should call os.getenv() or os.environ.get() directly -- import
get_settings() instead.

get_settings() is cached with lru_cache, so Settings is parsed once per
process.

The after-validator supplies a throwaway signing key in dev mode (DEBUG=true)
and refuses to build Settings without one otherwise.

The signing key is read exactly once, by the application lifespan, and handed
to TokenIssuer / TokenVerifier as a plain value. Nothing downstream reaches
back into Settings for it.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or tenants/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("lsaportal.config")

DEFAULT_DATABASE_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'lsaportal.db'}"


class Settings(BaseSettings):
    """Portal auth settings from the environment (and .env, if present).

    Every field has a default, so tests only need DEBUG=true.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    # Empty string is the sentinel for "not configured".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Bearer tokens live for a fixed 24 hours.
    token_expire_seconds: int = 24 * 60 * 60
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    database_url: str = DEFAULT_DATABASE_URL

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @model_validator(mode="after")
    def check_signing_key(self) -> "Settings":
        """Resolve the token signing key and sanity-check auth limits.

        With DEBUG=true a missing key is replaced by a random one; tokens
        then die with the process. Without DEBUG a missing key is fatal.
        A key under 32 characters is rejected in either mode.
        """
        if not self.secret_key and self.debug:
            self.secret_key = secrets.token_hex(32)
            logger.warning("SECRET_KEY not set; generated an ephemeral key for this dev process.")
        elif not self.secret_key:
            raise ValueError("SECRET_KEY must be set when DEBUG is off (or set DEBUG=true for local development).")
        if len(self.secret_key) < 32:
            raise ValueError(f"SECRET_KEY is {len(self.secret_key)} characters; at least 32 are required.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, built on first call.

    Tests that change environment variables must call
    get_settings.cache_clear() first.
    """
    return Settings()
