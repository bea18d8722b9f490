"""
core/config.py -- Environment-driven settings for the account service.

Every environment variable the account service reads is declared here. No
module should call os.getenv() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance afterwards. Tests clear the cache
      with get_settings.cache_clear() when they need different values.

  BaseSettings (pydantic-settings): field names map to env var names
      (secret_key -> SECRET_KEY, database_url -> DATABASE_URL). Type
      coercion and validation are built in.

  @model_validator(mode="after"): SECRET_KEY policy. Debug mode generates a
      throwaway key with a warning; production refuses to start without one.

Security notes:
  SECRET_KEY signs every session token with HS256. A key shorter than 32
  characters is rejected outright.

Layer rule: core/ is the kernel. This module may not import from api/ or
accounts/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("ecommerce.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'ecommerce_accounts.db'}"


class Settings(BaseSettings):
    """Account service settings, read from the environment and an optional .env.

    All fields have defaults so Settings() can be built in test environments
    without a real .env file (DEBUG=true is enough).
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
    # Empty string is the "not configured" sentinel; the validator below
    # either replaces it or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    token_expire_days: int = 7

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    authenticate_rate_limit: str = "10/minute"
    rate_limit_storage_uri: str = "memory://"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "testserver", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Debug mode: auto-generate a random key with a warning. Tokens issued
            before a restart stop verifying afterwards.

        Production mode: refuse to start without SECRET_KEY.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Issued tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required when DEBUG is off; it signs every session token. "
                    "Provide it through the environment or .env, "
                    "or set DEBUG=true for a throwaway development key."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY is too short: use at least 32 characters.")
        if not self.secret_key.isascii():
            raise ValueError("SECRET_KEY must contain ASCII characters only.")
        if self.token_expire_days < 1:
            raise ValueError("TOKEN_EXPIRE_DAYS must be a positive number of days.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between cases that need
    different environment variables.
    """
    return Settings()
