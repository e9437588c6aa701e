"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for jaha-api happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. password_cost -> PASSWORD_COST). Type coercion and validation are
      built in.

  @model_validator(mode="after"): Cross-field checks once every field has been
      resolved from the environment.

Security notes:
  password_cost is the bcrypt work factor used for NEW digests only. Stored
  digests carry their own cost, so raising this value never breaks existing
  logins -- it only makes auth.passwords.PasswordHasher.needs_rehash() report
  the old digests.

Layer rule: core/ is the kernel. This module may not import from auth/.
"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("jaha.config")

# bcrypt accepts log2 rounds in this closed range.
MIN_PASSWORD_COST = 4
MAX_PASSWORD_COST = 31

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def pick(expected: str, default: str) -> str:
    """Return expected unless it is empty, in which case return default.

    Settings use "" as the "not configured" sentinel, so this is how callers
    resolve a fallback without repeating the ternary everywhere.
    """
    if expected == "":
        return default
    return expected


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
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

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    password_cost: int = Field(default=13, ge=MIN_PASSWORD_COST, le=MAX_PASSWORD_COST)
    token_length: int = Field(default=32, ge=1)

    # ------------------------------------------------------------------
    # Database (empty string means "not configured")
    # ------------------------------------------------------------------

    database_driver: str = ""
    database_dsn: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}.")
        return level

    @model_validator(mode="after")
    def debug_logging(self) -> "Settings":
        """DEBUG=true implies verbose logging unless LOG_LEVEL was lowered explicitly."""
        if self.debug and self.log_level == "INFO":
            self.log_level = "DEBUG"
        if self.password_cost < 10:
            logger.warning("PASSWORD_COST=%d is below 10 -- only suitable for tests.", self.password_cost)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings()
    directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
