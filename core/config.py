"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the Q&A service happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead. The lifespan in api/main.py calls get_settings() once and hands the
values to the objects that need them (token codec, stores, moderation
client, crypto pool); request-handling code never reads the environment.

How settings are resolved:
  get_settings() is lru_cached, so the environment and .env are read once per
      process. Every later caller shares that Settings object.

  Settings is a pydantic-settings BaseSettings: TOKEN_KEY, BAD_WORDS_API_KEY,
      DATABASE_URL and the rest map onto the lower-case fields below and are
      coerced to the declared types.

  validate_secrets() checks the fields against each other once they are all
      loaded. Dev mode (DEBUG=true) generates a throwaway token key with
      a warning; production mode refuses to start without one.

Security notes:
  TOKEN_KEY is the raw AEAD key for session tokens (A256GCM), so it must
  encode to exactly 32 bytes. Any other length is a hard startup failure.

  token_key and bad_words_api_key are declared repr=False so a logged
  Settings repr never carries them.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or qa/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("qaservice.config")

TOKEN_KEY_BYTES = 32

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'qaservice.db'}"


class Settings(BaseSettings):
    """Q&A service settings.

    Every field has a default, so a test run with DEBUG=true needs no .env
    file. Secrets are the only fields that must be set in production.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Service
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "warning"
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    token_key: str = Field(default="", repr=False)
    token_ttl_seconds: int = 24 * 60 * 60
    crypto_workers: int = 4

    # ------------------------------------------------------------------
    # Content moderation (APILayer bad_words)
    # ------------------------------------------------------------------

    bad_words_api_key: str = Field(default="", repr=False)
    bad_words_api_url: str = "https://api.apilayer.com/bad_words"
    moderation_timeout: float = 10.0
    moderation_retries: int = 3

    # ------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------

    cors_allow_origins: list[str] = ["*"]
    cors_allow_methods: list[str] = ["PUT", "DELETE", "GET", "POST"]
    cors_allow_headers: list[str] = ["content-type", "authorization"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Enforce the TOKEN_KEY and BAD_WORDS_API_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random token key with a
            warning. Tokens will not survive restart.

        Production mode: refuse to start if TOKEN_KEY or BAD_WORDS_API_KEY
            is missing.

        Both modes: TOKEN_KEY must encode to exactly 32 bytes.
        """
        if not self.token_key:
            if self.debug:
                # 16 random bytes as hex is 32 ASCII characters.
                self.token_key = secrets.token_hex(TOKEN_KEY_BYTES // 2)
                logger.warning("Using auto-generated TOKEN_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "TOKEN_KEY is required in production mode. "
                    "Set TOKEN_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.token_key.encode("utf-8")) != TOKEN_KEY_BYTES:
            raise ValueError(f"TOKEN_KEY must be exactly {TOKEN_KEY_BYTES} bytes.")
        if not self.bad_words_api_key and not self.debug:
            raise ValueError("BAD_WORDS_API_KEY is required in production mode.")
        if self.token_ttl_seconds <= 0:
            raise ValueError("TOKEN_TTL_SECONDS must be positive.")
        if self.crypto_workers < 1:
            raise ValueError("CRYPTO_WORKERS must be at least 1.")
        return self

    @property
    def token_key_bytes(self) -> bytes:
        return self.token_key.encode("utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Settings() is instantiated exactly once -- at first call. A missing or
    malformed TOKEN_KEY surfaces here as a pydantic ValidationError, which
    aborts startup.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
