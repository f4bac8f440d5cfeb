"""Unit tests for the startup policy in core/config.py.

Settings are built with explicit keyword arguments, which take priority over
the DEBUG=true that conftest puts in the environment.
"""

import pytest
from pydantic import ValidationError

from core.config import TOKEN_KEY_BYTES, Settings

GOOD_KEY = "k" * TOKEN_KEY_BYTES


class TestSecrets:
    def test_production_requires_token_key(self) -> None:
        with pytest.raises(ValidationError, match="TOKEN_KEY is required"):
            Settings(debug=False, token_key="", bad_words_api_key="x")

    def test_production_requires_bad_words_key(self) -> None:
        with pytest.raises(ValidationError, match="BAD_WORDS_API_KEY"):
            Settings(debug=False, token_key=GOOD_KEY, bad_words_api_key="")

    @pytest.mark.parametrize("key", ["short", "k" * 31, "k" * 33, "é" * 16 + "k"])
    def test_key_must_be_32_bytes(self, key: str) -> None:
        with pytest.raises(ValidationError, match="exactly 32 bytes"):
            Settings(debug=True, token_key=key)

    def test_debug_generates_key(self) -> None:
        settings = Settings(debug=True, token_key="")
        assert len(settings.token_key_bytes) == TOKEN_KEY_BYTES

    def test_generated_keys_differ(self) -> None:
        assert Settings(debug=True, token_key="").token_key != Settings(debug=True, token_key="").token_key

    def test_production_settings(self) -> None:
        settings = Settings(debug=False, token_key=GOOD_KEY, bad_words_api_key="x")
        assert settings.token_key_bytes == GOOD_KEY.encode("utf-8")
        assert settings.token_ttl_seconds == 24 * 60 * 60

    def test_repr_hides_secrets(self) -> None:
        settings = Settings(debug=False, token_key=GOOD_KEY, bad_words_api_key="api-secret")
        assert GOOD_KEY not in repr(settings)
        assert "api-secret" not in repr(settings)


class TestLimits:
    def test_ttl_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(debug=True, token_ttl_seconds=0)

    def test_needs_a_crypto_worker(self) -> None:
        with pytest.raises(ValidationError):
            Settings(debug=True, crypto_workers=0)

    def test_cors_defaults(self) -> None:
        settings = Settings(debug=True)
        assert settings.cors_allow_methods == ["PUT", "DELETE", "GET", "POST"]
        assert "authorization" in settings.cors_allow_headers
