"""Tests for avatarpin.core.config - configuration management.

Tests cover:
- Default values for configuration fields.
- Environment variable overrides via the AVATARPIN_ prefix.
- Unprefixed credential variables (OPENAI_API_KEY, PINATA_JWT).
- Automatic storage directory creation on initialisation.
- Pydantic validation constraints (retry bounds, port range, timeout).
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from avatarpin.core.config import DEFAULT_IMAGE_PROMPT, AvatarPinConfig

CREDENTIAL_VARS = (
    "OPENAI_API_KEY",
    "PINATA_JWT",
    "AVATARPIN_OPENAI_API_KEY",
    "AVATARPIN_PINATA_JWT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove credential variables so defaults are observable."""
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfigDefaults:
    """Verify that AvatarPinConfig provides sensible defaults."""

    def test_default_image_settings(self, clean_env, temp_dir: Path):
        """Default model and prompt match the fixed avatar request."""
        cfg = AvatarPinConfig(_env_file=None, storage_dir=temp_dir / "s")
        assert cfg.image_model == "dall-e-3"
        assert cfg.image_prompt == DEFAULT_IMAGE_PROMPT
        assert cfg.openai_base_url is None

    def test_default_pinning_settings(self, clean_env, temp_dir: Path):
        """Pinata API and public gateway defaults."""
        cfg = AvatarPinConfig(_env_file=None, storage_dir=temp_dir / "s")
        assert cfg.pinata_api_url == "https://api.pinata.cloud"
        assert cfg.ipfs_gateway_url == "https://ipfs.io"

    def test_credentials_default_to_none(self, clean_env, temp_dir: Path):
        """Credentials are optional at startup."""
        cfg = AvatarPinConfig(_env_file=None, storage_dir=temp_dir / "s")
        assert cfg.openai_api_key is None
        assert cfg.pinata_jwt is None

    def test_single_attempt_by_default(self, clean_env, temp_dir: Path):
        """Retrying is opt-in; the default keeps one attempt per call."""
        cfg = AvatarPinConfig(_env_file=None, storage_dir=temp_dir / "s")
        assert cfg.max_retries == 0
        assert cfg.request_timeout == 60.0

    def test_default_server_settings(self, clean_env, temp_dir: Path):
        """Server binds 0.0.0.0:3000 with static files and open CORS."""
        clean_env.delenv("AVATARPIN_SERVER_PORT", raising=False)
        cfg = AvatarPinConfig(_env_file=None, storage_dir=temp_dir / "s")
        assert cfg.server_host == "0.0.0.0"
        assert cfg.server_port == 3000
        assert cfg.serve_static is True
        assert cfg.cors_origins == ["*"]


class TestConfigEnvironment:
    """Verify environment variable loading."""

    def test_prefixed_override(self, clean_env, temp_dir: Path):
        """AVATARPIN_* variables override defaults."""
        clean_env.setenv("AVATARPIN_MAX_RETRIES", "2")
        clean_env.setenv("AVATARPIN_IMAGE_MODEL", "dall-e-2")
        cfg = AvatarPinConfig(_env_file=None, storage_dir=temp_dir / "s")
        assert cfg.max_retries == 2
        assert cfg.image_model == "dall-e-2"

    def test_unprefixed_credentials(self, clean_env, temp_dir: Path):
        """OPENAI_API_KEY and PINATA_JWT are read without the prefix."""
        clean_env.setenv("OPENAI_API_KEY", "sk-from-env")
        clean_env.setenv("PINATA_JWT", "jwt-from-env")
        cfg = AvatarPinConfig(_env_file=None, storage_dir=temp_dir / "s")
        assert cfg.openai_api_key.get_secret_value() == "sk-from-env"
        assert cfg.pinata_jwt.get_secret_value() == "jwt-from-env"

    def test_prefixed_credentials(self, clean_env, temp_dir: Path):
        """Credentials may also use the AVATARPIN_ prefix."""
        clean_env.setenv("AVATARPIN_PINATA_JWT", "jwt-prefixed")
        cfg = AvatarPinConfig(_env_file=None, storage_dir=temp_dir / "s")
        assert cfg.pinata_jwt.get_secret_value() == "jwt-prefixed"

    def test_secrets_are_masked(self, test_config: AvatarPinConfig):
        """Secrets do not appear in the config repr."""
        assert "sk-test" not in repr(test_config)
        assert "jwt-test" not in repr(test_config)


class TestConfigDirectoryCreation:
    def test_storage_dir_created(self, temp_dir: Path):
        """The storage directory is created on initialisation."""
        target = temp_dir / "nested" / "storage"
        AvatarPinConfig(_env_file=None, storage_dir=target)
        assert target.is_dir()


class TestConfigValidation:
    def test_negative_retries_rejected(self, temp_dir: Path):
        """max_retries must be >= 0."""
        with pytest.raises(ValidationError):
            AvatarPinConfig(_env_file=None, storage_dir=temp_dir, max_retries=-1)

    def test_too_many_retries_rejected(self, temp_dir: Path):
        """max_retries must be <= 5."""
        with pytest.raises(ValidationError):
            AvatarPinConfig(_env_file=None, storage_dir=temp_dir, max_retries=10)

    def test_zero_timeout_rejected(self, temp_dir: Path):
        """request_timeout must be positive."""
        with pytest.raises(ValidationError):
            AvatarPinConfig(_env_file=None, storage_dir=temp_dir, request_timeout=0)

    def test_port_out_of_range_rejected(self, temp_dir: Path):
        """server_port must be a valid TCP port."""
        with pytest.raises(ValidationError):
            AvatarPinConfig(_env_file=None, storage_dir=temp_dir, server_port=70000)
