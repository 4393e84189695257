"""
Unit tests for Credential Manager Module
"""

import os
import stat

import pytest

from src.models.errors import ConfigurationError
from src.utils.credential_manager import PROVIDER_KEYS, CredentialManager


@pytest.fixture
def clean_env(monkeypatch):
    """Clean provider key environment variables before each test."""
    for key in PROVIDER_KEYS.values():
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def sample_env_file(tmp_path):
    """Create a sample .env file for testing."""
    env_file = tmp_path / ".env"
    env_file.write_text("GEMINI_API_KEY=test-gemini-key\nLOG_LEVEL=INFO\n", encoding="utf-8")
    return env_file


class TestCredentialManagerInit:
    """Test CredentialManager initialization."""

    def test_init_with_existing_env_file(self, sample_env_file, clean_env):
        """Test that keys in .env are loaded into the environment."""
        cred_manager = CredentialManager(env_file=sample_env_file)

        assert cred_manager.env_file == sample_env_file
        assert os.getenv("GEMINI_API_KEY") == "test-gemini-key"

    def test_init_without_env_file(self, tmp_path, clean_env):
        """Test that a missing .env file is not an error and is not created."""
        env_file = tmp_path / ".env"

        CredentialManager(env_file=env_file)

        assert not env_file.exists()

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions only")
    def test_sets_secure_permissions(self, sample_env_file, clean_env):
        """Test that the .env file is restricted to its owner."""
        CredentialManager(env_file=sample_env_file)

        mode = stat.S_IMODE(sample_env_file.stat().st_mode)
        assert mode == 0o600


class TestGetApiKey:
    """Test API key lookup."""

    def test_returns_key_from_environment(self, tmp_path, clean_env, monkeypatch):
        # Arrange
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-test")
        cred_manager = CredentialManager(env_file=tmp_path / ".env")

        # Act
        key = cred_manager.get_api_key("gemini")

        # Assert
        assert key == "gemini-test"

    def test_environment_wins_over_env_file(self, sample_env_file, clean_env, monkeypatch):
        """Test that an exported key is not overridden by the .env file."""
        monkeypatch.setenv("GEMINI_API_KEY", "exported-key")

        cred_manager = CredentialManager(env_file=sample_env_file)

        assert cred_manager.get_api_key("gemini") == "exported-key"

    def test_missing_key_raises(self, tmp_path, clean_env):
        """Test that a missing key raises ConfigurationError naming the variable."""
        cred_manager = CredentialManager(env_file=tmp_path / ".env")

        with pytest.raises(ConfigurationError) as exc_info:
            cred_manager.get_api_key("gemini")

        assert "GEMINI_API_KEY" in str(exc_info.value)
        assert exc_info.value.details["env_var"] == "GEMINI_API_KEY"

    def test_unknown_provider_raises(self, tmp_path, clean_env):
        cred_manager = CredentialManager(env_file=tmp_path / ".env")

        with pytest.raises(ConfigurationError) as exc_info:
            cred_manager.get_api_key("openai")

        assert exc_info.value.details["supported"] == ["gemini"]
