"""
Credential Manager Module
Loads model provider API keys from the environment or a .env file.
"""

import os
from pathlib import Path

import structlog
from dotenv import load_dotenv

from src.models.errors import ConfigurationError

logger = structlog.get_logger(__name__)

PROVIDER_KEYS = {
    "gemini": "GEMINI_API_KEY",
}


class CredentialManager:
    """Looks up provider credentials, loading a .env file first when present."""

    def __init__(self, env_file: Path = Path(".env")):
        """
        Initialize credential manager.

        Args:
            env_file: Path to an optional .env file
        """
        self.env_file = env_file
        self._load_credentials()

    def _load_credentials(self) -> None:
        """Load existing credentials from .env file, if present."""
        if self.env_file.exists():
            load_dotenv(self.env_file)
            logger.info("credentials_loaded_from_env", env_file=str(self.env_file))
            self._set_secure_permissions()
        else:
            logger.debug("no_env_file_found", env_file=str(self.env_file))

    def _set_secure_permissions(self) -> None:
        """Set secure file permissions on .env file (Unix only)."""
        if os.name == "nt":
            return
        try:
            os.chmod(self.env_file, 0o600)
        except OSError as e:
            logger.warning(
                "failed_to_set_permissions",
                env_file=str(self.env_file),
                error=str(e),
            )

    def get_api_key(self, provider: str) -> str:
        """
        Get the API key for a model provider.

        Args:
            provider: Provider name ("gemini")

        Returns:
            API key

        Raises:
            ConfigurationError: If the provider is unknown or no key is available
        """
        key = PROVIDER_KEYS.get(provider)
        if key is None:
            raise ConfigurationError(
                f"Unknown model provider: {provider}",
                details={"supported": sorted(PROVIDER_KEYS)},
            )

        value = os.getenv(key)
        if value:
            logger.debug("credential_found_in_env", key=key)
            return value

        logger.error("required_credential_not_provided", key=key)
        raise ConfigurationError(
            f"{key} is not set. Add it to {self.env_file} or export it.",
            details={"provider": provider, "env_var": key},
        )
