"""Environment-based credentials for trackersync.

Tracker tokens can come straight from the configuration file, from ``$VAR``
references resolved against the environment, or (when a tracker entry omits
them) from well-known environment variables. A ``.env`` file is loaded first
so all three routes see its values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

_DOTENV_FALLBACKS = (".env", ".env.local")


@dataclass
class EnvAuthConfig:
    """Configuration for environment-based authentication."""

    load_dotenv: bool = True
    dotenv_path: str | None = None
    github_token_var: str = "GITHUB_TOKEN"
    trello_key_var: str = "TRELLO_API_KEY"
    trello_token_var: str = "TRELLO_TOKEN"


class EnvironmentAuthManager:
    """Loads ``.env`` files and looks up tracker credentials in the environment."""

    def __init__(self, config: EnvAuthConfig):
        self.config = config
        self.logger = get_logger()
        self.dotenv_file: Path | None = None
        if config.load_dotenv:
            self._load_dotenv()

    def _load_dotenv(self) -> None:
        candidates = [self.config.dotenv_path] if self.config.dotenv_path else []
        candidates.extend(_DOTENV_FALLBACKS)
        for location in candidates:
            env_path = Path(location)
            if env_path.is_file():
                # variables already exported win over the file
                load_dotenv(env_path, override=False)
                self.dotenv_file = env_path
                self.logger.debug(f"Loaded environment variables from {env_path}")
                return

    def get_github_token(self) -> str | None:
        """Get GitHub token from environment variables."""
        token = os.getenv(self.config.github_token_var)
        if token:
            return token
        for alt_var in ("GH_TOKEN", "GITHUB_ACCESS_TOKEN", "GITHUB_PAT"):
            token = os.getenv(alt_var)
            if token:
                self.logger.debug(f"Found GitHub token in {alt_var}")
                return token
        return None

    def get_trello_credentials(self) -> tuple[str | None, str | None]:
        """Return ``(api_key, member_token)``; either may be missing."""
        return (
            os.getenv(self.config.trello_key_var) or None,
            os.getenv(self.config.trello_token_var) or None,
        )


def create_env_auth_manager(config: EnvAuthConfig | None = None) -> EnvironmentAuthManager:
    """Factory function to create environment authentication manager."""
    return EnvironmentAuthManager(config or EnvAuthConfig())


__all__ = ["EnvAuthConfig", "EnvironmentAuthManager", "create_env_auth_manager"]
