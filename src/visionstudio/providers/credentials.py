"""Credential providers backed by the process environment."""

import logging
import os
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

# Checked in order; the first non-empty value wins
CREDENTIAL_ENV_VARS = ("API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY")


class EnvCredentialProvider:
    """Reads the API key from an explicit value or the environment on every call."""

    def __init__(
        self,
        api_key: str | None = None,
        env_vars: tuple[str, ...] = CREDENTIAL_ENV_VARS,
        picker: Callable[[], Awaitable[None]] | None = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Fixed API key (defaults to the first set variable in env_vars)
            env_vars: Environment variables consulted when api_key is not given
            picker: Optional host callback that lets the user choose a key
        """
        self._api_key = api_key
        self._env_vars = env_vars
        self._picker = picker

    def get_credential(self) -> Optional[str]:
        if self._api_key:
            return self._api_key
        for name in self._env_vars:
            value = os.getenv(name)
            if value:
                return value
        return None

    async def has_selected_credential(self) -> bool:
        return self.get_credential() is not None

    async def open_selection(self) -> None:
        if self._picker is None:
            logger.info(
                "No interactive credential picker available; set one of %s",
                ", ".join(self._env_vars),
            )
            return
        await self._picker()
