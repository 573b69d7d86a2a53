"""
Token providers.

APICall asks its provider for a token before every physical attempt and never
keeps the value, so a provider is free to rotate credentials between calls.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from typing import Callable

from .errors import TokenProviderError

logger = logging.getLogger(__name__)


class TokenProvider(ABC):
    """Supplies a bearer credential on demand."""

    @abstractmethod
    def get_token(self) -> str:
        """Return the bearer token to use for the next request."""
        pass


class StaticTokenProvider(TokenProvider):
    """Always returns the same token."""

    def __init__(self, token: str):
        if not token:
            raise TokenProviderError("Static token must not be empty")
        self._token = token

    def get_token(self) -> str:
        return self._token


class EnvTokenProvider(TokenProvider):
    """Reads the token from an environment variable on every call."""

    def __init__(self, variable: str = "VAULT_TOKEN"):
        self.variable = variable

    def get_token(self) -> str:
        token = os.environ.get(self.variable, "").strip()
        if not token:
            raise TokenProviderError(f"Environment variable {self.variable} is not set")
        return token


class CommandTokenProvider(TokenProvider):
    """
    Runs a command and uses its stdout as the token.

    Typical use is ``gcloud auth print-access-token``, which itself refreshes
    the underlying credential when needed.
    """

    DEFAULT_COMMAND = ("gcloud", "auth", "print-access-token")

    def __init__(self, command: list[str] | tuple[str, ...] = DEFAULT_COMMAND, timeout: int = 30):
        self.command = list(command)
        self.timeout = timeout

    def get_token(self) -> str:
        try:
            result = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except FileNotFoundError as e:
            raise TokenProviderError(f"Token command not found: {self.command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise TokenProviderError(f"Token command timed out after {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            logger.error(f"Token command failed: {e.stderr.strip() if e.stderr else e}")
            raise TokenProviderError(
                f"Token command exited with status {e.returncode}"
            ) from e

        token = result.stdout.strip()
        if not token:
            raise TokenProviderError("Token command produced no output")
        return token


class CallableTokenProvider(TokenProvider):
    """Adapts a zero-argument function."""

    def __init__(self, func: Callable[[], str]):
        self._func = func

    def get_token(self) -> str:
        return self._func()
