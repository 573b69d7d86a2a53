"""
Configuration management (SSOT).

This module defines ALL configuration for the vault client.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- API base URLs never carry a trailing slash
- Tokens are never written to the default config file
- The retry policy is shared by every call issued through one client
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_VAULT_URL = "https://vault.googleapis.com/v1"
DEFAULT_DIRECTORY_URL = "https://admin.googleapis.com/admin/directory/v1"
DEFAULT_STORAGE_URL = "https://www.googleapis.com/storage/v1"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class VaultConfig:
    """Endpoints and credential source for the Google APIs.

    Credential resolution order (see VaultClient.from_config):
    - token: a fixed bearer token
    - token_command: a command printing a fresh token on stdout
    - otherwise the VAULT_TOKEN environment variable is read on every attempt
    """

    base_url: str = DEFAULT_VAULT_URL
    directory_url: str = DEFAULT_DIRECTORY_URL
    storage_url: str = DEFAULT_STORAGE_URL
    # Admin Directory customer used for org unit lookups
    customer: str = "my_customer"
    token: str | None = None
    token_command: list[str] | None = None

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        self.directory_url = self.directory_url.rstrip("/")
        self.storage_url = self.storage_url.rstrip("/")


@dataclass
class RetryConfig:
    """Retry policy for a single logical API call.

    The delay before retry N (counted from 0) is
    backoff_base_seconds * 2 ** (N + 1) plus a jitter in [0, max_jitter_seconds).
    """

    # Total attempts, including the first one
    max_attempts: int = 4
    backoff_base_seconds: float = 1.0
    max_jitter_seconds: float = 1.0
    # Per-request timeout handed to the transport
    timeout_seconds: int = 30


@dataclass
class Config:
    """Application configuration (SSOT)."""

    vault: VaultConfig = field(default_factory=VaultConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    # Where export files are saved by default
    download_dir: Path = field(default_factory=lambda: Path("data/exports"))

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        for name in ("base_url", "directory_url", "storage_url"):
            value = getattr(self.vault, name)
            if not value:
                errors.append(f"vault.{name} is required")
            elif not value.startswith(("http://", "https://")):
                errors.append(f"vault.{name} must be an http(s) URL")

        if self.vault.token and self.vault.token_command:
            errors.append("vault.token and vault.token_command are mutually exclusive")

        if self.retry.max_attempts < 1:
            errors.append("retry.max_attempts must be >= 1")
        if self.retry.backoff_base_seconds < 0:
            errors.append("retry.backoff_base_seconds must be >= 0")
        if self.retry.max_jitter_seconds < 0:
            errors.append("retry.max_jitter_seconds must be >= 0")
        if self.retry.timeout_seconds <= 0:
            errors.append("retry.timeout_seconds must be > 0")

        return errors


def _parse_command(raw: str | list[str] | None) -> list[str] | None:
    if not raw:
        return None
    if isinstance(raw, str):
        return shlex.split(raw)
    return [str(part) for part in raw]


def load_config(config_path: Path, strict: bool = False) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - VAULT_URL
    - VAULT_DIRECTORY_URL
    - VAULT_STORAGE_URL
    - VAULT_TOKEN
    - VAULT_TOKEN_COMMAND (shell-split, e.g. "gcloud auth print-access-token")
    - VAULT_TIMEOUT (request timeout in seconds)
    - VAULT_DOWNLOAD_DIR

    Args:
        config_path: Path to the YAML file (missing file means defaults)
        strict: Raise ConfigValidationError if validation fails

    Returns:
        Loaded configuration
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    vault_data = data.get("vault", {})
    vault = VaultConfig(
        base_url=os.environ.get("VAULT_URL", vault_data.get("base_url", DEFAULT_VAULT_URL)),
        directory_url=os.environ.get(
            "VAULT_DIRECTORY_URL", vault_data.get("directory_url", DEFAULT_DIRECTORY_URL)
        ),
        storage_url=os.environ.get(
            "VAULT_STORAGE_URL", vault_data.get("storage_url", DEFAULT_STORAGE_URL)
        ),
        customer=vault_data.get("customer", "my_customer"),
        token=os.environ.get("VAULT_TOKEN", vault_data.get("token")) or None,
        token_command=_parse_command(
            os.environ.get("VAULT_TOKEN_COMMAND", vault_data.get("token_command"))
        ),
    )

    retry_data = data.get("retry", {})
    timeout = retry_data.get("timeout_seconds", 30)
    timeout_env = os.environ.get("VAULT_TIMEOUT", "")
    if timeout_env:
        try:
            timeout = int(timeout_env)
        except ValueError as e:
            raise ConfigValidationError(
                f"VAULT_TIMEOUT must be an integer, got {timeout_env!r}"
            ) from e

    retry = RetryConfig(
        max_attempts=int(retry_data.get("max_attempts", 4)),
        backoff_base_seconds=float(retry_data.get("backoff_base_seconds", 1.0)),
        max_jitter_seconds=float(retry_data.get("max_jitter_seconds", 1.0)),
        timeout_seconds=int(timeout),
    )

    download_dir = os.environ.get("VAULT_DOWNLOAD_DIR", data.get("download_dir", "data/exports"))

    config = Config(vault=vault, retry=retry, download_dir=Path(download_dir))

    if strict:
        errors = config.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = f"""# Google Vault client configuration
#
# Credentials: set exactly one of token / token_command, or leave both
# empty and export VAULT_TOKEN before running.

vault:
  base_url: "{DEFAULT_VAULT_URL}"
  directory_url: "{DEFAULT_DIRECTORY_URL}"
  storage_url: "{DEFAULT_STORAGE_URL}"
  customer: "my_customer"                 # Admin Directory customer for org unit lookups
  token: null                             # Fixed bearer token (not recommended)
  token_command: null                     # e.g. "gcloud auth print-access-token"

# Retry policy (applies to every call)
retry:
  max_attempts: 4                         # 1 initial attempt + 3 retries
  backoff_base_seconds: 1.0               # delay = base * 2^(attempt+1) + jitter
  max_jitter_seconds: 1.0
  timeout_seconds: 30

# Where export files are saved
download_dir: "data/exports"
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
