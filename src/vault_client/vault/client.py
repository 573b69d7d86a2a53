"""
Google Vault client implementation.
"""

import logging
import time
from typing import Callable

from ..api_call import (
    APICall,
    CommandTokenProvider,
    EnvTokenProvider,
    RequestsTransport,
    StaticTokenProvider,
    TokenProvider,
    Transport,
)
from ..config import (
    DEFAULT_DIRECTORY_URL,
    DEFAULT_STORAGE_URL,
    DEFAULT_VAULT_URL,
    Config,
    RetryConfig,
)
from .directory import DirectoryClient
from .exports import Export
from .matters import Matter, normalize_state
from .storage import FileSink, LocalDirectorySink, StorageClient

logger = logging.getLogger(__name__)


def token_provider_from_config(config: Config) -> TokenProvider:
    """Pick the token provider described by the configuration."""
    if config.vault.token:
        return StaticTokenProvider(config.vault.token)
    if config.vault.token_command:
        return CommandTokenProvider(config.vault.token_command)
    return EnvTokenProvider("VAULT_TOKEN")


class VaultClient:
    """
    Client for the Google Vault API.

    Features:
    - List, open and create matters
    - Exports, holds and collaborators through the Matter objects
    - Directory lookups and export file downloads
    - Every call authenticated, retried and paginated by APICall
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        vault_url: str = DEFAULT_VAULT_URL,
        directory_url: str = DEFAULT_DIRECTORY_URL,
        storage_url: str = DEFAULT_STORAGE_URL,
        customer: str = "my_customer",
        transport: Transport | None = None,
        retry: RetryConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        download_sink: FileSink | None = None,
    ):
        """
        Initialize Vault client.

        Args:
            token_provider: Source of OAuth bearer tokens (ediscovery scope)
            vault_url: Vault API root (e.g., "https://vault.googleapis.com/v1")
            directory_url: Admin Directory API root
            storage_url: Cloud Storage JSON API root
            customer: Directory customer used for org unit lookups
            transport: Shared HTTP transport (default: RequestsTransport)
            retry: Retry policy applied to every call
            sleep: Function used to wait between attempts
            download_sink: Default destination of Export.download_files
        """
        self.token_provider = token_provider
        self.vault_url = vault_url.rstrip("/")
        self.retry = retry or RetryConfig()
        self.transport = transport or RequestsTransport(timeout=self.retry.timeout_seconds)
        self._sleep = sleep
        self.download_sink = download_sink

        self.directory = DirectoryClient(self, directory_url, customer)
        self.storage = StorageClient(self, storage_url)

    @classmethod
    def from_config(
        cls,
        config: Config,
        token_provider: TokenProvider | None = None,
        transport: Transport | None = None,
    ) -> "VaultClient":
        """Build a client from the application configuration."""
        return cls(
            token_provider=token_provider or token_provider_from_config(config),
            vault_url=config.vault.base_url,
            directory_url=config.vault.directory_url,
            storage_url=config.vault.storage_url,
            customer=config.vault.customer,
            transport=transport,
            retry=config.retry,
            download_sink=LocalDirectorySink(config.download_dir),
        )

    def call(self) -> APICall:
        """Start a new call sharing this client's credentials, transport and retry policy."""
        return APICall(
            self.token_provider,
            transport=self.transport,
            retry=self.retry,
            sleep=self._sleep,
        )

    def matter_url(self, matter_id: str | None = None) -> str:
        if matter_id is None:
            return f"{self.vault_url}/matters"
        return f"{self.vault_url}/matters/{matter_id}"

    # Matters

    def list_matters(self, state: str | None = None) -> list[Matter]:
        """
        List the matters visible to the current user.

        Args:
            state: "OPEN", "CLOSED" or "DELETED" (case-insensitive), all if None

        Returns:
            Matter objects from all result pages
        """
        optional_args = {}
        if state is not None:
            optional_args["state"] = normalize_state(state)

        result = self.call().url(self.matter_url()).optional_args(optional_args).execute()
        raw_matters = result.get("matters", []) if isinstance(result, dict) else []
        logger.debug(f"Listed {len(raw_matters)} matters")
        return [Matter.from_api_response(self, raw) for raw in raw_matters]

    def get_matter_data(self, matter_id: str) -> dict:
        """Get the full raw matter resource."""
        return self.call().url(self.matter_url(matter_id)).optional_args({"view": "FULL"}).execute()

    def open_matter(self, matter_id: str) -> Matter:
        """Open an existing matter by id."""
        return Matter.from_api_response(self, self.get_matter_data(matter_id))

    def new_matter(self, name: str | None = None, description: str | None = None) -> Matter:
        """Prepare a draft matter; nothing is sent until Matter.create()."""
        return Matter(client=self, name=name, description=description)

    def create_matter(self, name: str, description: str | None = None) -> Matter:
        """Create a new matter."""
        return self.new_matter(name, description).create()

    # Exports

    def open_export(self, matter_id: str, export_id: str) -> Export:
        """Open an export by matter id and export id."""
        export = Export(client=self, matter_id=matter_id, export_id=export_id)
        export.refresh()
        return export

    def close(self) -> None:
        """Release the transport's connections."""
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()
