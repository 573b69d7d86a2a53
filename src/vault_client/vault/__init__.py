"""
Google Vault (eDiscovery) wrappers.

Provides:
- Matters: list, open, create, rename, close, collaborators
- Exports: user and query exports, status, file download
- Holds: account and org unit holds, held accounts

Every API call goes through APICall (fresh token, retries, pagination).
"""

from .client import VaultClient, token_provider_from_config
from .directory import DirectoryClient, DirectoryError
from .exports import Export, ExportFormat, ExportStatus, ExportType
from .holds import Hold, HoldCorpus
from .matters import Matter, MatterRole, MatterState
from .storage import FileSink, LocalDirectorySink, StorageClient

__all__ = [
    "VaultClient",
    "token_provider_from_config",
    "DirectoryClient",
    "DirectoryError",
    "Export",
    "ExportFormat",
    "ExportStatus",
    "ExportType",
    "Hold",
    "HoldCorpus",
    "Matter",
    "MatterRole",
    "MatterState",
    "FileSink",
    "LocalDirectorySink",
    "StorageClient",
]
