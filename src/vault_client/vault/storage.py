"""
Cloud Storage downloads and file sinks for export files.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

if TYPE_CHECKING:
    from .client import VaultClient

logger = logging.getLogger(__name__)


class FileSink(ABC):
    """Destination for downloaded files."""

    @abstractmethod
    def write(self, name: str, content: bytes) -> str:
        """Store content under name and return its location."""
        pass


class LocalDirectorySink(FileSink):
    """Writes files into a local directory, created on first write."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def write(self, name: str, content: bytes) -> str:
        # Only the basename is kept so object names cannot escape the directory
        target = self.directory / Path(name).name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.info(f"Saved {len(content)} bytes to {target}")
        return str(target)


class StorageClient:
    """Reads objects from Cloud Storage buckets."""

    def __init__(self, client: VaultClient, base_url: str):
        self._client = client
        self.base_url = base_url.rstrip("/")

    def object_url(self, bucket_name: str, object_name: str) -> str:
        return f"{self.base_url}/b/{quote(bucket_name, safe='')}/o/{quote(object_name, safe='')}"

    def download_object(self, bucket_name: str, object_name: str) -> bytes:
        """Download the content of a bucket object."""
        return (
            self._client.call()
            .url(self.object_url(bucket_name, object_name))
            .optional_args({"alt": "media"})
            .download()
        )

    def save_object(self, bucket_name: str, object_name: str, sink: FileSink) -> str:
        """
        Download a bucket object into a sink.

        The file is stored under the last segment of the object name.

        Returns:
            Location returned by the sink
        """
        name = object_name.split("/")[-1]
        content = self.download_object(bucket_name, object_name)
        return sink.write(name, content)
