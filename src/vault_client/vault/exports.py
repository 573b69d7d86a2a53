"""
Vault exports.

An export is a search over one matter whose results are written to Cloud
Storage; once COMPLETED, its files can be downloaded into a FileSink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .client import VaultClient
    from .storage import FileSink

logger = logging.getLogger(__name__)


class ExportType(str, Enum):
    """Corpus searched by a user export."""

    MAIL = "MAIL"
    DRIVE = "DRIVE"


class ExportFormat(str, Enum):
    """Archive format of a mail export."""

    PST = "PST"
    MBOX = "MBOX"


class ExportStatus(str, Enum):
    EXPORT_STATUS_UNSPECIFIED = "EXPORT_STATUS_UNSPECIFIED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    IN_PROGRESS = "IN_PROGRESS"


def build_export_payload(
    name: str,
    query: dict[str, Any],
    export_options: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the request body of exports.create."""
    return {
        "name": name,
        "query": query,
        "exportOptions": export_options or {},
    }


def build_user_export_payload(
    account: str,
    export_type: str,
    name: str | None = None,
    options: dict[str, Any] | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """
    Build an export of all the data of one account.

    Args:
        account: Email address of the searched account
        export_type: "MAIL" or "DRIVE" (case-insensitive)
        name: Export name, default "<TYPE> - <account> - YYYY-MM-DD"
        options: {"exportFormat": "PST"|"MBOX", "terms": "<search terms>"}
        today: Date used in the default name

    Raises:
        ValueError: On a missing or unsupported type or option value
    """
    if export_type is None:
        raise ValueError('Export type cannot be None, select "MAIL" or "DRIVE"')

    type_name = export_type.strip().upper()
    if type_name not in ExportType.__members__:
        raise ValueError(f"Can't build export, unsupported type {export_type}")

    if not name:
        today = today or date.today()
        name = f"{type_name} - {account} - {today.isoformat()}"

    query: dict[str, Any] = {
        "corpus": type_name,
        "method": "ACCOUNT",
        "accountInfo": {"emails": [account]},
        "dataScope": "ALL_DATA",
    }
    export_options: dict[str, Any] = {}

    if type_name == ExportType.MAIL.value:
        export_options["mailOptions"] = {"exportFormat": ExportFormat.PST.value}
    else:
        query["terms"] = f"owner:{account}"

    for option, value in (options or {}).items():
        if option == "exportFormat":
            if "mailOptions" not in export_options:
                raise ValueError("exportFormat is only supported for MAIL exports")
            export_format = str(value).upper()
            if export_format not in ExportFormat.__members__:
                raise ValueError(f"Unsupported export format {value}")
            export_options["mailOptions"]["exportFormat"] = export_format
        elif option == "terms":
            query["terms"] = value
        else:
            logger.warning(f"Unknown export option {option} : {value}")

    return build_export_payload(name, query, export_options)


@dataclass
class Export:
    """An export of a matter."""

    client: VaultClient = field(repr=False, compare=False)
    matter_id: str
    export_id: str
    name: str | None = None
    status: str | None = None
    requester: dict[str, Any] | None = None
    query: dict[str, Any] | None = None
    export_options: dict[str, Any] | None = None
    create_time: str | None = None
    stats: dict[str, Any] | None = None
    cloud_storage_sink: dict[str, Any] | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, client: VaultClient, data: dict) -> "Export":
        """Create from a Vault export resource."""
        return cls(
            client=client,
            matter_id=data.get("matterId", ""),
            export_id=data.get("id", ""),
        ).load(data)

    @property
    def url(self) -> str:
        return f"{self.client.matter_url(self.matter_id)}/exports/{self.export_id}"

    @property
    def is_completed(self) -> bool:
        """Check the last loaded status (no API call)."""
        return self.status == ExportStatus.COMPLETED.value

    def load(self, data: dict) -> "Export":
        """Update fields from a Vault export resource."""
        self.raw = data
        self.matter_id = data.get("matterId", self.matter_id)
        self.export_id = data.get("id", self.export_id)
        self.name = data.get("name", self.name)
        self.status = data.get("status", self.status)
        self.requester = data.get("requester", self.requester)
        self.query = data.get("query", self.query)
        self.export_options = data.get("exportOptions", self.export_options)
        self.create_time = data.get("createTime", self.create_time)
        self.stats = data.get("stats", self.stats)
        self.cloud_storage_sink = data.get("cloudStorageSink", self.cloud_storage_sink)
        return self

    def refresh(self) -> dict:
        """Reload the export from the API and return the raw resource."""
        data = self.client.call().url(self.url).execute()
        self.load(data)
        return data

    def get_status(self) -> str | None:
        """Get the current status (refreshes the export)."""
        return self.refresh().get("status")

    def get_files(self) -> list[dict[str, Any]]:
        """
        Get the files written by the export.

        Returns:
            List of {bucketName, objectName, size, md5Hash}, empty until the
            export has a storage sink
        """
        if self.cloud_storage_sink is None:
            self.refresh()
            if self.cloud_storage_sink is None:
                return []
        return self.cloud_storage_sink.get("files", [])

    def download_files(self, sink: FileSink | None = None) -> list[str]:
        """
        Download every export file and return their locations.

        Args:
            sink: Destination, default the client's download_sink

        Raises:
            ValueError: If no sink is given and the client has none
        """
        sink = sink or self.client.download_sink
        if sink is None:
            raise ValueError("No sink given and no default download sink configured")
        files = self.get_files()
        if not self.is_completed:
            logger.warning(f"Export {self.export_id} is {self.status}, file list may be partial")
        locations = []
        for export_file in files:
            locations.append(
                self.client.storage.save_object(
                    export_file["bucketName"], export_file["objectName"], sink
                )
            )
        logger.info(f"Downloaded {len(locations)} files of export {self.export_id}")
        return locations

    def remove(self) -> None:
        """Delete the export."""
        self.client.call().url(self.url).method("DELETE").execute()
        logger.info(f"Deleted export {self.export_id} of matter {self.matter_id}")
