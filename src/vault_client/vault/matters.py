"""
Vault matters.

A Matter starts as a local DRAFT and becomes OPEN once created through the
API. Name and description changes on a created matter are pushed immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from .exports import Export, build_export_payload, build_user_export_payload
from .holds import Hold, build_account_hold_payload, build_org_unit_hold_payload

if TYPE_CHECKING:
    from .client import VaultClient

logger = logging.getLogger(__name__)


class MatterState(str, Enum):
    DRAFT = "DRAFT"
    STATE_UNSPECIFIED = "STATE_UNSPECIFIED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    DELETED = "DELETED"


# States accepted by matters.list
LISTABLE_STATES = (MatterState.OPEN, MatterState.CLOSED, MatterState.DELETED)


class MatterRole(str, Enum):
    """Permission level of a matter collaborator."""

    COLLABORATOR = "COLLABORATOR"
    OWNER = "OWNER"


def normalize_state(state: str) -> str:
    value = state.strip().upper()
    if value not in {s.value for s in LISTABLE_STATES}:
        raise ValueError(f"Matter state not recognized: {state}")
    return value


def normalize_role(role: str | None) -> str:
    value = (role or MatterRole.COLLABORATOR.value).strip().upper()
    if value not in MatterRole.__members__:
        raise ValueError(f"Can't add collaborator to matter, role {role} unhandled")
    return value


def build_matter_payload(name: str, description: str | None = None) -> dict[str, Any]:
    """Build the body of matters.create and matters.update."""
    payload: dict[str, Any] = {"name": name}
    if description:
        payload["description"] = description
    return payload


def build_add_permission_payload(
    account_id: str,
    role: str,
    send_emails: bool | None = None,
) -> dict[str, Any]:
    """Build the body of matters.addPermissions."""
    payload: dict[str, Any] = {
        "matterPermission": {
            "accountId": account_id,
            "role": role,
        }
    }
    if send_emails is not None:
        payload["sendEmails"] = send_emails
    return payload


@dataclass
class Matter:
    """A Vault matter and its exports and holds."""

    client: VaultClient = field(repr=False, compare=False)
    name: str | None = None
    description: str | None = None
    matter_id: str | None = None
    state: str = MatterState.DRAFT.value
    matter_permissions: list[dict[str, Any]] = field(default_factory=list)
    exports: list[Export] = field(default_factory=list, repr=False)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, client: VaultClient, data: dict) -> "Matter":
        """Create from a Vault matter resource."""
        return cls(client=client).load(data)

    @property
    def url(self) -> str:
        if self.matter_id is None:
            raise ValueError("Matter has not been created yet")
        return self.client.matter_url(self.matter_id)

    @property
    def is_draft(self) -> bool:
        return self.state == MatterState.DRAFT.value

    def load(self, data: dict) -> "Matter":
        """Update fields from a Vault matter resource."""
        self.raw = data
        self.matter_id = data.get("matterId", self.matter_id)
        self.name = data.get("name", self.name)
        self.description = data.get("description", self.description)
        self.state = data.get("state", self.state)
        self.matter_permissions = data.get("matterPermissions", self.matter_permissions)
        return self

    # Lifecycle

    def create(self) -> "Matter":
        """Create the draft matter through the API."""
        if self.name is None:
            raise ValueError("Name is mandatory in order to create a matter")
        result = (
            self.client.call()
            .url(self.client.matter_url())
            .method("POST")
            .payload(build_matter_payload(self.name, self.description))
            .execute()
        )
        if isinstance(result, dict):
            self.load(result)
        self.state = MatterState.OPEN.value
        logger.info(f"Created matter {self.matter_id} ({self.name})")
        return self

    def refresh(self) -> dict:
        """Reload the matter from the API and return the raw resource."""
        data = self.client.call().url(self.url).optional_args({"view": "FULL"}).execute()
        self.load(data)
        return data

    def _update(self, name: str, description: str | None) -> None:
        payload = {"name": name, "description": description}
        result = self.client.call().url(self.url).method("PUT").payload(payload).execute()
        if isinstance(result, dict):
            self.load(result)

    def set_name(self, name: str) -> "Matter":
        """Set the name; pushed to the API unless the matter is a draft."""
        if name is None:
            raise ValueError("Can't set None as name on matter")
        if not self.is_draft:
            self._update(name, self.description)
        self.name = name
        return self

    def set_description(self, description: str) -> "Matter":
        """Set the description; pushed to the API unless the matter is a draft."""
        if description is None:
            raise ValueError("Can't set None as description on matter")
        if not self.is_draft:
            self._update(self.name, description)
        self.description = description
        return self

    def close(self) -> Any:
        """Close the matter."""
        result = self.client.call().url(f"{self.url}:close").method("POST").execute()
        self.state = MatterState.CLOSED.value
        logger.info(f"Closed matter {self.matter_id}")
        return result

    # Collaborators

    def add_collaborator(
        self,
        email: str,
        role: str | None = None,
        send_emails: bool | None = None,
    ) -> dict[str, str]:
        """
        Grant a user access to the matter.

        Args:
            email: Email address of the collaborator
            role: "COLLABORATOR" (default) or "OWNER"
            send_emails: Notify the collaborator by email

        Returns:
            {"email", "userId", "role"}
        """
        normalized_role = normalize_role(role)
        account_id = self.client.directory.get_user_id(email)
        (
            self.client.call()
            .url(f"{self.url}:addPermissions")
            .method("POST")
            .payload(build_add_permission_payload(account_id, normalized_role, send_emails))
            .execute()
        )
        return {"email": email, "userId": account_id, "role": normalized_role}

    def remove_collaborator(self, email: str) -> str:
        """Revoke the access of a user to the matter."""
        account_id = self.client.directory.get_user_id(email)
        (
            self.client.call()
            .url(f"{self.url}:removePermissions")
            .method("POST")
            .payload({"accountId": account_id})
            .execute()
        )
        return "removed"

    # Exports

    def _post_export(self, payload: dict[str, Any]) -> Export:
        result = (
            self.client.call()
            .url(f"{self.url}/exports")
            .method("POST")
            .payload(payload)
            .execute()
        )
        export = Export(client=self.client, matter_id=self.matter_id, export_id="").load(result)
        self.exports.append(export)
        logger.info(f"Created export {export.export_id} ({export.name}) on matter {self.matter_id}")
        return export

    def create_user_export(
        self,
        account: str,
        export_type: str = "MAIL",
        name: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> Export:
        """Export all the MAIL or DRIVE data of one account."""
        return self._post_export(build_user_export_payload(account, export_type, name, options))

    def create_export(
        self,
        name: str,
        query: dict[str, Any],
        export_options: dict[str, Any] | None = None,
    ) -> Export:
        """Export the results of an arbitrary Vault query."""
        return self._post_export(build_export_payload(name, query, export_options))

    def list_exports(self) -> list[Export]:
        """List the exports of the matter (all pages)."""
        result = self.client.call().url(f"{self.url}/exports").execute()
        raw_exports = result.get("exports", []) if isinstance(result, dict) else []
        self.exports = [Export.from_api_response(self.client, raw) for raw in raw_exports]
        return self.exports

    def get_exports(self) -> list[Export]:
        """Get the known exports, listing them on first use."""
        if not self.exports:
            self.list_exports()
        return self.exports

    def open_export(self, export_id: str) -> Export:
        """Load an export of the matter by id."""
        export = Export(client=self.client, matter_id=self.matter_id, export_id=export_id)
        export.refresh()
        return export

    # Holds

    def list_holds(self) -> list[Hold]:
        """List the holds of the matter (all pages)."""
        result = self.client.call().url(f"{self.url}/holds").execute()
        raw_holds = result.get("holds", []) if isinstance(result, dict) else []
        return [Hold.from_api_response(self.client, self.matter_id, raw) for raw in raw_holds]

    def open_hold(self, hold_id: str) -> Hold:
        """Load a hold of the matter by id."""
        hold = Hold(client=self.client, matter_id=self.matter_id, hold_id=hold_id)
        hold.refresh()
        return hold

    def _post_hold(self, payload: dict[str, Any]) -> Hold:
        result = (
            self.client.call()
            .url(f"{self.url}/holds")
            .method("POST")
            .payload(payload)
            .execute()
        )
        hold = Hold.from_api_response(self.client, self.matter_id, result)
        logger.info(f"Created hold {hold.hold_id} ({hold.name}) on matter {self.matter_id}")
        return hold

    def create_user_hold(
        self,
        name: str,
        users: list[str] | str,
        corpus: str,
        query: dict[str, Any] | None = None,
    ) -> Hold:
        """Hold the data of specific accounts."""
        return self._post_hold(build_account_hold_payload(name, users, corpus, query))

    def create_org_unit_hold(
        self,
        name: str,
        org_unit_path: str,
        corpus: str,
        query: dict[str, Any] | None = None,
    ) -> Hold:
        """Hold the data of every account of an org unit."""
        org_unit_id = self.client.directory.get_org_unit_id(org_unit_path)
        return self._post_hold(build_org_unit_hold_payload(name, org_unit_id, corpus, query))
