"""
Vault holds: preservation of the data of accounts or org units in a matter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .client import VaultClient

logger = logging.getLogger(__name__)


class HoldCorpus(str, Enum):
    """Workspace service whose data is held."""

    DRIVE = "DRIVE"
    MAIL = "MAIL"
    GROUPS = "GROUPS"
    HANGOUTS_CHAT = "HANGOUTS_CHAT"
    VOICE = "VOICE"
    CALENDAR = "CALENDAR"


def normalize_corpus(corpus: str) -> str:
    value = corpus.strip().upper()
    if value not in HoldCorpus.__members__:
        raise ValueError(f"Unsupported hold corpus {corpus}")
    return value


def normalize_emails(emails: list[str] | str) -> list[str]:
    """Trim and lower-case email addresses; a single string is accepted."""
    if isinstance(emails, str):
        emails = [emails]
    return [email.strip().lower() for email in emails]


def build_account_hold_payload(
    name: str,
    users: list[str] | str,
    corpus: str,
    query: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a hold on specific accounts (one email or a list of emails)."""
    accounts = [users] if isinstance(users, str) else list(users)
    payload: dict[str, Any] = {
        "name": name,
        "accounts": [{"email": email} for email in accounts],
        "corpus": normalize_corpus(corpus),
    }
    if query is not None:
        payload["query"] = query
    return payload


def build_org_unit_hold_payload(
    name: str,
    org_unit_id: str,
    corpus: str,
    query: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a hold on every account of an org unit."""
    payload: dict[str, Any] = {
        "name": name,
        "orgUnit": {"orgUnitId": org_unit_id},
        "corpus": normalize_corpus(corpus),
    }
    if query is not None:
        payload["query"] = query
    return payload


@dataclass
class Hold:
    """A hold of a matter."""

    client: VaultClient = field(repr=False, compare=False)
    matter_id: str
    hold_id: str
    name: str | None = None
    corpus: str | None = None
    accounts: list[dict[str, Any]] = field(default_factory=list)
    org_unit: dict[str, Any] | None = None
    query: dict[str, Any] | None = None
    update_time: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, client: VaultClient, matter_id: str, data: dict) -> "Hold":
        """Create from a Vault hold resource."""
        return cls(client=client, matter_id=matter_id, hold_id=data.get("holdId", "")).load(data)

    @property
    def url(self) -> str:
        return f"{self.client.matter_url(self.matter_id)}/holds/{self.hold_id}"

    def load(self, data: dict) -> "Hold":
        """Update fields from a Vault hold resource."""
        self.raw = data
        self.hold_id = data.get("holdId", self.hold_id)
        self.name = data.get("name", self.name)
        self.corpus = data.get("corpus", self.corpus)
        self.accounts = data.get("accounts", self.accounts)
        self.org_unit = data.get("orgUnit", self.org_unit)
        self.query = data.get("query", self.query)
        self.update_time = data.get("updateTime", self.update_time)
        return self

    def refresh(self) -> dict:
        """Reload the hold from the API and return the raw resource."""
        data = self.client.call().url(self.url).optional_args({"view": "FULL_HOLD"}).execute()
        self.load(data)
        return data

    def add_account(self, email: str) -> dict:
        """
        Add one account to the hold.

        Returns:
            The HeldAccount resource
        """
        held = (
            self.client.call()
            .url(f"{self.url}/accounts")
            .method("POST")
            .payload({"email": email.strip().lower()})
            .execute()
        )
        logger.info(f"Added {email} to hold {self.hold_id}")
        return held

    def add_accounts(self, emails: list[str]) -> dict:
        """
        Add several accounts to the hold in one request.

        Returns:
            The addHeldAccounts response ({"responses": [...]})
        """
        result = (
            self.client.call()
            .url(f"{self.url}:addHeldAccounts")
            .method("POST")
            .payload({"emails": normalize_emails(emails)})
            .execute()
        )
        logger.info(f"Added {len(emails)} accounts to hold {self.hold_id}")
        return result

    def list_accounts(self) -> list[dict[str, Any]]:
        """List the held accounts."""
        result = self.client.call().url(f"{self.url}/accounts").execute()
        if isinstance(result, dict):
            return result.get("accounts", [])
        return []

    def remove_account(self, account_id: str) -> None:
        """Remove a held account by its account id (as returned by list_accounts)."""
        self.client.call().url(f"{self.url}/accounts/{account_id}").method("DELETE").execute()
        logger.info(f"Removed account {account_id} from hold {self.hold_id}")
