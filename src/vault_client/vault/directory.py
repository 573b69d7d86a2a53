"""
Admin Directory lookups needed by matters and holds.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import quote

if TYPE_CHECKING:
    from .client import VaultClient

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    """Directory returned a response without the expected identifier."""

    pass


class DirectoryClient:
    """Resolves user emails and org unit paths to directory ids."""

    def __init__(self, client: VaultClient, base_url: str, customer: str = "my_customer"):
        self._client = client
        self.base_url = base_url.rstrip("/")
        self.customer = customer

    def get_user(self, email: str) -> dict:
        """Get the directory record of a user."""
        return self._client.call().url(f"{self.base_url}/users/{quote(email, safe='@')}").execute()

    def get_user_id(self, email: str) -> str:
        """Get the unique account id of a user from their email address."""
        user = self.get_user(email)
        if not isinstance(user, dict) or not user.get("id"):
            raise DirectoryError(f"No account id returned for {email}")
        return user["id"]

    def get_org_unit_id(self, org_unit_path: str) -> str:
        """
        Get an org unit id from its path.

        Args:
            org_unit_path: Full path, e.g. "/Sales/EMEA" (leading slash optional)
        """
        path = quote(org_unit_path.lstrip("/"), safe="/")
        url = f"{self.base_url}/customer/{self.customer}/orgunits/{path}"
        org_unit = self._client.call().url(url).execute()
        if not isinstance(org_unit, dict) or not org_unit.get("orgUnitId"):
            raise DirectoryError(f"No org unit id returned for {org_unit_path}")
        logger.debug(f"Resolved org unit {org_unit_path} -> {org_unit['orgUnitId']}")
        return org_unit["orgUnitId"]
