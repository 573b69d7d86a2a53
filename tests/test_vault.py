"""
Tests for the Vault matter, export and hold wrappers.

These tests use responses library to mock the Vault, Directory and Storage
APIs, validating the URLs and payloads built by the wrappers.
"""

import json
import logging
from datetime import date

import pytest
import responses
from responses import matchers

from vault_client.api_call import HttpError
from vault_client.vault import Export, LocalDirectorySink, MatterState
from vault_client.vault.exports import build_user_export_payload
from vault_client.vault.holds import build_account_hold_payload, normalize_emails

from helpers import DIRECTORY_URL, STORAGE_URL, VAULT_URL

MATTERS_URL = f"{VAULT_URL}/matters"
MATTER_URL = f"{MATTERS_URL}/m-123"


def request_json(index: int) -> dict:
    return json.loads(responses.calls[index].request.body)


class TestMatters:
    """Matter listing and lifecycle."""

    @responses.activate
    def test_list_matters_all_pages(self, vault_client):
        responses.add(
            responses.GET,
            MATTERS_URL,
            json={"matters": [{"matterId": "1", "name": "A", "state": "OPEN"}], "nextPageToken": "n"},
            match=[matchers.query_param_matcher({"state": "OPEN"})],
        )
        responses.add(
            responses.GET,
            MATTERS_URL,
            json={"matters": [{"matterId": "2", "name": "B", "state": "OPEN"}]},
            match=[matchers.query_param_matcher({"state": "OPEN", "pageToken": "n"})],
        )

        matters = vault_client.list_matters("open")

        assert [m.matter_id for m in matters] == ["1", "2"]
        assert [m.name for m in matters] == ["A", "B"]

    @responses.activate
    def test_list_matters_empty(self, vault_client):
        responses.add(responses.GET, MATTERS_URL, json={}, status=200)

        assert vault_client.list_matters() == []

    def test_list_matters_invalid_state(self, vault_client):
        with pytest.raises(ValueError, match="not recognized"):
            vault_client.list_matters("ARCHIVED")

    @responses.activate
    def test_open_matter(self, vault_client, sample_matter):
        responses.add(
            responses.GET,
            MATTER_URL,
            json=sample_matter,
            match=[matchers.query_param_matcher({"view": "FULL"})],
        )

        matter = vault_client.open_matter("m-123")

        assert matter.matter_id == "m-123"
        assert matter.name == "Acme litigation"
        assert matter.state == MatterState.OPEN.value
        assert matter.matter_permissions == [{"role": "OWNER", "accountId": "u-1"}]
        assert matter.raw == sample_matter

    @responses.activate
    def test_create_matter(self, vault_client):
        responses.add(
            responses.POST,
            MATTERS_URL,
            json={"matterId": "m-new", "name": "Case", "description": "Desc", "state": "OPEN"},
        )

        matter = vault_client.create_matter("Case", "Desc")

        assert matter.matter_id == "m-new"
        assert matter.state == "OPEN"
        assert request_json(0) == {"name": "Case", "description": "Desc"}

    @responses.activate
    def test_create_matter_without_description(self, vault_client):
        responses.add(responses.POST, MATTERS_URL, json={"matterId": "m-new", "name": "Case"})

        vault_client.create_matter("Case")

        assert request_json(0) == {"name": "Case"}

    @responses.activate
    def test_create_matter_with_empty_response(self, vault_client):
        responses.add(responses.POST, MATTERS_URL, body="", status=200)

        matter = vault_client.create_matter("Case")

        assert matter.state == "OPEN"
        assert matter.name == "Case"
        assert matter.matter_id is None

    def test_create_requires_name(self, vault_client):
        with pytest.raises(ValueError, match="Name is mandatory"):
            vault_client.new_matter().create()

    def test_draft_changes_stay_local(self, vault_client):
        matter = vault_client.new_matter("Draft").set_name("Renamed").set_description("Notes")

        assert matter.is_draft
        assert matter.name == "Renamed"
        assert matter.description == "Notes"

    def test_none_name_rejected(self, vault_client):
        with pytest.raises(ValueError):
            vault_client.new_matter("Draft").set_name(None)

    @responses.activate
    def test_rename_created_matter(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(
            responses.PUT,
            MATTER_URL,
            json={**sample_matter, "name": "Renamed"},
        )

        matter = vault_client.open_matter("m-123").set_name("Renamed")

        assert matter.name == "Renamed"
        assert request_json(1) == {"name": "Renamed", "description": "Contract dispute"}

    @responses.activate
    def test_close_matter(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(responses.POST, f"{MATTER_URL}:close", body="", status=200)

        matter = vault_client.open_matter("m-123")
        result = matter.close()

        assert result == ""
        assert matter.state == MatterState.CLOSED.value
        assert responses.calls[1].request.body is None

    @responses.activate
    def test_refresh(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(responses.GET, MATTER_URL, json={**sample_matter, "state": "CLOSED"})

        matter = vault_client.open_matter("m-123")
        data = matter.refresh()

        assert data["state"] == "CLOSED"
        assert matter.state == "CLOSED"

    @responses.activate
    def test_missing_matter_raises(self, vault_client):
        responses.add(
            responses.GET, f"{MATTERS_URL}/nope", json={"error": "not allowed"}, status=403
        )

        with pytest.raises(HttpError) as exc_info:
            vault_client.open_matter("nope")

        assert exc_info.value.status_code == 403


class TestCollaborators:
    """Matter permissions through directory lookups."""

    @responses.activate
    def test_add_collaborator(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(
            responses.GET, f"{DIRECTORY_URL}/users/jane@example.com", json={"id": "u-9"}
        )
        responses.add(responses.POST, f"{MATTER_URL}:addPermissions", json={"role": "OWNER"})

        matter = vault_client.open_matter("m-123")
        collaborator = matter.add_collaborator("jane@example.com", "owner", send_emails=False)

        assert collaborator == {"email": "jane@example.com", "userId": "u-9", "role": "OWNER"}
        assert request_json(2) == {
            "matterPermission": {"accountId": "u-9", "role": "OWNER"},
            "sendEmails": False,
        }

    @responses.activate
    def test_default_role(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(responses.GET, f"{DIRECTORY_URL}/users/joe@example.com", json={"id": "u-2"})
        responses.add(responses.POST, f"{MATTER_URL}:addPermissions", json={})

        matter = vault_client.open_matter("m-123")
        collaborator = matter.add_collaborator("joe@example.com")

        assert collaborator["role"] == "COLLABORATOR"
        assert "sendEmails" not in request_json(2)

    @responses.activate
    def test_unknown_role_rejected_before_any_request(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        matter = vault_client.open_matter("m-123")

        with pytest.raises(ValueError, match="unhandled"):
            matter.add_collaborator("jane@example.com", "admin")

        assert len(responses.calls) == 1

    @responses.activate
    def test_remove_collaborator(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(
            responses.GET, f"{DIRECTORY_URL}/users/jane@example.com", json={"id": "u-9"}
        )
        responses.add(responses.POST, f"{MATTER_URL}:removePermissions", body="")

        matter = vault_client.open_matter("m-123")

        assert matter.remove_collaborator("jane@example.com") == "removed"
        assert request_json(2) == {"accountId": "u-9"}


class TestUserExportPayload:
    """Export request bodies."""

    def test_mail_export_defaults(self):
        payload = build_user_export_payload(
            "jane@example.com", "mail", today=date(2024, 11, 18)
        )

        assert payload == {
            "name": "MAIL - jane@example.com - 2024-11-18",
            "query": {
                "corpus": "MAIL",
                "method": "ACCOUNT",
                "accountInfo": {"emails": ["jane@example.com"]},
                "dataScope": "ALL_DATA",
            },
            "exportOptions": {"mailOptions": {"exportFormat": "PST"}},
        }

    def test_drive_export_terms(self):
        payload = build_user_export_payload("jane@example.com", "DRIVE", name="Drive of Jane")

        assert payload["name"] == "Drive of Jane"
        assert payload["query"]["terms"] == "owner:jane@example.com"
        assert payload["exportOptions"] == {}

    def test_options(self):
        payload = build_user_export_payload(
            "jane@example.com",
            "MAIL",
            options={"exportFormat": "mbox", "terms": "subject:contract"},
        )

        assert payload["exportOptions"]["mailOptions"]["exportFormat"] == "MBOX"
        assert payload["query"]["terms"] == "subject:contract"

    def test_unknown_option_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            build_user_export_payload("jane@example.com", "MAIL", options={"color": "blue"})

        assert "Unknown export option color" in caplog.text

    def test_export_format_on_drive_rejected(self):
        with pytest.raises(ValueError):
            build_user_export_payload("jane@example.com", "DRIVE", options={"exportFormat": "PST"})

    @pytest.mark.parametrize("export_type", [None, "CHAT"])
    def test_bad_type(self, export_type):
        with pytest.raises(ValueError):
            build_user_export_payload("jane@example.com", export_type)


class TestExports:
    """Export objects."""

    @responses.activate
    def test_create_user_export(self, vault_client, sample_matter, sample_export):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(responses.POST, f"{MATTER_URL}/exports", json=sample_export)

        matter = vault_client.open_matter("m-123")
        export = matter.create_user_export("jane@example.com", "MAIL")

        assert export.export_id == "e-456"
        assert export.matter_id == "m-123"
        assert matter.exports == [export]
        body = request_json(1)
        assert body["query"]["accountInfo"] == {"emails": ["jane@example.com"]}
        assert body["name"].startswith("MAIL - jane@example.com - ")

    @responses.activate
    def test_create_export_with_query(self, vault_client, sample_matter, sample_export):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(responses.POST, f"{MATTER_URL}/exports", json=sample_export)

        query = {"corpus": "DRIVE", "dataScope": "ALL_DATA", "method": "ORG_UNIT"}
        vault_client.open_matter("m-123").create_export("Org export", query)

        assert request_json(1) == {"name": "Org export", "query": query, "exportOptions": {}}

    @responses.activate
    def test_list_exports_all_pages(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(
            responses.GET,
            f"{MATTER_URL}/exports",
            json={"exports": [{"id": "e-1", "matterId": "m-123"}], "nextPageToken": "p2"},
            match=[matchers.query_param_matcher({})],
        )
        responses.add(
            responses.GET,
            f"{MATTER_URL}/exports",
            json={"exports": [{"id": "e-2", "matterId": "m-123"}]},
            match=[matchers.query_param_matcher({"pageToken": "p2"})],
        )

        matter = vault_client.open_matter("m-123")
        exports = matter.get_exports()

        assert [e.export_id for e in exports] == ["e-1", "e-2"]
        # cached after first listing
        assert matter.get_exports() is exports
        assert len(responses.calls) == 3

    @responses.activate
    def test_open_export_and_status(self, vault_client, sample_export):
        url = f"{MATTER_URL}/exports/e-456"
        responses.add(responses.GET, url, json={**sample_export, "status": "IN_PROGRESS"})
        responses.add(responses.GET, url, json=sample_export)

        export = vault_client.open_export("m-123", "e-456")

        assert export.status == "IN_PROGRESS"
        assert not export.is_completed
        assert export.get_status() == "COMPLETED"
        assert export.is_completed

    @responses.activate
    def test_get_files_without_sink(self, vault_client):
        url = f"{MATTER_URL}/exports/e-1"
        responses.add(responses.GET, url, json={"id": "e-1", "matterId": "m-123"})

        export = Export(client=vault_client, matter_id="m-123", export_id="e-1")

        assert export.get_files() == []
        assert len(responses.calls) == 1

    @responses.activate
    def test_download_files(self, vault_client, sample_export, tmp_path):
        bucket = f"{STORAGE_URL}/b/vault-export-bucket/o"
        responses.add(
            responses.GET,
            f"{bucket}/m-123%2Fexports%2Fe-456%2Fmail-1.zip",
            body=b"PK\x03\x04archive",
            match=[matchers.query_param_matcher({"alt": "media"})],
        )
        responses.add(
            responses.GET,
            f"{bucket}/m-123%2Fexports%2Fe-456%2Fmail-metadata.xml",
            body=b"<xml/>",
            match=[matchers.query_param_matcher({"alt": "media"})],
        )

        export = Export.from_api_response(vault_client, sample_export)
        locations = export.download_files(LocalDirectorySink(tmp_path / "out"))

        assert locations == [
            str(tmp_path / "out" / "mail-1.zip"),
            str(tmp_path / "out" / "mail-metadata.xml"),
        ]
        assert (tmp_path / "out" / "mail-1.zip").read_bytes() == b"PK\x03\x04archive"

    @responses.activate
    def test_download_files_to_default_sink(self, vault_client, sample_export, tmp_path):
        responses.add(
            responses.GET,
            f"{STORAGE_URL}/b/vault-export-bucket/o/m-123%2Fexports%2Fe-456%2Fmail-1.zip",
            body=b"zip",
        )
        responses.add(
            responses.GET,
            f"{STORAGE_URL}/b/vault-export-bucket/o/m-123%2Fexports%2Fe-456%2Fmail-metadata.xml",
            body=b"<xml/>",
        )
        vault_client.download_sink = LocalDirectorySink(tmp_path)

        export = Export.from_api_response(vault_client, sample_export)
        export.download_files()

        assert (tmp_path / "mail-metadata.xml").read_bytes() == b"<xml/>"

    def test_download_files_requires_a_sink(self, vault_client, sample_export):
        export = Export.from_api_response(vault_client, sample_export)

        with pytest.raises(ValueError, match="sink"):
            export.download_files()

    @responses.activate
    def test_remove_export(self, vault_client, sample_export):
        responses.add(responses.DELETE, f"{MATTER_URL}/exports/e-456", body="")

        Export.from_api_response(vault_client, sample_export).remove()

        assert responses.calls[0].request.method == "DELETE"


class TestHolds:
    """Hold objects and payloads."""

    def test_account_hold_payload_accepts_single_email(self):
        payload = build_account_hold_payload("Hold", "jane@example.com", "mail")

        assert payload == {
            "name": "Hold",
            "accounts": [{"email": "jane@example.com"}],
            "corpus": "MAIL",
        }

    def test_unknown_corpus_rejected(self):
        with pytest.raises(ValueError):
            build_account_hold_payload("Hold", ["a@example.com"], "FAX")

    def test_normalize_emails(self):
        assert normalize_emails([" Jane@Example.com ", "JOE@example.com"]) == [
            "jane@example.com",
            "joe@example.com",
        ]

    @responses.activate
    def test_create_user_hold(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(
            responses.POST,
            f"{MATTER_URL}/holds",
            json={"holdId": "h-1", "name": "Mail hold", "corpus": "MAIL"},
        )

        hold = vault_client.open_matter("m-123").create_user_hold(
            "Mail hold",
            ["jane@example.com", "joe@example.com"],
            "MAIL",
            query={"mailQuery": {"terms": "contract"}},
        )

        assert hold.hold_id == "h-1"
        assert hold.matter_id == "m-123"
        assert request_json(1)["query"] == {"mailQuery": {"terms": "contract"}}
        assert len(request_json(1)["accounts"]) == 2

    @responses.activate
    def test_create_org_unit_hold(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(
            responses.GET,
            f"{DIRECTORY_URL}/customer/my_customer/orgunits/Sales/EMEA",
            json={"orgUnitId": "id:03ph8a2z"},
        )
        responses.add(
            responses.POST,
            f"{MATTER_URL}/holds",
            json={"holdId": "h-2", "orgUnit": {"orgUnitId": "id:03ph8a2z"}, "corpus": "DRIVE"},
        )

        hold = vault_client.open_matter("m-123").create_org_unit_hold(
            "Sales hold", "/Sales/EMEA", "drive"
        )

        assert hold.org_unit == {"orgUnitId": "id:03ph8a2z"}
        assert request_json(2) == {
            "name": "Sales hold",
            "orgUnit": {"orgUnitId": "id:03ph8a2z"},
            "corpus": "DRIVE",
        }

    @responses.activate
    def test_list_holds(self, vault_client, sample_matter):
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(
            responses.GET,
            f"{MATTER_URL}/holds",
            json={"holds": [{"holdId": "h-1"}, {"holdId": "h-2"}]},
        )

        holds = vault_client.open_matter("m-123").list_holds()

        assert [h.hold_id for h in holds] == ["h-1", "h-2"]

    @responses.activate
    def test_held_accounts(self, vault_client, sample_matter):
        hold_url = f"{MATTER_URL}/holds/h-1"
        responses.add(responses.GET, MATTER_URL, json=sample_matter)
        responses.add(
            responses.GET,
            hold_url,
            json={"holdId": "h-1", "name": "Mail hold", "corpus": "MAIL"},
            match=[matchers.query_param_matcher({"view": "FULL_HOLD"})],
        )
        responses.add(responses.POST, f"{hold_url}:addHeldAccounts", json={"responses": []})
        responses.add(
            responses.POST, f"{hold_url}/accounts", json={"accountId": "u-3", "email": "x@e.com"}
        )
        responses.add(
            responses.GET,
            f"{hold_url}/accounts",
            json={"accounts": [{"accountId": "u-3"}]},
        )
        responses.add(responses.DELETE, f"{hold_url}/accounts/u-3", body="")

        hold = vault_client.open_matter("m-123").open_hold("h-1")
        hold.add_accounts([" A@Example.com "])
        held = hold.add_account("X@e.com")
        accounts = hold.list_accounts()
        hold.remove_account("u-3")

        assert hold.name == "Mail hold"
        assert request_json(2) == {"emails": ["a@example.com"]}
        assert request_json(3) == {"email": "x@e.com"}
        assert held["accountId"] == "u-3"
        assert accounts == [{"accountId": "u-3"}]
        assert responses.calls[5].request.method == "DELETE"

    @responses.activate
    def test_list_accounts_empty(self, vault_client):
        from vault_client.vault import Hold

        responses.add(responses.GET, f"{MATTER_URL}/holds/h-1/accounts", json={})

        hold = Hold(client=vault_client, matter_id="m-123", hold_id="h-1")

        assert hold.list_accounts() == []


class TestStorage:
    """Bucket object downloads."""

    def test_object_url_is_encoded(self, vault_client):
        url = vault_client.storage.object_url("my bucket", "a/b c.zip")

        assert url == f"{STORAGE_URL}/b/my%20bucket/o/a%2Fb%20c.zip"

    @responses.activate
    def test_missing_object(self, vault_client):
        responses.add(
            responses.GET,
            f"{STORAGE_URL}/b/bkt/o/gone.zip",
            body="File not found",
            status=404,
        )

        with pytest.raises(HttpError):
            vault_client.storage.download_object("bkt", "gone.zip")

        assert len(responses.calls) == 1
