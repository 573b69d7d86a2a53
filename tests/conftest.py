"""Test fixtures."""

import pytest

from vault_client.api_call import APICall
from vault_client.config import RetryConfig
from vault_client.vault import VaultClient

from helpers import (
    DIRECTORY_URL,
    STORAGE_URL,
    VAULT_URL,
    CountingTokenProvider,
    ScriptedTransport,
    SleepRecorder,
)


@pytest.fixture
def token_provider() -> CountingTokenProvider:
    return CountingTokenProvider()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_call(token_provider, sleep):
    """Build an APICall wired to a scripted transport."""

    def factory(*outcomes, retry: RetryConfig | None = None):
        transport = ScriptedTransport(*outcomes)
        call = APICall(
            token_provider,
            transport=transport,
            retry=retry,
            sleep=sleep,
            rand=lambda: 0.5,
        )
        return call, transport

    return factory


@pytest.fixture
def vault_client(token_provider, sleep) -> VaultClient:
    """Vault client on the real requests transport, for use with responses."""
    return VaultClient(
        token_provider,
        vault_url=VAULT_URL,
        directory_url=DIRECTORY_URL,
        storage_url=STORAGE_URL,
        sleep=sleep,
    )


@pytest.fixture
def sample_matter() -> dict:
    """Sample Vault matter resource."""
    return {
        "matterId": "m-123",
        "name": "Acme litigation",
        "description": "Contract dispute",
        "state": "OPEN",
        "matterPermissions": [{"role": "OWNER", "accountId": "u-1"}],
    }


@pytest.fixture
def sample_export() -> dict:
    """Sample completed Vault export resource."""
    return {
        "id": "e-456",
        "matterId": "m-123",
        "name": "MAIL - jane@example.com - 2024-11-18",
        "status": "COMPLETED",
        "createTime": "2024-11-18T10:00:00Z",
        "cloudStorageSink": {
            "files": [
                {
                    "bucketName": "vault-export-bucket",
                    "objectName": "m-123/exports/e-456/mail-1.zip",
                    "size": "11",
                    "md5Hash": "abc",
                },
                {
                    "bucketName": "vault-export-bucket",
                    "objectName": "m-123/exports/e-456/mail-metadata.xml",
                    "size": "5",
                    "md5Hash": "def",
                },
            ]
        },
    }
