"""Test doubles shared by the test modules."""

from dataclasses import dataclass, field

from vault_client.api_call import TokenProvider, Transport, TransportResponse

VAULT_URL = "https://vault.test/v1"
DIRECTORY_URL = "https://directory.test/admin/directory/v1"
STORAGE_URL = "https://storage.test/storage/v1"


@dataclass
class RecordedRequest:
    url: str
    method: str
    headers: dict
    body: str | None


class ScriptedTransport(Transport):
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[RecordedRequest] = []

    def fetch(self, url, method, headers, body=None):
        self.requests.append(RecordedRequest(url, method, dict(headers), body))
        if not self.outcomes:
            raise AssertionError(f"Unexpected request: {method} {url}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class CountingTokenProvider(TokenProvider):
    """Hands out token-1, token-2, ... so every attempt is distinguishable."""

    def __init__(self):
        self.calls = 0

    def get_token(self) -> str:
        self.calls += 1
        return f"token-{self.calls}"


@dataclass
class SleepRecorder:
    delays: list[float] = field(default_factory=list)

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def ok(text: str = "{}", status: int = 200) -> TransportResponse:
    return TransportResponse(status_code=status, text=text)
