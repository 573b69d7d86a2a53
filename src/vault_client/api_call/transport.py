"""
HTTP transport used by APICall.

A transport performs exactly one request. It never retries and never raises
for HTTP error statuses; network-level failures surface as
TransientTransportFault so the caller can decide whether to try again.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import TransientTransportFault

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Status and body of a single HTTP exchange."""

    status_code: int
    text: str = ""
    content: bytes | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.content is None:
            self.content = self.text.encode("utf-8")

    @property
    def ok(self) -> bool:
        return self.status_code < 300


class Transport(ABC):
    """Performs a single HTTP request."""

    @abstractmethod
    def fetch(
        self,
        url: str,
        method: str,
        headers: dict[str, str],
        body: str | None = None,
    ) -> TransportResponse:
        """
        Send one request.

        Raises:
            TransientTransportFault: On connection errors and timeouts
        """
        pass


class RequestsTransport(Transport):
    """
    Transport backed by a requests.Session.

    Connection-level retries are disabled on the mounted adapters; the retry
    budget belongs to APICall.
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        """
        Initialize transport.

        Args:
            timeout: Request timeout in seconds
            session: Optional pre-configured session (adapters are replaced)
        """
        self.timeout = timeout
        self.session = session or requests.Session()

        adapter = HTTPAdapter(max_retries=Retry(total=0, read=False))
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def fetch(
        self,
        url: str,
        method: str,
        headers: dict[str, str],
        body: str | None = None,
    ) -> TransportResponse:
        logger.debug(f"HTTP {method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                data=body.encode("utf-8") if body is not None else None,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise TransientTransportFault(f"Failed to connect to {url}: {e}") from e
        except requests.exceptions.Timeout as e:
            raise TransientTransportFault(f"Request to {url} timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransientTransportFault(f"Request to {url} failed: {e}") from e

        logger.debug(f"Response status: {response.status_code}")

        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            content=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self.session.close()
