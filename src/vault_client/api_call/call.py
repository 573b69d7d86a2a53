"""
Fluent builder for authenticated API calls with retries and pagination.

Example::

    results = (
        APICall(token_provider)
        .base_url("https://www.googleapis.com/drive/v3")
        .endpoint("/files")
        .method("GET")
        .optional_args({"q": "mimeType='image/jpeg'"})
        .execute()
    )
"""

import json
import logging
import random
import time
from typing import Any, Callable, Mapping
from urllib.parse import quote, urlencode

from ..config import RetryConfig
from .auth import TokenProvider
from .errors import ConfigurationError, HttpError, TransientTransportFault
from .merge import merge_values
from .transport import RequestsTransport, Transport, TransportResponse

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
BODY_METHODS = ("POST", "PUT", "PATCH")

NEXT_PAGE_FIELD = "nextPageToken"
PAGE_TOKEN_ARG = "pageToken"

FILE_NOT_FOUND_MARKER = "File not found"


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def add_url_arguments(url: str, args: Mapping[str, Any]) -> str:
    """Append percent-encoded query parameters to a URL."""
    if not args:
        return url

    pairs: list[tuple[str, str]] = []
    for name, value in args.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((name, _query_value(v)) for v in value)
        else:
            pairs.append((name, _query_value(value)))

    if not pairs:
        return url

    separator = "&" if "?" in url else "?"
    return url + separator + urlencode(pairs, safe="", quote_via=quote)


class APICall:
    """
    One logical API call.

    Features:
    - Fresh bearer token for every attempt
    - Exponential backoff with jitter on transient failures
    - nextPageToken pagination with deep merge of the pages

    An instance is configured with chained setters and executed once.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        transport: Transport | None = None,
        retry: RetryConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rand: Callable[[], float] = random.random,
    ):
        """
        Initialize call.

        Args:
            token_provider: Source of the bearer token
            transport: HTTP transport (default: RequestsTransport)
            retry: Retry policy (default: 4 attempts, 2s/4s/8s + jitter)
            sleep: Function used to wait between attempts
            rand: Random source in [0, 1) used for jitter
        """
        self.retry = retry or RetryConfig()
        self.token_provider = token_provider
        self.transport = transport or RequestsTransport(timeout=self.retry.timeout_seconds)
        self._sleep = sleep
        self._rand = rand

        self._url: str | None = None
        self._base_url: str | None = None
        self._endpoint: str | None = None
        self._method = "GET"
        self._payload: Any = None
        self._optional_args: dict[str, Any] = {}
        self._executed = False

    def __repr__(self) -> str:
        target = self._url or f"{self._base_url or ''}{self._endpoint or ''}"
        return f"APICall({self._method} {target})"

    # Builder

    def url(self, url: str) -> "APICall":
        """Set the full request URL."""
        if self._base_url is not None:
            raise ConfigurationError(
                "base_url was already provided, use endpoint instead of url: "
                "base_url + endpoint = url"
            )
        if self._endpoint is not None:
            raise ConfigurationError(
                "endpoint was already provided, use base_url instead of url: "
                "base_url + endpoint = url"
            )
        self._url = url
        return self

    def base_url(self, base_url: str) -> "APICall":
        """Set the base URL, completed by endpoint()."""
        if self._url is not None:
            raise ConfigurationError("url was already provided: base_url + endpoint = url")
        self._base_url = base_url
        return self

    def endpoint(self, endpoint: str) -> "APICall":
        """Set the path appended to base_url."""
        if self._url is not None:
            raise ConfigurationError("url was already provided: base_url + endpoint = url")
        if self._base_url is None:
            logger.warning("endpoint set before base_url; provide base_url to complete the URL")
        self._endpoint = endpoint
        return self

    def method(self, method: str) -> "APICall":
        """Set the HTTP method (case-insensitive)."""
        normalized = method.strip().upper() if isinstance(method, str) else ""
        if normalized not in ALLOWED_METHODS:
            raise ConfigurationError(f"method {method!r} is disallowed")
        self._method = normalized
        return self

    def payload(self, payload: Any) -> "APICall":
        """Set the JSON body (sent for POST, PUT and PATCH only)."""
        self._payload = payload
        return self

    def optional_args(self, optional_args: Mapping[str, Any] | None) -> "APICall":
        """Set the query parameters."""
        self._optional_args = dict(optional_args or {})
        return self

    # Execution

    def _compose_url(self) -> str:
        if self._url is not None:
            return self._url
        if self._base_url is None:
            raise ConfigurationError("no url or base_url + endpoint defined to perform call")
        return self._base_url + (self._endpoint or "")

    def _consume(self) -> None:
        if self._executed:
            raise ConfigurationError("APICall instances are single use, build a new one")
        self._executed = True

    def _authenticated_fetch(self, url: str) -> TransportResponse:
        """Make a single authenticated request."""
        headers = {"Authorization": f"Bearer {self.token_provider.get_token()}"}
        body = None

        if self._method in BODY_METHODS:
            headers["Content-Type"] = "application/json"
            if self._payload is not None:
                body = json.dumps(self._payload)
                logger.debug(f"Request body: {body}")

        return self.transport.fetch(url, self._method, headers, body)

    def _backoff_delay(self, attempt: int) -> float:
        return (
            self.retry.backoff_base_seconds * 2 ** (attempt + 1)
            + self._rand() * self.retry.max_jitter_seconds
        )

    def _fetch_with_backoff(self, url: str) -> TransportResponse:
        """
        Fetch with exponential backoff.

        Returns the last response obtained, successful or not. Raises the last
        TransientTransportFault only if no attempt produced a response.
        """
        response: TransportResponse | None = None
        last_fault: TransientTransportFault | None = None
        max_attempts = self.retry.max_attempts

        for attempt in range(max_attempts):
            try:
                response = self._authenticated_fetch(url)
            except TransientTransportFault as e:
                last_fault = e
                logger.warning(f"Attempt {attempt + 1}/{max_attempts} for {url} failed: {e}")
            else:
                if response.ok:
                    if attempt > 0:
                        logger.info(f"Success after {attempt + 1} attempts for {url}")
                    return response
                if response.status_code == 403:
                    logger.warning(f"{self._method} {url} returned 403, final stop")
                    return response
                if response.status_code == 404 and FILE_NOT_FOUND_MARKER in response.text:
                    logger.warning(f"{self._method} {url} returned 404 File not found, final stop")
                    return response

            if attempt < max_attempts - 1:
                delay = self._backoff_delay(attempt)
                logger.warning(
                    f"{attempt + 1} failed attempt: {self._method} {url} "
                    f"--> sleeping {delay:.2f}s"
                )
                self._sleep(delay)

        if response is None:
            assert last_fault is not None
            raise last_fault
        return response

    def _raise_for_status(self, response: TransportResponse, url: str) -> None:
        if not response.ok:
            logger.error(f"API error {response.status_code}: {self._method} {url}")
            raise HttpError(
                status_code=response.status_code,
                url=url,
                method=self._method,
                payload=self._payload,
                response_body=response.text,
            )

    def execute(self) -> Any:
        """
        Run the call, following pagination cursors.

        Returns:
            The deep-merged JSON value of all pages, the raw text for non-JSON
            bodies, or "" for an empty body.

        Raises:
            ConfigurationError: If the call is not properly configured
            HttpError: If the final response status is >= 300
            TransientTransportFault: If no attempt obtained a response
        """
        self._consume()
        composed_url = self._compose_url()
        url_args = dict(self._optional_args)
        result: Any = {}
        page = 0

        while True:
            target = add_url_arguments(composed_url, url_args)
            response = self._fetch_with_backoff(target)
            self._raise_for_status(response, target)

            if response.text == "":
                return ""

            try:
                data = json.loads(response.text)
            except ValueError:
                logger.debug(f"Non-JSON response from {target}, returning raw text")
                return response.text

            next_page_token = None
            if isinstance(data, dict):
                next_page_token = data.pop(NEXT_PAGE_FIELD, None)

            result = merge_values(result, data)
            page += 1

            if next_page_token in (None, ""):
                return result

            logger.debug(f"Fetching page {page + 1} of {composed_url}")
            url_args[PAGE_TOKEN_ARG] = str(next_page_token)

    def download(self) -> bytes:
        """
        Run the call once and return the raw response body.

        Raises:
            ConfigurationError: If the call is not properly configured
            HttpError: If the final response status is >= 300
            TransientTransportFault: If no attempt obtained a response
        """
        self._consume()
        target = add_url_arguments(self._compose_url(), self._optional_args)
        response = self._fetch_with_backoff(target)
        self._raise_for_status(response, target)
        return response.content or b""
