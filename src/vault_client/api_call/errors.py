"""
Error taxonomy for API calls.
"""

import json
from typing import Any


class APICallError(Exception):
    """Base exception for API call errors."""

    pass


class ConfigurationError(APICallError):
    """The call builder was misused (conflicting URLs, missing URL, bad method)."""

    pass


class TransientTransportFault(APICallError):
    """Network-level failure during a single attempt (connection reset, timeout)."""

    pass


class TokenProviderError(APICallError):
    """A token provider could not produce a credential."""

    pass


class HttpError(APICallError):
    """API returned a final error response."""

    def __init__(
        self,
        status_code: int,
        url: str,
        method: str,
        payload: Any = None,
        response_body: str | None = None,
    ):
        self.status_code = status_code
        self.url = url
        self.method = method
        self.payload = payload
        self.response_body = response_body

        try:
            payload_str = json.dumps(payload)
        except (TypeError, ValueError):
            payload_str = repr(payload)

        super().__init__(
            f"[FAILURE] ({status_code}) {method} {url} payload={payload_str} ==> {response_body}"
        )
