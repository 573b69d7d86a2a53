"""
Authenticated API calls.

Provides:
- Fluent call builder (url or base_url + endpoint, method, payload, query args)
- Fresh bearer token per attempt through a pluggable token provider
- Exponential backoff with jitter for transient failures
- nextPageToken pagination with deep merge of all pages
"""

from .auth import (
    CallableTokenProvider,
    CommandTokenProvider,
    EnvTokenProvider,
    StaticTokenProvider,
    TokenProvider,
)
from .call import APICall, add_url_arguments
from .errors import (
    APICallError,
    ConfigurationError,
    HttpError,
    TokenProviderError,
    TransientTransportFault,
)
from .merge import deep_merge, merge_values
from .transport import RequestsTransport, Transport, TransportResponse

__all__ = [
    "APICall",
    "add_url_arguments",
    "APICallError",
    "ConfigurationError",
    "HttpError",
    "TokenProviderError",
    "TransientTransportFault",
    "TokenProvider",
    "StaticTokenProvider",
    "EnvTokenProvider",
    "CommandTokenProvider",
    "CallableTokenProvider",
    "Transport",
    "TransportResponse",
    "RequestsTransport",
    "deep_merge",
    "merge_values",
]
