"""
Google Vault eDiscovery client.

Authenticated, retried and paginated calls to the Vault, Admin Directory and
Cloud Storage APIs, with thin Matter / Export / Hold wrappers on top.
"""

__version__ = "0.1.0"
