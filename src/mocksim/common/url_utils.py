"""
MockSim URL Utilities

Shared URL splitting and query parsing used by the matcher and adapter.
"""

from typing import Dict, Tuple
from urllib.parse import parse_qsl, urlsplit


class URLMatcher:
    """Handles URL parsing for incoming mock requests."""

    @staticmethod
    def split_url(url: str) -> Tuple[str, str]:
        """
        Split a request target into path and raw query string.

        Args:
            url: Request URL, either absolute or a path with optional query

        Returns:
            Tuple of (path, query)
        """
        parsed = urlsplit(url)
        return parsed.path or '/', parsed.query

    @staticmethod
    def strip_query(url: str) -> str:
        """Return only the path portion of a URL."""
        return URLMatcher.split_url(url)[0]

    @staticmethod
    def parse_query(query: str) -> Dict[str, str]:
        """
        Parse a query string into a flat dict.

        Repeated keys keep the last value, blank values are preserved.

        Args:
            query: Raw query string without the leading '?'

        Returns:
            Dict of parameter name to value
        """
        params: Dict[str, str] = {}
        for key, value in parse_qsl(query, keep_blank_values=True):
            params[key] = value
        return params

    @staticmethod
    def has_prefix(path: str, prefix: str) -> bool:
        """Check whether a request path falls under a URL prefix."""
        if not prefix or prefix == '/':
            return True
        return path.startswith(prefix)
