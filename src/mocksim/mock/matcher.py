"""
MockSim Route Matcher

First-match-wins route lookup over an immutable route snapshot.

Features:
- Method filtering (case-insensitive, unset method matches any verb)
- Literal paths with ``:name`` parameters
- Regular expression routes with named groups
- Compiled pattern cache
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from ..common import URLMatcher
from .routes import MockRoute

PARAM_TOKEN = re.compile(r':([A-Za-z_][A-Za-z0-9_]*)')


@dataclass
class RouteMatch:
    """Result of a successful route lookup."""

    route: MockRoute
    params: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary."""
        return {
            'route': self.route.describe(),
            'params': dict(self.params)
        }


def compile_path_pattern(url: str) -> Tuple[Pattern, List[str]]:
    """
    Compile a literal url with ``:name`` segments into a regex.

    Each token becomes a single-segment capture; everything else is matched
    literally.

    Args:
        url: Route url such as ``/users/:id/posts/:postId``

    Returns:
        Tuple of (compiled anchored pattern, parameter names in order)
    """
    names: List[str] = []
    parts: List[str] = []
    last = 0

    for token in PARAM_TOKEN.finditer(url):
        parts.append(re.escape(url[last:token.start()]))
        parts.append('([^/]+)')
        names.append(token.group(1))
        last = token.end()

    parts.append(re.escape(url[last:]))
    return re.compile('^' + ''.join(parts) + '$'), names


class RouteMatcher:
    """
    Route matcher for finding the first route that serves a request.

    Routes are tried in registration order; callers register specific routes
    before general ones.

    Example:
        matcher = RouteMatcher()
        result = matcher.match(routes, 'GET', '/users/42/posts/7?full=1')

        if result:
            print(result.params)  # {'id': '42', 'postId': '7'}
    """

    def __init__(self):
        self._compiled: Dict[str, Tuple[Pattern, List[str]]] = {}

    def match(
        self,
        routes: Iterable[MockRoute],
        method: str,
        path: str
    ) -> Optional[RouteMatch]:
        """
        Find the first route matching method and path.

        Args:
            routes: Ordered route snapshot
            method: Request method
            path: Request path, a query string is ignored

        Returns:
            RouteMatch with bound params, or None
        """
        method_upper = (method or 'GET').upper()
        request_path = URLMatcher.strip_query(path)

        for route in routes:
            if route.method and route.method != method_upper:
                continue

            params = self.match_url(route, request_path)
            if params is not None:
                return RouteMatch(route=route, params=params)

        return None

    def match_url(self, route: MockRoute, path: str) -> Optional[Dict[str, str]]:
        """
        Test a single route url against a path.

        Args:
            route: Route to test
            path: Query-free request path

        Returns:
            Bound params (possibly empty) on match, None otherwise
        """
        if route.is_regex:
            found = route.url.search(path)
            if not found:
                return None
            return {k: v for k, v in found.groupdict().items() if v is not None}

        regex, names = self._compile(route.url)
        found = regex.match(path)
        if not found:
            return None
        return dict(zip(names, found.groups()))

    def _compile(self, url: str) -> Tuple[Pattern, List[str]]:
        compiled = self._compiled.get(url)
        if compiled is None:
            compiled = compile_path_pattern(url)
            self._compiled[url] = compiled
        return compiled


_default_matcher = RouteMatcher()


def match_route(
    routes: Iterable[MockRoute],
    method: str,
    path: str
) -> Optional[RouteMatch]:
    """Convenience wrapper around a shared RouteMatcher."""
    return _default_matcher.match(routes, method, path)
