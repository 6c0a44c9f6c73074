"""
MockSim Route Model

Route definitions shared by the matcher, registry, scenarios and recorder.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Union

HTTP_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'HEAD', 'OPTIONS')


@dataclass
class MockRoute:
    """
    A (method, url-pattern) -> response rule.

    ``url`` is either a literal path with optional ``:name`` segments or a
    compiled regular expression. ``response`` is a static value or a callable
    taking ``(request)`` or ``(request, response)``; callables may be async.
    When ``response`` is unset and ``template`` names a data template, the
    template output is served instead.
    """

    url: Union[str, Pattern]
    method: Optional[str] = None
    response: Any = None
    delay: Optional[int] = None  # milliseconds, None = configured default
    status_code: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    template: Optional[str] = None
    count: int = 1

    def __post_init__(self):
        if self.method:
            self.method = self.method.upper()

    @property
    def is_regex(self) -> bool:
        return isinstance(self.url, re.Pattern)

    @property
    def is_dynamic(self) -> bool:
        """True when the response is produced by a user handler."""
        return callable(self.response)

    @property
    def pattern(self) -> str:
        """The url as text (regex source for regex routes)."""
        return self.url.pattern if self.is_regex else self.url

    def describe(self) -> str:
        return f"{self.method or '*'} {self.pattern}"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the persisted JSON form.

        Callable responses cannot be serialized and are dropped, so a
        persisted route is always static.
        """
        data: Dict[str, Any] = {
            'url': self.pattern,
            'method': self.method,
            'delay': self.delay,
            'status_code': self.status_code,
            'headers': dict(self.headers),
        }
        if self.is_regex:
            data['regex'] = True
        if not self.is_dynamic:
            data['response'] = self.response
        if self.template:
            data['template'] = self.template
            data['count'] = self.count
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockRoute':
        """
        Create a route from a dict.

        Accepts the persisted form as well as the camelCase ``statusCode`` and
        ``timeout`` aliases used by hand-written route files.
        """
        if 'url' not in data:
            raise ValueError(f"Route definition is missing 'url': {data!r}")

        url = data['url']
        if data.get('regex') and isinstance(url, str):
            url = re.compile(url)

        delay = data.get('delay', data.get('timeout'))
        return cls(
            url=url,
            method=data.get('method'),
            response=data.get('response'),
            delay=int(delay) if delay is not None else None,
            status_code=data.get('status_code', data.get('statusCode')),
            headers=dict(data.get('headers') or {}),
            template=data.get('template'),
            count=int(data.get('count', 1)),
        )

    @classmethod
    def coerce(cls, value: Union['MockRoute', Dict[str, Any]]) -> 'MockRoute':
        """Accept either a MockRoute or a plain dict definition."""
        if isinstance(value, MockRoute):
            return value
        if isinstance(value, dict):
            return cls.from_dict(value)
        raise TypeError(f"Unsupported route definition: {type(value).__name__}")


def expand_route_map(route_map: Dict[str, Any]) -> List[MockRoute]:
    """
    Expand a ``{"METHOD /path": response}`` mapping into routes.

    Keys without a verb prefix default to GET.

    Args:
        route_map: Mapping of route keys to response values

    Returns:
        List of MockRoute in mapping order
    """
    routes = []
    for key, value in route_map.items():
        parts = key.split(None, 1)
        if len(parts) == 2 and parts[0].upper() in HTTP_METHODS:
            method, url = parts[0].upper(), parts[1].strip()
        else:
            method, url = 'GET', key.strip()
        routes.append(MockRoute(url=url, method=method, response=value))
    return routes
