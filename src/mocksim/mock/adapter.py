"""
MockSim Request/Response Adapter

Normalizes an incoming Starlette request into a read-only MockRequest and
wraps a response sink in a fluent MockResponse builder.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from starlette.requests import Request
from starlette.responses import Response

from ..common import URLMatcher, safe_json_parse
from .matcher import RouteMatch

BODY_METHODS = {'POST', 'PUT', 'PATCH'}

logger = logging.getLogger('mocksim.adapter')


@dataclass(frozen=True)
class MockRequest:
    """Read-only view of an intercepted request handed to route handlers."""

    url: str
    method: str
    params: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return URLMatcher.strip_query(self.url)


def parse_body(raw: bytes) -> Any:
    """
    Parse a buffered request body.

    JSON is decoded when possible; anything else falls back to text. An
    empty body yields an empty dict. Never raises.
    """
    if not raw:
        return {}

    text = raw.decode('utf-8', errors='replace')
    return safe_json_parse(text, default=text)


def request_target(request: Request) -> str:
    """Path plus query string as sent by the client."""
    path = request.url.path
    query = request.url.query
    return f"{path}?{query}" if query else path


async def normalize(request: Request, match: RouteMatch) -> MockRequest:
    """
    Build a MockRequest from a raw request and its route match.

    Args:
        request: Incoming Starlette request
        match: Matcher result supplying path parameters

    Returns:
        Normalized MockRequest
    """
    method = request.method.upper()
    body: Any = {}
    if method in BODY_METHODS:
        body = parse_body(await request.body())

    return MockRequest(
        url=request_target(request),
        method=method,
        params=dict(match.params),
        query=URLMatcher.parse_query(request.url.query),
        body=body,
        headers=dict(request.headers),
    )


class ResponseSink:
    """
    Raw response target collected by the engine and turned into a Response.

    Holds status, headers and body bytes plus the JSON payload (if any) that
    produced the body, so recordings can keep the structured value.
    """

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.headers: Dict[str, str] = {}
        self.body: bytes = b''
        self.payload: Any = None
        self.finished = False

    def set_header(self, name: str, value: str):
        self.headers[name] = str(value)

    def end(self, body: Union[bytes, str, None] = None, payload: Any = None) -> bool:
        """
        Finish the response.

        Returns:
            True if this call wrote the response, False if it was already
            finished and the write was suppressed
        """
        if self.finished:
            logger.warning("Response already finished, ignoring additional write")
            return False

        if isinstance(body, str):
            body = body.encode('utf-8')
        self.body = body or b''
        self.payload = payload
        self.finished = True
        return True

    def recorded_body(self) -> Any:
        """Body as it should appear in a recording."""
        if self.payload is not None:
            return self.payload
        return parse_body(self.body) if self.body else None

    def to_response(self) -> Response:
        """Build the Starlette response."""
        headers = {k: v for k, v in self.headers.items() if k.lower() != 'content-length'}
        return Response(content=self.body, status_code=self.status_code, headers=headers)


class MockResponse:
    """
    Fluent response builder passed to route handlers.

    Mutators return self for chaining; ``json``, ``send`` and ``end`` are
    terminal and only the first one takes effect.

    Example:
        def handler(req, res):
            res.status(201).header('X-Trace', 'abc').json({'ok': True})
    """

    def __init__(self, sink: ResponseSink):
        self._sink = sink

    @property
    def finished(self) -> bool:
        return self._sink.finished

    def _writable(self, change: str) -> bool:
        if self._sink.finished:
            logger.warning(f"Response already finished, ignoring {change}")
            return False
        return True

    def status(self, code: int) -> 'MockResponse':
        if self._writable(f"status {code}"):
            self._sink.status_code = int(code)
        return self

    def header(self, name: str, value: str) -> 'MockResponse':
        if self._writable(f"header {name}"):
            self._sink.set_header(name, value)
        return self

    def headers(self, headers: Mapping[str, str]) -> 'MockResponse':
        if self._writable("headers"):
            for name, value in headers.items():
                self._sink.set_header(name, value)
        return self

    def json(self, data: Any) -> bool:
        """Serialize data as JSON and finish the response."""
        if self._sink.finished:
            return self._sink.end()
        self._sink.set_header('Content-Type', 'application/json')
        return self._sink.end(json.dumps(data, default=str), payload=data)

    def send(self, data: Union[str, bytes]) -> bool:
        """Write a raw body and finish the response."""
        return self._sink.end(data)

    def end(self) -> bool:
        """Finish the response without a body."""
        return self._sink.end()


def wrap(sink: Optional[ResponseSink] = None) -> MockResponse:
    """Wrap a raw sink (a fresh one by default) in a MockResponse."""
    return MockResponse(sink if sink is not None else ResponseSink())
