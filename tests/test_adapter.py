"""
Tests for MockSim request/response adapter

Tests request normalization and the fluent response builder including:
- Body parsing with JSON-to-text fallback
- Query and path parameter extraction
- Chained status/header writes
- Suppression of a second terminal write
"""

import asyncio
import json
import logging

from starlette.requests import Request

from mocksim.mock.adapter import (
    MockResponse,
    ResponseSink,
    normalize,
    parse_body,
    wrap
)
from mocksim.mock.matcher import RouteMatch
from mocksim.mock.routes import MockRoute


def make_request(method='GET', path='/api/users', query=b'', body=b'', headers=None):
    """Build a Starlette request from a raw ASGI scope."""
    scope = {
        'type': 'http',
        'method': method,
        'path': path,
        'root_path': '',
        'scheme': 'http',
        'server': ('testserver', 80),
        'query_string': query,
        'headers': [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
    }

    async def receive():
        return {'type': 'http.request', 'body': body, 'more_body': False}

    return Request(scope, receive)


class TestParseBody:
    """Test raw body parsing."""

    def test_json(self):
        """Test JSON bodies are decoded."""
        assert parse_body(b'{"name": "Ada"}') == {'name': 'Ada'}

    def test_text_fallback(self):
        """Test non-JSON bodies come back as text."""
        assert parse_body(b'name=Ada') == 'name=Ada'

    def test_empty(self):
        """Test an empty body is an empty dict."""
        assert parse_body(b'') == {}


class TestNormalize:
    """Test request normalization."""

    def test_get_request(self):
        """Test url, query and params for a GET request."""
        request = make_request(path='/api/users/7', query=b'expand=posts&page=2')
        match = RouteMatch(route=MockRoute(url='/api/users/:id'), params={'id': '7'})

        normalized = asyncio.run(normalize(request, match))

        assert normalized.url == '/api/users/7?expand=posts&page=2'
        assert normalized.path == '/api/users/7'
        assert normalized.method == 'GET'
        assert normalized.params == {'id': '7'}
        assert normalized.query == {'expand': 'posts', 'page': '2'}
        assert normalized.body == {}

    def test_post_json_body(self):
        """Test JSON bodies are parsed for body methods."""
        request = make_request(
            method='POST',
            body=b'{"name": "Ada"}',
            headers={'Content-Type': 'application/json'}
        )
        match = RouteMatch(route=MockRoute(url='/api/users'))

        normalized = asyncio.run(normalize(request, match))

        assert normalized.body == {'name': 'Ada'}
        assert normalized.headers['content-type'] == 'application/json'

    def test_post_invalid_json_kept_as_text(self):
        """Test malformed JSON does not fail the request."""
        request = make_request(method='PUT', body=b'{broken')
        match = RouteMatch(route=MockRoute(url='/api/users'))

        normalized = asyncio.run(normalize(request, match))

        assert normalized.body == '{broken'

    def test_get_body_not_read(self):
        """Test bodies are ignored for methods without one."""
        request = make_request(method='DELETE', body=b'{"x": 1}')
        match = RouteMatch(route=MockRoute(url='/api/users'))

        normalized = asyncio.run(normalize(request, match))

        assert normalized.body == {}


class TestMockResponse:
    """Test the fluent response builder."""

    def test_chained_json(self):
        """Test status and headers chain before json."""
        sink = ResponseSink()
        response = wrap(sink)

        response.status(201).header('X-Trace', 'abc').json({'ok': True})

        assert sink.status_code == 201
        assert sink.headers['X-Trace'] == 'abc'
        assert sink.headers['Content-Type'] == 'application/json'
        assert json.loads(sink.body) == {'ok': True}
        assert sink.payload == {'ok': True}
        assert response.finished

    def test_send_text(self):
        """Test raw bodies."""
        sink = ResponseSink()

        wrap(sink).send('plain text')

        assert sink.body == b'plain text'
        assert sink.recorded_body() == 'plain text'

    def test_end_without_body(self):
        """Test end finishes with an empty body."""
        sink = ResponseSink()

        assert wrap(sink).end() is True
        assert sink.body == b''
        assert sink.recorded_body() is None

    def test_second_write_suppressed(self, caplog):
        """Test a second terminal write is logged and ignored."""
        sink = ResponseSink()
        response = MockResponse(sink)

        assert response.json({'first': 1}) is True
        with caplog.at_level(logging.WARNING, logger='mocksim'):
            assert response.json({'second': 2}) is False
            assert response.send('third') is False

        assert json.loads(sink.body) == {'first': 1}
        assert 'already finished' in caplog.text

    def test_mutators_after_write_ignored(self, caplog):
        """Test status and header changes after the write leave the sink untouched."""
        sink = ResponseSink()
        response = MockResponse(sink)
        response.json({'ok': True})

        with caplog.at_level(logging.WARNING, logger='mocksim'):
            returned = response.status(503).header('X-Late', '1').headers({'X-Other': '2'})

        assert returned is response
        assert sink.status_code == 200
        assert 'X-Late' not in sink.headers
        assert 'X-Other' not in sink.headers
        assert sink.to_response().status_code == 200
        assert 'ignoring status 503' in caplog.text

    def test_to_response(self):
        """Test conversion into a Starlette response."""
        sink = ResponseSink()
        wrap(sink).status(418).header('Content-Length', '999').json({'teapot': True})

        response = sink.to_response()

        assert response.status_code == 418
        assert json.loads(response.body) == {'teapot': True}
        assert response.headers['content-length'] == str(len(response.body))

    def test_wrap_creates_sink(self):
        """Test wrap without a sink uses a fresh one."""
        assert wrap().finished is False
