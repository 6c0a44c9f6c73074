"""
MockSim Engine

Request interception hook tying together the route registry, matcher,
adapter, scenarios and recorder.

Features:
- ``handle(request, sink) -> bool`` hook for host servers
- Starlette middleware falling through to the host pipeline
- Static, template and handler responses (sync or async handlers)
- Per-route and default delays
- Handler error isolation (generic 500, never propagated)
- Request recording and metrics
"""

from __future__ import annotations  # Enable forward references for type hints

import asyncio
import inspect
import logging
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..common import URLMatcher, configure_logging
from ..recording.recorder import RecordedRequest, RequestRecorder
from ..scenarios.manager import ScenarioManager
from .adapter import MockRequest, MockResponse, ResponseSink, normalize, wrap
from .generator import DataTemplateGenerator
from .matcher import RouteMatcher
from .registry import RouteRegistry
from .routes import MockRoute
from .watcher import RouteWatcher


@dataclass
class MockConfig:
    """Configuration for mock engine behavior."""

    enabled: bool = True
    mock_dir: str = "mock"  # relative to the working directory
    prefix: str = "/api"  # only requests under this prefix are intercepted
    delay_ms: int = 0  # default delay when a route sets none
    log_level: str = "info"  # debug, info, warning, error, silent
    watch: bool = True  # hot reload route files

    # Request recording
    recording_limit: int = 0  # Maximum entries kept while recording (0 = unlimited)

    # Data templates
    faker_locale: str = "en_US"
    faker_seed: Optional[int] = None

    # Standalone server
    host: str = "127.0.0.1"
    port: int = 8080
    admin_enabled: bool = True
    admin_prefix: str = "/__admin__"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockConfig':
        """Create config from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'MockConfig':
        """Load config from a YAML file (a top-level ``mock`` section is accepted)."""
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if isinstance(data.get('mock'), dict):
            data = data['mock']
        return cls.from_dict(data)


@dataclass
class MockMetrics:
    """Track mock engine metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    handler_errors: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        return {
            'total_requests': self.total_requests,
            'matched_requests': self.matched_requests,
            'unmatched_requests': self.unmatched_requests,
            'handler_errors': self.handler_errors,
            'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


def call_handler(handler, request: MockRequest, response: MockResponse) -> Any:
    """
    Invoke a route handler with ``(request)`` or ``(request, response)``
    depending on how many positional parameters it accepts.
    """
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return handler(request, response)

    positional = 0
    for param in signature.parameters.values():
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return handler(request, response)
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            positional += 1

    if positional >= 2:
        return handler(request, response)
    if positional == 1:
        return handler(request)
    return handler()


class MockEngine:
    """
    Mock simulation engine.

    All collaborators are explicit handles, so several independent engines
    can live in one process.

    Example:
        engine = MockEngine(MockConfig(mock_dir='mock', prefix='/api'))
        await engine.start()

        # In a host server
        sink = ResponseSink()
        if await engine.handle(request, sink):
            return sink.to_response()
    """

    def __init__(
        self,
        config: Optional[MockConfig] = None,
        registry: Optional[RouteRegistry] = None,
        scenarios: Optional[ScenarioManager] = None,
        recorder: Optional[RequestRecorder] = None,
        generator: Optional[DataTemplateGenerator] = None,
        matcher: Optional[RouteMatcher] = None,
        cwd: Optional[Union[str, Path]] = None
    ):
        """
        Initialize mock engine.

        Args:
            config: Engine configuration
            registry: Route registry (created for the mock dir if None)
            scenarios: Scenario manager (created if None)
            recorder: Request recorder (created if None)
            generator: Data template generator (created if None)
            matcher: Route matcher (created if None)
            cwd: Base directory for a relative ``config.mock_dir``
        """
        self.config = config or MockConfig()
        self.mock_dir = Path(cwd or '.') / self.config.mock_dir

        self.logger = logging.getLogger("mocksim.engine")
        configure_logging(self.config.log_level, stream=False)

        self.registry = registry or RouteRegistry(self.mock_dir)
        self.scenarios = scenarios or ScenarioManager(self.mock_dir)
        if self.scenarios.on_activate is None:
            self.scenarios.on_activate = self.registry.use_scenario
        self.recorder = recorder or RequestRecorder(
            self.mock_dir,
            scenarios=self.scenarios,
            recording_limit=self.config.recording_limit
        )
        self.generator = generator or DataTemplateGenerator(
            locale=self.config.faker_locale,
            seed=self.config.faker_seed
        )
        self.matcher = matcher or RouteMatcher()
        self.metrics = MockMetrics()
        self.watcher: Optional[RouteWatcher] = None

    async def start(self):
        """Initialize scenarios, load route files and start hot reload."""
        self.scenarios.init()
        self.registry.reload()
        self.logger.info(f"Mock engine ready: {len(self.registry)} routes under {self.config.prefix}")

        if self.config.watch and self.watcher is None:
            self.watcher = RouteWatcher(self.mock_dir, self.registry.reload)
            if not self.watcher.start():
                self.watcher = None

    def stop(self):
        """Stop hot reload."""
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

    def add_route(self, route: Union[MockRoute, dict]) -> MockRoute:
        """Register a route in code."""
        return self.registry.add_route(route)

    async def handle(self, request: Request, sink: ResponseSink) -> bool:
        """
        Serve a request from the mock routes.

        Args:
            request: Incoming request
            sink: Response sink filled in when the request is handled

        Returns:
            True if handled; False means the caller continues its own pipeline
        """
        if not self.config.enabled:
            return False

        path = request.url.path
        if not URLMatcher.has_prefix(path, self.config.prefix):
            return False

        self.metrics.total_requests += 1
        routes = self.registry.snapshot()
        match = self.matcher.match(routes, request.method, path)

        if match is None:
            self.metrics.unmatched_requests += 1
            self.logger.debug(f"No mock route for {request.method} {path}")
            return False

        self.metrics.matched_requests += 1
        route = match.route
        mock_request = await normalize(request, match)
        mock_response = wrap(sink)

        self.logger.info(f"[Mock] {mock_request.method} {mock_request.url}")

        # Apply delay if configured
        delay = route.delay if route.delay is not None else self.config.delay_ms
        if delay and delay > 0:
            await asyncio.sleep(delay / 1000)

        if route.status_code:
            sink.status_code = route.status_code
        for name, value in route.headers.items():
            sink.set_header(name, value)

        try:
            await self._respond(route, mock_request, mock_response)
        except Exception as e:
            self.metrics.handler_errors += 1
            self.logger.exception(f"Mock handler failed for {route.describe()}: {e}")
            self._write_error(sink, e)

        if self.recorder.is_recording:
            self.recorder.record(RecordedRequest.capture(
                url=mock_request.url,
                method=mock_request.method,
                headers=mock_request.headers,
                query=mock_request.query,
                body=mock_request.body,
                status_code=sink.status_code,
                response_headers=sink.headers,
                response_body=sink.recorded_body(),
                delay=delay or 0
            ))

        return True

    async def _respond(self, route: MockRoute, request: MockRequest, response: MockResponse):
        """
        Produce the response body for a matched route.

        A value returned by a handler that already wrote the response is
        ignored; otherwise it is serialized as JSON.
        """
        if route.is_dynamic:
            result = call_handler(route.response, request, response)
            if inspect.isawaitable(result):
                result = await result
        elif route.response is None and route.template:
            result = self.generator.generate(route.template, route.count)
        else:
            result = route.response

        if response.finished:
            return

        if result is None:
            response.end()
        else:
            response.json(result)

    def _write_error(self, sink: ResponseSink, error: Exception):
        if sink.finished:
            self.logger.warning("Handler failed after writing its response, error body not sent")
            return

        sink.status_code = 500
        sink.set_header('Content-Type', 'application/json')
        payload = {'error': 'Mock handler failed', 'detail': str(error)}
        wrap(sink).json(payload)


class MockMiddleware(BaseHTTPMiddleware):
    """
    Starlette/FastAPI middleware serving mock routes.

    Unhandled requests continue down the host application's pipeline.

    Example:
        app = FastAPI()
        app.add_middleware(MockMiddleware, engine=engine)
    """

    def __init__(self, app, engine: MockEngine):
        super().__init__(app)
        self.engine = engine

    async def dispatch(self, request: Request, call_next):
        sink = ResponseSink()
        if await self.engine.handle(request, sink):
            return sink.to_response()
        return await call_next(request)
