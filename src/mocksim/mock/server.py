"""
MockSim Mock Server

Standalone FastAPI server running the mock engine as middleware.

Features:
- Mock routes served from the mock directory with hot reload
- Admin API for scenarios, recordings, templates and metrics
- JSON 404 fallback for unmatched requests
"""

from __future__ import annotations  # Enable forward references for type hints

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..common import configure_logging
from ..errors import (
    InvalidRequestBodyError,
    InvalidScenarioNameError,
    MockError,
    RecordingNotFoundError,
    ScenarioExistsError,
    ScenarioNotFoundError,
    ScenarioProtectedError,
    TemplateNotFoundError,
)
from .engine import MockConfig, MockEngine, MockMetrics, MockMiddleware

ERROR_STATUS = {
    ScenarioNotFoundError: 404,
    RecordingNotFoundError: 404,
    TemplateNotFoundError: 404,
    ScenarioProtectedError: 403,
    ScenarioExistsError: 409,
    InvalidScenarioNameError: 400,
    InvalidRequestBodyError: 400,
}

# uvicorn has no "silent" level
UVICORN_LOG_LEVELS = {'silent': 'critical', 'warn': 'warning'}


def error_status(error: MockError) -> int:
    """HTTP status for a domain error raised by an admin operation."""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


async def _json_body(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestBodyError(e) from e
    return body if isinstance(body, dict) else {}


class MockServer:
    """
    HTTP mock server for local development.

    Example:
        config = MockConfig(mock_dir='mock', port=3001)
        server = MockServer(config)
        server.start()
    """

    def __init__(
        self,
        config: Optional[MockConfig] = None,
        engine: Optional[MockEngine] = None
    ):
        """
        Initialize mock server.

        Args:
            config: Optional MockConfig for server behavior
            engine: Optional MockEngine instance (will create if None)
        """
        self.config = config or (engine.config if engine else MockConfig())
        self.engine = engine or MockEngine(self.config)
        self.logger = logging.getLogger("mocksim.server")

        # Setup FastAPI app
        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with middleware and admin routes."""
        engine = self.engine
        logger = self.logger

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await engine.start()
            try:
                yield
            finally:
                engine.stop()
                logger.info("Mock server stopped")

        app = FastAPI(
            title="MockSim Mock Server",
            description="Mock HTTP server serving routes from a mock directory",
            version="1.0.0",
            lifespan=lifespan
        )
        app.add_middleware(MockMiddleware, engine=engine)

        @app.exception_handler(MockError)
        async def mock_error_handler(request: Request, exc: MockError):
            return JSONResponse(status_code=error_status(exc), content={'error': str(exc)})

        if self.config.admin_enabled:
            self._add_admin_routes(app)

        @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"])
        async def not_mocked(request: Request, path: str):
            """Fallback for requests no mock route handled."""
            return JSONResponse(
                status_code=404,
                content={
                    'error': 'No mock route matched',
                    'method': request.method,
                    'path': request.url.path
                }
            )

        return app

    def _add_admin_routes(self, app: FastAPI):
        engine = self.engine
        prefix = self.config.admin_prefix

        @app.get(f"{prefix}/metrics")
        async def get_metrics():
            """Get engine metrics."""
            return JSONResponse(content=engine.metrics.to_dict())

        @app.post(f"{prefix}/reset")
        async def reset_metrics():
            """Reset metrics."""
            engine.metrics = MockMetrics()
            return JSONResponse(content={'status': 'reset'})

        @app.get(f"{prefix}/routes")
        async def list_routes():
            """List the routes currently served, in match order."""
            routes = [route.to_dict() for route in engine.registry.snapshot()]
            return JSONResponse(content={'total': len(routes), 'routes': routes})

        @app.get(f"{prefix}/scenarios")
        async def list_scenarios():
            """List all scenarios."""
            return JSONResponse(content={
                'active': engine.scenarios.active_name,
                'scenarios': [s.summary() for s in engine.scenarios.list()]
            })

        @app.post(f"{prefix}/scenarios")
        async def create_scenario(request: Request):
            """Create a scenario from a JSON body."""
            body = await _json_body(request)
            if not body.get('name'):
                return JSONResponse(status_code=400, content={'error': "Missing 'name'"})

            scenario = engine.scenarios.create(
                body['name'],
                body.get('description'),
                body.get('routes') or [],
                overwrite=bool(body.get('overwrite', False))
            )
            return JSONResponse(status_code=201, content=scenario.to_dict())

        @app.post(f"{prefix}/scenarios/{{name}}/activate")
        async def activate_scenario(name: str):
            """Switch the active scenario."""
            scenario = engine.scenarios.switch(name)
            return JSONResponse(content={'status': 'activated', 'scenario': scenario.summary()})

        @app.delete(f"{prefix}/scenarios/{{name}}")
        async def delete_scenario(name: str):
            """Delete a scenario."""
            engine.scenarios.delete(name)
            return JSONResponse(content={'status': 'deleted', 'active': engine.scenarios.active_name})

        @app.get(f"{prefix}/recording")
        async def recording_status():
            """Get recording state and buffered entries."""
            return JSONResponse(content={
                **engine.recorder.status(),
                'recordings': engine.recorder.entries()
            })

        @app.post(f"{prefix}/recording/start")
        async def start_recording():
            """Start recording into a fresh buffer."""
            engine.recorder.start()
            return JSONResponse(content={'status': 'recording'})

        @app.post(f"{prefix}/recording/stop")
        async def stop_recording():
            """Stop recording."""
            engine.recorder.stop()
            return JSONResponse(content={'status': 'stopped', 'total': len(engine.recorder.recordings)})

        @app.get(f"{prefix}/recordings")
        async def list_recordings():
            """List saved recordings."""
            return JSONResponse(content={'recordings': engine.recorder.list_recordings()})

        @app.post(f"{prefix}/recordings/{{name}}")
        async def save_recording(name: str):
            """Save the current buffer under a name."""
            engine.recorder.save(name)
            return JSONResponse(
                status_code=201,
                content={'status': 'saved', 'name': name, 'total': len(engine.recorder.recordings)}
            )

        @app.get(f"{prefix}/recordings/{{name}}")
        async def get_recording(name: str):
            """Get a saved recording."""
            entries = engine.recorder.load(name)
            return JSONResponse(content={
                'name': name,
                'total': len(entries),
                'recordings': [entry.to_dict() for entry in entries]
            })

        @app.post(f"{prefix}/recordings/{{name}}/scenario")
        async def recording_to_scenario(name: str, request: Request):
            """Generate a scenario from a saved recording."""
            body = await _json_body(request)
            scenario = engine.recorder.generate_scenario_from_recording(
                name,
                body.get('scenario') or name,
                overwrite=bool(body.get('overwrite', False))
            )
            return JSONResponse(status_code=201, content=scenario.to_dict())

        @app.get(f"{prefix}/templates")
        async def list_templates():
            """List data templates."""
            return JSONResponse(content={'templates': engine.generator.list_templates()})

        @app.get(f"{prefix}/templates/{{name}}")
        async def generate_template(name: str, count: int = 1):
            """Generate data from a template."""
            return JSONResponse(content={'template': name, 'data': engine.generator.generate(name, count)})

        @app.get(f"{prefix}/analyze")
        async def analyze_usage():
            """Summarize scenarios and recordings."""
            return JSONResponse(content=engine.scenarios.analyze_usage())

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        access_log: bool = True
    ):
        """
        Start the mock server.

        Args:
            host: Host to bind to (overrides config)
            port: Port to bind to (overrides config)
            access_log: Enable access logging
        """
        actual_host = host or self.config.host
        actual_port = port or self.config.port

        print("MockSim server starting...")
        print(f"   Host: {actual_host}:{actual_port}")
        print(f"   Mock directory: {self.engine.mock_dir}")
        print(f"   Prefix: {self.config.prefix}")

        if self.config.admin_enabled:
            print(f"   Admin API: http://{actual_host}:{actual_port}{self.config.admin_prefix}/metrics")

        print()

        log_level = self.config.log_level.lower()
        configure_logging(log_level)
        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=UVICORN_LOG_LEVELS.get(log_level, log_level),
            access_log=access_log
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_mock_server(
    mock_dir: str = "mock",
    host: str = "127.0.0.1",
    port: int = 8080,
    prefix: str = "/api",
    delay_ms: int = 0,
    watch: bool = True,
    log_level: str = "info",
    recording_limit: int = 0
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Args:
        mock_dir: Directory holding route files, scenarios and recordings
        host: Host to bind to
        port: Port to bind to
        prefix: URL prefix the engine intercepts
        delay_ms: Default response delay in milliseconds
        watch: Hot reload route files
        log_level: Logging level
        recording_limit: Maximum requests to record (0 = unlimited)

    Returns:
        Configured MockServer instance

    Example:
        server = create_mock_server('mock', port=3001, delay_ms=50)
        server.start()
    """
    config = MockConfig(
        mock_dir=mock_dir,
        host=host,
        port=port,
        prefix=prefix,
        delay_ms=delay_ms,
        watch=watch,
        log_level=log_level,
        recording_limit=recording_limit
    )
    return MockServer(config)
