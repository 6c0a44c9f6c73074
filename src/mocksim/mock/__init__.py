"""
MockSim Mock Module

Route-based HTTP mock engine for local development.

This module provides:
- Route model, matcher and request/response adapter
- Route registry with hot reload
- Mock engine hook, Starlette middleware and standalone server
- Faker-backed data templates
"""

from .routes import MockRoute, expand_route_map
from .matcher import RouteMatcher, RouteMatch, match_route
from .adapter import MockRequest, MockResponse, ResponseSink, normalize, wrap
from .registry import RouteRegistry, RouteSource, PythonRouteSource, DeclarativeRouteSource, load_routes
from .watcher import RouteWatcher
from .generator import DataTemplateGenerator, MockTemplate
from .engine import MockEngine, MockConfig, MockMetrics, MockMiddleware
from .server import MockServer, create_mock_server

__all__ = [
    # Routes
    'MockRoute',
    'expand_route_map',

    # Matcher
    'RouteMatcher',
    'RouteMatch',
    'match_route',

    # Adapter
    'MockRequest',
    'MockResponse',
    'ResponseSink',
    'normalize',
    'wrap',

    # Registry
    'RouteRegistry',
    'RouteSource',
    'PythonRouteSource',
    'DeclarativeRouteSource',
    'load_routes',
    'RouteWatcher',

    # Generator
    'DataTemplateGenerator',
    'MockTemplate',

    # Engine & server
    'MockEngine',
    'MockConfig',
    'MockMetrics',
    'MockMiddleware',
    'MockServer',
    'create_mock_server',
]

__version__ = '1.0.0'
