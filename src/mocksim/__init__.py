"""
MockSim

Mock simulation engine for local HTTP development: file-based mock routes
with hot reload, switchable scenarios, request recording and synthetic data
templates.
"""

from .errors import MockError
from .mock import (
    MockConfig,
    MockEngine,
    MockMiddleware,
    MockRoute,
    MockServer,
    create_mock_server,
)
from .scenarios import ScenarioManager
from .recording import RequestRecorder

__all__ = [
    'MockError',
    'MockConfig',
    'MockEngine',
    'MockMiddleware',
    'MockRoute',
    'MockServer',
    'create_mock_server',
    'ScenarioManager',
    'RequestRecorder',
]

__version__ = '1.0.0'
