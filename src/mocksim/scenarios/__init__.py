"""
MockSim Scenarios Module

Named, switchable sets of mock routes.
"""

from .manager import ScenarioManager, MockScenario, DEFAULT_SCENARIO

__all__ = [
    'ScenarioManager',
    'MockScenario',
    'DEFAULT_SCENARIO',
]

__version__ = '1.0.0'
