"""
MockSim Scenario Manager

Named, switchable sets of mock routes persisted one JSON file per scenario.

Features:
- Built-in protected "default" scenario
- Exactly one active scenario at a time
- Activation callback so the route registry follows switches
- Usage analysis across scenarios and recordings
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..common import read_json_file, validate_name, write_json_file
from ..errors import (
    ScenarioExistsError,
    ScenarioNotFoundError,
    ScenarioProtectedError,
)
from ..mock.routes import MockRoute

DEFAULT_SCENARIO = 'default'

logger = logging.getLogger('mocksim.scenarios')


@dataclass
class MockScenario:
    """A named, switchable set of static mock routes."""

    name: str
    description: Optional[str] = None
    routes: List[MockRoute] = field(default_factory=list)
    active: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON form (handler functions are dropped)."""
        return {
            'name': self.name,
            'description': self.description,
            'routes': [route.to_dict() for route in self.routes],
            'active': self.active
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockScenario':
        """Create scenario from dictionary."""
        return cls(
            name=data['name'],
            description=data.get('description'),
            routes=[MockRoute.from_dict(r) for r in data.get('routes', [])],
            active=bool(data.get('active', False))
        )

    def summary(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'routes': len(self.routes),
            'active': self.active
        }


class ScenarioManager:
    """
    Owner of all scenarios under ``<mock_dir>/scenarios``.

    Management operations are expected to come from a single administrative
    flow and are not synchronized against each other.

    Example:
        manager = ScenarioManager('mock', on_activate=registry.use_scenario)
        manager.init()
        manager.create('empty-cart', 'Cart with no items')
        manager.switch('empty-cart')
    """

    def __init__(
        self,
        mock_dir: Union[str, Path],
        on_activate: Optional[Callable[[Optional[MockScenario]], None]] = None
    ):
        """
        Initialize scenario manager.

        Args:
            mock_dir: Mock root directory
            on_activate: Called with the active scenario whenever it changes
        """
        self.mock_dir = Path(mock_dir)
        self.scenarios_dir = self.mock_dir / 'scenarios'
        self.recordings_dir = self.mock_dir / 'recordings'
        self.on_activate = on_activate

        self.scenarios: Dict[str, MockScenario] = {}
        self.active_name = DEFAULT_SCENARIO

    def init(self):
        """
        Create the state directories and load persisted scenarios.

        The default scenario is created if missing and becomes active; the
        active flag stored on disk is ignored.
        """
        self.scenarios_dir.mkdir(parents=True, exist_ok=True)
        self.recordings_dir.mkdir(parents=True, exist_ok=True)
        self.scenarios = {}

        for path in sorted(self.scenarios_dir.glob('*.json')):
            try:
                scenario = MockScenario.from_dict(read_json_file(path))
            except Exception as e:
                logger.warning(f"Failed to load scenario {path.name}: {e}")
                continue
            scenario.active = False
            self.scenarios[scenario.name] = scenario

        if DEFAULT_SCENARIO not in self.scenarios:
            self.create(DEFAULT_SCENARIO, 'Default scenario')

        logger.debug(f"Loaded {len(self.scenarios)} scenarios")
        self._activate(DEFAULT_SCENARIO)

    def _path_for(self, name: str) -> Path:
        return self.scenarios_dir / f"{name}.json"

    def _save(self, scenario: MockScenario):
        write_json_file(self._path_for(scenario.name), scenario.to_dict())

    def _activate(self, name: str):
        for scenario in self.scenarios.values():
            scenario.active = scenario.name == name
        self.active_name = name

        if self.on_activate:
            self.on_activate(self.scenarios.get(name))

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        routes: Optional[List[Union[MockRoute, dict]]] = None,
        overwrite: bool = False
    ) -> MockScenario:
        """
        Create and persist a scenario.

        Args:
            name: Unique scenario name (used as file name)
            description: Optional description
            routes: Static routes for the scenario
            overwrite: Replace an existing scenario of the same name

        Returns:
            The created scenario

        Raises:
            ScenarioExistsError: If the name is taken and overwrite is False
            InvalidScenarioNameError: If the name is not a safe file name
        """
        validate_name(name)
        existing = self.scenarios.get(name)
        if existing is not None and not overwrite:
            raise ScenarioExistsError(name)

        scenario = MockScenario(
            name=name,
            description=description,
            routes=[MockRoute.coerce(r) for r in (routes or [])],
            active=existing.active if existing else False
        )

        self.scenarios[name] = scenario
        self._save(scenario)
        logger.info(f"Created scenario: {name} ({len(scenario.routes)} routes)")

        if scenario.active and self.on_activate:
            self.on_activate(scenario)

        return scenario

    def switch(self, name: str) -> MockScenario:
        """
        Make a scenario the active one.

        Raises:
            ScenarioNotFoundError: If the scenario does not exist
        """
        if name not in self.scenarios:
            raise ScenarioNotFoundError(name)

        self._activate(name)
        logger.info(f"Switched to scenario: {name}")
        return self.scenarios[name]

    def delete(self, name: str):
        """
        Delete a scenario and its file.

        Deleting the active scenario makes "default" active again.

        Raises:
            ScenarioProtectedError: For the default scenario
            ScenarioNotFoundError: If the scenario does not exist
        """
        if name == DEFAULT_SCENARIO:
            raise ScenarioProtectedError(name)
        if name not in self.scenarios:
            raise ScenarioNotFoundError(name)

        was_active = self.scenarios[name].active
        del self.scenarios[name]
        self._path_for(name).unlink(missing_ok=True)
        logger.info(f"Deleted scenario: {name}")

        if was_active:
            logger.info(f"Deleted scenario was active, falling back to '{DEFAULT_SCENARIO}'")
            self._activate(DEFAULT_SCENARIO)

    def get(self, name: str) -> MockScenario:
        scenario = self.scenarios.get(name)
        if scenario is None:
            raise ScenarioNotFoundError(name)
        return scenario

    def list(self) -> List[MockScenario]:
        """All scenarios in creation/load order."""
        return list(self.scenarios.values())

    def get_active(self) -> Optional[MockScenario]:
        """The active scenario (None before ``init``)."""
        return self.scenarios.get(self.active_name)

    def analyze_usage(self) -> Dict[str, Any]:
        """Summarize scenarios, route counts and saved recordings."""
        recordings = list(self.recordings_dir.glob('*.json')) if self.recordings_dir.is_dir() else []
        return {
            'total_scenarios': len(self.scenarios),
            'total_routes': sum(len(s.routes) for s in self.scenarios.values()),
            'total_recordings': len(recordings),
            'active_scenario': self.active_name,
            'scenario_stats': [s.summary() for s in self.scenarios.values()]
        }
