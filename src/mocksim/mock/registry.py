"""
MockSim Route Registry

Loads route definitions from a mock directory and publishes them as an
immutable snapshot for the request path.

Features:
- Pluggable route sources (Python modules, YAML/JSON documents)
- Recursive, sorted directory scan with per-file error isolation
- Copy-on-write snapshot swap safe for concurrent readers
- Generation ordering so a stale reload never overwrites a newer one
"""

import importlib.util
import itertools
import json
import logging
import threading
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import yaml

from ..errors import RouteLoadError
from .routes import MockRoute, expand_route_map

logger = logging.getLogger('mocksim.registry')

# Subdirectories of the mock root that hold persisted state, not route files
RESERVED_DIRS = {'scenarios', 'recordings'}
PYCACHE_DIR = '__pycache__'

_module_counter = itertools.count()


def routes_from_export(export: Any) -> List[MockRoute]:
    """
    Convert a route file's export into routes.

    Accepted shapes:
    - a list of route dicts or MockRoute objects
    - a mapping with a ``routes`` list (other keys are metadata)
    - a mapping of ``"METHOD /path"`` keys to response values

    Args:
        export: The value exported by a route file

    Returns:
        List of MockRoute in definition order
    """
    if isinstance(export, (list, tuple)):
        return [MockRoute.coerce(item) for item in export]

    if isinstance(export, dict):
        if isinstance(export.get('routes'), list):
            return [MockRoute.coerce(item) for item in export['routes']]
        return expand_route_map(export)

    raise TypeError(f"Expected a list or mapping of routes, got {type(export).__name__}")


class RouteSource:
    """Interface for loaders that turn one file into routes."""

    extensions: Tuple[str, ...] = ()

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def load(self, path: Path) -> List[MockRoute]:
        raise NotImplementedError


class PythonRouteSource(RouteSource):
    """
    Executes a trusted local Python module and reads its ``routes``
    (or ``default``) attribute.

    Each load imports a fresh module object, so edited files are picked up on
    hot reload without touching ``sys.modules``.
    """

    extensions = ('.py',)

    def load(self, path: Path) -> List[MockRoute]:
        module_name = f"mocksim_routes_{path.stem}_{next(_module_counter)}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot import {path}")

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        for attribute in ('routes', 'default'):
            if hasattr(module, attribute):
                return routes_from_export(getattr(module, attribute))

        raise AttributeError(f"{path.name} defines neither 'routes' nor 'default'")


class DeclarativeRouteSource(RouteSource):
    """Static routes from YAML or JSON documents."""

    extensions = ('.yaml', '.yml', '.json')

    def load(self, path: Path) -> List[MockRoute]:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        if data is None:
            return []
        return routes_from_export(data)


def default_sources() -> List[RouteSource]:
    return [PythonRouteSource(), DeclarativeRouteSource()]


def find_route_files(
    directory: Path,
    sources: Sequence[RouteSource],
    top_level: bool = True
) -> List[Path]:
    """
    Recursively list route files in deterministic (sorted) order.

    Files whose name starts with ``_``, hidden entries, ``__pycache__`` and
    the reserved state directories of the mock root are skipped.
    """
    files: List[Path] = []

    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.name.startswith('.'):
            continue
        if entry.is_dir():
            if entry.name == PYCACHE_DIR or (top_level and entry.name in RESERVED_DIRS):
                continue
            files.extend(find_route_files(entry, sources, top_level=False))
        elif entry.name.startswith('_'):
            continue
        elif any(source.supports(entry) for source in sources):
            files.append(entry)

    return files


def load_routes(
    directory: Union[str, Path],
    sources: Optional[Sequence[RouteSource]] = None
) -> List[MockRoute]:
    """
    Load every route file under a mock directory.

    A file that fails to load is logged and skipped; the rest still load.

    Args:
        directory: Mock root directory
        sources: Route sources to use (Python + declarative by default)

    Returns:
        Ordered list of routes
    """
    directory = Path(directory)
    sources = list(sources) if sources is not None else default_sources()

    if not directory.is_dir():
        logger.debug(f"Mock directory does not exist: {directory}")
        return []

    routes: List[MockRoute] = []
    for path in find_route_files(directory, sources):
        source = next(s for s in sources if s.supports(path))
        try:
            file_routes = source.load(path)
        except Exception as e:
            error = RouteLoadError(path, e)
            logger.error(str(error))
            continue

        routes.extend(file_routes)
        logger.debug(f"Loaded mock file: {path.relative_to(directory)} ({len(file_routes)} routes)")

    logger.info(f"Loaded {len(routes)} mock routes from {directory}")
    return routes


class RouteRegistry:
    """
    Owner of the current route snapshot.

    The snapshot is a tuple composed of the active scenario's routes,
    programmatically registered routes and file routes, in that order.
    Readers call ``snapshot()`` without locking; writers build a new tuple and
    swap the reference.

    Example:
        registry = RouteRegistry('mock')
        registry.reload()
        routes = registry.snapshot()
    """

    def __init__(
        self,
        mock_dir: Optional[Union[str, Path]] = None,
        sources: Optional[Sequence[RouteSource]] = None
    ):
        """
        Initialize route registry.

        Args:
            mock_dir: Directory scanned by ``reload``
            sources: Route sources used when scanning
        """
        self.mock_dir = Path(mock_dir) if mock_dir else None
        self.sources = list(sources) if sources is not None else default_sources()

        self._lock = threading.Lock()
        self._generation = 0
        self._published_generation = 0
        self._scenario_routes: Tuple[MockRoute, ...] = ()
        self._registered_routes: Tuple[MockRoute, ...] = ()
        self._file_routes: Tuple[MockRoute, ...] = ()
        self._snapshot: Tuple[MockRoute, ...] = ()

    def snapshot(self) -> Tuple[MockRoute, ...]:
        """Current immutable route list."""
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    def _publish(self):
        # Callers hold self._lock
        self._snapshot = self._scenario_routes + self._registered_routes + self._file_routes

    def reload(self) -> bool:
        """
        Re-scan the mock directory and publish the result.

        Overlapping reloads are allowed; a reload that started before an
        already published one is discarded.

        Returns:
            True if the loaded routes were published
        """
        if self.mock_dir is None:
            return False

        with self._lock:
            self._generation += 1
            generation = self._generation

        routes = load_routes(self.mock_dir, self.sources)

        with self._lock:
            if generation < self._published_generation:
                logger.debug(f"Discarding stale reload (generation {generation})")
                return False
            self._published_generation = generation
            self._file_routes = tuple(routes)
            self._publish()

        return True

    def replace_file_routes(self, routes: Iterable[MockRoute]):
        """Publish an explicit file route list (bypassing the directory scan)."""
        with self._lock:
            self._generation += 1
            self._published_generation = self._generation
            self._file_routes = tuple(routes)
            self._publish()

    def add_route(self, route: Union[MockRoute, dict]) -> MockRoute:
        """Register a route in code; it survives file reloads."""
        route = MockRoute.coerce(route)
        with self._lock:
            self._registered_routes = self._registered_routes + (route,)
            self._publish()
        return route

    def use_scenario(self, scenario) -> None:
        """Publish the routes of the newly active scenario (or none)."""
        routes = tuple(scenario.routes) if scenario is not None else ()
        with self._lock:
            self._scenario_routes = routes
            self._publish()
        logger.debug(f"Scenario routes published: {len(routes)}")
