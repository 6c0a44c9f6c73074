"""
MockSim Errors

Exception hierarchy for the mock simulation engine.
"""


class MockError(Exception):
    """Base class for all mock engine errors."""


class RouteLoadError(MockError):
    """A route definition file could not be imported or parsed."""

    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to load mock file {path}: {cause}")


class ScenarioNotFoundError(MockError):
    """Raised when a scenario name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Scenario not found: {name}")


class ScenarioProtectedError(MockError):
    """Raised when trying to delete the built-in default scenario."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Scenario '{name}' is protected and cannot be deleted")


class ScenarioExistsError(MockError):
    """Raised when creating a scenario whose name is already taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Scenario already exists: {name}")


class InvalidScenarioNameError(MockError, ValueError):
    """Raised when a scenario or recording name is not a safe file name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid name: {name!r}")


class RecordingNotFoundError(MockError):
    """Raised when loading a recording that was never saved."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Recording not found: {name}")


class TemplateNotFoundError(MockError):
    """Raised when asking for an unknown data template."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Template not found: {name}")


class InvalidRequestBodyError(MockError, ValueError):
    """Raised when an admin request body is not valid JSON."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Invalid JSON body: {cause}")
