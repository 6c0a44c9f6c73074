"""
MockSim Common Utilities

Shared helpers for JSON persistence, safe parsing and logging setup.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Union

from ..errors import InvalidScenarioNameError

# Scenario and recording names become file stems under the mock root
SAFE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_.-]*$')

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'silent': logging.CRITICAL + 10,
}


def safe_json_parse(json_string: Union[str, bytes], default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string or bytes to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        body = safe_json_parse(raw_body, default=raw_body)
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


def validate_name(name: str) -> str:
    """
    Check that a scenario/recording name can be used as a file name.

    Args:
        name: Proposed name

    Returns:
        The name, unchanged

    Raises:
        InvalidScenarioNameError: If the name contains path separators or is empty
    """
    if not isinstance(name, str) or not SAFE_NAME_PATTERN.match(name) or '..' in name:
        raise InvalidScenarioNameError(name)
    return name


def read_json_file(file_path: Union[str, Path]) -> Any:
    """Read and parse a UTF-8 JSON file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json_file(file_path: Union[str, Path], data: Any) -> Path:
    """
    Write data as pretty-printed JSON, creating parent directories.

    The file is written to a temporary sibling first and then renamed so a
    reader never sees a half-written document.

    Args:
        file_path: Destination path
        data: JSON-serializable data

    Returns:
        Path of the written file
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_name(f".{path.name}.tmp")
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)
    tmp_path.replace(path)
    return path


def configure_logging(level: str = 'info', stream: bool = True) -> logging.Logger:
    """
    Configure the root ``mocksim`` logger.

    Args:
        level: One of debug, info, warning, error or silent
        stream: Attach a stderr handler if none is configured yet

    Returns:
        The configured ``mocksim`` logger
    """
    logger = logging.getLogger('mocksim')
    logger.setLevel(LOG_LEVELS.get(level.lower(), logging.INFO))

    if stream and not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s [%(name)s] %(levelname)s %(message)s'))
        logger.addHandler(handler)

    return logger
