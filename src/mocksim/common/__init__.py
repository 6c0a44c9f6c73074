"""
MockSim Common Utilities

Shared utilities and helpers used across MockSim modules.
"""

from .utils import (
    safe_json_parse,
    validate_name,
    read_json_file,
    write_json_file,
    configure_logging,
)
from .url_utils import URLMatcher

__all__ = [
    'safe_json_parse',
    'validate_name',
    'read_json_file',
    'write_json_file',
    'configure_logging',
    'URLMatcher'
]
