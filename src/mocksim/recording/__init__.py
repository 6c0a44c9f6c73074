"""
MockSim Recording Module

Request recording and scenario generation from recordings.
"""

from .recorder import RequestRecorder, RecordedRequest

__all__ = [
    'RequestRecorder',
    'RecordedRequest',
]

__version__ = '1.0.0'
