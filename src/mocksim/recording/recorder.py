"""
MockSim Request Recorder

Captures handled request/response pairs while recording is on, persists
them as named recordings and turns recordings into scenarios.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..common import URLMatcher, read_json_file, validate_name, write_json_file
from ..errors import RecordingNotFoundError
from ..mock.routes import MockRoute

logger = logging.getLogger('mocksim.recording')


@dataclass
class RecordedRequest:
    """One captured request/response pair."""

    url: str
    method: str
    timestamp: int  # epoch milliseconds
    request: Dict[str, Any] = field(default_factory=dict)  # headers, query, body
    response: Dict[str, Any] = field(default_factory=dict)  # status_code, headers, body, delay

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RecordedRequest':
        """Create a recorded request from its persisted form."""
        return cls(
            url=data['url'],
            method=data['method'],
            timestamp=int(data.get('timestamp', 0)),
            request=dict(data.get('request') or {}),
            response=dict(data.get('response') or {})
        )

    @classmethod
    def capture(
        cls,
        url: str,
        method: str,
        headers: Dict[str, str],
        query: Dict[str, str],
        body: Any,
        status_code: int,
        response_headers: Dict[str, str],
        response_body: Any,
        delay: int = 0
    ) -> 'RecordedRequest':
        """Build an entry stamped with the current time."""
        return cls(
            url=url,
            method=method,
            timestamp=int(time.time() * 1000),
            request={
                'headers': dict(headers),
                'query': dict(query),
                'body': body
            },
            response={
                'status_code': status_code,
                'headers': dict(response_headers),
                'body': response_body,
                'delay': delay
            }
        )

    def to_route(self) -> MockRoute:
        """Map this entry 1:1 onto a static route."""
        return MockRoute(
            url=URLMatcher.strip_query(self.url),
            method=self.method,
            delay=self.response.get('delay'),
            status_code=self.response.get('status_code'),
            headers=dict(self.response.get('headers') or {}),
            response=self.response.get('body')
        )


class RequestRecorder:
    """
    Recording state machine: Idle -> start() -> Recording -> stop() -> Idle.

    Only the engine appends entries, and only while recording. The buffer is
    kept after ``stop()`` and ``save()``; ``start()`` begins a fresh one.

    Example:
        recorder = RequestRecorder('mock', scenarios=manager)
        recorder.start()
        ...  # handle requests
        recorder.stop()
        recorder.save('checkout-flow')
        recorder.generate_scenario_from_recording('checkout-flow', 'checkout')
    """

    def __init__(
        self,
        mock_dir: Union[str, Path],
        scenarios=None,
        recording_limit: int = 0
    ):
        """
        Initialize request recorder.

        Args:
            mock_dir: Mock root directory
            scenarios: ScenarioManager used to create scenarios from recordings
            recording_limit: Maximum entries kept in the buffer (0 = unlimited)
        """
        self.mock_dir = Path(mock_dir)
        self.recordings_dir = self.mock_dir / 'recordings'
        self.scenarios = scenarios
        self.recording_limit = recording_limit

        self.is_recording = False
        self.recordings: List[RecordedRequest] = []

    def start(self):
        """Begin recording into an empty buffer."""
        self.is_recording = True
        self.recordings = []
        logger.info("Recording started")

    def stop(self):
        """Stop recording; the buffer is kept."""
        self.is_recording = False
        logger.info(f"Recording stopped, {len(self.recordings)} requests captured")

    def record(self, entry: RecordedRequest) -> bool:
        """
        Append an entry if recording.

        Returns:
            True if the entry was stored
        """
        if not self.is_recording:
            return False

        # Apply recording limit (FIFO)
        if self.recording_limit > 0 and len(self.recordings) >= self.recording_limit:
            self.recordings.pop(0)

        self.recordings.append(entry)
        logger.debug(f"Recorded request: {entry.method} {entry.url}")
        return True

    def _path_for(self, name: str) -> Path:
        return self.recordings_dir / f"{validate_name(name)}.json"

    def save(self, name: str) -> Path:
        """Persist the current buffer verbatim as ``recordings/<name>.json``."""
        path = write_json_file(self._path_for(name), [entry.to_dict() for entry in self.recordings])
        logger.info(f"Saved recording: {name} ({len(self.recordings)} requests)")
        return path

    def load(self, name: str) -> List[RecordedRequest]:
        """
        Read a persisted recording.

        Raises:
            RecordingNotFoundError: If no recording with that name exists
        """
        path = self._path_for(name)
        if not path.exists():
            raise RecordingNotFoundError(name)
        return [RecordedRequest.from_dict(item) for item in read_json_file(path)]

    def list_recordings(self) -> List[str]:
        """Names of all saved recordings."""
        if not self.recordings_dir.is_dir():
            return []
        return sorted(path.stem for path in self.recordings_dir.glob('*.json'))

    def generate_scenario_from_recording(
        self,
        recording_name: str,
        scenario_name: str,
        overwrite: bool = False
    ):
        """
        Create a scenario with one static route per recorded request.

        Args:
            recording_name: Saved recording to convert
            scenario_name: Name of the scenario to create
            overwrite: Replace an existing scenario with that name

        Returns:
            The created MockScenario
        """
        if self.scenarios is None:
            raise RuntimeError("RequestRecorder has no ScenarioManager attached")

        entries = self.load(recording_name)
        routes = [entry.to_route() for entry in entries]

        scenario = self.scenarios.create(
            scenario_name,
            f"Generated from recording {recording_name}",
            routes,
            overwrite=overwrite
        )
        logger.info(f"Generated scenario '{scenario_name}' from recording '{recording_name}'")
        return scenario

    def status(self) -> Dict[str, Any]:
        return {
            'recording': self.is_recording,
            'total': len(self.recordings),
            'limit': self.recording_limit
        }

    def entries(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Buffered entries as dicts, optionally only the newest ``limit``."""
        items = self.recordings[-limit:] if limit else self.recordings
        return [entry.to_dict() for entry in items]
