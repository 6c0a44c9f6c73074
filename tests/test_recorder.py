"""
Tests for MockSim Request Recorder

Tests request recording including:
- Start/stop state machine
- FIFO recording limit
- Save/load round trip
- Scenario generation from recordings
"""

import json

import pytest

from mocksim.errors import InvalidScenarioNameError, RecordingNotFoundError
from mocksim.recording.recorder import RecordedRequest, RequestRecorder
from mocksim.scenarios.manager import ScenarioManager


def make_entry(index, url=None, method='GET', body=None, status_code=200):
    """Build a recorded request."""
    return RecordedRequest.capture(
        url=url or f"/api/items/{index}",
        method=method,
        headers={'accept': 'application/json'},
        query={},
        body={},
        status_code=status_code,
        response_headers={'Content-Type': 'application/json'},
        response_body=body if body is not None else {'id': index},
        delay=0
    )


@pytest.fixture
def scenarios(tmp_path):
    manager = ScenarioManager(tmp_path / 'mock')
    manager.init()
    return manager


@pytest.fixture
def recorder(tmp_path, scenarios):
    return RequestRecorder(tmp_path / 'mock', scenarios=scenarios)


class TestRecordedRequest:
    """Test RecordedRequest."""

    def test_capture_shape(self):
        """Test captured entries carry request and response parts."""
        entry = make_entry(1)

        assert entry.timestamp > 0
        assert entry.request == {'headers': {'accept': 'application/json'}, 'query': {}, 'body': {}}
        assert entry.response['status_code'] == 200
        assert entry.response['body'] == {'id': 1}

    def test_to_route(self):
        """Test an entry maps to a static route without query string."""
        entry = make_entry(1, url='/api/search?q=lamp', status_code=201, body=['lamp'])

        route = entry.to_route()

        assert route.url == '/api/search'
        assert route.method == 'GET'
        assert route.status_code == 201
        assert route.response == ['lamp']
        assert route.headers == {'Content-Type': 'application/json'}

    def test_dict_round_trip(self):
        """Test to_dict/from_dict."""
        entry = make_entry(3)

        assert RecordedRequest.from_dict(entry.to_dict()) == entry


class TestRecordingState:
    """Test the recording state machine."""

    def test_idle_by_default(self, recorder):
        """Test nothing is recorded before start."""
        assert recorder.record(make_entry(1)) is False
        assert recorder.recordings == []

    def test_start_stop(self, recorder):
        """Test entries are kept only while recording."""
        recorder.start()
        recorder.record(make_entry(1))
        recorder.stop()
        recorder.record(make_entry(2))

        assert [e.url for e in recorder.recordings] == ['/api/items/1']
        assert recorder.status() == {'recording': False, 'total': 1, 'limit': 0}

    def test_start_clears_buffer(self, recorder):
        """Test start begins a fresh buffer."""
        recorder.start()
        recorder.record(make_entry(1))
        recorder.start()

        assert recorder.recordings == []

    def test_fifo_limit(self, tmp_path):
        """Test the oldest entries are dropped past the limit."""
        recorder = RequestRecorder(tmp_path / 'mock', recording_limit=2)
        recorder.start()

        for index in range(4):
            recorder.record(make_entry(index))

        assert [e.url for e in recorder.recordings] == ['/api/items/2', '/api/items/3']

    def test_entries_limit(self, recorder):
        """Test entries returns the newest items."""
        recorder.start()
        for index in range(3):
            recorder.record(make_entry(index))

        assert [e['url'] for e in recorder.entries(limit=2)] == ['/api/items/1', '/api/items/2']
        assert len(recorder.entries()) == 3


class TestPersistence:
    """Test save/load of recordings."""

    def test_round_trip(self, recorder):
        """Test load returns exactly the saved entries."""
        recorder.start()
        entries = [make_entry(i) for i in range(5)]
        for entry in entries:
            recorder.record(entry)
        recorder.stop()

        path = recorder.save('x')
        loaded = recorder.load('x')

        assert path.name == 'x.json'
        assert loaded == entries
        assert isinstance(json.loads(path.read_text()), list)

    def test_load_missing(self, recorder):
        """Test loading an unknown recording."""
        with pytest.raises(RecordingNotFoundError):
            recorder.load('missing')

    def test_unsafe_name(self, recorder):
        """Test recording names are validated."""
        with pytest.raises(InvalidScenarioNameError):
            recorder.save('../outside')

    def test_list_recordings(self, recorder):
        """Test saved recordings are listed by name."""
        recorder.save('b')
        recorder.save('a')

        assert recorder.list_recordings() == ['a', 'b']


class TestScenarioGeneration:
    """Test generate_scenario_from_recording."""

    def test_one_route_per_entry(self, recorder, scenarios):
        """Test each entry becomes a static route returning the recorded body."""
        recorder.start()
        recorder.record(make_entry(1))
        recorder.record(make_entry(2, method='POST', status_code=201))
        recorder.save('flow')

        scenario = recorder.generate_scenario_from_recording('flow', 'replayed')

        assert scenario.description == 'Generated from recording flow'
        assert [r.describe() for r in scenario.routes] == ['GET /api/items/1', 'POST /api/items/2']
        assert [r.response for r in scenario.routes] == [{'id': 1}, {'id': 2}]
        assert scenario.routes[1].status_code == 201
        assert scenarios.get('replayed') is scenario

    def test_requires_scenario_manager(self, tmp_path):
        """Test a recorder without manager cannot create scenarios."""
        recorder = RequestRecorder(tmp_path / 'mock')

        with pytest.raises(RuntimeError):
            recorder.generate_scenario_from_recording('flow', 'x')
