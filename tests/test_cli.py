"""
Tests for the MockSim command-line interface.
"""

import json
from unittest.mock import Mock, patch

import pytest
import requests
import yaml

from mocksim.cli import build_parser, load_config, main, parse_route_spec
from mocksim.scenarios.manager import ScenarioManager


@pytest.fixture
def mock_dir(tmp_path):
    return tmp_path / 'mock'


class TestParseRouteSpec:
    """Test route description parsing."""

    def test_with_count(self):
        """Test a full description."""
        assert parse_route_spec('get /api/users user 5') == {
            'method': 'GET', 'url': '/api/users', 'template': 'user', 'count': 5
        }

    def test_without_count(self):
        """Test the count is optional."""
        assert 'count' not in parse_route_spec('GET /api/users/:id user')

    def test_malformed(self):
        """Test malformed descriptions raise."""
        with pytest.raises(ValueError):
            parse_route_spec('GET /api/users')


class TestLoadConfig:
    """Test config merging."""

    def test_overrides(self, tmp_path):
        """Test command-line values override the YAML file."""
        config_path = tmp_path / 'mocksim.yaml'
        config_path.write_text(yaml.safe_dump({'port': 3001, 'prefix': '/v1', 'delay_ms': 20}))

        args = build_parser().parse_args([
            'serve', '--config', str(config_path), '--port', '4000', '--no-watch'
        ])
        config = load_config(args)

        assert config.port == 4000
        assert config.prefix == '/v1'
        assert config.delay_ms == 20
        assert config.watch is False


class TestCommands:
    """Test subcommands against a temporary mock directory."""

    def test_scenario_create_list_delete(self, mock_dir, capsys):
        """Test scenario management commands."""
        main(['scenario', 'create', 'empty-cart', '--description', 'No items', '-d', str(mock_dir)])
        main(['scenario', 'list', '-d', str(mock_dir)])

        output = capsys.readouterr().out
        assert "Created scenario 'empty-cart'" in output
        assert '[*] default' in output
        assert '[ ] empty-cart' in output

        main(['scenario', 'delete', 'empty-cart', '-d', str(mock_dir)])
        assert not (mock_dir / 'scenarios' / 'empty-cart.json').exists()

    def test_scenario_create_from_routes_file(self, mock_dir, tmp_path):
        """Test scenario routes read from a file."""
        routes_file = tmp_path / 'routes.yaml'
        routes_file.write_text(yaml.safe_dump({'routes': [{'url': '/api/cart', 'response': {'items': []}}]}))

        main(['scenario', 'create', 'cart', '--routes-file', str(routes_file), '-d', str(mock_dir)])

        data = json.loads((mock_dir / 'scenarios' / 'cart.json').read_text())
        assert data['routes'][0]['url'] == '/api/cart'

    def test_delete_default_exits(self, mock_dir, capsys):
        """Test domain errors exit with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(['scenario', 'delete', 'default', '-d', str(mock_dir)])

        assert exc_info.value.code == 1
        assert 'protected' in capsys.readouterr().out

    @patch('mocksim.cli.requests.post')
    def test_scenario_switch(self, mock_post, capsys):
        """Test switch activates the scenario on a running server."""
        mock_post.return_value = Mock(status_code=200)

        main(['scenario', 'switch', 'outage', '--server', 'http://localhost:3001/'])

        mock_post.assert_called_once_with('http://localhost:3001/__admin__/scenarios/outage/activate', timeout=10)
        assert "Switched to scenario 'outage'" in capsys.readouterr().out

    @patch('mocksim.cli.requests.post')
    def test_scenario_switch_error_json(self, mock_post, capsys):
        """Test a JSON error reply is reported and exits with status 1."""
        mock_post.return_value = Mock(
            status_code=404,
            content=b'{"error": "Scenario not found: outage"}',
            json=Mock(return_value={'error': 'Scenario not found: outage'})
        )

        with pytest.raises(SystemExit) as exc_info:
            main(['scenario', 'switch', 'outage'])

        assert exc_info.value.code == 1
        assert 'Switch failed (404): Scenario not found: outage' in capsys.readouterr().out

    @patch('mocksim.cli.requests.post')
    def test_scenario_switch_error_not_json(self, mock_post, capsys):
        """Test a non-JSON error reply falls back to the raw text."""
        mock_post.return_value = Mock(
            status_code=502,
            content=b'<html>Bad Gateway</html>',
            text='<html>Bad Gateway</html>',
            json=Mock(side_effect=ValueError('Expecting value'))
        )

        with pytest.raises(SystemExit) as exc_info:
            main(['scenario', 'switch', 'outage'])

        assert exc_info.value.code == 1
        assert 'Switch failed (502): <html>Bad Gateway</html>' in capsys.readouterr().out

    @patch('mocksim.cli.requests.post', side_effect=requests.ConnectionError('refused'))
    def test_scenario_switch_unreachable(self, mock_post):
        """Test an unreachable server exits with status 1."""
        with pytest.raises(SystemExit):
            main(['scenario', 'switch', 'outage'])

    def test_template_list(self, capsys):
        """Test templates are listed."""
        main(['template'])

        assert 'product' in capsys.readouterr().out

    def test_template_generate(self, capsys):
        """Test template data is printed as JSON."""
        main(['template', 'user', '--count', '2', '--faker-seed', '1'])

        users = json.loads(capsys.readouterr().out)
        assert len(users) == 2

    def test_generate(self, mock_dir):
        """Test a route file is generated in the mock directory."""
        main(['generate', 'users', '-d', str(mock_dir), '--route', 'GET /api/users user 2'])

        document = yaml.safe_load((mock_dir / 'users.yaml').read_text())
        assert len(document['routes'][0]['response']) == 2

    def test_record_to_scenario(self, mock_dir):
        """Test a saved recording becomes a scenario."""
        (mock_dir / 'recordings').mkdir(parents=True)
        (mock_dir / 'recordings' / 'flow.json').write_text(json.dumps([{
            'url': '/api/ping',
            'method': 'GET',
            'timestamp': 0,
            'request': {},
            'response': {'status_code': 200, 'headers': {}, 'body': 'pong', 'delay': 0}
        }]))

        main(['record-to-scenario', 'flow', '--scenario', 'ping', '-d', str(mock_dir)])

        manager = ScenarioManager(mock_dir)
        manager.init()
        assert manager.get('ping').routes[0].response == 'pong'

    def test_analyze_json(self, mock_dir, capsys):
        """Test analysis output as JSON."""
        main(['analyze', '--json', '-d', str(mock_dir)])

        stats = json.loads(capsys.readouterr().out)
        assert stats['active_scenario'] == 'default'

    @patch('mocksim.cli.MockServer')
    def test_serve(self, mock_server_cls, mock_dir):
        """Test serve builds a server from the merged config and starts it."""
        main(['serve', '-d', str(mock_dir), '--port', '3005', '--delay', '50'])

        config = mock_server_cls.call_args[0][0]
        assert config.port == 3005
        assert config.delay_ms == 50
        mock_server_cls.return_value.start.assert_called_once_with()

    def test_no_command(self):
        """Test running without a command prints help and exits."""
        with pytest.raises(SystemExit):
            main([])
