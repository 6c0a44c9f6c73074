"""
MockSim CLI

Command-line interface for the MockSim mock server and its mock directory.

Commands:
    serve               - Start the mock server
    scenario            - List, create, switch or delete scenarios
    template            - Show data templates or generate sample data
    generate            - Generate a mock route file from templates
    record-to-scenario  - Turn a saved recording into a scenario
    analyze             - Summarize scenarios and recordings

Examples:
    # Serve ./mock on port 3001
    mocksim serve --port 3001

    # Create a scenario and activate it on a running server
    mocksim scenario create empty-cart --description "Cart with no items"
    mocksim scenario switch empty-cart --server http://127.0.0.1:3001

    # Generate a users file with 5 fake users
    mocksim generate users --route "GET /api/users user 5"
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import yaml

from .errors import MockError
from .mock.engine import MockConfig
from .mock.generator import DataTemplateGenerator
from .mock.server import MockServer
from .recording.recorder import RequestRecorder
from .scenarios.manager import ScenarioManager


def _print_json(data: Any):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def load_config(args) -> MockConfig:
    """
    Build a MockConfig from an optional YAML file plus command-line overrides.

    Args:
        args: Parsed command-line arguments

    Returns:
        Merged configuration
    """
    config = MockConfig.from_yaml(args.config) if getattr(args, 'config', None) else MockConfig()

    if getattr(args, 'mock_dir', None):
        config.mock_dir = args.mock_dir

    overrides = {
        'host': getattr(args, 'host', None),
        'port': getattr(args, 'port', None),
        'prefix': getattr(args, 'prefix', None),
        'delay_ms': getattr(args, 'delay', None),
        'log_level': getattr(args, 'log_level', None),
        'recording_limit': getattr(args, 'record_limit', None),
        'faker_locale': getattr(args, 'faker_locale', None),
        'faker_seed': getattr(args, 'faker_seed', None),
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    if getattr(args, 'no_watch', False):
        config.watch = False
    if getattr(args, 'no_admin', False):
        config.admin_enabled = False

    return config


def parse_route_spec(spec: str) -> Dict[str, Any]:
    """
    Parse a ``"METHOD URL TEMPLATE [COUNT]"`` route description.

    Raises:
        ValueError: If the description is malformed
    """
    parts = spec.split()
    if len(parts) not in (3, 4):
        raise ValueError(f"Expected 'METHOD URL TEMPLATE [COUNT]', got: {spec!r}")

    route = {'method': parts[0].upper(), 'url': parts[1], 'template': parts[2]}
    if len(parts) == 4:
        route['count'] = int(parts[3])
    return route


def _scenario_manager(config: MockConfig) -> ScenarioManager:
    manager = ScenarioManager(config.mock_dir)
    manager.init()
    return manager


def cmd_serve(args):
    """
    Start the mock server.

    Args:
        args: Parsed command-line arguments
    """
    config = load_config(args)

    print("MockSim Mock Server")
    if config.watch:
        print("   Hot reload enabled")
    if config.delay_ms:
        print(f"   Default delay: {config.delay_ms}ms")

    try:
        server = MockServer(config)
    except Exception as e:
        print(f"Failed to create mock server: {e}")
        sys.exit(1)

    # Start server (blocking)
    try:
        server.start()
    except KeyboardInterrupt:
        print("\nMock server stopped")


def cmd_scenario(args):
    """
    Manage scenarios in the mock directory.

    Args:
        args: Parsed command-line arguments
    """
    config = load_config(args)

    if args.action == 'switch':
        _switch_on_server(args.server, config.admin_prefix, args.name)
        return

    manager = _scenario_manager(config)

    if args.action == 'list':
        scenarios = manager.list()
        print(f"Scenarios ({len(scenarios)}):\n")
        for scenario in scenarios:
            marker = '*' if scenario.active else ' '
            print(f"  [{marker}] {scenario.name}")
            if scenario.description:
                print(f"      {scenario.description}")
            print(f"      Routes: {len(scenario.routes)}")
        return

    if args.action == 'create':
        routes: List[Dict[str, Any]] = []
        if args.routes_file:
            routes = _read_routes_file(Path(args.routes_file))
        scenario = manager.create(args.name, args.description, routes, overwrite=args.overwrite)
        print(f"Created scenario '{scenario.name}' ({len(scenario.routes)} routes)")
        return

    if args.action == 'delete':
        manager.delete(args.name)
        print(f"Deleted scenario '{args.name}'")


def _read_routes_file(path: Path) -> List[Dict[str, Any]]:
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get('routes', [])
    return data


def _error_detail(response: requests.Response) -> str:
    if not response.content:
        return response.reason or ''
    try:
        body = response.json()
    except ValueError:
        # requests raises a ValueError subclass for non-JSON bodies
        return response.text
    if isinstance(body, dict) and 'error' in body:
        return str(body['error'])
    return response.text


def _switch_on_server(server: str, admin_prefix: str, name: str):
    """Activate a scenario on a running mock server through its admin API."""
    url = f"{server.rstrip('/')}{admin_prefix}/scenarios/{name}/activate"
    try:
        response = requests.post(url, timeout=10)
    except requests.RequestException as e:
        print(f"Could not reach mock server at {server}: {e}")
        sys.exit(1)

    if response.status_code != 200:
        print(f"Switch failed ({response.status_code}): {_error_detail(response)}")
        sys.exit(1)

    print(f"Switched to scenario '{name}'")


def cmd_template(args):
    """
    Show data templates, or generate data from one.

    Args:
        args: Parsed command-line arguments
    """
    generator = DataTemplateGenerator(locale=args.faker_locale, seed=args.faker_seed)

    if not args.name:
        print("Available templates:\n")
        for name, description in generator.list_templates().items():
            print(f"  {name:<10} {description}")
        return

    _print_json(generator.generate(args.name, args.count))


def cmd_generate(args):
    """
    Generate a declarative mock route file from templates.

    Args:
        args: Parsed command-line arguments
    """
    config = load_config(args)
    routes = [parse_route_spec(spec) for spec in args.route]

    generator = DataTemplateGenerator(locale=config.faker_locale, seed=config.faker_seed)
    path = generator.generate_mock_file(config.mock_dir, args.file_name, routes)
    print(f"Generated {path} ({len(routes)} routes)")


def cmd_record_to_scenario(args):
    """
    Create a scenario from a saved recording.

    Args:
        args: Parsed command-line arguments
    """
    config = load_config(args)
    manager = _scenario_manager(config)
    recorder = RequestRecorder(config.mock_dir, scenarios=manager)

    scenario = recorder.generate_scenario_from_recording(
        args.recording,
        args.scenario or args.recording,
        overwrite=args.overwrite
    )
    print(f"Created scenario '{scenario.name}' from recording '{args.recording}' ({len(scenario.routes)} routes)")


def cmd_analyze(args):
    """
    Summarize scenarios and recordings.

    Args:
        args: Parsed command-line arguments
    """
    config = load_config(args)
    stats = _scenario_manager(config).analyze_usage()

    if args.json:
        _print_json(stats)
        return

    print("Mock usage:\n")
    print(f"   Scenarios:  {stats['total_scenarios']}")
    print(f"   Routes:     {stats['total_routes']}")
    print(f"   Recordings: {stats['total_recordings']}")
    print(f"   Active:     {stats['active_scenario']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mocksim',
        description="MockSim - File-based HTTP mock server with scenarios and recordings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve ./mock with a 200ms delay
  %(prog)s serve --delay 200

  # List scenarios
  %(prog)s scenario list

  # Generate 3 fake products
  %(prog)s template product --count 3

  # Turn a recording into a scenario
  %(prog)s record-to-scenario checkout-flow --scenario checkout
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('-c', '--config', help='YAML config file')
    common.add_argument('-d', '--mock-dir', help='Mock directory (default: mock)')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', parents=[common], help='Start the mock server')
    serve_parser.add_argument('--host', help='Host to bind (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, help='Port to bind (default: 8080)')
    serve_parser.add_argument('--prefix', help='URL prefix to intercept (default: /api)')
    serve_parser.add_argument('--delay', type=int, help='Default delay in ms (default: 0)')
    serve_parser.add_argument('--no-watch', action='store_true', help='Disable hot reload')
    serve_parser.add_argument('--no-admin', action='store_true', help='Disable admin API')
    serve_parser.add_argument('--record-limit', type=int, help='Maximum recorded requests (0 = unlimited)')
    serve_parser.add_argument('--faker-locale', help='Faker locale (default: en_US)')
    serve_parser.add_argument('--faker-seed', type=int, help='Faker seed for reproducible data')
    serve_parser.add_argument('--log-level', choices=['debug', 'info', 'warning', 'error', 'silent'],
                              help='Log level (default: info)')

    # --- SCENARIO command ---
    scenario_parser = subparsers.add_parser('scenario', help='Manage scenarios')
    scenario_sub = scenario_parser.add_subparsers(dest='action', required=True)

    scenario_sub.add_parser('list', parents=[common], help='List scenarios')

    create_parser = scenario_sub.add_parser('create', parents=[common], help='Create a scenario')
    create_parser.add_argument('name', help='Scenario name')
    create_parser.add_argument('--description', help='Scenario description')
    create_parser.add_argument('--routes-file', help='YAML/JSON file with the scenario routes')
    create_parser.add_argument('--overwrite', action='store_true', help='Replace an existing scenario')

    switch_parser = scenario_sub.add_parser('switch', parents=[common], help='Activate a scenario on a running server')
    switch_parser.add_argument('name', help='Scenario name')
    switch_parser.add_argument('--server', default='http://127.0.0.1:8080',
                               help='Mock server base URL (default: http://127.0.0.1:8080)')

    delete_parser = scenario_sub.add_parser('delete', parents=[common], help='Delete a scenario')
    delete_parser.add_argument('name', help='Scenario name')

    # --- TEMPLATE command ---
    template_parser = subparsers.add_parser('template', help='Show templates or generate data')
    template_parser.add_argument('name', nargs='?', help='Template name')
    template_parser.add_argument('-n', '--count', type=int, default=1, help='Number of items (default: 1)')
    template_parser.add_argument('--faker-locale', default='en_US', help='Faker locale (default: en_US)')
    template_parser.add_argument('--faker-seed', type=int, help='Faker seed for reproducible data')

    # --- GENERATE command ---
    generate_parser = subparsers.add_parser('generate', parents=[common], help='Generate a mock route file')
    generate_parser.add_argument('file_name', help='File name without extension')
    generate_parser.add_argument('-r', '--route', action='append', required=True,
                                 help='Route as "METHOD URL TEMPLATE [COUNT]" (repeatable)')

    # --- RECORD-TO-SCENARIO command ---
    record_parser = subparsers.add_parser('record-to-scenario', parents=[common],
                                          help='Create a scenario from a saved recording')
    record_parser.add_argument('recording', help='Recording name')
    record_parser.add_argument('-s', '--scenario', help='Scenario name (default: recording name)')
    record_parser.add_argument('--overwrite', action='store_true', help='Replace an existing scenario')

    # --- ANALYZE command ---
    analyze_parser = subparsers.add_parser('analyze', parents=[common], help='Summarize mock usage')
    analyze_parser.add_argument('--json', action='store_true', help='Print JSON')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {
        'serve': cmd_serve,
        'scenario': cmd_scenario,
        'template': cmd_template,
        'generate': cmd_generate,
        'record-to-scenario': cmd_record_to_scenario,
        'analyze': cmd_analyze,
    }

    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args)
    except (MockError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
