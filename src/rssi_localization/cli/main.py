#!/usr/bin/env python3
"""
Main CLI entry point for the RSSI localization simulator
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .. import __version__
from ..config import LocalizationConfig, create_example_config, parse_overrides
from ..core.errors import LocalizationError
from ..core.types import Position
from ..service import handle_predict_request
from ..simulation import LocalizationSimulation
from ..storage import RunStore

logger = logging.getLogger(__name__)


def load_config(args) -> LocalizationConfig:
    """Load the config named on the command line, applying --set overrides"""
    overrides = parse_overrides(getattr(args, 'set', None) or [])
    config = LocalizationConfig(args.config, overrides=overrides)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        sys.exit(2)
    return config


def write_output(data, output_path=None):
    text = json.dumps(data, indent=2)
    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_text(text + "\n")
        logger.info(f"Results written to {output_path}")
    else:
        print(text)


def cmd_simulate(args):
    """Run a single simulation or a Monte Carlo batch"""
    config = load_config(args)
    if args.seed is not None:
        config.system.seed = args.seed

    sim = LocalizationSimulation.from_config(config)
    target = Position(args.target[0], args.target[1])

    if args.trials > 1:
        summary = sim.run_monte_carlo(target, args.trials)
        write_output({'params': config.get_params().to_dict(), **summary.to_dict()}, args.output)
        return

    result = sim.run(target)
    output = {'params': config.get_params().to_dict(), **result.to_dict()}

    if args.save:
        store = RunStore(config.storage.runs_dir)
        output['run_id'] = store.save_result(config.storage.owner, config.get_params(), result)

    write_output(output, args.output)


def cmd_predict(args):
    """Answer a prediction request stored as JSON"""
    with open(args.request_file, 'r') as f:
        payload = json.load(f)

    status, body = handle_predict_request(payload)
    write_output(body, args.output)
    if status != 200:
        sys.exit(1)


def cmd_runs(args):
    """List or show saved runs"""
    config = load_config(args)
    store = RunStore(args.runs_dir or config.storage.runs_dir)
    owner = args.owner or config.storage.owner

    if args.action == "list":
        runs = store.load_runs(owner)
        if not runs:
            print(f"No saved runs for owner '{owner}'")
            return
        for run in runs:
            print(f"{run.id}  {run.timestamp}  error={run.error:.2f} m  "
                  f"true=({run.target_true_pos.x:.1f}, {run.target_true_pos.y:.1f})  "
                  f"noise={run.params.noise_std_dev} dB")
    elif args.action == "show":
        if not args.run_id:
            print("Error: run id required for 'show'")
            sys.exit(1)
        try:
            run = store.get_run(owner, args.run_id)
        except KeyError as e:
            print(f"Error: {e.args[0]}")
            sys.exit(1)
        write_output(run.to_dict())


def cmd_config(args):
    """Validate, summarize or create configuration files"""
    if args.action == "create-example":
        output = args.output or "configs/example.yaml"
        config = create_example_config(output)
        print(config.summary())
        return

    if not args.config:
        print("Error: --config required")
        sys.exit(1)

    config = LocalizationConfig(args.config)

    if args.action == "validate":
        errors = config.validate()
        if errors:
            print("Validation errors:")
            for error in errors:
                print(f"  - {error}")
            sys.exit(1)
        print("Configuration is valid")
    elif args.action == "summary":
        print(config.summary())


def cmd_test(args):
    """Run test suite"""
    import pytest

    test_path = Path(__file__).parent.parent.parent.parent / "tests"

    if args.component:
        test_file = test_path / f"test_{args.component}.py"
        if test_file.exists():
            sys.exit(pytest.main([str(test_file), "-v"]))
        else:
            print(f"Test file not found: {test_file}")
            sys.exit(1)
    else:
        sys.exit(pytest.main([str(test_path), "-v"]))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rssi-localization",
        description="RSSI Localization Simulator - Command Line Interface",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Single noisy run against the default 4-anchor room
  %(prog)s simulate --target 20 30

  # Noiseless run with a fixed seed, saved to the run store
  %(prog)s simulate --target 20 30 --set signal.noise_std_db=0 --save

  # Error statistics over 500 runs
  %(prog)s simulate --config configs/default.yaml --target 50 50 --trials 500

  # Answer a prediction request
  %(prog)s predict request.json

  # List saved runs
  %(prog)s runs list
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"RSSI Localization v{__version__}"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to system.log_level from config)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Shared config options
    config_parent = argparse.ArgumentParser(add_help=False)
    config_parent.add_argument(
        "--config",
        help="Path to YAML config file (built-in defaults if omitted)"
    )
    config_parent.add_argument(
        "--set",
        action="append",
        metavar="KEY=VALUE",
        help="Override a config value, e.g. signal.noise_std_db=0 (repeatable)"
    )

    # Simulate command
    parser_sim = subparsers.add_parser(
        "simulate",
        parents=[config_parent],
        help="Simulate readings for a target and localize it"
    )
    parser_sim.add_argument(
        "--target",
        nargs=2,
        type=float,
        metavar=("X", "Y"),
        required=True,
        help="True target position in meters"
    )
    parser_sim.add_argument(
        "--seed",
        type=int,
        help="Random seed (overrides system.seed)"
    )
    parser_sim.add_argument(
        "--trials",
        type=int,
        default=1,
        help="Number of Monte Carlo trials (1 = single run)"
    )
    parser_sim.add_argument(
        "--save",
        action="store_true",
        help="Save the run to the run store"
    )
    parser_sim.add_argument(
        "--output",
        help="Write JSON results to this file instead of stdout"
    )
    parser_sim.set_defaults(func=cmd_simulate)

    # Predict command
    parser_pred = subparsers.add_parser(
        "predict",
        help="Answer a prediction request JSON file"
    )
    parser_pred.add_argument(
        "request_file",
        help="Path to request JSON ({anchors, rssiReadings, params})"
    )
    parser_pred.add_argument(
        "--output",
        help="Write the response JSON to this file"
    )
    parser_pred.set_defaults(func=cmd_predict)

    # Runs command
    parser_runs = subparsers.add_parser(
        "runs",
        parents=[config_parent],
        help="Inspect saved runs"
    )
    parser_runs.add_argument(
        "action",
        choices=["list", "show"],
        help="Action to perform"
    )
    parser_runs.add_argument(
        "run_id",
        nargs="?",
        help="Run id for 'show'"
    )
    parser_runs.add_argument(
        "--owner",
        help="Owner whose runs to read (overrides storage.owner)"
    )
    parser_runs.add_argument(
        "--runs-dir",
        help="Run store directory (overrides storage.runs_dir)"
    )
    parser_runs.set_defaults(func=cmd_runs)

    # Config command
    parser_cfg = subparsers.add_parser(
        "config",
        help="Configuration utilities"
    )
    parser_cfg.add_argument(
        "action",
        choices=["validate", "summary", "create-example"],
        help="Action to perform"
    )
    parser_cfg.add_argument("-c", "--config", help="Path to config file")
    parser_cfg.add_argument("-o", "--output", help="Output path for create-example")
    parser_cfg.set_defaults(func=cmd_config)

    # Test command
    parser_test = subparsers.add_parser(
        "test",
        help="Run test suite"
    )
    parser_test.add_argument(
        "component",
        nargs="?",
        help="Specific component to test (optional)"
    )
    parser_test.set_defaults(func=cmd_test)

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = args.log_level
    if log_level is None and getattr(args, 'config', None):
        log_level = LocalizationConfig(args.config).system.log_level
    logging.basicConfig(
        level=getattr(logging, (log_level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if not hasattr(args, 'func'):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except LocalizationError as e:
        logger.error(f"{e.category} error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
