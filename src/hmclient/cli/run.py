"""HyperMapper client session CLI.

Usage:
    python -m hmclient.cli.run
    python -m hmclient.cli.run --config client.yaml --iterations 50 --workers 4
    python -m hmclient.cli.run --app-name demo --objectives f1_value,f2_value --no-predictor

Requires HYPERMAPPER_HOME and PYTHONPATH in the environment.

Exit codes:
    0  sentinel received and post-processing finished (or skipped)
    1  any fatal error
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

from ..core.config import ClientConfig, default_config, load_config, merge_config
from ..core.errors import HMClientError
from ..core.logging import set_log_level


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command that builds a ClientConfig."""
    parser.add_argument("--config", type=str, default=None, help="YAML configuration file")
    parser.add_argument("--output-folder", type=str, default=None, help="Output folder name")
    parser.add_argument("--app-name", type=str, default=None, help="Application name")
    parser.add_argument("--iterations", type=int, default=None, help="Optimization iterations")
    parser.add_argument("--samples", type=int, default=None, help="Design-of-experiment samples")
    parser.add_argument(
        "--predictor",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable/disable the feasibility predictor",
    )
    parser.add_argument(
        "--objectives", type=str, default=None, help="Comma-separated objective names"
    )
    parser.add_argument("--model", type=str, default=None, help="HyperMapper model")
    parser.add_argument("--doe-type", type=str, default=None, help="Design-of-experiment type")
    parser.add_argument("--evaluator", type=str, default=None, help="Registered evaluator name")
    parser.add_argument("--python", type=str, default=None, help="Interpreter for HyperMapper")


def config_from_args(args: argparse.Namespace) -> ClientConfig:
    """Load --config (or the defaults) and apply command-line overrides."""
    config = load_config(args.config) if args.config else default_config()

    scenario: dict[str, Any] = {}
    for attr, key in (
        ("output_folder", "output_folder"),
        ("app_name", "app_name"),
        ("iterations", "iterations"),
        ("samples", "samples"),
        ("predictor", "predictor"),
        ("model", "model"),
        ("doe_type", "doe_type"),
    ):
        value = getattr(args, attr, None)
        if value is not None:
            scenario[key] = value
    if args.objectives is not None:
        scenario["objectives"] = [s.strip() for s in args.objectives.split(",") if s.strip()]

    protocol: dict[str, Any] = {}
    for attr in ("max_line_bytes", "read_timeout_s", "workers"):
        value = getattr(args, attr, None)
        if value is not None:
            protocol[attr] = value

    overrides: dict[str, Any] = {}
    if scenario:
        overrides["scenario"] = scenario
    if protocol:
        overrides["protocol"] = protocol
    if args.evaluator is not None:
        overrides["evaluator"] = args.evaluator
    if args.python is not None:
        overrides["python_executable"] = args.python
    if getattr(args, "skip_pareto", False):
        overrides["skip_pareto"] = True

    return merge_config(config, overrides) if overrides else config


def main(argv: list[str] | None = None) -> int:
    """Run a HyperMapper client session.

    Args:
        argv: Command-line arguments (uses sys.argv if None).

    Returns:
        Exit code (0 = success).
    """
    parser = argparse.ArgumentParser(description="Serve evaluations to HyperMapper")
    add_config_arguments(parser)
    parser.add_argument("--run-dir", type=str, default=None, help="Run directory (default: cwd)")
    parser.add_argument("--workers", type=int, default=None, help="Concurrent evaluations per round")
    parser.add_argument(
        "--read-timeout-s", type=float, default=None, help="Fail if the optimizer stalls this long"
    )
    parser.add_argument("--max-line-bytes", type=int, default=None, help="Maximum protocol line size")
    parser.add_argument("--skip-pareto", action="store_true", help="Do not run compute_pareto.py")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        help="Minimum log level (default: $HMCLIENT_LOG_LEVEL or INFO)",
    )

    args = parser.parse_args(argv)
    if args.log_level is not None:
        set_log_level(args.log_level)

    # Deferred so --help works without the subprocess/pymoo stack
    from ..session import run_session

    try:
        config = config_from_args(args)
        result = run_session(config, run_dir=args.run_dir)
    except HMClientError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return 1

    if not result.ok:
        print(
            f"FATAL: Pareto computation exited with code {result.pareto_returncode}",
            file=sys.stderr,
        )
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
