"""Write a HyperMapper scenario without starting a session.

Usage:
    python -m hmclient.cli.scenario --config client.yaml
    python -m hmclient.cli.scenario --app-name demo --iterations 5

Prints the path of the written scenario file.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ..core.errors import HMClientError
from .run import add_config_arguments, config_from_args


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Write a HyperMapper scenario file")
    add_config_arguments(parser)
    parser.add_argument("--run-dir", type=str, default=".", help="Run directory")
    args = parser.parse_args(argv)

    from ..scenario import write_scenario

    try:
        config = config_from_args(args)
        path = write_scenario(config, Path(args.run_dir).resolve())
    except HMClientError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return 1

    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
