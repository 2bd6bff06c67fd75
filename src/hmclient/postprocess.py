"""Post-session Pareto computation.

Runs HyperMapper's ``compute_pareto.py`` on the scenario once the protocol
has terminated. Its output is passed straight through to ours.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from pathlib import Path

from .core.config import HyperMapperEnv
from .core.errors import SpawnError
from .core.logging import get_logger

logger = get_logger(__name__)


def pareto_command(env: HyperMapperEnv, scenario: Path, python_executable: str) -> list[str]:
    return [python_executable, str(env.pareto_script), str(scenario)]


def run_compute_pareto(
    env: HyperMapperEnv,
    scenario: Path,
    python_executable: str = "python3",
    *,
    cwd: Path | None = None,
    process_env: Mapping[str, str] | None = None,
) -> int:
    """Execute compute_pareto.py and wait for it.

    Returns:
        The script's exit code.

    Raises:
        SpawnError: if the interpreter cannot be started.
    """
    cmd = pareto_command(env, scenario, python_executable)
    logger.info("Executing", argv=cmd)
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=dict(process_env) if process_env is not None else None,
            check=False,
        )
    except OSError as e:
        raise SpawnError(f"Unable to start Pareto computation {cmd[0]!r}: {e}") from e

    if result.returncode != 0:
        logger.error("Pareto computation failed", returncode=result.returncode)
    return result.returncode
