"""HyperMapper scenario document.

The scenario is written once, before the optimizer is spawned, to
``<run_dir>/<output_folder>/<app_name>_scenario.json``; that path is the
optimizer's only command-line argument. ``read_scenario`` parses it back so
the client and the optimizer can be checked to agree on parameters and
objective order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .core.config import ClientConfig, ParamConfig
from .core.errors import ConfigError
from .core.logging import get_logger
from .core.params import ParameterSet

logger = get_logger(__name__)


def output_dir(config: ClientConfig, run_dir: Path) -> Path:
    return Path(run_dir) / config.scenario.output_folder


def scenario_path(config: ClientConfig, run_dir: Path) -> Path:
    return output_dir(config, run_dir) / f"{config.scenario.app_name}_scenario.json"


def ensure_output_dir(config: ClientConfig, run_dir: Path) -> Path:
    """Create the output folder if needed.

    Raises:
        ConfigError: if the directory cannot be created.
    """
    out = output_dir(config, run_dir)
    if out.is_dir():
        logger.info("Output directory exists, continuing", path=str(out))
        return out
    logger.info("Output directory does not exist, creating", path=str(out))
    try:
        out.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Unable to create directory: {out}: {e}") from e
    return out


def build_scenario(config: ClientConfig, run_dir: Path) -> dict[str, Any]:
    """Assemble the scenario document for ``config``."""
    sc = config.scenario
    out = sc.output_folder
    app = sc.app_name

    scenario: dict[str, Any] = {
        "application_name": app,
        "optimization_objectives": list(sc.objectives),
        "hypermapper_mode": {"mode": "client-server"},
        "run_directory": str(Path(run_dir).resolve()),
        "log_file": f"{out}/log_{app}.log",
        "optimization_iterations": sc.iterations,
        "models": {"model": sc.model},
    }

    if sc.predictor:
        scenario["feasible_output"] = {
            "enable_feasible_predictor": True,
            "false_value": "0",
            "true_value": "1",
        }

    scenario["output_data_file"] = f"{out}/{app}_output_data.csv"
    scenario["output_pareto_file"] = f"{out}/{app}_output_pareto.csv"
    scenario["output_image"] = {"output_image_pdf_file": f"{out}/{app}_output_image.pdf"}
    scenario["design_of_experiment"] = {
        "doe_type": sc.doe_type,
        "number_of_samples": sc.samples,
    }
    scenario["input_parameters"] = {
        p.key: {"parameter_type": p.type.value, "values": list(p.values)}
        for p in config.parameters
    }
    return scenario


def write_scenario(config: ClientConfig, run_dir: Path) -> Path:
    """Write the scenario JSON and return its path.

    Raises:
        ConfigError: if the output folder or file cannot be written.
    """
    ensure_output_dir(config, run_dir)
    path = scenario_path(config, run_dir)
    scenario = build_scenario(config, run_dir)
    try:
        with open(path, "w") as f:
            json.dump(scenario, f, indent=4)
            f.write("\n")
    except OSError as e:
        raise ConfigError(f"Unable to open file: {path}: {e}") from e

    logger.info("Wrote scenario", path=str(path))
    return path


@dataclass
class ScenarioSpec:
    """What the optimizer will see, parsed back from a scenario file."""

    app_name: str
    objectives: list[str]
    predictor: bool
    parameters: ParameterSet
    raw: dict[str, Any]


def read_scenario(path: str | Path) -> ScenarioSpec:
    """Parse a scenario file written by ``write_scenario``."""
    path = Path(path)
    try:
        with open(path) as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Unable to read scenario {path}: {e}") from e

    try:
        param_configs = [
            ParamConfig(key=key, type=entry["parameter_type"], values=entry["values"])
            for key, entry in raw["input_parameters"].items()
        ]
        feasible = raw.get("feasible_output") or {}
        return ScenarioSpec(
            app_name=raw["application_name"],
            objectives=list(raw["optimization_objectives"]),
            predictor=bool(feasible.get("enable_feasible_predictor", False)),
            parameters=ParameterSet(p.to_param() for p in param_configs),
            raw=raw,
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise ConfigError(f"Malformed scenario {path}: {e}") from e
