"""Configuration management with pydantic and YAML support."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError
from .params import InputParam, ParameterSet, ParamType

REQUIRED_ENV_VARS = ("HYPERMAPPER_HOME", "PYTHONPATH")


def _integral_bound(key: str, value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"integer parameter {key!r} has non-numeric bound {value!r}") from None
    if not number.is_integer():
        raise ValueError(f"integer parameter {key!r} has non-integral bound {value!r}")
    return int(number)


class ParamConfig(BaseModel):
    """One input parameter as declared in the config file."""

    key: str = Field(min_length=1)
    type: ParamType = ParamType.INTEGER
    values: list[Any] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_domain(self) -> ParamConfig:
        if self.type is ParamType.INTEGER:
            if len(self.values) != 2:
                raise ValueError(f"integer parameter {self.key!r} needs [low, high] bounds")
            low, high = (_integral_bound(self.key, v) for v in self.values)
            if low > high:
                raise ValueError(f"integer parameter {self.key!r} has low > high")
            self.values = [low, high]
        return self

    def to_param(self) -> InputParam:
        if self.type is ParamType.INTEGER:
            return InputParam.integer(self.key, self.values[0], self.values[1])
        if self.type is ParamType.ORDINAL:
            return InputParam.ordinal(self.key, self.values)
        return InputParam.categorical(self.key, self.values)


class ScenarioConfig(BaseModel):
    """Settings forwarded to HyperMapper through the scenario document."""

    app_name: str = Field(default="cpp_chakong_haimes", min_length=1)
    output_folder: str = Field(default="outdata", min_length=1)
    iterations: int = Field(default=20, ge=1)
    samples: int = Field(default=10, ge=1)
    predictor: bool = True
    objectives: list[str] = Field(default_factory=lambda: ["f1_value", "f2_value"], min_length=1)
    model: str = "random_forest"
    doe_type: str = "standard latin hypercube"

    @field_validator("objectives")
    @classmethod
    def _unique_objectives(cls, v: list[str]) -> list[str]:
        if len(set(v)) != len(v):
            raise ValueError(f"objective names must be unique, got {v}")
        return v


class ProtocolConfig(BaseModel):
    """Line-protocol limits and evaluation concurrency."""

    max_line_bytes: int = Field(default=65536, ge=4096)
    read_timeout_s: float | None = Field(default=None, gt=0)
    workers: int = Field(default=1, ge=1, le=256)


def _default_parameters() -> list[ParamConfig]:
    return [
        ParamConfig(key="x0", type=ParamType.INTEGER, values=[-20, 20]),
        ParamConfig(key="x1", type=ParamType.INTEGER, values=[-20, 20]),
    ]


class ClientConfig(BaseModel):
    """Root configuration object."""

    scenario: ScenarioConfig = Field(default_factory=ScenarioConfig)
    protocol: ProtocolConfig = Field(default_factory=ProtocolConfig)
    parameters: list[ParamConfig] = Field(default_factory=_default_parameters, min_length=1)
    evaluator: str = "chakong_haimes"
    python_executable: str = "python3"
    skip_pareto: bool = False

    @field_validator("parameters")
    @classmethod
    def _unique_keys(cls, v: list[ParamConfig]) -> list[ParamConfig]:
        keys = [p.key for p in v]
        if len(set(keys)) != len(keys):
            raise ValueError(f"parameter keys must be unique, got {keys}")
        return v


def build_parameter_set(config: ClientConfig) -> ParameterSet:
    """Instantiate the session ParameterSet in declaration order."""
    return ParameterSet(p.to_param() for p in config.parameters)


def _validate(data: Any) -> ClientConfig:
    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")
    try:
        return ClientConfig.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: str | Path) -> ClientConfig:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file.

    Returns:
        Parsed ClientConfig object.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Unable to open config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Unable to parse {path}: {e}") from e

    return _validate({} if data is None else data)


def save_config(config: ClientConfig, path: str | Path) -> None:
    """Save configuration to YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)


def default_config() -> ClientConfig:
    """Return the Chakong-Haimes benchmark configuration."""
    return ClientConfig()


def merge_config(base: ClientConfig, overrides: dict[str, Any]) -> ClientConfig:
    """Merge overrides into base configuration.

    Nested dicts are merged key by key; any other value replaces the base.
    """
    base_dict = base.model_dump()

    def deep_merge(d1: dict, d2: dict) -> dict:
        result = d1.copy()
        for k, v in d2.items():
            if k in result and isinstance(result[k], dict) and isinstance(v, dict):
                result[k] = deep_merge(result[k], v)
            else:
                result[k] = v
        return result

    return _validate(deep_merge(base_dict, overrides))


@dataclass(frozen=True)
class HyperMapperEnv:
    """Locations taken from the environment."""

    home: Path
    pythonpath: str

    @property
    def optimizer_script(self) -> Path:
        return self.home / "scripts" / "hypermapper.py"

    @property
    def pareto_script(self) -> Path:
        return self.home / "scripts" / "compute_pareto.py"


def require_environment(env: Mapping[str, str] | None = None) -> HyperMapperEnv:
    """Check that HYPERMAPPER_HOME and PYTHONPATH are set.

    Raises:
        ConfigError: if either variable is missing or empty.
    """
    env = os.environ if env is None else env
    missing = [name for name in REQUIRED_ENV_VARS if not env.get(name)]
    if missing:
        raise ConfigError(
            "Environment variables are not set: "
            + ", ".join(missing)
            + ". Please set HYPERMAPPER_HOME and PYTHONPATH before running."
        )
    return HyperMapperEnv(home=Path(env["HYPERMAPPER_HOME"]), pythonpath=env["PYTHONPATH"])
