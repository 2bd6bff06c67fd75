"""Configuration loading, validation and environment checks."""

from pathlib import Path

import pytest
import yaml

from hmclient.core.config import (
    ClientConfig,
    build_parameter_set,
    default_config,
    load_config,
    merge_config,
    require_environment,
    save_config,
)
from hmclient.core.errors import ConfigError
from hmclient.core.params import ParamType


def test_default_config_is_chakong_haimes():
    config = default_config()

    assert config.scenario.output_folder == "outdata"
    assert config.scenario.app_name == "cpp_chakong_haimes"
    assert config.scenario.iterations == 20
    assert config.scenario.samples == 10
    assert config.scenario.predictor is True
    assert config.scenario.objectives == ["f1_value", "f2_value"]
    assert config.evaluator == "chakong_haimes"

    params = build_parameter_set(config)
    assert params.keys == ["x0", "x1"]
    assert all(p.param_type is ParamType.INTEGER for p in params)
    assert params[0].domain.as_values() == [-20, 20]


def test_yaml_round_trip(tmp_path):
    config = merge_config(
        default_config(),
        {"scenario": {"app_name": "demo", "iterations": 5}, "protocol": {"workers": 3}},
    )
    path = tmp_path / "cfg" / "client.yaml"
    save_config(config, path)

    loaded = load_config(path)
    assert loaded == config
    assert yaml.safe_load(path.read_text())["parameters"][0]["type"] == "integer"


def test_load_partial_yaml(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text(
        "scenario:\n"
        "  app_name: tiny\n"
        "parameters:\n"
        "  - key: n\n"
        "    type: ordinal\n"
        "    values: [1, 2, 4]\n"
    )
    config = load_config(path)

    assert config.scenario.app_name == "tiny"
    assert config.scenario.output_folder == "outdata"
    assert build_parameter_set(config).keys == ["n"]


def test_load_empty_yaml(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == default_config()


def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    "data",
    [
        {"parameters": [{"key": "x", "type": "integer", "values": [1, 2, 3]}]},
        {"parameters": [{"key": "x", "type": "integer", "values": [5, 1]}]},
        {"parameters": [{"key": "x", "type": "integer", "values": [-20.7, 20]}]},
        {"parameters": [{"key": "x", "type": "integer", "values": ["low", 20]}]},
        {"parameters": [{"key": "x", "values": [0, 1]}, {"key": "x", "values": [0, 2]}]},
        {"parameters": [{"key": "x", "type": "real", "values": [0, 1]}]},
        {"parameters": []},
        {"scenario": {"objectives": ["a", "a"]}},
        {"scenario": {"iterations": 0}},
        {"protocol": {"max_line_bytes": 1000}},
    ],
)
def test_invalid_config_rejected(tmp_path, data):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump(data))

    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_config(path)


def test_merge_keeps_unrelated_values():
    merged = merge_config(default_config(), {"scenario": {"samples": 3}})

    assert merged.scenario.samples == 3
    assert merged.scenario.iterations == 20
    assert isinstance(merged, ClientConfig)


def test_require_environment():
    env = require_environment({"HYPERMAPPER_HOME": "/opt/hm", "PYTHONPATH": "/opt/hm/scripts"})

    assert env.home == Path("/opt/hm")
    assert env.optimizer_script == Path("/opt/hm/scripts/hypermapper.py")
    assert env.pareto_script == Path("/opt/hm/scripts/compute_pareto.py")


@pytest.mark.parametrize(
    "env",
    [
        {},
        {"HYPERMAPPER_HOME": "/opt/hm"},
        {"PYTHONPATH": "/x"},
        {"HYPERMAPPER_HOME": "", "PYTHONPATH": "/x"},
    ],
)
def test_require_environment_missing(env):
    with pytest.raises(ConfigError, match="Environment variables are not set"):
        require_environment(env)


def test_integral_float_bounds_accepted(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text("parameters:\n  - key: x\n    values: [-20.0, 20]\n")

    assert load_config(path).parameters[0].values == [-20, 20]


@pytest.mark.parametrize("text", ["- a\n- b\n", "hello\n", "42\n"])
def test_non_mapping_yaml_rejected(tmp_path, text):
    path = tmp_path / "client.yaml"
    path.write_text(text)

    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(path)


def test_load_directory(tmp_path):
    with pytest.raises(ConfigError, match="Unable to open"):
        load_config(tmp_path)
