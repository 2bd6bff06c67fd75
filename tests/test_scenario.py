"""Scenario document generation and round-trip."""

import json

import pytest

from hmclient.core.config import ClientConfig, ParamConfig, default_config, merge_config
from hmclient.core.errors import ConfigError
from hmclient.core.params import IntegerDomain, ParamType, ValueDomain
from hmclient.scenario import build_scenario, read_scenario, scenario_path, write_scenario


def mixed_config() -> ClientConfig:
    return ClientConfig(
        scenario={
            "app_name": "mixed",
            "output_folder": "results",
            "objectives": ["runtime", "energy", "area"],
            "predictor": False,
        },
        parameters=[
            ParamConfig(key="tile", type="ordinal", values=[1, 2, 4, 8]),
            ParamConfig(key="unroll", type="integer", values=[1, 16]),
            ParamConfig(key="layout", type="categorical", values=["row", "col"]),
        ],
    )


def test_scenario_path(tmp_path):
    path = write_scenario(default_config(), tmp_path)

    assert path == tmp_path / "outdata" / "cpp_chakong_haimes_scenario.json"
    assert path == scenario_path(default_config(), tmp_path)
    assert path.exists()


def test_scenario_fields(tmp_path):
    scenario = build_scenario(default_config(), tmp_path)

    assert scenario["application_name"] == "cpp_chakong_haimes"
    assert scenario["optimization_objectives"] == ["f1_value", "f2_value"]
    assert scenario["hypermapper_mode"] == {"mode": "client-server"}
    assert scenario["run_directory"] == str(tmp_path.resolve())
    assert scenario["log_file"] == "outdata/log_cpp_chakong_haimes.log"
    assert scenario["optimization_iterations"] == 20
    assert scenario["models"] == {"model": "random_forest"}
    assert scenario["feasible_output"] == {
        "enable_feasible_predictor": True,
        "false_value": "0",
        "true_value": "1",
    }
    assert scenario["output_data_file"] == "outdata/cpp_chakong_haimes_output_data.csv"
    assert scenario["output_pareto_file"] == "outdata/cpp_chakong_haimes_output_pareto.csv"
    assert scenario["design_of_experiment"] == {
        "doe_type": "standard latin hypercube",
        "number_of_samples": 10,
    }
    assert scenario["input_parameters"] == {
        "x0": {"parameter_type": "integer", "values": [-20, 20]},
        "x1": {"parameter_type": "integer", "values": [-20, 20]},
    }


def test_predictor_block_omitted_when_disabled(tmp_path):
    config = merge_config(default_config(), {"scenario": {"predictor": False}})
    assert "feasible_output" not in build_scenario(config, tmp_path)


def test_scenario_round_trip(tmp_path):
    config = mixed_config()
    spec = read_scenario(write_scenario(config, tmp_path))

    assert spec.app_name == "mixed"
    assert spec.objectives == ["runtime", "energy", "area"]
    assert spec.predictor is False
    assert spec.parameters.keys == ["tile", "unroll", "layout"]
    assert [p.param_type for p in spec.parameters] == [
        ParamType.ORDINAL,
        ParamType.INTEGER,
        ParamType.CATEGORICAL,
    ]
    assert spec.parameters[0].domain == ValueDomain((1, 2, 4, 8))
    assert spec.parameters[1].domain == IntegerDomain(1, 16)
    assert spec.parameters[2].domain == ValueDomain(("row", "col"))


def test_scenario_is_valid_json_with_indent(tmp_path):
    path = write_scenario(default_config(), tmp_path)
    text = path.read_text()

    assert json.loads(text)["application_name"] == "cpp_chakong_haimes"
    assert '\n    "application_name"' in text


def test_existing_output_dir_is_reused(tmp_path):
    (tmp_path / "outdata").mkdir()
    (tmp_path / "outdata" / "keep.txt").write_text("x")

    write_scenario(default_config(), tmp_path)
    assert (tmp_path / "outdata" / "keep.txt").exists()


def test_unwritable_output_dir(tmp_path):
    (tmp_path / "outdata").write_text("a file, not a directory")

    with pytest.raises(ConfigError, match="Unable to create"):
        write_scenario(default_config(), tmp_path)


def test_read_malformed_scenario(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"application_name": "x"}))

    with pytest.raises(ConfigError, match="Malformed"):
        read_scenario(path)

    path.write_text("{not json")
    with pytest.raises(ConfigError):
        read_scenario(path)
