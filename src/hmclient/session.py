"""One optimization session, start to finish.

Flow:
    1. require_environment()        -> HYPERMAPPER_HOME, PYTHONPATH
    2. write_scenario()             -> <run_dir>/<out>/<app>_scenario.json
    3. ProcessChannel.spawn()       -> python3 $HYPERMAPPER_HOME/scripts/hypermapper.py <scenario>
    4. ProtocolEngine.run()         -> rounds until "End of HyperMapper"
    5. EvaluationHistory.save()     -> client-side history and summary
    6. run_compute_pareto()         -> unless skip_pareto
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .adapters.process_channel import ProcessChannel
from .core.config import ClientConfig, HyperMapperEnv, build_parameter_set, require_environment
from .core.errors import ConfigError
from .core.history import EvaluationHistory
from .core.logging import get_logger
from .core.protocol import ProtocolEngine, RunSummary
from .evaluators import Evaluator, get_evaluator
from .postprocess import run_compute_pareto
from .scenario import output_dir, write_scenario

logger = get_logger(__name__)


@dataclass
class SessionResult:
    scenario_path: Path
    summary: RunSummary
    history: EvaluationHistory
    history_paths: tuple[Path, Path]
    pareto_returncode: int | None

    @property
    def ok(self) -> bool:
        return self.pareto_returncode in (None, 0)


def optimizer_command(env: HyperMapperEnv, scenario: Path, python_executable: str) -> list[str]:
    return [python_executable, str(env.optimizer_script), str(scenario)]


def run_session(
    config: ClientConfig,
    *,
    run_dir: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    evaluator: Evaluator | None = None,
) -> SessionResult:
    """Run a full client session.

    Args:
        config: Client configuration.
        run_dir: Directory the scenario paths are relative to (cwd if None).
        environ: Environment for validation and the child processes
            (``os.environ`` if None).
        evaluator: Overrides ``config.evaluator`` when given.

    Raises:
        HMClientError: any fatal error; the child is reaped before it propagates.
    """
    environ = dict(os.environ if environ is None else environ)
    hm_env = require_environment(environ)
    run_dir = Path.cwd() if run_dir is None else Path(run_dir).resolve()

    if evaluator is None:
        try:
            evaluator = get_evaluator(config.evaluator)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    params = build_parameter_set(config)
    for p in params:
        logger.info("Param", key=p.key, type=p.param_type.value, values=p.domain.as_values())

    sc = config.scenario
    scenario = write_scenario(config, run_dir)
    history = EvaluationHistory(sc.objectives, app_name=sc.app_name)

    with ProcessChannel.spawn(
        optimizer_command(hm_env, scenario, config.python_executable),
        env=environ,
        cwd=run_dir,
        max_line_bytes=config.protocol.max_line_bytes,
        read_timeout_s=config.protocol.read_timeout_s,
    ) as channel:
        engine = ProtocolEngine(
            channel,
            params,
            evaluator,
            sc.objectives,
            predictor=sc.predictor,
            workers=config.protocol.workers,
            on_evaluation=history.record,
        )
        summary = engine.run()

    history_paths = history.save(output_dir(config, run_dir))
    logger.info(
        "Session history saved",
        history=str(history_paths[0]),
        summary=str(history_paths[1]),
        n_evals=len(history),
    )

    pareto_returncode = None
    if not config.skip_pareto:
        pareto_returncode = run_compute_pareto(
            hm_env,
            scenario,
            config.python_executable,
            cwd=run_dir,
            process_env=environ,
        )

    return SessionResult(
        scenario_path=scenario,
        summary=summary,
        history=history,
        history_paths=history_paths,
        pareto_returncode=pareto_returncode,
    )
