"""Pytest configuration for hmclient.

Engine tests run against an in-memory scripted channel. Session and CLI
tests need a HyperMapper installation; instead of the real optimizer we
generate a tiny fake HYPERMAPPER_HOME whose ``hypermapper.py`` replays a
fixed two-round exchange and records what the client answered.
"""

from __future__ import annotations

import os
import sys
import textwrap
from pathlib import Path

import pytest

from hmclient.core.errors import ChannelIOError
from hmclient.core.params import InputParam, ParameterSet
from hmclient.evaluators import ChakongHaimes

FAKE_HYPERMAPPER = textwrap.dedent(
    '''
    """Replays two rounds of the client-server protocol, then ends."""
    import json
    import sys
    from pathlib import Path

    scenario = json.loads(Path(sys.argv[1]).read_text())
    keys = list(scenario["input_parameters"])
    run_dir = Path(scenario["run_directory"])

    def ask(order, rows):
        print(f"Request {len(rows)}")
        print(",".join(order))
        for row in rows:
            print(",".join(str(v) for v in row))
        sys.stdout.flush()
        return [sys.stdin.readline() for _ in range(len(rows) + 1)]

    transcript = {
        "round_1": ask(keys, [(3, 4), (0, 0)]),
        "round_2": ask(list(reversed(keys)), [(1, 2)]),
    }
    (run_dir / "transcript.json").write_text(json.dumps(transcript))

    print("End of HyperMapper")
    sys.stdout.flush()
    '''
)

FAKE_COMPUTE_PARETO = textwrap.dedent(
    '''
    import os
    import sys
    from pathlib import Path

    Path(sys.argv[1]).with_name("pareto_done").write_text("ok")
    sys.exit(int(os.environ.get("FAKE_PARETO_EXIT", "0")))
    '''
)


class ScriptedChannel:
    """In-memory LineChannel fed from a list of lines."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = list(lines)
        self.written: list[str] = []
        self.flushes = 0
        self.closed = False
        self.close_calls = 0

    @property
    def unread(self) -> list[str]:
        return list(self._lines)

    def read_line(self) -> str | None:
        if self.closed:
            raise ChannelIOError("read after close")
        if not self._lines:
            return None
        return self._lines.pop(0)

    def write_line(self, text: str) -> None:
        if self.closed:
            raise ChannelIOError("write after close")
        self.written.append(text if text.endswith("\n") else text + "\n")

    def flush(self) -> None:
        if self.closed:
            raise ChannelIOError("flush after close")
        self.flushes += 1

    def close(self) -> int:
        self.closed = True
        self.close_calls += 1
        return 0


@pytest.fixture
def scripted_channel():
    """Factory for ScriptedChannel instances."""
    return ScriptedChannel


@pytest.fixture
def chakong_params() -> ParameterSet:
    return ParameterSet(
        [
            InputParam.integer("x0", -20, 20),
            InputParam.integer("x1", -20, 20),
        ]
    )


@pytest.fixture
def chakong() -> ChakongHaimes:
    return ChakongHaimes()


@pytest.fixture
def fake_hypermapper_home(tmp_path) -> Path:
    home = tmp_path / "hypermapper"
    scripts = home / "scripts"
    scripts.mkdir(parents=True)
    (scripts / "hypermapper.py").write_text(FAKE_HYPERMAPPER)
    (scripts / "compute_pareto.py").write_text(FAKE_COMPUTE_PARETO)
    return home


@pytest.fixture
def hypermapper_environ(fake_hypermapper_home) -> dict[str, str]:
    env = dict(os.environ)
    env["HYPERMAPPER_HOME"] = str(fake_hypermapper_home)
    env["PYTHONPATH"] = str(fake_hypermapper_home)
    env.pop("FAKE_PARETO_EXIT", None)
    return env


@pytest.fixture
def python_executable() -> str:
    return sys.executable
