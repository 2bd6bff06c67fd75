"""HyperMapper client-server line protocol.

One round, as seen from the client:

    child  -> "<label> <n>"                   request header
    child  -> "k1,k2,...,kN"                   parameter names, optimizer order
    child  -> "v1,v2,...,vN"          (x n)    request rows
    client -> "k1,...,kN,o1,...,oM[,Valid]"   response header
    client -> "v1,...,vN,f1,...,fM[,0|1]" (x n)

written as a single block and flushed once. The literal line
"End of HyperMapper" in place of a request header ends the session.

Parameter positions are re-resolved by key every round because the optimizer
is free to change the column order between rounds.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from .errors import ChannelIOError, EvaluationError, HMClientError, ProtocolViolation
from .logging import get_logger
from .params import InputParam, ParameterSet
from .types import BoundParams, EvalResult

logger = get_logger(__name__)

SENTINEL = "End of HyperMapper"
VALID_COLUMN = "Valid"


class LineChannel(Protocol):
    def read_line(self) -> str | None: ...

    def write_line(self, text: str) -> None: ...

    def flush(self) -> None: ...

    def close(self) -> Any: ...


class EngineState(Enum):
    AWAITING_HEADER = "awaiting_header"
    AWAITING_PARAM_NAMES = "awaiting_param_names"
    AWAITING_REQUEST_ROW = "awaiting_request_row"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class RunSummary:
    rounds: int
    evaluations: int


def split_fields(line: str) -> list[str]:
    """Split a comma-separated protocol line; one trailing comma is allowed."""
    tokens = line.split(",")
    if len(tokens) > 1 and not tokens[-1].strip():
        tokens.pop()
    return [t.strip() for t in tokens]


def parse_request_header(line: str) -> int:
    """Return the request count from a ``<label> <n>`` header line."""
    _, sep, rest = line.partition(" ")
    if not sep:
        raise ProtocolViolation(f"Malformed request header: {line!r}")
    try:
        n = int(rest.strip())
    except ValueError:
        raise ProtocolViolation(f"Request count is not an integer: {line!r}") from None
    if n < 0:
        raise ProtocolViolation(f"Negative request count: {line!r}")
    return n


def format_value(value: float) -> str:
    """Integral values without a decimal part, others in shortest round-trip form."""
    v = float(value)
    if math.isfinite(v) and v.is_integer():
        return str(int(v))
    return repr(v)


EvaluationHook = Callable[[int, BoundParams, EvalResult], None]


class ProtocolEngine:
    """Serves evaluation requests until the optimizer sends the sentinel."""

    def __init__(
        self,
        channel: LineChannel,
        params: ParameterSet,
        evaluator: Callable[[BoundParams], EvalResult],
        objective_names: Sequence[str],
        *,
        predictor: bool = True,
        workers: int = 1,
        on_evaluation: EvaluationHook | None = None,
    ) -> None:
        if not objective_names:
            raise ValueError("At least one objective name is required")
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self._channel = channel
        self._params = params
        self._evaluator = evaluator
        self.objective_names = tuple(objective_names)
        self.predictor = predictor
        self.workers = workers
        self._on_evaluation = on_evaluation

        self.state = EngineState.AWAITING_HEADER
        self.rounds = 0
        self.evaluations = 0

    def _read(self) -> str:
        line = self._channel.read_line()
        if line is None:
            raise ChannelIOError(
                f"Optimizer closed the stream while {self.state.value.replace('_', ' ')}"
            )
        logger.info("Received", round=self.rounds, line=line)
        return line

    def compose_header(self, keys: Sequence[str]) -> str:
        columns = list(keys) + list(self.objective_names)
        if self.predictor:
            columns.append(VALID_COLUMN)
        return ",".join(columns)

    def read_param_names(self) -> tuple[list[InputParam], str]:
        """Resolve this round's column order.

        Returns:
            (position -> parameter mapping, response header line)
        """
        self.state = EngineState.AWAITING_PARAM_NAMES
        keys = split_fields(self._read())
        if len(keys) != len(self._params):
            raise ProtocolViolation(
                f"Expected {len(self._params)} parameter names, got {len(keys)}: {keys}"
            )

        mapping: list[InputParam] = []
        for key in keys:
            param = self._params.find_by_key(key)
            if param is None:
                raise ProtocolViolation(f"Unknown parameter received: {key!r}")
            if any(p is param for p in mapping):
                raise ProtocolViolation(f"Parameter {key!r} announced twice")
            mapping.append(param)

        return mapping, self.compose_header(keys)

    def read_request_rows(
        self, mapping: Sequence[InputParam], n_requests: int
    ) -> list[tuple[list[str], BoundParams]]:
        self.state = EngineState.AWAITING_REQUEST_ROW
        rows = []
        for _ in range(n_requests):
            tokens = split_fields(self._read())
            self._params.bind(mapping, tokens)
            rows.append((tokens, self._params.snapshot()))
        return rows

    def _evaluate(self, snapshot: BoundParams) -> EvalResult:
        try:
            result = self._evaluator(snapshot)
        except HMClientError:
            raise
        except Exception as e:
            raise EvaluationError(f"Evaluator failed on {snapshot.to_dict()}: {e}") from e
        if result.n_obj != len(self.objective_names):
            raise EvaluationError(
                f"Evaluator returned {result.n_obj} objectives, "
                f"expected {len(self.objective_names)} ({', '.join(self.objective_names)})"
            )
        return result

    def evaluate_rows(self, snapshots: Sequence[BoundParams]) -> list[EvalResult]:
        """Evaluate independently; results come back in input order."""
        if self.workers == 1 or len(snapshots) < 2:
            return [self._evaluate(s) for s in snapshots]
        with ThreadPoolExecutor(max_workers=min(self.workers, len(snapshots))) as pool:
            return list(pool.map(self._evaluate, snapshots))

    def format_row(self, tokens: Sequence[str], result: EvalResult) -> str:
        fields = list(tokens) + [format_value(v) for v in result.F]
        if self.predictor:
            fields.append("1" if result.feasible else "0")
        return ",".join(fields)

    def serve_round(self, n_requests: int) -> str:
        """Handle one round after its header; returns the response block sent."""
        mapping, header = self.read_param_names()
        rows = self.read_request_rows(mapping, n_requests)

        with logger.timer("evaluate_round", round=self.rounds, n_requests=n_requests):
            results = self.evaluate_rows([snapshot for _, snapshot in rows])

        lines = [header]
        for (tokens, snapshot), result in zip(rows, results):
            lines.append(self.format_row(tokens, result))
            if self._on_evaluation is not None:
                self._on_evaluation(self.rounds, snapshot, result)

        response = "\n".join(lines) + "\n"
        logger.info("Response", round=self.rounds, text=response)
        self._channel.write_line(response)
        self._channel.flush()

        self.evaluations += len(rows)
        return response

    def step(self) -> bool:
        """Run one round. Returns False once the sentinel has been received."""
        self.state = EngineState.AWAITING_HEADER
        line = self._read()
        if line == SENTINEL:
            self.state = EngineState.TERMINATED
            logger.info("HyperMapper completed", rounds=self.rounds, evaluations=self.evaluations)
            return False

        n_requests = parse_request_header(line)
        self.serve_round(n_requests)
        self.rounds += 1
        self.state = EngineState.AWAITING_HEADER
        return True

    def run(self) -> RunSummary:
        """Serve rounds until the sentinel. The channel is closed on exit,
        whether the session ended normally or on a fatal error."""
        try:
            while self.step():
                pass
        finally:
            self._channel.close()
        return RunSummary(rounds=self.rounds, evaluations=self.evaluations)
