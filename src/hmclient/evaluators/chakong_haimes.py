"""Chakong-Haimes two-objective benchmark.

    f1 = 2 + (x0 - 2)^2 + (x1 - 1)^2
    f2 = 9 * x0 - (x1 - 1)^2
    c1 = x0^2 + x1^2 <= 255
    c2 = x0 - 3 * x1 + 10 <= 0
    feasible = c1 and c2
"""

from __future__ import annotations

import numpy as np

from ..core.types import BoundParams, EvalResult

OBJECTIVE_NAMES = ("f1_value", "f2_value")


class ChakongHaimes:
    """Benchmark evaluator over two integer parameters."""

    def __init__(self, x0_key: str = "x0", x1_key: str = "x1") -> None:
        self.x0_key = x0_key
        self.x1_key = x1_key

    def __call__(self, params: BoundParams) -> EvalResult:
        x0 = int(params[self.x0_key])
        x1 = int(params[self.x1_key])

        f1 = 2 + (x0 - 2) ** 2 + (x1 - 1) ** 2
        f2 = 9 * x0 - (x1 - 1) ** 2

        g = np.array([x0 * x0 + x1 * x1 - 255, x0 - 3 * x1 + 10], dtype=np.float64)

        return EvalResult(
            F=np.array([f1, f2], dtype=np.float64),
            feasible=bool(np.all(g <= 0)),
            diag={"G": g.tolist()},
        )
