"""Evaluator interface.

An evaluator maps a fully bound parameter snapshot to objective values and a
feasibility flag. It must not keep hidden state between calls: identical
inputs give identical results. Evaluators that need randomness take an
explicit seed and derive their generator from it per call.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..core.types import BoundParams, EvalResult


@runtime_checkable
class Evaluator(Protocol):
    def __call__(self, params: BoundParams) -> EvalResult:
        """Evaluate one candidate."""
        ...
