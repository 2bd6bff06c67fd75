"""Core types for evaluation inputs and results.

This module defines the canonical types that form the interface between
the protocol engine and objective evaluators.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np


class BoundParams(Mapping):
    """Immutable snapshot of parameter values, keyed by parameter key.

    Iteration follows the ParameterSet construction order, not the order
    the optimizer used on the wire.
    """

    __slots__ = ("_items", "_index")

    def __init__(self, items: Iterable[tuple[str, Any]]) -> None:
        self._items: tuple[tuple[str, Any], ...] = tuple(items)
        self._index: dict[str, Any] = dict(self._items)

    def __getitem__(self, key: str) -> Any:
        return self._index[key]

    def __iter__(self) -> Iterator[str]:
        return (k for k, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def values_list(self) -> list[Any]:
        """Values in construction order."""
        return [v for _, v in self._items]

    def to_dict(self) -> dict[str, Any]:
        return dict(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BoundParams):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"BoundParams({self.to_dict()!r})"


@dataclass
class EvalResult:
    """Result from evaluating one candidate.

    Attributes:
        F: Objective values, aligned with the session objective names.
        feasible: Constraint-satisfaction flag reported when the feasibility
            predictor is enabled.
        diag: Free-form diagnostics (not sent to the optimizer).
    """

    F: np.ndarray
    feasible: bool = True
    diag: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.F = np.atleast_1d(np.asarray(self.F, dtype=np.float64))
        self.feasible = bool(self.feasible)

    @property
    def n_obj(self) -> int:
        return int(self.F.shape[0])
