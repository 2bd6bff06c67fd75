"""Record of every evaluation served during a session.

Saved alongside HyperMapper's own output once the protocol terminates:
    <app>_client_history.jsonl  - one record per evaluation
    <app>_client_summary.json   - counts, objective ranges, local Pareto front
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
from pymoo.util.nds.non_dominated_sorting import NonDominatedSorting

from .errors import ConfigError
from .types import BoundParams, EvalResult


@dataclass
class EvaluationRecord:
    """Single served evaluation."""

    round: int
    params: dict[str, Any]
    F: np.ndarray
    feasible: bool

    def to_dict(self, objective_names: Sequence[str]) -> dict[str, Any]:
        return {
            "round": self.round,
            "params": self.params,
            "objectives": dict(zip(objective_names, self.F.tolist())),
            "feasible": self.feasible,
        }


class EvaluationHistory:
    """Accumulates evaluations in the order they were answered."""

    def __init__(self, objective_names: Sequence[str], app_name: str = "session") -> None:
        self.objective_names = list(objective_names)
        self.app_name = app_name
        self._records: list[EvaluationRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[EvaluationRecord]:
        return list(self._records)

    def record(self, round_index: int, params: BoundParams, result: EvalResult) -> None:
        """Engine hook: store one evaluation."""
        self._records.append(
            EvaluationRecord(
                round=round_index,
                params=params.to_dict(),
                F=result.F.copy(),
                feasible=result.feasible,
            )
        )

    def objective_matrix(self) -> np.ndarray:
        if not self._records:
            return np.zeros((0, len(self.objective_names)), dtype=np.float64)
        return np.stack([r.F for r in self._records], axis=0)

    def feasible_mask(self) -> np.ndarray:
        return np.array([r.feasible for r in self._records], dtype=bool)

    def pareto_indices(self, feasible_only: bool = True) -> np.ndarray:
        """Indices of non-dominated records (all objectives minimized)."""
        F = self.objective_matrix()
        candidates = np.arange(len(F))
        if feasible_only:
            candidates = candidates[self.feasible_mask()]
        if len(candidates) == 0:
            return np.array([], dtype=int)

        front = NonDominatedSorting().do(F[candidates], only_non_dominated_front=True)
        return np.sort(candidates[np.asarray(front, dtype=int)])

    def summary(self) -> dict[str, Any]:
        F = self.objective_matrix()
        feasible = self.feasible_mask()
        n = len(self._records)
        pareto = self.pareto_indices()
        return {
            "app_name": self.app_name,
            "objective_names": self.objective_names,
            "n_evals": n,
            "n_rounds": len({r.round for r in self._records}),
            "n_feasible": int(feasible.sum()),
            "feasible_fraction": float(feasible.sum() / n) if n > 0 else 0.0,
            "F_min": F.min(axis=0).tolist() if n > 0 else [],
            "F_max": F.max(axis=0).tolist() if n > 0 else [],
            "pareto_indices": pareto.tolist(),
            "pareto_front": [self._records[i].to_dict(self.objective_names) for i in pareto],
        }

    def save(self, outdir: Path) -> tuple[Path, Path]:
        """Write the JSONL history and JSON summary into ``outdir``."""
        outdir = Path(outdir)
        history_path = outdir / f"{self.app_name}_client_history.jsonl"
        summary_path = outdir / f"{self.app_name}_client_summary.json"

        try:
            outdir.mkdir(parents=True, exist_ok=True)
            with open(history_path, "w") as f:
                for rec in self._records:
                    f.write(json.dumps(rec.to_dict(self.objective_names), default=str) + "\n")
            with open(summary_path, "w") as f:
                json.dump(self.summary(), f, indent=2, default=str)
        except OSError as e:
            raise ConfigError(f"Unable to write session history to {outdir}: {e}") from e

        return history_path, summary_path
