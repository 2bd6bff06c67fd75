"""Objective evaluators and their registry."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .base import Evaluator
from .chakong_haimes import ChakongHaimes

_REGISTRY: dict[str, Callable[..., Evaluator]] = {
    "chakong_haimes": ChakongHaimes,
}


def register_evaluator(name: str, factory: Callable[..., Evaluator]) -> None:
    """Make ``factory`` available to ``get_evaluator`` under ``name``."""
    if name in _REGISTRY:
        raise ValueError(f"Evaluator {name!r} is already registered")
    _REGISTRY[name] = factory


def get_evaluator(name: str, **kwargs: Any) -> Evaluator:
    """Instantiate a registered evaluator by name."""
    try:
        factory = _REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown evaluator {name!r}; available: {', '.join(sorted(_REGISTRY))}"
        ) from None
    return factory(**kwargs)


def available_evaluators() -> list[str]:
    return sorted(_REGISTRY)


__all__ = [
    "Evaluator",
    "ChakongHaimes",
    "register_evaluator",
    "get_evaluator",
    "available_evaluators",
]
