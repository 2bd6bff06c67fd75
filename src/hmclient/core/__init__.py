"""Core module: parameters, evaluation types, protocol engine."""

from .errors import (
    ChannelIOError,
    ChannelTimeout,
    ConfigError,
    EvaluationError,
    HMClientError,
    LineTooLong,
    ProtocolViolation,
    SpawnError,
)
from .params import InputParam, IntegerDomain, ParameterSet, ParamType, ValueDomain
from .protocol import SENTINEL, EngineState, ProtocolEngine, RunSummary
from .types import BoundParams, EvalResult

__all__ = [
    "BoundParams",
    "EvalResult",
    "InputParam",
    "IntegerDomain",
    "ValueDomain",
    "ParamType",
    "ParameterSet",
    "ProtocolEngine",
    "EngineState",
    "RunSummary",
    "SENTINEL",
    "HMClientError",
    "ConfigError",
    "SpawnError",
    "ProtocolViolation",
    "EvaluationError",
    "ChannelIOError",
    "LineTooLong",
    "ChannelTimeout",
]
