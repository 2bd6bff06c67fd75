"""Typed input parameters shared between the client and the optimizer.

A ParameterSet is built once per session and never reconstructed. The
optimizer may announce the parameters in a different order every round, so
callers resolve positions through ``find_by_key`` each time instead of
assuming the construction order.

Domains form a closed variant:
    INTEGER              -> IntegerDomain(low, high)
    ORDINAL, CATEGORICAL -> ValueDomain(values)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .errors import ProtocolViolation
from .types import BoundParams


class ParamType(str, Enum):
    """Parameter kinds understood by HyperMapper."""

    INTEGER = "integer"
    ORDINAL = "ordinal"
    CATEGORICAL = "categorical"


@dataclass(frozen=True)
class IntegerDomain:
    """Inclusive integer range."""

    low: int
    high: int

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(f"Integer domain low {self.low} exceeds high {self.high}")

    def as_values(self) -> list[int]:
        return [self.low, self.high]


@dataclass(frozen=True)
class ValueDomain:
    """Explicit, ordered list of admissible values."""

    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        if not self.values:
            raise ValueError("Value domain must not be empty")

    def as_values(self) -> list[Any]:
        return list(self.values)


Domain = Union[IntegerDomain, ValueDomain]

_DOMAIN_FOR_TYPE: dict[ParamType, type] = {
    ParamType.INTEGER: IntegerDomain,
    ParamType.ORDINAL: ValueDomain,
    ParamType.CATEGORICAL: ValueDomain,
}


def _parse_number(token: str) -> int | float:
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        raise ProtocolViolation(f"Expected a numeric value, got {token!r}") from None


class InputParam:
    """A named parameter with a typed domain and a mutable current value."""

    def __init__(self, key: str, param_type: ParamType | str, domain: Domain) -> None:
        if not key:
            raise ValueError("Parameter key must be a non-empty string")
        param_type = ParamType(param_type)
        expected = _DOMAIN_FOR_TYPE[param_type]
        if not isinstance(domain, expected):
            raise TypeError(
                f"Parameter {key!r} of type {param_type.value} needs a "
                f"{expected.__name__}, got {type(domain).__name__}"
            )
        self._key = key
        self._type = param_type
        self._domain = domain
        self.value: Any = None

    @classmethod
    def integer(cls, key: str, low: int, high: int) -> InputParam:
        return cls(key, ParamType.INTEGER, IntegerDomain(int(low), int(high)))

    @classmethod
    def ordinal(cls, key: str, values: Iterable[Any]) -> InputParam:
        return cls(key, ParamType.ORDINAL, ValueDomain(tuple(values)))

    @classmethod
    def categorical(cls, key: str, values: Iterable[Any]) -> InputParam:
        return cls(key, ParamType.CATEGORICAL, ValueDomain(tuple(values)))

    @property
    def key(self) -> str:
        return self._key

    @property
    def param_type(self) -> ParamType:
        return self._type

    @property
    def domain(self) -> Domain:
        return self._domain

    def decode(self, token: str) -> Any:
        """Convert a protocol token into a value from this parameter's domain.

        Raises:
            ProtocolViolation: if the token is malformed or outside the domain.
        """
        token = token.strip()
        if self._type is ParamType.INTEGER:
            number = _parse_number(token)
            if isinstance(number, float):
                if not number.is_integer():
                    raise ProtocolViolation(
                        f"Parameter {self._key!r} expects an integer, got {token!r}"
                    )
                number = int(number)
            if not self._domain.low <= number <= self._domain.high:
                raise ProtocolViolation(
                    f"Value {number} for {self._key!r} outside "
                    f"[{self._domain.low}, {self._domain.high}]"
                )
            return number

        if self._type is ParamType.ORDINAL:
            number = _parse_number(token)
            for candidate in self._domain.values:
                if candidate == number:
                    return candidate
            raise ProtocolViolation(f"Value {token!r} is not an ordinal level of {self._key!r}")

        for candidate in self._domain.values:
            if str(candidate) == token:
                return candidate
        raise ProtocolViolation(f"Value {token!r} is not a category of {self._key!r}")

    def __repr__(self) -> str:
        return (
            f"InputParam(key={self._key!r}, type={self._type.value}, "
            f"values={self._domain.as_values()!r}, value={self.value!r})"
        )


class ParameterSet:
    """Ordered collection of InputParam with unique keys."""

    def __init__(self, params: Iterable[InputParam]) -> None:
        self._params: tuple[InputParam, ...] = tuple(params)
        seen: set[str] = set()
        for p in self._params:
            if p.key in seen:
                raise ValueError(f"Duplicate parameter key: {p.key!r}")
            seen.add(p.key)

    def __len__(self) -> int:
        return len(self._params)

    def __iter__(self) -> Iterator[InputParam]:
        return iter(self._params)

    def __getitem__(self, index: int) -> InputParam:
        return self._params[index]

    @property
    def keys(self) -> list[str]:
        return [p.key for p in self._params]

    def find_by_key(self, key: str) -> InputParam | None:
        """Return the parameter whose key equals ``key`` exactly, or None."""
        for p in self._params:
            if p.key == key:
                return p
        return None

    def bind(self, mapping: Sequence[InputParam], tokens: Sequence[str]) -> None:
        """Decode ``tokens`` and store them on the parameters at the same positions."""
        if len(tokens) != len(mapping):
            raise ProtocolViolation(
                f"Expected {len(mapping)} values, got {len(tokens)}: {list(tokens)!r}"
            )
        decoded = [param.decode(token) for param, token in zip(mapping, tokens)]
        for param, value in zip(mapping, decoded):
            param.value = value

    def snapshot(self) -> BoundParams:
        """Read-only copy of the current values in construction order."""
        return BoundParams((p.key, p.value) for p in self._params)

    def __repr__(self) -> str:
        return f"ParameterSet({list(self._params)!r})"
