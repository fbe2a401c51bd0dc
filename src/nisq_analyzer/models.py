# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Parameter model and read-only catalogue entities.

Catalogue entities are immutable values referring to each other by
identifier only; navigation goes through a
:class:`~nisq_analyzer.catalogue.CatalogueReader`.

Parameter bindings cross every boundary as ``{name: str}``. The core
never interprets the values; typing is left to the rule engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping
from uuid import UUID

from nisq_analyzer.utils.common import as_uuid


#: A binding of parameter names to their textual values.
ParameterBinding = dict[str, str]


class ParameterKind(str, Enum):
    """
    Declared type of an input parameter.

    Attributes
    ----------
    INTEGER
        Whole number.
    FLOAT
        Real number.
    STRING
        Free text or symbolic value.
    """

    INTEGER = "Integer"
    FLOAT = "Float"
    STRING = "String"


@dataclass(frozen=True)
class Parameter:
    """
    Declaration of a named input parameter.

    Parameters are identified by name and kind; the description is
    informational and does not take part in equality.

    Parameters
    ----------
    name : str
        Parameter name as referenced by selection rules and bindings.
    kind : ParameterKind
        Declared value type.
    description : str, optional
        Human-readable explanation.
    """

    name: str
    kind: ParameterKind = ParameterKind.STRING
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Parameter name must not be empty")
        if not isinstance(self.kind, ParameterKind):
            object.__setattr__(self, "kind", ParameterKind(self.kind))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        d: dict[str, Any] = {"name": self.name, "kind": self.kind.value}
        if self.description:
            d["description"] = self.description
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Parameter:
        """Deserialize from dictionary."""
        return cls(
            name=str(data["name"]),
            kind=ParameterKind(data.get("kind", ParameterKind.STRING.value)),
            description=str(data.get("description", "")),
        )


def as_binding(values: Mapping[str, Any] | None) -> ParameterBinding:
    """
    Copy a mapping into a parameter binding.

    Scalar values are rendered with ``str``; the copy decouples the
    binding from later mutation of the caller's mapping.

    Parameters
    ----------
    values : Mapping or None
        Parameter values keyed by name.

    Returns
    -------
    dict
        New ``{name: str}`` binding.

    Raises
    ------
    TypeError
        If a key is not a string or a value is not a scalar.
    """
    binding: ParameterBinding = {}
    for name, value in (values or {}).items():
        if not isinstance(name, str):
            raise TypeError(f"Parameter names must be strings, got {name!r}")
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise TypeError(
                f"Parameter {name!r} must be a string or number, "
                f"got {type(value).__name__}"
            )
        binding[name] = value if isinstance(value, str) else str(value)
    return binding


def missing_parameters(
    required: Iterable[Parameter],
    binding: Mapping[str, str],
) -> set[str]:
    """Names of required parameters absent from ``binding``."""
    return {p.name for p in required if p.name not in binding}


# =============================================================================
# Catalogue entities
# =============================================================================


def _parameters(items: Iterable[Any]) -> tuple[Parameter, ...]:
    return tuple(
        p if isinstance(p, Parameter) else Parameter.from_dict(p) for p in items
    )


@dataclass(frozen=True)
class Algorithm:
    """
    Abstract quantum algorithm.

    Parameters
    ----------
    id : UUID
        Algorithm identifier.
    name : str
        Display name.
    input_parameters : tuple of Parameter
        Ordered input parameter declarations.
    """

    id: UUID
    name: str
    input_parameters: tuple[Parameter, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", as_uuid(self.id))
        object.__setattr__(self, "input_parameters", _parameters(self.input_parameters))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Algorithm:
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            input_parameters=tuple(data.get("input_parameters", ())),
        )


@dataclass(frozen=True)
class Implementation:
    """
    Concrete implementation of an algorithm.

    Parameters
    ----------
    id : UUID
        Implementation identifier.
    name : str
        Display name.
    algorithm_id : UUID
        Implemented algorithm.
    programming_language : str
        Language tag used for executor resolution.
    sdk : str
        SDK name used for executor resolution.
    file_location : str
        Opaque URL understood by the matching executor plugin.
    selection_rule : str
        Prolog predicate deciding whether the implementation can run
        for a given binding.
    input_parameters : tuple of Parameter
        Implementation-specific input parameter declarations.
    """

    id: UUID
    name: str
    algorithm_id: UUID
    programming_language: str
    sdk: str
    file_location: str
    selection_rule: str
    input_parameters: tuple[Parameter, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", as_uuid(self.id))
        object.__setattr__(self, "algorithm_id", as_uuid(self.algorithm_id))
        object.__setattr__(self, "input_parameters", _parameters(self.input_parameters))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Implementation:
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            algorithm_id=data["algorithm_id"],
            programming_language=str(data["programming_language"]),
            sdk=str(data["sdk"]),
            file_location=str(data.get("file_location", "")),
            selection_rule=str(data.get("selection_rule", "")),
            input_parameters=tuple(data.get("input_parameters", ())),
        )


@dataclass(frozen=True)
class Qpu:
    """
    Quantum processing unit as reported by its vendor.

    Parameters
    ----------
    id : UUID
        QPU identifier.
    name : str
        Backend name understood by the executor (e.g. "ibmq_lima").
    qubit_count : int
        Number of physical qubits.
    t1_time : float
        Relaxation time.
    max_gate_time : float
        Longest gate duration, in the same unit as ``t1_time``.
    sdks : tuple of str
        SDKs able to target this QPU.
    provider : str, optional
        Vendor name.
    """

    id: UUID
    name: str
    qubit_count: int
    t1_time: float
    max_gate_time: float
    sdks: tuple[str, ...] = ()
    provider: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", as_uuid(self.id))
        object.__setattr__(self, "sdks", tuple(self.sdks))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Qpu:
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            qubit_count=int(data["qubit_count"]),
            t1_time=float(data["t1_time"]),
            max_gate_time=float(data["max_gate_time"]),
            sdks=tuple(str(s) for s in data.get("sdks", ())),
            provider=str(data.get("provider", "")),
        )
