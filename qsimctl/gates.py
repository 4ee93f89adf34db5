"""Gate table and the tagged gate operation used by the dispatcher.

Gates are not modelled as one class per gate.  Every gate is an entry in
:data:`GATES` describing its kind, arity and adjoint, and a
:class:`GateOperation` pairs such an entry with concrete targets,
parameters and an optional control set.  Controlled variants (CNOT, CZ,
Toffoli, controlled rotations) are the same operation with a non-empty
``controls`` tuple.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Tuple

from .errors import InvalidParameterError, UnsupportedGateError
from .qubit import Qubit, as_qubit_list


class GateKind(Enum):
    """Variants of gate operations understood by the dispatcher."""

    FIXED = "fixed"
    PARAMETRIZED = "parametrized"


@dataclass(frozen=True)
class GateSpec:
    """Static description of a named gate.

    Attributes
    ----------
    name:
        Upper-case identifier passed to the backend.
    kind:
        Whether the gate takes continuous parameters.
    num_targets:
        Number of target qubits, or ``None`` when the gate acts on any
        non-zero number of targets (``EXP``).
    num_params:
        Number of angle parameters.
    adjoint:
        Name of the inverse gate.  For parametrized gates the inverse is the
        same gate with negated angles and ``adjoint`` equals ``name``.
    """

    name: str
    kind: GateKind
    num_targets: int | None = 1
    num_params: int = 0
    adjoint: str | None = None

    @property
    def parametrized(self) -> bool:
        return self.kind is GateKind.PARAMETRIZED

    @property
    def inverse_name(self) -> str:
        return self.adjoint or self.name


def _fixed(name: str, *, num_targets: int = 1, adjoint: str | None = None) -> GateSpec:
    return GateSpec(name, GateKind.FIXED, num_targets, 0, adjoint)


def _rotation(name: str, *, num_targets: int | None = 1) -> GateSpec:
    return GateSpec(name, GateKind.PARAMETRIZED, num_targets, 1, name)


GATES: Dict[str, GateSpec] = {
    spec.name: spec
    for spec in (
        _fixed("I"),
        _fixed("X"),
        _fixed("Y"),
        _fixed("Z"),
        _fixed("H"),
        _fixed("S", adjoint="SDG"),
        _fixed("SDG", adjoint="S"),
        _fixed("T", adjoint="TDG"),
        _fixed("TDG", adjoint="T"),
        _fixed("SWAP", num_targets=2),
        _rotation("RX"),
        _rotation("RY"),
        _rotation("RZ"),
        _rotation("R1"),
        _rotation("EXP", num_targets=None),
    )
}

_ALIASES: Dict[str, str] = {
    "ID": "I",
    "SADJ": "SDG",
    "TADJ": "TDG",
    "P": "R1",
    "PHASE": "R1",
}

PAULI_LABELS = frozenset("IXYZ")


def gate_spec(name: str) -> GateSpec:
    """Return the :class:`GateSpec` registered for ``name``.

    Lookup is case insensitive and honours a handful of common aliases
    (``SAdj`` for ``SDG``, ``P`` for ``R1`` and so on).  Unknown names raise
    :class:`~qsimctl.errors.UnsupportedGateError`.
    """

    key = str(name).upper()
    key = _ALIASES.get(key, key)
    try:
        return GATES[key]
    except KeyError:
        raise UnsupportedGateError(str(name)) from None


@dataclass(frozen=True)
class GateOperation:
    """A gate bound to its qubits and parameters.

    ``params`` holds the numeric angles.  ``paulis`` is only used by ``EXP``
    and lists one Pauli label per target.
    """

    spec: GateSpec
    targets: Tuple[Any, ...]
    params: Tuple[Any, ...] = ()
    controls: Tuple[Any, ...] = ()
    paulis: Tuple[str, ...] = field(default=())

    @classmethod
    def build(
        cls,
        name: str,
        targets: Any,
        *params: Any,
        controls: Any = None,
        paulis: Any = (),
    ) -> "GateOperation":
        """Create an operation for the gate called ``name``.

        Arity is checked here because it is a property of the gate table
        rather than of the qubits involved.  Qubit and numeric validation is
        left to :func:`qsimctl.dispatch.dispatch`.
        """

        spec = gate_spec(name)
        target_list = as_qubit_list(targets)
        if spec.num_targets is None:
            if not target_list:
                raise InvalidParameterError(
                    target_list, f"{spec.name} requires at least one target qubit"
                )
        elif len(target_list) != spec.num_targets:
            raise InvalidParameterError(
                len(target_list),
                f"{spec.name} acts on {spec.num_targets} qubit(s), "
                f"got {len(target_list)}",
            )
        if len(params) != spec.num_params:
            raise InvalidParameterError(
                params,
                f"{spec.name} takes {spec.num_params} parameter(s), got {len(params)}",
            )
        paulis = tuple(paulis)
        if paulis and spec.name != "EXP":
            raise InvalidParameterError(
                "".join(map(str, paulis)), f"{spec.name} does not take Pauli labels"
            )
        return cls(
            spec=spec,
            targets=tuple(target_list),
            params=tuple(params),
            controls=tuple(as_qubit_list(controls)),
            paulis=tuple(paulis),
        )

    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def kind(self) -> GateKind:
        return self.spec.kind

    @property
    def is_controlled(self) -> bool:
        return bool(self.controls)

    @property
    def qubits(self) -> Tuple[Any, ...]:
        """Controls followed by targets, the order used for uniqueness checks."""
        return self.controls + self.targets

    def controlled(self, controls: Qubit | Any) -> "GateOperation":
        """Return this operation with ``controls`` appended to its control set."""
        return replace(self, controls=self.controls + tuple(as_qubit_list(controls)))

    def adjoint(self) -> "GateOperation":
        """Return the inverse operation acting on the same qubits."""
        if self.spec.parametrized:
            return replace(self, params=tuple(-p for p in self.params))
        return replace(self, spec=GATES[self.spec.inverse_name])

    def __str__(self) -> str:
        parts = [self.name]
        if self.params:
            parts.append("(" + ", ".join(str(p) for p in self.params) + ")")
        if self.paulis:
            parts.append("[" + "".join(self.paulis) + "]")
        ctrl = f" ctrl={[getattr(q, 'id', q) for q in self.controls]}" if self.controls else ""
        return f"{''.join(parts)} {[getattr(q, 'id', q) for q in self.targets]}{ctrl}"
