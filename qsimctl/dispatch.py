"""Validate-then-invoke protocol shared by every gate.

:func:`dispatch` is the only place that calls ``Backend.apply_gate``.  All
checks run first, so an operation either reaches the backend exactly once
or raises without touching the instance's state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict

from .checks import check_angles, check_paulis, check_qubit, check_qubits
from .errors import UnsupportedGateError
from .gates import GateKind, GateOperation
from .qubit import qubit_ids

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .simulator import QuantumSimulator

LOGGER = logging.getLogger(__name__)


def _check_exp(op: GateOperation) -> None:
    check_paulis(op.paulis, op.targets)


# Parameter checks beyond the generic angle screen, keyed by gate name.
_PARAMETER_CHECKS: Dict[str, Callable[[GateOperation], None]] = {
    "EXP": _check_exp,
}


def validate(instance: "QuantumSimulator", op: GateOperation) -> None:
    """Run every check for ``op`` against ``instance`` without side effects."""

    instance.ensure_live()
    # Ownership first: ids of different instances may coincide.
    for qubit in op.qubits:
        check_qubit(instance, qubit)
    if len(op.qubits) > 1:
        check_qubits(op.qubits)
    if op.kind is GateKind.PARAMETRIZED:
        check_angles(op.params)
        extra = _PARAMETER_CHECKS.get(op.name)
        if extra is not None:
            extra(op)
    backend = instance.backend
    if not backend.supports(op.name, len(op.controls)):
        raise UnsupportedGateError(op.name, len(op.controls), backend.name)


def dispatch(instance: "QuantumSimulator", op: GateOperation) -> None:
    """Apply ``op`` to ``instance`` after validating it.

    Controlled and uncontrolled forms of a gate share this path; the only
    difference reaching the backend is the ``controls`` argument, which is
    empty for the uncontrolled gate.
    """

    validate(instance, op)
    if instance.config.verbose_dispatch:
        LOGGER.info("[dispatch] instance=%d %s", instance.id, op)
    instance.backend.apply_gate(
        instance.id,
        op.name,
        qubit_ids(op.targets),
        controls=qubit_ids(op.controls),
        params=tuple(float(p) for p in op.params),
        paulis=tuple(str(p).upper() for p in op.paulis),
    )
