"""Validation helpers shared by every gate and lifecycle operation.

The functions here hold no state and never mutate their arguments.  They
either return ``None`` or raise one of the errors from
:mod:`qsimctl.errors`, which is why the dispatcher can run them before any
backend call and guarantee that a failed operation leaves the simulator
state untouched.
"""

from __future__ import annotations

from collections import Counter
import math
import numbers
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from .errors import InvalidParameterError, InvalidQubitError, QubitUniquenessError
from .gates import PAULI_LABELS
from .qubit import Qubit

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .simulator import QuantumSimulator


def check_qubit(instance: "QuantumSimulator", qubit: Any) -> None:
    """Ensure ``qubit`` is a live handle owned by ``instance``.

    Raises
    ------
    InvalidQubitError
        If ``qubit`` is not a :class:`~qsimctl.qubit.Qubit`, belongs to a
        different instance or has already been released.
    """

    if not isinstance(qubit, Qubit):
        raise InvalidQubitError(qubit, f"Expected a Qubit handle, got {qubit!r}")
    if qubit.owner is not instance:
        raise InvalidQubitError(
            qubit.id,
            f"Qubit {qubit.id} belongs to instance {qubit.owner.id}, "
            f"not instance {instance.id}",
        )
    if not instance.owns(qubit):
        raise InvalidQubitError(
            qubit.id, f"Qubit {qubit.id} has been released from instance {instance.id}"
        )


def check_qubits(qubits: Sequence[Any]) -> None:
    """Ensure no qubit id appears more than once in ``qubits``.

    ``qubits`` is typically the concatenation ``controls + targets`` of one
    invocation, so a qubit used both as control and as target is rejected
    as well as two coinciding controls.  Ids are only unique within one
    instance, so callers run :func:`check_qubit` on every entry first.
    """

    ids = [q.id if isinstance(q, Qubit) else q for q in qubits]
    counts = Counter(ids)
    duplicates = [q for q, n in counts.items() if n > 1]
    if duplicates:
        raise QubitUniquenessError(duplicates)


def check_angle(angle: Any) -> None:
    """Reject numerically degenerate rotation angles.

    Any finite real number is accepted.  Range restrictions, where a gate
    has any, are the gate's own concern.
    """

    if isinstance(angle, bool) or not isinstance(angle, numbers.Real):
        raise InvalidParameterError(angle, f"Angle must be a real number, got {angle!r}")
    try:
        value = float(angle)
    except OverflowError:
        raise InvalidParameterError(
            angle, "Angle is outside the floating-point range"
        ) from None
    if math.isnan(value):
        raise InvalidParameterError(angle, "Angle is NaN")
    if math.isinf(value):
        raise InvalidParameterError(angle, f"Angle is infinite ({angle})")


def check_angles(angles: Iterable[Any]) -> None:
    for angle in angles:
        check_angle(angle)


def check_paulis(paulis: Sequence[str], targets: Sequence[Any]) -> None:
    """Validate the Pauli string of a multi-qubit exponential."""

    if len(paulis) != len(targets):
        raise InvalidParameterError(
            "".join(map(str, paulis)),
            f"Expected {len(targets)} Pauli label(s), got {len(paulis)}",
        )
    bad = [p for p in paulis if str(p).upper() not in PAULI_LABELS]
    if bad:
        raise InvalidParameterError(
            bad, f"Unknown Pauli label(s) {bad}; expected one of I, X, Y, Z"
        )
