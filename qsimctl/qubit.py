from __future__ import annotations

"""Qubit handles issued by simulator instances."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, List, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .simulator import QuantumSimulator


@dataclass(frozen=True, eq=False)
class Qubit:
    """Opaque handle for a logical qubit.

    Handles compare by identity.  The numeric ``id`` is only meaningful to
    the owning instance's backend and may be handed out again after the
    qubit is released, so two handles with equal ids are not the same qubit.
    """

    id: int
    owner: "QuantumSimulator" = field(repr=False)

    def __repr__(self) -> str:
        return f"Qubit(id={self.id}, instance={self.owner.id})"


QubitSet = Sequence[Qubit]


def qubit_ids(qubits: Iterable[Qubit]) -> Tuple[int, ...]:
    """Return the backend ids of ``qubits`` in order."""

    return tuple(q.id for q in qubits)


def as_qubit_list(qubits: Any) -> List[Any]:
    """Normalise a single qubit, an iterable of qubits or ``None`` to a list.

    Non-iterable values are wrapped rather than rejected so that the
    validation layer can report them as invalid qubits.
    """

    if qubits is None:
        return []
    if isinstance(qubits, (Qubit, str, bytes)) or not isinstance(qubits, Iterable):
        return [qubits]
    return list(qubits)
