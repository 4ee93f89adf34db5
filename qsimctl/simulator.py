"""Simulator instances: lifecycle, qubit management and gate entry points."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from .backends import Backend
from .checks import check_paulis, check_qubit, check_qubits
from .dispatch import dispatch
from .errors import (
    InvalidInstanceError,
    InvalidParameterError,
    InvalidQubitError,
    ReleasedQubitNotZeroError,
)
from .gates import GateOperation
from .qubit import Qubit, as_qubit_list
from .registry import InstanceRegistry, default_registry

LOGGER = logging.getLogger(__name__)


class QuantumSimulator:
    """One independent simulation session.

    Constructing the object allocates a fresh state with zero qubits in the
    selected backend.  The numeric state lives in the backend and is only
    referenced by :attr:`id`.  Call :meth:`destroy` (or use the instance as a
    context manager) to release it; every later operation raises
    :class:`~qsimctl.errors.InvalidInstanceError`.

    Parameters
    ----------
    backend:
        Backend name (``"statevector"`` or ``"tableau"``), a constructed
        :class:`~qsimctl.backends.Backend` or ``None`` for the configured
        default.
    registry:
        Registry that tracks the instance.  Defaults to the process-wide
        registry returned by :func:`~qsimctl.registry.default_registry`.

    Example
    -------
    >>> with QuantumSimulator() as sim:
    ...     q0, q1 = sim.allocate_qubits(2)
    ...     sim.h(q0)
    ...     sim.x(q1, controls=[q0])
    """

    def __init__(
        self,
        backend: str | Backend | None = None,
        *,
        registry: InstanceRegistry | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.config = self.registry.config
        self._qubits: Dict[int, Qubit] = {}
        self._lock = threading.Lock()
        self._live = False
        self.backend, self.id = self.registry.open(self, backend)
        self._live = True

    def __repr__(self) -> str:
        state = "live" if self._live else "destroyed"
        return (
            f"QuantumSimulator(id={self.id}, backend='{self.backend.name}', "
            f"qubits={len(self._qubits)}, {state})"
        )

    def __enter__(self) -> "QuantumSimulator":
        return self

    def __exit__(self, *exc: Any) -> None:
        if self._live:
            self.destroy()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def live(self) -> bool:
        return self._live

    def ensure_live(self) -> None:
        """Raise :class:`InvalidInstanceError` once the instance is destroyed."""
        if not self._live:
            raise InvalidInstanceError(
                self.id, f"Simulator instance {self.id} has been destroyed"
            )

    def destroy(self) -> None:
        """Release the backend state held by this instance."""

        self.ensure_live()
        self.registry.close(self)
        with self._lock:
            self._live = False
            self._qubits.clear()
        LOGGER.debug("Destroyed simulator instance %d", self.id)

    # ------------------------------------------------------------------
    # Qubit management
    # ------------------------------------------------------------------
    @property
    def qubit_count(self) -> int:
        return len(self._qubits)

    @property
    def qubits(self) -> Tuple[Qubit, ...]:
        """Currently allocated qubits in allocation order."""
        return tuple(self._qubits.values())

    def owns(self, qubit: Qubit) -> bool:
        """Return whether ``qubit`` is a currently allocated handle of this instance."""
        return self._qubits.get(qubit.id) is qubit

    def allocate_qubit(self) -> Qubit:
        """Add a qubit in ``|0>`` and return its handle."""

        self.ensure_live()
        with self._lock:
            qid = self.backend.allocate_qubit(self.id)
            qubit = Qubit(qid, self)
            self._qubits[qid] = qubit
        LOGGER.debug("Instance %d allocated qubit %d", self.id, qid)
        return qubit

    def allocate_qubits(self, count: int) -> List[Qubit]:
        """Allocate ``count`` qubits.

        Either all qubits are allocated or, when the backend runs out of
        resources part way, the ones obtained so far are released again
        before the error propagates.
        """

        if count < 0:
            raise InvalidParameterError(count, f"Cannot allocate {count} qubits")
        allocated: List[Qubit] = []
        try:
            for _ in range(count):
                allocated.append(self.allocate_qubit())
        except Exception:
            for qubit in reversed(allocated):
                self.release_qubit(qubit)
            raise
        return allocated

    def release_qubit(self, qubit: Qubit) -> None:
        """Return ``qubit`` to the backend; the handle becomes invalid."""

        self.release_qubits([qubit])

    def release_qubits(self, qubits: Sequence[Qubit]) -> None:
        """Release several qubits after validating all of them."""

        self.ensure_live()
        qubits = as_qubit_list(qubits)
        for qubit in qubits:
            check_qubit(self, qubit)
        check_qubits(qubits)
        if self.config.release_requires_zero:
            for qubit in qubits:
                p1 = self.backend.probability(self.id, qubit.id)
                if p1 > self.config.zero_tolerance:
                    raise ReleasedQubitNotZeroError(qubit.id, p1)
        with self._lock:
            for qubit in qubits:
                self.backend.release_qubit(self.id, qubit.id)
                del self._qubits[qubit.id]
                LOGGER.debug("Instance %d released qubit %d", self.id, qubit.id)

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------
    def apply(self, op: GateOperation) -> None:
        """Validate ``op`` and hand it to the backend in a single call."""
        dispatch(self, op)

    def gate(
        self,
        name: str,
        targets: Qubit | Sequence[Qubit],
        *params: float,
        controls: Qubit | Sequence[Qubit] | None = None,
        paulis: Sequence[str] = (),
    ) -> None:
        """Apply the gate called ``name``; see :data:`qsimctl.gates.GATES`."""
        self.apply(
            GateOperation.build(name, targets, *params, controls=controls, paulis=paulis)
        )

    def i(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("I", target, controls=controls)

    def x(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("X", target, controls=controls)

    def y(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("Y", target, controls=controls)

    def z(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("Z", target, controls=controls)

    def h(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("H", target, controls=controls)

    def s(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("S", target, controls=controls)

    def sdg(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("SDG", target, controls=controls)

    def t(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("T", target, controls=controls)

    def tdg(self, target: Qubit, *, controls: Sequence[Qubit] | None = None) -> None:
        self.gate("TDG", target, controls=controls)

    def swap(
        self, a: Qubit, b: Qubit, *, controls: Sequence[Qubit] | None = None
    ) -> None:
        self.gate("SWAP", [a, b], controls=controls)

    def rx(
        self, angle: float, target: Qubit, *, controls: Sequence[Qubit] | None = None
    ) -> None:
        self.gate("RX", target, angle, controls=controls)

    def ry(
        self, angle: float, target: Qubit, *, controls: Sequence[Qubit] | None = None
    ) -> None:
        self.gate("RY", target, angle, controls=controls)

    def rz(
        self, angle: float, target: Qubit, *, controls: Sequence[Qubit] | None = None
    ) -> None:
        self.gate("RZ", target, angle, controls=controls)

    def r1(
        self, angle: float, target: Qubit, *, controls: Sequence[Qubit] | None = None
    ) -> None:
        """Phase rotation ``diag(1, exp(i * angle))``."""
        self.gate("R1", target, angle, controls=controls)

    def exp(
        self,
        paulis: Sequence[str] | str,
        angle: float,
        targets: Sequence[Qubit],
        *,
        controls: Sequence[Qubit] | None = None,
    ) -> None:
        """Apply ``exp(i * angle * P)`` where ``P`` is the Pauli string ``paulis``."""
        self.gate("EXP", targets, angle, controls=controls, paulis=paulis)

    # ------------------------------------------------------------------
    # Measurement and inspection
    # ------------------------------------------------------------------
    def measure(self, qubit: Qubit) -> int:
        """Measure ``qubit`` in the computational basis and return ``0`` or ``1``."""

        self.ensure_live()
        check_qubit(self, qubit)
        return self.backend.measure(self.id, qubit.id)

    def reset(self, qubit: Qubit) -> None:
        self.ensure_live()
        check_qubit(self, qubit)
        self.backend.reset(self.id, qubit.id)

    def probability(self, qubit: Qubit) -> float:
        """Return the probability of measuring ``qubit`` as ``1``."""

        self.ensure_live()
        check_qubit(self, qubit)
        return self.backend.probability(self.id, qubit.id)

    def _joint_arguments(
        self, paulis: Sequence[str] | str, qubits: Sequence[Qubit]
    ) -> Tuple[Tuple[str, ...], Tuple[int, ...]]:
        self.ensure_live()
        qubits = as_qubit_list(qubits)
        if not qubits:
            raise InvalidParameterError(
                qubits, "Joint measurement requires at least one qubit"
            )
        for qubit in qubits:
            check_qubit(self, qubit)
        check_qubits(qubits)
        labels = tuple(paulis)
        check_paulis(labels, qubits)
        return tuple(str(p).upper() for p in labels), tuple(q.id for q in qubits)

    def joint_probability(
        self, paulis: Sequence[str] | str, qubits: Sequence[Qubit]
    ) -> float:
        """Return the probability that measuring the Pauli product yields ``1``.

        ``paulis[k]`` acts on ``qubits[k]``.  Outcome ``1`` is the ``-1``
        eigenspace, e.g. odd parity for ``"ZZ"``.  A result of ``0.0`` or
        ``1.0`` means the observable has a definite value.
        """

        labels, ids = self._joint_arguments(paulis, qubits)
        return self.backend.joint_probability(self.id, labels, ids)

    def measure_joint(
        self, paulis: Sequence[str] | str, qubits: Sequence[Qubit]
    ) -> int:
        """Measure the Pauli product ``paulis`` on ``qubits`` and collapse the state."""

        labels, ids = self._joint_arguments(paulis, qubits)
        return self.backend.measure_joint(self.id, labels, ids)

    def statevector(self, qubits: Sequence[Qubit] | None = None) -> np.ndarray:
        """Return the amplitudes with ``qubits[0]`` as least significant bit.

        ``qubits`` must list every allocated qubit exactly once and defaults
        to allocation order.
        """

        self.ensure_live()
        order = list(self._qubits.values()) if qubits is None else as_qubit_list(qubits)
        for qubit in order:
            check_qubit(self, qubit)
        check_qubits(order)
        missing = [q.id for q in self._qubits.values() if q not in order]
        if missing:
            raise InvalidQubitError(
                missing, f"Statevector order is missing allocated qubits {missing}"
            )
        return self.backend.statevector(self.id, [q.id for q in order])
