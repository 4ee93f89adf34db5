from __future__ import annotations

"""Dense statevector backend built on numpy.

Each instance is stored as a complex tensor with one axis of length two per
allocated qubit.  Gate matrices are taken from Qiskit's standard gate
library; controlled gates are applied by restricting the control axes to
``|1>`` and contracting the gate with the remaining target axes, so no
controlled matrix is ever materialised.
"""

from dataclasses import dataclass, field
from functools import lru_cache, reduce
import logging
from typing import Dict, List, Sequence

import numpy as np
from qiskit.circuit.library import (
    HGate,
    IGate,
    PhaseGate,
    RXGate,
    RYGate,
    RZGate,
    SdgGate,
    SGate,
    SwapGate,
    TdgGate,
    TGate,
    XGate,
    YGate,
    ZGate,
)

from .. import config
from ..errors import ResourceExhaustedError
from .base import Backend

LOGGER = logging.getLogger(__name__)

_FIXED_GATES = {
    "I": IGate,
    "X": XGate,
    "Y": YGate,
    "Z": ZGate,
    "H": HGate,
    "S": SGate,
    "SDG": SdgGate,
    "T": TGate,
    "TDG": TdgGate,
    "SWAP": SwapGate,
}

_ROTATION_GATES = {
    "RX": RXGate,
    "RY": RYGate,
    "RZ": RZGate,
    "R1": PhaseGate,
}

_PAULIS = {"I": IGate, "X": XGate, "Y": YGate, "Z": ZGate}


@lru_cache(maxsize=None)
def _fixed_matrix(name: str) -> np.ndarray:
    return np.asarray(_FIXED_GATES[name]().to_matrix(), dtype=complex)


def _pauli_exponential(paulis: Sequence[str], theta: float) -> np.ndarray:
    """Return ``exp(i * theta * P)`` for the Pauli string ``paulis``.

    The first label acts on the most significant index of the matrix, which
    matches the order in which :func:`_apply_matrix` contracts targets.
    """
    pauli = reduce(
        np.kron, (np.asarray(_PAULIS[p.upper()]().to_matrix(), dtype=complex) for p in paulis)
    )
    ident = np.eye(pauli.shape[0], dtype=complex)
    return np.cos(theta) * ident + 1j * np.sin(theta) * pauli


def gate_matrix(
    name: str, params: Sequence[float] = (), paulis: Sequence[str] = ()
) -> np.ndarray:
    """Return the unitary for ``name`` acting on its target qubits only."""

    lname = name.upper()
    if lname in _FIXED_GATES:
        return _fixed_matrix(lname)
    if lname in _ROTATION_GATES:
        return np.asarray(_ROTATION_GATES[lname](float(params[0])).to_matrix(), dtype=complex)
    if lname == "EXP":
        return _pauli_exponential(paulis, float(params[0]))
    raise NotImplementedError(f"Unsupported gate {name}")


@dataclass
class _State:
    tensor: np.ndarray
    # Qubit id stored on each tensor axis.
    axes: List[int] = field(default_factory=list)

    def axis(self, qid: int) -> int:
        return self.axes.index(qid)


def _apply_matrix(
    state: _State,
    matrix: np.ndarray,
    targets: Sequence[int],
    controls: Sequence[int],
) -> None:
    tensor = state.tensor
    n = tensor.ndim
    control_axes = {state.axis(c) for c in controls}
    index = [slice(None)] * n
    for ax in control_axes:
        index[ax] = 1
    selector = tuple(index)
    sub = tensor[selector]
    remaining = [ax for ax in range(n) if ax not in control_axes]
    positions = [remaining.index(state.axis(t)) for t in targets]
    k = len(targets)
    gate = matrix.reshape((2,) * (2 * k))
    out = np.tensordot(gate, sub, axes=(list(range(k, 2 * k)), positions))
    tensor[selector] = np.moveaxis(out, list(range(k)), positions)


def _pauli_image(state: _State, paulis: Sequence[str], qids: Sequence[int]) -> np.ndarray:
    """Return ``P |psi>`` for the Pauli product ``paulis`` on ``qids``."""
    image = _State(tensor=state.tensor.copy(), axes=state.axes)
    for label, qid in zip(paulis, qids):
        if label != "I":
            _apply_matrix(image, _fixed_matrix(label), [qid], [])
    return image.tensor


@dataclass
class StatevectorBackend(Backend):
    """Backend keeping one dense statevector per instance id.

    Parameters
    ----------
    max_instances:
        Maximum number of simultaneously live instances.  Defaults to
        ``config.DEFAULT.max_instances``; ``None`` there means unlimited.
    max_qubits:
        Maximum number of qubits per instance.  Defaults to
        ``config.DEFAULT.max_qubits``.
    seed:
        Seed for the measurement random number generator.
    """

    name: str = field(default="statevector", init=False)
    max_instances: int | None = None
    max_qubits: int | None = None
    seed: int | None = None
    _states: Dict[int, _State] = field(default_factory=dict, init=False)
    _rng: np.random.Generator = field(init=False, repr=False)

    @classmethod
    def from_config(cls, cfg: config.Config) -> "StatevectorBackend":
        return cls(max_instances=cfg.max_instances, max_qubits=cfg.max_qubits, seed=cfg.seed)

    def __post_init__(self) -> None:
        if self.max_instances is None:
            self.max_instances = config.DEFAULT.max_instances
        if self.max_qubits is None:
            self.max_qubits = config.DEFAULT.max_qubits
        if self.seed is None:
            self.seed = config.DEFAULT.seed
        self._rng = np.random.default_rng(self.seed)

    # ------------------------------------------------------------------
    def create(self) -> int:
        if self.max_instances is not None and len(self._states) >= self.max_instances:
            raise ResourceExhaustedError(
                f"Statevector backend is limited to {self.max_instances} live instances"
            )
        sid = 0
        while sid in self._states:
            sid += 1
        self._states[sid] = _State(tensor=np.ones((), dtype=complex))
        LOGGER.debug("Created statevector state %d", sid)
        return sid

    def destroy(self, sid: int) -> None:
        del self._states[sid]
        LOGGER.debug("Destroyed statevector state %d", sid)

    def allocate_qubit(self, sid: int) -> int:
        state = self._states[sid]
        if self.max_qubits is not None and len(state.axes) >= self.max_qubits:
            raise ResourceExhaustedError(
                f"Instance {sid} already holds the maximum of {self.max_qubits} qubits"
            )
        used = set(state.axes)
        qid = 0
        while qid in used:
            qid += 1
        state.tensor = np.stack([state.tensor, np.zeros_like(state.tensor)], axis=-1)
        state.axes.append(qid)
        return qid

    def release_qubit(self, sid: int, qid: int) -> None:
        state = self._states[sid]
        outcome = self.measure(sid, qid)
        ax = state.axis(qid)
        # Dropping the final axis yields a scalar; the empty state is a 0-d tensor.
        state.tensor = np.array(np.take(state.tensor, outcome, axis=ax), dtype=complex)
        del state.axes[ax]

    def num_qubits(self, sid: int) -> int:
        return len(self._states[sid].axes)

    # ------------------------------------------------------------------
    def apply_gate(
        self,
        sid: int,
        name: str,
        targets: Sequence[int],
        *,
        controls: Sequence[int] = (),
        params: Sequence[float] = (),
        paulis: Sequence[str] = (),
    ) -> None:
        matrix = gate_matrix(name, params, paulis)
        _apply_matrix(self._states[sid], matrix, list(targets), list(controls))

    # ------------------------------------------------------------------
    def probability(self, sid: int, qid: int) -> float:
        state = self._states[sid]
        ones = np.take(state.tensor, 1, axis=state.axis(qid))
        return float(np.sum(np.abs(ones) ** 2))

    def measure(self, sid: int, qid: int) -> int:
        state = self._states[sid]
        p1 = min(max(self.probability(sid, qid), 0.0), 1.0)
        outcome = int(self._rng.random() < p1)
        index = [slice(None)] * state.tensor.ndim
        index[state.axis(qid)] = 1 - outcome
        state.tensor[tuple(index)] = 0
        norm = np.sqrt(p1 if outcome else 1.0 - p1)
        if norm > 0:
            state.tensor /= norm
        return outcome

    def joint_probability(
        self, sid: int, paulis: Sequence[str], qids: Sequence[int]
    ) -> float:
        state = self._states[sid]
        image = _pauli_image(state, paulis, qids)
        expectation = float(np.real(np.vdot(state.tensor, image)))
        return min(max((1.0 - expectation) / 2, 0.0), 1.0)

    def measure_joint(self, sid: int, paulis: Sequence[str], qids: Sequence[int]) -> int:
        state = self._states[sid]
        p1 = self.joint_probability(sid, paulis, qids)
        outcome = int(self._rng.random() < p1)
        # Project onto the (1 + (-1)^outcome P) / 2 eigenspace.
        sign = -1.0 if outcome else 1.0
        projected = (state.tensor + sign * _pauli_image(state, paulis, qids)) / 2
        norm = np.sqrt(p1 if outcome else 1.0 - p1)
        if norm > 0:
            projected /= norm
        state.tensor = projected
        return outcome

    def statevector(self, sid: int, order: Sequence[int]) -> np.ndarray:
        state = self._states[sid]
        perm = [state.axis(q) for q in reversed(list(order))]
        return state.tensor.transpose(perm).reshape(-1).copy()
