from __future__ import annotations

r"""Stabilizer backend built on :class:`stim.TableauSimulator`.

Only Clifford gates are available.  Controlled forms are limited to a single
control on the Pauli gates, which stim exposes directly as ``cx``, ``cy``
and ``cz``.  Everything else is reported as unsupported through
:meth:`TableauBackend.supports` so that the control layer can refuse the
operation before touching the tableau.
"""

from dataclasses import dataclass, field
import logging
from typing import Dict, Sequence, Set

import numpy as np
import stim

from .. import config
from ..errors import ResourceExhaustedError
from .base import Backend

LOGGER = logging.getLogger(__name__)

_ALIASES: Dict[str, str] = {
    "SDG": "s_dag",
}

_UNCONTROLLED = frozenset({"I", "X", "Y", "Z", "H", "S", "SDG", "SWAP"})
_SINGLY_CONTROLLED = {"X": "cx", "Y": "cy", "Z": "cz"}


@dataclass
class TableauBackend(Backend):
    """Backend keeping one stim tableau simulator per instance id."""

    name: str = field(default="tableau", init=False)
    max_instances: int | None = None
    max_qubits: int | None = None
    seed: int | None = None
    _sims: Dict[int, stim.TableauSimulator] = field(default_factory=dict, init=False)
    _qubits: Dict[int, Set[int]] = field(default_factory=dict, init=False)

    @classmethod
    def from_config(cls, cfg: config.Config) -> "TableauBackend":
        return cls(
            max_instances=cfg.max_instances, max_qubits=cfg.max_qubits, seed=cfg.seed
        )

    def __post_init__(self) -> None:
        if self.max_instances is None:
            self.max_instances = config.DEFAULT.max_instances
        if self.seed is None:
            self.seed = config.DEFAULT.seed

    # ------------------------------------------------------------------
    def create(self) -> int:
        if self.max_instances is not None and len(self._sims) >= self.max_instances:
            raise ResourceExhaustedError(
                f"Tableau backend is limited to {self.max_instances} live instances"
            )
        sid = 0
        while sid in self._sims:
            sid += 1
        seed = None if self.seed is None else self.seed + sid
        self._sims[sid] = stim.TableauSimulator(seed=seed)
        self._qubits[sid] = set()
        LOGGER.debug("Created tableau state %d", sid)
        return sid

    def destroy(self, sid: int) -> None:
        del self._sims[sid]
        del self._qubits[sid]
        LOGGER.debug("Destroyed tableau state %d", sid)

    def allocate_qubit(self, sid: int) -> int:
        used = self._qubits[sid]
        if self.max_qubits is not None and len(used) >= self.max_qubits:
            raise ResourceExhaustedError(
                f"Instance {sid} already holds the maximum of {self.max_qubits} qubits"
            )
        qid = 0
        while qid in used:
            qid += 1
        sim = self._sims[sid]
        if qid >= sim.num_qubits:
            sim.set_num_qubits(qid + 1)
        used.add(qid)
        return qid

    def release_qubit(self, sid: int, qid: int) -> None:
        # Freed indices must be |0> so that later allocations start clean.
        self._sims[sid].reset(qid)
        self._qubits[sid].discard(qid)

    def num_qubits(self, sid: int) -> int:
        return len(self._qubits[sid])

    # ------------------------------------------------------------------
    def supports(self, name: str, num_controls: int = 0) -> bool:
        lname = name.upper()
        if num_controls == 0:
            return lname in _UNCONTROLLED
        return num_controls == 1 and lname in _SINGLY_CONTROLLED

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
        sim = self._sims[sid]
        lname = name.upper()
        if controls:
            method = _SINGLY_CONTROLLED.get(lname) if len(controls) == 1 else None
            if method is None:
                raise NotImplementedError(
                    f"Unsupported Stim gate {name} with {len(controls)} control(s)"
                )
            getattr(sim, method)(controls[0], targets[0])
            return
        if lname == "I":
            return
        if lname not in _UNCONTROLLED:
            raise NotImplementedError(f"Unsupported Stim gate {name}")
        getattr(sim, _ALIASES.get(lname, lname.lower()))(*targets)

    # ------------------------------------------------------------------
    def measure(self, sid: int, qid: int) -> int:
        return int(self._sims[sid].measure(qid))

    def probability(self, sid: int, qid: int) -> float:
        # peek_z is +1 for a deterministic 0, -1 for a deterministic 1 and 0
        # for an evenly random outcome.
        expectation = self._sims[sid].peek_z(qid)
        return (1 - expectation) / 2

    def _observable(
        self, sid: int, paulis: Sequence[str], qids: Sequence[int]
    ) -> stim.PauliString:
        labels = ["_"] * self._sims[sid].num_qubits
        for label, qid in zip(paulis, qids):
            labels[qid] = label
        return stim.PauliString("".join(labels))

    def joint_probability(
        self, sid: int, paulis: Sequence[str], qids: Sequence[int]
    ) -> float:
        observable = self._observable(sid, paulis, qids)
        expectation = self._sims[sid].peek_observable_expectation(observable)
        return (1 - expectation) / 2

    def measure_joint(self, sid: int, paulis: Sequence[str], qids: Sequence[int]) -> int:
        observable = self._observable(sid, paulis, qids)
        return int(self._sims[sid].measure_observable(observable))

    def statevector(self, sid: int, order: Sequence[int]) -> np.ndarray:
        sim = self._sims[sid]
        n = sim.num_qubits
        vec = np.asarray(sim.state_vector(endian="little"), dtype=complex)
        if n == 0:
            return vec.reshape(-1)
        tensor = vec.reshape((2,) * n)
        allocated = self._qubits[sid]
        # Little endian: stim qubit q lives on axis n - 1 - q.
        index = [slice(None)] * n
        for q in range(n):
            if q not in allocated:
                index[n - 1 - q] = 0
        sub = tensor[tuple(index)]
        remaining = sorted(allocated, reverse=True)
        perm = [remaining.index(q) for q in reversed(list(order))]
        return sub.transpose(perm).reshape(-1).copy()
