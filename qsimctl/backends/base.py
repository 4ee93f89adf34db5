from __future__ import annotations

"""Common backend interface for simulator instances."""

from typing import TYPE_CHECKING, Sequence

import numpy as np

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..config import Config


class Backend:
    """Abstract numerical backend.

    A backend owns a table of simulator states keyed by integer instance
    ids.  The control layer only ever refers to a state through its id and
    validates every argument before calling in, so implementations may
    assume that ids are live, qubit ids are allocated and unique and angles
    are finite.

    Concrete backends need to implement the lifecycle methods
    ``create``/``destroy``/``allocate_qubit``/``release_qubit`` and
    ``apply_gate``.  Measurement and state inspection are optional.
    """

    #: Name under which the backend is registered.
    name: str = "abstract"

    @classmethod
    def from_config(cls, config: "Config") -> "Backend":
        """Construct the backend with limits taken from ``config``."""
        return cls()

    def create(self) -> int:
        """Allocate a new state with zero qubits and return its id."""
        raise NotImplementedError

    def destroy(self, sid: int) -> None:
        """Release every resource associated with ``sid``."""
        raise NotImplementedError

    def allocate_qubit(self, sid: int) -> int:
        """Add a qubit in ``|0>`` to state ``sid`` and return its id."""
        raise NotImplementedError

    def release_qubit(self, sid: int, qid: int) -> None:
        """Remove qubit ``qid`` from state ``sid``."""
        raise NotImplementedError

    def num_qubits(self, sid: int) -> int:
        raise NotImplementedError

    # ------------------------------------------------------------------
    def supports(self, name: str, num_controls: int = 0) -> bool:
        """Return whether ``name`` can be applied with ``num_controls`` controls."""
        return True

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
        """Apply gate ``name`` to ``targets`` of state ``sid``.

        Parameters
        ----------
        sid:
            Instance id returned by :meth:`create`.
        name:
            Upper-case gate identifier (e.g. ``"H"`` or ``"RX"``).
        targets:
            Target qubit ids.
        controls:
            Control qubit ids; the gate acts only on the subspace where all of
            them are ``|1>``.  Empty for the uncontrolled gate.
        params:
            Rotation angles for parametrized gates.
        paulis:
            Pauli labels for ``EXP``, one per target.
        """
        raise NotImplementedError

    # ------------------------------------------------------------------
    def measure(self, sid: int, qid: int) -> int:
        """Measure ``qid`` in the computational basis and collapse the state."""
        raise NotImplementedError

    def reset(self, sid: int, qid: int) -> None:
        """Return ``qid`` to ``|0>``."""
        if self.measure(sid, qid):
            self.apply_gate(sid, "X", [qid])

    def probability(self, sid: int, qid: int) -> float:
        """Return the probability of measuring ``qid`` as ``1``."""
        raise NotImplementedError

    def joint_probability(
        self, sid: int, paulis: Sequence[str], qids: Sequence[int]
    ) -> float:
        """Return the probability that the Pauli product on ``qids`` yields ``1``.

        Outcome ``1`` is the ``-1`` eigenspace of ``paulis[0] (x) paulis[1]
        (x) ...``, so for ``"Z" * k`` it is the probability of odd parity.
        """
        raise NotImplementedError

    def measure_joint(self, sid: int, paulis: Sequence[str], qids: Sequence[int]) -> int:
        """Measure the Pauli product on ``qids`` and collapse the state."""
        raise NotImplementedError

    def statevector(self, sid: int, order: Sequence[int]) -> np.ndarray:
        """Return the dense statevector with ``order[0]`` least significant.

        Backends that do not maintain a dense representation may override
        this to reconstruct a statevector on demand or raise
        ``NotImplementedError`` if such extraction is not supported.
        """
        raise NotImplementedError
