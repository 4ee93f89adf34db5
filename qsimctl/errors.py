"""Exception hierarchy for the simulator control layer.

Every error in this module is raised before the numerical backend is
touched, so the state of the affected instance is unchanged whenever one of
them propagates.
"""

from __future__ import annotations

from typing import Any, Iterable, Tuple


class SimulatorError(RuntimeError):
    """Base class for all control layer errors."""


class InvalidInstanceError(SimulatorError):
    """Raised when an operation targets a destroyed or unknown instance."""

    def __init__(self, instance_id: int | None, message: str | None = None) -> None:
        self.instance_id = instance_id
        super().__init__(message or f"Simulator instance {instance_id} is not live")


class InvalidQubitError(SimulatorError):
    """Raised for unknown, released or foreign qubit handles."""

    def __init__(self, qubit_id: Any, message: str | None = None) -> None:
        self.qubit_id = qubit_id
        super().__init__(message or f"Invalid qubit {qubit_id!r}")


class ReleasedQubitNotZeroError(InvalidQubitError):
    """Raised when a qubit is released while not in the ``|0>`` state."""

    def __init__(self, qubit_id: int, probability: float) -> None:
        self.probability = probability
        super().__init__(
            qubit_id,
            f"Qubit {qubit_id} released with P(1)={probability:.3g}; "
            "reset it before release",
        )


class QubitUniquenessError(SimulatorError):
    """Raised when a qubit appears more than once in a single invocation."""

    def __init__(self, duplicates: Iterable[int]) -> None:
        self.duplicates: Tuple[int, ...] = tuple(duplicates)
        ids = ", ".join(str(q) for q in self.duplicates)
        super().__init__(f"Qubits must be unique; duplicated ids: {ids}")


class InvalidParameterError(SimulatorError, ValueError):
    """Raised when a numeric gate parameter is degenerate or out of domain."""

    def __init__(self, value: Any, message: str | None = None) -> None:
        self.value = value
        super().__init__(message or f"Invalid gate parameter {value!r}")


class UnsupportedGateError(SimulatorError):
    """Raised for unknown gate names or gates the instance's backend cannot apply."""

    def __init__(
        self, gate: str, num_controls: int = 0, backend: str | None = None
    ) -> None:
        self.gate = gate
        self.num_controls = num_controls
        self.backend = backend
        if backend is None:
            message = f"Unknown gate {gate!r}"
        else:
            message = (
                f"Backend '{backend}' does not support {gate} "
                f"with {num_controls} control(s)"
            )
        super().__init__(message)


class ResourceExhaustedError(SimulatorError):
    """Raised when the backend cannot allocate another instance or qubit."""


__all__ = [
    "SimulatorError",
    "InvalidInstanceError",
    "InvalidQubitError",
    "ReleasedQubitNotZeroError",
    "QubitUniquenessError",
    "InvalidParameterError",
    "UnsupportedGateError",
    "ResourceExhaustedError",
]
