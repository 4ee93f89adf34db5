"""Control layer for discrete-event quantum circuit simulators."""

from .errors import (
    SimulatorError,
    InvalidInstanceError,
    InvalidQubitError,
    ReleasedQubitNotZeroError,
    QubitUniquenessError,
    InvalidParameterError,
    UnsupportedGateError,
    ResourceExhaustedError,
)
from .config import Config
from .qubit import Qubit
from .gates import GATES, GateKind, GateOperation, GateSpec, gate_spec
from .checks import check_angle, check_qubit, check_qubits
from .backends import Backend, StatevectorBackend, TableauBackend
from .dispatch import dispatch
from .registry import InstanceRegistry, default_registry, reset_default_registry
from .simulator import QuantumSimulator

__all__ = [
    "SimulatorError",
    "InvalidInstanceError",
    "InvalidQubitError",
    "ReleasedQubitNotZeroError",
    "QubitUniquenessError",
    "InvalidParameterError",
    "UnsupportedGateError",
    "ResourceExhaustedError",
    "Config",
    "Qubit",
    "GATES",
    "GateKind",
    "GateOperation",
    "GateSpec",
    "gate_spec",
    "check_angle",
    "check_qubit",
    "check_qubits",
    "Backend",
    "StatevectorBackend",
    "TableauBackend",
    "dispatch",
    "InstanceRegistry",
    "default_registry",
    "reset_default_registry",
    "QuantumSimulator",
]
