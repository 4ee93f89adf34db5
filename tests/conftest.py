from dataclasses import dataclass, field
from typing import List, Tuple

import pytest

from qsimctl import Config, InstanceRegistry, QuantumSimulator, StatevectorBackend


@dataclass
class RecordingBackend(StatevectorBackend):
    """Statevector backend that remembers every ``apply_gate`` call."""

    name: str = field(default="recording", init=False)
    calls: List[Tuple] = field(default_factory=list, init=False)

    def apply_gate(self, sid, name, targets, *, controls=(), params=(), paulis=()):
        self.calls.append((sid, name, tuple(targets), tuple(controls), tuple(params)))
        super().apply_gate(
            sid, name, targets, controls=controls, params=params, paulis=paulis
        )


@pytest.fixture
def config() -> Config:
    return Config(
        default_backend="statevector",
        max_instances=4,
        max_qubits=8,
        seed=1234,
        release_requires_zero=False,
        zero_tolerance=1e-10,
        verbose_dispatch=False,
    )


@pytest.fixture
def registry(config):
    reg = InstanceRegistry(config)
    yield reg
    reg.shutdown()


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend(max_instances=4, max_qubits=8, seed=1234)


@pytest.fixture
def sim(registry, backend) -> QuantumSimulator:
    return QuantumSimulator(backend, registry=registry)
