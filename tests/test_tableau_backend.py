import numpy as np
import pytest

from qsimctl import (
    Config,
    InstanceRegistry,
    QuantumSimulator,
    ResourceExhaustedError,
    TableauBackend,
)


@pytest.fixture
def tableau(registry):
    return QuantumSimulator("tableau", registry=registry)


def test_bell_state(tableau):
    q0, q1 = tableau.allocate_qubits(2)
    tableau.h(q0)
    tableau.x(q1, controls=[q0])
    amplitudes = np.abs(tableau.statevector())
    np.testing.assert_allclose(amplitudes, [2**-0.5, 0, 0, 2**-0.5], atol=1e-6)


def test_probability_and_measure(tableau):
    q0, q1 = tableau.allocate_qubits(2)
    tableau.x(q1)
    assert tableau.probability(q0) == 0.0
    assert tableau.probability(q1) == 1.0
    tableau.h(q0)
    assert tableau.probability(q0) == 0.5
    outcome = tableau.measure(q0)
    assert tableau.probability(q0) == float(outcome)


def test_released_qubits_are_reset(tableau):
    q0, q1 = tableau.allocate_qubits(2)
    tableau.x(q0)
    tableau.release_qubit(q0)
    fresh = tableau.allocate_qubit()
    assert fresh.id == q0.id
    assert tableau.probability(fresh) == 0.0
    amplitudes = np.abs(tableau.statevector([q1, fresh]))
    np.testing.assert_allclose(amplitudes, [1, 0, 0, 0], atol=1e-6)


def test_statevector_skips_released_indices(tableau):
    q0, q1, q2 = tableau.allocate_qubits(3)
    tableau.x(q2)
    tableau.release_qubit(q1)
    amplitudes = np.abs(tableau.statevector([q0, q2]))
    np.testing.assert_allclose(amplitudes, [0, 0, 1, 0], atol=1e-6)


def test_supports():
    backend = TableauBackend(max_instances=1)
    assert backend.supports("H")
    assert backend.supports("sdg")
    assert backend.supports("Z", 1)
    assert not backend.supports("H", 1)
    assert not backend.supports("X", 2)
    assert not backend.supports("RZ")


def test_qubit_limit_comes_from_config():
    registry = InstanceRegistry(Config(max_qubits=2, seed=7))
    try:
        sim = QuantumSimulator("tableau", registry=registry)
        assert sim.backend.max_qubits == 2
        with pytest.raises(ResourceExhaustedError):
            sim.allocate_qubits(3)
        assert sim.qubit_count == 0
        sim.allocate_qubits(2)
        with pytest.raises(ResourceExhaustedError):
            sim.allocate_qubit()
    finally:
        registry.shutdown()


def test_joint_measurement(tableau):
    q0, q1, q2 = tableau.allocate_qubits(3)
    tableau.h(q0)
    tableau.x(q2, controls=[q0])
    assert tableau.joint_probability("ZZ", [q0, q2]) == 0.0
    assert tableau.joint_probability("XX", [q0, q2]) == 0.0
    assert tableau.joint_probability("YY", [q2, q0]) == 1.0
    assert tableau.joint_probability("Z", [q0]) == 0.5
    tableau.x(q1)
    assert tableau.joint_probability("ZZ", [q1, q2]) == 0.5
    assert tableau.measure_joint("ZZ", [q0, q2]) == 0
    outcome = tableau.measure_joint("zz", [q1, q0])
    assert tableau.joint_probability("ZZ", [q1, q0]) == float(outcome)
    assert tableau.joint_probability("ZZ", [q0, q2]) == 0.0
