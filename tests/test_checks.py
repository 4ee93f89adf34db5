from fractions import Fraction
import math

import numpy as np
import pytest

from qsimctl import (
    InvalidParameterError,
    InvalidQubitError,
    QubitUniquenessError,
    QuantumSimulator,
    check_angle,
    check_qubit,
    check_qubits,
)
from qsimctl.checks import check_angles, check_paulis


@pytest.mark.parametrize(
    "angle", [0.0, -0.0, 1.5, -math.pi, 1e300, -1e-300, 3, np.float64(0.25)]
)
def test_finite_angles_pass(angle):
    assert check_angle(angle) is None


@pytest.mark.parametrize("angle", [math.nan, math.inf, -math.inf, np.nan])
def test_degenerate_angles_fail(angle):
    with pytest.raises(InvalidParameterError) as excinfo:
        check_angle(angle)
    value = excinfo.value.value
    assert math.isnan(value) or math.isinf(value)


@pytest.mark.parametrize("angle", ["0.5", None, 1j, True])
def test_non_real_angles_fail(angle):
    with pytest.raises(InvalidParameterError):
        check_angle(angle)


def test_angle_error_is_value_error():
    with pytest.raises(ValueError, match="NaN"):
        check_angles([0.1, math.nan])


def test_check_qubits_reports_duplicates(sim):
    q0, q1, q2 = sim.allocate_qubits(3)
    with pytest.raises(QubitUniquenessError) as excinfo:
        check_qubits([q1, q2, q0, q1])
    assert excinfo.value.duplicates == (q1.id,)
    assert str(q1.id) in str(excinfo.value)


def test_check_qubits_control_equal_to_target(sim):
    q0, q1 = sim.allocate_qubits(2)
    controls, targets = [q0], [q0]
    with pytest.raises(QubitUniquenessError):
        check_qubits(controls + targets)
    check_qubits([q0] + [q1])


def test_check_qubits_is_idempotent(sim, backend):
    qubits = sim.allocate_qubits(3)
    before = sim.qubits
    assert check_qubits(qubits) is None
    assert check_qubits(qubits) is None
    assert sim.qubits == before
    assert backend.calls == []


def test_check_qubit_rejects_foreign_handle(registry, sim):
    other = QuantumSimulator("statevector", registry=registry)
    foreign = other.allocate_qubit()
    with pytest.raises(InvalidQubitError, match="belongs to instance"):
        check_qubit(sim, foreign)


def test_check_qubit_rejects_released_handle(sim):
    q = sim.allocate_qubit()
    check_qubit(sim, q)
    sim.release_qubit(q)
    with pytest.raises(InvalidQubitError, match="released") as excinfo:
        check_qubit(sim, q)
    assert excinfo.value.qubit_id == q.id


def test_check_qubit_rejects_plain_integers(sim):
    sim.allocate_qubit()
    with pytest.raises(InvalidQubitError):
        check_qubit(sim, 0)


def test_check_paulis(sim):
    q0, q1 = sim.allocate_qubits(2)
    check_paulis("XZ", [q0, q1])
    with pytest.raises(InvalidParameterError):
        check_paulis("X", [q0, q1])
    with pytest.raises(InvalidParameterError, match="Unknown Pauli"):
        check_paulis("XQ", [q0, q1])


@pytest.mark.parametrize("angle", [10**400, -(10**400), Fraction(10**400, 3)])
def test_angles_beyond_float_range_fail(angle):
    with pytest.raises(InvalidParameterError, match="floating-point range") as excinfo:
        check_angle(angle)
    assert excinfo.value.value == angle


def test_check_qubit_rejects_nested_lists(sim):
    q0 = sim.allocate_qubit()
    with pytest.raises(InvalidQubitError, match="Expected a Qubit"):
        check_qubit(sim, [q0])
