import logging
import math

import pytest

from qsimctl import (
    Config,
    GateOperation,
    InstanceRegistry,
    InvalidInstanceError,
    InvalidParameterError,
    InvalidQubitError,
    QubitUniquenessError,
    QuantumSimulator,
    UnsupportedGateError,
    dispatch,
)


def test_duplicate_control_and_target_is_rejected(sim, backend):
    q0, _q1 = sim.allocate_qubits(2)
    with pytest.raises(QubitUniquenessError):
        sim.h(q0, controls=[q0])
    assert backend.calls == []


def test_coinciding_controls_are_rejected(sim, backend):
    q0, q1, q2 = sim.allocate_qubits(3)
    with pytest.raises(QubitUniquenessError) as excinfo:
        sim.x(q2, controls=[q0, q1, q0])
    assert excinfo.value.duplicates == (q0.id,)
    assert backend.calls == []


def test_duplicate_swap_targets_are_rejected(sim, backend):
    q0 = sim.allocate_qubit()
    with pytest.raises(QubitUniquenessError):
        sim.swap(q0, q0)
    assert backend.calls == []


@pytest.mark.parametrize("angle", [math.nan, math.inf, -math.inf])
def test_rotation_with_degenerate_angle(sim, backend, angle):
    q0, c = sim.allocate_qubits(2)
    before = sim.statevector()
    with pytest.raises(InvalidParameterError):
        sim.rx(angle, q0)
    with pytest.raises(InvalidParameterError):
        sim.rz(angle, q0, controls=[c])
    assert backend.calls == []
    assert sim.statevector().tolist() == before.tolist()


def test_controlled_h_issues_one_call(sim, backend):
    q0, q1 = sim.allocate_qubits(2)
    sim.h(q0, controls=[q1])
    assert backend.calls == [(sim.id, "H", (q0.id,), (q1.id,), ())]


def test_destroyed_instance_rejects_gates(sim, backend):
    q0 = sim.allocate_qubit()
    sim.destroy()
    with pytest.raises(InvalidInstanceError) as excinfo:
        sim.h(q0)
    assert excinfo.value.instance_id == sim.id
    with pytest.raises(InvalidInstanceError):
        sim.rx(0.5, q0)
    assert backend.calls == []


def test_empty_controls_match_uncontrolled_call(sim, backend):
    q0 = sim.allocate_qubit()
    sim.ry(0.3, q0)
    sim.ry(0.3, q0, controls=[])
    sim.apply(GateOperation.build("RY", q0, 0.3).controlled([]))
    assert backend.calls[0] == backend.calls[1] == backend.calls[2]
    assert backend.calls[0][3] == ()


def test_controls_thread_through_for_every_gate(sim, backend):
    c0, c1, t0, t1 = sim.allocate_qubits(4)
    sim.gate("T", t0, controls=[c0, c1])
    sim.gate("R1", t0, 0.1, controls=c0)
    sim.swap(t0, t1, controls=[c1])
    sim.exp("XY", 0.2, [t0, t1], controls=[c0])
    assert [call[1] for call in backend.calls] == ["T", "R1", "SWAP", "EXP"]
    assert backend.calls[0][3] == (c0.id, c1.id)
    assert backend.calls[1][4] == (0.1,)
    assert backend.calls[2][2] == (t0.id, t1.id)
    assert backend.calls[3][3] == (c0.id,)


def test_foreign_control_is_rejected(registry, sim, backend):
    other = QuantumSimulator("statevector", registry=registry)
    foreign = other.allocate_qubit()
    target = sim.allocate_qubit()
    with pytest.raises(InvalidQubitError):
        sim.x(target, controls=[foreign])
    assert backend.calls == []


def test_invalid_pauli_string_is_rejected(sim, backend):
    q0, q1 = sim.allocate_qubits(2)
    with pytest.raises(InvalidParameterError):
        sim.exp("XW", 0.1, [q0, q1])
    with pytest.raises(InvalidParameterError):
        sim.exp("X", 0.1, [q0, q1])
    assert backend.calls == []


def test_unsupported_gate_is_rejected_before_invocation(registry):
    sim = QuantumSimulator("tableau", registry=registry)
    c, t = sim.allocate_qubits(2)
    with pytest.raises(UnsupportedGateError, match="RX"):
        sim.rx(0.1, t)
    with pytest.raises(UnsupportedGateError):
        sim.h(t, controls=[c])
    with pytest.raises(UnsupportedGateError):
        sim.t(t)
    assert sim.probability(t) == 0.0


def test_dispatch_function_accepts_operations(sim, backend):
    q0, q1 = sim.allocate_qubits(2)
    dispatch(sim, GateOperation.build("X", q1, controls=q0))
    assert backend.calls == [(sim.id, "X", (q1.id,), (q0.id,), ())]


def test_verbose_dispatch_logs_invocations(backend, caplog):
    registry = InstanceRegistry(Config(verbose_dispatch=True))
    try:
        sim = QuantumSimulator(backend, registry=registry)
        q = sim.allocate_qubit()
        with caplog.at_level(logging.INFO, logger="qsimctl.dispatch"):
            sim.rx(0.5, q)
        assert "[dispatch]" in caplog.text
        assert "RX(0.5)" in caplog.text
    finally:
        registry.shutdown()


def test_foreign_qubit_with_matching_id_is_not_a_duplicate(registry, sim, backend):
    other = QuantumSimulator("statevector", registry=registry)
    foreign = other.allocate_qubit()
    target = sim.allocate_qubit()
    assert foreign.id == target.id
    with pytest.raises(InvalidQubitError, match="belongs to instance"):
        sim.x(target, controls=[foreign])
    with pytest.raises(InvalidQubitError):
        sim.swap(target, foreign)
    assert backend.calls == []


@pytest.mark.parametrize("control", [[0], "q", None])
def test_non_handle_control_is_rejected(sim, backend, control):
    q0 = sim.allocate_qubit()
    with pytest.raises(InvalidQubitError, match="Expected a Qubit"):
        sim.x(q0, controls=[control])
    with pytest.raises(InvalidQubitError):
        sim.x(q0, controls=[[q0]])
    assert backend.calls == []


def test_out_of_range_angle_is_rejected(sim, backend):
    q0, c = sim.allocate_qubits(2)
    with pytest.raises(InvalidParameterError, match="floating-point range"):
        sim.rx(10**400, q0)
    with pytest.raises(InvalidParameterError):
        sim.rz(-(10**400), q0, controls=[c])
    assert backend.calls == []


def test_pauli_labels_only_accepted_by_exp(sim, backend):
    q0 = sim.allocate_qubit()
    with pytest.raises(InvalidParameterError, match="does not take Pauli labels"):
        sim.gate("RX", q0, 0.1, paulis="X")
    with pytest.raises(InvalidParameterError):
        GateOperation.build("H", q0, paulis=["Z"])
    assert backend.calls == []


def test_unknown_gate_name_is_unsupported(sim, backend):
    q0 = sim.allocate_qubit()
    with pytest.raises(UnsupportedGateError, match="Unknown gate 'FOO'") as excinfo:
        sim.gate("FOO", q0)
    assert excinfo.value.backend is None
    assert backend.calls == []
