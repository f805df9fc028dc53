# tests/test_physics.py

import math

import numpy as np
import pytest

from rodtrap.errors import ConfigurationError, SingularityError
from rodtrap.models import ANGLES, MOMENTUM, POSITION, State
from rodtrap.physics import (check_pole, diffusion, drift, energy, friction_matrix,
                             lab_rotation, normalized_energy)

MOMENTUM_ROWS = [3, 4, 5, 9, 10, 11]
COORDINATE_ROWS = [0, 1, 2, 6, 7, 8]


def _numerical_gradient(fun, u, eps=1e-6):
    grad = np.zeros_like(u)
    for j in range(u.size):
        du = np.zeros_like(u)
        du[j] = eps
        grad[j] = (fun(u + du) - fun(u - du)) / (2.0 * eps)
    return grad


def test_lab_rotation_is_orthogonal():
    R = lab_rotation(0.7, 1.1)
    np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-14)
    assert np.linalg.det(R) == pytest.approx(1.0)
    # a treia coloană este axa bastonașului
    n = [math.sin(1.1) * math.cos(0.7), math.sin(1.1) * math.sin(0.7), math.cos(1.1)]
    np.testing.assert_allclose(R[:, 2], n, atol=1e-14)


def test_drift_is_hamiltonian_without_damping(hamiltonian_params, random_states):
    """dq/dt = ∂H/∂p și dp/dt = -∂H/∂q când frecarea e zero."""
    p = hamiltonian_params
    for u in random_states:
        grad = _numerical_gradient(lambda v: energy(v, p), u)
        f = drift(u, p)
        expected = np.concatenate([grad[MOMENTUM], -grad[POSITION],
                                   grad[9:12], -grad[ANGLES]])
        np.testing.assert_allclose(f, expected, rtol=1e-6, atol=1e-8)


def test_drift_vanishes_at_ground_state(nanorod):
    f = drift(nanorod.ground_state().as_array(), nanorod)
    np.testing.assert_allclose(f, 0.0, atol=1e-15)


def test_translational_damping_along_and_across_axis(toy_params):
    p = toy_params.replace(field_amplitude=0.0)
    alpha, beta = 0.4, 1.2
    n = lab_rotation(alpha, beta)[:, 2]
    e1 = lab_rotation(alpha, beta)[:, 0]

    u = np.zeros(12)
    u[6], u[7] = alpha, beta
    u[MOMENTUM] = 0.3 * n
    np.testing.assert_allclose(drift(u, p)[MOMENTUM], -p.damping_cm_par * 0.3 * n, atol=1e-15)

    u[MOMENTUM] = 0.3 * e1
    np.testing.assert_allclose(drift(u, p)[MOMENTUM], -p.damping_cm_perp * 0.3 * e1, atol=1e-15)


def test_friction_matrix_is_symmetric_positive(toy_params, random_states):
    for u in random_states:
        K = friction_matrix(u, toy_params)
        np.testing.assert_allclose(K, K.T, atol=1e-15)
        assert np.all(np.linalg.eigvalsh(K) > 0.0)


def test_fluctuation_dissipation(nanorod, random_states):
    """B B^T = 2 kT K pe blocul impulsurilor, la orice orientare."""
    p = nanorod
    for u in random_states:
        G = diffusion(u, p)
        assert G.shape == (12, 6)
        D = G @ G.T
        expected = 2.0 * p.kT * friction_matrix(u, p)
        scale = np.abs(expected).max()
        np.testing.assert_allclose(D[np.ix_(MOMENTUM_ROWS, MOMENTUM_ROWS)], expected,
                                   rtol=1e-10, atol=1e-12 * scale)


def test_noise_enters_only_momenta(nanorod, random_states):
    for u in random_states:
        G = diffusion(u, nanorod)
        assert np.all(G[COORDINATE_ROWS] == 0.0)


def test_zero_temperature_has_no_noise(nanorod, random_states):
    p = nanorod.replace(temperature=0.0)
    assert np.all(diffusion(random_states[0], p) == 0.0)


def test_drift_and_diffusion_are_pure(nanorod, excited_state):
    u = excited_state.as_array()
    before = u.copy()
    a = drift(u, nanorod)
    b = drift(u, nanorod)
    diffusion(u, nanorod)
    np.testing.assert_array_equal(a, b)
    np.testing.assert_array_equal(u, before)


@pytest.mark.parametrize("beta", [0.0, 5e-4, math.pi - 1e-4, math.pi, -0.1, float("nan")])
def test_pole_band_raises(nanorod, beta):
    u = nanorod.ground_state().as_array()
    u[7] = beta
    with pytest.raises(SingularityError):
        drift(u, nanorod)
    with pytest.raises(SingularityError):
        diffusion(u, nanorod)
    with pytest.raises(SingularityError):
        energy(u, nanorod)


def test_custom_pole_guard(nanorod):
    u = nanorod.ground_state().as_array()
    u[7] = 0.05
    drift(u, nanorod)
    with pytest.raises(SingularityError) as info:
        drift(u, nanorod, guard=0.1)
    assert info.value.beta == pytest.approx(0.05)
    assert info.value.guard == 0.1


def test_check_pole_on_arrays():
    check_pole(np.array([0.5, 1.0, 2.0]))
    with pytest.raises(SingularityError):
        check_pole(np.array([0.5, 1e-5, 2.0]))


def test_energy_is_vectorised(nanorod, random_states):
    stack = np.array(random_states)
    batch = energy(stack, nanorod)
    assert batch.shape == (len(random_states),)
    for e, u in zip(batch, random_states):
        assert e == pytest.approx(energy(u, nanorod))


def test_energy_rejects_wrong_shape(nanorod):
    with pytest.raises(ValueError):
        energy(np.zeros(11), nanorod)


def test_normalized_energy(nanorod):
    ground = nanorod.ground_state()
    assert normalized_energy(ground.as_array(), nanorod) == pytest.approx(0.0, abs=1e-9)

    # un impuls px = sqrt(m kT) adaugă exact kT/2
    u = ground.as_array()
    u[3] = math.sqrt(nanorod.mass * nanorod.kT)
    assert normalized_energy(u, nanorod) == pytest.approx(0.5)


def test_normalized_energy_needs_temperature(nanorod):
    cold = nanorod.replace(temperature=0.0)
    with pytest.raises(ConfigurationError):
        normalized_energy(cold.ground_state().as_array(), cold)


def test_state_round_trip():
    s = State(*range(12))
    assert State.from_array(s.as_array()) == s
    with pytest.raises(ValueError):
        State.from_array(np.zeros(3))
