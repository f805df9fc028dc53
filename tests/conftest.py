# tests/conftest.py

import math

import numpy as np
import pytest

from rodtrap.models import State
from rodtrap.parameters import ParameterSet


@pytest.fixture
def nanorod():
    """Bastonașul implicit (SiO2, 300 K, 1 mbar), în unități scalate."""
    return ParameterSet.from_physical()


@pytest.fixture
def toy_params():
    """Parametri rotunzi, ușor de verificat de mână: U0 = 1, k = 2, W = 1."""
    return ParameterSet(
        mass=1.0, inertia_I=1.0, inertia_Ic=0.2, volume=1.0,
        field_amplitude=2.0, waist_x=1.0, waist_y=1.0, wavenumber=2.0,
        susceptibility_perp=0.5, susceptibility_par=1.0, susceptibility_delta=0.5,
        damping_cm_perp=0.01, damping_cm_par=0.008,
        damping_rot_perp=0.012, damping_rot_par=0.02,
        temperature=300.0,
    )


@pytest.fixture
def hamiltonian_params(toy_params):
    """Fără frecare și fără zgomot: dinamica e pur hamiltoniană."""
    return toy_params.replace(damping_cm_perp=0.0, damping_cm_par=0.0,
                              damping_rot_perp=0.0, damping_rot_par=0.0,
                              temperature=0.0)


@pytest.fixture
def excited_state():
    return State(0.1, -0.05, 0.05, 0.05, 0.0, -0.03,
                 0.2, 0.5 * math.pi - 0.15, 0.3, 0.02, -0.01, 0.01)


@pytest.fixture
def random_states():
    rng = np.random.default_rng(1234)
    out = []
    for _ in range(8):
        u = rng.normal(0.0, 0.1, 12)
        u[6] = rng.uniform(-math.pi, math.pi)
        u[7] = rng.uniform(0.2, math.pi - 0.2)
        u[8] = rng.uniform(-math.pi, math.pi)
        out.append(u)
    return out
