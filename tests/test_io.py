# tests/test_io.py

import os

import numpy as np
import pytest

from rodtrap.integrator import integrate
from rodtrap.io import DataWriter, read_dat
from rodtrap.metrics import summarize
from rodtrap.models import TRACKED, EnsembleSummary


def test_trajectory_round_trip(tmp_path, nanorod):
    traj = integrate(nanorod.ground_state(), nanorod, (0.0, 5.0), seed=4)
    writer = DataWriter(str(tmp_path / "out"))
    path = writer.write_trajectory(traj)

    assert os.path.basename(path) == "trajectory.dat"
    df = read_dat(path)
    assert list(df.columns) == ["t", "x", "y", "z", "px", "py", "pz", "alpha", "beta", "gamma",
                                "p_alpha", "p_beta", "p_gamma", "energy", "energy_kT"]
    assert len(df) == len(traj)
    np.testing.assert_allclose(df["t"].to_numpy(), traj.t, rtol=1e-7)
    np.testing.assert_allclose(df["beta"].to_numpy(), traj.u[:, 7], rtol=1e-7)


def test_summary_round_trip(tmp_path):
    rng = np.random.default_rng(3)
    samples = rng.standard_normal((20, 6, len(TRACKED)))
    mean, lower, upper = summarize(samples)
    summary = EnsembleSummary(times=np.linspace(0.0, 1.0, 6), names=TRACKED,
                              mean=mean, lower=lower, upper=upper,
                              quantiles=(0.16, 0.84), n_success=20, n_failed=0)

    path = DataWriter(str(tmp_path)).write_summary(summary, name="summary")
    df = read_dat(path)
    assert df.shape == (6, 1 + 3 * len(TRACKED))
    np.testing.assert_allclose(df["energy_kT_mean"].to_numpy(), mean[:, -1], rtol=1e-7)
    np.testing.assert_allclose(df["x_lo"].to_numpy(), lower[:, 0], rtol=1e-7)


def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_dat(str(tmp_path / "nope.dat"))
