# tests/test_metrics.py

import numpy as np
import pytest

from rodtrap.config import SIGMA_QUANTILES
from rodtrap.metrics import ensemble_band, ensemble_mean, summarize


def test_sigma_quantiles_of_a_normal_sample():
    rng = np.random.default_rng(0)
    samples = rng.standard_normal((1000, 4, 3))
    mean, lower, upper = summarize(samples)
    assert mean.shape == lower.shape == upper.shape == (4, 3)
    np.testing.assert_allclose(mean, 0.0, atol=0.15)
    np.testing.assert_allclose(lower, -1.0, atol=0.15)
    np.testing.assert_allclose(upper, 1.0, atol=0.15)


def test_default_quantiles_are_one_sigma():
    lo, hi = SIGMA_QUANTILES
    assert lo == pytest.approx(0.158655, abs=1e-6)
    assert lo + hi == pytest.approx(1.0)


def test_band_contains_mean_for_skewed_samples():
    rng = np.random.default_rng(1)
    samples = rng.exponential(1.0, (7, 5, 2)) ** 4
    mean, lower, upper = summarize(samples)
    assert np.all(lower <= mean)
    assert np.all(mean <= upper)


def test_identical_samples_collapse_the_band():
    samples = np.full((10, 3, 2), 0.1)
    mean, lower, upper = summarize(samples)
    np.testing.assert_allclose(mean, 0.1)
    np.testing.assert_allclose(upper - lower, 0.0, atol=1e-15)
    assert np.all(lower <= mean) and np.all(mean <= upper)


def test_custom_quantiles():
    samples = np.arange(101, dtype=float).reshape(101, 1, 1)
    lower, upper = ensemble_band(samples, (0.1, 0.9))
    assert lower[0, 0] == pytest.approx(10.0)
    assert upper[0, 0] == pytest.approx(90.0)
    assert ensemble_mean(samples)[0, 0] == pytest.approx(50.0)


def test_empty_ensemble_gives_nan():
    samples = np.empty((0, 4, 13))
    mean, lower, upper = summarize(samples)
    assert mean.shape == (4, 13)
    assert np.all(np.isnan(mean))
    assert np.all(np.isnan(lower)) and np.all(np.isnan(upper))
