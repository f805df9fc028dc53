# src/rodtrap/metrics.py

# NumPy: toate calculele sunt vectorizate pe axa traiectoriilor (axis=0):
#  - samples are shape (n_traj, n_q, n_s): traiectorie × moment × scalar;
#  - mean pe axis=0 => media peste traiectorii (rezultat shape (n_q, n_s));
#  - quantile pe axis=0 => benzile de incertitudine, aceeași formă.

from typing import Sequence, Tuple

import numpy as np

from .config import SIGMA_QUANTILES


def ensemble_mean(samples: np.ndarray) -> np.ndarray:
    """
    Media peste traiectorii.

    Parametri
    ---------
    samples : np.ndarray, shape (n_traj, n_q, n_s)

    Returnează
    ----------
    np.ndarray, shape (n_q, n_s); NaN dacă n_traj == 0.
    """
    samples = np.asarray(samples, dtype=float)
    if samples.shape[0] == 0:
        return np.full(samples.shape[1:], np.nan)
    return samples.mean(axis=0)


def ensemble_band(samples: np.ndarray,
                  quantiles: Sequence[float] = SIGMA_QUANTILES) -> Tuple[np.ndarray, np.ndarray]:
    """
    Cuantilele (inferioară, superioară) peste traiectorii, la fiecare moment și scalar.

    Detalii
    -------
    • Implicit Φ(-1) ≈ 15.9 % și Φ(+1) ≈ 84.1 %: pentru o distribuție normală
      banda este exact media ± 1σ.
    • np.quantile cu interpolare liniară între statistici de ordine (metoda
      implicită "linear"); pentru n mare eroarea de eșantionare a cuantilei p e
      ~ sqrt(p (1 - p) / n) / densitate.
    • n_traj == 0 ⇒ benzi NaN.
    """
    samples = np.asarray(samples, dtype=float)
    lo, hi = quantiles
    if samples.shape[0] == 0:
        empty = np.full(samples.shape[1:], np.nan)
        return empty, empty.copy()
    q = np.quantile(samples, [lo, hi], axis=0)
    return q[0], q[1]


def summarize(samples: np.ndarray,
              quantiles: Sequence[float] = SIGMA_QUANTILES) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    (mean, lower, upper) pentru un ansamblu reeșantionat.

    Banda e lărgită, unde e cazul, ca să conțină media: lower ≤ mean ≤ upper
    la fiecare moment. Pentru distribuții asimetrice (ex. energia) sau pentru
    eșantioane identice (media poate diferi de valoare cu un ulp) cuantilele
    brute pot lăsa media în afara benzii.
    """
    mean = ensemble_mean(samples)
    lower, upper = ensemble_band(samples, quantiles)
    return mean, np.fmin(lower, mean), np.fmax(upper, mean)
