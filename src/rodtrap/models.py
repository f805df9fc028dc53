# src/rodtrap/models.py

# Despre NumPy (np):
#  - Starea e un np.ndarray de 12 componente, ordonate ca în State (mai jos).
#  - O traiectorie e o pereche (t, u): t shape (n,), u shape (n, 12).
#  - Tablourile din Trajectory/EnsembleSummary sunt read-only (flags.writeable = False):
#    o traiectorie terminată nu se mai modifică.

from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd

from .config import POLE_GUARD


class State(NamedTuple):
    """
    Starea completă (12 componente), în ordinea de mai jos:

      x, y, z              poziția centrului de masă           [µm]
      px, py, pz           impulsul liniar                     [M0 µm / T0]
      alpha, beta, gamma   unghiurile Euler (z-y-z)            [rad]
      p_alpha, p_beta, p_gamma  impulsurile conjugate          [M0 µm^2 / T0]

    beta ∈ (0, π) strict: la poli ecuațiile împart la sin^2 β.
    """

    x: float
    y: float
    z: float
    px: float
    py: float
    pz: float
    alpha: float
    beta: float
    gamma: float
    p_alpha: float
    p_beta: float
    p_gamma: float

    def as_array(self) -> np.ndarray:
        return np.array(self, dtype=float)

    @classmethod
    def from_array(cls, u) -> "State":
        u = np.asarray(u, dtype=float)
        if u.shape != (STATE_SIZE,):
            raise ValueError(f"state must have shape ({STATE_SIZE},), got {u.shape}")
        return cls(*(float(v) for v in u))


STATE_FIELDS = State._fields
STATE_SIZE = len(STATE_FIELDS)
NOISE_CHANNELS = 6

# Felii în vectorul de stare
POSITION = slice(0, 3)
MOMENTUM = slice(3, 6)
ANGLES = slice(6, 9)
ANGULAR_MOMENTUM = slice(9, 12)
IDX_ALPHA, IDX_BETA = 6, 7

# Scalarii urmăriți de ansamblu: cele 12 componente + energia normalizată.
TRACKED = STATE_FIELDS + ("energy_kT",)


def _frozen(a) -> np.ndarray:
    a = np.array(a, dtype=float)
    a.flags.writeable = False
    return a


class Trajectory:
    """
    O realizare stocastică: eșantioanele (t_i, u_i) din pașii acceptați.

    Pașii adaptivi sunt neuniformi; `at()` interpolează liniar între noduri
    (interpolarea densă standard pentru scheme SRA) ca să putem evalua starea
    în orice moment din interval.
    """

    def __init__(self, t, u, params, n_accepted: int = 0, n_rejected: int = 0,
                 guard: float = POLE_GUARD):
        t = _frozen(t)
        u = _frozen(u)
        if t.ndim != 1 or t.size == 0:
            raise ValueError("t must be a non-empty 1D array")
        if u.shape != (t.size, STATE_SIZE):
            raise ValueError(f"u must have shape ({t.size}, {STATE_SIZE}), got {u.shape}")
        self._t, self._u = t, u
        self.params = params
        self.n_accepted = n_accepted
        self.n_rejected = n_rejected
        self.guard = guard

    @property
    def t(self) -> np.ndarray:
        """Momentele eșantioanelor, shape (n,)."""
        return self._t

    @property
    def u(self) -> np.ndarray:
        """Stările, shape (n, 12)."""
        return self._u

    @property
    def time_span(self) -> Tuple[float, float]:
        return float(self._t[0]), float(self._t[-1])

    @property
    def final_state(self) -> State:
        return State.from_array(self._u[-1])

    def __len__(self):
        return self._t.size

    def __iter__(self):
        for ti, ui in zip(self._t, self._u):
            yield float(ti), State.from_array(ui)

    def component(self, name: str) -> np.ndarray:
        """Seria temporală a unei componente (ex. 'x', 'p_gamma')."""
        return self._u[:, STATE_FIELDS.index(name)]

    def _check_inside(self, times: np.ndarray):
        t0, t1 = self.time_span
        if times.size and (times.min() < t0 or times.max() > t1):
            raise ValueError(f"query times must lie inside [{t0:g}, {t1:g}]")

    def at(self, times) -> np.ndarray:
        """
        Starea interpolată liniar la momentele `times`.
        Scalar -> shape (12,);  vector -> shape (len(times), 12).
        """
        times = np.asarray(times, dtype=float)
        q = np.atleast_1d(times)
        self._check_inside(q)
        out = np.column_stack([np.interp(q, self._t, self._u[:, j]) for j in range(STATE_SIZE)])
        return out[0] if times.ndim == 0 else out

    def energy(self) -> np.ndarray:
        """Energia mecanică totală în fiecare nod (unități scalate)."""
        from .physics import energy
        return energy(self._u, self.params, guard=self.guard)

    def energy_kT(self) -> np.ndarray:
        """(E - E_fundamental) / kT în fiecare nod."""
        from .physics import normalized_energy
        return normalized_energy(self._u, self.params, guard=self.guard)

    def sample(self, query_times) -> np.ndarray:
        """
        Reeșantionare pe grila comună a ansamblului: shape (n_q, 13),
        coloanele în ordinea TRACKED (12 componente + energy_kT).
        Energia se calculează în noduri și apoi se interpolează.
        """
        q = np.atleast_1d(np.asarray(query_times, dtype=float))
        states = self.at(q)
        e = np.interp(q, self._t, self.energy_kT())
        return np.column_stack([states, e])

    def to_frame(self) -> pd.DataFrame:
        """Tabel columnar: t, cele 12 componente, energy, energy_kT."""
        df = pd.DataFrame(self._u, columns=list(STATE_FIELDS))
        df.insert(0, "t", self._t)
        df["energy"] = self.energy()
        if self.params.kT > 0.0:
            df["energy_kT"] = self.energy_kT()
        return df

    def __repr__(self):
        t0, t1 = self.time_span
        return (f"Trajectory(n={len(self)}, span=[{t0:g}, {t1:g}], "
                f"accepted={self.n_accepted}, rejected={self.n_rejected})")


@dataclass(frozen=True, eq=False)
class EnsembleSummary:
    """
    Statistici pe ansamblu, pe grila `times`:
      mean, lower, upper  shape (n_q, 13), coloane în ordinea `names` (= TRACKED).

    Traiectoriile eșuate nu contribuie, dar sunt numărate (n_failed) și listate
    în `failures` ca perechi (index, motiv). Dacă n_success == 0 statisticile
    sunt NaN și rezultatul NU e valid.
    """

    times: np.ndarray
    names: Tuple[str, ...]
    mean: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    quantiles: Tuple[float, float]
    n_success: int
    n_failed: int
    failures: Tuple[Tuple[int, str], ...] = ()
    entropy: Optional[int] = None

    @property
    def valid(self) -> bool:
        return self.n_success > 0

    @property
    def n_total(self) -> int:
        return self.n_success + self.n_failed

    def band(self, name: str) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """(mean, lower, upper) pentru un scalar urmărit."""
        j = self.names.index(name)
        return self.mean[:, j], self.lower[:, j], self.upper[:, j]

    def to_frame(self) -> pd.DataFrame:
        """Tabel larg: t, <nume>_mean, <nume>_lo, <nume>_hi pentru fiecare scalar."""
        cols = {"t": self.times}
        for j, name in enumerate(self.names):
            cols[f"{name}_mean"] = self.mean[:, j]
            cols[f"{name}_lo"] = self.lower[:, j]
            cols[f"{name}_hi"] = self.upper[:, j]
        return pd.DataFrame(cols)
