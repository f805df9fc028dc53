# src/rodtrap/config.py

# Unități: timpii (dt_*) sunt în unitatea de timp scalată T0 = 100 ns (vezi constants.py);
# toleranța este adimensională (aceeași valoare pentru reltol și abstol).

import math
import os
from dataclasses import dataclass, replace as _replace
from typing import Optional, Tuple

from .errors import ConfigurationError

# Cuantilele ±1σ ale unei normale standard: Φ(-1), Φ(+1).
SIGMA_QUANTILES = (0.15865525393145707, 0.8413447460685429)

# Lățimea benzii de gardă în jurul polilor β ∈ {0, π} [rad].
POLE_GUARD = 1e-3

EXECUTORS = ("process", "thread", "serial")


@dataclass(frozen=True)
class SimConfig:
    """
    ============================================================================
    CONFIGURAȚIA RULĂRII — integrator + ansamblu
    ============================================================================

    SCOP
    ----
    Reunește setările *numerice* (toleranță, bugete de pas) și cele de execuție
    (seed, pool de workeri, cuantile). Fizica stă în ParameterSet; aici nu intră
    nicio mărime fizică.

    INTEGRATOR (SRA1 adaptiv)
    -------------------------
    • Eroarea locală e comparată cu  tol * (1 + max(|u_n|, |u_{n+1}|))  pe componente,
      normă RMS; pasul e acceptat dacă norma ≤ 1.
    • Un pas respins (eroare mare, β în banda polilor, valori ne-finite) e refăcut
      cu pas mai mic; după `max_rejections` respingeri CONSECUTIVE traiectoria eșuează.

    ANSAMBLU
    --------
    • `seed` e rădăcina unui SeedSequence; fiecare traiectorie primește un copil
      independent (spawn) ⇒ rezultatul nu depinde de ordinea execuției.
    • `executor`: "process" (paralelism real), "thread" sau "serial" (depanare/teste).
    """

    # -----------------------
    # INTEGRATOR
    # -----------------------

    tolerance: float = 1e-5
    # Toleranța relativă ȘI absolută (simetrică).

    dt_initial: Optional[float] = None
    # Pasul inițial; None ⇒ estimat automat din |u| și |f(u)|.

    dt_min: float = 1e-12
    # Sub acest pas controlul erorii e considerat eșuat (ToleranceExceeded).

    dt_max: Optional[float] = None
    # Plafon pentru pas; None ⇒ lungimea intervalului de timp.

    max_rejections: int = 60
    # Bugetul de respingeri consecutive (retry budget).

    max_steps: Optional[int] = None
    # Plafon pentru pașii acceptați; None ⇒ fără plafon.

    pole_guard: float = POLE_GUARD
    # Banda de gardă [rad]: β ≤ pole_guard sau β ≥ π - pole_guard e singular.

    # -----------------------
    # ANSAMBLU / RNG
    # -----------------------

    seed: Optional[int] = None
    # Sămânța rădăcină. None ⇒ entropie nouă (raportată în EnsembleSummary.entropy).

    quantiles: Tuple[float, float] = SIGMA_QUANTILES
    # Cuantila inferioară și cea superioară a benzii.

    workers: Optional[int] = None
    # Numărul de workeri; None ⇒ os.cpu_count().

    executor: str = "process"
    # "process" | "thread" | "serial"

    def __post_init__(self):
        if not self.tolerance > 0.0:
            raise ConfigurationError(f"tolerance must be > 0, got {self.tolerance!r}")
        if self.dt_initial is not None and not self.dt_initial > 0.0:
            raise ConfigurationError("dt_initial must be > 0")
        if not self.dt_min > 0.0:
            raise ConfigurationError("dt_min must be > 0")
        if self.dt_max is not None and not self.dt_max > self.dt_min:
            raise ConfigurationError("dt_max must be > dt_min")
        if self.max_rejections < 0:
            raise ConfigurationError("max_rejections must be >= 0")
        if self.max_steps is not None and self.max_steps < 1:
            raise ConfigurationError("max_steps must be >= 1")
        if not 0.0 < self.pole_guard < 0.5 * math.pi:
            raise ConfigurationError(f"pole_guard must lie in (0, pi/2), got {self.pole_guard!r}")
        lo, hi = self.quantiles
        if not 0.0 < lo < hi < 1.0:
            raise ConfigurationError(f"quantiles must satisfy 0 < lo < hi < 1, got {self.quantiles!r}")
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError("workers must be >= 1")
        if self.executor not in EXECUTORS:
            raise ConfigurationError(f"executor must be one of {EXECUTORS}, got {self.executor!r}")

    @property
    def worker_count(self) -> int:
        return self.workers if self.workers is not None else (os.cpu_count() or 1)

    def replace(self, **changes) -> "SimConfig":
        return _replace(self, **changes)
