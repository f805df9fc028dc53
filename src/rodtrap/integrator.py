# src/rodtrap/integrator.py

# Despre NumPy (np):
#  - Fiecare traiectorie are propriul np.random.Generator (nu folosim RNG-ul global):
#    același seed ⇒ exact aceeași traiectorie, indiferent de firul/procesul care o rulează.
#  - Incrementul Wiener are 6 canale (coloanele matricei de difuzie), dW ~ N(0, h I_6).

import logging
from typing import Optional, Tuple

import numpy as np

from .config import SimConfig
from .errors import (ConfigurationError, IntegrationFailure, SingularityError,
                     ToleranceExceeded)
from .models import IDX_BETA, NOISE_CHANNELS, STATE_SIZE, Trajectory
from .physics import check_pole, diffusion, drift

logger = logging.getLogger(__name__)

# =============================================================================
# SRA1 ADAPTIV (Rößler 2010, familia SRA / SOSRA)
# -----------------------------------------------------------------------------
# Schemă Runge–Kutta stocastică în două etape pentru zgomot aditiv:
#
#   χ    = (ΔW + ΔZ/√3) / 2                      ( = I_(1,0) / h )
#   H2   = X + 3/4 h f(X) + 3/2 g(X) χ
#   X'   = X + h (1/3 f(X) + 2/3 f(H2)) + g(X) ΔW
#
# cu ΔW, ΔZ ~ N(0, h) independente. Partea deterministă e metoda Ralston (RK2).
#
# Zgomotul NU e strict aditiv aici (g depinde de α, β), dar intră doar pe impulsuri
# iar g depinde doar de unghiuri ⇒ termenul Milstein (∂g/∂X) g e identic zero;
# g evaluat la începutul pasului e consistent.
#
# Estimarea erorii locale:
#   E = δ * 2/3 h (f(H2) - f(X)) + (g(H2) - g(X)) χ,      δ = 1/6
#   err = RMS( E / (tol (1 + max(|X|, |X'|))) )   → acceptat dacă err ≤ 1
#
# Pași respinși: incrementul ΔW deja tras NU se aruncă; se împarte printr-o punte
# browniană (prima parte e folosită la reîncercare, restul e pus pe o stivă și
# consumat de pașii următori). Altfel statistica zgomotului ar fi deformată de
# respingerile condiționate de zgomot.
# =============================================================================

DELTA = 1.0 / 6.0
SAFETY = 0.9
QMIN = 0.2
QMAX = 1.125
SHRINK = 0.5          # factorul de micșorare după o respingere fără estimare (pol / ne-finit)
SQRT3 = np.sqrt(3.0)


def as_generator(seed) -> np.random.Generator:
    """int | SeedSequence | Generator | None -> Generator."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


class BrownianPath:
    """
    Sursa de incremente Wiener pentru o traiectorie, cu memorie pentru pașii respinși.

    Stiva conține segmentele (h, ΔW) deja "trase" din viitorul drumului brownian;
    vârful stivei e segmentul imediat următor momentului curent.
    """

    def __init__(self, rng: np.random.Generator, channels: int = NOISE_CHANNELS):
        self.rng = rng
        self.channels = channels
        self._stack = []

    def _normal(self):
        return self.rng.standard_normal(self.channels)

    def _bridge(self, h, dW, h_new):
        # ΔW(h_new) | ΔW(h)  ~  N(q ΔW, q (1 - q) h),  q = h_new / h
        q = h_new / h
        return q * dW + np.sqrt(q * (1.0 - q) * h) * self._normal()

    def next(self, h: float) -> Tuple[float, np.ndarray]:
        """Incrementul pentru un pas de lungime cel mult h: întoarce (h_efectiv, ΔW)."""
        if self._stack:
            h_s, dW_s = self._stack.pop()
            if h >= h_s:
                return h_s, dW_s
            dW = self._bridge(h_s, dW_s, h)
            self._stack.append((h_s - h, dW_s - dW))
            return h, dW
        return h, np.sqrt(h) * self._normal()

    def split(self, h: float, dW: np.ndarray, h_new: float) -> np.ndarray:
        """Pas respins (h, ΔW) -> incrementul pe primul h_new; restul merge pe stivă."""
        dW_new = self._bridge(h, dW, h_new)
        self._stack.append((h - h_new, dW - dW_new))
        return dW_new

    def auxiliary(self, h: float) -> np.ndarray:
        """ΔZ ~ N(0, h), independent de ΔW (pentru integrala iterată I_(1,0))."""
        return np.sqrt(h) * self._normal()

    @property
    def pending(self) -> int:
        return len(self._stack)


def validate_initial(initial_state, time_span, guard) -> Tuple[np.ndarray, float, float]:
    u0 = np.asarray(initial_state, dtype=float)
    if u0.shape != (STATE_SIZE,):
        raise ConfigurationError(f"initial state must have shape ({STATE_SIZE},), got {u0.shape}")
    if not np.all(np.isfinite(u0)):
        raise ConfigurationError("initial state must be finite")
    try:
        check_pole(u0[IDX_BETA], guard)
    except SingularityError as exc:
        raise ConfigurationError(f"initial state is singular: {exc}") from exc
    t0, t1 = (float(v) for v in time_span)
    if not (np.isfinite(t0) and np.isfinite(t1) and t1 > t0):
        raise ConfigurationError(f"time span must satisfy t0 < t1, got {time_span!r}")
    return u0, t0, t1


class SRA1Integrator:
    """
    Integrator adaptiv SRA1 pentru O traiectorie. Fără stare partajată: fiecare
    worker își construiește propria instanță (params e imuabil).
    """

    def __init__(self, params, cfg: Optional[SimConfig] = None):
        self.params = params
        self.cfg = cfg if cfg is not None else SimConfig()

    def f(self, u):
        return drift(u, self.params, self.cfg.pole_guard)

    def g(self, u):
        return diffusion(u, self.params, self.cfg.pole_guard)

    def _scale(self, u, u_new=None):
        tol = self.cfg.tolerance
        mag = np.abs(u) if u_new is None else np.maximum(np.abs(u), np.abs(u_new))
        return tol + tol * mag

    def step(self, u, h, dW, dZ) -> Tuple[np.ndarray, float]:
        """
        Un pas SRA1 de lungime h. Întoarce (u_nou, err) cu err normalizat
        (≤ 1 ⇒ acceptat). Ridică SingularityError dacă o etapă sau rezultatul
        intră în banda polilor.
        """
        chi = 0.5 * (dW + dZ / SQRT3)
        f1 = self.f(u)
        g1 = self.g(u)
        H2 = u + 0.75 * h * f1 + 1.5 * (g1 @ chi)
        f2 = self.f(H2)
        u_new = u + h * (f1 / 3.0 + 2.0 * f2 / 3.0) + g1 @ dW
        if not np.all(np.isfinite(u_new)):
            return u_new, np.inf
        check_pole(u_new[IDX_BETA], self.cfg.pole_guard)

        E = DELTA * (2.0 / 3.0) * h * (f2 - f1) + (self.g(H2) - g1) @ chi
        err = float(np.sqrt(np.mean((E / self._scale(u, u_new)) ** 2)))
        return u_new, err

    def initial_step(self, u, span: float) -> float:
        cfg = self.cfg
        if cfg.dt_initial is not None:
            return min(cfg.dt_initial, span)
        sc = self._scale(u)
        d0 = np.sqrt(np.mean((u / sc) ** 2))
        d1 = np.sqrt(np.mean((self.f(u) / sc) ** 2))
        if d0 < 1e-5 or d1 < 1e-5:
            h0 = 1e-6 * span
        else:
            h0 = 0.01 * d0 / d1
        return float(min(h0, span))

    def _fail(self, t, h, retries, cause):
        logger.debug("integration failed at t=%g after %d retries (h=%g)", t, retries, h)
        if cause is not None:
            raise IntegrationFailure(
                f"step rejected {retries} times near a pole at t={t:g}: {cause}",
                time=t, reason="singularity") from cause
        raise ToleranceExceeded(
            f"local error above tolerance after {retries} retries at t={t:g} (h={h:g})",
            time=t)

    def run(self, initial_state, time_span, rng: np.random.Generator) -> Trajectory:
        """
        Integrează pe [t0, t1]. Întoarce Trajectory sau ridică IntegrationFailure
        (ToleranceExceeded pentru controlul erorii).
        """
        cfg = self.cfg
        u, t0, t1 = validate_initial(initial_state, time_span, cfg.pole_guard)
        span = t1 - t0
        dt_max = span if cfg.dt_max is None else min(cfg.dt_max, span)
        path = BrownianPath(rng)

        ts, us = [t0], [u]
        t = t0
        h = min(self.initial_step(u, span), dt_max)
        n_acc = n_rej = 0

        while t < t1:
            if cfg.max_steps is not None and n_acc >= cfg.max_steps:
                raise IntegrationFailure(f"max_steps={cfg.max_steps} reached at t={t:g}",
                                         time=t, reason="max_steps")
            h, dW = path.next(min(h, t1 - t, dt_max))

            # --- reîncercări până la acceptare (sau epuizarea bugetului) ---
            rejections = 0
            while True:
                dZ = path.auxiliary(h)
                cause = None
                try:
                    u_new, err = self.step(u, h, dW, dZ)
                except SingularityError as exc:
                    u_new, err, cause = None, np.inf, exc
                if err <= 1.0:
                    break

                n_rej += 1
                rejections += 1
                factor = SHRINK if not np.isfinite(err) else max(QMIN, SAFETY * err ** -0.5)
                h_new = h * factor
                if rejections > cfg.max_rejections or h_new < cfg.dt_min:
                    self._fail(t, h, rejections - 1, cause)
                dW = path.split(h, dW, h_new)
                h = h_new

            # --- pas acceptat ---
            t_next = t + h
            if t1 - t_next <= 1e-12 * span:
                t_next = t1
            t, u = t_next, u_new
            ts.append(t)
            us.append(u)
            n_acc += 1

            factor = QMAX if err == 0.0 else min(QMAX, max(QMIN, SAFETY * err ** -0.5))
            h = h * factor

        return Trajectory(np.array(ts), np.array(us), self.params,
                          n_accepted=n_acc, n_rejected=n_rej, guard=cfg.pole_guard)


def integrate(initial_state, params, time_span, tolerance: Optional[float] = None,
              seed=None, cfg: Optional[SimConfig] = None) -> Trajectory:
    """
    Integrează o traiectorie.

    Parametri
    ---------
    initial_state : State | array-like (12,)
    params        : ParameterSet
    time_span     : (t0, t1) în unități scalate de timp
    tolerance     : toleranța simetrică (rel = abs); None ⇒ cfg.tolerance
    seed          : int | SeedSequence | Generator; None ⇒ cfg.seed
    cfg           : SimConfig (bugete de pas, banda polilor)

    Ridică ConfigurationError (stare/interval invalid) sau IntegrationFailure.
    """
    cfg = cfg if cfg is not None else SimConfig()
    if tolerance is not None:
        cfg = cfg.replace(tolerance=tolerance)
    if seed is None:
        seed = cfg.seed
    return SRA1Integrator(params, cfg).run(initial_state, time_span, as_generator(seed))
