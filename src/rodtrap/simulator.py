# src/rodtrap/simulator.py

# Despre NumPy (np):
#  - Fiecare traiectorie primește un copil independent al unui SeedSequence
#    (SeedSequence(seed).spawn(n)): fluxuri de numere aleatoare care nu se suprapun,
#    determinate doar de (seed, index), nu de ordinea în care rulează workerii.
#  - Rezultatul unei traiectorii e reeșantionat pe grila comună: shape (n_q, 13).
#  - Statisticile se fac pe stiva (n_succes, n_q, 13), ordonată după index.

import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from contextlib import nullcontext
from typing import Optional

import numpy as np
from threadpoolctl import threadpool_limits

from .config import SimConfig
from .errors import ConfigurationError, IntegrationFailure
from .integrator import integrate, validate_initial
from .metrics import summarize
from .models import TRACKED, EnsembleSummary

logger = logging.getLogger(__name__)


def _limit_blas_threads():
    # inițializator pentru procesele din pool: un fir BLAS per worker
    threadpool_limits(limits=1)


def _run_slot(index, seed, initial_state, params, time_span, cfg, query_times):
    """
    O traiectorie, izolată: eșecul ei (IntegrationFailure) devine o înregistrare,
    nu o excepție care ar opri ansamblul.
    """
    try:
        traj = integrate(initial_state, params, time_span, cfg=cfg, seed=seed)
    except IntegrationFailure as exc:
        return index, None, f"{exc.reason}: {exc}"
    return index, traj.sample(query_times), None


class EnsembleRunner:
    """
    ORCHESTRATORUL ANSAMBLULUI (SRP)
    --------------------------------
    • Validează intrările (o ConfigurationError oprește tot, înainte de workeri).
    • Derivă câte un seed independent pentru fiecare traiectorie.
    • Rulează traiectoriile într-un pool fix de workeri (procese / fire / serial).
    • Așteaptă TOATE rezultatele (barieră), apoi calculează media și benzile.

    Nimic mutabil nu e partajat între traiectorii: fiecare worker își face
    propriul integrator, ParameterSet e imuabil.
    """

    def __init__(self, params, cfg: Optional[SimConfig] = None):
        self.params = params
        self.cfg = cfg if cfg is not None else SimConfig()

    def _validate(self, initial_state, time_span, trajectory_count, query_times):
        if not self.params.kT > 0.0:
            raise ConfigurationError("ensemble statistics need temperature > 0 (thermal noise)")
        if trajectory_count < 1:
            raise ConfigurationError(f"trajectory_count must be >= 1, got {trajectory_count!r}")
        u0, t0, t1 = validate_initial(initial_state, time_span, self.cfg.pole_guard)
        q = np.atleast_1d(np.array(query_times, dtype=float))
        if q.ndim != 1 or q.size == 0:
            raise ConfigurationError("query_times must be a non-empty 1D grid")
        if not np.all(np.isfinite(q)) or q.min() < t0 or q.max() > t1:
            raise ConfigurationError(f"query_times must lie inside [{t0:g}, {t1:g}]")
        return u0, (t0, t1), q

    def _pool(self):
        cfg = self.cfg
        if cfg.executor == "process":
            return ProcessPoolExecutor(max_workers=cfg.worker_count, initializer=_limit_blas_threads)
        return ThreadPoolExecutor(max_workers=cfg.worker_count)

    def _execute(self, jobs):
        if self.cfg.executor == "serial":
            with threadpool_limits(limits=1):
                return [_run_slot(*job) for job in jobs]
        # în modul "thread" limitarea BLAS se face o dată, pentru tot procesul
        limits = threadpool_limits(limits=1) if self.cfg.executor == "thread" else nullcontext()
        with limits, self._pool() as pool:
            futures = [pool.submit(_run_slot, *job) for job in jobs]
            return [fut.result() for fut in as_completed(futures)]

    def run(self, initial_state, time_span, trajectory_count: int, query_times) -> EnsembleSummary:
        """
        Rulează `trajectory_count` realizări independente și întoarce EnsembleSummary
        pe grila `query_times`.
        """
        cfg = self.cfg
        u0, span, q = self._validate(initial_state, time_span, trajectory_count, query_times)

        root = np.random.SeedSequence(cfg.seed)
        seeds = root.spawn(trajectory_count)
        jobs = [(i, seeds[i], u0, self.params, span, cfg, q) for i in range(trajectory_count)]

        logger.info("ensemble: %d trajectories on [%g, %g], tol=%g, executor=%s, workers=%d",
                    trajectory_count, span[0], span[1], cfg.tolerance, cfg.executor,
                    1 if cfg.executor == "serial" else cfg.worker_count)

        results = sorted(self._execute(jobs), key=lambda r: r[0])
        ok = [r[1] for r in results if r[2] is None]
        failures = tuple((r[0], r[2]) for r in results if r[2] is not None)
        for index, reason in failures:
            logger.warning("trajectory %d excluded: %s", index, reason)

        samples = np.stack(ok) if ok else np.empty((0, q.size, len(TRACKED)))
        mean, lower, upper = summarize(samples, cfg.quantiles)
        for a in (q, mean, lower, upper):
            a.flags.writeable = False

        if not ok:
            logger.warning("ensemble: all %d trajectories failed; summary is invalid", trajectory_count)
        else:
            logger.info("ensemble: %d succeeded, %d failed", len(ok), len(failures))

        return EnsembleSummary(
            times=q, names=TRACKED, mean=mean, lower=lower, upper=upper,
            quantiles=tuple(cfg.quantiles), n_success=len(ok), n_failed=len(failures),
            failures=failures, entropy=root.entropy,
        )


def run_ensemble(initial_state, params, time_span, tolerance: Optional[float],
                 trajectory_count: int, query_times,
                 cfg: Optional[SimConfig] = None) -> EnsembleSummary:
    """
    Forma funcțională a EnsembleRunner.run; `tolerance` (dacă nu e None)
    suprascrie cfg.tolerance.
    """
    cfg = cfg if cfg is not None else SimConfig()
    if tolerance is not None:
        cfg = cfg.replace(tolerance=tolerance)
    return EnsembleRunner(params, cfg).run(initial_state, time_span, trajectory_count, query_times)
