# src/rodtrap/errors.py
"""
Erorile pachetului.

  RodTrapError
   ├── ConfigurationError   parametri ne-fizici / configurație invalidă (fatal imediat)
   ├── SingularityError     β în banda de gardă din jurul polilor {0, π}
   └── IntegrationFailure   o traiectorie nu a putut fi integrată
        └── ToleranceExceeded   controlul erorii nu mai converge (pas prea mic / prea multe respingeri)

Ansamblul prinde DOAR IntegrationFailure (per traiectorie); ConfigurationError
oprește tot, înainte de pornirea workerilor.
"""


class RodTrapError(Exception):
    """Baza tuturor erorilor din rodtrap."""


class ConfigurationError(RodTrapError, ValueError):
    """Parametri ne-fizici sau configurație invalidă."""


class SingularityError(RodTrapError, ArithmeticError):
    """β a intrat în banda de gardă a polilor (împărțire la sin^2 β)."""

    def __init__(self, beta, guard):
        self.beta = float(beta)
        self.guard = float(guard)
        super().__init__(f"beta={self.beta:.6g} rad is within {self.guard:g} rad of a pole")


class IntegrationFailure(RodTrapError):
    """Integrarea unei traiectorii a eșuat (izolat; nu oprește ansamblul)."""

    def __init__(self, message, time=None, reason="failure"):
        self.time = time
        self.reason = reason
        super().__init__(message)


class ToleranceExceeded(IntegrationFailure):
    """Eroarea locală nu poate fi adusă sub toleranță în bugetul de respingeri."""

    def __init__(self, message, time=None):
        super().__init__(message, time=time, reason="tolerance")
