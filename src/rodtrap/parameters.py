# src/rodtrap/parameters.py

# Unități:
#  - PhysicalInputs este în SI (m, kg, s, K, W) + presiunea în mbar.
#  - ParameterSet este în unitățile SCALATE din constants.py (µm, 1e-18 kg, 100 ns).
#  - Conversia SI -> scalat se face O SINGURĂ DATĂ, în derive_parameters().

import math
from dataclasses import dataclass, fields, replace as _replace
from typing import Optional

import numpy as np

from .constants import (AMU, C_LIGHT, EPS0, FIELD_UNIT_FACTOR, KB, KB_SI,
                        LENGTH_UNIT, MASS_UNIT, MBAR, TIME_UNIT)
from .errors import ConfigurationError
from .models import State


@dataclass(frozen=True)
class ParameterSet:
    """
    ============================================================================
    CONSTANTELE FIZICE DERIVATE — un pachet imuabil, citit de tot restul codului
    ============================================================================

    MODELUL
    -------
    Bastonaș (nanorod) birefringent într-o undă staționară gaussiană, polarizată pe x:

      U(r, Ω) = -U0 * exp(-2x^2/Wx^2 - 2y^2/Wy^2) * cos^2(k z) * chi_term(α, β)
      chi_term = χ⊥/χ∥ + (Δχ/χ∥) sin^2 β cos^2 α
      U0       = V χ∥ E^2 / 4              (ε0 e inclus în E scalat)

    Termenul sin^2 β cos^2 α este n_x^2, pătratul proiecției axei bastonașului
    pe direcția de polarizare.

    Amortizarea: Γcm⊥/Γcm∥ pentru translație (față de axa bastonașului),
    Γrot⊥/Γrot∥ pentru rotație. Temperatura T intră doar prin kT = KB * T.

    UNITĂȚI (scalate)
    -----------------
      mass [M0], inertia_* [M0 L0^2], volume [L0^3], waist_* [L0],
      wavenumber [1/L0], damping_* [1/T0], temperature [K].
    """

    mass: float
    # Masa particulei m.

    inertia_I: float
    # Momentul de inerție față de o axă perpendiculară pe bastonaș.

    inertia_Ic: float
    # Momentul de inerție față de axa de simetrie (I_c).

    volume: float
    # Volumul V.

    field_amplitude: float
    # Amplitudinea câmpului la antinod, scalată astfel încât U0 = V χ∥ E^2 / 4.

    waist_x: float
    waist_y: float
    # Talia fasciculului pe x și y (profil gaussian exp(-2x^2/W^2)).

    wavenumber: float
    # k = 2π/λ; perioada undei staționare pe z este π/k.

    susceptibility_perp: float
    susceptibility_par: float
    susceptibility_delta: float
    # χ⊥, χ∥ și Δχ = χ∥ - χ⊥.

    damping_cm_perp: float
    damping_cm_par: float
    # Ratele de amortizare ale centrului de masă (perpendicular/paralel cu axa).

    damping_rot_perp: float
    damping_rot_par: float
    # Ratele de amortizare rotațională (în jurul unei axe perpendiculare / axei proprii).

    temperature: float
    # Temperatura [K]. T = 0 ⇒ fără zgomot (dinamică deterministă).

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not np.isfinite(value):
                raise ConfigurationError(f"{f.name} must be finite, got {value!r}")
        for name in ("mass", "inertia_I", "inertia_Ic", "volume",
                     "waist_x", "waist_y", "wavenumber"):
            if getattr(self, name) <= 0.0:
                raise ConfigurationError(f"{name} must be > 0, got {getattr(self, name)!r}")
        for name in ("field_amplitude", "damping_cm_perp", "damping_cm_par",
                     "damping_rot_perp", "damping_rot_par", "temperature"):
            if getattr(self, name) < 0.0:
                raise ConfigurationError(f"{name} must be >= 0, got {getattr(self, name)!r}")
        if self.susceptibility_par == 0.0:
            raise ConfigurationError("susceptibility_par must be non-zero (chi_term divides by it)")

    # ------------------------------------------------------------------
    # Mărimi derivate
    # ------------------------------------------------------------------
    @property
    def kT(self) -> float:
        """Energia termică kT în unități scalate."""
        return KB * self.temperature

    @property
    def trap_depth(self) -> float:
        """U0 = V χ∥ E^2 / 4 (adâncimea capcanei pentru chi_term = 1)."""
        return self.volume * self.susceptibility_par * self.field_amplitude ** 2 / 4.0

    def ground_state(self) -> State:
        """
        Starea de energie minimă: centrul capcanei, în repaus, cu axa bastonașului
        pe direcția cu polarizabilitate maximă (x dacă Δχ >= 0, altfel y).
        """
        alpha = 0.0 if self.susceptibility_delta >= 0.0 else 0.5 * math.pi
        return State(0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
                     alpha, 0.5 * math.pi, 0.0, 0.0, 0.0, 0.0)

    def replace(self, **changes) -> "ParameterSet":
        """Copie validată cu câmpurile schimbate (ex. temperature=0.0)."""
        return _replace(self, **changes)

    @classmethod
    def from_physical(cls, inputs: Optional["PhysicalInputs"] = None) -> "ParameterSet":
        return derive_parameters(PhysicalInputs() if inputs is None else inputs)


@dataclass(frozen=True)
class PhysicalInputs:
    """
    Mărimile de laborator (SI) din care se derivă ParameterSet.
    Valorile implicite descriu un bastonaș de siliciu (SiO2) la 300 K și 1 mbar.
    """

    temperature: float = 300.0
    # Temperatura internă / a băii termice [K].

    pressure: float = 1.0
    # Presiunea gazului [mbar].

    length: float = 500e-9
    radius: float = 50e-9
    # Geometria bastonașului (cilindru) [m].

    density: float = 2200.0
    # Densitatea materialului [kg/m^3].

    permittivity: float = 2.1
    # Permitivitatea relativă εr (n ≈ 1.45 pentru silice la 1550 nm).

    power: float = 0.1
    # Puterea optică pe fascicul [W]; două fascicule contrapropagante.

    waist_x: float = 1.0e-6
    waist_y: float = 1.0e-6
    # Taliile fasciculului [m].

    wavelength: float = 1550e-9
    # Lungimea de undă [m].

    gas_mass: float = 28.97 * AMU
    # Masa moleculei de gaz [kg] (aer).

    gas_temperature: Optional[float] = None
    # Temperatura gazului [K]; None ⇒ aceeași cu `temperature`.


def derive_parameters(inputs: PhysicalInputs) -> ParameterSet:
    """
    Conversie pură SI -> ParameterSet (unități scalate). Fără I/O.

    Geometrie (cilindru de lungime L, rază R):
      V = π R^2 L,   m = ρ V,   I = m (L^2/12 + R^2/4),   I_c = m R^2 / 2

    Susceptibilități (cilindru subțire):
      χ∥ = εr - 1,   χ⊥ = 2 (εr - 1) / (εr + 1)

    Câmp (undă staționară din două fascicule gaussiene de putere P):
      |E|^2 = 16 P / (π ε0 c Wx Wy)   la antinod

    Amortizare în regim molecular liber, cu v̄ = sqrt(8 kB T_gaz / (π m_gaz)),
    γ_gaz = p R L / (m v̄):
      Γcm∥  = 2π γ_gaz
      Γcm⊥  = 2 (2 + π) γ_gaz
      Γrot∥ = Γcm∥ * m R^2 / I_c     (frecare tangențială la raza R)
      Γrot⊥ = Γcm⊥ * (m L^2/12) / I  (doar suprafața laterală)
    """
    inp = inputs
    for name in ("length", "radius", "density", "waist_x", "waist_y",
                 "wavelength", "gas_mass"):
        if not getattr(inp, name) > 0.0:
            raise ConfigurationError(f"{name} must be > 0, got {getattr(inp, name)!r}")
    for name in ("temperature", "pressure", "power"):
        if not getattr(inp, name) >= 0.0:
            raise ConfigurationError(f"{name} must be >= 0, got {getattr(inp, name)!r}")
    if not inp.permittivity > 1.0:
        raise ConfigurationError(f"permittivity must be > 1, got {inp.permittivity!r}")

    T_gas = inp.temperature if inp.gas_temperature is None else inp.gas_temperature
    if not T_gas > 0.0:
        raise ConfigurationError(f"gas temperature must be > 0, got {T_gas!r}")

    # --- geometrie (SI) ---
    L, R = inp.length, inp.radius
    V = math.pi * R ** 2 * L                          # [m^3]
    m = inp.density * V                               # [kg]
    I = m * (L ** 2 / 12.0 + R ** 2 / 4.0)            # [kg m^2]
    Ic = m * R ** 2 / 2.0                             # [kg m^2]

    # --- optică ---
    chi_par = inp.permittivity - 1.0
    chi_perp = 2.0 * (inp.permittivity - 1.0) / (inp.permittivity + 1.0)
    k = 2.0 * math.pi / inp.wavelength                # [1/m]
    E2 = 16.0 * inp.power / (math.pi * EPS0 * C_LIGHT * inp.waist_x * inp.waist_y)  # [V^2/m^2]

    # --- gaz (regim molecular liber) ---
    v_mean = math.sqrt(8.0 * KB_SI * T_gas / (math.pi * inp.gas_mass))   # [m/s]
    gamma_gas = inp.pressure * MBAR * R * L / (m * v_mean)              # [1/s]
    G_cm_par = 2.0 * math.pi * gamma_gas
    G_cm_perp = 2.0 * (2.0 + math.pi) * gamma_gas
    G_rot_par = G_cm_par * m * R ** 2 / Ic
    G_rot_perp = G_cm_perp * (m * L ** 2 / 12.0) / I

    # --- conversie în unități scalate ---
    return ParameterSet(
        mass=m / MASS_UNIT,
        inertia_I=I / (MASS_UNIT * LENGTH_UNIT ** 2),
        inertia_Ic=Ic / (MASS_UNIT * LENGTH_UNIT ** 2),
        volume=V / LENGTH_UNIT ** 3,
        field_amplitude=math.sqrt(E2) * FIELD_UNIT_FACTOR,
        waist_x=inp.waist_x / LENGTH_UNIT,
        waist_y=inp.waist_y / LENGTH_UNIT,
        wavenumber=k * LENGTH_UNIT,
        susceptibility_perp=chi_perp,
        susceptibility_par=chi_par,
        susceptibility_delta=chi_par - chi_perp,
        damping_cm_perp=G_cm_perp * TIME_UNIT,
        damping_cm_par=G_cm_par * TIME_UNIT,
        damping_rot_perp=G_rot_perp * TIME_UNIT,
        damping_rot_par=G_rot_par * TIME_UNIT,
        temperature=inp.temperature,
    )
