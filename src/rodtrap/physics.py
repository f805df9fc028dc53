# src/rodtrap/physics.py

# Despre NumPy (np):
#  - drift/diffusion lucrează pe O SINGURĂ stare (shape (12,)) și întorc tablouri noi;
#    nu scriu în buffere partajate, deci sunt sigure în paralel.
#  - energy e vectorizată: acceptă (12,) sau (..., 12).
#  - Unități: cele scalate din constants.py (µm, 1e-18 kg, 100 ns).

import numpy as np

from .config import POLE_GUARD
from .errors import ConfigurationError, SingularityError
from .models import MOMENTUM, NOISE_CHANNELS, STATE_SIZE

# =============================================================================
# MODELUL: BASTONAȘ BIREFRINGENT ÎN UNDĂ STAȚIONARĂ, CU GAZ TERMIC
# -----------------------------------------------------------------------------
# Hamiltonianul (unghiuri Euler z-y-z, simetric în jurul axei proprii):
#
#   H = |p|^2/(2m) + pβ^2/(2I) + (pα - pγ cosβ)^2/(2I sin^2β) + pγ^2/(2Ic) + U(r, α, β)
#   U = -U0 * exp(-2x^2/Wx^2 - 2y^2/Wy^2) * cos^2(kz) * chi_term(α, β)
#
# Ecuațiile Langevin (zgomotul intră DOAR pe impulsuri):
#
#   dq = ∂H/∂p dt
#   dp = (-∂H/∂q - K ∂H/∂p) dt + B dW
#
# K = matricea de frecare (simetrică, 6×6 pe impulsuri), B = matricea de difuzie.
# Fluctuație–disipație:  B B^T = 2 kT K  ⇒ echilibru Gibbs exp(-H/kT).
#
# Translație: K_cm = m R diag(Γcm⊥, Γcm⊥, Γcm∥) R^T,  R = Rz(α) Ry(β),
#   coloana a treia a lui R este axa bastonașului n = (sβ cα, sβ sα, cβ).
# Rotație: cuplul de frecare -Γrot⊥ I ω⊥ - Γrot∥ Ic ω∥ n, proiectat pe (α, β, γ):
#   Q_α = -Γrot⊥ (pα - pγ cosβ) - Γrot∥ pγ cosβ
#   Q_β = -Γrot⊥ pβ
#   Q_γ = -Γrot∥ pγ
# =============================================================================


def check_pole(beta, guard: float = POLE_GUARD):
    """Ridică SingularityError dacă vreun β e în banda [0, guard] ∪ [π - guard, π] (sau în afara lui (0, π))."""
    b = np.asarray(beta, dtype=float)
    bad = ~np.isfinite(b) | (b <= guard) | (b >= np.pi - guard)
    if np.any(bad):
        raise SingularityError(np.atleast_1d(b)[np.atleast_1d(bad)][0], guard)


def chi_term(alpha, beta, params):
    """χ⊥/χ∥ + (Δχ/χ∥) sin^2β cos^2α : polarizabilitatea efectivă pe x, relativ la χ∥."""
    p = params
    return (p.susceptibility_perp / p.susceptibility_par
            + p.susceptibility_delta / p.susceptibility_par * np.sin(beta) ** 2 * np.cos(alpha) ** 2)


def lab_rotation(alpha, beta) -> np.ndarray:
    """R = Rz(α) Ry(β); coloanele sunt axele corpului exprimate în laborator."""
    sa, ca = np.sin(alpha), np.cos(alpha)
    sb, cb = np.sin(beta), np.cos(beta)
    return np.array([[ca * cb, -sa, ca * sb],
                     [sa * cb, ca, sa * sb],
                     [-sb, 0.0, cb]])


def lab_damping(alpha, beta, params) -> np.ndarray:
    """Operatorul de amortizare pe impulsul liniar (rate [1/T0]), în coordonate de laborator."""
    R = lab_rotation(alpha, beta)
    rates = np.array([params.damping_cm_perp, params.damping_cm_perp, params.damping_cm_par])
    return (R * rates) @ R.T


def translational_friction(alpha, beta, params) -> np.ndarray:
    """K_cm = m * lab_damping (frecare pe viteze)."""
    return params.mass * lab_damping(alpha, beta, params)


def rotational_friction(beta, params) -> np.ndarray:
    """
    K_rot pe vitezele generalizate (α̇, β̇, γ̇):

      [[Γ⊥ I s^2 + Γ∥ Ic c^2,   0,      Γ∥ Ic c],
       [0,                      Γ⊥ I,   0      ],
       [Γ∥ Ic c,                0,      Γ∥ Ic  ]]
    """
    p = params
    sb, cb = np.sin(beta), np.cos(beta)
    k_perp = p.damping_rot_perp * p.inertia_I
    k_par = p.damping_rot_par * p.inertia_Ic
    return np.array([[k_perp * sb ** 2 + k_par * cb ** 2, 0.0, k_par * cb],
                     [0.0, k_perp, 0.0],
                     [k_par * cb, 0.0, k_par]])


def friction_matrix(state, params) -> np.ndarray:
    """Matricea de frecare 6×6 pe (px, py, pz, pα, pβ, pγ), bloc-diagonală și simetrică."""
    u = np.asarray(state, dtype=float)
    alpha, beta = u[6], u[7]
    K = np.zeros((6, 6))
    K[:3, :3] = translational_friction(alpha, beta, params)
    K[3:, 3:] = rotational_friction(beta, params)
    return K


def _optical_profile(x, y, z, params):
    """Factorii profilului de intensitate: (gauss(x, y), cos^2(kz))."""
    p = params
    gauss = np.exp(-2.0 * x ** 2 / p.waist_x ** 2 - 2.0 * y ** 2 / p.waist_y ** 2)
    return gauss, np.cos(p.wavenumber * z) ** 2


def drift(state, params, guard: float = POLE_GUARD) -> np.ndarray:
    """
    Derivata deterministă a stării, shape (12,). Funcție pură.

    Ordinea componentelor e cea din State. Ridică SingularityError dacă β e
    în banda de gardă a polilor (termenii 1/sin^2 β ar exploda).
    """
    p = params
    u = np.asarray(state, dtype=float)
    x, y, z, px, py, pz, alpha, beta, gamma, pa, pb, pg = u
    check_pole(beta, guard)

    sb, cb = np.sin(beta), np.cos(beta)
    gauss, cz2 = _optical_profile(x, y, z, p)
    u0 = p.trap_depth
    chi = chi_term(alpha, beta, p)

    # --- translație: F = -∇U, apoi amortizarea anizotropă ---
    fx = -4.0 * u0 * chi * gauss * cz2 * x / p.waist_x ** 2
    fy = -4.0 * u0 * chi * gauss * cz2 * y / p.waist_y ** 2
    fz = -u0 * chi * gauss * p.wavenumber * np.sin(2.0 * p.wavenumber * z)
    dp = np.array([fx, fy, fz]) - lab_damping(alpha, beta, p) @ u[MOMENTUM]

    # --- rotație: ecuațiile canonice ale titirezului simetric ---
    q = pa - pg * cb
    da = q / (p.inertia_I * sb ** 2)
    db = pb / p.inertia_I
    dg = -q * cb / (p.inertia_I * sb ** 2) + pg / p.inertia_Ic

    aniso = u0 * gauss * cz2 * p.susceptibility_delta / p.susceptibility_par
    torque = np.array([
        -aniso * sb ** 2 * np.sin(2.0 * alpha),
        aniso * np.cos(alpha) ** 2 * np.sin(2.0 * beta)
        + q * q * cb / (p.inertia_I * sb ** 3) - q * pg / (p.inertia_I * sb),
        0.0,
    ])
    dL = torque - rotational_friction(beta, p) @ np.array([da, db, dg])

    return np.array([px / p.mass, py / p.mass, pz / p.mass,
                     dp[0], dp[1], dp[2],
                     da, db, dg,
                     dL[0], dL[1], dL[2]])


def diffusion(state, params, guard: float = POLE_GUARD) -> np.ndarray:
    """
    Matricea de cuplaj a zgomotului, shape (12, 6). Funcție pură.

    Canalele 0..2: zgomot translațional, rotit în laborator cu ACEEAȘI R ca
    amortizarea (perechea fluctuație–disipație).
    Canalul 3: pα, ponderat cu sinβ.  Canalul 4: pβ, nerotit.
    Canalul 5: axa proprie, intră în pα (cosβ) și pγ.
    Pozițiile și unghiurile nu primesc zgomot direct.
    """
    p = params
    u = np.asarray(state, dtype=float)
    alpha, beta = u[6], u[7]
    check_pole(beta, guard)

    kT = p.kT
    d_perp = np.sqrt(2.0 * p.damping_cm_perp * p.mass * kT)
    d_par = np.sqrt(2.0 * p.damping_cm_par * p.mass * kT)
    r_perp = np.sqrt(2.0 * p.damping_rot_perp * p.inertia_I * kT)
    r_par = np.sqrt(2.0 * p.damping_rot_par * p.inertia_Ic * kT)

    G = np.zeros((STATE_SIZE, NOISE_CHANNELS))
    G[3:6, 0:3] = lab_rotation(alpha, beta) * np.array([d_perp, d_perp, d_par])
    G[9, 3] = r_perp * np.sin(beta)
    G[10, 4] = r_perp
    G[9, 5] = r_par * np.cos(beta)
    G[11, 5] = r_par
    return G


def energy(state, params, guard: float = POLE_GUARD):
    """
    Energia mecanică totală (cinetică + potențială) în unități scalate.
    Acceptă o stare (12,) sau un tablou de stări (..., 12). Doar diagnostic.
    """
    p = params
    u = np.asarray(state, dtype=float)
    if u.shape[-1] != STATE_SIZE:
        raise ValueError(f"state must have last dimension {STATE_SIZE}, got {u.shape}")
    x, y, z, px, py, pz, alpha, beta, gamma, pa, pb, pg = np.moveaxis(u, -1, 0)
    check_pole(beta, guard)

    sb, cb = np.sin(beta), np.cos(beta)
    kin_cm = (px ** 2 + py ** 2 + pz ** 2) / (2.0 * p.mass)
    kin_rot = (pb ** 2 / (2.0 * p.inertia_I)
               + (pa - pg * cb) ** 2 / (2.0 * p.inertia_I * sb ** 2)
               + pg ** 2 / (2.0 * p.inertia_Ic))
    gauss, cz2 = _optical_profile(x, y, z, p)
    pot = -p.trap_depth * gauss * cz2 * chi_term(alpha, beta, p)
    return kin_cm + kin_rot + pot


def normalized_energy(state, params, reference=None, guard: float = POLE_GUARD):
    """
    (E - E_ref) / kT. Referința implicită e starea fundamentală (params.ground_state()),
    deci rezultatul e ≥ 0 și măsoară excitația în unități de kT.
    """
    kT = params.kT
    if not kT > 0.0:
        raise ConfigurationError("normalized energy needs temperature > 0")
    ref = params.ground_state() if reference is None else reference
    e_ref = energy(np.asarray(ref, dtype=float), params, guard=guard)
    return (energy(state, params, guard=guard) - e_ref) / kT
