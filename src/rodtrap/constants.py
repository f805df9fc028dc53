# src/rodtrap/constants.py

# Unități:
#  - Dinamica rulează într-un sistem de unități SCALAT, fix pentru tot procesul:
#      lungime  L0 = 1 µm,   masă  M0 = 1e-18 kg,   timp  T0 = 1e-7 s (100 ns)
#      energie  E0 = M0 L0^2 / T0^2 = 1e-16 J
#  - Cu aceste scale, frecvențele capcanei sunt O(0.1..1) pe unitatea de timp,
#    iar impulsurile termice sunt O(1e-2); pasul adaptiv rămâne rezonabil.
#  - Constantele de aici se citesc, nu se modifică (valori de modul, inițializate o dată).

import math

# ---------------------------
# CONSTANTE FIZICE (SI)
# ---------------------------
KB_SI = 1.380649e-23          # constanta lui Boltzmann [J/K]
EPS0 = 8.8541878128e-12       # permitivitatea vidului [F/m]
C_LIGHT = 299792458.0         # viteza luminii [m/s]
AMU = 1.66053906660e-27       # unitatea atomică de masă [kg]

# ---------------------------
# SISTEMUL DE UNITĂȚI SCALATE
# ---------------------------
LENGTH_UNIT = 1e-6            # [m]
MASS_UNIT = 1e-18             # [kg]
TIME_UNIT = 1e-7              # [s]
ENERGY_UNIT = MASS_UNIT * LENGTH_UNIT ** 2 / TIME_UNIT ** 2   # [J]

# Factorul "Boltzmann" în unități scalate: kT = KB * T[K]  (energie scalată)
KB = KB_SI / ENERGY_UNIT

# Factorul cu care se înmulțește |E| [V/m] ca să obținem amplitudinea scalată:
#   U0 = V * chi * E^2 / 4   direct în unități scalate (ε0 inclus).
FIELD_UNIT_FACTOR = math.sqrt(EPS0 * LENGTH_UNIT ** 3 / ENERGY_UNIT)

# Presiunea: intrarea de laborator e în mbar, calculul în Pa.
MBAR = 100.0
