# src/rodtrap/io.py

# Persistența e opțională: nucleul lucrează în memorie (Trajectory, EnsembleSummary).
# Când e nevoie de fișiere, scriem tabele columnare TSV (.dat) cu pandas.

import os

import pandas as pd


class DataWriter:
    """
    Clasa responsabilă DOAR de scrierea pe disc a seriilor temporale
    (SRP: Single Responsibility). Produce fișiere .dat (TSV) ușor de
    importat în gnuplot/matplotlib/Origin/Excel.

    Convenții:
      - separare cu TAB ('\t')
      - fără index pandas       -> doar coloanele utile
      - float_format='%.8g'     -> 8 cifre semnificative

    Unități: cele scalate (vezi constants.py); energy_kT e adimensională.
    """

    def __init__(self, output_dir: str):
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

    def _write(self, df: pd.DataFrame, name: str) -> str:
        path = os.path.join(self.output_dir, f"{name}.dat")
        df.to_csv(path, sep="\t", index=False, float_format="%.8g")
        return path

    def write_trajectory(self, trajectory, name: str = "trajectory") -> str:
        """
        Output
        ------
        <output_dir>/<name>.dat (TSV)
          Coloane: t, x, y, z, px, py, pz, alpha, beta, gamma,
                   p_alpha, p_beta, p_gamma, energy[, energy_kT]
        """
        return self._write(trajectory.to_frame(), name)

    def write_summary(self, summary, name: str = "ensemble_summary") -> str:
        """
        Output
        ------
        <output_dir>/<name>.dat (TSV)
          Coloane: t, apoi <scalar>_mean, <scalar>_lo, <scalar>_hi
          pentru fiecare scalar urmărit (12 componente + energy_kT).
        """
        return self._write(summary.to_frame(), name)


def read_dat(path: str) -> pd.DataFrame:
    """Citește înapoi un .dat scris de DataWriter."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Nu am găsit fișierul: {os.path.abspath(path)}")
    df = pd.read_csv(path, sep="\t")
    df.columns = [c.strip().lstrip("\ufeff") for c in df.columns]
    return df
