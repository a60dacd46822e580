"""
nbody_ics.nbody_io

HDF5 I/O for sampled initial conditions and restart data.

Primary API:
- save_sampled_particles(path, positions, ...): write accepted particles
- _save_physics(path, values): hidden helper to write physical constants
- _load_physics(path): hidden helper to read them back
"""
from __future__ import annotations

from pathlib import Path

import h5py
import numpy as np

from .state import HYDRO_FIELDS

_PHYSICS_KEYS = ("G", "H0", "mean_mol_weight", "boltzmann_k")


def save_sampled_particles(
    path: str | Path,
    positions: np.ndarray,
    *,
    hydro: np.ndarray | None = None,
    masses: np.ndarray | float | None = None,
    group: str = "gas",
) -> Path:
    """
    Write sampled particles into ``<path>/<group>``.

    Parameters
    ----------
    path : str | Path
        HDF5 file, created if missing and opened in append mode.
    positions : np.ndarray, shape (N, 3)
    hydro : np.ndarray, shape (N, 5), optional
        Output of ``ICRegion.get_hydro_many``; stored one dataset per field.
    masses : scalar or np.ndarray, shape (N,), optional
    group : str
        Particle type, e.g. ``"gas"`` or ``"dm"``. An existing group is
        replaced.

    Returns
    -------
    Path
        The file written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    positions = np.asarray(positions, dtype=float)
    if positions.ndim != 2 or positions.shape[1] != 3:
        raise ValueError(f"positions must have shape (N, 3), got {positions.shape}")
    N = positions.shape[0]

    with h5py.File(path, "a") as f:
        if group in f:
            del f[group]
        grp = f.create_group(group)
        grp.attrs["N"] = N
        grp.create_dataset("positions", data=positions, compression="gzip")
        if hydro is not None:
            hydro = np.asarray(hydro, dtype=float)
            if hydro.shape != (N, len(HYDRO_FIELDS)):
                raise ValueError(
                    f"hydro must have shape ({N}, {len(HYDRO_FIELDS)}), got {hydro.shape}"
                )
            for k, name in enumerate(HYDRO_FIELDS):
                grp.create_dataset(name, data=hydro[:, k], compression="gzip")
        if masses is not None:
            masses = np.asarray(masses, dtype=float)
            if masses.ndim == 0:
                masses = np.full(N, float(masses))
            elif masses.shape != (N,):
                raise ValueError(
                    f"mass length ({masses.shape[0]}) does not match number of "
                    f"particles ({N})"
                )
            grp.create_dataset("masses", data=masses, compression="gzip")
    return path


def load_sampled_particles(path: str | Path, group: str = "gas") -> dict[str, np.ndarray]:
    """Read back a group written by :func:`save_sampled_particles`."""
    with h5py.File(Path(path), "r") as f:
        grp = f[group]
        return {name: grp[name][()] for name in grp.keys()}


def _save_physics(path: Path, values: dict[str, float]) -> None:
    """
    Save physical constants for restarts.

    Parameters
    ----------
    path : Path
        HDF5 restart file; other groups in it are left untouched.
    values : dict
        Must contain ``G``, ``H0``, ``mean_mol_weight`` and ``boltzmann_k``.
    """
    missing = [k for k in _PHYSICS_KEYS if k not in values]
    if missing:
        raise KeyError(f"Missing physical constants: {missing}")
    path.parent.mkdir(parents=True, exist_ok=True)
    with h5py.File(path, "a") as f:
        grp = f.require_group("physics")
        for key in _PHYSICS_KEYS:
            if key in grp:
                del grp[key]
            grp.create_dataset(key, data=float(values[key]))


def _load_physics(path: Path) -> dict[str, float]:
    """
    Load physical constants written by :func:`_save_physics`.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    KeyError
        If the file has no complete ``physics`` group.
    """
    if not path.exists():
        raise FileNotFoundError(f"Restart file {path} not found")
    with h5py.File(path, "r") as f:
        if "physics" not in f:
            raise KeyError(f"No 'physics' group in {path}")
        grp = f["physics"]
        return {key: float(grp[key][()]) for key in _PHYSICS_KEYS}
