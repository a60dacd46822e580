"""
nbody_ics.physics

Physical constants in internal simulation units.

Internal units are described by a mapping giving the SI value of one
internal unit of ``length`` (m), ``mass`` (kg), ``time`` (s) and
``temperature`` (K). Missing entries default to 1, i.e. SI. Each constant is
stored in SI together with its dimension exponents and divided by the
matching product of unit values.

With ``real_units=False`` the gravitational constant is idealized to 1 (in
SI) before conversion, as is customary for test problems.
"""
from __future__ import annotations

from pathlib import Path
from typing import Mapping

from .nbody_io import _load_physics, _save_physics

__all__ = [
    "Physics",
    "PHYSICS_DEFAULT_MEANMOLWEIGHT",
    "SI_CONSTANTS",
]

PHYSICS_DEFAULT_MEANMOLWEIGHT = 1.0

# value in SI, (length, mass, time, temperature) exponents
SI_CONSTANTS = {
    "G": (6.674e-11, (3, -1, -2, 0)),
    "H0": (3.24077929e-18, (0, 0, -1, 0)),  # 100 km/s/Mpc
    "k": (1.38064852e-23, (2, 1, -2, -1)),
    "amu": (1.660539040e-27, (0, 1, 0, 0)),
}

_UNIT_KEYS = ("length", "mass", "time", "temperature")


def _unit_scale(units: Mapping[str, float], dims: tuple[int, ...]) -> float:
    scale = 1.0
    for key, power in zip(_UNIT_KEYS, dims):
        scale *= float(units.get(key, 1.0)) ** power
    return scale


def _validate_units(units: Mapping[str, float] | None) -> dict[str, float]:
    units = dict(units or {})
    unknown = set(units) - set(_UNIT_KEYS)
    if unknown:
        raise ValueError(
            f"Unknown unit keys {sorted(unknown)}; expected a subset of {_UNIT_KEYS}"
        )
    for key, value in units.items():
        if not float(value) > 0:
            raise ValueError(f"Unit '{key}' must be strictly positive, got {value}")
    return {k: float(v) for k, v in units.items()}


class Physics:
    """
    Physical constants used during initial-condition generation.

    Parameters
    ----------
    units : Mapping[str, float], optional
        SI value of one internal unit for ``length``, ``mass``, ``time`` and
        ``temperature``.
    mean_mol_weight : float
        Mean molecular weight in internal mass units.
    real_units : bool
        Use the physical value of G (True) or an idealized G = 1 (False).
    """

    def __init__(
        self,
        units: Mapping[str, float] | None = None,
        mean_mol_weight: float = PHYSICS_DEFAULT_MEANMOLWEIGHT,
        real_units: bool = False,
    ):
        units = _validate_units(units)

        G_si, G_dims = SI_CONSTANTS["G"]
        if not real_units:
            G_si = 1.0
        self._G = G_si / _unit_scale(units, G_dims)

        H_si, H_dims = SI_CONSTANTS["H0"]
        self._H0 = H_si / _unit_scale(units, H_dims)

        # internal mass units -> amu
        amu_si, amu_dims = SI_CONSTANTS["amu"]
        self._mean_mol_weight = (
            float(mean_mol_weight) * _unit_scale(units, amu_dims) / amu_si
        )

        k_si, k_dims = SI_CONSTANTS["k"]
        self._boltzmann_k = k_si / _unit_scale(units, k_dims)

    @classmethod
    def from_parameters(
        cls,
        parameters: Mapping[str, object],
        units: Mapping[str, float] | None = None,
    ) -> "Physics":
        """Build from a flat parameter mapping.

        Recognised keys are ``"Physics.RealPhysics"`` (bool) and
        ``"Physics.MeanMolWeight"`` (float, internal mass units).
        """
        return cls(
            units=units,
            mean_mol_weight=float(
                parameters.get("Physics.MeanMolWeight", PHYSICS_DEFAULT_MEANMOLWEIGHT)
            ),
            real_units=bool(parameters.get("Physics.RealPhysics", False)),
        )

    def get_gravitational_constant(self) -> float:
        return self._G

    def get_Hubble_constant(self) -> float:
        """100 km/s/Mpc in internal units."""
        return self._H0

    def get_mean_mol_weight(self) -> float:
        """Mean molecular weight in amu."""
        return self._mean_mol_weight

    def get_boltzmann_k(self) -> float:
        return self._boltzmann_k

    def as_dict(self) -> dict[str, float]:
        return {
            "G": self._G,
            "H0": self._H0,
            "mean_mol_weight": self._mean_mol_weight,
            "boltzmann_k": self._boltzmann_k,
        }

    # ------------------------------------------------------------------
    # Restart
    # ------------------------------------------------------------------
    def dump(self, path: str | Path) -> None:
        """Store the constants in the ``physics`` group of an HDF5 restart file."""
        _save_physics(Path(path), self.as_dict())

    @classmethod
    def from_restart(cls, path: str | Path) -> "Physics":
        """Rebuild the constants written by :meth:`dump`, without conversion."""
        values = _load_physics(Path(path))
        obj = cls.__new__(cls)
        obj._G = values["G"]
        obj._H0 = values["H0"]
        obj._mean_mol_weight = values["mean_mol_weight"]
        obj._boltzmann_k = values["boltzmann_k"]
        return obj

    def __repr__(self) -> str:
        vals = ", ".join(f"{k}={v:.6g}" for k, v in self.as_dict().items())
        return f"Physics({vals})"
