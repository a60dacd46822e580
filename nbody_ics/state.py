"""Hydrodynamical state assembled from a region's density functions."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Order in which hydro functions are mapped onto state components
HYDRO_FIELDS = ("density", "vx", "vy", "vz", "pressure")


@dataclass(frozen=True)
class HydroState:
    """Primitive fluid variables at a single position."""

    density: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0
    pressure: float = 0.0

    @classmethod
    def from_values(cls, values) -> "HydroState":
        """Build a state from values given in ``HYDRO_FIELDS`` order.

        Trailing components that are not supplied stay zero.
        """
        values = [float(v) for v in values]
        if len(values) > len(HYDRO_FIELDS):
            raise ValueError(
                f"At most {len(HYDRO_FIELDS)} hydro values can be mapped "
                f"onto a state, got {len(values)}"
            )
        return cls(**dict(zip(HYDRO_FIELDS, values)))

    @property
    def velocity(self) -> np.ndarray:
        return np.array([self.vx, self.vy, self.vz])

    def as_array(self) -> np.ndarray:
        """Return ``[density, vx, vy, vz, pressure]``."""
        return np.array([getattr(self, f) for f in HYDRO_FIELDS])
