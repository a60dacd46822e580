"""nbody_ics.utils: diagnostics for sampled particle sets."""

from .main import (
    make_axis_bins,
    empirical_axis_profile,
)
from ._validation import InvalidGeometryError

__all__ = [
    "make_axis_bins",
    "empirical_axis_profile",
    "InvalidGeometryError",
]
