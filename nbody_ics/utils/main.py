"""
nbody_ics.utils.main
====================

Utility functions for checking sampled particle distributions.

Sections
--------
1. Binning helpers
2. Empirical profiles along a coordinate axis
"""
from __future__ import annotations

import numpy as np

from ._validation import validate_nbins, validate_positions

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
__all__ = [
    "make_axis_bins",
    "empirical_axis_profile",
]

_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  1. Binning helpers                                                    ║
# ╚══════════════════════════════════════════════════════════════════════════╝

def _axis_index(axis: int | str) -> int:
    if isinstance(axis, str):
        try:
            return _AXIS_INDEX[axis.lower()]
        except KeyError:
            raise ValueError(f"axis must be one of 'x', 'y', 'z', got {axis!r}") from None
    if axis not in (0, 1, 2):
        raise ValueError(f"axis must be 0, 1 or 2, got {axis!r}")
    return int(axis)


def make_axis_bins(xmin: float, xmax: float, nbins: int = 20) -> np.ndarray:
    """Equal-width bin edges on ``[xmin, xmax]``, shape ``(nbins + 1,)``."""
    validate_nbins(nbins)
    if not xmax > xmin:
        raise ValueError(f"xmax must be larger than xmin, got [{xmin}, {xmax}]")
    return np.linspace(xmin, xmax, nbins + 1)


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  2. Empirical profiles                                                 ║
# ╚══════════════════════════════════════════════════════════════════════════╝

def empirical_axis_profile(
    pos: np.ndarray,
    axis: int | str = 0,
    nbins: int = 20,
    range: tuple[float, float] | None = None,
    weights: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Normalized particle distribution along one coordinate.

    Parameters
    ----------
    pos : array_like, shape ``(N, 3)``
        Particle positions.
    axis : int or {'x', 'y', 'z'}
        Coordinate to bin.
    nbins : int
        Number of bins.
    range : (float, float), optional
        Binning interval. Defaults to the data extent.
    weights : array_like, shape ``(N,)``, optional
        Per-particle weights (e.g. masses).

    Returns
    -------
    centres : np.ndarray, shape ``(nbins,)``
        Bin centres.
    density : np.ndarray, shape ``(nbins,)``
        Probability density per unit length; integrates to 1 over *range*.
    """
    pos = validate_positions(pos)
    k = _axis_index(axis)
    if len(pos) == 0:
        raise ValueError("Cannot build a profile from zero particles.")
    coord = pos[:, k]
    if range is None:
        range = (float(coord.min()), float(coord.max()))
    edges = make_axis_bins(range[0], range[1], nbins)
    if weights is not None:
        weights = np.asarray(weights, dtype=float)
        if weights.shape != coord.shape:
            raise ValueError(
                f"weights length ({weights.shape}) does not match number of "
                f"particles ({coord.shape[0]})"
            )
    density, _ = np.histogram(coord, bins=edges, weights=weights, density=True)
    centres = 0.5 * (edges[1:] + edges[:-1])
    return centres, density
