"""
nbody_ics.utils._validation
===========================

Shared input-validation helpers used across the region and sampling code.

All validators raise ``ValueError`` (or a subclass) on invalid input and
return sanitised NumPy arrays ready for downstream computation.
"""
from __future__ import annotations

import numpy as np

__all__: list[str] = []  # nothing public, internal helpers only


class InvalidGeometryError(ValueError):
    """Region geometry is unusable (non-positive sides or exponent)."""


# ---------------------------------------------------------------------------
# Vectors
# ---------------------------------------------------------------------------

def validate_vector(vec, name: str = "vector") -> np.ndarray:
    """Validate a single 3-vector.

    Parameters
    ----------
    vec : array_like
        Anything convertible to a ``(3,)`` float array.
    name : str
        Used in error messages.

    Returns
    -------
    vec : np.ndarray, shape ``(3,)``
    """
    vec = np.asarray(vec, dtype=float)
    if vec.shape != (3,):
        raise InvalidGeometryError(
            f"{name} must have shape (3,), got {vec.shape}"
        )
    if not np.all(np.isfinite(vec)):
        raise InvalidGeometryError(f"{name} must be finite, got {vec}")
    return vec


def validate_positions(pos) -> np.ndarray:
    """Validate a batch of positions.

    Parameters
    ----------
    pos : array_like
        ``(3,)`` for a single point or ``(N, 3)`` for many.

    Returns
    -------
    pos : np.ndarray, shape ``(N, 3)``
        A single point is promoted to ``(1, 3)``.
    """
    pos = np.asarray(pos, dtype=float)
    if pos.ndim == 1:
        pos = pos.reshape(1, -1)
    if pos.ndim != 2 or pos.shape[-1] != 3:
        raise ValueError(
            f"pos must have shape (N, 3) or (3,), got {pos.shape}"
        )
    return pos


# ---------------------------------------------------------------------------
# Geometry parameters
# ---------------------------------------------------------------------------

def validate_sides(sides) -> np.ndarray:
    """Raise ``InvalidGeometryError`` unless every side length is > 0."""
    sides = validate_vector(sides, "sides")
    if np.any(sides <= 0):
        raise InvalidGeometryError(
            f"All side lengths must be strictly positive, got {sides}"
        )
    return sides


def validate_exponent(exponent) -> float:
    """Raise ``InvalidGeometryError`` unless *exponent* is finite and > 0."""
    try:
        exponent = float(exponent)
    except (TypeError, ValueError):
        raise InvalidGeometryError(
            f"exponent must be a real number, got {exponent!r}"
        ) from None
    if not np.isfinite(exponent) or exponent <= 0:
        raise InvalidGeometryError(
            f"exponent must be finite and strictly positive, got {exponent}"
        )
    return exponent


# ---------------------------------------------------------------------------
# Scalar parameters
# ---------------------------------------------------------------------------

def validate_nbins(nbins: int) -> None:
    """Raise ``ValueError`` if *nbins* is not a positive integer."""
    if not isinstance(nbins, (int, np.integer)) or nbins <= 0:
        raise ValueError("nbins must be a positive integer")


def validate_count(n: int, name: str = "n") -> int:
    """Raise ``ValueError`` if *n* is not a non-negative integer."""
    if not isinstance(n, (int, np.integer)) or n < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {n!r}")
    return int(n)
