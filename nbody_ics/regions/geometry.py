"""
nbody_ics.regions.geometry
==========================

Generalized-norm (super-ellipsoid) geometry shared by all regions.

With origin :math:`\\vec{o}`, full side lengths :math:`\\vec{l}` and exponent
:math:`e`, a point :math:`\\vec{x}` lies inside the shape if

.. math::
    \\left(\\sum_i \\left|\\frac{2 (x_i - o_i)}{l_i}\\right|^e\\right)^{1/e} \\le 1 .

``e = 2`` is an ellipsoid, ``e = 1`` an octahedral diamond and ``e -> inf``
an axis-aligned box. The norm is evaluated as
:math:`m \\left(\\sum_i (|u_i|/m)^e\\right)^{1/e}` with :math:`m = \\max_i |u_i|`
so that large exponents neither overflow nor underflow.
"""
from __future__ import annotations

import numpy as np
from numba import njit
from scipy import special

from ..utils._validation import (
    validate_exponent,
    validate_positions,
    validate_sides,
    validate_vector,
)

__all__ = [
    "superellipsoid_norm",
    "inside_superellipsoid",
    "superellipsoid_volume",
    "bounding_box",
]


@njit(cache=True)
def _scaled_norm_kernel(u, exponent):
    n = u.shape[0]
    out = np.empty(n)
    inv_e = 1.0 / exponent
    for i in range(n):
        a0 = abs(u[i, 0])
        a1 = abs(u[i, 1])
        a2 = abs(u[i, 2])
        m = max(a0, a1, a2)
        if m == 0.0:
            out[i] = 0.0
            continue
        s = (a0 / m) ** exponent + (a1 / m) ** exponent + (a2 / m) ** exponent
        out[i] = m * s ** inv_e
    return out


def superellipsoid_norm(
    positions,
    origin,
    sides,
    exponent: float,
) -> np.ndarray:
    """Generalized-norm distance of *positions* from *origin*.

    Parameters
    ----------
    positions : array_like, shape ``(N, 3)`` or ``(3,)``
    origin : array_like, shape ``(3,)``
    sides : array_like, shape ``(3,)``
        Full side lengths; the shape spans ``origin +- sides / 2``.
    exponent : float
        Shape exponent ``e > 0``.

    Returns
    -------
    np.ndarray, shape ``(N,)``
        ``1`` on the surface, ``< 1`` inside, ``inf`` for rows with a
        non-finite coordinate.
    """
    pos = validate_positions(positions)
    origin = validate_vector(origin, "origin")
    sides = validate_sides(sides)
    exponent = validate_exponent(exponent)

    u = 2.0 * (pos - origin) / sides
    norm = _scaled_norm_kernel(np.ascontiguousarray(u), exponent)
    # non-finite coordinates are infinitely far away
    norm[~np.all(np.isfinite(pos), axis=1)] = np.inf
    return norm


def inside_superellipsoid(
    positions,
    origin,
    sides,
    exponent: float,
) -> np.ndarray:
    """Boolean mask of the *positions* that lie inside the shape."""
    return superellipsoid_norm(positions, origin, sides, exponent) <= 1.0


def superellipsoid_volume(sides, exponent: float) -> float:
    """Closed-form volume of the shape.

    .. math::
        V = l_x l_y l_z \\, \\frac{\\Gamma(1 + 1/e)^3}{\\Gamma(1 + 3/e)}

    which gives :math:`\\pi l_x l_y l_z / 6` for ``e = 2``,
    :math:`l_x l_y l_z / 6` for ``e = 1`` and tends to the box volume as
    ``e -> inf``.
    """
    sides = validate_sides(sides)
    exponent = validate_exponent(exponent)
    log_shape = 3.0 * special.gammaln(1.0 + 1.0 / exponent) - special.gammaln(
        1.0 + 3.0 / exponent
    )
    return float(np.prod(sides) * np.exp(log_shape))


def bounding_box(origin, sides) -> np.ndarray:
    """Axis-aligned bounding box, shape ``(2, 3)`` as ``[lower, upper]``."""
    origin = validate_vector(origin, "origin")
    sides = validate_sides(sides)
    return np.vstack((origin - 0.5 * sides, origin + 0.5 * sides))
