"""Private bounding routine shared by region envelopes.

Functions here are implementation details, not part of the public API.

The envelope of a function over a region is found by a hybrid sweep:

1. a deterministic grid over the bounding box (faces, edges and centre
   included), restricted to the admissible set;
2. a scrambled Sobol sweep with a fixed seed, restricted the same way;
3. Nelder-Mead polishing started from the best samples;
4. a relative safety margin on top of the best value found.

The admissible set is "inside the region and not inside the excluded
sub-region". Points outside it are never evaluated.
"""
from __future__ import annotations

import logging
from typing import Callable, NamedTuple

import numpy as np
from scipy.optimize import minimize
from scipy.stats import qmc

from .geometry import bounding_box, inside_superellipsoid

__all__: list[str] = []  # nothing public, internal helpers only

logger = logging.getLogger("nbody_ics.regions")

DEFAULT_RESOLUTION = 33
DEFAULT_N_RANDOM = 4096
DEFAULT_N_POLISH = 4
DEFAULT_SAFETY_MARGIN = 1e-2
_SOBOL_SEED = 12345


class BoundResult(NamedTuple):
    """Outcome of :func:`find_upper_bound`."""

    value: float                  # envelope, margin included
    sampled_max: float            # best value seen, margin excluded
    location: np.ndarray | None   # where sampled_max was found
    n_evaluated: int              # admissible sweep points evaluated


def _sweep_points(
    lower: np.ndarray,
    upper: np.ndarray,
    resolution: int,
    n_random: int,
) -> np.ndarray:
    """Grid nodes, Sobol points and the box centre, shape ``(N, 3)``."""
    axes = [np.linspace(lower[k], upper[k], resolution) for k in range(3)]
    grid = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, 3)

    parts = [grid, (0.5 * (lower + upper)).reshape(1, 3)]
    if n_random > 0:
        m = int(np.ceil(np.log2(n_random)))
        sobol = qmc.Sobol(d=3, scramble=True, seed=_SOBOL_SEED)
        parts.append(qmc.scale(sobol.random_base2(m), lower, upper))
    return np.vstack(parts)


def _admissible(
    points: np.ndarray,
    origin: np.ndarray,
    sides: np.ndarray,
    exponent: float,
    exclude: Callable[[np.ndarray], np.ndarray] | None,
) -> np.ndarray:
    mask = inside_superellipsoid(points, origin, sides, exponent)
    if exclude is not None and np.any(mask):
        mask[mask] &= ~np.asarray(exclude(points[mask]), dtype=bool)
    return mask


def _polish(
    function,
    start: np.ndarray,
    step: np.ndarray,
    origin: np.ndarray,
    sides: np.ndarray,
    exponent: float,
    exclude: Callable[[np.ndarray], np.ndarray] | None,
    bounds: list[tuple[float, float]],
) -> tuple[float, np.ndarray]:
    """Climb from *start*; only admissible points are ever evaluated."""

    def objective(x):
        if not _admissible(x.reshape(1, 3), origin, sides, exponent, exclude)[0]:
            return np.inf
        return -function.evaluate(x)

    # simplex vertices point towards the origin so none is clipped onto start
    direction = np.where(start > origin, -1.0, 1.0)
    simplex = np.vstack((start, start + np.diag(step * direction)))
    f_start = abs(function.evaluate(start))
    res = minimize(
        objective,
        start,
        method="Nelder-Mead",
        bounds=bounds,
        options={
            "initial_simplex": simplex,
            "maxiter": 400,
            "xatol": 1e-6 * float(np.max(sides)),
            "fatol": 1e-9 * max(f_start, np.finfo(float).tiny),
        },
    )
    if not np.isfinite(res.fun):
        return -np.inf, start
    return -float(res.fun), np.asarray(res.x, dtype=float)


def find_upper_bound(
    function,
    origin: np.ndarray,
    sides: np.ndarray,
    exponent: float,
    *,
    exclude: Callable[[np.ndarray], np.ndarray] | None = None,
    resolution: int = DEFAULT_RESOLUTION,
    n_random: int = DEFAULT_N_RANDOM,
    n_polish: int = DEFAULT_N_POLISH,
    safety_margin: float = DEFAULT_SAFETY_MARGIN,
) -> BoundResult:
    """Conservative upper bound of *function* over a super-ellipsoid.

    Parameters
    ----------
    function : DensityFunction
        Evaluated through ``evaluate_many`` on the sweep and ``evaluate``
        while polishing. Non-finite values propagate as
        ``FunctionEvaluationError``.
    origin, sides : np.ndarray, shape ``(3,)``
    exponent : float
    exclude : Callable, optional
        ``exclude(points) -> bool mask`` of points to leave out (the inside
        test of a nested cut-out region).
    resolution : int
        Grid nodes per axis (>= 2). Odd values put a node on the origin.
    n_random : int
        Sobol points added to the sweep (rounded up to a power of two).
    n_polish : int
        Number of best samples refined with Nelder-Mead.
    safety_margin : float
        Relative margin added to the best value found.

    Returns
    -------
    BoundResult
        ``value`` is 0 when no admissible point exists.
    """
    if not isinstance(resolution, (int, np.integer)) or resolution < 2:
        raise ValueError(f"resolution must be an integer >= 2, got {resolution!r}")
    if n_random < 0 or n_polish < 0:
        raise ValueError("n_random and n_polish must be non-negative")
    if safety_margin < 0:
        raise ValueError(f"safety_margin must be >= 0, got {safety_margin}")

    lower, upper = bounding_box(origin, sides)
    candidates = _sweep_points(lower, upper, int(resolution), int(n_random))
    mask = _admissible(candidates, origin, sides, exponent, exclude)
    points = candidates[mask]
    logger.debug(
        "Bounding sweep: %d of %d candidates admissible.",
        len(points), len(candidates),
    )

    if len(points) == 0:
        return BoundResult(0.0, 0.0, None, 0)

    values = function.evaluate_many(points)
    best_idx = int(np.argmax(values))
    best_val = float(values[best_idx])
    best_loc = points[best_idx]

    if n_polish > 0:
        step = (upper - lower) / (resolution - 1)
        bounds = list(zip(lower, upper))
        order = np.argsort(values)[::-1][:n_polish]
        for idx in order:
            val, loc = _polish(
                function, points[idx], step, origin, sides, exponent,
                exclude, bounds,
            )
            if val > best_val:
                best_val, best_loc = val, loc

    envelope = best_val + safety_margin * abs(best_val)
    return BoundResult(envelope, best_val, best_loc, len(points))
