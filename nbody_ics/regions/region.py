"""
nbody_ics.regions.region
========================

Region with particle properties, the building block of block-structured
initial conditions.

A region is a super-ellipsoid (see :mod:`nbody_ics.regions.geometry`) that
owns one density function per hydrodynamical quantity (density, vx, vy, vz,
pressure) and optionally one dark-matter density function. At construction
it computes a rejection-sampling envelope for the gas density and for the
dark-matter density; a composer then draws candidate positions, keeps those
that are :meth:`ICRegion.inside` and pass :meth:`ICRegion.accept_hydro` /
:meth:`ICRegion.accept_dm`, and reads the fluid state with
:meth:`ICRegion.get_hydro`.

Nested regions are handled through a cut-out: the envelope of the outer
region can be computed while excluding the volume of an inner region that
produces its own particles.

Random draws always come from an explicit ``numpy.random.Generator``: either
one passed per call, or the one owned by the region. Workers sampling in
parallel must pass independent generators.
"""
from __future__ import annotations

import logging
import warnings
from typing import Iterable, Literal

import numpy as np

from ..functions import DensityFunction, as_density_function
from ..state import HYDRO_FIELDS, HydroState
from ..utils._validation import (
    InvalidGeometryError,
    validate_count,
    validate_exponent,
    validate_positions,
    validate_sides,
    validate_vector,
)
from ._bounds import (
    DEFAULT_N_POLISH,
    DEFAULT_N_RANDOM,
    DEFAULT_RESOLUTION,
    DEFAULT_SAFETY_MARGIN,
    find_upper_bound,
)
from .geometry import bounding_box, superellipsoid_norm, superellipsoid_volume

__all__ = [
    "ICRegion",
    "DegenerateEnvelopeError",
    "SamplingBudgetExceeded",
]

SAMPLE_KINDS = Literal["hydro", "dm"]


class DegenerateEnvelopeError(RuntimeError):
    """Sampling was requested from a function whose envelope is not positive."""


class SamplingBudgetExceeded(RuntimeError):
    """Rejection sampling used up its attempt budget."""


def _get_logger(verbose: bool) -> logging.Logger:
    """Shared region logger; ``verbose`` only ever lowers its level to INFO."""
    logger = logging.getLogger("nbody_ics.regions")
    if not verbose:
        return logger
    if not logger.hasHandlers():
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(handler)
    if logger.getEffectiveLevel() > logging.INFO:
        logger.setLevel(logging.INFO)
    return logger


def _as_generator(rng) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


class ICRegion:
    """
    Super-ellipsoidal region carrying density functions.

    Parameters
    ----------
    origin : array_like, shape (3,)
        Centre of the region.
    sides : array_like, shape (3,)
        Full side lengths, all strictly positive.
    exponent : float
        Shape exponent (> 0). 2 is an ellipsoid, 1 a diamond, large values
        approach a box.
    hydro_functions : iterable
        Up to five functions, in ``density, vx, vy, vz, pressure`` order.
        Each entry is a :class:`~nbody_ics.functions.DensityFunction`, a
        callable of one position, or a number.
    dm_functions : iterable, optional
        At most one dark-matter density function.
    cut_out_region : ICRegion, optional
        Nested region whose volume is excluded from this region's envelopes
        and from :meth:`sample_positions`.
    rng : numpy.random.Generator or int, optional
        Generator used when no generator is passed to the accept tests.
        An int seeds a fresh generator.
    resolution, n_random, n_polish, safety_margin
        Tuning of the bounding sweep, see
        :func:`nbody_ics.regions._bounds.find_upper_bound`.
    verbose : bool, optional
        Log envelope results at INFO level.

    Raises
    ------
    InvalidGeometryError
        Non-positive sides or exponent, malformed origin.
    FunctionEvaluationError
        A function failed while the envelopes were computed.
    """

    def __init__(
        self,
        origin,
        sides,
        exponent: float,
        hydro_functions: Iterable,
        dm_functions: Iterable = (),
        *,
        cut_out_region: "ICRegion | None" = None,
        rng: np.random.Generator | int | None = None,
        resolution: int = DEFAULT_RESOLUTION,
        n_random: int = DEFAULT_N_RANDOM,
        n_polish: int = DEFAULT_N_POLISH,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
        verbose: bool = False,
    ):
        self._origin = validate_vector(origin, "origin")
        self._sides = validate_sides(sides)
        self._exponent = validate_exponent(exponent)
        self._origin.setflags(write=False)
        self._sides.setflags(write=False)

        self._hydro: tuple[DensityFunction, ...] = tuple(
            as_density_function(f) for f in hydro_functions
        )
        self._dm: tuple[DensityFunction, ...] = tuple(
            as_density_function(f) for f in dm_functions
        )
        if len(self._hydro) > len(HYDRO_FIELDS):
            raise ValueError(
                f"At most {len(HYDRO_FIELDS)} hydro functions are supported "
                f"({', '.join(HYDRO_FIELDS)}), got {len(self._hydro)}"
            )
        if len(self._dm) > 1:
            raise ValueError(
                f"At most one dark matter function is supported, got {len(self._dm)}"
            )
        if cut_out_region is not None and not isinstance(cut_out_region, ICRegion):
            raise TypeError(
                "cut_out_region must be an ICRegion or None, got "
                f"{type(cut_out_region).__name__}"
            )

        self._cut_out = cut_out_region
        self._rng = _as_generator(rng)
        self._bound_params = dict(
            resolution=resolution,
            n_random=n_random,
            n_polish=n_polish,
            safety_margin=safety_margin,
        )
        self._logger = _get_logger(verbose)
        self._closed = False
        self._envelope_warned: set[str] = set()

        self._volume = superellipsoid_volume(self._sides, self._exponent)
        cut_outs = () if cut_out_region is None else (cut_out_region,)
        self._max_value_hydro = self._compute_max(
            self._hydro[0] if self._hydro else None, cut_outs, "hydro",
        )
        self._max_value_dm = self._compute_max(
            self._dm[0] if self._dm else None, cut_outs, "dm",
        )

        if self._hydro and self._max_value_hydro <= 0.0:
            self._logger.warning(
                "Hydro density envelope is %g; sampling gas from this region "
                "will fail.", self._max_value_hydro,
            )

    # ------------------------------------------------------------------
    # Read-only attributes
    # ------------------------------------------------------------------
    @property
    def origin(self) -> np.ndarray:
        return self._origin

    @property
    def sides(self) -> np.ndarray:
        return self._sides

    @property
    def exponent(self) -> float:
        return self._exponent

    @property
    def volume(self) -> float:
        """Closed-form volume of the shape (cut-out not subtracted)."""
        return self._volume

    @property
    def hydro_functions(self) -> tuple[DensityFunction, ...]:
        return self._hydro

    @property
    def dm_functions(self) -> tuple[DensityFunction, ...]:
        return self._dm

    @property
    def cut_out_region(self) -> "ICRegion | None":
        return self._cut_out

    @property
    def max_value_hydro(self) -> float:
        return self._max_value_hydro

    @property
    def max_value_dm(self) -> float:
        return self._max_value_dm

    @property
    def bounding_box(self) -> np.ndarray:
        """``[lower, upper]`` corners, shape ``(2, 3)``."""
        return bounding_box(self._origin, self._sides)

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def norm(self, position) -> float:
        """Generalized-norm distance of *position* (1 on the surface)."""
        return float(
            superellipsoid_norm(position, self._origin, self._sides, self._exponent)[0]
        )

    def inside(self, position) -> bool:
        """Whether *position* lies inside the region (surface included).

        Non-finite coordinates are never inside.
        """
        pos = np.asarray(position, dtype=float)
        if pos.shape != (3,):
            raise InvalidGeometryError(
                f"position must have shape (3,), got {pos.shape}"
            )
        return bool(self.inside_many(pos)[0])

    def inside_many(self, positions) -> np.ndarray:
        """Vectorized :meth:`inside`, returns a bool array of shape ``(N,)``.

        Rows with non-finite coordinates are ``False``.
        """
        return (
            superellipsoid_norm(positions, self._origin, self._sides, self._exponent)
            <= 1.0
        )

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------
    def _compute_max(
        self,
        function: DensityFunction | None,
        cut_outs: tuple["ICRegion", ...],
        label: str,
    ) -> float:
        if function is None:
            return 0.0
        exclude = None
        if cut_outs:
            def exclude(points):
                mask = cut_outs[0].inside_many(points)
                for region in cut_outs[1:]:
                    mask |= region.inside_many(points)
                return mask

        result = find_upper_bound(
            function,
            self._origin,
            self._sides,
            self._exponent,
            exclude=exclude,
            **self._bound_params,
        )
        self._logger.info(
            "Envelope %s: %.6g (sampled max %.6g at %s, %d points%s).",
            label,
            result.value,
            result.sampled_max,
            None if result.location is None else np.around(result.location, 4),
            result.n_evaluated,
            f", {len(cut_outs)} cut-out(s) excluded" if cut_outs else "",
        )
        return result.value

    def _get_max_value(self, label: str, cut_out_region) -> float:
        self._check_open()
        cached = self._max_value_hydro if label == "hydro" else self._max_value_dm
        if cut_out_region is None or cut_out_region is self._cut_out:
            return cached
        functions = self._hydro if label == "hydro" else self._dm
        if not functions:
            return 0.0
        cut_outs = tuple(r for r in (self._cut_out, cut_out_region) if r is not None)
        value = self._compute_max(functions[0], cut_outs, label)
        # the supremum over a subset cannot exceed the one over the whole
        return min(value, cached)

    def get_max_value_hydro(self, cut_out_region: "ICRegion | None" = None) -> float:
        """Upper bound on the gas density inside the region.

        Without a cut-out the cached envelope is returned. With one, the bound
        is recomputed from points outside ``cut_out_region`` (and outside the
        region's own cut-out, if any) and is never larger than the cached
        envelope.
        """
        return self._get_max_value("hydro", cut_out_region)

    def get_max_value_dm(self, cut_out_region: "ICRegion | None" = None) -> float:
        """Upper bound on the dark matter density, see :meth:`get_max_value_hydro`."""
        return self._get_max_value("dm", cut_out_region)

    # ------------------------------------------------------------------
    # Accept / reject
    # ------------------------------------------------------------------
    def _sampling_target(self, kind: str) -> tuple[DensityFunction, float]:
        self._check_open()
        if kind == "hydro":
            functions, envelope = self._hydro, self._max_value_hydro
        elif kind == "dm":
            functions, envelope = self._dm, self._max_value_dm
        else:
            raise ValueError(f"kind must be 'hydro' or 'dm', got {kind!r}")
        if not functions:
            raise DegenerateEnvelopeError(f"Region has no {kind} density function.")
        if envelope <= 0.0:
            raise DegenerateEnvelopeError(
                f"The {kind} density envelope of this region is {envelope:g}; "
                "no point could ever be accepted."
            )
        return functions[0], envelope

    def _check_envelope(self, values, envelope: float, kind: str) -> None:
        if kind in self._envelope_warned:
            return
        peak = float(np.max(values))
        if peak > envelope:
            self._envelope_warned.add(kind)
            warnings.warn(
                f"{kind} density {peak:.6g} exceeds the region envelope "
                f"{envelope:.6g}; high-density points are under-sampled. "
                "Increase resolution or safety_margin.",
                RuntimeWarning,
                stacklevel=3,
            )

    def accept_hydro(self, position, rng: np.random.Generator | None = None) -> bool:
        """Rejection test for the gas density at *position*.

        Draws ``u ~ U[0, 1)`` and returns ``u * max_value_hydro <= rho(position)``.
        Exactly one draw is consumed per call.
        """
        return self._accept("hydro", position, rng)

    def accept_dm(self, position, rng: np.random.Generator | None = None) -> bool:
        """Rejection test for the dark matter density at *position*."""
        return self._accept("dm", position, rng)

    def _accept(self, kind: str, position, rng) -> bool:
        function, envelope = self._sampling_target(kind)
        u = (self._rng if rng is None else rng).random()
        value = function.evaluate(validate_vector(position, "position"))
        self._check_envelope(value, envelope, kind)
        return bool(u * envelope <= value)

    def accept_hydro_many(
        self, positions, rng: np.random.Generator | None = None,
    ) -> np.ndarray:
        """Vectorized :meth:`accept_hydro`, one draw per position."""
        return self._accept_many("hydro", positions, rng)

    def accept_dm_many(
        self, positions, rng: np.random.Generator | None = None,
    ) -> np.ndarray:
        """Vectorized :meth:`accept_dm`, one draw per position."""
        return self._accept_many("dm", positions, rng)

    def _accept_many(self, kind: str, positions, rng) -> np.ndarray:
        function, envelope = self._sampling_target(kind)
        pos = validate_positions(positions)
        u = (self._rng if rng is None else rng).random(len(pos))
        values = function.evaluate_many(pos)
        if len(values):
            self._check_envelope(values, envelope, kind)
        return u * envelope <= values

    # ------------------------------------------------------------------
    # State evaluation
    # ------------------------------------------------------------------
    def get_hydro(self, position) -> HydroState:
        """Evaluate every hydro function at *position*, in declared order."""
        self._check_open()
        position = validate_vector(position, "position")
        return HydroState.from_values(f.evaluate(position) for f in self._hydro)

    def get_hydro_many(self, positions) -> np.ndarray:
        """Hydro fields at many positions, shape ``(N, 5)`` in ``HYDRO_FIELDS`` order."""
        self._check_open()
        pos = validate_positions(positions)
        out = np.zeros((len(pos), len(HYDRO_FIELDS)))
        for k, f in enumerate(self._hydro):
            out[:, k] = f.evaluate_many(pos)
        return out

    def get_dm_density(self, position) -> float:
        """Dark matter density at *position* (0 without a dm function)."""
        self._check_open()
        if not self._dm:
            return 0.0
        return self._dm[0].evaluate(validate_vector(position, "position"))

    # ------------------------------------------------------------------
    # Single-region sampling
    # ------------------------------------------------------------------
    def sample_positions(
        self,
        n: int,
        kind: SAMPLE_KINDS = "hydro",
        rng: np.random.Generator | None = None,
        *,
        batch_size: int | None = None,
        max_attempts: int | None = None,
    ) -> np.ndarray:
        """Draw *n* positions distributed like the *kind* density.

        Candidates are uniform in the bounding box; those inside the region
        and outside the cut-out are passed through the accept test.

        Parameters
        ----------
        n : int
            Number of accepted positions to return.
        kind : {'hydro', 'dm'}
        rng : numpy.random.Generator, optional
            Defaults to the region's own generator.
        batch_size : int, optional
            Candidates drawn per round. Defaults to ``max(1024, 4 n)``.
        max_attempts : int, optional
            Upper limit on the total number of candidates. Defaults to
            ``1000 * n + 10_000``.

        Returns
        -------
        np.ndarray, shape (n, 3)

        Raises
        ------
        DegenerateEnvelopeError
            The envelope is zero, nothing could be accepted.
        SamplingBudgetExceeded
            *max_attempts* candidates were drawn without reaching *n*.
        """
        n = validate_count(n, "n")
        self._sampling_target(kind)
        gen = self._rng if rng is None else rng
        if batch_size is None:
            batch_size = max(1024, 4 * n)
        if max_attempts is None:
            max_attempts = 1000 * n + 10_000

        lower, upper = self.bounding_box
        accepted: list[np.ndarray] = []
        n_accepted = 0
        attempts = 0
        while n_accepted < n:
            if attempts >= max_attempts:
                raise SamplingBudgetExceeded(
                    f"Only {n_accepted} of {n} {kind} positions accepted after "
                    f"{attempts} candidates."
                )
            size = min(batch_size, max_attempts - attempts)
            attempts += size
            cand = gen.uniform(lower, upper, size=(size, 3))
            cand = cand[self.inside_many(cand)]
            if self._cut_out is not None and len(cand):
                cand = cand[~self._cut_out.inside_many(cand)]
            if not len(cand):
                continue
            keep = self._accept_many(kind, cand, gen)
            accepted.append(cand[keep])
            n_accepted += int(np.sum(keep))

        self._logger.info(
            "Sampled %d %s positions from %d candidates.", n, kind, attempts,
        )
        if not accepted:
            return np.empty((0, 3))
        return np.concatenate(accepted)[:n]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("This ICRegion has been closed.")

    def close(self) -> None:
        """Release the owned density functions."""
        if self._closed:
            return
        for f in self._hydro + self._dm:
            f.release()
        self._hydro = ()
        self._dm = ()
        self._cut_out = None
        self._closed = True

    def __enter__(self) -> "ICRegion":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"ICRegion(origin={self._origin.tolist()}, sides={self._sides.tolist()}, "
            f"exponent={self._exponent:g}, n_hydro={len(self._hydro)}, "
            f"n_dm={len(self._dm)})"
        )
