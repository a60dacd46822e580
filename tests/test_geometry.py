"""Tests for nbody_ics.regions.geometry: super-ellipsoid norm and volume."""

import numpy as np
import pytest

from nbody_ics import InvalidGeometryError
from nbody_ics.regions import (
    bounding_box,
    inside_superellipsoid,
    superellipsoid_norm,
    superellipsoid_volume,
)


# =====================================================================
# Helpers
# =====================================================================
ORIGIN = np.array([0.3, -1.2, 2.0])
SIDES = np.array([2.0, 1.0, 3.0])


def _box_points(n=20_000, pad=1.2, seed=7):
    """Uniform points in a box slightly larger than the region."""
    rng = np.random.default_rng(seed)
    half = 0.5 * SIDES * pad
    return rng.uniform(ORIGIN - half, ORIGIN + half, size=(n, 3))


def _scaled(pos):
    return 2.0 * (pos - ORIGIN) / SIDES


# =====================================================================
# Containment
# =====================================================================
class TestInside:

    def test_exponent_two_is_ellipsoid(self):
        pos = _box_points()
        u = _scaled(pos)
        expected = np.sum(u ** 2, axis=1) <= 1.0
        got = inside_superellipsoid(pos, ORIGIN, SIDES, 2.0)
        np.testing.assert_array_equal(got, expected)

    def test_exponent_one_is_diamond(self):
        pos = _box_points()
        u = _scaled(pos)
        expected = np.sum(np.abs(u), axis=1) <= 1.0
        got = inside_superellipsoid(pos, ORIGIN, SIDES, 1.0)
        np.testing.assert_array_equal(got, expected)

    def test_large_exponent_is_box(self):
        pos = _box_points()
        u = _scaled(pos)
        m = np.max(np.abs(u), axis=1)
        # stay away from the rounded corners of a finite exponent
        sel = np.abs(m - 1.0) > 1e-3
        got = inside_superellipsoid(pos[sel], ORIGIN, SIDES, 1e4)
        np.testing.assert_array_equal(got, m[sel] <= 1.0)

    def test_odd_exponent_uses_absolute_values(self):
        # a signed cube would give -1.331 + 0.125 + 0.125 < 1 here
        far = ORIGIN + np.array([-1.1, 0.5, 0.5]) * SIDES / 2
        assert not inside_superellipsoid(far, ORIGIN, SIDES, 3.0)[0]
        near = ORIGIN + np.array([-0.9, 0.0, 0.0]) * SIDES / 2
        assert inside_superellipsoid(near, ORIGIN, SIDES, 3.0)[0]

    def test_surface_and_origin(self):
        norm = superellipsoid_norm(
            np.vstack([ORIGIN, ORIGIN + [1.0, 0.0, 0.0]]), ORIGIN, SIDES, 2.0
        )
        assert norm[0] == 0.0
        assert norm[1] == pytest.approx(1.0)

    def test_huge_exponent_does_not_overflow(self):
        pos = ORIGIN + 0.25 * SIDES
        with np.errstate(all="raise"):
            norm = superellipsoid_norm(pos, ORIGIN, SIDES, 1e6)
        assert np.isfinite(norm[0])
        assert norm[0] == pytest.approx(0.5, rel=1e-5)

    def test_single_point_shape(self):
        assert superellipsoid_norm(ORIGIN, ORIGIN, SIDES, 2.0).shape == (1,)

    def test_non_finite_rows_are_outside(self):
        pos = np.vstack([ORIGIN, ORIGIN, ORIGIN, ORIGIN])
        pos[1, 0] = np.inf
        pos[2, 2] = np.nan       # other offsets zero
        pos[3, 1] = -np.inf
        norm = superellipsoid_norm(pos, ORIGIN, SIDES, 2.0)
        assert norm[0] == 0.0
        assert np.all(np.isinf(norm[1:]))
        np.testing.assert_array_equal(
            inside_superellipsoid(pos, ORIGIN, SIDES, 2.0),
            [True, False, False, False],
        )


# =====================================================================
# Volume
# =====================================================================
class TestVolume:

    def test_sphere(self):
        assert superellipsoid_volume([1, 1, 1], 2.0) == pytest.approx(np.pi / 6)

    def test_ellipsoid_scales_with_sides(self):
        vol = superellipsoid_volume(SIDES, 2.0)
        assert vol == pytest.approx(np.pi / 6 * np.prod(SIDES))

    def test_diamond(self):
        assert superellipsoid_volume(SIDES, 1.0) == pytest.approx(np.prod(SIDES) / 6)

    def test_converges_to_box(self):
        vols = [superellipsoid_volume(SIDES, e) for e in (10.0, 100.0, 1000.0)]
        assert np.all(np.diff(vols) > 0)
        assert vols[-1] == pytest.approx(np.prod(SIDES), rel=1e-4)
        assert vols[-1] <= np.prod(SIDES)

    def test_matches_monte_carlo(self):
        rng = np.random.default_rng(3)
        n = 200_000
        pos = rng.uniform(ORIGIN - SIDES / 2, ORIGIN + SIDES / 2, size=(n, 3))
        frac = np.mean(inside_superellipsoid(pos, ORIGIN, SIDES, 3.0))
        expected = superellipsoid_volume(SIDES, 3.0) / np.prod(SIDES)
        assert frac == pytest.approx(expected, abs=0.01)


# =====================================================================
# Validation
# =====================================================================
class TestValidation:

    @pytest.mark.parametrize("sides", [[1, 0, 1], [1, -1, 1], [1, np.nan, 1]])
    def test_bad_sides(self, sides):
        with pytest.raises(InvalidGeometryError):
            superellipsoid_volume(sides, 2.0)

    @pytest.mark.parametrize("exponent", [0.0, -2.0, np.inf, "two"])
    def test_bad_exponent(self, exponent):
        with pytest.raises(InvalidGeometryError):
            superellipsoid_norm(ORIGIN, ORIGIN, SIDES, exponent)

    def test_geometry_error_is_value_error(self):
        assert issubclass(InvalidGeometryError, ValueError)

    def test_bad_positions_shape(self):
        with pytest.raises(ValueError, match="shape"):
            superellipsoid_norm(np.ones((4, 2)), ORIGIN, SIDES, 2.0)

    def test_bounding_box(self):
        box = bounding_box(ORIGIN, SIDES)
        np.testing.assert_allclose(box[0], ORIGIN - SIDES / 2)
        np.testing.assert_allclose(box[1], ORIGIN + SIDES / 2)
