"""Tests for nbody_ics.nbody_io: writing sampled particles."""

import numpy as np
import pytest

from nbody_ics import ICRegion, load_sampled_particles, save_sampled_particles


@pytest.fixture()
def sampled(rng):
    region = ICRegion(
        [0, 0, 0], [1, 1, 1], 2.0, [1.0, 0.1, 0.0, 0.0, 2.0],
        resolution=9, n_random=0, n_polish=0,
    )
    pos = region.sample_positions(300, rng=rng)
    return pos, region.get_hydro_many(pos)


class TestSaveSampledParticles:

    def test_round_trip(self, tmp_path, sampled):
        pos, hydro = sampled
        path = save_sampled_particles(tmp_path / "ics.h5", pos, hydro=hydro, masses=0.5)
        data = load_sampled_particles(path)
        np.testing.assert_array_equal(data["positions"], pos)
        np.testing.assert_array_equal(data["density"], hydro[:, 0])
        np.testing.assert_array_equal(data["pressure"], hydro[:, 4])
        np.testing.assert_array_equal(data["masses"], np.full(len(pos), 0.5))

    def test_groups_are_independent(self, tmp_path, sampled):
        pos, _ = sampled
        path = tmp_path / "ics.h5"
        save_sampled_particles(path, pos, group="gas")
        save_sampled_particles(path, pos[:10], group="dm")
        assert load_sampled_particles(path, "gas")["positions"].shape == (300, 3)
        assert load_sampled_particles(path, "dm")["positions"].shape == (10, 3)

    def test_group_replaced(self, tmp_path, sampled):
        pos, _ = sampled
        path = tmp_path / "ics.h5"
        save_sampled_particles(path, pos)
        save_sampled_particles(path, pos[:5])
        assert load_sampled_particles(path)["positions"].shape == (5, 3)

    def test_bad_shapes(self, tmp_path, sampled):
        pos, hydro = sampled
        with pytest.raises(ValueError, match="shape"):
            save_sampled_particles(tmp_path / "a.h5", pos[:, :2])
        with pytest.raises(ValueError, match="hydro"):
            save_sampled_particles(tmp_path / "b.h5", pos, hydro=hydro[:, :3])
        with pytest.raises(ValueError, match="mass"):
            save_sampled_particles(tmp_path / "c.h5", pos, masses=np.ones(3))
