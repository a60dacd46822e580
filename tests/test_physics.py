"""Tests for nbody_ics.physics and the HDF5 restart helpers."""

import numpy as np
import pytest

from nbody_ics import Physics
from nbody_ics.physics import PHYSICS_DEFAULT_MEANMOLWEIGHT, SI_CONSTANTS

# parsec, solar mass, Myr and K as internal units
ASTRO_UNITS = {
    "length": 3.086e16,
    "mass": 1.989e30,
    "time": 3.156e13,
    "temperature": 1.0,
}


class TestConstants:

    def test_idealized_si(self):
        phys = Physics()
        assert phys.get_gravitational_constant() == 1.0
        assert phys.get_boltzmann_k() == pytest.approx(1.38064852e-23)
        assert phys.get_Hubble_constant() == pytest.approx(3.24077929e-18)

    def test_real_units_si(self):
        phys = Physics(real_units=True)
        assert phys.get_gravitational_constant() == pytest.approx(6.674e-11)

    def test_conversion_to_astro_units(self):
        phys = Physics(units=ASTRO_UNITS, real_units=True)
        L, M, T = ASTRO_UNITS["length"], ASTRO_UNITS["mass"], ASTRO_UNITS["time"]
        assert phys.get_gravitational_constant() == pytest.approx(
            6.674e-11 * M * T ** 2 / L ** 3
        )
        assert phys.get_Hubble_constant() == pytest.approx(3.24077929e-18 * T)
        assert phys.get_boltzmann_k() == pytest.approx(
            1.38064852e-23 * T ** 2 / (M * L ** 2)
        )
        # G in pc^3 / (Msun Myr^2) is about 4.5e-3
        assert phys.get_gravitational_constant() == pytest.approx(4.5e-3, rel=0.01)

    def test_mean_mol_weight_in_amu(self):
        amu = SI_CONSTANTS["amu"][0]
        assert Physics(mean_mol_weight=amu).get_mean_mol_weight() == pytest.approx(1.0)
        phys = Physics(units={"mass": amu}, mean_mol_weight=0.6)
        assert phys.get_mean_mol_weight() == pytest.approx(0.6)

    def test_from_parameters(self):
        params = {"Physics.RealPhysics": True, "Physics.MeanMolWeight": 2.0}
        phys = Physics.from_parameters(params, units={"mass": SI_CONSTANTS["amu"][0]})
        assert phys.get_gravitational_constant() != 1.0
        assert phys.get_mean_mol_weight() == pytest.approx(2.0)

    def test_from_parameters_defaults(self):
        phys = Physics.from_parameters({})
        assert phys.get_gravitational_constant() == 1.0
        assert phys.get_mean_mol_weight() == pytest.approx(
            PHYSICS_DEFAULT_MEANMOLWEIGHT / SI_CONSTANTS["amu"][0]
        )

    @pytest.mark.parametrize("units", [{"speed": 1.0}, {"length": 0.0}])
    def test_bad_units(self, units):
        with pytest.raises(ValueError):
            Physics(units=units)


class TestRestart:

    def test_round_trip(self, tmp_path):
        phys = Physics(units=ASTRO_UNITS, mean_mol_weight=1e-57, real_units=True)
        path = tmp_path / "restart.h5"
        phys.dump(path)
        back = Physics.from_restart(path)
        for key, value in phys.as_dict().items():
            assert back.as_dict()[key] == value

    def test_dump_overwrites(self, tmp_path):
        path = tmp_path / "restart.h5"
        Physics().dump(path)
        Physics(real_units=True).dump(path)
        assert Physics.from_restart(path).get_gravitational_constant() == pytest.approx(6.674e-11)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Physics.from_restart(tmp_path / "nope.h5")

    def test_missing_group(self, tmp_path):
        import h5py

        path = tmp_path / "empty.h5"
        with h5py.File(path, "w"):
            pass
        with pytest.raises(KeyError, match="physics"):
            Physics.from_restart(path)

    def test_repr(self):
        assert "G=" in repr(Physics())
