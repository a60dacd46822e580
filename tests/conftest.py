"""Shared fixtures for the nbody_ics test-suite."""
from __future__ import annotations

import numpy as np
import pytest

from nbody_ics import ICRegion

# Coarser sweep than the library default keeps construction fast in tests.
FAST_BOUNDS = dict(resolution=17, n_random=512, n_polish=2)


@pytest.fixture()
def make_region():
    """Factory for ICRegion with the fast sweep settings unless overridden."""

    def _make(hydro, dm=(), origin=(0.0, 0.0, 0.0), sides=(1.0, 1.0, 1.0),
              exponent=2.0, **kwargs):
        params = {**FAST_BOUNDS, **kwargs}
        return ICRegion(origin, sides, exponent, hydro, dm, **params)

    return _make


@pytest.fixture()
def rng():
    return np.random.default_rng(42)
