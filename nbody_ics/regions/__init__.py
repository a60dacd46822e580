"""nbody_ics.regions: super-ellipsoidal regions with density envelopes.

Usage
-----
>>> from nbody_ics.regions import ICRegion
>>> region = ICRegion([0, 0, 0], [1, 1, 1], 2.0, [lambda x: 1.0 + x[0]])
>>> region.inside([0.1, 0.0, 0.0])
True
"""

from .geometry import (
    bounding_box,
    inside_superellipsoid,
    superellipsoid_norm,
    superellipsoid_volume,
)
from .region import DegenerateEnvelopeError, ICRegion, SamplingBudgetExceeded

__all__ = [
    "ICRegion",
    "DegenerateEnvelopeError",
    "SamplingBudgetExceeded",
    "bounding_box",
    "inside_superellipsoid",
    "superellipsoid_norm",
    "superellipsoid_volume",
]
