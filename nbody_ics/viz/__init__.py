"""nbody_ics.viz: visualization and plotting.

Density slices through regions and projections of sampled particles.

Usage
-----
>>> from nbody_ics import viz
>>> viz.plot_region_slice(region, slice_axis="Z")
>>> viz.plot_region_samples(pos, region=region)
"""

from .plots import (
    plot_region_slice,
    plot_region_samples,
)

__all__ = [
    "plot_region_slice",
    "plot_region_samples",
]
