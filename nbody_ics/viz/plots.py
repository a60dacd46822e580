"""Plotting functions for region and sampled-particle diagnostics.

Public API (flat via ``nbody_ics.viz.*``):
- ``plot_region_slice``: first hydro function on a slice, with the region outline
- ``plot_region_samples``: 2-D projection of sampled positions
"""

from __future__ import annotations

from typing import Any

import numpy as np
import matplotlib.axes
import matplotlib.colors
import matplotlib.image
import matplotlib.pyplot as plt

_AXES = {"X": 0, "Y": 1, "Z": 2}


# =====================================================================
# Private helpers
# =====================================================================
def _plane_axes(slice_axis: str) -> tuple[int, int, int]:
    """Return ``(i, j, k)``: in-plane axes and the normal axis."""
    key = slice_axis.upper()
    if key not in _AXES:
        raise ValueError(f"slice_axis must be 'X', 'Y' or 'Z', got {slice_axis!r}")
    k = _AXES[key]
    i, j = [a for a in range(3) if a != k]
    return i, j, k


def _slice_grid(region, i: int, j: int, k: int, value: float, n_pix: int):
    lower, upper = region.bounding_box
    xs = np.linspace(lower[i], upper[i], n_pix)
    ys = np.linspace(lower[j], upper[j], n_pix)
    X, Y = np.meshgrid(xs, ys, indexing="xy")
    pts = np.empty((X.size, 3))
    pts[:, i] = X.ravel()
    pts[:, j] = Y.ravel()
    pts[:, k] = value
    return X, Y, pts


def _draw_outline(ax, region, i: int, j: int, k: int, value: float, n_pix: int = 256):
    X, Y, pts = _slice_grid(region, i, j, k, value, n_pix)
    norm = region.inside_many(pts).reshape(X.shape).astype(float)
    ax.contour(X, Y, norm, levels=[0.5], colors="k", linewidths=0.8)


# =====================================================================
# Public API
# =====================================================================
def plot_region_slice(
    region,
    slice_axis: str = "Z",
    value: float | None = None,
    n_pix: int = 128,
    ax: matplotlib.axes.Axes | None = None,
    cmap: matplotlib.colors.Colormap | str = "viridis",
    log: bool = False,
    colorbar: bool = True,
    return_dens: bool = False,
) -> None | tuple[matplotlib.image.AxesImage, np.ndarray]:
    """
    Image the gas density of *region* on an axis-aligned slice.

    Pixels outside the region are masked.

    Parameters
    ----------
    region : ICRegion
    slice_axis : {'X', 'Y', 'Z'}
        Normal of the slice plane.
    value : float, optional
        Slice coordinate along *slice_axis*. Defaults to the region origin.
    n_pix : int
        Pixels per side.
    ax : Axes, optional
        Existing axes. A new figure is created when *None*.
    cmap : colormap or str
    log : bool
        Show log10 of the density.
    colorbar : bool
        Attach a colorbar to the figure.
    return_dens : bool
        If *True*, return ``(im_obj, density_array)`` instead of *None*.
    """
    if not region.hydro_functions:
        raise ValueError("region has no hydro functions to plot")
    i, j, k = _plane_axes(slice_axis)
    if value is None:
        value = float(region.origin[k])

    X, Y, pts = _slice_grid(region, i, j, k, value, n_pix)
    dens = np.full(X.size, np.nan)
    mask = region.inside_many(pts)
    if np.any(mask):
        dens[mask] = region.hydro_functions[0].evaluate_many(pts[mask])
    dens = dens.reshape(X.shape)
    if log:
        with np.errstate(divide="ignore", invalid="ignore"):
            dens = np.log10(dens)

    if ax is None:
        _, ax = plt.subplots(figsize=(5, 5))
    lower, upper = region.bounding_box
    im_obj = ax.imshow(
        np.ma.masked_invalid(dens),
        origin="lower",
        extent=(lower[i], upper[i], lower[j], upper[j]),
        cmap=cmap,
    )
    _draw_outline(ax, region, i, j, k, value)
    labels = "XYZ"
    ax.set_xlabel(labels[i])
    ax.set_ylabel(labels[j])
    ax.set_title(f"{labels[k]} = {value:.3g}")
    if colorbar:
        ax.figure.colorbar(im_obj, ax=ax, label=r"$\log_{10}\rho$" if log else r"$\rho$")

    if return_dens:
        return im_obj, dens
    return None


def plot_region_samples(
    pos: np.ndarray,
    xval: str = "X",
    yval: str = "Y",
    region=None,
    ax: matplotlib.axes.Axes | None = None,
    **kwargs: Any,
) -> matplotlib.axes.Axes:
    """
    Scatter plot of sampled positions projected on ``xval``-``yval``.

    Parameters
    ----------
    pos : np.ndarray, shape (N, 3)
    xval, yval : str
        Projection axes (``'X'``, ``'Y'``, ``'Z'``).
    region : ICRegion, optional
        Draw the outline of the region through its origin.
    ax : Axes, optional
    **kwargs
        Forwarded to ``ax.scatter``.
    """
    pos = np.asarray(pos, dtype=float)
    if pos.ndim != 2 or pos.shape[1] != 3:
        raise ValueError(f"pos must have shape (N, 3), got {pos.shape}")
    try:
        i, j = _AXES[xval.upper()], _AXES[yval.upper()]
    except KeyError:
        raise ValueError(f"Invalid projection axes {xval!r}, {yval!r}") from None
    if i == j:
        raise ValueError("xval and yval must differ")

    if ax is None:
        _, ax = plt.subplots(figsize=(5, 5))
    kwargs.setdefault("s", 1)
    kwargs.setdefault("alpha", 0.5)
    ax.scatter(pos[:, i], pos[:, j], **kwargs)
    if region is not None:
        k = 3 - i - j
        _draw_outline(ax, region, i, j, k, float(region.origin[k]))
    ax.set_xlabel(xval.upper())
    ax.set_ylabel(yval.upper())
    ax.set_aspect("equal")
    return ax
