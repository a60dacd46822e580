"""nbody_ics: region-based density sampling for initial conditions."""

from importlib.metadata import version as _version_lookup, PackageNotFoundError

# --- Versioning ---
try:
    # This works if the package was installed via 'pip install .'
    __version__ = _version_lookup("nbody_ics")
except PackageNotFoundError:
    # Fallback for local development
    __version__ = "unknown"

# --- Public API ---

# From .regions
from .regions import (
    ICRegion,
    DegenerateEnvelopeError,
    SamplingBudgetExceeded,
)

# From .functions
from .functions import (
    DensityFunction,
    CallableFunction,
    ConstantFunction,
    FunctionEvaluationError,
)

# From .state
from .state import HydroState

# From .physics
from .physics import Physics

# From .nbody_io
from .nbody_io import save_sampled_particles, load_sampled_particles

# From .utils
from .utils import InvalidGeometryError

# Define what "from nbody_ics import *" does
__all__ = [
    "__version__",
    "ICRegion",
    "DegenerateEnvelopeError",
    "SamplingBudgetExceeded",
    "DensityFunction",
    "CallableFunction",
    "ConstantFunction",
    "FunctionEvaluationError",
    "HydroState",
    "Physics",
    "save_sampled_particles",
    "load_sampled_particles",
    "InvalidGeometryError",
]
