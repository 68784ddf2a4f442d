"""spherepi package public API."""

from .config import ExperimentConfig
from .core import (
    ExperimentReport,
    ExperimentResult,
    ReproducibilityCheck,
    SequentialResult,
    SphereExperiment,
)
from .exceptions import (
    InsufficientReplicates,
    NoPendingRun,
    ReplicateError,
    ReproducibilityMismatch,
    SeedUnavailable,
    SpherePiError,
)
from .seeding import DirectoryStateStore, MemoryStateStore, generate_states, make_generator
from .sims import estimate_sphere_volume
from .simulation import Replicate
from .stats_engine import REFERENCE_VOLUME, ConfidenceReport, location_percent, summarize
from .utils import STUDENT_T_99, bits_equal, critical_value, float_bits, student_index, t_crit, z_crit

__all__ = [
    "ExperimentConfig",
    "SphereExperiment",
    "ExperimentResult",
    "ExperimentReport",
    "ReproducibilityCheck",
    "SequentialResult",
    "Replicate",
    "estimate_sphere_volume",
    "MemoryStateStore",
    "DirectoryStateStore",
    "generate_states",
    "make_generator",
    "ConfidenceReport",
    "summarize",
    "location_percent",
    "REFERENCE_VOLUME",
    "STUDENT_T_99",
    "student_index",
    "critical_value",
    "t_crit",
    "z_crit",
    "float_bits",
    "bits_equal",
    "SpherePiError",
    "SeedUnavailable",
    "ReplicateError",
    "NoPendingRun",
    "InsufficientReplicates",
    "ReproducibilityMismatch",
]

__version__ = "0.1.0"
