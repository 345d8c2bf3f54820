"""ffnet public API."""

__version__ = "0.1.0"

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.errors import (
    ConfigurationError,
    DimensionMismatchError,
    FFNetError,
    NumericInstabilityError,
    UnrecognizedTagError,
)
from .core.network import Network, build, load
from .core.neuron import Neuron
from .core.types import Example, GradientRecord, TrainingReport
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "Example",
    "FFNetError",
    "GradientRecord",
    "Network",
    "Neuron",
    "NumericInstabilityError",
    "Trainer",
    "TrainingReport",
    "UnrecognizedTagError",
    "__version__",
    "activations",
    "build",
    "load",
    "load_preset",
    "presets",
    "run_pipeline",
    "types",
]
