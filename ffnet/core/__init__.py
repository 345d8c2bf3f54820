"""Core numerical primitives for ffnet."""

from . import activations, errors, types
from . import config, neuron
from . import gradient, network

__all__ = ["activations", "config", "errors", "gradient", "network", "neuron", "types"]
