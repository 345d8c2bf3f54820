"""Activation functions and their derivatives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .errors import UnrecognizedTagError
from .types import Array

ActivationFn = Callable[[Array], Array]

ELU_ALPHA = 1.0
LEAKY_SLOPE = 0.01


@dataclass(frozen=True)
class Activation:
    """A named nonlinearity together with its derivative."""

    name: str
    fn: ActivationFn
    derivative: ActivationFn

    def __call__(self, total: Array) -> Array:
        return self.fn(total)


def binary(x: Array) -> Array:
    return np.where(np.asarray(x) >= 0.0, 1.0, 0.0)


def binary_deriv(x: Array) -> Array:
    # Step function: zero gradient everywhere, so binary neurons never learn.
    return np.zeros_like(np.asarray(x, dtype=np.float64))


def sigmoid(x: Array) -> Array:
    return 0.5 * (1.0 + np.tanh(0.5 * np.asarray(x, dtype=np.float64)))


def sigmoid_deriv(x: Array) -> Array:
    s = sigmoid(x)
    return s * (1.0 - s)


def identity(x: Array) -> Array:
    return np.asarray(x, dtype=np.float64)


def identity_deriv(x: Array) -> Array:
    return np.ones_like(np.asarray(x, dtype=np.float64))


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(np.asarray(x, dtype=np.float64), 0.0)


def relu_deriv(x: Array) -> Array:
    return np.where(np.asarray(x) >= 0.0, 1.0, 0.0)


def leaky_relu(x: Array) -> Array:
    x = np.asarray(x, dtype=np.float64)
    return np.where(x >= 0.0, x, LEAKY_SLOPE * x)


def leaky_relu_deriv(x: Array) -> Array:
    return np.where(np.asarray(x) >= 0.0, 1.0, LEAKY_SLOPE)


def elu(x: Array) -> Array:
    x = np.asarray(x, dtype=np.float64)
    return np.where(x >= 0.0, x, np.expm1(np.minimum(x, 0.0)) * ELU_ALPHA)


def elu_deriv(x: Array) -> Array:
    x = np.asarray(x, dtype=np.float64)
    return np.where(x >= 0.0, 1.0, np.exp(np.minimum(x, 0.0)) * ELU_ALPHA)


class ActivationRegistry:
    """Lookup table from neuron ``type`` tags to activations."""

    def __init__(self) -> None:
        self._registry: Dict[str, Activation] = {}

    def register(self, name: str, fn: ActivationFn, derivative: ActivationFn) -> None:
        self._registry[name] = Activation(name, fn, derivative)

    def get(self, name: str) -> Activation:
        try:
            return self._registry[name]
        except (KeyError, TypeError):
            raise UnrecognizedTagError("neuron type", name, self._registry) from None

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = ActivationRegistry()

REGISTRY.register("binary", binary, binary_deriv)
REGISTRY.register("sigmoid", sigmoid, sigmoid_deriv)
REGISTRY.register("identity", identity, identity_deriv)
REGISTRY.register("relu", relu, relu_deriv)
REGISTRY.register("leakyRelu", leaky_relu, leaky_relu_deriv)
REGISTRY.register("elu", elu, elu_deriv)


def get(name: str) -> Activation:
    return REGISTRY.get(name)


__all__ = ["Activation", "ActivationRegistry", "REGISTRY", "get", "relu", "sigmoid"]
