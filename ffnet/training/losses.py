"""Loss registry: each loss returns the scalar error and dE/d(output)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from ..core.errors import NumericInstabilityError, UnrecognizedTagError
from ..core.types import Array

LossFn = Callable[[Array, Array], float]
DeltaFn = Callable[[Array, Array], Array]

SQUARE_DIFFERENCE = "squareDifference"
CATEGORICAL_CROSS_ENTROPY = "categoricalCrossEntropy"


@dataclass(frozen=True)
class Loss:
    """Loss wrapper exposing both the error value and its output delta."""

    name: str
    fn: LossFn
    delta_fn: DeltaFn
    experimental: bool = False

    def __call__(self, actual: Array, expected: Array) -> float:
        return self.fn(actual, expected)

    def delta(self, actual: Array, expected: Array) -> Array:
        delta = self.delta_fn(actual, expected)
        if not np.all(np.isfinite(delta)):
            raise NumericInstabilityError(
                f"{self.name} produced a non-finite output delta for outputs {actual.tolist()}"
            )
        return delta


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(
        self, name: str, fn: LossFn, delta_fn: DeltaFn, *, experimental: bool = False
    ) -> None:
        self._registry[name] = Loss(name, fn, delta_fn, experimental)

    def get(self, name: str) -> Loss:
        try:
            return self._registry[name]
        except (KeyError, TypeError):
            raise UnrecognizedTagError("loss function", name, self._registry) from None

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = LossRegistry()


def _square_difference(actual: Array, expected: Array) -> float:
    return float(np.mean(np.square(actual - expected)))


def _square_difference_delta(actual: Array, expected: Array) -> Array:
    return 2.0 * (actual - expected) / actual.size


def _categorical_cross_entropy(actual: Array, expected: Array) -> float:
    # Cross-entropy against activations normalised by their sum, not a softmax.
    total = float(np.sum(actual))
    with np.errstate(divide="ignore", invalid="ignore"):
        terms = np.where(expected != 0.0, expected * np.log(actual / total), 0.0)
    return float(-np.sum(terms))


def _categorical_cross_entropy_delta(actual: Array, expected: Array) -> Array:
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.sum(expected) / np.sum(actual) - expected / actual


REGISTRY.register(SQUARE_DIFFERENCE, _square_difference, _square_difference_delta)
REGISTRY.register(
    CATEGORICAL_CROSS_ENTROPY,
    _categorical_cross_entropy,
    _categorical_cross_entropy_delta,
    experimental=True,
)


def get(name: str) -> Loss:
    return REGISTRY.get(name)


__all__ = [
    "CATEGORICAL_CROSS_ENTROPY",
    "Loss",
    "LossRegistry",
    "REGISTRY",
    "SQUARE_DIFFERENCE",
    "get",
]
