"""Weighted-sum neurons."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Union

import numpy as np

from . import activations
from .errors import DimensionMismatchError
from .types import Array

NeuronConfig = Union[List[float], Dict[str, object]]


@dataclass(eq=False)
class Neuron:
    """A single neuron: ``activation(bias + inputs . weights)``.

    ``type`` selects the nonlinearity from :mod:`ffnet.core.activations`; an
    unknown tag raises :class:`~ffnet.core.errors.UnrecognizedTagError`.
    """

    type: str
    bias: float
    weights: Array = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self) -> None:
        self._activation = activations.get(self.type)
        self.bias = float(self.bias)
        self.weights = np.array(self.weights, dtype=np.float64).reshape(-1)

    @property
    def input_count(self) -> int:
        return int(self.weights.size)

    def set_initial_weights(
        self, input_count: int, mean: float, rng: np.random.Generator
    ) -> None:
        """Draw each weight as ``2 * U(0, 1) - 1 + mean``."""

        self.weights = 2.0 * rng.random(input_count) - 1.0 + mean

    def get_total(self, inputs: Array) -> float:
        inputs = np.asarray(inputs, dtype=np.float64)
        if inputs.shape != self.weights.shape:
            raise DimensionMismatchError(
                f"Neuron expects {self.weights.size} inputs, got {inputs.size}"
            )
        return self.bias + float(np.dot(inputs, self.weights))

    def get_activation(self, total: float) -> float:
        return float(self._activation.fn(total))

    def get_derivative_at_total(self, total: float) -> float:
        return float(self._activation.derivative(total))

    def to_config(self, defaults: Mapping[str, object] | None = None) -> NeuronConfig:
        """Return this neuron's config relative to the layer ``defaults``.

        A bare weight list is returned when the defaults supply both ``type``
        and ``bias``; otherwise a mapping carrying whichever of the two the
        defaults do not cover.
        """

        defaults = defaults or {}
        weights = self.weights.tolist()
        if "type" in defaults and "bias" in defaults:
            return weights
        config: Dict[str, object] = {}
        if "type" not in defaults:
            config["type"] = self.type
        if "bias" not in defaults:
            config["bias"] = self.bias
        config["weights"] = weights
        return config


__all__ = ["Neuron", "NeuronConfig"]
