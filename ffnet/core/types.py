"""Core typing contracts for ffnet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np

Array = np.ndarray


@dataclass(frozen=True)
class Example:
    """A single supervised training example."""

    inputs: Array
    outputs: Array

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", np.asarray(self.inputs, dtype=np.float64).reshape(-1))
        object.__setattr__(self, "outputs", np.asarray(self.outputs, dtype=np.float64).reshape(-1))


@dataclass(frozen=True)
class ForwardTrace:
    """Per-layer totals and activations recorded by a training run."""

    inputs: Array
    totals: List[Array]
    activations: List[Array]

    @property
    def outputs(self) -> Array:
        return self.activations[-1]


@dataclass
class NeuronGradient:
    """Partial derivatives of the error for one neuron."""

    bias: float
    weights: Array


@dataclass
class GradientRecord:
    """Gradient of the error, shaped like the network's layers and neurons."""

    layers: List[List[NeuronGradient]]

    @classmethod
    def zeros(cls, shape: Sequence[Sequence[int]]) -> "GradientRecord":
        """Return an all-zero record; ``shape[i][j]`` is neuron ``j``'s weight count."""

        return cls(
            layers=[
                [NeuronGradient(bias=0.0, weights=np.zeros(count)) for count in layer]
                for layer in shape
            ]
        )

    def add_(self, other: "GradientRecord") -> "GradientRecord":
        for layer, other_layer in zip(self.layers, other.layers):
            for grad, other_grad in zip(layer, other_layer):
                grad.bias += other_grad.bias
                grad.weights = grad.weights + other_grad.weights
        return self

    def scale_(self, factor: float) -> "GradientRecord":
        for layer in self.layers:
            for grad in layer:
                grad.bias *= factor
                grad.weights = grad.weights * factor
        return self

    def __getitem__(self, index: int) -> List[NeuronGradient]:
        return self.layers[index]

    def __len__(self) -> int:
        return len(self.layers)


@dataclass(frozen=True)
class TrainingReport:
    """Summary returned by the trainer's training loops."""

    cycles: int
    elapsed: float
    pre: float
    post: float
    history: List[float] = field(default_factory=list)

    def as_dict(self) -> Dict[str, float]:
        return {
            "cycles": float(self.cycles),
            "elapsed": float(self.elapsed),
            "pre": float(self.pre),
            "post": float(self.post),
        }


__all__ = [
    "Array",
    "Example",
    "ForwardTrace",
    "GradientRecord",
    "NeuronGradient",
    "TrainingReport",
]
