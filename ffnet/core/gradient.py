"""Backpropagation for a single training example."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import numpy as np

from ..training import losses
from .errors import DimensionMismatchError
from .types import Example, GradientRecord, NeuronGradient

if TYPE_CHECKING:  # pragma: no cover
    from .network import Network


def get_gradient(network: "Network", example: Example) -> GradientRecord:
    """Return dE/d(bias) and dE/d(weights) for every neuron.

    The error-delta of each layer's outputs is propagated backwards with the
    chain rule::

        d_j        = dE/da_j * f'(total_j)
        dE/db_j    = d_j
        dE/dw_jk   = d_j * a_prev_k
        dE/da_prev = sum_j d_j * w_jk
    """

    expected = np.asarray(example.outputs, dtype=np.float64).reshape(-1)
    if expected.size != network.layer_sizes[-1]:
        raise DimensionMismatchError(
            f"Expected {network.layer_sizes[-1]} target outputs, got {expected.size}"
        )

    trace = network.training_run(example.inputs)
    delta = losses.get(network.loss_function).delta(trace.outputs, expected)

    layers: List[List[NeuronGradient]] = [[] for _ in network.layers]
    for i in reversed(range(len(network.layers))):
        layer = network.layers[i]
        prev_activations = trace.activations[i - 1] if i > 0 else trace.inputs
        prev_delta = np.zeros(prev_activations.size)
        totals = trace.totals[i]

        for j, neuron in enumerate(layer):
            term = float(delta[j]) * neuron.get_derivative_at_total(totals[j])
            layers[i].append(NeuronGradient(bias=term, weights=term * prev_activations))
            if i > 0:
                prev_delta += term * neuron.weights

        delta = prev_delta

    return GradientRecord(layers=layers)


__all__ = ["get_gradient"]
