"""Layered feed-forward networks: building, evaluation and serialisation."""

from __future__ import annotations

import json
import math
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, MutableMapping, Sequence, Tuple

import numpy as np

from ..data.examples import as_example, random_sample
from ..training import losses
from . import config as grammar
from .errors import ConfigurationError, DimensionMismatchError, NumericInstabilityError
from .gradient import get_gradient
from .neuron import Neuron
from .types import Array, Example, ForwardTrace, GradientRecord

Layer = List[Neuron]


@dataclass(frozen=True)
class NetworkDefaults:
    type: str = "sigmoid"
    bias: float = -1.0
    loss_function: str = losses.SQUARE_DIFFERENCE


DEFAULTS = NetworkDefaults()


def _all_same(values: Sequence[object]) -> bool:
    return all(value == values[0] for value in values[1:])


class Network:
    """An ordered stack of layers of :class:`~ffnet.core.neuron.Neuron`.

    The topology is fixed at construction; only biases and weights change,
    and only through :class:`~ffnet.training.trainer.Trainer` updates.
    """

    def __init__(
        self,
        inputs: int,
        layers: Sequence[Sequence[Neuron]],
        loss_function: str = DEFAULTS.loss_function,
    ) -> None:
        losses.get(loss_function)
        self.inputs = int(inputs)
        self.layers: List[Layer] = [list(layer) for layer in layers]
        self.loss_function = loss_function
        _check_topology(self.inputs, self.layers)

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, object],
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> "Network":
        return build(config, seed=seed, rng=rng)

    # ------------------------------------------------------------------
    # Shape

    @property
    def layer_sizes(self) -> List[int]:
        return [len(layer) for layer in self.layers]

    def weight_shape(self) -> List[List[int]]:
        """Weight count of every neuron, layer by layer."""

        return [[neuron.input_count for neuron in layer] for layer in self.layers]

    def parameter_count(self) -> int:
        return int(sum(neuron.input_count + 1 for layer in self.layers for neuron in layer))

    # ------------------------------------------------------------------
    # Evaluation

    def _check_inputs(self, inputs: Sequence[float] | Array) -> Array:
        values = np.asarray(inputs, dtype=np.float64)
        if values.ndim != 1 or values.size != self.inputs:
            raise DimensionMismatchError(
                f"Must provide {self.inputs} inputs, got {values.size}: {values.tolist()}"
            )
        return values

    def _propagate(self, inputs: Array) -> Iterator[Tuple[Array, Array]]:
        values = inputs
        for i, layer in enumerate(self.layers):
            totals = np.empty(len(layer))
            outputs = np.empty(len(layer))
            for j, neuron in enumerate(layer):
                total = neuron.get_total(values)
                if math.isnan(total):
                    raise NumericInstabilityError(
                        f"Layer {i}, neuron {j} produced a NaN total "
                        f"(bias={neuron.bias}, inputs={values.tolist()}, "
                        f"weights={neuron.weights.tolist()})"
                    )
                output = neuron.get_activation(total)
                if math.isnan(output):
                    raise NumericInstabilityError(
                        f"Layer {i}, neuron {j} produced a NaN output for total {total}"
                    )
                totals[j] = total
                outputs[j] = output
            yield totals, outputs
            values = outputs

    def run(self, inputs: Sequence[float] | Array) -> List[float]:
        """Evaluate the network and return the output layer's activations."""

        values = self._check_inputs(inputs)
        outputs = values
        for _, outputs in self._propagate(values):
            pass
        return outputs.tolist()

    def training_run(self, inputs: Sequence[float] | Array) -> ForwardTrace:
        """Evaluate the network, recording every layer's totals and activations."""

        values = self._check_inputs(inputs)
        totals: List[Array] = []
        activations: List[Array] = []
        for layer_totals, layer_outputs in self._propagate(values):
            totals.append(layer_totals)
            activations.append(layer_outputs)
        return ForwardTrace(inputs=values, totals=totals, activations=activations)

    # ------------------------------------------------------------------
    # Error & gradient

    def get_error(self, example: Example | Mapping[str, object]) -> float:
        example = as_example(example)
        actual = np.asarray(self.run(example.inputs))
        if actual.size != example.outputs.size:
            raise DimensionMismatchError(
                f"Expected {actual.size} target outputs, got {example.outputs.size}"
            )
        return losses.get(self.loss_function)(actual, example.outputs)

    def get_composite_error(
        self,
        examples: Sequence[Example],
        sample_size: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> float:
        """Mean error over ``examples``, or over a random sample of them.

        The sample is drawn with replacement and is only used when the data set
        is larger than ``sample_size``.
        """

        if len(examples) == 0:
            raise ValueError("Cannot compute the error of an empty example set")
        sample: Sequence = examples
        if sample_size is not None and sample_size < 1:
            raise ValueError(f"sample_size must be positive, got {sample_size}")
        if sample_size is not None and sample_size < len(examples):
            sample = random_sample(examples, sample_size, rng or np.random.default_rng())
        return float(np.mean([self.get_error(example) for example in sample]))

    def get_gradient(self, example: Example | Mapping[str, object]) -> GradientRecord:
        return get_gradient(self, as_example(example))

    # ------------------------------------------------------------------
    # State

    def state_dict(self) -> Dict[str, Array | float]:
        state: Dict[str, Array | float] = {}
        for i, layer in enumerate(self.layers):
            for j, neuron in enumerate(layer):
                state[f"{i}.{j}.bias"] = neuron.bias
                state[f"{i}.{j}.weights"] = neuron.weights.copy()
        return state

    def load_state_dict(self, state: Mapping[str, Array | float]) -> None:
        for i, layer in enumerate(self.layers):
            for j, neuron in enumerate(layer):
                for key in (f"{i}.{j}.bias", f"{i}.{j}.weights"):
                    if key not in state:
                        raise KeyError(f"Missing parameter {key} in state dict")
        for i, layer in enumerate(self.layers):
            for j, neuron in enumerate(layer):
                neuron.bias = float(state[f"{i}.{j}.bias"])
                neuron.weights = np.array(state[f"{i}.{j}.weights"], dtype=np.float64)

    # ------------------------------------------------------------------
    # Serialisation

    def to_config(self) -> Dict[str, object]:
        """Return a config that :func:`build` turns back into this network.

        Shared types and biases are hoisted from neurons to their layer and
        from layers to the network; network- and layer-level values equal to
        the global defaults are dropped, and layers left with only ``neurons``
        become bare lists.
        """

        config: Dict[str, object] = {"inputs": self.inputs}
        layer_configs = [_layer_to_config(layer) for layer in self.layers]

        for key, default in (("type", DEFAULTS.type), ("bias", DEFAULTS.bias)):
            values = [layer_config.get(key) for layer_config in layer_configs]
            if _all_same(values):
                if values[0] is not None and values[0] != default:
                    config[key] = values[0]
                for layer_config in layer_configs:
                    layer_config.pop(key, None)
                continue
            for layer_config in layer_configs:
                if layer_config.get(key) == default:
                    layer_config.pop(key)

        config["layers"] = [
            layer_config["neurons"] if list(layer_config) == ["neurons"] else layer_config
            for layer_config in layer_configs
        ]
        if self.loss_function != DEFAULTS.loss_function:
            config["lossFunction"] = self.loss_function
        return config

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_config(), indent=indent)

    def save(self, path: str | Path) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(indent=2))
        return str(path)

    def __repr__(self) -> str:
        return (
            f"Network(inputs={self.inputs}, layers={self.layer_sizes}, "
            f"loss_function={self.loss_function!r})"
        )


def _check_topology(inputs: int, layers: Sequence[Layer]) -> None:
    if inputs < 1:
        raise ConfigurationError(f"A network needs at least one input, got {inputs}")
    if not layers:
        raise ConfigurationError("A network needs at least one layer")
    width = inputs
    for i, layer in enumerate(layers):
        if not layer:
            raise ConfigurationError(f"Layer {i} has no neurons")
        for j, neuron in enumerate(layer):
            if neuron.input_count != width:
                raise ConfigurationError(
                    f"Layer {i}, neuron {j} has {neuron.input_count} weights; "
                    f"the previous layer has width {width}"
                )
        width = len(layer)


def _layer_to_config(layer: Layer) -> MutableMapping[str, object]:
    defaults: Dict[str, object] = {}
    if _all_same([neuron.type for neuron in layer]):
        defaults["type"] = layer[0].type
    if _all_same([neuron.bias for neuron in layer]):
        defaults["bias"] = layer[0].bias
    config: Dict[str, object] = dict(defaults)
    config["neurons"] = [neuron.to_config(defaults) for neuron in layer]
    return config


def build(
    config: Mapping[str, object],
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> Network:
    """Build a :class:`Network` from a declarative config.

    Neurons of auto-sized layers get random weights drawn from ``rng`` (or a
    generator seeded with ``seed``), centred on ``-min(1, 8 / layer_width)``.
    """

    spec = grammar.parse_network(config)
    loss_function = spec.loss_function or DEFAULTS.loss_function
    loss = losses.get(loss_function)
    if loss.experimental:
        warnings.warn(
            f"{loss.name} differentiates cross-entropy over sum-normalised activations, "
            "an approximation of softmax cross-entropy that is unstable near zero outputs",
            UserWarning,
            stacklevel=2,
        )

    rng = rng or np.random.default_rng(seed)
    layers: List[Layer] = []
    for resolved in grammar.resolve(spec, DEFAULTS.type, DEFAULTS.bias):
        layer = [
            Neuron(type=neuron.type, bias=neuron.bias, weights=neuron.weights or ())
            for neuron in resolved.neurons
        ]
        if resolved.randomised:
            mean = -min(1.0, 8.0 / resolved.width)
            for neuron in layer:
                neuron.set_initial_weights(resolved.input_count, mean, rng)
        layers.append(layer)

    return Network(inputs=spec.inputs, layers=layers, loss_function=loss_function)


def load(path: str | Path) -> Network:
    """Rebuild a network saved with :meth:`Network.save`."""

    return build(json.loads(Path(path).read_text()))


__all__ = ["DEFAULTS", "Network", "NetworkDefaults", "build", "load"]
