"""Parsing of the declarative network configuration grammar.

Raw configurations are parsed into the ``*Spec``/``*Layer`` types below;
:func:`resolve` then applies the type and bias defaults.

Grammar::

    network := {"inputs": int, "layers": int | [layer, ...],
                "type"?: str, "bias"?: number, "lossFunction"?: str}
    layer   := {"neurons": int | [neuron, ...], "type"?: str, "bias"?: number}
             | [neuron, neuron, ...]     # every element a list or mapping
             | neuron                     # a one-neuron layer
             | int                        # auto-sized layer of that width
    neuron  := [number, ...]              # weights
             | {"weights": [number, ...], "type"?: str, "bias"?: number}

``"layers": N`` is shorthand for ``N`` auto-sized layers of ``N`` neurons.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import ConfigurationError

NETWORK_KEYS = frozenset({"inputs", "layers", "type", "bias", "lossFunction"})
LAYER_KEYS = frozenset({"neurons", "type", "bias"})
NEURON_KEYS = frozenset({"weights", "type", "bias"})


@dataclass(frozen=True)
class NeuronSpec:
    """A neuron as written in the config; ``None`` means "inherit"."""

    weights: Optional[Tuple[float, ...]]
    type: Optional[str] = None
    bias: Optional[float] = None


@dataclass(frozen=True)
class ExplicitLayer:
    """A layer whose neurons are listed one by one."""

    neurons: Tuple[NeuronSpec, ...]
    type: Optional[str] = None
    bias: Optional[float] = None

    @property
    def width(self) -> int:
        return len(self.neurons)


@dataclass(frozen=True)
class AutoSizedLayer:
    """A layer of ``count`` randomly initialised neurons."""

    count: int
    type: Optional[str] = None
    bias: Optional[float] = None

    @property
    def width(self) -> int:
        return self.count


LayerSpec = Union[ExplicitLayer, AutoSizedLayer]


@dataclass(frozen=True)
class NetworkSpec:
    inputs: int
    layers: Tuple[LayerSpec, ...]
    type: Optional[str] = None
    bias: Optional[float] = None
    loss_function: Optional[str] = None


@dataclass(frozen=True)
class ResolvedNeuron:
    """A neuron with every default applied. ``weights`` is ``None`` for random init."""

    type: str
    bias: float
    weights: Optional[Tuple[float, ...]]


@dataclass(frozen=True)
class ResolvedLayer:
    neurons: Tuple[ResolvedNeuron, ...]
    input_count: int
    randomised: bool

    @property
    def width(self) -> int:
        return len(self.neurons)


def _is_int(value: object) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(
        value, bool
    )


def _is_sequence(value: object) -> bool:
    return isinstance(value, (list, tuple, np.ndarray))


def _check_keys(raw: Mapping[str, object], allowed: frozenset, where: str) -> None:
    unknown = sorted(str(key) for key in raw if key not in allowed)
    if unknown:
        raise ConfigurationError(f"{where}: unsupported key(s) {', '.join(unknown)}")


def _parse_type(raw: Mapping[str, object], where: str) -> Optional[str]:
    value = raw.get("type")
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{where}: 'type' must be a string, got {value!r}")
    return value


def _parse_bias(raw: Mapping[str, object], where: str) -> Optional[float]:
    value = raw.get("bias")
    if value is None:
        return None
    if not _is_number(value) or not math.isfinite(float(value)):
        raise ConfigurationError(f"{where}: 'bias' must be a finite number, got {value!r}")
    return float(value)


def _parse_count(value: object, where: str) -> int:
    if not _is_int(value) or int(value) < 1:
        raise ConfigurationError(f"{where}: neuron count must be a positive integer, got {value!r}")
    return int(value)


def parse_neuron(raw: object, where: str = "neuron") -> NeuronSpec:
    """Parse a bare weight list or a ``{"weights": ...}`` mapping."""

    if _is_sequence(raw):
        raw = {"weights": raw}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{where}: expected a weight list or mapping, got {raw!r}")
    _check_keys(raw, NEURON_KEYS, where)
    if "weights" not in raw:
        raise ConfigurationError(f"{where}: 'weights' is required")
    weights = raw["weights"]
    if not _is_sequence(weights):
        raise ConfigurationError(f"{where}: 'weights' must be a list of numbers")
    values = list(weights)
    if not all(_is_number(w) and math.isfinite(float(w)) for w in values):
        raise ConfigurationError(f"{where}: every weight must be a finite number")
    return NeuronSpec(
        weights=tuple(float(w) for w in values),
        type=_parse_type(raw, where),
        bias=_parse_bias(raw, where),
    )


def parse_layer(raw: object, where: str = "layer") -> LayerSpec:
    """Parse one layer config into an :class:`ExplicitLayer` or :class:`AutoSizedLayer`."""

    if _is_int(raw):
        return AutoSizedLayer(count=_parse_count(raw, where))

    if _is_sequence(raw):
        items = list(raw)
        if not items:
            raise ConfigurationError(f"{where}: a layer needs at least one neuron")
        if all(_is_sequence(item) or isinstance(item, Mapping) for item in items):
            neurons = tuple(
                parse_neuron(item, f"{where}, neuron {idx}") for idx, item in enumerate(items)
            )
            return ExplicitLayer(neurons=neurons)
        if all(_is_number(item) for item in items):
            return ExplicitLayer(neurons=(parse_neuron(items, f"{where}, neuron 0"),))
        raise ConfigurationError(
            f"{where}: a list layer must hold either neuron configs or plain weights"
        )

    if isinstance(raw, Mapping):
        if "neurons" not in raw:
            if "weights" in raw:
                return ExplicitLayer(neurons=(parse_neuron(raw, f"{where}, neuron 0"),))
            raise ConfigurationError(f"{where}: 'neurons' is required")
        _check_keys(raw, LAYER_KEYS, where)
        layer_type = _parse_type(raw, where)
        layer_bias = _parse_bias(raw, where)
        neurons = raw["neurons"]
        if _is_int(neurons):
            return AutoSizedLayer(
                count=_parse_count(neurons, where), type=layer_type, bias=layer_bias
            )
        if not _is_sequence(neurons) or len(neurons) == 0:
            raise ConfigurationError(
                f"{where}: 'neurons' must be a positive count or a non-empty list"
            )
        specs = tuple(
            parse_neuron(item, f"{where}, neuron {idx}") for idx, item in enumerate(neurons)
        )
        return ExplicitLayer(neurons=specs, type=layer_type, bias=layer_bias)

    raise ConfigurationError(f"{where}: unsupported layer config {raw!r}")


def parse_network(config: object) -> NetworkSpec:
    """Parse a full network config into a :class:`NetworkSpec`."""

    if not isinstance(config, Mapping):
        raise ConfigurationError("Network config must be a mapping")
    _check_keys(config, NETWORK_KEYS, "network")

    inputs = config.get("inputs")
    if not _is_int(inputs) or int(inputs) < 1:
        raise ConfigurationError(f"'inputs' must be a positive integer, got {inputs!r}")

    if "layers" not in config:
        raise ConfigurationError("'layers' is required")
    raw_layers = config["layers"]
    if _is_int(raw_layers):
        count = _parse_count(raw_layers, "layers")
        layers: Tuple[LayerSpec, ...] = tuple(AutoSizedLayer(count=count) for _ in range(count))
    elif _is_sequence(raw_layers) and len(raw_layers) > 0:
        layers = tuple(parse_layer(raw, f"layer {idx}") for idx, raw in enumerate(raw_layers))
    else:
        raise ConfigurationError("'layers' must be a positive count or a non-empty list")

    loss_function = config.get("lossFunction")
    if loss_function is not None and not isinstance(loss_function, str):
        raise ConfigurationError(f"'lossFunction' must be a string, got {loss_function!r}")

    return NetworkSpec(
        inputs=int(inputs),
        layers=layers,
        type=_parse_type(config, "network"),
        bias=_parse_bias(config, "network"),
        loss_function=loss_function,
    )


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def resolve(spec: NetworkSpec, default_type: str, default_bias: float) -> List[ResolvedLayer]:
    """Collapse neuron -> layer -> network -> global defaults into concrete neurons.

    Also threads each layer's width forward and checks explicit weight vectors
    against it.
    """

    resolved: List[ResolvedLayer] = []
    previous_width = spec.inputs
    for idx, layer in enumerate(spec.layers):
        if isinstance(layer, AutoSizedLayer):
            neuron_type = _first(layer.type, spec.type, default_type)
            bias = _first(layer.bias, spec.bias, default_bias)
            neurons: Sequence[ResolvedNeuron] = [
                ResolvedNeuron(type=neuron_type, bias=bias, weights=None)
                for _ in range(layer.count)
            ]
            randomised = True
        else:
            neurons = []
            for n_idx, neuron in enumerate(layer.neurons):
                weights = neuron.weights or ()
                if len(weights) != previous_width:
                    raise ConfigurationError(
                        f"layer {idx}, neuron {n_idx}: expected {previous_width} weights "
                        f"(previous layer width), got {len(weights)}"
                    )
                neurons.append(
                    ResolvedNeuron(
                        type=_first(neuron.type, layer.type, spec.type, default_type),
                        bias=_first(neuron.bias, layer.bias, spec.bias, default_bias),
                        weights=tuple(weights),
                    )
                )
            randomised = False
        resolved.append(
            ResolvedLayer(neurons=tuple(neurons), input_count=previous_width, randomised=randomised)
        )
        previous_width = len(neurons)
    return resolved


__all__ = [
    "AutoSizedLayer",
    "ExplicitLayer",
    "LayerSpec",
    "NetworkSpec",
    "NeuronSpec",
    "ResolvedLayer",
    "ResolvedNeuron",
    "parse_layer",
    "parse_network",
    "parse_neuron",
    "resolve",
]
