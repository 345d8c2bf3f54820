import numpy as np
import pytest

from ffnet import build
from ffnet.core.errors import DimensionMismatchError
from ffnet.core.types import Example

STEP = 1e-6


def _numeric_gradient(network, example):
    """Central differences of ``get_error`` for every bias and weight."""

    layers = []
    for layer in network.layers:
        grads = []
        for neuron in layer:
            original = neuron.bias
            neuron.bias = original + STEP
            upper = network.get_error(example)
            neuron.bias = original - STEP
            lower = network.get_error(example)
            neuron.bias = original
            bias_grad = (upper - lower) / (2 * STEP)

            weight_grads = np.zeros(neuron.input_count)
            for k in range(neuron.input_count):
                original = neuron.weights[k]
                neuron.weights[k] = original + STEP
                upper = network.get_error(example)
                neuron.weights[k] = original - STEP
                lower = network.get_error(example)
                neuron.weights[k] = original
                weight_grads[k] = (upper - lower) / (2 * STEP)
            grads.append((bias_grad, weight_grads))
        layers.append(grads)
    return layers


def _assert_matches_finite_differences(network, example):
    analytic = network.get_gradient(example)
    numeric = _numeric_gradient(network, example)
    assert len(analytic) == len(numeric)
    for analytic_layer, numeric_layer in zip(analytic.layers, numeric):
        for grad, (bias_grad, weight_grads) in zip(analytic_layer, numeric_layer):
            assert grad.bias == pytest.approx(bias_grad, rel=1e-4, abs=1e-7)
            assert np.allclose(grad.weights, weight_grads, rtol=1e-4, atol=1e-7)


@pytest.mark.parametrize("neuron_type", ["sigmoid", "identity", "elu", "leakyRelu"])
def test_square_difference_gradient(neuron_type):
    network = build(
        {"inputs": 3, "type": neuron_type, "bias": 0.1, "layers": [4, 3, 2]}, seed=3
    )
    example = Example(inputs=[0.2, -0.4, 0.9], outputs=[1.0, 0.0])
    _assert_matches_finite_differences(network, example)


def test_square_difference_gradient_mixed_layers():
    network = build(
        {
            "inputs": 2,
            "layers": [
                {"neurons": 3, "type": "elu", "bias": 0.3},
                {"neurons": 2, "type": "identity"},
                {"neurons": 3},
            ],
        },
        seed=8,
    )
    _assert_matches_finite_differences(network, Example(inputs=[1.5, -0.5], outputs=[0.1, 0.7, 0.2]))


def test_cross_entropy_gradient():
    with pytest.warns(UserWarning):
        network = build(
            {"inputs": 2, "bias": 0.5, "layers": [3, 3], "lossFunction": "categoricalCrossEntropy"},
            seed=5,
        )
    _assert_matches_finite_differences(network, Example(inputs=[0.6, -0.3], outputs=[0.0, 1.0, 0.0]))


def test_binary_neurons_have_zero_gradient():
    network = build({"inputs": 2, "type": "binary", "layers": [[[1, -1], [-1, 1]], [1, 1]]})
    gradient = network.get_gradient({"inputs": [1, 0], "outputs": [0]})
    for layer in gradient.layers:
        for grad in layer:
            assert grad.bias == 0.0
            assert not np.any(grad.weights)


def test_gradient_shape_follows_network():
    network = build({"inputs": 4, "layers": [5, 2]}, seed=0)
    gradient = network.get_gradient(Example(inputs=np.ones(4), outputs=[0.0, 1.0]))
    assert [len(layer) for layer in gradient.layers] == [5, 2]
    assert [grad.weights.size for grad in gradient[0]] == [4] * 5
    assert [grad.weights.size for grad in gradient[1]] == [5] * 2


def test_wrong_target_length_is_rejected():
    network = build({"inputs": 2, "layers": [2, 1]}, seed=0)
    with pytest.raises(DimensionMismatchError):
        network.get_gradient(Example(inputs=[0.0, 1.0], outputs=[0.0, 1.0]))
