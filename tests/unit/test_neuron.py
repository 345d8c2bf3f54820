import numpy as np
import pytest

from ffnet.core.errors import DimensionMismatchError, UnrecognizedTagError
from ffnet.core.neuron import Neuron


@pytest.mark.parametrize(
    "neuron_type, expected",
    [("sigmoid", 0.5), ("relu", 0.0), ("identity", 0.0), ("binary", 1.0), ("elu", 0.0)],
)
def test_zero_weights_and_bias(neuron_type, expected):
    neuron = Neuron(type=neuron_type, bias=0.0, weights=[0.0, 0.0])
    total = neuron.get_total(np.array([3.0, -7.0]))
    assert total == 0.0
    assert neuron.get_activation(total) == pytest.approx(expected)


def test_total_is_bias_plus_dot_product():
    neuron = Neuron(type="identity", bias=0.5, weights=[2.0, -1.0, 0.25])
    assert neuron.get_total(np.array([1.0, 2.0, 4.0])) == pytest.approx(1.5)
    assert neuron.input_count == 3


def test_wrong_input_length_is_rejected():
    neuron = Neuron(type="sigmoid", bias=0.0, weights=[1.0, 1.0])
    with pytest.raises(DimensionMismatchError):
        neuron.get_total(np.array([1.0, 2.0, 3.0]))


def test_unknown_type_lists_registered_tags():
    with pytest.raises(UnrecognizedTagError) as excinfo:
        Neuron(type="tanh", bias=0.0, weights=[1.0])
    assert isinstance(excinfo.value, ValueError)
    assert excinfo.value.tag == "tanh"
    assert "sigmoid" in excinfo.value.available


def test_derivatives_at_total():
    sig = Neuron(type="sigmoid", bias=0.0, weights=[1.0])
    assert sig.get_derivative_at_total(0.0) == pytest.approx(0.25)
    leaky = Neuron(type="leakyRelu", bias=0.0, weights=[1.0])
    assert leaky.get_derivative_at_total(-3.0) == pytest.approx(0.01)
    assert leaky.get_activation(-3.0) == pytest.approx(-0.03)
    binary = Neuron(type="binary", bias=0.0, weights=[1.0])
    assert binary.get_derivative_at_total(0.3) == 0.0


def test_initial_weights_are_centred_on_mean():
    neuron = Neuron(type="sigmoid", bias=-1.0)
    neuron.set_initial_weights(2000, -0.5, np.random.default_rng(0))
    assert neuron.input_count == 2000
    assert neuron.weights.min() >= -1.5
    assert neuron.weights.max() < 0.5
    assert neuron.weights.mean() == pytest.approx(-0.5, abs=0.05)


def test_to_config_respects_layer_defaults():
    neuron = Neuron(type="relu", bias=0.25, weights=[1.0, 2.0])
    assert neuron.to_config({"type": "relu", "bias": 0.25}) == [1.0, 2.0]
    assert neuron.to_config({"type": "relu"}) == {"bias": 0.25, "weights": [1.0, 2.0]}
    assert neuron.to_config() == {"type": "relu", "bias": 0.25, "weights": [1.0, 2.0]}
