import json

import numpy as np
import pytest

from ffnet import Network, build, load
from ffnet.core.errors import (
    ConfigurationError,
    DimensionMismatchError,
    NumericInstabilityError,
    UnrecognizedTagError,
)
from ffnet.core.network import DEFAULTS
from ffnet.core.neuron import Neuron
from ffnet.data import as_examples

XOR_BINARY = {
    "inputs": 2,
    "type": "binary",
    "layers": [[[1, -1], [-1, 1]], [1, 1]],
}


def test_binary_xor_network():
    network = build(XOR_BINARY)
    assert network.layer_sizes == [2, 1]
    outputs = [network.run([a, b])[0] for a, b in [(0, 0), (0, 1), (1, 0), (1, 1)]]
    assert outputs == [0.0, 1.0, 1.0, 0.0]


def test_training_run_records_every_layer():
    network = build(XOR_BINARY)
    trace = network.training_run([1, 0])
    assert [t.tolist() for t in trace.totals] == [[0.0, -2.0], [0.0]]
    assert [a.tolist() for a in trace.activations] == [[1.0, 0.0], [1.0]]
    assert trace.outputs.tolist() == network.run([1, 0])


def test_wrong_input_length_leaves_network_untouched():
    network = build({"inputs": 3, "layers": [2, 1]}, seed=4)
    before = network.state_dict()
    with pytest.raises(DimensionMismatchError):
        network.run([1.0, 2.0])
    with pytest.raises(DimensionMismatchError):
        network.training_run([1.0, 2.0, 3.0, 4.0])
    after = network.state_dict()
    assert before.keys() == after.keys()
    for key in before:
        assert np.array_equal(before[key], after[key])


def test_default_bias_and_type():
    network = build({"inputs": 2, "layers": [[[0.0, 0.0]]]})
    neuron = network.layers[0][0]
    assert (neuron.type, neuron.bias) == (DEFAULTS.type, DEFAULTS.bias)
    assert network.loss_function == "squareDifference"


def test_explicit_zero_bias_is_kept():
    network = build({"inputs": 2, "bias": 0, "layers": [[[0.0, 0.0]]]})
    assert network.layers[0][0].bias == 0.0
    assert network.run([5.0, 5.0]) == [0.5]


def test_auto_sized_layers_are_seeded():
    config = {"inputs": 3, "layers": [16, 2]}
    first = build(config, seed=21)
    second = build(config, seed=21)
    other = build(config, seed=22)
    for a, b in zip(first.layers, second.layers):
        for na, nb in zip(a, b):
            assert np.array_equal(na.weights, nb.weights)
    assert not np.array_equal(first.layers[0][0].weights, other.layers[0][0].weights)
    assert first.weight_shape() == [[3] * 16, [16, 16]]
    assert first.parameter_count() == 16 * 4 + 2 * 17

    hidden = np.concatenate([neuron.weights for neuron in first.layers[0]])
    assert hidden.min() >= -1.5 and hidden.max() < 0.5


def test_unknown_tags_fail_at_build():
    with pytest.raises(UnrecognizedTagError):
        build({"inputs": 1, "layers": 1, "type": "softsign"})
    with pytest.raises(UnrecognizedTagError):
        build({"inputs": 1, "layers": 1, "lossFunction": "hinge"})


def test_experimental_loss_warns():
    with pytest.warns(UserWarning, match="categoricalCrossEntropy"):
        network = build({"inputs": 2, "layers": [3], "lossFunction": "categoricalCrossEntropy"})
    assert network.loss_function == "categoricalCrossEntropy"


def test_weight_count_mismatch_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        build({"inputs": 2, "layers": [[[1.0, 2.0, 3.0]]]})


def test_nan_weights_are_reported():
    network = build({"inputs": 2, "layers": [[[1.0, 1.0]]]})
    network.layers[0][0].weights = np.array([np.nan, 1.0])
    with pytest.raises(NumericInstabilityError, match="NaN"):
        network.run([1.0, 1.0])


def test_error_functions():
    network = build({"inputs": 1, "type": "identity", "bias": 0, "layers": [[[2.0], [1.0]]]})
    assert network.run([3.0]) == [6.0, 3.0]
    assert network.get_error({"inputs": [3.0], "outputs": [4.0, 3.0]}) == pytest.approx(2.0)
    examples = [
        {"inputs": [3.0], "outputs": [4.0, 3.0]},
        {"inputs": [1.0], "outputs": [2.0, 1.0]},
    ]
    assert network.get_composite_error(as_examples(examples)) == pytest.approx(1.0)
    with pytest.raises(DimensionMismatchError):
        network.get_error({"inputs": [3.0], "outputs": [4.0]})


def test_to_config_hoists_and_omits_defaults():
    network = build(XOR_BINARY)
    assert network.to_config() == {
        "inputs": 2,
        "type": "binary",
        "layers": [[[1.0, -1.0], [-1.0, 1.0]], [[1.0, 1.0]]],
    }


def test_to_config_keeps_layer_and_neuron_overrides():
    config = {
        "inputs": 1,
        "lossFunction": "categoricalCrossEntropy",
        "layers": [
            {"neurons": [{"weights": [1.0], "type": "relu"}, [2.0]], "bias": 0.5},
            {"neurons": [[1.0, 1.0], [1.0, -1.0]], "type": "identity"},
        ],
    }
    with pytest.warns(UserWarning):
        network = build(config)
    assert network.to_config() == {
        "inputs": 1,
        "lossFunction": "categoricalCrossEntropy",
        "layers": [
            {
                "bias": 0.5,
                "neurons": [
                    {"type": "relu", "weights": [1.0]},
                    {"type": "sigmoid", "weights": [2.0]},
                ],
            },
            {"type": "identity", "neurons": [[1.0, 1.0], [1.0, -1.0]]},
        ],
    }


def test_state_dict_round_trip():
    network = build({"inputs": 2, "layers": [3, 1]}, seed=1)
    state = network.state_dict()
    network.layers[0][0].bias = 42.0
    network.layers[1][0].weights[:] = 0.0
    network.load_state_dict(state)
    assert network.layers[0][0].bias == state["0.0.bias"]
    assert np.array_equal(network.layers[1][0].weights, state["1.0.weights"])
    with pytest.raises(KeyError):
        network.load_state_dict({"0.0.bias": 1.0})


def test_save_and_load(tmp_path):
    network = build({"inputs": 2, "layers": [3, 2], "type": "elu"}, seed=9)
    path = network.save(tmp_path / "nets" / "net.json")
    assert json.loads((tmp_path / "nets" / "net.json").read_text()) == network.to_config()
    restored = load(path)
    assert restored.run([0.3, -0.7]) == network.run([0.3, -0.7])
    assert restored.to_json() == network.to_json()


def test_from_config_matches_build():
    config = {"inputs": 2, "layers": [3, 1], "type": "relu", "bias": 0.2}
    network = Network.from_config(config, seed=12)
    assert network.to_config() == build(config, seed=12).to_config()
    assert repr(network) == "Network(inputs=2, layers=[3, 1], loss_function='squareDifference')"


def test_composite_error_rejects_empty_sample():
    network = build({"inputs": 2, "layers": [2, 1]}, seed=0)
    with pytest.raises(ValueError, match="sample_size"):
        network.get_composite_error(as_examples([{"inputs": [0, 1], "outputs": [1]}]), sample_size=0)


def test_constructor_checks_topology():
    hidden = [Neuron(type="sigmoid", bias=0.0, weights=[1.0, 1.0])]
    with pytest.raises(ConfigurationError, match="at least one layer"):
        Network(inputs=2, layers=[])
    with pytest.raises(ConfigurationError, match="no neurons"):
        Network(inputs=2, layers=[hidden, []])
    with pytest.raises(ConfigurationError, match="width 1"):
        Network(inputs=2, layers=[hidden, [Neuron(type="identity", bias=0.0, weights=[1.0, 2.0])]])
    with pytest.raises(ConfigurationError, match="width 2"):
        Network(inputs=2, layers=[[Neuron(type="sigmoid", bias=0.0, weights=[1.0])]])

    network = Network(inputs=2, layers=[hidden, [Neuron(type="identity", bias=0.0, weights=[2.0])]])
    assert network.run([0.0, 0.0]) == [1.0]
