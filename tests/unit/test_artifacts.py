import json

import pytest

from ffnet import build
from ffnet.core.types import TrainingReport
from ffnet.reporting.artifacts import describe_network, source_revision, write_manifest


def test_describe_network_lists_types_per_layer():
    network = build(
        {
            "inputs": 2,
            "layers": [
                {"neurons": [{"weights": [1, 1], "type": "relu"}, [1, 0]], "bias": 0},
                {"neurons": 1, "type": "identity"},
            ],
        },
        seed=0,
    )
    assert describe_network(network) == {
        "inputs": 2,
        "layers": [2, 1],
        "types": [["relu", "sigmoid"], ["identity"]],
        "loss_function": "squareDifference",
        "parameters": 9,
    }


def test_manifest_records_training_report(tmp_path):
    network = build({"inputs": 2, "layers": [2, 1]}, seed=0)
    report = TrainingReport(cycles=4, elapsed=0.5, pre=0.3, post=0.1, history=[0.2, 0.1])
    path = write_manifest(
        tmp_path / "out" / "manifest.json",
        run_id="abc123",
        config={"train": {"seed": 0}},
        dataset_provenance={"type": "truth_table", "gate": "xor"},
        network=network,
        report=report,
    )
    manifest = json.loads((tmp_path / "out" / "manifest.json").read_text())
    assert path == str(tmp_path / "out" / "manifest.json")
    assert manifest["run_id"] == "abc123"
    assert manifest["training"] == pytest.approx(
        {"cycles": 4.0, "elapsed": 0.5, "pre": 0.3, "post": 0.1}
    )
    assert manifest["network"]["parameters"] == 9
    assert manifest["revision"] == source_revision()
