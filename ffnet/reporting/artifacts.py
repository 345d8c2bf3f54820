"""Run manifest helpers."""

from __future__ import annotations

import functools
import json
import platform
import subprocess
import time
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Mapping

import numpy as np

from ..core.types import TrainingReport

if TYPE_CHECKING:  # pragma: no cover
    from ..core.network import Network

_PACKAGE_DIR = Path(__file__).resolve().parents[1]


@functools.lru_cache(maxsize=None)
def source_revision() -> str:
    """Commit of the checkout ``ffnet`` is imported from, or ``"unknown"``."""

    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "HEAD"], cwd=_PACKAGE_DIR, stderr=subprocess.DEVNULL
        )
    except (OSError, subprocess.CalledProcessError):
        return "unknown"
    return out.decode().strip()


def describe_network(network: "Network") -> Dict[str, object]:
    """Shape, activation types and loss of ``network``."""

    return {
        "inputs": network.inputs,
        "layers": network.layer_sizes,
        "types": [sorted({neuron.type for neuron in layer}) for layer in network.layers],
        "loss_function": network.loss_function,
        "parameters": network.parameter_count(),
    }


def write_manifest(
    path: str | Path,
    *,
    run_id: str,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    network: "Network",
    report: TrainingReport,
) -> str:
    """Write ``manifest.json``: what was trained, on what, and with which code."""

    from .. import __version__

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "run_id": run_id,
        "revision": source_revision(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "dataset": dict(dataset_provenance),
        "network": describe_network(network),
        "training": report.as_dict(),
        "environment": {
            "python": platform.python_version(),
            "numpy": np.__version__,
            "ffnet": __version__,
        },
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


__all__ = ["describe_network", "source_revision", "write_manifest"]
