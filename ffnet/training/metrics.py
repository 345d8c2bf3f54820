"""Evaluation metrics for trained networks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence

import numpy as np

from ..core.network import Network
from ..core.types import Example
from ..data.examples import as_examples


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


@dataclass(frozen=True)
class AccuracyResult:
    correct: int
    incorrect: int

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


def _predict(network: Network, examples: Sequence[Example]) -> np.ndarray:
    return np.asarray([network.run(example.inputs) for example in examples])


def _targets(examples: Sequence[Example]) -> np.ndarray:
    return np.asarray([example.outputs for example in examples])


def argmax_accuracy(
    network: Network, examples: Iterable[Example | Mapping[str, object]]
) -> AccuracyResult:
    """Count examples whose strongest output matches the strongest target.

    Single-output networks are thresholded at 0.5 instead.
    """

    data = as_examples(examples)
    preds = _predict(network, data)
    targs = _targets(data)
    if preds.shape[1] == 1:
        pred_idx = (preds[:, 0] >= 0.5).astype(int)
        targ_idx = (targs[:, 0] >= 0.5).astype(int)
    else:
        pred_idx = np.argmax(preds, axis=1)
        targ_idx = np.argmax(targs, axis=1)
    correct = int(np.sum(pred_idx == targ_idx))
    return AccuracyResult(correct=correct, incorrect=len(data) - correct)


def compute_metric(name: str, network: Network, examples: Sequence[Example]) -> MetricResult:
    key = name.lower()
    if key == "loss":
        value = network.get_composite_error(examples)
    elif key == "accuracy":
        value = argmax_accuracy(network, examples).accuracy
    elif key == "mae":
        value = float(np.mean(np.abs(_predict(network, examples) - _targets(examples))))
    elif key == "rmse":
        value = float(np.sqrt(np.mean((_predict(network, examples) - _targets(examples)) ** 2)))
    else:
        raise KeyError(f"Unknown metric: {name}")
    return MetricResult(name=key, value=float(value))


def compute_metrics(
    names: Iterable[str],
    network: Network,
    examples: Iterable[Example | Mapping[str, object]],
) -> Dict[str, float]:
    data: List[Example] = as_examples(examples)
    results: Dict[str, float] = {}
    for name in names:
        metric = compute_metric(name, network, data)
        results[metric.name] = metric.value
    return results


__all__ = ["AccuracyResult", "MetricResult", "argmax_accuracy", "compute_metric", "compute_metrics"]
