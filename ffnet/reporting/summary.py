"""Deterministic training-run summaries."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

import numpy as np

from ..core.types import TrainingReport


def compute_auc(points: Sequence[float]) -> float:
    """Trapezoidal area under ``points`` along an implicit unit-step axis."""

    if len(points) < 2:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    return float(np.sum((y[1:] + y[:-1]) * 0.5))


def _read_records(path: Path) -> List[Mapping[str, object]]:
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


def _series(records: Iterable[Mapping[str, object]]) -> Mapping[str, List[float]]:
    series: dict[str, List[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in {"cycle", "seed"} or isinstance(value, bool):
                continue
            if isinstance(value, (int, float)):
                series.setdefault(key, []).append(float(value))
    return series


def write_summary(
    metrics_jsonl: str | Path,
    out_summary_json: str | Path,
    *,
    report: TrainingReport,
    tail: int = 32,
) -> str:
    """Summarise a run's per-cycle metrics and its pre/post error.

    Wall-clock time is left out so identical runs give identical files.
    """

    records = _read_records(Path(metrics_jsonl))
    tail_window = min(tail, len(records))
    metrics = {}
    for name, values in _series(records).items():
        arr = np.asarray(values, dtype=np.float64)
        metrics[name] = {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "last": float(arr[-1]),
            "tail_auc": compute_auc(arr[-tail_window:].tolist()) if tail_window else 0.0,
        }

    summary = {
        "version": 1,
        "cycles": report.cycles,
        "pre": report.pre,
        "post": report.post,
        "improvement": report.pre - report.post,
        "records": len(records),
        "tail_window": tail_window,
        "metrics": metrics,
    }
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["compute_auc", "write_summary"]
