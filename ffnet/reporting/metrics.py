"""Per-cycle metrics sinks for training callbacks."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import List, Mapping, Tuple

from .artifacts import source_revision


def _numeric(metrics: Mapping[str, object]) -> dict:
    return {k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))}


class JsonlSink:
    """Append-only JSONL writer; one record per training cycle."""

    def __init__(
        self,
        path: str | Path,
        *,
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.seed = seed
        self.sha = sha or source_revision()

    def on_epoch(self, cycle: int, metrics: Mapping[str, float]) -> None:
        record = {"cycle": int(cycle), "seed": self.seed, "sha": self.sha}
        record.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_epoch


class CsvSink:
    """Write per-cycle metrics to CSV with a stable, sorted header."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")

    def on_epoch(self, cycle: int, metrics: Mapping[str, float]) -> None:
        row = {"cycle": int(cycle)}
        row.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=sorted(row.keys()))
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_epoch


class MetricsCapture:
    """Keep the metric history in memory."""

    def __init__(self) -> None:
        self.history: List[Tuple[int, Mapping[str, float]]] = []
        self.last: Mapping[str, float] = {}

    def on_epoch(self, cycle: int, metrics: Mapping[str, float]) -> None:
        payload = _numeric(metrics)
        self.history.append((int(cycle), payload))
        self.last = payload


__all__ = ["CsvSink", "JsonlSink", "MetricsCapture"]
