"""Training-example helpers and the built-in truth-table datasets."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

import numpy as np

from ..core.errors import ConfigurationError
from ..core.types import Example
from .registry import DatasetSpec, register_dataset

TRUTH_TABLES = {
    "xor": lambda a, b: a ^ b,
    "and": lambda a, b: a & b,
    "or": lambda a, b: a | b,
}


def one_hot(label: int, classes: int) -> np.ndarray:
    """Return a ``classes``-wide target vector with a 1 at ``label``."""

    if not 0 <= int(label) < classes:
        raise ValueError(f"Label {label} outside of [0, {classes})")
    out = np.zeros(classes, dtype=np.float64)
    out[int(label)] = 1.0
    return out


def as_example(raw: Example | Mapping[str, object], classes: int | None = None) -> Example:
    """Coerce ``{"inputs": ..., "outputs": ...}`` (or ``"label"``) into an :class:`Example`."""

    if isinstance(raw, Example):
        return raw
    if not isinstance(raw, Mapping) or "inputs" not in raw:
        raise ConfigurationError(f"Training example must be a mapping with 'inputs': {raw!r}")
    if "outputs" in raw:
        outputs = raw["outputs"]
    elif "label" in raw and classes is not None:
        outputs = one_hot(int(raw["label"]), classes)  # type: ignore[arg-type]
    else:
        raise ConfigurationError("Training example needs 'outputs' (or 'label' with classes)")
    return Example(inputs=raw["inputs"], outputs=outputs)


def as_examples(
    raw: Iterable[Example | Mapping[str, object]], classes: int | None = None
) -> List[Example]:
    examples = [as_example(item, classes) for item in raw]
    if not examples:
        raise ValueError("At least one training example is required")
    return examples


def random_sample(
    examples: Sequence[Example], size: int, rng: np.random.Generator
) -> List[Example]:
    """Draw ``size`` examples with replacement."""

    indices = rng.integers(0, len(examples), size=size)
    return [examples[int(idx)] for idx in indices]


def truth_table(name: str) -> List[Example]:
    try:
        gate = TRUTH_TABLES[name]
    except KeyError as exc:
        raise KeyError(f"Unknown truth table: {name}") from exc
    return [
        Example(inputs=[a, b], outputs=[gate(a, b)]) for a in (0, 1) for b in (0, 1)
    ]


def _read_structured(path: Path) -> object:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML example files") from exc
        return yaml.safe_load(text)
    if suffix == ".json":
        return json.loads(text or "[]")
    raise ValueError(f"Unsupported example file type: {path.suffix}")


def load_examples(path: str | Path, classes: int | None = None) -> List[Example]:
    """Read a JSON/YAML list of examples, or a mapping with an ``examples`` list."""

    data = _read_structured(Path(path))
    if isinstance(data, Mapping):
        classes = classes if classes is not None else data.get("classes")  # type: ignore[assignment]
        data = data.get("examples", [])
    if not isinstance(data, list):
        raise ConfigurationError(f"{path}: expected a list of training examples")
    return as_examples(data, classes)


def _truth_table_factory(name: str):
    def factory(**_: object) -> DatasetSpec:
        return DatasetSpec(
            name=name,
            examples=truth_table(name),
            provenance={"type": "truth_table", "gate": name},
        )

    return factory


def _file_factory(path: str | None = None, classes: int | None = None, **_: object) -> DatasetSpec:
    if path is None:
        raise ConfigurationError("The 'file' dataset requires a 'path' option")
    return DatasetSpec(
        name="file",
        examples=load_examples(path, classes),
        provenance={"type": "file", "path": str(path), "classes": classes},
    )


for _gate in TRUTH_TABLES:
    register_dataset(_gate, _truth_table_factory(_gate))
register_dataset("file", _file_factory)


__all__ = [
    "as_example",
    "as_examples",
    "load_examples",
    "one_hot",
    "random_sample",
    "truth_table",
]
