"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, MutableMapping

from ..core.types import Example


@dataclass(frozen=True)
class DatasetSpec:
    """A named, fully materialised list of training examples.

    Attributes
    ----------
    name:
        Registry identifier the dataset was created from.
    examples:
        The training examples, in a stable order.
    provenance:
        Free-form metadata recorded in run manifests so a run can be
        reproduced.
    """

    name: str
    examples: List[Example]
    provenance: Dict[str, Any] = field(default_factory=dict)

    @property
    def input_width(self) -> int:
        return int(self.examples[0].inputs.size)

    @property
    def output_width(self) -> int:
        return int(self.examples[0].outputs.size)

    def __len__(self) -> int:
        return len(self.examples)


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("xor")
        def make_xor(**kwargs):
            ...

    or directly::

        register_dataset("xor", make_xor)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(name: str, /, **options: Any) -> DatasetSpec:
    """Return the :class:`DatasetSpec` for ``name``."""

    if name not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {name}")
    spec = _REGISTRY[name](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if not spec.examples:
        raise ValueError(f"Dataset {spec.name!r} has no examples")
    widths = {(ex.inputs.size, ex.outputs.size) for ex in spec.examples}
    if len(widths) != 1:
        raise ValueError(f"Dataset {spec.name!r} mixes example shapes: {sorted(widths)}")


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
