"""Training data helpers for ffnet."""

from .examples import as_example, as_examples, load_examples, one_hot, random_sample, truth_table
from .registry import DatasetSpec, available_datasets, get_dataset, register_dataset

__all__ = [
    "DatasetSpec",
    "as_example",
    "as_examples",
    "available_datasets",
    "get_dataset",
    "load_examples",
    "one_hot",
    "random_sample",
    "register_dataset",
    "truth_table",
]
