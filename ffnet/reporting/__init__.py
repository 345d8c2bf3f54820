"""Reporting utilities for ffnet training runs."""

from .artifacts import describe_network, write_manifest
from .metrics import CsvSink, JsonlSink, MetricsCapture
from .summary import write_summary

__all__ = [
    "CsvSink",
    "JsonlSink",
    "MetricsCapture",
    "describe_network",
    "write_manifest",
    "write_summary",
]
