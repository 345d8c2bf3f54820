"""Exception hierarchy for ffnet."""

from __future__ import annotations


class FFNetError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(FFNetError, ValueError):
    """A network configuration could not be turned into a network."""


class DimensionMismatchError(FFNetError, ValueError):
    """An input or target vector does not match the network's shape."""


class NumericInstabilityError(FFNetError, ArithmeticError):
    """A total, activation or update produced a non-finite value.

    Usually a sign that the weights have diverged, e.g. from a learning rate
    that is too large. Training should be aborted or restarted.
    """


class UnrecognizedTagError(FFNetError, ValueError):
    """An activation type or loss function tag is not registered."""

    def __init__(self, kind: str, tag: object, available) -> None:
        self.kind = kind
        self.tag = tag
        self.available = sorted(available)
        choices = ", ".join(self.available)
        super().__init__(f"Unknown {kind} {tag!r}. Available: {choices}")


__all__ = [
    "FFNetError",
    "ConfigurationError",
    "DimensionMismatchError",
    "NumericInstabilityError",
    "UnrecognizedTagError",
]
