"""Learning-rate schedules."""

from __future__ import annotations

DEFAULT_PEAK_RATE = 0.02


def interpolate(
    parameter: float,
    min_in: float,
    max_in: float,
    min_out: float = 0.0,
    max_out: float = 1.0,
) -> float:
    """Map ``parameter`` from ``[min_in, max_in]`` onto ``[min_out, max_out]``, clamped."""

    clamped = min(max(min_in, parameter), max_in)
    return (clamped - min_in) / (max_in - min_in) * (max_out - min_out) + min_out


def triangular_rate(progress: float, peak: float = DEFAULT_PEAK_RATE) -> float:
    """Rise linearly from 0 to ``peak`` over the first half, then fall back to 0.

    ``progress`` is ``cycle / cycles``; since it never reaches 1 the rate
    never reaches 0 on the way down.
    """

    if progress < 0.5:
        return interpolate(progress, 0.0, 0.5, 0.0, peak)
    return interpolate(progress, 0.5, 1.0, peak, 0.0)


__all__ = ["DEFAULT_PEAK_RATE", "interpolate", "triangular_rate"]
