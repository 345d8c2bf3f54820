"""Gradient-descent training loops for ffnet networks."""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Mapping, Sequence

import numpy as np

from ..core.errors import NumericInstabilityError
from ..core.network import Network
from ..core.types import Example, GradientRecord, TrainingReport
from ..data.examples import as_examples
from .schedules import DEFAULT_PEAK_RATE, triangular_rate

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 500


class Trainer:
    """Train a :class:`~ffnet.core.network.Network` in place.

    The trainer is the only writer of the network's biases and weights. Each
    update computes every new parameter first and assigns them in one pass, so
    a failed update leaves the network untouched.
    """

    def __init__(
        self,
        network: Network,
        callbacks: Sequence[object] | None = None,
        *,
        seed: int | None = None,
        progress_interval: float = 10.0,
    ) -> None:
        self.network = network
        self.callbacks = list(callbacks or [])
        self.progress_interval = progress_interval
        self.reset(seed)

    def reset(self, seed: int | None) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    # ------------------------------------------------------------------
    # Building blocks

    def composite_error(
        self, examples: Sequence[Example], sample_size: int | None = None
    ) -> float:
        return self.network.get_composite_error(examples, sample_size, rng=self._rng)

    def gradients_mean(
        self,
        examples: Sequence[Example],
        batch_size: int | None = None,
        offset: int = 0,
    ) -> GradientRecord:
        """Average the per-example gradients of a contiguous batch.

        The batch starts at ``offset`` and wraps around the end of
        ``examples``. The running sum starts from zeros.
        """

        if len(examples) == 0:
            raise ValueError("Cannot compute a gradient from an empty example set")
        size = len(examples) if batch_size is None else int(batch_size)
        if size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        total = GradientRecord.zeros(self.network.weight_shape())
        for step in range(size):
            example = examples[(offset + step) % len(examples)]
            total.add_(self.network.get_gradient(example))
        return total.scale_(1.0 / size)

    def update(self, gradient: GradientRecord, rate: float) -> None:
        """Apply ``param -= gradient * rate`` to every neuron as one step."""

        staged: List[tuple] = []
        for i, layer in enumerate(self.network.layers):
            for j, neuron in enumerate(layer):
                grad = gradient[i][j]
                bias = neuron.bias - grad.bias * rate
                weights = neuron.weights - grad.weights * rate
                if not (np.isfinite(bias) and np.all(np.isfinite(weights))):
                    raise NumericInstabilityError(
                        f"Update of layer {i}, neuron {j} diverged (rate={rate})"
                    )
                staged.append((neuron, bias, weights))
        for neuron, bias, weights in staged:
            neuron.bias = float(bias)
            neuron.weights = weights

    # ------------------------------------------------------------------
    # Training loops

    def train(
        self,
        examples: Iterable[Example | Mapping[str, object]],
        *,
        max_cycles: int = 10_000,
        min_improvement: float = 1e-10,
        target_error: float = 1e-3,
    ) -> TrainingReport:
        """Full-batch descent with an error-proportional step size.

        Each cycle steps by ``mean_gradient * error / 2``. Training stops once
        the error falls below ``target_error``, once a cycle improves it by
        no more than ``min_improvement``, or after ``max_cycles`` cycles. A cycle
        that makes the error worse is rolled back before stopping.
        """

        data = as_examples(examples)
        start = time.perf_counter()
        last_post = start

        logger.info("Evaluating initial performance on %d examples", len(data))
        pre = self.composite_error(data)
        prior = pre
        history: List[float] = []
        cycle = 0

        while cycle < max_cycles:
            gradient = self.gradients_mean(data)
            snapshot = self.network.state_dict()
            step = prior / 2.0
            self.update(gradient, step)
            post = self.composite_error(data)
            cycle += 1

            if post > prior:
                self.network.load_state_dict(snapshot)
                logger.info(
                    "Cycle %d raised the error from %.6g to %.6g; update reverted",
                    cycle,
                    prior,
                    post,
                )
                break

            history.append(post)
            self._emit(cycle, {"loss": post, "rate": step})
            improvement = prior - post
            prior = post

            now = time.perf_counter()
            if now - last_post > self.progress_interval:
                last_post = now
                logger.info("%d seconds, cycle %d, error %.6g", int(now - start), cycle, post)

            if post < target_error or improvement <= min_improvement:
                break

        elapsed = time.perf_counter() - start
        post = self.composite_error(data)
        logger.info("Training completed in %d cycles after %.3f seconds", cycle, elapsed)
        logger.info("Error: pre=%.6g post=%.6g", pre, post)
        return TrainingReport(cycles=cycle, elapsed=elapsed, pre=pre, post=post, history=history)

    def fixed_cycle_train(
        self,
        examples: Iterable[Example | Mapping[str, object]],
        cycles: int,
        batch_size: int = 10,
        *,
        sample_size: int | None = DEFAULT_SAMPLE_SIZE,
        peak_rate: float = DEFAULT_PEAK_RATE,
    ) -> TrainingReport:
        """Mini-batch descent for exactly ``cycles`` cycles.

        Batches are contiguous and sweep the data in order, wrapping around.
        The learning rate follows :func:`~ffnet.training.schedules.triangular_rate`.
        Pre/post errors are estimated on a random sample of ``sample_size``.
        """

        data = as_examples(examples)
        if cycles < 0:
            raise ValueError(f"cycles must be non-negative, got {cycles}")
        start = time.perf_counter()
        last_post = start

        logger.info("Estimating initial performance on random sample...")
        pre = self.composite_error(data, sample_size)
        logger.info("Initial error: %.6g", pre)

        history: List[float] = []
        offset = 0
        for cycle in range(cycles):
            batch = [data[(offset + k) % len(data)] for k in range(batch_size)]
            gradient = self.gradients_mean(batch)
            offset = (offset + batch_size) % len(data)

            rate = triangular_rate(cycle / cycles, peak_rate)
            loss = self.network.get_composite_error(batch)
            self.update(gradient, rate)
            history.append(loss)
            self._emit(cycle + 1, {"loss": loss, "rate": rate})

            now = time.perf_counter()
            if now - last_post > self.progress_interval:
                last_post = now
                logger.info(
                    "Elapsed time: %d seconds, train cycles completed: %d",
                    int(now - start),
                    cycle + 1,
                )

        post = self.composite_error(data, sample_size)
        elapsed = time.perf_counter() - start
        logger.info(
            "Training completed in %d cycles, after %.3f seconds (pre=%.6g, post=%.6g)",
            cycles,
            elapsed,
            pre,
            post,
        )
        return TrainingReport(cycles=cycles, elapsed=elapsed, pre=pre, post=post, history=history)

    # ------------------------------------------------------------------
    # Internal helpers

    def _emit(self, cycle: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(cycle, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(cycle, metrics)


__all__ = ["DEFAULT_SAMPLE_SIZE", "Trainer"]
