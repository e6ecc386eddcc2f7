"""Epoch-stepped training that yields a diagnostic snapshot per epoch.

Each epoch:
  1. One forward pass over the whole dataset as a single batch. Its
     activations only feed the snapshot (average activation per neuron and
     the batch cost); they are taken before any of the epoch's updates.
  2. For every example in dataset order: forward pass, then one
     back_propagate() step from that example's error (stochastic gradient
     descent, weights updated after every example).
  3. Snapshot of the updated weights plus the averages from step 1.

The process never runs ahead of its consumer: an epoch runs inside
__next__(), so stopping iteration between snapshots leaves the network
fully consistent after the last completed epoch.
"""

import math
import numbers
from dataclasses import dataclass, field
from typing import List

import numpy as np

from nnplayground.ops import matrix_ops as ops
from nnplayground.utils.errors import InvalidHyperparameters, ShapeMismatch


@dataclass
class DiagnosticSnapshot:
    """
    Per-epoch report consumed by visualizers and loggers.

    Unpacks as ``(epoch_index, weight_matrices, average_activations)``.
    """
    epoch_index: int
    weight_matrices: List[np.ndarray]       # copies, each (inputs + 1, outputs)
    average_activations: List[np.ndarray]   # one per non-input layer, no bias units
    cost: float = field(default=float('nan'))  # half MSE of the epoch's batch pass
    mean_absolute_error: float = field(default=float('nan'))  # same pass

    def __iter__(self):
        yield self.epoch_index
        yield self.weight_matrices
        yield self.average_activations


def validate_hyperparameters(epochs, learning_rate):
    if isinstance(epochs, bool) or not isinstance(epochs, numbers.Integral):
        raise InvalidHyperparameters(f"epochs must be an integer, got {epochs!r}")
    if epochs < 0:
        raise InvalidHyperparameters(f"epochs must be >= 0, got {epochs}")

    if isinstance(learning_rate, bool) or not isinstance(learning_rate, numbers.Real):
        raise InvalidHyperparameters(f"learning_rate must be a real number, got {learning_rate!r}")
    if not math.isfinite(learning_rate):
        raise InvalidHyperparameters(f"learning_rate must be finite, got {learning_rate}")

    return int(epochs), float(learning_rate)


class TrainingProcess:
    """Lazy, finite, single-pass iterator of DiagnosticSnapshot."""

    def __init__(self, network, dataset, epochs, learning_rate):
        """
        Args:
            network: NeuralNetwork whose weights are updated in place
            dataset: Dataset whose widths match the network's input/output layers
            epochs: Number of epochs (snapshots) to run, >= 0
            learning_rate: Finite step size
        """
        self.epochs, self.learning_rate = validate_hyperparameters(epochs, learning_rate)

        if dataset.input_width != network.input_width:
            raise ShapeMismatch(
                f"Dataset input width {dataset.input_width} != network input width {network.input_width}"
            )
        if dataset.output_width != network.output_width:
            raise ShapeMismatch(
                f"Dataset output width {dataset.output_width} != network output width {network.output_width}"
            )

        self.network = network
        self.num_examples = len(dataset)
        self.inputs, self.ground_truths = dataset.as_batch()
        self.inputs_flat = self.inputs.ravel()
        self.ground_truths_flat = self.ground_truths.ravel()

        # Number of epochs run so far, and the index of the next snapshot
        self.completed_epochs = 0

    def __iter__(self):
        return self

    def __next__(self) -> DiagnosticSnapshot:
        if self.completed_epochs >= self.epochs:
            raise StopIteration

        snapshot = self._run_epoch(self.completed_epochs)
        self.completed_epochs += 1
        return snapshot

    def __len__(self):
        """Snapshots still to come."""
        return self.epochs - self.completed_epochs

    @property
    def finished(self):
        return self.completed_epochs >= self.epochs

    def _run_epoch(self, epoch_index):
        network = self.network

        _, batch_activations = network.forward_propagate(self.inputs_flat, self.num_examples)
        batch_errors = ops.subtract(self.ground_truths_flat, batch_activations[-1])
        batch_cost = network.cost(batch_errors)
        batch_mean_absolute_error = float(np.mean(np.abs(batch_errors)))

        for x, ground_truth in zip(self.inputs, self.ground_truths):
            _, example_activations = network.forward_propagate(x, 1)
            errors = ops.subtract(ground_truth, example_activations[-1])
            network.back_propagate(errors, example_activations, self.learning_rate)

        average_activations = [
            activation.reshape(self.num_examples, width).mean(axis=0)
            for activation, width in zip(batch_activations[1:], network.layers[1:])
        ]

        return DiagnosticSnapshot(
            epoch_index=epoch_index,
            weight_matrices=network.copy_weights(),
            average_activations=average_activations,
            cost=batch_cost,
            mean_absolute_error=batch_mean_absolute_error,
        )
