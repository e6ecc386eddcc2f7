"""Fully-connected feedforward network with tanh activations.

    a(0)   = x
    a(l+1) = tanh([a(l), 1] W(l))        W(l) has shape (n_l + 1, n_{l+1})

The constant 1 appended to every incoming activation is the bias feature,
so the last row of each weight matrix holds that layer's bias weights and
no separate bias parameter exists.

Weights live in flat row-major buffers paired with (rows, cols) shape
records. The network is the single owner of this mutable state: forward
passes only read it, back_propagate() updates it in place. Calling infer()
while a training process is consuming the same network races on the
weight buffers and is not allowed; the network does no locking of its own.
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from nnplayground.ops import matrix_ops as ops
from nnplayground.training.training_process import TrainingProcess
from nnplayground.utils.errors import InvalidArchitecture, ShapeMismatch


def validate_layers(layers) -> Tuple[int, ...]:
    """Check a layer-size sequence and return it as a tuple of ints."""
    layers = tuple(layers)
    if len(layers) < 2:
        raise InvalidArchitecture(
            f"A network needs at least an input and an output layer, got {list(layers)}"
        )
    for idx, size in enumerate(layers):
        if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
            raise InvalidArchitecture(f"Layer {idx} size must be an integer, got {size!r}")
        if size <= 0:
            raise InvalidArchitecture(f"Layer {idx} size must be positive, got {size}")
    return tuple(int(size) for size in layers)


class NeuralNetwork:
    """Multilayer perceptron trained one example at a time."""

    def __init__(self, layers: Sequence[int], weight_range=(0.0, 1.0), seed: Optional[int] = None):
        """
        Args:
            layers: Neurons per layer, input layer first and output layer last.
                Bias units are not counted.
            weight_range: (low, high) of the uniform distribution every
                weight is drawn from; the default [0, 1) matches the
                playground this engine was built for
            seed: Seed for the weight initializer (None = nondeterministic)
        """
        self.layers = validate_layers(layers)

        low, high = weight_range
        if not (math.isfinite(low) and math.isfinite(high) and low < high):
            raise ValueError(f"weight_range must be finite with low < high, got {weight_range}")
        self.weight_range = (float(low), float(high))
        self.seed = seed

        rng = np.random.default_rng(seed)

        # One (inputs + bias, outputs) matrix per pair of adjacent layers
        self.weight_matrix_shapes: Tuple[Tuple[int, int], ...] = tuple(
            (n_in + 1, n_out) for n_in, n_out in zip(self.layers[:-1], self.layers[1:])
        )
        self.weight_matrices: List[np.ndarray] = [
            rng.uniform(low, high, size=rows * cols)
            for rows, cols in self.weight_matrix_shapes
        ]

    def __repr__(self):
        return f"NeuralNetwork(layers={list(self.layers)})"

    @property
    def input_width(self):
        return self.layers[0]

    @property
    def output_width(self):
        return self.layers[-1]

    @property
    def num_parameters(self):
        return sum(rows * cols for rows, cols in self.weight_matrix_shapes)

    # ----- weight access -----
    def copy_weights(self) -> List[np.ndarray]:
        """Return 2-D copies of every weight matrix, shape (inputs + 1, outputs)."""
        return [
            weights.reshape(shape).copy()
            for weights, shape in zip(self.weight_matrices, self.weight_matrix_shapes)
        ]

    def set_weights(self, matrices):
        """
        Replace every weight matrix.

        The architecture is fixed at construction, so each matrix must
        match the existing shape record exactly.
        """
        matrices = list(matrices)
        if len(matrices) != len(self.weight_matrix_shapes):
            raise ShapeMismatch(
                f"Expected {len(self.weight_matrix_shapes)} weight matrices, got {len(matrices)}"
            )

        new_weights = []
        for idx, (matrix, shape) in enumerate(zip(matrices, self.weight_matrix_shapes)):
            matrix = np.asarray(matrix, dtype=np.float64)
            if matrix.shape != shape and matrix.shape != (shape[0] * shape[1],):
                raise ShapeMismatch(
                    f"Weight matrix {idx} must have shape {shape}, got {matrix.shape}"
                )
            new_weights.append(matrix.ravel().copy())
        self.weight_matrices = new_weights

    # ----- forward pass -----
    def forward_propagate(self, inputs, num_examples):
        """
        Run the forward pass over a batch.

        Args:
            inputs: Flat row-major (num_examples, layers[0]) buffer
            num_examples: Number of examples in the batch

        Returns:
            outputs: Per-layer pre-activation buffers (index 0 is the input)
            activations: Per-layer tanh activations (index 0 is the input)
                Every buffer is flat row-major (num_examples, layer width).
        """
        inputs = np.asarray(inputs, dtype=np.float64).ravel()
        if inputs.size != num_examples * self.layers[0]:
            raise ShapeMismatch(
                f"Expected {num_examples} examples of width {self.layers[0]} "
                f"({num_examples * self.layers[0]} values), got {inputs.size} values"
            )

        outputs = [inputs]
        activations = [inputs]
        working_activation = inputs

        for weights, (input_neurons, output_neurons) in zip(self.weight_matrices, self.weight_matrix_shapes):
            with_bias = ops.append_bias_column(working_activation, num_examples, input_neurons - 1)
            output = ops.multiply(
                with_bias, (num_examples, input_neurons),
                weights, (input_neurons, output_neurons),
            )
            outputs.append(output)

            working_activation = ops.tanh(output)
            activations.append(working_activation)

        return outputs, activations

    def infer(self, inputs):
        """
        Predict outputs for a batch of inputs.

        Read-only with respect to the weights, so repeated calls with the
        same weights and inputs give identical results.

        Args:
            inputs: (num_examples, layers[0]) array-like; a single 1-D input
                vector is treated as a batch of one

        Returns:
            outputs: (num_examples, layers[-1]) array of output activations,
                in input order
        """
        try:
            batch = np.asarray(inputs, dtype=np.float64)
        except ValueError as e:
            raise ShapeMismatch(f"infer expects rows of width {self.input_width}: {e}") from e
        if batch.size == 0:
            return np.zeros((0, self.output_width))
        if batch.ndim == 1:
            batch = batch.reshape(1, -1)
        if batch.ndim != 2 or batch.shape[1] != self.input_width:
            raise ShapeMismatch(
                f"infer expects inputs of shape (n, {self.input_width}), got {batch.shape}"
            )

        num_examples = batch.shape[0]
        _, activations = self.forward_propagate(batch.ravel(), num_examples)
        return activations[-1].reshape(num_examples, self.output_width)

    # ----- backward pass -----
    def back_propagate(self, errors, activations, learning_rate):
        """
        Update every weight matrix from one example's output error.

        The output error signal is the raw ``ground_truth - hypothesis``
        difference; no tanh derivative is applied at the output layer.
        Each step is ``learning_rate * outer([a, 1], delta)`` added to the
        weights, which moves the hypothesis toward the ground truth.
        Gradients for the preceding layer are taken through the weights
        after they have been updated.

        Args:
            errors: ground_truth - hypothesis for one example, length layers[-1]
            activations: Per-layer activations of that example, as returned
                by forward_propagate(x, 1)
            learning_rate: Step size

        Returns:
            weight_steps: The step added to each weight matrix (flat, indexed
                like weight_matrices)
        """
        working_output_gradients = np.asarray(errors, dtype=np.float64).ravel()
        if working_output_gradients.size != self.output_width:
            raise ShapeMismatch(
                f"Expected {self.output_width} output errors, got {working_output_gradients.size}"
            )
        if len(activations) != len(self.layers):
            raise ShapeMismatch(
                f"Expected activations for {len(self.layers)} layers, got {len(activations)}"
            )

        # Check every layer before touching any weights
        activations = [np.asarray(a, dtype=np.float64).ravel() for a in activations]
        for idx, (layer_activations, width) in enumerate(zip(activations, self.layers)):
            if layer_activations.size != width:
                raise ShapeMismatch(
                    f"Layer {idx} activation must have {width} values, got {layer_activations.size}"
                )

        weight_steps = [None] * len(self.weight_matrices)

        for idx in reversed(range(len(self.weight_matrices))):
            input_neurons, output_neurons = self.weight_matrix_shapes[idx]
            layer_activations = activations[idx]

            # Outer product of the incoming activation (plus bias) and the output gradient
            activations_with_bias = ops.append_bias_column(layer_activations, 1, input_neurons - 1)
            weight_gradients = ops.multiply(
                activations_with_bias, (input_neurons, 1),
                working_output_gradients, (1, output_neurons),
            )
            weight_steps[idx] = ops.scale(weight_gradients, learning_rate)
            self.weight_matrices[idx] = ops.add(self.weight_matrices[idx], weight_steps[idx])

            # The input layer has no incoming weights
            if idx == 0:
                break

            # Row-vector gradient times W^T gives gradients for [a, 1]
            weights_transpose = ops.transpose(self.weight_matrices[idx], input_neurons, output_neurons)
            activation_gradients = ops.multiply(
                working_output_gradients, (1, output_neurons),
                weights_transpose, (output_neurons, input_neurons),
            )
            activation_gradients_without_bias = activation_gradients[:input_neurons - 1]

            working_output_gradients = ops.elementwise_multiply(
                activation_gradients_without_bias,
                ops.tanh_derivative_from_output(layer_activations),
            )

        return weight_steps

    # ----- training and evaluation -----
    def train(self, dataset, epochs, learning_rate) -> TrainingProcess:
        """
        Start a training process over this network's weights.

        Hyperparameters are validated immediately; no epoch runs until the
        returned sequence is consumed. Only one training process may consume
        a network at a time.

        Returns:
            process: Lazy, single-pass iterator of DiagnosticSnapshot, one
                per completed epoch
        """
        return TrainingProcess(self, dataset, epochs, learning_rate)

    @staticmethod
    def cost(errors):
        """Half mean squared error of a vector of errors."""
        errors = np.asarray(errors, dtype=np.float64).ravel()
        if errors.size == 0:
            return 0.0
        return ops.dot(errors, errors) / (errors.size * 2)

    def evaluate(self, dataset):
        """
        Returns:
            cost: Half mean squared error over the dataset
            mean_absolute_error: Mean |ground_truth - prediction|
        """
        if dataset.input_width != self.input_width or dataset.output_width != self.output_width:
            raise ShapeMismatch(
                f"Dataset shape ({dataset.input_width} -> {dataset.output_width}) does not match "
                f"network ({self.input_width} -> {self.output_width})"
            )
        predictions = self.infer(dataset.inputs)
        errors = ops.subtract(dataset.ground_truths, predictions)
        return self.cost(errors), float(np.mean(np.abs(errors)))
