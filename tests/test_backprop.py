#!/usr/bin/env python
"""
Test per-example backpropagation.

This script tests:
- The exact weight step for a hand-computed example
- Propagation into hidden layers through the updated weights
- Networks without hidden layers
- Agreement with PyTorch autograd, and the known deviation from the
  textbook gradient of squared error through a tanh output unit

Usage:
    python tests/test_backprop.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import torch

from nnplayground.data.dataset import Dataset
from nnplayground.models.network import NeuralNetwork
from nnplayground.utils.errors import ShapeMismatch


def test_output_layer_step():
    """Test layers [2, 2, 1], one example, one epoch: step = gradient * learning rate."""
    print("\n" + "=" * 60)
    print("Test 1: Output Layer Step")
    print("=" * 60)

    net = NeuralNetwork([2, 2, 1], seed=0)
    w0, w1 = net.copy_weights()

    x = np.array([1.0, -1.0])
    y = np.array([0.5])
    learning_rate = 0.01

    # Hand computation from the initial weights
    hidden = np.tanh(np.append(x, 1.0) @ w0)
    hypothesis = np.tanh(np.append(hidden, 1.0) @ w1)
    error = y - hypothesis
    gradient = np.outer(np.append(hidden, 1.0), error)
    expected_w1 = w1 + gradient * learning_rate

    snapshots = list(net.train(Dataset([x], [y]), epochs=1, learning_rate=learning_rate))
    assert len(snapshots) == 1

    new_w1 = net.copy_weights()[1]
    np.testing.assert_allclose(new_w1 - w1, gradient * learning_rate, rtol=1e-12, atol=1e-15)
    np.testing.assert_allclose(new_w1, expected_w1, rtol=1e-12)
    np.testing.assert_array_equal(snapshots[0].weight_matrices[1], new_w1)
    print(f"✓ Output matrix moved by exactly lr * outer([h, 1], error)")
    print(f"  error = {error[0]:.6f}, step = {(gradient * learning_rate).ravel()}")

    print("\n✅ Output layer step test passed!")


def test_hidden_layer_step():
    """Test the hidden-layer update, propagated through the updated output weights."""
    print("\n" + "=" * 60)
    print("Test 2: Hidden Layer Step")
    print("=" * 60)

    net = NeuralNetwork([2, 2, 1], seed=0)
    w0, w1 = net.copy_weights()

    x = np.array([1.0, -1.0])
    y = np.array([0.5])
    learning_rate = 0.01

    hidden = np.tanh(np.append(x, 1.0) @ w0)
    error = y - np.tanh(np.append(hidden, 1.0) @ w1)
    updated_w1 = w1 + learning_rate * np.outer(np.append(hidden, 1.0), error)

    # Drop the bias row, then scale by tanh'(hidden) = 1 - hidden^2
    hidden_gradient = (updated_w1[:-1] @ error) * (1.0 - hidden ** 2)
    expected_w0 = w0 + learning_rate * np.outer(np.append(x, 1.0), hidden_gradient)

    _, activations = net.forward_propagate(x, 1)
    steps = net.back_propagate(error, activations, learning_rate)

    assert len(steps) == 2
    assert steps[0].shape == (6,) and steps[1].shape == (3,)
    np.testing.assert_allclose(net.copy_weights()[0], expected_w0, rtol=1e-12)
    np.testing.assert_allclose(net.copy_weights()[1], updated_w1, rtol=1e-12)
    print("✓ Hidden matrix moved by lr * outer([x, 1], (W1'[:-1] @ e) * (1 - h^2))")

    print("\n✅ Hidden layer step test passed!")


def test_no_hidden_layers():
    """Test a network with a single weight matrix."""
    print("\n" + "=" * 60)
    print("Test 3: No Hidden Layers")
    print("=" * 60)

    net = NeuralNetwork([3, 2], seed=4)
    (w,) = net.copy_weights()

    x = np.array([0.2, -0.4, 0.6])
    y = np.array([0.1, -0.1])
    error = y - np.tanh(np.append(x, 1.0) @ w)

    _, activations = net.forward_propagate(x, 1)
    steps = net.back_propagate(error, activations, 0.05)

    assert len(steps) == 1
    np.testing.assert_allclose(net.copy_weights()[0], w + 0.05 * np.outer(np.append(x, 1.0), error), rtol=1e-12)
    print("✓ Single update, no backward propagation")

    print("\n✅ No hidden layers test passed!")


def test_update_reduces_error():
    """A single small step moves the hypothesis toward the ground truth."""
    print("\n" + "=" * 60)
    print("Test 4: Step Direction")
    print("=" * 60)

    for seed in range(5):
        net = NeuralNetwork([2, 3, 1], weight_range=(-1.0, 1.0), seed=seed)
        x = np.array([0.3, -0.7])
        y = np.array([-0.4])

        before = abs(y - net.infer(x)[0])[0]
        _, activations = net.forward_propagate(x, 1)
        net.back_propagate(y - activations[-1], activations, 1e-3)
        after = abs(y - net.infer(x)[0])[0]

        assert after < before, f"seed {seed}: error {before:.6f} -> {after:.6f}"
    print("✓ |ground_truth - hypothesis| shrinks for every seed")

    print("\n✅ Step direction test passed!")


def test_back_propagate_shape_checks():
    """Test that mis-shaped errors or activations are rejected."""
    print("\n" + "=" * 60)
    print("Test 5: Shape Checks")
    print("=" * 60)

    net = NeuralNetwork([2, 2, 1], seed=0)
    _, activations = net.forward_propagate([0.1, 0.2], 1)

    bad_calls = [
        ([0.1, 0.2], activations),          # two errors for one output
        ([0.1], activations[:2]),           # missing a layer
        ([0.1], [np.zeros(3)] + activations[1:]),  # wrong input width
    ]
    for errors, acts in bad_calls:
        try:
            net.back_propagate(errors, acts, 0.1)
        except ShapeMismatch as e:
            print(f"✓ {e}")
            continue
        raise AssertionError("back_propagate should raise ShapeMismatch")

    print("\n✅ Shape check tests passed!")


def _torch_forward(x, weights):
    """Forward pass in torch returning (hidden activations..., output pre-activation, output)."""
    activation = torch.tensor(x, dtype=torch.float64)
    one = torch.ones(1, dtype=torch.float64)
    output = None
    for w in weights:
        output = torch.cat([activation, one]) @ w
        activation = torch.tanh(output)
    return output, activation


def test_matches_autograd_surrogate():
    """
    Compare with autograd on the surrogate loss -(e . z_out), e held constant.

    Its gradient is exactly the engine's update direction: the raw error
    applied at the output pre-activation. Hidden layers are compared with a
    tiny learning rate so that propagating through the updated weights makes
    no measurable difference.
    """
    print("\n" + "=" * 60)
    print("Test 6: Autograd Cross-Check")
    print("=" * 60)

    net = NeuralNetwork([3, 4, 3, 2], weight_range=(-1.0, 1.0), seed=21)
    x = np.array([0.5, -0.25, 0.75])
    y = np.array([0.3, -0.6])
    learning_rate = 1e-8

    weights = [torch.tensor(w, dtype=torch.float64, requires_grad=True) for w in net.copy_weights()]
    output, hypothesis = _torch_forward(x, weights)
    error = torch.tensor(y, dtype=torch.float64) - hypothesis.detach()
    surrogate = -(error * output).sum()
    surrogate.backward()

    _, activations = net.forward_propagate(x, 1)
    steps = net.back_propagate(y - activations[-1], activations, learning_rate)

    for idx, (step, w) in enumerate(zip(steps, weights)):
        expected = -w.grad.numpy().ravel()
        np.testing.assert_allclose(step / learning_rate, expected, rtol=1e-5, atol=1e-6)
        print(f"✓ Matrix {idx}: step / lr == -d(surrogate)/dW")

    print("\n✅ Autograd cross-check passed!")


def test_known_deviation_from_textbook_gradient():
    """
    The output error is not scaled by tanh'(z_out).

    The textbook gradient of 0.5 * (y - tanh(z))^2 carries an extra factor
    1 - tanh(z)^2 at the output layer. The engine deliberately leaves it out,
    so its output-layer step equals the textbook step divided by that factor.
    """
    print("\n" + "=" * 60)
    print("Test 7: Known Deviation From Textbook Gradient")
    print("=" * 60)

    net = NeuralNetwork([2, 3, 1], seed=9)
    net.set_weights([
        np.array([[0.5, -0.3, 0.8],
                  [0.2, 0.7, -0.4],
                  [0.1, 0.1, 0.1]]),
        np.array([[0.9], [0.6], [-0.7], [1.0]]),
    ])
    x = np.array([0.9, -0.3])
    y = np.array([0.2])
    learning_rate = 0.01

    weights = [torch.tensor(w, dtype=torch.float64, requires_grad=True) for w in net.copy_weights()]
    _, hypothesis = _torch_forward(x, weights)
    loss = 0.5 * ((torch.tensor(y, dtype=torch.float64) - hypothesis) ** 2).sum()
    loss.backward()

    textbook_step = -learning_rate * weights[-1].grad.numpy().ravel()
    output_derivative = 1.0 - hypothesis.detach().numpy() ** 2

    _, activations = net.forward_propagate(x, 1)
    steps = net.back_propagate(y - activations[-1], activations, learning_rate)

    np.testing.assert_allclose(steps[-1], textbook_step / output_derivative[0], rtol=1e-10)
    assert not np.allclose(steps[-1], textbook_step), "Steps should differ by the tanh' factor"
    print(f"✓ engine step = textbook step / (1 - a_out^2), factor = {output_derivative[0]:.4f}")

    print("\n✅ Known deviation documented!")


def run_all_tests():
    print("\n" + "=" * 70)
    print(" " * 18 + "BACKPROPAGATION TEST SUITE")
    print("=" * 70)

    test_output_layer_step()
    test_hidden_layer_step()
    test_no_hidden_layers()
    test_update_reduces_error()
    test_back_propagate_shape_checks()
    test_matches_autograd_surrogate()
    test_known_deviation_from_textbook_gradient()

    print("\n" + "=" * 70)
    print(" " * 20 + "🎉 ALL TESTS PASSED! 🎉")
    print("=" * 70)


if __name__ == "__main__":
    torch.manual_seed(42)
    run_all_tests()
