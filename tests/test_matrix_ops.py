#!/usr/bin/env python
"""
Test the flat-buffer matrix/vector operations.

Usage:
    python tests/test_matrix_ops.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np

from nnplayground.ops import matrix_ops as ops
from nnplayground.utils.errors import ShapeMismatch


def _expect_shape_mismatch(fn, *args):
    try:
        fn(*args)
    except ShapeMismatch:
        return
    raise AssertionError(f"{fn.__name__} should raise ShapeMismatch")


def test_multiply():
    """Test dense matrix product on flat buffers."""
    print("\n" + "=" * 60)
    print("Test 1: Multiply")
    print("=" * 60)

    a = [1, 2, 3, 4, 5, 6]           # (2, 3)
    b = [7, 8, 9, 10, 11, 12]        # (3, 2)
    c = ops.multiply(a, (2, 3), b, (3, 2))

    assert c.shape == (4,), f"Result should be flat, got {c.shape}"
    np.testing.assert_array_equal(c, [58, 64, 139, 154])
    print(f"✓ (2, 3) x (3, 2) = {c.reshape(2, 2).tolist()}")

    # Outer product as (n, 1) x (1, m)
    outer = ops.multiply([1, 2, 3], (3, 1), [4, 5], (1, 2))
    np.testing.assert_array_equal(outer, np.outer([1, 2, 3], [4, 5]).ravel())
    print("✓ Outer product via (3, 1) x (1, 2)")

    _expect_shape_mismatch(ops.multiply, a, (2, 3), b, (2, 3))
    _expect_shape_mismatch(ops.multiply, a, (3, 3), b, (3, 2))
    print("✓ Incompatible shapes rejected")

    print("\n✅ Multiply tests passed!")


def test_transpose():
    """Test transpose of a flat buffer."""
    print("\n" + "=" * 60)
    print("Test 2: Transpose")
    print("=" * 60)

    t = ops.transpose([1, 2, 3, 4, 5, 6], 2, 3)
    np.testing.assert_array_equal(t, [1, 4, 2, 5, 3, 6])
    print(f"✓ Transpose of (2, 3): {t.tolist()}")

    round_trip = ops.transpose(t, 3, 2)
    np.testing.assert_array_equal(round_trip, [1, 2, 3, 4, 5, 6])

    _expect_shape_mismatch(ops.transpose, [1, 2, 3], 2, 2)
    print("✓ Wrong buffer length rejected")

    print("\n✅ Transpose tests passed!")


def test_elementwise():
    """Test add, subtract, elementwise multiply, scale and dot."""
    print("\n" + "=" * 60)
    print("Test 3: Elementwise Operations")
    print("=" * 60)

    a = np.array([1.0, 2.0, 3.0])
    b = np.array([4.0, 5.0, 6.0])

    np.testing.assert_array_equal(ops.add(a, b), [5, 7, 9])
    np.testing.assert_array_equal(ops.subtract(a, b), [-3, -3, -3])
    np.testing.assert_array_equal(ops.elementwise_multiply(a, b), [4, 10, 18])
    np.testing.assert_array_equal(ops.scale(a, -2), [-2, -4, -6])
    assert ops.dot(a, b) == 32.0
    assert isinstance(ops.dot(a, b), float)
    print("✓ add / subtract / elementwise_multiply / scale / dot")

    for fn in (ops.add, ops.subtract, ops.elementwise_multiply, ops.dot):
        _expect_shape_mismatch(fn, a, b[:2])
    print("✓ Unequal lengths rejected")

    # Operands are never modified
    np.testing.assert_array_equal(a, [1, 2, 3])
    np.testing.assert_array_equal(b, [4, 5, 6])
    print("✓ No side effects on operands")

    print("\n✅ Elementwise tests passed!")


def test_tanh_and_derivative():
    """Test tanh and its derivative computed from the cached activation."""
    print("\n" + "=" * 60)
    print("Test 4: tanh and Derivative")
    print("=" * 60)

    x = np.linspace(-3, 3, 13)
    activation = ops.tanh(x)
    np.testing.assert_allclose(activation, np.tanh(x))

    derivative = ops.tanh_derivative_from_output(activation)
    np.testing.assert_allclose(derivative, 1.0 / np.cosh(x) ** 2, rtol=1e-12)
    print("✓ 1 - tanh(x)^2 matches sech(x)^2")

    np.testing.assert_allclose(ops.tanh_derivative_from_output([0.0, 0.5, -1.0]), [1.0, 0.75, 0.0])
    print("✓ Known values")

    print("\n✅ tanh tests passed!")


def test_append_bias_column():
    """Test appending the constant bias feature to a batch."""
    print("\n" + "=" * 60)
    print("Test 5: Bias Column")
    print("=" * 60)

    with_bias = ops.append_bias_column([1, 2, 3, 4], 2, 2)
    np.testing.assert_array_equal(with_bias, [1, 2, 1, 3, 4, 1])
    print(f"✓ (2, 2) -> (2, 3): {with_bias.reshape(2, 3).tolist()}")

    single = ops.append_bias_column([0.5], 1, 1)
    np.testing.assert_array_equal(single, [0.5, 1.0])

    _expect_shape_mismatch(ops.append_bias_column, [1, 2, 3], 2, 2)

    print("\n✅ Bias column tests passed!")


def run_all_tests():
    print("\n" + "=" * 70)
    print(" " * 20 + "MATRIX OPS TEST SUITE")
    print("=" * 70)

    test_multiply()
    test_transpose()
    test_elementwise()
    test_tanh_and_derivative()
    test_append_bias_column()

    print("\n" + "=" * 70)
    print(" " * 20 + "🎉 ALL TESTS PASSED! 🎉")
    print("=" * 70)


if __name__ == "__main__":
    run_all_tests()
