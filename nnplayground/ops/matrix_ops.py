"""Dense matrix/vector operations over flat row-major buffers.

Every matrix is a 1-D numpy array plus an explicit (rows, cols) shape;
nothing here keeps shape state of its own. All functions return new
arrays and never modify their arguments.
"""

import numpy as np

from nnplayground.utils.errors import ShapeMismatch


def _flat(a):
    """View any array-like as a 1-D float64 buffer."""
    return np.asarray(a, dtype=np.float64).ravel()


def _check_buffer(a, rows, cols, name):
    if rows < 0 or cols < 0:
        raise ShapeMismatch(f"{name} has negative shape ({rows}, {cols})")
    if a.size != rows * cols:
        raise ShapeMismatch(
            f"{name} holds {a.size} values but shape ({rows}, {cols}) needs {rows * cols}"
        )


def _check_same_length(a, b, op):
    if a.size != b.size:
        raise ShapeMismatch(f"{op} requires equal lengths, got {a.size} and {b.size}")


def multiply(a, shape_a, b, shape_b):
    """
    Dense matrix product.

    Args:
        a: Flat buffer of shape_a
        shape_a: (rows, cols) of a
        b: Flat buffer of shape_b
        shape_b: (rows, cols) of b

    Returns:
        c: Flat buffer of shape (shape_a[0], shape_b[1])
    """
    a, b = _flat(a), _flat(b)
    rows_a, cols_a = shape_a
    rows_b, cols_b = shape_b
    _check_buffer(a, rows_a, cols_a, "left operand")
    _check_buffer(b, rows_b, cols_b, "right operand")
    if cols_a != rows_b:
        raise ShapeMismatch(
            f"Cannot multiply ({rows_a}, {cols_a}) by ({rows_b}, {cols_b})"
        )
    return (a.reshape(rows_a, cols_a) @ b.reshape(rows_b, cols_b)).ravel()


def transpose(a, rows, cols):
    """Transpose a (rows, cols) buffer into a (cols, rows) buffer."""
    a = _flat(a)
    _check_buffer(a, rows, cols, "matrix")
    return a.reshape(rows, cols).T.ravel()


def add(a, b):
    a, b = _flat(a), _flat(b)
    _check_same_length(a, b, "add")
    return a + b


def subtract(a, b):
    """Elementwise a - b."""
    a, b = _flat(a), _flat(b)
    _check_same_length(a, b, "subtract")
    return a - b


def elementwise_multiply(a, b):
    a, b = _flat(a), _flat(b)
    _check_same_length(a, b, "elementwise_multiply")
    return a * b


def scale(a, k):
    return _flat(a) * k


def dot(a, b):
    """Sum of elementwise products, returned as a Python float."""
    a, b = _flat(a), _flat(b)
    _check_same_length(a, b, "dot")
    return float(np.dot(a, b))


def tanh(a):
    return np.tanh(_flat(a))


def tanh_derivative_from_output(activation):
    """
    Derivative of tanh expressed through its cached output.

    d/dx tanh(x) = 1 - tanh(x)^2, and tanh(x) is the activation already
    computed during the forward pass, so no second tanh evaluation is needed.
    """
    activation = _flat(activation)
    return 1.0 - activation * activation


def append_bias_column(a, rows, cols, value=1.0):
    """
    Append a constant column to a (rows, cols) buffer.

    Used to give every example in a batch its bias feature before it is
    multiplied by a weight matrix whose last row holds the bias weights.

    Returns:
        Flat buffer of shape (rows, cols + 1)
    """
    a = _flat(a)
    _check_buffer(a, rows, cols, "activation")
    bias = np.full((rows, 1), value, dtype=np.float64)
    return np.hstack([a.reshape(rows, cols), bias]).ravel()
