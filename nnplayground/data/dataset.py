"""
Training examples and datasets.

Datasets are stored as plain text, one example per line:

    input_1, input_2, ...; ground_truth_1, ground_truth_2, ...

Inputs and ground truths are separated by a semicolon and the values on
each side by commas.
"""

from pathlib import Path
from typing import List, NamedTuple, Optional

import numpy as np

from nnplayground.utils.errors import ShapeMismatch


class Example(NamedTuple):
    input: np.ndarray
    ground_truth: np.ndarray


class Dataset:
    """An ordered, non-empty collection of (input, ground_truth) examples."""

    def __init__(self, inputs, ground_truths, description=""):
        """
        Args:
            inputs: Sequence of input vectors, all the same length
            ground_truths: Sequence of target vectors, all the same length
            description: User-facing name of the dataset
        """
        self.inputs = self._to_matrix(inputs, "inputs")
        self.ground_truths = self._to_matrix(ground_truths, "ground truths")
        self.description = description

        if len(self.inputs) != len(self.ground_truths):
            raise ShapeMismatch(
                f"Mismatch: {len(self.inputs)} inputs vs {len(self.ground_truths)} ground truths"
            )

    @staticmethod
    def _to_matrix(rows, name):
        rows = [np.asarray(row, dtype=np.float64).ravel() for row in rows]
        if not rows:
            raise ShapeMismatch(f"Dataset {name} must contain at least one example")

        widths = {len(row) for row in rows}
        if len(widths) != 1:
            raise ShapeMismatch(f"All {name} must have the same width, got widths {sorted(widths)}")
        if 0 in widths:
            raise ShapeMismatch(f"Dataset {name} must have at least one value per example")

        return np.vstack(rows)

    def __len__(self):
        return len(self.inputs)

    def __iter__(self):
        for x, y in zip(self.inputs, self.ground_truths):
            yield Example(x.copy(), y.copy())

    def __getitem__(self, idx):
        return Example(self.inputs[idx].copy(), self.ground_truths[idx].copy())

    def __repr__(self):
        return (f"Dataset({self.description!r}, examples={len(self)}, "
                f"input_width={self.input_width}, output_width={self.output_width})")

    @property
    def input_width(self):
        return self.inputs.shape[1]

    @property
    def output_width(self):
        return self.ground_truths.shape[1]

    @property
    def examples(self) -> List[Example]:
        return list(self)

    def as_batch(self):
        """Return copies of the (examples, width) input and ground-truth matrices."""
        return self.inputs.copy(), self.ground_truths.copy()

    @classmethod
    def from_examples(cls, examples, description=""):
        examples = list(examples)
        return cls([x for x, _ in examples], [y for _, y in examples], description)


def _parse_values(text, path, line_number):
    try:
        return [float(value.strip()) for value in text.split(",")]
    except ValueError as e:
        raise ValueError(f"{path}:{line_number}: could not parse numbers from {text.strip()!r}") from e


def load_dataset(path, description: Optional[str] = None) -> Dataset:
    """
    Load a dataset from a semicolon/comma separated text file.

    Args:
        path: Path to the dataset file
        description: Name of the dataset (defaults to the file stem)

    Returns:
        dataset: Dataset in file order
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")

    inputs = []
    ground_truths = []
    with open(path, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            components = line.split(";")
            if len(components) != 2:
                raise ValueError(
                    f"{path}:{line_number}: expected 'inputs;ground_truths', got {line!r}"
                )
            inputs.append(_parse_values(components[0], path, line_number))
            ground_truths.append(_parse_values(components[1], path, line_number))

    if description is None:
        description = path.stem.replace("_", " ")
    return Dataset(inputs, ground_truths, description)


def load_datasets(directory) -> List[Dataset]:
    """Load every ``*.csv`` dataset in a directory, sorted by file name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Dataset directory not found: {directory}")
    return [load_dataset(path) for path in sorted(directory.glob("*.csv"))]


def _scale_columns(matrix, low, high):
    col_min = matrix.min(axis=0)
    col_max = matrix.max(axis=0)
    span = col_max - col_min
    midpoint = (low + high) / 2.0

    # Constant columns carry no information; park them in the middle of the range
    constant = span == 0
    safe_span = np.where(constant, 1.0, span)
    scaled = low + (matrix - col_min) / safe_span * (high - low)
    scaled[:, constant] = midpoint
    return scaled


def normalize(dataset: Dataset, low=-1.0, high=1.0) -> Dataset:
    """
    Min-max scale every input and ground-truth column into [low, high].

    The default range matches the output range of tanh, so ground truths
    stay reachable by the output layer.
    """
    if not low < high:
        raise ValueError(f"normalize requires low < high, got [{low}, {high}]")
    return Dataset(
        _scale_columns(dataset.inputs, low, high),
        _scale_columns(dataset.ground_truths, low, high),
        dataset.description,
    )
