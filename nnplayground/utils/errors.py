"""Error types raised by the network engine."""


class NetworkError(ValueError):
    """Base class for all engine errors."""


class InvalidArchitecture(NetworkError):
    """Layer-size sequence is too short or contains a non-positive width."""


class ShapeMismatch(NetworkError):
    """Operands do not satisfy a matrix/vector op's dimension contract."""


class InvalidHyperparameters(NetworkError):
    """Negative epoch count or non-finite learning rate."""
