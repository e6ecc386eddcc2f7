"""Multilayer perceptron configuration."""

from .base_config import BaseConfig


class MLPConfig(BaseConfig):
    """Configuration for the tanh multilayer perceptron."""

    # Architecture (input and output widths come from the dataset)
    hidden_layers = [4, 4]

    # Weight initialization: every weight ~ Uniform[init_low, init_high)
    init_low = 0.0
    init_high = 1.0

    # Data
    default_dataset = "xor"
    normalize_dataset = True    # Min-max scale into [-1, 1], the range of tanh

    def layer_sizes(self, input_width, output_width):
        """Full layer-size sequence: input, hidden layers, output."""
        return [input_width, *self.hidden_layers, output_width]

    @property
    def weight_range(self):
        return (self.init_low, self.init_high)
