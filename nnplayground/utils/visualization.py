"""Network visualization tools.

Render the data a training run produces: weight matrices, average neuron
activations, learning curves and the layer layout of the network.
"""

from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # For headless environments
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns


class NetworkVisualizer:
    """Visualize diagnostic snapshots from a training run."""

    def __init__(self, save_dir='outputs/network_plots'):
        """
        Initialize visualizer.

        Args:
            save_dir: Directory to save plots
        """
        self.save_dir = Path(save_dir)
        self.save_dir.mkdir(parents=True, exist_ok=True)

    def _save(self, fig, save_path, what):
        if save_path:
            save_path = Path(save_path)
            if not save_path.is_absolute() and save_path.parent == Path('.'):
                save_path = self.save_dir / save_path
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            print(f"Saved {what} plot to: {save_path}")

    def plot_weights(self, snapshot, save_path=None):
        """
        Plot every weight matrix of a snapshot as a heatmap.

        Rows are incoming neurons (the last row is the bias unit), columns
        are the neurons of the next layer.

        Args:
            snapshot: DiagnosticSnapshot
            save_path: Optional path to save plot

        Returns:
            fig: Matplotlib figure
        """
        matrices = snapshot.weight_matrices
        fig, axes = plt.subplots(1, len(matrices), figsize=(4 * len(matrices), 4), squeeze=False)

        for idx, (ax, weights) in enumerate(zip(axes[0], matrices)):
            rows, cols = weights.shape
            yticklabels = [str(i) for i in range(rows - 1)] + ['bias']
            sns.heatmap(weights, ax=ax, cmap='coolwarm', center=0.0, cbar=True,
                        xticklabels=list(range(cols)), yticklabels=yticklabels,
                        annot=rows * cols <= 64, fmt='.2f', linewidths=0.5, linecolor='white')
            ax.set_title(f'Layer {idx} -> {idx + 1}')
            ax.set_xlabel('Output neuron')
            ax.set_ylabel('Input neuron')

        fig.suptitle(f'Weights after epoch {snapshot.epoch_index + 1}', fontsize=14)
        plt.tight_layout()

        self._save(fig, save_path, 'weights')
        return fig

    def plot_activations(self, snapshot, save_path=None):
        """
        Bar chart of the average activation of every non-input neuron.

        Returns:
            fig: Matplotlib figure
        """
        layers = snapshot.average_activations
        fig, axes = plt.subplots(1, len(layers), figsize=(3 * len(layers), 3), squeeze=False)

        for idx, (ax, averages) in enumerate(zip(axes[0], layers)):
            colors = ['tab:red' if value < 0 else 'tab:blue' for value in averages]
            ax.bar(range(len(averages)), averages, color=colors)
            ax.set_ylim(-1, 1)
            ax.axhline(0, color='black', linewidth=0.5)
            ax.set_title(f'Layer {idx + 1}')
            ax.set_xlabel('Neuron')
        axes[0][0].set_ylabel('Average activation')

        fig.suptitle(f'Activations in epoch {snapshot.epoch_index + 1}', fontsize=14)
        plt.tight_layout()

        self._save(fig, save_path, 'activation')
        return fig

    def plot_learning_curve(self, history, save_path=None):
        """
        Plot cost (and mean absolute error when present) against epoch.

        Args:
            history: Trainer.history list, or a DataFrame read from a CSV log
            save_path: Optional path to save plot

        Returns:
            fig: Matplotlib figure
        """
        df = history if isinstance(history, pd.DataFrame) else pd.DataFrame(history)
        epochs = df['epoch'] + 1

        fig, ax = plt.subplots(figsize=(8, 5))
        ax.plot(epochs, df['cost'], label='Cost (half MSE)', linewidth=2)
        if 'mean_absolute_error' in df:
            ax.plot(epochs, df['mean_absolute_error'], label='Mean absolute error', linewidth=2)
        ax.set_xlabel('Epoch')
        ax.set_ylabel('Error')
        ax.set_title('Learning Curve')
        ax.grid(True, alpha=0.3)
        ax.legend()
        plt.tight_layout()

        self._save(fig, save_path, 'learning curve')
        return fig

    def plot_architecture(self, layer_sizes, snapshot=None, save_path=None):
        """
        Draw the neurons of every layer as columns of circles.

        Bias units are drawn as squares below the neurons of each layer that
        feeds forward. When a snapshot is given, connections are coloured by
        the sign and scaled by the magnitude of their weight.

        Returns:
            fig: Matplotlib figure
        """
        layer_sizes = list(layer_sizes)
        num_layers = len(layer_sizes)
        tallest = max(layer_sizes) + 1

        def neuron_positions(layer_idx):
            size = layer_sizes[layer_idx]
            has_bias = layer_idx < num_layers - 1
            count = size + int(has_bias)
            ys = np.linspace(0.5 + (tallest - count) / 2, tallest - 0.5 - (tallest - count) / 2, count)
            return [(layer_idx, y) for y in ys[::-1]]

        positions = [neuron_positions(i) for i in range(num_layers)]

        fig, ax = plt.subplots(figsize=(2 * num_layers + 2, tallest + 1))

        if snapshot is not None:
            for idx, weights in enumerate(snapshot.weight_matrices):
                max_abs = np.max(np.abs(weights)) or 1.0
                targets = positions[idx + 1][:layer_sizes[idx + 1]]
                for i, (x0, y0) in enumerate(positions[idx]):
                    for j, (x1, y1) in enumerate(targets):
                        weight = weights[i, j]
                        ax.plot([x0, x1], [y0, y1],
                                color='tab:blue' if weight >= 0 else 'tab:red',
                                linewidth=0.5 + 2.5 * abs(weight) / max_abs, alpha=0.6, zorder=1)

        for layer_idx, layer_positions in enumerate(positions):
            for neuron_idx, (x, y) in enumerate(layer_positions):
                is_bias = neuron_idx == layer_sizes[layer_idx]
                ax.scatter(x, y, s=400, marker='s' if is_bias else 'o',
                           color='lightgray' if is_bias else 'white',
                           edgecolors='black', zorder=2)

        labels = ['Input'] + [f'Hidden {i}' for i in range(1, num_layers - 1)] + ['Output']
        ax.set_xticks(range(num_layers))
        ax.set_xticklabels(labels)
        ax.set_yticks([])
        ax.set_xlim(-0.5, num_layers - 0.5)
        ax.set_ylim(0, tallest)
        for spine in ax.spines.values():
            spine.set_visible(False)
        ax.set_title(f'Architecture {layer_sizes}')
        plt.tight_layout()

        self._save(fig, save_path, 'architecture')
        return fig

    @staticmethod
    def close(fig):
        plt.close(fig)
