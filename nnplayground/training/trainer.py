"""Training session: consumes the snapshot stream, reports and logs it."""

import os
import time

import numpy as np
from tqdm import tqdm

from nnplayground.utils.csv_logger import CSVLogger


class Trainer:
    """Runs a network's training process and records per-epoch metrics."""

    def __init__(self, network, dataset, config, on_snapshot=None, log_path=None):
        """
        Args:
            network: NeuralNetwork to train
            dataset: Training dataset
            config: Training configuration (MLPConfig)
            on_snapshot: Optional callback called with every DiagnosticSnapshot;
                returning False stops training after that epoch
            log_path: CSV log file (default: timestamped file in config.log_dir,
                no CSV logging if config.log_dir is None)
        """
        self.network = network
        self.dataset = dataset
        self.config = config
        self.on_snapshot = on_snapshot

        self.history = []
        self.last_snapshot = None
        self.stopped_early = False
        self.cumulative_time = 0.0

        self.csv_logger = None
        log_dir = getattr(config, 'log_dir', 'logs')
        if log_path is None and log_dir:
            timestamp = time.strftime('%Y%m%d_%H%M%S')
            log_path = os.path.join(log_dir, f'training_log_{timestamp}.csv')
        if log_path:
            self.csv_logger = CSVLogger(log_path, config)
            print(f"CSV logging enabled: {log_path}")

    def _epoch_metrics(self, snapshot, epoch_time, learning_rate, epochs):
        mean_activation = [float(np.mean(a)) for a in snapshot.average_activations]
        weight_norm = float(np.sqrt(sum(np.sum(w * w) for w in snapshot.weight_matrices)))

        return {
            'epoch': snapshot.epoch_index,
            'cost': snapshot.cost,
            'mean_absolute_error': snapshot.mean_absolute_error,
            'mean_activation': '|'.join(f'{a:.6f}' for a in mean_activation),
            'weight_norm': weight_norm,
            'learning_rate': learning_rate,
            'epochs': epochs,
            'layer_sizes': '-'.join(str(size) for size in self.network.layers),
            'num_parameters': self.network.num_parameters,
            'dataset': self.dataset.description,
            'dataset_size': len(self.dataset),
            'epoch_time_seconds': epoch_time,
            'cumulative_time_seconds': self.cumulative_time,
        }

    def train(self, epochs=None, learning_rate=None):
        """
        Train for the given number of epochs.

        Args:
            epochs: Defaults to config.epochs
            learning_rate: Defaults to config.learning_rate

        Returns:
            snapshot: The last DiagnosticSnapshot (None if no epoch ran)
        """
        epochs = self.config.epochs if epochs is None else epochs
        learning_rate = self.config.learning_rate if learning_rate is None else learning_rate

        # Validates hyperparameters before anything is printed or logged
        process = self.network.train(self.dataset, epochs, learning_rate)

        print(f"\nStarting training for {epochs} epochs")
        print(f"Architecture: {list(self.network.layers)} ({self.network.num_parameters} weights)")
        print(f"Dataset: {self.dataset.description or 'unnamed'} ({len(self.dataset)} examples)")
        print(f"Learning rate: {learning_rate:g}")
        print()

        log_every = max(1, getattr(self.config, 'log_every', 1))
        show_progress = getattr(self.config, 'show_progress', True)

        epoch_start_time = time.time()
        for snapshot in tqdm(process, total=epochs, desc="Training", disable=not show_progress):
            epoch_time = time.time() - epoch_start_time
            self.cumulative_time += epoch_time

            metrics = self._epoch_metrics(snapshot, epoch_time, learning_rate, epochs)
            self.history.append(metrics)
            self.last_snapshot = snapshot
            if self.csv_logger:
                self.csv_logger.log_epoch(snapshot.epoch_index, metrics)

            epoch_number = snapshot.epoch_index + 1
            if epoch_number % log_every == 0 or epoch_number == epochs:
                tqdm.write(f"Epoch {epoch_number}/{epochs} | Cost: {metrics['cost']:.6f} "
                           f"| MAE: {metrics['mean_absolute_error']:.6f}")

            if self.on_snapshot is not None and self.on_snapshot(snapshot) is False:
                self.stopped_early = True
                print(f"\nTraining stopped after epoch {epoch_number}/{epochs}")
                break

            epoch_start_time = time.time()

        if self.history:
            best = min(self.history, key=lambda m: m['cost'])
            print(f"\nTraining complete!")
            print(f"Best cost: {best['cost']:.6f} (epoch {best['epoch'] + 1})")
        return self.last_snapshot
