#!/usr/bin/env python
"""
Train a multilayer perceptron on one of the bundled datasets.

Usage:
    python scripts/train.py
    python scripts/train.py --dataset sine --hidden 8 8 --epochs 500 --lr-exponent -2
    python scripts/train.py --dataset data/datasets/xor.csv --plot --background
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import argparse
from pathlib import Path

import numpy as np

from config.mlp_config import MLPConfig
from nnplayground.data.dataset import load_dataset, normalize
from nnplayground.models.network import NeuralNetwork
from nnplayground.training.background import BackgroundTrainer
from nnplayground.training.trainer import Trainer
from nnplayground.utils.visualization import NetworkVisualizer


def resolve_dataset_path(name, config):
    """Accept either a path to a dataset file or the name of a bundled dataset."""
    path = Path(name)
    if path.exists():
        return path
    return Path(config.dataset_dir) / f"{name}.csv"


def run_background(network, dataset, config):
    """Train on a worker thread while this thread consumes the snapshots."""
    runner = BackgroundTrainer(network, dataset, config.epochs, config.learning_rate).start()
    last = None
    history = []
    for snapshot in runner.snapshots():
        last = snapshot
        history.append({'epoch': snapshot.epoch_index, 'cost': snapshot.cost,
                        'mean_absolute_error': snapshot.mean_absolute_error})
        if (snapshot.epoch_index + 1) % config.log_every == 0:
            print(f"Epoch {snapshot.epoch_index + 1}/{config.epochs} | Cost: {snapshot.cost:.6f}")
    runner.join()
    return last, history


def main():
    """Main training function."""
    parser = argparse.ArgumentParser(description='Train a tanh multilayer perceptron')
    parser.add_argument('--dataset', type=str, default=None, help='Bundled dataset name or path')
    parser.add_argument('--hidden', type=int, nargs='*', default=None, help='Hidden layer sizes')
    parser.add_argument('--epochs', type=int, default=None, help='Number of epochs')
    lr_group = parser.add_mutually_exclusive_group()
    lr_group.add_argument('--learning-rate', type=float, default=None, help='Learning rate')
    lr_group.add_argument('--lr-exponent', type=float, default=None, help='Learning rate as a power of 10')
    parser.add_argument('--seed', type=int, default=None, help='Weight initialization seed')
    parser.add_argument('--no-normalize', action='store_true', help='Train on raw dataset values')
    parser.add_argument('--plot', action='store_true', help='Save weight/activation/learning plots')
    parser.add_argument('--background', action='store_true', help='Train on a background thread')
    args = parser.parse_args()

    print("=" * 60)
    print("Neural Network Playground Training")
    print("=" * 60)
    print()

    config = MLPConfig()
    if args.hidden is not None:
        config.hidden_layers = args.hidden
    if args.epochs is not None:
        config.epochs = args.epochs
    if args.learning_rate is not None:
        config.learning_rate = args.learning_rate
    if args.lr_exponent is not None:
        config.learning_rate = config.learning_rate_from_exponent(args.lr_exponent)
    if args.seed is not None:
        config.seed = args.seed
    if args.no_normalize:
        config.normalize_dataset = False

    for note in config.range_notes():
        print(f"Note: {note}")

    dataset_path = resolve_dataset_path(args.dataset or config.default_dataset, config)
    if not dataset_path.exists():
        print("ERROR: Dataset not found!")
        print(f"  - {dataset_path}")
        print(f"Available datasets in {config.dataset_dir}:")
        for path in sorted(Path(config.dataset_dir).glob("*.csv")):
            print(f"  - {path.stem}")
        return

    print(f"Loading dataset: {dataset_path}")
    dataset = load_dataset(dataset_path)
    if config.normalize_dataset:
        dataset = normalize(dataset)
    print(f"  {dataset}")
    print()

    layer_sizes = config.layer_sizes(dataset.input_width, dataset.output_width)
    network = NeuralNetwork(layer_sizes, weight_range=config.weight_range, seed=config.seed)
    print(f"Network: {network} with {network.num_parameters} weights")
    print(f"Weights initialized uniformly in [{config.init_low}, {config.init_high})")

    if args.background:
        last_snapshot, history = run_background(network, dataset, config)
    else:
        trainer = Trainer(network, dataset, config)
        last_snapshot = trainer.train()
        history = trainer.history

    cost, mae = network.evaluate(dataset)
    print(f"\nFinal cost: {cost:.6f} | Final MAE: {mae:.6f}")

    print("\nPredictions:")
    predictions = network.infer(dataset.inputs)
    with np.printoptions(precision=3, suppress=True):
        for x, y, prediction in zip(dataset.inputs[:10], dataset.ground_truths[:10], predictions[:10]):
            print(f"  {x} -> {prediction} (target {y})")

    if args.plot and last_snapshot is not None:
        visualizer = NetworkVisualizer(os.path.join(config.output_dir, 'network_plots'))
        visualizer.plot_weights(last_snapshot, save_path='weights.png')
        visualizer.plot_activations(last_snapshot, save_path='activations.png')
        visualizer.plot_architecture(network.layers, last_snapshot, save_path='architecture.png')
        if history:
            visualizer.plot_learning_curve(history, save_path='learning_curve.png')


if __name__ == '__main__':
    main()
