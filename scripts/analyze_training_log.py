#!/usr/bin/env python
"""
Summarize a training log written by CSVLogger and plot its learning curve.

Usage:
    python scripts/analyze_training_log.py logs/training_log_20261019_101500.csv
    python scripts/analyze_training_log.py logs/training_log_*.csv --output curve.png
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import argparse
from pathlib import Path

import pandas as pd

from nnplayground.utils.visualization import NetworkVisualizer


def summarize(df):
    """
    Build the text summary of one training log.

    Args:
        df: DataFrame with training metrics

    Returns:
        lines: List of summary lines
    """
    lines = []
    lines.append("=" * 60)
    lines.append("TRAINING LOG ANALYSIS")
    lines.append("=" * 60)

    first = df.iloc[0]
    last = df.iloc[-1]
    lines.append(f"Dataset:        {first['dataset']} ({int(first['dataset_size'])} examples)")
    lines.append(f"Architecture:   {first['layer_sizes']} ({int(first['num_parameters'])} weights)")
    lines.append(f"Learning rate:  {first['learning_rate']}")
    lines.append(f"Epochs logged:  {len(df)}")

    best_idx = df['cost'].idxmin()
    lines.append("")
    lines.append(f"Initial cost:   {first['cost']:.6f}")
    lines.append(f"Final cost:     {last['cost']:.6f}")
    lines.append(f"Best cost:      {df.loc[best_idx, 'cost']:.6f} (epoch {int(df.loc[best_idx, 'epoch']) + 1})")
    lines.append(f"Final MAE:      {last['mean_absolute_error']:.6f}")
    lines.append(f"Total time:     {last['cumulative_time_seconds']:.2f}s")

    if last['cost'] > first['cost']:
        lines.append("")
        lines.append("⚠️  Cost increased over training; try a smaller learning rate")

    return lines


def main():
    parser = argparse.ArgumentParser(description='Analyze a training log')
    parser.add_argument('log_files', nargs='+', help='CSV log file(s)')
    parser.add_argument('--output', type=str, default=None, help='Save learning curve to this path')
    args = parser.parse_args()

    for log_file in args.log_files:
        if not Path(log_file).exists():
            print(f"ERROR: Log file not found: {log_file}")
            continue

        df = pd.read_csv(log_file)
        if df.empty:
            print(f"{log_file}: no epochs logged")
            continue

        print(f"\n{log_file}")
        print("\n".join(summarize(df)))

        if args.output:
            output = Path(args.output)
            if len(args.log_files) > 1:
                output = output.with_name(f"{Path(log_file).stem}_{output.name}")
            visualizer = NetworkVisualizer(output.parent)
            fig = visualizer.plot_learning_curve(df, save_path=output)
            visualizer.close(fig)


if __name__ == '__main__':
    main()
