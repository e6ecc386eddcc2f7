"""CSV logger for per-epoch training metrics and configuration."""

import csv
from datetime import datetime
from pathlib import Path

COLUMNS = (
    'timestamp',
    'epoch',

    # Metrics of the epoch's pre-update batch pass
    'cost',
    'mean_absolute_error',
    'mean_activation',      # Per layer, '|'-separated

    # Weights at the end of the epoch
    'weight_norm',

    # Hyperparameters
    'learning_rate',
    'epochs',
    'seed',

    # Architecture
    'layer_sizes',
    'num_parameters',
    'init_low',
    'init_high',

    # Dataset
    'dataset',
    'dataset_size',

    # Timing
    'epoch_time_seconds',
    'cumulative_time_seconds',
)

# Config attributes copied into every row unless the metrics override them
CONFIG_COLUMNS = ('learning_rate', 'epochs', 'seed', 'init_low', 'init_high')


class CSVLogger:
    """Appends one row per training epoch to a CSV file."""

    def __init__(self, log_path, config):
        """
        Args:
            log_path: Path to CSV file; an existing file is appended to
            config: Training configuration, source of the hyperparameter columns
        """
        self.log_path = Path(log_path)
        self.config = config
        self.columns = list(COLUMNS)

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.log_path.exists():
            self._append(None)

    def _append(self, row):
        with open(self.log_path, 'a', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=self.columns)
            if row is None:
                writer.writeheader()
            else:
                writer.writerow(row)

    def config_params(self):
        return {
            name: getattr(self.config, name)
            for name in CONFIG_COLUMNS
            if hasattr(self.config, name)
        }

    def log_epoch(self, epoch, metrics):
        """
        Write the row for one epoch.

        Missing columns are left empty; keys outside the column list are ignored.
        """
        values = self.config_params()
        values.update(metrics)
        values['epoch'] = epoch
        values.setdefault('timestamp', datetime.now().strftime('%Y-%m-%d %H:%M:%S'))

        self._append({col: values.get(col, '') for col in self.columns})
