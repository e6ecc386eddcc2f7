"""Base configuration shared by every training run."""

class BaseConfig:
    """Shared configuration across all runs."""

    # Reproducibility
    seed = 42

    # Training
    epochs = 100
    learning_rate = 1e-3

    # Slider bounds from the playground interface
    min_epochs = 10
    max_epochs = 1000
    min_learning_rate_exponent = -5   # 1e-5
    max_learning_rate_exponent = -2   # 1e-2

    # Reporting
    log_every = 10          # Print a progress line every N epochs
    show_progress = True    # tqdm progress bar over epochs

    # Paths
    dataset_dir = "data/datasets"
    log_dir = "logs"
    output_dir = "outputs"

    @staticmethod
    def learning_rate_from_exponent(exponent):
        """The learning rate slider is logarithmic: lr = 10 ** exponent."""
        return 10.0 ** exponent

    def range_notes(self):
        """Notes for epochs or learning rate outside the slider bounds."""
        notes = []
        if not self.min_epochs <= self.epochs <= self.max_epochs:
            notes.append(f"{self.epochs} epochs is outside the usual range "
                         f"[{self.min_epochs}, {self.max_epochs}]")

        low = self.learning_rate_from_exponent(self.min_learning_rate_exponent)
        high = self.learning_rate_from_exponent(self.max_learning_rate_exponent)
        if not low <= self.learning_rate <= high:
            notes.append(f"learning rate {self.learning_rate:g} is outside the usual range "
                         f"[{low:g}, {high:g}]")
        return notes
