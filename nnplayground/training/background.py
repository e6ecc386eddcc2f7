"""Run a training process on a background thread.

The worker thread owns the network for the whole run. Snapshots are handed
to the foreground through a queue, so a UI thread can keep rendering and
pick them up at its own pace. Do not call ``network.infer`` while the
worker is alive; wait for ``join()`` first.
"""

from queue import Queue
from threading import Event, Thread

# Marks the end of the snapshot stream in the queue
_DONE = object()


class BackgroundTrainer:
    """Trains a network on a daemon thread and streams its snapshots."""

    def __init__(self, network, dataset, epochs, learning_rate):
        """
        Args:
            network: NeuralNetwork to train
            dataset: Training dataset
            epochs: Number of epochs
            learning_rate: Step size
        """
        # Validation happens here, on the caller's thread
        self.process = network.train(dataset, epochs, learning_rate)
        self.network = network

        self.snapshot_queue = Queue()
        self.stop_event = Event()
        self.error = None
        self._thread = Thread(target=self._run, name="nn-training", daemon=True)

    def _run(self):
        try:
            for snapshot in self.process:
                self.snapshot_queue.put(snapshot)
                # Only checked between epochs, never mid-epoch
                if self.stop_event.is_set():
                    break
        except Exception as e:
            self.error = e
        finally:
            self.snapshot_queue.put(_DONE)

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        """Ask the worker to stop after the epoch it is running."""
        self.stop_event.set()

    def is_alive(self):
        return self._thread.is_alive()

    def join(self, timeout=None):
        """Wait for the worker; re-raises any exception it hit."""
        self._thread.join(timeout)
        if self.error is not None:
            raise self.error

    def snapshots(self):
        """
        Yield snapshots in epoch order until training finishes or is stopped.

        Meant for a single foreground consumer.
        """
        while True:
            item = self.snapshot_queue.get()
            if item is _DONE:
                break
            yield item

        if self.error is not None:
            raise self.error
