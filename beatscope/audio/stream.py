"""Ring-buffer for live audio streaming."""

from __future__ import annotations

import numpy as np

_DEFAULT_CAPACITY = 2048


class StreamBuffer:
    """Fixed-capacity ring buffer holding the most recent PCM samples.

    Parameters
    ----------
    capacity:
        Number of samples kept. Defaults to 2048 (one FFT window).
    """

    def __init__(self, capacity: int = _DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._buffer = np.zeros(capacity, dtype=np.float32)
        self._write_pos = 0
        self._length = 0  # how many valid samples are in the buffer
        self._total = 0  # samples appended since the last clear

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(self, chunk: np.ndarray) -> None:
        """Append an audio chunk to the buffer.

        If the chunk is larger than the buffer capacity, only the last
        ``capacity`` samples are kept.
        """
        chunk = np.asarray(chunk, dtype=np.float32).ravel()
        n = len(chunk)

        if n == 0:
            return
        self._total += n

        if n >= self._capacity:
            # Only keep the tail that fits.
            self._buffer[:] = chunk[-self._capacity:]
            self._write_pos = 0
            self._length = self._capacity
            return

        end = self._write_pos + n
        if end <= self._capacity:
            self._buffer[self._write_pos:end] = chunk
        else:
            first = self._capacity - self._write_pos
            self._buffer[self._write_pos:] = chunk[:first]
            self._buffer[:n - first] = chunk[first:]

        self._write_pos = end % self._capacity
        self._length = min(self._length + n, self._capacity)

    def latest(self, n_samples: int | None = None) -> np.ndarray:
        """Return the most recent *n_samples* in chronological order.

        While the buffer is still filling, the result is zero-padded at the
        front so it always has exactly *n_samples* entries.
        """
        if n_samples is None:
            n_samples = self._capacity
        if not 0 < n_samples <= self._capacity:
            raise ValueError(f"n_samples must be in 1..{self._capacity}, got {n_samples}")

        out = np.zeros(n_samples, dtype=np.float32)
        available = min(n_samples, self._length)
        if available == 0:
            return out

        start = (self._write_pos - available) % self._capacity
        if start + available <= self._capacity:
            out[n_samples - available:] = self._buffer[start:start + available]
        else:
            first = self._capacity - start
            out[n_samples - available:n_samples - available + first] = self._buffer[start:]
            out[n_samples - available + first:] = self._buffer[:available - first]
        return out

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def total_samples(self) -> int:
        """Samples appended since creation or the last ``clear``."""
        return self._total

    def __len__(self) -> int:
        return self._length

    def clear(self) -> None:
        """Reset the buffer."""
        self._buffer[:] = 0
        self._write_pos = 0
        self._length = 0
        self._total = 0
