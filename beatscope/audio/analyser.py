"""Byte-scaled spectrum and waveform frames from raw PCM.

Produces the same kind of data a browser ``AnalyserNode`` hands out
through ``getByteFrequencyData`` / ``getByteTimeDomainData``, so the engine
can be driven straight from sample chunks.
"""

from __future__ import annotations

import numpy as np
from scipy.fft import rfft
from scipy.signal import get_window

from beatscope.analysis.errors import ConfigurationError, InputShapeError

_MIN_FFT_SIZE = 32
_MAX_FFT_SIZE = 32768


class FrameBuilder:
    """Convert windows of float PCM into ``(frequency_bytes, time_bytes)``.

    Parameters
    ----------
    fft_size:
        Window length in samples; a power of two between 32 and 32768.
        The frame has ``fft_size // 2`` bins.
    smoothing:
        Weight of the previous spectrum in the exponential average, 0-1.
    min_decibels, max_decibels:
        dB range mapped onto 0-255.
    """

    def __init__(
        self,
        fft_size: int = 2048,
        smoothing: float = 0.8,
        min_decibels: float = -100.0,
        max_decibels: float = -30.0,
    ) -> None:
        if not _MIN_FFT_SIZE <= fft_size <= _MAX_FFT_SIZE or fft_size & (fft_size - 1):
            raise ConfigurationError(
                f"fft_size must be a power of two in {_MIN_FFT_SIZE}..{_MAX_FFT_SIZE}, got {fft_size}"
            )
        if not 0.0 <= smoothing <= 1.0:
            raise ConfigurationError(f"smoothing must be in [0, 1], got {smoothing}")
        if min_decibels >= max_decibels:
            raise ConfigurationError(
                f"min_decibels ({min_decibels}) must be below max_decibels ({max_decibels})"
            )

        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self._window = get_window("blackman", fft_size).astype(np.float64)
        self._smoothed = np.zeros(self.bin_count, dtype=np.float64)

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        """Forget the smoothed spectrum."""
        self._smoothed[:] = 0.0

    def frequency_bytes(self, samples: np.ndarray) -> np.ndarray:
        """Smoothed magnitude spectrum of *samples*, scaled to 0-255."""
        samples = self._check(samples)
        magnitudes = np.abs(rfft(samples * self._window))[:self.bin_count] / self.fft_size

        smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * magnitudes
        # A non-finite value would poison every later frame.
        smoothed[~np.isfinite(smoothed)] = 0.0
        self._smoothed = smoothed

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(smoothed)
        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = np.floor(scale * (decibels - self.min_decibels))
        return np.clip(scaled, 0, 255).astype(np.uint8)

    def time_bytes(self, samples: np.ndarray) -> np.ndarray:
        """The first ``bin_count`` samples of the window, centred at 128.

        Like ``getByteTimeDomainData`` with a ``frequencyBinCount``-long
        array, the newer half of the window is dropped.
        """
        samples = self._check(samples)[:self.bin_count]
        samples = np.nan_to_num(samples, nan=0.0, posinf=1.0, neginf=-1.0)
        scaled = np.floor(128.0 * (1.0 + samples))
        return np.clip(scaled, 0, 255).astype(np.uint8)

    def build(self, samples: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Both frame arrays for one window of ``fft_size`` samples."""
        return self.frequency_bytes(samples), self.time_bytes(samples)

    def _check(self, samples: np.ndarray) -> np.ndarray:
        samples = np.asarray(samples, dtype=np.float64)
        if samples.shape != (self.fft_size,):
            raise InputShapeError(
                f"Expected {self.fft_size} samples, got shape {samples.shape}"
            )
        return samples
