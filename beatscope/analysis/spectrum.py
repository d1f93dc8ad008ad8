"""Band energy extraction from byte-scaled spectra."""

import math

import numpy as np

from beatscope.analysis.errors import ConfigurationError
from beatscope.analysis.models import BAND_RANGES_HZ, AnalysisFrame, Band


def band_bins(band: Band | str, bin_count: int, sample_rate: float) -> tuple[int, int]:
    """Return the inclusive ``(start, end)`` bin range covered by *band*.

    Bin width is ``sample_rate / (2 * bin_count)``. Both ends are floored and
    clamped to ``[0, bin_count - 1]``; a range that comes out inverted
    collapses to the single bin at ``start``.
    """
    band = Band(band)
    if bin_count <= 0:
        raise ConfigurationError(f"bin_count must be positive, got {bin_count}")
    if sample_rate <= 0:
        raise ConfigurationError(f"sample_rate must be positive, got {sample_rate}")

    last = bin_count - 1
    if band is Band.FULL:
        return 0, last

    low_hz, high_hz = BAND_RANGES_HZ[band]
    bin_hz = sample_rate / (2 * bin_count)
    start = min(max(math.floor(low_hz / bin_hz), 0), last)
    end = min(max(math.floor(high_hz / bin_hz), 0), last)
    if start > end:
        end = start
    return start, end


def band_energy(band: Band | str, frame: AnalysisFrame) -> float:
    """Mean magnitude of *band* in *frame*, normalized to 0-1."""
    start, end = band_bins(band, frame.bin_count, frame.sample_rate)
    segment = np.asarray(frame.frequency_magnitudes[start:end + 1], dtype=np.float64)
    return float(segment.mean() / 255.0)


def band_energies(frame: AnalysisFrame) -> dict[Band, float]:
    """Energy of every band in *frame*."""
    return {band: band_energy(band, frame) for band in Band}


class SpectralSampler:
    """Read-only view over one frame with band-energy queries."""

    def __init__(self, frame: AnalysisFrame):
        self._frame = frame

    @property
    def frame(self) -> AnalysisFrame:
        return self._frame

    @property
    def frequency_data(self) -> np.ndarray:
        return self._frame.frequency_magnitudes

    @property
    def time_data(self) -> np.ndarray:
        return self._frame.time_samples

    def waveform(self) -> np.ndarray:
        return self._frame.waveform()

    def band_energy(self, band: Band | str) -> float:
        return band_energy(band, self._frame)

    def band_energies(self) -> dict[Band, float]:
        return band_energies(self._frame)
