"""Core data models for frame analysis."""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class Band(str, Enum):
    """Named frequency range used for coarse energy summaries."""
    LOW = "low"
    MID = "mid"
    HIGH = "high"
    FULL = "full"


# Hz ranges per band; FULL covers every bin and has no entry.
BAND_RANGES_HZ: dict[Band, tuple[float, float]] = {
    Band.LOW: (20.0, 250.0),
    Band.MID: (250.0, 4000.0),
    Band.HIGH: (4000.0, 20000.0),
}


@dataclass(eq=False)
class AnalysisFrame:
    """One tick of byte-scaled spectrum and waveform data."""
    frequency_magnitudes: np.ndarray  # uint8, index 0 = lowest bin
    time_samples: np.ndarray  # uint8, centred at 128
    sample_rate: float  # Hz
    timestamp_ms: float = 0.0

    @property
    def bin_count(self) -> int:
        return len(self.frequency_magnitudes)

    def waveform(self) -> np.ndarray:
        """Signed waveform samples in [-1, 1]."""
        return self.time_samples.astype(np.float32) / 128.0 - 1.0

    def copy(self) -> "AnalysisFrame":
        return AnalysisFrame(
            frequency_magnitudes=np.array(self.frequency_magnitudes, copy=True),
            time_samples=np.array(self.time_samples, copy=True),
            sample_rate=self.sample_rate,
            timestamp_ms=self.timestamp_ms,
        )


@dataclass(frozen=True)
class BeatDetection:
    """Beat detector output for a single tick."""
    is_beat: bool
    level: float  # mean magnitude of this tick, 0-255
    level_average: float  # mean of the level history
    beat_cutoff: float
    hold_ticks: int


@dataclass(frozen=True)
class TempoEstimate:
    """Tempo estimate from the trailing beat window."""
    bpm: int = 0
    confidence: float = 0.0  # 0.0-1.0
    beat_count: int = 0


@dataclass(eq=False)
class AnalysisResult:
    """Complete per-tick result.

    ``frame`` holds read-only views of engine-owned buffers that are
    overwritten by the next ``analyze`` call. Use ``copy()`` to keep a
    result across ticks.
    """
    frame: AnalysisFrame
    beat: BeatDetection
    tempo: TempoEstimate

    @property
    def frequency_data(self) -> np.ndarray:
        return self.frame.frequency_magnitudes

    @property
    def time_data(self) -> np.ndarray:
        return self.frame.time_samples

    @property
    def timestamp_ms(self) -> float:
        return self.frame.timestamp_ms

    @property
    def is_beat(self) -> bool:
        return self.beat.is_beat

    @property
    def bpm(self) -> int:
        return self.tempo.bpm

    @property
    def confidence(self) -> float:
        return self.tempo.confidence

    def copy(self) -> "AnalysisResult":
        return AnalysisResult(frame=self.frame.copy(), beat=self.beat, tempo=self.tempo)
