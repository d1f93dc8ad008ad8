"""Interval-based tempo estimation over a trailing beat window."""

import logging
import math
from dataclasses import dataclass, replace

import numpy as np

from beatscope.analysis.errors import ConfigurationError
from beatscope.analysis.models import TempoEstimate
from beatscope.config import settings

logger = logging.getLogger(__name__)

# Mean intervals below this are treated as simultaneous beats.
_MIN_INTERVAL_MS = 1e-6


@dataclass(frozen=True)
class TempoParams:
    window_ms: float = 10000.0
    min_beats: int = 6

    def __post_init__(self):
        if self.window_ms <= 0:
            raise ConfigurationError(f"window_ms must be positive, got {self.window_ms}")
        if self.min_beats < 2:
            raise ConfigurationError(f"min_beats must be at least 2, got {self.min_beats}")

    @classmethod
    def from_settings(cls, s=settings) -> "TempoParams":
        return cls(window_ms=s.tempo_window_ms, min_beats=s.tempo_min_beats)


@dataclass(frozen=True)
class TempoEstimatorState:
    """Beat timestamps inside the window plus the last estimate."""
    beat_timestamps: tuple[float, ...] = ()
    bpm: int = 0
    confidence: float = 0.0

    def estimate(self) -> TempoEstimate:
        return TempoEstimate(
            bpm=self.bpm,
            confidence=self.confidence,
            beat_count=len(self.beat_timestamps),
        )


def estimate_from_intervals(intervals: np.ndarray) -> tuple[int, float] | None:
    """BPM and regularity confidence from inter-beat intervals in ms.

    Confidence is ``1 - mean_abs_deviation / mean_interval`` floored at 0.
    Returns ``None`` when the mean interval is effectively zero.
    """
    mean_interval = float(np.mean(intervals))
    if mean_interval < _MIN_INTERVAL_MS:
        return None
    # halves round up
    bpm = int(math.floor(60000.0 / mean_interval + 0.5))
    deviation = float(np.mean(np.abs(intervals - mean_interval)))
    confidence = max(0.0, 1.0 - deviation / mean_interval)
    return bpm, confidence


def update_tempo_state(
    state: TempoEstimatorState,
    is_beat: bool,
    timestamp_ms: float,
    params: TempoParams = TempoParams(),
) -> TempoEstimatorState:
    """Record a beat at *timestamp_ms* and re-estimate the tempo.

    Ticks without a beat leave the state untouched. With fewer than
    ``min_beats`` timestamps in the window the previous estimate is kept.
    """
    if not is_beat:
        return state

    timestamps = state.beat_timestamps
    if timestamps and timestamp_ms < timestamps[-1]:
        logger.warning(
            "Beat timestamp went backwards (%.1f ms < %.1f ms); clearing tempo window",
            timestamp_ms, timestamps[-1],
        )
        timestamps = ()

    horizon = timestamp_ms - params.window_ms
    timestamps = tuple(t for t in timestamps + (timestamp_ms,) if t > horizon)

    if len(timestamps) < params.min_beats:
        return replace(state, beat_timestamps=timestamps)

    intervals = np.diff(np.asarray(timestamps, dtype=np.float64))
    estimate = estimate_from_intervals(intervals)
    if estimate is None:
        return replace(state, beat_timestamps=timestamps, confidence=0.0)

    bpm, confidence = estimate
    logger.debug("Tempo: %d BPM (confidence %.2f, %d beats)", bpm, confidence, len(timestamps))
    return TempoEstimatorState(beat_timestamps=timestamps, bpm=bpm, confidence=confidence)


class TempoEstimator:
    """Owns a ``TempoEstimatorState`` and feeds it beat events."""

    def __init__(self, params: TempoParams | None = None):
        self.params = params or TempoParams.from_settings()
        self.state = TempoEstimatorState()

    def update(self, is_beat: bool, timestamp_ms: float) -> TempoEstimate:
        self.state = update_tempo_state(self.state, is_beat, timestamp_ms, self.params)
        return self.state.estimate()

    def reset(self) -> None:
        self.state = TempoEstimatorState()
