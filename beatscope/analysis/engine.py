"""Analysis orchestrator - runs the per-tick pipeline."""

import logging
import math

import numpy as np

from beatscope.analysis.beat import BeatDetector, BeatDetectorState, BeatParams
from beatscope.analysis.errors import ConfigurationError, InputShapeError
from beatscope.analysis.models import AnalysisFrame, AnalysisResult, Band
from beatscope.analysis.spectrum import SpectralSampler, band_energy
from beatscope.analysis.tempo import TempoEstimator, TempoEstimatorState, TempoParams
from beatscope.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def _read_only_view(buffer: np.ndarray) -> np.ndarray:
    view = buffer.view()
    view.flags.writeable = False
    return view


class AnalysisEngine:
    """Turns one spectrum/waveform frame per tick into beat and tempo output.

    Frame arrays are copied into buffers owned by the engine and handed back
    as read-only views, so an ``AnalysisResult`` is only valid until the next
    ``analyze`` call. One engine per stream; instances share no state.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings
        self.beat_detector = BeatDetector(BeatParams.from_settings(self.settings))
        self.tempo_estimator = TempoEstimator(TempoParams.from_settings(self.settings))
        self._bin_count: int | None = None
        self._sample_rate: float | None = None
        self._frequency_buffer: np.ndarray | None = None
        self._time_buffer: np.ndarray | None = None
        self._frequency_view: np.ndarray | None = None
        self._time_view: np.ndarray | None = None
        self._last_frame: AnalysisFrame | None = None

    @property
    def is_configured(self) -> bool:
        return self._bin_count is not None

    @property
    def bin_count(self) -> int | None:
        return self._bin_count

    @property
    def sample_rate(self) -> float | None:
        return self._sample_rate

    @property
    def beat_state(self) -> BeatDetectorState:
        return self.beat_detector.state

    @property
    def tempo_state(self) -> TempoEstimatorState:
        return self.tempo_estimator.state

    @property
    def frame(self) -> AnalysisFrame | None:
        """The most recently analyzed frame, if any."""
        return self._last_frame

    def configure(self, fft_bin_count: int, sample_rate: float) -> None:
        """Set the bin count and sample rate, resetting all detector state."""
        if fft_bin_count <= 0:
            raise ConfigurationError(f"fft_bin_count must be positive, got {fft_bin_count}")
        if sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {sample_rate}")

        self._bin_count = int(fft_bin_count)
        self._sample_rate = float(sample_rate)
        self._frequency_buffer = np.zeros(self._bin_count, dtype=np.uint8)
        self._time_buffer = np.full(self._bin_count, 128, dtype=np.uint8)
        self._frequency_view = _read_only_view(self._frequency_buffer)
        self._time_view = _read_only_view(self._time_buffer)
        self._last_frame = None
        self.reset()
        logger.info(f"Configured engine: {self._bin_count} bins at {self._sample_rate:.0f}Hz "
                    f"({self._sample_rate / (2 * self._bin_count):.2f}Hz per bin)")

    def reset(self) -> None:
        """Clear beat and tempo state, keeping the configuration."""
        self.beat_detector.reset()
        self.tempo_estimator.reset()

    def analyze(self, frequency_magnitudes, time_samples, timestamp_ms: float) -> AnalysisResult:
        """Run one tick of the pipeline.

        Raises ``ConfigurationError`` before ``configure`` and
        ``InputShapeError`` for malformed frames; in both cases no state
        changes. A non-finite timestamp counts as a malformed frame. Values
        are clipped to the byte range.
        """
        if not self.is_configured:
            raise ConfigurationError("configure() must be called before analyze()")

        magnitudes = np.asarray(frequency_magnitudes)
        samples = np.asarray(time_samples)
        self._check_shape(magnitudes, samples)
        if not math.isfinite(timestamp_ms):
            raise InputShapeError(f"timestamp_ms must be finite, got {timestamp_ms}")

        np.copyto(self._frequency_buffer, np.clip(magnitudes, 0, 255), casting="unsafe")
        np.copyto(self._time_buffer, np.clip(samples, 0, 255), casting="unsafe")

        frame = AnalysisFrame(
            frequency_magnitudes=self._frequency_view,
            time_samples=self._time_view,
            sample_rate=self._sample_rate,
            timestamp_ms=float(timestamp_ms),
        )
        sampler = SpectralSampler(frame)
        beat = self.beat_detector.update(sampler.frequency_data)
        tempo = self.tempo_estimator.update(beat.is_beat, frame.timestamp_ms)

        self._last_frame = frame
        return AnalysisResult(frame=frame, beat=beat, tempo=tempo)

    def band_energy(self, band: Band | str, frame: AnalysisFrame | None = None) -> float:
        """Energy of *band* in *frame* (defaults to the last analyzed frame)."""
        if frame is None:
            if not self.is_configured:
                raise ConfigurationError("configure() must be called before band_energy()")
            frame = self._last_frame or AnalysisFrame(
                frequency_magnitudes=self._frequency_view,
                time_samples=self._time_view,
                sample_rate=self._sample_rate,
            )
        return band_energy(band, frame)

    def _check_shape(self, magnitudes: np.ndarray, samples: np.ndarray) -> None:
        if magnitudes.ndim != 1 or samples.ndim != 1:
            raise InputShapeError(
                f"Frame arrays must be 1-D, got shapes {magnitudes.shape} and {samples.shape}"
            )
        if len(magnitudes) != len(samples):
            raise InputShapeError(
                f"Frequency and time arrays differ in length ({len(magnitudes)} != {len(samples)})"
            )
        if len(magnitudes) != self._bin_count:
            raise InputShapeError(
                f"Frame has {len(magnitudes)} bins, engine is configured for {self._bin_count}"
            )
