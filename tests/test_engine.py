"""Integration tests for the analysis engine."""

import numpy as np
import pytest

from beatscope.analysis.engine import AnalysisEngine
from beatscope.analysis.errors import ConfigurationError, InputShapeError
from beatscope.analysis.models import AnalysisResult
from tests.conftest import BIN_COUNT, TICK_MS, level_frame, make_frame


def test_configure_rejects_bad_values():
    engine = AnalysisEngine()
    with pytest.raises(ConfigurationError):
        engine.configure(0, 44100)
    with pytest.raises(ConfigurationError):
        engine.configure(1024, -1)
    assert not engine.is_configured


def test_analyze_requires_configure():
    engine = AnalysisEngine()
    with pytest.raises(ConfigurationError):
        engine.analyze(*level_frame(10), timestamp_ms=0)


def test_analyze_returns_result(engine):
    result = engine.analyze(*level_frame(100), timestamp_ms=0)
    assert isinstance(result, AnalysisResult)
    assert result.is_beat
    assert result.bpm == 0
    assert result.confidence == 0.0
    assert result.timestamp_ms == 0.0
    assert len(result.frequency_data) == BIN_COUNT
    assert result.frequency_data.dtype == np.uint8


@pytest.mark.parametrize("magnitudes,samples", [
    (np.zeros(BIN_COUNT), np.zeros(BIN_COUNT - 1)),
    (np.zeros(512), np.zeros(512)),
    (np.zeros((2, BIN_COUNT)), np.zeros((2, BIN_COUNT))),
])
def test_bad_shapes_are_rejected_without_state_change(engine, magnitudes, samples):
    engine.analyze(*level_frame(100), timestamp_ms=0)
    before_beat = engine.beat_state
    before_tempo = engine.tempo_state

    with pytest.raises(InputShapeError):
        engine.analyze(magnitudes, samples, timestamp_ms=10)

    assert engine.beat_state is before_beat
    assert engine.tempo_state is before_tempo


@pytest.mark.parametrize("timestamp_ms", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_timestamp_is_rejected_without_state_change(engine, timestamp_ms):
    for tick in range(6):
        engine.analyze(*level_frame(10), timestamp_ms=tick * TICK_MS)
    engine.analyze(*level_frame(200), timestamp_ms=6 * TICK_MS)
    before_beat = engine.beat_state
    before_tempo = engine.tempo_state
    assert before_tempo.beat_timestamps

    with pytest.raises(InputShapeError):
        engine.analyze(*level_frame(250), timestamp_ms=timestamp_ms)

    assert engine.beat_state is before_beat
    assert engine.tempo_state is before_tempo


def test_result_arrays_are_read_only(engine):
    result = engine.analyze(*level_frame(50), timestamp_ms=0)
    assert not result.frequency_data.flags.writeable
    assert not result.time_data.flags.writeable
    with pytest.raises(ValueError):
        result.frequency_data[0] = 1


def test_result_is_valid_until_next_tick(engine):
    first = engine.analyze(*level_frame(50), timestamp_ms=0)
    kept = first.copy()
    engine.analyze(*level_frame(20), timestamp_ms=TICK_MS)

    # engine-owned buffers are reused
    assert first.frequency_data[0] == 20
    assert kept.frequency_data[0] == 50
    assert kept.frequency_data.flags.writeable


def test_input_arrays_are_not_aliased(engine):
    magnitudes, samples = level_frame(30)
    result = engine.analyze(magnitudes, samples, timestamp_ms=0)
    magnitudes[:] = 99
    assert result.frequency_data[0] == 30


def test_values_are_clipped_to_byte_range(engine):
    magnitudes = np.full(BIN_COUNT, 300.0)
    samples = np.full(BIN_COUNT, -5)
    result = engine.analyze(magnitudes, samples, timestamp_ms=0)
    assert result.frequency_data.max() == 255
    assert result.time_data.min() == 0


def test_periodic_pulses_give_tempo(engine):
    """A loud tick every 75 ticks at 60 Hz is 1250ms apart, i.e. 48 BPM."""
    quiet = level_frame(10)
    loud = level_frame(200)
    beat_ticks = []
    result = None

    for tick in range(5 * 75 + 1):
        frame = loud if tick % 75 == 0 else quiet
        result = engine.analyze(*frame, timestamp_ms=tick * 1000.0 / 60)
        if result.is_beat:
            beat_ticks.append(tick)
        if tick < 5 * 75:
            assert result.bpm == 0

    assert beat_ticks == [0, 75, 150, 225, 300, 375]
    assert result.bpm == 48
    assert result.confidence == pytest.approx(1.0)
    assert result.tempo.beat_count == 6


def test_band_energy_defaults_to_last_frame(engine):
    magnitudes = np.zeros(BIN_COUNT, dtype=np.uint8)
    magnitudes[:12] = 255
    engine.analyze(magnitudes, np.full(BIN_COUNT, 128), timestamp_ms=0)

    assert engine.band_energy("low") == pytest.approx(1.0)
    assert engine.band_energy("high") == 0.0

    other = make_frame(np.full(BIN_COUNT, 51))
    assert engine.band_energy("low", other) == pytest.approx(0.2)


def test_band_energy_before_any_tick(engine):
    assert engine.band_energy("full") == 0.0


def test_configure_resets_state(engine):
    engine.analyze(*level_frame(100), timestamp_ms=0)
    assert engine.beat_state.beat_cutoff > 0

    engine.configure(512, 22050)
    assert engine.beat_state.beat_cutoff == 0.0
    assert engine.tempo_state.beat_timestamps == ()
    assert engine.frame is None
    result = engine.analyze(*level_frame(100, bin_count=512), timestamp_ms=0)
    assert len(result.frequency_data) == 512


def test_engines_are_independent():
    a = AnalysisEngine()
    b = AnalysisEngine()
    a.configure(BIN_COUNT, 44100)
    b.configure(BIN_COUNT, 44100)

    a.analyze(*level_frame(100), timestamp_ms=0)
    assert b.beat_state.beat_cutoff == 0.0
    assert b.frame is None
