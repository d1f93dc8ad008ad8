"""Shared test fixtures for frame analysis tests."""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from beatscope.analysis.engine import AnalysisEngine
from beatscope.analysis.models import AnalysisFrame
from beatscope.main import app

BIN_COUNT = 1024
SAMPLE_RATE = 44100
TICK_MS = 1000.0 / 60


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def engine():
    """Engine configured like a 2048-point analyser at 44.1 kHz."""
    engine = AnalysisEngine()
    engine.configure(BIN_COUNT, SAMPLE_RATE)
    return engine


def level_frame(level: int, bin_count: int = BIN_COUNT) -> tuple[np.ndarray, np.ndarray]:
    """Flat spectrum at *level* plus a silent waveform."""
    magnitudes = np.full(bin_count, level, dtype=np.uint8)
    samples = np.full(bin_count, 128, dtype=np.uint8)
    return magnitudes, samples


def make_frame(
    magnitudes,
    sample_rate: float = SAMPLE_RATE,
    timestamp_ms: float = 0.0,
) -> AnalysisFrame:
    magnitudes = np.asarray(magnitudes, dtype=np.uint8)
    return AnalysisFrame(
        frequency_magnitudes=magnitudes,
        time_samples=np.full(len(magnitudes), 128, dtype=np.uint8),
        sample_rate=sample_rate,
        timestamp_ms=timestamp_ms,
    )


def generate_click_track(
    bpm: float,
    duration_seconds: float = 10.0,
    sr: int = SAMPLE_RATE,
    click_hz: float = 1000.0,
) -> np.ndarray:
    """Generate a synthetic click track (short decaying sine bursts).

    Returns mono float32 audio at the given sample rate.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)

    beat_interval = 60.0 / bpm  # seconds per beat
    click_samples = int(0.02 * sr)  # 20ms click

    t_click = np.arange(click_samples) / sr
    click = np.sin(2 * np.pi * click_hz * t_click) * np.exp(-t_click * 100)

    time = 0.0
    while time < duration_seconds:
        sample_pos = int(time * sr)
        end = min(sample_pos + click_samples, n_samples)
        length = end - sample_pos
        if length > 0:
            audio[sample_pos:end] += click[:length]
        time += beat_interval

    peak = np.max(np.abs(audio))
    if peak > 0:
        audio = audio / peak

    return audio.astype(np.float32)
