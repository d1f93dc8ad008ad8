"""Pydantic request/response models for API."""

from pydantic import BaseModel


class FrameRequest(BaseModel):
    frequency_magnitudes: list[int]
    time_samples: list[int] | None = None
    sample_rate: float


class BandEnergyResponse(BaseModel):
    low: float
    mid: float
    high: float
    full: float


class BeatResponse(BaseModel):
    is_beat: bool
    level: float
    level_average: float
    beat_cutoff: float
    hold_ticks: int


class TempoResponse(BaseModel):
    bpm: int
    confidence: float
    beat_count: int = 0


class AnalysisResponse(BaseModel):
    timestamp_ms: float
    beat: BeatResponse
    tempo: TempoResponse
    bands: BandEnergyResponse
    frequency_data: list[int] | None = None
    time_data: list[int] | None = None


# WebSocket message types

class ConfigureMessage(BaseModel):
    type: str = "configure"
    sample_rate: float | None = None
    fft_size: int | None = None


class FrameMessage(BaseModel):
    type: str = "frame"
    frequency_magnitudes: list[int]
    time_samples: list[int]
    timestamp_ms: float


class ConfiguredMessage(BaseModel):
    type: str = "configured"
    sample_rate: float
    fft_size: int
    bin_count: int


class AnalysisMessage(BaseModel):
    type: str = "analysis"
    data: AnalysisResponse


class ErrorMessage(BaseModel):
    type: str = "error"
    message: str
