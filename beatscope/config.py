"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Audio
    sample_rate: int = 44100
    fft_size: int = 2048  # bin count is fft_size // 2
    smoothing_time_constant: float = 0.8
    min_decibels: float = -100.0
    max_decibels: float = -30.0

    # Beat detection (tick based, not time based)
    level_history_size: int = 60
    beat_hold_ticks: int = 60
    beat_decay: float = 0.98
    beat_trigger_ratio: float = 1.5
    beat_ratchet: float = 1.1
    beat_floor_ratio: float = 0.5

    # Tempo estimation
    tempo_window_ms: float = 10000.0
    tempo_min_beats: int = 6

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    include_spectrum: bool = True  # send frame arrays with every live tick

    model_config = {"env_prefix": "BEATSCOPE_"}


settings = Settings()
