"""Adaptive-threshold beat detection with hold and decay."""

import logging
from dataclasses import dataclass, field, replace

import numpy as np

from beatscope.analysis.errors import ConfigurationError
from beatscope.analysis.models import BeatDetection
from beatscope.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeatParams:
    """Tuning constants for the detector."""
    history_size: int = 60
    hold_ticks: int = 60
    decay: float = 0.98
    trigger_ratio: float = 1.5  # level must exceed the history mean by this factor
    ratchet: float = 1.1  # cutoff multiplier applied on a beat
    floor_ratio: float = 0.5  # cutoff never decays below this share of the history mean

    def __post_init__(self):
        if self.history_size < 1:
            raise ConfigurationError(f"history_size must be positive, got {self.history_size}")
        if self.hold_ticks < 0:
            raise ConfigurationError(f"hold_ticks must not be negative, got {self.hold_ticks}")

    @classmethod
    def from_settings(cls, s=settings) -> "BeatParams":
        return cls(
            history_size=s.level_history_size,
            hold_ticks=s.beat_hold_ticks,
            decay=s.beat_decay,
            trigger_ratio=s.beat_trigger_ratio,
            ratchet=s.beat_ratchet,
            floor_ratio=s.beat_floor_ratio,
        )


@dataclass(frozen=True)
class BeatDetectorState:
    """Detector state carried between ticks."""
    beat_cutoff: float = 0.0
    hold_ticks: int = 0
    level_history: tuple[float, ...] = field(default_factory=lambda: (0.0,) * 60)
    is_beat: bool = False

    @classmethod
    def initial(cls, history_size: int = 60) -> "BeatDetectorState":
        return cls(level_history=(0.0,) * history_size)

    @property
    def level_average(self) -> float:
        return sum(self.level_history) / len(self.level_history)


def update_beat_state(
    state: BeatDetectorState,
    magnitudes: np.ndarray,
    params: BeatParams = BeatParams(),
) -> tuple[BeatDetectorState, BeatDetection]:
    """Advance the detector by one tick.

    A beat fires when the tick's mean magnitude is above both the adaptive
    cutoff and ``trigger_ratio`` times the mean of the last ticks. A beat
    ratchets the cutoff up; afterwards the cutoff holds for ``hold_ticks``
    ticks, then decays geometrically down to ``floor_ratio`` times the
    history mean.
    """
    level = float(np.mean(magnitudes, dtype=np.float64))
    history = state.level_history[1:] + (level,)
    level_average = sum(history) / len(history)

    cutoff = state.beat_cutoff
    hold = state.hold_ticks
    if level > cutoff and level > level_average * params.trigger_ratio:
        is_beat = True
        cutoff = level * params.ratchet
        hold = 0
    else:
        is_beat = False
        if hold <= params.hold_ticks:
            hold += 1
        else:
            cutoff = max(cutoff * params.decay, level_average * params.floor_ratio)

    new_state = replace(
        state,
        beat_cutoff=cutoff,
        hold_ticks=hold,
        level_history=history,
        is_beat=is_beat,
    )
    detection = BeatDetection(
        is_beat=is_beat,
        level=level,
        level_average=level_average,
        beat_cutoff=cutoff,
        hold_ticks=hold,
    )
    return new_state, detection


class BeatDetector:
    """Owns a ``BeatDetectorState`` and feeds it one spectrum per tick."""

    def __init__(self, params: BeatParams | None = None):
        self.params = params or BeatParams.from_settings()
        self.state = BeatDetectorState.initial(self.params.history_size)

    def update(self, magnitudes: np.ndarray) -> BeatDetection:
        self.state, detection = update_beat_state(self.state, magnitudes, self.params)
        if detection.is_beat:
            logger.debug(
                "Beat: level=%.1f avg=%.1f cutoff=%.1f",
                detection.level, detection.level_average, detection.beat_cutoff,
            )
        return detection

    def reset(self) -> None:
        self.state = BeatDetectorState.initial(self.params.history_size)
