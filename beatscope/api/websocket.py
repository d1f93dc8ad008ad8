"""WebSocket endpoint for live per-tick analysis."""

import json
import logging

import numpy as np
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from beatscope.analysis.engine import AnalysisEngine
from beatscope.analysis.errors import InputShapeError
from beatscope.analysis.models import AnalysisResult
from beatscope.analysis.spectrum import band_energies
from beatscope.api.bands import bands_to_response
from beatscope.api.schemas import (
    AnalysisMessage,
    AnalysisResponse,
    BeatResponse,
    ConfigureMessage,
    ConfiguredMessage,
    ErrorMessage,
    FrameMessage,
    TempoResponse,
)
from beatscope.audio.analyser import FrameBuilder
from beatscope.audio.stream import StreamBuffer
from beatscope.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def result_to_response(result: AnalysisResult, include_spectrum: bool = True) -> dict:
    """Convert AnalysisResult to dict for JSON serialization."""
    return AnalysisResponse(
        timestamp_ms=result.timestamp_ms,
        beat=BeatResponse(
            is_beat=result.beat.is_beat,
            level=result.beat.level,
            level_average=result.beat.level_average,
            beat_cutoff=result.beat.beat_cutoff,
            hold_ticks=result.beat.hold_ticks,
        ),
        tempo=TempoResponse(
            bpm=result.tempo.bpm,
            confidence=result.tempo.confidence,
            beat_count=result.tempo.beat_count,
        ),
        bands=bands_to_response(band_energies(result.frame)),
        frequency_data=result.frequency_data.tolist() if include_spectrum else None,
        time_data=result.time_data.tolist() if include_spectrum else None,
    ).model_dump()


class LiveSession:
    """One analysis stream: PCM buffer, frame builder and engine.

    Timestamps for PCM input are stream time (samples received divided by
    the sample rate), so results do not depend on network jitter.
    """

    def __init__(self, sample_rate: float | None = None, fft_size: int | None = None):
        self.engine = AnalysisEngine()
        self.configure(
            sample_rate if sample_rate is not None else settings.sample_rate,
            fft_size if fft_size is not None else settings.fft_size,
        )

    def configure(self, sample_rate: float, fft_size: int) -> None:
        builder = FrameBuilder(
            fft_size=fft_size,
            smoothing=settings.smoothing_time_constant,
            min_decibels=settings.min_decibels,
            max_decibels=settings.max_decibels,
        )
        self.engine.configure(builder.bin_count, sample_rate)
        self.builder = builder
        self.buffer = StreamBuffer(capacity=fft_size)
        self.sample_rate = float(sample_rate)
        self.fft_size = fft_size

    def feed_pcm(self, data: bytes) -> AnalysisResult | None:
        """Analyze the stream after appending a Float32 PCM chunk."""
        if len(data) % 4:
            raise InputShapeError(f"PCM chunk of {len(data)} bytes is not whole float32 samples")
        chunk = np.frombuffer(data, dtype=np.float32)
        if len(chunk) == 0:
            return None
        self.buffer.append(chunk)
        timestamp_ms = self.buffer.total_samples / self.sample_rate * 1000.0
        magnitudes, samples = self.builder.build(self.buffer.latest(self.fft_size))
        return self.engine.analyze(magnitudes, samples, timestamp_ms)

    def feed_frame(self, message: FrameMessage) -> AnalysisResult:
        return self.engine.analyze(
            message.frequency_magnitudes,
            message.time_samples,
            message.timestamp_ms,
        )

    def handle_text(self, text: str) -> dict | None:
        """Dispatch a JSON control/frame message; returns the reply, if any."""
        payload = json.loads(text)
        if not isinstance(payload, dict):
            raise ValueError("Message must be a JSON object")
        kind = payload.get("type")
        if kind == "configure":
            message = ConfigureMessage.model_validate(payload)
            self.configure(
                message.sample_rate if message.sample_rate is not None else self.sample_rate,
                message.fft_size if message.fft_size is not None else self.fft_size,
            )
            return ConfiguredMessage(
                sample_rate=self.sample_rate,
                fft_size=self.fft_size,
                bin_count=self.builder.bin_count,
            ).model_dump()
        if kind == "frame":
            result = self.feed_frame(FrameMessage.model_validate(payload))
            return analysis_message(result)
        raise ValueError(f"Unknown message type: {kind!r}")


def analysis_message(result: AnalysisResult) -> dict:
    return AnalysisMessage(
        data=result_to_response(result, include_spectrum=settings.include_spectrum),
    ).model_dump()


@router.websocket("/ws/live")
async def live_analysis(websocket: WebSocket):
    """Live analysis via WebSocket, one engine per connection.

    Protocol:
    - Client sends binary Float32 PCM chunks (mono, configured sample rate);
      every chunk is one tick.
    - Client may send JSON text messages:
      - {"type": "configure", "sample_rate": R, "fft_size": N}
      - {"type": "frame", "frequency_magnitudes": [...], "time_samples": [...],
         "timestamp_ms": T}
    - Server sends JSON messages:
      - {"type": "configured", "sample_rate": R, "fft_size": N, "bin_count": B}
      - {"type": "analysis", "data": {...}}
      - {"type": "error", "message": "..."}; the session stays open.
    """
    await websocket.accept()
    session = LiveSession()

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            try:
                if message.get("bytes") is not None:
                    result = session.feed_pcm(message["bytes"])
                    reply = analysis_message(result) if result is not None else None
                else:
                    reply = session.handle_text(message.get("text") or "")
            except ValueError as e:
                # Bad frame or config: skip this tick and keep the session.
                logger.debug("Rejected live message: %s", e)
                await websocket.send_json(ErrorMessage(message=str(e)).model_dump())
                continue

            if reply is not None:
                await websocket.send_json(reply)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception("Live analysis session failed")
        try:
            await websocket.send_json(ErrorMessage(message=str(e)).model_dump())
        except Exception:
            pass
