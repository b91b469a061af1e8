"""Microphone recorder and single-utterance endpointing."""

from __future__ import annotations

import threading
import time
from queue import Full, Queue
from typing import Any

from errors import AUDIO_CAPTURE_UNAVAILABLE, PERMISSION_DENIED
from models import AudioFrame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

_PERMISSION_HINTS = ("permission", "not authorized", "not permitted", "denied")


def recorder_available() -> bool:
    return sd is not None and np is not None


def classify_recorder_error(exc: BaseException) -> str:
    """Map a failure to open the microphone to a capture error code."""
    low = str(exc).lower()
    if any(hint in low for hint in _PERMISSION_HINTS):
        return PERMISSION_DENIED
    return AUDIO_CAPTURE_UNAVAILABLE


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self.dropped_chunks = 0
        self._audio_queue: Queue[AudioFrame | None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self, audio_queue: Queue[AudioFrame | None]) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            self._audio_queue = audio_queue
            self.dropped_chunks = 0
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                callback=self._on_audio,
            )
            self._stream.start()
            self._running = True

    def stop(self) -> None:
        """Close the input stream and push the end-of-audio sentinel."""
        with self._lock:
            if not self._running:
                self._emit_sentinel_if_needed()
                return
            self._running = False
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None
            self._emit_sentinel_if_needed()

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or self._audio_queue is None:
            return
        if np is None:
            return
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        frame = AudioFrame(
            pcm16_bytes=payload,
            sample_rate=self.sample_rate,
            channels=self.channels,
            timestamp_ms=int(time.time() * 1000),
        )
        try:
            self._audio_queue.put_nowait(frame)
        except Full:
            self.dropped_chunks += 1

    def _emit_sentinel_if_needed(self) -> None:
        if self._audio_queue is None:
            return
        try:
            self._audio_queue.put_nowait(None)
        except Full:
            pass


class UtteranceDetector:
    """Energy-based endpointing for a single utterance.

    Frames whose RMS level reaches ``speech_threshold`` count as speech. The
    utterance is complete once ``silence_ms`` of quiet audio follows speech,
    or once ``max_utterance_ms`` of audio has been seen.
    """

    def __init__(
        self,
        speech_threshold: float = 500.0,
        silence_ms: int = 800,
        max_utterance_ms: int = 15000,
    ) -> None:
        self.speech_threshold = speech_threshold
        self.silence_ms = silence_ms
        self.max_utterance_ms = max_utterance_ms
        self.heard_speech = False
        self._silence_run_ms = 0.0
        self._total_ms = 0.0

    @property
    def elapsed_ms(self) -> float:
        return self._total_ms

    def feed(self, frame: AudioFrame) -> bool:
        """Account for one frame; return True when the utterance is over."""
        duration_ms = _frame_duration_ms(frame)
        self._total_ms += duration_ms
        if frame_rms(frame) >= self.speech_threshold:
            self.heard_speech = True
            self._silence_run_ms = 0.0
        elif self.heard_speech:
            self._silence_run_ms += duration_ms

        if self.heard_speech and self._silence_run_ms >= self.silence_ms:
            return True
        return self._total_ms >= self.max_utterance_ms


def frame_rms(frame: AudioFrame) -> float:
    if np is None or not frame.pcm16_bytes:
        return 0.0
    samples = np.frombuffer(frame.pcm16_bytes, dtype=np.int16).astype(np.float64)
    if samples.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(samples * samples)))


def _frame_duration_ms(frame: AudioFrame) -> float:
    per_second = frame.sample_rate * max(frame.channels, 1) * 2
    if per_second <= 0:
        return 0.0
    return len(frame.pcm16_bytes) * 1000.0 / per_second
