"""Speech capture capability backed by the microphone and DashScope qwen3-asr-flash.

One ``open()`` call captures a single utterance: PCM frames from the
microphone are collected until the speaker falls silent (or ``stop()`` is
called), converted to a WAV payload, and sent to the model with
``stream=True``. Streaming chunks become interim results, the last text
becomes the final result, and every stream that is not aborted finishes
with exactly one ``ended`` event.
"""

from __future__ import annotations

import base64
import io
import logging
import os
import threading
import time
import wave
from queue import Empty, Queue
from typing import Callable, Optional

from errors import AUTH_FAILED, NETWORK_ERROR, NO_SPEECH_DETECTED, OTHER_CAPTURE_ERROR
from interfaces import CaptureCallback
from models import AudioFrame, CaptureEvent, CaptureEventKind
from recorder import SoundDeviceRecorder, UtteranceDetector, classify_recorder_error, recorder_available

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return base64.b64encode(buf.getvalue()).decode("ascii")


def _language_of(locale: str) -> str:
    return locale.split("-")[0].split("_")[0].lower() or "fr"


class DashscopeCaptureCapability:
    def __init__(
        self,
        api_key: str = "",
        model: str = "qwen3-asr-flash",
        request_timeout_s: float = 10.0,
        no_speech_timeout_s: float = 5.0,
        speech_threshold: float = 500.0,
        silence_ms: int = 800,
        max_utterance_ms: int = 15000,
        queue_maxsize: int = 200,
        recorder_factory: Optional[Callable[[], SoundDeviceRecorder]] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s
        self._no_speech_timeout_s = no_speech_timeout_s
        self._speech_threshold = speech_threshold
        self._silence_ms = silence_ms
        self._max_utterance_ms = max_utterance_ms
        self._queue_maxsize = queue_maxsize
        self._recorder_factory = recorder_factory or SoundDeviceRecorder

    def supported(self) -> bool:
        return dashscope is not None and recorder_available()

    def open(
        self,
        locale: str,
        interim_results: bool,
        on_event: CaptureCallback,
    ) -> DashscopeCaptureStream:
        if not self.supported():
            raise RuntimeError("speech capture is not supported in this environment")
        stream = DashscopeCaptureStream(
            on_event=on_event,
            recorder=self._recorder_factory(),
            detector=UtteranceDetector(
                speech_threshold=self._speech_threshold,
                silence_ms=self._silence_ms,
                max_utterance_ms=self._max_utterance_ms,
            ),
            api_key=self._api_key,
            model=self._model,
            language=_language_of(locale),
            interim_results=interim_results,
            request_timeout_s=self._request_timeout_s,
            no_speech_timeout_s=self._no_speech_timeout_s,
            queue_maxsize=self._queue_maxsize,
        )
        stream.start()
        return stream


class DashscopeCaptureStream:
    def __init__(
        self,
        on_event: CaptureCallback,
        recorder: SoundDeviceRecorder,
        detector: UtteranceDetector,
        api_key: str,
        model: str = "qwen3-asr-flash",
        language: str = "fr",
        interim_results: bool = True,
        request_timeout_s: float = 10.0,
        no_speech_timeout_s: float = 5.0,
        queue_maxsize: int = 200,
    ) -> None:
        self._on_event = on_event
        self._recorder = recorder
        self._detector = detector
        self._api_key = api_key
        self._model = model
        self._language = language
        self._interim_results = interim_results
        self._request_timeout_s = request_timeout_s
        self._no_speech_timeout_s = no_speech_timeout_s
        self._audio_queue: Queue[AudioFrame | None] = Queue(maxsize=queue_maxsize)
        self._aborted = threading.Event()
        self._stop_requested = threading.Event()
        self._ended = False
        self._emit_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """End audio capture early; recognition of what was heard still runs."""
        self._stop_requested.set()
        self._safe_stop_recorder()

    def abort(self) -> None:
        """Drop the utterance immediately; no further events are delivered."""
        self._aborted.set()
        self._safe_stop_recorder()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(self) -> None:
        try:
            self._recorder.start(self._audio_queue)
        except Exception as exc:
            logger.warning("Microphone unavailable: %s", exc)
            self._emit_error(classify_recorder_error(exc), str(exc))
            self._emit_ended()
            return

        self._emit(CaptureEvent(kind=CaptureEventKind.STARTED.value))
        pcm, sample_rate, channels = self._collect_utterance()
        self._safe_stop_recorder()
        if self._aborted.is_set():
            return

        if not pcm or not self._detector.heard_speech:
            self._emit_error(NO_SPEECH_DETECTED, "no speech before end of capture")
            self._emit_ended()
            return

        self._recognize_stream(_pcm_to_wav_base64(bytes(pcm), sample_rate, channels))
        self._emit_ended()

    def _collect_utterance(self) -> tuple[bytearray, int, int]:
        pcm = bytearray()
        sample_rate = 16000
        channels = 1
        started = time.monotonic()

        while not self._aborted.is_set():
            if (
                not self._detector.heard_speech
                and time.monotonic() - started >= self._no_speech_timeout_s
            ):
                break
            try:
                frame = self._audio_queue.get(timeout=0.1)
            except Empty:
                if self._stop_requested.is_set():
                    break
                continue
            if frame is None:  # Sentinel
                break
            pcm.extend(frame.pcm16_bytes)
            sample_rate = frame.sample_rate
            channels = frame.channels
            if self._detector.feed(frame):
                break
        return pcm, sample_rate, channels

    def _recognize_stream(self, wav_base64: str) -> None:  # noqa: C901
        """Send audio to dashscope and stream interim/final results."""
        if dashscope is None:
            self._emit_error(OTHER_CAPTURE_ERROR, "dashscope is not installed")
            return

        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            self._emit_error(AUTH_FAILED, "No API key configured")
            return

        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": wav_base64}]},
                ],
                result_format="message",
                asr_options={"enable_itn": False, "language": self._language},
                stream=True,
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            self._emit(self._to_error_event(exc))
            return

        latest_text = ""
        try:
            for chunk in response:
                if self._aborted.is_set():
                    return
                text = self._extract_text(chunk)
                if text:
                    latest_text = text
                    if self._interim_results:
                        self._emit(
                            CaptureEvent(kind=CaptureEventKind.RESULT.value, text=text, is_final=False)
                        )
        except Exception as exc:
            self._emit(self._to_error_event(exc))
            return

        if not latest_text.strip():
            self._emit_error(NO_SPEECH_DETECTED, "recognizer returned no text")
            return
        self._emit(CaptureEvent(kind=CaptureEventKind.RESULT.value, text=latest_text, is_final=True))

    def _extract_text(self, chunk: object) -> str:
        """Pull text from a dashscope streaming chunk dict."""
        if isinstance(chunk, dict):
            output = chunk.get("output", {})
            choices = output.get("choices", [])
            if not choices:
                return ""
            message = choices[0].get("message", {})
            content = message.get("content", [])
            if not content:
                return ""
            value = content[0]
            if isinstance(value, dict):
                return str(value.get("text", ""))
        return ""

    def _to_error_event(self, exc: Exception) -> CaptureEvent:
        """Map an SDK/network exception to a capture error event."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low:
            code = AUTH_FAILED
        elif "timeout" in low or "network" in low or "connection" in low:
            code = NETWORK_ERROR
        else:
            code = OTHER_CAPTURE_ERROR
        return CaptureEvent(kind=CaptureEventKind.ERROR.value, code=code, message=message)

    def _emit_error(self, code: str, message: str) -> None:
        self._emit(CaptureEvent(kind=CaptureEventKind.ERROR.value, code=code, message=message))

    def _emit_ended(self) -> None:
        with self._emit_lock:
            if self._ended:
                return
            self._ended = True
        self._emit(CaptureEvent(kind=CaptureEventKind.ENDED.value))

    def _emit(self, event: CaptureEvent) -> None:
        if self._aborted.is_set():
            return
        self._on_event(event)

    def _safe_stop_recorder(self) -> None:
        try:
            self._recorder.stop()
        except Exception as exc:  # pragma: no cover
            logger.debug("Recorder stop failed: %s", exc)
