"""State-machine based speech capture session."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from command_parser import CommandParser
from errors import CAPABILITY_UNSUPPORTED, OTHER_CAPTURE_ERROR, START_FAILED, error_message
from interfaces import CaptureCapability, CaptureStream, Scheduler
from models import CaptureEvent, CaptureEventKind, ParsedCommand, SessionState
from timers import ResetTimer, ThreadingScheduler

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
TranscriptCallback = Callable[[str, str], None]
ErrorCallback = Callable[[str, str], None]
CommandCallback = Callable[[ParsedCommand], None]

DEFAULT_RESET_DELAY_S = 3.0


class SpeechSession:
    """Owns one single-utterance capture attempt at a time.

    ``start()`` opens a stream on the capture capability; the stream reports
    interim and final results, errors and its end through ``CaptureEvent``s.
    Each final result is classified right away. When the stream ends the
    command (if any) is handed to ``on_command`` and an auto-reset is armed
    that clears the final text and command after ``reset_delay_s``.

    Events are tagged with the generation that opened their stream, so
    anything a previous stream delivers late is dropped.
    """

    def __init__(
        self,
        capability: CaptureCapability,
        parser: Optional[CommandParser] = None,
        scheduler: Optional[Scheduler] = None,
        locale: str = "fr-FR",
        reset_delay_s: float = DEFAULT_RESET_DELAY_S,
        on_state_change: Optional[StateCallback] = None,
        on_transcript: Optional[TranscriptCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_command: Optional[CommandCallback] = None,
    ) -> None:
        self._capability = capability
        self._parser = parser or CommandParser()
        self._locale = locale
        self._reset_delay_s = reset_delay_s
        self._on_state_change = on_state_change
        self._on_transcript = on_transcript
        self._on_error = on_error
        self._on_command = on_command

        self._lock = threading.RLock()
        self._reset_timer = ResetTimer(scheduler or ThreadingScheduler())
        self._state = SessionState.IDLE
        self._session_id = 0
        self._stream: Optional[CaptureStream] = None
        self._final_text = ""
        self._interim_text = ""
        self._error: Optional[str] = None
        self._error_code: Optional[str] = None
        self._command: Optional[ParsedCommand] = None
        self._disposed = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state == SessionState.LISTENING

    @property
    def final_text(self) -> str:
        return self._final_text

    @property
    def interim_text(self) -> str:
        return self._interim_text

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def error_code(self) -> Optional[str]:
        return self._error_code

    @property
    def command(self) -> Optional[ParsedCommand]:
        return self._command

    @property
    def reset_pending(self) -> bool:
        return self._reset_timer.pending

    @property
    def supported(self) -> bool:
        try:
            return bool(self._capability.supported())
        except Exception:  # pragma: no cover
            logger.exception("Capture capability support check failed")
            return False

    def start(self) -> None:
        with self._lock:
            if self._disposed or self._state == SessionState.LISTENING:
                return
            if not self.supported:
                self._record_error(CAPABILITY_UNSUPPORTED)
                return

            self._reset_timer.cancel()
            self._abort_stream()
            self._session_id += 1
            session_id = self._session_id
            self._final_text = ""
            self._interim_text = ""
            self._command = None
            self._error = None
            self._error_code = None
            self._notify_transcript()
            self._transition(SessionState.LISTENING)

            try:
                stream = self._capability.open(
                    self._locale,
                    True,
                    lambda event: self._handle_event(session_id, event),
                )
            except Exception as exc:
                self._transition(SessionState.IDLE)
                self._record_error(START_FAILED, str(exc))
                return

            # A capability may report the whole utterance from inside open().
            if session_id == self._session_id and self._state != SessionState.IDLE:
                self._stream = stream

    def stop(self) -> None:
        with self._lock:
            if self._state != SessionState.LISTENING or self._stream is None:
                return
            try:
                self._stream.stop()
            except Exception as exc:
                logger.warning("Capture stream failed to stop: %s", exc)
                self._abort_stream()
                self._finish()

    def toggle(self) -> None:
        with self._lock:
            if self._state == SessionState.LISTENING:
                self.stop()
            else:
                self.start()

    def replace_capability(self, capability: CaptureCapability) -> None:
        with self._lock:
            self._abort_stream()
            self._session_id += 1
            self._capability = capability
            self._interim_text = ""
            self._transition(SessionState.IDLE)

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._reset_timer.cancel()
            self._abort_stream()
            self._interim_text = ""
            self._transition(SessionState.IDLE)

    def _handle_event(self, session_id: int, event: CaptureEvent) -> None:
        with self._lock:
            if self._disposed or session_id != self._session_id:
                logger.debug("Dropping %s event from a stale capture stream", event.kind)
                return
            kind = event.kind
            if kind == CaptureEventKind.STARTED.value:
                logger.debug("Capture started")
                return
            if kind == CaptureEventKind.RESULT.value:
                if self._state != SessionState.LISTENING:
                    return
                if event.is_final:
                    self._apply_final(event.text)
                else:
                    self._interim_text = event.text
                    self._notify_transcript()
                return
            if kind == CaptureEventKind.ERROR.value:
                self._record_error(event.code or OTHER_CAPTURE_ERROR, event.message)
                self._transition(SessionState.ERROR)
                return
            if kind == CaptureEventKind.ENDED.value:
                self._finish()

    def _apply_final(self, text: str) -> None:
        # Replace, never append: a stream may repeat its final result.
        self._final_text = text
        self._command = self._parser.classify(text)
        self._interim_text = ""
        logger.debug("Final transcript %r classified as %s", text, self._command.kind.value)
        self._notify_transcript()

    def _finish(self) -> None:
        if self._state == SessionState.IDLE:
            return
        session_id = self._session_id
        self._stream = None
        self._interim_text = ""
        self._transition(SessionState.IDLE)
        self._notify_transcript()
        command = self._command
        if command is not None and self._on_command:
            try:
                self._on_command(command)
            except Exception:  # pragma: no cover
                logger.exception("Command handler failed for %s", command.kind.value)
        self._reset_timer.arm(self._reset_delay_s, lambda: self._auto_reset(session_id))

    def _auto_reset(self, session_id: int) -> None:
        with self._lock:
            if self._disposed or session_id != self._session_id:
                return
            if self._state == SessionState.LISTENING:
                return
            self._final_text = ""
            self._command = None
            logger.debug("Auto-reset cleared transcript and command")
            self._notify_transcript()

    def _record_error(self, code: str, detail: str = "") -> None:
        self._error_code = code
        self._error = error_message(code)
        logger.warning("Speech capture error %s: %s", code, detail or self._error)
        if self._on_error:
            self._on_error(code, self._error)

    def _abort_stream(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.abort()
        except Exception as exc:  # pragma: no cover
            logger.debug("Capture stream abort failed: %s", exc)

    def _notify_transcript(self) -> None:
        if self._on_transcript:
            self._on_transcript(self._final_text, self._interim_text)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("Session %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
