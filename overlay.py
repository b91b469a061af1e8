"""Overlay window showing the live transcript and the last voice action."""

from __future__ import annotations

import html

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_PANEL_STYLE = "font-size: 18px; padding: 12px 16px; background: rgba(0,0,0,190); border-radius: 12px;"
_TEXT_STYLE = "color: white;" + _PANEL_STYLE
_ERROR_STYLE = "color: #FF6B6B;" + _PANEL_STYLE
_ACTION_STYLE = "color: #8BE28B;" + _PANEL_STYLE


def transcript_html(final_text: str, interim_text: str) -> str:
    """Final text in bold, interim tail greyed out."""
    parts = []
    if final_text:
        parts.append(f"<b>{html.escape(final_text)}</b>")
    if interim_text:
        parts.append(f'<span style="color: #AAAAAA;">{html.escape(interim_text)}</span>')
    return " ".join(parts)


class VoiceOverlay(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(600)

        self._transcript = QLabel("")
        self._transcript.setWordWrap(True)
        self._transcript.setTextFormat(Qt.RichText)
        self._transcript.setStyleSheet(_TEXT_STYLE)

        self._status = QLabel("")
        self._status.setWordWrap(True)
        self._status.setStyleSheet(_ACTION_STYLE)
        self._status.hide()

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)
        layout.addWidget(self._transcript)
        layout.addWidget(self._status)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def _center_top(self) -> None:
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + 40
        self.move(x, y)

    def show_listening(self) -> None:
        self._status.hide()
        self._set_transcript("🎙️ Je vous écoute... Parlez maintenant")

    def show_transcript(self, final_text: str, interim_text: str) -> None:
        markup = transcript_html(final_text, interim_text)
        if not markup:
            return
        self._set_transcript(markup)

    def show_action(self, text: str, hide_after_ms: int = 3000) -> None:
        self._status.setStyleSheet(_ACTION_STYLE)
        self._status.setText(f"✓ {html.escape(text)}")
        self._status.show()
        self._reveal()
        self.hide_with_delay(hide_after_ms)

    def show_error(self, text: str, hide_after_ms: int = 2000) -> None:
        self._status.setStyleSheet(_ERROR_STYLE)
        self._status.setText(f"⚠️ {html.escape(text)}")
        self._status.show()
        self._reveal()
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _set_transcript(self, markup: str) -> None:
        self._transcript.setText(markup)
        self._reveal()

    def _reveal(self) -> None:
        self._cancel_hide_timer()
        self._center_top()
        self.show()

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
