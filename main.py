"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
from datetime import date
from typing import Optional

from capture import DashscopeCaptureCapability
from config import JsonConfigStore
from dispatcher import CommandDispatcher, InMemoryCityDirectory
from errors import CAPABILITY_UNSUPPORTED, error_message
from hotkey import ToggleHotkey
from models import CityRecord, ParsedCommand, SessionState
from overlay import VoiceOverlay
from speech_session import SpeechSession

try:
    from PySide6.QtCore import QObject, QSize, Signal
    from PySide6.QtGui import QAction, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)

CAPITALS = (
    CityRecord("Paris", "France", "Europe/Paris"),
    CityRecord("Londres", "Royaume-Uni", "Europe/London"),
    CityRecord("Berlin", "Allemagne", "Europe/Berlin"),
    CityRecord("Madrid", "Espagne", "Europe/Madrid"),
    CityRecord("Rome", "Italie", "Europe/Rome"),
    CityRecord("Tokyo", "Japon", "Asia/Tokyo"),
    CityRecord("Pékin", "Chine", "Asia/Shanghai"),
    CityRecord("Washington", "États-Unis", "America/New_York"),
    CityRecord("Ottawa", "Canada", "America/Toronto"),
    CityRecord("Brasília", "Brésil", "America/Sao_Paulo"),
    CityRecord("Canberra", "Australie", "Australia/Sydney"),
    CityRecord("Dakar", "Sénégal", "Africa/Dakar"),
)

ICON_IDLE = "#888888"      # grey
ICON_LISTENING = "#FF4444"  # red
ICON_ERROR = "#FF8800"     # orange


def _create_icon(color: str = ICON_IDLE, size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


class UIBridge(QObject):
    transcript_signal = Signal(str, str)  # final, interim
    error_signal = Signal(str)
    state_signal = Signal(str, str)  # from_state, to_state
    command_signal = Signal(object)


class TrayCommandSinks:
    """Hands voice commands to the dashboard; here, as tray notifications."""

    def __init__(self, tray: QSystemTrayIcon) -> None:
        self._tray = tray

    def create_event(
        self,
        title: str,
        description: str,
        date: date,
        time: Optional[str],
        timezone: str,
        city: str,
        color: str,
    ) -> None:
        when = date.isoformat() + (f" {time}" if time else "")
        self._tray.showMessage("Événement", f"{title}\n{when} · {city} ({timezone})")

    def create_note(self, content: str, color: str) -> None:
        self._tray.showMessage("Note", content)

    def search_city(self, query: str) -> None:
        self._tray.showMessage("Recherche", query)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        self.overlay = VoiceOverlay()
        self.ui = UIBridge()
        self.ui.transcript_signal.connect(self._on_transcript_ui)
        self.ui.error_signal.connect(self._on_error_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.command_signal.connect(self._on_command_ui)

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("Commande vocale — Prêt")

        self.dispatcher = CommandDispatcher(
            sinks=TrayCommandSinks(self.tray),
            directory=InMemoryCityDirectory(CAPITALS),
            default_city=self.config_store.get_default_city(),
        )
        self.session = SpeechSession(
            capability=DashscopeCaptureCapability(api_key=self.config_store.get_api_key()),
            locale=self.config_store.get_locale(),
            reset_delay_s=self.config_store.get_reset_delay_s(),
            on_state_change=self._on_state_change,
            on_transcript=self._on_transcript,
            on_error=self._on_error,
            on_command=self._on_command,
        )
        self.hotkey = ToggleHotkey(hotkey_name=self.config_store.get_hotkey())
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        listen_action = QAction("Écouter / Arrêter", menu)
        listen_action.triggered.connect(self.session.toggle)
        menu.addAction(listen_action)

        menu.addSeparator()
        api_action = QAction("Clé API DashScope", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        hotkey_action = QAction("Raccourci clavier", menu)
        hotkey_action.triggered.connect(self._set_hotkey)
        menu.addAction(hotkey_action)

        menu.addSeparator()
        quit_action = QAction("Quitter", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "Clé API", "Clé API DashScope")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.session.replace_capability(DashscopeCaptureCapability(api_key=value))
        QMessageBox.information(None, "Enregistré", "Clé API enregistrée et appliquée.")

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Raccourci", "Format pynput, par exemple Key.f9"
        )
        if not ok or not value:
            return
        self.config_store.set_hotkey(value)
        QMessageBox.information(None, "Enregistré", "Raccourci enregistré. Redémarrez pour l'appliquer.")

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_transcript(self, final_text: str, interim_text: str) -> None:
        self.ui.transcript_signal.emit(final_text, interim_text)

    def _on_error(self, code: str, message: str) -> None:
        self.ui.error_signal.emit(message)

    def _on_command(self, command: ParsedCommand) -> None:
        self.ui.command_signal.emit(command)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_transcript_ui(self, final_text: str, interim_text: str) -> None:
        self.overlay.show_transcript(final_text, interim_text)

    def _on_error_ui(self, msg: str) -> None:
        self.overlay.show_error(msg)

    def _on_command_ui(self, command: ParsedCommand) -> None:
        action = self.dispatcher.dispatch(command)
        if action:
            self.overlay.show_action(action)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        if to_state == SessionState.LISTENING.value:
            self.tray.setIcon(_create_icon(ICON_LISTENING))
            self.tray.setToolTip("Commande vocale — Écoute...")
            self.overlay.show_listening()
        elif to_state == SessionState.IDLE.value:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("Commande vocale — Prêt")
            if from_state == SessionState.LISTENING.value and not self.session.final_text:
                self.overlay.hide_with_delay(400)
        elif to_state == SessionState.ERROR.value:
            self.tray.setIcon(_create_icon(ICON_ERROR))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        if not self.session.supported:
            message = error_message(CAPABILITY_UNSUPPORTED)
            logger.warning("Voice commands disabled: %s", message)
            self.tray.setToolTip(f"Commande vocale — {message}")
            self.overlay.show_error(message, hide_after_ms=5000)
            return self.app.exec()
        try:
            self.hotkey.start(on_toggle=self.session.toggle)
        except Exception as exc:
            logger.warning("Hotkey disabled: %s", exc)
            self.overlay.show_error(f"Raccourci désactivé: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.session.dispose()
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
