"""Shared error codes and user-facing messages."""

from __future__ import annotations

CAPABILITY_UNSUPPORTED = "CAPABILITY_UNSUPPORTED"
PERMISSION_DENIED = "PERMISSION_DENIED"
NO_SPEECH_DETECTED = "NO_SPEECH_DETECTED"
AUDIO_CAPTURE_UNAVAILABLE = "AUDIO_CAPTURE_UNAVAILABLE"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
START_FAILED = "START_FAILED"
OTHER_CAPTURE_ERROR = "OTHER_CAPTURE_ERROR"

ERROR_MESSAGES = {
    CAPABILITY_UNSUPPORTED: "La reconnaissance vocale n'est pas supportée sur ce système.",
    PERMISSION_DENIED: "Permission microphone refusée.",
    NO_SPEECH_DETECTED: "Aucune parole détectée. Essayez encore.",
    AUDIO_CAPTURE_UNAVAILABLE: "Aucun microphone détecté.",
    NETWORK_ERROR: "Erreur réseau, veuillez réessayer.",
    AUTH_FAILED: "Clé API invalide.",
    START_FAILED: "Erreur lors du démarrage de la reconnaissance vocale.",
}


def error_message(code: str) -> str:
    return ERROR_MESSAGES.get(code, f"Erreur: {code or OTHER_CAPTURE_ERROR}")


def is_recoverable(code: str) -> bool:
    # Only an unsupported environment is permanent; every capture error can be retried.
    return code != CAPABILITY_UNSUPPORTED
