import logging
import threading

from src.speech.phrases import normalize_language

logger = logging.getLogger(__name__)


class SettingsStore:
    """User preferences read by the confirmation engine.

    Values may be changed at runtime (web API); readers always see a
    consistent snapshot of a single field.
    """

    def __init__(
        self,
        preferred_language: str = "english",
        emergency_contact: str | None = None,
        voice_confirmation_enabled: bool = True,
        use_tts: bool = False,
    ):
        self._lock = threading.Lock()
        self._language = normalize_language(preferred_language)
        self._contact = emergency_contact
        self._voice_confirmation_enabled = voice_confirmation_enabled
        self._use_tts = use_tts

    def get_preferred_language(self) -> str:
        with self._lock:
            return self._language

    def set_preferred_language(self, language: str) -> str:
        normalized = normalize_language(language)
        with self._lock:
            self._language = normalized
        logger.info(f"Preferred language set to {normalized}")
        return normalized

    def get_emergency_contact(self) -> str | None:
        with self._lock:
            return self._contact

    def set_emergency_contact(self, contact: str | None) -> None:
        cleaned = contact.strip() if contact else None
        with self._lock:
            self._contact = cleaned or None
        logger.info("Emergency contact updated" if cleaned else "Emergency contact cleared")

    def is_voice_confirmation_enabled(self) -> bool:
        with self._lock:
            return self._voice_confirmation_enabled

    def set_voice_confirmation_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._voice_confirmation_enabled = enabled

    def use_tts(self) -> bool:
        """True when prompts are always synthesized, skipping recorded audio."""
        with self._lock:
            return self._use_tts

    def set_use_tts(self, enabled: bool) -> None:
        with self._lock:
            self._use_tts = enabled

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "preferred_language": self._language,
                "emergency_contact": self._contact,
                "voice_confirmation_enabled": self._voice_confirmation_enabled,
                "use_tts": self._use_tts,
            }
