"""
Phrase catalog

Fixed prompt texts per language, keyed by phrase key.
"""

import logging
from enum import Enum
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "english"

_LANGUAGE_ALIASES = {
    "en": "english",
    "en-us": "english",
    "en-in": "english",
    "english": "english",
    "hi": "hinglish",
    "hi-in": "hinglish",
    "hindi": "hinglish",
    "hinglish": "hinglish",
    "mr": "marathi",
    "mr-in": "marathi",
    "marathi": "marathi",
}

_SPEECH_LOCALES = {
    "english": "en-US",
    "hinglish": "hi-IN",
    "marathi": "mr-IN",
}


class PhraseKey(Enum):
    FALL_DETECTED = "FALL_DETECTED"
    CONFIRMATION_RECEIVED = "CONFIRMATION_RECEIVED"
    NO_RESPONSE = "NO_RESPONSE"
    EMERGENCY_TRIGGERED = "EMERGENCY_TRIGGERED"
    TAKE_CARE = "TAKE_CARE"
    EMERGENCY_ALERT = "EMERGENCY_ALERT"


DEFAULT_PHRASES: dict[str, dict[str, str]] = {
    "english": {
        "FALL_DETECTED": "We detected a fall. Are you okay?",
        "CONFIRMATION_RECEIVED": "We received your confirmation. Take care.",
        "NO_RESPONSE": "No response detected. Trying again.",
        "EMERGENCY_TRIGGERED": "Triggering emergency alert.",
        "TAKE_CARE": "Please take care of yourself.",
        "EMERGENCY_ALERT": (
            "EMERGENCY ALERT: A fall has been detected. "
            "The user was unable to confirm they are okay. Please check on them immediately."
        ),
    },
    "hinglish": {
        "FALL_DETECTED": "Kya aap theek hai?",
        "CONFIRMATION_RECEIVED": "Aapke confirmation mil gaya hai. Apna dhyan rakhiye.",
        "NO_RESPONSE": "Koi jawab nahi mila. Dobara puchhte hain.",
        "EMERGENCY_TRIGGERED": "Emergency alert bhej rahe hain.",
        "TAKE_CARE": "Kripya apna dhyan rakhiye.",
        "EMERGENCY_ALERT": (
            "आपातकालीन अलर्ट: गिरने का पता चला है। "
            "उपयोगकर्ता यह पुष्टि करने में असमर्थ थे कि वे ठीक हैं। कृपया तुरंत उनकी जाँच करें।"
        ),
    },
    "marathi": {
        "FALL_DETECTED": "Tumhi theek aahat ka?",
        "CONFIRMATION_RECEIVED": "Tumcha confirmation milala aahe. Swataachi kaaljee ghya.",
        "NO_RESPONSE": "Uttara milala nahi. Punha prayatna karto.",
        "EMERGENCY_TRIGGERED": "Emergency alert pathavat aahe.",
        "TAKE_CARE": "Krupaya swataachi kaaljee ghya.",
        "EMERGENCY_ALERT": (
            "आपत्कालीन सूचना: पडल्याचे आढळले आहे. "
            "वापरकर्ता ठीक असल्याची खात्री करू शकले नाहीत. कृपया त्वरित त्यांची तपासणी करा."
        ),
    },
}


def canonical_language(code: str) -> str:
    key = code.strip().lower().replace("_", "-")
    return _LANGUAGE_ALIASES.get(key, key)


def normalize_language(code: str | None) -> str:
    """Map a language code or name onto a built-in language.

    Unknown or empty codes map to the default language.
    """
    if not code:
        return DEFAULT_LANGUAGE
    canonical = canonical_language(code)
    return canonical if canonical in _SPEECH_LOCALES else DEFAULT_LANGUAGE


def speech_locale(language: str) -> str:
    return _SPEECH_LOCALES[normalize_language(language)]


class PhraseCatalog:
    def __init__(self, phrases: dict[str, dict[str, str]] | None = None):
        source = DEFAULT_PHRASES if phrases is None else phrases
        self._phrases = {lang: dict(table) for lang, table in source.items()}

    @classmethod
    def load(cls, path: str | Path) -> "PhraseCatalog":
        """Build a catalog from the defaults overlaid with a YAML file.

        The file maps language -> phrase key -> text. Keys not present in the
        file keep their default text.
        """
        with open(path, encoding="utf-8") as f:
            overrides = yaml.safe_load(f) or {}

        catalog = cls()
        for language, table in overrides.items():
            target = catalog._phrases.setdefault(canonical_language(str(language)), {})
            for key, text in (table or {}).items():
                target[str(key).upper()] = str(text)

        logger.info(f"Phrase catalog loaded from {path}")
        return catalog

    @property
    def languages(self) -> list[str]:
        return sorted(self._phrases)

    def lookup(self, key: PhraseKey, language: str) -> str:
        table = self._phrases.get(canonical_language(language or DEFAULT_LANGUAGE), {})
        if key.value in table:
            return table[key.value]
        return self._phrases.get(DEFAULT_LANGUAGE, {}).get(key.value, key.value)


AUDIO_EXTENSIONS = (".wav", ".flac", ".ogg", ".mp3")


class AudioLibrary:
    """Recorded prompts laid out as <audio_dir>/<language>/<phrase_key>.<ext>."""

    def __init__(self, audio_dir: str | Path):
        self.audio_dir = Path(audio_dir)

    def find(self, key: PhraseKey, language: str) -> Path | None:
        """Path of a non-empty recording for the phrase, or None."""
        language_dir = self.audio_dir / canonical_language(language or DEFAULT_LANGUAGE)
        for extension in AUDIO_EXTENSIONS:
            path = language_dir / f"{key.value.lower()}{extension}"
            if path.is_file() and path.stat().st_size > 0:
                return path
        return None
