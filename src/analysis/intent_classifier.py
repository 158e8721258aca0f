"""
Intent classifier

Maps recognizer candidates to AFFIRMATIVE / NEGATIVE / UNKNOWN for a
language. Recall for "I'm fine" is traded for precision: anything that is not
a clear affirmative escalates.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import yaml

from src.speech.phrases import DEFAULT_LANGUAGE, canonical_language

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 3
NEGATION_WINDOW = 2

# whitespace and punctuation, including the Devanagari danda
_TOKEN_SPLIT = re.compile(r"[\s,.;:!?\"()\[\]{}|/\\…।॥-]+")


class Intent(Enum):
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class KeywordSet:
    affirmative: tuple[str, ...]
    negations: tuple[str, ...]
    negating_phrases: tuple[str, ...]
    distress: tuple[str, ...] = ()
    stopwords: tuple[str, ...] = ()
    # True when the negator follows the adjective ("theek nahi")
    negation_after: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "KeywordSet":
        return cls(
            affirmative=tuple(data.get("affirmative", ())),
            negations=tuple(data.get("negations", ())),
            negating_phrases=tuple(data.get("negating_phrases", ())),
            distress=tuple(data.get("distress", ())),
            stopwords=tuple(data.get("stopwords", ())),
            negation_after=bool(data.get("negation_after", False)),
        )


DEFAULT_KEYWORDS: dict[str, KeywordSet] = {
    "english": KeywordSet(
        affirmative=(
            "yes", "yeah", "yep", "ok", "okay", "fine", "alright", "all right",
            "good", "better", "better now", "i'm okay", "i am fine", "i'm good",
            "i'm safe", "safe", "nothing happened", "not hurt", "not injured",
            "i can get up",
        ),
        negations=("no", "not", "don't", "cant", "can't", "won't", "cannot", "isn't", "never"),
        negating_phrases=(
            "not ok", "not okay", "not fine", "not good", "not alright", "not all right",
            "not safe", "not better", "not really", "no i'm not", "no i am not",
        ),
        distress=(
            "help", "emergency", "ambulance", "unsafe", "can't get up", "cannot get up",
            "hurt", "pain", "broken", "bleeding", "injured", "dizzy",
        ),
        stopwords=("the", "and", "all", "now", "can", "get", "you", "are", "was", "nothing"),
    ),
    "hinglish": KeywordSet(
        affirmative=(
            "yes", "haan", "han", "ha", "haa", "हां", "हा", "ji", "jee", "जी", "haa ji",
            "ji haa", "bilkul", "ok", "okay", "theek", "thik", "ठीक", "थीक", "thik hai",
            "mai thik hu", "thik hu", "mai thik hoon", "theek hoon", "thik hoon",
        ),
        negations=("nahi", "nahin", "nai", "na", "mat", "no", "नहीं", "ना"),
        negating_phrases=(
            "nahi theek", "theek nahi", "thik nahi", "nahi thik", "ठीक नहीं", "not ok", "not okay",
        ),
        distress=(
            "bachao", "madad", "dard", "help", "बचाओ", "मदद", "दर्द", "chot",
            "gir gaya", "gir gayi",
        ),
        stopwords=("hai", "main", "mai", "aap", "kya", "the"),
        negation_after=True,
    ),
    "marathi": KeywordSet(
        affirmative=(
            "ho", "hoy", "हो", "होय", "barobar", "ho barobar", "thik ahe", "mi thik ahe",
            "ठीक", "thik", "bara ahe", "bara", "बरं", "बरा", "mala kahi jhala nahi",
            "mi padlo nahi", "kahi nahi",
        ),
        negations=("nahi", "nako", "no", "नाही", "नको"),
        negating_phrases=(
            "thik nahi", "bara nahi", "ठीक नाही", "बरं नाही", "barobar nahi", "not ok", "not okay",
        ),
        distress=("vachva", "madat", "dukhte", "help", "वाचवा", "मदत", "दुखते"),
        stopwords=("ahe", "aahe", "mala", "kahi", "the"),
        negation_after=True,
    ),
}


@dataclass(frozen=True)
class Classification:
    intent: Intent
    matched: str | None = None
    candidate: str | None = None


def tokenize(text: str) -> list[str]:
    return [token for token in _TOKEN_SPLIT.split(text) if token]


class IntentClassifier:
    def __init__(self, keywords: dict[str, KeywordSet] | None = None):
        self.keywords = dict(DEFAULT_KEYWORDS if keywords is None else keywords)

    @classmethod
    def load(cls, path: str | Path) -> "IntentClassifier":
        """Defaults overlaid with a YAML file mapping language -> keyword lists."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        keywords = dict(DEFAULT_KEYWORDS)
        for language, table in data.items():
            keywords[canonical_language(str(language))] = KeywordSet.from_dict(table or {})
        logger.info(f"Intent keywords loaded from {path}")
        return cls(keywords)

    def keywords_for(self, language: str) -> KeywordSet:
        fallback = self.keywords[DEFAULT_LANGUAGE]
        return self.keywords.get(canonical_language(language or DEFAULT_LANGUAGE), fallback)

    def classify(self, candidates: list[str] | tuple[str, ...], language: str) -> Intent:
        return self.match(candidates, language).intent

    def match(self, candidates: list[str] | tuple[str, ...], language: str) -> Classification:
        keywords = self.keywords_for(language)
        lowered = [c.casefold().strip() for c in candidates if c and c.strip()]
        if not lowered:
            return Classification(Intent.UNKNOWN)

        found = self._phrase_match(lowered, keywords) or self._token_match(lowered, keywords)
        if found is None:
            return Classification(Intent.UNKNOWN)

        candidate, matched = found
        negated = self._negated(lowered, keywords)
        if negated is not None:
            logger.info(f"Negation detected in response: '{negated}'")
            return Classification(Intent.NEGATIVE, matched=matched, candidate=negated)

        return Classification(Intent.AFFIRMATIVE, matched=matched, candidate=candidate)

    def _phrase_match(
        self, candidates: list[str], keywords: KeywordSet
    ) -> tuple[str, str] | None:
        for candidate in candidates:
            for keyword in keywords.affirmative:
                if _contains_phrase(candidate, keyword):
                    return candidate, keyword
        return None

    def _token_match(
        self, candidates: list[str], keywords: KeywordSet
    ) -> tuple[str, str] | None:
        excluded = set(keywords.negations) | set(keywords.stopwords)
        # multi-word keywords only take part in the phrase pass ("hurt" is not "not hurt")
        words = [k for k in keywords.affirmative if " " not in k]
        for candidate in candidates:
            for token in tokenize(candidate):
                if len(token) < MIN_TOKEN_LENGTH or token in excluded:
                    continue
                for keyword in words:
                    if token in keyword:
                        return candidate, keyword
                    if len(keyword) >= MIN_TOKEN_LENGTH and keyword in token:
                        return candidate, keyword
        return None

    def _negated(self, candidates: list[str], keywords: KeywordSet) -> str | None:
        negations = set(keywords.negations)
        for candidate in candidates:
            tokens = tokenize(candidate)
            has_negation = any(token in negations for token in tokens)

            if has_negation and any(p in candidate for p in keywords.negating_phrases):
                return candidate
            if has_negation and self._negator_near_affirmative(tokens, keywords):
                return candidate
            if self._distressed(candidate, tokens, keywords):
                return candidate
        return None

    def _negator_near_affirmative(self, tokens: list[str], keywords: KeywordSet) -> bool:
        # bare "no"/"na" are interjections too often ("no, I'm fine"); skip them here
        negators = {n for n in keywords.negations if len(n) >= MIN_TOKEN_LENGTH}
        affirmative = set(keywords.affirmative)
        for i, token in enumerate(tokens):
            if token not in negators:
                continue
            after = tokens[i + 1 : i + 1 + NEGATION_WINDOW]
            before = tokens[max(0, i - NEGATION_WINDOW) : i]
            window = after + before if keywords.negation_after else after
            if any(word in affirmative for word in window):
                return True
        return False

    def _distressed(self, candidate: str, tokens: list[str], keywords: KeywordSet) -> bool:
        negations = set(keywords.negations)
        for word in keywords.distress:
            if " " in word:
                if word in candidate:
                    return True
                continue
            for i, token in enumerate(tokens):
                # "not hurt" is reassurance, "hurts" is not
                if token.startswith(word) and (i == 0 or tokens[i - 1] not in negations):
                    return True
        return False


def _contains_phrase(text: str, phrase: str) -> bool:
    """Substring match; short keywords must match a whole token."""
    if len(phrase) < MIN_TOKEN_LENGTH:
        return phrase in tokenize(text)
    return phrase in text
