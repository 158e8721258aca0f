import pytest

from src.analysis.intent_classifier import (
    Intent,
    IntentClassifier,
    KeywordSet,
    tokenize,
)


class TestEnglish:
    @pytest.fixture
    def classifier(self):
        return IntentClassifier()

    @pytest.mark.parametrize(
        "utterance",
        ["yes I am fine", "I'm okay", "yeah", "all right", "I'm good thanks", "nothing happened"],
    )
    def test_affirmative(self, classifier, utterance):
        assert classifier.classify([utterance], "english") == Intent.AFFIRMATIVE

    @pytest.mark.parametrize(
        "utterance",
        [
            "I am not okay",
            "not fine",
            "no I'm not okay",
            "I'm not good",
            "okay help me",
            "ok I can't get up",
        ],
    )
    def test_negative(self, classifier, utterance):
        assert classifier.classify([utterance], "english") == Intent.NEGATIVE

    @pytest.mark.parametrize("utterance", ["what happened", "hello", "I'm hurt", "mmm"])
    def test_unknown(self, classifier, utterance):
        assert classifier.classify([utterance], "english") == Intent.UNKNOWN

    @pytest.mark.parametrize(
        "utterance", ["my eyes hurt", "my right leg is broken", "okay but in pain"]
    )
    def test_injury_words_override_accidental_affirmative(self, classifier, utterance):
        assert classifier.classify([utterance], "english") == Intent.NEGATIVE

    @pytest.mark.parametrize("utterance", ["I'm not hurt", "fine, not injured"])
    def test_negated_injury_word_stays_affirmative(self, classifier, utterance):
        assert classifier.classify([utterance], "english") == Intent.AFFIRMATIVE

    def test_empty_candidates_are_unknown(self, classifier):
        assert classifier.classify([], "english") == Intent.UNKNOWN
        assert classifier.classify(["", "   "], "english") == Intent.UNKNOWN

    def test_negation_in_any_candidate_wins(self, classifier):
        result = classifier.match(["I am okay", "I am not okay"], "english")
        assert result.intent == Intent.NEGATIVE
        assert result.candidate == "i am not okay"

    def test_match_reports_keyword(self, classifier):
        result = classifier.match(["Yes I am fine"], "english")
        assert result.intent == Intent.AFFIRMATIVE
        assert result.matched == "yes"
        assert result.candidate == "yes i am fine"

    def test_classification_is_repeatable(self, classifier):
        candidates = ["I am not okay", "I am okay"]
        first = classifier.match(candidates, "english")
        second = classifier.match(candidates, "english")
        assert first == second

    def test_short_keyword_needs_whole_token(self, classifier):
        # "ok" must not match inside "book"
        assert classifier.classify(["book"], "english") == Intent.UNKNOWN

    def test_partial_recognizer_token_matches(self, classifier):
        # garbled "alri" from a cut-off "alright"
        assert classifier.classify(["alri"], "english") == Intent.AFFIRMATIVE


class TestOtherLanguages:
    @pytest.fixture
    def classifier(self):
        return IntentClassifier()

    @pytest.mark.parametrize(
        "utterance", ["haan main theek hoon", "ji haa", "थीक है", "bilkul"]
    )
    def test_hinglish_affirmative(self, classifier, utterance):
        assert classifier.classify([utterance], "hinglish") == Intent.AFFIRMATIVE

    @pytest.mark.parametrize(
        "utterance", ["main theek nahi hoon", "ठीक नहीं", "ok bachao", "thik nahi hai"]
    )
    def test_hinglish_negative(self, classifier, utterance):
        assert classifier.classify([utterance], "hinglish") == Intent.NEGATIVE

    @pytest.mark.parametrize("utterance", ["main gir gaya hoon", "hoon", "मैं गिर गया हूँ"])
    def test_hinglish_first_person_statement_is_not_affirmative(self, classifier, utterance):
        assert classifier.classify([utterance], "hinglish") == Intent.UNKNOWN

    def test_hinglish_fall_report_after_yes_is_negative(self, classifier):
        assert classifier.classify(["haan main gir gaya hoon"], "hinglish") == Intent.NEGATIVE

    @pytest.mark.parametrize("utterance", ["ho mi thik ahe", "होय", "mala kahi jhala nahi"])
    def test_marathi_affirmative(self, classifier, utterance):
        assert classifier.classify([utterance], "marathi") == Intent.AFFIRMATIVE

    @pytest.mark.parametrize("utterance", ["mi thik nahi", "ठीक नाही", "bara nahi"])
    def test_marathi_negative(self, classifier, utterance):
        assert classifier.classify([utterance], "marathi") == Intent.NEGATIVE

    def test_language_alias(self, classifier):
        assert classifier.classify(["haan"], "hi-IN") == Intent.AFFIRMATIVE

    def test_unknown_language_uses_english(self, classifier):
        assert classifier.classify(["yes"], "klingon") == Intent.AFFIRMATIVE


class TestKeywordOverrides:
    def test_load_overlays_defaults(self, tmp_path):
        path = tmp_path / "keywords.yaml"
        path.write_text(
            "tamil:\n"
            "  affirmative: [aama, seri]\n"
            "  negations: [illa]\n"
            "  negating_phrases: [seri illa]\n"
            "  negation_after: true\n",
            encoding="utf-8",
        )

        classifier = IntentClassifier.load(path)

        assert classifier.classify(["aama"], "tamil") == Intent.AFFIRMATIVE
        assert classifier.classify(["seri illa"], "tamil") == Intent.NEGATIVE
        assert classifier.classify(["yes"], "english") == Intent.AFFIRMATIVE

    def test_custom_keyword_set(self):
        keywords = {"english": KeywordSet(affirmative=("roger",), negations=(), negating_phrases=())}
        classifier = IntentClassifier(keywords)
        assert classifier.classify(["roger that"], "english") == Intent.AFFIRMATIVE
        assert classifier.classify(["yes"], "english") == Intent.UNKNOWN


def test_tokenize_splits_punctuation_and_danda():
    assert tokenize("yes, I'm fine!") == ["yes", "I'm", "fine"]
    assert tokenize("मी ठीक आहे।") == ["मी", "ठीक", "आहे"]
