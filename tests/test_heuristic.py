from __future__ import annotations

import random

import pytest

from sentiment_api.heuristic import DEFAULT_LEXICON, HeuristicClassifier, KeywordLexicon


class _FixedRandom:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


def test_single_positive_cue_scores_point_eight():
    result = HeuristicClassifier().classify("I love this product")
    assert result.label == "POSITIVE"
    assert result.confidence == 0.8


def test_single_negative_cue_scores_point_eight():
    result = HeuristicClassifier().classify("O atendimento foi ruim")
    assert result.label == "NEGATIVE"
    assert result.confidence == 0.8


def test_repeated_cue_counts_once():
    result = HeuristicClassifier().classify("ótimo, ótimo, ótimo")
    assert result.label == "POSITIVE"
    assert result.confidence == 0.8


def test_matching_is_case_insensitive_substring():
    result = HeuristicClassifier().classify("EXCELENTE produto, RECOMENDO")
    assert result.label == "POSITIVE"
    assert result.confidence == 0.9


def test_confidence_is_capped():
    text = "good great excellent amazing awesome perfect"
    result = HeuristicClassifier().classify(text)
    assert result.label == "POSITIVE"
    assert result.confidence == 0.95


def test_majority_wins_over_minority():
    result = HeuristicClassifier().classify("awful, horrible and terrible, but one good thing")
    assert result.label == "NEGATIVE"
    assert result.confidence == 0.95


def test_tie_defaults_to_positive_with_injected_randomness():
    clf = HeuristicClassifier(rng=_FixedRandom(0.5))
    result = clf.classify("xyz qwerty 12345")
    assert result.label == "POSITIVE"
    assert result.confidence == pytest.approx(0.6)


def test_tie_upper_bound_is_exclusive():
    clf = HeuristicClassifier(rng=_FixedRandom(0.9999999999999999))
    result = clf.classify("good but awful")
    assert result.label == "POSITIVE"
    assert result.confidence < 0.7


def test_tie_confidence_stays_in_range_under_sampling():
    clf = HeuristicClassifier(rng=random.Random(7))
    for _ in range(500):
        result = clf.classify("xyz qwerty 12345")
        assert result.label == "POSITIVE"
        assert 0.5 <= result.confidence < 0.7


def test_classification_is_idempotent_outside_ties():
    clf = HeuristicClassifier()
    first = clf.classify("Péssimo serviço, odiei")
    second = clf.classify("Péssimo serviço, odiei")
    assert first == second
    assert first.label == "NEGATIVE"


def test_custom_lexicon_is_used():
    lexicon = KeywordLexicon(positive=frozenset({"yay"}), negative=frozenset({"meh"}))
    clf = HeuristicClassifier(lexicon=lexicon)
    assert clf.classify("meh meh").label == "NEGATIVE"
    assert clf.count_hits("yay and meh") == (1, 1)


def test_lexicon_rejects_shared_cues():
    with pytest.raises(ValueError, match="both positive and negative"):
        KeywordLexicon(positive=frozenset({"ok"}), negative=frozenset({"ok"}))


def test_default_lexicon_is_lowercase():
    for cue in DEFAULT_LEXICON.positive | DEFAULT_LEXICON.negative:
        assert cue == cue.lower()


@pytest.mark.parametrize(
    "text",
    ["Vou ao cinema no sábado", "whatever you say", "comprei uma ameixa", "a bomba explodiu", "lost my glove"],
)
def test_unrelated_words_do_not_trigger_cues(text):
    assert HeuristicClassifier().count_hits(text) == (0, 0)
