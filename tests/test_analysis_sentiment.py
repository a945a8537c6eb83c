"""Tests for the Sentiment Classifier."""

import pytest

from visibility_engine.analysis.segmenter import segment
from visibility_engine.analysis.sentiment import classify_response, classify_sentence
from visibility_engine.analysis.types import SentimentLabel


class TestClassifySentence:
    def test_positive(self):
        result = classify_sentence("HDFC Bank is the best choice for students.")
        assert result.label == SentimentLabel.POSITIVE
        assert result.score == pytest.approx(0.4)
        assert result.drivers == ("+best",)

    def test_negative_multiple_keywords(self):
        result = classify_sentence("ICICI Bank has expensive fees and slow support.")
        assert result.label == SentimentLabel.NEGATIVE
        assert result.score == pytest.approx(-0.8)
        assert result.drivers == ("-expensive", "-slow")

    def test_negated_positive(self):
        result = classify_sentence("Visa is not the best option here.")
        assert result.score == pytest.approx(-0.2)
        assert result.label == SentimentLabel.NEUTRAL
        assert result.drivers == ("-best (negated)",)

    def test_contraction_negates(self):
        result = classify_sentence("The approval process isn't slow.")
        assert result.score == pytest.approx(0.2)
        assert result.drivers == ("+slow (negated)",)

    def test_mixed(self):
        result = classify_sentence("Great rewards but expensive fees.")
        assert result.score == pytest.approx(0.0)
        assert result.label == SentimentLabel.MIXED

    def test_keyword_counts_once(self):
        assert classify_sentence("Best rates, best perks, best service.").score == pytest.approx(0.4)

    def test_clamped(self):
        result = classify_sentence("The best, excellent, great, leading, trusted and reliable card.")
        assert result.score == 1.0

    def test_whole_words_only(self):
        assert classify_sentence("Banks bestow topics on customers.").drivers == ()

    def test_hyphenated_keyword(self):
        assert classify_sentence("A well-regarded issuer.").drivers == ("+well-regarded",)

    def test_no_keywords(self):
        result = classify_sentence("Visa operates a payment network.")
        assert result.label == SentimentLabel.NEUTRAL
        assert result.score == 0.0
        assert result.drivers == ()


class TestClassifyResponse:
    def test_mean_of_sentences(self):
        sentences = segment("Visa is the best. Visa has expensive and slow support.")
        result = classify_response(sentences)
        assert result.score == pytest.approx(-0.2)
        assert result.label == SentimentLabel.NEGATIVE
        assert result.drivers == ("+best", "-expensive", "-slow")

    def test_driver_limit(self):
        sentences = segment("Visa is the best. Visa has expensive and slow support.")
        assert classify_response(sentences, driver_limit=2).drivers == ("+best", "-expensive")

    def test_mixed_response(self):
        sentences = segment("Visa is great. Visa is expensive.")
        result = classify_response(sentences)
        assert result.score == pytest.approx(0.0)
        assert result.label == SentimentLabel.MIXED

    def test_no_sentences_is_neutral(self):
        result = classify_response(())
        assert result.label == SentimentLabel.NEUTRAL
        assert result.score == 0.0
