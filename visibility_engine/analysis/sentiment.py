"""Sentiment Classifier - Pipeline Step 6.

Keyword-driven sentiment for the sentences that mention a brand:
  - positive keyword +0.4, negative keyword -0.4 (whole-word match)
  - with a negation word in the sentence, positive hits count -0.2 and
    negative hits +0.2
  - sentence score clamped to [-1, 1]

A brand's response-level sentiment is the mean of its sentence scores.
"""

from __future__ import annotations

import re

from visibility_engine.analysis.types import Sentence, SentimentLabel, SentimentResult

POSITIVE_KEYWORDS = (
    "best", "excellent", "great", "top", "leading", "trusted", "reliable",
    "recommended", "popular", "strong", "superior", "outstanding", "premier",
    "robust", "comprehensive", "flexible", "innovative", "powerful", "advanced",
    "seamless", "easy", "simple", "efficient", "effective", "preferred", "ideal",
    "unmatched", "favored", "recognized", "renowned", "good", "quality", "solid",
    "worthy", "valuable", "beneficial", "helpful", "useful", "proven", "established",
    "successful", "well-regarded", "impressive", "notable", "advantageous",
    "promising", "suitable", "attractive", "competitive",
)

NEGATIVE_KEYWORDS = (
    "bad", "poor", "worst", "weak", "limited", "lacking", "difficult",
    "complicated", "expensive", "costly", "slow", "unreliable", "problematic",
    "issues", "problems", "concerns", "drawbacks", "disadvantages", "limitations",
    "struggles", "fails", "inferior", "outdated", "challenging", "complex",
    "questionable", "unclear", "insufficient", "inadequate", "substandard",
    "disappointing", "concerning", "troublesome", "risky", "uncertain",
    "fragile", "unstable", "inefficient", "ineffective", "unsuitable", "inappropriate",
)

NEGATION_WORDS = (
    "not", "no", "never", "none", "neither", "barely", "hardly", "scarcely", "rarely", "seldom",
)

POSITIVE_HIT = 0.4
NEGATIVE_HIT = -0.4
NEGATED_POSITIVE_HIT = -0.2
NEGATED_NEGATIVE_HIT = 0.2

SENTENCE_THRESHOLD = 0.2
RESPONSE_THRESHOLD = 0.1


def _word_pattern(words: tuple[str, ...]) -> re.Pattern:
    alternation = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"(?<![\w-])(?:{alternation})(?![\w-])", re.IGNORECASE)


_POSITIVE = _word_pattern(POSITIVE_KEYWORDS)
_NEGATIVE = _word_pattern(NEGATIVE_KEYWORDS)
_NEGATION = re.compile(rf"\b(?:{'|'.join(NEGATION_WORDS)})\b|\b\w+n['’]t\b", re.IGNORECASE)


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


def _hits(pattern: re.Pattern, text: str) -> list[str]:
    # Each keyword counts once per sentence
    return list(dict.fromkeys(m.group(0).lower() for m in pattern.finditer(text)))


def classify_sentence(text: str) -> SentimentResult:
    """Score one sentence."""
    positives = _hits(_POSITIVE, text)
    negatives = _hits(_NEGATIVE, text)
    if not positives and not negatives:
        return SentimentResult()

    negated = bool(_NEGATION.search(text))
    score = 0.0
    drivers: list[str] = []
    went_up = went_down = False

    for word in positives:
        if negated:
            score += NEGATED_POSITIVE_HIT
            drivers.append(f"-{word} (negated)")
            went_down = True
        else:
            score += POSITIVE_HIT
            drivers.append(f"+{word}")
            went_up = True

    for word in negatives:
        if negated:
            score += NEGATED_NEGATIVE_HIT
            drivers.append(f"+{word} (negated)")
            went_up = True
        else:
            score += NEGATIVE_HIT
            drivers.append(f"-{word}")
            went_down = True

    score = round(_clamp(score), 6)
    if score > SENTENCE_THRESHOLD:
        label = SentimentLabel.POSITIVE
    elif score < -SENTENCE_THRESHOLD:
        label = SentimentLabel.NEGATIVE
    elif went_up and went_down:
        label = SentimentLabel.MIXED
    else:
        label = SentimentLabel.NEUTRAL

    return SentimentResult(label=label, score=score, drivers=tuple(drivers))


def classify_response(sentences: tuple[Sentence, ...], driver_limit: int = 5) -> SentimentResult:
    """Roll up a brand's mentioning sentences into one response-level result.

    No sentences means neutral / 0.
    """
    if not sentences:
        return SentimentResult()

    results = [classify_sentence(s.text) for s in sentences]
    score = round(_clamp(sum(r.score for r in results) / len(results)), 6)

    if score > RESPONSE_THRESHOLD:
        label = SentimentLabel.POSITIVE
    elif score < -RESPONSE_THRESHOLD:
        label = SentimentLabel.NEGATIVE
    elif any(r.label == SentimentLabel.POSITIVE for r in results) and any(
        r.label == SentimentLabel.NEGATIVE for r in results
    ):
        label = SentimentLabel.MIXED
    else:
        label = SentimentLabel.NEUTRAL

    drivers = [d for r in results for d in r.drivers]
    return SentimentResult(label=label, score=score, drivers=tuple(drivers[:driver_limit]))
