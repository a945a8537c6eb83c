"""Response Scorer - Pipeline Step 7.

Composes segmentation, mention detection, citation classification and
sentiment into one immutable BrandResponseScore per (response, brand).

Scoring is a pure function of (RawResponse, brand list, config). A degraded
sub-step (a bad URL, a sentence without sentiment keywords, an empty
response) yields zero values for that part, never an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from visibility_engine.analysis.brand_matcher import BrandMatcher, build_matchers, detect_mentions
from visibility_engine.analysis.citation_classifier import extract_citations
from visibility_engine.analysis.config import DEFAULT_CONFIG, EngineConfig
from visibility_engine.analysis.errors import EmptyBrandListError
from visibility_engine.analysis.preprocessor import preprocess, strip_think_blocks
from visibility_engine.analysis.segmenter import segment
from visibility_engine.analysis.sentiment import classify_response
from visibility_engine.analysis.types import (
    BrandCandidate,
    BrandResponseScore,
    Citation,
    CitationType,
    RawResponse,
    RejectedUrl,
    SanitizationFlag,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredResponse:
    """Scores for one response plus what was dropped along the way."""

    response_id: str
    scores: tuple[BrandResponseScore, ...]
    sanitization_flag: SanitizationFlag = SanitizationFlag.CLEAN
    rejected_urls: tuple[RejectedUrl, ...] = ()
    unattributed_citations: tuple[Citation, ...] = ()  # Type "none", excluded from totals


def _require_brands(brands) -> tuple[BrandCandidate, ...]:
    if not brands:
        raise EmptyBrandListError()
    return tuple(brands)


def _empty_score(response: RawResponse, brand: BrandCandidate) -> BrandResponseScore:
    return BrandResponseScore(
        response_id=response.response_id,
        brand_id=brand.brand_id,
        prompt_id=response.prompt_id,
        provider_id=response.provider_id,
        topic_id=response.topic_id,
        persona_id=response.persona_id,
        tested_at=response.tested_at,
    )


def score_with_matchers(
    response: RawResponse,
    matchers: tuple[BrandMatcher, ...],
    config: EngineConfig = DEFAULT_CONFIG,
) -> ScoredResponse:
    """Score one response against prebuilt brand matchers."""
    if not matchers:
        raise EmptyBrandListError()

    sanitized = preprocess(response.text)
    sentences = segment(sanitized.text)

    if not sentences:
        logger.info(
            "Scoring complete: response=%s brands=%d mentioned=0 citations=0 (%s)",
            response.response_id,
            len(matchers),
            sanitized.flag.value,
        )
        return ScoredResponse(
            response_id=response.response_id,
            scores=tuple(_empty_score(response, m.brand) for m in matchers),
            sanitization_flag=sanitized.flag,
        )

    total_word_count = sum(s.word_count for s in sentences)
    # Citations come from the raw text, minus links inside reasoning blocks
    citations, rejected = extract_citations(
        strip_think_blocks(response.text),
        matchers,
        config,
        native_urls=response.native_urls,
    )

    scores: list[BrandResponseScore] = []
    for matcher in matchers:
        match = detect_mentions(sentences, matcher)
        sentiment = classify_response(match.sentences, config.sentiment_driver_limit)
        brand_citations = tuple(
            c for c in citations if c.brand_id == matcher.brand_id and c.type != CitationType.NONE
        )
        scores.append(
            BrandResponseScore(
                response_id=response.response_id,
                brand_id=matcher.brand_id,
                prompt_id=response.prompt_id,
                provider_id=response.provider_id,
                topic_id=response.topic_id,
                persona_id=response.persona_id,
                tested_at=response.tested_at,
                mentioned=match.mentioned,
                first_position=match.first_position,
                mention_count=match.mention_count,
                sentences=match.sentences,
                total_word_count=total_word_count,
                total_sentences=len(sentences),
                citations=brand_citations,
                sentiment_label=sentiment.label,
                sentiment_score=sentiment.score,
                sentiment_drivers=sentiment.drivers,
            )
        )

    unattributed = tuple(c for c in citations if c.type == CitationType.NONE)
    logger.info(
        "Scoring complete: response=%s brands=%d mentioned=%d citations=%d rejected=%d",
        response.response_id,
        len(scores),
        sum(1 for s in scores if s.mentioned),
        len(citations) - len(unattributed),
        len(rejected),
    )

    return ScoredResponse(
        response_id=response.response_id,
        scores=tuple(scores),
        sanitization_flag=sanitized.flag,
        rejected_urls=rejected,
        unattributed_citations=unattributed,
    )


def score_response_detailed(
    response: RawResponse,
    brands,
    config: EngineConfig = DEFAULT_CONFIG,
) -> ScoredResponse:
    """Like score_response, but also reports rejected and unattributed citations."""
    brands = _require_brands(brands)
    return score_with_matchers(response, build_matchers(brands), config)


def score_response(
    response: RawResponse,
    brands,
    config: EngineConfig = DEFAULT_CONFIG,
) -> tuple[BrandResponseScore, ...]:
    """Score one response for every brand, in brand-list order.

    Raises:
        EmptyBrandListError: when brands is empty or None.
    """
    return score_response_detailed(response, brands, config).scores
