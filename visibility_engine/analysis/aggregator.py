"""Scope Aggregator: reduces per-response scores into ranked brand metrics.

For one scope (overall, or one provider / topic / persona):
  - visibility_score  = distinct prompts with a mention / total prompts × 100
  - share_of_voice    = brand mentions / all brands' mentions × 100
  - avg_position      = mean first sentence position over mentioning responses
  - depth_of_mention  = Σ words × exp(-position / total_sentences) over
                        mentioning sentences / Σ words of all responses × 100
  - citation_share    = Σ confidence × type weight / same over all brands × 100
  - sentiment         = mean response score and label tallies

Every metric is ranked across the brand set: rank 1 is the highest value,
except avg_position where rank 1 is the lowest and brands that never
appear come last. Ties go to the lower brand_id. Ranks are computed on the
rounded published values.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from visibility_engine.analysis.config import DEFAULT_CONFIG, EngineConfig
from visibility_engine.analysis.errors import EmptyBrandListError
from visibility_engine.analysis.types import (
    AggregatedBrandMetric,
    AggregationScope,
    BrandResponseScore,
    CitationType,
    ScopeMetrics,
    SentimentBreakdown,
    SentimentLabel,
)

logger = logging.getLogger(__name__)

PERCENT_DIGITS = 2
DEPTH_DIGITS = 4


def safe_percent(numerator: float, denominator: float) -> float:
    """numerator / denominator × 100, or 0 when the denominator is zero."""
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100


def safe_mean(values: list[float]) -> float:
    """Arithmetic mean, or 0 for an empty list."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def position_weight(position: int, total_sentences: int) -> float:
    """exp(-position / total_sentences); earlier sentences weigh more."""
    if total_sentences <= 0:
        return 0.0
    return math.exp(-position / total_sentences)


@dataclass
class _BrandTotals:
    """Raw, unrounded accumulators for one brand."""

    appearances: int = 0
    mentions: int = 0
    positions: list[int] = field(default_factory=list)
    depth_weight: float = 0.0
    citation_weight: float = 0.0
    brand_citations: int = 0
    earned_citations: int = 0
    social_citations: int = 0
    sentiment_scores: list[float] = field(default_factory=list)
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    mixed: int = 0
    count_1st: int = 0
    count_2nd: int = 0
    count_3rd: int = 0


def _accumulate(brand_scores: list[BrandResponseScore], config: EngineConfig) -> _BrandTotals:
    totals = _BrandTotals()
    prompts: set[str] = set()

    for score in brand_scores:
        for citation in score.citations:
            weight = config.citation_weights.for_type(citation.type)
            if weight == 0:
                continue
            totals.citation_weight += citation.confidence * weight
            if citation.type == CitationType.BRAND:
                totals.brand_citations += 1
            elif citation.type == CitationType.EARNED:
                totals.earned_citations += 1
            else:
                totals.social_citations += 1

        if not score.mentioned:
            continue

        prompts.add(score.prompt_id)
        totals.mentions += score.mention_count
        totals.positions.append(score.first_position)
        totals.sentiment_scores.append(score.sentiment_score)

        for sentence in score.sentences:
            totals.depth_weight += sentence.word_count * position_weight(
                sentence.position, sentence.total_sentences_in_response
            )

        if score.sentiment_label == SentimentLabel.POSITIVE:
            totals.positive += 1
        elif score.sentiment_label == SentimentLabel.NEGATIVE:
            totals.negative += 1
        elif score.sentiment_label == SentimentLabel.MIXED:
            totals.mixed += 1
        else:
            totals.neutral += 1

        if score.first_position == 1:
            totals.count_1st += 1
        elif score.first_position == 2:
            totals.count_2nd += 1
        elif score.first_position == 3:
            totals.count_3rd += 1

    totals.appearances = len(prompts)
    return totals


def rank_descending(values: dict[str, float]) -> dict[str, int]:
    """Rank 1 = highest value; ties by brand_id ascending."""
    ordered = sorted(values, key=lambda bid: (-values[bid], bid))
    return {bid: i for i, bid in enumerate(ordered, start=1)}


def rank_positions(values: dict[str, float], appeared: dict[str, bool]) -> dict[str, int]:
    """Rank 1 = lowest average position; brands that never appeared go last."""
    ordered = sorted(values, key=lambda bid: (not appeared[bid], values[bid], bid))
    return {bid: i for i, bid in enumerate(ordered, start=1)}


def resolve_total_prompts(scope: AggregationScope, observed: int, total_prompts: int | None) -> int:
    """Default to the observed distinct prompt count; never go below it."""
    if total_prompts is None:
        return observed
    if total_prompts < observed:
        logger.warning(
            "Scope %s: total_prompts=%d is below the %d distinct prompts observed, using %d",
            scope,
            total_prompts,
            observed,
            observed,
        )
        return observed
    return total_prompts


def aggregate_scope(
    scope: AggregationScope,
    scores,
    brands,
    total_prompts: int | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
    run_id: str | None = None,
    computed_at: datetime | None = None,
) -> ScopeMetrics:
    """Aggregate score records for one scope into ranked brand metrics.

    Args:
        scope: Which slice of the scores to aggregate.
        scores: BrandResponseScore records of the batch, any scope.
        brands: The run's brand candidates; metrics are produced for each.
        total_prompts: Prompt count used for visibility. Defaults to the
            number of distinct prompts present in the scope.
        config: Engine constants (citation weights).
        run_id: Identifier of this computation; generated when omitted.
        computed_at: Timestamp of this computation; now (UTC) when omitted.

    Raises:
        EmptyBrandListError: when brands is empty or None.
    """
    if not brands:
        raise EmptyBrandListError()
    brands = tuple(brands)

    scoped = [s for s in scores if scope.matches(s)]
    prompt_ids = {s.prompt_id for s in scoped}
    prompts = resolve_total_prompts(scope, len(prompt_ids), total_prompts)

    # Every brand shares the response's total word count; count each response once
    response_words: dict[str, int] = {}
    for s in scoped:
        response_words.setdefault(s.response_id, s.total_word_count)
    total_words = sum(response_words.values())

    by_brand: dict[str, list[BrandResponseScore]] = {b.brand_id: [] for b in brands}
    for s in scoped:
        if s.brand_id in by_brand:
            by_brand[s.brand_id].append(s)

    totals = {bid: _accumulate(items, config) for bid, items in by_brand.items()}
    all_mentions = sum(t.mentions for t in totals.values())
    all_citation_weight = sum(t.citation_weight for t in totals.values())

    visibility = {bid: round(safe_percent(t.appearances, prompts), PERCENT_DIGITS) for bid, t in totals.items()}
    share_of_voice = {
        bid: round(safe_percent(t.mentions, all_mentions), PERCENT_DIGITS) for bid, t in totals.items()
    }
    avg_position = {bid: round(safe_mean(t.positions), PERCENT_DIGITS) for bid, t in totals.items()}
    depth = {bid: round(safe_percent(t.depth_weight, total_words), DEPTH_DIGITS) for bid, t in totals.items()}
    citation_share = {
        bid: round(safe_percent(t.citation_weight, all_citation_weight), PERCENT_DIGITS)
        for bid, t in totals.items()
    }

    visibility_rank = rank_descending(visibility)
    mention_rank = rank_descending({bid: t.mentions for bid, t in totals.items()})
    sov_rank = rank_descending(share_of_voice)
    position_rank = rank_positions(avg_position, {bid: bool(t.positions) for bid, t in totals.items()})
    depth_rank = rank_descending(depth)
    citation_rank = rank_descending(citation_share)
    rank_1st = rank_descending({bid: t.count_1st for bid, t in totals.items()})
    rank_2nd = rank_descending({bid: t.count_2nd for bid, t in totals.items()})
    rank_3rd = rank_descending({bid: t.count_3rd for bid, t in totals.items()})

    metrics: list[AggregatedBrandMetric] = []
    for brand in brands:
        bid = brand.brand_id
        if bid not in totals or any(m.brand_id == bid for m in metrics):
            continue
        t = totals[bid]
        breakdown = SentimentBreakdown(positive=t.positive, neutral=t.neutral, negative=t.negative, mixed=t.mixed)
        metrics.append(
            AggregatedBrandMetric(
                brand_id=bid,
                brand_name=brand.brand_name,
                is_owned_brand=brand.is_owned_brand,
                visibility_score=visibility[bid],
                visibility_rank=visibility_rank[bid],
                total_mentions=t.mentions,
                mention_rank=mention_rank[bid],
                share_of_voice=share_of_voice[bid],
                share_of_voice_rank=sov_rank[bid],
                avg_position=avg_position[bid],
                avg_position_rank=position_rank[bid],
                depth_of_mention=depth[bid],
                depth_rank=depth_rank[bid],
                citation_share=citation_share[bid],
                citation_share_rank=citation_rank[bid],
                brand_citations_total=t.brand_citations,
                earned_citations_total=t.earned_citations,
                social_citations_total=t.social_citations,
                total_citations=t.brand_citations + t.earned_citations + t.social_citations,
                sentiment_score=round(safe_mean(t.sentiment_scores), PERCENT_DIGITS),
                sentiment_breakdown=breakdown,
                sentiment_share=round(safe_percent(t.positive, breakdown.total), PERCENT_DIGITS),
                count_1st=t.count_1st,
                count_2nd=t.count_2nd,
                count_3rd=t.count_3rd,
                rank_1st=rank_1st[bid],
                rank_2nd=rank_2nd[bid],
                rank_3rd=rank_3rd[bid],
                total_appearances=t.appearances,
            )
        )

    metrics.sort(key=lambda m: m.visibility_rank)

    tested = [s.tested_at for s in scoped if s.tested_at is not None]
    result = ScopeMetrics(
        scope=scope,
        run_id=run_id or uuid.uuid4().hex,
        computed_at=computed_at or datetime.now(timezone.utc),
        total_prompts=prompts,
        total_responses=len(response_words),
        total_brands=len(metrics),
        date_from=min(tested) if tested else None,
        date_to=max(tested) if tested else None,
        response_ids=tuple(sorted(response_words)),
        brand_metrics=tuple(metrics),
    )

    logger.info(
        "Aggregated scope %s: prompts=%d responses=%d brands=%d mentions=%d",
        scope,
        result.total_prompts,
        result.total_responses,
        result.total_brands,
        all_mentions,
    )
    return result
