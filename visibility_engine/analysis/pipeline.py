"""Batch Pipeline: parallel scoring and all-scopes aggregation.

  1. score_batch: score every response of a batch on a worker pool
  2. aggregate_all_scopes: aggregate the overall scope plus every provider,
     topic and persona present in the scores, each scope independently

Input:  RawResponse list + BrandCandidate list (+ EngineConfig)
Output: BrandResponseScore records, then one ScopeMetrics per scope
"""

from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone

from visibility_engine.analysis.aggregator import aggregate_scope
from visibility_engine.analysis.brand_matcher import build_matchers
from visibility_engine.analysis.config import DEFAULT_CONFIG, EngineConfig
from visibility_engine.analysis.errors import EmptyBrandListError
from visibility_engine.analysis.scoring import ScoredResponse, score_with_matchers
from visibility_engine.analysis.types import (
    AggregationScope,
    BrandResponseScore,
    RawResponse,
    ScopeKind,
    ScopeMetrics,
)
from visibility_engine.core.metrics import (
    CITATIONS_REJECTED,
    RESPONSES_SCORED,
    SCOPE_AGGREGATION_DURATION,
    SCOPE_AGGREGATIONS,
)

logger = logging.getLogger(__name__)


def record_scored(scored: ScoredResponse) -> None:
    """Update Prometheus counters for one scored response."""
    RESPONSES_SCORED.labels(flag=scored.sanitization_flag.value).inc()
    for rejected in scored.rejected_urls:
        CITATIONS_REJECTED.labels(reason=rejected.reason).inc()


def score_batch(
    responses: list[RawResponse],
    brands,
    config: EngineConfig = DEFAULT_CONFIG,
) -> tuple[BrandResponseScore, ...]:
    """Score a batch of responses concurrently.

    Output order is (response_id, brand-list order), independent of which
    worker finishes first.

    Raises:
        EmptyBrandListError: when brands is empty or None.
    """
    if not brands:
        raise EmptyBrandListError()
    brands = tuple(brands)
    if not responses:
        return ()

    matchers = build_matchers(brands)
    workers = min(config.max_workers, len(responses))
    logger.info("Scoring %d responses for %d brands (%d workers)", len(responses), len(brands), workers)

    # submission index -> result, so duplicate response ids keep a stable order
    results: dict[int, ScoredResponse] = {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_index = {
            executor.submit(score_with_matchers, response, matchers, config): i
            for i, response in enumerate(responses)
        }
        for future in as_completed(future_to_index):
            scored = future.result()
            record_scored(scored)
            results[future_to_index[future]] = scored

    ordered = sorted(results.items(), key=lambda item: (item[1].response_id, item[0]))
    return tuple(score for _, scored in ordered for score in scored.scores)


def discover_scopes(scores) -> list[AggregationScope]:
    """Overall scope first, then every provider, topic and persona seen, sorted."""
    scopes = [AggregationScope.overall()]
    for kind, attr in (
        (ScopeKind.PROVIDER, "provider_id"),
        (ScopeKind.TOPIC, "topic_id"),
        (ScopeKind.PERSONA, "persona_id"),
    ):
        values = sorted({getattr(s, attr) for s in scores if getattr(s, attr)})
        scopes.extend(AggregationScope(kind, v) for v in values)
    return scopes


def _aggregate_one(
    scope: AggregationScope,
    scores: tuple[BrandResponseScore, ...],
    brands: tuple,
    total_prompts: int | None,
    config: EngineConfig,
    run_id: str,
    computed_at: datetime,
) -> ScopeMetrics:
    start = time.monotonic()
    try:
        result = aggregate_scope(
            scope,
            scores,
            brands,
            total_prompts=total_prompts,
            config=config,
            run_id=run_id,
            computed_at=computed_at,
        )
    except Exception:
        SCOPE_AGGREGATIONS.labels(scope_kind=scope.kind.value, status="error").inc()
        raise
    SCOPE_AGGREGATIONS.labels(scope_kind=scope.kind.value, status="ok").inc()
    SCOPE_AGGREGATION_DURATION.labels(scope_kind=scope.kind.value).observe(time.monotonic() - start)
    return result


def aggregate_all_scopes(
    scores,
    brands,
    total_prompts: int | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
    run_id: str | None = None,
) -> tuple[ScopeMetrics, ...]:
    """Aggregate every scope of a batch in parallel.

    Args:
        scores: All BrandResponseScore records of the batch.
        brands: The run's brand candidates.
        total_prompts: Prompts in the analysis run. Applies to the overall
            scope only; provider, topic and persona scopes count their own
            distinct prompts.
        config: Engine constants.
        run_id: Shared by every scope of this run; generated when omitted.

    Returns:
        One ScopeMetrics per scope, in discover_scopes order.
    """
    if not brands:
        raise EmptyBrandListError()
    brands = tuple(brands)
    scores = tuple(scores)
    run_id = run_id or uuid.uuid4().hex
    computed_at = datetime.now(timezone.utc)

    scopes = discover_scopes(scores)
    logger.info("Aggregating %d scopes for run %s (%d scores)", len(scopes), run_id, len(scores))

    results: dict[AggregationScope, ScopeMetrics] = {}
    with ThreadPoolExecutor(max_workers=min(config.max_workers, len(scopes))) as executor:
        future_to_scope = {
            executor.submit(
                _aggregate_one,
                scope,
                scores,
                brands,
                total_prompts if scope.kind is ScopeKind.OVERALL else None,
                config,
                run_id,
                computed_at,
            ): scope
            for scope in scopes
        }
        for future in as_completed(future_to_scope):
            results[future_to_scope[future]] = future.result()

    return tuple(results[scope] for scope in scopes)
