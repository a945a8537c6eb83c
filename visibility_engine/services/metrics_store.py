"""Atomic per-scope storage of aggregated brand metrics.

A scope's metric set is replaced wholesale in one transaction: delete the
previous rows of the scope, insert the new ones. If anything fails the
transaction rolls back and the previous set stays visible.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from visibility_engine.analysis.errors import AggregationStoreError
from visibility_engine.analysis.types import (
    AggregatedBrandMetric,
    AggregationScope,
    ScopeKind,
    ScopeMetrics,
    SentimentBreakdown,
)
from visibility_engine.db.postgres import STORE_ERRORS
from visibility_engine.models.aggregated_metric import AggregatedBrandMetricRecord

logger = logging.getLogger(__name__)

# Columns copied one-to-one between AggregatedBrandMetric and its record
_METRIC_FIELDS = (
    "brand_id",
    "brand_name",
    "is_owned_brand",
    "visibility_score",
    "visibility_rank",
    "total_mentions",
    "mention_rank",
    "share_of_voice",
    "share_of_voice_rank",
    "avg_position",
    "avg_position_rank",
    "depth_of_mention",
    "depth_rank",
    "citation_share",
    "citation_share_rank",
    "brand_citations_total",
    "earned_citations_total",
    "social_citations_total",
    "total_citations",
    "sentiment_score",
    "sentiment_share",
    "count_1st",
    "count_2nd",
    "count_3rd",
    "rank_1st",
    "rank_2nd",
    "rank_3rd",
    "total_appearances",
)


def _scope_filter(analysis_id: str, scope: AggregationScope):
    return (
        AggregatedBrandMetricRecord.analysis_id == analysis_id,
        AggregatedBrandMetricRecord.scope_kind == scope.kind.value,
        AggregatedBrandMetricRecord.scope_value == scope.value,
    )


def metric_to_record(
    analysis_id: str,
    metrics: ScopeMetrics,
    metric: AggregatedBrandMetric,
) -> AggregatedBrandMetricRecord:
    values = {name: getattr(metric, name) for name in _METRIC_FIELDS}
    return AggregatedBrandMetricRecord(
        analysis_id=analysis_id,
        scope_kind=metrics.scope.kind.value,
        scope_value=metrics.scope.value,
        run_id=metrics.run_id,
        computed_at=metrics.computed_at,
        total_prompts=metrics.total_prompts,
        total_responses=metrics.total_responses,
        total_brands=metrics.total_brands,
        date_from=metrics.date_from,
        date_to=metrics.date_to,
        response_ids=list(metrics.response_ids),
        sentiment_breakdown=metric.sentiment_breakdown.to_dict(),
        **values,
    )


def record_to_metric(record: AggregatedBrandMetricRecord) -> AggregatedBrandMetric:
    values = {name: getattr(record, name) for name in _METRIC_FIELDS}
    breakdown = record.sentiment_breakdown or {}
    return AggregatedBrandMetric(
        sentiment_breakdown=SentimentBreakdown(
            positive=breakdown.get("positive", 0),
            neutral=breakdown.get("neutral", 0),
            negative=breakdown.get("negative", 0),
            mixed=breakdown.get("mixed", 0),
        ),
        **values,
    )


async def replace_scope_metrics(db: AsyncSession, analysis_id: str, metrics: ScopeMetrics) -> int:
    """Replace the stored metric set of one scope in a single transaction.

    Raises:
        AggregationStoreError: the write failed; the previous set is kept.
    """
    scope = metrics.scope
    try:
        await db.execute(delete(AggregatedBrandMetricRecord).where(*_scope_filter(analysis_id, scope)))
        db.add_all([metric_to_record(analysis_id, metrics, m) for m in metrics.brand_metrics])
        await db.commit()
    except STORE_ERRORS as exc:
        await db.rollback()
        logger.error("Failed to write metrics for scope %s (analysis=%s): %s", scope, analysis_id, exc)
        raise AggregationStoreError(
            f"Could not write metrics for scope {scope} of analysis {analysis_id}",
            scope=str(scope),
        ) from exc

    logger.info(
        "Stored %d brand metrics for scope %s (analysis=%s run=%s)",
        len(metrics.brand_metrics),
        scope,
        analysis_id,
        metrics.run_id,
    )
    return len(metrics.brand_metrics)


async def load_scope_metrics(
    db: AsyncSession,
    analysis_id: str,
    scope: AggregationScope,
) -> ScopeMetrics | None:
    """Load the current metric set of one scope, ordered by visibility rank.

    Returns None when the scope has never been aggregated.
    """
    try:
        result = await db.execute(
            select(AggregatedBrandMetricRecord)
            .where(*_scope_filter(analysis_id, scope))
            .order_by(AggregatedBrandMetricRecord.visibility_rank, AggregatedBrandMetricRecord.brand_id)
        )
        records = result.scalars().all()
    except STORE_ERRORS as exc:
        logger.error("Failed to load metrics for scope %s (analysis=%s): %s", scope, analysis_id, exc)
        raise AggregationStoreError(f"Could not load metrics for scope {scope}", scope=str(scope)) from exc

    if not records:
        return None

    first = records[0]
    return ScopeMetrics(
        scope=AggregationScope(ScopeKind(first.scope_kind), first.scope_value),
        run_id=first.run_id,
        computed_at=first.computed_at,
        total_prompts=first.total_prompts,
        total_responses=first.total_responses,
        total_brands=first.total_brands,
        date_from=first.date_from,
        date_to=first.date_to,
        response_ids=tuple(first.response_ids or []),
        brand_metrics=tuple(record_to_metric(r) for r in records),
    )


async def delete_stale_scopes(
    db: AsyncSession,
    analysis_id: str,
    keep: list[AggregationScope] | tuple[AggregationScope, ...],
) -> list[AggregationScope]:
    """Delete the metric sets of scopes that are no longer produced by the analysis.

    Runs in one transaction of its own. Returns the scopes removed.

    Raises:
        AggregationStoreError: the delete failed; nothing was removed.
    """
    keep_keys = {(scope.kind.value, scope.value) for scope in keep}
    try:
        result = await db.execute(
            select(AggregatedBrandMetricRecord.scope_kind, AggregatedBrandMetricRecord.scope_value)
            .where(AggregatedBrandMetricRecord.analysis_id == analysis_id)
            .distinct()
        )
        stale = [
            AggregationScope(ScopeKind(kind), value)
            for kind, value in sorted(result.all())
            if (kind, value) not in keep_keys
        ]
        for scope in stale:
            await db.execute(delete(AggregatedBrandMetricRecord).where(*_scope_filter(analysis_id, scope)))
        await db.commit()
    except STORE_ERRORS as exc:
        await db.rollback()
        logger.error("Failed to delete stale scopes (analysis=%s): %s", analysis_id, exc)
        raise AggregationStoreError(f"Could not delete stale scopes of analysis {analysis_id}") from exc

    if stale:
        logger.info("Deleted %d stale scopes (analysis=%s): %s", len(stale), analysis_id, ", ".join(map(str, stale)))
    return stale
