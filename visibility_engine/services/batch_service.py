"""Batch aggregation: stored scores -> every scope -> atomic per-scope writes."""

import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from visibility_engine.analysis.config import DEFAULT_CONFIG, EngineConfig
from visibility_engine.analysis.errors import AggregationStoreError, EmptyBrandListError
from visibility_engine.analysis.pipeline import aggregate_all_scopes
from visibility_engine.services.metrics_store import delete_stale_scopes, replace_scope_metrics
from visibility_engine.services.score_store import load_batch_scores

logger = logging.getLogger(__name__)


@dataclass
class BatchAggregationResult:
    analysis_id: str
    run_id: str = ""
    scores_loaded: int = 0
    scopes_written: dict[str, int] = field(default_factory=dict)  # "provider:openai" -> brand rows
    scopes_failed: list[str] = field(default_factory=list)
    scopes_removed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "analysis_id": self.analysis_id,
            "run_id": self.run_id,
            "scores_loaded": self.scores_loaded,
            "scopes_written": dict(self.scopes_written),
            "scopes_failed": list(self.scopes_failed),
            "scopes_removed": list(self.scopes_removed),
        }


async def run_batch_aggregation(
    session_factory: async_sessionmaker[AsyncSession],
    analysis_id: str,
    brands,
    config: EngineConfig = DEFAULT_CONFIG,
    total_prompts: int | None = None,
) -> BatchAggregationResult:
    """Aggregate every scope of an analysis from its stored scores.

    Each scope is written in its own transaction. A failed scope does not
    stop the others; once all were attempted an AggregationStoreError lists
    the failed ones so the whole batch can be retried. Scopes left over from
    an earlier run that the current scores no longer produce are deleted, so
    a rerun replaces the analysis output as a whole.

    Raises:
        EmptyBrandListError: when brands is empty or None.
        AggregationStoreError: when scores cannot be loaded or a scope write fails.
    """
    if not brands:
        raise EmptyBrandListError()

    async with session_factory() as db:
        scores = await load_batch_scores(db, analysis_id)

    result = BatchAggregationResult(analysis_id=analysis_id, scores_loaded=len(scores))
    if not scores:
        logger.warning("No stored scores for analysis %s, nothing to aggregate", analysis_id)
        return result

    # CPU-bound; keep the event loop free
    all_metrics = await asyncio.to_thread(aggregate_all_scopes, scores, brands, total_prompts, config)
    result.run_id = all_metrics[0].run_id

    for metrics in all_metrics:
        scope_key = str(metrics.scope)
        try:
            async with session_factory() as db:
                result.scopes_written[scope_key] = await replace_scope_metrics(db, analysis_id, metrics)
        except AggregationStoreError:
            result.scopes_failed.append(scope_key)

    # Scopes the current scores no longer produce, e.g. a provider whose
    # responses were removed; failed scopes above are kept
    try:
        async with session_factory() as db:
            removed = await delete_stale_scopes(db, analysis_id, [m.scope for m in all_metrics])
        result.scopes_removed = [str(scope) for scope in removed]
    except AggregationStoreError:
        result.scopes_failed.append("stale-scopes")

    if result.scopes_failed:
        raise AggregationStoreError(
            f"Failed to write {len(result.scopes_failed)} scope(s) for analysis {analysis_id}: "
            + ", ".join(result.scopes_failed),
            scope=",".join(result.scopes_failed),
        )

    logger.info(
        "Batch aggregation done: analysis=%s run=%s scores=%d scopes=%d",
        analysis_id,
        result.run_id,
        result.scores_loaded,
        len(result.scopes_written),
    )
    return result
