"""Celery tasks: score one response, and aggregate a finished batch.

Scoring runs once per response as responses arrive. Aggregation only runs
when batch_complete is sent for an analysis, never on a timer.
"""

import asyncio
import logging

from pydantic import ValidationError

from visibility_engine.analysis.config import EngineConfig
from visibility_engine.analysis.errors import AggregationStoreError, EmptyBrandListError
from visibility_engine.analysis.pipeline import record_scored
from visibility_engine.analysis.scoring import score_response_detailed
from visibility_engine.schemas.engine import BatchCompletePayload, ScoreResponsePayload, brands_to_domain
from visibility_engine.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run an async coroutine from sync Celery task context.

    Creates a fresh event loop each time so the engine created inside the
    coroutine is bound to the loop that uses it.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _make_session_factory():
    """Create a fresh async engine + session factory for Celery worker context."""
    from visibility_engine.db.postgres import make_engine, make_session_factory

    engine = make_engine(pool_size=5, max_overflow=5)
    return make_session_factory(engine), engine


def _engine_config() -> EngineConfig:
    from visibility_engine.core.config import settings

    return EngineConfig.from_settings(settings)


# ---------------------------------------------------------------------------
#  score_response: one task per answer-engine response
# ---------------------------------------------------------------------------


async def _score_response_async(data: ScoreResponsePayload) -> dict:
    from visibility_engine.services.score_store import save_response_scores

    response = data.response.to_domain()
    scored = score_response_detailed(response, brands_to_domain(data.brands), _engine_config())
    record_scored(scored)

    session_factory, engine = _make_session_factory()
    try:
        async with session_factory() as db:
            saved = await save_response_scores(db, data.analysis_id, scored.scores)
    finally:
        await engine.dispose()

    return {
        "analysis_id": data.analysis_id,
        "response_id": response.response_id,
        "scores_saved": saved,
        "mentioned": [s.brand_id for s in scored.scores if s.mentioned],
        "citations_rejected": len(scored.rejected_urls),
        "flag": scored.sanitization_flag.value,
    }


@celery_app.task(
    bind=True,
    name="score_response",
    max_retries=3,
    default_retry_delay=30,
)
def score_response_task(self, payload: dict):
    """Celery task: score one response for every brand and store the records."""
    try:
        data = ScoreResponsePayload.model_validate(payload)
    except ValidationError as exc:
        logger.error("Invalid score_response payload: %s", exc)
        return {"error": "invalid_payload", "detail": str(exc)}

    logger.info("Scoring response %s (analysis=%s)", data.response.response_id, data.analysis_id)
    try:
        return _run_async(_score_response_async(data))
    except EmptyBrandListError as exc:
        logger.error("Cannot score response %s: %s", data.response.response_id, exc)
        return {"error": str(exc), "response_id": data.response.response_id}
    except AggregationStoreError as exc:
        logger.warning("Storing scores for response %s failed, will retry: %s", data.response.response_id, exc)
        raise self.retry(exc=exc)


# ---------------------------------------------------------------------------
#  batch_complete: the explicit barrier before aggregation
# ---------------------------------------------------------------------------


async def _batch_complete_async(data: BatchCompletePayload) -> dict:
    from visibility_engine.services.batch_service import run_batch_aggregation

    session_factory, engine = _make_session_factory()
    try:
        result = await run_batch_aggregation(
            session_factory,
            data.analysis_id,
            brands_to_domain(data.brands),
            config=_engine_config(),
            total_prompts=data.total_prompts,
        )
    finally:
        await engine.dispose()
    return result.to_dict()


@celery_app.task(
    bind=True,
    name="batch_complete",
    max_retries=3,
    default_retry_delay=60,
)
def batch_complete_task(self, payload: dict):
    """Celery task: aggregate every scope of a finished analysis batch."""
    try:
        data = BatchCompletePayload.model_validate(payload)
    except ValidationError as exc:
        logger.error("Invalid batch_complete payload: %s", exc)
        return {"error": "invalid_payload", "detail": str(exc)}

    logger.info("Batch complete for analysis %s, aggregating", data.analysis_id, extra={"batch_id": data.analysis_id})
    try:
        result = _run_async(_batch_complete_async(data))
        logger.info("Aggregation done for analysis %s: %s", data.analysis_id, result)
        return result
    except EmptyBrandListError as exc:
        logger.error("Cannot aggregate analysis %s: %s", data.analysis_id, exc)
        return {"error": str(exc), "analysis_id": data.analysis_id}
    except AggregationStoreError as exc:
        logger.warning("Aggregation for analysis %s failed, will retry: %s", data.analysis_id, exc)
        raise self.retry(exc=exc)
