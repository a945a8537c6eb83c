"""Durable storage of per-response brand scores."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from visibility_engine.analysis.errors import AggregationStoreError
from visibility_engine.analysis.types import BrandResponseScore, Citation, Sentence, SentimentLabel
from visibility_engine.db.postgres import STORE_ERRORS
from visibility_engine.models.response_score import BrandResponseScoreRecord

logger = logging.getLogger(__name__)


def score_to_record(analysis_id: str, score: BrandResponseScore) -> BrandResponseScoreRecord:
    return BrandResponseScoreRecord(
        analysis_id=analysis_id,
        response_id=score.response_id,
        brand_id=score.brand_id,
        prompt_id=score.prompt_id,
        provider_id=score.provider_id,
        topic_id=score.topic_id,
        persona_id=score.persona_id,
        tested_at=score.tested_at,
        mentioned=score.mentioned,
        first_position=score.first_position,
        mention_count=score.mention_count,
        sentences=[s.to_dict() for s in score.sentences],
        total_word_count=score.total_word_count,
        total_sentences=score.total_sentences,
        citations=[c.to_dict() for c in score.citations],
        sentiment_label=score.sentiment_label.value,
        sentiment_score=score.sentiment_score,
        sentiment_drivers=list(score.sentiment_drivers),
    )


def record_to_score(record: BrandResponseScoreRecord) -> BrandResponseScore:
    return BrandResponseScore(
        response_id=record.response_id,
        brand_id=record.brand_id,
        prompt_id=record.prompt_id,
        provider_id=record.provider_id,
        topic_id=record.topic_id or "",
        persona_id=record.persona_id or "",
        tested_at=record.tested_at,
        mentioned=record.mentioned,
        first_position=record.first_position,
        mention_count=record.mention_count,
        sentences=tuple(Sentence.from_dict(s) for s in record.sentences or []),
        total_word_count=record.total_word_count,
        total_sentences=record.total_sentences,
        citations=tuple(Citation.from_dict(c) for c in record.citations or []),
        sentiment_label=SentimentLabel(record.sentiment_label),
        sentiment_score=record.sentiment_score,
        sentiment_drivers=tuple(record.sentiment_drivers or []),
    )


async def save_response_scores(
    db: AsyncSession,
    analysis_id: str,
    scores: list[BrandResponseScore] | tuple[BrandResponseScore, ...],
) -> int:
    """Store the scores of one or more responses.

    Existing rows of those responses are deleted first, so re-scoring a
    response replaces its records instead of updating them in place.

    Returns:
        Number of rows written.
    """
    if not scores:
        return 0

    response_ids = sorted({s.response_id for s in scores})
    try:
        await db.execute(
            delete(BrandResponseScoreRecord).where(
                BrandResponseScoreRecord.analysis_id == analysis_id,
                BrandResponseScoreRecord.response_id.in_(response_ids),
            )
        )
        db.add_all([score_to_record(analysis_id, s) for s in scores])
        await db.commit()
    except STORE_ERRORS as exc:
        await db.rollback()
        logger.error("Failed to save scores for analysis %s: %s", analysis_id, exc)
        raise AggregationStoreError(f"Could not save scores for analysis {analysis_id}") from exc

    logger.info("Saved %d scores for %d responses (analysis=%s)", len(scores), len(response_ids), analysis_id)
    return len(scores)


async def load_batch_scores(db: AsyncSession, analysis_id: str) -> tuple[BrandResponseScore, ...]:
    """Load every stored score of an analysis, ordered by response then insertion."""
    try:
        result = await db.execute(
            select(BrandResponseScoreRecord)
            .where(BrandResponseScoreRecord.analysis_id == analysis_id)
            .order_by(BrandResponseScoreRecord.response_id, BrandResponseScoreRecord.id)
        )
        records = result.scalars().all()
    except STORE_ERRORS as exc:
        logger.error("Failed to load scores for analysis %s: %s", analysis_id, exc)
        raise AggregationStoreError(f"Could not load scores for analysis {analysis_id}") from exc

    return tuple(record_to_score(r) for r in records)
