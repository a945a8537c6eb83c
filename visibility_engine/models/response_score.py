from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from visibility_engine.db.base import Base, JSONType


class BrandResponseScoreRecord(Base):
    """Score of one brand in one answer-engine response.

    Rows of a response are replaced as a whole when the response is re-scored.
    """

    __tablename__ = "brand_response_scores"
    __table_args__ = (UniqueConstraint("analysis_id", "response_id", "brand_id", name="uq_brand_response_score"),)

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    analysis_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    response_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    brand_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Response keys
    prompt_id: Mapped[str] = mapped_column(String(64), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(50), nullable=False)  # openai | gemini | perplexity | claude
    topic_id: Mapped[str] = mapped_column(String(64), default="")
    persona_id: Mapped[str] = mapped_column(String(64), default="")
    tested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Mention detection
    mentioned: Mapped[bool] = mapped_column(Boolean, default=False)
    first_position: Mapped[int] = mapped_column(Integer, default=0)  # 0 = not mentioned
    mention_count: Mapped[int] = mapped_column(Integer, default=0)
    sentences: Mapped[list] = mapped_column(JSONType, default=list)  # [{position, text, word_count, ...}]
    total_word_count: Mapped[int] = mapped_column(Integer, default=0)
    total_sentences: Mapped[int] = mapped_column(Integer, default=0)

    citations: Mapped[list] = mapped_column(JSONType, default=list)  # [{url, domain, type, confidence, ...}]

    # Sentiment
    sentiment_label: Mapped[str] = mapped_column(String(20), default="neutral")  # positive | neutral | negative | mixed
    sentiment_score: Mapped[float] = mapped_column(Float, default=0.0)
    sentiment_drivers: Mapped[list] = mapped_column(JSONType, default=list)

    scored_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
