from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from visibility_engine.db.base import Base, JSONType


class AggregatedBrandMetricRecord(Base):
    """Ranked metrics of one brand within one scope, from the latest aggregation run.

    A scope's rows are deleted and re-inserted together in one transaction.
    """

    __tablename__ = "aggregated_brand_metrics"
    __table_args__ = (
        UniqueConstraint("analysis_id", "scope_kind", "scope_value", "brand_id", name="uq_aggregated_brand_metric"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    analysis_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    scope_kind: Mapped[str] = mapped_column(String(20), nullable=False)  # overall | provider | topic | persona
    scope_value: Mapped[str] = mapped_column(String(64), nullable=False)  # "all" for overall
    brand_id: Mapped[str] = mapped_column(String(64), nullable=False)
    brand_name: Mapped[str] = mapped_column(String(255), default="")
    is_owned_brand: Mapped[bool] = mapped_column(Boolean, default=False)

    # Run
    run_id: Mapped[str] = mapped_column(String(64), nullable=False)
    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Scope totals (same on every row of the scope)
    total_prompts: Mapped[int] = mapped_column(Integer, default=0)
    total_responses: Mapped[int] = mapped_column(Integer, default=0)
    total_brands: Mapped[int] = mapped_column(Integer, default=0)
    date_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    date_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    response_ids: Mapped[list] = mapped_column(JSONType, default=list)

    # Metrics
    visibility_score: Mapped[float] = mapped_column(Float, default=0.0)
    visibility_rank: Mapped[int] = mapped_column(Integer, default=0)
    total_mentions: Mapped[int] = mapped_column(Integer, default=0)
    mention_rank: Mapped[int] = mapped_column(Integer, default=0)
    share_of_voice: Mapped[float] = mapped_column(Float, default=0.0)
    share_of_voice_rank: Mapped[int] = mapped_column(Integer, default=0)
    avg_position: Mapped[float] = mapped_column(Float, default=0.0)
    avg_position_rank: Mapped[int] = mapped_column(Integer, default=0)
    depth_of_mention: Mapped[float] = mapped_column(Float, default=0.0)
    depth_rank: Mapped[int] = mapped_column(Integer, default=0)
    citation_share: Mapped[float] = mapped_column(Float, default=0.0)
    citation_share_rank: Mapped[int] = mapped_column(Integer, default=0)
    brand_citations_total: Mapped[int] = mapped_column(Integer, default=0)
    earned_citations_total: Mapped[int] = mapped_column(Integer, default=0)
    social_citations_total: Mapped[int] = mapped_column(Integer, default=0)
    total_citations: Mapped[int] = mapped_column(Integer, default=0)
    sentiment_score: Mapped[float] = mapped_column(Float, default=0.0)
    sentiment_breakdown: Mapped[dict] = mapped_column(JSONType, default=dict)  # {positive, neutral, negative, mixed}
    sentiment_share: Mapped[float] = mapped_column(Float, default=0.0)
    count_1st: Mapped[int] = mapped_column(Integer, default=0)
    count_2nd: Mapped[int] = mapped_column(Integer, default=0)
    count_3rd: Mapped[int] = mapped_column(Integer, default=0)
    rank_1st: Mapped[int] = mapped_column(Integer, default=0)
    rank_2nd: Mapped[int] = mapped_column(Integer, default=0)
    rank_3rd: Mapped[int] = mapped_column(Integer, default=0)
    total_appearances: Mapped[int] = mapped_column(Integer, default=0)
