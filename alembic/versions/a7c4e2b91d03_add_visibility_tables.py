"""add brand visibility score and aggregated metric tables

Revision ID: a7c4e2b91d03
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "a7c4e2b91d03"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # =========================================================
    # 1. Per-response brand scores
    # =========================================================
    op.create_table(
        "brand_response_scores",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("analysis_id", sa.String(64), nullable=False, index=True),
        sa.Column("response_id", sa.String(64), nullable=False, index=True),
        sa.Column("brand_id", sa.String(64), nullable=False),
        sa.Column("prompt_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(50), nullable=False),
        sa.Column("topic_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("persona_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("tested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("mentioned", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("first_position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mention_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sentences", JSONB(), nullable=False, server_default="[]"),
        sa.Column("total_word_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_sentences", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("citations", JSONB(), nullable=False, server_default="[]"),
        sa.Column("sentiment_label", sa.String(20), nullable=False, server_default="neutral"),
        sa.Column("sentiment_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("sentiment_drivers", JSONB(), nullable=False, server_default="[]"),
        sa.Column("scored_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("analysis_id", "response_id", "brand_id", name="uq_brand_response_score"),
    )

    # =========================================================
    # 2. Aggregated brand metrics, one row per (scope, brand)
    # =========================================================
    op.create_table(
        "aggregated_brand_metrics",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("analysis_id", sa.String(64), nullable=False, index=True),
        sa.Column("scope_kind", sa.String(20), nullable=False),
        sa.Column("scope_value", sa.String(64), nullable=False),
        sa.Column("brand_id", sa.String(64), nullable=False),
        sa.Column("brand_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("is_owned_brand", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("run_id", sa.String(64), nullable=False),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_prompts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_responses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_brands", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("date_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("date_to", sa.DateTime(timezone=True), nullable=True),
        sa.Column("response_ids", JSONB(), nullable=False, server_default="[]"),
        sa.Column("visibility_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("visibility_rank", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_mentions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mention_rank", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("share_of_voice", sa.Float(), nullable=False, server_default="0"),
        sa.Column("share_of_voice_rank", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_position", sa.Float(), nullable=False, server_default="0"),
        sa.Column("avg_position_rank", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("depth_of_mention", sa.Float(), nullable=False, server_default="0"),
        sa.Column("depth_rank", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("citation_share", sa.Float(), nullable=False, server_default="0"),
        sa.Column("citation_share_rank", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("brand_citations_total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("earned_citations_total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("social_citations_total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_citations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sentiment_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("sentiment_breakdown", JSONB(), nullable=False, server_default="{}"),
        sa.Column("sentiment_share", sa.Float(), nullable=False, server_default="0"),
        sa.Column("count_1st", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("count_2nd", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("count_3rd", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rank_1st", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rank_2nd", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rank_3rd", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_appearances", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint(
            "analysis_id", "scope_kind", "scope_value", "brand_id", name="uq_aggregated_brand_metric"
        ),
    )


def downgrade() -> None:
    op.drop_table("aggregated_brand_metrics")
    op.drop_table("brand_response_scores")
