from datetime import datetime

from pydantic import BaseModel, Field

from visibility_engine.analysis.types import AggregatedBrandMetric, BrandCandidate, RawResponse


class RawResponseIn(BaseModel):
    response_id: str = Field(min_length=1)
    prompt_id: str = Field(min_length=1)
    provider_id: str = Field(min_length=1)  # openai | gemini | perplexity | claude
    topic_id: str = ""
    persona_id: str = ""
    text: str = ""
    tested_at: datetime | None = None
    prompt_text: str = ""
    native_urls: list[str] = []

    def to_domain(self) -> RawResponse:
        return RawResponse(
            response_id=self.response_id,
            prompt_id=self.prompt_id,
            provider_id=self.provider_id,
            topic_id=self.topic_id,
            persona_id=self.persona_id,
            text=self.text,
            tested_at=self.tested_at,
            prompt_text=self.prompt_text,
            native_urls=tuple(self.native_urls),
        )


class BrandCandidateIn(BaseModel):
    brand_id: str = Field(min_length=1)
    brand_name: str = Field(min_length=1)
    is_owned_brand: bool = False
    aliases: list[str] = []

    def to_domain(self) -> BrandCandidate:
        return BrandCandidate(
            brand_id=self.brand_id,
            brand_name=self.brand_name,
            is_owned_brand=self.is_owned_brand,
            aliases=tuple(self.aliases),
        )


def brands_to_domain(brands: list[BrandCandidateIn]) -> tuple[BrandCandidate, ...]:
    return tuple(b.to_domain() for b in brands)


class ScoreResponsePayload(BaseModel):
    analysis_id: str = Field(min_length=1)
    response: RawResponseIn
    brands: list[BrandCandidateIn] = []  # empty list is rejected by the engine, not here


class BatchCompletePayload(BaseModel):
    analysis_id: str = Field(min_length=1)
    brands: list[BrandCandidateIn] = []
    total_prompts: int | None = Field(default=None, ge=0)


class SentimentBreakdownOut(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    mixed: int = 0


class AggregatedBrandMetricOut(BaseModel):
    brand_id: str
    brand_name: str
    is_owned_brand: bool
    visibility_score: float  # 0 - 100
    visibility_rank: int
    total_mentions: int
    mention_rank: int
    share_of_voice: float  # 0 - 100, sums to ~100 across brands
    share_of_voice_rank: int
    avg_position: float  # 0 = never mentioned
    avg_position_rank: int
    depth_of_mention: float
    depth_rank: int
    citation_share: float
    citation_share_rank: int
    brand_citations_total: int
    earned_citations_total: int
    social_citations_total: int
    total_citations: int
    sentiment_score: float  # -1 .. 1
    sentiment_breakdown: SentimentBreakdownOut
    sentiment_share: float
    count_1st: int
    count_2nd: int
    count_3rd: int
    rank_1st: int
    rank_2nd: int
    rank_3rd: int
    total_appearances: int

    model_config = {"from_attributes": True}

    @classmethod
    def from_domain(cls, metric: AggregatedBrandMetric) -> "AggregatedBrandMetricOut":
        return cls.model_validate(metric.to_dict())
