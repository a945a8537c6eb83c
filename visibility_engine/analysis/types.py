"""Core types and DTOs for the Brand Visibility Engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SanitizationFlag(str, Enum):
    """Flags assigned during text preprocessing."""

    CLEAN = "clean"
    THINK_STRIPPED = "think_stripped"  # <think>...</think> reasoning removed
    CENSORED = "censored"  # Vendor censorship marker found
    EMPTY_RESPONSE = "empty_response"


class CitationType(str, Enum):
    """Who a cited URL speaks for (PESO model, minus paid)."""

    BRAND = "brand"  # Brand-owned domain
    EARNED = "earned"  # Third-party editorial discussing the brand
    SOCIAL = "social"  # Social / community platform
    NONE = "none"  # Unmatched or ambiguous, excluded from totals


class CitationSource(str, Enum):
    """Where in the response a citation was found."""

    MARKDOWN_LINK = "markdown_link"  # [text](url)
    FOOTNOTE = "footnote"  # [1]: url
    BARE_URL = "bare_url"  # https://...
    NATIVE = "native"  # Provided by the vendor API


class SentimentLabel(str, Enum):
    """Coarse sentiment bucket."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    MIXED = "mixed"


class ScopeKind(str, Enum):
    """Grouping dimension for aggregation."""

    OVERALL = "overall"
    PROVIDER = "provider"
    TOPIC = "topic"
    PERSONA = "persona"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawResponse:
    """One answer-engine response to one prompt, as handed over by the test runner."""

    response_id: str
    prompt_id: str
    provider_id: str
    topic_id: str = ""
    persona_id: str = ""
    text: str = ""
    tested_at: datetime | None = None
    prompt_text: str = ""
    native_urls: tuple[str, ...] = ()  # Citations returned by the vendor API


@dataclass(frozen=True)
class BrandCandidate:
    """A brand tracked in an analysis run (the user's own brand or a competitor)."""

    brand_id: str
    brand_name: str
    is_owned_brand: bool = False
    aliases: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Atomic extraction results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SanitizedText:
    """Output of the text preprocessor."""

    text: str = ""  # Cleaned text for analysis
    original_text: str = ""
    flag: SanitizationFlag = SanitizationFlag.CLEAN
    think_content: str = ""
    stripped_chars: int = 0


@dataclass(frozen=True)
class Sentence:
    """A single sentence of a response."""

    position: int  # 1-indexed
    text: str
    word_count: int
    total_sentences_in_response: int

    def to_dict(self) -> dict:
        return {
            "position": self.position,
            "text": self.text,
            "word_count": self.word_count,
            "total_sentences_in_response": self.total_sentences_in_response,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Sentence:
        return cls(
            position=int(data["position"]),
            text=data.get("text", ""),
            word_count=int(data.get("word_count", 0)),
            total_sentences_in_response=int(data.get("total_sentences_in_response", 0)),
        )


@dataclass(frozen=True)
class BrandMatch:
    """Mention detection result for one brand within one response."""

    brand_id: str
    mentioned: bool = False
    first_position: int = 0  # 0 = not mentioned
    mention_count: int = 0
    sentences: tuple[Sentence, ...] = ()
    aliases_matched: tuple[str, ...] = ()


@dataclass(frozen=True)
class UrlCandidate:
    """A URL found in the text, before validation."""

    url: str
    source: CitationSource
    anchor_text: str = ""
    offset: int = -1  # Character offset in the raw text, -1 for native URLs
    context: str = ""  # Sentence of the raw text the link appears in


@dataclass(frozen=True)
class ValidatedUrl:
    """A URL that passed validation."""

    url: str
    domain: str  # Lowercased host without www.


@dataclass(frozen=True)
class RejectedUrl:
    """A URL that failed validation, with the reason it was dropped."""

    url: str
    reason: str


@dataclass(frozen=True)
class Citation:
    """A classified citation, attributed to at most one brand."""

    url: str
    domain: str
    type: CitationType = CitationType.NONE
    confidence: float = 0.0
    brand_id: str | None = None
    anchor_text: str = ""
    source: CitationSource = CitationSource.BARE_URL

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "domain": self.domain,
            "type": self.type.value,
            "confidence": self.confidence,
            "brand_id": self.brand_id,
            "anchor_text": self.anchor_text,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Citation:
        return cls(
            url=data["url"],
            domain=data.get("domain", ""),
            type=CitationType(data.get("type", CitationType.NONE.value)),
            confidence=float(data.get("confidence", 0.0)),
            brand_id=data.get("brand_id"),
            anchor_text=data.get("anchor_text", ""),
            source=CitationSource(data.get("source", CitationSource.BARE_URL.value)),
        )


@dataclass(frozen=True)
class SentimentResult:
    """Sentiment of a sentence, or of a brand across one response."""

    label: SentimentLabel = SentimentLabel.NEUTRAL
    score: float = 0.0  # -1.0 .. +1.0
    drivers: tuple[str, ...] = ()  # e.g. ("+best", "-slow (negated)")


# ---------------------------------------------------------------------------
# Response Scorer output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BrandResponseScore:
    """Per-brand, per-response score record.

    Written once; corrections are made by re-scoring the response and
    replacing its records.
    """

    response_id: str
    brand_id: str

    # Response keys, needed for scope filtering and distinct-prompt counting
    prompt_id: str = ""
    provider_id: str = ""
    topic_id: str = ""
    persona_id: str = ""
    tested_at: datetime | None = None

    # Mention detection
    mentioned: bool = False
    first_position: int = 0  # 0 = not mentioned
    mention_count: int = 0
    sentences: tuple[Sentence, ...] = ()
    total_word_count: int = 0  # Whole response, not just this brand
    total_sentences: int = 0

    # Citations attributed to this brand
    citations: tuple[Citation, ...] = ()

    # Sentiment
    sentiment_label: SentimentLabel = SentimentLabel.NEUTRAL
    sentiment_score: float = 0.0
    sentiment_drivers: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "response_id": self.response_id,
            "brand_id": self.brand_id,
            "prompt_id": self.prompt_id,
            "provider_id": self.provider_id,
            "topic_id": self.topic_id,
            "persona_id": self.persona_id,
            "tested_at": self.tested_at.isoformat() if self.tested_at else None,
            "mentioned": self.mentioned,
            "first_position": self.first_position,
            "mention_count": self.mention_count,
            "sentences": [s.to_dict() for s in self.sentences],
            "total_word_count": self.total_word_count,
            "total_sentences": self.total_sentences,
            "citations": [c.to_dict() for c in self.citations],
            "sentiment_label": self.sentiment_label.value,
            "sentiment_score": self.sentiment_score,
            "sentiment_drivers": list(self.sentiment_drivers),
        }


# ---------------------------------------------------------------------------
# Scope Aggregator types
# ---------------------------------------------------------------------------

OVERALL_SCOPE_VALUE = "all"


@dataclass(frozen=True)
class AggregationScope:
    """Grouping key for aggregation: overall, or one provider/topic/persona."""

    kind: ScopeKind = ScopeKind.OVERALL
    value: str = OVERALL_SCOPE_VALUE

    @classmethod
    def overall(cls) -> AggregationScope:
        return cls(ScopeKind.OVERALL, OVERALL_SCOPE_VALUE)

    def matches(self, score: BrandResponseScore) -> bool:
        """Whether a score record falls into this scope."""
        if self.kind == ScopeKind.OVERALL:
            return True
        if self.kind == ScopeKind.PROVIDER:
            return score.provider_id == self.value
        if self.kind == ScopeKind.TOPIC:
            return score.topic_id == self.value
        return score.persona_id == self.value

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.value}"


@dataclass(frozen=True)
class SentimentBreakdown:
    """Label tallies across a brand's appearances."""

    positive: int = 0
    neutral: int = 0
    negative: int = 0
    mixed: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.neutral + self.negative + self.mixed

    def to_dict(self) -> dict:
        return {
            "positive": self.positive,
            "neutral": self.neutral,
            "negative": self.negative,
            "mixed": self.mixed,
        }


@dataclass(frozen=True)
class AggregatedBrandMetric:
    """Ranked metrics for one brand within one scope and one computation run."""

    brand_id: str
    brand_name: str = ""
    is_owned_brand: bool = False

    visibility_score: float = 0.0
    visibility_rank: int = 0

    total_mentions: int = 0
    mention_rank: int = 0

    share_of_voice: float = 0.0
    share_of_voice_rank: int = 0

    avg_position: float = 0.0
    avg_position_rank: int = 0

    depth_of_mention: float = 0.0
    depth_rank: int = 0

    citation_share: float = 0.0
    citation_share_rank: int = 0
    brand_citations_total: int = 0
    earned_citations_total: int = 0
    social_citations_total: int = 0
    total_citations: int = 0

    sentiment_score: float = 0.0
    sentiment_breakdown: SentimentBreakdown = field(default_factory=SentimentBreakdown)
    sentiment_share: float = 0.0  # % positive among labelled appearances

    count_1st: int = 0
    count_2nd: int = 0
    count_3rd: int = 0
    rank_1st: int = 0
    rank_2nd: int = 0
    rank_3rd: int = 0

    total_appearances: int = 0

    def to_dict(self) -> dict:
        return {
            "brand_id": self.brand_id,
            "brand_name": self.brand_name,
            "is_owned_brand": self.is_owned_brand,
            "visibility_score": self.visibility_score,
            "visibility_rank": self.visibility_rank,
            "total_mentions": self.total_mentions,
            "mention_rank": self.mention_rank,
            "share_of_voice": self.share_of_voice,
            "share_of_voice_rank": self.share_of_voice_rank,
            "avg_position": self.avg_position,
            "avg_position_rank": self.avg_position_rank,
            "depth_of_mention": self.depth_of_mention,
            "depth_rank": self.depth_rank,
            "citation_share": self.citation_share,
            "citation_share_rank": self.citation_share_rank,
            "brand_citations_total": self.brand_citations_total,
            "earned_citations_total": self.earned_citations_total,
            "social_citations_total": self.social_citations_total,
            "total_citations": self.total_citations,
            "sentiment_score": self.sentiment_score,
            "sentiment_breakdown": self.sentiment_breakdown.to_dict(),
            "sentiment_share": self.sentiment_share,
            "count_1st": self.count_1st,
            "count_2nd": self.count_2nd,
            "count_3rd": self.count_3rd,
            "rank_1st": self.rank_1st,
            "rank_2nd": self.rank_2nd,
            "rank_3rd": self.rank_3rd,
            "total_appearances": self.total_appearances,
        }


@dataclass(frozen=True)
class ScopeMetrics:
    """The complete output of one aggregation run for one scope.

    Replaces any previously stored set for the same scope wholesale.
    """

    scope: AggregationScope
    run_id: str
    computed_at: datetime
    total_prompts: int = 0
    total_responses: int = 0
    total_brands: int = 0
    date_from: datetime | None = None
    date_to: datetime | None = None
    response_ids: tuple[str, ...] = ()
    brand_metrics: tuple[AggregatedBrandMetric, ...] = ()

    def metric_for(self, brand_id: str) -> AggregatedBrandMetric | None:
        for metric in self.brand_metrics:
            if metric.brand_id == brand_id:
                return metric
        return None

    def to_dict(self) -> dict:
        return {
            "scope": self.scope.kind.value,
            "scope_value": self.scope.value,
            "run_id": self.run_id,
            "computed_at": self.computed_at.isoformat(),
            "total_prompts": self.total_prompts,
            "total_responses": self.total_responses,
            "total_brands": self.total_brands,
            "date_from": self.date_from.isoformat() if self.date_from else None,
            "date_to": self.date_to.isoformat() if self.date_to else None,
            "response_ids": list(self.response_ids),
            "brand_metrics": [m.to_dict() for m in self.brand_metrics],
        }
