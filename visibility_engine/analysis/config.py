"""Engine configuration: an immutable value threaded through every call.

The analysis package never reads the process-wide ``settings`` object.
Callers at the service/task boundary build an ``EngineConfig`` (usually via
``EngineConfig.from_settings``) and pass it explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from visibility_engine.analysis.types import CitationType

# Social / community platforms. Hosts equal to or under one of these are "social".
DEFAULT_SOCIAL_DOMAINS: frozenset[str] = frozenset(
    {
        "facebook.com",
        "fb.com",
        "twitter.com",
        "x.com",
        "instagram.com",
        "linkedin.com",
        "youtube.com",
        "youtu.be",
        "tiktok.com",
        "reddit.com",
        "quora.com",
        "medium.com",
        "pinterest.com",
        "snapchat.com",
        "threads.net",
        "tumblr.com",
        "discord.com",
        "telegram.org",
        "t.me",
        "whatsapp.com",
        "vk.com",
    }
)


@dataclass(frozen=True)
class CitationWeights:
    """Per-type multipliers used for citation share."""

    brand: float = 1.0
    earned: float = 0.9
    social: float = 0.8

    def for_type(self, citation_type: CitationType) -> float:
        if citation_type == CitationType.BRAND:
            return self.brand
        if citation_type == CitationType.EARNED:
            return self.earned
        if citation_type == CitationType.SOCIAL:
            return self.social
        return 0.0


@dataclass(frozen=True)
class EngineConfig:
    """Aggregation constants and classifier thresholds."""

    citation_weights: CitationWeights = field(default_factory=CitationWeights)
    default_confidence: float = 0.8  # Attribution from the surrounding sentence only
    strong_confidence: float = 0.9  # Domain containment / anchor or path attribution
    exact_confidence: float = 0.95  # Core domain label equals the brand key
    social_domains: frozenset[str] = DEFAULT_SOCIAL_DOMAINS
    sentiment_driver_limit: int = 5
    max_workers: int = 8

    def __post_init__(self) -> None:
        for name in ("default_confidence", "strong_confidence", "exact_confidence"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        for name in ("brand", "earned", "social"):
            if getattr(self.citation_weights, name) < 0:
                raise ValueError(f"citation weight '{name}' must not be negative")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.sentiment_driver_limit < 0:
            raise ValueError("sentiment_driver_limit must not be negative")

    @classmethod
    def from_settings(cls, settings) -> EngineConfig:
        """Build a config from a ``visibility_engine.core.config.Settings`` instance."""
        return cls(
            citation_weights=CitationWeights(
                brand=settings.brand_citation_weight,
                earned=settings.earned_citation_weight,
                social=settings.social_citation_weight,
            ),
            default_confidence=settings.default_citation_confidence,
            sentiment_driver_limit=settings.sentiment_driver_limit,
            max_workers=settings.scoring_max_workers,
        )


DEFAULT_CONFIG = EngineConfig()
