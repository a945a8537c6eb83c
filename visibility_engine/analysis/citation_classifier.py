"""Citation Classifier - Pipeline Step 5.

Classifies validated URLs and attributes each to at most one brand:
  1. brand: the host's core label contains a brand's domain key
  2. social: the host is (a subdomain of) a known social platform
  3. earned: any other third-party host

Social and earned citations are attributed to the single brand the link
discusses: from the anchor text or URL path first, then from the sentence
the link sits in. No brand, or more than one, leaves the citation as type
"none", recorded but excluded from totals.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import unquote, urlsplit

from visibility_engine.analysis.brand_matcher import BrandMatcher
from visibility_engine.analysis.citation_extractor import extract_url_candidates, validate_url
from visibility_engine.analysis.config import EngineConfig
from visibility_engine.analysis.types import (
    Citation,
    CitationType,
    RejectedUrl,
    UrlCandidate,
    ValidatedUrl,
)

logger = logging.getLogger(__name__)

# Two-level public suffixes: the registrable label sits left of these
TWO_LEVEL_SUFFIXES = frozenset(
    {
        "co.uk", "org.uk", "ac.uk", "gov.uk", "me.uk", "ltd.uk", "plc.uk",
        "co.in", "net.in", "org.in", "firm.in", "gen.in", "ind.in", "gov.in",
        "com.au", "net.au", "org.au", "edu.au", "gov.au",
        "co.nz", "org.nz", "co.jp", "ne.jp", "or.jp", "co.kr", "co.za", "co.id",
        "com.br", "com.cn", "com.sg", "com.my", "com.mx", "com.tr", "com.ar",
        "com.hk", "com.tw", "com.ph", "com.pk", "com.ng", "com.sa", "com.eg",
    }
)

_PATH_SEPARATORS = re.compile(r"[/_+.=&?%]+")


def core_label(domain: str) -> str:
    """Registrable label of a host: "netbanking.hdfcbank.co.in" -> "hdfcbank"."""
    labels = [label for label in domain.lower().split(".") if label]
    if len(labels) < 2:
        return labels[0] if labels else ""
    if len(labels) >= 3 and ".".join(labels[-2:]) in TWO_LEVEL_SUFFIXES:
        return labels[-3]
    return labels[-2]


def is_social_domain(domain: str, social_domains: frozenset[str]) -> bool:
    domain = domain.lower()
    return any(domain == sd or domain.endswith("." + sd) for sd in social_domains)


def match_brand_domain(
    domain: str,
    matchers: tuple[BrandMatcher, ...],
    config: EngineConfig,
) -> tuple[str | None, float, bool]:
    """Find the brand owning a domain.

    Returns (brand_id, confidence, ambiguous). brand_id is None when no brand
    key matches or when the best match is shared by several brands.
    """
    label = core_label(domain)
    if not label:
        return None, 0.0, False

    # brand_id -> (key length, confidence)
    best: dict[str, tuple[int, float]] = {}
    for matcher in matchers:
        for key in matcher.domain_keys:
            if label == key:
                hit = (len(key), config.exact_confidence)
            elif key in label:
                hit = (len(key), config.strong_confidence)
            else:
                continue
            if matcher.brand_id not in best or hit > best[matcher.brand_id]:
                best[matcher.brand_id] = hit

    if not best:
        return None, 0.0, False

    longest = max(length for length, _ in best.values())
    winners = [bid for bid, (length, _) in best.items() if length == longest]
    if len(winners) > 1:
        return None, 0.0, True
    return winners[0], best[winners[0]][1], False


def _path_text(url: str) -> str:
    parts = urlsplit(url)
    return _PATH_SEPARATORS.sub(" ", unquote(parts.path + " " + parts.query)).strip()


def _brands_mentioned(text: str, matchers: tuple[BrandMatcher, ...]) -> list[str]:
    if not text:
        return []
    return [m.brand_id for m in matchers if m.mentions(text)]


def attribute_brand(
    candidate: UrlCandidate,
    matchers: tuple[BrandMatcher, ...],
    config: EngineConfig,
) -> tuple[str | None, float]:
    """Attribute a third-party link to the single brand it discusses."""
    direct = set(_brands_mentioned(candidate.anchor_text, matchers))
    direct.update(_brands_mentioned(_path_text(candidate.url), matchers))
    if len(direct) == 1:
        return direct.pop(), config.strong_confidence
    if len(direct) > 1:
        return None, 0.0

    in_sentence = _brands_mentioned(candidate.context, matchers)
    if len(in_sentence) == 1:
        return in_sentence[0], config.default_confidence
    return None, 0.0


def classify(
    candidate: UrlCandidate,
    validated: ValidatedUrl,
    matchers: tuple[BrandMatcher, ...],
    config: EngineConfig,
) -> Citation:
    """Classify one validated citation."""
    brand_id, confidence, ambiguous = match_brand_domain(validated.domain, matchers, config)
    if brand_id is not None or ambiguous:
        return Citation(
            url=validated.url,
            domain=validated.domain,
            type=CitationType.BRAND if brand_id else CitationType.NONE,
            confidence=confidence,
            brand_id=brand_id,
            anchor_text=candidate.anchor_text,
            source=candidate.source,
        )

    citation_type = (
        CitationType.SOCIAL if is_social_domain(validated.domain, config.social_domains) else CitationType.EARNED
    )
    brand_id, confidence = attribute_brand(candidate, matchers, config)
    if brand_id is None:
        citation_type = CitationType.NONE

    return Citation(
        url=validated.url,
        domain=validated.domain,
        type=citation_type,
        confidence=confidence,
        brand_id=brand_id,
        anchor_text=candidate.anchor_text,
        source=candidate.source,
    )


def extract_citations(
    text: str,
    matchers: tuple[BrandMatcher, ...],
    config: EngineConfig,
    native_urls: tuple[str, ...] | list[str] = (),
) -> tuple[tuple[Citation, ...], tuple[RejectedUrl, ...]]:
    """Extract, validate and classify every citation in a raw response.

    Returns:
        (accepted citations in order of first occurrence, rejected URLs).
    """
    citations: list[Citation] = []
    rejected: list[RejectedUrl] = []

    for candidate in extract_url_candidates(text, native_urls):
        result = validate_url(candidate.url)
        if isinstance(result, RejectedUrl):
            logger.debug("Dropped citation %s: %s", result.url, result.reason)
            rejected.append(result)
            continue
        citations.append(classify(candidate, result, matchers, config))

    return tuple(citations), tuple(rejected)
