"""Brand Mention Detector - Pipeline Step 3.

Word-boundary-safe, case-insensitive brand matching over sentences.

Each brand gets an alias set:
  1. the full name and any explicit aliases
  2. the name with trailing product suffixes and trademark marks removed
  3. every leading-word prefix of the name that is specific enough

All aliases are compiled into one alternation ordered longest first, so
"HDFC Bank" counts once and not again as "HDFC". Matchers are built per
run from the brand list and never cached across runs.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from visibility_engine.analysis.types import BrandCandidate, BrandMatch, Sentence

logger = logging.getLogger(__name__)

# Trailing product descriptors removed to get the company name
PRODUCT_SUFFIXES = (
    "Credit Card",
    "Corporate Card",
    "Business Card",
    "Debit Card",
    "Card",
    "Credit",
    "Account",
    "Platform",
    "Service",
    "Solution",
    "System",
    "Application",
    "App",
    "Software",
    "Product",
    "Tool",
)

# Tokens that never make a name prefix specific on their own
GENERIC_WORDS = frozenset(
    {
        # articles / prepositions / conjunctions
        "a", "an", "the", "of", "and", "for", "in", "on", "at", "by", "to", "with", "&",
        # corporate suffixes
        "inc", "llc", "ltd", "limited", "corp", "corporation", "co", "company", "plc",
        "gmbh", "ag", "sa", "group", "holdings", "pvt", "private",
        # category words
        "bank", "banking", "card", "cards", "credit", "debit", "financial", "finance",
        "money", "capital", "express", "pay", "payments", "services", "service",
        "insurance", "international", "national", "global", "general", "united",
        "american", "first", "new",
    }
)

_TRADEMARKS = re.compile(r"[™®©]")
_TOKEN_SPLIT = re.compile(r"[\s\-]+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
# Latin and Cyrillic letters, digits and underscore count as word characters for boundaries
_WORD_CHARS = "а-яА-ЯёЁa-zA-Z0-9_"
# URLs inside sentences are masked so that domains and paths do not count as mentions
_URL_SPAN = re.compile(r"https?://\S+|\bwww\.\S+", re.IGNORECASE)


def _tokens(name: str) -> list[str]:
    return [t for t in _TOKEN_SPLIT.split(_TRADEMARKS.sub("", name).strip()) if t]


def _normalize_token(token: str) -> str:
    return _NON_ALNUM.sub("", token.lower())


def strip_product_suffixes(name: str) -> str:
    """Remove trailing product suffixes and trademark marks from a brand name.

    "HDFC Bank Freedom Credit Card" -> "HDFC Bank Freedom"
    """
    cleaned = name.strip()
    for suffix in PRODUCT_SUFFIXES:
        pattern = re.compile(rf"\s+{re.escape(suffix)}\s*[™®©]*$", re.IGNORECASE)
        stripped = pattern.sub("", cleaned).strip()
        # Never strip a name down to nothing
        if stripped:
            cleaned = stripped
    return _TRADEMARKS.sub("", cleaned).strip()


def is_specific(tokens: list[str]) -> bool:
    """A token sequence is specific if it has a non-generic token.

    A single token must also be at least 3 characters long.
    """
    normalized = [_normalize_token(t) for t in tokens]
    normalized = [t for t in normalized if t]
    if not normalized:
        return False
    if len(normalized) == 1 and len(normalized[0]) < 3:
        return False
    return any(t not in GENERIC_WORDS for t in normalized)


def build_aliases(brand: BrandCandidate) -> tuple[str, ...]:
    """Alias set for a brand, longest first, deduplicated case-insensitively."""
    candidates: list[str] = []

    full_name = brand.brand_name.strip()
    if full_name:
        candidates.append(full_name)
    candidates.extend(a.strip() for a in brand.aliases if a and a.strip())

    if full_name:
        candidates.append(strip_product_suffixes(full_name))

        tokens = _tokens(full_name)
        for end in range(len(tokens) - 1, 0, -1):
            prefix = tokens[:end]
            if is_specific(prefix):
                candidates.append(" ".join(prefix))

    seen: set[str] = set()
    aliases: list[str] = []
    for candidate in candidates:
        key = " ".join(_tokens(candidate)).lower()
        if key and key not in seen:
            seen.add(key)
            aliases.append(candidate)

    aliases.sort(key=lambda a: (-len(" ".join(_tokens(a))), a.lower()))
    return tuple(aliases)


def _alias_regex(alias: str) -> str:
    # Hyphen or whitespace between name tokens are interchangeable
    return r"[\s\-]+".join(re.escape(t) for t in _tokens(alias))


def build_pattern(aliases: tuple[str, ...]) -> re.Pattern | None:
    """Compile one case-insensitive alternation over all aliases."""
    parts = [_alias_regex(a) for a in aliases]
    parts = [p for p in parts if p]
    if not parts:
        return None
    alternation = "|".join(parts)
    return re.compile(
        rf"(?<![{_WORD_CHARS}])(?:{alternation})(?:['’]s)?(?![{_WORD_CHARS}])",
        re.IGNORECASE,
    )


def brand_domain_keys(brand: BrandCandidate) -> tuple[str, ...]:
    """Normalized keys used to recognise a brand-owned domain.

    The leading two words joined ("hdfcbank", "americanexpress"), plus the
    leading word alone when it is specific enough ("hdfc", but never
    "american"). Explicit aliases contribute the same way.
    """
    keys: list[str] = []
    for name in (brand.brand_name, *brand.aliases):
        if not name:
            continue
        tokens = _tokens(strip_product_suffixes(name))
        if not tokens:
            continue
        two = "".join(_normalize_token(t) for t in tokens[:2])
        if len(two) >= 3:
            keys.append(two)
        if is_specific(tokens[:1]):
            keys.append(_normalize_token(tokens[0]))
    return tuple(dict.fromkeys(k for k in keys if k))


@dataclass(frozen=True)
class BrandMatcher:
    """Compiled matcher for one brand."""

    brand: BrandCandidate
    aliases: tuple[str, ...]
    pattern: re.Pattern | None
    domain_keys: tuple[str, ...]

    @property
    def brand_id(self) -> str:
        return self.brand.brand_id

    def find_all(self, text: str) -> list[str]:
        """Non-overlapping matches in text, URLs excluded."""
        if self.pattern is None or not text:
            return []
        masked = _URL_SPAN.sub(lambda m: " " * len(m.group(0)), text)
        return [m.group(0) for m in self.pattern.finditer(masked)]

    def mentions(self, text: str) -> bool:
        return bool(self.find_all(text))


def build_matcher(brand: BrandCandidate) -> BrandMatcher:
    aliases = build_aliases(brand)
    if not aliases:
        logger.warning("Brand %s has an empty name, it will never match", brand.brand_id)
    return BrandMatcher(
        brand=brand,
        aliases=aliases,
        pattern=build_pattern(aliases),
        domain_keys=brand_domain_keys(brand),
    )


def build_matchers(brands: tuple[BrandCandidate, ...] | list[BrandCandidate]) -> tuple[BrandMatcher, ...]:
    return tuple(build_matcher(b) for b in brands)


def detect_mentions(sentences: tuple[Sentence, ...], matcher: BrandMatcher) -> BrandMatch:
    """Detect a brand's mentions across the sentences of one response."""
    matched_sentences: list[Sentence] = []
    matched_aliases: list[str] = []
    mention_count = 0

    for sentence in sentences:
        hits = matcher.find_all(sentence.text)
        if not hits:
            continue
        matched_sentences.append(sentence)
        mention_count += len(hits)
        for hit in hits:
            alias = hit.lower()
            if alias not in matched_aliases:
                matched_aliases.append(alias)

    if not matched_sentences:
        return BrandMatch(brand_id=matcher.brand_id)

    return BrandMatch(
        brand_id=matcher.brand_id,
        mentioned=True,
        first_position=min(s.position for s in matched_sentences),
        mention_count=mention_count,
        sentences=tuple(matched_sentences),
        aliases_matched=tuple(matched_aliases),
    )
