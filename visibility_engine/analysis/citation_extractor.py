"""Citation Extractor - Pipeline Step 4.

Extracts and validates cited URLs from raw responses:
  - Inline hyperlinks: [text](url)
  - Footnote definitions: [1]: url
  - Bare URLs: https://example.com
  - Native citations from the vendor API (e.g. Perplexity citations)

Validation never raises: every candidate becomes either a ValidatedUrl or a
RejectedUrl carrying the reason it was dropped.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit

from visibility_engine.analysis.types import (
    CitationSource,
    RejectedUrl,
    UrlCandidate,
    ValidatedUrl,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# URL / link extraction patterns
# ---------------------------------------------------------------------------

# Markdown-style links: [anchor text](url)
_MD_LINK_PATTERN = re.compile(r"\[([^\]\n]+)\]\((https?://[^\s)]+(?:\([^\s)]*\)[^\s)]*)*)\)")

# Footnote definitions: [1]: https://...
_FOOTNOTE_DEF_PATTERN = re.compile(r"^[ \t]*\[\^?(\d+)\]:[ \t]*(https?://\S+)", re.MULTILINE)

# Footnote markers in the body: [1], [^2]
_FOOTNOTE_MARKER_PATTERN = re.compile(r"\[\^?(\d+)\](?!:)")

# Bare URLs
_BARE_URL_PATTERN = re.compile(r"https?://[^\s<>\"'\]]+", re.IGNORECASE)

_TRAILING_PUNCTUATION = ".,;:!?'\"*>"

# Sentence boundaries, kept in step with the segmenter
_BOUNDARY = re.compile(r"[.!?]+\s+|\n")

# ---------------------------------------------------------------------------
# Validation rules
# ---------------------------------------------------------------------------

_IPV4_PATTERN = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")
_LABEL_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
_TLD_PATTERN = re.compile(r"^(?:[a-z]{2,63}|xn--[a-z0-9-]{2,59})$")


def clean_url(url: str) -> str:
    """Strip trailing punctuation and unbalanced closing brackets."""
    url = url.strip()
    while url:
        if url[-1] in _TRAILING_PUNCTUATION:
            url = url[:-1]
        elif url[-1] == ")" and url.count(")") > url.count("("):
            url = url[:-1]
        else:
            break
    return url


def _sentence_around(text: str, start: int, end: int) -> str:
    """Return the sentence of text containing the span [start, end)."""
    left = 0
    for match in _BOUNDARY.finditer(text, 0, start):
        left = match.end()
    match = _BOUNDARY.search(text, end)
    # Keep the closing punctuation with the sentence
    right = match.start() + len(match.group(0).rstrip()) if match else len(text)
    return text[left:right].strip()


def extract_url_candidates(text: str, native_urls: tuple[str, ...] | list[str] = ()) -> list[UrlCandidate]:
    """Extract URL candidates in order of first occurrence, deduplicated.

    Native vendor URLs come after those found in the text.
    """
    text = text or ""
    found: list[UrlCandidate] = []
    taken: list[tuple[int, int]] = []

    def _inside_taken(pos: int) -> bool:
        return any(start <= pos < end for start, end in taken)

    # 1. Markdown links
    for match in _MD_LINK_PATTERN.finditer(text):
        taken.append(match.span())
        found.append(
            UrlCandidate(
                url=clean_url(match.group(2)),
                source=CitationSource.MARKDOWN_LINK,
                anchor_text=match.group(1).strip(),
                offset=match.start(),
                context=_sentence_around(text, match.start(), match.end()),
            )
        )

    # 2. Footnote definitions; the sentence is the one carrying the marker
    markers: dict[str, re.Match] = {}
    for match in _FOOTNOTE_MARKER_PATTERN.finditer(text):
        markers.setdefault(match.group(1), match)
    for match in _FOOTNOTE_DEF_PATTERN.finditer(text):
        taken.append(match.span())
        marker = markers.get(match.group(1))
        if marker is not None:
            context = _sentence_around(text, marker.start(), marker.end())
            offset = marker.start()
        else:
            context = ""
            offset = match.start()
        found.append(
            UrlCandidate(
                url=clean_url(match.group(2)),
                source=CitationSource.FOOTNOTE,
                offset=offset,
                context=context,
            )
        )

    # 3. Bare URLs outside links and footnote definitions
    for match in _BARE_URL_PATTERN.finditer(text):
        if _inside_taken(match.start()):
            continue
        found.append(
            UrlCandidate(
                url=clean_url(match.group(0)),
                source=CitationSource.BARE_URL,
                offset=match.start(),
                context=_sentence_around(text, match.start(), match.end()),
            )
        )

    found.sort(key=lambda c: c.offset)

    # 4. Native citations from the vendor API
    for url in native_urls or ():
        if url and url.strip():
            found.append(UrlCandidate(url=clean_url(url), source=CitationSource.NATIVE))

    seen: set[str] = set()
    candidates: list[UrlCandidate] = []
    for candidate in found:
        if candidate.url and candidate.url not in seen:
            seen.add(candidate.url)
            candidates.append(candidate)
    return candidates


def _validate_ipv4(url: str, host: str, octets: tuple[str, ...]) -> ValidatedUrl | RejectedUrl:
    values = [int(o) for o in octets]
    if any(v > 255 for v in values):
        return RejectedUrl(url=url, reason="invalid_ip")
    first, second = values[0], values[1]
    if first == 0:
        return RejectedUrl(url=url, reason="non_routable_ip")
    if first == 127:
        return RejectedUrl(url=url, reason="loopback_ip")
    if first == 169 and second == 254:
        return RejectedUrl(url=url, reason="link_local_ip")
    if 224 <= first <= 239:
        return RejectedUrl(url=url, reason="multicast_ip")
    # 240.0.0.0/4 includes the 255.255.255.255 broadcast address
    if first >= 240:
        return RejectedUrl(url=url, reason="reserved_ip")
    return ValidatedUrl(url=url, domain=host)


def validate_url(url: str) -> ValidatedUrl | RejectedUrl:
    """Validate one URL. Returns a rejection instead of raising."""
    if not url:
        return RejectedUrl(url=url or "", reason="empty")

    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        return RejectedUrl(url=url, reason="unparsable")

    if parts.scheme.lower() not in ("http", "https"):
        return RejectedUrl(url=url, reason="unsupported_scheme")
    if not host:
        return RejectedUrl(url=url, reason="missing_host")

    host = host.lower()
    if host == "localhost" or host.endswith(".localhost"):
        return RejectedUrl(url=url, reason="localhost")

    ip_match = _IPV4_PATTERN.match(host)
    if ip_match:
        return _validate_ipv4(url, host, ip_match.groups())

    labels = host.split(".")
    if any(not label for label in labels):
        return RejectedUrl(url=url, reason="empty_label")
    if any(not _LABEL_PATTERN.match(label) for label in labels):
        return RejectedUrl(url=url, reason="invalid_label")
    if len(labels) < 2:
        return RejectedUrl(url=url, reason="single_label_host")
    if not _TLD_PATTERN.match(labels[-1]):
        return RejectedUrl(url=url, reason="invalid_tld")

    domain = host[4:] if host.startswith("www.") and len(labels) > 2 else host
    return ValidatedUrl(url=url, domain=domain)
