"""Sentence Segmenter - Pipeline Step 2.

Splits text into ordered, 1-indexed sentences. Boundaries are runs of
``.``, ``!`` or ``?`` followed by whitespace, and line breaks (list items
and headings are sentences of their own). A dot inside a token, as in
``hdfcbank.com`` or ``4.5%``, is not a boundary.
"""

from __future__ import annotations

import re

from visibility_engine.analysis.types import Sentence

_LINE_SPLIT = re.compile(r"\r?\n")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_LIST_MARKER = re.compile(r"^\s*\d{1,3}[.)]\s+")
# Fragments made only of markup (e.g. "---", "#", "|") carry no sentence
_HAS_CONTENT = re.compile(r"\w")


def count_words(text: str) -> int:
    """Number of whitespace-separated tokens."""
    return len(text.split())


def split_sentences(text: str) -> list[str]:
    """Split text into non-empty sentence strings, in order."""
    if not text or not text.strip():
        return []

    fragments: list[str] = []
    for line in _LINE_SPLIT.split(text):
        # "1. HDFC Bank" is one list item, not the sentence "1." plus another
        marker = _LIST_MARKER.match(line)
        prefix = marker.group(0) if marker else ""
        parts = _SENTENCE_SPLIT.split(line[len(prefix) :])
        parts[0] = prefix + parts[0]
        for fragment in parts:
            fragment = fragment.strip()
            if fragment and _HAS_CONTENT.search(fragment):
                fragments.append(fragment)
    return fragments


def segment(text: str) -> tuple[Sentence, ...]:
    """Segment text into Sentence records.

    Empty or whitespace-only text yields an empty tuple.
    """
    fragments = split_sentences(text)
    total = len(fragments)
    return tuple(
        Sentence(
            position=i,
            text=fragment,
            word_count=count_words(fragment),
            total_sentences_in_response=total,
        )
        for i, fragment in enumerate(fragments, start=1)
    )
