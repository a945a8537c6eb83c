"""Text Preprocessor - Pipeline Step 1.

Cleans raw answer-engine responses before segmentation:
  - Strips <think>...</think> reasoning blocks
  - Detects vendor censorship markers
  - Cleans Markdown emphasis artifacts
  - Handles empty responses

Citations are extracted from the raw text, not from the preprocessed one.
"""

from __future__ import annotations

import logging
import re

from visibility_engine.analysis.types import SanitizationFlag, SanitizedText

logger = logging.getLogger(__name__)

_THINK_PATTERN = re.compile(r"<think>(.*?)</think>", re.DOTALL | re.IGNORECASE)

# Markers some vendors substitute for a filtered answer
_CENSORED_MARKERS = (
    "[CENSORED_BY_VENDOR]",
    "[CENSORED]",
    "[BLOCKED]",
)

# Bold/italic markers; inner text is kept
_MD_BOLD_ITALIC = re.compile(r"(\*{1,3}|_{2,3})(\S(?:.*?\S)?)\1")
_MD_BLANK_LINES = re.compile(r"\n{3,}")
_MD_LINE_WHITESPACE = re.compile(r"^[ \t]+|[ \t]+$", re.MULTILINE)


def strip_think_blocks(text: str) -> str:
    """Remove <think> reasoning blocks and nothing else."""
    return _THINK_PATTERN.sub("", text or "")


def preprocess(text: str) -> SanitizedText:
    """Run text through the sanitization steps.

    Args:
        text: Raw response text.

    Returns:
        SanitizedText with cleaned text and metadata about what was stripped.
    """
    original_text = text or ""

    if not original_text.strip():
        return SanitizedText(original_text=original_text, flag=SanitizationFlag.EMPTY_RESPONSE)

    for marker in _CENSORED_MARKERS:
        if marker in original_text:
            logger.debug("Censorship marker %s found, discarding response text", marker)
            return SanitizedText(original_text=original_text, flag=SanitizationFlag.CENSORED)

    text = original_text
    think_content = ""
    think_matches = _THINK_PATTERN.findall(text)
    if think_matches:
        think_content = "\n".join(m.strip() for m in think_matches)
        text = _THINK_PATTERN.sub("", text).strip()
        if not text:
            return SanitizedText(
                original_text=original_text,
                flag=SanitizationFlag.EMPTY_RESPONSE,
                think_content=think_content,
                stripped_chars=len(original_text),
            )

    cleaned = _MD_BOLD_ITALIC.sub(r"\2", text)
    cleaned = _MD_BLANK_LINES.sub("\n\n", cleaned)
    cleaned = _MD_LINE_WHITESPACE.sub("", cleaned)
    cleaned = cleaned.strip()

    return SanitizedText(
        text=cleaned,
        original_text=original_text,
        flag=SanitizationFlag.THINK_STRIPPED if think_content else SanitizationFlag.CLEAN,
        think_content=think_content,
        stripped_chars=len(original_text) - len(cleaned),
    )
