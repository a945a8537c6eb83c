"""Tests for the Text Preprocessor."""

from visibility_engine.analysis.preprocessor import preprocess, strip_think_blocks
from visibility_engine.analysis.types import SanitizationFlag


class TestEmptyResponses:
    def test_empty_string(self):
        result = preprocess("")
        assert result.flag == SanitizationFlag.EMPTY_RESPONSE
        assert result.text == ""

    def test_whitespace_only(self):
        assert preprocess("   \n\t ").flag == SanitizationFlag.EMPTY_RESPONSE

    def test_none(self):
        assert preprocess(None).flag == SanitizationFlag.EMPTY_RESPONSE


class TestCensorship:
    def test_vendor_marker(self):
        result = preprocess("Some text [CENSORED_BY_VENDOR] more text")
        assert result.flag == SanitizationFlag.CENSORED
        assert result.text == ""

    def test_blocked_marker(self):
        assert preprocess("[BLOCKED]").flag == SanitizationFlag.CENSORED


class TestThinkBlocks:
    def test_think_block_removed(self):
        result = preprocess("<think>Let me weigh Visa vs Amex.</think>Visa is accepted widely.")
        assert result.flag == SanitizationFlag.THINK_STRIPPED
        assert result.text == "Visa is accepted widely."
        assert "weigh" in result.think_content

    def test_think_only_is_empty(self):
        result = preprocess("<think>nothing to say</think>")
        assert result.flag == SanitizationFlag.EMPTY_RESPONSE
        assert result.think_content == "nothing to say"

    def test_strip_think_blocks_keeps_links(self):
        text = "<think>see https://a.example.com</think>Go to https://b.example.com"
        assert strip_think_blocks(text) == "Go to https://b.example.com"


class TestMarkdownCleanup:
    def test_bold_removed(self):
        assert preprocess("**HDFC Bank** is popular.").text == "HDFC Bank is popular."

    def test_italic_removed(self):
        assert preprocess("It is *very* good.").text == "It is very good."

    def test_bullets_kept(self):
        result = preprocess("* Visa\n* Mastercard")
        assert result.text == "* Visa\n* Mastercard"

    def test_blank_lines_collapsed(self):
        assert preprocess("A.\n\n\n\nB.").text == "A.\n\nB."

    def test_line_whitespace_trimmed(self):
        assert preprocess("  A.  \n   B.").text == "A.\nB."

    def test_clean_flag(self):
        result = preprocess("Plain answer.")
        assert result.flag == SanitizationFlag.CLEAN
        assert result.stripped_chars == 0
