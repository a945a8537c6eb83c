"""Tests for the Citation Extractor and Classifier."""

from visibility_engine.analysis.brand_matcher import build_matchers
from visibility_engine.analysis.citation_classifier import (
    core_label,
    extract_citations,
    is_social_domain,
    match_brand_domain,
)
from visibility_engine.analysis.citation_extractor import clean_url, extract_url_candidates, validate_url
from visibility_engine.analysis.config import DEFAULT_CONFIG
from visibility_engine.analysis.types import (
    BrandCandidate,
    CitationSource,
    CitationType,
    RejectedUrl,
    ValidatedUrl,
)

_BRANDS = (
    BrandCandidate(brand_id="b-hdfc", brand_name="HDFC Bank Freedom Credit Card"),
    BrandCandidate(brand_id="b-icici", brand_name="ICICI Bank Coral Credit Card"),
    BrandCandidate(brand_id="b-visa", brand_name="Visa"),
)


def _classify(text: str, native_urls: tuple[str, ...] = ()):
    return extract_citations(text, build_matchers(_BRANDS), DEFAULT_CONFIG, native_urls=native_urls)


class TestExtraction:
    def test_markdown_link(self):
        candidates = extract_url_candidates("See [HDFC](https://www.hdfcbank.com/cards) for details.")
        assert len(candidates) == 1
        assert candidates[0].url == "https://www.hdfcbank.com/cards"
        assert candidates[0].anchor_text == "HDFC"
        assert candidates[0].source == CitationSource.MARKDOWN_LINK

    def test_bare_url_trailing_punctuation(self):
        candidates = extract_url_candidates("Check https://example.com/page. It's great!")
        assert [c.url for c in candidates] == ["https://example.com/page"]

    def test_bare_url_in_parentheses(self):
        candidates = extract_url_candidates("Rates vary (https://example.com/rates).")
        assert candidates[0].url == "https://example.com/rates"

    def test_wikipedia_parentheses_kept(self):
        assert clean_url("https://en.wikipedia.org/wiki/Visa_(company)") == "https://en.wikipedia.org/wiki/Visa_(company)"

    def test_dedup_first_occurrence_wins(self):
        text = "See [link](https://example.com) or visit https://example.com."
        candidates = extract_url_candidates(text)
        assert len(candidates) == 1
        assert candidates[0].source == CitationSource.MARKDOWN_LINK

    def test_footnote_definition(self):
        text = "Visa is accepted everywhere [1].\n\n[1]: https://www.visa.com/about"
        candidates = extract_url_candidates(text)
        assert len(candidates) == 1
        assert candidates[0].source == CitationSource.FOOTNOTE
        assert candidates[0].context == "Visa is accepted everywhere [1]."

    def test_native_urls_last(self):
        candidates = extract_url_candidates("Go to https://a.example.com", ["https://b.example.com"])
        assert [c.source for c in candidates] == [CitationSource.BARE_URL, CitationSource.NATIVE]

    def test_context_is_containing_sentence(self):
        text = "Intro text. Visa explains fees at https://example.com/fees today. Outro."
        candidates = extract_url_candidates(text)
        assert candidates[0].context == "Visa explains fees at https://example.com/fees today."

    def test_no_urls(self):
        assert extract_url_candidates("No links here.") == []


class TestValidation:
    def test_valid_domain(self):
        result = validate_url("https://www.HDFCBank.com/path")
        assert isinstance(result, ValidatedUrl)
        assert result.domain == "hdfcbank.com"

    def test_public_ip_allowed(self):
        assert isinstance(validate_url("http://8.8.8.8/dns"), ValidatedUrl)

    def test_rejections(self):
        cases = {
            "ftp://example.com/file": "unsupported_scheme",
            "http://localhost:8000/x": "localhost",
            "http://127.0.0.1/admin": "loopback_ip",
            "http://0.1.2.3/": "non_routable_ip",
            "http://169.254.10.1/": "link_local_ip",
            "http://224.0.0.1/": "multicast_ip",
            "http://240.0.0.1/": "reserved_ip",
            "http://255.255.255.255/": "reserved_ip",
            "http://300.1.1.1/": "invalid_ip",
            "http://example..com/": "empty_label",
            "http://intranet/": "single_label_host",
            "http://example.c0m/": "invalid_tld",
            "http://exa_mple.com/": "invalid_label",
            "https:///nohost": "missing_host",
        }
        for url, reason in cases.items():
            result = validate_url(url)
            assert isinstance(result, RejectedUrl), url
            assert result.reason == reason, url

    def test_idn_tld_allowed(self):
        assert isinstance(validate_url("https://example.xn--p1ai/"), ValidatedUrl)

    def test_never_raises_on_garbage(self):
        assert isinstance(validate_url("http://[::1"), RejectedUrl)


class TestDomainHelpers:
    def test_core_label(self):
        assert core_label("hdfcbank.com") == "hdfcbank"
        assert core_label("netbanking.hdfcbank.co.in") == "hdfcbank"
        assert core_label("shop.example.co.uk") == "example"
        assert core_label("blog.visa.com") == "visa"

    def test_social_domains(self):
        social = DEFAULT_CONFIG.social_domains
        assert is_social_domain("reddit.com", social)
        assert is_social_domain("old.reddit.com", social)
        assert not is_social_domain("notreddit.com", social)

    def test_exact_brand_domain(self):
        brand_id, confidence, ambiguous = match_brand_domain("hdfcbank.com", build_matchers(_BRANDS), DEFAULT_CONFIG)
        assert brand_id == "b-hdfc"
        assert confidence == 0.95
        assert ambiguous is False

    def test_containment_brand_domain(self):
        brand_id, confidence, _ = match_brand_domain("visacards.com", build_matchers(_BRANDS), DEFAULT_CONFIG)
        assert brand_id == "b-visa"
        assert confidence == 0.9

    def test_equal_keys_are_ambiguous(self):
        brands = (
            BrandCandidate(brand_id="a", brand_name="HDFC Bank Freedom"),
            BrandCandidate(brand_id="b", brand_name="HDFC Bank Millennia"),
        )
        brand_id, _, ambiguous = match_brand_domain("hdfcbank.com", build_matchers(brands), DEFAULT_CONFIG)
        assert brand_id is None
        assert ambiguous is True


class TestClassification:
    def test_brand_domain(self):
        citations, rejected = _classify("Apply at https://www.hdfcbank.com/freedom today.")
        assert rejected == ()
        assert len(citations) == 1
        assert citations[0].type == CitationType.BRAND
        assert citations[0].brand_id == "b-hdfc"
        assert citations[0].confidence == 0.95

    def test_earned_attributed_by_path(self):
        citations, _ = _classify("A review: https://www.nerdwallet.com/icici-coral-review")
        assert citations[0].type == CitationType.EARNED
        assert citations[0].brand_id == "b-icici"
        assert citations[0].confidence == 0.9

    def test_earned_attributed_by_anchor(self):
        citations, _ = _classify("See [the Visa guide](https://www.forbes.com/cards/guide).")
        assert citations[0].type == CitationType.EARNED
        assert citations[0].brand_id == "b-visa"
        assert citations[0].confidence == 0.9

    def test_earned_attributed_by_sentence(self):
        citations, _ = _classify("Visa dominates payments, per https://www.forbes.com/payments-report today.")
        assert citations[0].type == CitationType.EARNED
        assert citations[0].brand_id == "b-visa"
        assert citations[0].confidence == 0.8

    def test_social(self):
        citations, _ = _classify("Users on https://www.reddit.com/r/india praise HDFC Bank service.")
        assert citations[0].type == CitationType.SOCIAL
        assert citations[0].brand_id == "b-hdfc"

    def test_no_brand_is_none(self):
        citations, _ = _classify("General advice at https://www.investopedia.com/credit-cards.")
        assert citations[0].type == CitationType.NONE
        assert citations[0].brand_id is None

    def test_two_brands_in_sentence_is_none(self):
        citations, _ = _classify("HDFC Bank and Visa compared at https://www.forbes.com/compare.")
        assert citations[0].type == CitationType.NONE
        assert citations[0].brand_id is None

    def test_rejected_urls_reported(self):
        citations, rejected = _classify("Local: http://127.0.0.1/x and https://www.hdfcbank.com")
        assert len(citations) == 1
        assert rejected == (RejectedUrl(url="http://127.0.0.1/x", reason="loopback_ip"),)

    def test_native_url_classified(self):
        citations, _ = _classify("Visa is widely accepted.", native_urls=("https://www.visa.co.in/",))
        assert citations[0].source == CitationSource.NATIVE
        assert citations[0].type == CitationType.BRAND
        assert citations[0].brand_id == "b-visa"
