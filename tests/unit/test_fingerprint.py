"""
Unit tests for link/text normalization and cache fingerprints.
"""

import pytest

from newsreels.content import (
    fingerprint,
    normalize_hashtags,
    normalize_text,
    normalize_url,
    resolve_link,
)


@pytest.mark.unit
class TestNormalizeUrl:

    def test_lowercases_scheme_and_host_only(self):
        assert normalize_url("HTTPS://News.Example.COM/Story/42") == "https://news.example.com/Story/42"

    def test_strips_tracking_params_fragment_and_slash(self):
        url = "https://example.com/a/?id=7&utm_source=fb&fbclid=abc&gclid=z#comments"
        assert normalize_url(url) == "https://example.com/a?id=7"

    def test_same_article_same_key(self):
        assert normalize_url("https://example.com/a/") == normalize_url("https://EXAMPLE.com/a?utm_medium=x")

    @pytest.mark.parametrize("bad", ["", "/relative/path", "ftp://example.com/x", "not a url"])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            normalize_url(bad)


@pytest.mark.unit
class TestHelpers:

    def test_resolve_link(self):
        assert resolve_link("/news/1", "https://example.com/en/") == "https://example.com/news/1"
        assert resolve_link("https://other.org/x", "https://example.com") == "https://other.org/x"

    def test_normalize_text(self):
        assert normalize_text("  Hello \n  World ") == "hello world"
        assert normalize_text(None) == ""

    def test_fingerprint_ignores_case_and_whitespace(self):
        assert fingerprint("image", "A  Sunset") == fingerprint("image", "a sunset")
        assert fingerprint("image", "a sunset").startswith("image:")

    def test_fingerprint_prefix(self):
        base = "x" * 400
        assert fingerprint("image", base + "tail one", prefix=400) == fingerprint("image", base + "other", prefix=400)
        assert fingerprint("image", base + "tail one") != fingerprint("image", base + "other")

    def test_fingerprint_tag_and_parts_matter(self):
        assert fingerprint("audio", "x") != fingerprint("image", "x")
        assert fingerprint("prompts", "ab", "c") != fingerprint("prompts", "a", "bc")

    def test_normalize_hashtags(self):
        assert normalize_hashtags(["Nepal", "#nepal", " #News ", "", "#"]) == ["#nepal", "#news"]
