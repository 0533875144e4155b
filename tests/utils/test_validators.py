"""Tests for URL and slug validators."""

import re

import pytest

from telepath.utils.validators import (
    extract_urls,
    get_domain_from_url,
    is_short_url,
    is_valid_slug,
    is_valid_url,
    normalize_url,
    sanitize_custom_slug,
    sanitize_slug,
)

SUGGESTED_SLUG_SHAPE = re.compile(r"^[a-z0-9]([a-z0-9-]{0,10}[a-z0-9])?$")


class TestExtractUrls:
    """Tests for extract_urls."""

    def test_single_url_in_prose(self):
        text = "check this out https://example.com/some/very-long-path-name please"
        assert extract_urls(text) == ["https://example.com/some/very-long-path-name"]

    def test_multiple_urls_in_order(self):
        text = "a http://one.test/x and https://two.test/y"
        assert extract_urls(text) == ["http://one.test/x", "https://two.test/y"]

    def test_no_url(self):
        assert extract_urls("just words, www.example.com without scheme") == []


class TestUrlHelpers:
    """Tests for is_valid_url, normalize_url, get_domain_from_url, is_short_url."""

    @pytest.mark.parametrize(
        "url,valid",
        [
            ("https://example.com", True),
            ("http://example.com/path?q=1", True),
            ("ftp://example.com", False),
            ("https://", False),
            ("not a url", False),
            ("http://example.com:notaport/", False),
        ],
    )
    def test_is_valid_url(self, url, valid):
        assert is_valid_url(url) is valid

    def test_normalize_strips_trailing_slash(self):
        assert normalize_url("HTTPS://Example.COM/Blog/") == "https://example.com/Blog"

    def test_normalize_keeps_root(self):
        assert normalize_url("https://example.com") == "https://example.com/"

    def test_domain_strips_www(self):
        assert get_domain_from_url("https://www.example.com/x") == "example.com"

    def test_domain_unknown(self):
        assert get_domain_from_url("nonsense") == "unknown"

    @pytest.mark.parametrize(
        "url,short",
        [
            ("https://bit.ly/abc", True),
            ("https://dub.sh/x", True),
            ("https://sub.tinyurl.com/x", True),
            ("https://example.com/some/very-long-path-name", False),
            ("https://notbit.ly/x", False),
        ],
    )
    def test_is_short_url(self, url, short):
        assert is_short_url(url) is short


class TestSlugValidation:
    """Tests for user slug validation and sanitizers."""

    @pytest.mark.parametrize("slug", ["abc", "A_b-9", "x" * 50])
    def test_valid_slugs(self, slug):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize("slug", ["", "has space", "emoji🙂", "x" * 51, "a/b", "abc\n"])
    def test_invalid_slugs(self, slug):
        assert not is_valid_slug(slug)

    def test_sanitize_custom_slug(self):
        assert sanitize_custom_slug("  My_Slug!! ") == "my_slug"

    @pytest.mark.parametrize(
        "raw",
        [
            "Hello World",
            "--edge--",
            "UPPER_case_and_more_than_twelve",
            "ümlaut-ß",
            "a-----------b",
            "-",
            "",
            "12345678901-3",
            "ai-tutorial",
        ],
    )
    def test_sanitize_is_idempotent_and_well_shaped(self, raw):
        once = sanitize_slug(raw)
        assert sanitize_slug(once) == once
        assert once == "" or SUGGESTED_SLUG_SHAPE.match(once)

    def test_sanitize_clips_to_twelve(self):
        assert sanitize_slug("abcdefghijklmnop") == "abcdefghijkl"
