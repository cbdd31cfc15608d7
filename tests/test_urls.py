"""Tests for URL normalization and URL helpers."""

import pytest

from parasight.extraction.urls import (
    InvalidUrlError,
    arxiv_paper_id,
    normalize_url,
    title_from_url,
    validate_submitted_url,
)

SAMPLE_URLS = [
    "https://example.com",
    "http://www.Example.com/Path/?b=2&a=1#frag",
    "https://example.com/a//",
    "https://www.www.example.com/x",
    "https://example.com/search?q=hello world&UTM_SOURCE=x",
    "https://example.com/p?x=%2F&y=caf%C3%A9",
    "https://user:pw@example.com:8443/p/",
    "not a url at all",
    "HTTPS://EXAMPLE.COM/UPPER?Z=1",
    "https://[::1]:8080/",
    "https://example.com/p?B=1&a=2",
    "https://example.com/p?Z=Beta&z=alpha",
]


class TestNormalizeUrl:
    """Test suite for the deduplication key."""

    @pytest.mark.parametrize("url", SAMPLE_URLS)
    def test_idempotent(self, url):
        once = normalize_url(url)
        assert normalize_url(once) == once

    @pytest.mark.parametrize(
        "variant",
        [
            "http://example.com/article?id=7",
            "https://www.example.com/article?id=7",
            "https://example.com/article/?id=7",
            "https://example.com/article?id=7#comments",
            "https://example.com/article?utm_source=news&id=7&fbclid=abc",
            "https://example.com/article?id=7&ref=home&s=20&t=3",
            "HTTPS://EXAMPLE.COM/ARTICLE?ID=7",
        ],
    )
    def test_equivalent_variants(self, variant):
        assert normalize_url(variant) == "https://example.com/article?id=7"

    def test_query_order_independent(self):
        assert normalize_url("https://a.com/p?b=2&a=1") == normalize_url(
            "https://a.com/p?a=1&b=2"
        )

    def test_query_key_case_does_not_affect_order(self):
        expected = "https://example.com/p?a=2&b=1"
        assert normalize_url("https://example.com/p?B=1&a=2") == expected
        assert normalize_url("https://example.com/p?b=1&a=2") == expected
        assert normalize_url("https://example.com/p?a=2&B=1") == expected

    def test_root_path_kept(self):
        assert normalize_url("https://example.com/") == "https://example.com/"
        assert normalize_url("https://example.com") == "https://example.com/"

    def test_non_tracking_params_kept(self):
        assert normalize_url("https://youtube.com/watch?v=abc") == "https://youtube.com/watch?v=abc"

    def test_unparseable_input_is_lowercased(self):
        assert normalize_url("Not A URL") == "not a url"

    def test_default_https_port_dropped(self):
        assert normalize_url("https://example.com:443/x") == "https://example.com/x"


class TestValidateSubmittedUrl:
    def test_accepts_http_and_https(self):
        assert validate_submitted_url(" https://example.com/x ") == "https://example.com/x"
        assert validate_submitted_url("http://example.com") == "http://example.com"

    @pytest.mark.parametrize("url", ["ftp://example.com/file", "mailto:me@example.com"])
    def test_rejects_other_schemes(self, url):
        with pytest.raises(InvalidUrlError):
            validate_submitted_url(url)

    @pytest.mark.parametrize("url", ["example.com", "not a url", "http://host:notaport/"])
    def test_rejects_malformed(self, url):
        with pytest.raises(InvalidUrlError):
            validate_submitted_url(url)


class TestTitleFromUrl:
    def test_github_repo(self):
        assert title_from_url("https://github.com/pallets/flask/tree/main") == "pallets/flask"

    def test_arxiv_abs_and_pdf(self):
        assert title_from_url("https://arxiv.org/abs/2401.00001") == "arXiv:2401.00001"
        assert title_from_url("https://arxiv.org/pdf/2401.00001v2.pdf") == "arXiv:2401.00001v2"

    def test_last_segment(self):
        assert title_from_url("https://blog.example.com/posts/my-great_post.html") == "my great post"

    def test_short_segment_falls_back_to_host(self):
        assert title_from_url("https://www.example.com/a") == "example.com"
        assert title_from_url("https://example.com/") == "example.com"


def test_arxiv_paper_id():
    assert arxiv_paper_id("https://arxiv.org/abs/2401.00001?utm_source=x") == "2401.00001"
    assert arxiv_paper_id("https://example.com/abs/2401.00001") is None
